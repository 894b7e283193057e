"""Scaling policy: validated, immutable configuration loaded once at startup."""

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from autoscaler.domain.exceptions import ConfigurationError


class ScalingPolicy(BaseModel):
    """
    Immutable after construction. Invalid combinations fail fast with
    ConfigurationError instead of being coerced into range.
    """

    model_config = ConfigDict(frozen=True)

    min_replicas: int = Field(..., description="Lower bound for the pool; must be >= 1")
    max_replicas: int = Field(..., description="Upper bound for the pool; must be >= min_replicas")
    target_utilization_ratio: float = Field(..., description="Desired average CPU ratio, 0 < r <= 1")
    scale_up_cooldown_seconds: float = 60.0
    scale_down_cooldown_seconds: float = 300.0
    poll_interval_seconds: float = 15.0
    # Largest change applied in one cycle; None means unbounded
    max_scale_up_step: int | None = 1
    max_scale_down_step: int | None = None

    @model_validator(mode="after")
    def check_invariants(self) -> "ScalingPolicy":
        if self.min_replicas < 1:
            raise ValueError(f"min_replicas must be >= 1, got {self.min_replicas}")
        if self.max_replicas < self.min_replicas:
            raise ValueError(
                f"max_replicas ({self.max_replicas}) must be >= min_replicas ({self.min_replicas})"
            )
        if not 0.0 < self.target_utilization_ratio <= 1.0:
            raise ValueError(
                f"target_utilization_ratio must be in (0, 1], got {self.target_utilization_ratio}"
            )
        if self.scale_up_cooldown_seconds < 0:
            raise ValueError("scale_up_cooldown_seconds must be >= 0")
        if self.scale_down_cooldown_seconds <= self.scale_up_cooldown_seconds:
            raise ValueError(
                f"scale_down_cooldown_seconds ({self.scale_down_cooldown_seconds}) must be greater "
                f"than scale_up_cooldown_seconds ({self.scale_up_cooldown_seconds})"
            )
        if self.poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be > 0")
        for name in ("max_scale_up_step", "max_scale_down_step"):
            step = getattr(self, name)
            if step is not None and step < 1:
                raise ValueError(f"{name} must be >= 1 when set, got {step}")
        return self

    @classmethod
    def build(cls, **values) -> "ScalingPolicy":
        """Construct a policy, translating validation failures into ConfigurationError."""
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid scaling policy: {e}") from e

    def clamp(self, count: int) -> int:
        return max(self.min_replicas, min(self.max_replicas, count))
