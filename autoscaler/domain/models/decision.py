"""Scaling decision produced once per cycle."""

from dataclasses import dataclass
from enum import Enum


class ScalingReason(str, Enum):
    NO_CHANGE = "no_change"
    SCALE_UP = "scale_up"
    SCALE_DOWN = "scale_down"
    CLAMPED_TO_MIN = "clamped_to_min"
    CLAMPED_TO_MAX = "clamped_to_max"


# Detail strings recorded alongside NO_CHANGE
DETAIL_METRICS_UNAVAILABLE = "metrics_unavailable"
DETAIL_EMPTY_POOL = "empty_pool"
DETAIL_SCALE_UP_COOLDOWN = "scale_up_cooldown"
DETAIL_SCALE_DOWN_COOLDOWN = "scale_down_cooldown"
DETAIL_AT_TARGET = "at_target"


@dataclass(frozen=True)
class ScalingDecision:
    target_replica_count: int
    reason: ScalingReason
    detail: str = ""
    raw_target: int | None = None
    average_utilization: float | None = None

    def changes_count(self, current: int) -> bool:
        """True when applying this decision would resize the pool."""
        return self.reason != ScalingReason.NO_CHANGE and self.target_replica_count != current

    @property
    def suppressed_by_cooldown(self) -> bool:
        return self.detail in (DETAIL_SCALE_UP_COOLDOWN, DETAIL_SCALE_DOWN_COOLDOWN)
