"""Pool state carried between control-loop cycles."""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class PoolState:
    """
    Owned by the control loop and passed explicitly through each cycle.
    Never mutated in place: a cycle returns a new value.
    """

    current_replica_count: int
    desired_replica_count: int
    last_scale_up_time: float | None = None
    last_scale_down_time: float | None = None

    def __post_init__(self) -> None:
        if self.current_replica_count < 0:
            raise ValueError("current_replica_count must be >= 0")

    @classmethod
    def initial(cls, replica_count: int) -> "PoolState":
        return cls(current_replica_count=replica_count, desired_replica_count=replica_count)

    def with_current(self, count: int) -> "PoolState":
        return replace(self, current_replica_count=count)

    def after_scale(self, target: int, now: float) -> "PoolState":
        """State after a successful apply. Only the cooldown for the direction taken is stamped."""
        if target > self.current_replica_count:
            return replace(
                self,
                current_replica_count=target,
                desired_replica_count=target,
                last_scale_up_time=now,
            )
        if target < self.current_replica_count:
            return replace(
                self,
                current_replica_count=target,
                desired_replica_count=target,
                last_scale_down_time=now,
            )
        return replace(self, desired_replica_count=target)
