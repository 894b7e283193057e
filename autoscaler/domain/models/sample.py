"""Per-replica utilization sample reported by a metrics source."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UtilizationSample:
    """Immutable. Discarded once folded into a cycle's average."""

    replica_id: str
    cpu_utilization_ratio: float
    timestamp_monotonic: int

    def __post_init__(self) -> None:
        if not 0.0 <= self.cpu_utilization_ratio <= 1.0:
            raise ValueError(
                f"cpu_utilization_ratio must be in [0, 1], got {self.cpu_utilization_ratio}"
            )
