"""Immutable scaling-event records for the observability stream."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ScalingEventKind(str, Enum):
    SCALED = "scaled"
    POOL_DEGRADED = "pool_degraded"
    SHUTDOWN = "shutdown"


@dataclass(frozen=True)
class ScalingEvent:
    """
    One entry in the append-only event stream. `sequence` is assigned by the
    event log and is monotonically increasing for the life of the buffer.
    """

    timestamp: float
    from_count: int
    to_count: int
    reason: str
    kind: ScalingEventKind = ScalingEventKind.SCALED
    detail: str = ""
    sequence: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "timestamp": self.timestamp,
            "from_count": self.from_count,
            "to_count": self.to_count,
            "reason": self.reason,
            "kind": self.kind.value,
            "detail": self.detail,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScalingEvent":
        return cls(
            timestamp=float(data["timestamp"]),
            from_count=int(data["from_count"]),
            to_count=int(data["to_count"]),
            reason=str(data["reason"]),
            kind=ScalingEventKind(data.get("kind", ScalingEventKind.SCALED.value)),
            detail=str(data.get("detail", "")),
            sequence=int(data.get("sequence", 0)),
        )
