"""Replica handles. Owned by the pool manager; the decision engine only ever sees counts."""

from dataclasses import dataclass
from enum import Enum


class ReplicaStatus(str, Enum):
    STARTING = "starting"
    READY = "ready"
    DRAINING = "draining"


@dataclass(frozen=True)
class ReplicaHandle:
    """Opaque reference to a running worker. `ordinal` orders creation (higher is newer)."""

    replica_id: str
    created_at: float
    ordinal: int
