"""Replica pool: handles, the platform contract, and the manager that reconciles them."""

from autoscaler.pool.http_platform import HttpReplicaPlatform
from autoscaler.pool.manager import ReplicaPoolManager
from autoscaler.pool.platform import InMemoryReplicaPlatform, PlatformRejectedError, ReplicaPlatform
from autoscaler.pool.replica import ReplicaHandle, ReplicaStatus

__all__ = [
    "HttpReplicaPlatform",
    "InMemoryReplicaPlatform",
    "PlatformRejectedError",
    "ReplicaHandle",
    "ReplicaPlatform",
    "ReplicaPoolManager",
    "ReplicaStatus",
]
