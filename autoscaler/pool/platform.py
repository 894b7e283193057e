"""Platform contract the pool manager drives, plus an in-memory platform for simulation and tests."""

import asyncio
import itertools
from typing import Protocol


class ReplicaPlatform(Protocol):
    """
    Underlying create/terminate operations (e.g. a deployment controller).
    Calls may be slow; the pool manager bounds them with timeouts.
    """

    supports_drain: bool

    async def list_replicas(self) -> list[str]: ...
    async def create_replica(self) -> str: ...
    async def terminate_replica(self, replica_id: str) -> None: ...
    async def drain_replica(self, replica_id: str) -> None: ...
    async def cancel_drain(self, replica_id: str) -> None: ...
    async def is_ready(self, replica_id: str) -> bool: ...
    async def is_healthy(self, replica_id: str) -> bool: ...


class PlatformRejectedError(Exception):
    """Raised by the in-memory platform to simulate quota or scheduling rejections."""


class InMemoryReplicaPlatform:
    """
    Single-process platform. Replicas are ready immediately unless
    `ready_immediately=False`, in which case mark_ready() promotes them.
    `drain_delay_seconds=None` with supports_drain makes drains never finish.
    """

    def __init__(
        self,
        supports_drain: bool = False,
        ready_immediately: bool = True,
        drain_delay_seconds: float | None = 0.0,
        quota: int | None = None,
        id_prefix: str = "replica",
    ) -> None:
        self.supports_drain = supports_drain
        self._ready_immediately = ready_immediately
        self.drain_delay_seconds = drain_delay_seconds
        self.quota = quota
        self._prefix = id_prefix
        self._ids = itertools.count(1)
        self.running: dict[str, bool] = {}  # replica_id -> ready
        self.unhealthy: set[str] = set()
        self.draining: set[str] = set()
        self.created: list[str] = []
        self.terminated: list[str] = []
        self.fail_creates = 0
        self.fail_terminates = 0

    async def list_replicas(self) -> list[str]:
        return list(self.running)

    async def create_replica(self) -> str:
        if self.fail_creates > 0:
            self.fail_creates -= 1
            raise PlatformRejectedError("scheduling failure")
        if self.quota is not None and len(self.running) >= self.quota:
            raise PlatformRejectedError(f"quota of {self.quota} replicas exceeded")
        replica_id = f"{self._prefix}-{next(self._ids)}"
        self.running[replica_id] = self._ready_immediately
        self.created.append(replica_id)
        return replica_id

    async def terminate_replica(self, replica_id: str) -> None:
        if self.fail_terminates > 0:
            self.fail_terminates -= 1
            raise PlatformRejectedError("terminate rejected")
        self.running.pop(replica_id, None)
        self.draining.discard(replica_id)
        self.unhealthy.discard(replica_id)
        self.terminated.append(replica_id)

    async def drain_replica(self, replica_id: str) -> None:
        self.draining.add(replica_id)
        if self.drain_delay_seconds is None:
            await asyncio.Event().wait()
        elif self.drain_delay_seconds > 0:
            await asyncio.sleep(self.drain_delay_seconds)

    async def cancel_drain(self, replica_id: str) -> None:
        self.draining.discard(replica_id)

    async def is_ready(self, replica_id: str) -> bool:
        return self.running.get(replica_id, False)

    async def is_healthy(self, replica_id: str) -> bool:
        return replica_id in self.running and replica_id not in self.unhealthy

    def mark_ready(self, replica_id: str | None = None) -> None:
        """Promote one replica (or all of them) to ready."""
        targets = [replica_id] if replica_id is not None else list(self.running)
        for rid in targets:
            if rid in self.running:
                self.running[rid] = True
