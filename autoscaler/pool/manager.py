"""Replica pool manager: reconciles the running set of replicas toward a desired count."""

import asyncio
import itertools
import logging
import time
from typing import Any, Callable

from autoscaler.domain.exceptions import DrainTimeoutError, PoolOperationError
from autoscaler.pool.platform import ReplicaPlatform
from autoscaler.pool.replica import ReplicaHandle, ReplicaStatus

logger = logging.getLogger(__name__)


class ReplicaPoolManager:
    """
    Owns every ReplicaHandle. set_desired_count() issues individual
    create/terminate calls until the pool matches; calls are serialised by an
    asyncio.Lock, so re-issuing the same target is a no-op.

    Scale-down order: without platform drain support, newest replicas go first.
    With drain support, not-yet-ready replicas go first, then newest, and each
    victim must finish draining within drain_timeout_seconds or it is kept.
    """

    def __init__(
        self,
        platform: ReplicaPlatform,
        drain_timeout_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._platform = platform
        self._drain_timeout = drain_timeout_seconds
        self._clock = clock
        self._replicas: dict[str, ReplicaHandle] = {}
        self._status: dict[str, ReplicaStatus] = {}
        self._ordinals = itertools.count()
        self._desired: int | None = None
        self._lock = asyncio.Lock()

    @property
    def desired_count(self) -> int | None:
        return self._desired

    @property
    def platform(self) -> ReplicaPlatform:
        return self._platform

    def get_total_count(self) -> int:
        return len(self._replicas)

    def get_healthy_count(self) -> int:
        """Replicas passing readiness. Starting and draining replicas are excluded."""
        return sum(1 for s in self._status.values() if s == ReplicaStatus.READY)

    def healthy_replica_ids(self) -> set[str]:
        return {rid for rid, s in self._status.items() if s == ReplicaStatus.READY}

    def snapshot(self) -> list[dict[str, Any]]:
        return [
            {
                "replica_id": h.replica_id,
                "status": self._status[h.replica_id].value,
                "created_at": h.created_at,
            }
            for h in self._replicas.values()
        ]

    async def adopt_existing(self) -> int:
        """Track replicas already running on the platform (e.g. after a restart). Returns the total."""
        async with self._lock:
            try:
                existing = await self._platform.list_replicas()
            except Exception as e:
                raise PoolOperationError(f"Listing replicas failed: {e}") from e
            for replica_id in existing:
                if replica_id not in self._replicas:
                    self._track(replica_id)
            if self._desired is None:
                self._desired = len(self._replicas)
            logger.info("replicas_adopted", extra={"total": len(self._replicas)})
            return len(self._replicas)

    async def set_desired_count(self, n: int) -> int:
        """
        Reconcile the pool to n replicas. Returns the resulting total.
        Raises PoolOperationError when the platform rejects a call; replicas
        already created or removed stay that way, and a retry resumes from there.
        """
        if n < 0:
            raise PoolOperationError(f"Desired count must be >= 0, got {n}")
        async with self._lock:
            self._desired = n
            await self._reconcile()
            return len(self._replicas)

    async def refresh_health(self) -> None:
        """
        Promote starting replicas that pass readiness, evict ready ones that fail
        health, then backfill. A replica whose check errors keeps its status and
        the rest of the pool is still refreshed; the failures are raised together
        as one PoolOperationError at the end.
        """
        async with self._lock:
            evicted = []
            failed: dict[str, str] = {}
            for replica_id, status in list(self._status.items()):
                try:
                    if status == ReplicaStatus.STARTING:
                        if await self._platform.is_ready(replica_id):
                            self._status[replica_id] = ReplicaStatus.READY
                            logger.info("replica_ready", extra={"replica_id": replica_id})
                    elif status == ReplicaStatus.READY:
                        if not await self._platform.is_healthy(replica_id):
                            evicted.append(replica_id)
                except Exception as e:
                    failed[replica_id] = str(e)
                    logger.warning("replica_health_check_failed", extra={"replica_id": replica_id, "error": str(e)})
            for replica_id in evicted:
                logger.warning("replica_unhealthy", extra={"replica_id": replica_id})
                await self._terminate(replica_id)
            if evicted and self._desired is not None:
                await self._reconcile()
            if failed:
                summary = ", ".join(f"{rid}: {error}" for rid, error in failed.items())
                raise PoolOperationError(f"Health check failed for {len(failed)} replica(s): {summary}")

    async def _reconcile(self) -> None:
        current = len(self._replicas)
        if self._desired > current:
            for _ in range(self._desired - current):
                await self._create()
        elif self._desired < current:
            for handle in self._select_victims(current - self._desired):
                if self._platform.supports_drain:
                    await self._drain(handle)
                await self._terminate(handle.replica_id)

    def _track(self, replica_id: str) -> ReplicaHandle:
        handle = ReplicaHandle(replica_id=replica_id, created_at=self._clock(), ordinal=next(self._ordinals))
        self._replicas[replica_id] = handle
        self._status[replica_id] = ReplicaStatus.STARTING
        return handle

    async def _create(self) -> None:
        try:
            replica_id = await self._platform.create_replica()
        except Exception as e:
            logger.error("replica_create_failed", extra={"error": str(e)})
            raise PoolOperationError(f"Replica creation rejected: {e}") from e
        self._track(replica_id)
        logger.info("replica_created", extra={"replica_id": replica_id, "total": len(self._replicas)})

    async def _terminate(self, replica_id: str) -> None:
        try:
            await self._platform.terminate_replica(replica_id)
        except Exception as e:
            logger.error("replica_terminate_failed", extra={"replica_id": replica_id, "error": str(e)})
            raise PoolOperationError(f"Termination of {replica_id} rejected: {e}") from e
        self._replicas.pop(replica_id, None)
        self._status.pop(replica_id, None)
        logger.info("replica_terminated", extra={"replica_id": replica_id, "total": len(self._replicas)})

    def _select_victims(self, count: int) -> list[ReplicaHandle]:
        handles = list(self._replicas.values())
        if self._platform.supports_drain:
            # Not-ready replicas carry no in-flight work, so they go first
            handles.sort(key=lambda h: (self._status[h.replica_id] == ReplicaStatus.READY, -h.ordinal))
        else:
            handles.sort(key=lambda h: -h.ordinal)
        return handles[:count]

    async def _drain(self, handle: ReplicaHandle) -> None:
        replica_id = handle.replica_id
        previous = self._status[replica_id]
        self._status[replica_id] = ReplicaStatus.DRAINING
        try:
            await asyncio.wait_for(self._platform.drain_replica(replica_id), timeout=self._drain_timeout)
        except asyncio.TimeoutError:
            self._status[replica_id] = previous
            await self._cancel_drain(replica_id)
            logger.error(
                "replica_drain_timeout",
                extra={"replica_id": replica_id, "drain_timeout_seconds": self._drain_timeout},
            )
            raise DrainTimeoutError(
                f"Replica {replica_id} did not drain within {self._drain_timeout}s; not terminated",
                replica_id=replica_id,
            ) from None
        except asyncio.CancelledError:
            # Outer apply timeout or shutdown: hand the replica back to service before unwinding
            self._status[replica_id] = previous
            await self._cancel_drain(replica_id)
            logger.warning("replica_drain_cancelled", extra={"replica_id": replica_id})
            raise
        except Exception as e:
            self._status[replica_id] = previous
            raise PoolOperationError(f"Drain of {replica_id} failed: {e}") from e

    async def _cancel_drain(self, replica_id: str) -> None:
        try:
            await self._platform.cancel_drain(replica_id)
        except Exception as e:
            # The replica is still tracked; the next scale-down retries the drain
            logger.warning("replica_cancel_drain_failed", extra={"replica_id": replica_id, "error": str(e)})
