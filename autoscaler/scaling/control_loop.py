"""Autoscaling control loop: poll -> decide -> apply, one cycle at a time, with graceful shutdown."""

import asyncio
import contextlib
import logging
import time
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable

from autoscaler.core.context import cycle_id_ctx
from autoscaler.domain.exceptions import MetricsUnavailableError, PoolOperationError
from autoscaler.domain.models.decision import ScalingDecision
from autoscaler.domain.models.event import ScalingEvent, ScalingEventKind
from autoscaler.domain.models.policy import ScalingPolicy
from autoscaler.domain.models.pool_state import PoolState
from autoscaler.domain.models.sample import UtilizationSample
from autoscaler.metrics.source import MetricsSource
from autoscaler.observability.metrics import MetricsCollector
from autoscaler.pool.manager import ReplicaPoolManager
from autoscaler.scaling.checkpoint import DesiredCountCheckpoint, InMemoryCheckpoint
from autoscaler.scaling.decision_engine import decide
from autoscaler.scaling.event_log import ScalingEventLog

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    DECIDING = "deciding"
    APPLYING = "applying"
    COOLDOWN = "cooldown"


@dataclass(frozen=True)
class CycleOutcome:
    pool_state: PoolState
    decision: ScalingDecision
    applied: bool
    samples_used: int
    error: str | None = None


class AutoscalingControlLoop:
    """
    Ties a metrics source, the decision engine and a replica pool together.

    run_cycle() is the unit of work: it takes the current PoolState and returns
    a new one, so tests can drive cycles directly from any starting state.
    run() repeats it every poll interval until stop() sets the stop token;
    cycles never overlap. A failed apply leaves cooldown timestamps untouched
    so the next cycle retries.
    """

    def __init__(
        self,
        policy: ScalingPolicy,
        metrics_source: MetricsSource,
        pool: ReplicaPoolManager,
        *,
        event_log: ScalingEventLog | None = None,
        checkpoint: DesiredCountCheckpoint | None = None,
        metrics: MetricsCollector | None = None,
        poll_timeout_seconds: float = 5.0,
        apply_timeout_seconds: float = 120.0,
        shutdown_grace_seconds: float = 30.0,
        degraded_failure_threshold: int = 3,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self._policy = policy
        self._source = metrics_source
        self._pool = pool
        self._events = event_log if event_log is not None else ScalingEventLog()
        self._checkpoint = checkpoint if checkpoint is not None else InMemoryCheckpoint()
        self._metrics = metrics if metrics is not None else MetricsCollector()
        self._poll_timeout = poll_timeout_seconds
        self._apply_timeout = apply_timeout_seconds
        self._grace = shutdown_grace_seconds
        self._degraded_threshold = degraded_failure_threshold
        self._clock = clock
        self._wall_clock = wall_clock

        self._state = LoopState.IDLE
        self._pool_state = PoolState.initial(pool.get_total_count())
        self._last_decision: ScalingDecision | None = None
        self._consecutive_failures = 0
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def pool_state(self) -> PoolState:
        return self._pool_state

    @property
    def pool(self) -> ReplicaPoolManager:
        return self._pool

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def policy(self) -> ScalingPolicy:
        return self._policy

    @property
    def event_log(self) -> ScalingEventLog:
        return self._events

    @property
    def last_decision(self) -> ScalingDecision | None:
        return self._last_decision

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _transition(self, new_state: LoopState) -> None:
        logger.debug("loop_transition", extra={"from_state": self._state.value, "to_state": new_state.value})
        self._state = new_state

    # ------------------------------------------------------------------
    # Single cycle
    # ------------------------------------------------------------------

    async def run_cycle(self, state: PoolState) -> CycleOutcome:
        token = cycle_id_ctx.set(str(uuid.uuid4()))
        started = self._clock()
        try:
            await self._refresh_pool()
            state = state.with_current(self._pool.get_total_count())

            self._transition(LoopState.POLLING)
            samples = await self._poll()

            self._transition(LoopState.DECIDING)
            now = self._clock()
            decision = decide(samples, state, self._policy, now)
            self._last_decision = decision
            self._metrics.increment("scaling_decisions_total", reason=decision.reason.value)
            logger.info(
                "scaling_decision",
                extra={
                    "reason": decision.reason.value,
                    "detail": decision.detail,
                    "current": state.current_replica_count,
                    "target": decision.target_replica_count,
                    "raw_target": decision.raw_target,
                    "average_utilization": decision.average_utilization,
                    "samples": len(samples),
                },
            )

            if not decision.changes_count(state.current_replica_count):
                self._transition(LoopState.COOLDOWN if decision.suppressed_by_cooldown else LoopState.IDLE)
                return CycleOutcome(state, decision, applied=False, samples_used=len(samples))

            self._transition(LoopState.APPLYING)
            return await self._apply(state, decision, now, len(samples))
        finally:
            self._metrics.observe_duration("control_loop_cycle_seconds", self._clock() - started)
            self._metrics.set_gauge("replicas_total", self._pool.get_total_count())
            self._metrics.set_gauge("replicas_healthy", self._pool.get_healthy_count())
            cycle_id_ctx.reset(token)

    async def _refresh_pool(self) -> None:
        try:
            await self._pool.refresh_health()
        except PoolOperationError as e:
            self._metrics.increment("pool_health_check_errors_total")
            logger.warning("pool_health_refresh_failed", extra={"error": e.message})

    async def _poll(self) -> list[UtilizationSample]:
        """Gather this window's samples from healthy replicas. Unavailable or slow metrics mean zero samples."""
        try:
            samples = await asyncio.wait_for(
                self._source.poll(self._policy.poll_interval_seconds),
                timeout=self._poll_timeout,
            )
        except MetricsUnavailableError as e:
            self._metrics.increment("metrics_unavailable_total")
            logger.warning("metrics_unavailable", extra={"error": e.message})
            return []
        except asyncio.TimeoutError:
            self._metrics.increment("metrics_unavailable_total")
            logger.warning("metrics_poll_timeout", extra={"poll_timeout_seconds": self._poll_timeout})
            return []

        healthy = self._pool.healthy_replica_ids()
        used = [s for s in samples if s.replica_id in healthy]
        if len(used) != len(samples):
            logger.debug("samples_excluded", extra={"excluded": len(samples) - len(used)})
        return used

    async def _apply(self, state: PoolState, decision: ScalingDecision, now: float, samples_used: int) -> CycleOutcome:
        target = decision.target_replica_count
        await self._save_checkpoint(target)
        pending = replace(state, desired_replica_count=target)
        try:
            await asyncio.wait_for(self._pool.set_desired_count(target), timeout=self._apply_timeout)
        except (PoolOperationError, asyncio.TimeoutError) as e:
            error = e.message if isinstance(e, PoolOperationError) else f"apply timed out after {self._apply_timeout}s"
            await self._record_apply_failure(state, target, error)
            self._transition(LoopState.IDLE)
            return CycleOutcome(pending, decision, applied=False, samples_used=samples_used, error=error)

        self._consecutive_failures = 0
        new_state = state.after_scale(target, now)
        self._metrics.increment("scale_operations_total", reason=decision.reason.value)
        await self._events.append(
            ScalingEvent(
                timestamp=self._wall_clock(),
                from_count=state.current_replica_count,
                to_count=target,
                reason=decision.reason.value,
            )
        )
        self._transition(LoopState.IDLE)
        return CycleOutcome(new_state, decision, applied=True, samples_used=samples_used)

    async def _record_apply_failure(self, state: PoolState, target: int, error: str) -> None:
        self._consecutive_failures += 1
        self._metrics.increment("pool_operation_errors_total")
        logger.error(
            "scale_apply_failed",
            extra={
                "current": state.current_replica_count,
                "target": target,
                "consecutive_failures": self._consecutive_failures,
                "error": error,
            },
        )
        if self._consecutive_failures % self._degraded_threshold == 0:
            await self._events.append(
                ScalingEvent(
                    timestamp=self._wall_clock(),
                    from_count=state.current_replica_count,
                    to_count=target,
                    reason="pool_operation_error",
                    kind=ScalingEventKind.POOL_DEGRADED,
                    detail=f"{self._consecutive_failures} consecutive failures: {error}",
                )
            )

    async def _save_checkpoint(self, desired: int) -> None:
        try:
            await self._checkpoint.save(desired)
        except Exception as e:
            logger.warning("checkpoint_save_failed", extra={"desired_count": desired, "error": str(e)})

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def recover(self) -> int | None:
        """Re-issue the desired count a previous process checkpointed. Returns it, clamped, or None."""
        try:
            stored = await self._checkpoint.load()
        except Exception as e:
            logger.warning("checkpoint_load_failed", extra={"error": str(e)})
            return None
        if stored is None:
            return None
        desired = self._policy.clamp(stored)
        logger.info("recovering_desired_count", extra={"checkpoint": stored, "desired_count": desired})
        try:
            await asyncio.wait_for(self._pool.set_desired_count(desired), timeout=self._apply_timeout)
        except (PoolOperationError, asyncio.TimeoutError) as e:
            logger.error("recovery_apply_failed", extra={"desired_count": desired, "error": str(e)})
        self._pool_state = replace(
            PoolState.initial(self._pool.get_total_count()),
            desired_replica_count=desired,
        )
        return desired

    async def run(self) -> None:
        """Run cycles until the stop token is set. Cycles are strictly sequential."""
        logger.info("control_loop_started", extra={"policy": self._policy.model_dump()})
        while not self._stop.is_set():
            try:
                outcome = await self.run_cycle(self._pool_state)
                self._pool_state = outcome.pool_state
            except Exception:
                logger.exception("control_loop_cycle_crashed")
                self._transition(LoopState.IDLE)
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop.wait(), timeout=self._policy.poll_interval_seconds)

    async def start(self) -> None:
        if self.running:
            return
        await self.recover()
        self._stop = asyncio.Event()
        self._task = asyncio.create_task(self.run(), name="autoscaling-control-loop")

    async def stop(self, grace_seconds: float | None = None) -> None:
        """
        Signal shutdown and wait up to the grace period for the in-flight cycle;
        past that the cycle is abandoned. The last known desired count is
        logged and checkpointed either way.
        """
        if self._task is None:
            return
        grace = self._grace if grace_seconds is None else grace_seconds
        self._stop.set()
        abandoned = False
        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=grace)
        except asyncio.TimeoutError:
            abandoned = True
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        self._transition(LoopState.IDLE)

        desired = self._pool.desired_count
        if desired is None:
            desired = self._pool_state.desired_replica_count
        total = self._pool.get_total_count()
        logger.info(
            "control_loop_stopped",
            extra={"last_desired_count": desired, "total": total, "cycle_abandoned": abandoned},
        )
        await self._save_checkpoint(desired)
        await self._events.append(
            ScalingEvent(
                timestamp=self._wall_clock(),
                from_count=total,
                to_count=desired,
                reason="shutdown",
                kind=ScalingEventKind.SHUTDOWN,
                detail="cycle abandoned" if abandoned else "",
            )
        )
