"""Bounded, append-only scaling-event log with best-effort mirroring to external sinks."""

import itertools
import logging
import threading
from collections import deque
from typing import Protocol

from autoscaler.domain.models.event import ScalingEvent

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    """Destination for scaling events (buffer that survives restarts, message broker, ...)."""

    async def append(self, event: ScalingEvent) -> None: ...


class ReplayableEventSink(EventSink, Protocol):
    async def load(self, limit: int) -> list[ScalingEvent]: ...


class ScalingEventLog:
    """
    In-memory ring buffer of the most recent `capacity` events. Sequence numbers
    keep increasing after old events fall off, so readers can resume with since().
    Sink failures are logged and never propagate into the control loop.
    """

    def __init__(self, capacity: int = 1000, sinks: list[EventSink] | None = None) -> None:
        self._events: deque[ScalingEvent] = deque(maxlen=capacity)
        self._capacity = capacity
        self._sinks = list(sinks or [])
        self._sequence = itertools.count(1)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._events)

    @property
    def sinks(self) -> tuple[EventSink, ...]:
        return tuple(self._sinks)

    async def append(self, event: ScalingEvent) -> ScalingEvent:
        with self._lock:
            stamped = ScalingEvent(
                timestamp=event.timestamp,
                from_count=event.from_count,
                to_count=event.to_count,
                reason=event.reason,
                kind=event.kind,
                detail=event.detail,
                sequence=next(self._sequence),
            )
            self._events.append(stamped)
        logger.info("scaling_event", extra={"scaling_event": stamped.to_dict()})
        for sink in self._sinks:
            try:
                await sink.append(stamped)
            except Exception as e:
                logger.warning(
                    "scaling_event_sink_failed",
                    extra={"sink": type(sink).__name__, "sequence": stamped.sequence, "error": str(e)},
                )
        return stamped

    async def restore(self, sink: ReplayableEventSink) -> int:
        """Reload events persisted by a previous process. Returns how many were restored."""
        try:
            events = await sink.load(self._capacity)
        except Exception as e:
            logger.warning("scaling_event_restore_failed", extra={"error": str(e)})
            return 0
        with self._lock:
            for event in sorted(events, key=lambda e: e.sequence):
                self._events.append(event)
            last = max((e.sequence for e in self._events), default=0)
            self._sequence = itertools.count(last + 1)
        return len(events)

    def snapshot(self) -> list[ScalingEvent]:
        with self._lock:
            return list(self._events)

    def since(self, sequence: int) -> list[ScalingEvent]:
        """Events with a sequence number greater than `sequence`, oldest first."""
        with self._lock:
            return [e for e in self._events if e.sequence > sequence]
