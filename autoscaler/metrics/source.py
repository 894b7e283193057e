"""Metrics source contract and a scripted in-process implementation."""

from collections import deque
from typing import Iterable, Protocol, Sequence

from autoscaler.domain.exceptions import MetricsUnavailableError
from autoscaler.domain.models.sample import UtilizationSample


class MetricsSource(Protocol):
    """Reports per-replica utilization. Raises MetricsUnavailableError when it has no data."""

    async def poll(self, window_seconds: float) -> Sequence[UtilizationSample]: ...


class StaticMetricsSource:
    """
    Replays scripted poll results in order. Each entry is either a list of
    samples or an exception to raise. Once exhausted, the last entry repeats;
    with nothing scripted, every poll reports metrics as unavailable.
    """

    def __init__(self, script: Iterable[Sequence[UtilizationSample] | Exception] = ()) -> None:
        self._script: deque[Sequence[UtilizationSample] | Exception] = deque(script)
        self._last: Sequence[UtilizationSample] | Exception | None = None
        self.poll_count = 0

    def push(self, entry: Sequence[UtilizationSample] | Exception) -> None:
        self._script.append(entry)

    async def poll(self, window_seconds: float) -> Sequence[UtilizationSample]:
        self.poll_count += 1
        if self._script:
            self._last = self._script.popleft()
        entry = self._last
        if entry is None:
            raise MetricsUnavailableError("No samples scripted")
        if isinstance(entry, Exception):
            raise entry
        return list(entry)


def uniform_samples(
    replica_ids: Iterable[str],
    ratio: float,
    timestamp_monotonic: int = 0,
) -> list[UtilizationSample]:
    """One sample per replica, all at the same utilization."""
    return [
        UtilizationSample(replica_id=rid, cpu_utilization_ratio=ratio, timestamp_monotonic=timestamp_monotonic)
        for rid in replica_ids
    ]
