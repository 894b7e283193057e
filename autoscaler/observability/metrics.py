"""Prometheus-style metrics for the control loop. Thread-safe, in-memory. No real Prometheus dependency."""

import threading
from typing import Any


def _series(name: str, labels: dict[str, str] | None) -> str:
    if not labels:
        return name
    rendered = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
    return f"{name}{{{rendered}}}"


class MetricsCollector:
    """
    In-memory registry of counters, gauges and duration histograms.
    Series are keyed as name{label=value,...}; export_metrics() returns a plain dict.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, float] = {}
        self._gauges: dict[str, float] = {}
        # series -> running {"count", "sum", "max"}
        self._histograms: dict[str, dict[str, float]] = {}

    def increment(self, name: str, value: float = 1.0, **labels: str) -> None:
        key = _series(name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + value

    def set_gauge(self, name: str, value: float, **labels: str) -> None:
        with self._lock:
            self._gauges[_series(name, labels)] = value

    def observe_duration(self, name: str, seconds: float, **labels: str) -> None:
        key = _series(name, labels)
        with self._lock:
            summary = self._histograms.get(key)
            if summary is None:
                self._histograms[key] = {"count": 1, "sum": seconds, "max": seconds}
            else:
                summary["count"] += 1
                summary["sum"] += seconds
                summary["max"] = max(summary["max"], seconds)

    def counter(self, name: str, **labels: str) -> float:
        with self._lock:
            return self._counters.get(_series(name, labels), 0)

    def gauge(self, name: str, **labels: str) -> float | None:
        with self._lock:
            return self._gauges.get(_series(name, labels))

    def export_metrics(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "gauges": dict(self._gauges),
                "histograms": {k: dict(v) for k, v in self._histograms.items()},
            }

    def reset(self) -> None:
        """Reset all metrics (for tests)."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()
