"""FastAPI dependency injection: control loop and metrics collector."""

from fastapi import HTTPException

from autoscaler.observability.metrics import MetricsCollector
from autoscaler.scaling.control_loop import AutoscalingControlLoop

_control_loop: AutoscalingControlLoop | None = None
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Return singleton metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def set_control_loop(loop: AutoscalingControlLoop | None) -> None:
    global _control_loop
    _control_loop = loop


def get_control_loop() -> AutoscalingControlLoop:
    """Return the running control loop; 503 until the app lifespan has built it."""
    if _control_loop is None:
        raise HTTPException(status_code=503, detail="Control loop not initialised")
    return _control_loop
