"""Observability layer: in-memory metrics for the control loop."""

from autoscaler.observability.metrics import MetricsCollector

__all__ = ["MetricsCollector"]
