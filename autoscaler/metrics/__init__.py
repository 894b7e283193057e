"""Metrics sources: where per-replica utilization comes from."""

from autoscaler.metrics.http_source import HttpMetricsSource
from autoscaler.metrics.source import MetricsSource, StaticMetricsSource, uniform_samples

__all__ = ["HttpMetricsSource", "MetricsSource", "StaticMetricsSource", "uniform_samples"]
