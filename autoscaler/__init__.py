"""Replica autoscaler: utilization-driven control loop for a stateless worker pool."""

__version__ = "0.1.0"
