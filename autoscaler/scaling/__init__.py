"""Scaling layer: decision engine, control loop, event log and checkpoint. No FastAPI."""

from autoscaler.scaling.checkpoint import DesiredCountCheckpoint, InMemoryCheckpoint
from autoscaler.scaling.control_loop import AutoscalingControlLoop, CycleOutcome, LoopState
from autoscaler.scaling.decision_engine import average_utilization, decide, raw_target
from autoscaler.scaling.event_log import EventSink, ScalingEventLog

__all__ = [
    "AutoscalingControlLoop",
    "CycleOutcome",
    "DesiredCountCheckpoint",
    "EventSink",
    "InMemoryCheckpoint",
    "LoopState",
    "ScalingEventLog",
    "average_utilization",
    "decide",
    "raw_target",
]
