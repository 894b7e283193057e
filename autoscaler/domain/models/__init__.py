"""Domain models. Plain values shared by the engine, the loop and the API."""

from autoscaler.domain.models.decision import ScalingDecision, ScalingReason
from autoscaler.domain.models.event import ScalingEvent, ScalingEventKind
from autoscaler.domain.models.policy import ScalingPolicy
from autoscaler.domain.models.pool_state import PoolState
from autoscaler.domain.models.sample import UtilizationSample

__all__ = [
    "PoolState",
    "ScalingDecision",
    "ScalingEvent",
    "ScalingEventKind",
    "ScalingPolicy",
    "ScalingReason",
    "UtilizationSample",
]
