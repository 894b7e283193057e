"""Pool and policy read endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from autoscaler.api.dependencies import get_control_loop
from autoscaler.scaling.control_loop import AutoscalingControlLoop

router = APIRouter()


@router.get("")
async def pool_status(loop: Annotated[AutoscalingControlLoop, Depends(get_control_loop)]):
    state = loop.pool_state
    decision = loop.last_decision
    return {
        "current_replica_count": state.current_replica_count,
        "desired_replica_count": state.desired_replica_count,
        "last_scale_up_time": state.last_scale_up_time,
        "last_scale_down_time": state.last_scale_down_time,
        "total_count": loop.pool.get_total_count(),
        "healthy_count": loop.pool.get_healthy_count(),
        "replicas": loop.pool.snapshot(),
        "last_decision": None
        if decision is None
        else {
            "target_replica_count": decision.target_replica_count,
            "reason": decision.reason.value,
            "detail": decision.detail,
            "raw_target": decision.raw_target,
            "average_utilization": decision.average_utilization,
        },
    }


@router.get("/policy")
async def scaling_policy(loop: Annotated[AutoscalingControlLoop, Depends(get_control_loop)]):
    return loop.policy.model_dump()
