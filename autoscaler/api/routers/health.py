# autoscaler/api/routers/health.py

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from autoscaler.api.dependencies import get_control_loop
from autoscaler.config.settings import get_settings
from autoscaler.scaling.control_loop import AutoscalingControlLoop

router = APIRouter()


@router.get("/health")
async def health(request: Request, loop: Annotated[AutoscalingControlLoop, Depends(get_control_loop)]):
    """Loop liveness. Degraded once pool operations have failed repeatedly."""
    settings = get_settings()
    degraded = loop.consecutive_failures >= settings.degraded_failure_threshold
    return {
        "status": "degraded" if degraded else "ok",
        "loop_state": loop.state.value,
        "running": loop.running,
        "consecutive_pool_failures": loop.consecutive_failures,
        "correlation_id": request.state.correlation_id,
        "environment": settings.environment,
        "version": settings.version,
    }
