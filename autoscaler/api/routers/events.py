"""Scaling event stream for dashboards and log collectors."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from autoscaler.api.dependencies import get_control_loop, get_metrics
from autoscaler.observability.metrics import MetricsCollector
from autoscaler.scaling.control_loop import AutoscalingControlLoop

router = APIRouter()


@router.get("/events")
async def scaling_events(
    loop: Annotated[AutoscalingControlLoop, Depends(get_control_loop)],
    since: Annotated[int, Query(ge=0, description="Return events with a larger sequence number")] = 0,
):
    events = loop.event_log.since(since)
    return {
        "events": [e.to_dict() for e in events],
        "last_sequence": events[-1].sequence if events else since,
    }


@router.get("/metrics")
async def metrics(collector: Annotated[MetricsCollector, Depends(get_metrics)]):
    return collector.export_metrics()
