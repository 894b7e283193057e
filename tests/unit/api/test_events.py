"""GET /events and /metrics."""

import pytest
from httpx import AsyncClient

from autoscaler.domain.models.pool_state import PoolState


@pytest.mark.asyncio
async def test_events_empty(async_client: AsyncClient):
    r = await async_client.get("/events")
    assert r.status_code == 200
    assert r.json() == {"events": [], "last_sequence": 0}


@pytest.mark.asyncio
async def test_events_since_sequence(async_client: AsyncClient, control_loop, load_source, clock):
    load_source.ratio = 0.95
    state = PoolState.initial(2)
    for _ in range(2):
        state = (await control_loop.run_cycle(state)).pool_state
        clock.advance(61)

    data = (await async_client.get("/events")).json()
    assert [(e["from_count"], e["to_count"]) for e in data["events"]] == [(2, 3), (3, 4)]
    assert data["last_sequence"] == 2

    tail = (await async_client.get("/events", params={"since": 1})).json()
    assert [e["sequence"] for e in tail["events"]] == [2]


@pytest.mark.asyncio
async def test_events_rejects_negative_since(async_client: AsyncClient):
    r = await async_client.get("/events", params={"since": -1})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_metrics_exported(async_client: AsyncClient, control_loop):
    await control_loop.run_cycle(control_loop.pool_state)
    data = (await async_client.get("/metrics")).json()
    assert data["counters"]["scaling_decisions_total{reason=no_change}"] == 1
    assert data["gauges"]["replicas_total"] == 2
    assert data["histograms"]["control_loop_cycle_seconds"]["count"] == 1
