"""GET /health: loop liveness, degraded status, correlation ID."""

import pytest
from httpx import ASGITransport, AsyncClient

from autoscaler.main import app


@pytest.mark.asyncio
async def test_health_ok(async_client: AsyncClient):
    r = await async_client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["loop_state"] == "idle"
    assert data["running"] is False
    assert data["consecutive_pool_failures"] == 0
    assert len(data["correlation_id"]) > 0


@pytest.mark.asyncio
async def test_health_preserves_correlation_id(async_client: AsyncClient):
    r = await async_client.get("/health", headers={"X-Correlation-ID": "cid-123"})
    assert r.headers["X-Correlation-ID"] == "cid-123"
    assert r.json()["correlation_id"] == "cid-123"


@pytest.mark.asyncio
async def test_health_degraded_after_repeated_pool_failures(async_client: AsyncClient, control_loop, platform, load_source):
    load_source.ratio = 0.9
    platform.fail_creates = 3
    state = control_loop.pool_state
    for _ in range(3):
        state = (await control_loop.run_cycle(state)).pool_state

    r = await async_client.get("/health")
    assert r.json()["status"] == "degraded"
    assert r.json()["consecutive_pool_failures"] == 3


@pytest.mark.asyncio
async def test_health_503_without_control_loop():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.get("/health")
    assert r.status_code == 503
