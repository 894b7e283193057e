"""Fixtures for API unit tests: in-memory control loop, AsyncClient with overridden dependencies."""

import pytest
from httpx import ASGITransport, AsyncClient

from autoscaler.main import app
from autoscaler.observability.metrics import MetricsCollector
from autoscaler.scaling.control_loop import AutoscalingControlLoop


@pytest.fixture
def control_loop(policy, pool, clock, load_source):
    """Loop over the two-replica in-memory pool. Not started: tests drive cycles directly."""
    return AutoscalingControlLoop(
        policy,
        load_source,
        pool,
        metrics=MetricsCollector(),
        clock=clock,
        wall_clock=clock,
    )


@pytest.fixture
def app_with_overrides(control_loop):
    """App with the control loop and metrics collector overridden for testing."""
    from autoscaler.api import dependencies

    app.dependency_overrides[dependencies.get_control_loop] = lambda: control_loop
    app.dependency_overrides[dependencies.get_metrics] = lambda: control_loop.metrics
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app_with_overrides):
    """Async HTTP client; lifespan does not run under ASGITransport."""
    transport = ASGITransport(app=app_with_overrides)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
