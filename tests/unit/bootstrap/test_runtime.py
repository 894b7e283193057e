"""Runtime wiring from settings."""

import pytest

from autoscaler.bootstrap import build_runtime
from autoscaler.config.settings import AutoscalerSettings
from autoscaler.domain.exceptions import ConfigurationError
from autoscaler.infrastructure.messaging.rabbitmq_publisher import RabbitMQEventPublisher
from autoscaler.observability.metrics import MetricsCollector


@pytest.mark.asyncio
async def test_runtime_wires_policy_and_shared_metrics():
    settings = AutoscalerSettings(_env_file=None, min_replicas=3, max_replicas=6, deployment_name="checkout")
    metrics = MetricsCollector()
    runtime = build_runtime(settings, metrics=metrics)
    try:
        assert runtime.loop.policy.min_replicas == 3
        assert runtime.loop.metrics is metrics
        assert runtime.event_buffer is not None
        assert not runtime.loop.running
    finally:
        await runtime.close()


@pytest.mark.asyncio
async def test_event_publishing_adds_broker_sink():
    settings = AutoscalerSettings(_env_file=None, enable_event_publishing=True)
    runtime = build_runtime(settings)
    try:
        assert any(isinstance(s, RabbitMQEventPublisher) for s in runtime.loop.event_log.sinks)
    finally:
        await runtime.close()


def test_invalid_policy_stops_startup():
    settings = AutoscalerSettings(_env_file=None, target_utilization_ratio=1.5)
    with pytest.raises(ConfigurationError):
        build_runtime(settings)


@pytest.mark.asyncio
@pytest.mark.parametrize("supports_drain", [True, False])
async def test_platform_drain_support_follows_settings(supports_drain):
    settings = AutoscalerSettings(_env_file=None, platform_supports_drain=supports_drain)
    runtime = build_runtime(settings)
    try:
        assert runtime.loop.pool.platform.supports_drain is supports_drain
    finally:
        await runtime.close()
