"""Wire the control loop from settings. ConfigurationError here is fatal: nothing starts."""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from autoscaler.config.settings import AutoscalerSettings
from autoscaler.infrastructure.cache.redis_client import RedisCheckpoint, RedisEventBuffer, create_redis_client
from autoscaler.infrastructure.messaging.rabbitmq_publisher import RabbitMQEventPublisher
from autoscaler.metrics.http_source import HttpMetricsSource
from autoscaler.observability.metrics import MetricsCollector
from autoscaler.pool.http_platform import HttpReplicaPlatform
from autoscaler.pool.manager import ReplicaPoolManager
from autoscaler.scaling.control_loop import AutoscalingControlLoop
from autoscaler.scaling.event_log import EventSink, ScalingEventLog

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    loop: AutoscalingControlLoop
    event_buffer: RedisEventBuffer | None = None
    closers: list[Callable[[], Awaitable[Any]]] = field(default_factory=list)

    async def close(self) -> None:
        for close in self.closers:
            try:
                await close()
            except Exception as e:
                logger.warning("runtime_close_failed", extra={"error": str(e)})


def build_runtime(settings: AutoscalerSettings, metrics: MetricsCollector | None = None) -> Runtime:
    policy = settings.scaling_policy()

    redis_client = create_redis_client(settings.redis_url)
    checkpoint = RedisCheckpoint(redis_client, settings.deployment_name)
    event_buffer = RedisEventBuffer(redis_client, settings.deployment_name, capacity=settings.event_log_capacity)
    sinks: list[EventSink] = [event_buffer]
    closers: list[Callable[[], Awaitable[Any]]] = [redis_client.aclose]
    if settings.enable_event_publishing:
        publisher = RabbitMQEventPublisher(settings.rabbitmq_url)
        sinks.append(publisher)
        closers.append(publisher.close)

    source = HttpMetricsSource(settings.metrics_url, settings.deployment_name, timeout_seconds=settings.poll_timeout_seconds)
    platform = HttpReplicaPlatform(
        settings.platform_url,
        settings.deployment_name,
        supports_drain=settings.platform_supports_drain,
    )
    closers.extend([source.aclose, platform.aclose])
    pool = ReplicaPoolManager(platform, drain_timeout_seconds=settings.drain_timeout_seconds)

    loop = AutoscalingControlLoop(
        policy,
        source,
        pool,
        event_log=ScalingEventLog(capacity=settings.event_log_capacity, sinks=sinks),
        checkpoint=checkpoint,
        metrics=metrics,
        poll_timeout_seconds=settings.poll_timeout_seconds,
        apply_timeout_seconds=settings.apply_timeout_seconds,
        shutdown_grace_seconds=settings.shutdown_grace_seconds,
        degraded_failure_threshold=settings.degraded_failure_threshold,
    )
    return Runtime(loop=loop, event_buffer=event_buffer, closers=closers)
