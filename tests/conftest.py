"""Shared fixtures: fake clock, policies, in-memory platform, pool, load-following metrics source."""

import pytest

from autoscaler.domain.exceptions import MetricsUnavailableError
from autoscaler.domain.models.policy import ScalingPolicy
from autoscaler.metrics.source import uniform_samples
from autoscaler.pool.manager import ReplicaPoolManager
from autoscaler.pool.platform import InMemoryReplicaPlatform


class FakeClock:
    """Monotonic clock driven by the test."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class PlatformLoadSource:
    """Reports the same utilization for every replica currently running on the platform."""

    def __init__(self, platform: InMemoryReplicaPlatform, ratio: float):
        self.platform = platform
        self.ratio = ratio
        self.unavailable = False
        self.polls = 0

    async def poll(self, window_seconds: float):
        self.polls += 1
        if self.unavailable:
            raise MetricsUnavailableError("aggregator has no data")
        return uniform_samples(self.platform.running, self.ratio)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def policy():
    """Policy used throughout: min 2, max 5, target 0.7, up 60s, down 300s."""
    return ScalingPolicy.build(
        min_replicas=2,
        max_replicas=5,
        target_utilization_ratio=0.7,
        scale_up_cooldown_seconds=60,
        scale_down_cooldown_seconds=300,
        poll_interval_seconds=15,
    )


@pytest.fixture
def platform():
    return InMemoryReplicaPlatform()


@pytest.fixture
async def pool(platform, clock):
    """Pool with two ready replicas."""
    manager = ReplicaPoolManager(platform, drain_timeout_seconds=0.05, clock=clock)
    await manager.set_desired_count(2)
    await manager.refresh_health()
    return manager


@pytest.fixture
def load_source(platform):
    return PlatformLoadSource(platform, ratio=0.7)
