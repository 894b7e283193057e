# scripts/simulate_scaling.py

import sys
from pathlib import Path

# Ensure project root is on the path when running this script directly
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncio
import logging

from autoscaler.config.logging import configure_logging
from autoscaler.domain.models.policy import ScalingPolicy
from autoscaler.domain.models.pool_state import PoolState
from autoscaler.metrics.source import uniform_samples
from autoscaler.pool.manager import ReplicaPoolManager
from autoscaler.pool.platform import InMemoryReplicaPlatform
from autoscaler.scaling.control_loop import AutoscalingControlLoop

# Utilization per cycle; replicas share a fixed demand once it drops
LOAD_PROFILE = [0.95, 0.95, 0.95, 0.95, 0.6, 0.3, 0.3, 0.3]


class ProfileSource:
    def __init__(self, platform: InMemoryReplicaPlatform):
        self.platform = platform
        self.cycle = 0

    async def poll(self, window_seconds: float):
        ratio = LOAD_PROFILE[min(self.cycle, len(LOAD_PROFILE) - 1)]
        self.cycle += 1
        return uniform_samples(self.platform.running, ratio)


async def simulate():
    policy = ScalingPolicy.build(
        min_replicas=2,
        max_replicas=5,
        target_utilization_ratio=0.7,
        scale_up_cooldown_seconds=60,
        scale_down_cooldown_seconds=300,
        poll_interval_seconds=15,
    )
    platform = InMemoryReplicaPlatform()
    pool = ReplicaPoolManager(platform)
    await pool.set_desired_count(policy.min_replicas)

    now = [0.0]
    loop = AutoscalingControlLoop(policy, ProfileSource(platform), pool, clock=lambda: now[0])
    state = PoolState.initial(pool.get_total_count())
    for _ in LOAD_PROFILE:
        outcome = await loop.run_cycle(state)
        state = outcome.pool_state
        print(
            f"t={now[0]:>5.0f}s reason={outcome.decision.reason.value:<15} "
            f"target={outcome.decision.target_replica_count} replicas={pool.get_total_count()}"
        )
        now[0] += 120

    for event in loop.event_log.snapshot():
        print(event.to_dict())


configure_logging(logging.WARNING)
asyncio.run(simulate())
