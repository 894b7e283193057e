"""Scaling decision engine: deterministic target replica count from a utilization window."""

import math
from typing import Sequence

from autoscaler.domain.models.decision import (
    DETAIL_AT_TARGET,
    DETAIL_EMPTY_POOL,
    DETAIL_METRICS_UNAVAILABLE,
    DETAIL_SCALE_DOWN_COOLDOWN,
    DETAIL_SCALE_UP_COOLDOWN,
    ScalingDecision,
    ScalingReason,
)
from autoscaler.domain.models.policy import ScalingPolicy
from autoscaler.domain.models.pool_state import PoolState
from autoscaler.domain.models.sample import UtilizationSample

# Absorbs float noise so an exact ratio such as 2 * 0.7 / 0.7 does not ceil to 3
_CEIL_EPSILON = 1e-9


def average_utilization(samples: Sequence[UtilizationSample]) -> float | None:
    if not samples:
        return None
    return sum(s.cpu_utilization_ratio for s in samples) / len(samples)


def raw_target(current: int, average: float, target_ratio: float) -> int:
    return math.ceil(current * average / target_ratio - _CEIL_EPSILON)


def _in_cooldown(last: float | None, cooldown: float, now: float) -> bool:
    return last is not None and now - last < cooldown


def decide(
    samples: Sequence[UtilizationSample],
    pool: PoolState,
    policy: ScalingPolicy,
    now: float,
) -> ScalingDecision:
    """
    Pure function. Missing metrics never scale. Clamping to [min, max] is
    reported even when the clamped target equals the current count, and
    cooldowns suppress a change in their own direction only.
    """
    current = pool.current_replica_count
    average = average_utilization(samples)
    if average is None:
        return ScalingDecision(current, ScalingReason.NO_CHANGE, DETAIL_METRICS_UNAVAILABLE)
    if current == 0:
        # Averaging over zero replicas has no meaning; bootstrapping is external
        return ScalingDecision(current, ScalingReason.NO_CHANGE, DETAIL_EMPTY_POOL, average_utilization=average)

    raw = raw_target(current, average, policy.target_utilization_ratio)
    target = policy.clamp(raw)
    if target > raw:
        reason = ScalingReason.CLAMPED_TO_MIN
    elif target < raw:
        reason = ScalingReason.CLAMPED_TO_MAX
    elif target > current:
        reason = ScalingReason.SCALE_UP
    elif target < current:
        reason = ScalingReason.SCALE_DOWN
    else:
        reason = ScalingReason.NO_CHANGE

    stepped = policy.clamp(_limit_step(current, target, policy))
    if stepped != target:
        target = stepped
        reason = ScalingReason.SCALE_UP if target > current else ScalingReason.SCALE_DOWN

    # A pool outside [min, max] is corrected regardless of cooldown
    restoring_bounds = policy.clamp(current) != current
    suppressed = ""
    if not restoring_bounds:
        if target > current and _in_cooldown(pool.last_scale_up_time, policy.scale_up_cooldown_seconds, now):
            suppressed = DETAIL_SCALE_UP_COOLDOWN
        elif target < current and _in_cooldown(pool.last_scale_down_time, policy.scale_down_cooldown_seconds, now):
            suppressed = DETAIL_SCALE_DOWN_COOLDOWN
    if suppressed:
        return ScalingDecision(current, ScalingReason.NO_CHANGE, suppressed, raw_target=raw, average_utilization=average)

    detail = DETAIL_AT_TARGET if reason == ScalingReason.NO_CHANGE else ""
    return ScalingDecision(target, reason, detail, raw_target=raw, average_utilization=average)


def _limit_step(current: int, target: int, policy: ScalingPolicy) -> int:
    if target > current and policy.max_scale_up_step is not None:
        return min(target, current + policy.max_scale_up_step)
    if target < current and policy.max_scale_down_step is not None:
        return max(target, current - policy.max_scale_down_step)
    return target
