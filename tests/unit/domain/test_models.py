"""Samples, pool state transitions and scaling events."""

import pytest

from autoscaler.domain.models.decision import DETAIL_SCALE_UP_COOLDOWN, ScalingDecision, ScalingReason
from autoscaler.domain.models.event import ScalingEvent, ScalingEventKind
from autoscaler.domain.models.pool_state import PoolState
from autoscaler.domain.models.sample import UtilizationSample


@pytest.mark.parametrize("ratio", [-0.1, 1.01])
def test_sample_ratio_out_of_range(ratio):
    with pytest.raises(ValueError):
        UtilizationSample("r1", ratio, 0)


def test_sample_ratio_bounds_inclusive():
    assert UtilizationSample("r1", 0.0, 0).cpu_utilization_ratio == 0.0
    assert UtilizationSample("r1", 1.0, 0).cpu_utilization_ratio == 1.0


def test_after_scale_up_stamps_only_up_cooldown():
    state = PoolState(current_replica_count=2, desired_replica_count=2, last_scale_down_time=5.0)
    new = state.after_scale(3, 100.0)
    assert new.current_replica_count == 3
    assert new.desired_replica_count == 3
    assert new.last_scale_up_time == 100.0
    assert new.last_scale_down_time == 5.0
    assert state.current_replica_count == 2


def test_after_scale_down_stamps_only_down_cooldown():
    new = PoolState.initial(4).after_scale(3, 50.0)
    assert new.last_scale_down_time == 50.0
    assert new.last_scale_up_time is None


def test_negative_current_count_rejected():
    with pytest.raises(ValueError):
        PoolState.initial(-1)


def test_decision_changes_count():
    suppressed = ScalingDecision(2, ScalingReason.NO_CHANGE, DETAIL_SCALE_UP_COOLDOWN, raw_target=3)
    assert suppressed.suppressed_by_cooldown
    assert not suppressed.changes_count(2)
    assert not ScalingDecision(5, ScalingReason.CLAMPED_TO_MAX).changes_count(5)
    assert ScalingDecision(5, ScalingReason.CLAMPED_TO_MAX).changes_count(4)


def test_event_dict_form():
    event = ScalingEvent(12.5, 2, 3, "scale_up", sequence=7)
    data = event.to_dict()
    assert data["kind"] == "scaled"
    assert data["sequence"] == 7
    assert ScalingEvent.from_dict(data) == event
    legacy = ScalingEvent.from_dict({"timestamp": 1, "from_count": 1, "to_count": 1, "reason": "shutdown"})
    assert legacy.kind == ScalingEventKind.SCALED
    assert legacy.sequence == 0
