from datetime import timedelta

import pytest

from conftest import NOW
from linguadeck.core.exceptions import InvalidGrade
from linguadeck.models.flashcard import SchedulingState
from linguadeck.services.srs_engine import PASS_THRESHOLD, QUALITY_LABELS, SRSEngine, round_half_up


def fresh_state() -> SchedulingState:
    return SchedulingState(ease_factor=2.5, interval=0, repetitions=0, next_review=NOW)


def test_perfect_recall_interval_growth():
    state = fresh_state()
    intervals = []
    for _ in range(3):
        state, _record = SRSEngine.grade(state, 5, NOW)
        intervals.append(state.interval)

    assert state.ease_factor == pytest.approx(2.8)
    assert intervals == [1, 6, 17]  # round(6 * 2.8)
    assert state.repetitions == 3


@pytest.mark.parametrize("quality", [0, 1, 2])
@pytest.mark.parametrize("repetitions,interval", [(0, 0), (1, 1), (4, 40)])
def test_failure_resets_repetitions_and_schedules_tomorrow(quality, repetitions, interval):
    state = SchedulingState(ease_factor=2.1, interval=interval, repetitions=repetitions, next_review=NOW)
    new_state, _ = SRSEngine.grade(state, quality, NOW)
    assert new_state.repetitions == 0
    assert new_state.interval == 1
    assert new_state.next_review == NOW + timedelta(days=1)


def test_failure_keeps_adjusted_ease_factor():
    new_state, _ = SRSEngine.grade(fresh_state(), 2, NOW)
    assert new_state.ease_factor == pytest.approx(2.18)


def test_ease_factor_floor_holds_under_repeated_failures():
    state = SchedulingState(ease_factor=1.5, interval=3, repetitions=2, next_review=NOW)
    for _ in range(5):
        state, record = SRSEngine.grade(state, 0, NOW)
        assert state.ease_factor >= 1.3
    assert state.ease_factor == 1.3
    assert record.ease_factor == 1.3


@pytest.mark.parametrize("quality", [3, 4, 5])
@pytest.mark.parametrize("ease_factor", [1.3, 1.31, 1.9, 2.5, 3.4])
def test_passing_grade_never_drops_below_floor(quality, ease_factor):
    state = SchedulingState(ease_factor=ease_factor, interval=6, repetitions=2, next_review=NOW)
    new_state, _ = SRSEngine.grade(state, quality, NOW)
    assert new_state.ease_factor >= 1.3
    assert new_state.interval >= 1


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(12.5) == 13
    assert round_half_up(12.49) == 12
    assert round_half_up(0.5) == 1


def test_interval_growth_rounds_half_up():
    # 2.4 + 0.1 -> 2.5, 5 * 2.5 == 12.5
    state = SchedulingState(ease_factor=2.4, interval=5, repetitions=2, next_review=NOW)
    new_state, _ = SRSEngine.grade(state, 5, NOW)
    assert new_state.ease_factor == pytest.approx(2.5)
    assert new_state.interval == 13


def test_next_review_is_grading_time_plus_interval():
    state = SchedulingState(ease_factor=2.5, interval=6, repetitions=2, next_review=NOW)
    new_state, record = SRSEngine.grade(state, 4, NOW)
    assert new_state.next_review == NOW + timedelta(days=new_state.interval)
    assert record.reviewed_at == NOW


def test_history_record_holds_post_update_values():
    state, record = SRSEngine.grade(fresh_state(), 3, NOW)
    assert record.quality == 3
    assert record.ease_factor == state.ease_factor
    assert record.interval == state.interval == 1


def test_grade_does_not_mutate_input_state():
    state = fresh_state()
    SRSEngine.grade(state, 5, NOW)
    assert state == fresh_state()


@pytest.mark.parametrize("quality", [-1, 6, 2.5, True, "4", None])
def test_out_of_range_quality_is_rejected(quality):
    with pytest.raises(InvalidGrade):
        SRSEngine.grade(fresh_state(), quality, NOW)


def test_quality_labels_are_fixed_and_ordered():
    assert [q.quality for q in QUALITY_LABELS] == [0, 1, 2, 3, 4, 5]
    assert [q.label for q in QUALITY_LABELS] == ["Blackout", "Wrong", "Hard", "Okay", "Good", "Easy"]
    assert [q.passed for q in QUALITY_LABELS] == [False, False, False, True, True, True]
    assert PASS_THRESHOLD == 3
