from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from src.srs.errors import InvalidInput, InvalidQuality
from src.srs.schedule import (
    MIN_EASINESS_FACTOR,
    CardSchedule,
    calculate_next_schedule,
    round_half_up,
)
from src.srs.scores import ReviewScore
from tests.conftest import DAY0, day


def test_first_perfect_review_schedules_next_day() -> None:
    fresh = CardSchedule()

    schedule = calculate_next_schedule(fresh, 5, DAY0)

    assert schedule.repetitions == 1
    assert schedule.interval == 1
    assert schedule.ease_factor == pytest.approx(2.6)
    assert schedule.last_reviewed == DAY0
    assert schedule.next_review == day(1)


def test_second_perfect_review_waits_six_days() -> None:
    first = calculate_next_schedule(CardSchedule(), 5, DAY0)

    second = calculate_next_schedule(first, 5, day(1))

    assert second.repetitions == 2
    assert second.interval == 6
    assert second.ease_factor == pytest.approx(2.7)
    assert second.next_review == day(7)


def test_failed_review_resets_progress_but_keeps_ease() -> None:
    first = calculate_next_schedule(CardSchedule(), 5, DAY0)
    second = calculate_next_schedule(first, 5, day(1))

    failed = calculate_next_schedule(second, 1, day(7))

    assert failed.repetitions == 0
    assert failed.interval == 1
    assert failed.ease_factor == pytest.approx(second.ease_factor)
    assert failed.next_review == day(8)


@pytest.mark.parametrize("quality", [0, 1, 2])
def test_any_failed_review_resets_regardless_of_state(quality: int) -> None:
    seasoned = CardSchedule(ease_factor=2.2, interval=40, repetitions=7, last_reviewed=DAY0)

    schedule = calculate_next_schedule(seasoned, quality, day(40))

    assert schedule.repetitions == 0
    assert schedule.interval == 1
    assert schedule.ease_factor == 2.2


def test_third_success_multiplies_interval_by_new_ease() -> None:
    previous = CardSchedule(ease_factor=2.5, interval=6, repetitions=2)

    schedule = calculate_next_schedule(previous, 4, DAY0)

    # Quality 4 leaves the ease factor unchanged: 2.5 + 0.1 - 1 * (0.08 + 0.02).
    assert schedule.ease_factor == pytest.approx(2.5)
    assert schedule.interval == 15
    assert schedule.repetitions == 3


def test_perfect_reviews_never_shrink_the_interval() -> None:
    schedule = CardSchedule()
    intervals = []
    now = DAY0
    for _ in range(6):
        schedule = calculate_next_schedule(schedule, 5, now)
        intervals.append(schedule.interval)
        now = schedule.next_review

    assert intervals[:3] == [1, 6, 17]
    assert intervals == sorted(intervals)


def test_ease_factor_never_drops_below_floor() -> None:
    schedule = CardSchedule()
    now = DAY0
    for _ in range(20):
        schedule = calculate_next_schedule(schedule, 3, now)
        assert schedule.ease_factor >= MIN_EASINESS_FACTOR
        now = schedule.next_review

    assert schedule.ease_factor == pytest.approx(MIN_EASINESS_FACTOR)


def test_interval_cap_applies_when_configured() -> None:
    previous = CardSchedule(ease_factor=2.5, interval=300, repetitions=5)

    schedule = calculate_next_schedule(previous, 5, DAY0, max_interval_days=365)

    assert schedule.interval == 365
    assert schedule.next_review == DAY0 + timedelta(days=365)


def test_previous_schedule_is_left_untouched() -> None:
    previous = CardSchedule(ease_factor=2.5, interval=6, repetitions=2)
    snapshot = replace(previous)

    calculate_next_schedule(previous, 5, DAY0)

    assert previous == snapshot


@pytest.mark.parametrize("quality", [-1, 6, 10, 2.5, "4", True, None])
def test_out_of_range_quality_is_rejected(quality: object) -> None:
    with pytest.raises(InvalidQuality):
        calculate_next_schedule(CardSchedule(), quality, DAY0)  # type: ignore[arg-type]


def test_naive_timestamp_is_rejected() -> None:
    with pytest.raises(InvalidInput):
        calculate_next_schedule(CardSchedule(), 4, datetime(2026, 3, 2, 9, 30))


def test_schedule_rejects_ease_below_floor() -> None:
    with pytest.raises(InvalidInput):
        CardSchedule(ease_factor=1.0)


def test_review_score_reports_passing_ratings() -> None:
    assert ReviewScore(3).is_passing is True
    assert ReviewScore(2).is_passing is False
    assert ReviewScore.coerce(ReviewScore(4)).value == 4


def test_round_half_up_rounds_halves_away_from_zero() -> None:
    assert round_half_up(16.5) == 17
    assert round_half_up(2.5) == 3
    assert round_half_up(16.49) == 16


def test_schedule_keeps_other_timezones_consistent() -> None:
    athens = timezone(timedelta(hours=2))
    now = datetime(2026, 3, 2, 11, 30, tzinfo=athens)

    schedule = calculate_next_schedule(CardSchedule(), 5, now)

    assert schedule.next_review == DAY0 + timedelta(days=1)
