from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.srs.errors import InvalidInput
from src.srs.mastery import due_count, is_due, is_mastered, mastery_percentage
from src.srs.schedule import CardSchedule
from tests.conftest import DAY0, day


def _cards(*repetitions: int) -> list[CardSchedule]:
    return [CardSchedule(repetitions=count) for count in repetitions]


def test_card_is_mastered_after_three_successful_recalls() -> None:
    assert is_mastered(CardSchedule(repetitions=3)) is True
    assert is_mastered(CardSchedule(repetitions=2)) is False
    assert is_mastered(CardSchedule(repetitions=2), threshold=2) is True


def test_mastery_percentage_of_empty_collection_is_zero() -> None:
    assert mastery_percentage([]) == 0


@pytest.mark.parametrize(
    ("repetitions", "expected"),
    [
        ((0, 0, 3), 33),
        ((0, 3, 4), 67),
        ((5, 3, 4), 100),
        ((0, 1, 2, 0), 0),
        ((3, 0, 0, 0, 0, 0, 0, 0), 13),
    ],
)
def test_mastery_percentage_rounds_to_whole_percent(
    repetitions: tuple[int, ...], expected: int
) -> None:
    assert mastery_percentage(_cards(*repetitions)) == expected


def test_mastery_percentage_does_not_drop_when_repetitions_grow() -> None:
    before = _cards(0, 1, 2, 3)
    after = _cards(1, 2, 3, 3)

    assert mastery_percentage(after) >= mastery_percentage(before)


def test_mastery_percentage_rejects_non_positive_threshold() -> None:
    with pytest.raises(InvalidInput):
        mastery_percentage(_cards(1), threshold=0)


def test_never_reviewed_card_is_always_due() -> None:
    fresh = CardSchedule()

    assert is_due(fresh, DAY0) is True
    assert is_due(fresh, DAY0 - timedelta(days=3650)) is True


def test_card_becomes_due_when_review_time_arrives() -> None:
    schedule = CardSchedule(repetitions=1, interval=1, last_reviewed=DAY0, next_review=day(1))

    assert is_due(schedule, DAY0) is False
    assert is_due(schedule, day(1)) is True
    assert is_due(schedule, day(2)) is True


def test_due_count_counts_new_and_overdue_cards() -> None:
    schedules = [
        CardSchedule(),
        CardSchedule(repetitions=1, next_review=day(-1)),
        CardSchedule(repetitions=2, next_review=day(6)),
    ]

    assert due_count(schedules, DAY0) == 2
    assert due_count(schedules, day(6)) == 3
    assert due_count([], DAY0) == 0


def test_due_check_requires_aware_timestamp() -> None:
    schedule = CardSchedule(repetitions=1, next_review=day(1))

    with pytest.raises(InvalidInput):
        is_due(schedule, datetime(2026, 3, 2))


def test_never_reviewed_card_still_requires_aware_timestamp() -> None:
    with pytest.raises(InvalidInput):
        is_due(CardSchedule(), datetime(2026, 3, 2))
