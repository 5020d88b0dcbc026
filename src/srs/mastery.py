"""Mastery and due-card classification over flashcard schedules."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from src.srs.errors import InvalidInput
from src.srs.schedule import CardSchedule, ensure_aware, round_half_up


DEFAULT_MASTERY_REPETITIONS = 3


def is_mastered(schedule: CardSchedule, threshold: int = DEFAULT_MASTERY_REPETITIONS) -> bool:
    """Return whether the card has enough consecutive successful recalls."""
    return schedule.repetitions >= threshold


def count_mastered(
    schedules: Iterable[CardSchedule], threshold: int = DEFAULT_MASTERY_REPETITIONS
) -> int:
    return sum(1 for schedule in schedules if is_mastered(schedule, threshold))


def mastery_percentage(
    schedules: Iterable[CardSchedule], threshold: int = DEFAULT_MASTERY_REPETITIONS
) -> int:
    """Percentage (0-100) of mastered cards; zero for an empty collection."""
    if threshold < 1:
        raise InvalidInput(f"Mastery threshold must be positive, got {threshold}.")
    items = list(schedules)
    if not items:
        return 0
    return round_half_up(100 * count_mastered(items, threshold) / len(items))


def is_due(schedule: CardSchedule, now: datetime) -> bool:
    """A card is due when it was never scheduled or its review time has arrived."""
    ensure_aware(now)
    if schedule.next_review is None:
        return True
    return schedule.next_review <= now


def due_count(schedules: Iterable[CardSchedule], now: datetime) -> int:
    ensure_aware(now)
    return sum(1 for schedule in schedules if is_due(schedule, now))


__all__ = [
    "DEFAULT_MASTERY_REPETITIONS",
    "count_mastered",
    "due_count",
    "is_due",
    "is_mastered",
    "mastery_percentage",
]
