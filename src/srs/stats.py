"""Aggregation of per-card schedules into a learner's study statistics."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from src.srs.errors import InvalidInput
from src.srs.mastery import DEFAULT_MASTERY_REPETITIONS, count_mastered, due_count
from src.srs.schedule import CardSchedule, ensure_aware, round_half_up
from src.srs.streak import StreakState, record_study_event


@dataclass(frozen=True, slots=True)
class StudyStats:
    """Snapshot of a learner's progress across every card they own."""

    user_id: str
    total_cards: int = 0
    mastered_cards: int = 0
    due_cards: int = 0
    study_streak: int = 0
    total_study_sessions: int = 0
    last_study_date: Optional[date] = None
    computed_at: Optional[datetime] = None

    @classmethod
    def empty(cls, user_id: str) -> "StudyStats":
        """Zero-valued statistics for a learner who has not studied yet."""
        return cls(user_id=user_id)

    @property
    def mastery_percentage(self) -> int:
        if not self.total_cards:
            return 0
        return round_half_up(100 * self.mastered_cards / self.total_cards)


@dataclass(frozen=True, slots=True)
class SessionSummary:
    """What a learner covered during one completed study session."""

    cards_studied: int
    duration_seconds: int
    set_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.cards_studied < 0:
            raise InvalidInput("cards_studied must not be negative.")
        if self.duration_seconds < 0:
            raise InvalidInput("duration_seconds must not be negative.")


def recompute(
    user_id: str,
    schedules: Iterable[CardSchedule],
    now: datetime,
    existing: Optional[StudyStats] = None,
    *,
    mastery_threshold: int = DEFAULT_MASTERY_REPETITIONS,
) -> StudyStats:
    """Rebuild the card-derived counters while keeping session history.

    Streak, last study date and session count depend on session events rather
    than card state, so they are carried over from ``existing``.
    """
    ensure_aware(now)
    items = list(schedules)
    base = existing if existing is not None else StudyStats.empty(user_id)
    return replace(
        base,
        user_id=user_id,
        total_cards=len(items),
        mastered_cards=count_mastered(items, mastery_threshold),
        due_cards=due_count(items, now),
        computed_at=now,
    )


def record_session_completion(
    user_id: str,
    summary: SessionSummary,
    today: date | datetime,
    existing: Optional[StudyStats] = None,
) -> StudyStats:
    """Count one more completed session and advance the study streak."""
    if not isinstance(summary, SessionSummary):
        raise InvalidInput("A SessionSummary is required to complete a session.")
    base = existing if existing is not None else StudyStats.empty(user_id)
    streak = record_study_event(
        StreakState(last_study_date=base.last_study_date, streak=base.study_streak),
        today,
    )
    return replace(
        base,
        user_id=user_id,
        total_study_sessions=base.total_study_sessions + 1,
        study_streak=streak.streak,
        last_study_date=streak.last_study_date,
    )


def is_stale(stats: StudyStats, now: datetime, max_age: timedelta) -> bool:
    """Whether the time-relative counters need recomputing before display."""
    if stats.computed_at is None:
        return True
    return ensure_aware(now) - stats.computed_at > max_age


__all__ = [
    "SessionSummary",
    "StudyStats",
    "is_stale",
    "record_session_completion",
    "recompute",
]
