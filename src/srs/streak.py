"""Consecutive-day study streak tracking."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from src.srs.errors import InvalidInput


@dataclass(frozen=True, slots=True)
class StreakState:
    """The last calendar day with study activity and the streak ending there."""

    last_study_date: Optional[date] = None
    streak: int = 0


def to_calendar_day(value: date | datetime) -> date:
    """Strip the time of day from ``value``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise InvalidInput(f"Expected a date or datetime, got {type(value).__name__}.")


def record_study_event(state: StreakState, today: date | datetime) -> StreakState:
    """Return the streak state after studying on ``today``.

    Studying again on the same day leaves the state untouched. Studying on the
    day after the last session extends the streak; any other gap, including a
    last study date that lies in the future, starts a new streak of one day.
    """
    current_day = to_calendar_day(today)

    if state.last_study_date is None:
        return StreakState(last_study_date=current_day, streak=1)

    last_day = to_calendar_day(state.last_study_date)
    if last_day == current_day:
        return state
    if last_day == current_day - timedelta(days=1):
        return StreakState(last_study_date=current_day, streak=state.streak + 1)
    return StreakState(last_study_date=current_day, streak=1)


__all__ = ["StreakState", "record_study_event", "to_calendar_day"]
