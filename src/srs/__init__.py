"""Spaced-repetition scheduling and study statistics."""

from .errors import (
    CardNotFound,
    InvalidInput,
    InvalidQuality,
    NotFound,
    SetNotFound,
    StatsNotFound,
    StorageFailure,
    StudyError,
)
from .mastery import due_count, is_due, is_mastered, mastery_percentage
from .ports import ScheduledCard, StudyStorage
from .schedule import CardSchedule, calculate_next_schedule
from .scores import ReviewScore
from .stats import SessionSummary, StudyStats, is_stale, record_session_completion, recompute
from .streak import StreakState, record_study_event

__all__ = [
    "CardNotFound",
    "CardSchedule",
    "InvalidInput",
    "InvalidQuality",
    "NotFound",
    "ReviewScore",
    "ScheduledCard",
    "SessionSummary",
    "SetNotFound",
    "StatsNotFound",
    "StorageFailure",
    "StreakState",
    "StudyError",
    "StudyStats",
    "StudyStorage",
    "calculate_next_schedule",
    "due_count",
    "is_due",
    "is_mastered",
    "is_stale",
    "mastery_percentage",
    "record_session_completion",
    "record_study_event",
    "recompute",
]
