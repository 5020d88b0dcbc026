"""Spaced-repetition scheduling for flashcard reviews."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from src.srs.errors import InvalidInput
from src.srs.scores import ReviewScore


DEFAULT_EASINESS_FACTOR = 2.5
MIN_EASINESS_FACTOR = 1.3
INITIAL_INTERVAL = 0
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6


@dataclass(frozen=True, slots=True)
class CardSchedule:
    """Scheduling state of a single flashcard."""

    ease_factor: float = DEFAULT_EASINESS_FACTOR
    interval: int = INITIAL_INTERVAL
    repetitions: int = 0
    last_reviewed: Optional[datetime] = None
    next_review: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.ease_factor < MIN_EASINESS_FACTOR:
            raise InvalidInput(
                f"Ease factor must be at least {MIN_EASINESS_FACTOR}, got {self.ease_factor}."
            )
        if self.interval < 0:
            raise InvalidInput(f"Interval must be non-negative, got {self.interval}.")
        if self.repetitions < 0:
            raise InvalidInput(f"Repetitions must be non-negative, got {self.repetitions}.")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, sending halves away from zero."""
    return int(math.floor(value + 0.5))


def ensure_aware(moment: datetime, name: str = "now") -> datetime:
    """Reject naive datetimes so schedule arithmetic never mixes clocks."""
    if not isinstance(moment, datetime):
        raise InvalidInput(f"{name} must be a datetime, got {type(moment).__name__}.")
    if moment.tzinfo is None or moment.utcoffset() is None:
        raise InvalidInput(f"{name} must be timezone-aware.")
    return moment


def calculate_next_schedule(
    previous: CardSchedule,
    score: ReviewScore | int,
    now: datetime,
    *,
    max_interval_days: Optional[int] = None,
) -> CardSchedule:
    """Return the schedule that follows ``previous`` after a review rated ``score``.

    Failed recalls (quality below 3) reset the repetition count and bring the
    card back the next day without touching the ease factor. Successful
    recalls adjust the ease factor with the SM-2 formula and grow the
    interval: one day, then six days, then the previous interval multiplied
    by the new ease factor.
    """
    quality = ReviewScore.coerce(score)
    ensure_aware(now)

    easiness_factor = previous.ease_factor
    repetitions = previous.repetitions

    if not quality.is_passing:
        repetitions = 0
        interval = FIRST_INTERVAL_DAYS
    else:
        repetitions += 1
        penalty = 5 - quality.value
        easiness_factor = max(
            MIN_EASINESS_FACTOR,
            easiness_factor + 0.1 - penalty * (0.08 + penalty * 0.02),
        )
        if repetitions == 1:
            interval = FIRST_INTERVAL_DAYS
        elif repetitions == 2:
            interval = SECOND_INTERVAL_DAYS
        else:
            interval = round_half_up(previous.interval * easiness_factor)

    if max_interval_days is not None and interval > max_interval_days:
        interval = max_interval_days

    return replace(
        previous,
        ease_factor=easiness_factor,
        interval=interval,
        repetitions=repetitions,
        last_reviewed=now,
        next_review=now + timedelta(days=interval),
    )


__all__ = [
    "CardSchedule",
    "DEFAULT_EASINESS_FACTOR",
    "MIN_EASINESS_FACTOR",
    "INITIAL_INTERVAL",
    "calculate_next_schedule",
    "ensure_aware",
    "round_half_up",
]
