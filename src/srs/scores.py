"""Recall quality ratings submitted after a flashcard review."""

from __future__ import annotations

from dataclasses import dataclass

from src.srs.errors import InvalidQuality


MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3


@dataclass(frozen=True, slots=True)
class ReviewScore:
    """A learner's 0-5 self-rating of how well a card was recalled."""

    value: int

    def __post_init__(self) -> None:
        # bool is an int subclass, but True/False are never meaningful ratings.
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidQuality(self.value)
        if not MIN_QUALITY <= self.value <= MAX_QUALITY:
            raise InvalidQuality(self.value)

    @property
    def is_passing(self) -> bool:
        """Whether the rating counts as a successful recall."""
        return self.value >= PASSING_QUALITY

    @classmethod
    def coerce(cls, quality: "ReviewScore | int") -> "ReviewScore":
        """Return ``quality`` as a validated ``ReviewScore``."""
        if isinstance(quality, ReviewScore):
            return quality
        return cls(quality)


__all__ = ["ReviewScore", "MIN_QUALITY", "MAX_QUALITY", "PASSING_QUALITY"]
