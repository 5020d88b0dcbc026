"""Exceptions raised by the study scheduling core."""

from __future__ import annotations


class StudyError(Exception):
    """Base class for errors raised while scheduling or aggregating reviews."""


class InvalidInput(StudyError):
    """Raised when a caller supplies a value the core cannot accept."""


class InvalidQuality(InvalidInput):
    """Raised when a review quality falls outside the 0-5 range."""

    def __init__(self, quality: object) -> None:
        super().__init__(f"Review quality must be an integer between 0 and 5, got {quality!r}.")
        self.quality = quality


class NotFound(StudyError):
    """Raised when a referenced entity does not exist."""


class CardNotFound(NotFound):
    def __init__(self, card_id: int) -> None:
        super().__init__(f"Flashcard {card_id} was not found.")
        self.card_id = card_id


class SetNotFound(NotFound):
    def __init__(self, set_id: int) -> None:
        super().__init__(f"Flashcard set {set_id} was not found.")
        self.set_id = set_id


class StatsNotFound(NotFound):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"No study statistics stored for user {user_id!r}.")
        self.user_id = user_id


class StorageFailure(StudyError):
    """Raised when the storage collaborator cannot complete a read or write."""


__all__ = [
    "StudyError",
    "InvalidInput",
    "InvalidQuality",
    "NotFound",
    "CardNotFound",
    "SetNotFound",
    "StatsNotFound",
    "StorageFailure",
]
