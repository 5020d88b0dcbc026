"""
Storage port for the study scheduler.

Services depend on this abstraction; the SQLAlchemy adapter in
``src.db.storage`` is the concrete implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from src.srs.schedule import CardSchedule
from src.srs.stats import SessionSummary, StudyStats


@dataclass(frozen=True, slots=True)
class ScheduledCard:
    """A flashcard's schedule together with the ids needed to route side effects."""

    card_id: int
    set_id: int
    owner_id: str
    schedule: CardSchedule


class StudyStorage(ABC):
    """
    Persistence collaborator used by ``StudyService``.

    Lookups of missing entities raise the matching ``NotFound`` subclass and
    any backend error surfaces as ``StorageFailure`` chained to its cause.
    """

    @abstractmethod
    async def get_card(self, card_id: int) -> ScheduledCard:
        """Return the card's schedule and ownership, or raise ``CardNotFound``."""

    @abstractmethod
    async def save_card_schedule(
        self,
        card_id: int,
        schedule: CardSchedule,
        quality: Optional[int] = None,
    ) -> None:
        """
        Persist a card's schedule.

        When ``quality`` is given a review log entry is written in the same
        transaction.
        """

    @abstractmethod
    async def list_card_schedules(self, set_id: int) -> Sequence[CardSchedule]:
        """Schedules of every card in one set, in no particular order."""

    @abstractmethod
    async def list_owned_card_schedules(self, user_id: str) -> Sequence[CardSchedule]:
        """Schedules of every card in every set owned by the user."""

    @abstractmethod
    async def get_study_stats(self, user_id: str) -> StudyStats:
        """Return the stored snapshot or raise ``StatsNotFound``."""

    @abstractmethod
    async def save_study_stats(self, user_id: str, stats: StudyStats) -> None:
        """Insert or update the user's statistics snapshot."""

    @abstractmethod
    async def touch_set_last_studied(self, set_id: int, timestamp: datetime) -> None:
        """Record when the set was last studied, or raise ``SetNotFound``."""

    @abstractmethod
    async def save_set_mastery(self, set_id: int, mastery: int) -> None:
        """Store the set's 0-100 mastery percentage, or raise ``SetNotFound``."""

    @abstractmethod
    async def save_study_session(
        self, user_id: str, summary: SessionSummary, completed_at: datetime
    ) -> None:
        """Append a completed study session to the user's history."""

    @abstractmethod
    async def record_review(
        self,
        card_id: int,
        schedule: CardSchedule,
        *,
        quality: int,
        studied_at: datetime,
        set_mastery: int,
        stats: StudyStats,
    ) -> None:
        """
        Persist everything one review changes in a single transaction.

        The card schedule, its review log entry, the set's last-studied time
        and mastery, and the owner's statistics are committed together or not
        at all.
        """

    @abstractmethod
    async def delete_set(self, set_id: int) -> str:
        """Delete a set with its cards and return the owner's id, or raise ``SetNotFound``."""


__all__ = ["ScheduledCard", "StudyStorage"]
