"""Review and study-session workflow on top of the scheduling core."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional, Sequence

from src.srs.errors import StatsNotFound
from src.srs.mastery import DEFAULT_MASTERY_REPETITIONS, mastery_percentage
from src.srs.ports import StudyStorage
from src.srs.schedule import CardSchedule, calculate_next_schedule, ensure_aware
from src.srs.scores import ReviewScore
from src.srs.stats import (
    SessionSummary,
    StudyStats,
    is_stale,
    record_session_completion,
    recompute,
)


LOGGER = logging.getLogger(__name__)

DEFAULT_STATS_MAX_AGE = timedelta(minutes=5)


class StudyService:
    """Applies review results and keeps the learner's statistics in step.

    Every operation takes the user or card it acts on explicitly. A review
    is written in one storage transaction, so a failure leaves the card, its
    set and the statistics as they were.
    """

    def __init__(
        self,
        storage: StudyStorage,
        *,
        mastery_threshold: int = DEFAULT_MASTERY_REPETITIONS,
        stats_max_age: timedelta = DEFAULT_STATS_MAX_AGE,
        max_interval_days: Optional[int] = None,
        study_timezone: tzinfo = timezone.utc,
    ) -> None:
        self._storage = storage
        self._mastery_threshold = mastery_threshold
        self._stats_max_age = stats_max_age
        self._max_interval_days = max_interval_days
        self._study_timezone = study_timezone

    async def submit_review(
        self,
        card_id: int,
        quality: int,
        now: Optional[datetime] = None,
    ) -> CardSchedule:
        """Schedule the card's next review from a 0-5 quality rating."""
        score = ReviewScore.coerce(quality)
        now = self._resolve_now(now)

        card = await self._storage.get_card(card_id)
        schedule = calculate_next_schedule(
            card.schedule,
            score,
            now,
            max_interval_days=self._max_interval_days,
        )
        set_schedules = _with_updated_schedule(
            await self._storage.list_card_schedules(card.set_id), card.schedule, schedule
        )
        owned_schedules = _with_updated_schedule(
            await self._storage.list_owned_card_schedules(card.owner_id), card.schedule, schedule
        )
        stats = recompute(
            card.owner_id,
            owned_schedules,
            now,
            await self._load_stats(card.owner_id),
            mastery_threshold=self._mastery_threshold,
        )

        await self._storage.record_review(
            card_id,
            schedule,
            quality=score.value,
            studied_at=now,
            set_mastery=mastery_percentage(set_schedules, self._mastery_threshold),
            stats=stats,
        )
        LOGGER.debug(
            "Card %s rated %s: interval %s days, ease %.2f, repetitions %s.",
            card_id,
            score.value,
            schedule.interval,
            schedule.ease_factor,
            schedule.repetitions,
        )
        return schedule

    async def complete_study_session(
        self,
        user_id: str,
        summary: SessionSummary,
        now: Optional[datetime] = None,
    ) -> StudyStats:
        """Record a finished session once, advancing the session count and streak."""
        now = self._resolve_now(now)
        today = now.astimezone(self._study_timezone).date()

        existing = await self._load_stats(user_id)
        stats = record_session_completion(user_id, summary, today, existing)
        await self._storage.save_study_session(user_id, summary, now)

        schedules = await self._storage.list_owned_card_schedules(user_id)
        stats = recompute(
            user_id, schedules, now, stats, mastery_threshold=self._mastery_threshold
        )
        await self._storage.save_study_stats(user_id, stats)
        LOGGER.info(
            "User %s completed a session of %s cards; streak is %s days.",
            user_id,
            summary.cards_studied,
            stats.study_streak,
        )
        return stats

    async def delete_set(self, set_id: int, now: Optional[datetime] = None) -> StudyStats:
        """Delete a set with its cards and rebuild the owner's statistics."""
        owner_id = await self._storage.delete_set(set_id)
        LOGGER.info("Deleted flashcard set %s of user %s.", set_id, owner_id)
        return await self.refresh_stats(owner_id, now)

    async def get_dashboard_stats(
        self, user_id: str, now: Optional[datetime] = None
    ) -> StudyStats:
        """Return the learner's statistics, recomputing them when they are stale."""
        now = self._resolve_now(now)
        existing = await self._load_stats(user_id)
        if existing is not None and not is_stale(existing, now, self._stats_max_age):
            return existing
        return await self._recompute_and_save(user_id, now, existing)

    async def refresh_stats(self, user_id: str, now: Optional[datetime] = None) -> StudyStats:
        """Unconditionally rebuild the learner's statistics from their cards."""
        now = self._resolve_now(now)
        existing = await self._load_stats(user_id)
        return await self._recompute_and_save(user_id, now, existing)

    async def _recompute_and_save(
        self, user_id: str, now: datetime, existing: Optional[StudyStats]
    ) -> StudyStats:
        schedules = await self._storage.list_owned_card_schedules(user_id)
        stats = recompute(
            user_id, schedules, now, existing, mastery_threshold=self._mastery_threshold
        )
        await self._storage.save_study_stats(user_id, stats)
        return stats

    async def _load_stats(self, user_id: str) -> Optional[StudyStats]:
        try:
            return await self._storage.get_study_stats(user_id)
        except StatsNotFound:
            # First use: the caller starts from zero-valued statistics.
            return None

    @staticmethod
    def _resolve_now(now: Optional[datetime]) -> datetime:
        if now is None:
            return datetime.now(timezone.utc)
        return ensure_aware(now).astimezone(timezone.utc)


def _with_updated_schedule(
    schedules: Sequence[CardSchedule], previous: CardSchedule, updated: CardSchedule
) -> list[CardSchedule]:
    """Swap a card's stored schedule for the one about to be written."""
    result = list(schedules)
    if previous in result:
        result[result.index(previous)] = updated
    return result
