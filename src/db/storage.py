"""SQLAlchemy implementation of the study storage port."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.srs.errors import CardNotFound, SetNotFound, StatsNotFound, StorageFailure
from src.srs.ports import ScheduledCard, StudyStorage
from src.srs.schedule import CardSchedule
from src.srs.stats import SessionSummary, StudyStats

from . import Flashcard, FlashcardSet
from .flashcards import (
    delete_flashcard_set,
    list_user_flashcards,
    record_flashcard_review,
    schedule_from_row,
)
from . import stats as stats_store
from .users import upsert_user


LOGGER = logging.getLogger(__name__)


class SqlAlchemyStudyStorage(StudyStorage):
    """Runs every storage operation in its own transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as exc:
            LOGGER.exception("Storage operation %s failed.", operation)
            raise StorageFailure(f"Storage operation {operation} failed.") from exc

    async def get_card(self, card_id: int) -> ScheduledCard:
        async with self._transaction("get_card") as session:
            stmt = (
                select(Flashcard, FlashcardSet.user_id)
                .join(FlashcardSet, Flashcard.set_id == FlashcardSet.id)
                .where(Flashcard.id == card_id)
            )
            row = (await session.execute(stmt)).first()
            if row is None:
                raise CardNotFound(card_id)
            flashcard, owner_id = row
            return ScheduledCard(
                card_id=flashcard.id,
                set_id=flashcard.set_id,
                owner_id=owner_id,
                schedule=schedule_from_row(flashcard),
            )

    async def save_card_schedule(
        self,
        card_id: int,
        schedule: CardSchedule,
        quality: Optional[int] = None,
    ) -> None:
        async with self._transaction("save_card_schedule") as session:
            flashcard = await session.get(Flashcard, card_id)
            if flashcard is None:
                raise CardNotFound(card_id)
            await record_flashcard_review(session, flashcard, schedule, quality)

    async def list_card_schedules(self, set_id: int) -> Sequence[CardSchedule]:
        async with self._transaction("list_card_schedules") as session:
            result = await session.execute(select(Flashcard).where(Flashcard.set_id == set_id))
            return [schedule_from_row(flashcard) for flashcard in result.scalars()]

    async def list_owned_card_schedules(self, user_id: str) -> Sequence[CardSchedule]:
        async with self._transaction("list_owned_card_schedules") as session:
            flashcards = await list_user_flashcards(session, user_id)
            return [schedule_from_row(flashcard) for flashcard in flashcards]

    async def get_study_stats(self, user_id: str) -> StudyStats:
        async with self._transaction("get_study_stats") as session:
            stats = await stats_store.get_study_stats(session, user_id)
        if stats is None:
            raise StatsNotFound(user_id)
        return stats

    async def save_study_stats(self, user_id: str, stats: StudyStats) -> None:
        async with self._transaction("save_study_stats") as session:
            await upsert_user(session, user_id)
            await stats_store.save_study_stats(session, user_id, stats)

    async def touch_set_last_studied(self, set_id: int, timestamp: datetime) -> None:
        async with self._transaction("touch_set_last_studied") as session:
            flashcard_set = await _get_set(session, set_id)
            flashcard_set.last_studied = timestamp
            await session.flush()

    async def save_set_mastery(self, set_id: int, mastery: int) -> None:
        async with self._transaction("save_set_mastery") as session:
            flashcard_set = await _get_set(session, set_id)
            flashcard_set.mastery = mastery
            await session.flush()

    async def save_study_session(
        self, user_id: str, summary: SessionSummary, completed_at: datetime
    ) -> None:
        async with self._transaction("save_study_session") as session:
            await upsert_user(session, user_id)
            await stats_store.add_study_session(session, user_id, summary, completed_at)

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
        async with self._transaction("record_review") as session:
            flashcard = await session.get(Flashcard, card_id)
            if flashcard is None:
                raise CardNotFound(card_id)
            await record_flashcard_review(session, flashcard, schedule, quality)

            flashcard_set = await _get_set(session, flashcard.set_id)
            flashcard_set.last_studied = studied_at
            flashcard_set.mastery = set_mastery

            await upsert_user(session, stats.user_id)
            await stats_store.save_study_stats(session, stats.user_id, stats)

    async def delete_set(self, set_id: int) -> str:
        async with self._transaction("delete_set") as session:
            flashcard_set = await _get_set(session, set_id)
            owner_id = flashcard_set.user_id
            await delete_flashcard_set(session, set_id)
        return owner_id


async def _get_set(session: AsyncSession, set_id: int) -> FlashcardSet:
    flashcard_set = await session.get(FlashcardSet, set_id)
    if flashcard_set is None:
        raise SetNotFound(set_id)
    return flashcard_set
