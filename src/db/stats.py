"""Persistence helpers for study statistics and completed sessions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.srs.stats import SessionSummary, StudyStats

from . import StudySession, StudyStatsRecord
from .flashcards import as_utc


def stats_from_row(record: StudyStatsRecord) -> StudyStats:
    return StudyStats(
        user_id=record.user_id,
        total_cards=record.total_cards,
        mastered_cards=record.mastered_cards,
        due_cards=record.due_cards,
        study_streak=record.study_streak,
        total_study_sessions=record.total_study_sessions,
        last_study_date=record.last_study_date,
        computed_at=as_utc(record.computed_at),
    )


async def get_study_stats(session: AsyncSession, user_id: str) -> Optional[StudyStats]:
    """Return the stored snapshot for a user, if present."""
    record = await session.get(StudyStatsRecord, user_id)
    if record is None:
        return None
    return stats_from_row(record)


async def save_study_stats(session: AsyncSession, user_id: str, stats: StudyStats) -> StudyStatsRecord:
    """Insert the snapshot, or update the existing row in place."""
    record = await session.get(StudyStatsRecord, user_id)
    if record is None:
        record = StudyStatsRecord(user_id=user_id)
        session.add(record)

    record.total_cards = stats.total_cards
    record.mastered_cards = stats.mastered_cards
    record.due_cards = stats.due_cards
    record.study_streak = stats.study_streak
    record.total_study_sessions = stats.total_study_sessions
    record.last_study_date = stats.last_study_date
    record.computed_at = stats.computed_at
    record.updated_at = datetime.now(timezone.utc)
    await session.flush()
    return record


async def add_study_session(
    session: AsyncSession,
    user_id: str,
    summary: SessionSummary,
    completed_at: datetime,
) -> StudySession:
    study_session = StudySession(
        user_id=user_id,
        set_id=summary.set_id,
        cards_studied=summary.cards_studied,
        duration_seconds=summary.duration_seconds,
        completed_at=completed_at,
    )
    session.add(study_session)
    await session.flush()
    return study_session


async def list_study_sessions(
    session: AsyncSession, user_id: str, limit: Optional[int] = None
) -> list[StudySession]:
    """Completed sessions for a user, most recent first."""
    stmt = (
        select(StudySession)
        .where(StudySession.user_id == user_id)
        .order_by(StudySession.completed_at.desc(), StudySession.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())
