"""Helpers for working with flashcard persistence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.srs.errors import InvalidInput, SetNotFound
from src.srs.schedule import DEFAULT_EASINESS_FACTOR, INITIAL_INTERVAL, CardSchedule

from . import Flashcard, FlashcardReview, FlashcardSet, StudySession


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive timestamps returned by backends such as SQLite."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(slots=True)
class FlashcardSetPayload:
    """Definition of a new flashcard set."""

    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[str] = None
    is_public: bool = False

    def normalized(self) -> "FlashcardSetPayload":
        """Return a payload with leading/trailing whitespace stripped."""
        return FlashcardSetPayload(
            title=self.title.strip(),
            description=self.description.strip() if isinstance(self.description, str) else self.description,
            category=self.category.strip() if isinstance(self.category, str) else self.category,
            tags=self.tags.strip() if isinstance(self.tags, str) else self.tags,
            is_public=self.is_public,
        )


@dataclass(slots=True)
class FlashcardPayload:
    """Question and answer text of a flashcard."""

    question: str
    answer: str

    def normalized(self) -> "FlashcardPayload":
        return FlashcardPayload(question=self.question.strip(), answer=self.answer.strip())


def schedule_from_row(flashcard: Flashcard) -> CardSchedule:
    """Build the scheduling value object from a stored flashcard."""
    return CardSchedule(
        ease_factor=flashcard.ease_factor,
        interval=flashcard.interval,
        repetitions=flashcard.repetitions,
        last_reviewed=as_utc(flashcard.last_reviewed),
        next_review=as_utc(flashcard.next_review),
    )


async def create_flashcard_set(
    session: AsyncSession, user_id: str, payload: FlashcardSetPayload
) -> FlashcardSet:
    normalized = payload.normalized()
    flashcard_set = FlashcardSet(
        user_id=user_id,
        title=normalized.title,
        description=normalized.description,
        category=normalized.category,
        tags=normalized.tags,
        is_public=normalized.is_public,
        mastery=0,
    )
    session.add(flashcard_set)
    await session.flush()
    return flashcard_set


@dataclass(slots=True)
class FlashcardSetUpdate:
    """Partial change to a set; fields left as ``None`` keep their value."""

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[str] = None
    is_public: Optional[bool] = None


async def get_flashcard_set(session: AsyncSession, set_id: int) -> FlashcardSet:
    """Return a set with its flashcards loaded, or raise ``SetNotFound``."""
    stmt = (
        select(FlashcardSet)
        .options(selectinload(FlashcardSet.flashcards))
        .where(FlashcardSet.id == set_id)
        .execution_options(populate_existing=True)
    )
    flashcard_set = (await session.execute(stmt)).scalar_one_or_none()
    if flashcard_set is None:
        raise SetNotFound(set_id)
    return flashcard_set


async def list_set_flashcards(session: AsyncSession, set_id: int) -> Sequence[Flashcard]:
    result = await session.execute(
        select(Flashcard).where(Flashcard.set_id == set_id).order_by(Flashcard.id)
    )
    return result.scalars().all()


async def list_user_flashcard_sets(session: AsyncSession, user_id: str) -> Sequence[FlashcardSet]:
    """The user's sets, newest first."""
    stmt = (
        select(FlashcardSet)
        .where(FlashcardSet.user_id == user_id)
        .order_by(FlashcardSet.created_at.desc(), FlashcardSet.id.desc())
    )
    result = await session.execute(stmt)
    return result.scalars().all()


async def list_public_flashcard_sets(
    session: AsyncSession, limit: Optional[int] = None
) -> Sequence[FlashcardSet]:
    """Sets any learner may browse, newest first."""
    stmt = (
        select(FlashcardSet)
        .where(FlashcardSet.is_public.is_(True))
        .order_by(FlashcardSet.created_at.desc(), FlashcardSet.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return result.scalars().all()


async def update_flashcard_set(
    session: AsyncSession, set_id: int, changes: FlashcardSetUpdate
) -> FlashcardSet:
    flashcard_set = await session.get(FlashcardSet, set_id)
    if flashcard_set is None:
        raise SetNotFound(set_id)

    if changes.title is not None:
        title = changes.title.strip()
        if not title:
            raise InvalidInput("Flashcard set title must not be empty.")
        flashcard_set.title = title
    if changes.description is not None:
        flashcard_set.description = changes.description.strip()
    if changes.category is not None:
        flashcard_set.category = changes.category.strip()
    if changes.tags is not None:
        flashcard_set.tags = changes.tags.strip()
    if changes.is_public is not None:
        flashcard_set.is_public = changes.is_public
    flashcard_set.updated_at = datetime.now(timezone.utc)
    await session.flush()
    return flashcard_set


async def add_flashcard(
    session: AsyncSession, set_id: int, payload: FlashcardPayload
) -> Flashcard:
    """Add a never-reviewed card to an existing set."""
    if await session.get(FlashcardSet, set_id) is None:
        raise SetNotFound(set_id)

    normalized = payload.normalized()
    flashcard = Flashcard(
        set_id=set_id,
        question=normalized.question,
        answer=normalized.answer,
        ease_factor=DEFAULT_EASINESS_FACTOR,
        interval=INITIAL_INTERVAL,
        repetitions=0,
        last_reviewed=None,
        next_review=None,
    )
    session.add(flashcard)
    await session.flush()
    return flashcard


async def list_user_flashcards(session: AsyncSession, user_id: str) -> Sequence[Flashcard]:
    """Every flashcard in every set the user owns."""
    stmt = (
        select(Flashcard)
        .join(FlashcardSet, Flashcard.set_id == FlashcardSet.id)
        .where(FlashcardSet.user_id == user_id)
        .order_by(Flashcard.id)
    )
    result = await session.execute(stmt)
    return result.scalars().all()


async def list_due_flashcards(
    session: AsyncSession,
    user_id: str,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> list[Flashcard]:
    """Return the user's due cards, never-reviewed ones first, then oldest due."""
    if now is None:
        now = datetime.now(timezone.utc)

    stmt = (
        select(Flashcard)
        .join(FlashcardSet, Flashcard.set_id == FlashcardSet.id)
        .where(
            FlashcardSet.user_id == user_id,
            (Flashcard.next_review.is_(None)) | (Flashcard.next_review <= now),
        )
        .order_by(Flashcard.next_review.is_not(None), Flashcard.next_review, Flashcard.id)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def record_flashcard_review(
    session: AsyncSession,
    flashcard: Flashcard,
    schedule: CardSchedule,
    quality: Optional[int] = None,
) -> None:
    """Persist a new schedule for the card and log the review that produced it."""
    flashcard.ease_factor = schedule.ease_factor
    flashcard.interval = schedule.interval
    flashcard.repetitions = schedule.repetitions
    flashcard.last_reviewed = schedule.last_reviewed
    flashcard.next_review = schedule.next_review
    flashcard.updated_at = schedule.last_reviewed or datetime.now(timezone.utc)

    if quality is not None:
        session.add(
            FlashcardReview(
                flashcard_id=flashcard.id,
                quality=quality,
                interval_after=schedule.interval,
                ease_factor_after=schedule.ease_factor,
                repetitions_after=schedule.repetitions,
                reviewed_at=schedule.last_reviewed or datetime.now(timezone.utc),
            )
        )
    await session.flush()


async def delete_flashcard_set(session: AsyncSession, set_id: int) -> bool:
    """Delete a set with its flashcards and review history, keeping its sessions unlinked."""
    if await session.get(FlashcardSet, set_id) is None:
        return False

    await session.execute(
        update(StudySession)
        .where(StudySession.set_id == set_id)
        .values(set_id=None)
        .execution_options(synchronize_session=False)
    )
    card_ids = select(Flashcard.id).where(Flashcard.set_id == set_id)
    await session.execute(
        delete(FlashcardReview)
        .where(FlashcardReview.flashcard_id.in_(card_ids))
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(Flashcard)
        .where(Flashcard.set_id == set_id)
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(FlashcardSet)
        .where(FlashcardSet.id == set_id)
        .execution_options(synchronize_session=False)
    )
    return True
