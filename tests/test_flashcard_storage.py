from __future__ import annotations

import pytest
from sqlalchemy import func, select

from src.db import Flashcard, FlashcardReview, FlashcardSet
from src.db.flashcards import (
    FlashcardPayload,
    FlashcardSetPayload,
    FlashcardSetUpdate,
    add_flashcard,
    create_flashcard_set,
    delete_flashcard_set,
    get_flashcard_set,
    list_due_flashcards,
    list_public_flashcard_sets,
    list_set_flashcards,
    list_user_flashcard_sets,
    record_flashcard_review,
    schedule_from_row,
    update_flashcard_set,
)
from src.db.stats import add_study_session, list_study_sessions
from src.db.users import upsert_user
from src.srs.errors import InvalidInput, SetNotFound
from src.srs.schedule import CardSchedule, calculate_next_schedule
from src.srs.stats import SessionSummary
from tests.conftest import DAY0, day


async def _seed_set(session, user_id: str = "ana", cards: int = 2) -> FlashcardSet:
    await upsert_user(session, user_id, "Ana")
    flashcard_set = await create_flashcard_set(
        session, user_id, FlashcardSetPayload(title="  Capitals  ", category="geo")
    )
    for index in range(cards):
        await add_flashcard(
            session,
            flashcard_set.id,
            FlashcardPayload(question=f" Question {index} ", answer=f"Answer {index}"),
        )
    return flashcard_set


@pytest.mark.asyncio
async def test_new_flashcards_start_with_default_schedule(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            flashcard_set = await _seed_set(session, cards=1)

        flashcard = (await session.execute(select(Flashcard))).scalars().one()

    assert flashcard_set.title == "Capitals"
    assert flashcard_set.mastery == 0
    assert flashcard.question == "Question 0"
    assert schedule_from_row(flashcard) == CardSchedule()


@pytest.mark.asyncio
async def test_add_flashcard_requires_existing_set(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            with pytest.raises(SetNotFound):
                await add_flashcard(session, 999, FlashcardPayload(question="q", answer="a"))


@pytest.mark.asyncio
async def test_record_review_updates_schedule_and_logs_history(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            await _seed_set(session, cards=1)
            flashcard = (await session.execute(select(Flashcard))).scalars().one()
            schedule = calculate_next_schedule(schedule_from_row(flashcard), 5, DAY0)
            await record_flashcard_review(session, flashcard, schedule, quality=5)

        review = (await session.execute(select(FlashcardReview))).scalars().one()
        stored = await session.get(Flashcard, flashcard.id)

    assert schedule_from_row(stored) == schedule
    assert review.quality == 5
    assert review.interval_after == 1
    assert review.repetitions_after == 1


@pytest.mark.asyncio
async def test_list_due_flashcards_orders_new_cards_first(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            await _seed_set(session, cards=3)
            cards = (await session.execute(select(Flashcard).order_by(Flashcard.id))).scalars().all()
            cards[0].next_review = day(-1)
            cards[1].next_review = day(3)

        due = await list_due_flashcards(session, "ana", now=DAY0)
        later = await list_due_flashcards(session, "ana", now=day(5))
        other_user = await list_due_flashcards(session, "ben", now=day(5))

    assert [card.id for card in due] == [cards[2].id, cards[0].id]
    assert [card.id for card in later] == [cards[2].id, cards[0].id, cards[1].id]
    assert other_user == []


@pytest.mark.asyncio
async def test_deleting_set_removes_its_cards_and_reviews(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            doomed = await _seed_set(session, cards=2)
            kept = await _seed_set(session, cards=1)
            flashcard = (
                await session.execute(select(Flashcard).where(Flashcard.set_id == doomed.id))
            ).scalars().first()
            schedule = calculate_next_schedule(schedule_from_row(flashcard), 4, DAY0)
            await record_flashcard_review(session, flashcard, schedule, quality=4)

        async with session.begin():
            deleted = await delete_flashcard_set(session, doomed.id)
            missing = await delete_flashcard_set(session, 12345)

        remaining_cards = (await session.execute(select(Flashcard.set_id))).scalars().all()
        review_count = (await session.execute(select(func.count(FlashcardReview.id)))).scalar_one()
        set_ids = (await session.execute(select(FlashcardSet.id))).scalars().all()

    assert deleted is True
    assert missing is False
    assert remaining_cards == [kept.id]
    assert review_count == 0
    assert set_ids == [kept.id]


@pytest.mark.asyncio
async def test_get_flashcard_set_loads_its_cards(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            seeded = await _seed_set(session, cards=3)

    async with session_factory() as session:
        flashcard_set = await get_flashcard_set(session, seeded.id)
        cards = await list_set_flashcards(session, seeded.id)

        with pytest.raises(SetNotFound):
            await get_flashcard_set(session, 999)

    assert flashcard_set.title == "Capitals"
    assert sorted(card.question for card in flashcard_set.flashcards) == [
        "Question 0",
        "Question 1",
        "Question 2",
    ]
    assert [card.question for card in cards] == ["Question 0", "Question 1", "Question 2"]


@pytest.mark.asyncio
async def test_user_and_public_set_listings(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            first = await _seed_set(session, cards=0)
            second = await _seed_set(session, cards=0)
            await upsert_user(session, "ben")
            shared = await create_flashcard_set(
                session, "ben", FlashcardSetPayload(title="Rivers", tags="geo,water", is_public=True)
            )

        ana_sets = await list_user_flashcard_sets(session, "ana")
        public_sets = await list_public_flashcard_sets(session)
        nobody = await list_user_flashcard_sets(session, "cleo")

    assert [item.id for item in ana_sets] == [second.id, first.id]
    assert [(item.id, item.tags) for item in public_sets] == [(shared.id, "geo,water")]
    assert nobody == []


@pytest.mark.asyncio
async def test_update_flashcard_set_changes_only_given_fields(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            seeded = await _seed_set(session, cards=0)

        async with session.begin():
            await update_flashcard_set(
                session, seeded.id, FlashcardSetUpdate(title=" World capitals ", is_public=True)
            )

        async with session.begin():
            with pytest.raises(SetNotFound):
                await update_flashcard_set(session, 999, FlashcardSetUpdate(title="x"))
            with pytest.raises(InvalidInput):
                await update_flashcard_set(session, seeded.id, FlashcardSetUpdate(title="   "))

    async with session_factory() as session:
        public_sets = await list_public_flashcard_sets(session, limit=5)
        updated = await get_flashcard_set(session, seeded.id)

    assert (updated.title, updated.category, updated.is_public) == ("World capitals", "geo", True)
    assert [item.id for item in public_sets] == [seeded.id]


@pytest.mark.asyncio
async def test_deleting_set_unlinks_its_study_sessions(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            flashcard_set = await _seed_set(session, cards=1)
            await add_study_session(
                session,
                "ana",
                SessionSummary(cards_studied=1, duration_seconds=20, set_id=flashcard_set.id),
                DAY0,
            )

        async with session.begin():
            await delete_flashcard_set(session, flashcard_set.id)

        sessions = await list_study_sessions(session, "ana")

    assert [row.set_id for row in sessions] == [None]
