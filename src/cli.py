"""Command-line driver for reviewing cards and inspecting study statistics."""

import asyncio
from datetime import datetime
from typing import Annotated, Awaitable, Optional, TypeVar

import typer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.app import AppSettings, bootstrap, build_study_service
from src.db import get_session_factory
from src.db.flashcards import (
    FlashcardPayload,
    FlashcardSetPayload,
    add_flashcard,
    create_flashcard_set,
    list_due_flashcards,
    list_public_flashcard_sets,
    list_user_flashcard_sets,
)
from src.db.users import upsert_user
from src.srs.errors import NotFound, StudyError
from src.srs.stats import SessionSummary, StudyStats
from src.study import StudyService

T = TypeVar("T")

app = typer.Typer(
    help="Spaced-repetition study scheduler.",
    no_args_is_help=True,
)


def _load_service() -> StudyService:
    settings = AppSettings.from_env()
    bootstrap(settings)
    return build_study_service(settings)


def _load_session_factory() -> async_sessionmaker[AsyncSession]:
    bootstrap(AppSettings.from_env())
    return get_session_factory()


def _run(coro: Awaitable[T]) -> T:
    try:
        return asyncio.run(coro)
    except NotFound as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc
    except StudyError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def _format_moment(value: Optional[datetime]) -> str:
    return value.isoformat(timespec="minutes") if value else "now"


def _echo_stats(stats: StudyStats) -> None:
    typer.echo(f"Total cards:     {stats.total_cards}")
    typer.echo(f"Mastered cards:  {stats.mastered_cards} ({stats.mastery_percentage}%)")
    typer.echo(f"Due cards:       {stats.due_cards}")
    typer.echo(f"Study streak:    {stats.study_streak} days")
    typer.echo(f"Study sessions:  {stats.total_study_sessions}")


@app.command()
def review(
    card_id: Annotated[int, typer.Argument(help="Flashcard id.")],
    quality: Annotated[int, typer.Argument(help="Recall quality from 0 (blackout) to 5 (perfect).")],
) -> None:
    """Rate a card and schedule its next review."""
    service = _load_service()
    schedule = _run(service.submit_review(card_id, quality))
    typer.echo(
        f"Card {card_id}: next review {_format_moment(schedule.next_review)} "
        f"(interval {schedule.interval} days, ease {schedule.ease_factor:.2f})."
    )


@app.command("complete-session")
def complete_session(
    user_id: Annotated[str, typer.Argument(help="Learner id.")],
    cards: Annotated[int, typer.Option("--cards", help="Cards studied in the session.")] = 0,
    duration: Annotated[int, typer.Option("--duration", help="Session length in seconds.")] = 0,
    set_id: Annotated[Optional[int], typer.Option("--set-id", help="Set that was studied.")] = None,
) -> None:
    """Record a finished study session."""
    try:
        summary = SessionSummary(cards_studied=cards, duration_seconds=duration, set_id=set_id)
    except StudyError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    service = _load_service()
    stats = _run(service.complete_study_session(user_id, summary))
    _echo_stats(stats)


@app.command()
def stats(user_id: Annotated[str, typer.Argument(help="Learner id.")]) -> None:
    """Show the learner's dashboard statistics."""
    service = _load_service()
    _echo_stats(_run(service.get_dashboard_stats(user_id)))


@app.command("create-set")
def create_set(
    user_id: Annotated[str, typer.Argument(help="Owner of the new set.")],
    title: Annotated[str, typer.Argument(help="Set title.")],
    description: Annotated[Optional[str], typer.Option(help="Set description.")] = None,
    category: Annotated[Optional[str], typer.Option(help="Set category.")] = None,
    public: Annotated[bool, typer.Option("--public", help="Share the set with every learner.")] = False,
) -> None:
    """Create an empty flashcard set."""
    session_factory = _load_session_factory()

    async def _create() -> int:
        async with session_factory() as session:
            async with session.begin():
                await upsert_user(session, user_id)
                flashcard_set = await create_flashcard_set(
                    session,
                    user_id,
                    FlashcardSetPayload(
                        title=title, description=description, category=category, is_public=public
                    ),
                )
                return flashcard_set.id

    set_id = _run(_create())
    typer.echo(f"Created set {set_id}.")


@app.command("add-card")
def add_card(
    set_id: Annotated[int, typer.Argument(help="Set that receives the card.")],
    question: Annotated[str, typer.Argument(help="Front of the card.")],
    answer: Annotated[str, typer.Argument(help="Back of the card.")],
) -> None:
    """Add a card to a set; new cards are due immediately."""
    session_factory = _load_session_factory()

    async def _add() -> int:
        async with session_factory() as session:
            async with session.begin():
                flashcard = await add_flashcard(
                    session, set_id, FlashcardPayload(question=question, answer=answer)
                )
                return flashcard.id

    card_id = _run(_add())
    typer.echo(f"Added card {card_id} to set {set_id}.")


@app.command("delete-set")
def delete_set(set_id: Annotated[int, typer.Argument(help="Set to delete with its cards.")]) -> None:
    """Delete a set and every card in it."""
    service = _load_service()
    stats = _run(service.delete_set(set_id))
    typer.echo(f"Deleted set {set_id}; {stats.total_cards} cards remain.")


@app.command()
def sets(
    user_id: Annotated[Optional[str], typer.Argument(help="Owner whose sets to list.")] = None,
    public: Annotated[bool, typer.Option("--public", help="List shared sets instead.")] = False,
) -> None:
    """List a learner's flashcard sets, or every public set."""
    if not public and user_id is None:
        typer.echo("Pass a learner id or --public.", err=True)
        raise typer.Exit(code=1)
    session_factory = _load_session_factory()

    async def _list() -> list[tuple[int, str, int]]:
        async with session_factory() as session:
            if public:
                found = await list_public_flashcard_sets(session)
            else:
                found = await list_user_flashcard_sets(session, user_id)
            return [(item.id, item.title, item.mastery) for item in found]

    rows = _run(_list())
    if not rows:
        typer.echo("No flashcard sets.")
        return
    for set_id, title, mastery in rows:
        typer.echo(f"[{set_id}] {title} ({mastery}% mastered)")


@app.command()
def due(
    user_id: Annotated[str, typer.Argument(help="Learner id.")],
    limit: Annotated[Optional[int], typer.Option(help="Show at most this many cards.")] = None,
) -> None:
    """List the learner's cards that are due for review."""
    session_factory = _load_session_factory()

    async def _list() -> list[tuple[int, str, Optional[datetime]]]:
        async with session_factory() as session:
            cards = await list_due_flashcards(session, user_id, limit=limit)
            return [(card.id, card.question, card.next_review) for card in cards]

    rows = _run(_list())
    if not rows:
        typer.echo("Nothing is due.")
        return
    for card_id, question, next_review in rows:
        typer.echo(f"[{card_id}] {question} (due {_format_moment(next_review)})")
