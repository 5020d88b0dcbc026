"""Bootstrap logic for the study scheduler."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.app.settings import AppSettings
from src.db import get_session_factory, run_migrations_if_needed
from src.db.storage import SqlAlchemyStudyStorage
from src.study import StudyService


LOGGER = logging.getLogger(__name__)


def configure_logging(log_level: str) -> None:
    """Set up project-wide logging configuration."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=log_level,
    )


def build_study_service(
    settings: AppSettings,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> StudyService:
    """Wire the study service to the SQLAlchemy storage adapter."""
    if session_factory is None:
        session_factory = get_session_factory()
    return StudyService(
        SqlAlchemyStudyStorage(session_factory),
        mastery_threshold=settings.mastery_repetitions,
        stats_max_age=settings.stats_max_age,
        max_interval_days=settings.max_interval_days,
        study_timezone=settings.tzinfo,
    )


def bootstrap(settings: AppSettings) -> None:
    """Configure logging and bring the database schema up to date."""
    configure_logging(settings.log_level)

    try:
        run_migrations_if_needed()
    except Exception:
        LOGGER.exception("Database migrations failed. Aborting startup.")
        raise

    LOGGER.info("%s is ready in %s mode.", settings.app_name, settings.app_env)
