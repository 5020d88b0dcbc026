"""Configuration helpers for the Recall Scheduler runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.srs.mastery import DEFAULT_MASTERY_REPETITIONS


DEFAULT_APP_NAME = "Recall Scheduler"
DEFAULT_STATS_MAX_AGE_SECONDS = 300


def _read_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer.") from exc


@dataclass(frozen=True)
class AppSettings:
    """Strongly typed application settings loaded from environment variables."""

    app_name: str
    app_env: str
    log_level: str
    mastery_repetitions: int
    stats_max_age_seconds: int
    max_interval_days: Optional[int]
    study_timezone: str

    @property
    def stats_max_age(self) -> timedelta:
        return timedelta(seconds=self.stats_max_age_seconds)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.study_timezone)

    @classmethod
    def from_env(cls) -> AppSettings:
        """Construct settings directly from environment variables."""
        app_name = os.getenv("APP_NAME", DEFAULT_APP_NAME)
        app_env = os.getenv("APP_ENV", "development")
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        mastery_repetitions = _read_int("MASTERY_REPETITIONS", DEFAULT_MASTERY_REPETITIONS)
        if mastery_repetitions < 1:
            raise RuntimeError("MASTERY_REPETITIONS must be a positive integer.")

        stats_max_age_seconds = _read_int("STATS_MAX_AGE_SECONDS", DEFAULT_STATS_MAX_AGE_SECONDS)
        if stats_max_age_seconds < 0:
            raise RuntimeError("STATS_MAX_AGE_SECONDS must not be negative.")

        max_interval_days = _read_int("MAX_INTERVAL_DAYS", None)
        if max_interval_days is not None and max_interval_days < 1:
            raise RuntimeError("MAX_INTERVAL_DAYS must be a positive integer when set.")

        study_timezone = os.getenv("STUDY_TIMEZONE", "UTC")
        try:
            ZoneInfo(study_timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise RuntimeError(f"STUDY_TIMEZONE {study_timezone!r} is not a known time zone.") from exc

        return cls(
            app_name=app_name,
            app_env=app_env,
            log_level=log_level,
            mastery_repetitions=mastery_repetitions,
            stats_max_age_seconds=stats_max_age_seconds,
            max_interval_days=max_interval_days,
            study_timezone=study_timezone,
        )
