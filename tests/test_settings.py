from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from src.app import AppSettings, build_study_service
from src.study import StudyService


_VARIABLES = (
    "APP_NAME",
    "APP_ENV",
    "LOG_LEVEL",
    "MASTERY_REPETITIONS",
    "STATS_MAX_AGE_SECONDS",
    "MAX_INTERVAL_DAYS",
    "STUDY_TIMEZONE",
)


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARIABLES:
        monkeypatch.delenv(name, raising=False)


def test_defaults_apply_without_environment() -> None:
    settings = AppSettings.from_env()

    assert settings.app_name == "Recall Scheduler"
    assert settings.log_level == "INFO"
    assert settings.mastery_repetitions == 3
    assert settings.stats_max_age == timedelta(minutes=5)
    assert settings.max_interval_days is None
    assert settings.study_timezone == "UTC"


def test_environment_overrides_are_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("MASTERY_REPETITIONS", "5")
    monkeypatch.setenv("STATS_MAX_AGE_SECONDS", "0")
    monkeypatch.setenv("MAX_INTERVAL_DAYS", "365")
    monkeypatch.setenv("STUDY_TIMEZONE", "Europe/Athens")

    settings = AppSettings.from_env()

    assert settings.log_level == "DEBUG"
    assert settings.mastery_repetitions == 5
    assert settings.stats_max_age == timedelta(0)
    assert settings.max_interval_days == 365
    assert settings.tzinfo.key == "Europe/Athens"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("MASTERY_REPETITIONS", "three"),
        ("MASTERY_REPETITIONS", "0"),
        ("STATS_MAX_AGE_SECONDS", "-1"),
        ("MAX_INTERVAL_DAYS", "0"),
        ("STUDY_TIMEZONE", "Mars/Olympus_Mons"),
    ],
)
def test_invalid_values_are_rejected(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(RuntimeError, match=name):
        AppSettings.from_env()


def test_build_study_service_uses_given_session_factory(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAX_INTERVAL_DAYS", "180")
    session_factory = async_sessionmaker(create_async_engine("sqlite+aiosqlite:///:memory:"))

    service = build_study_service(AppSettings.from_env(), session_factory=session_factory)

    assert isinstance(service, StudyService)
    assert service._max_interval_days == 180
