"""Application bootstrap helpers for the Recall Scheduler project."""

from .runtime import bootstrap, build_study_service
from .settings import AppSettings

__all__ = ["bootstrap", "build_study_service", "AppSettings"]
