"""Study workflow exposed to the application's front ends."""

from .service import StudyService

__all__ = ["StudyService"]
