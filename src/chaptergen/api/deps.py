"""FastAPI dependencies."""

from __future__ import annotations

from chaptergen.config import Settings
from chaptergen.errors import ChaptergenError
from chaptergen.services.generation import TimestampGenerationService
from chaptergen.services.proposer import build_proposer

_generation_service: TimestampGenerationService | None = None


def init_generation_service(settings: Settings) -> TimestampGenerationService:
    """Initialize the global TimestampGenerationService (called at app startup).

    The service is still created when no proposer is configured so that
    the analyze endpoint keeps working; generate requests then fail with
    503.
    """
    global _generation_service
    try:
        proposer = build_proposer(settings)
    except ChaptergenError:
        proposer = None
    _generation_service = TimestampGenerationService(proposer=proposer, settings=settings)
    return _generation_service


def get_generation_service() -> TimestampGenerationService:
    """Dependency that provides the TimestampGenerationService instance."""
    if _generation_service is None:
        raise RuntimeError(
            "TimestampGenerationService not initialized, call init_generation_service() first"
        )
    return _generation_service
