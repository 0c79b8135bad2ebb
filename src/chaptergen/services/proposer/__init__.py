"""Moment proposers: the external model boundary of the pipeline."""

from chaptergen.config import Settings
from chaptergen.errors import ProposerUnavailableError
from chaptergen.services.proposer.base import (
    IMomentProposer,
    format_chunk_transcript,
    parse_moment_payload,
)
from chaptergen.services.proposer.claude import ClaudeMomentProposer
from chaptergen.services.proposer.gemini import GeminiMomentProposer

__all__ = [
    "ClaudeMomentProposer",
    "GeminiMomentProposer",
    "IMomentProposer",
    "build_proposer",
    "format_chunk_transcript",
    "parse_moment_payload",
]


def build_proposer(settings: Settings, name: str | None = None) -> IMomentProposer:
    """Create the configured moment proposer.

    Args:
        settings: Application settings holding keys and model names.
        name: ``claude``, ``gemini`` or ``auto``. Defaults to
            ``settings.proposer``. ``auto`` picks the first available one.

    Raises:
        ProposerUnavailableError: If the requested proposer is unknown or
            has no API key.
    """
    name = (name or settings.proposer).lower()

    factories = {
        "claude": lambda: ClaudeMomentProposer(
            api_key=settings.anthropic_api_key,
            model=settings.claude_model,
            max_retries=settings.proposer_max_retries,
        ),
        "gemini": lambda: GeminiMomentProposer(
            api_key=settings.google_api_key,
            model=settings.gemini_model,
            fallback_model=settings.gemini_fallback_model,
        ),
    }

    if name == "auto":
        for factory in factories.values():
            proposer = factory()
            if proposer.is_available:
                return proposer
        raise ProposerUnavailableError(
            "No moment proposer available. Set ANTHROPIC_API_KEY or GOOGLE_API_KEY."
        )

    if name not in factories:
        raise ProposerUnavailableError(
            f"Unknown proposer '{name}'. Available: {', '.join(factories)}, auto"
        )

    proposer = factories[name]()
    if not proposer.is_available:
        raise ProposerUnavailableError(f"Proposer '{name}' is not configured (no API key)")
    return proposer
