"""Claude moment proposer."""

import logging
import os

import anthropic

from chaptergen.errors import ProposerError
from chaptergen.models.moment import MomentCandidate
from chaptergen.services.proposer.base import parse_moment_payload
from chaptergen.services.proposer.prompts import build_moment_prompt

logger = logging.getLogger(__name__)


class ClaudeMomentProposer:
    """Moment proposer using the Anthropic Claude API.

    Marks itself unavailable when no API key is configured rather than
    failing at construction. Transient API errors are retried by the SDK.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-sonnet-4-20250514",
        max_retries: int = 2,
        max_tokens: int = 2048,
    ) -> None:
        """Initialize the Claude proposer.

        Args:
            api_key: Anthropic API key. Falls back to ANTHROPIC_API_KEY env var.
            model: Claude model to use.
            max_retries: SDK-level retries for transient API errors.
            max_tokens: Response token limit per chunk.
        """
        self._api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self._model = model
        self._max_tokens = max_tokens
        self._available = bool(self._api_key)

        if self._available:
            self._client = anthropic.AsyncAnthropic(
                api_key=self._api_key, max_retries=max_retries
            )
        else:
            self._client = None
            logger.warning("ClaudeMomentProposer: No API key found, proposer unavailable")

    @property
    def name(self) -> str:
        return "claude"

    @property
    def is_available(self) -> bool:
        return self._available

    async def propose(
        self,
        chunk_text: str,
        chunk_duration_minutes: float,
        target_moments: int,
        strategy_tier: str,
    ) -> list[MomentCandidate]:
        """Ask Claude for moments in one chunk.

        Raises:
            ProposerError: If the API call fails or the response cannot be parsed.
        """
        if not self._available or self._client is None:
            raise ProposerError("Claude proposer is not available (no API key)")

        prompt = build_moment_prompt(
            chunk_text, chunk_duration_minutes, target_moments, strategy_tier
        )

        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as exc:
            raise ProposerError(f"Claude API error: {exc}") from exc

        raw_text = ""
        for block in response.content:
            if block.type == "text":
                raw_text += block.text

        return parse_moment_payload(raw_text, self.name)
