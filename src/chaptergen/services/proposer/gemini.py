"""Gemini moment proposer."""

import logging
import os

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from chaptergen.errors import ProposerError
from chaptergen.models.moment import MomentCandidate
from chaptergen.services.proposer.base import parse_moment_payload
from chaptergen.services.proposer.prompts import build_moment_prompt

logger = logging.getLogger(__name__)


class GeminiMomentProposer:
    """Moment proposer using Google Gemini through the google-genai SDK.

    When the primary model call fails and a fallback model is configured,
    the same prompt is retried once on the fallback model.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gemini-2.5-pro",
        fallback_model: str | None = "gemini-2.5-flash",
        temperature: float = 1.0,
        max_output_tokens: int = 8192,
    ) -> None:
        self._api_key = api_key or os.environ.get("GOOGLE_API_KEY") or os.environ.get("GEMINI_API_KEY")
        self._model = model
        self._fallback_model = fallback_model
        self._config = types.GenerateContentConfig(
            temperature=temperature,
            top_p=0.95,
            max_output_tokens=max_output_tokens,
            response_mime_type="application/json",
        )
        self._available = bool(self._api_key)

        if self._available:
            self._client = genai.Client(api_key=self._api_key)
        else:
            self._client = None
            logger.warning("GeminiMomentProposer: No API key found, proposer unavailable")

    @property
    def name(self) -> str:
        return "gemini"

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
        """Ask Gemini for moments in one chunk.

        Raises:
            ProposerError: If every configured model fails or the response
                cannot be parsed.
        """
        if not self._available or self._client is None:
            raise ProposerError("Gemini proposer is not available (no API key)")

        prompt = build_moment_prompt(
            chunk_text, chunk_duration_minutes, target_moments, strategy_tier
        )

        try:
            raw_text = await self._generate(self._model, prompt)
        except genai_errors.APIError as exc:
            if not self._fallback_model:
                raise ProposerError(f"Gemini API error: {exc}") from exc
            logger.warning(
                "Gemini model %s failed (%s), retrying with %s",
                self._model,
                exc,
                self._fallback_model,
            )
            try:
                raw_text = await self._generate(self._fallback_model, prompt)
            except genai_errors.APIError as fallback_exc:
                raise ProposerError(f"Gemini API error: {fallback_exc}") from fallback_exc

        return parse_moment_payload(raw_text, self.name)

    async def _generate(self, model: str, prompt: str) -> str:
        response = await self._client.aio.models.generate_content(
            model=model,
            contents=prompt,
            config=self._config,
        )
        return response.text or ""
