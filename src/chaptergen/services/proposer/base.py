"""Base interface and shared helpers for moment proposers."""

import json
import logging
from typing import Any, Protocol

from pydantic import ValidationError

from chaptergen.errors import ProposerError
from chaptergen.models.chunk import Chunk
from chaptergen.models.moment import MomentCandidate
from chaptergen.services.timecode import to_readable

logger = logging.getLogger(__name__)


class IMomentProposer(Protocol):
    """Protocol defining the contract for moment proposers.

    A proposer reads one chunk of transcript and suggests a few chapter
    markers inside it. Calls are independent of each other, so any number
    may run at once.
    """

    async def propose(
        self,
        chunk_text: str,
        chunk_duration_minutes: float,
        target_moments: int,
        strategy_tier: str,
    ) -> list[MomentCandidate]:
        """Suggest moments for one chunk.

        Args:
            chunk_text: Transcript lines prefixed with absolute timestamps.
            chunk_duration_minutes: Length of the chunk.
            target_moments: How many moments to suggest (1-5).
            strategy_tier: Processing tier hint from the planner.

        Returns:
            Candidates whose timestamps fall inside the chunk.
        """
        ...

    @property
    def name(self) -> str:
        """Proposer name identifier."""
        ...

    @property
    def is_available(self) -> bool:
        """Whether this proposer is configured and usable."""
        ...


def format_chunk_transcript(chunk: Chunk, is_long_content: bool) -> str:
    """Render a chunk as ``[timestamp] text`` lines.

    Timestamps are absolute offsets in the video's single display format,
    so the proposer can answer in the same format.
    """
    lines: list[str] = []
    for entry in chunk.entries:
        if not entry.text:
            continue
        lines.append(f"[{to_readable(entry.start_seconds, is_long_content)}] {entry.text}")
    return "\n".join(lines)


def _strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        lines = [line for line in text.split("\n") if not line.strip().startswith("```")]
        text = "\n".join(lines).strip()
    return text


def _close_brackets(text: str) -> str:
    """Append closing brackets and braces a truncated response is missing."""
    pairs = {"{": "}", "[": "]"}
    stack: list[str] = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in pairs:
            stack.append(pairs[char])
        elif stack and char == stack[-1]:
            stack.pop()
    return text.rstrip().rstrip(",") + "".join(reversed(stack))


def _load_json(raw_text: str, proposer_name: str) -> Any:
    text = _strip_code_fences(raw_text)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        repaired = _close_brackets(text)
        if repaired != text:
            try:
                data = json.loads(repaired)
            except json.JSONDecodeError:
                pass
            else:
                logger.info("%s: repaired truncated JSON response", proposer_name)
                return data
        raise ProposerError(
            f"{proposer_name} returned invalid JSON: {exc}\nRaw response: {raw_text[:500]}"
        ) from exc


def parse_moment_payload(raw_text: str, proposer_name: str) -> list[MomentCandidate]:
    """Parse a proposer's JSON response into moment candidates.

    Accepts a bare list or an object holding it under ``moments`` or
    ``keyMoments``; items may name the time field ``timestamp`` or
    ``time``. Items that fail validation are skipped.

    Raises:
        ProposerError: If the response is not JSON or holds no moment list.
    """
    data = _load_json(raw_text, proposer_name)

    if isinstance(data, dict):
        items = data.get("moments", data.get("keyMoments"))
    else:
        items = data

    if not isinstance(items, list):
        raise ProposerError(f"{proposer_name} response has no moment list")

    candidates: list[MomentCandidate] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if "timestamp" not in item and "time" in item:
            item = {**item, "timestamp": item["time"]}
        try:
            candidates.append(MomentCandidate.model_validate(item))
        except ValidationError as exc:
            logger.debug("%s: skipping invalid moment %r: %s", proposer_name, item, exc)

    skipped = len(items) - len(candidates)
    if skipped:
        logger.warning("%s: skipped %d malformed moment(s)", proposer_name, skipped)

    return candidates
