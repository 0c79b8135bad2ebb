"""Prompt text shared by all moment proposers."""

import re

from chaptergen.models.moment import MomentCategory

_LONG_LINE_RE = re.compile(r"^\[\d+:\d{2}:\d{2}\]")

_CATEGORY_LIST = ", ".join(category.value for category in MomentCategory)

_TIER_GUIDANCE = {
    "simple": "The content is straightforward. Pick only clear topic starts.",
    "standard": "Balance topic shifts with notable demonstrations.",
    "complex": "The content is dense. Prefer moments that carry a specific insight, demo or deep dive.",
    "enterprise": "This is a very long recording. Be selective and skip small talk.",
}

MOMENT_PROMPT = """\
You are creating YouTube chapter timestamps from a video transcript.

Below is one {duration:.1f}-minute section of the transcript. Each line starts with the
absolute video time at which it is spoken.

<transcript>
{chunk_text}
</transcript>

Identify the {target_moments} most useful moment(s) in this section where a viewer would
want to jump in. {tier_guidance}

Rules:
- Every timestamp must be copied from a line of this section, in the same format ({time_format}).
- Descriptions are 2-5 words and start with an action verb (e.g. "Explaining pricing tiers",
  "Building the login form"). Avoid vague labels like "Talks about stuff".
- category is one of: {categories}
- confidence and importance are numbers between 0 and 1.

Respond with ONLY a JSON object in this exact format (no markdown, no extra text):
{{"moments": [{{"timestamp": "<time>", "description": "<2-5 words>", "category": "<category>", "confidence": <0-1>, "importance": <0-1>}}]}}
"""


def build_moment_prompt(
    chunk_text: str,
    chunk_duration_minutes: float,
    target_moments: int,
    strategy_tier: str,
) -> str:
    """Fill the moment prompt for one chunk."""
    time_format = "HH:MM:SS" if _LONG_LINE_RE.match(chunk_text) else "MM:SS"
    return MOMENT_PROMPT.format(
        duration=chunk_duration_minutes,
        chunk_text=chunk_text,
        target_moments=target_moments,
        tier_guidance=_TIER_GUIDANCE.get(strategy_tier, _TIER_GUIDANCE["standard"]),
        time_format=time_format,
        categories=_CATEGORY_LIST,
    )
