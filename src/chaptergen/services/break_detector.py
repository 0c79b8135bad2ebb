"""Natural break detection between adjacent subtitle entries.

Scores every gap between two cues from three independent signals and keeps
the ones that look like a plausible chunk boundary. The scoring is a
deterministic heuristic, not a linguistic model.
"""

import re

from chaptergen.models.chunk import BreakPoint, BreakReason
from chaptergen.models.subtitle import SubtitleEntry

LONG_PAUSE_SECONDS = 3.0
SHORT_PAUSE_SECONDS = 1.5

LONG_PAUSE_WEIGHT = 0.4
TOPIC_CUE_WEIGHT = 0.3
SENTENCE_END_WEIGHT = 0.2

MIN_CONFIDENCE = 0.3

TOPIC_CUES = (
    "now",
    "next",
    "so",
    "okay",
    "alright",
    "moving on",
    "let's",
    "another",
    "different",
    "change",
    "switch",
    "turn to",
    "look at",
)

# Whole-word match so "snow" or "nowhere" do not count as "now"
_TOPIC_CUE_RE = re.compile(
    r"(?<![\w'])(?:" + "|".join(re.escape(cue) for cue in TOPIC_CUES) + r")(?![\w'])"
)

_SENTENCE_END = (".", "?", "!")


def has_topic_cue(text: str) -> bool:
    """Whether the text opens with or contains a topic-change cue phrase."""
    return _TOPIC_CUE_RE.search(text.lower()) is not None


class BreakPointDetector:
    """Finds candidate chunk boundaries in a subtitle track."""

    def detect(self, entries: list[SubtitleEntry]) -> list[BreakPoint]:
        """Score each adjacent pair of entries.

        Returns:
            Break points scoring at least 0.3, highest confidence first.
            Equal scores keep their chronological order.
        """
        breaks: list[BreakPoint] = []

        for i in range(len(entries) - 1):
            current = entries[i]
            following = entries[i + 1]
            pause = following.start_seconds - current.end_seconds

            score = 0.0
            reason: BreakReason | None = None

            if pause >= LONG_PAUSE_SECONDS:
                score += LONG_PAUSE_WEIGHT
                reason = BreakReason.LONG_PAUSE

            if has_topic_cue(following.text):
                score += TOPIC_CUE_WEIGHT
                reason = BreakReason.TOPIC_CHANGE

            if pause >= SHORT_PAUSE_SECONDS and current.text.rstrip().endswith(_SENTENCE_END):
                score += SENTENCE_END_WEIGHT
                if reason != BreakReason.TOPIC_CHANGE:
                    reason = BreakReason.SECTION_BREAK

            score = round(min(score, 1.0), 2)
            if reason is None or score < MIN_CONFIDENCE:
                continue

            breaks.append(
                BreakPoint(
                    after_entry_index=i,
                    timestamp_seconds=following.start_seconds,
                    confidence=score,
                    reason=reason,
                )
            )

        breaks.sort(key=lambda bp: bp.confidence, reverse=True)
        return breaks
