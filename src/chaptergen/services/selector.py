"""Candidate selection: turn the merged proposer pool into the final list."""

import logging
import re

from chaptergen.models.moment import MomentCandidate, SelectionResult
from chaptergen.services.timecode import is_long_content, normalize_timestamp

logger = logging.getLogger(__name__)

DUPLICATE_TOLERANCE_SECONDS = 5.0
FRONT_WINDOW_RATIO = 0.2
BOOKEND_SPAN_RATIO = 0.75
ENDING_GAP_SECONDS = 300
FRONT_CLUSTER_WARNING = "All selected moments fall within the first 20% of the video"

CONFIDENCE_WEIGHT = 0.4
DISTRIBUTION_WEIGHT = 0.3
DIVERSITY_WEIGHT = 0.2
KEYWORD_WEIGHT = 0.1

MIN_DESCRIPTION_WORDS = 2
MAX_DESCRIPTION_WORDS = 5

ACTION_VERBS = frozenset(
    {
        "introducing", "explaining", "demonstrating", "building", "showing",
        "comparing", "reviewing", "testing", "setting", "creating", "adding",
        "discussing", "exploring", "fixing", "deploying", "installing",
        "configuring", "analyzing", "walking", "summarizing", "wrapping",
        "answering", "starting", "debugging", "designing", "using",
        "introduce", "explain", "demo", "build", "compare", "review", "test",
        "set", "create", "add", "discuss", "explore", "fix", "deploy",
        "install", "configure", "analyze", "summarize", "wrap", "answer",
    }
)

CONTEXT_KEYWORDS = frozenset(
    {
        "intro", "introduction", "overview", "demo", "example", "setup",
        "tutorial", "conclusion", "summary", "recap", "q&a", "questions",
        "results", "final", "deep", "dive", "basics", "advanced",
    }
)

_WORD_RE = re.compile(r"[a-z&']+")


def keyword_relevance(description: str) -> float:
    """How well a description follows the action-first labeling style.

    1.0 when it opens with an action verb, 0.5 when it mentions a context
    keyword, 0.0 otherwise or when it is outside the 2-5 word range.
    """
    words = _WORD_RE.findall(description.lower())
    if not MIN_DESCRIPTION_WORDS <= len(description.split()) <= MAX_DESCRIPTION_WORDS:
        return 0.0
    if not words:
        return 0.0
    if words[0] in ACTION_VERBS or (words[0].endswith("ing") and len(words[0]) > 4):
        return 1.0
    if any(word in CONTEXT_KEYWORDS for word in words):
        return 0.5
    return 0.0


class CandidateSelector:
    """Deduplicates, ranks and trims moment candidates to a target count."""

    def __init__(self, tolerance_seconds: float = DUPLICATE_TOLERANCE_SECONDS):
        self.tolerance_seconds = tolerance_seconds

    def select(
        self,
        candidates: list[MomentCandidate],
        target_count: int,
        video_duration_seconds: float,
    ) -> list[MomentCandidate]:
        """Chronologically ordered selection of at most ``target_count`` moments."""
        return self.select_detailed(candidates, target_count, video_duration_seconds).moments

    def select_detailed(
        self,
        candidates: list[MomentCandidate],
        target_count: int,
        video_duration_seconds: float,
    ) -> SelectionResult:
        """Select moments and report how the selection went.

        Steps: drop candidates past the end of the video, collapse
        near-duplicates keeping the most confident, keep the opening and
        closing moments when the pool spans most of the video, fill the
        rest greedily by score, then repair front clustering.

        Returns:
            SelectionResult whose moments are sorted by time, carry no two
            timestamps within the tolerance window, and use a single
            timestamp format for the whole video.
        """
        target_count = max(0, target_count)
        warnings: list[str] = []

        in_range = [
            c
            for c in candidates
            if video_duration_seconds <= 0 or c.seconds <= video_duration_seconds
        ]
        dropped = len(candidates) - len(in_range)
        if dropped:
            warnings.append(f"Dropped {dropped} candidate(s) past the end of the video")

        pool = self._deduplicate(in_range)
        duplicates = len(in_range) - len(pool)

        if target_count == 0 or not pool:
            selected: list[MomentCandidate] = []
        elif len(pool) <= target_count:
            selected = list(pool)
            # Nothing left to swap in, so clustering can only be reported
            if self._is_front_clustered(selected, self._span(pool, video_duration_seconds)):
                warnings.append(FRONT_CLUSTER_WARNING)
        else:
            selected = self._choose(pool, target_count, video_duration_seconds, warnings)

        selected.sort(key=lambda c: c.seconds)
        long_format = is_long_content(video_duration_seconds)
        moments = [
            c.model_copy(update={"timestamp": normalize_timestamp(c.timestamp, long_format)})
            for c in selected
        ]

        if len(moments) < target_count:
            warnings.append(
                f"Only {len(moments)} of {target_count} requested moments could be selected"
            )

        off_style = sum(
            1
            for m in moments
            if not MIN_DESCRIPTION_WORDS <= m.description_word_count <= MAX_DESCRIPTION_WORDS
        )
        if off_style:
            warnings.append(f"{off_style} description(s) are not 2-5 words long")

        if moments and video_duration_seconds > 0:
            gap = video_duration_seconds - moments[-1].seconds
            if gap > ENDING_GAP_SECONDS:
                warnings.append(
                    f"Last moment ({moments[-1].timestamp}) is {int(gap // 60)} minutes before the end"
                )

        for warning in warnings:
            logger.warning(warning)

        return SelectionResult(
            moments=moments,
            requested_count=target_count,
            target_met=len(moments) >= target_count,
            duplicate_count=duplicates,
            dropped_count=dropped,
            warnings=warnings,
        )

    def _deduplicate(self, candidates: list[MomentCandidate]) -> list[MomentCandidate]:
        """Keep the most confident candidate of every near-duplicate group."""
        ranked = sorted(candidates, key=lambda c: (-c.confidence, -c.importance, c.seconds))
        kept: list[MomentCandidate] = []
        for candidate in ranked:
            seconds = candidate.seconds
            if any(abs(seconds - k.seconds) <= self.tolerance_seconds for k in kept):
                continue
            kept.append(candidate)
        return kept

    def _choose(
        self,
        pool: list[MomentCandidate],
        target_count: int,
        duration: float,
        warnings: list[str],
    ) -> list[MomentCandidate]:
        by_time = sorted(pool, key=lambda c: c.seconds)
        span = self._span(pool, duration)

        mandatory = [by_time[0]]
        earliest, latest = by_time[0].seconds, by_time[-1].seconds
        if target_count > 1 and (latest - earliest) / span >= BOOKEND_SPAN_RATIO:
            mandatory.append(by_time[-1])

        selected = list(mandatory)
        remaining = [c for c in by_time if c not in mandatory]
        scores: dict[int, float] = {}

        while len(selected) < target_count and remaining:
            best = max(
                remaining,
                key=lambda c: (self._score(c, selected, target_count, span), -c.seconds),
            )
            scores[id(best)] = self._score(best, selected, target_count, span)
            selected.append(best)
            remaining.remove(best)

        return self._spread_front_cluster(selected, mandatory, remaining, scores, span, warnings)

    @staticmethod
    def _span(pool: list[MomentCandidate], duration: float) -> float:
        """Time span used for bucketing and the front window."""
        if duration > 0:
            return duration
        return max(c.seconds for c in pool) or 1.0

    @staticmethod
    def _is_front_clustered(selected: list[MomentCandidate], span: float) -> bool:
        """Whether two or more picks all sit in the first 20% of the span."""
        front_limit = span * FRONT_WINDOW_RATIO
        return len(selected) >= 2 and all(c.seconds <= front_limit for c in selected)

    @staticmethod
    def _bucket(seconds: float, bucket_count: int, span: float) -> int:
        return min(bucket_count - 1, int(seconds / span * bucket_count))

    def _score(
        self,
        candidate: MomentCandidate,
        selected: list[MomentCandidate],
        bucket_count: int,
        span: float,
    ) -> float:
        """Weighted ranking score against the running selection."""
        bucket = self._bucket(candidate.seconds, bucket_count, span)
        occupied = sum(1 for s in selected if self._bucket(s.seconds, bucket_count, span) == bucket)
        distribution = 1.0 / (1 + occupied)
        diversity = 0.0 if any(s.category == candidate.category for s in selected) else 1.0

        return (
            CONFIDENCE_WEIGHT * candidate.confidence
            + DISTRIBUTION_WEIGHT * distribution
            + DIVERSITY_WEIGHT * diversity
            + KEYWORD_WEIGHT * keyword_relevance(candidate.description)
        )

    def _spread_front_cluster(
        self,
        selected: list[MomentCandidate],
        mandatory: list[MomentCandidate],
        remaining: list[MomentCandidate],
        scores: dict[int, float],
        span: float,
        warnings: list[str],
    ) -> list[MomentCandidate]:
        """Swap out a front pick when every selection sits in the first 20%."""
        if not self._is_front_clustered(selected, span):
            return selected

        front_limit = span * FRONT_WINDOW_RATIO

        later = [c for c in remaining if c.seconds > front_limit]
        swappable = [c for c in selected if c not in mandatory]
        if not later or not swappable:
            warnings.append(FRONT_CLUSTER_WARNING)
            return selected

        weakest = min(swappable, key=lambda c: scores.get(id(c), 0.0))
        replacement = max(later, key=lambda c: (c.confidence, -c.seconds))
        return [replacement if c is weakest else c for c in selected]
