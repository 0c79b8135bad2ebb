"""Timestamp-count and processing-strategy planning."""

import math

from chaptergen.models.analysis import (
    ContentDensity,
    ContentDensityAnalysis,
    LengthCategory,
    QualityExpectation,
    StrategyTier,
    TimestampPlan,
    VideoMetadata,
)

TARGET_CHUNK_MINUTES = 6
MIN_CHUNKS = 2
MAX_CHUNKS = 20

ENTERPRISE_MINUTES = 240
PREMIUM_MOMENT_COUNT = 10
BASIC_MOMENT_COUNT = 5

# Seconds of proposer work per chunk for each tier
_SECONDS_PER_CHUNK = {
    StrategyTier.SIMPLE: 3,
    StrategyTier.STANDARD: 5,
    StrategyTier.COMPLEX: 8,
    StrategyTier.ENTERPRISE: 12,
}
_COORDINATION_SECONDS = 10

_TOPIC_CHANGE_FREQUENCY = {
    ContentDensity.LOW: 0.3,
    ContentDensity.MEDIUM: 0.5,
    ContentDensity.HIGH: 0.7,
}


def target_moment_count(duration_minutes: float) -> int:
    """Moments to aim for; grows slower than duration for long videos."""
    if duration_minutes <= 30:
        return 5
    if duration_minutes <= 60:
        return 7
    if duration_minutes <= 90:
        return 9
    if duration_minutes <= 120:
        return 10
    return min(12, math.floor(duration_minutes / 12))


def target_chunk_count(duration_minutes: float) -> int:
    ideal = math.ceil(duration_minutes / TARGET_CHUNK_MINUTES)
    return max(MIN_CHUNKS, min(MAX_CHUNKS, ideal))


class TimestampPlanner:
    """Derives advisory targets for the proposer and the selector."""

    def analyze_content_density(self, metadata: VideoMetadata) -> ContentDensityAnalysis:
        """Blend speech rate, pauses and topic churn into a complexity score.

        Each signal is normalized to [0, 1] and weighted 0.4 / 0.3 / 0.3.
        """
        wpm_signal = min(metadata.estimated_words_per_minute / 200, 1.0)
        pause_frequency = 0.8 if metadata.has_long_pauses else 0.3
        topic_change_frequency = _TOPIC_CHANGE_FREQUENCY[metadata.content_density]

        complexity = min(
            1.0,
            wpm_signal * 0.4 + pause_frequency * 0.3 + topic_change_frequency * 0.3,
        )

        return ContentDensityAnalysis(
            words_per_minute=metadata.estimated_words_per_minute,
            pause_frequency=pause_frequency,
            topic_change_frequency=topic_change_frequency,
            complexity_score=round(complexity, 3),
        )

    def determine_strategy(self, metadata: VideoMetadata, complexity_score: float) -> StrategyTier:
        if metadata.duration_minutes > ENTERPRISE_MINUTES:
            return StrategyTier.ENTERPRISE
        if metadata.length_category == LengthCategory.VERY_LONG or complexity_score > 0.8:
            return StrategyTier.COMPLEX
        if metadata.length_category == LengthCategory.SHORT and complexity_score < 0.4:
            return StrategyTier.SIMPLE
        return StrategyTier.STANDARD

    def determine_quality_expectation(
        self, tier: StrategyTier, moment_count: int
    ) -> QualityExpectation:
        if tier == StrategyTier.SIMPLE and moment_count <= BASIC_MOMENT_COUNT:
            return QualityExpectation.BASIC
        if tier == StrategyTier.ENTERPRISE or moment_count >= PREMIUM_MOMENT_COUNT:
            return QualityExpectation.PREMIUM
        if tier == StrategyTier.COMPLEX:
            return QualityExpectation.EXCELLENT
        return QualityExpectation.GOOD

    def plan(self, metadata: VideoMetadata) -> TimestampPlan:
        """Build the plan for a video.

        Args:
            metadata: Output of VideoAnalyzer.analyze.

        Returns:
            TimestampPlan with moment and chunk targets, the strategy tier,
            the expected output quality and a rough processing-time estimate.
        """
        minutes = metadata.duration_minutes
        density = self.analyze_content_density(metadata)
        tier = self.determine_strategy(metadata, density.complexity_score)
        chunks = target_chunk_count(minutes)
        moments = target_moment_count(minutes)

        estimate = math.ceil(
            chunks * _SECONDS_PER_CHUNK[tier]
            + _COORDINATION_SECONDS
            + max(5, chunks * 0.5)
        )

        return TimestampPlan(
            target_moment_count=moments,
            target_chunk_count=chunks,
            strategy_tier=tier,
            quality_expectation=self.determine_quality_expectation(tier, moments),
            complexity_score=density.complexity_score,
            chunk_duration_minutes=round(minutes / chunks, 2) if chunks else 0.0,
            estimated_processing_seconds=estimate,
        )

    def validate_plan(self, plan: TimestampPlan, metadata: VideoMetadata) -> list[str]:
        """Warnings about inputs the plan is unlikely to serve well."""
        warnings: list[str] = []
        if metadata.duration_minutes > 300:
            warnings.append("Very long video, processing may take significant time")
        if metadata.estimated_words_per_minute > 200:
            warnings.append("High speech density, timestamps may be less precise")
        elif 0 < metadata.estimated_words_per_minute < 80:
            warnings.append("Low speech density, some timestamps may be less meaningful")
        if plan.estimated_processing_seconds > 120:
            warnings.append("Long processing time expected")
        return warnings
