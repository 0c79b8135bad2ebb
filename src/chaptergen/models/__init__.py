"""Data models for chaptergen."""

from chaptergen.models.analysis import (
    ContentDensity,
    ContentDensityAnalysis,
    LengthCategory,
    PreparedTranscript,
    QualityExpectation,
    StrategyTier,
    TimestampPlan,
    VideoMetadata,
)
from chaptergen.models.chunk import (
    BreakPoint,
    BreakReason,
    Chunk,
    ChunkingOptions,
    ChunkSummary,
)
from chaptergen.models.moment import (
    GenerationResult,
    KeyMoment,
    MomentCandidate,
    MomentCategory,
    SelectionResult,
)
from chaptergen.models.subtitle import SubtitleEntry

__all__ = [
    # Subtitle
    "SubtitleEntry",
    # Analysis
    "ContentDensity",
    "ContentDensityAnalysis",
    "LengthCategory",
    "PreparedTranscript",
    "QualityExpectation",
    "StrategyTier",
    "TimestampPlan",
    "VideoMetadata",
    # Chunking
    "BreakPoint",
    "BreakReason",
    "Chunk",
    "ChunkingOptions",
    "ChunkSummary",
    # Moments
    "GenerationResult",
    "KeyMoment",
    "MomentCandidate",
    "MomentCategory",
    "SelectionResult",
]
