"""Video metadata and planning models."""

import math
from enum import Enum

from pydantic import BaseModel, Field

from chaptergen.models.chunk import BreakPoint, Chunk
from chaptergen.models.subtitle import SubtitleEntry
from chaptergen.services.timecode import LONG_CONTENT_SECONDS


class ContentDensity(str, Enum):
    """Speech density bucket derived from words per minute."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LengthCategory(str, Enum):
    """Coarse video length bucket."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"
    VERY_LONG = "very_long"


class StrategyTier(str, Enum):
    """Processing strategy hint passed to the moment proposer."""

    SIMPLE = "simple"
    STANDARD = "standard"
    COMPLEX = "complex"
    ENTERPRISE = "enterprise"


class QualityExpectation(str, Enum):
    """Expected quality of the generated chapter list."""

    BASIC = "basic"
    GOOD = "good"
    EXCELLENT = "excellent"
    PREMIUM = "premium"


class VideoMetadata(BaseModel):
    """Statistics computed once from the parsed subtitle entries."""

    duration_seconds: float = Field(default=0.0, ge=0.0, description="Latest cue end time")
    duration_minutes: float = Field(default=0.0, ge=0.0, description="duration_seconds / 60")
    total_entries: int = Field(default=0, ge=0)
    average_entry_duration: float = Field(default=0.0, ge=0.0, description="Mean cue length in seconds")
    estimated_words_per_minute: int = Field(default=0, ge=0)
    content_density: ContentDensity = ContentDensity.LOW
    has_long_pauses: bool = False
    length_category: LengthCategory = LengthCategory.SHORT

    @property
    def is_long_content(self) -> bool:
        """Whether timestamps should be rendered as HH:MM:SS."""
        return self.duration_seconds >= LONG_CONTENT_SECONDS


class ContentDensityAnalysis(BaseModel):
    """Normalized signals blended into the complexity score."""

    words_per_minute: int = 0
    pause_frequency: float = Field(default=0.0, ge=0.0, le=1.0)
    topic_change_frequency: float = Field(default=0.0, ge=0.0, le=1.0)
    complexity_score: float = Field(default=0.0, ge=0.0, le=1.0)


class TimestampPlan(BaseModel):
    """Advisory targets for the proposer and the candidate selector."""

    target_moment_count: int = Field(..., ge=0, description="Moments to keep in the final list")
    target_chunk_count: int = Field(..., ge=0, description="Ideal number of chunks")
    strategy_tier: StrategyTier = StrategyTier.STANDARD
    quality_expectation: QualityExpectation = QualityExpectation.GOOD
    complexity_score: float = Field(default=0.0, ge=0.0, le=1.0)
    chunk_duration_minutes: float = Field(default=0.0, ge=0.0)
    estimated_processing_seconds: int = Field(default=0, ge=0)

    def moments_per_chunk(self, chunk_count: int) -> int:
        """Candidates to request from each proposer call.

        Asks for roughly 1.5x the share of the target so the selector has
        room to choose, bounded to the 1-5 range proposers are expected to
        return.
        """
        if chunk_count <= 0:
            return 0
        wanted = math.ceil(self.target_moment_count * 1.5 / chunk_count)
        return max(1, min(5, wanted))


class PreparedTranscript(BaseModel):
    """Everything computed from an SRT before any proposer call."""

    entries: list[SubtitleEntry] = Field(default_factory=list)
    metadata: VideoMetadata
    plan: TimestampPlan
    break_points: list[BreakPoint] = Field(default_factory=list)
    chunks: list[Chunk] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list, description="Non-fatal diagnostics")
