"""Break point and chunk models."""

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from chaptergen.models.subtitle import SubtitleEntry


class BreakReason(str, Enum):
    """Cue that made a boundary look natural."""

    LONG_PAUSE = "long_pause"
    TOPIC_CHANGE = "topic_change"
    SECTION_BREAK = "section_break"


class BreakPoint(BaseModel):
    """Candidate boundary between ``entries[after_entry_index]`` and the next entry."""

    after_entry_index: int = Field(..., ge=0, description="Index of the entry before the boundary")
    timestamp_seconds: float = Field(..., ge=0.0, description="Start time of the entry after the boundary")
    confidence: float = Field(..., ge=0.0, le=1.0)
    reason: BreakReason


class ChunkingOptions(BaseModel):
    """Duration bounds and overlap for the chunk segmenter."""

    target_minutes: float = Field(default=6.0, gt=0.0)
    max_minutes: float = Field(default=8.0, gt=0.0)
    min_minutes: float = Field(default=4.0, ge=0.0)
    overlap_seconds: float = Field(default=30.0, ge=0.0)
    respect_natural_breaks: bool = True
    min_break_confidence: float = Field(default=0.4, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_bounds(self) -> "ChunkingOptions":
        """Ensure min <= target <= max."""
        if not self.min_minutes <= self.target_minutes <= self.max_minutes:
            raise ValueError("expected min_minutes <= target_minutes <= max_minutes")
        return self

    @property
    def target_seconds(self) -> float:
        return self.target_minutes * 60

    @property
    def max_seconds(self) -> float:
        return self.max_minutes * 60

    @property
    def min_seconds(self) -> float:
        return self.min_minutes * 60


class Chunk(BaseModel):
    """Contiguous run of entries sent to the moment proposer as one unit."""

    id: int = Field(..., ge=1, description="1-based position in the chunk list")
    start_seconds: float = Field(..., ge=0.0)
    end_seconds: float = Field(..., ge=0.0)
    duration_minutes: float = Field(..., ge=0.0)
    entries: list[SubtitleEntry] = Field(default_factory=list)
    word_count: int = Field(default=0, ge=0)
    is_intro: bool = False
    is_outro: bool = False
    has_natural_break: bool = False
    break_point_reason: BreakReason | None = None
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    @property
    def duration_seconds(self) -> float:
        return self.end_seconds - self.start_seconds

    @property
    def text(self) -> str:
        """Plain transcript text of the chunk."""
        return " ".join(entry.text for entry in self.entries if entry.text)

    def contains(self, seconds: float, tolerance: float = 0.0) -> bool:
        """Check if a time offset falls inside this chunk (inclusive)."""
        return self.start_seconds - tolerance <= seconds <= self.end_seconds + tolerance


class ChunkSummary(BaseModel):
    """Aggregate quality report over a chunk list."""

    total_chunks: int = 0
    average_chunk_minutes: float = 0.0
    natural_break_count: int = 0
    overlap_seconds: float = 0.0
    quality_score: int = Field(default=0, ge=0, le=100)
    processing_hints: list[str] = Field(default_factory=list)
