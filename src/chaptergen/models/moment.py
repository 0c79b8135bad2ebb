"""Moment candidate and generation result models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from chaptergen.models.analysis import TimestampPlan, VideoMetadata
from chaptergen.services.timecode import parse_timestamp


class MomentCategory(str, Enum):
    """Kind of navigable moment."""

    INTRODUCTION_OVERVIEW = "introduction_overview"
    FUNCTIONAL_DEMONSTRATION = "functional_demonstration"
    TOPIC_SHIFT = "topic_shift"
    COMPLEX_CONCEPT = "complex_concept"
    EXAMPLE_BUILD = "example_build"
    CONCLUSION = "conclusion"
    TRANSITION = "transition"
    GENERAL_CONTENT = "general_content"


class MomentCandidate(BaseModel):
    """A proposed chapter marker."""

    timestamp: str = Field(..., description="MM:SS or HH:MM:SS offset")
    description: str = Field(..., min_length=1, description="Short action-first label")
    category: MomentCategory = MomentCategory.GENERAL_CONTENT
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    importance: float = Field(default=0.5, ge=0.0, le=1.0)
    chunk_id: int | None = Field(default=None, description="Chunk that proposed this moment")

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, value: str) -> str:
        """Reject timestamps the time codec cannot read."""
        value = value.strip()
        parse_timestamp(value)
        return value

    @field_validator("description")
    @classmethod
    def strip_description(cls, value: str) -> str:
        value = " ".join(value.split())
        if not value:
            raise ValueError("description must not be blank")
        return value

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, value: Any) -> Any:
        """Map unknown category labels to general_content."""
        if isinstance(value, MomentCategory):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower().replace(" ", "_").replace("-", "_")
            try:
                return MomentCategory(normalized)
            except ValueError:
                pass
        return MomentCategory.GENERAL_CONTENT

    @property
    def seconds(self) -> float:
        """Timestamp as seconds from video start."""
        return parse_timestamp(self.timestamp)

    @property
    def description_word_count(self) -> int:
        return len(self.description.split())


class KeyMoment(BaseModel):
    """Final output element handed to the presentation layer."""

    time: str
    description: str


class SelectionResult(BaseModel):
    """Outcome of candidate selection."""

    moments: list[MomentCandidate] = Field(default_factory=list)
    requested_count: int = 0
    target_met: bool = False
    duplicate_count: int = 0
    dropped_count: int = 0
    warnings: list[str] = Field(default_factory=list)


class GenerationResult(BaseModel):
    """Full pipeline result for one SRT input."""

    key_moments: list[KeyMoment] = Field(default_factory=list)
    moments: list[MomentCandidate] = Field(default_factory=list)
    metadata: VideoMetadata
    plan: TimestampPlan
    requested_count: int = 0
    target_met: bool = False
    chunk_count: int = 0
    failed_chunks: dict[int, str] = Field(
        default_factory=dict, description="Chunk id to failure reason"
    )
    candidate_count: int = 0
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        """Whether some chunks contributed nothing because they failed."""
        return bool(self.failed_chunks)

    def to_chapter_text(self) -> str:
        """Render as ``time description`` lines for a video description."""
        return "\n".join(f"{m.time} {m.description}" for m in self.key_moments)
