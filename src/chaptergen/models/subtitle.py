"""Subtitle entry model."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SubtitleEntry(BaseModel):
    """A single cue parsed from an SRT file."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0, description="Sequence number as declared in the file")
    start_seconds: float = Field(..., ge=0.0, description="Start offset in seconds")
    end_seconds: float = Field(..., ge=0.0, description="End offset in seconds")
    text: str = Field(default="", description="Cue text, lines joined with spaces")

    @model_validator(mode="after")
    def validate_range(self) -> "SubtitleEntry":
        """Ensure the cue does not end before it starts."""
        if self.end_seconds < self.start_seconds:
            raise ValueError("end_seconds must not be before start_seconds")
        return self

    @property
    def duration_seconds(self) -> float:
        """Return cue duration in seconds."""
        return self.end_seconds - self.start_seconds

    @property
    def word_count(self) -> int:
        """Number of whitespace-separated words in the cue text."""
        return len(self.text.split())
