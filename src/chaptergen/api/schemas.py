"""Request and response schemas for the chaptergen API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from chaptergen.models import (
    ChunkSummary,
    KeyMoment,
    MomentCandidate,
    TimestampPlan,
    VideoMetadata,
)


# ------------------------------------------------------------------
# Requests
# ------------------------------------------------------------------


class AnalyzeRequest(BaseModel):
    srt_content: str = Field(..., description="Raw SRT subtitle text")


class GenerateRequest(BaseModel):
    srt_content: str = Field(..., description="Raw SRT subtitle text")
    num_timestamps: int | None = Field(
        None, description="Moments to generate (default: planner target)"
    )
    require_exact_count: bool = Field(
        False, description="Fail instead of returning fewer moments than requested"
    )
    deadline_seconds: float | None = Field(
        None, gt=0, description="Budget for proposer calls; partial results after it"
    )


# ------------------------------------------------------------------
# Responses
# ------------------------------------------------------------------


class ChunkInfo(BaseModel):
    id: int
    start: str
    end: str
    duration_minutes: float
    entry_count: int
    word_count: int
    has_natural_break: bool
    break_point_reason: str | None = None
    confidence: float


class AnalyzeResponse(BaseModel):
    metadata: VideoMetadata
    plan: TimestampPlan
    chunks: list[ChunkInfo] = Field(default_factory=list)
    chunk_summary: ChunkSummary
    break_point_count: int = 0
    warnings: list[str] = Field(default_factory=list)


class GenerateResponse(BaseModel):
    key_moments: list[KeyMoment] = Field(default_factory=list)
    moments: list[MomentCandidate] = Field(default_factory=list)
    requested_count: int
    target_met: bool
    chunk_count: int
    candidate_count: int
    failed_chunks: dict[int, str] = Field(default_factory=dict)
    is_partial: bool = False
    warnings: list[str] = Field(default_factory=list)
    metadata: VideoMetadata
    plan: TimestampPlan


class ErrorResponse(BaseModel):
    error: str
    detail: str
    retryable: bool = False
    failed_chunks: dict[int, str] = Field(default_factory=dict)
