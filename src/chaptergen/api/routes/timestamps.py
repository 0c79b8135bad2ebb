"""Timestamp analysis and generation endpoints."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from chaptergen.api.deps import get_generation_service
from chaptergen.api.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    ChunkInfo,
    GenerateRequest,
    GenerateResponse,
)
from chaptergen.errors import ChaptergenError, GenerationFailedError, ProposerUnavailableError
from chaptergen.services.generation import TimestampGenerationService
from chaptergen.services.timecode import to_readable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/timestamps", tags=["timestamps"])


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(
    req: AnalyzeRequest,
    service: TimestampGenerationService = Depends(get_generation_service),
) -> AnalyzeResponse:
    """Analyze SRT content and show how it would be chunked."""
    prepared = service.prepare(req.srt_content)
    is_long = prepared.metadata.is_long_content

    chunks = [
        ChunkInfo(
            id=chunk.id,
            start=to_readable(chunk.start_seconds, is_long),
            end=to_readable(chunk.end_seconds, is_long),
            duration_minutes=chunk.duration_minutes,
            entry_count=chunk.entry_count,
            word_count=chunk.word_count,
            has_natural_break=chunk.has_natural_break,
            break_point_reason=chunk.break_point_reason.value if chunk.break_point_reason else None,
            confidence=chunk.confidence,
        )
        for chunk in prepared.chunks
    ]

    return AnalyzeResponse(
        metadata=prepared.metadata,
        plan=prepared.plan,
        chunks=chunks,
        chunk_summary=service.summarize_chunks(prepared.chunks),
        break_point_count=len(prepared.break_points),
        warnings=prepared.warnings,
    )


@router.post("/generate", response_model=GenerateResponse)
async def generate(
    req: GenerateRequest,
    service: TimestampGenerationService = Depends(get_generation_service),
) -> GenerateResponse:
    """Generate chapter timestamps for SRT content."""
    result = await service.generate(
        req.srt_content,
        target_count=req.num_timestamps,
        require_exact_count=req.require_exact_count,
        deadline_seconds=req.deadline_seconds,
    )

    return GenerateResponse(
        key_moments=result.key_moments,
        moments=result.moments,
        requested_count=result.requested_count,
        target_met=result.target_met,
        chunk_count=result.chunk_count,
        candidate_count=result.candidate_count,
        failed_chunks=result.failed_chunks,
        is_partial=result.is_partial,
        warnings=result.warnings,
        metadata=result.metadata,
        plan=result.plan,
    )


def _ndjson(event: dict) -> str:
    return json.dumps(event, ensure_ascii=False) + "\n"


@router.post("/generate/stream")
async def generate_stream(
    req: GenerateRequest,
    service: TimestampGenerationService = Depends(get_generation_service),
) -> StreamingResponse:
    """Generate timestamps as newline-delimited JSON events.

    Emits one ``chunk`` event per finished proposer call, then one
    ``moment`` event per selected moment and a closing ``summary`` event.
    A failure after streaming has started is sent as an ``error`` event.
    Input problems are still rejected with a normal error status.
    """
    # Reject bad input before the response starts
    service.check_target_count(req.num_timestamps)
    prepared = service.prepare(req.srt_content)
    if service.proposer is None:
        raise ProposerUnavailableError("No moment proposer configured")

    queue: asyncio.Queue[dict] = asyncio.Queue()

    def on_chunk_complete(chunk_id: int, candidate_count: int, error: str | None) -> None:
        queue.put_nowait(
            {
                "type": "chunk",
                "chunk_id": chunk_id,
                "total_chunks": len(prepared.chunks),
                "candidate_count": candidate_count,
                "error": error,
            }
        )

    async def run() -> None:
        try:
            result = await service.generate_prepared(
                prepared,
                target_count=req.num_timestamps,
                require_exact_count=req.require_exact_count,
                deadline_seconds=req.deadline_seconds,
                on_chunk_complete=on_chunk_complete,
            )
        except ChaptergenError as exc:
            queue.put_nowait(
                {
                    "type": "error",
                    "error": type(exc).__name__,
                    "detail": str(exc),
                    "retryable": isinstance(exc, GenerationFailedError),
                }
            )
        except Exception as exc:
            logger.exception("Timestamp stream failed")
            queue.put_nowait(
                {"type": "error", "error": type(exc).__name__, "detail": str(exc), "retryable": True}
            )
        else:
            for moment in result.key_moments:
                queue.put_nowait({"type": "moment", "time": moment.time, "description": moment.description})
            queue.put_nowait(
                {
                    "type": "summary",
                    "requested_count": result.requested_count,
                    "target_met": result.target_met,
                    "chunk_count": result.chunk_count,
                    "failed_chunks": {str(k): v for k, v in result.failed_chunks.items()},
                    "warnings": result.warnings,
                }
            )

    async def events() -> AsyncIterator[str]:
        task = asyncio.create_task(run())
        try:
            while True:
                event = await queue.get()
                yield _ndjson(event)
                if event["type"] in ("summary", "error"):
                    break
        finally:
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    return StreamingResponse(events(), media_type="application/x-ndjson")
