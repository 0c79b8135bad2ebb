"""Timestamp generation orchestration service."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from chaptergen.config import Settings, settings as default_settings
from chaptergen.errors import (
    GenerationFailedError,
    InputError,
    InputTooLargeError,
    NoValidEntriesError,
    ProposerError,
    ProposerUnavailableError,
    TargetCountNotMetError,
)
from chaptergen.models.analysis import PreparedTranscript
from chaptergen.models.chunk import Chunk, ChunkingOptions, ChunkSummary
from chaptergen.models.moment import GenerationResult, KeyMoment, MomentCandidate
from chaptergen.services.break_detector import BreakPointDetector
from chaptergen.services.chunker import ChunkSegmenter
from chaptergen.services.planner import TimestampPlanner
from chaptergen.services.proposer.base import IMomentProposer, format_chunk_transcript
from chaptergen.services.selector import CandidateSelector
from chaptergen.services.srt_parser import SRTParser
from chaptergen.services.video_analyzer import VideoAnalyzer

logger = logging.getLogger(__name__)

# Slack around a chunk's time range when accepting proposer timestamps
CHUNK_RANGE_TOLERANCE_SECONDS = 5.0

ChunkCallback = Callable[[int, int, str | None], None]


class TimestampGenerationService:
    """Runs the SRT to chapter-timestamp pipeline.

    Parsing, analysis, planning and chunking are synchronous. Only the
    proposer calls are concurrent: every chunk is proposed independently,
    failures are isolated per chunk, and the selector works with whatever
    candidates came back. No state is kept between runs, so re-running on
    the same input is safe.
    """

    def __init__(
        self,
        proposer: IMomentProposer | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the generation service.

        Args:
            proposer: Moment proposer used by ``generate``. ``prepare``
                works without one.
            settings: Limits and tuning values. Defaults to the global
                settings.
        """
        self._settings = settings or default_settings
        self._proposer = proposer

        self._parser = SRTParser()
        self._analyzer = VideoAnalyzer()
        self._planner = TimestampPlanner()
        self._detector = BreakPointDetector()
        self._segmenter = ChunkSegmenter(self._detector)
        self._selector = CandidateSelector(self._settings.duplicate_tolerance_seconds)

        self.chunking_options = ChunkingOptions(
            target_minutes=self._settings.chunk_target_minutes,
            max_minutes=self._settings.chunk_max_minutes,
            min_minutes=self._settings.chunk_min_minutes,
            overlap_seconds=self._settings.chunk_overlap_seconds,
        )

    @property
    def proposer(self) -> IMomentProposer | None:
        return self._proposer

    def summarize_chunks(self, chunks: list[Chunk]) -> ChunkSummary:
        return self._segmenter.summarize_chunks(chunks, self.chunking_options)

    def prepare(self, srt_content: str) -> PreparedTranscript:
        """Validate and analyze SRT content without calling the proposer.

        Raises:
            InputTooLargeError: If the content exceeds ``max_srt_bytes``.
            NoValidEntriesError: If no subtitle entry could be parsed.
        """
        size = len(srt_content.encode("utf-8"))
        if size > self._settings.max_srt_bytes:
            raise InputTooLargeError(
                f"SRT content is {size} bytes; the limit is {self._settings.max_srt_bytes} bytes"
            )

        entries = self._parser.parse(srt_content)
        if not entries:
            raise NoValidEntriesError("No valid subtitle entries found in SRT content")

        metadata = self._analyzer.analyze(entries)
        plan = self._planner.plan(metadata)
        break_points = self._detector.detect(entries)
        chunks = self._segmenter.segment(entries, self.chunking_options, break_points)

        warnings = [
            *self._analyzer.validate_structure(entries),
            *self._planner.validate_plan(plan, metadata),
            *self._segmenter.validate_chunks(chunks, self.chunking_options),
        ]

        logger.info(
            "Prepared %d entries (%.1f min): %d break points, %d chunks, target %d moments (%s)",
            len(entries),
            metadata.duration_minutes,
            len(break_points),
            len(chunks),
            plan.target_moment_count,
            plan.strategy_tier.value,
        )
        for warning in warnings:
            logger.warning(warning)

        return PreparedTranscript(
            entries=entries,
            metadata=metadata,
            plan=plan,
            break_points=break_points,
            chunks=chunks,
            warnings=warnings,
        )

    async def generate(
        self,
        srt_content: str,
        target_count: int | None = None,
        require_exact_count: bool = False,
        deadline_seconds: float | None = None,
        on_chunk_complete: ChunkCallback | None = None,
    ) -> GenerationResult:
        """Generate chapter timestamps for SRT content.

        Args:
            srt_content: Raw SRT text.
            target_count: Moments wanted. Defaults to the planner's target.
            require_exact_count: Raise instead of returning fewer moments
                than requested.
            deadline_seconds: Overall budget for proposer calls. Calls still
                running at the deadline are cancelled and the candidates
                already received are used.
            on_chunk_complete: Called as ``(chunk_id, candidate_count,
                error)`` whenever a chunk call finishes. Exceptions raised by
                the callback are logged and do not affect the run.

        Returns:
            GenerationResult with the selected moments in chronological
            order and every failed chunk listed with its reason.

        Raises:
            InputTooLargeError, NoValidEntriesError: On rejected input.
            InputError: If ``target_count`` is outside the configured range.
            ProposerUnavailableError: If no proposer is configured.
            GenerationFailedError: If no candidate survived.
            TargetCountNotMetError: If ``require_exact_count`` is set and
                fewer moments than requested were selected.
        """
        self.check_target_count(target_count)
        prepared = self.prepare(srt_content)
        return await self.generate_prepared(
            prepared,
            target_count=target_count,
            require_exact_count=require_exact_count,
            deadline_seconds=deadline_seconds,
            on_chunk_complete=on_chunk_complete,
        )

    def check_target_count(self, target_count: int | None) -> None:
        """Reject a requested count outside the configured range.

        Raises:
            InputError: If ``target_count`` is out of range.
        """
        if target_count is not None and not (
            self._settings.min_timestamp_count <= target_count <= self._settings.max_timestamp_count
        ):
            raise InputError(
                f"Requested {target_count} timestamps; allowed range is "
                f"{self._settings.min_timestamp_count}-{self._settings.max_timestamp_count}"
            )

    async def generate_prepared(
        self,
        prepared: PreparedTranscript,
        target_count: int | None = None,
        require_exact_count: bool = False,
        deadline_seconds: float | None = None,
        on_chunk_complete: ChunkCallback | None = None,
    ) -> GenerationResult:
        """Run the proposer and selection stages on an already prepared transcript.

        Same arguments and errors as ``generate``, minus the input checks
        done by ``prepare``.
        """
        self.check_target_count(target_count)
        if self._proposer is None:
            raise ProposerUnavailableError("No moment proposer configured")

        plan = prepared.plan
        requested = target_count if target_count is not None else plan.target_moment_count
        per_chunk = plan.model_copy(update={"target_moment_count": requested}).moments_per_chunk(
            len(prepared.chunks)
        )

        candidates, failed_chunks = await self._propose_all(
            prepared, per_chunk, deadline_seconds, on_chunk_complete
        )

        if failed_chunks:
            logger.warning(
                "%d of %d chunks failed: %s",
                len(failed_chunks),
                len(prepared.chunks),
                ", ".join(str(chunk_id) for chunk_id in sorted(failed_chunks)),
            )

        if not candidates:
            details = "; ".join(f"chunk {cid}: {msg}" for cid, msg in sorted(failed_chunks.items()))
            raise GenerationFailedError(
                "No moment candidates were produced" + (f". Details: {details}" if details else ""),
                failed_chunks=failed_chunks,
            )

        selection = self._selector.select_detailed(
            candidates, requested, prepared.metadata.duration_seconds
        )

        if require_exact_count and not selection.target_met:
            raise TargetCountNotMetError(
                f"Selected {len(selection.moments)} of {requested} requested moments",
                failed_chunks=failed_chunks,
            )

        warnings = [*prepared.warnings, *selection.warnings]
        if failed_chunks:
            warnings.append(
                f"{len(failed_chunks)} of {len(prepared.chunks)} chunks failed; results may be incomplete"
            )

        logger.info(
            "Selected %d of %d candidates (requested %d)",
            len(selection.moments),
            len(candidates),
            requested,
        )

        return GenerationResult(
            key_moments=[
                KeyMoment(time=m.timestamp, description=m.description) for m in selection.moments
            ],
            moments=selection.moments,
            metadata=prepared.metadata,
            plan=plan,
            requested_count=requested,
            target_met=selection.target_met,
            chunk_count=len(prepared.chunks),
            failed_chunks=failed_chunks,
            candidate_count=len(candidates),
            warnings=warnings,
        )

    async def _propose_all(
        self,
        prepared: PreparedTranscript,
        per_chunk: int,
        deadline_seconds: float | None,
        on_chunk_complete: ChunkCallback | None,
    ) -> tuple[list[MomentCandidate], dict[int, str]]:
        """Fan chunks out to the proposer and collect the results.

        Returns:
            Tuple of (merged candidates, chunk id to failure reason).
        """
        is_long = prepared.metadata.is_long_content
        tier = prepared.plan.strategy_tier.value
        semaphore = asyncio.Semaphore(max(1, self._settings.max_concurrent_chunks))
        timeout = self._settings.chunk_timeout_seconds

        async def _run_chunk(
            chunk: Chunk,
        ) -> tuple[int, list[MomentCandidate] | None, str | None]:
            """Run a single chunk, capturing any exception.

            Returns:
                Tuple of (chunk_id, candidates_or_None, error_or_None).
            """
            async with semaphore:
                try:
                    raw = await asyncio.wait_for(
                        self._proposer.propose(
                            format_chunk_transcript(chunk, is_long),
                            chunk.duration_minutes,
                            per_chunk,
                            tier,
                        ),
                        timeout=timeout,
                    )
                    result = (chunk.id, self._accept_candidates(chunk, raw), None)
                except asyncio.TimeoutError:
                    result = (chunk.id, None, f"timed out after {timeout:g}s")
                except Exception as exc:
                    result = (chunk.id, None, str(exc) or exc.__class__.__name__)

            if on_chunk_complete is not None:
                chunk_id, accepted, error = result
                try:
                    on_chunk_complete(chunk_id, len(accepted or []), error)
                except Exception:
                    logger.exception("Progress callback failed for chunk %d", chunk_id)
            return result

        tasks = [asyncio.create_task(_run_chunk(chunk)) for chunk in prepared.chunks]
        try:
            done, pending = await asyncio.wait(tasks, timeout=deadline_seconds)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        failed_chunks: dict[int, str] = {}
        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(
                "Deadline of %gs reached with %d chunk call(s) still running",
                deadline_seconds,
                len(pending),
            )

        candidates: list[MomentCandidate] = []
        for chunk, task in zip(prepared.chunks, tasks):
            if task in pending:
                failed_chunks[chunk.id] = "cancelled at deadline"
                continue
            chunk_id, accepted, error = task.result()
            if error is not None:
                failed_chunks[chunk_id] = error
                logger.warning("Chunk %d failed: %s", chunk_id, error)
            else:
                candidates.extend(accepted)

        return candidates, failed_chunks

    def _accept_candidates(self, chunk: Chunk, raw: Any) -> list[MomentCandidate]:
        """Validate proposer output for one chunk.

        Malformed items and timestamps outside the chunk are dropped; a
        result that is not a list rejects the whole chunk.

        Raises:
            ProposerError: If the proposer did not return a list.
        """
        if not isinstance(raw, list):
            raise ProposerError(f"Proposer returned {type(raw).__name__} instead of a list")

        accepted: list[MomentCandidate] = []
        for item in raw:
            if isinstance(item, MomentCandidate):
                candidate = item
            elif isinstance(item, dict):
                try:
                    candidate = MomentCandidate.model_validate(item)
                except ValidationError:
                    continue
            else:
                continue

            if not chunk.contains(candidate.seconds, CHUNK_RANGE_TOLERANCE_SECONDS):
                continue
            accepted.append(candidate.model_copy(update={"chunk_id": chunk.id}))

        rejected = len(raw) - len(accepted)
        if rejected:
            logger.warning("Chunk %d: rejected %d of %d proposed moment(s)", chunk.id, rejected, len(raw))
        return accepted
