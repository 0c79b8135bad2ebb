"""Tests for the timestamp generation service."""

import asyncio
import re
from unittest.mock import AsyncMock, MagicMock

import pytest

from chaptergen.config import Settings
from chaptergen.errors import (
    GenerationFailedError,
    InputError,
    InputTooLargeError,
    NoValidEntriesError,
    ProposerError,
    ProposerUnavailableError,
    TargetCountNotMetError,
)
from chaptergen.models import ContentDensity, LengthCategory, MomentCandidate
from chaptergen.services.chunker import ChunkSegmenter
from chaptergen.services.generation import TimestampGenerationService
from chaptergen.services.selector import CandidateSelector
from chaptergen.services.srt_parser import SRTParser
from chaptergen.services.timecode import parse_timestamp
from chaptergen.services.video_analyzer import VideoAnalyzer

from srt_samples import build_srt


def _stamps(chunk_text: str) -> list[str]:
    return [line[1 : line.index("]")] for line in chunk_text.split("\n") if line.startswith("[")]


async def _first_and_middle(chunk_text, duration, target, tier):
    stamps = _stamps(chunk_text)
    return [
        MomentCandidate(timestamp=stamps[0], description="Starting a new part", confidence=0.8),
        MomentCandidate(
            timestamp=stamps[len(stamps) // 2], description="Explaining the details", confidence=0.7
        ),
    ]


def _make_proposer(side_effect) -> MagicMock:
    proposer = MagicMock()
    proposer.name = "stub"
    proposer.is_available = True
    proposer.propose = AsyncMock(side_effect=side_effect)
    return proposer


def _is_first_chunk(chunk_text: str) -> bool:
    return chunk_text.startswith("[00:00]") or chunk_text.startswith("[00:00:00]")


class TestPrepare:
    def setup_method(self) -> None:
        self.service = TimestampGenerationService(settings=Settings())

    def test_prepare_without_proposer(self) -> None:
        prepared = self.service.prepare(build_srt(20))
        assert prepared.metadata.duration_minutes == pytest.approx(20, abs=0.1)
        assert prepared.plan.target_moment_count == 5
        assert len(prepared.chunks) >= 3
        assert prepared.chunks[0].is_intro

    def test_too_large(self) -> None:
        service = TimestampGenerationService(settings=Settings(max_srt_bytes=100))
        with pytest.raises(InputTooLargeError) as exc_info:
            service.prepare(build_srt(5))
        assert exc_info.value.status_code == 413

    def test_no_entries(self) -> None:
        with pytest.raises(NoValidEntriesError) as exc_info:
            self.service.prepare("this is not an srt file")
        assert exc_info.value.status_code == 400


class TestGenerate:
    def setup_method(self) -> None:
        self.settings = Settings()
        self.srt = build_srt(20)

    def _make_service(self, side_effect, settings: Settings | None = None) -> TimestampGenerationService:
        return TimestampGenerationService(
            proposer=_make_proposer(side_effect), settings=settings or self.settings
        )

    @pytest.mark.asyncio
    async def test_generates_target_count(self) -> None:
        service = self._make_service(_first_and_middle)
        result = await service.generate(self.srt)

        assert result.requested_count == 5
        assert len(result.key_moments) == 5
        assert result.target_met is True
        assert result.failed_chunks == {}
        assert result.is_partial is False
        seconds = [parse_timestamp(m.time) for m in result.key_moments]
        assert seconds == sorted(seconds)
        assert all(m.chunk_id is not None for m in result.moments)
        assert service.proposer.propose.await_count == result.chunk_count

    @pytest.mark.asyncio
    async def test_proposer_receives_chunk_context(self) -> None:
        service = self._make_service(_first_and_middle)
        result = await service.generate(self.srt, target_count=8)

        chunk_text, duration, target, tier = service.proposer.propose.await_args_list[0].args
        assert chunk_text.startswith("[00:00] ")
        assert 4 <= duration <= 8
        assert 1 <= target <= 5
        assert tier == result.plan.strategy_tier.value

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_other_chunks(self) -> None:
        async def side_effect(chunk_text, duration, target, tier):
            if _is_first_chunk(chunk_text):
                raise ProposerError("model unavailable")
            return await _first_and_middle(chunk_text, duration, target, tier)

        result = await self._make_service(side_effect).generate(self.srt)

        assert result.failed_chunks == {1: "model unavailable"}
        assert result.is_partial is True
        assert result.key_moments
        assert any("1 of" in w and "chunks failed" in w for w in result.warnings)

    @pytest.mark.asyncio
    async def test_all_chunks_fail(self) -> None:
        service = self._make_service(ProposerError("quota exceeded"))
        chunk_count = len(service.prepare(self.srt).chunks)

        with pytest.raises(GenerationFailedError) as exc_info:
            await service.generate(self.srt)

        assert exc_info.value.retryable is True
        assert len(exc_info.value.failed_chunks) == chunk_count
        assert "quota exceeded" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_deadline_keeps_finished_chunks(self) -> None:
        async def side_effect(chunk_text, duration, target, tier):
            if _is_first_chunk(chunk_text):
                await asyncio.sleep(10)
            return await _first_and_middle(chunk_text, duration, target, tier)

        result = await self._make_service(side_effect).generate(self.srt, deadline_seconds=0.5)

        assert result.failed_chunks == {1: "cancelled at deadline"}
        assert result.key_moments

    @pytest.mark.asyncio
    async def test_chunk_timeout(self) -> None:
        async def side_effect(chunk_text, duration, target, tier):
            if _is_first_chunk(chunk_text):
                await asyncio.sleep(10)
            return await _first_and_middle(chunk_text, duration, target, tier)

        service = self._make_service(side_effect, Settings(chunk_timeout_seconds=0.1))
        result = await service.generate(self.srt)

        assert result.failed_chunks == {1: "timed out after 0.1s"}

    @pytest.mark.asyncio
    async def test_chunk_callback(self) -> None:
        seen: list[tuple[int, int, str | None]] = []
        service = self._make_service(_first_and_middle)

        result = await service.generate(
            self.srt, on_chunk_complete=lambda cid, count, error: seen.append((cid, count, error))
        )

        assert sorted(cid for cid, _, _ in seen) == list(range(1, result.chunk_count + 1))
        assert all(count == 2 and error is None for _, count, error in seen)

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_abort_run(self) -> None:
        def on_chunk_complete(chunk_id, count, error):
            raise RuntimeError("listener went away")

        service = self._make_service(_first_and_middle)
        result = await service.generate(self.srt, on_chunk_complete=on_chunk_complete)

        assert len(result.key_moments) == 5
        assert result.failed_chunks == {}

    @pytest.mark.asyncio
    async def test_cancelling_run_cancels_in_flight_calls(self) -> None:
        started: list[str] = []
        cancelled: list[str] = []

        async def side_effect(chunk_text, duration, target, tier):
            started.append(chunk_text)
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(chunk_text)
                raise
            return []

        service = self._make_service(side_effect, Settings(max_concurrent_chunks=8))
        chunk_count = len(service.prepare(self.srt).chunks)

        task = asyncio.create_task(service.generate(self.srt))
        for _ in range(200):
            if len(started) == chunk_count:
                break
            await asyncio.sleep(0.01)
        assert len(started) == chunk_count

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert sorted(cancelled) == sorted(started)

    @pytest.mark.asyncio
    async def test_exact_count_not_met(self) -> None:
        async def side_effect(chunk_text, duration, target, tier):
            if _is_first_chunk(chunk_text):
                return [MomentCandidate(timestamp="00:00", description="Introducing the talk")]
            return []

        service = self._make_service(side_effect)

        with pytest.raises(TargetCountNotMetError):
            await service.generate(self.srt, target_count=5, require_exact_count=True)

        result = await service.generate(self.srt, target_count=5)
        assert result.target_met is False
        assert len(result.key_moments) == 1
        assert any("Only 1 of 5" in w for w in result.warnings)

    @pytest.mark.asyncio
    async def test_out_of_range_and_malformed_items_dropped(self) -> None:
        async def side_effect(chunk_text, duration, target, tier):
            return [
                {"timestamp": _stamps(chunk_text)[0], "description": "Starting a new part"},
                {"timestamp": "59:00", "description": "Outside this chunk"},
                {"timestamp": "soon", "description": "Not a time"},
                "not a moment",
            ]

        result = await self._make_service(side_effect).generate(self.srt)

        assert result.candidate_count == result.chunk_count
        assert all(parse_timestamp(m.time) <= 20 * 60 for m in result.key_moments)

    @pytest.mark.asyncio
    async def test_non_list_output_fails_chunk(self) -> None:
        async def side_effect(chunk_text, duration, target, tier):
            if _is_first_chunk(chunk_text):
                return {"moments": []}
            return await _first_and_middle(chunk_text, duration, target, tier)

        result = await self._make_service(side_effect).generate(self.srt)

        assert "instead of a list" in result.failed_chunks[1]

    @pytest.mark.asyncio
    async def test_long_video_uses_hours_format(self) -> None:
        async def side_effect(chunk_text, duration, target, tier):
            return [MomentCandidate(timestamp=_stamps(chunk_text)[0], description="Starting a new part")]

        service = self._make_service(side_effect)
        result = await service.generate(build_srt(65))

        assert result.chunk_count >= 10
        assert service.proposer.propose.await_args_list[0].args[0].startswith("[00:00:00] ")
        assert all(re.fullmatch(r"\d{2}:\d{2}:\d{2}", m.time) for m in result.key_moments)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 101])
    async def test_target_count_out_of_range(self, count: int) -> None:
        service = self._make_service(_first_and_middle)
        with pytest.raises(InputError):
            await service.generate(self.srt, target_count=count)
        service.proposer.propose.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_proposer(self) -> None:
        service = TimestampGenerationService(settings=self.settings)
        with pytest.raises(ProposerUnavailableError):
            await service.generate(self.srt)

    @pytest.mark.asyncio
    async def test_input_errors_checked_before_proposer(self) -> None:
        service = TimestampGenerationService(settings=Settings(max_srt_bytes=100))
        with pytest.raises(InputTooLargeError):
            await service.generate(self.srt)


def test_empty_input_flows_through_components() -> None:
    entries = SRTParser().parse("")
    metadata = VideoAnalyzer().analyze(entries)

    assert entries == []
    assert metadata.duration_seconds == 0
    assert metadata.length_category == LengthCategory.SHORT
    assert metadata.content_density == ContentDensity.LOW
    assert ChunkSegmenter().segment(entries) == []
    assert CandidateSelector().select([], 5, metadata.duration_seconds) == []
