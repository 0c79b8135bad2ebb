"""Tests for chunk segmentation."""

import pytest

from chaptergen.models import BreakReason, ChunkingOptions, SubtitleEntry
from chaptergen.services.break_detector import BreakPointDetector
from chaptergen.services.chunker import ChunkSegmenter, calculate_chunk_confidence

FILLER = "lorem ipsum dolor sit amet consectetur adipiscing elit sed tempor"


def _make_transcript(
    minutes: float,
    cue_at: float | None = None,
    pause: float = 5.0,
    cue_text: str = "Now let's move on to the next part",
) -> list[SubtitleEntry]:
    """Dense cues every 4 seconds, with an optional pause and topic cue."""
    entries: list[SubtitleEntry] = []
    t = 0.0
    shifted = False
    idx = 1
    while t < minutes * 60:
        text = FILLER
        if cue_at is not None and not shifted and t >= cue_at:
            t += pause
            shifted = True
            text = cue_text
        entries.append(SubtitleEntry(id=idx, start_seconds=t, end_seconds=t + 3.5, text=text))
        idx += 1
        t += 4.0
    return entries


class TestChunkSegmenter:
    def setup_method(self) -> None:
        self.segmenter = ChunkSegmenter()
        self.options = ChunkingOptions()

    def test_empty_input(self) -> None:
        assert self.segmenter.segment([]) == []

    def test_short_input_single_chunk(self) -> None:
        entries = _make_transcript(1)
        chunks = self.segmenter.segment(entries)
        assert len(chunks) == 1
        assert chunks[0].entries == entries
        assert chunks[0].is_intro and chunks[0].is_outro
        assert chunks[0].confidence < 0.9

    def test_single_entry(self) -> None:
        entries = [SubtitleEntry(id=1, start_seconds=0, end_seconds=2, text="hi")]
        chunks = self.segmenter.segment(entries)
        assert len(chunks) == 1
        assert chunks[0].entry_count == 1

    def test_sixty_five_minutes_produces_many_chunks(self) -> None:
        entries = _make_transcript(65, cue_at=30 * 60)
        chunks = self.segmenter.segment(entries, self.options)
        assert len(chunks) >= 10

    def test_coverage(self) -> None:
        entries = _make_transcript(65, cue_at=30 * 60)
        chunks = self.segmenter.segment(entries, self.options)
        covered = {entry.id for chunk in chunks for entry in chunk.entries}
        assert covered == {entry.id for entry in entries}

    def test_start_times_strictly_increase(self) -> None:
        chunks = self.segmenter.segment(_make_transcript(65, cue_at=30 * 60), self.options)
        starts = [c.start_seconds for c in chunks]
        assert all(a < b for a, b in zip(starts, starts[1:]))

    def test_durations_within_bounds_except_last(self) -> None:
        chunks = self.segmenter.segment(_make_transcript(65, cue_at=30 * 60), self.options)
        for chunk in chunks[:-1]:
            assert self.options.min_seconds <= chunk.duration_seconds <= self.options.max_seconds
        assert chunks[-1].duration_seconds <= self.options.max_seconds

    def test_consecutive_chunks_overlap(self) -> None:
        chunks = self.segmenter.segment(_make_transcript(20), self.options)
        for previous, current in zip(chunks, chunks[1:]):
            overlap = previous.end_seconds - current.start_seconds
            assert 0 < overlap <= self.options.overlap_seconds + 4

    def test_intro_outro_and_ids(self) -> None:
        chunks = self.segmenter.segment(_make_transcript(30), self.options)
        assert [c.id for c in chunks] == list(range(1, len(chunks) + 1))
        assert chunks[0].is_intro and not chunks[0].is_outro
        assert chunks[-1].is_outro and not chunks[-1].is_intro

    def test_snaps_to_natural_break_near_target(self) -> None:
        # pause and cue 20 seconds before the 6 minute target
        entries = _make_transcript(20, cue_at=340)
        chunks = self.segmenter.segment(entries, self.options)
        first = chunks[0]
        assert first.has_natural_break
        assert first.break_point_reason == BreakReason.TOPIC_CHANGE
        assert first.entries[-1].start_seconds < 340
        assert chunks[1].entries[-1].start_seconds > 340

    def test_ignores_breaks_when_disabled(self) -> None:
        entries = _make_transcript(20, cue_at=340)
        options = ChunkingOptions(respect_natural_breaks=False)
        chunks = self.segmenter.segment(entries, options)
        assert not any(c.has_natural_break for c in chunks)

    def test_short_tail_absorbed(self) -> None:
        # 7 minutes fits within the 8 minute maximum
        chunks = self.segmenter.segment(_make_transcript(7), self.options)
        assert len(chunks) == 1

    def test_shared_start_times_keep_starts_increasing(self) -> None:
        # two speakers per timestamp, with an overlap longer than a chunk
        entries = [
            SubtitleEntry(id=i + 1, start_seconds=(i // 2) * 4, end_seconds=(i // 2) * 4 + 3.5, text=FILLER)
            for i in range(90)
        ]
        options = ChunkingOptions(target_minutes=0.5, max_minutes=1, min_minutes=0.25, overlap_seconds=40)
        chunks = self.segmenter.segment(entries, options)

        starts = [c.start_seconds for c in chunks]
        assert len(chunks) > 1
        assert all(a < b for a, b in zip(starts, starts[1:]))
        covered = {entry.id for chunk in chunks for entry in chunk.entries}
        assert covered == {entry.id for entry in entries}

    def test_accepts_precomputed_break_points(self) -> None:
        entries = _make_transcript(20, cue_at=340)
        break_points = BreakPointDetector().detect(entries)
        chunks = self.segmenter.segment(entries, self.options, break_points)
        assert chunks[0].has_natural_break


class TestChunkValidation:
    def setup_method(self) -> None:
        self.segmenter = ChunkSegmenter()

    def test_clean_chunks_have_no_warnings(self) -> None:
        chunks = self.segmenter.segment(_make_transcript(30))
        assert self.segmenter.validate_chunks(chunks) == []

    def test_empty_list(self) -> None:
        assert self.segmenter.validate_chunks([]) == ["No chunks generated"]

    def test_low_word_count_warned(self) -> None:
        entries = [SubtitleEntry(id=1, start_seconds=0, end_seconds=30, text="few words")]
        warnings = self.segmenter.validate_chunks(self.segmenter.segment(entries))
        assert any("low word count" in w for w in warnings)

    def test_summary(self) -> None:
        chunks = self.segmenter.segment(_make_transcript(30))
        summary = self.segmenter.summarize_chunks(chunks)
        assert summary.total_chunks == len(chunks)
        assert 0 <= summary.quality_score <= 100
        assert summary.overlap_seconds == (len(chunks) - 1) * 30
        assert summary.processing_hints

    def test_summary_empty(self) -> None:
        summary = self.segmenter.summarize_chunks([])
        assert summary.total_chunks == 0
        assert summary.processing_hints == ["No chunks generated"]


def test_chunk_confidence_factors() -> None:
    base = calculate_chunk_confidence(360, 360, False, 0, 0)
    assert base == pytest.approx(0.8)
    assert calculate_chunk_confidence(360, 360, True, 1080, 90) == 1.0
    assert calculate_chunk_confidence(0, 360, False, 0, 0) == 0.5


def test_options_bounds_validated() -> None:
    with pytest.raises(ValueError):
        ChunkingOptions(target_minutes=10, max_minutes=8)
