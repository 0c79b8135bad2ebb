"""Chunk segmentation of a subtitle track.

Splits entries into overlapping, roughly fixed-length chunks that are sent
to the moment proposer one at a time. Boundaries snap to natural breaks
when one is close to the target length.
"""

import logging

from chaptergen.models.chunk import BreakPoint, Chunk, ChunkingOptions, ChunkSummary
from chaptergen.models.subtitle import SubtitleEntry
from chaptergen.services.break_detector import BreakPointDetector

logger = logging.getLogger(__name__)

MAX_REASONABLE_CHUNKS = 30
LOW_CONFIDENCE = 0.3
LOW_WORD_COUNT = 50


def calculate_chunk_confidence(
    duration_seconds: float,
    target_seconds: float,
    has_natural_break: bool,
    word_count: int,
    entry_count: int,
) -> float:
    """Score how usable a chunk is for the proposer, in [0, 1]."""
    confidence = 0.5

    if duration_seconds > 0 and target_seconds > 0:
        ratio = min(duration_seconds, target_seconds) / max(duration_seconds, target_seconds)
        confidence += ratio * 0.3

    if has_natural_break:
        confidence += 0.2

    if duration_seconds > 0:
        words_per_second = word_count / duration_seconds
        if 2 <= words_per_second <= 4:
            confidence += 0.1

        entries_per_minute = entry_count / duration_seconds * 60
        if 10 <= entries_per_minute <= 30:
            confidence += 0.1

    return round(max(0.0, min(1.0, confidence)), 2)


class ChunkSegmenter:
    """Single left-to-right pass that turns entries into chunks."""

    def __init__(self, detector: BreakPointDetector | None = None):
        self._detector = detector or BreakPointDetector()

    def segment(
        self,
        entries: list[SubtitleEntry],
        options: ChunkingOptions | None = None,
        break_points: list[BreakPoint] | None = None,
    ) -> list[Chunk]:
        """Segment entries into chunks.

        Args:
            entries: Entries in chronological order.
            options: Duration bounds and overlap. Defaults to 6/8/4 minutes
                with 30 seconds of overlap.
            break_points: Precomputed break points. Detected here when
                omitted and natural breaks are respected.

        Returns:
            Chunks with 1-based ids. Every entry belongs to at least one
            chunk and chunk start times strictly increase. Empty input
            yields an empty list.
        """
        if not entries:
            return []

        options = options or ChunkingOptions()
        if not options.respect_natural_breaks:
            break_points = []
        elif break_points is None:
            break_points = self._detector.detect(entries)

        candidates = [bp for bp in break_points if bp.confidence >= options.min_break_confidence]

        n = len(entries)
        spans: list[tuple[int, int, BreakPoint | None]] = []
        start = 0

        while start < n:
            end, chosen = self._find_boundary(entries, start, candidates, options)
            spans.append((start, end, chosen))

            if end >= n - 1:
                break

            next_start = self._next_start(entries, start, end, options.overlap_seconds)
            if next_start <= start:
                next_start = start + 1
            # Skip entries sharing the current start time; stay within end + 1 for coverage
            while (
                next_start <= end
                and entries[next_start].start_seconds <= entries[start].start_seconds
            ):
                next_start += 1
            start = next_start

        chunks = [
            self._build_chunk(index + 1, entries[s : e + 1], chosen, options)
            for index, (s, e, chosen) in enumerate(spans)
        ]
        chunks[0].is_intro = True
        chunks[-1].is_outro = True

        logger.debug("Segmented %d entries into %d chunks", n, len(chunks))
        return chunks

    def validate_chunks(
        self, chunks: list[Chunk], options: ChunkingOptions | None = None
    ) -> list[str]:
        """Report chunk quality problems as warnings.

        The final chunk is allowed to be shorter than the minimum.
        """
        options = options or ChunkingOptions()
        if not chunks:
            return ["No chunks generated"]

        warnings: list[str] = []
        if len(chunks) > MAX_REASONABLE_CHUNKS:
            warnings.append(f"High chunk count ({len(chunks)}) may slow down processing")

        for index, chunk in enumerate(chunks):
            is_last = index == len(chunks) - 1
            if chunk.duration_seconds < options.min_seconds and not is_last:
                warnings.append(f"Chunk {chunk.id} is short ({chunk.duration_minutes} minutes)")
            if chunk.duration_seconds > options.max_seconds:
                warnings.append(f"Chunk {chunk.id} is long ({chunk.duration_minutes} minutes)")
            if chunk.confidence < LOW_CONFIDENCE:
                warnings.append(f"Chunk {chunk.id} has low confidence ({round(chunk.confidence * 100)}%)")
            if chunk.word_count < LOW_WORD_COUNT:
                warnings.append(f"Chunk {chunk.id} has very low word count ({chunk.word_count} words)")

        for previous, current in zip(chunks, chunks[1:]):
            if current.start_seconds <= previous.start_seconds:
                warnings.append(f"Chunk {current.id} does not start after chunk {previous.id}")

        return warnings

    def summarize_chunks(
        self, chunks: list[Chunk], options: ChunkingOptions | None = None
    ) -> ChunkSummary:
        """Aggregate quality figures and processing hints for a chunk list."""
        options = options or ChunkingOptions()
        if not chunks:
            return ChunkSummary(processing_hints=["No chunks generated"])

        average_minutes = sum(c.duration_minutes for c in chunks) / len(chunks)
        natural_breaks = sum(1 for c in chunks if c.has_natural_break)
        average_confidence = sum(c.confidence for c in chunks) / len(chunks)

        hints: list[str] = []
        if average_confidence > 0.8:
            hints.append("High quality chunking with clear natural breaks")
        elif average_confidence > 0.6:
            hints.append("Good quality chunking with adequate break points")
        else:
            hints.append("Fair quality chunking, consider manual review")

        if natural_breaks / len(chunks) > 0.7:
            hints.append("Most chunk boundaries follow natural breaks")

        if average_minutes < options.min_minutes:
            hints.append("Short chunks may need consolidation")
        elif average_minutes > options.max_minutes:
            hints.append("Long chunks may need subdivision")

        return ChunkSummary(
            total_chunks=len(chunks),
            average_chunk_minutes=round(average_minutes, 1),
            natural_break_count=natural_breaks,
            overlap_seconds=(len(chunks) - 1) * options.overlap_seconds,
            quality_score=round(average_confidence * 100),
            processing_hints=hints,
        )

    def _find_boundary(
        self,
        entries: list[SubtitleEntry],
        start: int,
        break_points: list[BreakPoint],
        options: ChunkingOptions,
    ) -> tuple[int, BreakPoint | None]:
        """Pick the index of the last entry of the chunk starting at ``start``."""
        n = len(entries)
        chunk_start = entries[start].start_seconds

        def duration(index: int) -> float:
            return entries[index].end_seconds - chunk_start

        i = start
        while i < n - 1 and duration(i) < options.target_seconds:
            i += 1

        # Not enough material left to reach the target
        if duration(i) < options.target_seconds:
            return n - 1, None

        chosen = self._best_break(entries, start, break_points, options)
        if chosen is not None:
            end = chosen.after_entry_index
        else:
            end = i
            if duration(end) > options.max_seconds and end > start:
                end -= 1

        while (
            end < n - 1
            and duration(end) < options.min_seconds
            and duration(end + 1) <= options.max_seconds
        ):
            end += 1

        # Absorb a short tail instead of leaving it as its own chunk
        if end < n - 1 and duration(n - 1) <= options.max_seconds:
            return n - 1, None

        return end, chosen

    @staticmethod
    def _best_break(
        entries: list[SubtitleEntry],
        start: int,
        break_points: list[BreakPoint],
        options: ChunkingOptions,
    ) -> BreakPoint | None:
        """Best break inside the search window around the target length.

        The window spans ``max - target`` seconds centered on the target
        point. Higher confidence wins; ties go to the break closest to the
        target.
        """
        chunk_start = entries[start].start_seconds
        target_point = chunk_start + options.target_seconds
        half_window = (options.max_seconds - options.target_seconds) / 2

        best: BreakPoint | None = None
        best_key: tuple[float, float] | None = None
        for bp in break_points:
            if bp.after_entry_index < start or bp.after_entry_index >= len(entries) - 1:
                continue
            boundary = entries[bp.after_entry_index].end_seconds
            if abs(boundary - target_point) > half_window:
                continue
            length = boundary - chunk_start
            if not options.min_seconds <= length <= options.max_seconds:
                continue
            key = (bp.confidence, -abs(boundary - target_point))
            if best_key is None or key > best_key:
                best, best_key = bp, key
        return best

    @staticmethod
    def _next_start(
        entries: list[SubtitleEntry], start: int, end: int, overlap_seconds: float
    ) -> int:
        """Index of the first entry of the next chunk.

        Walks back from the boundary over entries that begin within the
        overlap window, never back to the current chunk's first entry.
        """
        boundary = entries[end].end_seconds
        j = end + 1
        while j - 1 > start and boundary - entries[j - 1].start_seconds <= overlap_seconds:
            j -= 1
        return j

    @staticmethod
    def _build_chunk(
        chunk_id: int,
        chunk_entries: list[SubtitleEntry],
        chosen: BreakPoint | None,
        options: ChunkingOptions,
    ) -> Chunk:
        start_seconds = chunk_entries[0].start_seconds
        end_seconds = max(entry.end_seconds for entry in chunk_entries)
        duration_seconds = end_seconds - start_seconds
        word_count = sum(entry.word_count for entry in chunk_entries)
        has_natural_break = chosen is not None

        return Chunk(
            id=chunk_id,
            start_seconds=start_seconds,
            end_seconds=end_seconds,
            duration_minutes=round(duration_seconds / 60, 2),
            entries=chunk_entries,
            word_count=word_count,
            has_natural_break=has_natural_break,
            break_point_reason=chosen.reason if chosen else None,
            confidence=calculate_chunk_confidence(
                duration_seconds,
                options.target_seconds,
                has_natural_break,
                word_count,
                len(chunk_entries),
            ),
        )
