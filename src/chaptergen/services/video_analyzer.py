"""Video metadata analysis from subtitle entries."""

from chaptergen.models.analysis import ContentDensity, LengthCategory, VideoMetadata
from chaptergen.models.subtitle import SubtitleEntry

LONG_PAUSE_SECONDS = 3.0
LONG_PAUSE_RATIO = 0.10

LOW_DENSITY_WPM = 120
HIGH_DENSITY_WPM = 180


def categorize_length(duration_minutes: float) -> LengthCategory:
    """Bucket a duration in minutes (upper bounds inclusive)."""
    if duration_minutes <= 30:
        return LengthCategory.SHORT
    if duration_minutes <= 90:
        return LengthCategory.MEDIUM
    if duration_minutes <= 180:
        return LengthCategory.LONG
    return LengthCategory.VERY_LONG


def classify_density(words_per_minute: int) -> ContentDensity:
    if words_per_minute < LOW_DENSITY_WPM:
        return ContentDensity.LOW
    if words_per_minute > HIGH_DENSITY_WPM:
        return ContentDensity.HIGH
    return ContentDensity.MEDIUM


class VideoAnalyzer:
    """Computes duration and density statistics for a subtitle track."""

    def analyze(self, entries: list[SubtitleEntry]) -> VideoMetadata:
        """Compute VideoMetadata from parsed entries.

        Duration is the latest cue end, not the sum of cue lengths, since
        cues can have gaps and occasionally overlap. An empty list yields
        the all-zero defaults.
        """
        if not entries:
            return VideoMetadata()

        duration_seconds = max(entry.end_seconds for entry in entries)
        duration_minutes = duration_seconds / 60

        total_words = sum(entry.word_count for entry in entries)
        words_per_minute = round(total_words / duration_minutes) if duration_minutes > 0 else 0

        average_entry_duration = sum(entry.duration_seconds for entry in entries) / len(entries)

        gaps = [
            entries[i + 1].start_seconds - entries[i].end_seconds
            for i in range(len(entries) - 1)
        ]
        long_pauses = sum(1 for gap in gaps if gap > LONG_PAUSE_SECONDS)
        has_long_pauses = bool(gaps) and long_pauses / len(gaps) > LONG_PAUSE_RATIO

        return VideoMetadata(
            duration_seconds=duration_seconds,
            duration_minutes=duration_minutes,
            total_entries=len(entries),
            average_entry_duration=average_entry_duration,
            estimated_words_per_minute=words_per_minute,
            content_density=classify_density(words_per_minute),
            has_long_pauses=has_long_pauses,
            length_category=categorize_length(duration_minutes),
        )

    def validate_structure(self, entries: list[SubtitleEntry]) -> list[str]:
        """Report atypical subtitle structure as human-readable warnings.

        None of these findings stop processing; they are attached to the
        result so a caller can judge how far to trust it.
        """
        if not entries:
            return ["No subtitle entries"]

        warnings: list[str] = []
        metadata = self.analyze(entries)
        minutes = metadata.duration_minutes

        if minutes < 1 or minutes > 300:
            warnings.append(f"Unusual video duration ({minutes:.1f} minutes)")

        backwards = sum(
            1
            for i in range(len(entries) - 1)
            if entries[i + 1].start_seconds < entries[i].end_seconds - 1.0
        )
        if backwards:
            warnings.append(f"{backwards} cue(s) start more than 1s before the previous cue ends")

        if minutes > 0:
            entries_per_minute = len(entries) / minutes
            if entries_per_minute < 1 or entries_per_minute > 30:
                warnings.append(f"Atypical cue density ({entries_per_minute:.1f} entries/minute)")

        near_empty = sum(1 for entry in entries if len(entry.text.strip()) < 3)
        if near_empty > len(entries) * 0.2:
            warnings.append(f"{near_empty} of {len(entries)} cues have little or no text")

        return warnings
