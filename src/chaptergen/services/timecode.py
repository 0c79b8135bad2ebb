"""Conversions between SRT timestamps, seconds and readable chapter times.

Readable times use one format per video: ``MM:SS`` when the whole video is
shorter than an hour, ``HH:MM:SS`` otherwise. Callers decide the format once
from the total duration and pass it to every conversion.
"""

import re

LONG_CONTENT_SECONDS = 3600

# SRT timestamp: HH:MM:SS,mmm
_SRT_TIMESTAMP_RE = re.compile(r"^(\d+):(\d{2}):(\d{2}),(\d{3})$")

# MM:SS, H:MM:SS or HH:MM:SS with optional ,mmm / .mmm
_READABLE_RE = re.compile(r"^(\d+):(\d{1,2})(?::(\d{1,2}))?(?:[,.](\d{1,3}))?$")


def is_long_content(duration_seconds: float) -> bool:
    """Whether a video of this duration uses the HH:MM:SS format."""
    return duration_seconds >= LONG_CONTENT_SECONDS


def to_seconds(timestamp: str) -> float:
    """Convert an SRT timestamp (``HH:MM:SS,mmm``) to seconds.

    Raises:
        ValueError: If the string is not an SRT timestamp.
    """
    match = _SRT_TIMESTAMP_RE.match(timestamp.strip())
    if match is None:
        raise ValueError(f"Invalid SRT timestamp: {timestamp!r}")

    hours, minutes, seconds, millis = (int(g) for g in match.groups())
    return hours * 3600 + minutes * 60 + seconds + millis / 1000


def parse_timestamp(text: str) -> float:
    """Parse any supported timestamp form to seconds.

    Accepts ``MM:SS``, ``H:MM:SS``, ``HH:MM:SS`` and the SRT form with a
    comma or dot millisecond part.

    Raises:
        ValueError: If the string cannot be read as a timestamp.
    """
    match = _READABLE_RE.match(text.strip())
    if match is None:
        raise ValueError(f"Invalid timestamp: {text!r}")

    first, second, third, fraction = match.groups()
    if third is None:
        hours, minutes, seconds = 0, int(first), int(second)
    else:
        hours, minutes, seconds = int(first), int(second), int(third)
        if minutes >= 60:
            raise ValueError(f"Invalid timestamp (minutes >= 60): {text!r}")
    if seconds >= 60:
        raise ValueError(f"Invalid timestamp (seconds >= 60): {text!r}")

    millis = int(fraction.ljust(3, "0")) if fraction else 0
    return hours * 3600 + minutes * 60 + seconds + millis / 1000


def to_readable(seconds: float, is_long_content: bool | None = None) -> str:
    """Format seconds as zero-padded ``MM:SS`` or ``HH:MM:SS``.

    Args:
        seconds: Offset from video start. Fractions are truncated.
        is_long_content: Format flag derived from the whole video's
            duration. When omitted the value itself decides, which is only
            correct for a one-off conversion.
    """
    total = int(max(0.0, seconds))
    if is_long_content is None:
        is_long_content = total >= LONG_CONTENT_SECONDS

    if is_long_content:
        hours, remainder = divmod(total, 3600)
        minutes, secs = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"

    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


def normalize_timestamp(text: str, is_long_content: bool) -> str:
    """Re-format a timestamp into the canonical form for the video.

    ``1:08:08`` becomes ``01:08:08`` for long content; ``00:15:30`` becomes
    ``15:30`` for short content. Applying it twice changes nothing.
    """
    return to_readable(parse_timestamp(text), is_long_content)


def to_srt_timestamp(seconds: float) -> str:
    """Format seconds as an SRT timestamp (``HH:MM:SS,mmm``)."""
    total_ms = max(0, round(seconds * 1000))
    hours, total_ms = divmod(total_ms, 3_600_000)
    minutes, total_ms = divmod(total_ms, 60_000)
    secs, millis = divmod(total_ms, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"
