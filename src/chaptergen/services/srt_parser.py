"""SRT subtitle parser.

Parses standard SRT text into ordered SubtitleEntry objects and
serializes entries back to SRT.
"""

import logging
import re
from pathlib import Path

from chaptergen.errors import SRTParseError
from chaptergen.models.subtitle import SubtitleEntry
from chaptergen.services.timecode import to_seconds, to_srt_timestamp

logger = logging.getLogger(__name__)

# SRT timestamp line: HH:MM:SS,mmm --> HH:MM:SS,mmm
_TIMESTAMP_RE = re.compile(r"(\d{2}:\d{2}:\d{2},\d{3})\s*-->\s*(\d{2}:\d{2}:\d{2},\d{3})")

_BLOCK_SEPARATOR_RE = re.compile(r"\r?\n[ \t]*\r?\n")
_LINE_RE = re.compile(r"\r?\n")


def _strip_bom(text: str) -> str:
    """Remove UTF-8 BOM if present."""
    if text.startswith("\ufeff"):
        return text[1:]
    return text


class SRTParser:
    """Parser for SRT subtitle content.

    Malformed cues are skipped rather than aborting the whole file, so the
    result can be shorter than the number of blocks but parsing itself
    never fails.
    """

    def parse(self, content: str) -> list[SubtitleEntry]:
        """Parse SRT text into subtitle entries.

        SRT format per entry:
            <id>
            HH:MM:SS,mmm --> HH:MM:SS,mmm
            <text line 1>
            <text line 2 (optional)>
            <blank line>

        Args:
            content: Raw SRT text.

        Returns:
            Entries in file order (not sorted by id or time). Empty when
            nothing parses.
        """
        content = _strip_bom(content).strip()
        if not content:
            return []

        entries: list[SubtitleEntry] = []
        blocks = _BLOCK_SEPARATOR_RE.split(content)

        for block in blocks:
            entry = self._parse_block(block)
            if entry is not None:
                entries.append(entry)

        skipped = len(blocks) - len(entries)
        if skipped:
            logger.debug("Skipped %d malformed SRT block(s) of %d", skipped, len(blocks))

        return entries

    def parse_file(self, srt_path: Path) -> list[SubtitleEntry]:
        """Parse an SRT file from disk.

        Raises:
            FileNotFoundError: If the file does not exist
            SRTParseError: If the file is not valid UTF-8
        """
        srt_path = Path(srt_path)
        if not srt_path.exists():
            raise FileNotFoundError(f"SRT file not found: {srt_path}")

        try:
            content = srt_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise SRTParseError(f"Failed to decode SRT file as UTF-8: {srt_path}") from exc

        return self.parse(content)

    def to_srt(self, entries: list[SubtitleEntry]) -> str:
        """Serialize entries to SRT text, keeping their declared ids."""
        blocks = []
        for entry in entries:
            start = to_srt_timestamp(entry.start_seconds)
            end = to_srt_timestamp(entry.end_seconds)
            blocks.append(f"{entry.id}\n{start} --> {end}\n{entry.text}\n")
        return "\n".join(blocks)

    def _parse_block(self, block: str) -> SubtitleEntry | None:
        """Parse a single SRT block.

        Returns None if the block is malformed.
        """
        lines = _LINE_RE.split(block.strip())
        if len(lines) < 3:
            return None

        try:
            entry_id = int(lines[0].strip())
        except ValueError:
            return None

        match = _TIMESTAMP_RE.search(lines[1])
        if match is None:
            return None

        start_seconds = to_seconds(match.group(1))
        end_seconds = to_seconds(match.group(2))

        # Guard against invalid ranges
        if end_seconds < start_seconds or entry_id < 0:
            return None

        text = " ".join(line.strip() for line in lines[2:] if line.strip())

        return SubtitleEntry(
            id=entry_id,
            start_seconds=start_seconds,
            end_seconds=end_seconds,
            text=text,
        )
