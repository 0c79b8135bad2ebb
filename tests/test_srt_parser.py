"""Tests for SRT parser."""

from pathlib import Path

import pytest

from chaptergen.errors import SRTParseError
from chaptergen.models import SubtitleEntry
from chaptergen.services.srt_parser import SRTParser

SAMPLE_SRT = """\
1
00:00:01,000 --> 00:00:03,500
Hello and welcome

2
00:00:05,000 --> 00:00:08,200
Today we are talking about

3
00:00:08,500 --> 00:00:12,000
automatic chapter markers
"""


@pytest.fixture
def parser() -> SRTParser:
    return SRTParser()


def test_parse_valid_srt(parser: SRTParser) -> None:
    entries = parser.parse(SAMPLE_SRT)
    assert len(entries) == 3
    assert entries[0].id == 1
    assert entries[0].text == "Hello and welcome"
    assert entries[0].start_seconds == 1.0
    assert entries[0].end_seconds == 3.5
    assert entries[2].text == "automatic chapter markers"


def test_parse_timestamps_with_millis(parser: SRTParser) -> None:
    entries = parser.parse(SAMPLE_SRT)
    assert entries[1].start_seconds == pytest.approx(5.0)
    assert entries[1].end_seconds == pytest.approx(8.2)


def test_parse_crlf_line_endings(parser: SRTParser) -> None:
    entries = parser.parse(SAMPLE_SRT.replace("\n", "\r\n"))
    assert len(entries) == 3
    assert entries[1].text == "Today we are talking about"


def test_multiline_text_joined_with_spaces(parser: SRTParser) -> None:
    content = "1\n00:00:00,000 --> 00:00:02,000\nfirst line\nsecond line\n"
    entries = parser.parse(content)
    assert len(entries) == 1
    assert entries[0].text == "first line second line"


def test_two_line_block_skipped(parser: SRTParser) -> None:
    content = (
        "1\n00:00:00,000 --> 00:00:02,000\n\n"
        "2\n00:00:02,000 --> 00:00:04,000\nkept\n"
    )
    entries = parser.parse(content)
    assert [e.id for e in entries] == [2]


def test_malformed_blocks_skipped(parser: SRTParser) -> None:
    content = (
        "abc\n00:00:00,000 --> 00:00:02,000\nbad id\n\n"
        "2\n00:00:02 --> 00:00:04\nbad timestamp\n\n"
        "3\n00:00:05,000 --> 00:00:06,000\ngood\n"
    )
    entries = parser.parse(content)
    assert len(entries) == 1
    assert entries[0].text == "good"


def test_order_follows_file_not_ids(parser: SRTParser) -> None:
    content = (
        "10\n00:00:10,000 --> 00:00:11,000\nten\n\n"
        "3\n00:00:03,000 --> 00:00:04,000\nthree\n\n"
        "7\n00:00:07,000 --> 00:00:08,000\nseven\n"
    )
    entries = parser.parse(content)
    assert [e.id for e in entries] == [10, 3, 7]


def test_empty_input(parser: SRTParser) -> None:
    assert parser.parse("") == []
    assert parser.parse("   \n\n  ") == []


def test_garbage_never_raises(parser: SRTParser) -> None:
    garbage = "not\nan\nsrt\n\n-->\n\n1\n2\n3\n\n???\n\n99\nxx --> yy\nzz"
    entries = parser.parse(garbage)
    blocks = garbage.split("\n\n")
    assert len(entries) <= len(blocks)
    assert entries == []


def test_bom_stripped(parser: SRTParser) -> None:
    entries = parser.parse("\ufeff" + SAMPLE_SRT)
    assert len(entries) == 3
    assert entries[0].id == 1


def test_end_before_start_skipped(parser: SRTParser) -> None:
    content = "1\n00:00:05,000 --> 00:00:02,000\nbackwards\n"
    assert parser.parse(content) == []


def test_round_trip(parser: SRTParser) -> None:
    entries = [
        SubtitleEntry(id=1, start_seconds=0.0, end_seconds=2.5, text="one"),
        SubtitleEntry(id=5, start_seconds=3.25, end_seconds=7.0, text="two words"),
        SubtitleEntry(id=2, start_seconds=3661.001, end_seconds=3665.0, text="after an hour"),
    ]
    parsed = parser.parse(parser.to_srt(entries))
    assert [e.id for e in parsed] == [1, 5, 2]
    assert [e.text for e in parsed] == ["one", "two words", "after an hour"]
    for original, restored in zip(entries, parsed):
        assert restored.start_seconds == pytest.approx(original.start_seconds, abs=1e-3)
        assert restored.end_seconds == pytest.approx(original.end_seconds, abs=1e-3)


def test_parse_file(parser: SRTParser, tmp_path: Path) -> None:
    srt_file = tmp_path / "test.srt"
    srt_file.write_text(SAMPLE_SRT, encoding="utf-8")
    assert len(parser.parse_file(srt_file)) == 3


def test_parse_file_not_found(parser: SRTParser) -> None:
    with pytest.raises(FileNotFoundError):
        parser.parse_file(Path("/nonexistent/file.srt"))


def test_parse_file_invalid_encoding(parser: SRTParser, tmp_path: Path) -> None:
    srt_file = tmp_path / "latin1.srt"
    srt_file.write_bytes(b"1\n00:00:00,000 --> 00:00:01,000\ncaf\xe9\n")
    with pytest.raises(SRTParseError):
        parser.parse_file(srt_file)
