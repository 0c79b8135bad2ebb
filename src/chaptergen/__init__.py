"""chaptergen - AI chapter timestamps from SRT subtitles."""

__version__ = "0.1.0"
