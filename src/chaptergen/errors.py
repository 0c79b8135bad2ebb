"""Custom exceptions for chaptergen."""


class ChaptergenError(Exception):
    """Base exception for chaptergen."""

    pass


class SRTParseError(ChaptergenError):
    """SRT file could not be read."""

    pass


class InputError(ChaptergenError):
    """Caller-supplied input was rejected before processing."""

    status_code: int = 400


class InputTooLargeError(InputError):
    """SRT content exceeds the configured size limit."""

    status_code = 413


class NoValidEntriesError(InputError):
    """SRT content contained no parseable subtitle entries."""

    status_code = 400


class ProposerError(ChaptergenError):
    """Moment proposer call failed or returned unusable output."""

    pass


class ProposerUnavailableError(ProposerError):
    """No moment proposer is configured."""

    pass


class GenerationFailedError(ChaptergenError):
    """No usable moments were produced for the input.

    Safe to retry on the same input.
    """

    retryable: bool = True

    def __init__(self, message: str, failed_chunks: dict[int, str] | None = None) -> None:
        super().__init__(message)
        self.failed_chunks = failed_chunks or {}


class TargetCountNotMetError(GenerationFailedError):
    """Fewer moments than requested while exact count was required."""

    pass
