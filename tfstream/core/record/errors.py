"""Exceptions raised while reading record frames."""

from typing import Optional


class RecordError(Exception):
    """
    Base class for record framing errors.

    Attributes:
        offset: Stream position where the failed frame starts, if known
    """

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.offset = offset


class EndOfStreamError(RecordError, EOFError):
    """No bytes left at a frame boundary. Clean termination."""
    pass


class TruncatedRecordError(RecordError):
    """Stream ended in the middle of a frame."""

    def __init__(
        self,
        message: str,
        expected: int,
        received: int,
        offset: Optional[int] = None,
    ):
        super().__init__(message, offset)
        self.expected = expected
        self.received = received


class ChecksumMismatchError(RecordError, ValueError):
    """Stored and computed masked checksums differ."""

    def __init__(
        self,
        message: str,
        expected: int,
        actual: int,
        offset: Optional[int] = None,
    ):
        super().__init__(message, offset)
        self.expected = expected
        self.actual = actual


class LengthChecksumMismatchError(ChecksumMismatchError):
    """The length field is corrupted; the payload region cannot be trusted."""
    pass


class PayloadChecksumMismatchError(ChecksumMismatchError):
    """The payload bytes are corrupted."""
    pass
