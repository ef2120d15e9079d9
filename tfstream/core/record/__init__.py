"""
Record framing with masked CRC-32C checksums.

This package provides:
- CRC-32C checksums and the masking transform
- Fixed-width little-endian field encodings
- A writer that appends framed records to a stream
- A sequential reader with corruption and truncation detection
"""

from tfstream.core.record.checksum import checksum, mask, masked_checksum, unmask
from tfstream.core.record.encoding import FRAME_OVERHEAD, frame_size
from tfstream.core.record.errors import (
    ChecksumMismatchError,
    EndOfStreamError,
    LengthChecksumMismatchError,
    PayloadChecksumMismatchError,
    RecordError,
    TruncatedRecordError,
)
from tfstream.core.record.reader import RecordReader, iter_records, read
from tfstream.core.record.writer import RecordWriter, write

__all__ = [
    "ChecksumMismatchError",
    "EndOfStreamError",
    "FRAME_OVERHEAD",
    "LengthChecksumMismatchError",
    "PayloadChecksumMismatchError",
    "RecordError",
    "RecordReader",
    "RecordWriter",
    "TruncatedRecordError",
    "checksum",
    "frame_size",
    "iter_records",
    "mask",
    "masked_checksum",
    "read",
    "unmask",
    "write",
]
