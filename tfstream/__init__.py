"""
tfstream - TFRecord-style framing for streams of opaque records.

Each record is stored as a length-prefixed frame with masked CRC-32C
checksums over both the length and the payload, so streams can be appended
to and read back sequentially with corruption detection.
"""

__version__ = "0.1.0"

from tfstream.core.record import (
    ChecksumMismatchError,
    EndOfStreamError,
    LengthChecksumMismatchError,
    PayloadChecksumMismatchError,
    RecordError,
    RecordReader,
    RecordWriter,
    TruncatedRecordError,
    iter_records,
    read,
    write,
)

__all__ = [
    "ChecksumMismatchError",
    "EndOfStreamError",
    "LengthChecksumMismatchError",
    "PayloadChecksumMismatchError",
    "RecordError",
    "RecordReader",
    "RecordWriter",
    "TruncatedRecordError",
    "iter_records",
    "read",
    "write",
]
