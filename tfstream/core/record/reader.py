"""
Sequential reader for framed records.

Reads frames from the current stream position, validating the length
checksum before trusting the declared length and the payload checksum before
returning the payload. Reading stops at the first corrupted frame; there is no
scanning for the next valid frame.
"""

from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Tuple, Union

from tfstream.core.record.checksum import masked_checksum
from tfstream.core.record.encoding import (
    CHECKSUM_SIZE,
    HEADER_SIZE,
    LENGTH_SIZE,
    decode_checksum,
    decode_length,
    frame_size,
)
from tfstream.core.record.errors import (
    EndOfStreamError,
    LengthChecksumMismatchError,
    PayloadChecksumMismatchError,
    RecordError,
    TruncatedRecordError,
)
from tfstream.utils.config import DEFAULT_READ_CHUNK_SIZE, get_config
from tfstream.utils.logging import ensure_logging_configured, get_logger

logger = get_logger(__name__)


def _default_chunk_size() -> int:
    return int(get_config().get("record.read_chunk_size", DEFAULT_READ_CHUNK_SIZE))


def _tell(stream: BinaryIO) -> Optional[int]:
    seekable = getattr(stream, "seekable", None)
    if seekable is not None and seekable():
        return stream.tell()
    return None


def _read_exactly(stream: BinaryIO, size: int, chunk_size: int) -> bytes:
    """
    Read up to size bytes, looping over short reads.

    Returns fewer than size bytes only when the stream is exhausted.
    """
    if size == 0:
        return b""

    buffer = bytearray()
    while len(buffer) < size:
        chunk = stream.read(min(size - len(buffer), chunk_size))
        if not chunk:
            break
        buffer += chunk
    return bytes(buffer)


def _read_frame(stream: BinaryIO, chunk_size: int, offset: Optional[int]) -> bytes:
    length_bytes = _read_exactly(stream, LENGTH_SIZE, chunk_size)
    if not length_bytes:
        raise EndOfStreamError("No more records", offset=offset)
    if len(length_bytes) < LENGTH_SIZE:
        raise TruncatedRecordError(
            f"Truncated length field: expected {LENGTH_SIZE} bytes, "
            f"got {len(length_bytes)} bytes",
            expected=LENGTH_SIZE,
            received=len(length_bytes),
            offset=offset,
        )

    checksum_bytes = _read_exactly(stream, CHECKSUM_SIZE, chunk_size)
    if len(checksum_bytes) < CHECKSUM_SIZE:
        raise TruncatedRecordError(
            f"Truncated length checksum: expected {HEADER_SIZE} bytes, "
            f"got {LENGTH_SIZE + len(checksum_bytes)} bytes",
            expected=HEADER_SIZE,
            received=LENGTH_SIZE + len(checksum_bytes),
            offset=offset,
        )

    stored = decode_checksum(checksum_bytes)
    computed = masked_checksum(length_bytes)
    if stored != computed:
        raise LengthChecksumMismatchError(
            f"Length checksum mismatch: expected {stored:#010x}, computed {computed:#010x}",
            expected=stored,
            actual=computed,
            offset=offset,
        )

    length = decode_length(length_bytes)
    expected_size = frame_size(length)

    payload = _read_exactly(stream, length, chunk_size)
    if len(payload) < length:
        raise TruncatedRecordError(
            f"Incomplete payload: expected {length} bytes, got {len(payload)} bytes",
            expected=expected_size,
            received=HEADER_SIZE + len(payload),
            offset=offset,
        )

    footer = _read_exactly(stream, CHECKSUM_SIZE, chunk_size)
    if len(footer) < CHECKSUM_SIZE:
        raise TruncatedRecordError(
            f"Truncated payload checksum: expected {CHECKSUM_SIZE} bytes, "
            f"got {len(footer)} bytes",
            expected=expected_size,
            received=HEADER_SIZE + length + len(footer),
            offset=offset,
        )

    stored = decode_checksum(footer)
    computed = masked_checksum(payload)
    if stored != computed:
        raise PayloadChecksumMismatchError(
            f"Payload checksum mismatch: expected {stored:#010x}, computed {computed:#010x}",
            expected=stored,
            actual=computed,
            offset=offset,
        )

    return payload


def read(stream: BinaryIO, chunk_size: Optional[int] = None) -> bytes:
    """
    Read one record frame from stream.

    On any error except EndOfStreamError a seekable stream is rewound to the
    start of the failed frame.

    Args:
        stream: Binary stream positioned at a frame boundary
        chunk_size: Maximum bytes requested per payload read (default from config)

    Returns:
        Record payload

    Raises:
        EndOfStreamError: If no bytes remain at the frame boundary
        TruncatedRecordError: If the stream ends inside the frame
        LengthChecksumMismatchError: If the length field is corrupted
        PayloadChecksumMismatchError: If the payload is corrupted
        OSError: If the underlying read fails
    """
    if chunk_size is None:
        chunk_size = _default_chunk_size()
    if chunk_size <= 0:
        raise ValueError(f"Chunk size must be positive, got {chunk_size}")

    offset = _tell(stream)

    try:
        return _read_frame(stream, chunk_size, offset)
    except EndOfStreamError:
        raise
    except (RecordError, OSError) as e:
        logger.debug("Failed to read record", offset=offset, error=str(e))
        if offset is not None:
            try:
                stream.seek(offset)
            except OSError as seek_error:
                logger.warning(
                    "Failed to rewind stream after read error",
                    offset=offset,
                    error=str(seek_error),
                )
        raise e


def iter_records(stream: BinaryIO, chunk_size: Optional[int] = None) -> Iterator[bytes]:
    """
    Yield records until the end of stream.

    Raises:
        TruncatedRecordError, ChecksumMismatchError, OSError: As read()
    """
    while True:
        try:
            payload = read(stream, chunk_size)
        except EndOfStreamError:
            return
        yield payload


class RecordReader:
    """
    Sequential reader over a binary stream of record frames.

    Attributes:
        stream: Underlying binary stream
        records_read: Number of records successfully read
        bytes_read: Bytes consumed by successfully read records
    """

    def __init__(
        self,
        stream: BinaryIO,
        chunk_size: Optional[int] = None,
        close_stream: bool = False,
    ):
        """
        Initialize a record reader.

        Args:
            stream: Binary stream positioned at a frame boundary
            chunk_size: Maximum bytes requested per payload read (default from config)
            close_stream: Close the stream when the reader is closed
        """
        self.stream = stream
        self.chunk_size = _default_chunk_size() if chunk_size is None else chunk_size
        if self.chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {self.chunk_size}")

        self.records_read = 0
        self.bytes_read = 0
        self._close_stream = close_stream
        self._closed = False

        logger.info("Initialized record reader", chunk_size=self.chunk_size)

    @classmethod
    def open(cls, path: Union[str, Path], **kwargs) -> "RecordReader":
        """
        Open a record file for reading.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Record file not found: {path}")

        ensure_logging_configured()
        stream = open(path, "rb")
        logger.info("Opened record file for reading", path=str(path))
        return cls(stream, close_stream=True, **kwargs)

    def read(self) -> bytes:
        """
        Read the next record.

        Raises:
            ValueError: If the reader is closed
            EndOfStreamError, TruncatedRecordError, ChecksumMismatchError,
            OSError: As read()
        """
        if self._closed:
            raise ValueError("Cannot read from closed record reader")

        payload = read(self.stream, self.chunk_size)

        self.records_read += 1
        self.bytes_read += frame_size(len(payload))

        logger.debug(
            "Read record",
            size=len(payload),
            records_read=self.records_read,
        )

        return payload

    def __iter__(self) -> Iterator[bytes]:
        while True:
            try:
                payload = self.read()
            except EndOfStreamError:
                return
            yield payload

    def read_all(self) -> List[bytes]:
        """
        Read every remaining record.

        Raises:
            TruncatedRecordError, ChecksumMismatchError, OSError: As read()
        """
        return list(self)

    def recover(self) -> Tuple[List[bytes], int]:
        """
        Read valid records up to the first corrupted or truncated frame.

        I/O errors still propagate.

        Returns:
            Tuple of (valid records, bytes consumed by those records)
        """
        records: List[bytes] = []
        start_bytes = self.bytes_read

        try:
            for payload in self:
                records.append(payload)
        except RecordError as e:
            logger.warning(
                "Stopped recovery at corrupted record",
                records_recovered=len(records),
                offset=e.offset,
                error=str(e),
            )

        bytes_consumed = self.bytes_read - start_bytes

        logger.info(
            "Recovery complete",
            records=len(records),
            bytes=bytes_consumed,
        )

        return records, bytes_consumed

    def close(self) -> None:
        """Close the reader."""
        if self._closed:
            return

        self._closed = True
        if self._close_stream:
            self.stream.close()

        logger.debug("Closed record reader", records_read=self.records_read)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "RecordReader":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
