"""
Record writer for appending framed records to a binary stream.

Each record is written as header, payload and footer with masked CRC-32C
checksums protecting both the length and the payload.
"""

import errno
import os
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Union

from tfstream.core.record.checksum import masked_checksum
from tfstream.core.record.encoding import encode_checksum, encode_header, frame_size
from tfstream.utils.config import get_config
from tfstream.utils.logging import ensure_logging_configured, get_logger

logger = get_logger(__name__)

Payload = Union[bytes, bytearray, memoryview]


def _as_byte_view(payload: Payload) -> memoryview:
    if isinstance(payload, str):
        raise TypeError(f"Payload must be bytes-like, got {type(payload)}")
    try:
        view = memoryview(payload)
    except TypeError:
        raise TypeError(f"Payload must be bytes-like, got {type(payload)}") from None
    if not view.c_contiguous:
        raise TypeError("Payload must be a C-contiguous buffer")
    if view.format != "B" or view.ndim != 1:
        view = view.cast("B")
    return view


def _write_fully(stream: BinaryIO, data: memoryview) -> None:
    """
    Write every byte of data, retrying on short writes.

    Raises:
        BlockingIOError: If a non-blocking stream cannot accept data
        OSError: If the stream accepts no bytes
    """
    while data:
        written = stream.write(data)
        if written is None:
            raise BlockingIOError(
                errno.EAGAIN,
                f"Write would block, {len(data)} bytes remaining",
            )
        if written <= 0:
            raise OSError(
                f"Partial write: stream accepted no bytes, {len(data)} bytes remaining"
            )
        data = data[written:]


def write(stream: BinaryIO, payload: Payload) -> int:
    """
    Write one record frame to stream.

    Bytes already written are not rolled back if the stream fails partway;
    the reader detects the incomplete trailing frame.

    Args:
        stream: Binary stream opened for writing
        payload: Record bytes

    Returns:
        Number of bytes written (16 + len(payload))

    Raises:
        TypeError: If payload is not a contiguous bytes-like buffer
        OSError: If the underlying write fails
    """
    view = _as_byte_view(payload)
    length = view.nbytes

    _write_fully(stream, memoryview(encode_header(length)))
    _write_fully(stream, view)
    _write_fully(stream, memoryview(encode_checksum(masked_checksum(view))))

    return frame_size(length)


class RecordWriter:
    """
    Single-writer wrapper around a binary stream.

    Attributes:
        stream: Underlying binary stream
        records_written: Number of records written through this writer
        bytes_written: Number of bytes written through this writer
    """

    def __init__(
        self,
        stream: BinaryIO,
        flush_on_write: Optional[bool] = None,
        fsync_on_flush: Optional[bool] = None,
        close_stream: bool = False,
    ):
        """
        Initialize a record writer.

        Args:
            stream: Binary stream opened for writing
            flush_on_write: Flush after every record (default from config)
            fsync_on_flush: fsync the file descriptor on flush (default from config)
            close_stream: Close the stream when the writer is closed
        """
        config = get_config()

        self.stream = stream
        self.flush_on_write = (
            config.get("record.flush_on_write", False)
            if flush_on_write is None
            else flush_on_write
        )
        self.fsync_on_flush = (
            config.get("record.fsync_on_flush", False)
            if fsync_on_flush is None
            else fsync_on_flush
        )
        self.records_written = 0
        self.bytes_written = 0
        self._close_stream = close_stream
        self._closed = False

        logger.info(
            "Initialized record writer",
            flush_on_write=self.flush_on_write,
            fsync_on_flush=self.fsync_on_flush,
        )

    @classmethod
    def open(cls, path: Union[str, Path], append: bool = True, **kwargs) -> "RecordWriter":
        """
        Open a record file for writing.

        Args:
            path: File path
            append: Append to an existing file instead of truncating it
            **kwargs: Passed to RecordWriter

        Returns:
            Writer that owns the opened file
        """
        ensure_logging_configured()
        stream = open(path, "ab" if append else "wb")
        logger.info("Opened record file for writing", path=str(path), append=append)
        return cls(stream, close_stream=True, **kwargs)

    def write(self, payload: Payload) -> int:
        """
        Write one record.

        Args:
            payload: Record bytes

        Returns:
            Number of bytes written

        Raises:
            ValueError: If the writer is closed
            TypeError: If payload is not a contiguous bytes-like buffer
            OSError: If the underlying write fails
        """
        if self._closed:
            raise ValueError("Cannot write to closed record writer")

        size = write(self.stream, payload)

        self.records_written += 1
        self.bytes_written += size

        if self.flush_on_write:
            self.flush()

        logger.debug(
            "Wrote record",
            size=size,
            records_written=self.records_written,
            bytes_written=self.bytes_written,
        )

        return size

    def write_all(self, payloads: Iterable[Payload]) -> int:
        """
        Write records in iteration order.

        Returns:
            Number of records written
        """
        count = 0
        for payload in payloads:
            self.write(payload)
            count += 1
        return count

    def flush(self) -> None:
        """Flush buffered data, and fsync it when configured to."""
        if self._closed:
            return

        self.stream.flush()

        if self.fsync_on_flush:
            try:
                fd = self.stream.fileno()
            except (AttributeError, OSError):
                fd = None
            if fd is not None:
                os.fsync(fd)

    def close(self) -> None:
        """Flush and close the writer."""
        if self._closed:
            return

        try:
            self.flush()
        finally:
            self._closed = True
            if self._close_stream:
                self.stream.close()

        logger.info(
            "Closed record writer",
            records_written=self.records_written,
            bytes_written=self.bytes_written,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "RecordWriter":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
