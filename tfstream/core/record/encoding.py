"""
Fixed-width little-endian encodings for the frame header and footer.

Wire format of a single frame:
    Length (8 bytes, uint64 LE) - Payload length in bytes
    Length CRC (4 bytes, uint32 LE) - Masked CRC-32C of the 8 length bytes
    Payload (variable) - Raw record bytes
    Payload CRC (4 bytes, uint32 LE) - Masked CRC-32C of the payload
"""

import struct

from tfstream.core.record.checksum import masked_checksum

LENGTH_FORMAT = "<Q"
CHECKSUM_FORMAT = "<I"

LENGTH_SIZE = struct.calcsize(LENGTH_FORMAT)
CHECKSUM_SIZE = struct.calcsize(CHECKSUM_FORMAT)
HEADER_SIZE = LENGTH_SIZE + CHECKSUM_SIZE
FOOTER_SIZE = CHECKSUM_SIZE
FRAME_OVERHEAD = HEADER_SIZE + FOOTER_SIZE

UINT64_MAX = 0xFFFFFFFFFFFFFFFF


def encode_length(length: int) -> bytes:
    """
    Encode a payload length as 8 little-endian bytes.

    Raises:
        ValueError: If length does not fit an unsigned 64-bit integer
    """
    if not 0 <= length <= UINT64_MAX:
        raise ValueError(f"Length must be an unsigned 64-bit integer, got {length}")
    return struct.pack(LENGTH_FORMAT, length)


def decode_length(data: bytes) -> int:
    """
    Decode 8 little-endian bytes into a payload length.

    Raises:
        ValueError: If data is not exactly 8 bytes
    """
    if len(data) != LENGTH_SIZE:
        raise ValueError(f"Length field must be {LENGTH_SIZE} bytes, got {len(data)}")
    return struct.unpack(LENGTH_FORMAT, data)[0]


def encode_checksum(value: int) -> bytes:
    """
    Encode a masked checksum as 4 little-endian bytes.

    Raises:
        ValueError: If value does not fit an unsigned 32-bit integer
    """
    if not 0 <= value <= 0xFFFFFFFF:
        raise ValueError(f"Checksum must be an unsigned 32-bit integer, got {value}")
    return struct.pack(CHECKSUM_FORMAT, value)


def decode_checksum(data: bytes) -> int:
    """
    Decode 4 little-endian bytes into a masked checksum.

    Raises:
        ValueError: If data is not exactly 4 bytes
    """
    if len(data) != CHECKSUM_SIZE:
        raise ValueError(
            f"Checksum field must be {CHECKSUM_SIZE} bytes, got {len(data)}"
        )
    return struct.unpack(CHECKSUM_FORMAT, data)[0]


def encode_header(length: int) -> bytes:
    """Encode the length field followed by its masked checksum."""
    length_bytes = encode_length(length)
    return length_bytes + encode_checksum(masked_checksum(length_bytes))


def frame_size(payload_length: int) -> int:
    """Total serialized size of a frame carrying payload_length bytes."""
    return FRAME_OVERHEAD + payload_length
