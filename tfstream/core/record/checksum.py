"""
CRC-32C checksums and the masking transform applied before storage.

It is problematic to compute the CRC of a string that contains embedded
CRCs, so every checksum written to a stream is masked first:

    masked = ((crc >> 15) | (crc << 17)) + 0xa282ead8

All arithmetic is unsigned 32-bit with wraparound.
"""

import crc32c

MASK_DELTA = 0xA282EAD8
UINT32_MAX = 0xFFFFFFFF


def _check_uint32(value: int, name: str) -> None:
    if not 0 <= value <= UINT32_MAX:
        raise ValueError(f"{name} must be an unsigned 32-bit integer, got {value}")


def checksum(data: bytes) -> int:
    """
    Compute the CRC-32C (Castagnoli) checksum of data.

    Args:
        data: Bytes to checksum

    Returns:
        Unsigned 32-bit checksum
    """
    return crc32c.crc32c(data) & UINT32_MAX


def mask(crc: int) -> int:
    """
    Mask a checksum for storage.

    Args:
        crc: Unsigned 32-bit checksum

    Returns:
        Masked checksum

    Raises:
        ValueError: If crc is not an unsigned 32-bit value
    """
    _check_uint32(crc, "crc")
    rotated = ((crc >> 15) | (crc << 17)) & UINT32_MAX
    return (rotated + MASK_DELTA) & UINT32_MAX


def unmask(masked: int) -> int:
    """
    Reverse mask().

    Args:
        masked: Masked checksum as stored in a stream

    Returns:
        Original checksum

    Raises:
        ValueError: If masked is not an unsigned 32-bit value
    """
    _check_uint32(masked, "masked")
    rot = (masked - MASK_DELTA) & UINT32_MAX
    return ((rot >> 17) | (rot << 15)) & UINT32_MAX


def masked_checksum(data: bytes) -> int:
    """Return mask(checksum(data))."""
    return mask(checksum(data))
