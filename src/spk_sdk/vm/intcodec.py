"""
Fixed-Width Integer Codec
=========================

Converts signed integers to and from the 4-byte operand encoding used in
the instruction stream (big-endian, two's complement).
"""

import struct

_INT_FORMAT = ">i"

INT_SIZE = struct.calcsize(_INT_FORMAT)
INT_MIN = -(1 << 31)
INT_MAX = (1 << 31) - 1


def int_to_bytes(value: int) -> bytes:
    """
    Encode a signed 32-bit integer as 4 big-endian bytes.

    Raises:
        OverflowError: If value does not fit in 32 bits
    """
    if not INT_MIN <= value <= INT_MAX:
        raise OverflowError(f"{value} does not fit in a {INT_SIZE}-byte operand")
    return struct.pack(_INT_FORMAT, value)


def int_from_bytes(data: bytes, offset: int = 0) -> int:
    """
    Decode a signed 32-bit integer from data at offset.

    Raises:
        ValueError: If fewer than 4 bytes are available
    """
    if len(data) - offset < INT_SIZE:
        raise ValueError(
            f"need {INT_SIZE} bytes at offset {offset}, have {max(len(data) - offset, 0)}"
        )
    return struct.unpack_from(_INT_FORMAT, data, offset)[0]
