"""
Compact (variable-length) integer encoding.

The two low bits of the first byte select the width class:

    0b00  single byte, values < 2**6
    0b01  two bytes,   values < 2**14
    0b10  four bytes,  values < 2**30
    0b11  big integer, the upper six bits hold (byte length - 4)
"""
from extrinsic_sdk.exceptions import InvalidValue, MalformedCompactInt

SINGLE_BYTE_MAX = (1 << 6) - 1
TWO_BYTE_MAX = (1 << 14) - 1
FOUR_BYTE_MAX = (1 << 30) - 1
# 6 bits of length header allow at most 63 + 4 bytes
MAX_COMPACT_BYTES = 67
MAX_COMPACT = (1 << (8 * MAX_COMPACT_BYTES)) - 1


def encode_compact(value: int) -> bytes:
    """
    Encode a non-negative integer in its smallest compact form.

    Raises:
        InvalidValue: If the value is negative, not an integer or too large
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidValue(f"Compact value must be an int, got {type(value).__name__}")
    if value < 0:
        raise InvalidValue(f"Compact value must be non-negative, got {value}")

    if value <= SINGLE_BYTE_MAX:
        return bytes([value << 2])
    if value <= TWO_BYTE_MAX:
        return ((value << 2) | 0b01).to_bytes(2, "little")
    if value <= FOUR_BYTE_MAX:
        return ((value << 2) | 0b10).to_bytes(4, "little")

    length = (value.bit_length() + 7) // 8
    if length > MAX_COMPACT_BYTES:
        raise InvalidValue(f"Compact value too large: {value.bit_length()} bits")
    return bytes([((length - 4) << 2) | 0b11]) + value.to_bytes(length, "little")


def read_compact(cursor, strict: bool = True) -> int:
    """
    Read one compact integer from a cursor.

    Args:
        cursor: A ScaleCursor positioned at the compact prefix
        strict: Reject encodings that are not the minimal form

    Raises:
        TruncatedInput: If the cursor runs out of bytes
        MalformedCompactInt: If strict and the encoding is not minimal
    """
    start = cursor.offset
    first = cursor.read_u8()
    mode = first & 0b11

    if mode == 0b00:
        return first >> 2

    if mode == 0b01:
        value = int.from_bytes(bytes([first]) + cursor.read(1), "little") >> 2
        if strict and value <= SINGLE_BYTE_MAX:
            raise MalformedCompactInt(
                f"Non-minimal two-byte compact {value} at offset {start}"
            )
        return value

    if mode == 0b10:
        value = int.from_bytes(bytes([first]) + cursor.read(3), "little") >> 2
        if strict and value <= TWO_BYTE_MAX:
            raise MalformedCompactInt(
                f"Non-minimal four-byte compact {value} at offset {start}"
            )
        return value

    length = (first >> 2) + 4
    raw = cursor.read(length)
    value = int.from_bytes(raw, "little")
    if strict and (value <= FOUR_BYTE_MAX or raw[-1] == 0):
        raise MalformedCompactInt(
            f"Non-minimal {length}-byte compact {value} at offset {start}"
        )
    return value
