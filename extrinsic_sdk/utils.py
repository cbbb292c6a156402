"""
Utility functions for the extrinsic SDK.
"""
import hashlib
from typing import Union

from extrinsic_sdk.exceptions import InvalidValue

BytesLike = Union[bytes, bytearray, memoryview, str]


def blake2_256(data: bytes) -> bytes:
    """blake2b with a 32-byte digest, the runtime's default hasher."""
    return hashlib.blake2b(data, digest_size=32).digest()


def blake2_512(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=64).digest()


def hex_to_bytes(value: str) -> bytes:
    """
    Decode a hex string with or without the 0x prefix.

    Raises:
        InvalidValue: If the string is not valid hex
    """
    if not isinstance(value, str):
        raise InvalidValue(f"Expected a hex string, got {type(value).__name__}")
    if value.startswith(("0x", "0X")):
        value = value[2:]
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise InvalidValue(f"Invalid hex string: {e}") from e


def bytes_to_hex(data: bytes) -> str:
    """Encode bytes as a 0x-prefixed lowercase hex string."""
    return "0x" + bytes(data).hex()


def to_bytes(value: BytesLike) -> bytes:
    """Accept raw bytes or a hex string and return bytes."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return hex_to_bytes(value)
    raise InvalidValue(f"Expected bytes or a hex string, got {type(value).__name__}")
