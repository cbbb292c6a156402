"""
SS58 address encoding.

An address is base58(prefix || public_key || checksum) where the checksum is
the first two bytes of blake2b-512(b"SS58PRE" || prefix || public_key).
Prefixes below 64 take one byte; prefixes up to 16383 take two.
"""
import logging
from typing import Iterable, Optional, Tuple

import base58

from extrinsic_sdk.config import NetworkConfig
from extrinsic_sdk.exceptions import (
    AddressError, ChecksumMismatch, InvalidAddress, InvalidValue, UnknownNetworkPrefix
)
from extrinsic_sdk.utils import BytesLike, blake2_512, to_bytes

logger = logging.getLogger(__name__)

SS58_CONTEXT = b"SS58PRE"
CHECKSUM_LENGTH = 2
# sr25519/ed25519 keys are 32 bytes; compressed ECDSA keys are 33
PUBLIC_KEY_LENGTHS = (32, 33)
MAX_PREFIX = 16383


def _prefix_bytes(prefix: int) -> bytes:
    if not isinstance(prefix, int) or isinstance(prefix, bool) or not 0 <= prefix <= MAX_PREFIX:
        raise InvalidAddress(f"SS58 prefix must be an int in [0, {MAX_PREFIX}], got {prefix!r}")
    if prefix < 64:
        return bytes([prefix])
    first = ((prefix & 0b0000_0000_1111_1100) >> 2) | 0b0100_0000
    second = (prefix >> 8) | ((prefix & 0b0000_0000_0000_0011) << 6)
    return bytes([first, second])


def _checksum(data: bytes) -> bytes:
    return blake2_512(SS58_CONTEXT + data)[:CHECKSUM_LENGTH]


def encode_address(public_key: BytesLike, prefix: int) -> str:
    """
    Encode a public key as an SS58 address.

    Args:
        public_key: Raw public key bytes (or hex)
        prefix: Network prefix

    Returns:
        SS58 address string

    Raises:
        InvalidAddress: If the key length or prefix is invalid
    """
    try:
        key = to_bytes(public_key)
    except InvalidValue as e:
        raise InvalidAddress(str(e)) from e
    if len(key) not in PUBLIC_KEY_LENGTHS:
        raise InvalidAddress(f"Public key must be 32 or 33 bytes, got {len(key)}")

    body = _prefix_bytes(prefix) + key
    return base58.b58encode(body + _checksum(body)).decode("ascii")


def decode_address(
    address: str,
    allowed_prefixes: Optional[Iterable[int]] = None
) -> Tuple[bytes, int]:
    """
    Decode an SS58 address into its public key and network prefix.

    Args:
        address: SS58 address string
        allowed_prefixes: Prefixes accepted for this call; defaults to every
            prefix registered in the network configuration

    Returns:
        Tuple of (public_key, prefix)

    Raises:
        InvalidAddress: If the address is not base58 or has the wrong length
        ChecksumMismatch: If the checksum does not match
        UnknownNetworkPrefix: If the prefix is not allowed
    """
    if not isinstance(address, str) or not address:
        raise InvalidAddress(f"Address must be a non-empty string, got {address!r}")
    try:
        raw = base58.b58decode(address)
    except ValueError as e:
        raise InvalidAddress(f"Invalid base58 in address {address!r}: {e}") from e

    if len(raw) < 1 + CHECKSUM_LENGTH:
        raise InvalidAddress(f"Address too short: {address!r}")
    if raw[0] & 0b1000_0000:
        raise InvalidAddress(f"Reserved SS58 prefix byte 0x{raw[0]:02x}")

    if raw[0] & 0b0100_0000:
        if len(raw) < 2 + CHECKSUM_LENGTH:
            raise InvalidAddress(f"Address too short: {address!r}")
        prefix_length = 2
        lower = ((raw[0] & 0b0011_1111) << 2) | (raw[1] >> 6)
        upper = raw[1] & 0b0011_1111
        prefix = lower | (upper << 8)
    else:
        prefix_length = 1
        prefix = raw[0]

    body, checksum = raw[:-CHECKSUM_LENGTH], raw[-CHECKSUM_LENGTH:]
    public_key = body[prefix_length:]
    if len(public_key) not in PUBLIC_KEY_LENGTHS:
        raise InvalidAddress(f"Unexpected public key length {len(public_key)} in {address!r}")

    if _checksum(body) != checksum:
        raise ChecksumMismatch(f"Invalid checksum for address {address!r}")

    allowed = NetworkConfig.registered_prefixes() if allowed_prefixes is None else frozenset(allowed_prefixes)
    if prefix not in allowed:
        raise UnknownNetworkPrefix(prefix)

    return public_key, prefix


def is_valid_address(address: str, allowed_prefixes: Optional[Iterable[int]] = None) -> bool:
    """Check whether a string is a valid SS58 address."""
    try:
        decode_address(address, allowed_prefixes)
        return True
    except AddressError:
        return False
