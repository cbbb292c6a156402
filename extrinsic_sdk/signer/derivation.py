"""
Secret URI parsing and key derivation helpers.

A secret URI has the form ``<phrase>[//hard|/soft]...[///password]``. An
empty phrase stands for the well-known development phrase, so ``//Alice`` is
the development account Alice.
"""
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from bip39 import bip39_generate, bip39_to_mini_secret

from extrinsic_sdk.exceptions import SigningError
from extrinsic_sdk.scale.compact import encode_compact
from extrinsic_sdk.utils import blake2_256

DEV_PHRASE = "bottom drive obey lake curtain smoke basket hold race lonely fit walk"

JUNCTION_ID_LEN = 32
ED25519_HDKD_CONTEXT = "Ed25519HDKD"

_URI_PATTERN = re.compile(r"^(?P<phrase>[^/]*)(?P<path>(//?[^/]+)*)(///(?P<password>.*))?$")
_JUNCTION_PATTERN = re.compile(r"/(/?)([^/]+)")


def _scale_str(value: str) -> bytes:
    raw = value.encode("utf-8")
    return encode_compact(len(raw)) + raw


@dataclass(frozen=True)
class DeriveJunction:
    """One step of a derivation path."""
    chain_code: bytes
    hard: bool

    @classmethod
    def from_path_element(cls, element: str, hard: bool) -> 'DeriveJunction':
        """
        Build a junction from a path element.

        Numeric elements are encoded as u64, anything else as a SCALE string.
        Codes longer than 32 bytes are hashed; shorter ones are zero padded.
        """
        if element.isdigit() and int(element) < 1 << 64:
            code = int(element).to_bytes(8, "little")
        else:
            code = _scale_str(element)
        if len(code) > JUNCTION_ID_LEN:
            code = blake2_256(code)
        return cls(code.ljust(JUNCTION_ID_LEN, b"\x00"), hard)


@dataclass(frozen=True)
class SecretUri:
    phrase: str
    junctions: Tuple[DeriveJunction, ...]
    password: Optional[str] = None


def parse_secret_uri(uri: str) -> SecretUri:
    """
    Split a secret URI into phrase, junctions and password.

    Raises:
        SigningError: If the URI is malformed
    """
    match = _URI_PATTERN.match(uri or "")
    if match is None:
        raise SigningError("Malformed secret URI")
    phrase = match.group("phrase").strip() or DEV_PHRASE
    junctions = tuple(
        DeriveJunction.from_path_element(element, hard=bool(extra_slash))
        for extra_slash, element in _JUNCTION_PATTERN.findall(match.group("path") or "")
    )
    return SecretUri(phrase, junctions, match.group("password"))


def mini_secret_from_phrase(phrase: str, password: str = "") -> bytes:
    """
    Derive the 32-byte mini secret of a BIP39 phrase.

    Raises:
        SigningError: If the phrase is not a valid mnemonic
    """
    try:
        return bytes(bip39_to_mini_secret(phrase, password or ""))
    except ValueError as e:
        raise SigningError(f"Invalid mnemonic phrase: {e}") from e


def generate_mnemonic(words: int = 12) -> str:
    return bip39_generate(words)


def ed25519_hard_derive(seed: bytes, chain_code: bytes) -> bytes:
    """Derive a child ed25519 seed through a hard junction."""
    return blake2_256(_scale_str(ED25519_HDKD_CONTEXT) + seed + chain_code)
