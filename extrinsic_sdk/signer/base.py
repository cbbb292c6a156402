"""
Signature schemes and payload signing.
"""
import logging
from enum import Enum
from typing import Callable, Dict, NamedTuple, Protocol, Tuple, runtime_checkable

import sr25519
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from extrinsic_sdk.config import MAX_UNHASHED_PAYLOAD
from extrinsic_sdk.exceptions import SigningError
from extrinsic_sdk.utils import BytesLike, blake2_256, to_bytes

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 64


class SignatureScheme(str, Enum):
    """Supported key types, valued by their MultiSignature variant name."""
    ED25519 = "ed25519"
    SR25519 = "sr25519"

    @property
    def variant_name(self) -> str:
        return {"ed25519": "Ed25519", "sr25519": "Sr25519"}[self.value]

    @property
    def variant_index(self) -> int:
        return {"ed25519": 0, "sr25519": 1}[self.value]


@runtime_checkable
class Signer(Protocol):
    """
    Anything that can sign for an account.

    ``sign`` receives the message exactly as it must be signed: payloads over
    256 bytes have already been replaced by their blake2b-256 digest.
    """
    public_key: bytes
    scheme: SignatureScheme

    def sign(self, message: bytes) -> bytes:
        ...


class SchemeBackend(NamedTuple):
    pair_from_seed: Callable[[bytes], Tuple[bytes, bytes]]
    sign: Callable[[bytes, bytes, bytes], bytes]
    verify: Callable[[bytes, bytes, bytes], bool]


def _ed25519_pair_from_seed(seed: bytes) -> Tuple[bytes, bytes]:
    private_key = Ed25519PrivateKey.from_private_bytes(seed)
    public_key = private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    return public_key, seed


def _ed25519_sign(public_key: bytes, secret: bytes, message: bytes) -> bytes:
    return Ed25519PrivateKey.from_private_bytes(secret).sign(message)


def _ed25519_verify(signature: bytes, message: bytes, public_key: bytes) -> bool:
    try:
        Ed25519PublicKey.from_public_bytes(public_key).verify(signature, message)
        return True
    except (InvalidSignature, ValueError):
        return False


def _sr25519_pair_from_seed(seed: bytes) -> Tuple[bytes, bytes]:
    public_key, secret = sr25519.pair_from_seed(seed)
    return bytes(public_key), bytes(secret)


def _sr25519_sign(public_key: bytes, secret: bytes, message: bytes) -> bytes:
    return bytes(sr25519.sign((public_key, secret), message))


def _sr25519_verify(signature: bytes, message: bytes, public_key: bytes) -> bool:
    try:
        return bool(sr25519.verify(signature, message, public_key))
    except ValueError:
        return False


SCHEMES: Dict[SignatureScheme, SchemeBackend] = {
    SignatureScheme.ED25519: SchemeBackend(_ed25519_pair_from_seed, _ed25519_sign, _ed25519_verify),
    SignatureScheme.SR25519: SchemeBackend(_sr25519_pair_from_seed, _sr25519_sign, _sr25519_verify),
}


def backend_for(scheme: SignatureScheme) -> SchemeBackend:
    try:
        return SCHEMES[SignatureScheme(scheme)]
    except (KeyError, ValueError) as e:
        raise SigningError(f"Unsupported signature scheme: {scheme!r}") from e


def signing_message(payload: bytes) -> bytes:
    """Message actually signed for a payload: the payload, or its hash when long."""
    if len(payload) > MAX_UNHASHED_PAYLOAD:
        return blake2_256(payload)
    return payload


def sign(payload: BytesLike, signer: Signer) -> bytes:
    """
    Sign a signing payload.

    Args:
        payload: Signing payload produced by the extrinsic builder
        signer: KeyPair or any object implementing the Signer protocol

    Returns:
        64-byte signature

    Raises:
        SigningError: If the signer has no private material or fails
    """
    signature = signer.sign(signing_message(to_bytes(payload)))
    if len(signature) != SIGNATURE_LENGTH:
        raise SigningError(f"Signer returned a {len(signature)}-byte signature")
    return bytes(signature)


def verify(payload: BytesLike, signature: BytesLike, public_key: BytesLike, scheme: SignatureScheme) -> bool:
    """
    Verify a signature over a signing payload.

    Returns:
        True if the signature is valid for the payload and public key
    """
    signature, public_key = to_bytes(signature), to_bytes(public_key)
    if len(signature) != SIGNATURE_LENGTH:
        return False
    message = signing_message(to_bytes(payload))
    return backend_for(scheme).verify(signature, message, public_key)
