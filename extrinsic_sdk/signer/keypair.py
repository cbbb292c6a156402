"""
Key pairs for ed25519 and sr25519 accounts.
"""
import logging
import secrets
from dataclasses import dataclass, field
from typing import Optional

import sr25519

from extrinsic_sdk.address import encode_address
from extrinsic_sdk.config import GENERIC_SS58_PREFIX
from extrinsic_sdk.exceptions import InvalidValue, SigningError
from extrinsic_sdk.signer.base import SignatureScheme, backend_for
from extrinsic_sdk.signer.derivation import (
    ed25519_hard_derive, mini_secret_from_phrase, parse_secret_uri
)
from extrinsic_sdk.utils import BytesLike, bytes_to_hex, to_bytes

logger = logging.getLogger(__name__)

SEED_LENGTH = 32


@dataclass(frozen=True)
class KeyPair:
    """
    Public key plus optional private material.

    Attributes:
        public_key: Raw 32-byte public key
        scheme: Signature scheme of the key
        secret_key: Private material; never part of repr or equality
    """
    public_key: bytes
    scheme: SignatureScheme = SignatureScheme.SR25519
    secret_key: Optional[bytes] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "scheme", SignatureScheme(self.scheme))
        if len(self.public_key) != 32:
            raise SigningError(f"Public key must be 32 bytes, got {len(self.public_key)}")

    def __repr__(self) -> str:
        secret = "<redacted>" if self.secret_key is not None else None
        return (
            f"KeyPair(scheme={self.scheme.value!r}, "
            f"public_key={bytes_to_hex(self.public_key)!r}, secret_key={secret})"
        )

    @classmethod
    def from_seed(cls, seed: BytesLike, scheme: SignatureScheme = SignatureScheme.SR25519) -> 'KeyPair':
        """
        Create a key pair from a 32-byte seed (bytes or hex).

        Raises:
            SigningError: If the seed is not 32 bytes
        """
        try:
            seed = to_bytes(seed)
        except InvalidValue as e:
            raise SigningError("Seed must be bytes or a hex string") from e
        if len(seed) != SEED_LENGTH:
            raise SigningError(f"Seed must be {SEED_LENGTH} bytes, got {len(seed)}")
        public_key, secret = backend_for(scheme).pair_from_seed(seed)
        return cls(public_key, scheme, secret)

    @classmethod
    def from_mnemonic(
        cls,
        phrase: str,
        scheme: SignatureScheme = SignatureScheme.SR25519,
        password: str = ""
    ) -> 'KeyPair':
        return cls.from_seed(mini_secret_from_phrase(phrase, password), scheme)

    @classmethod
    def from_uri(cls, uri: str, scheme: SignatureScheme = SignatureScheme.SR25519) -> 'KeyPair':
        """
        Create a key pair from a secret URI such as ``//Alice`` or
        ``<mnemonic>//hard/soft///password``.

        Raises:
            SigningError: If the URI is malformed or uses a soft junction
                with an ed25519 key
        """
        scheme = SignatureScheme(scheme)
        parsed = parse_secret_uri(uri)
        if parsed.phrase.startswith("0x"):
            seed = to_bytes(parsed.phrase)
        else:
            seed = mini_secret_from_phrase(parsed.phrase, parsed.password or "")

        if scheme is SignatureScheme.ED25519:
            for junction in parsed.junctions:
                if not junction.hard:
                    raise SigningError("ed25519 keys only support hard derivation")
                seed = ed25519_hard_derive(seed, junction.chain_code)
            return cls.from_seed(seed, scheme)

        pair = cls.from_seed(seed, scheme)
        public_key, secret = pair.public_key, pair.secret_key
        for junction in parsed.junctions:
            derive = sr25519.hard_derive_keypair if junction.hard else sr25519.derive_keypair
            _, public_key, secret = derive((junction.chain_code, public_key, secret), b"")
        return cls(bytes(public_key), scheme, bytes(secret))

    @classmethod
    def generate(cls, scheme: SignatureScheme = SignatureScheme.SR25519) -> 'KeyPair':
        return cls.from_seed(secrets.token_bytes(SEED_LENGTH), scheme)

    @property
    def can_sign(self) -> bool:
        return self.secret_key is not None

    def sign(self, message: bytes) -> bytes:
        """
        Sign a message as-is.

        Use ``extrinsic_sdk.signer.sign`` for signing payloads, which applies
        the long-payload hashing rule first.

        Raises:
            SigningError: If the key pair has no private material
        """
        if self.secret_key is None:
            raise SigningError("Key pair has no private key material")
        return backend_for(self.scheme).sign(self.public_key, self.secret_key, message)

    def verify(self, message: bytes, signature: bytes) -> bool:
        return backend_for(self.scheme).verify(signature, message, self.public_key)

    def ss58_address(self, prefix: int = GENERIC_SS58_PREFIX) -> str:
        return encode_address(self.public_key, prefix)
