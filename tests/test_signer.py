"""
Tests for key pairs, secret URIs and payload signing.
"""
import pytest

from extrinsic_sdk.config import MAX_UNHASHED_PAYLOAD
from extrinsic_sdk.exceptions import SigningError
from extrinsic_sdk.signer import (
    DEV_PHRASE, KeyPair, SignatureScheme, Signer, generate_mnemonic, parse_secret_uri,
    sign, signing_message, verify
)
from extrinsic_sdk.signer.derivation import DeriveJunction
from extrinsic_sdk.utils import blake2_256
from tests.conftest import ALICE_ADDRESS, ALICE_PUBLIC_KEY, BOB_PUBLIC_KEY


class TestSecretUri:
    """Tests for parse_secret_uri."""

    def test_dev_account(self):
        parsed = parse_secret_uri("//Alice")
        assert parsed.phrase == DEV_PHRASE
        assert len(parsed.junctions) == 1
        assert parsed.junctions[0].hard
        assert parsed.password is None

    def test_phrase_path_and_password(self):
        parsed = parse_secret_uri(f"{DEV_PHRASE}//polkadot/0///secret")
        assert parsed.phrase == DEV_PHRASE
        assert [j.hard for j in parsed.junctions] == [True, False]
        assert parsed.password == "secret"

    def test_junction_codes(self):
        numeric = DeriveJunction.from_path_element("0", hard=False)
        assert numeric.chain_code == bytes(32)
        named = DeriveJunction.from_path_element("Alice", hard=True)
        assert named.chain_code[:6] == b"\x14Alice"
        assert len(named.chain_code) == 32
        long = DeriveJunction.from_path_element("x" * 40, hard=True)
        assert len(long.chain_code) == 32

    def test_generate_mnemonic(self):
        assert len(generate_mnemonic(12).split()) == 12
        assert len(generate_mnemonic(24).split()) == 24


class TestKeyPair:
    """Tests for KeyPair construction."""

    def test_dev_accounts(self, alice):
        assert alice.public_key == ALICE_PUBLIC_KEY
        assert alice.scheme is SignatureScheme.SR25519
        assert alice.ss58_address() == ALICE_ADDRESS
        assert KeyPair.from_uri("//Bob").public_key == BOB_PUBLIC_KEY

    def test_mnemonic_matches_uri(self):
        assert KeyPair.from_mnemonic(DEV_PHRASE).public_key == KeyPair.from_uri(DEV_PHRASE).public_key
        assert KeyPair.from_uri("").public_key == KeyPair.from_uri(DEV_PHRASE).public_key

    def test_soft_and_hard_derivations_differ(self):
        hard = KeyPair.from_uri("//Alice//stash")
        soft = KeyPair.from_uri("//Alice/stash")
        assert hard.public_key != soft.public_key

    def test_password_changes_key(self):
        assert KeyPair.from_uri("//Alice///pw").public_key != KeyPair.from_uri("//Alice").public_key

    def test_invalid_mnemonic(self):
        with pytest.raises(SigningError):
            KeyPair.from_mnemonic("definitely not a valid bip39 phrase at all")

    def test_from_seed(self):
        first = KeyPair.from_seed("0x" + "01" * 32)
        second = KeyPair.from_seed(b"\x01" * 32)
        assert first.public_key == second.public_key

    @pytest.mark.parametrize("seed", [b"\x01" * 31, "0xzz", 12])
    def test_invalid_seed(self, seed):
        with pytest.raises(SigningError):
            KeyPair.from_seed(seed)

    def test_ed25519_uri_is_deterministic(self):
        first = KeyPair.from_uri("//Alice", scheme=SignatureScheme.ED25519)
        second = KeyPair.from_uri("//Alice", scheme="ed25519")
        assert first.public_key == second.public_key
        assert first.public_key != ALICE_PUBLIC_KEY
        assert first.scheme is SignatureScheme.ED25519

    def test_ed25519_rejects_soft_junction(self):
        with pytest.raises(SigningError):
            KeyPair.from_uri("//Alice/soft", scheme=SignatureScheme.ED25519)

    def test_generate(self):
        first = KeyPair.generate()
        second = KeyPair.generate(SignatureScheme.ED25519)
        assert first.can_sign and second.can_sign
        assert first.public_key != second.public_key

    def test_repr_redacts_secret(self, alice):
        text = repr(alice)
        assert "<redacted>" in text
        assert alice.secret_key.hex() not in text

    def test_public_only_keypair_cannot_sign(self):
        watch_only = KeyPair(ALICE_PUBLIC_KEY)
        assert not watch_only.can_sign
        with pytest.raises(SigningError):
            watch_only.sign(b"payload")

    def test_invalid_public_key(self):
        with pytest.raises(SigningError):
            KeyPair(b"\x01" * 31)

    def test_satisfies_signer_protocol(self, alice):
        assert isinstance(alice, Signer)


class TestSigning:
    """Tests for sign and verify."""

    @pytest.mark.parametrize("scheme", list(SignatureScheme))
    def test_sign_and_verify(self, scheme):
        keypair = KeyPair.from_seed(b"\x07" * 32, scheme)
        payload = b"\x05\x00" + b"\x42" * 40
        signature = sign(payload, keypair)
        assert len(signature) == 64
        assert verify(payload, signature, keypair.public_key, scheme)

    @pytest.mark.parametrize("scheme", list(SignatureScheme))
    def test_flipped_payload_byte_is_rejected(self, scheme):
        keypair = KeyPair.from_seed(b"\x07" * 32, scheme)
        payload = bytes(range(100))
        signature = sign(payload, keypair)
        for index in (0, 50, 99):
            tampered = bytearray(payload)
            tampered[index] ^= 0x01
            assert not verify(bytes(tampered), signature, keypair.public_key, scheme)

    def test_ed25519_is_deterministic(self, ed25519_keypair):
        payload = b"deterministic"
        assert sign(payload, ed25519_keypair) == sign(payload, ed25519_keypair)

    def test_long_payload_is_hashed(self, alice):
        payload = b"\x01" * (MAX_UNHASHED_PAYLOAD + 1)
        assert signing_message(payload) == blake2_256(payload)
        assert signing_message(payload[:MAX_UNHASHED_PAYLOAD]) == payload[:MAX_UNHASHED_PAYLOAD]
        signature = sign(payload, alice)
        assert verify(payload, signature, alice.public_key, SignatureScheme.SR25519)
        assert alice.verify(blake2_256(payload), signature)

    def test_wrong_key_is_rejected(self, alice):
        signature = sign(b"payload", alice)
        assert not verify(b"payload", signature, BOB_PUBLIC_KEY, SignatureScheme.SR25519)

    def test_wrong_signature_length(self, alice):
        assert not verify(b"payload", b"\x00" * 63, alice.public_key, SignatureScheme.SR25519)

    def test_custom_signer(self, ed25519_keypair):
        class ExternalSigner:
            public_key = ed25519_keypair.public_key
            scheme = SignatureScheme.ED25519

            def __init__(self):
                self.messages = []

            def sign(self, message):
                self.messages.append(message)
                return ed25519_keypair.sign(message)

        signer = ExternalSigner()
        signature = sign(b"external", signer)
        assert signer.messages == [b"external"]
        assert verify(b"external", signature, signer.public_key, signer.scheme)

    def test_signer_returning_bad_signature(self):
        class BrokenSigner:
            public_key = ALICE_PUBLIC_KEY
            scheme = SignatureScheme.SR25519

            def sign(self, message):
                return b"\x00" * 10

        with pytest.raises(SigningError):
            sign(b"payload", BrokenSigner())
