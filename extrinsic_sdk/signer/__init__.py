"""
Signing for ed25519 and sr25519 accounts.
"""
from extrinsic_sdk.signer.base import SignatureScheme, Signer, sign, signing_message, verify
from extrinsic_sdk.signer.derivation import DEV_PHRASE, generate_mnemonic, parse_secret_uri
from extrinsic_sdk.signer.keypair import KeyPair

__all__ = [
    "SignatureScheme",
    "Signer",
    "KeyPair",
    "sign",
    "verify",
    "signing_message",
    "parse_secret_uri",
    "generate_mnemonic",
    "DEV_PHRASE",
]
