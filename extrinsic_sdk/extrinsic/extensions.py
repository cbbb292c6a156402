"""
Values of the signed extensions a runtime declares.

Each extension contributes *extra* data, carried inside the extrinsic, and
*additional signed* data, which is only part of the signing payload. The
values below are encoded against the extension's own metadata types.
"""
from typing import Any, Callable, Dict, Tuple

from extrinsic_sdk.era import Era
from extrinsic_sdk.exceptions import UnsupportedSignedExtension
from extrinsic_sdk.metadata.parser import SignedExtension
from extrinsic_sdk.models import UnsignedExtrinsicPayload
from extrinsic_sdk.scale.codec import ScaleCodec

ERA_EXTENSIONS = ("CheckMortality", "CheckEra")
NONCE_EXTENSIONS = ("CheckNonce",)
TIP_EXTENSIONS = ("ChargeTransactionPayment", "ChargeAssetTxPayment")

_EXTRA: Dict[str, Callable[[Era, int, int], Any]] = {
    "CheckNonZeroSender": lambda era, nonce, tip: None,
    "CheckSpecVersion": lambda era, nonce, tip: None,
    "CheckTxVersion": lambda era, nonce, tip: None,
    "CheckGenesis": lambda era, nonce, tip: None,
    "CheckMortality": lambda era, nonce, tip: era,
    "CheckEra": lambda era, nonce, tip: era,
    "CheckNonce": lambda era, nonce, tip: nonce,
    "CheckWeight": lambda era, nonce, tip: None,
    "ChargeTransactionPayment": lambda era, nonce, tip: tip,
    "ChargeAssetTxPayment": lambda era, nonce, tip: {"tip": tip, "asset_id": None},
    "CheckMetadataHash": lambda era, nonce, tip: {"mode": "Disabled"},
}

_ADDITIONAL: Dict[str, Callable[[UnsignedExtrinsicPayload], Any]] = {
    "CheckNonZeroSender": lambda p: None,
    "CheckSpecVersion": lambda p: p.spec_version,
    "CheckTxVersion": lambda p: p.transaction_version,
    "CheckGenesis": lambda p: p.genesis_hash,
    "CheckMortality": lambda p: p.checkpoint_hash,
    "CheckEra": lambda p: p.checkpoint_hash,
    "CheckNonce": lambda p: None,
    "CheckWeight": lambda p: None,
    "ChargeTransactionPayment": lambda p: None,
    "ChargeAssetTxPayment": lambda p: None,
    "CheckMetadataHash": lambda p: None,
}


def _check_supported(extension: SignedExtension, codec: ScaleCodec) -> bool:
    """True for known extensions, False for zero-sized unknown ones."""
    if extension.identifier in _EXTRA:
        return True
    if codec.is_zero_sized(extension.type_ref) and codec.is_zero_sized(extension.additional_signed_ref):
        return False
    raise UnsupportedSignedExtension(extension.identifier)


def encode_extra(
    extensions: Tuple[SignedExtension, ...],
    codec: ScaleCodec,
    era: Era,
    nonce: int,
    tip: int
) -> bytes:
    """
    Encode the extra data of every extension, in declared order.

    Raises:
        UnsupportedSignedExtension: For an unknown extension carrying data
    """
    out = bytearray()
    for extension in extensions:
        if _check_supported(extension, codec):
            value = _EXTRA[extension.identifier](era, nonce, tip)
            out += codec.encode(value, extension.type_ref)
    return bytes(out)


def encode_additional(
    extensions: Tuple[SignedExtension, ...],
    codec: ScaleCodec,
    payload: UnsignedExtrinsicPayload
) -> bytes:
    """Encode the additional signed data of every extension, in declared order."""
    out = bytearray()
    for extension in extensions:
        if _check_supported(extension, codec):
            value = _ADDITIONAL[extension.identifier](payload)
            out += codec.encode(value, extension.additional_signed_ref)
    return bytes(out)


def summarize_extra(extra: Dict[str, Any]) -> Dict[str, Any]:
    """Pick era, nonce and tip out of decoded extra data."""
    summary = {"era": None, "nonce": None, "tip": None}
    for identifier, value in extra.items():
        if identifier in ERA_EXTENSIONS:
            summary["era"] = value
        elif identifier in NONCE_EXTENSIONS:
            summary["nonce"] = value
        elif identifier in TIP_EXTENSIONS:
            summary["tip"] = value["tip"] if isinstance(value, dict) else value
    return summary
