"""
Offline construction, signing and decoding of Substrate extrinsics,
driven by runtime metadata.
"""
from extrinsic_sdk.address import decode_address, encode_address, is_valid_address
from extrinsic_sdk.client import ExtrinsicClient
from extrinsic_sdk.config import NetworkConfig
from extrinsic_sdk.era import Era
from extrinsic_sdk.exceptions import (
    AddressError, ArgumentMismatch, ChecksumMismatch, CodecError, ConstructionError,
    ExtrinsicDecodeError, ExtrinsicSdkError, IncompletePayload, InvalidAddress,
    InvalidExtrinsic, InvalidMetadata, InvalidValue, MalformedCompactInt, MetadataError,
    NetworkError, RpcConnectionError, RpcError, RpcResponseError, SigningError,
    TruncatedInput, UnknownCall, UnknownNetworkPrefix, UnknownType, UnknownVariant,
    UnsupportedExtrinsicVersion, UnsupportedMetadataVersion, UnsupportedSignedExtension
)
from extrinsic_sdk.extrinsic import ExtrinsicBuilder, ExtrinsicDecoder, extrinsic_hash
from extrinsic_sdk.metadata import CallSpec, Registry
from extrinsic_sdk.models import (
    ChainState, DecodedCall, DecodedExtrinsic, DecodeOptions, NumericOutputMode,
    PreparedExtrinsic, RuntimeVersion, SignedExtrinsicResult, UnsignedExtrinsicPayload
)
from extrinsic_sdk.rpc import JsonRpcClient
from extrinsic_sdk.scale import ScaleCursor
from extrinsic_sdk.scale.codec import ScaleCodec
from extrinsic_sdk.signer import KeyPair, SignatureScheme, Signer, sign, verify
from extrinsic_sdk.version import __version__

__all__ = [
    # clients
    "ExtrinsicClient",
    "JsonRpcClient",
    # core
    "ScaleCodec",
    "ScaleCursor",
    "Registry",
    "CallSpec",
    "ExtrinsicBuilder",
    "ExtrinsicDecoder",
    "extrinsic_hash",
    "Era",
    "KeyPair",
    "SignatureScheme",
    "Signer",
    "sign",
    "verify",
    "encode_address",
    "decode_address",
    "is_valid_address",
    "NetworkConfig",
    # models
    "UnsignedExtrinsicPayload",
    "DecodeOptions",
    "DecodedCall",
    "DecodedExtrinsic",
    "NumericOutputMode",
    "RuntimeVersion",
    "ChainState",
    "PreparedExtrinsic",
    "SignedExtrinsicResult",
    # errors
    "ExtrinsicSdkError",
    "CodecError",
    "TruncatedInput",
    "MalformedCompactInt",
    "UnknownVariant",
    "InvalidValue",
    "MetadataError",
    "InvalidMetadata",
    "UnsupportedMetadataVersion",
    "UnknownType",
    "UnknownCall",
    "AddressError",
    "InvalidAddress",
    "ChecksumMismatch",
    "UnknownNetworkPrefix",
    "ConstructionError",
    "ArgumentMismatch",
    "IncompletePayload",
    "UnsupportedSignedExtension",
    "SigningError",
    "ExtrinsicDecodeError",
    "UnsupportedExtrinsicVersion",
    "InvalidExtrinsic",
    "NetworkError",
    "RpcError",
    "RpcConnectionError",
    "RpcResponseError",
    "__version__",
]
