"""
Exceptions for the extrinsic SDK.
"""
from typing import Any, Iterable, Optional


class ExtrinsicSdkError(Exception):
    """Base exception for all SDK errors."""
    pass


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------

class CodecError(ExtrinsicSdkError):
    """Raised when SCALE encoding or decoding fails."""
    pass


class TruncatedInput(CodecError):
    """Raised when a decoder needs more bytes than are available."""

    def __init__(self, offset: int, needed: int, available: int):
        self.offset = offset
        self.needed = needed
        self.available = available
        super().__init__(
            f"Truncated input at offset {offset}: need {needed} bytes, {available} available"
        )


class MalformedCompactInt(CodecError):
    """Raised when a compact integer is not in its canonical minimal form."""
    pass


class UnknownVariant(CodecError):
    """Raised when an enum tag has no matching variant in the metadata."""

    def __init__(self, index: int, type_name: Optional[str] = None):
        self.index = index
        self.type_name = type_name
        where = f" of {type_name}" if type_name else ""
        super().__init__(f"Unknown variant index {index}{where}")


class InvalidValue(CodecError):
    """Raised when a value cannot be encoded as the requested type."""
    pass


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

class MetadataError(ExtrinsicSdkError):
    """Base exception for runtime metadata errors."""
    pass


class InvalidMetadata(MetadataError):
    """Raised when a metadata blob is not recognisable runtime metadata."""
    pass


class UnsupportedMetadataVersion(MetadataError):
    """Raised for metadata versions this SDK cannot parse."""

    def __init__(self, version: int):
        self.version = version
        super().__init__(f"Unsupported metadata version: V{version}")


class UnknownType(MetadataError):
    """Raised when a type name or id is not present in the registry."""
    pass


class UnknownCall(MetadataError):
    """Raised when a pallet or call cannot be found in the registry."""
    pass


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

class AddressError(ExtrinsicSdkError):
    """Base exception for SS58 address errors."""
    pass


class InvalidAddress(AddressError):
    """Raised when an address is not valid base58 or has the wrong length."""
    pass


class ChecksumMismatch(AddressError):
    """Raised when an address checksum does not match its payload."""
    pass


class UnknownNetworkPrefix(AddressError):
    """Raised when an address prefix is not registered for this deployment."""

    def __init__(self, prefix: int):
        self.prefix = prefix
        super().__init__(f"Unknown network prefix: {prefix}")


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class ConstructionError(ExtrinsicSdkError):
    """Base exception for errors detected while building a transaction."""
    pass


class ArgumentMismatch(ConstructionError):
    """Raised when call arguments do not match the declared parameters."""

    def __init__(self, call: str, missing: Iterable[str] = (), unexpected: Iterable[str] = ()):
        self.call = call
        self.missing = sorted(missing)
        self.unexpected = sorted(unexpected)
        parts = []
        if self.missing:
            parts.append(f"missing: {', '.join(self.missing)}")
        if self.unexpected:
            parts.append(f"unexpected: {', '.join(self.unexpected)}")
        super().__init__(f"Argument mismatch for {call} ({'; '.join(parts)})")


class IncompletePayload(ConstructionError):
    """Raised when a signing payload is missing a required field."""
    pass


class UnsupportedSignedExtension(ConstructionError):
    """Raised when the runtime declares a signed extension we cannot fill in."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Unsupported signed extension: {identifier}")


class SigningError(ExtrinsicSdkError):
    """Raised when a payload cannot be signed."""
    pass


# ---------------------------------------------------------------------------
# Extrinsic decoding
# ---------------------------------------------------------------------------

class ExtrinsicDecodeError(ExtrinsicSdkError):
    """Base exception for extrinsic decoding errors."""
    pass


class UnsupportedExtrinsicVersion(ExtrinsicDecodeError):
    """Raised when the extrinsic version byte is not supported."""

    def __init__(self, version: int):
        self.version = version
        super().__init__(f"Unsupported extrinsic version: {version}")


class InvalidExtrinsic(ExtrinsicDecodeError):
    """Raised when an extrinsic is structurally invalid."""
    pass


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------

class NetworkError(ExtrinsicSdkError):
    """Base exception for errors talking to a node."""
    pass


class RpcError(NetworkError):
    """Raised when the node answers with a JSON-RPC error envelope."""

    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"RPC error {code}: {message}")


class RpcConnectionError(NetworkError):
    """Raised when the node cannot be reached."""
    pass


class RpcResponseError(NetworkError):
    """Raised when the node returns something that is not JSON-RPC."""
    pass
