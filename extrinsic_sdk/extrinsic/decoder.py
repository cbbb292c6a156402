"""
Decoding of extrinsics back into their structure.
"""
import logging
from typing import Any, Optional

from extrinsic_sdk.address import encode_address
from extrinsic_sdk.exceptions import (
    InvalidExtrinsic, TruncatedInput, UnsupportedExtrinsicVersion
)
from extrinsic_sdk.extrinsic.builder import SIGNED_FLAG, extrinsic_hash, length_prefixed
from extrinsic_sdk.extrinsic.extensions import summarize_extra
from extrinsic_sdk.metadata.registry import Registry
from extrinsic_sdk.models import DecodedCall, DecodedExtrinsic, DecodeOptions
from extrinsic_sdk.scale.codec import ScaleCodec
from extrinsic_sdk.scale.cursor import ScaleCursor
from extrinsic_sdk.signer.base import SIGNATURE_LENGTH, SignatureScheme
from extrinsic_sdk.utils import BytesLike, bytes_to_hex, to_bytes

logger = logging.getLogger(__name__)

SUPPORTED_EXTRINSIC_VERSIONS = (4,)
VERSION_MASK = 0b0111_1111


class ExtrinsicDecoder:
    """
    Decodes extrinsics using the registry they were built against.

    Args:
        registry: Registry of the runtime
        options: Numeric rendering and framing options
    """

    def __init__(self, registry: Registry, options: Optional[DecodeOptions] = None):
        self.registry = registry
        self.options = options or DecodeOptions()
        self.codec = ScaleCodec(registry, numeric_output=self.options.numeric_output)

    def decode(self, data: BytesLike) -> DecodedExtrinsic:
        """
        Decode an extrinsic.

        Args:
            data: Extrinsic bytes or 0x hex, length-prefixed unless the
                options say otherwise

        Returns:
            Decoded extrinsic

        Raises:
            TruncatedInput: If the input ends early
            UnsupportedExtrinsicVersion: If the version is not 4
            InvalidExtrinsic: If the length prefix or trailing bytes are wrong
            UnknownCall: If the call indices are not in the metadata
        """
        raw = to_bytes(data)
        cursor = ScaleCursor(raw)

        if self.options.length_prefixed:
            length = cursor.read_compact()
            if length > cursor.remaining:
                raise TruncatedInput(cursor.offset, length, cursor.remaining)
            if length < cursor.remaining:
                raise InvalidExtrinsic(
                    f"Length prefix {length} does not match {cursor.remaining} remaining bytes"
                )
            wire = raw
        else:
            wire = length_prefixed(raw)

        version_byte = cursor.read_u8()
        signed = bool(version_byte & SIGNED_FLAG)
        version = version_byte & VERSION_MASK
        if version not in SUPPORTED_EXTRINSIC_VERSIONS:
            raise UnsupportedExtrinsicVersion(version)

        address = signature = None
        extra = {}
        if signed:
            address = self._decode_address(cursor)
            signature = self._decode_signature(cursor)
            for extension in self.registry.signed_extensions:
                extra[extension.identifier] = self.codec.decode_from(cursor, extension.type_ref)

        call = self.decode_call(cursor)
        if not cursor.at_end():
            raise InvalidExtrinsic(f"{cursor.remaining} trailing bytes after the call")

        logger.debug(
            f"Decoded {'signed' if signed else 'unsigned'} extrinsic "
            f"{call.module}.{call.call} ({len(wire)} bytes)"
        )
        summary = summarize_extra(extra)
        return DecodedExtrinsic(
            version=version,
            signed=signed,
            address=address,
            signature=signature,
            era=summary["era"],
            nonce=summary["nonce"],
            tip=summary["tip"],
            extra=extra,
            call=call,
            hash=extrinsic_hash(wire),
            length=len(wire),
        )

    def decode_call(self, cursor: ScaleCursor) -> DecodedCall:
        """Decode a call at the cursor: pallet index, call index, arguments."""
        module_index = cursor.read_u8()
        call_index = cursor.read_u8()
        spec = self.registry.call_by_index(module_index, call_index)
        args = {param.name: self.codec.decode_from(cursor, param.type_ref) for param in spec.params}
        return DecodedCall(
            module=spec.module_name,
            call=spec.call_name,
            module_index=module_index,
            call_index=call_index,
            args=args,
        )

    def _decode_address(self, cursor: ScaleCursor) -> Any:
        address_type = self.registry.address_type
        if address_type is None:
            return encode_address(cursor.read(32), self.codec.ss58_prefix)
        return self.codec.decode_from(cursor, address_type)

    def _decode_signature(self, cursor: ScaleCursor) -> Any:
        signature_type = self.registry.signature_type
        if signature_type is not None:
            return self.codec.decode_from(cursor, signature_type)
        index = cursor.read_u8()
        scheme = next((s for s in SignatureScheme if s.variant_index == index), None)
        if scheme is None:
            raise InvalidExtrinsic(f"Unknown signature scheme index {index}")
        return {scheme.variant_name: bytes_to_hex(cursor.read(SIGNATURE_LENGTH))}
