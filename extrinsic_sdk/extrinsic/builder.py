"""
Construction of calls, signing payloads and extrinsics.
"""
import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional, Union

from extrinsic_sdk.era import Era
from extrinsic_sdk.exceptions import ArgumentMismatch, ConstructionError, InvalidValue
from extrinsic_sdk.extrinsic.extensions import encode_additional, encode_extra
from extrinsic_sdk.metadata.registry import CallSpec, Registry
from extrinsic_sdk.models import UnsignedExtrinsicPayload
from extrinsic_sdk.scale.codec import ScaleCodec
from extrinsic_sdk.scale.compact import encode_compact
from extrinsic_sdk.scale.types import Variant
from extrinsic_sdk.signer.base import SIGNATURE_LENGTH, SignatureScheme
from extrinsic_sdk.utils import BytesLike, blake2_256, bytes_to_hex, to_bytes

logger = logging.getLogger(__name__)

SIGNED_FLAG = 0b1000_0000


def length_prefixed(body: bytes) -> bytes:
    return encode_compact(len(body)) + body


def extrinsic_hash(extrinsic: BytesLike) -> str:
    """blake2b-256 hash of the wire bytes of an extrinsic, as 0x hex."""
    return bytes_to_hex(blake2_256(to_bytes(extrinsic)))


class ExtrinsicBuilder:
    """
    Builds extrinsics against one metadata registry.

    Args:
        registry: Registry of the runtime the extrinsic targets
    """

    def __init__(self, registry: Registry):
        self.registry = registry
        self.codec = ScaleCodec(registry)

    @property
    def version_byte(self) -> int:
        return self.registry.extrinsic_version

    def build_unsigned_call(self, call_spec: CallSpec, args: Optional[Dict[str, Any]] = None) -> bytes:
        """
        Encode a call: pallet index, call index, then arguments in declared order.

        Args:
            call_spec: Call from ``Registry.resolve_call``
            args: Arguments by parameter name

        Returns:
            Encoded call bytes

        Raises:
            ArgumentMismatch: If argument names do not match the parameters
            InvalidValue: If an argument does not fit its type
        """
        args = dict(args or {})
        names = call_spec.param_names
        missing = [n for n in names if n not in args]
        unexpected = [k for k in args if k not in names]
        if missing or unexpected:
            raise ArgumentMismatch(
                f"{call_spec.module_name}.{call_spec.call_name}", missing, unexpected
            )

        out = bytearray([call_spec.module_index, call_spec.call_index])
        for param in call_spec.params:
            try:
                out += self.codec.encode(args[param.name], param.type_ref)
            except InvalidValue as e:
                raise InvalidValue(f"Argument '{param.name}': {e}") from e
        return bytes(out)

    def compose_call(self, module: str, call: str, args: Optional[Dict[str, Any]] = None) -> bytes:
        """Resolve a call by name and encode it."""
        return self.build_unsigned_call(self.registry.resolve_call(module, call), args)

    def build_signing_payload(
        self,
        payload: Union[UnsignedExtrinsicPayload, Dict[str, Any]]
    ) -> bytes:
        """
        Build the bytes a signer signs.

        Layout: call, extra data of every signed extension, then additional
        signed data of every signed extension, both in declared order.

        Raises:
            IncompletePayload: If a payload field is missing or invalid
            UnsupportedSignedExtension: If the runtime needs an extension
                this builder cannot fill in
        """
        if not isinstance(payload, UnsignedExtrinsicPayload):
            payload = UnsignedExtrinsicPayload(**payload)
        extensions = self.registry.signed_extensions
        return (
            payload.call
            + encode_extra(extensions, self.codec, payload.era, payload.nonce, payload.tip)
            + encode_additional(extensions, self.codec, payload)
        )

    def _encode_address(self, address: Any) -> bytes:
        address_type = self.registry.address_type
        if address_type is None:
            return self.codec.account_bytes(address)
        return self.codec.encode(address, address_type)

    def _encode_signature(self, signature: bytes, scheme: SignatureScheme) -> bytes:
        signature_type = self.registry.signature_type
        if signature_type is None:
            return bytes([scheme.variant_index]) + signature
        if isinstance(self.codec.resolve(signature_type), Variant):
            return self.codec.encode({scheme.variant_name: signature}, signature_type)
        return self.codec.encode(signature, signature_type)

    def assemble_signed(
        self,
        call: BytesLike,
        signer_address: Union[str, bytes, Mapping],
        signature: BytesLike,
        era: Any,
        nonce: int,
        tip: int,
        *,
        scheme: SignatureScheme = SignatureScheme.SR25519
    ) -> bytes:
        """
        Assemble a signed extrinsic.

        Args:
            call: Encoded call
            signer_address: SS58 address, hex or raw account id of the signer
            signature: 64-byte signature over the signing payload
            era: Era (or any value Era.from_value accepts)
            nonce: Account nonce
            tip: Tip in the smallest unit
            scheme: Scheme of the signature

        Returns:
            Length-prefixed extrinsic bytes
        """
        call = to_bytes(call)
        signature = to_bytes(signature)
        if not call:
            raise ConstructionError("Call must not be empty")
        if len(signature) != SIGNATURE_LENGTH:
            raise ConstructionError(f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}")

        body = (
            bytes([SIGNED_FLAG | self.version_byte])
            + self._encode_address(signer_address)
            + self._encode_signature(signature, SignatureScheme(scheme))
            + encode_extra(self.registry.signed_extensions, self.codec, Era.from_value(era), nonce, tip)
            + call
        )
        extrinsic = length_prefixed(body)
        logger.info(f"Assembled signed extrinsic {extrinsic_hash(extrinsic)} ({len(extrinsic)} bytes)")
        return extrinsic

    def build_unsigned_extrinsic(self, call: BytesLike) -> bytes:
        """Wrap a call as an unsigned extrinsic: length prefix, version byte, call."""
        call = to_bytes(call)
        if not call:
            raise ConstructionError("Call must not be empty")
        return length_prefixed(bytes([self.version_byte]) + call)

    @staticmethod
    def extrinsic_hash(extrinsic: BytesLike) -> str:
        return extrinsic_hash(extrinsic)
