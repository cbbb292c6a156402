"""
Extrinsic construction and decoding.
"""
from extrinsic_sdk.extrinsic.builder import ExtrinsicBuilder, extrinsic_hash
from extrinsic_sdk.extrinsic.decoder import ExtrinsicDecoder

__all__ = ["ExtrinsicBuilder", "ExtrinsicDecoder", "extrinsic_hash"]
