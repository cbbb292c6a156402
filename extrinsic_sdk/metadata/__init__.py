"""
Runtime metadata parsing and lookup.
"""
from extrinsic_sdk.metadata.parser import RuntimeMetadata, SignedExtension, parse_metadata
from extrinsic_sdk.metadata.registry import CallParam, CallSpec, Registry

__all__ = ["Registry", "CallSpec", "CallParam", "SignedExtension", "RuntimeMetadata", "parse_metadata"]
