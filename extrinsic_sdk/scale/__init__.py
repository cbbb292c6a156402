"""
SCALE primitives: type descriptors, compact integers and the byte cursor.

The metadata-driven codec lives in extrinsic_sdk.scale.codec. It is not
imported here: it depends on extrinsic_sdk.era, which reads through the cursor.
"""
from extrinsic_sdk.scale.compact import encode_compact, read_compact
from extrinsic_sdk.scale.cursor import ScaleCursor
from extrinsic_sdk.scale.types import (
    Array, BitSequence, Compact, Composite, Field, OptionType, Primitive, Sequence,
    TupleType, TypeDescriptor, Variant, VariantCase, parse_type_expression
)

__all__ = [
    "ScaleCursor",
    "encode_compact",
    "read_compact",
    "TypeDescriptor",
    "Primitive",
    "Compact",
    "Field",
    "Composite",
    "VariantCase",
    "Variant",
    "Sequence",
    "Array",
    "OptionType",
    "TupleType",
    "BitSequence",
    "parse_type_expression",
]
