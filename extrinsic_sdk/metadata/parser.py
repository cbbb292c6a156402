"""
Parser for runtime metadata blobs.

A blob starts with the ``meta`` magic and a version byte. Versions 14 and 15
carry a portable type registry: a table of types addressed by integer id
whose definitions reference other ids, including ids that appear later in the
table. Entries are kept raw here; the registry turns them into descriptors on
first use.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from extrinsic_sdk.exceptions import (
    CodecError, InvalidMetadata, UnsupportedMetadataVersion
)
from extrinsic_sdk.scale.cursor import ScaleCursor
from extrinsic_sdk.scale.types import PRIMITIVE_ORDER, Field, VariantCase

logger = logging.getLogger(__name__)

MAGIC = b"meta"
SUPPORTED_VERSIONS = (14, 15)

STORAGE_HASHERS = (
    "Blake2_128", "Blake2_256", "Blake2_128Concat",
    "Twox128", "Twox256", "Twox64Concat", "Identity",
)


@dataclass(frozen=True)
class PortableType:
    id: int
    path: Tuple[str, ...]
    params: Tuple[Tuple[str, Optional[int]], ...]
    def_kind: str
    def_data: Any
    docs: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StorageEntry:
    name: str
    modifier: str
    kind: str
    hashers: Tuple[str, ...]
    key_type: Optional[int]
    value_type: int
    default: bytes
    docs: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ConstantSpec:
    name: str
    type_id: int
    value: bytes
    docs: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PalletSpec:
    name: str
    index: int
    calls_type: Optional[int]
    event_type: Optional[int]
    error_type: Optional[int]
    storage_prefix: Optional[str]
    storage: Tuple[StorageEntry, ...]
    constants: Tuple[ConstantSpec, ...]
    docs: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SignedExtension:
    identifier: str
    type_ref: int
    additional_signed_ref: int


@dataclass(frozen=True)
class ExtrinsicSpec:
    version: int
    signed_extensions: Tuple[SignedExtension, ...]
    # V14 only points at the UncheckedExtrinsic type; V15 names each part
    type_id: Optional[int] = None
    address_type: Optional[int] = None
    call_type: Optional[int] = None
    signature_type: Optional[int] = None
    extra_type: Optional[int] = None


@dataclass(frozen=True)
class RuntimeApiMethod:
    name: str
    inputs: Tuple[Tuple[str, int], ...]
    output: int
    docs: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RuntimeApi:
    name: str
    methods: Tuple[RuntimeApiMethod, ...]
    docs: Tuple[str, ...] = ()


@dataclass
class RuntimeMetadata:
    version: int
    types: Dict[int, PortableType]
    pallets: Tuple[PalletSpec, ...]
    extrinsic: ExtrinsicSpec
    runtime_type: int
    apis: Tuple[RuntimeApi, ...] = ()
    outer_enums: Dict[str, int] = field(default_factory=dict)
    custom: Dict[str, Tuple[int, bytes]] = field(default_factory=dict)


def _read_strings(c: ScaleCursor) -> Tuple[str, ...]:
    return tuple(c.read_vec(ScaleCursor.read_str))


def _read_optional_id(c: ScaleCursor) -> Optional[int]:
    return c.read_option(ScaleCursor.read_compact)


def _read_field(c: ScaleCursor) -> Field:
    name = c.read_option(ScaleCursor.read_str)
    type_id = c.read_compact()
    type_name = c.read_option(ScaleCursor.read_str)
    _read_strings(c)  # docs
    return Field(name, type_id, type_name)


def _read_variant(c: ScaleCursor) -> VariantCase:
    name = c.read_str()
    fields = tuple(c.read_vec(_read_field))
    index = c.read_u8()
    docs = _read_strings(c)
    return VariantCase(name, index, fields, docs)


def _read_type_def(c: ScaleCursor) -> Tuple[str, Any]:
    offset = c.offset
    tag = c.read_u8()
    if tag == 0:
        return "composite", tuple(c.read_vec(_read_field))
    if tag == 1:
        return "variant", tuple(c.read_vec(_read_variant))
    if tag == 2:
        return "sequence", c.read_compact()
    if tag == 3:
        length = c.read_int(4)
        return "array", (length, c.read_compact())
    if tag == 4:
        return "tuple", tuple(c.read_vec(ScaleCursor.read_compact))
    if tag == 5:
        index = c.read_u8()
        if index >= len(PRIMITIVE_ORDER):
            raise InvalidMetadata(f"Unknown primitive index {index} at offset {offset + 1}")
        return "primitive", PRIMITIVE_ORDER[index]
    if tag == 6:
        return "compact", c.read_compact()
    if tag == 7:
        return "bitsequence", (c.read_compact(), c.read_compact())
    raise InvalidMetadata(f"Unknown type definition tag {tag} at offset {offset}")


def _read_portable_type(c: ScaleCursor) -> PortableType:
    type_id = c.read_compact()
    path = _read_strings(c)
    params = tuple(c.read_vec(lambda c: (c.read_str(), _read_optional_id(c))))
    def_kind, def_data = _read_type_def(c)
    docs = _read_strings(c)
    return PortableType(type_id, path, params, def_kind, def_data, docs)


def _read_types(c: ScaleCursor) -> Dict[int, PortableType]:
    types = {}
    for entry in c.read_vec(_read_portable_type):
        if entry.id in types:
            raise InvalidMetadata(f"Duplicate type id {entry.id}")
        types[entry.id] = entry
    return types


def _read_storage_entry(c: ScaleCursor) -> StorageEntry:
    name = c.read_str()
    modifier = "Default" if c.read_u8() == 1 else "Optional"
    offset = c.offset
    kind = c.read_u8()
    if kind == 0:
        hashers, key_type, value_type = (), None, c.read_compact()
        kind_name = "Plain"
    elif kind == 1:
        hasher_ids = c.read_vec(ScaleCursor.read_u8)
        if any(h >= len(STORAGE_HASHERS) for h in hasher_ids):
            raise InvalidMetadata(f"Unknown storage hasher in {name}")
        hashers = tuple(STORAGE_HASHERS[h] for h in hasher_ids)
        key_type = c.read_compact()
        value_type = c.read_compact()
        kind_name = "Map"
    else:
        raise InvalidMetadata(f"Unknown storage entry type {kind} at offset {offset}")
    default = c.read_bytes()
    docs = _read_strings(c)
    return StorageEntry(name, modifier, kind_name, hashers, key_type, value_type, default, docs)


def _read_constant(c: ScaleCursor) -> ConstantSpec:
    name = c.read_str()
    type_id = c.read_compact()
    value = c.read_bytes()
    docs = _read_strings(c)
    return ConstantSpec(name, type_id, value, docs)


def _read_pallet(c: ScaleCursor, with_docs: bool) -> PalletSpec:
    name = c.read_str()
    storage = c.read_option(lambda c: (c.read_str(), tuple(c.read_vec(_read_storage_entry))))
    calls_type = _read_optional_id(c)
    event_type = _read_optional_id(c)
    constants = tuple(c.read_vec(_read_constant))
    error_type = _read_optional_id(c)
    index = c.read_u8()
    docs = _read_strings(c) if with_docs else ()
    storage_prefix, entries = storage if storage is not None else (None, ())
    return PalletSpec(
        name=name,
        index=index,
        calls_type=calls_type,
        event_type=event_type,
        error_type=error_type,
        storage_prefix=storage_prefix,
        storage=entries,
        constants=constants,
        docs=docs,
    )


def _read_signed_extension(c: ScaleCursor) -> SignedExtension:
    return SignedExtension(c.read_str(), c.read_compact(), c.read_compact())


def _read_api_method(c: ScaleCursor) -> RuntimeApiMethod:
    name = c.read_str()
    inputs = tuple(c.read_vec(lambda c: (c.read_str(), c.read_compact())))
    output = c.read_compact()
    docs = _read_strings(c)
    return RuntimeApiMethod(name, inputs, output, docs)


def _read_api(c: ScaleCursor) -> RuntimeApi:
    name = c.read_str()
    methods = tuple(c.read_vec(_read_api_method))
    docs = _read_strings(c)
    return RuntimeApi(name, methods, docs)


def _parse_v14(c: ScaleCursor) -> RuntimeMetadata:
    types = _read_types(c)
    pallets = tuple(c.read_vec(lambda c: _read_pallet(c, with_docs=False)))
    extrinsic_type = c.read_compact()
    version = c.read_u8()
    extensions = tuple(c.read_vec(_read_signed_extension))
    runtime_type = c.read_compact()
    return RuntimeMetadata(
        version=14,
        types=types,
        pallets=pallets,
        extrinsic=ExtrinsicSpec(version, extensions, type_id=extrinsic_type),
        runtime_type=runtime_type,
    )


def _parse_v15(c: ScaleCursor) -> RuntimeMetadata:
    types = _read_types(c)
    pallets = tuple(c.read_vec(lambda c: _read_pallet(c, with_docs=True)))
    version = c.read_u8()
    address_type = c.read_compact()
    call_type = c.read_compact()
    signature_type = c.read_compact()
    extra_type = c.read_compact()
    extensions = tuple(c.read_vec(_read_signed_extension))
    runtime_type = c.read_compact()
    apis = tuple(c.read_vec(_read_api))
    outer_enums = {
        "call": c.read_compact(),
        "event": c.read_compact(),
        "error": c.read_compact(),
    }
    custom = dict(c.read_vec(lambda c: (c.read_str(), (c.read_compact(), c.read_bytes()))))
    return RuntimeMetadata(
        version=15,
        types=types,
        pallets=pallets,
        extrinsic=ExtrinsicSpec(
            version,
            extensions,
            address_type=address_type,
            call_type=call_type,
            signature_type=signature_type,
            extra_type=extra_type,
        ),
        runtime_type=runtime_type,
        apis=apis,
        outer_enums=outer_enums,
        custom=custom,
    )


_PARSERS: Dict[int, Callable[[ScaleCursor], RuntimeMetadata]] = {
    14: _parse_v14,
    15: _parse_v15,
}


def _strip_length_prefix(data: bytes) -> bytes:
    """Remove the Vec<u8> prefix that wraps metadata returned by runtime APIs."""
    if data[:4] == MAGIC:
        return data
    cursor = ScaleCursor(data, strict=False)
    try:
        length = cursor.read_compact()
    except CodecError:
        raise InvalidMetadata("Metadata blob does not start with the 'meta' magic")
    if length != cursor.remaining or cursor.data[cursor.offset:cursor.offset + 4] != MAGIC:
        raise InvalidMetadata("Metadata blob does not start with the 'meta' magic")
    return cursor.data[cursor.offset:]


def parse_metadata(data: bytes) -> RuntimeMetadata:
    """
    Parse a metadata blob.

    Args:
        data: Raw metadata bytes, optionally length-prefixed

    Returns:
        Parsed runtime metadata

    Raises:
        InvalidMetadata: If the blob is not metadata or is malformed
        UnsupportedMetadataVersion: If the version is not 14 or 15
    """
    if len(data) < len(MAGIC) + 1:
        raise InvalidMetadata(f"Metadata blob too short ({len(data)} bytes)")
    data = _strip_length_prefix(data)

    cursor = ScaleCursor(data)
    cursor.read(len(MAGIC))
    version = cursor.read_u8()
    parser = _PARSERS.get(version)
    if parser is None:
        raise UnsupportedMetadataVersion(version)

    try:
        metadata = parser(cursor)
    except CodecError as e:
        raise InvalidMetadata(f"Malformed V{version} metadata: {e}") from e

    if not cursor.at_end():
        raise InvalidMetadata(f"{cursor.remaining} trailing bytes after V{version} metadata")

    logger.debug(
        f"Parsed V{version} metadata: {len(metadata.types)} types, {len(metadata.pallets)} pallets"
    )
    return metadata
