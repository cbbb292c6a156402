"""
Metadata registry: type and call lookup over parsed runtime metadata.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from extrinsic_sdk._rate_limited_log import rate_limited_log
from extrinsic_sdk.config import GENERIC_SS58_PREFIX
from extrinsic_sdk.exceptions import MetadataError, UnknownCall, UnknownType
from extrinsic_sdk.metadata.parser import (
    PalletSpec, PortableType, RuntimeMetadata, SignedExtension, parse_metadata
)
from extrinsic_sdk.models import NumericOutputMode
from extrinsic_sdk.scale.codec import ScaleCodec
from extrinsic_sdk.scale.types import (
    Array, BitSequence, Compact, Composite, OptionType, Primitive, Sequence,
    TupleType, TypeDescriptor, TypeRef, Variant, parse_type_expression
)
from extrinsic_sdk.utils import to_bytes

logger = logging.getLogger(__name__)

# V14 metadata names the extrinsic parts through these type parameters
_EXTRINSIC_PARAMS = ("Address", "Call", "Signature", "Extra")


@dataclass(frozen=True)
class CallParam:
    name: str
    type_ref: TypeRef
    type_name: Optional[str] = None


@dataclass(frozen=True)
class CallSpec:
    """A dispatchable call of one pallet."""
    module_name: str
    module_index: int
    call_name: str
    call_index: int
    params: Tuple[CallParam, ...]
    docs: Tuple[str, ...] = ()

    @property
    def param_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.params)


class Registry:
    """
    Lookup structure built from one metadata blob.

    The registry does not change after construction. Type descriptors are
    built on first use and memoised under a lock, so one registry can be
    shared between threads.
    """

    def __init__(self, metadata: RuntimeMetadata, spec_version: Optional[int] = None):
        self.metadata = metadata
        self.spec_version = spec_version

        self._lock = threading.RLock()
        self._resolved: Dict[int, TypeDescriptor] = {}
        self._named: Dict[str, TypeDescriptor] = {}
        self._ss58_prefix: Optional[int] = None

        self._by_path: Dict[str, int] = {}
        short_names: Dict[str, list] = {}
        for type_id, entry in metadata.types.items():
            if not entry.path:
                continue
            self._by_path.setdefault("::".join(entry.path), type_id)
            short_names.setdefault(entry.path[-1], []).append(type_id)
        self._by_short = short_names

        self._pallets_by_name = {p.name: p for p in metadata.pallets}
        self._pallets_by_index = {p.index: p for p in metadata.pallets}
        self._extrinsic_types = self._extrinsic_part_types()

    @classmethod
    def build(
        cls,
        metadata: Union[bytes, str, RuntimeMetadata],
        spec_version: Optional[int] = None
    ) -> 'Registry':
        """
        Build a registry from a metadata blob.

        Args:
            metadata: Raw bytes, a 0x hex string, or already parsed metadata
            spec_version: Runtime spec version the metadata belongs to

        Returns:
            Registry instance

        Raises:
            InvalidMetadata: If the blob is malformed
            UnsupportedMetadataVersion: If the version is not 14 or 15
        """
        if not isinstance(metadata, RuntimeMetadata):
            metadata = parse_metadata(to_bytes(metadata))
        registry = cls(metadata, spec_version)
        logger.debug(
            f"Built registry for V{metadata.version} metadata "
            f"(spec_version={spec_version}, {len(metadata.pallets)} pallets)"
        )
        return registry

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def resolve_type(self, ref: TypeRef) -> TypeDescriptor:
        """
        Resolve a type id, path, short name or type expression.

        Raises:
            UnknownType: If the reference does not name a type
        """
        if isinstance(ref, TypeDescriptor):
            return ref
        if isinstance(ref, bool):
            raise UnknownType(f"Invalid type reference {ref!r}")
        if isinstance(ref, int):
            return self._resolve_id(ref)
        if not isinstance(ref, str):
            raise UnknownType(f"Invalid type reference {ref!r}")

        text = ref.strip()
        if text.isdigit():
            return self._resolve_id(int(text))
        with self._lock:
            cached = self._named.get(text)
        if cached is not None:
            return cached

        parsed = parse_type_expression(text, self._lookup_name)
        desc = self.resolve_type(parsed)
        with self._lock:
            self._named[text] = desc
        return desc

    def _lookup_name(self, name: str) -> Optional[int]:
        if name in self._by_path:
            return self._by_path[name]
        ids = self._by_short.get(name)
        if not ids:
            return None
        if len(ids) > 1:
            paths = ", ".join(sorted("::".join(self.metadata.types[i].path) for i in ids))
            raise UnknownType(f"Ambiguous type name {name!r}; use a full path ({paths})")
        return ids[0]

    def _resolve_id(self, type_id: int) -> TypeDescriptor:
        with self._lock:
            desc = self._resolved.get(type_id)
            if desc is not None:
                return desc
            entry = self.metadata.types.get(type_id)
            if entry is None:
                raise UnknownType(f"Unknown type id {type_id}")
            desc = self._to_descriptor(entry)
            self._resolved[type_id] = desc
            return desc

    @staticmethod
    def _to_descriptor(entry: PortableType) -> TypeDescriptor:
        kind, data = entry.def_kind, entry.def_data
        meta = {"path": entry.path, "type_id": entry.id}
        if kind == "composite":
            return Composite(data, **meta)
        if kind == "variant":
            if entry.path == ("Option",):
                some = next((v for v in data if v.name == "Some"), None)
                if some is not None and len(some.fields) == 1:
                    return OptionType(some.fields[0].type, **meta)
            return Variant(data, **meta)
        if kind == "sequence":
            return Sequence(data, **meta)
        if kind == "array":
            length, element = data
            return Array(element, length, **meta)
        if kind == "tuple":
            return TupleType(data, **meta)
        if kind == "primitive":
            return Primitive(data, **meta)
        if kind == "compact":
            return Compact(data, **meta)
        if kind == "bitsequence":
            store, order = data
            return BitSequence(store, order, **meta)
        raise UnknownType(f"Unsupported type definition {kind} for type {entry.id}")

    # ------------------------------------------------------------------
    # Pallets and calls
    # ------------------------------------------------------------------

    @property
    def pallets(self) -> Tuple[PalletSpec, ...]:
        return self.metadata.pallets

    def pallet(self, name: str) -> PalletSpec:
        pallet = self._pallets_by_name.get(name)
        if pallet is None:
            raise UnknownCall(f"Unknown pallet: {name}")
        return pallet

    def _call_variant(self, pallet: PalletSpec) -> Variant:
        if pallet.calls_type is None:
            raise UnknownCall(f"Pallet {pallet.name} has no calls")
        desc = self.resolve_type(pallet.calls_type)
        if not isinstance(desc, Variant):
            raise MetadataError(f"Call type of pallet {pallet.name} is not an enum")
        return desc

    def _call_spec(self, pallet: PalletSpec, case) -> CallSpec:
        params = tuple(
            CallParam(f.name if f.name is not None else f"arg{i}", f.type, f.type_name)
            for i, f in enumerate(case.fields)
        )
        return CallSpec(
            module_name=pallet.name,
            module_index=pallet.index,
            call_name=case.name,
            call_index=case.index,
            params=params,
            docs=case.docs,
        )

    def resolve_call(self, module: str, call: str) -> CallSpec:
        """
        Look up a call by pallet and call name.

        Raises:
            UnknownCall: If the pallet or the call does not exist
        """
        pallet = self.pallet(module)
        case = self._call_variant(pallet).by_name(call)
        if case is None:
            raise UnknownCall(f"Unknown call {module}.{call}")
        return self._call_spec(pallet, case)

    def call_by_index(self, module_index: int, call_index: int) -> CallSpec:
        """
        Look up a call by its pallet index and call index.

        Raises:
            UnknownCall: If no pallet or call has these indices
        """
        pallet = self._pallets_by_index.get(module_index)
        if pallet is None:
            raise UnknownCall(f"Unknown pallet index {module_index}")
        case = self._call_variant(pallet).by_index(call_index)
        if case is None:
            raise UnknownCall(f"Unknown call index {call_index} in pallet {pallet.name}")
        return self._call_spec(pallet, case)

    # ------------------------------------------------------------------
    # Constants
    # ------------------------------------------------------------------

    def constant(self, pallet: str, name: str) -> Any:
        """
        Decode a pallet constant.

        Raises:
            MetadataError: If the pallet or constant does not exist
        """
        spec = self._pallets_by_name.get(pallet)
        if spec is None:
            raise MetadataError(f"Unknown pallet: {pallet}")
        for constant in spec.constants:
            if constant.name == name:
                codec = ScaleCodec(
                    self,
                    numeric_output=NumericOutputMode.NATIVE,
                    ss58_prefix=GENERIC_SS58_PREFIX,
                )
                value, _ = codec.decode(constant.value, constant.type_id)
                return value
        raise MetadataError(f"Unknown constant {pallet}.{name}")

    @property
    def ss58_prefix(self) -> int:
        """SS58 prefix from System.SS58Prefix, or the generic prefix."""
        with self._lock:
            if self._ss58_prefix is None:
                try:
                    self._ss58_prefix = int(self.constant("System", "SS58Prefix"))
                except MetadataError:
                    rate_limited_log(
                        f"Metadata has no System.SS58Prefix constant, using {GENERIC_SS58_PREFIX}",
                        logger_instance=logger,
                    )
                    self._ss58_prefix = GENERIC_SS58_PREFIX
            return self._ss58_prefix

    # ------------------------------------------------------------------
    # Extrinsic format
    # ------------------------------------------------------------------

    def _extrinsic_part_types(self) -> Dict[str, Optional[int]]:
        spec = self.metadata.extrinsic
        if self.metadata.version >= 15:
            return {
                "Address": spec.address_type,
                "Call": spec.call_type,
                "Signature": spec.signature_type,
                "Extra": spec.extra_type,
            }
        parts = dict.fromkeys(_EXTRINSIC_PARAMS)
        entry = self.metadata.types.get(spec.type_id)
        if entry is not None:
            for param_name, param_type in entry.params:
                if param_name in parts:
                    parts[param_name] = param_type
        return parts

    @property
    def extrinsic_version(self) -> int:
        return self.metadata.extrinsic.version

    @property
    def signed_extensions(self) -> Tuple[SignedExtension, ...]:
        return self.metadata.extrinsic.signed_extensions

    @property
    def address_type(self) -> Optional[int]:
        return self._extrinsic_types["Address"]

    @property
    def call_type(self) -> Optional[int]:
        return self._extrinsic_types["Call"]

    @property
    def signature_type(self) -> Optional[int]:
        return self._extrinsic_types["Signature"]

    @property
    def extra_type(self) -> Optional[int]:
        return self._extrinsic_types["Extra"]
