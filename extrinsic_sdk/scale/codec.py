"""
Metadata-driven SCALE encoder and decoder.

Values map to plain Python data:

- integers are ints (decoded wide integers may be strings, see
  NumericOutputMode), bools are bools, strings are str
- structs with named fields are dicts, a single unnamed field is unwrapped,
  several unnamed fields are lists
- unit enum variants are their name, other variants ``{name: value}``
- byte vectors and byte arrays decode to 0x hex strings
- account ids decode to SS58 addresses, eras to Era instances
"""
import logging
from collections.abc import Mapping
from typing import Any, List, Optional, Tuple, Union

from extrinsic_sdk.address import decode_address, encode_address
from extrinsic_sdk.config import GENERIC_SS58_PREFIX, NetworkConfig
from extrinsic_sdk.era import Era
from extrinsic_sdk.exceptions import (
    AddressError, CodecError, InvalidValue, TruncatedInput, UnknownType, UnknownVariant
)
from extrinsic_sdk.models import NumericOutputMode
from extrinsic_sdk.scale.compact import encode_compact
from extrinsic_sdk.scale.cursor import ScaleCursor
from extrinsic_sdk.scale.types import (
    Array, BitSequence, Compact, Composite, Field, OptionType, Primitive, Sequence,
    TupleType, TypeDescriptor, TypeRef, Variant, parse_type_expression
)
from extrinsic_sdk.utils import bytes_to_hex, to_bytes

logger = logging.getLogger(__name__)

# Integers at least this wide are rendered as strings in STRING mode
WIDE_INTEGER_BITS = 64

# Zero-sized items consume no input, so their count is bounded explicitly
MAX_ZERO_SIZED_ITEMS = 1 << 16


class ScaleCodec:
    """
    Encoder/decoder bound to an optional metadata registry.

    Args:
        registry: Registry used to resolve integer ids and type names
        numeric_output: Rendering of decoded wide integers
        strict: Reject non-minimal compact integers on decode
        ss58_prefix: Prefix used to render account ids; defaults to the
            registry's prefix
    """

    def __init__(
        self,
        registry=None,
        numeric_output: NumericOutputMode = NumericOutputMode.STRING,
        strict: bool = True,
        ss58_prefix: Optional[int] = None
    ):
        self.registry = registry
        self.numeric_output = NumericOutputMode(numeric_output)
        self.strict = strict
        if ss58_prefix is None:
            ss58_prefix = registry.ss58_prefix if registry is not None else GENERIC_SS58_PREFIX
        self.ss58_prefix = ss58_prefix

    # ------------------------------------------------------------------
    # Type resolution
    # ------------------------------------------------------------------

    def resolve(self, ref: TypeRef) -> TypeDescriptor:
        if isinstance(ref, TypeDescriptor):
            return ref
        if self.registry is not None:
            return self.registry.resolve_type(ref)
        if isinstance(ref, str):
            resolved = parse_type_expression(ref)
            if isinstance(resolved, TypeDescriptor):
                return resolved
        raise UnknownType(f"Cannot resolve type {ref!r} without a registry")

    def _is_u8(self, ref: TypeRef) -> bool:
        desc = self.resolve(ref)
        return isinstance(desc, Primitive) and desc.primitive == "u8"

    def _integer_bits(self, ref: TypeRef) -> int:
        """Bit width of the integer behind a compact, unwrapping newtypes."""
        desc = self.resolve(ref)
        while isinstance(desc, (Composite, Compact)):
            if isinstance(desc, Compact):
                desc = self.resolve(desc.inner)
            elif len(desc.fields) == 1:
                desc = self.resolve(desc.fields[0].type)
            else:
                break
        if isinstance(desc, Primitive) and desc.is_integer and not desc.signed:
            return desc.size * 8
        raise InvalidValue(f"Compact is only defined over unsigned integers, got {desc.name}")

    def is_zero_sized(self, ref: TypeRef, _depth: int = 0) -> bool:
        if _depth > 32:
            return False
        desc = self.resolve(ref)
        if isinstance(desc, TupleType):
            return all(self.is_zero_sized(e, _depth + 1) for e in desc.elements)
        if isinstance(desc, Composite):
            return all(self.is_zero_sized(f.type, _depth + 1) for f in desc.fields)
        if isinstance(desc, Array):
            return desc.length == 0 or self.is_zero_sized(desc.element, _depth + 1)
        return False

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def encode(self, value: Any, type_ref: TypeRef) -> bytes:
        """
        Encode a value as the given type.

        Raises:
            InvalidValue: If the value does not fit the type
            UnknownType: If the type cannot be resolved
        """
        out = bytearray()
        self._encode_into(out, value, self.resolve(type_ref))
        return bytes(out)

    def _encode_into(self, out: bytearray, value: Any, desc: TypeDescriptor) -> None:
        special = desc.short_name
        if special == "AccountId32" and isinstance(desc, Composite):
            out += self.account_bytes(value)
            return
        if special == "Era":
            out += Era.from_value(value).encode()
            return

        if isinstance(desc, Primitive):
            out += self._encode_primitive(value, desc)
        elif isinstance(desc, Compact):
            bits = self._integer_bits(desc.inner)
            number = self._coerce_int(value, desc.name)
            if bits and number >= 1 << bits:
                raise InvalidValue(f"Value {number} does not fit in Compact<u{bits}>")
            out += encode_compact(number)
        elif isinstance(desc, Composite):
            self._encode_fields(out, desc.fields, value, desc.name)
        elif isinstance(desc, Variant):
            self._encode_variant(out, value, desc)
        elif isinstance(desc, Sequence):
            if self._is_u8(desc.element):
                raw = self._coerce_bytes(value, desc.name)
                out += encode_compact(len(raw)) + raw
            else:
                items = self._coerce_list(value, desc.name)
                element = self.resolve(desc.element)
                out += encode_compact(len(items))
                for item in items:
                    self._encode_into(out, item, element)
        elif isinstance(desc, Array):
            if self._is_u8(desc.element):
                raw = self._coerce_bytes(value, desc.name)
                if len(raw) != desc.length:
                    raise InvalidValue(f"Expected {desc.length} bytes, got {len(raw)}")
                out += raw
            else:
                items = self._coerce_list(value, desc.name)
                if len(items) != desc.length:
                    raise InvalidValue(f"Expected {desc.length} items, got {len(items)}")
                element = self.resolve(desc.element)
                for item in items:
                    self._encode_into(out, item, element)
        elif isinstance(desc, OptionType):
            if value is None:
                out.append(0)
            else:
                out.append(1)
                self._encode_into(out, value, self.resolve(desc.inner))
        elif isinstance(desc, TupleType):
            if not desc.elements:
                if value not in (None, (), [], {}):
                    raise InvalidValue(f"Unit type takes no value, got {value!r}")
                return
            if len(desc.elements) == 1:
                value = [value]
            items = self._coerce_list(value, desc.name)
            if len(items) != len(desc.elements):
                raise InvalidValue(f"Expected {len(desc.elements)} tuple items, got {len(items)}")
            for item, element in zip(items, desc.elements):
                self._encode_into(out, item, self.resolve(element))
        elif isinstance(desc, BitSequence):
            out += self._encode_bits(value, desc)
        else:
            raise UnknownType(f"Cannot encode type kind {desc.kind}")

    def _encode_fields(self, out: bytearray, fields: Tuple[Field, ...], value: Any, context: str) -> None:
        if not fields:
            if value not in (None, (), [], {}):
                raise InvalidValue(f"{context} takes no value, got {value!r}")
            return

        if all(f.name is not None for f in fields):
            if not isinstance(value, Mapping):
                raise InvalidValue(f"{context} expects a mapping of fields, got {type(value).__name__}")
            names = [f.name for f in fields]
            # zero-sized fields such as phantom markers may be left out
            missing = [f.name for f in fields if f.name not in value and not self.is_zero_sized(f.type)]
            unexpected = [k for k in value if k not in names]
            if missing or unexpected:
                raise InvalidValue(
                    f"{context} field mismatch (missing: {missing}, unexpected: {unexpected})"
                )
            for f in fields:
                self._encode_into(out, value.get(f.name), self.resolve(f.type))
            return

        if len(fields) == 1:
            self._encode_into(out, value, self.resolve(fields[0].type))
            return

        items = self._coerce_list(value, context)
        if len(items) != len(fields):
            raise InvalidValue(f"{context} expects {len(fields)} values, got {len(items)}")
        for item, f in zip(items, fields):
            self._encode_into(out, item, self.resolve(f.type))

    def _encode_variant(self, out: bytearray, value: Any, desc: Variant) -> None:
        if desc.short_name == "MultiAddress" and not isinstance(value, Mapping):
            if not (isinstance(value, str) and desc.by_name(value)):
                value = {"Id": value}

        if isinstance(value, str):
            name, payload = value, None
        elif isinstance(value, Mapping) and len(value) == 1:
            name, payload = next(iter(value.items()))
        else:
            raise InvalidValue(f"{desc.name} expects a variant name or {{name: value}}, got {value!r}")

        case = desc.by_name(name)
        if case is None:
            known = ", ".join(v.name for v in desc.variants)
            raise InvalidValue(f"Unknown variant {name!r} of {desc.name} (known: {known})")
        out.append(case.index)
        self._encode_fields(out, case.fields, payload, f"{desc.name}::{name}")

    def _encode_primitive(self, value: Any, desc: Primitive) -> bytes:
        kind = desc.primitive
        if kind == "bool":
            if not isinstance(value, bool):
                raise InvalidValue(f"bool expects True/False, got {value!r}")
            return b"\x01" if value else b"\x00"
        if kind == "str":
            if not isinstance(value, str):
                raise InvalidValue(f"str expects a string, got {type(value).__name__}")
            raw = value.encode("utf-8")
            return encode_compact(len(raw)) + raw
        if kind == "char":
            if not isinstance(value, str) or len(value) != 1:
                raise InvalidValue(f"char expects a single character, got {value!r}")
            return ord(value).to_bytes(4, "little")

        number = self._coerce_int(value, kind)
        bits = desc.size * 8
        if desc.signed:
            low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        else:
            low, high = 0, (1 << bits) - 1
        if not low <= number <= high:
            raise InvalidValue(f"Value {number} out of range for {kind}")
        return number.to_bytes(desc.size, "little", signed=desc.signed)

    def _encode_bits(self, value: Any, desc: BitSequence) -> bytes:
        bits = [bool(b) for b in self._coerce_list(value, desc.name)]
        store_bits, msb_first = self._bit_layout(desc)
        words = []
        for start in range(0, len(bits), store_bits):
            word = 0
            for i, bit in enumerate(bits[start:start + store_bits]):
                if bit:
                    word |= 1 << (store_bits - 1 - i if msb_first else i)
            words.append(word.to_bytes(store_bits // 8, "little"))
        return encode_compact(len(bits)) + b"".join(words)

    def _bit_layout(self, desc: BitSequence) -> Tuple[int, bool]:
        store = self.resolve(desc.store)
        if not (isinstance(store, Primitive) and store.is_integer and not store.signed):
            raise UnknownType(f"Unsupported bit store type {store.name}")
        order = self.resolve(desc.order)
        return store.size * 8, order.short_name == "Msb0"

    def account_bytes(self, value: Any) -> bytes:
        if isinstance(value, (bytes, bytearray)):
            raw = bytes(value)
        elif isinstance(value, str) and value.startswith("0x"):
            raw = to_bytes(value)
        elif isinstance(value, str):
            allowed = NetworkConfig.registered_prefixes() | {self.ss58_prefix}
            try:
                raw, _ = decode_address(value, allowed)
            except AddressError as e:
                raise InvalidValue(f"Invalid account address {value!r}: {e}") from e
        else:
            raise InvalidValue(f"Account id expects an address, hex or bytes, got {type(value).__name__}")
        if len(raw) != 32:
            raise InvalidValue(f"Account id must be 32 bytes, got {len(raw)}")
        return raw

    @staticmethod
    def _coerce_int(value: Any, context: str) -> int:
        if isinstance(value, bool):
            raise InvalidValue(f"{context} expects an integer, got a bool")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                return int(value, 0) if value.startswith(("0x", "0X")) else int(value, 10)
            except ValueError as e:
                raise InvalidValue(f"{context} expects an integer, got {value!r}") from e
        raise InvalidValue(f"{context} expects an integer, got {type(value).__name__}")

    @staticmethod
    def _coerce_bytes(value: Any, context: str) -> bytes:
        if isinstance(value, list) and all(isinstance(v, int) for v in value):
            try:
                return bytes(value)
            except ValueError as e:
                raise InvalidValue(f"{context} expects bytes: {e}") from e
        return to_bytes(value)

    @staticmethod
    def _coerce_list(value: Any, context: str) -> List[Any]:
        if isinstance(value, (list, tuple)):
            return list(value)
        raise InvalidValue(f"{context} expects a list, got {type(value).__name__}")

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def decode(self, data: Union[bytes, str], type_ref: TypeRef) -> Tuple[Any, int]:
        """
        Decode one value from the start of ``data``.

        Returns:
            Tuple of (value, bytes_consumed)

        Raises:
            TruncatedInput: If the data ends before the value does
            UnknownVariant: If an enum tag has no matching variant
            MalformedCompactInt: If a compact integer is not minimal
        """
        cursor = ScaleCursor(to_bytes(data), strict=self.strict)
        value = self.decode_from(cursor, type_ref)
        return value, cursor.consumed

    def decode_from(self, cursor: ScaleCursor, type_ref: TypeRef) -> Any:
        """Decode one value at the cursor position, advancing it."""
        return self._decode(cursor, self.resolve(type_ref))

    def _decode(self, cursor: ScaleCursor, desc: TypeDescriptor) -> Any:
        special = desc.short_name
        if special == "AccountId32" and isinstance(desc, Composite):
            return encode_address(cursor.read(32), self.ss58_prefix)
        if special == "Era":
            return Era.decode_from(cursor)

        if isinstance(desc, Primitive):
            return self._decode_primitive(cursor, desc)
        if isinstance(desc, Compact):
            bits = self._integer_bits(desc.inner)
            offset = cursor.offset
            value = cursor.read_compact()
            if bits and value >= 1 << bits:
                raise CodecError(f"Compact value at offset {offset} overflows u{bits}")
            return self._render_int(value, bits)
        if isinstance(desc, Composite):
            return self._decode_fields(cursor, desc.fields)
        if isinstance(desc, Variant):
            index = cursor.read_u8()
            case = desc.by_index(index)
            if case is None:
                raise UnknownVariant(index, desc.name)
            if not case.fields:
                return case.name
            return {case.name: self._decode_fields(cursor, case.fields)}
        if isinstance(desc, Sequence):
            offset = cursor.offset
            count = cursor.read_compact()
            if self._is_u8(desc.element):
                return bytes_to_hex(cursor.read(count))
            element = self.resolve(desc.element)
            if self.is_zero_sized(element):
                if count > MAX_ZERO_SIZED_ITEMS:
                    raise CodecError(
                        f"Sequence of {count} zero-sized items at offset {offset} exceeds {MAX_ZERO_SIZED_ITEMS}"
                    )
            elif count > cursor.remaining:
                raise TruncatedInput(offset, count, cursor.remaining)
            return [self._decode(cursor, element) for _ in range(count)]
        if isinstance(desc, Array):
            if self._is_u8(desc.element):
                return bytes_to_hex(cursor.read(desc.length))
            element = self.resolve(desc.element)
            return [self._decode(cursor, element) for _ in range(desc.length)]
        if isinstance(desc, OptionType):
            offset = cursor.offset
            tag = cursor.read_u8()
            if tag == 0:
                return None
            if tag == 1:
                return self._decode(cursor, self.resolve(desc.inner))
            raise CodecError(f"Invalid option tag 0x{tag:02x} at offset {offset}")
        if isinstance(desc, TupleType):
            if not desc.elements:
                return None
            if len(desc.elements) == 1:
                return self._decode(cursor, self.resolve(desc.elements[0]))
            return [self._decode(cursor, self.resolve(e)) for e in desc.elements]
        if isinstance(desc, BitSequence):
            return self._decode_bits(cursor, desc)
        raise UnknownType(f"Cannot decode type kind {desc.kind}")

    def _decode_fields(self, cursor: ScaleCursor, fields: Tuple[Field, ...]) -> Any:
        if not fields:
            return None
        if all(f.name is not None for f in fields):
            return {f.name: self._decode(cursor, self.resolve(f.type)) for f in fields}
        if len(fields) == 1:
            return self._decode(cursor, self.resolve(fields[0].type))
        return [self._decode(cursor, self.resolve(f.type)) for f in fields]

    def _decode_primitive(self, cursor: ScaleCursor, desc: Primitive) -> Any:
        kind = desc.primitive
        if kind == "bool":
            return cursor.read_bool()
        if kind == "str":
            return cursor.read_str()
        if kind == "char":
            offset = cursor.offset
            code = cursor.read_int(4)
            try:
                return chr(code)
            except (ValueError, OverflowError) as e:
                raise CodecError(f"Invalid char code point {code} at offset {offset}") from e
        value = cursor.read_int(desc.size, signed=desc.signed)
        return self._render_int(value, desc.size * 8)

    def _decode_bits(self, cursor: ScaleCursor, desc: BitSequence) -> List[bool]:
        store_bits, msb_first = self._bit_layout(desc)
        count = cursor.read_compact()
        words = (count + store_bits - 1) // store_bits
        bits = []
        for _ in range(words):
            word = cursor.read_int(store_bits // 8)
            for i in range(store_bits):
                if len(bits) == count:
                    break
                shift = store_bits - 1 - i if msb_first else i
                bits.append(bool((word >> shift) & 1))
        return bits

    def _render_int(self, value: int, bits: int) -> Union[int, str]:
        if self.numeric_output is NumericOutputMode.STRING and bits >= WIDE_INTEGER_BITS:
            return str(value)
        return value
