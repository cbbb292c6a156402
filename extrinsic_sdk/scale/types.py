"""
Type descriptors for the SCALE codec.

Descriptors form a closed set of shapes. Child types are held as type
references (an integer metadata id, a type name, or another descriptor) and
are resolved through the registry on use, so recursive types never have to be
inlined.
"""
from dataclasses import dataclass
from typing import Callable, ClassVar, Dict, List, Optional, Tuple, Union

from extrinsic_sdk.exceptions import UnknownType

# Byte width of each fixed-size primitive; str has no fixed width
PRIMITIVE_SIZES: Dict[str, Optional[int]] = {
    "bool": 1,
    "char": 4,
    "str": None,
    "u8": 1,
    "u16": 2,
    "u32": 4,
    "u64": 8,
    "u128": 16,
    "u256": 32,
    "i8": 1,
    "i16": 2,
    "i32": 4,
    "i64": 8,
    "i128": 16,
    "i256": 32,
}

# Index order used by the portable registry's TypeDefPrimitive enum
PRIMITIVE_ORDER = (
    "bool", "char", "str",
    "u8", "u16", "u32", "u64", "u128", "u256",
    "i8", "i16", "i32", "i64", "i128", "i256",
)


class TypeDescriptor:
    """Base class for all type shapes."""

    kind: ClassVar[str] = "abstract"
    path: Tuple[str, ...] = ()
    type_id: Optional[int] = None

    @property
    def name(self) -> str:
        if self.path:
            return "::".join(self.path)
        return self.kind

    @property
    def short_name(self) -> Optional[str]:
        return self.path[-1] if self.path else None


TypeRef = Union[int, str, TypeDescriptor]


@dataclass(frozen=True)
class Primitive(TypeDescriptor):
    primitive: str
    path: Tuple[str, ...] = ()
    type_id: Optional[int] = None

    kind: ClassVar[str] = "primitive"

    def __post_init__(self):
        if self.primitive not in PRIMITIVE_SIZES:
            raise ValueError(f"Unknown primitive: {self.primitive}")

    @property
    def name(self) -> str:
        return self.primitive

    @property
    def size(self) -> Optional[int]:
        return PRIMITIVE_SIZES[self.primitive]

    @property
    def signed(self) -> bool:
        return self.primitive.startswith("i")

    @property
    def is_integer(self) -> bool:
        return self.primitive[0] in ("u", "i")


@dataclass(frozen=True)
class Compact(TypeDescriptor):
    inner: TypeRef
    path: Tuple[str, ...] = ()
    type_id: Optional[int] = None

    kind: ClassVar[str] = "compact"


@dataclass(frozen=True)
class Field:
    name: Optional[str]
    type: TypeRef
    type_name: Optional[str] = None


@dataclass(frozen=True)
class Composite(TypeDescriptor):
    """A struct (named fields) or tuple struct (unnamed fields)."""
    fields: Tuple[Field, ...]
    path: Tuple[str, ...] = ()
    type_id: Optional[int] = None

    kind: ClassVar[str] = "struct"

    @property
    def named(self) -> bool:
        return bool(self.fields) and all(f.name is not None for f in self.fields)


@dataclass(frozen=True)
class VariantCase:
    name: str
    index: int
    fields: Tuple[Field, ...] = ()
    docs: Tuple[str, ...] = ()

    @property
    def named(self) -> bool:
        return bool(self.fields) and all(f.name is not None for f in self.fields)


@dataclass(frozen=True)
class Variant(TypeDescriptor):
    """A tagged union; the tag byte is the variant's declared index."""
    variants: Tuple[VariantCase, ...]
    path: Tuple[str, ...] = ()
    type_id: Optional[int] = None

    kind: ClassVar[str] = "enum"

    def by_index(self, index: int) -> Optional[VariantCase]:
        for case in self.variants:
            if case.index == index:
                return case
        return None

    def by_name(self, name: str) -> Optional[VariantCase]:
        for case in self.variants:
            if case.name == name:
                return case
        return None


@dataclass(frozen=True)
class Sequence(TypeDescriptor):
    element: TypeRef
    path: Tuple[str, ...] = ()
    type_id: Optional[int] = None

    kind: ClassVar[str] = "vector"


@dataclass(frozen=True)
class Array(TypeDescriptor):
    element: TypeRef
    length: int
    path: Tuple[str, ...] = ()
    type_id: Optional[int] = None

    kind: ClassVar[str] = "array"


@dataclass(frozen=True)
class OptionType(TypeDescriptor):
    inner: TypeRef
    path: Tuple[str, ...] = ()
    type_id: Optional[int] = None

    kind: ClassVar[str] = "option"


@dataclass(frozen=True)
class TupleType(TypeDescriptor):
    elements: Tuple[TypeRef, ...]
    path: Tuple[str, ...] = ()
    type_id: Optional[int] = None

    kind: ClassVar[str] = "tuple"


@dataclass(frozen=True)
class BitSequence(TypeDescriptor):
    store: TypeRef
    order: TypeRef
    path: Tuple[str, ...] = ()
    type_id: Optional[int] = None

    kind: ClassVar[str] = "bitsequence"


U8 = Primitive("u8")
U16 = Primitive("u16")
U32 = Primitive("u32")
U64 = Primitive("u64")
U128 = Primitive("u128")
BOOL = Primitive("bool")
STR = Primitive("str")
BYTES = Sequence(U8)
H256 = Array(U8, 32)
UNIT = TupleType(())

ALIASES: Dict[str, TypeDescriptor] = {
    "Bytes": BYTES,
    "H256": H256,
    "Hash": H256,
    "String": STR,
    "Text": STR,
    "()": UNIT,
}

_WRAPPERS = {
    "Compact": Compact,
    "Vec": Sequence,
    "Option": OptionType,
}


def _split_top_level(text: str) -> List[str]:
    """Split on commas that are not nested inside <>, [] or ()."""
    parts, depth, current = [], 0, []
    for char in text:
        if char in "<[(":
            depth += 1
        elif char in ">])":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


def parse_type_expression(
    text: str,
    lookup: Optional[Callable[[str], Optional[TypeRef]]] = None
) -> TypeRef:
    """
    Parse a type expression such as ``Compact<u128>``, ``Vec<u8>``,
    ``[u8; 32]``, ``Option<u32>`` or ``(u32, bool)``.

    Names that are neither primitives nor aliases are passed to ``lookup``.

    Raises:
        UnknownType: If a name cannot be resolved
    """
    text = text.strip()
    if text in PRIMITIVE_SIZES:
        return Primitive(text)
    if text in ALIASES:
        return ALIASES[text]

    if text.endswith(">") and "<" in text:
        head, _, inner = text[:-1].partition("<")
        head = head.strip()
        if head == "Box":
            return parse_type_expression(inner, lookup)
        if head in _WRAPPERS:
            return _WRAPPERS[head](parse_type_expression(inner, lookup))

    if text.startswith("[") and text.endswith("]") and ";" in text:
        element, _, length = text[1:-1].rpartition(";")
        try:
            size = int(length.strip())
        except ValueError:
            raise UnknownType(f"Invalid array length in {text!r}")
        return Array(parse_type_expression(element, lookup), size)

    if text.startswith("(") and text.endswith(")"):
        return TupleType(tuple(parse_type_expression(p, lookup) for p in _split_top_level(text[1:-1])))

    if lookup is not None:
        resolved = lookup(text)
        if resolved is not None:
            return resolved
    raise UnknownType(f"Unknown type: {text}")
