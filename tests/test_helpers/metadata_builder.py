"""
Assembles small runtime metadata blobs for tests.

The blob mirrors the layout a node returns from state_getMetadata: the
``meta`` magic, a version byte, the portable type table, pallets and the
extrinsic description. Only the types the tests touch are included.
"""
from typing import Iterable, List, Optional, Sequence, Tuple

from extrinsic_sdk.scale.compact import encode_compact
from extrinsic_sdk.scale.types import PRIMITIVE_ORDER

SPEC_VERSION = 9
TRANSACTION_VERSION = 1
SYSTEM_INDEX = 0
BALANCES_INDEX = 5
TRANSFER_INDEX = 0
TRANSFER_KEEP_ALIVE_INDEX = 3
UTILITY_INDEX = 1
BATCH_INDEX = 0

# Type ids of the fixture table
U8, ARRAY_32, ACCOUNT_ID, U32, U64, U128 = 0, 1, 2, 3, 4, 5
COMPACT_U128, COMPACT_U32, UNIT, BYTES, ARRAY_20 = 6, 7, 8, 9, 10
MULTI_ADDRESS, ARRAY_64, ARRAY_65, MULTI_SIGNATURE, ERA = 11, 12, 13, 14, 15
EXT_NON_ZERO_SENDER, EXT_SPEC_VERSION, EXT_TX_VERSION, EXT_GENESIS = 16, 17, 18, 19
EXT_MORTALITY, EXT_NONCE, EXT_WEIGHT, EXT_PAYMENT = 20, 21, 22, 23
H256, U16, BALANCES_CALL, SYSTEM_CALL, RUNTIME_CALL = 24, 25, 26, 27, 28
UNCHECKED_EXTRINSIC, EXTRA_TUPLE, RUNTIME, BOOL, OPTION_U32 = 29, 30, 31, 32, 33
EXT_UNKNOWN_ZERO, EXT_UNKNOWN_DATA = 34, 35
# RuntimeCall -> Utility call -> Vec<RuntimeCall> is a cycle
UTILITY_CALL, VEC_RUNTIME_CALL = 36, 37

DEFAULT_EXTENSIONS: List[Tuple[str, int, int]] = [
    ("CheckNonZeroSender", EXT_NON_ZERO_SENDER, UNIT),
    ("CheckSpecVersion", EXT_SPEC_VERSION, U32),
    ("CheckTxVersion", EXT_TX_VERSION, U32),
    ("CheckGenesis", EXT_GENESIS, H256),
    ("CheckMortality", EXT_MORTALITY, H256),
    ("CheckNonce", EXT_NONCE, UNIT),
    ("CheckWeight", EXT_WEIGHT, UNIT),
    ("ChargeTransactionPayment", EXT_PAYMENT, UNIT),
]


# ---------------------------------------------------------------------------
# SCALE primitives
# ---------------------------------------------------------------------------

def text(value: str) -> bytes:
    raw = value.encode("utf-8")
    return encode_compact(len(raw)) + raw


def vec(items: Iterable[bytes]) -> bytes:
    items = list(items)
    return encode_compact(len(items)) + b"".join(items)


def option(value: Optional[bytes]) -> bytes:
    return b"\x00" if value is None else b"\x01" + value


def docs(lines: Sequence[str] = ()) -> bytes:
    return vec(text(line) for line in lines)


# ---------------------------------------------------------------------------
# Portable type table
# ---------------------------------------------------------------------------

def field(name: Optional[str], type_id: int, type_name: Optional[str] = None) -> bytes:
    return (
        option(None if name is None else text(name))
        + encode_compact(type_id)
        + option(None if type_name is None else text(type_name))
        + docs()
    )


def variant(name: str, index: int, fields: Sequence[bytes] = (), variant_docs: Sequence[str] = ()) -> bytes:
    return text(name) + vec(fields) + bytes([index]) + docs(variant_docs)


def composite_def(fields: Sequence[bytes] = ()) -> bytes:
    return b"\x00" + vec(fields)


def variant_def(variants: Sequence[bytes]) -> bytes:
    return b"\x01" + vec(variants)


def sequence_def(element: int) -> bytes:
    return b"\x02" + encode_compact(element)


def array_def(length: int, element: int) -> bytes:
    return b"\x03" + length.to_bytes(4, "little") + encode_compact(element)


def tuple_def(elements: Sequence[int]) -> bytes:
    return b"\x04" + vec(encode_compact(e) for e in elements)


def primitive_def(name: str) -> bytes:
    return b"\x05" + bytes([PRIMITIVE_ORDER.index(name)])


def compact_def(inner: int) -> bytes:
    return b"\x06" + encode_compact(inner)


def portable_type(
    type_id: int,
    type_def: bytes,
    path: Sequence[str] = (),
    params: Sequence[Tuple[str, Optional[int]]] = ()
) -> bytes:
    encoded_params = vec(
        text(name) + option(None if ref is None else encode_compact(ref)) for name, ref in params
    )
    return encode_compact(type_id) + vec(text(p) for p in path) + encoded_params + type_def + docs()


def _extension_type(type_id: int, name: str, fields: Sequence[bytes] = ()) -> bytes:
    path = ("frame_system", "extensions", name)
    if name == "ChargeTransactionPayment":
        path = ("pallet_transaction_payment", name)
    return portable_type(type_id, composite_def(fields), path, [("T", None)])


def build_types() -> List[bytes]:
    transfer_fields = [
        field("dest", MULTI_ADDRESS, "AccountIdLookupOf<T>"),
        field("value", COMPACT_U128, "T::Balance"),
    ]
    return [
        portable_type(U8, primitive_def("u8")),
        portable_type(ARRAY_32, array_def(32, U8)),
        portable_type(
            ACCOUNT_ID, composite_def([field(None, ARRAY_32, "[u8; 32]")]),
            ("sp_core", "crypto", "AccountId32"),
        ),
        portable_type(U32, primitive_def("u32")),
        portable_type(U64, primitive_def("u64")),
        portable_type(U128, primitive_def("u128")),
        portable_type(COMPACT_U128, compact_def(U128)),
        portable_type(COMPACT_U32, compact_def(U32)),
        portable_type(UNIT, tuple_def([])),
        portable_type(BYTES, sequence_def(U8)),
        portable_type(ARRAY_20, array_def(20, U8)),
        portable_type(
            MULTI_ADDRESS,
            variant_def([
                variant("Id", 0, [field(None, ACCOUNT_ID, "AccountId")]),
                variant("Index", 1, [field(None, COMPACT_U32, "AccountIndex")]),
                variant("Raw", 2, [field(None, BYTES, "Vec<u8>")]),
                variant("Address32", 3, [field(None, ARRAY_32, "[u8; 32]")]),
                variant("Address20", 4, [field(None, ARRAY_20, "[u8; 20]")]),
            ]),
            ("sp_runtime", "multiaddress", "MultiAddress"),
            [("AccountId", ACCOUNT_ID), ("AccountIndex", UNIT)],
        ),
        portable_type(ARRAY_64, array_def(64, U8)),
        portable_type(ARRAY_65, array_def(65, U8)),
        portable_type(
            MULTI_SIGNATURE,
            variant_def([
                variant("Ed25519", 0, [field(None, ARRAY_64, "ed25519::Signature")]),
                variant("Sr25519", 1, [field(None, ARRAY_64, "sr25519::Signature")]),
                variant("Ecdsa", 2, [field(None, ARRAY_65, "ecdsa::Signature")]),
            ]),
            ("sp_runtime", "MultiSignature"),
        ),
        portable_type(
            ERA,
            variant_def([variant("Immortal", 0), variant("Mortal1", 1, [field(None, U8)])]),
            ("sp_runtime", "generic", "era", "Era"),
        ),
        _extension_type(EXT_NON_ZERO_SENDER, "CheckNonZeroSender"),
        _extension_type(EXT_SPEC_VERSION, "CheckSpecVersion"),
        _extension_type(EXT_TX_VERSION, "CheckTxVersion"),
        _extension_type(EXT_GENESIS, "CheckGenesis"),
        _extension_type(EXT_MORTALITY, "CheckMortality", [field(None, ERA, "Era")]),
        _extension_type(EXT_NONCE, "CheckNonce", [field(None, COMPACT_U32, "T::Index")]),
        _extension_type(EXT_WEIGHT, "CheckWeight"),
        _extension_type(EXT_PAYMENT, "ChargeTransactionPayment", [field(None, COMPACT_U128, "BalanceOf<T>")]),
        portable_type(H256, composite_def([field(None, ARRAY_32, "[u8; 32]")]), ("primitive_types", "H256")),
        portable_type(U16, primitive_def("u16")),
        portable_type(
            BALANCES_CALL,
            variant_def([
                variant(
                    "transfer", TRANSFER_INDEX, transfer_fields,
                    ["Transfer some liquid free balance to another account."],
                ),
                variant("transfer_keep_alive", TRANSFER_KEEP_ALIVE_INDEX, transfer_fields),
            ]),
            ("pallet_balances", "pallet", "Call"),
            [("T", None), ("I", None)],
        ),
        portable_type(
            SYSTEM_CALL,
            variant_def([
                variant("remark", 0, [field("remark", BYTES, "Vec<u8>")]),
                variant("remark_with_event", 7, [field("remark", BYTES, "Vec<u8>")]),
            ]),
            ("frame_system", "pallet", "Call"),
            [("T", None)],
        ),
        portable_type(
            RUNTIME_CALL,
            variant_def([
                variant("System", SYSTEM_INDEX, [field(None, SYSTEM_CALL)]),
                variant("Utility", UTILITY_INDEX, [field(None, UTILITY_CALL)]),
                variant("Balances", BALANCES_INDEX, [field(None, BALANCES_CALL)]),
            ]),
            ("node_runtime", "RuntimeCall"),
        ),
        portable_type(
            UNCHECKED_EXTRINSIC,
            composite_def([field(None, BYTES)]),
            ("sp_runtime", "generic", "unchecked_extrinsic", "UncheckedExtrinsic"),
            [
                ("Address", MULTI_ADDRESS),
                ("Call", RUNTIME_CALL),
                ("Signature", MULTI_SIGNATURE),
                ("Extra", EXTRA_TUPLE),
            ],
        ),
        portable_type(EXTRA_TUPLE, tuple_def([ext[1] for ext in DEFAULT_EXTENSIONS])),
        portable_type(RUNTIME, composite_def(), ("node_runtime", "Runtime")),
        portable_type(BOOL, primitive_def("bool")),
        portable_type(
            OPTION_U32,
            variant_def([variant("None", 0), variant("Some", 1, [field(None, U32)])]),
            ("Option",),
            [("T", U32)],
        ),
        _extension_type(EXT_UNKNOWN_ZERO, "CheckNothingInteresting"),
        _extension_type(EXT_UNKNOWN_DATA, "CheckSomethingElse", [field(None, U32)]),
        portable_type(
            UTILITY_CALL,
            variant_def([
                variant("batch", BATCH_INDEX, [field("calls", VEC_RUNTIME_CALL, "Vec<<T as Config>::RuntimeCall>")]),
            ]),
            ("pallet_utility", "pallet", "Call"),
            [("T", None)],
        ),
        portable_type(VEC_RUNTIME_CALL, sequence_def(RUNTIME_CALL)),
    ]


# ---------------------------------------------------------------------------
# Pallets
# ---------------------------------------------------------------------------

def constant(name: str, type_id: int, value: bytes, constant_docs: Sequence[str] = ()) -> bytes:
    return text(name) + encode_compact(type_id) + encode_compact(len(value)) + value + docs(constant_docs)


def pallet(
    name: str,
    index: int,
    calls: Optional[int] = None,
    constants: Sequence[bytes] = (),
    storage: Optional[bytes] = None,
    pallet_docs: Optional[Sequence[str]] = None
) -> bytes:
    out = (
        text(name)
        + option(storage)
        + option(None if calls is None else encode_compact(calls))
        + option(None)  # event
        + vec(constants)
        + option(None)  # error
        + bytes([index])
    )
    if pallet_docs is not None:
        out += docs(pallet_docs)
    return out


def balances_storage() -> bytes:
    total_issuance = (
        text("TotalIssuance")
        + b"\x01"  # Default modifier
        + b"\x00" + encode_compact(U128)  # Plain
        + encode_compact(16) + bytes(16)
        + docs(["The total units issued in the system."])
    )
    account = (
        text("Locks")
        + b"\x00"  # Optional modifier
        + b"\x01" + vec([b"\x02"]) + encode_compact(ACCOUNT_ID) + encode_compact(U128)  # Map
        + encode_compact(0)
        + docs()
    )
    return text("Balances") + vec([total_issuance, account])


def build_pallets(ss58_prefix: Optional[int], with_docs: bool) -> List[bytes]:
    system_constants = []
    if ss58_prefix is not None:
        system_constants.append(
            constant("SS58Prefix", U16, ss58_prefix.to_bytes(2, "little"), ["The designated SS58 prefix."])
        )
    pallet_docs = [] if with_docs else None
    return [
        pallet("System", SYSTEM_INDEX, SYSTEM_CALL, system_constants, pallet_docs=pallet_docs),
        pallet(
            "Balances",
            BALANCES_INDEX,
            BALANCES_CALL,
            [constant("ExistentialDeposit", U128, (500).to_bytes(16, "little"))],
            storage=balances_storage(),
            pallet_docs=["The Balances pallet."] if with_docs else None,
        ),
        pallet("Timestamp", 3, None, pallet_docs=pallet_docs),
        pallet("Utility", UTILITY_INDEX, UTILITY_CALL, pallet_docs=pallet_docs),
    ]


# ---------------------------------------------------------------------------
# Whole blobs
# ---------------------------------------------------------------------------

def build_metadata(
    version: int = 14,
    ss58_prefix: Optional[int] = 42,
    extensions: Optional[Sequence[Tuple[str, int, int]]] = None,
    extrinsic_version: int = 4
) -> bytes:
    """
    Build a metadata blob.

    Args:
        version: Metadata version, 14 or 15
        ss58_prefix: Value of System.SS58Prefix, or None to leave it out
        extensions: Signed extensions as (identifier, type id, additional type id)
        extrinsic_version: Extrinsic format version declared by the runtime
    """
    extensions = DEFAULT_EXTENSIONS if extensions is None else extensions
    encoded_extensions = vec(
        text(name) + encode_compact(type_id) + encode_compact(additional)
        for name, type_id, additional in extensions
    )
    body = vec(build_types()) + vec(build_pallets(ss58_prefix, with_docs=version >= 15))

    if version == 14:
        body += (
            encode_compact(UNCHECKED_EXTRINSIC)
            + bytes([extrinsic_version])
            + encoded_extensions
            + encode_compact(RUNTIME)
        )
    elif version == 15:
        api = text("Core") + vec([
            text("version") + vec([]) + encode_compact(U32) + docs(["Returns the runtime version."]),
        ]) + docs()
        body += (
            bytes([extrinsic_version])
            + encode_compact(MULTI_ADDRESS)
            + encode_compact(RUNTIME_CALL)
            + encode_compact(MULTI_SIGNATURE)
            + encode_compact(EXTRA_TUPLE)
            + encoded_extensions
            + encode_compact(RUNTIME)
            + vec([api])
            + encode_compact(RUNTIME_CALL) + encode_compact(UNIT) + encode_compact(UNIT)
            + vec([text("relay") + encode_compact(U32) + encode_compact(4) + (7).to_bytes(4, "little")])
        )
    else:
        raise ValueError(f"Cannot build V{version} metadata")

    return b"meta" + bytes([version]) + body
