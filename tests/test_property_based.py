"""
Property-based tests for the codec, addresses and signing.

These tests verify that properties hold true across many random inputs.
"""
import hashlib

import base58
import pytest
from hypothesis import assume, given, settings, strategies as st

from extrinsic_sdk.address import decode_address, encode_address
from extrinsic_sdk.era import Era
from extrinsic_sdk.exceptions import AddressError, ChecksumMismatch, TruncatedInput
from extrinsic_sdk.models import NumericOutputMode
from extrinsic_sdk.scale.codec import ScaleCodec
from extrinsic_sdk.scale.compact import MAX_COMPACT, encode_compact, read_compact
from extrinsic_sdk.scale.cursor import ScaleCursor
from extrinsic_sdk.scale.types import (
    BOOL, BYTES, STR, U8, U16, U32, U64, U128, Array, Compact, Composite, Field,
    OptionType, Primitive, Sequence, TupleType, Variant, VariantCase
)
from extrinsic_sdk.signer import KeyPair, SignatureScheme, sign, verify

native = ScaleCodec(numeric_output=NumericOutputMode.NATIVE)

RECORD = Composite((
    Field("id", Compact(U32)),
    Field("owner", Array(U8, 32)),
    Field("amounts", Sequence(U128)),
    Field("memo", OptionType(STR)),
    Field("flags", TupleType((BOOL, Primitive("i32")))),
), path=("sample", "Record"))

ACTION = Variant((
    VariantCase("Idle", 0),
    VariantCase("Transfer", 1, (Field("to", Array(U8, 32)), Field("amount", Compact(U128)))),
    VariantCase("Remark", 7, (Field(None, BYTES),)),
), path=("sample", "Action"))

# (descriptor, strategy producing values in decoded form)
SHAPES = [
    (U8, st.integers(0, 2**8 - 1)),
    (U16, st.integers(0, 2**16 - 1)),
    (U64, st.integers(0, 2**64 - 1)),
    (Primitive("i64"), st.integers(-(2**63), 2**63 - 1)),
    (U128, st.integers(0, 2**128 - 1)),
    (BOOL, st.booleans()),
    (STR, st.text(max_size=50)),
    (Compact(U128), st.integers(0, 2**128 - 1)),
    (Sequence(U32), st.lists(st.integers(0, 2**32 - 1), max_size=10)),
    (OptionType(BOOL), st.none() | st.booleans()),
    (BYTES, st.binary(max_size=80).map(lambda b: "0x" + b.hex())),
    (TupleType((Sequence(U32),)), st.lists(st.integers(0, 2**32 - 1), max_size=10)),
    (TupleType((Array(U16, 2),)), st.lists(st.integers(0, 2**16 - 1), min_size=2, max_size=2)),
    (
        RECORD,
        st.fixed_dictionaries({
            "id": st.integers(0, 2**32 - 1),
            "owner": st.binary(min_size=32, max_size=32).map(lambda b: "0x" + b.hex()),
            "amounts": st.lists(st.integers(0, 2**128 - 1), max_size=4),
            "memo": st.none() | st.text(max_size=20),
            "flags": st.tuples(st.booleans(), st.integers(-(2**31), 2**31 - 1)).map(list),
        }),
    ),
    (
        ACTION,
        st.one_of(
            st.just("Idle"),
            st.fixed_dictionaries({
                "to": st.binary(min_size=32, max_size=32).map(lambda b: "0x" + b.hex()),
                "amount": st.integers(0, 2**128 - 1),
            }).map(lambda v: {"Transfer": v}),
            st.binary(max_size=40).map(lambda b: {"Remark": "0x" + b.hex()}),
        ),
    ),
]


@st.composite
def shape_and_value(draw):
    desc, values = draw(st.sampled_from(SHAPES))
    return desc, draw(values)


@settings(max_examples=200)
@given(st.integers(min_value=0, max_value=MAX_COMPACT))
def test_compact_roundtrip(value):
    encoded = encode_compact(value)
    cursor = ScaleCursor(encoded)
    assert read_compact(cursor) == value
    assert cursor.at_end()


@settings(max_examples=200, deadline=None)
@given(shape_and_value())
def test_codec_roundtrip(case):
    """decode(encode(v)) == v for every supported shape"""
    desc, value = case
    encoded = native.encode(value, desc)
    decoded, consumed = native.decode(encoded, desc)
    assert decoded == value
    assert consumed == len(encoded)


@settings(max_examples=100, deadline=None)
@given(shape_and_value(), st.data())
def test_truncated_input_fails(case, data):
    """Every strict prefix of an encoding is rejected"""
    desc, value = case
    encoded = native.encode(value, desc)
    assume(len(encoded) > 0)
    cut = data.draw(st.integers(min_value=0, max_value=len(encoded) - 1))
    with pytest.raises(TruncatedInput):
        native.decode(encoded[:cut], desc)


@settings(max_examples=100)
@given(st.integers(0, 2**16 - 1).map(lambda n: 1 << (n % 15 + 2)), st.integers(0, 10**9))
def test_era_roundtrip(period, current):
    era = Era.mortal(period, current)
    assert Era.decode(era.encode()) == era
    assert era.birth(current) <= current < era.death(current)


@settings(max_examples=100)
@given(st.binary(min_size=32, max_size=32), st.integers(0, 16383))
def test_address_roundtrip(public_key, prefix):
    address = encode_address(public_key, prefix)
    assert decode_address(address, allowed_prefixes=[prefix]) == (public_key, prefix)


@settings(max_examples=100)
@given(
    st.binary(min_size=32, max_size=32),
    st.sampled_from([0, 2, 42]),
    st.integers(0, 32),
    st.integers(1, 255),
)
def test_corrupted_address_is_rejected(public_key, prefix, index, mask):
    """Any change to the prefix or public key is caught"""
    raw = bytearray(base58.b58decode(encode_address(public_key, prefix)))
    raw[index] ^= mask
    body, checksum = bytes(raw[:-2]), bytes(raw[-2:])
    corrupted = base58.b58encode(bytes(raw)).decode()
    # a 16-bit checksum collides with probability 2**-16
    assume(hashlib.blake2b(b"SS58PRE" + body, digest_size=64).digest()[:2] != checksum)

    with pytest.raises(AddressError):
        decode_address(corrupted, allowed_prefixes=[0, 2, 42])

    if index > 0:
        with pytest.raises(ChecksumMismatch):
            decode_address(corrupted, allowed_prefixes=[0, 2, 42])


@settings(max_examples=50, deadline=None)
@given(st.binary(min_size=1, max_size=400), st.integers(0, 399), st.integers(1, 255))
def test_ed25519_signature_covers_every_byte(payload, index, mask):
    keypair = KeyPair.from_seed(b"\x05" * 32, SignatureScheme.ED25519)
    signature = sign(payload, keypair)
    assert verify(payload, signature, keypair.public_key, SignatureScheme.ED25519)

    tampered = bytearray(payload)
    tampered[index % len(payload)] ^= mask
    assert not verify(bytes(tampered), signature, keypair.public_key, SignatureScheme.ED25519)
