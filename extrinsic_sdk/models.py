"""
Data models for the extrinsic SDK.
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from extrinsic_sdk.era import Era
from extrinsic_sdk.exceptions import IncompletePayload, InvalidValue
from extrinsic_sdk.utils import to_bytes


class NumericOutputMode(str, Enum):
    """
    How decoded integers of 64 bits or wider are rendered.

    STRING renders them as base-10 strings, NATIVE as Python ints.
    """
    STRING = "string"
    NATIVE = "native"


class UnsignedExtrinsicPayload(BaseModel):
    """
    Everything needed to build the signing payload of one transaction.

    All fields are mandatory except ``block_hash``, which is only required
    for mortal eras. Any missing or invalid field raises IncompletePayload.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    call: bytes
    era: Era
    nonce: int = Field(..., ge=0)
    tip: int = Field(..., ge=0)
    spec_version: int = Field(..., ge=0)
    transaction_version: int = Field(..., ge=0)
    genesis_hash: bytes
    block_hash: Optional[bytes] = None

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise IncompletePayload(f"Invalid unsigned extrinsic payload: {e}") from e

    @field_validator("call", "genesis_hash", "block_hash", mode="before")
    @classmethod
    def _coerce_bytes(cls, value: Any) -> Any:
        if value is None:
            return value
        try:
            return to_bytes(value)
        except InvalidValue as e:
            raise ValueError(str(e)) from e

    @field_validator("era", mode="before")
    @classmethod
    def _coerce_era(cls, value: Any) -> Era:
        try:
            return Era.from_value(value)
        except InvalidValue as e:
            raise ValueError(str(e)) from e

    @model_validator(mode="after")
    def _check_hashes(self) -> 'UnsignedExtrinsicPayload':
        if not self.call:
            raise ValueError("call must not be empty")
        if len(self.genesis_hash) != 32:
            raise ValueError(f"genesis_hash must be 32 bytes, got {len(self.genesis_hash)}")
        if self.block_hash is not None and len(self.block_hash) != 32:
            raise ValueError(f"block_hash must be 32 bytes, got {len(self.block_hash)}")
        if not self.era.is_immortal and self.block_hash is None:
            raise ValueError("block_hash is required for a mortal era")
        return self

    @property
    def checkpoint_hash(self) -> bytes:
        """Hash the era is anchored to: the block hash, or genesis when immortal."""
        if self.era.is_immortal:
            return self.genesis_hash
        return self.block_hash


class RuntimeVersion(BaseModel):
    """Runtime version as returned by state_getRuntimeVersion"""
    model_config = ConfigDict(populate_by_name=True)

    spec_name: str = Field(..., alias="specName")
    impl_name: Optional[str] = Field(None, alias="implName")
    authoring_version: int = Field(0, alias="authoringVersion")
    spec_version: int = Field(..., alias="specVersion")
    impl_version: int = Field(0, alias="implVersion")
    transaction_version: int = Field(..., alias="transactionVersion")
    apis: List[Any] = Field(default_factory=list)


class ChainState(BaseModel):
    """Chain reads a transaction is built against"""
    genesis_hash: str
    block_hash: str
    block_number: int
    runtime_version: RuntimeVersion
    metadata: str


class DecodedCall(BaseModel):
    module: str
    call: str
    module_index: int
    call_index: int
    args: Dict[str, Any]


class DecodedExtrinsic(BaseModel):
    """Structural view of a decoded extrinsic"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    version: int
    signed: bool
    address: Optional[Any] = None
    signature: Optional[Any] = None
    era: Optional[Era] = None
    nonce: Optional[Union[int, str]] = None
    tip: Optional[Union[int, str]] = None
    extra: Dict[str, Any] = Field(default_factory=dict)
    call: DecodedCall
    hash: str
    length: int


class DecodeOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    numeric_output: NumericOutputMode = NumericOutputMode.STRING
    length_prefixed: bool = True


class PreparedExtrinsic(BaseModel):
    """An unsigned transaction together with the bytes to sign for it"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    payload: UnsignedExtrinsicPayload
    signing_payload: bytes
    signer_address: str
    chain_state: ChainState


class SignedExtrinsicResult(BaseModel):
    """A signed extrinsic ready for submission"""
    extrinsic: str
    hash: str
    decoded: DecodedExtrinsic
