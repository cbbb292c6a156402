"""
Transaction mortality (era) encoding.

An immortal era is the single byte 0x00. A mortal era packs its period (a
power of two between 4 and 65536) and a quantised phase into two bytes:
the low four bits hold log2(period) - 1 and the upper twelve bits hold the
phase divided by the quantisation factor.
"""
from dataclasses import dataclass
from typing import Any, Dict, Union

from extrinsic_sdk.exceptions import CodecError, InvalidValue
from extrinsic_sdk.scale.cursor import ScaleCursor

MIN_PERIOD = 4
MAX_PERIOD = 1 << 16


@dataclass(frozen=True)
class Era:
    """
    Mortality window of an extrinsic.

    Attributes:
        period: Length of the validity window in blocks, 0 for immortal
        phase: Offset of the window start within the period
    """
    period: int = 0
    phase: int = 0

    @classmethod
    def immortal(cls) -> 'Era':
        return cls(0, 0)

    @classmethod
    def mortal(cls, period: int, current: int) -> 'Era':
        """
        Create a mortal era starting at the given block.

        Args:
            period: Requested window length; rounded up to a power of two and
                clamped to [4, 65536]
            current: Block number the transaction is built against
        """
        if current < 0:
            raise InvalidValue(f"Block number must be non-negative, got {current}")
        period = 1 << (max(period, 1) - 1).bit_length()
        period = min(max(period, MIN_PERIOD), MAX_PERIOD)
        quantize = max(period >> 12, 1)
        phase = (current % period) // quantize * quantize
        return cls(period, phase)

    @property
    def is_immortal(self) -> bool:
        return self.period == 0

    def birth(self, current: int) -> int:
        """First block of the window that contains ``current``."""
        if self.is_immortal:
            return 0
        return (max(current, self.phase) - self.phase) // self.period * self.period + self.phase

    def death(self, current: int) -> int:
        """First block at which the transaction is no longer valid."""
        if self.is_immortal:
            return (1 << 64) - 1
        return self.birth(current) + self.period

    def encode(self) -> bytes:
        if self.is_immortal:
            return b"\x00"
        if self.period & (self.period - 1) or not MIN_PERIOD <= self.period <= MAX_PERIOD:
            raise InvalidValue(f"Invalid era period {self.period}")
        if not 0 <= self.phase < self.period:
            raise InvalidValue(f"Era phase {self.phase} outside period {self.period}")
        quantize = max(self.period >> 12, 1)
        trailing_zeros = (self.period & -self.period).bit_length() - 1
        encoded = min(15, max(1, trailing_zeros - 1)) | ((self.phase // quantize) << 4)
        return encoded.to_bytes(2, "little")

    @classmethod
    def decode_from(cls, cursor: ScaleCursor) -> 'Era':
        offset = cursor.offset
        first = cursor.read_u8()
        if first == 0:
            return cls.immortal()
        encoded = first | (cursor.read_u8() << 8)
        period = 2 << (encoded % 16)
        quantize = max(period >> 12, 1)
        phase = (encoded >> 4) * quantize
        if period < MIN_PERIOD or phase >= period:
            raise CodecError(f"Invalid mortal era encoding 0x{encoded:04x} at offset {offset}")
        return cls(period, phase)

    @classmethod
    def decode(cls, data: bytes) -> 'Era':
        return cls.decode_from(ScaleCursor(data))

    @classmethod
    def from_value(cls, value: Union['Era', str, Dict[str, Any], bytes]) -> 'Era':
        """Coerce the forms accepted in call arguments into an Era."""
        if isinstance(value, Era):
            return value
        if value == "Immortal" or value in (b"\x00", "0x00"):
            return cls.immortal()
        if isinstance(value, dict):
            if "Mortal" in value:
                value = value["Mortal"]
            if "period" in value and "phase" in value:
                era = cls(int(value["period"]), int(value["phase"]))
                era.encode()
                return era
            if "period" in value and "current" in value:
                return cls.mortal(int(value["period"]), int(value["current"]))
        if isinstance(value, (bytes, bytearray)):
            return cls.decode(bytes(value))
        raise InvalidValue(f"Cannot interpret {value!r} as an era")

    def to_dict(self) -> Union[str, Dict[str, Any]]:
        if self.is_immortal:
            return "Immortal"
        return {"Mortal": {"period": self.period, "phase": self.phase}}
