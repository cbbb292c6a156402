"""
Streaming reader over a SCALE encoded buffer.
"""
from typing import Callable, List, Optional, TypeVar, Union

from extrinsic_sdk.exceptions import CodecError, TruncatedInput
from extrinsic_sdk.scale.compact import read_compact

T = TypeVar('T')


class ScaleCursor:
    """
    Forward-only cursor over bytes.

    Every read advances the offset, so composite decoders can chain reads and
    report how many bytes they consumed via ``consumed``.
    """

    def __init__(self, data: Union[bytes, bytearray, memoryview], offset: int = 0, strict: bool = True):
        self.data = bytes(data)
        self.offset = offset
        self.start = offset
        self.strict = strict

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    @property
    def consumed(self) -> int:
        return self.offset - self.start

    def at_end(self) -> bool:
        return self.offset >= len(self.data)

    def read(self, size: int) -> bytes:
        if size < 0:
            raise CodecError(f"Cannot read a negative number of bytes ({size})")
        if size > self.remaining:
            raise TruncatedInput(self.offset, size, self.remaining)
        chunk = self.data[self.offset:self.offset + size]
        self.offset += size
        return chunk

    def peek(self, size: int = 1) -> bytes:
        if size > self.remaining:
            raise TruncatedInput(self.offset, size, self.remaining)
        return self.data[self.offset:self.offset + size]

    def read_u8(self) -> int:
        return self.read(1)[0]

    def read_int(self, size: int, signed: bool = False) -> int:
        return int.from_bytes(self.read(size), "little", signed=signed)

    def read_bool(self) -> bool:
        offset = self.offset
        byte = self.read_u8()
        if byte not in (0, 1):
            raise CodecError(f"Invalid bool byte 0x{byte:02x} at offset {offset}")
        return byte == 1

    def read_compact(self) -> int:
        return read_compact(self, strict=self.strict)

    def read_bytes(self) -> bytes:
        """Read a compact length prefixed byte vector."""
        return self.read(self.read_compact())

    def read_str(self) -> str:
        offset = self.offset
        raw = self.read_bytes()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CodecError(f"Invalid UTF-8 string at offset {offset}: {e}") from e

    def read_vec(self, read_item: Callable[['ScaleCursor'], T]) -> List[T]:
        count = self.read_compact()
        return [read_item(self) for _ in range(count)]

    def read_option(self, read_item: Callable[['ScaleCursor'], T]) -> Optional[T]:
        offset = self.offset
        tag = self.read_u8()
        if tag == 0:
            return None
        if tag == 1:
            return read_item(self)
        raise CodecError(f"Invalid option tag 0x{tag:02x} at offset {offset}")
