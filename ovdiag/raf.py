"""Random-access reading of binary data with a fixed byte order."""

from __future__ import annotations

import enum
import struct
from typing import BinaryIO, Callable, TypeVar

T = TypeVar("T")


class ByteOrder(enum.Enum):
    """Byte order of the data being read; the value is a struct prefix."""

    BE = ">"
    LE = "<"


class RafError(Exception):
    """Base class for errors raised while reading from a :class:`Raf`."""


class BufferOverflowError(RafError):
    """The requested read runs past the end of the data."""


class StartOutOfRangeError(RafError):
    """The requested position lies beyond the end of the data."""


class Raf:
    """A byte buffer that can be read in order or at arbitrary offsets."""

    def __init__(self, data: bytes = b"", byte_order: ByteOrder = ByteOrder.LE) -> None:
        self._data = bytes(data)
        self.byte_order = byte_order
        self.pos = 0

    @classmethod
    def from_read(cls, reader: BinaryIO, byte_order: ByteOrder = ByteOrder.LE) -> "Raf":
        """Read everything from a binary file-like object into a new reader."""
        return cls(reader.read(), byte_order)

    @property
    def size(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def read_bytes(self, num_bytes: int) -> bytes:
        """Read ``num_bytes`` bytes and advance past them."""
        if num_bytes < 0:
            raise ValueError("cannot read a negative number of bytes")
        if self.pos + num_bytes > self.size:
            raise BufferOverflowError(
                f"reading {num_bytes} bytes at {self.pos} exceeds size {self.size}"
            )
        chunk = self._data[self.pos : self.pos + num_bytes]
        self.pos += num_bytes
        return chunk

    def seek(self, pos: int) -> None:
        """Move to an absolute position; no bounds are checked."""
        self.pos = pos

    def adv(self, count: int) -> None:
        """Advance the position by ``count`` bytes."""
        if self.pos + count > self.size:
            raise StartOutOfRangeError(
                f"advancing {count} bytes from {self.pos} exceeds size {self.size}"
            )
        self.pos += count

    def seek_read(self, pos: int, func: Callable[["Raf"], T]) -> T:
        """Seek to ``pos`` and then run ``func`` on this reader."""
        self.seek(pos)
        return func(self)

    def _read_primitive(self, fmt: str, size: int):
        raw = self.read_bytes(size)
        return struct.unpack(self.byte_order.value + fmt, raw)[0]

    def read_cstr_bytes(self) -> bytes:
        """Read bytes up to a terminating zero byte, which is consumed but not returned."""
        collected = bytearray()
        while (byte := self.read_u8()) != 0:
            collected.append(byte)
        return bytes(collected)

    def read_f32(self) -> float:
        return self._read_primitive("f", 4)

    def read_u64(self) -> int:
        return self._read_primitive("Q", 8)

    def read_i64(self) -> int:
        return self._read_primitive("q", 8)

    def read_u32(self) -> int:
        return self._read_primitive("I", 4)

    def read_i32(self) -> int:
        return self._read_primitive("i", 4)

    def read_u16(self) -> int:
        return self._read_primitive("H", 2)

    def read_i16(self) -> int:
        return self._read_primitive("h", 2)

    def read_u8(self) -> int:
        return self.read_byte()

    def read_i8(self) -> int:
        value = self.read_byte()
        return value - 0x100 if value >= 0x80 else value

    def read_byte(self) -> int:
        """Read a single unsigned byte."""
        if self.pos >= self.size:
            raise StartOutOfRangeError(f"position {self.pos} is past size {self.size}")
        value = self._data[self.pos]
        self.pos += 1
        return value