import io
import struct

import pytest
from hypothesis import given
from hypothesis import strategies as st

from ovdiag.raf import (
    BufferOverflowError,
    ByteOrder,
    Raf,
    RafError,
    StartOutOfRangeError,
)


def test_seek_read_example():
    data = bytes(range(0x00, 0xFF))
    reader = Raf(data, ByteOrder.BE)
    assert reader.seek_read(2, Raf.read_i32) == 0x02030405
    assert reader.pos == 6


def test_big_endian_u32_from_given_bytes():
    reader = Raf(b"\x01\x02\x03\x04", ByteOrder.BE)
    assert reader.read_u32() == 0x01020304
    assert reader.pos == 4


def test_default_byte_order_is_little_endian():
    assert Raf(b"\x01\x00").read_u16() == 1


@given(st.binary(min_size=8, max_size=8))
def test_byte_orders_mirror_each_other(data):
    assert Raf(data, ByteOrder.BE).read_u64() == Raf(data[::-1], ByteOrder.LE).read_u64()
    assert Raf(data[:4], ByteOrder.BE).read_i32() == Raf(data[3::-1], ByteOrder.LE).read_i32()
    assert Raf(data[:2], ByteOrder.BE).read_i16() == Raf(data[1::-1], ByteOrder.LE).read_i16()


@given(st.integers(min_value=-(2**63), max_value=2**63 - 1))
def test_i64_round_trip(value):
    assert Raf(struct.pack(">q", value), ByteOrder.BE).read_i64() == value


@given(st.integers(min_value=0, max_value=2**64 - 1))
def test_u64_round_trip(value):
    assert Raf(struct.pack("<Q", value), ByteOrder.LE).read_u64() == value


@given(st.integers(min_value=0, max_value=2**32 - 1))
def test_u32_round_trip(value):
    assert Raf(struct.pack(">I", value), ByteOrder.BE).read_u32() == value


@given(st.integers(min_value=-(2**15), max_value=2**15 - 1))
def test_i16_and_u16_agree_modulo(value):
    packed = struct.pack("<h", value)
    assert Raf(packed).read_i16() == value
    assert Raf(packed).read_u16() == value % 0x10000


@given(st.floats(width=32, allow_nan=False))
def test_f32_round_trip(value):
    assert Raf(struct.pack(">f", value), ByteOrder.BE).read_f32() == value


def test_signed_and_unsigned_byte():
    assert Raf(b"\xff").read_i8() == -1
    assert Raf(b"\xff").read_u8() == 255


def test_read_bytes_advances():
    reader = Raf(b"abcdef")
    assert reader.read_bytes(3) == b"abc"
    assert reader.read_bytes(3) == b"def"
    assert reader.pos == 6


def test_read_bytes_past_end():
    reader = Raf(b"abc")
    with pytest.raises(BufferOverflowError):
        reader.read_bytes(4)


def test_primitive_past_end():
    reader = Raf(b"\x00\x01\x02")
    with pytest.raises(BufferOverflowError):
        reader.read_u32()


def test_read_byte_at_end():
    reader = Raf(b"\x01")
    assert reader.read_byte() == 1
    with pytest.raises(StartOutOfRangeError):
        reader.read_byte()


def test_adv_within_and_beyond():
    reader = Raf(b"\x00" * 4)
    reader.adv(4)
    assert reader.pos == 4
    with pytest.raises(StartOutOfRangeError):
        reader.adv(1)


def test_cstr_bytes():
    reader = Raf(b"abc\x00def")
    assert reader.read_cstr_bytes() == b"abc"
    assert reader.pos == 4


def test_cstr_without_terminator():
    with pytest.raises(StartOutOfRangeError):
        Raf(b"abc").read_cstr_bytes()


def test_errors_share_base():
    with pytest.raises(RafError):
        Raf(b"").read_bytes(1)
    with pytest.raises(RafError):
        Raf(b"").read_u8()


def test_from_read():
    reader = Raf.from_read(io.BytesIO(b"\x00\x2a"), ByteOrder.BE)
    assert reader.size == 2
    assert reader.read_u16() == 0x2A


def test_seek_moves_position():
    reader = Raf(b"\x10\x20\x30")
    reader.seek(2)
    assert reader.read_u8() == 0x30