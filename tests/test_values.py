"""Tests for memory-image reads, writes and typed decoding."""

import struct

import pytest

from ladderlive.live._values import (
    MonitorError,
    decode_value,
    encode_value,
    read_bool,
    read_value,
    write_bit,
    write_value,
)
from ladderlive.model.memory import ResolvedAddress
from ladderlive.model.types import SemanticType


def _addr(address, type, bit=None):
    t = SemanticType(type)
    size = 1 if bit is not None else {"bit": 1, "byte": 1, "i8": 1, "int": 2, "u16": 2,
                                       "dint": 4, "u32": 4, "real": 4, "f64": 8,
                                       "i64": 8}[type]
    return ResolvedAddress(address=address, size=size, bit=bit, type=t)


# ---------------------------------------------------------------------------
# decode_value
# ---------------------------------------------------------------------------

class TestDecodeValue:
    def test_bit_index(self):
        assert decode_value(_addr(0, "bit", bit=3), b"\x08") is True
        assert decode_value(_addr(0, "bit", bit=2), b"\x08") is False

    def test_bit_without_index(self):
        assert decode_value(_addr(0, "bit"), b"\x02") is True
        assert decode_value(_addr(0, "bit"), b"\x00") is False

    def test_byte(self):
        assert decode_value(_addr(0, "byte"), b"\xff") == 255

    def test_signed_byte(self):
        assert decode_value(_addr(0, "i8"), b"\xff") == -1

    def test_int_is_signed_little_endian(self):
        assert decode_value(_addr(0, "int"), b"\xfe\xff") == -2
        assert decode_value(_addr(0, "int"), b"\x34\x12") == 0x1234

    def test_u16_unsigned(self):
        assert decode_value(_addr(0, "u16"), b"\xff\xff") == 65535

    def test_dint(self):
        assert decode_value(_addr(0, "dint"), (-100000).to_bytes(4, "little", signed=True)) == -100000

    def test_real(self):
        assert decode_value(_addr(0, "real"), struct.pack("<f", 1.5)) == pytest.approx(1.5)

    def test_f64(self):
        assert decode_value(_addr(0, "f64"), struct.pack("<d", -2.25)) == pytest.approx(-2.25)

    def test_extra_bytes_ignored(self):
        assert decode_value(_addr(0, "byte"), b"\x05\x06") == 5

    def test_short_data_raises(self):
        with pytest.raises(MonitorError, match="Expected 4 byte"):
            decode_value(_addr(0, "dint"), b"\x00\x00")

    def test_bit_index_out_of_range(self):
        with pytest.raises(MonitorError, match="Bit index"):
            decode_value(_addr(0, "bit", bit=9), b"\xff")


# ---------------------------------------------------------------------------
# read_value / read_bool
# ---------------------------------------------------------------------------

class TestRead:
    def test_read_from_image(self):
        memory = bytearray(16)
        memory[4:6] = (300).to_bytes(2, "little")
        assert read_value(memory, _addr(4, "int")) == 300

    def test_read_from_memoryview(self):
        memory = bytearray(8)
        memory[2] = 0b100
        assert read_bool(memoryview(memory).toreadonly(), _addr(2, "bit", bit=2)) is True

    def test_read_bool_of_number(self):
        memory = bytearray(4)
        assert read_bool(memory, _addr(0, "int")) is False
        memory[1] = 1
        assert read_bool(memory, _addr(0, "int")) is True

    def test_out_of_range(self):
        with pytest.raises(MonitorError, match="outside memory"):
            read_value(bytearray(4), _addr(3, "int"))


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

class TestWrite:
    def test_set_and_clear_bit(self):
        memory = bytearray(b"\x81")
        write_bit(memory, _addr(0, "bit", bit=3), True)
        assert memory[0] == 0x89
        write_bit(memory, _addr(0, "bit", bit=7), False)
        assert memory[0] == 0x09

    def test_write_value_int(self):
        memory = bytearray(4)
        write_value(memory, _addr(1, "int"), -2)
        assert bytes(memory) == b"\x00\xfe\xff\x00"

    def test_write_value_bit(self):
        memory = bytearray(1)
        write_value(memory, _addr(0, "bit", bit=1), 1)
        assert memory[0] == 0b10

    def test_write_value_real(self):
        memory = bytearray(4)
        write_value(memory, _addr(0, "real"), 0.5)
        assert read_value(memory, _addr(0, "real")) == pytest.approx(0.5)

    def test_encode_overflow(self):
        with pytest.raises(MonitorError, match="does not fit"):
            encode_value(_addr(0, "byte"), 256)

    def test_write_out_of_range(self):
        with pytest.raises(MonitorError):
            write_value(bytearray(2), _addr(1, "dint"), 1)
