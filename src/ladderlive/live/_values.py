"""Value system for the live monitor.

Reads and writes typed values against a flat memory image (the
scheduler's cache or any bytes-like buffer).  All multi-byte values are
little-endian, matching the PLC runtime.
"""

from __future__ import annotations

import struct

from ladderlive.model.memory import ResolvedAddress
from ladderlive.model.types import FLOAT_TYPES, SIGNED_TYPES, SemanticType


MemoryImage = bytes | bytearray | memoryview


class MonitorError(Exception):
    """Error while reading or decoding live memory."""


_FLOAT_FORMATS = {4: "<f", 8: "<d"}


def _check_bit(bit: int) -> None:
    if not 0 <= bit <= 7:
        raise MonitorError(f"Bit index out of range: {bit}")


def _window(memory: MemoryImage, address: int, size: int) -> bytes:
    view = memoryview(memory)
    if address < 0 or address + size > len(view):
        raise MonitorError(
            f"Read of {size} byte(s) at {address} outside memory of {len(view)} bytes"
        )
    return bytes(view[address:address + size])


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def decode_value(resolved: ResolvedAddress, data: MemoryImage) -> bool | int | float:
    """Decode the bytes of a single resolved value.

    *data* starts at ``resolved.address`` and holds at least
    ``resolved.size`` bytes.

    - bit types -> bool (bit ``resolved.bit`` of the first byte, or the
      whole byte being non-zero when no bit index is set)
    - real types -> float
    - everything else -> int (signed or unsigned by type)
    """
    raw = bytes(data)
    if len(raw) < resolved.size:
        raise MonitorError(
            f"Expected {resolved.size} byte(s) for {resolved.type.value}, got {len(raw)}"
        )
    raw = raw[:resolved.size]

    if resolved.bit is not None:
        _check_bit(resolved.bit)
        return bool((raw[0] >> resolved.bit) & 1)
    if resolved.type == SemanticType.BIT:
        return raw[0] != 0

    if resolved.type in FLOAT_TYPES:
        fmt = _FLOAT_FORMATS.get(resolved.size)
        if fmt is None:
            raise MonitorError(f"Unsupported float width: {resolved.size}")
        return struct.unpack(fmt, raw)[0]

    return int.from_bytes(raw, "little", signed=resolved.type in SIGNED_TYPES)


def read_value(memory: MemoryImage, resolved: ResolvedAddress) -> bool | int | float:
    """Read the value at *resolved* from a full memory image."""
    return decode_value(resolved, _window(memory, resolved.address, resolved.size))


def read_bool(memory: MemoryImage, resolved: ResolvedAddress) -> bool:
    """Boolean view of a value: the bit for bit types, non-zero otherwise."""
    return bool(read_value(memory, resolved))


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def write_bit(memory: bytearray, resolved: ResolvedAddress, value: bool) -> None:
    """Set or clear a single bit in *memory*, leaving the other bits alone."""
    bit = resolved.bit if resolved.bit is not None else 0
    _check_bit(bit)
    current = _window(memory, resolved.address, 1)[0]
    if value:
        memory[resolved.address] = current | (1 << bit)
    else:
        memory[resolved.address] = current & ~(1 << bit) & 0xFF


def encode_value(resolved: ResolvedAddress, value: bool | int | float) -> bytes:
    """Encode *value* into ``resolved.size`` little-endian bytes."""
    if resolved.type in FLOAT_TYPES:
        fmt = _FLOAT_FORMATS.get(resolved.size)
        if fmt is None:
            raise MonitorError(f"Unsupported float width: {resolved.size}")
        return struct.pack(fmt, float(value))
    signed = resolved.type in SIGNED_TYPES
    try:
        return int(value).to_bytes(resolved.size, "little", signed=signed)
    except OverflowError as exc:
        raise MonitorError(
            f"Value {value!r} does not fit in {resolved.type.value}"
        ) from exc


def write_value(memory: bytearray, resolved: ResolvedAddress, value: bool | int | float) -> None:
    """Write a typed value into *memory* at *resolved*."""
    if resolved.bit is not None:
        write_bit(memory, resolved, bool(value))
        return
    _window(memory, resolved.address, resolved.size)
    memory[resolved.address:resolved.address + resolved.size] = encode_value(resolved, value)
