"""Memory layout of the target device.

The flat device memory is partitioned into named regions.  Symbols and
direct addresses are interpreted relative to a region's ``offset``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .types import SemanticType


class RegionName(str, Enum):
    SYSTEM = "system"
    INPUT = "input"
    OUTPUT = "output"
    MARKER = "marker"
    TIMER = "timer"
    COUNTER = "counter"

    @classmethod
    def parse(cls, value: str | RegionName) -> RegionName:
        """Look up a region by name, migrating legacy names."""
        if isinstance(value, RegionName):
            return value
        key = value.strip().lower()
        key = _LEGACY_REGIONS.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown memory region: {value!r}") from None


_LEGACY_REGIONS: dict[str, str] = {
    "control": "system",
    "memory": "marker",
}

# Bytes per addressable unit.  Timers and counters are structs.
UNIT_SIZES: dict[RegionName, int] = {
    RegionName.TIMER: 9,
    RegionName.COUNTER: 5,
}


def unit_size(region: RegionName) -> int:
    return UNIT_SIZES.get(region, 1)


class MemoryRegion(BaseModel):
    """A contiguous region of device memory."""

    offset: int = Field(default=0, ge=0)
    size: int = Field(default=0, ge=0)

    @property
    def end(self) -> int:
        return self.offset + self.size

    def overlaps(self, other: MemoryRegion) -> bool:
        if self.size == 0 or other.size == 0:
            return False
        return self.offset < other.end and other.offset < self.end


# Default layout of the PLC runtime.  Timer and counter areas are sized
# by the compiler based on usage.
DEFAULT_OFFSETS: dict[RegionName, MemoryRegion] = {
    RegionName.SYSTEM: MemoryRegion(offset=0, size=64),
    RegionName.INPUT: MemoryRegion(offset=64, size=64),
    RegionName.OUTPUT: MemoryRegion(offset=128, size=64),
    RegionName.MARKER: MemoryRegion(offset=192, size=256),
    RegionName.TIMER: MemoryRegion(offset=448, size=0),
    RegionName.COUNTER: MemoryRegion(offset=448, size=0),
}


def normalize_offsets(raw: dict[str, Any] | None) -> dict[RegionName, MemoryRegion]:
    """Build a complete region table from a (possibly partial) mapping.

    - ``control`` migrates to ``system`` and ``memory`` to ``marker``
      unless the canonical key is also present.
    - Regions that are missing fall back to ``DEFAULT_OFFSETS``.
    """
    result: dict[RegionName, MemoryRegion] = {}
    legacy: dict[RegionName, Any] = {}

    for key, value in (raw or {}).items():
        region = RegionName.parse(key)
        if isinstance(value, dict):
            value = MemoryRegion(**value)
        if isinstance(key, str) and key.strip().lower() in _LEGACY_REGIONS:
            legacy[region] = value
        else:
            result[region] = value

    for region, value in legacy.items():
        result.setdefault(region, value)

    for region, default in DEFAULT_OFFSETS.items():
        if region not in result:
            result[region] = default.model_copy()

    return result


class ResolvedAddress(BaseModel):
    """Absolute location of a value in device memory.

    ``bit`` is set only for bit-typed results; ``size`` is then always 1.
    Never persisted, recomputed on demand.
    """

    model_config = ConfigDict(frozen=True)

    address: int
    size: int
    bit: int | None = None
    type: SemanticType

    @property
    def end(self) -> int:
        return self.address + self.size
