"""Top-level Project descriptor consumed by the live monitor."""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from .ladder import LadderNetwork
from .memory import MemoryRegion, RegionName, normalize_offsets
from .symbols import Symbol


class Project(BaseModel):
    """Memory layout, symbol table and ladder networks of one PLC project.

    Read-only to the monitor; authored and persisted elsewhere.
    """

    name: str = ""
    offsets: dict[RegionName, MemoryRegion] = Field(default={}, validate_default=True)
    symbols: list[Symbol] = []
    networks: list[LadderNetwork] = []

    @field_validator("offsets", mode="before")
    @classmethod
    def _normalize_offsets(cls, value):
        return normalize_offsets(value)

    @model_validator(mode="after")
    def _check_layout(self) -> Self:
        regions = list(self.offsets.items())
        for i, (name_a, region_a) in enumerate(regions):
            for name_b, region_b in regions[i + 1:]:
                if region_a.overlaps(region_b):
                    raise ValueError(
                        f"memory regions '{name_a.value}' "
                        f"[{region_a.offset}, {region_a.end}) and '{name_b.value}' "
                        f"[{region_b.offset}, {region_b.end}) overlap"
                    )
        return self

    @model_validator(mode="after")
    def _unique_symbol_names(self) -> Self:
        seen: set[str] = set()
        for sym in self.symbols:
            if sym.name in seen:
                raise ValueError(f"duplicate symbol name '{sym.name}'")
            seen.add(sym.name)
        return self

    def find_symbol(self, name: str) -> Symbol | None:
        for sym in self.symbols:
            if sym.name == name:
                return sym
        return None

    def region(self, name: RegionName) -> MemoryRegion:
        return self.offsets[name]
