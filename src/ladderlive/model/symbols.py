"""Project symbols: named, typed references into a memory region."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

from .memory import RegionName
from .types import SemanticType


class Symbol(BaseModel):
    """A named location within a memory region.

    ``address`` uses the byte.bit convention for bit symbols: ``10.5``
    means byte 10, bit 5 (the fractional digit is the bit index, not a
    decimal fraction).
    """

    name: str
    location: RegionName
    type: SemanticType = SemanticType.BYTE
    address: float = 0
    initial_value: float = 0
    comment: str = ""

    @field_validator("location", mode="before")
    @classmethod
    def _parse_location(cls, value):
        if isinstance(value, str):
            return RegionName.parse(value)
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value):
        if isinstance(value, str):
            return SemanticType.parse(value)
        return value

    @field_validator("address")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError(f"address must be >= 0, got {value}")
        return value
