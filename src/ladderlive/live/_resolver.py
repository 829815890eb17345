"""Address resolution: symbol names and direct addresses to memory locations.

Resolution order for a string input:

1. exact symbol name in the project's symbol table
2. letter-prefixed direct address (``M10``, ``X0.3``, ``T3``)
3. bare absolute address (``100``, ``100.2``)

Fractional parts follow the byte.bit convention: the digit after the
dot is the bit index (``M10.5`` is bit 5 of marker byte 10), not a
decimal fraction.
"""

from __future__ import annotations

import logging
import math
import re

from ladderlive.model.memory import RegionName, ResolvedAddress, unit_size
from ladderlive.model.project import Project
from ladderlive.model.symbols import Symbol
from ladderlive.model.types import SemanticType, type_width

logger = logging.getLogger(__name__)


_LETTER_RE = re.compile(r"^([KCTXYSM])([0-9]+(?:\.[0-9]+)?)$", re.IGNORECASE)
_NUMBER_RE = re.compile(r"^([0-9]+(?:\.[0-9]+)?)$")

LETTER_REGIONS: dict[str, RegionName] = {
    "K": RegionName.SYSTEM,
    "S": RegionName.SYSTEM,
    "C": RegionName.COUNTER,
    "T": RegionName.TIMER,
    "X": RegionName.INPUT,
    "Y": RegionName.OUTPUT,
    "M": RegionName.MARKER,
}


def split_byte_bit(value: float) -> tuple[int, int]:
    """Split a byte.bit number: ``10.5`` -> ``(10, 5)``."""
    byte = math.floor(value)
    bit = math.floor((value - byte) * 10 + 0.5)
    return byte, bit


class AddressResolver:
    """Resolves symbols and address strings against a project.

    Parameters
    ----------
    project : Project
        Memory layout and symbol table.  Read on every call, so edits to
        the project are picked up without rebuilding the resolver.
    """

    def __init__(self, project: Project) -> None:
        self.project = project

    def resolve(self, target: str | Symbol) -> ResolvedAddress | None:
        """Resolve *target* to an absolute address, or ``None`` if unknown."""
        if isinstance(target, Symbol):
            return self.resolve_symbol(target)

        if not isinstance(target, str):
            return None

        symbol = self.project.find_symbol(target)
        if symbol is not None:
            return self.resolve_symbol(symbol)

        text = target.strip()
        resolved = self._resolve_letter(text)
        if resolved is None:
            resolved = self._resolve_number(text)
        if resolved is None:
            logger.debug("Unresolved address %r", target)
        return resolved

    def resolve_symbol(self, symbol: Symbol) -> ResolvedAddress:
        base = self._base(symbol.location)
        if symbol.type == SemanticType.BIT:
            byte, bit = split_byte_bit(symbol.address)
            return ResolvedAddress(address=base + byte, size=1, bit=bit, type=SemanticType.BIT)
        return ResolvedAddress(
            address=base + math.floor(symbol.address),
            size=type_width(symbol.type),
            bit=None,
            type=symbol.type,
        )

    # -----------------------------------------------------------------------
    # Direct addresses
    # -----------------------------------------------------------------------

    def _base(self, region: RegionName) -> int:
        mem = self.project.offsets.get(region)
        return mem.offset if mem is not None else 0

    def _resolve_letter(self, text: str) -> ResolvedAddress | None:
        m = _LETTER_RE.match(text)
        if m is None:
            return None
        region = LETTER_REGIONS[m.group(1).upper()]
        number = m.group(2)
        base = self._base(region)
        unit = unit_size(region)

        if "." in number:
            byte, bit = split_byte_bit(float(number))
            return ResolvedAddress(
                address=base + byte * unit, size=1, bit=bit, type=SemanticType.BIT,
            )
        return ResolvedAddress(
            address=base + int(number) * unit, size=unit, bit=None, type=SemanticType.BYTE,
        )

    def _resolve_number(self, text: str) -> ResolvedAddress | None:
        m = _NUMBER_RE.match(text)
        if m is None:
            return None
        number = m.group(1)
        if "." in number:
            byte, bit = split_byte_bit(float(number))
            return ResolvedAddress(address=byte, size=1, bit=bit, type=SemanticType.BIT)
        return ResolvedAddress(address=int(number), size=1, bit=None, type=SemanticType.BYTE)
