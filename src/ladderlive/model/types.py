"""Semantic types for PLC memory symbols.

Every symbol carries a ``SemanticType`` that fixes how many bytes it
occupies and how those bytes decode.  Bit types occupy one byte and
additionally carry a bit index (see ``ResolvedAddress.bit``).
"""

from __future__ import annotations

from enum import Enum


class SemanticType(str, Enum):
    """Value type of a symbol or resolved address."""

    # Bit / byte family
    BIT = "bit"
    BYTE = "byte"
    U8 = "u8"
    I8 = "i8"

    # 16-bit family
    INT = "int"
    U16 = "u16"
    I16 = "i16"
    WORD = "word"

    # 32-bit family
    DINT = "dint"
    U32 = "u32"
    I32 = "i32"
    DWORD = "dword"
    REAL = "real"
    FLOAT = "float"
    F32 = "f32"

    # 64-bit family
    U64 = "u64"
    I64 = "i64"
    F64 = "f64"
    LWORD = "lword"

    @classmethod
    def parse(cls, value: str | SemanticType) -> SemanticType:
        """Look up a type by name, accepting IEC and legacy spellings."""
        if isinstance(value, SemanticType):
            return value
        key = value.strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown semantic type: {value!r}") from None


_ALIASES: dict[str, str] = {
    "bool": "bit",
    "sint": "i8",
    "usint": "u8",
    "uint": "u16",
    "udint": "u32",
    "lint": "i64",
    "ulint": "u64",
    "lreal": "f64",
}


# ---------------------------------------------------------------------------
# Widths
# ---------------------------------------------------------------------------

TYPE_WIDTHS: dict[SemanticType, int] = {
    SemanticType.BIT: 1,
    SemanticType.BYTE: 1,
    SemanticType.U8: 1,
    SemanticType.I8: 1,
    SemanticType.INT: 2,
    SemanticType.U16: 2,
    SemanticType.I16: 2,
    SemanticType.WORD: 2,
    SemanticType.DINT: 4,
    SemanticType.U32: 4,
    SemanticType.I32: 4,
    SemanticType.DWORD: 4,
    SemanticType.REAL: 4,
    SemanticType.FLOAT: 4,
    SemanticType.F32: 4,
    SemanticType.U64: 8,
    SemanticType.I64: 8,
    SemanticType.F64: 8,
    SemanticType.LWORD: 8,
}

SIGNED_TYPES = frozenset({
    SemanticType.I8,
    SemanticType.INT, SemanticType.I16,
    SemanticType.DINT, SemanticType.I32,
    SemanticType.I64,
})

FLOAT_TYPES = frozenset({
    SemanticType.REAL, SemanticType.FLOAT, SemanticType.F32,
    SemanticType.F64,
})


def type_width(semantic_type: SemanticType) -> int:
    """Return the byte width of *semantic_type*."""
    return TYPE_WIDTHS[semantic_type]
