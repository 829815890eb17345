"""Ladder diagram networks: blocks, connections and their live state.

A ``LadderNetwork`` is one rung set evaluated together.  Blocks and
connections carry a transient ``state`` that the evaluator recomputes on
every pass; it is excluded from serialisation.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .memory import ResolvedAddress


class BlockKind(str, Enum):
    CONTACT = "contact"
    COIL = "coil"
    COIL_SET = "coil_set"
    COIL_RSET = "coil_rset"

    @property
    def is_coil(self) -> bool:
        return self in COIL_KINDS


COIL_KINDS = frozenset({BlockKind.COIL, BlockKind.COIL_SET, BlockKind.COIL_RSET})


class TriggerType(str, Enum):
    NORMAL = "normal"
    RISING = "rising"
    FALLING = "falling"
    CHANGE = "change"


# ---------------------------------------------------------------------------
# Transient state
# ---------------------------------------------------------------------------

class BlockState(BaseModel):
    active: bool = False
    powered: bool = False
    evaluated: bool = False
    terminated_input: bool = False
    terminated_output: bool = False
    resolved: ResolvedAddress | None = None


class ConnectionState(BaseModel):
    powered: bool = False
    evaluated: bool = False


# ---------------------------------------------------------------------------
# Blocks and connections
# ---------------------------------------------------------------------------

class LadderBlock(BaseModel):
    """A contact or coil placed on the ladder grid."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    x: int = 0
    y: int = 0
    kind: BlockKind = Field(default=BlockKind.CONTACT, alias="type")
    inverted: bool = False
    trigger: TriggerType = TriggerType.NORMAL
    symbol: str = ""
    state: BlockState | None = Field(default=None, exclude=True)

    @property
    def is_coil(self) -> bool:
        return self.kind.is_coil

    @property
    def is_contact(self) -> bool:
        return self.kind == BlockKind.CONTACT


def _endpoint_id(value: Any) -> Any:
    """Accept both ``"id"`` and ``{"id": "id", "offset": ...}`` endpoints."""
    if isinstance(value, dict):
        return value.get("id")
    return value


class Connection(BaseModel):
    """A directed wire from one block's output to another block's input."""

    model_config = ConfigDict(populate_by_name=True)

    source: str = Field(alias="from")
    target: str = Field(alias="to")
    state: ConnectionState | None = Field(default=None, exclude=True)

    @field_validator("source", "target", mode="before")
    @classmethod
    def _unwrap_endpoint(cls, value):
        return _endpoint_id(value)


class LadderNetwork(BaseModel):
    name: str = ""
    comment: str = ""
    blocks: list[LadderBlock] = []
    connections: list[Connection] = []

    @model_validator(mode="before")
    @classmethod
    def _expand_grouped_connections(cls, data):
        """Expand ``{sources: [...], destinations: [...]}`` connections.

        Each grouped entry becomes one connection per (source, destination)
        pair.
        """
        if not isinstance(data, dict):
            return data
        raw = data.get("connections")
        if not raw:
            return data
        expanded: list[Any] = []
        for conn in raw:
            if isinstance(conn, dict) and ("sources" in conn or "destinations" in conn):
                for src in conn.get("sources") or []:
                    for dst in conn.get("destinations") or []:
                        expanded.append({"from": _endpoint_id(src), "to": _endpoint_id(dst)})
            else:
                expanded.append(conn)
        return {**data, "connections": expanded}

    def block(self, block_id: str) -> LadderBlock | None:
        for blk in self.blocks:
            if blk.id == block_id:
                return blk
        return None
