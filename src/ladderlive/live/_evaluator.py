"""Power-flow evaluation of ladder networks.

Each call to ``LadderEvaluator.evaluate`` is a full recompute: block and
connection state is reset, then power is propagated depth-first from
the rail contacts (contacts in column ``x == 0``).  The ``evaluated``
flag is the visited guard, so cyclic wiring terminates with every block
visited at most once per pass.

This is a display evaluator.  Edge triggers and coil latching belong to
the compiled program running on the device; here blocks only reflect
the currently known memory value.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ladderlive.model.ladder import (
    BlockState,
    Connection,
    ConnectionState,
    LadderBlock,
    LadderNetwork,
    TriggerType,
)
from ladderlive.model.memory import ResolvedAddress

from ._resolver import AddressResolver
from ._values import MemoryImage, MonitorError, read_bool

logger = logging.getLogger(__name__)


class LadderEvaluator:
    """Computes energization state of ladder networks.

    Parameters
    ----------
    resolver : AddressResolver
        Resolves each block's symbol reference.
    memory : bytes-like or callable
        The memory image to read block values from, or a zero-argument
        callable returning it (e.g. the scheduler's cache view).
    is_monitoring_active : callable, optional
        When given and returning ``False``, ``evaluate`` leaves the
        network untouched.
    """

    def __init__(
        self,
        resolver: AddressResolver,
        memory: MemoryImage | Callable[[], MemoryImage],
        is_monitoring_active: Callable[[], bool] | None = None,
    ) -> None:
        self.resolver = resolver
        self._memory = memory
        self._is_monitoring_active = is_monitoring_active

    @property
    def memory(self) -> MemoryImage:
        if callable(self._memory):
            return self._memory()
        return self._memory

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def evaluate(self, network: LadderNetwork) -> None:
        """Recompute ``state`` on every block and connection of *network*."""
        if self._is_monitoring_active is not None and not self._is_monitoring_active():
            return

        memory = self.memory
        blocks = {blk.id: blk for blk in network.blocks}

        # Outgoing wires per block; wires to unknown blocks are ignored
        outgoing: dict[str, list[Connection]] = {}
        for conn in network.connections:
            conn.state = ConnectionState()
            if conn.target in blocks and conn.source in blocks:
                outgoing.setdefault(conn.source, []).append(conn)

        # -- 1. Reset pass --
        for blk in network.blocks:
            self._reset_block(blk, memory)

        # -- 2. Boundary marking --
        rail = [blk for blk in network.blocks if blk.is_contact and blk.x == 0]
        for blk in rail:
            blk.state.terminated_input = True
        for blk in network.blocks:
            if not outgoing.get(blk.id):
                blk.state.terminated_output = True

        # -- 3. Propagation --
        def propagate(blk: LadderBlock, first: bool) -> None:
            state = blk.state
            if state is None or state.evaluated:
                return

            if blk.is_coil:
                if first:
                    return
                state.powered = True
                fires = True
            else:
                state.powered = True
                fires = state.active and blk.trigger == TriggerType.NORMAL

            if not fires:
                return
            state.evaluated = True
            for conn in outgoing.get(blk.id, ()):
                conn.state.powered = True
                conn.state.evaluated = True
                propagate(blocks[conn.target], False)

        for blk in rail:
            propagate(blk, True)

    def invalidate(self, network: LadderNetwork) -> None:
        """Drop cached symbol resolutions of every block in *network*.

        Call after a symbol, address or topology change.
        """
        for blk in network.blocks:
            if blk.state is not None:
                blk.state.resolved = None

    def block_value(self, block: LadderBlock) -> bool:
        """Current raw (non-inverted) value of the block's symbol."""
        resolved = self._resolve_block(block)
        if resolved is None:
            return False
        return self._read(resolved, self.memory, block)

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    def _resolve_block(self, block: LadderBlock) -> ResolvedAddress | None:
        if block.state is None:
            block.state = BlockState()
        if block.state.resolved is None and block.symbol:
            block.state.resolved = self.resolver.resolve(block.symbol)
        return block.state.resolved

    def _read(self, resolved: ResolvedAddress, memory: MemoryImage, block: LadderBlock) -> bool:
        try:
            return read_bool(memory, resolved)
        except MonitorError as exc:
            logger.debug("Block %s: cannot read %r: %s", block.id, block.symbol, exc)
            return False

    def _reset_block(self, block: LadderBlock, memory: MemoryImage) -> None:
        resolved = self._resolve_block(block)
        if resolved is None:
            active = False
        else:
            active = self._read(resolved, memory, block) != block.inverted

        state = block.state
        state.active = active
        state.powered = block.is_contact and block.x == 0
        state.evaluated = False
        state.terminated_input = False
        state.terminated_output = False
