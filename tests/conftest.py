"""Shared test helpers for the ladderlive test suite."""

import asyncio

from ladderlive.model.ladder import BlockKind, Connection, LadderBlock, LadderNetwork
from ladderlive.model.project import Project
from ladderlive.model.symbols import Symbol


def make_project(symbols=(), offsets=None, networks=()):
    """Build a Project with the default memory layout unless *offsets* is given."""
    return Project(
        name="test",
        offsets=offsets or {},
        symbols=list(symbols),
        networks=list(networks),
    )


def sym(name, location, address, type="bit"):
    return Symbol(name=name, location=location, type=type, address=address)


def contact(block_id, x, symbol, **kwargs):
    return LadderBlock(id=block_id, x=x, kind=BlockKind.CONTACT, symbol=symbol, **kwargs)


def coil(block_id, x, symbol, kind=BlockKind.COIL, **kwargs):
    return LadderBlock(id=block_id, x=x, kind=kind, symbol=symbol, **kwargs)


def wire(source, target):
    return Connection(source=source, target=target)


def network(blocks, connections, name="main"):
    return LadderNetwork(name=name, blocks=list(blocks), connections=list(connections))


def run(coro):
    """Drive a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


class Recorder:
    """Callback that records every buffer it receives."""

    def __init__(self):
        self.calls = []

    def __call__(self, data):
        self.calls.append(bytes(data))

    @property
    def last(self):
        return self.calls[-1] if self.calls else None
