"""Device memory port: the scheduler's only data-plane dependency.

The real transports (serial, TCP, REST) live outside this package and
only need to provide ``read_memory``.  ``SimulatedDevice`` is an
in-process stand-in backed by a ``bytearray``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ._values import MonitorError


@runtime_checkable
class DeviceMemoryPort(Protocol):
    """Anything that can read a range of device memory."""

    async def read_memory(self, address: int, size: int) -> bytes: ...


class SimulatedDevice:
    """An in-memory device for offline monitoring and tests.

    Parameters
    ----------
    size : int
        Size of the simulated memory (default 64 KiB).
    """

    def __init__(self, size: int = 65536) -> None:
        self.memory = bytearray(size)
        self.reads: list[tuple[int, int]] = []
        self.fail_reads: set[int] = set()

    async def read_memory(self, address: int, size: int) -> bytes:
        self.reads.append((address, size))
        if address in self.fail_reads:
            raise MonitorError(f"Simulated read failure at {address}")
        self._check(address, size)
        return bytes(self.memory[address:address + size])

    async def write_memory(self, address: int, data: bytes) -> None:
        self._check(address, len(data))
        self.memory[address:address + len(data)] = data

    async def format_memory(self, address: int, size: int, value: int = 0) -> None:
        await self.write_memory(address, bytes([value & 0xFF]) * size)

    def _check(self, address: int, size: int) -> None:
        if address < 0 or size < 0 or address + size > len(self.memory):
            raise MonitorError(
                f"Access of {size} byte(s) at {address} outside device memory"
            )
