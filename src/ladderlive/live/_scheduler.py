"""Live memory scheduler: clustered, rate-limited polling of device memory.

Consumers register interest in address ranges.  Every tick the scheduler
sorts the registered ranges, clusters neighbours into batches, serves at
most ``max_batches_per_tick`` of them (rotating through the rest on later
ticks), writes the results into a local cache and fans each range's
slice out to its callbacks.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from ._config import MonitorConfig
from ._device import DeviceMemoryPort

logger = logging.getLogger(__name__)

Callback = Callable[[bytes], None]
RegistrationKey = tuple[str, int, int]


@dataclass(eq=False)
class Registration:
    """Interest in ``[start, start + size)``, shared by every callback
    registered under the same ``(requester_id, start, size)`` key."""

    key: RegistrationKey
    start: int
    size: int
    callbacks: set[Callback] = field(default_factory=set)

    @property
    def end(self) -> int:
        return self.start + self.size


@dataclass(eq=False)
class Batch:
    """A contiguous byte range fetched with one device read."""

    start: int
    end: int
    items: list[Registration] = field(default_factory=list)

    @property
    def size(self) -> int:
        return self.end - self.start


# ---------------------------------------------------------------------------
# Batching
# ---------------------------------------------------------------------------

def cluster_ranges(
    ranges: Iterable[Registration],
    gap_threshold: int = 64,
    max_batch_size: int = 512,
) -> list[Batch]:
    """Greedily merge ranges sorted by start address into batches.

    A range joins the current batch when the gap after the batch is
    below *gap_threshold* and the merged span stays within
    *max_batch_size*; otherwise it opens a new batch.
    """
    batches: list[Batch] = []
    current: Batch | None = None

    for reg in sorted(ranges, key=lambda r: r.start):
        if current is not None:
            gap = reg.start - current.end
            span = reg.end - current.start
            if gap < gap_threshold and span <= max_batch_size:
                current.end = max(current.end, reg.end)
                current.items.append(reg)
                continue
        current = Batch(start=reg.start, end=reg.end, items=[reg])
        batches.append(current)

    return batches


def select_batches(
    batches: list[Batch],
    cursor: int,
    limit: int,
) -> tuple[list[Batch], int]:
    """Pick the batches to serve this tick.

    Returns ``(selected, next_cursor)``.  When there are more batches than
    *limit*, a wrapping window of *limit* batches starting at *cursor* is
    chosen so every batch is served round-robin across ticks.
    """
    count = len(batches)
    if count <= limit:
        return list(batches), 0
    start = cursor % count
    selected = [batches[(start + i) % count] for i in range(limit)]
    return selected, (start + limit) % count


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

class LiveMemoryScheduler:
    """Keeps a local cache of device memory fresh for registered ranges.

    Parameters
    ----------
    port : DeviceMemoryPort
        Source of device memory.
    config : MonitorConfig, optional
        Polling and batching limits (defaults when omitted).
    is_monitoring_active : callable, optional
        Polling runs only while this returns ``True``.  ``None`` means
        always active.
    is_connected : callable, optional
        Polling is suppressed while this returns ``False``.  ``None``
        means always connected.
    """

    def __init__(
        self,
        port: DeviceMemoryPort,
        config: MonitorConfig | None = None,
        *,
        is_monitoring_active: Callable[[], bool] | None = None,
        is_connected: Callable[[], bool] | None = None,
    ) -> None:
        self.port = port
        self.config = config or MonitorConfig()
        self._is_monitoring_active = is_monitoring_active
        self._is_connected = is_connected
        self._cache = bytearray(self.config.cache_size)
        self._registry: dict[RegistrationKey, Registration] = {}
        self._batch_index = 0
        self._task: asyncio.Task | None = None
        self._ticking: set[asyncio.Task] = set()
        self._tick_listeners: list[Callable[[], None]] = []

    # -----------------------------------------------------------------------
    # Predicates and views
    # -----------------------------------------------------------------------

    def monitoring_active(self) -> bool:
        return self._is_monitoring_active is None or bool(self._is_monitoring_active())

    def connected(self) -> bool:
        return self._is_connected is None or bool(self._is_connected())

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def batch_index(self) -> int:
        """Round-robin cursor into the current batch list."""
        return self._batch_index

    @property
    def registrations(self) -> list[Registration]:
        return list(self._registry.values())

    @property
    def cache(self) -> memoryview:
        """Read-only view of the last known device memory."""
        return memoryview(self._cache).toreadonly()

    def read_cache(self, address: int, size: int) -> bytes:
        return bytes(self._cache[address:address + size])

    # -----------------------------------------------------------------------
    # Registration
    # -----------------------------------------------------------------------

    def register(self, requester_id: str, start: int, size: int, callback: Callback) -> None:
        """Add *callback* for ``[start, start + size)`` under *requester_id*."""
        if size <= 0 or start < 0:
            logger.debug(
                "Ignoring registration %s: start=%d size=%d", requester_id, start, size,
            )
            return

        key = (requester_id, start, size)
        reg = self._registry.get(key)
        if reg is None:
            reg = Registration(key=key, start=start, size=size)
            self._registry[key] = reg
        reg.callbacks.add(callback)

        if not self.running and self.monitoring_active():
            self.start()

    def unregister(self, requester_id: str, start: int, size: int, callback: Callback) -> None:
        key = (requester_id, start, size)
        reg = self._registry.get(key)
        if reg is not None:
            reg.callbacks.discard(callback)
            if not reg.callbacks:
                del self._registry[key]
        if not self._registry:
            self.stop()

    def unregister_all(self, requester_id: str) -> None:
        for key in [k for k in self._registry if k[0] == requester_id]:
            del self._registry[key]
        if not self._registry:
            self.stop()

    def add_tick_listener(self, listener: Callable[[], None]) -> None:
        """Call *listener* once after every tick's fan-out and after ``reset()``."""
        if listener not in self._tick_listeners:
            self._tick_listeners.append(listener)

    def remove_tick_listener(self, listener: Callable[[], None]) -> None:
        if listener in self._tick_listeners:
            self._tick_listeners.remove(listener)

    def reset(self) -> None:
        """Zero the cache and push a zero buffer to every callback.

        Used after a program download or layout change, when cached
        values may belong to addresses that no longer mean the same thing.
        """
        self._cache[:] = bytes(len(self._cache))
        self._batch_index = 0
        for reg in list(self._registry.values()):
            empty = bytes(reg.size)
            for callback in list(reg.callbacks):
                self._notify(callback, empty, reg)
        self._finish_tick()

    # -----------------------------------------------------------------------
    # Polling loop
    # -----------------------------------------------------------------------

    def start(self) -> None:
        """Start the repeating poll task on the running event loop."""
        if self.running:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; polling not started")
            return
        self._task = loop.create_task(self._run())

    def stop(self) -> None:
        """Stop polling.  A tick already in flight runs to completion."""
        task = self._task
        self._task = None
        if task is not None and not task.done() and task not in self._ticking:
            task.cancel()

    async def _run(self) -> None:
        me = asyncio.current_task()
        while self._task is me:
            await asyncio.sleep(self.config.interval)
            if self._task is not me:
                break
            if not self.connected() or not self.monitoring_active():
                logger.debug("Monitoring or connection lost; polling stopped")
                self._task = None
                break
            self._ticking.add(me)
            try:
                await self.tick()
            except Exception:
                logger.exception("Polling error")
            finally:
                self._ticking.discard(me)

    async def tick(self) -> None:
        """Run one scheduling round."""
        if not self.connected() or not self.monitoring_active():
            return
        if not self._registry:
            return

        batches = cluster_ranges(
            self._registry.values(),
            self.config.gap_threshold,
            self.config.max_batch_size,
        )
        selected, self._batch_index = select_batches(
            batches, self._batch_index, self.config.max_batches_per_tick,
        )
        await asyncio.gather(*(self._fetch(batch) for batch in selected))
        self._finish_tick()

    async def _fetch(self, batch: Batch) -> None:
        if batch.size <= 0:
            return
        try:
            data = bytes(await self.port.read_memory(batch.start, batch.size))
        except Exception as exc:
            logger.warning(
                "Read of %d byte(s) at %d failed: %s", batch.size, batch.start, exc,
            )
            return

        self._store(batch.start, data)

        for reg in batch.items:
            offset = reg.start - batch.start
            if offset + reg.size > len(data):
                continue
            chunk = data[offset:offset + reg.size]
            for callback in list(reg.callbacks):
                self._notify(callback, chunk, reg)

    def _store(self, start: int, data: bytes) -> None:
        if start >= len(self._cache):
            return
        count = min(len(data), len(self._cache) - start)
        self._cache[start:start + count] = data[:count]

    def _notify(self, callback: Callback, data: bytes, reg: Registration) -> None:
        try:
            callback(data)
        except Exception:
            logger.exception(
                "Callback for %s [%d, %d) failed", reg.key[0], reg.start, reg.end,
            )

    def _finish_tick(self) -> None:
        for listener in list(self._tick_listeners):
            try:
                listener()
            except Exception:
                logger.exception("Tick listener failed")
