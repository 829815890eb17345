"""Watch list: live, decoded values for a set of symbols or addresses."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from ladderlive.model.memory import ResolvedAddress

from ._resolver import AddressResolver
from ._scheduler import LiveMemoryScheduler
from ._values import MonitorError, decode_value

logger = logging.getLogger(__name__)

WATCH_REQUESTER = "watch"


@dataclass(eq=False)
class WatchEntry:
    name: str
    resolved: ResolvedAddress | None = None
    value: bool | int | float | None = None
    update: Callable[[bytes], None] | None = None


class WatchList:
    """Tracks decoded values of named symbols or direct addresses.

    Each resolvable entry is registered with the scheduler under the
    ``"watch"`` requester; unresolvable names stay in the list with
    value ``None``.
    """

    def __init__(self, resolver: AddressResolver, scheduler: LiveMemoryScheduler) -> None:
        self.resolver = resolver
        self.scheduler = scheduler
        self._entries: dict[str, WatchEntry] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def values(self) -> dict[str, bool | int | float | None]:
        return {name: entry.value for name, entry in self._entries.items()}

    def entry(self, name: str) -> WatchEntry:
        return self._entries[name]

    def add(self, name: str) -> WatchEntry:
        if name in self._entries:
            return self._entries[name]
        entry = WatchEntry(name=name)
        self._entries[name] = entry
        self._start(entry)
        return entry

    def remove(self, name: str) -> None:
        entry = self._entries.pop(name, None)
        if entry is not None:
            self._stop(entry)

    def clear(self) -> None:
        for name in list(self._entries):
            self.remove(name)

    def refresh(self) -> None:
        """Re-resolve every entry, e.g. after symbols or offsets changed."""
        for entry in self._entries.values():
            self._stop(entry)
            self._start(entry)

    # -----------------------------------------------------------------------

    def _start(self, entry: WatchEntry) -> None:
        resolved = self.resolver.resolve(entry.name)
        entry.resolved = resolved
        entry.value = None
        if resolved is None:
            return

        def update(data: bytes) -> None:
            try:
                entry.value = decode_value(resolved, data)
            except MonitorError as exc:
                logger.debug("Watch %r: %s", entry.name, exc)
                entry.value = None

        entry.update = update
        self.scheduler.register(WATCH_REQUESTER, resolved.address, resolved.size, update)

    def _stop(self, entry: WatchEntry) -> None:
        if entry.resolved is None or entry.update is None:
            return
        self.scheduler.unregister(
            WATCH_REQUESTER, entry.resolved.address, entry.resolved.size, entry.update,
        )
        entry.update = None
