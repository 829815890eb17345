"""Live session: the user-facing object tying resolver, scheduler and
evaluator to one project and one device."""

from __future__ import annotations

from collections.abc import Callable

from ladderlive.model.ladder import LadderNetwork
from ladderlive.model.memory import ResolvedAddress
from ladderlive.model.project import Project
from ladderlive.model.symbols import Symbol

from ._config import MonitorConfig
from ._device import DeviceMemoryPort
from ._evaluator import LadderEvaluator
from ._resolver import AddressResolver
from ._scheduler import LiveMemoryScheduler
from ._watch import WatchList


def network_requester(network: LadderNetwork) -> str:
    return f"network:{network.name or id(network)}"


class LiveSession:
    """Online monitor for one project.

    Parameters
    ----------
    project : Project
        Memory layout, symbols and ladder networks.
    port : DeviceMemoryPort
        Device to poll.
    config : MonitorConfig, optional
        Scheduler settings.
    is_monitoring_active, is_connected : callable, optional
        Predicates gating polling and evaluation.
    """

    def __init__(
        self,
        project: Project,
        port: DeviceMemoryPort,
        config: MonitorConfig | None = None,
        *,
        is_monitoring_active: Callable[[], bool] | None = None,
        is_connected: Callable[[], bool] | None = None,
    ) -> None:
        self.project = project
        self.resolver = AddressResolver(project)
        self.scheduler = LiveMemoryScheduler(
            port,
            config,
            is_monitoring_active=is_monitoring_active,
            is_connected=is_connected,
        )
        self.evaluator = LadderEvaluator(
            self.resolver,
            lambda: self.scheduler.cache,
            is_monitoring_active=is_monitoring_active,
        )
        self._attached: dict[str, LadderNetwork] = {}
        self._callbacks: dict[str, Callable[[bytes], None]] = {}
        self._pending: set[str] = set()
        self.scheduler.add_tick_listener(self._flush)

    def resolve(self, target: str | Symbol) -> ResolvedAddress | None:
        return self.resolver.resolve(target)

    def evaluate(self, network: LadderNetwork) -> None:
        self.evaluator.evaluate(network)

    def watch(self) -> WatchList:
        return WatchList(self.resolver, self.scheduler)

    # -----------------------------------------------------------------------
    # Network monitoring
    # -----------------------------------------------------------------------

    def attach(self, network: LadderNetwork) -> None:
        """Poll every block symbol of *network* and re-evaluate on updates.

        Updates are coalesced, so the network is evaluated at most once per
        tick.  Re-attaching an already attached network re-resolves its
        symbols.
        """
        requester = network_requester(network)
        self.evaluator.invalidate(network)
        self._attached[requester] = network
        self._sync_ranges(requester, network)
        self.evaluator.evaluate(network)

    def detach(self, network: LadderNetwork) -> None:
        requester = network_requester(network)
        self._callbacks.pop(requester, None)
        self._pending.discard(requester)
        if self._attached.pop(requester, None) is not None:
            self.scheduler.unregister_all(requester)

    def _sync_ranges(self, requester: str, network: LadderNetwork) -> None:
        """Register the ranges *network* resolves to now and drop stale ones."""
        callback = self._callbacks.get(requester)
        if callback is None:
            def callback(data: bytes) -> None:
                self._pending.add(requester)

            self._callbacks[requester] = callback

        wanted: set[tuple[int, int]] = set()
        for blk in network.blocks:
            resolved = self.resolver.resolve(blk.symbol) if blk.symbol else None
            if resolved is not None:
                wanted.add((resolved.address, resolved.size))

        # new ranges first; the registry must not go empty mid-swap
        for start, size in sorted(wanted):
            self.scheduler.register(requester, start, size, callback)
        for reg in self.scheduler.registrations:
            if reg.key[0] == requester and (reg.start, reg.size) not in wanted:
                self.scheduler.unregister(requester, reg.start, reg.size, callback)

    def _flush(self) -> None:
        pending, self._pending = self._pending, set()
        for requester in sorted(pending):
            network = self._attached.get(requester)
            if network is not None:
                self.evaluator.evaluate(network)

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def start(self) -> None:
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    def reset(self) -> None:
        """Forget cached memory and cached symbol resolutions.

        Attached networks are re-resolved and their polled ranges moved to
        the current addresses.
        """
        for network in [*self.project.networks, *self._attached.values()]:
            self.evaluator.invalidate(network)
        for requester, network in list(self._attached.items()):
            self._sync_ranges(requester, network)
        self.scheduler.reset()
