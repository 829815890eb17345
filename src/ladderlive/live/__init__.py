"""ladderlive monitor — live memory polling and ladder power-flow display.

Entry point::

    from ladderlive.live import monitor

    session = monitor(project, device)
    session.attach(project.networks[0])
    session.start()          # inside a running asyncio loop
    ...
    session.stop()
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

from ladderlive.model.project import Project

from ._config import ConfigurationError, MonitorConfig, load_config
from ._device import DeviceMemoryPort, SimulatedDevice
from ._evaluator import LadderEvaluator
from ._resolver import AddressResolver
from ._scheduler import LiveMemoryScheduler, cluster_ranges, select_batches
from ._session import LiveSession
from ._values import MonitorError, decode_value, read_value, write_value
from ._watch import WatchList


def monitor(
    project: Project | dict[str, Any],
    port: DeviceMemoryPort,
    *,
    config: MonitorConfig | str | Path | None = None,
    is_monitoring_active: Callable[[], bool] | None = None,
    is_connected: Callable[[], bool] | None = None,
) -> LiveSession:
    """Create a live session for a project.

    Parameters
    ----------
    project
        A ``Project`` or a raw project descriptor mapping
        (``{"offsets": ..., "symbols": [...], "networks": [...]}``).
    port
        Device memory port; anything with an async ``read_memory``.
    config
        A ``MonitorConfig``, a path to a YAML config file, or ``None``
        for defaults.
    is_monitoring_active, is_connected
        Zero-argument predicates gating polling.  ``None`` means always
        true.

    Returns
    -------
    LiveSession
    """
    if isinstance(project, dict):
        project = Project.model_validate(project)
    elif not isinstance(project, Project):
        raise TypeError(
            f"monitor() expects a Project or project mapping, "
            f"got {type(project).__name__}"
        )

    if not isinstance(port, DeviceMemoryPort):
        raise TypeError(
            f"monitor() expects a port with read_memory(), got {type(port).__name__}"
        )

    if not isinstance(config, MonitorConfig):
        config = load_config(config)

    return LiveSession(
        project,
        port,
        config,
        is_monitoring_active=is_monitoring_active,
        is_connected=is_connected,
    )


__all__ = [
    "monitor",
    "AddressResolver",
    "ConfigurationError",
    "DeviceMemoryPort",
    "LadderEvaluator",
    "LiveMemoryScheduler",
    "LiveSession",
    "MonitorConfig",
    "MonitorError",
    "SimulatedDevice",
    "WatchList",
    "cluster_ranges",
    "decode_value",
    "load_config",
    "read_value",
    "select_batches",
    "write_value",
]
