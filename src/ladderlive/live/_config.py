"""Monitor configuration: polling cadence, batching limits and cache size."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from ._values import MonitorError


class ConfigurationError(MonitorError):
    """Invalid or unreadable monitor configuration."""

    def __init__(self, message: str, config_key: str = "configuration") -> None:
        super().__init__(f"Configuration error for '{config_key}': {message}")
        self.config_key = config_key


class MonitorConfig(BaseModel):
    """Tuning knobs of the live memory scheduler.

    Defaults match the PLC runtime's transport: a 200 ms poll, ranges
    closer than 64 bytes share one read, reads never exceed 512 bytes and
    at most 4 reads go out per tick.
    """

    interval_ms: int = Field(default=200, gt=0)
    gap_threshold: int = Field(default=64, gt=0)
    max_batch_size: int = Field(default=512, gt=0)
    max_batches_per_tick: int = Field(default=4, gt=0)
    cache_size: int = Field(default=65536, gt=0)

    @property
    def interval(self) -> float:
        """Poll interval in seconds."""
        return self.interval_ms / 1000


def _load_yaml_file(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Failed to read {path}: {exc}") from exc


def load_config(path: str | Path | None = None) -> MonitorConfig:
    """Load a ``MonitorConfig`` from a YAML file.

    The settings may live at the top level or under a ``monitor:`` key.
    With no *path* the defaults are returned.
    """
    if path is None:
        return MonitorConfig()

    raw = _load_yaml_file(Path(path))
    if raw is None:
        return MonitorConfig()
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Expected a mapping, got {type(raw).__name__}")
    if "monitor" in raw:
        raw = raw["monitor"] or {}
        if not isinstance(raw, dict):
            raise ConfigurationError("Expected a mapping", config_key="monitor")

    try:
        return MonitorConfig(**raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        key = ".".join(str(p) for p in first["loc"]) or "configuration"
        raise ConfigurationError(first["msg"], config_key=key) from exc
