"""Watcher options and environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Any

_log = logging.getLogger("rtconfig.options")

# Default poll interval in seconds
DEFAULT_POLL_INTERVAL = 60.0

ENV_POLL_INTERVAL = "RTCONFIG_POLL_INTERVAL"
ENV_DEBUG = "RTCONFIG_DEBUG"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class WatcherOptions:
    """Settings shared by ConfigWatcher instances."""

    poll_interval: float = DEFAULT_POLL_INTERVAL  # Seconds between reload cycles
    debug: bool = False  # Log reload errors at ERROR level

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")

    @classmethod
    def from_env(cls) -> WatcherOptions:
        """Build options from defaults plus environment variables.

        ``RTCONFIG_POLL_INTERVAL`` sets the interval in seconds and
        ``RTCONFIG_DEBUG`` enables debug logging of reload errors. Values
        that don't parse are ignored with a warning.
        """
        return cls().with_overrides(**env_overrides())

    def with_overrides(self, **overrides: Any) -> WatcherOptions:
        """Return a copy with every non-None keyword applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        return replace(self, **changes)


def env_overrides() -> dict[str, Any]:
    """Read option overrides from environment variables.

    Returns:
        Dict of option names to values found in the environment.
    """
    overrides: dict[str, Any] = {}

    interval = os.environ.get(ENV_POLL_INTERVAL)
    if interval:
        try:
            value = float(interval)
        except ValueError:
            value = 0.0
        if value > 0:
            overrides["poll_interval"] = value
        else:
            _log.warning("Ignoring invalid %s=%r", ENV_POLL_INTERVAL, interval)

    debug = os.environ.get(ENV_DEBUG)
    if debug is not None:
        flag = debug.strip().lower()
        if flag in _TRUTHY:
            overrides["debug"] = True
        elif flag in _FALSY:
            overrides["debug"] = False
        else:
            _log.warning("Ignoring invalid %s=%r", ENV_DEBUG, debug)

    return overrides
