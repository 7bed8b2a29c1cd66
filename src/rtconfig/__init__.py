"""Live-reloading configuration files.

Loads a YAML, JSON or expression-style config file, exposes its keys as
attributes, and refreshes them when the file changes.

Example usage:
    from rtconfig import ConfigWatcher

    async def main() -> None:
        watcher = ConfigWatcher("config.yaml", poll_interval=5.0)
        print(watcher.host)  # always the latest value
        ...
        watcher.stop()

    # One-shot load without watching
    from rtconfig import load_config_file
    data = load_config_file("config.json")
"""

from rtconfig.errors import ConfigError, ConfigParseError, ConfigReadError
from rtconfig.logging import get_logger, setup_logging
from rtconfig.options import DEFAULT_POLL_INTERVAL, WatcherOptions
from rtconfig.parsers import (
    load_config_file,
    parse_config,
    parse_expression,
    parse_markup,
)
from rtconfig.state import WatcherState
from rtconfig.watcher import ConfigWatcher

__all__ = [
    # Main API
    "ConfigWatcher",
    "WatcherOptions",
    "WatcherState",
    "DEFAULT_POLL_INTERVAL",
    # Parsing
    "load_config_file",
    "parse_config",
    "parse_markup",
    "parse_expression",
    # Errors
    "ConfigError",
    "ConfigReadError",
    "ConfigParseError",
    # Logging
    "get_logger",
    "setup_logging",
]
