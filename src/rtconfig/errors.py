"""Exceptions raised while loading a watched config file.

Reload cycles convert these into ``error`` events; only the strict first
load of a watcher with no error listener lets them reach the caller.
"""

from __future__ import annotations

from pathlib import Path


class ConfigError(Exception):
    """Base class for config loading failures."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class ConfigReadError(ConfigError):
    """The config file is missing, unreadable, or permission is denied."""


class ConfigParseError(ConfigError):
    """The config text could not be turned into a mapping."""
