"""Mutable state owned by a single ConfigWatcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class WatcherState:
    """Parsed config plus the fingerprint used to detect file changes.

    ``config`` only ever grows: keys from each successful parse are added or
    overwritten, and keys missing from a later version are kept.
    """

    filename: Path
    poll_interval: float
    last_modified: int = 0  # st_mtime_ns of the last successful parse
    config: dict[str, Any] = field(default_factory=dict)
    reloads: int = 0

    def is_stale(self, modified: int) -> bool:
        """Check whether a stat result differs from the last parsed version."""
        return modified != self.last_modified

    def merge(self, parsed: dict[str, Any], modified: int) -> None:
        """Accumulate a freshly parsed mapping into the current config.

        The fingerprint is recorded before the keys are copied so that a
        failure while merging does not make every later poll reparse.

        Args:
            parsed: Mapping produced by the parser.
            modified: ``st_mtime_ns`` of the file that was parsed.
        """
        self.last_modified = modified
        for key, value in parsed.items():
            self.config[key] = value
        self.reloads += 1
