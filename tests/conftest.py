"""Root pytest configuration for all tests."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep RTCONFIG_* variables from the outer environment out of tests."""
    for name in ("RTCONFIG_POLL_INTERVAL", "RTCONFIG_DEBUG", "RTCONFIG_LOG"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for config files."""
    path = tmp_path / "config"
    path.mkdir()
    return path


@pytest.fixture
def write_config() -> Callable[[Path, str], Path]:
    """Write a config file and guarantee its mtime differs from the previous one."""

    written: dict[Path, int] = {}

    def _write(path: Path, text: str) -> Path:
        previous = written.get(path, 0)
        if path.exists():
            previous = max(previous, path.stat().st_mtime_ns)
        path.write_text(text, encoding="utf-8")
        # Filesystems with coarse timestamps can leave the mtime unchanged
        mtime = max(path.stat().st_mtime_ns, previous + 1_000_000_000)
        os.utime(path, ns=(mtime, mtime))
        written[path] = mtime
        return path

    return _write
