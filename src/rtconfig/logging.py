"""Logging configuration for rtconfig.

Uses Python's standard logging module with support for:
- File logging via argument or RTCONFIG_LOG environment variable
- A TRACE level below DEBUG for per-poll chatter
- Stderr fallback when no log file is configured

The library never installs handlers on import; applications that want
rtconfig's output call setup_logging() once at startup.
"""

from __future__ import annotations

import logging
import os
import sys

# Custom log level for messages emitted on every poll
TRACE = 5

logging.addLevelName(TRACE, "TRACE")

# Package-level logger
logger = logging.getLogger("rtconfig")

_initialized = False

_LEVEL_MAP = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class _LowercaseLevelFormatter(logging.Formatter):
    """Formatter that emits lowercase level names."""

    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def setup_logging(level: str | None = None, file: str | None = None) -> None:
    """Attach a handler to the rtconfig logger.

    Call this once at startup. Subsequent calls are no-ops.

    Args:
        level: Level name (TRACE, DEBUG, INFO, WARNING, ERROR). Defaults to INFO.
        file: Log file path. Falls back to the RTCONFIG_LOG environment
              variable, then to stderr when it is a real console.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    log_level = _LEVEL_MAP.get(level.upper(), logging.INFO) if level else logging.INFO
    logger.setLevel(log_level)

    # Format: HH:MM:SS level: name: message
    formatter = _LowercaseLevelFormatter(
        "%(asctime)s %(levelname)s: %(name)s: %(message)s", datefmt="%H:%M:%S"
    )

    log_path = file or os.environ.get("RTCONFIG_LOG")

    if log_path:
        log_path = os.path.expanduser(log_path)
        try:
            file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        except OSError as e:
            if sys.stderr.isatty():
                print(f"[rtconfig] Failed to open log file: {e}", file=sys.stderr)
                _add_stderr_handler(formatter, log_level)
        else:
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
    elif sys.stderr.isatty():
        _add_stderr_handler(formatter, log_level)


def _add_stderr_handler(formatter: logging.Formatter, level: int = logging.DEBUG) -> None:
    """Add a stderr handler to the logger."""
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Optional child name (e.g., "watcher"). If None, returns the
              root rtconfig logger.
    """
    if name:
        return logger.getChild(name)
    return logger
