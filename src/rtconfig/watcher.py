"""Live-reloading config object.

A ConfigWatcher loads a config file once on construction, then polls the
file's modification time and reparses it whenever it changes. Parsed keys
are readable as attributes on the watcher and always reflect the latest
successful parse:

    watcher = ConfigWatcher("config.yaml", poll_interval=5.0)
    print(watcher.host)

    async with ConfigWatcher("config.yaml", on_update=print) as watcher:
        ...

Polling runs as an asyncio task. Each cycle finishes (stat, read, parse,
merge, listener calls) before the next sleep starts, so cycles of one
watcher never overlap.
"""

from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from rtconfig.errors import ConfigError, ConfigReadError
from rtconfig.logging import TRACE, get_logger
from rtconfig.options import WatcherOptions
from rtconfig.parsers import parse_config
from rtconfig.state import WatcherState

_log = get_logger("watcher")

UpdateCallback = Callable[[dict[str, Any]], None]
ErrorCallback = Callable[[str], None]


class ConfigWatcher:
    """Exposes a config file's keys as attributes and keeps them current.

    Every key ever parsed from the file stays readable, either as an
    attribute (``watcher.host``) or through the mapping accessors
    (``watcher["host"]``, ``watcher.get("host")``). Keys that start with an
    underscore or collide with a watcher attribute are only reachable through
    the mapping accessors. Keys removed from the file keep their last value.

    Listeners:
        update: called with the freshly parsed mapping after each reload.
        error: called with a message string after each failed reload.

    If no error listener is registered at construction, a failure of the
    first load raises the ConfigError instead. Failures of later polls are
    always reported through listeners (or logged when there are none).
    """

    def __init__(
        self,
        filename: str | os.PathLike[str],
        *,
        poll_interval: float | None = None,
        debug: bool | None = None,
        on_update: UpdateCallback | None = None,
        on_error: ErrorCallback | None = None,
        options: WatcherOptions | None = None,
        autostart: bool = True,
    ) -> None:
        """Load the config file and, when possible, start polling it.

        Args:
            filename: Path of the config file to watch.
            poll_interval: Seconds between polls (overrides ``options``).
            debug: Log reload errors at ERROR level (overrides ``options``).
            on_update: Listener for successful reloads.
            on_error: Listener for failed reloads.
            options: Base options; defaults to WatcherOptions.from_env().
            autostart: Start polling immediately if an event loop is running.

        Raises:
            ConfigError: If the first load fails and ``on_error`` is not given.
        """
        base = options if options is not None else WatcherOptions.from_env()
        self._options = base.with_overrides(poll_interval=poll_interval, debug=debug)
        self._state = WatcherState(
            filename=Path(filename),
            poll_interval=self._options.poll_interval,
        )
        self._update_listeners: list[UpdateCallback] = []
        self._error_listeners: list[ErrorCallback] = []
        self._running = False
        self._task: asyncio.Task[None] | None = None

        if on_update is not None:
            self.on_update(on_update)
        if on_error is not None:
            self.on_error(on_error)

        self._reload(strict=not self._error_listeners)

        if autostart:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                _log.debug("No running event loop; call start() to poll %s", self.filename)
            else:
                self.start()

    # -- Field projection ---------------------------------------------------

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal attribute lookup fails
        if not name.startswith("_"):
            state = self.__dict__.get("_state")
            if state is not None and name in state.config:
                return state.config[name]
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        if not name.startswith("_") and not hasattr(type(self), name):
            state = self.__dict__.get("_state")
            if state is not None and name in state.config:
                raise AttributeError(f"config field {name!r} is read-only")
        super().__setattr__(name, value)

    def __dir__(self) -> list[str]:
        fields = [k for k in self._state.config if k.isidentifier() and not k.startswith("_")]
        return sorted(set(super().__dir__()) | set(fields))

    def __getitem__(self, key: str) -> Any:
        return self._state.config[key]

    def __contains__(self, key: object) -> bool:
        return key in self._state.config

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value, or ``default`` if the key was never parsed."""
        return self._state.config.get(key, default)

    def snapshot(self) -> dict[str, Any]:
        """Return the current config mapping.

        This is the live mapping, not a copy. Callers must not mutate it.
        """
        return self._state.config

    to_dict = snapshot

    # -- Properties -----------------------------------------------------------

    @property
    def filename(self) -> Path:
        """Path of the watched file."""
        return self._state.filename

    @property
    def last_modified(self) -> int:
        """``st_mtime_ns`` of the last successfully parsed version, or 0."""
        return self._state.last_modified

    @property
    def poll_interval(self) -> float:
        """Seconds between polls. Takes effect after the current sleep."""
        return self._state.poll_interval

    @poll_interval.setter
    def poll_interval(self, value: float) -> None:
        if value <= 0:
            raise ValueError(f"poll_interval must be positive, got {value}")
        self._state.poll_interval = value

    @property
    def debug(self) -> bool:
        return self._options.debug

    @property
    def running(self) -> bool:
        """Whether the polling task is active."""
        return self._running

    # -- Listeners ------------------------------------------------------------

    def on_update(self, callback: UpdateCallback) -> Callable[[], None]:
        """Register a listener for successful reloads.

        Args:
            callback: Called with the freshly parsed mapping (not the
                accumulated config).

        Returns:
            A function to unregister the listener.
        """
        self._update_listeners.append(callback)

        def unregister() -> None:
            if callback in self._update_listeners:
                self._update_listeners.remove(callback)

        return unregister

    def on_error(self, callback: ErrorCallback) -> Callable[[], None]:
        """Register a listener for failed reloads.

        Args:
            callback: Called with a human-readable error message.

        Returns:
            A function to unregister the listener.
        """
        self._error_listeners.append(callback)

        def unregister() -> None:
            if callback in self._error_listeners:
                self._error_listeners.remove(callback)

        return unregister

    def _emit_update(self, parsed: dict[str, Any]) -> None:
        for callback in list(self._update_listeners):
            callback(parsed)

    def _emit_error(self, error: ConfigError) -> None:
        message = str(error)
        if self._options.debug:
            _log.error("Read the config error. %s", message)
        elif not self._error_listeners:
            _log.warning("Failed to reload %s: %s", self.filename, message)
        else:
            _log.debug("Failed to reload %s: %s", self.filename, message)

        for callback in list(self._error_listeners):
            callback(message)

    # -- Reload cycle ---------------------------------------------------------

    def poll(self) -> bool:
        """Run one reload cycle.

        Stats the file and, if its modification time changed, reads and
        parses it, merges the result into the config and notifies update
        listeners. Read and parse failures are reported to error listeners
        and leave the config untouched. Exceptions raised by listeners
        propagate to the caller.

        Returns:
            True if the file was reparsed, False if it was unchanged or failed.
        """
        return self._reload(strict=False)

    def _reload(self, strict: bool) -> bool:
        try:
            loaded = self._load()
        except ConfigError as e:
            if strict:
                _log.debug("Initial load of %s failed: %s", self.filename, e)
                raise
            self._emit_error(e)
            return False

        if loaded is None:
            return False

        parsed, modified = loaded
        self._state.merge(parsed, modified)
        _log.info("Loaded %s (%d keys)", self.filename, len(parsed))
        self._emit_update(parsed)
        return True

    def _load(self) -> tuple[dict[str, Any], int] | None:
        """Stat the file and parse it if it changed.

        Returns:
            The parsed mapping and its ``st_mtime_ns``, or None if unchanged.
        """
        path = self._state.filename
        try:
            modified = path.stat().st_mtime_ns
        except OSError as e:
            raise ConfigReadError(str(e), path) from e

        if not self._state.is_stale(modified):
            _log.log(TRACE, "%s unchanged", path)
            return None

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigReadError(str(e), path) from e

        return parse_config(text, path), modified

    async def _poll_loop(self) -> None:
        """Main polling loop."""
        while self._running:
            await asyncio.sleep(self._state.poll_interval)

            if not self._running:
                break

            try:
                self.poll()
            except Exception:
                _log.exception("Config listener failed while reloading %s", self.filename)

    def start(self) -> None:
        """Start polling the file.

        Creates an asyncio task, so this must be called from within a
        running event loop. Calling it while already running is a no-op.
        """
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        _log.debug("Watching %s (interval=%.1fs)", self.filename, self._state.poll_interval)

    def stop(self) -> None:
        """Stop polling. The current config stays readable."""
        self._running = False
        if self._task:
            self._task.cancel()
            self._task = None
        _log.debug("Stopped watching %s", self.filename)

    close = stop

    async def __aenter__(self) -> ConfigWatcher:
        """Async context manager entry."""
        self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        self.stop()

    # -- Serialization --------------------------------------------------------

    def to_json(self) -> str:
        """Serialize the current config as compact JSON."""
        return json.dumps(
            self._state.config, separators=(",", ":"), ensure_ascii=False, default=str
        )

    def to_yaml(self) -> str:
        """Serialize the current config as YAML."""
        return yaml.safe_dump(self._state.config, sort_keys=False, allow_unicode=True)

    def __str__(self) -> str:
        # Single-line flow YAML; unlike JSON it keeps .inf, .nan and dates
        return yaml.safe_dump(
            self._state.config,
            default_flow_style=True,
            width=float("inf"),
            sort_keys=False,
            allow_unicode=True,
        ).rstrip("\n")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({str(self.filename)!r}, "
            f"keys={len(self._state.config)}, running={self._running})"
        )
