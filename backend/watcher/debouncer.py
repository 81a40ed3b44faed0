"""
TagWeave Debouncer.

Debounces rapid file system events per path.
Requires Python 3.11+.
"""

import asyncio
import inspect
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from utils.logger import LoggerMixin


@dataclass
class DebounceEntry:
    """Pending-timer state for one path."""

    last_event_time: float
    timer: threading.Timer
    generation: int


class ChangeDebouncer(LoggerMixin):
    """
    Collapses bursts of change notifications into one callback per path.

    Each path moves Idle -> Pending on its first event. Further events
    while Pending restart the timer. When the timer elapses with no
    newer event the callback fires with the path and the path returns
    to Idle. Different paths are timed independently.
    """

    def __init__(
        self,
        delay_ms: int = 100,
        callback: Callable[[Path], Any] | None = None,
        name: str = "",
    ) -> None:
        """
        Initialize the debouncer.

        Args:
            delay_ms: Quiet period in milliseconds before a path is stable
            callback: Function called with each stable path
            name: Label used in log entries (usually the watched extension)
        """
        self._delay = delay_ms / 1000.0
        self._callback = callback
        self._name = name
        self._pending: dict[Path, DebounceEntry] = {}
        self._generation = 0
        self._disposed = False
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None

    def _log_context(self) -> dict[str, Any]:
        return {"watcher": self._name} if self._name else {}

    def set_callback(self, callback: Callable[[Path], Any]) -> None:
        """Set or update the callback function."""
        self._callback = callback

    def set_event_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Set the event loop for async callbacks."""
        self._loop = loop

    def notify(self, path: Path) -> None:
        """
        Record a change event for a path.

        The callback fires delay_ms after the last event for the path.

        Args:
            path: Path of the changed file
        """
        with self._lock:
            if self._disposed:
                return

            entry = self._pending.get(path)
            if entry is not None:
                entry.timer.cancel()

            self._generation += 1
            timer = threading.Timer(self._delay, self._fire, args=(path, self._generation))
            timer.daemon = True
            self._pending[path] = DebounceEntry(
                last_event_time=time.monotonic(),
                timer=timer,
                generation=self._generation,
            )
            timer.start()

    def _fire(self, path: Path, generation: int) -> None:
        """Timer expiry for a path."""
        with self._lock:
            entry = self._pending.get(path)
            # A newer event replaced this timer, or we were disposed
            if entry is None or entry.generation != generation:
                return
            del self._pending[path]

        self.log.debug("change_stable", path=str(path))
        self._invoke(path)

    def _invoke(self, path: Path) -> None:
        """Run the callback, keeping timer threads alive on failure."""
        if self._callback is None:
            return

        try:
            if inspect.iscoroutinefunction(self._callback):
                if self._loop is not None:
                    asyncio.run_coroutine_threadsafe(self._callback(path), self._loop)
                else:
                    asyncio.run(self._callback(path))
            else:
                self._callback(path)
        except Exception as e:
            self.log.error("debounce_callback_failed", path=str(path), error=str(e))

    def flush(self) -> list[Path]:
        """
        Immediately fire the callback for every pending path.

        Returns:
            Paths that were pending
        """
        with self._lock:
            entries = list(self._pending.items())
            self._pending.clear()
            for _, entry in entries:
                entry.timer.cancel()

        paths = [path for path, _ in entries]
        for path in paths:
            self._invoke(path)

        return paths

    def dispose(self) -> None:
        """
        Cancel all pending timers without firing them.

        Safe to call repeatedly. Later notifications are ignored.
        """
        with self._lock:
            self._disposed = True
            entries = list(self._pending.values())
            self._pending.clear()
            for entry in entries:
                entry.timer.cancel()

        if entries:
            self.log.debug("pending_changes_cancelled", count=len(entries))

    @property
    def is_disposed(self) -> bool:
        """Check whether the debouncer has been disposed."""
        return self._disposed

    @property
    def delay_ms(self) -> int:
        """Quiet period in milliseconds."""
        return round(self._delay * 1000)

    @property
    def pending_count(self) -> int:
        """Get number of pending paths."""
        with self._lock:
            return len(self._pending)

    @property
    def pending_paths(self) -> list[Path]:
        """Get list of paths with pending changes."""
        with self._lock:
            return list(self._pending.keys())
