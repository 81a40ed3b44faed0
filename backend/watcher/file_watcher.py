"""
TagWeave File Watcher.

Cross-platform file system monitoring using watchdog.
Requires Python 3.11+.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

from watchdog.observers import Observer
from watchdog.events import (
    FileSystemEventHandler,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    DirCreatedEvent,
    DirModifiedEvent,
    DirMovedEvent,
)

from watcher.debouncer import ChangeDebouncer
from utils.config import get_settings
from utils.logger import LoggerMixin
from utils.paths import is_ignored, matches_extension


class ExtensionFileHandler(FileSystemEventHandler, LoggerMixin):
    """
    Handles file system events for one monitored extension.

    Created, modified and moved-to files are forwarded to the debouncer.
    Deletions are ignored since there is nothing left to render.
    """

    def __init__(
        self,
        extension: str,
        debouncer: ChangeDebouncer,
        ignore_patterns: list[str] | None = None,
        root_path: Path | None = None,
    ) -> None:
        """
        Initialize the file handler.

        Args:
            extension: Extension to accept, e.g. ".dnaweb"
            debouncer: Debouncer to accumulate changes
            ignore_patterns: Directory names or filename globs to ignore
            root_path: Watched root; ignore patterns apply below it only
        """
        super().__init__()
        self._extension = extension
        self._debouncer = debouncer
        self._ignore_patterns = ignore_patterns or []
        self._root_path = Path(root_path) if root_path is not None else None

    def _log_context(self) -> dict[str, Any]:
        return {"extension": self._extension}

    def _accepts(self, path: str) -> bool:
        """Check if a path should be forwarded."""
        if not matches_extension(path, self._extension):
            return False

        relative = Path(path)
        if self._root_path is not None and relative.is_relative_to(self._root_path):
            relative = relative.relative_to(self._root_path)
        return not is_ignored(relative, self._ignore_patterns)

    def _forward(self, path: str | bytes, change_type: str) -> None:
        if isinstance(path, bytes):
            path = path.decode()
        if not self._accepts(path):
            return
        self.log.debug("file_changed", path=path, change_type=change_type)
        self._debouncer.notify(Path(path))

    def on_created(self, event: FileCreatedEvent | DirCreatedEvent) -> None:
        """Handle file creation."""
        if isinstance(event, DirCreatedEvent):
            return
        self._forward(event.src_path, "created")

    def on_modified(self, event: FileModifiedEvent | DirModifiedEvent) -> None:
        """Handle file modification."""
        if isinstance(event, DirModifiedEvent):
            return
        self._forward(event.src_path, "modified")

    def on_moved(self, event: FileMovedEvent | DirMovedEvent) -> None:
        """Handle file move/rename; editors often save via rename."""
        if isinstance(event, DirMovedEvent):
            return
        self._forward(event.dest_path, "moved")


class FolderWatcher(LoggerMixin):
    """
    Watches a directory tree for changes to files of one extension.

    Owns a watchdog observer and a ChangeDebouncer; the callback receives
    each path once its changes have settled.
    """

    def __init__(
        self,
        root_path: Path,
        extension: str,
        on_change: Callable[[Path], Any] | None = None,
        debounce_delay_ms: int | None = None,
        ignore_patterns: list[str] | None = None,
        recursive: bool | None = None,
    ) -> None:
        """
        Initialize the folder watcher.

        Args:
            root_path: Root directory to watch
            extension: Extension to watch, e.g. ".dnaweb"
            on_change: Callback for stable changes
            debounce_delay_ms: Debounce delay in milliseconds
            ignore_patterns: Directory names or filename globs to ignore
            recursive: Whether to watch subdirectories
        """
        settings = get_settings()

        self._root_path = root_path
        self._extension = extension
        self._recursive = settings.watcher.recursive if recursive is None else recursive
        self._ignore_patterns = (
            settings.watcher.ignore_patterns if ignore_patterns is None else ignore_patterns
        )
        delay = (
            settings.engine.process_delay_ms if debounce_delay_ms is None else debounce_delay_ms
        )

        self._debouncer = ChangeDebouncer(
            delay_ms=delay,
            callback=on_change,
            name=extension,
        )

        self._handler = ExtensionFileHandler(
            extension=extension,
            debouncer=self._debouncer,
            ignore_patterns=self._ignore_patterns,
            root_path=root_path,
        )

        self._observer: Observer | None = None
        self._running = False

    def _log_context(self) -> dict[str, Any]:
        return {"extension": self._extension}

    @property
    def extension(self) -> str:
        """The watched extension."""
        return self._extension

    @property
    def debouncer(self) -> ChangeDebouncer:
        """The debouncer feeding the change callback."""
        return self._debouncer

    def start(self) -> None:
        """Start watching for file changes."""
        if self._running:
            return

        self._observer = Observer()
        self._observer.schedule(
            self._handler,
            str(self._root_path),
            recursive=self._recursive,
        )
        self._observer.start()
        self._running = True

        self.log.info(
            "file_watcher_started",
            path=str(self._root_path),
            recursive=self._recursive,
        )

    def dispose(self) -> None:
        """Stop watching and cancel pending changes without processing them."""
        self._debouncer.dispose()

        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._observer = None

        if self._running:
            self._running = False
            self.log.info("file_watcher_stopped")

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    @property
    def pending_count(self) -> int:
        """Get number of pending changes."""
        return self._debouncer.pending_count

    def __enter__(self) -> "FolderWatcher":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.dispose()
