"""
TagWeave Engine.

Watches a monitor root for template files, expands their directives
when they settle after a change and cascades to the files including
them.
Requires Python 3.11+.
"""

import os
import threading
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

from engine.errors import EngineStateError, InvalidConfigurationError
from engine.events import (
    EventBus,
    LogMessage,
    LogSeverity,
    ProcessFailed,
    ProcessSucceeded,
    Started,
    StartedWatching,
    Stopped,
    StoppedWatching,
)
from tags.errors import TagError
from tags.models import ErrorKind, ProcessResult
from tags.processor import TagProcessor
from tags.references import ReferenceIndex
from utils.config import EngineSettings, get_settings, read_monitor_path
from utils.logger import LoggerMixin
from utils.paths import same_path
from watcher.file_watcher import FolderWatcher

WatcherFactory = Callable[..., FolderWatcher]

_SEVERITY_LEVELS = {
    LogSeverity.DIAGNOSTIC: "debug",
    LogSeverity.INFORMATION: "info",
    LogSeverity.SUCCESS: "info",
    LogSeverity.WARNING: "warning",
    LogSeverity.ERROR: "error",
}


class EngineState(str, Enum):
    """Lifecycle states of the engine."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class Engine(LoggerMixin):
    """
    Orchestrates watching, tag expansion and output writing.

    One FolderWatcher (and with it one ChangeDebouncer) is registered per
    monitored extension. Start and stop transitions are serialised by a
    lock; configuration can only change while the engine is stopped.
    Failures while processing a file are reported as ProcessFailed
    events and never escape the watcher callback.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        processor: TagProcessor | None = None,
        events: EventBus | None = None,
        watcher_factory: WatcherFactory | None = None,
        ignore_patterns: list[str] | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Engine settings; defaults to the application settings
            processor: Tag processor used to expand files
            events: Event bus listeners subscribe to
            watcher_factory: Callable building a watcher per extension
            ignore_patterns: Directory names or filename globs to ignore
        """
        self._settings = settings or get_settings().engine
        self._processor = processor or TagProcessor()
        self.events = events or EventBus()
        self._watcher_factory = watcher_factory or FolderWatcher
        self._ignore_patterns = (
            get_settings().watcher.ignore_patterns if ignore_patterns is None else ignore_patterns
        )

        self._state = EngineState.STOPPED
        self._lock = threading.RLock()
        self._watchers: list[FolderWatcher] | None = None
        self._monitor_path: Path | None = None

    # =========================================================================
    # Configuration
    # =========================================================================

    @property
    def settings(self) -> EngineSettings:
        """Current engine settings."""
        return self._settings

    @property
    def state(self) -> EngineState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Check if the engine is running."""
        return self._state is EngineState.RUNNING

    @property
    def extensions(self) -> list[str]:
        """Watched extensions."""
        return list(self._settings.extensions)

    @property
    def monitor_path(self) -> Path:
        """Absolute root directory being monitored."""
        if self._monitor_path is None:
            self._monitor_path = self._load_monitor_path()
        return self._monitor_path

    def configure(self, **changes: Any) -> EngineSettings:
        """
        Change engine settings.

        Args:
            **changes: EngineSettings fields to replace

        Returns:
            The new settings

        Raises:
            EngineStateError: If the engine is not stopped
        """
        with self._lock:
            if self._state is not EngineState.STOPPED:
                raise EngineStateError(
                    f"Cannot change configuration while engine is {self._state.value}"
                )
            self._settings = EngineSettings.model_validate(
                {**self._settings.model_dump(), **changes}
            )
            self._monitor_path = None
            return self._settings

    def _load_monitor_path(self) -> Path:
        """Resolve the monitor root from settings and the sidecar config."""
        base_dir = Path(os.path.abspath(self._settings.base_dir))
        monitor: Path = self._settings.monitor_path or base_dir

        if self._settings.monitor_path is None:
            config_file = base_dir / self._settings.config_file_name
            try:
                value = read_monitor_path(config_file)
                if value is not None:
                    monitor = Path(value)
            except (OSError, UnicodeDecodeError, ValueError) as e:
                self.log_message(
                    f"Failed to read or process {self._settings.config_file_name} file",
                    message=str(e),
                    severity=LogSeverity.WARNING,
                )

        if not monitor.is_absolute():
            monitor = base_dir / monitor
        monitor = Path(os.path.normpath(monitor))

        if monitor != base_dir:
            self.log_message(f"Monitor path set to: {monitor}")

        return monitor

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """
        Start watching every configured extension.

        Starting a running engine tears it down and starts it again as
        one atomic step.

        Raises:
            InvalidConfigurationError: No extensions, or the monitor root
                is not a directory
            EngineStateError: Called from within a start or stop sequence
        """
        with self._lock:
            self._reject_reentry("start")

            # Dispose of any previous setup
            self._teardown()

            if not self._settings.extensions:
                raise InvalidConfigurationError("No engine extensions specified")

            self._state = EngineState.STARTING
            try:
                self._setup()
            except Exception:
                self._teardown()
                self._state = EngineState.STOPPED
                raise

            self._state = EngineState.RUNNING

    def _setup(self) -> None:
        monitor = self._load_monitor_path()
        if not monitor.is_dir():
            raise InvalidConfigurationError(f"Monitor path is not a directory: {monitor}")
        self._monitor_path = monitor

        self.events.publish(Started())
        self.log_message(
            f"Engine started listening to '{monitor}' "
            f"with {self._settings.process_delay_ms}ms delay..."
        )

        self._watchers = [
            self._watcher_factory(
                root_path=monitor,
                extension=extension,
                on_change=self.process_file_changed,
                debounce_delay_ms=self._settings.process_delay_ms,
                ignore_patterns=self._ignore_patterns,
            )
            for extension in self._settings.extensions
        ]

        for watcher in self._watchers:
            self.events.publish(StartedWatching(watcher.extension))
            self.log_message(f"Engine listening for file type {watcher.extension}")
            watcher.start()

    def stop(self) -> None:
        """
        Stop watching and cancel pending changes.

        Idempotent; a no-op when the engine was never started.

        Raises:
            EngineStateError: Called from within a start or stop sequence
        """
        with self._lock:
            self._reject_reentry("stop")
            self._teardown()

    def _reject_reentry(self, operation: str) -> None:
        if self._state in (EngineState.STARTING, EngineState.STOPPING):
            raise EngineStateError(
                f"Cannot {operation} while engine is {self._state.value}"
            )

    def _teardown(self) -> None:
        """Dispose every watcher registration. Caller holds the lock."""
        if self._watchers is None:
            return

        self._state = EngineState.STOPPING
        watchers, self._watchers = self._watchers, None

        try:
            for watcher in watchers:
                try:
                    watcher.dispose()
                except Exception as e:
                    self.log_message(
                        f"Failed to stop listening for file type {watcher.extension}",
                        message=str(e),
                        severity=LogSeverity.ERROR,
                    )
                    continue
                self.events.publish(StoppedWatching(watcher.extension))
                self.log_message(f"Engine stopped listening for file type {watcher.extension}")

            self.events.publish(Stopped())
            self.log_message("Engine stopped")
        finally:
            self._state = EngineState.STOPPED

    # =========================================================================
    # Processing
    # =========================================================================

    def process_file_changed(self, path: Path | str) -> ProcessResult:
        """
        Handle a stable change to a file.

        Processes the file, then every file that includes it. Never raises.

        Args:
            path: Path of the changed file

        Returns:
            Result for the changed file itself
        """
        path = Path(path)
        result = self._process_and_report(path)

        if self._settings.cascade_dependents:
            try:
                dependents = self.find_dependents(path)
            except Exception as e:
                self.log_message(
                    f"Failed to find files referencing {path}",
                    message=str(e),
                    severity=LogSeverity.ERROR,
                )
                dependents = set()

            for dependent in sorted(dependents):
                self._process_and_report(dependent)

        return result

    def _process_and_report(self, path: Path) -> ProcessResult:
        """Process one file and publish the outcome."""
        try:
            self.log_message(f"Processing file {path}...", severity=LogSeverity.INFORMATION)

            result = self.process_file(path)

            if result is None:
                raise ValueError("Unknown error processing file. No result provided")

            if result.success:
                self.events.publish(ProcessSucceeded(result))
                self.log_message(
                    f"Successfully processed file {path}", severity=LogSeverity.SUCCESS
                )
            else:
                self.events.publish(ProcessFailed(result))
                self.log_message(
                    f"Failed to process file {path}",
                    message=result.error,
                    severity=LogSeverity.ERROR,
                )
            return result

        except Exception as e:
            result = ProcessResult(
                path=path,
                success=False,
                error=str(e),
                error_kind=ErrorKind.UNEXPECTED,
            )
            self.events.publish(ProcessFailed(result))
            self.log_message(
                f"Unexpected failure processing file {path}",
                message=str(e),
                severity=LogSeverity.ERROR,
            )
            return result

    def process_file(self, path: Path) -> ProcessResult:
        """
        Expand a file and write its outputs.

        Directive errors produce a failed result. Partial files are
        expanded but produce no output of their own.

        Args:
            path: Path of the file to process

        Returns:
            ProcessResult describing the outcome
        """
        text = path.read_text(encoding="utf-8")

        try:
            expansion = self._processor.expand(path, text)
        except TagError as e:
            return ProcessResult(path=path, success=False, error=str(e), error_kind=e.kind)

        output_paths = expansion.output_paths or (self.default_output_path(path),)

        if self._settings.write_outputs and not expansion.is_partial:
            self.write_outputs(path, expansion.text, output_paths)

        return ProcessResult(
            path=path,
            success=True,
            output_paths=output_paths,
            is_partial=expansion.is_partial,
        )

    def write_outputs(self, source: Path, text: str, output_paths: tuple[Path, ...]) -> None:
        """Write expanded text to each output path, never over the source."""
        for output_path in output_paths:
            if same_path(output_path, source):
                self.log_message(
                    f"Skipped output {output_path}",
                    message="Output path is the source file",
                    severity=LogSeverity.WARNING,
                )
                continue
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(text, encoding="utf-8")
            self.log.debug("output_written", source=str(source), output=str(output_path))

    def default_output_path(self, path: Path | str) -> Path:
        """Same directory and base name as the source, with the output extension."""
        path = Path(path)
        return path.parent / (path.stem + self._settings.output_extension)

    def process_all(self) -> list[ProcessResult]:
        """
        Process every monitored file under the monitor root once.

        Returns:
            Results in path order
        """
        index = self._reference_index()
        return [self._process_and_report(path) for path in index.monitored_files()]

    def find_dependents(self, path: Path | str) -> set[Path]:
        """Files under the monitor root that include the given file."""
        return self._reference_index().find_dependents(
            path, transitive=self._settings.transitive_dependents
        )

    def _reference_index(self) -> ReferenceIndex:
        return ReferenceIndex(
            root_path=self.monitor_path,
            extensions=self._settings.extensions,
            processor=self._processor,
            ignore_patterns=self._ignore_patterns,
        )

    # =========================================================================
    # Logging
    # =========================================================================

    def log_message(
        self,
        title: str,
        message: str = "",
        severity: LogSeverity = LogSeverity.DIAGNOSTIC,
    ) -> None:
        """Raise a LogMessage event and mirror it to the structured log."""
        getattr(self.log, _SEVERITY_LEVELS[severity])(
            "engine_message", title=title, detail=message, severity=severity.value
        )
        self.events.publish(LogMessage(title=title, message=message, severity=severity))

    def __enter__(self) -> "Engine":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.stop()
