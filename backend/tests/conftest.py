"""
TagWeave Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from engine import Engine
from engine.events import EngineEvent
from utils.config import EngineSettings


class FakeWatcher:
    """Stands in for FolderWatcher so engine tests need no OS notifications."""

    def __init__(
        self,
        root_path: Path,
        extension: str,
        on_change: Callable[[Path], Any] | None = None,
        debounce_delay_ms: int | None = None,
        ignore_patterns: list[str] | None = None,
    ) -> None:
        self.root_path = root_path
        self.extension = extension
        self.on_change = on_change
        self.debounce_delay_ms = debounce_delay_ms
        self.ignore_patterns = ignore_patterns
        self.started = False
        self.disposed = False

    def start(self) -> None:
        self.started = True

    def dispose(self) -> None:
        self.disposed = True

    def trigger(self, path: Path) -> Any:
        """Simulate a stable change reported by the debouncer."""
        assert self.on_change is not None
        return self.on_change(path)


class EventRecorder:
    """Collects every event published on an engine's bus."""

    def __init__(self) -> None:
        self.events: list[EngineEvent] = []

    def __call__(self, event: EngineEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type) -> list[Any]:
        return [e for e in self.events if isinstance(e, event_type)]

    def names(self, *, include_logs: bool = False) -> list[str]:
        return [
            type(e).__name__
            for e in self.events
            if include_logs or type(e).__name__ != "LogMessage"
        ]


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A small template tree with a header fragment and a home page."""
    root = tmp_path / "site"
    root.mkdir()
    (root / "header.html").write_text("<h1>Hi</h1>")
    (root / "home.dnaweb").write_text(
        "<!--@ include header.html -->Hello<!--@ output index.html -->"
    )
    return root


@pytest.fixture
def write_file(site: Path) -> Callable[[str, str], Path]:
    """Write a file below the site root, creating directories as needed."""

    def _write(relative: str, content: str) -> Path:
        path = site / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def watchers() -> list[FakeWatcher]:
    """Watchers created by the engine under test."""
    return []


@pytest.fixture
def watcher_factory(watchers: list[FakeWatcher]) -> Callable[..., FakeWatcher]:
    """Factory recording each FakeWatcher it builds."""

    def _factory(**kwargs: Any) -> FakeWatcher:
        watcher = FakeWatcher(**kwargs)
        watchers.append(watcher)
        return watcher

    return _factory


@pytest.fixture
def make_engine(site: Path, watcher_factory: Callable[..., FakeWatcher]) -> Callable[..., Engine]:
    """Build an engine monitoring the site with fake watchers."""

    def _make(engine_cls: type[Engine] = Engine, **overrides: Any) -> Engine:
        values: dict[str, Any] = {
            "base_dir": site,
            "extensions": [".dnaweb"],
            "process_delay_ms": 20,
        }
        values.update(overrides)
        return engine_cls(
            settings=EngineSettings(**values),
            watcher_factory=watcher_factory,
            ignore_patterns=[],
        )

    return _make


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()
