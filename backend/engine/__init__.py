"""
TagWeave Engine Package.

Lifecycle, event delivery and per-file processing.
Requires Python 3.11+.
"""

from engine.errors import EngineError, EngineStateError, InvalidConfigurationError
from engine.events import (
    EngineEvent,
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
from engine.engine import Engine, EngineState

__all__ = [
    # Engine
    "Engine",
    "EngineState",
    # Events
    "EngineEvent",
    "EventBus",
    "LogMessage",
    "LogSeverity",
    "ProcessFailed",
    "ProcessSucceeded",
    "Started",
    "StartedWatching",
    "Stopped",
    "StoppedWatching",
    # Errors
    "EngineError",
    "EngineStateError",
    "InvalidConfigurationError",
]
