"""
TagWeave Engine Events.

Typed events raised by the engine and a small publish/subscribe bus
delivering them to listeners.
Requires Python 3.11+.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from tags.models import ProcessResult
from utils.logger import LoggerMixin


class LogSeverity(str, Enum):
    """Severity of an engine log message."""

    DIAGNOSTIC = "diagnostic"
    INFORMATION = "information"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class EngineEvent:
    """Marker base class for all engine events."""


@dataclass(frozen=True)
class ProcessSucceeded(EngineEvent):
    """A file was processed successfully."""

    result: ProcessResult


@dataclass(frozen=True)
class ProcessFailed(EngineEvent):
    """A file failed to process."""

    result: ProcessResult


@dataclass(frozen=True)
class Started(EngineEvent):
    """The engine started."""


@dataclass(frozen=True)
class Stopped(EngineEvent):
    """The engine stopped."""


@dataclass(frozen=True)
class StartedWatching(EngineEvent):
    """The engine started watching an extension."""

    extension: str


@dataclass(frozen=True)
class StoppedWatching(EngineEvent):
    """The engine stopped watching an extension."""

    extension: str


@dataclass(frozen=True)
class LogMessage(EngineEvent):
    """A human-readable log entry raised by the engine."""

    title: str
    message: str = ""
    severity: LogSeverity = LogSeverity.DIAGNOSTIC
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Handler = Callable[[EngineEvent], Any]


@dataclass(eq=False)
class _Subscription:
    handler: Handler
    event_type: type[EngineEvent] | None


class EventBus(LoggerMixin):
    """
    Delivers engine events to subscribers in emission order.

    A subscriber can filter on one event type. A failing subscriber is
    logged and does not prevent delivery to the others.
    """

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []
        self._lock = threading.Lock()

    def subscribe(
        self,
        handler: Handler,
        event_type: type[EngineEvent] | None = None,
    ) -> Callable[[], None]:
        """
        Register a handler.

        Args:
            handler: Callable receiving each matching event
            event_type: Only deliver events of this type; None for all

        Returns:
            Callable that removes the subscription
        """
        subscription = _Subscription(handler=handler, event_type=event_type)
        with self._lock:
            self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            with self._lock:
                if subscription in self._subscriptions:
                    self._subscriptions.remove(subscription)

        return unsubscribe

    def publish(self, event: EngineEvent) -> None:
        """Deliver an event to every current subscriber."""
        with self._lock:
            subscriptions = list(self._subscriptions)

        for subscription in subscriptions:
            if subscription.event_type is not None and not isinstance(
                event, subscription.event_type
            ):
                continue
            try:
                subscription.handler(event)
            except Exception as e:
                self.log.error(
                    "event_handler_failed",
                    event_type=type(event).__name__,
                    error=str(e),
                )

    @property
    def subscriber_count(self) -> int:
        """Get number of subscribers."""
        with self._lock:
            return len(self._subscriptions)
