"""
AlertSink and ErrorCounter protocols - interfaces for execution side effects.

Design Principle: Dependency Inversion (SOLID)
The Executor depends on these abstractions, never on a concrete toast
system or metrics backend. Hosts inject whatever they have (a UI
notification queue, a metrics client); tests inject recording fakes.

Design Principle: Interface Segregation (SOLID)
Each protocol has a single method. Both sinks are append-only or
increment-only, so they need no locking under the single-threaded
event loop model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from pypraxis.models.status import AlertKind

DEFAULT_SUCCESS_TITLE = "Success"
DEFAULT_ERROR_TITLE = "Error"
DEFAULT_SUCCESS_MESSAGE = "Operation completed successfully"


@dataclass(frozen=True)
class Alert:
    """
    A user-visible message.

    Attributes:
        kind: SUCCESS or ERROR
        title: Short heading
        message: Body text
        persistent: True if the message should stay until dismissed
    """

    kind: AlertKind
    title: str
    message: str
    persistent: bool = False

    @classmethod
    def success(cls, message: str = DEFAULT_SUCCESS_MESSAGE) -> Alert:
        return cls(kind=AlertKind.SUCCESS, title=DEFAULT_SUCCESS_TITLE, message=message)

    @classmethod
    def error(cls, message: str) -> Alert:
        return cls(
            kind=AlertKind.ERROR, title=DEFAULT_ERROR_TITLE, message=message, persistent=True
        )


@runtime_checkable
class AlertSink(Protocol):
    """Destination for user-visible success and error messages."""

    def notify(self, alert: Alert) -> None:
        """Dispatch one alert. Must not block."""
        ...


@runtime_checkable
class ErrorCounter(Protocol):
    """Process-wide failure counter used for observability."""

    def increment(self) -> None:
        """Record one failed attempt."""
        ...


class LoggingAlertSink:
    """Alert sink that writes alerts to a logger.

    Default sink for hosts without a UI. Success alerts log at INFO and
    error alerts at WARNING.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger("pypraxis.alerts")

    def notify(self, alert: Alert) -> None:
        level = logging.INFO if alert.kind == AlertKind.SUCCESS else logging.WARNING
        self._logger.log(level, f"[{alert.title}] {alert.message}")

    def __repr__(self) -> str:
        return f"LoggingAlertSink(logger={self._logger.name!r})"


class NullAlertSink:
    """Alert sink that discards every alert."""

    def notify(self, alert: Alert) -> None:
        return None

    def __repr__(self) -> str:
        return "NullAlertSink"
