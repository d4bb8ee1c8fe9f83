"""In-memory sink implementations.

RecordingAlertSink keeps every alert in order and InMemoryErrorCounter
keeps a running total. Both are usable immediately after __init__ and
can be substituted for production sinks without changing client code.
"""

from __future__ import annotations

from pypraxis.models.status import AlertKind
from pypraxis.sinks.base import Alert


class RecordingAlertSink:
    """Alert sink that records alerts for later inspection.

    Usage:
        sink = RecordingAlertSink()
        executor = Executor(alert_sink=sink)
        ...
        assert [a.kind for a in sink.alerts] == [AlertKind.ERROR]
    """

    def __init__(self) -> None:
        self.alerts: list[Alert] = []

    def notify(self, alert: Alert) -> None:
        self.alerts.append(alert)

    @property
    def errors(self) -> list[Alert]:
        return [a for a in self.alerts if a.kind == AlertKind.ERROR]

    @property
    def successes(self) -> list[Alert]:
        return [a for a in self.alerts if a.kind == AlertKind.SUCCESS]

    def clear(self) -> None:
        self.alerts.clear()

    def __len__(self) -> int:
        return len(self.alerts)

    def __repr__(self) -> str:
        return f"RecordingAlertSink(alerts={len(self.alerts)})"


class InMemoryErrorCounter:
    """Error counter holding its total in memory."""

    def __init__(self) -> None:
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def increment(self) -> None:
        self._count += 1

    def reset(self) -> None:
        self._count = 0

    def __repr__(self) -> str:
        return f"InMemoryErrorCounter(count={self._count})"
