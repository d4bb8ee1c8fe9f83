"""Side-effect sinks consumed by the Executor.

Provides the collaborator interfaces and their stock implementations:
    - AlertSink / ErrorCounter: Protocols
    - LoggingAlertSink: Writes alerts to the pypraxis.alerts logger
    - NullAlertSink: Discards alerts
    - RecordingAlertSink: Keeps alerts in memory for testing
    - InMemoryErrorCounter: Counts failed attempts in memory

Design: Adapter Pattern + Dependency Inversion (SOLID)
    The Executor only sees the protocols, so hosts swap in their own
    notification and metrics systems without touching execution code.
"""

from pypraxis.sinks.base import (
    DEFAULT_ERROR_TITLE,
    DEFAULT_SUCCESS_MESSAGE,
    DEFAULT_SUCCESS_TITLE,
    Alert,
    AlertSink,
    ErrorCounter,
    LoggingAlertSink,
    NullAlertSink,
)
from pypraxis.sinks.memory import InMemoryErrorCounter, RecordingAlertSink

__all__ = [
    "Alert",
    "AlertSink",
    "ErrorCounter",
    "LoggingAlertSink",
    "NullAlertSink",
    "RecordingAlertSink",
    "InMemoryErrorCounter",
    "DEFAULT_SUCCESS_TITLE",
    "DEFAULT_ERROR_TITLE",
    "DEFAULT_SUCCESS_MESSAGE",
]
