"""Tests for alert sinks and the error counter."""

import logging

from pypraxis import (
    Alert,
    AlertKind,
    AlertSink,
    ErrorCounter,
    InMemoryErrorCounter,
    LoggingAlertSink,
    NullAlertSink,
    RecordingAlertSink,
)


def test_alert_factories():
    success = Alert.success()
    error = Alert.error("Badge printer offline")

    assert success == Alert(AlertKind.SUCCESS, "Success", "Operation completed successfully")
    assert error.kind == AlertKind.ERROR
    assert error.title == "Error"
    assert error.persistent is True


def test_sinks_satisfy_protocols():
    assert isinstance(LoggingAlertSink(), AlertSink)
    assert isinstance(NullAlertSink(), AlertSink)
    assert isinstance(RecordingAlertSink(), AlertSink)
    assert isinstance(InMemoryErrorCounter(), ErrorCounter)


def test_recording_sink():
    sink = RecordingAlertSink()
    sink.notify(Alert.success("saved"))
    sink.notify(Alert.error("failed"))

    assert len(sink) == 2
    assert [a.message for a in sink.successes] == ["saved"]
    assert [a.message for a in sink.errors] == ["failed"]

    sink.clear()
    assert len(sink) == 0


def test_logging_sink_levels(caplog):
    sink = LoggingAlertSink()

    with caplog.at_level(logging.INFO, logger="pypraxis.alerts"):
        sink.notify(Alert.success("saved"))
        sink.notify(Alert.error("failed"))

    levels = [(r.levelno, r.getMessage()) for r in caplog.records if r.name == "pypraxis.alerts"]
    assert levels == [(logging.INFO, "[Success] saved"), (logging.WARNING, "[Error] failed")]


def test_error_counter():
    counter = InMemoryErrorCounter()
    counter.increment()
    counter.increment()

    assert counter.count == 2
    counter.reset()
    assert counter.count == 0
