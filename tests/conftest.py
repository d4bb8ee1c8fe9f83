"""
Pytest configuration and fixtures for pypraxis tests.

Provides reusable fixtures for sinks, executors, and scripted operations.
"""

import asyncio
from dataclasses import dataclass, field

import pytest

from pypraxis import (
    CancellationToken,
    Executor,
    HttpStatusError,
    InMemoryErrorCounter,
    RecordingAlertSink,
    RetryPolicy,
)

# Retries immediately; keeps retry tests fast
ZERO_DELAY = RetryPolicy(
    max_retries=0, initial_delay_ms=0, max_delay_ms=0, backoff_multiplier=1.0, jitter_ratio=0.0
)


@pytest.fixture
def alert_sink() -> RecordingAlertSink:
    """Alert sink recording every alert."""
    return RecordingAlertSink()


@pytest.fixture
def error_counter() -> InMemoryErrorCounter:
    """Fresh error counter."""
    return InMemoryErrorCounter()


@pytest.fixture
def zero_delay_policy() -> RetryPolicy:
    """Default classification with no backoff delay."""
    return ZERO_DELAY


@pytest.fixture
def executor(alert_sink, error_counter, zero_delay_policy) -> Executor:
    """Executor wired to recording collaborators and zero-delay retries."""
    return Executor(
        alert_sink=alert_sink, error_counter=error_counter, retry_policy=zero_delay_policy
    )


# Scripted operations for reuse across tests


@dataclass
class FlakyOperation:
    """Operation failing a fixed number of times before succeeding.

    Raises error_factory() on the first `failures` invocations and returns
    `value` afterwards. A negative failure count never succeeds.
    """

    failures: int = 0
    value: object = "ok"
    error_factory: object = field(default=lambda: HttpStatusError(503, "service unavailable"))
    delay: float = 0.0
    calls: int = 0
    tokens: list = field(default_factory=list)

    async def __call__(self, token: CancellationToken):
        self.calls += 1
        self.tokens.append(token)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.failures < 0 or self.calls <= self.failures:
            raise self.error_factory()
        return self.value


@dataclass
class BlockingOperation:
    """Operation that waits on its token until released or cancelled.

    Raises OperationCancelled when the token fires; returns `value` once
    release() is called.
    """

    value: object = "done"
    calls: int = 0
    started: asyncio.Event = field(default_factory=asyncio.Event)
    released: asyncio.Event = field(default_factory=asyncio.Event)

    async def __call__(self, token: CancellationToken):
        self.calls += 1
        self.started.set()
        release = asyncio.ensure_future(self.released.wait())
        cancel = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({release, cancel}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            release.cancel()
            cancel.cancel()
        token.raise_if_cancelled()
        return self.value

    def release(self) -> None:
        self.released.set()


@pytest.fixture
def flaky_operation():
    """Factory for FlakyOperation instances."""
    return FlakyOperation


@pytest.fixture
def blocking_operation() -> BlockingOperation:
    """Operation that blocks until released or cancelled."""
    return BlockingOperation()


@pytest.fixture
def blocking_operation_factory():
    """Factory for BlockingOperation instances."""
    return BlockingOperation


@pytest.fixture
def page_response():
    """Builder for camelCase page responses."""
    return build_page_response


def build_page_response(page_index: int, page_size: int, total_count: int) -> dict:
    """Build a camelCase page response like a paging REST endpoint returns."""
    start = page_index * page_size
    stop = min(start + page_size, total_count)
    return {
        "items": list(range(start, stop)),
        "pageIndex": page_index,
        "pageSize": page_size,
        "totalCount": total_count,
    }

