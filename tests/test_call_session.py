"""Tests for CallSession state handling, retry, reset, and background calls."""

import asyncio
from datetime import UTC

import pytest

from pypraxis import CallSession, CallState, HttpStatusError, SessionDisposedError


@pytest.mark.asyncio
async def test_call_stores_transformed_data(executor):
    """call() applies transform, stores the result, and returns it."""
    received = []

    async def fetch_visitor(visitor_id, *, token):
        received.append(visitor_id)
        return {"id": visitor_id, "name": "Ada"}

    session = CallSession(fetch_visitor, executor=executor, transform=lambda v: v["name"])

    result = await session.call(7)

    assert result == "Ada"
    assert received == [7]
    assert session.data == "Ada"
    assert session.loading is False
    assert session.error is None
    assert session.state.last_executed_at is not None
    assert session.state.last_executed_at.tzinfo == UTC


@pytest.mark.asyncio
async def test_loading_true_while_in_flight(executor):
    gate = asyncio.Event()

    async def slow(*, token):
        await gate.wait()
        return 1

    session = CallSession(slow, executor=executor)
    task = asyncio.create_task(session.call())
    await asyncio.sleep(0)

    assert session.loading is True
    gate.set()
    await task
    assert session.loading is False


@pytest.mark.asyncio
async def test_failure_recorded_and_raised(executor, alert_sink):
    """A failed call sets error, keeps old data, and raises."""
    responses = iter([{"ok": True}])

    async def fetch(*, token):
        try:
            return next(responses)
        except StopIteration:
            raise HttpStatusError(404, "not found") from None

    session = CallSession(fetch, executor=executor)
    await session.call()

    with pytest.raises(HttpStatusError):
        await session.call()

    assert session.data == {"ok": True}
    assert isinstance(session.error, HttpStatusError)
    assert session.loading is False
    assert len(alert_sink.errors) == 1


@pytest.mark.asyncio
async def test_new_call_clears_error(executor):
    fail = True

    async def fetch(*, token):
        if fail:
            raise ValueError("first")
        return "second"

    session = CallSession(fetch, executor=executor)
    with pytest.raises(ValueError):
        await session.call()
    assert session.error is not None

    fail = False
    assert await session.call() == "second"
    assert session.error is None


@pytest.mark.asyncio
async def test_retry_reuses_last_arguments(executor):
    calls = []

    async def fetch(page, *, token, size=10):
        calls.append((page, size))
        return len(calls)

    session = CallSession(fetch, executor=executor)
    await session.call(3, size=50)
    await session.retry()

    assert calls == [(3, 50), (3, 50)]


@pytest.mark.asyncio
async def test_session_options_passed_to_executor(executor):
    """Construction options such as retries apply to every call."""
    attempts = []

    async def fetch(*, token):
        attempts.append(1)
        if len(attempts) < 3:
            raise ConnectionError("reset by peer")
        return "ok"

    session = CallSession(fetch, executor=executor, retries=2)

    assert await session.call() == "ok"
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_on_success_receives_transformed_data(executor):
    seen = []

    async def fetch(*, token):
        return 2

    session = CallSession(
        fetch, executor=executor, transform=lambda v: v * 10, on_success=seen.append
    )
    await session.call()

    assert seen == [20]


@pytest.mark.asyncio
async def test_reset_cancels_and_clears(executor, blocking_operation):
    """reset() cancels the in-flight call; its late settle changes nothing."""

    async def fetch(*, token):
        return await blocking_operation(token)

    session = CallSession(fetch, executor=executor)
    task = asyncio.create_task(session.call())
    await blocking_operation.started.wait()

    session.reset()
    result = await task

    assert result is None
    assert session.state == CallState()


@pytest.mark.asyncio
async def test_immediate_call_runs_in_background(executor):
    calls = []

    async def fetch(*, token):
        calls.append(1)
        return "ready"

    session = CallSession(fetch, executor=executor, immediate=True)
    await session.wait_idle()

    assert calls == [1]
    assert session.data == "ready"


@pytest.mark.asyncio
async def test_dependency_change_retriggers(executor):
    calls = []

    async def fetch(*, token):
        calls.append(1)
        return len(calls)

    session = CallSession(fetch, executor=executor, immediate=True, dependencies=("a",))
    await session.wait_idle()

    assert session.update_dependencies("a") is False
    assert session.update_dependencies("b") is True
    await session.wait_idle()

    assert len(calls) == 2
    assert session.data == 2


@pytest.mark.asyncio
async def test_dependencies_ignored_without_immediate(executor):
    calls = []

    async def fetch(*, token):
        calls.append(1)

    session = CallSession(fetch, executor=executor, dependencies=(1,))

    assert session.update_dependencies(2) is False
    await session.wait_idle()
    assert calls == []


@pytest.mark.asyncio
async def test_background_failure_recorded_not_raised(executor):
    """A failing immediate call lands in state.error instead of escaping."""

    async def fetch(*, token):
        raise ValueError("backend down")

    session = CallSession(fetch, executor=executor, immediate=True, show_error_message=False)
    await session.wait_idle()

    assert isinstance(session.error, ValueError)


@pytest.mark.asyncio
async def test_disposed_session_rejects_calls(executor):
    async def fetch(*, token):
        return 1

    async with CallSession(fetch, executor=executor) as session:
        await session.call()

    assert session.is_alive is False
    with pytest.raises(SessionDisposedError):
        await session.call()


@pytest.mark.asyncio
async def test_dispose_discards_late_result(executor, blocking_operation):
    async def fetch(*, token):
        return await blocking_operation(token)

    session = CallSession(fetch, executor=executor)
    task = asyncio.create_task(session.call())
    await blocking_operation.started.wait()

    session.dispose()
    blocking_operation.release()

    assert await task is None
    assert session.data is None


@pytest.mark.asyncio
async def test_token_option_rejected(executor):
    async def fetch(*, token):
        return 1

    with pytest.raises(ValueError, match="cancellation_token"):
        CallSession(fetch, executor=executor, cancellation_token=object())
