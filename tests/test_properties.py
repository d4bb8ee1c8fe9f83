"""
Property-based tests for pypraxis using Hypothesis.

These tests generate many cases to check the guarantees of:
- The Executor's retry budget and attempt counting
- Paginated append/replace accounting
- Optimistic rollback
- Batch aggregation and stop-on-error accounting
- Backoff bounds
"""

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from pypraxis import (
    BatchAbortedError,
    BatchRunner,
    CallableRetryStrategy,
    Cancelled,
    CancellationToken,
    Executor,
    Failed,
    HttpStatusError,
    NullAlertSink,
    OptimisticSession,
    OptimisticState,
    PageState,
    PaginatedSession,
    RetryPolicy,
    Succeeded,
)

ZERO_DELAY = RetryPolicy(
    max_retries=0, initial_delay_ms=0, max_delay_ms=0, backoff_multiplier=1.0, jitter_ratio=0.0
)


def quiet_executor() -> Executor:
    return Executor(alert_sink=NullAlertSink(), retry_policy=ZERO_DELAY)


# ==============================================================================
# PROPERTY 1: Permanent failure makes exactly retries + 1 attempts
# ==============================================================================


@pytest.mark.property
@pytest.mark.asyncio
@given(retries=st.integers(min_value=0, max_value=8))
@settings(max_examples=50, deadline=None)
async def test_permanent_failure_attempts(retries):
    """
    Property: for maxRetries = n, a permanently failing transient
    operation is invoked exactly n + 1 times and yields Failed.
    """
    calls = 0

    async def operation(token):
        nonlocal calls
        calls += 1
        raise HttpStatusError(503)

    outcome = await quiet_executor().execute(operation, retries=retries)

    assert isinstance(outcome, Failed)
    assert outcome.attempts == retries + 1
    assert calls == retries + 1


# ==============================================================================
# PROPERTY 2: Success on attempt k stops retrying
# ==============================================================================


@pytest.mark.property
@pytest.mark.asyncio
@given(data=st.data())
@settings(max_examples=50, deadline=None)
async def test_success_on_attempt_k(data):
    """
    Property: an operation succeeding on attempt k <= n + 1 yields
    Succeeded with attempts == k and no further invocations.
    """
    retries = data.draw(st.integers(min_value=0, max_value=8), label="retries")
    k = data.draw(st.integers(min_value=1, max_value=retries + 1), label="k")
    calls = 0

    async def operation(token):
        nonlocal calls
        calls += 1
        if calls < k:
            raise ConnectionError("flaky")
        return calls

    outcome = await quiet_executor().execute(operation, retries=retries)

    assert outcome == Succeeded(value=k, attempts=k)
    assert calls == k


# ==============================================================================
# PROPERTY 3: Cancel during backoff ends the run
# ==============================================================================


@pytest.mark.property
@pytest.mark.asyncio
@given(failures_before_cancel=st.integers(min_value=1, max_value=3))
@settings(max_examples=10, deadline=None)
async def test_cancel_during_backoff(failures_before_cancel):
    """
    Property: cancelling while the Executor waits to retry yields Cancelled
    and performs no further invocations.
    """
    token = CancellationToken()
    calls = 0

    async def operation(t):
        nonlocal calls
        calls += 1
        if calls == failures_before_cancel:
            asyncio.get_running_loop().call_soon(token.cancel, "stop")
        raise ConnectionError("down")

    # Immediate retries until the cancelling attempt, then a long wait
    strategy = CallableRetryStrategy(
        predicate=lambda error, attempt, max_retries: True,
        schedule=lambda attempt, error: 0 if attempt < failures_before_cancel else 60_000,
    )
    executor = Executor(alert_sink=NullAlertSink(), retry_policy=strategy)

    outcome = await asyncio.wait_for(
        executor.execute(operation, retries=10, cancellation_token=token), timeout=5.0
    )

    assert outcome == Cancelled(reason="stop", attempts=failures_before_cancel)
    assert calls == failures_before_cancel


# ==============================================================================
# PROPERTY 4: Append vs replace accounting
# ==============================================================================


@pytest.mark.property
@pytest.mark.asyncio
@given(
    first=st.lists(st.integers(), max_size=15),
    second=st.lists(st.integers(), max_size=15),
)
@settings(max_examples=50, deadline=None)
async def test_append_and_replace_lengths(first, second):
    """
    Property: append mode yields len(page0) + len(page1) items after
    loading pages 0 and 1; replace mode yields len(page0) after loading
    page 0 twice.
    """
    pages = {0: first, 1: second}

    async def fetch(request, *, token):
        return {"items": pages[request.page_index], "totalCount": 100, "pageSize": 15}

    appending = PaginatedSession(fetch, executor=quiet_executor(), append_mode=True)
    await appending.load_page(0, 15)
    await appending.load_page(1, 15)
    assert len(appending.items) == len(first) + len(second)

    replacing = PaginatedSession(fetch, executor=quiet_executor())
    await replacing.load_page(0, 15)
    await replacing.load_page(0, 15)
    assert len(replacing.items) == len(first)


@pytest.mark.property
@given(
    total_count=st.integers(min_value=0, max_value=10_000),
    page_size=st.integers(min_value=1, max_value=500),
)
def test_total_pages_covers_all_items(total_count, page_size):
    """Property: derived page count holds every item with no empty page."""
    pages = PageState.derive_total_pages(total_count, page_size)

    assert pages * page_size >= total_count
    assert (pages - 1) * page_size < total_count or pages == 0


# ==============================================================================
# PROPERTY 5: Optimistic failure restores exactly the confirmed value
# ==============================================================================


@pytest.mark.property
@pytest.mark.asyncio
@given(confirmed=st.integers(), optimistic=st.integers())
@settings(max_examples=50, deadline=None)
async def test_optimistic_rollback(confirmed, optimistic):
    """Property: a failing optimistic call restores A, never B."""

    async def save(params, *, token):
        raise HttpStatusError(400, "rejected")

    session = OptimisticSession(save, executor=quiet_executor(), initial_data=confirmed)

    with pytest.raises(HttpStatusError):
        await session.execute_optimistic(optimistic)

    assert session.state == OptimisticState(confirmed=confirmed)


# ==============================================================================
# PROPERTY 6: Batch aggregation
# ==============================================================================


@pytest.mark.property
@pytest.mark.asyncio
@given(
    items=st.lists(st.integers(min_value=-100, max_value=100), max_size=30),
    batch_size=st.integers(min_value=1, max_value=8),
)
@settings(max_examples=50, deadline=None)
async def test_batch_counts(items, batch_size):
    """
    Property: successful + failed == total == len(items), results are in
    input order, and progress reaches 100 only with the last item.
    """
    progress = []

    async def process(item, *, token):
        if item < 0:
            raise ValueError("negative")
        return item

    runner = BatchRunner(process, executor=quiet_executor(), delay_between_batches_ms=0)
    outcome = await runner.execute_batch(
        items, batch_size=batch_size, on_progress=lambda done, total: progress.append(done)
    )

    assert outcome.successful + outcome.failed == outcome.total == len(items)
    assert outcome.failed == sum(1 for i in items if i < 0)
    assert [r.item for r in outcome.results] == [i for i in items if i >= 0]
    assert progress == list(range(1, len(items) + 1))


@pytest.mark.property
@pytest.mark.asyncio
@given(data=st.data())
@settings(max_examples=50, deadline=None)
async def test_stop_on_error_attempts_prefix(data):
    """
    Property: with batch_size 1 and stop_on_error, failing item k leaves
    exactly k items attempted and the rest skipped.
    """
    size = data.draw(st.integers(min_value=1, max_value=12), label="size")
    failing = data.draw(st.integers(min_value=0, max_value=size - 1), label="failing")
    attempted = []

    async def process(item, *, token):
        attempted.append(item)
        if item == failing:
            raise ValueError("stop here")
        return item

    runner = BatchRunner(process, executor=quiet_executor(), delay_between_batches_ms=0)

    with pytest.raises(BatchAbortedError) as excinfo:
        await runner.execute_batch(range(size), batch_size=1, stop_on_error=True)

    outcome = excinfo.value.outcome
    assert attempted == list(range(failing + 1))
    assert outcome.total == failing + 1
    assert outcome.skipped == size - failing - 1


# ==============================================================================
# PROPERTY 7: Backoff never exceeds the cap
# ==============================================================================


@pytest.mark.property
@given(
    attempt=st.integers(min_value=1, max_value=50),
    initial=st.integers(min_value=0, max_value=10_000),
    cap=st.integers(min_value=0, max_value=60_000),
    multiplier=st.floats(min_value=1.0, max_value=4.0),
    status=st.sampled_from([429, 500, 503]),
)
def test_backoff_capped(attempt, initial, cap, multiplier, status):
    policy = RetryPolicy(initial_delay_ms=initial, max_delay_ms=cap, backoff_multiplier=multiplier)

    delay = policy.retry_delay(attempt, HttpStatusError(status))

    assert 0 <= delay <= cap
