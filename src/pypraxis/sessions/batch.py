"""Batch runner.

Runs an operation once per input item, a bounded chunk at a time:

1. Split items into chunks of batch_size
2. Run every item of a chunk concurrently through the Executor
3. Wait for the whole chunk to settle before starting the next
4. Sleep delay_between_batches_ms between chunks (not after the last)

Per-item error alerts are suppressed; the caller presents the returned
BatchOutcome instead. Progress is reported after every item.

With stop_on_error, the first failure cancels the other items of its
chunk, skips the remaining chunks, and raises BatchAbortedError carrying
the partial outcome.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Generic, TypeVar

from pypraxis.executor.instance import Executor
from pypraxis.executor.outcome import Failed, Succeeded
from pypraxis.models.cancellation import CancellationToken
from pypraxis.models.errors import BatchAbortedError
from pypraxis.models.state import BatchItemOutcome, BatchJob, BatchOutcome
from pypraxis.sessions.handle import SessionHandle, reject_token_option

logger = logging.getLogger(__name__)

TIn = TypeVar("TIn")
TOut = TypeVar("TOut")

ProgressCallback = Callable[[int, int], Any]


class BatchRunner(SessionHandle, Generic[TIn, TOut]):
    """Execute an operation over many items with bounded concurrency.

    Example:
        ```python
        async def import_visitor(row: dict, *, token: CancellationToken) -> Visitor:
            return await client.post("/visitors", json=row)

        runner = BatchRunner(import_visitor, batch_size=10, retries=1)
        outcome = await runner.execute_batch(rows, on_progress=progress_bar.update)
        print(f"{outcome.successful}/{outcome.total} imported")
        ```
    """

    def __init__(
        self,
        operation: Callable[..., Awaitable[TOut]],
        *,
        executor: Executor | None = None,
        batch_size: int | None = None,
        delay_between_batches_ms: float | None = None,
        stop_on_error: bool = False,
        **options: Any,
    ):
        super().__init__(executor)
        reject_token_option(options)
        settings = self._executor.settings
        self._operation = operation
        self._batch_size = batch_size or settings.batch_size
        self._delay_between_batches_ms = (
            settings.delay_between_batches_ms
            if delay_between_batches_ms is None
            else delay_between_batches_ms
        )
        self._stop_on_error = stop_on_error
        self._options = options

        self._loading = False
        self._progress = 0.0
        self._results: list[BatchItemOutcome[TIn, TOut]] = []
        self._errors: list[BatchItemOutcome[TIn, TOut]] = []
        self._last_outcome: BatchOutcome[TIn, TOut] | None = None

    @property
    def batch_size(self) -> int:
        """Default chunk size for execute_batch()."""
        return self._batch_size

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def progress(self) -> float:
        """Percentage of items settled in the current or last batch."""
        return self._progress

    @property
    def results(self) -> tuple[BatchItemOutcome[TIn, TOut], ...]:
        """Successful items settled so far, in completion order."""
        return tuple(self._results)

    @property
    def errors(self) -> tuple[BatchItemOutcome[TIn, TOut], ...]:
        """Failed items settled so far, in completion order."""
        return tuple(self._errors)

    @property
    def last_outcome(self) -> BatchOutcome[TIn, TOut] | None:
        return self._last_outcome

    async def execute_batch(
        self,
        items: Iterable[TIn],
        *,
        batch_size: int | None = None,
        delay_between_batches_ms: float | None = None,
        stop_on_error: bool | None = None,
        on_progress: ProgressCallback | None = None,
        **options: Any,
    ) -> BatchOutcome[TIn, TOut]:
        """
        Run the operation over items.

        Args:
            items: Inputs, each passed as the operation's first argument
            batch_size: Items per chunk (default from construction)
            delay_between_batches_ms: Pause between chunks
            stop_on_error: Abort on the first failure
            on_progress: Called as on_progress(processed, total) after
                each item settles (may be async)
            **options: Executor.execute() options for every item
                (all but cancellation_token)

        Returns:
            BatchOutcome with per-item results ordered by input position

        Raises:
            ValueError: If batch_size < 1 or the delay is negative
            BatchAbortedError: If stop_on_error and an item failed
            Exception: Whatever on_progress or an item callback raised,
                after the rest of that chunk was cancelled and awaited
        """
        job: BatchJob[TIn] = BatchJob(
            items=tuple(items),
            batch_size=self._batch_size if batch_size is None else batch_size,
            delay_between_batches_ms=(
                self._delay_between_batches_ms
                if delay_between_batches_ms is None
                else delay_between_batches_ms
            ),
            stop_on_error=self._stop_on_error if stop_on_error is None else stop_on_error,
        )
        reject_token_option(options)
        item_options = {**self._options, **options, "show_error_message": False}
        requested = len(job.items)
        chunks = job.chunks()

        # Accumulator the outcome is built from, independent of observable state
        settled: list[BatchItemOutcome[TIn, TOut]] = []
        first_failure: list[BatchItemOutcome[TIn, TOut]] = []

        self._loading = True
        self._progress = 0.0
        self._results = []
        self._errors = []

        async def run_item(
            index: int, item: TIn, token: CancellationToken, siblings: list[CancellationToken]
        ) -> None:
            outcome = await self._execute(
                lambda t: self._operation(item, token=t), token, **item_options
            )
            match outcome:
                case Succeeded(value=value, attempts=attempts):
                    record = BatchItemOutcome(
                        item=item, index=index, success=True, result=value, attempts=attempts
                    )
                    self._results.append(record)
                case Failed(error=error, attempts=attempts):
                    record = BatchItemOutcome(
                        item=item, index=index, success=False, error=error, attempts=attempts
                    )
                    self._errors.append(record)
                case _:
                    # Cancelled items count as skipped
                    return

            settled.append(record)
            self._progress = len(settled) / requested * 100
            if on_progress is not None:
                result = on_progress(len(settled), requested)
                if inspect.isawaitable(result):
                    await result

            if not record.success and job.stop_on_error and not first_failure:
                first_failure.append(record)
                for sibling in siblings:
                    sibling.cancel("batch aborted")

        try:
            offset = 0
            for number, chunk in enumerate(chunks, start=1):
                logger.debug(
                    f"BatchRunner {self.session_id}: chunk {number}/{len(chunks)} "
                    f"({len(chunk)} items)"
                )
                tokens = [self._new_token() for _ in chunk]
                tasks = [
                    asyncio.create_task(run_item(offset + position, item, token, tokens))
                    for position, (item, token) in enumerate(zip(chunk, tokens, strict=True))
                ]
                try:
                    await asyncio.gather(*tasks)
                except BaseException:
                    # A callback raised (or the caller cancelled): stop the rest of the chunk
                    for token in tokens:
                        token.cancel("batch aborted")
                    await asyncio.gather(*tasks, return_exceptions=True)
                    raise
                offset += len(chunk)

                if first_failure:
                    failure = first_failure[0]
                    outcome = BatchOutcome.from_items(settled, requested, aborted=True)
                    self._last_outcome = outcome
                    logger.warning(
                        f"BatchRunner {self.session_id}: aborted at item {failure.index} "
                        f"({outcome.total}/{requested} settled): {failure.error}"
                    )
                    raise BatchAbortedError(outcome, failure.error, failure.item) from failure.error

                if number < len(chunks) and job.delay_between_batches_ms > 0:
                    await asyncio.sleep(job.delay_between_batches_ms / 1000.0)
        finally:
            self._loading = False

        outcome = BatchOutcome.from_items(settled, requested)
        self._last_outcome = outcome
        logger.info(
            f"BatchRunner {self.session_id}: {outcome.successful}/{outcome.total} succeeded, "
            f"{outcome.failed} failed"
        )
        return outcome

    def reset(self) -> None:
        """Clear progress and the per-item results of the last batch."""
        self._progress = 0.0
        self._results = []
        self._errors = []
        self._last_outcome = None
