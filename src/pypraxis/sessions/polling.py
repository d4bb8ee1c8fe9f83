"""Poll session.

Repeats one operation on a fixed wall-clock period until stopped. Tick k
fires at start + k * interval regardless of how long cycles take. A tick
that fires while the previous cycle is still in flight is skipped, so a
slow backend never accumulates overlapping requests.

Cycles never raise alerts: failures are recorded in ``error`` and the
previous ``data`` is kept.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from pypraxis.executor.instance import Executor
from pypraxis.executor.outcome import Failed, Succeeded
from pypraxis.models.cancellation import CancellationToken
from pypraxis.models.errors import SessionDisposedError
from pypraxis.sessions.handle import SessionHandle, reject_token_option

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PollSession(SessionHandle, Generic[T]):
    """Poll an operation every interval_ms milliseconds.

    The operation takes only the keyword argument ``token``:

        ```python
        async def fetch_occupancy(*, token: CancellationToken) -> Occupancy:
            return await client.get("/occupancy")

        occupancy = PollSession(fetch_occupancy, interval_ms=10_000)
        occupancy.start_polling()
        ...
        occupancy.dispose()  # stops the timer
        ```
    """

    def __init__(
        self,
        operation: Callable[..., Awaitable[T]],
        *,
        executor: Executor | None = None,
        interval_ms: float | None = None,
        immediate: bool = False,
        **options: Any,
    ):
        """
        Args:
            operation: Async callable ``operation(token=token)``
            executor: Executor to run cycles on (default: a new Executor)
            interval_ms: Period between ticks (default settings.poll_interval_ms)
            immediate: Call start_polling() now; requires a running event loop
            **options: Executor.execute() options for every cycle
                (all but cancellation_token)

        Raises:
            ValueError: If interval_ms <= 0 or options name cancellation_token
        """
        super().__init__(executor)
        reject_token_option(options)
        self._operation = operation
        self._interval_ms = (
            self._executor.settings.poll_interval_ms if interval_ms is None else interval_ms
        )
        if self._interval_ms <= 0:
            raise ValueError(f"interval_ms must be > 0, got {self._interval_ms}")
        self._options = {**options, "show_error_message": False}

        self._data: T | None = None
        self._error: BaseException | None = None
        self._last_updated_at: datetime | None = None
        self._timer: asyncio.Task | None = None
        self._cycle: asyncio.Task | None = None
        self._cycle_token: CancellationToken | None = None
        self._stale_cycles: set[asyncio.Task] = set()
        self.cycles = 0
        self.skipped_ticks = 0

        if immediate:
            self.start_polling()

    @property
    def data(self) -> T | None:
        return self._data

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def last_updated_at(self) -> datetime | None:
        """UTC time of the last successful cycle."""
        return self._last_updated_at

    @property
    def interval_ms(self) -> float:
        return self._interval_ms

    @property
    def is_polling(self) -> bool:
        return self._timer is not None

    @property
    def in_flight(self) -> bool:
        """True while a cycle is running."""
        return self._cycle is not None and not self._cycle.done()

    def start_polling(self) -> bool:
        """
        Run one cycle now, then one every interval_ms.

        Returns:
            False if already polling (no second timer is started)

        Raises:
            SessionDisposedError: If the session was disposed
        """
        if self._timer is not None:
            return False
        if not self.is_alive:
            raise SessionDisposedError(f"PollSession {self.session_id} has been disposed")
        self._timer = asyncio.create_task(self._run_timer())
        logger.info(f"PollSession {self.session_id}: polling every {self._interval_ms}ms")
        return True

    def stop_polling(self) -> bool:
        """
        Stop the timer and cancel the in-flight cycle. Safe to call repeatedly.

        Returns:
            False if polling was not active
        """
        if self._timer is None:
            return False
        self._timer.cancel()
        self._timer = None
        if self._cycle_token is not None:
            self._cycle_token.cancel("polling stopped")
        # A cancelled cycle may still be settling; it no longer blocks ticks or refresh()
        if self.in_flight:
            self._stale_cycles.add(self._cycle)
            self._cycle.add_done_callback(self._stale_cycles.discard)
        self._cycle = None
        self._cycle_token = None
        logger.info(f"PollSession {self.session_id}: polling stopped")
        return True

    async def refresh(self) -> T | None:
        """
        Run a cycle now, or join the one already in flight.

        Works whether or not polling is active.

        Returns:
            data after the cycle settles
        """
        if not self.in_flight:
            self._start_cycle()
        await asyncio.shield(self._cycle)
        return self._data

    def dispose(self) -> None:
        self.stop_polling()
        super().dispose()

    async def _run_timer(self) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        interval = self._interval_ms / 1000.0
        self._tick()
        tick = 0
        while True:
            tick += 1
            await asyncio.sleep(max(0.0, started + tick * interval - loop.time()))
            self._tick()

    def _tick(self) -> None:
        if self.in_flight:
            self.skipped_ticks += 1
            logger.debug(
                f"PollSession {self.session_id}: tick skipped, previous cycle still running"
            )
            return
        self._start_cycle()

    def _start_cycle(self) -> None:
        token = self._new_token()
        self._cycle_token = token
        self._cycle = asyncio.create_task(self._run_cycle(token))

    async def _run_cycle(self, token: CancellationToken) -> None:
        self.cycles += 1
        try:
            outcome = await self._execute(
                lambda t: self._operation(token=t), token, **self._options
            )
        except Exception as e:
            # Raised by an on_success/on_error callback
            logger.warning(f"PollSession {self.session_id}: cycle callback failed: {e}")
            if self._accepts(token):
                self._error = e
            return

        if not self._accepts(token):
            return
        match outcome:
            case Succeeded(value=value):
                self._data = value
                self._error = None
                self._last_updated_at = datetime.now(UTC)
            case Failed(error=error):
                self._error = error
                logger.debug(f"PollSession {self.session_id}: cycle failed: {error}")
