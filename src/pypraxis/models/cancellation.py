"""Cooperative cancellation token.

A CancellationToken is handed to every operation invocation. Operations
check it (or await it) and stop early when it fires; the Executor checks
it around every suspension point so a cancelled run never retries and
never reports a late result.

Design: One-Way Latch
    Once cancelled a token stays cancelled. The first reason wins;
    later cancel() calls are no-ops.
"""

import asyncio

from pypraxis.models.errors import OperationCancelled


class CancellationToken:
    """Cancel signal plus cancel reason, shared between caller and operation.

    Usage:
        ```python
        token = CancellationToken()

        async def fetch(token: CancellationToken) -> dict:
            token.raise_if_cancelled()
            return await client.get("/widgets")

        task = asyncio.create_task(executor.execute(fetch, cancellation_token=token))
        token.cancel("user navigated away")
        outcome = await task  # Cancelled(reason="user navigated away", ...)
        ```
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def is_cancelled(self) -> bool:
        """True once cancel() has been called."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        """Reason passed to the first cancel() call, None while live."""
        return self._reason

    def cancel(self, reason: str = "cancelled") -> bool:
        """Cancel the token.

        Args:
            reason: Human-readable cause, kept only for the first call

        Returns:
            True if this call cancelled the token, False if it already was
        """
        if self._event.is_set():
            return False
        self._reason = reason
        self._event.set()
        return True

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelled if the token has been cancelled."""
        if self._event.is_set():
            raise OperationCancelled(self._reason or "cancelled")

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

    async def sleep(self, delay_ms: float) -> bool:
        """Sleep for delay_ms unless the token is cancelled first.

        Used for backoff waits so a cancel requested mid-wait wakes the
        waiter immediately instead of after the full delay.

        Returns:
            True if the token was cancelled before or during the wait
        """
        if self._event.is_set():
            return True
        if delay_ms <= 0:
            # Still yield so other tasks (including a canceller) can run
            await asyncio.sleep(0)
            return self._event.is_set()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay_ms / 1000.0)
        except TimeoutError:
            return self._event.is_set()
        return True

    def __repr__(self) -> str:
        if self.is_cancelled:
            return f"CancellationToken(cancelled, reason={self._reason!r})"
        return "CancellationToken(live)"
