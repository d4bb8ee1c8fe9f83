"""
Executor - runs one operation with retry, cancellation, and side effects.

Every session delegates to an Executor. The Executor owns the retry loop
and the backoff waits; sessions only see the terminal ExecutionOutcome.

Algorithm for one execute() call:
1. Invoke the operation with the cancellation token
2. Success: optional success alert, on_success, return Succeeded
3. Cancellation: return Cancelled with no side effects
4. Failure: count it, ask the strategy if it is transient
   - transient and budget left: wait retry_delay, re-check the token, retry
   - otherwise: optional error alert, on_error, return Failed

Design: Injected Collaborators
The alert sink and error counter are constructor arguments, not module
globals, so tests substitute recording fakes and hosts wire their own
notification and metrics systems.
"""

from __future__ import annotations

import inspect
import logging
from collections import Counter
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from uuid_extensions import uuid7

from pypraxis.executor.outcome import Cancelled, ExecutionOutcome, Failed, Succeeded
from pypraxis.models.cancellation import CancellationToken
from pypraxis.models.retry import RetryStrategy
from pypraxis.models.status import ErrorKind
from pypraxis.settings import Settings
from pypraxis.sinks.base import Alert, AlertSink, ErrorCounter, LoggingAlertSink
from pypraxis.sinks.memory import InMemoryErrorCounter

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[CancellationToken], Awaitable[T]]
"""An operation takes a cancellation token and returns an awaitable result."""

Callback = Callable[[Any], Any]


class Executor:
    """
    Execute operations with retry-with-backoff and cooperative cancellation.

    Default configuration works out of the box; builder methods customize it.

    Usage:
        executor = Executor() \\
            .with_alert_sink(toasts) \\
            .with_retry_policy(RetryPolicy.STANDARD)

        outcome = await executor.execute(fetch_widgets, retries=2)
        if is_succeeded(outcome):
            render(outcome.value)

    A single Executor may be shared between sessions. cancel() cancels
    every run currently in flight on this Executor.
    """

    def __init__(
        self,
        alert_sink: AlertSink | None = None,
        error_counter: ErrorCounter | None = None,
        retry_policy: RetryStrategy | None = None,
        settings: Settings | None = None,
    ):
        """Initialize executor with its collaborators.

        Args:
            alert_sink: Destination for success/error messages
                (default LoggingAlertSink)
            error_counter: Failure counter (default InMemoryErrorCounter)
            retry_policy: Retry strategy (default built from settings)
            settings: Library defaults (default Settings())
        """
        self._settings = settings or Settings()
        self._alert_sink: AlertSink = alert_sink or LoggingAlertSink()
        self._error_counter: ErrorCounter = error_counter or InMemoryErrorCounter()
        self._retry_policy: RetryStrategy = retry_policy or self._settings.retry_policy()
        # Runs per token; callers may share one token between concurrent runs
        self._in_flight: Counter[CancellationToken] = Counter()

    # =========================================================================
    # Builder methods
    # =========================================================================

    def with_alert_sink(self, alert_sink: AlertSink) -> Executor:
        """Set the alert sink (builder pattern)."""
        self._alert_sink = alert_sink
        return self

    def with_error_counter(self, error_counter: ErrorCounter) -> Executor:
        """Set the error counter (builder pattern)."""
        self._error_counter = error_counter
        return self

    def with_retry_policy(self, retry_policy: RetryStrategy) -> Executor:
        """Set the default retry strategy (builder pattern)."""
        self._retry_policy = retry_policy
        return self

    def with_settings(self, settings: Settings) -> Executor:
        """Replace settings and rebuild the default retry policy from them."""
        self._settings = settings
        self._retry_policy = settings.retry_policy()
        return self

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def alert_sink(self) -> AlertSink:
        return self._alert_sink

    @property
    def error_counter(self) -> ErrorCounter:
        return self._error_counter

    @property
    def retry_policy(self) -> RetryStrategy:
        return self._retry_policy

    @property
    def in_flight(self) -> int:
        """Number of runs currently executing on this Executor."""
        return self._in_flight.total()

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute(
        self,
        operation: Operation[T],
        *,
        retries: int | None = None,
        retry_delay_base_ms: float | None = None,
        retry_policy: RetryStrategy | None = None,
        on_success: Callback | None = None,
        on_error: Callback | None = None,
        show_success_message: bool = False,
        success_message: str | None = None,
        show_error_message: bool = True,
        skip_error_dispatch: bool = False,
        cancellation_token: CancellationToken | None = None,
    ) -> ExecutionOutcome[T]:
        """
        Run operation until it succeeds, fails terminally, or is cancelled.

        Args:
            operation: Async callable receiving the cancellation token
            retries: Retry budget; defaults to the strategy's max_retries
                attribute, then to settings.default_retries
            retry_delay_base_ms: If positive, wait retry_delay_base_ms * attempt
                between attempts instead of the strategy's schedule; None or 0
                uses the strategy
            retry_policy: Strategy for this call only
            on_success: Called with the value on success (may be async)
            on_error: Called with the error on terminal failure (may be async)
            show_success_message: Send a success alert on success
            success_message: Text of the success alert
            show_error_message: Send a persistent error alert on failure
            skip_error_dispatch: Do not increment the error counter
            cancellation_token: Token shared with the caller; a fresh one
                is created if omitted

        Returns:
            Succeeded, Failed, or Cancelled. attempts is always between 1
            and retries + 1.
        """
        strategy = retry_policy or self._retry_policy
        max_retries = self._resolve_retries(retries, strategy)
        token = cancellation_token or CancellationToken()
        execution_id = str(uuid7())

        self._in_flight[token] += 1
        try:
            if token.is_cancelled:
                logger.debug(f"Execution {execution_id}: token cancelled before first attempt")
                return Cancelled(reason=token.reason or "cancelled", attempts=1)

            attempt = 0
            while True:
                attempt += 1
                logger.debug(
                    f"Execution {execution_id}: attempt {attempt}/{max_retries + 1} starting"
                )

                try:
                    value = await operation(token)
                except Exception as error:
                    if _is_cancellation(error, token):
                        reason = token.reason or getattr(error, "reason", None) or "cancelled"
                        logger.debug(
                            f"Execution {execution_id}: cancelled on attempt {attempt} ({reason})"
                        )
                        return Cancelled(reason=reason, attempts=attempt)

                    if not skip_error_dispatch:
                        self._error_counter.increment()

                    transient = strategy.is_retryable(error, attempt, max_retries)

                    if transient and attempt <= max_retries:
                        delay_ms = self._retry_delay(strategy, retry_delay_base_ms, attempt, error)
                        logger.warning(
                            f"Execution {execution_id}: attempt {attempt}/{max_retries + 1} "
                            f"failed ({type(error).__name__}: {error}), "
                            f"retrying in {delay_ms:.0f}ms"
                        )
                        if await token.sleep(delay_ms):
                            logger.debug(
                                f"Execution {execution_id}: cancelled during backoff "
                                f"after attempt {attempt}"
                            )
                            return Cancelled(reason=token.reason or "cancelled", attempts=attempt)
                        continue

                    error_kind = ErrorKind.EXHAUSTED if transient else ErrorKind.TERMINAL
                    logger.warning(
                        f"Execution {execution_id}: failed after {attempt} attempt(s) "
                        f"[{error_kind}] {type(error).__name__}: {error}"
                    )

                    if show_error_message:
                        self._alert_error(error)
                    await invoke_callback(on_error, error)
                    return Failed(error=error, attempts=attempt, error_kind=error_kind)

                if token.is_cancelled:
                    # Result arrived after cancellation: discard it
                    logger.debug(
                        f"Execution {execution_id}: discarding result that settled after cancel"
                    )
                    return Cancelled(reason=token.reason or "cancelled", attempts=attempt)

                logger.debug(f"Execution {execution_id}: succeeded on attempt {attempt}")
                if show_success_message:
                    self._alert_sink.notify(
                        Alert.success(success_message or self._settings.success_message)
                    )
                await invoke_callback(on_success, value)
                return Succeeded(value=value, attempts=attempt)
        finally:
            self._in_flight[token] -= 1
            if self._in_flight[token] <= 0:
                del self._in_flight[token]

    def cancel(self, reason: str = "cancelled") -> int:
        """
        Cancel every run currently in flight on this Executor.

        Args:
            reason: Reason recorded on each token

        Returns:
            Number of tokens this call cancelled
        """
        cancelled = sum(1 for token in list(self._in_flight) if token.cancel(reason))
        if cancelled:
            logger.debug(f"Executor cancelled {cancelled} in-flight run(s): {reason}")
        return cancelled

    # =========================================================================
    # Helpers
    # =========================================================================

    def _resolve_retries(self, retries: int | None, strategy: RetryStrategy) -> int:
        if retries is None:
            retries = getattr(strategy, "max_retries", None)
        if retries is None:
            retries = self._settings.default_retries
        if retries < 0:
            raise ValueError(f"retries must be >= 0, got {retries}")
        return retries

    @staticmethod
    def _retry_delay(
        strategy: RetryStrategy,
        retry_delay_base_ms: float | None,
        attempt: int,
        error: BaseException,
    ) -> float:
        if retry_delay_base_ms:
            return retry_delay_base_ms * attempt
        return strategy.retry_delay(attempt, error)

    def _alert_error(self, error: BaseException) -> None:
        message = getattr(error, "user_message", None) or str(error)
        if message:
            self._alert_sink.notify(Alert.error(message))

    def __repr__(self) -> str:
        return (
            f"Executor(alert_sink={self._alert_sink!r}, "
            f"error_counter={self._error_counter!r}, retry_policy={self._retry_policy!r})"
        )


def _is_cancellation(error: BaseException, token: CancellationToken) -> bool:
    """A failure is a cancellation if it says so or the token already fired."""
    return token.is_cancelled or getattr(error, "is_cancellation", False) is True


async def invoke_callback(callback: Callback | None, argument: Any) -> None:
    """Call a sync or async callback; its exceptions propagate."""
    if callback is None:
        return
    result = callback(argument)
    if inspect.isawaitable(result):
        await result
