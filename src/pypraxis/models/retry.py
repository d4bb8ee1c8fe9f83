"""
Retry policy configuration for operation execution.

Design Pattern: Strategy Pattern
RetryStrategy encapsulates the retry decision (is this error transient?)
and the backoff schedule (how long to wait?), so the Executor can retry
without knowing anything about transports or status codes.

RetryPolicy is the default strategy. It classifies errors the way the
HTTP layer reports them:
- Errors that declare is_retryable() decide for themselves
- HTTP 408/429/500/502/503/504 are transient
- Network failures (ConnectionError, TimeoutError) are transient
- Everything else is terminal

The retry budget itself (max_retries) is enforced by the Executor, not by
the strategy, so a custom predicate only has to classify errors.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, cast, runtime_checkable

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 429, 500, 502, 503, 504})
"""HTTP statuses treated as transient by the default policy."""

TOO_MANY_REQUESTS = 429


@runtime_checkable
class RetryStrategy(Protocol):
    """Contract for the external error-classification collaborator."""

    def is_retryable(self, error: BaseException, attempt: int, max_retries: int) -> bool:
        """Return True if error is transient and may be retried."""
        ...

    def retry_delay(self, attempt: int, error: BaseException) -> float:
        """Return milliseconds to wait before re-invoking after attempt."""
        ...


@dataclass(frozen=True)
class RetryPolicy:
    """
    Default retry strategy: status-code classification plus exponential backoff.

    Examples:
        # Simple: just specify the retry budget (uses standard delays)
        policy = RetryPolicy.with_max_retries(3)

        # Named policy: predefined sensible defaults
        policy = RetryPolicy.STANDARD

        # Custom policy: full control
        policy = RetryPolicy(
            max_retries=5,
            initial_delay_ms=500,
            max_delay_ms=10000,
            backoff_multiplier=2.0,
            jitter_ratio=0.0,
        )
    """

    max_retries: int = 0
    """Retries allowed after the first attempt.

    For example, max_retries = 2 means at most 3 invocations:
    - Attempt 1: immediate
    - Attempt 2: after retry_delay(1, error)
    - Attempt 3: after retry_delay(2, error)
    """

    initial_delay_ms: int = 1000
    """Delay before the first retry in milliseconds."""

    max_delay_ms: int = 30000
    """Upper bound for any single delay, including server retry hints."""

    backoff_multiplier: float = 2.0
    """Multiplier for exponential backoff.

    Each delay is min(initial_delay * backoff_multiplier^(attempt-1), max_delay).
    """

    jitter_ratio: float = 0.1
    """Up to this fraction of the delay is added as random jitter."""

    rate_limit_delay_ms: int = 5000
    """Linear step used for 429 responses: rate_limit_delay_ms * attempt."""

    retryable_statuses: frozenset[int] = RETRYABLE_STATUS_CODES
    """HTTP statuses treated as transient."""

    # =========================================================================
    # Predefined Policies
    # =========================================================================

    if TYPE_CHECKING:
        NONE: RetryPolicy
        STANDARD: RetryPolicy
        AGGRESSIVE: RetryPolicy
    else:
        NONE = cast("RetryPolicy", None)
        STANDARD = cast("RetryPolicy", None)
        AGGRESSIVE = cast("RetryPolicy", None)

    @classmethod
    def with_max_retries(cls, max_retries: int) -> RetryPolicy:
        """
        Create a policy with a custom retry budget (uses standard delays).

        Args:
            max_retries: Retries allowed after the first attempt

        Returns:
            RetryPolicy with standard delays
        """
        return cls(max_retries=max_retries)

    # =========================================================================
    # Classification
    # =========================================================================

    def is_retryable(self, error: BaseException, attempt: int, max_retries: int) -> bool:
        """
        Decide whether an error is transient.

        attempt and max_retries are accepted for protocol compatibility;
        the Executor enforces the budget.

        Args:
            error: Exception raised by the operation
            attempt: 1-based attempt that just failed
            max_retries: Retry budget of the current run

        Returns:
            True if the error is transient
        """
        declared = getattr(error, "is_retryable", None)
        if callable(declared):
            return bool(declared())
        if isinstance(declared, bool):
            return declared

        status = status_of(error)
        if status is not None:
            return status in self.retryable_statuses

        return isinstance(error, (ConnectionError, TimeoutError))

    # =========================================================================
    # Backoff
    # =========================================================================

    def delay_for_attempt(self, attempt: int) -> int:
        """
        Deterministic exponential delay for the retry after attempt.

        attempt=1 (first retry): multiplier^0 → initial_delay
        attempt=2 (second retry): multiplier^1 → initial_delay * multiplier

        Args:
            attempt: The 1-based attempt that just failed

        Returns:
            Delay in milliseconds, capped at max_delay_ms
        """
        exponent = max(attempt - 1, 0)
        delay_ms = self.initial_delay_ms * (self.backoff_multiplier**exponent)
        return int(min(delay_ms, self.max_delay_ms))

    def retry_delay(self, attempt: int, error: BaseException) -> float:
        """
        Milliseconds to wait before the retry that follows attempt.

        Server hints win: error.retry_after (seconds) or a Retry-After
        response header. 429 responses back off linearly in
        rate_limit_delay_ms steps. Otherwise exponential backoff with
        proportional jitter.

        Args:
            attempt: The 1-based attempt that just failed
            error: The failure, inspected for transport-level hints

        Returns:
            Delay in milliseconds, never above max_delay_ms
        """
        hint_ms = retry_after_ms(error)
        if hint_ms is not None:
            return float(min(hint_ms, self.max_delay_ms))

        if status_of(error) == TOO_MANY_REQUESTS:
            return float(min(self.rate_limit_delay_ms * attempt, self.max_delay_ms))

        base = self.delay_for_attempt(attempt)
        jitter = random.random() * self.jitter_ratio * base if self.jitter_ratio > 0 else 0.0
        return float(min(base + jitter, self.max_delay_ms))

    def __repr__(self) -> str:
        """Readable representation for debugging."""
        return (
            f"RetryPolicy(max_retries={self.max_retries}, "
            f"initial_delay_ms={self.initial_delay_ms}, "
            f"max_delay_ms={self.max_delay_ms}, "
            f"backoff_multiplier={self.backoff_multiplier})"
        )


RetryPolicy.NONE = RetryPolicy(
    max_retries=0, initial_delay_ms=0, max_delay_ms=0, backoff_multiplier=1.0, jitter_ratio=0.0
)

RetryPolicy.STANDARD = RetryPolicy(
    max_retries=3,
    initial_delay_ms=1000,  # 1 second
    max_delay_ms=30000,  # 30 seconds
    backoff_multiplier=2.0,
)

RetryPolicy.AGGRESSIVE = RetryPolicy(
    max_retries=10,
    initial_delay_ms=100,  # 100 milliseconds
    max_delay_ms=10000,  # 10 seconds
    backoff_multiplier=1.5,
)


# =============================================================================
# RetryableError - Fine-grained error retry control
# =============================================================================


class RetryableError(Exception):
    """
    Base class for errors that decide their own retryability.

    Example:
        class PaymentError(RetryableError):
            def __init__(self, message: str, is_retryable: bool = True):
                super().__init__(message)
                self._retryable = is_retryable

            def is_retryable(self) -> bool:
                return self._retryable

        # Transient error - should retry
        raise PaymentError("Gateway timeout", is_retryable=True)

        # Permanent error - should NOT retry
        raise PaymentError("Card declined", is_retryable=False)
    """

    def is_retryable(self) -> bool:
        """True if the failure is transient. Defaults to True."""
        return True


class HttpStatusError(RetryableError):
    """Transport failure carrying an HTTP status and optional retry hint.

    Transports that do not raise their own exception types can raise this
    so the default policy classifies them by status.
    """

    def __init__(
        self,
        status: int,
        message: str = "",
        retry_after: float | None = None,
        user_message: str | None = None,
    ):
        super().__init__(message or f"HTTP {status}")
        self.status = status
        self.retry_after = retry_after
        self.user_message = user_message

    def is_retryable(self) -> bool:
        return self.status in RETRYABLE_STATUS_CODES


# =============================================================================
# Error inspection helpers
# =============================================================================


def status_of(error: BaseException) -> int | None:
    """Extract an HTTP status from an error, or None if it has none.

    Looks at error.status, error.status_code, then error.response.
    """
    for attr in ("status", "status_code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value

    response = getattr(error, "response", None)
    if response is not None:
        for attr in ("status_code", "status"):
            value = getattr(response, attr, None)
            if isinstance(value, int):
                return value
    return None


def retry_after_ms(error: BaseException) -> float | None:
    """Server-provided retry hint in milliseconds, or None."""
    hint: Any = getattr(error, "retry_after", None)
    if hint is None:
        response = getattr(error, "response", None)
        headers = getattr(response, "headers", None)
        if headers is not None:
            hint = headers.get("Retry-After")
    if hint is None:
        return None
    try:
        seconds = float(hint)
    except (TypeError, ValueError):
        # HTTP-date form of Retry-After is not supported
        return None
    return max(seconds, 0.0) * 1000.0


# =============================================================================
# CallableRetryStrategy - adapt plain functions to RetryStrategy
# =============================================================================


@dataclass(frozen=True)
class CallableRetryStrategy:
    """
    RetryStrategy built from a predicate and a schedule function.

    Lets an external error-classification service plug in without
    subclassing RetryPolicy.

    Example:
        strategy = CallableRetryStrategy(
            predicate=error_service.is_retryable,
            schedule=error_service.retry_delay,
            max_retries=3,
        )
    """

    predicate: Callable[[BaseException, int, int], bool]
    schedule: Callable[[int, BaseException], float]
    max_retries: int = 0

    def is_retryable(self, error: BaseException, attempt: int, max_retries: int) -> bool:
        return bool(self.predicate(error, attempt, max_retries))

    def retry_delay(self, attempt: int, error: BaseException) -> float:
        return float(self.schedule(attempt, error))
