"""Status enumerations for operation execution.

Defines the terminal kinds of an Executor run, the error taxonomy used
to decide propagation, and the kinds of user-visible alerts.
"""

from enum import Enum


class OutcomeKind(Enum):
    """Terminal kind of a single Executor run.

    Lifecycle:
        (running) → SUCCESS | FAILURE | CANCELLED

    Design: Cancellation Is Not Failure
        A cancelled run is its own terminal kind so callers never mistake
        an intentional abort for an error.
    """

    SUCCESS = "success"
    """Operation returned a value."""

    FAILURE = "failure"
    """Operation failed with a terminal or exhausted error."""

    CANCELLED = "cancelled"
    """Run was cancelled before it could settle."""

    @property
    def is_terminal_error(self) -> bool:
        """Check if this kind should be surfaced as an error."""
        return self == OutcomeKind.FAILURE

    def __str__(self) -> str:
        return self.value


class ErrorKind(Enum):
    """Classification of a failure for retry and propagation purposes.

    TRANSIENT errors are retried by the Executor while budget remains.
    Once the budget runs out a transient error becomes EXHAUSTED, which
    propagates exactly like TERMINAL.
    """

    CANCELLED = "cancelled"
    """Intentional abort. Never retried, counted, or surfaced."""

    TRANSIENT = "transient"
    """Retryable per policy (network failure, 5xx, rate limit)."""

    TERMINAL = "terminal"
    """Non-retryable (validation, auth, not-found class errors)."""

    EXHAUSTED = "exhausted"
    """Retryable kind whose retry budget ran out."""

    @property
    def propagates(self) -> bool:
        """Check if this kind is handed up to the invoking session."""
        return self in (ErrorKind.TERMINAL, ErrorKind.EXHAUSTED)

    def __str__(self) -> str:
        return self.value


class AlertKind(Enum):
    """Kind of a user-visible message dispatched to the alert sink."""

    SUCCESS = "success"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value
