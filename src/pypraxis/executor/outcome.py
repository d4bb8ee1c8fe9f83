"""
Execution outcomes.

This module defines the ExecutionOutcome state machine returned by
Executor.execute(). Every run ends in exactly one of three variants:

- Succeeded: the operation returned a value
- Failed: the operation failed terminally or ran out of retries
- Cancelled: the run was cancelled before it could settle

Design: Tagged Union Instead of Callbacks
Callers branch on the returned variant rather than threading closures
through the Executor. Callbacks remain available for fire-and-forget
side effects only.

Example:
    ```python
    outcome = await executor.execute(fetch_widgets)

    match outcome:
        case Succeeded(value=widgets):
            render(widgets)
        case Failed(error=error):
            show_error(error)
        case Cancelled():
            pass
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from pypraxis.models.errors import OperationCancelled
from pypraxis.models.status import ErrorKind, OutcomeKind

__all__ = [
    "Succeeded",
    "Failed",
    "Cancelled",
    "ExecutionOutcome",
    "is_succeeded",
    "is_failed",
    "is_cancelled",
]

T = TypeVar("T")


@dataclass(frozen=True)
class Succeeded(Generic[T]):
    """
    Operation returned a value.

    Attributes:
        value: The operation's return value
        attempts: Invocations made, including the successful one
    """

    value: T
    attempts: int = 1

    @property
    def kind(self) -> OutcomeKind:
        return OutcomeKind.SUCCESS

    def unwrap(self) -> T:
        """Return the value."""
        return self.value

    def __str__(self) -> str:
        return f"Succeeded(value={self.value!r}, attempts={self.attempts})"


@dataclass(frozen=True)
class Failed:
    """
    Operation failed and will not be retried.

    Attributes:
        error: The last error raised by the operation
        attempts: Invocations made before giving up
        error_kind: TERMINAL (not retryable) or EXHAUSTED (retry budget ran out)
    """

    error: BaseException
    attempts: int = 1
    error_kind: ErrorKind = ErrorKind.TERMINAL

    @property
    def kind(self) -> OutcomeKind:
        return OutcomeKind.FAILURE

    def unwrap(self):
        """Re-raise the failure."""
        raise self.error

    def __str__(self) -> str:
        return (
            f"Failed(error={type(self.error).__name__}: {self.error}, "
            f"attempts={self.attempts}, kind={self.error_kind})"
        )


@dataclass(frozen=True)
class Cancelled:
    """
    Run was cancelled. Not an error.

    Attributes:
        reason: Reason recorded on the cancellation token
        attempts: Invocations started before the cancellation won
    """

    reason: str = "cancelled"
    attempts: int = 1

    @property
    def kind(self) -> OutcomeKind:
        return OutcomeKind.CANCELLED

    def unwrap(self):
        """Raise OperationCancelled with the recorded reason."""
        raise OperationCancelled(self.reason)

    def __str__(self) -> str:
        return f"Cancelled(reason={self.reason!r}, attempts={self.attempts})"


# ExecutionOutcome is a Union type representing the result of one run.
#
# Pattern matching:
#     match outcome:
#         case Succeeded(value=value): ...
#         case Failed(error=error): ...
#         case Cancelled(): ...
#
ExecutionOutcome = Succeeded[T] | Failed | Cancelled


def is_succeeded(outcome: ExecutionOutcome[T]) -> bool:
    """True if outcome is Succeeded."""
    return isinstance(outcome, Succeeded)


def is_failed(outcome: ExecutionOutcome[T]) -> bool:
    """True if outcome is Failed."""
    return isinstance(outcome, Failed)


def is_cancelled(outcome: ExecutionOutcome[T]) -> bool:
    """True if outcome is Cancelled."""
    return isinstance(outcome, Cancelled)
