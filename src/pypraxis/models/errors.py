"""Exception hierarchy for pypraxis.

All library errors derive from PraxisError so hosts can catch them as a
group. Errors raised by operations themselves are never wrapped; they
reach the caller unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pypraxis.models.state import BatchOutcome


class PraxisError(Exception):
    """Base class for errors raised by pypraxis."""


class OperationCancelled(PraxisError):  # noqa: N818
    """Raised by an operation that stopped because its token was cancelled.

    Not a failure: the Executor turns it into a Cancelled outcome without
    counting it, retrying it, or alerting on it.

    Attributes:
        reason: The cancellation reason recorded on the token
    """

    is_cancellation = True

    def __init__(self, reason: str = "cancelled"):
        super().__init__(reason)
        self.reason = reason


class SessionDisposedError(PraxisError):
    """Raised when work is started on a session that was disposed."""


class OptimisticConflictError(PraxisError):
    """Raised when a second optimistic call starts while one is in flight.

    An OptimisticSession supports at most one in-flight optimistic call.
    Overlapping calls could otherwise roll back over a newer optimistic
    write.
    """


class BatchAbortedError(PraxisError):
    """Raised when a stop-on-error batch aborts on its first failure.

    Attributes:
        outcome: Partial BatchOutcome covering the items that settled
        error: The first item failure (also chained as __cause__)
        item: The input item whose failure aborted the batch
    """

    def __init__(self, outcome: BatchOutcome, error: BaseException, item: Any = None):
        super().__init__(
            f"batch aborted after {outcome.total} of {outcome.requested} items: {error}"
        )
        self.outcome = outcome
        self.error = error
        self.item = item
