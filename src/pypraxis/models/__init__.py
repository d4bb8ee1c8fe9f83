"""Core data models for operation execution.

Defines the cancellation token, retry strategy, status enums, error
hierarchy, and the owned-state snapshots of every session.

Design: Dependency-Free Models
These types have no dependencies on executor, sinks, or sessions to
prevent circular imports and enable clean layering.
"""

from pypraxis.models.cancellation import CancellationToken
from pypraxis.models.errors import (
    BatchAbortedError,
    OperationCancelled,
    OptimisticConflictError,
    PraxisError,
    SessionDisposedError,
)
from pypraxis.models.retry import (
    RETRYABLE_STATUS_CODES,
    CallableRetryStrategy,
    HttpStatusError,
    RetryableError,
    RetryPolicy,
    RetryStrategy,
    retry_after_ms,
    status_of,
)
from pypraxis.models.state import (
    BatchItemOutcome,
    BatchJob,
    BatchOutcome,
    CallState,
    OptimisticState,
    PageRequest,
    PageState,
)
from pypraxis.models.status import AlertKind, ErrorKind, OutcomeKind

__all__ = [
    "CancellationToken",
    "PraxisError",
    "OperationCancelled",
    "SessionDisposedError",
    "OptimisticConflictError",
    "BatchAbortedError",
    "RetryPolicy",
    "RetryStrategy",
    "CallableRetryStrategy",
    "RetryableError",
    "HttpStatusError",
    "RETRYABLE_STATUS_CODES",
    "status_of",
    "retry_after_ms",
    "CallState",
    "PageRequest",
    "PageState",
    "OptimisticState",
    "BatchJob",
    "BatchItemOutcome",
    "BatchOutcome",
    "OutcomeKind",
    "ErrorKind",
    "AlertKind",
]
