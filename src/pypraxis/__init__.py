"""
Praxis: async operation orchestration for Python

Retry-with-backoff, cooperative cancellation, paginated loading,
optimistic updates, chunked batch execution and interval polling, built
on one Executor that every session delegates to.

Design Pattern: Façade Pattern
This module provides a simplified interface to the praxis library,
hiding the layering of models, executor, sinks and sessions.

Example:
    ```python
    import asyncio
    from pypraxis import CancellationToken, CallSession, RetryPolicy, Executor

    async def fetch_visitor(visitor_id: int, *, token: CancellationToken) -> dict:
        token.raise_if_cancelled()
        return await client.get(f"/visitors/{visitor_id}")

    async def main():
        executor = Executor().with_retry_policy(RetryPolicy.STANDARD)

        async with CallSession(fetch_visitor, executor=executor) as session:
            visitor = await session.call(42)
            print(visitor, session.state.last_executed_at)

    asyncio.run(main())
    ```
"""

# Core types - dependency-free models
from pypraxis.models import (
    RETRYABLE_STATUS_CODES,
    AlertKind,
    BatchAbortedError,
    BatchItemOutcome,
    BatchJob,
    BatchOutcome,
    CallableRetryStrategy,
    CallState,
    CancellationToken,
    ErrorKind,
    HttpStatusError,
    OperationCancelled,
    OptimisticConflictError,
    OptimisticState,
    OutcomeKind,
    PageRequest,
    PageState,
    PraxisError,
    RetryableError,
    RetryPolicy,
    RetryStrategy,
    SessionDisposedError,
)

# Side-effect sinks (Adapter pattern)
from pypraxis.sinks import (
    Alert,
    AlertSink,
    ErrorCounter,
    InMemoryErrorCounter,
    LoggingAlertSink,
    NullAlertSink,
    RecordingAlertSink,
)

# Configuration
from pypraxis.settings import Settings

# Execution (Strategy pattern + tagged outcome)
from pypraxis.executor import (
    Cancelled,
    ExecutionOutcome,
    Executor,
    Failed,
    Succeeded,
    is_cancelled,
    is_failed,
    is_succeeded,
)

# Sessions
from pypraxis.sessions import (
    BatchRunner,
    CallSession,
    OptimisticSession,
    PaginatedSession,
    PollSession,
    SessionHandle,
)

# Version
__version__ = "0.1.0"

__all__ = [
    # Core types
    "CancellationToken",
    "RetryPolicy",
    "RetryStrategy",
    "CallableRetryStrategy",
    "RetryableError",
    "HttpStatusError",
    "RETRYABLE_STATUS_CODES",
    "OutcomeKind",
    "ErrorKind",
    "AlertKind",

    # State snapshots
    "CallState",
    "PageRequest",
    "PageState",
    "OptimisticState",
    "BatchJob",
    "BatchItemOutcome",
    "BatchOutcome",

    # Errors
    "PraxisError",
    "OperationCancelled",
    "SessionDisposedError",
    "OptimisticConflictError",
    "BatchAbortedError",

    # Sinks (Adapter pattern)
    "Alert",
    "AlertSink",
    "ErrorCounter",
    "LoggingAlertSink",
    "NullAlertSink",
    "RecordingAlertSink",
    "InMemoryErrorCounter",

    # Configuration
    "Settings",

    # Execution
    "Executor",
    "ExecutionOutcome",
    "Succeeded",
    "Failed",
    "Cancelled",
    "is_succeeded",
    "is_failed",
    "is_cancelled",

    # Sessions
    "SessionHandle",
    "CallSession",
    "PaginatedSession",
    "OptimisticSession",
    "BatchRunner",
    "PollSession",

    # Metadata
    "__version__",
]
