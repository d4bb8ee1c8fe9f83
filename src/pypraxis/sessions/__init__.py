"""Sessions - stateful wrappers that run operations through an Executor.

Each session owns its state exclusively and derives from SessionHandle,
which ties every in-flight run to the session's lifetime:
    - CallSession: one operation, called on demand
    - PaginatedSession: page-at-a-time loading, replace or append mode
    - OptimisticSession: tentative value with rollback on failure
    - BatchRunner: chunked, concurrency-bounded execution over many items
    - PollSession: fixed-period repetition of one operation
"""

from pypraxis.sessions.batch import BatchRunner
from pypraxis.sessions.call import CallSession
from pypraxis.sessions.handle import SessionHandle
from pypraxis.sessions.optimistic import OptimisticSession
from pypraxis.sessions.paginated import PaginatedSession
from pypraxis.sessions.polling import PollSession

__all__ = [
    "SessionHandle",
    "CallSession",
    "PaginatedSession",
    "OptimisticSession",
    "BatchRunner",
    "PollSession",
]
