"""
Executor module - runtime engine for single operations.

This module contains the execution components:
- instance: Executor, the retry/backoff/cancellation loop
- outcome: ExecutionOutcome state machine (Succeeded/Failed/Cancelled)

Sessions never retry on their own; they hand each run to an Executor
and interpret the ExecutionOutcome it returns.
"""

from pypraxis.executor.instance import Executor, Operation, invoke_callback
from pypraxis.executor.outcome import (
    Cancelled,
    ExecutionOutcome,
    Failed,
    Succeeded,
    is_cancelled,
    is_failed,
    is_succeeded,
)

__all__ = [
    # Executor
    "Executor",
    "Operation",
    "invoke_callback",
    # ExecutionOutcome state machine
    "Succeeded",
    "Failed",
    "Cancelled",
    "ExecutionOutcome",
    "is_succeeded",
    "is_failed",
    "is_cancelled",
]
