"""Owned-state models for sessions.

Each session owns one of these and replaces it on every settle. The
models are frozen: sessions publish a new snapshot instead of mutating
the old one, so a reader holding a snapshot never sees a half-applied
update.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

T = TypeVar("T")
TIn = TypeVar("TIn")
TOut = TypeVar("TOut")


@dataclass(frozen=True)
class CallState(Generic[T]):
    """State of a CallSession.

    Attributes:
        data: Transformed result of the last successful call
        loading: True while a call is in flight
        error: Failure of the last call, cleared when a new call starts
        last_executed_at: UTC time of the last successful call
    """

    data: T | None = None
    loading: bool = False
    error: BaseException | None = None
    last_executed_at: datetime | None = None


@dataclass(frozen=True)
class PageRequest:
    """Arguments passed to a paginated operation."""

    page_index: int
    page_size: int
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PageState(Generic[T]):
    """State of a PaginatedSession.

    has_next and has_previous are derived from the other fields and cannot
    be set independently.
    """

    items: tuple[T, ...] = ()
    page_index: int = 0
    page_size: int = 20
    total_count: int = 0
    total_pages: int = 0

    @property
    def has_next(self) -> bool:
        return self.page_index < self.total_pages - 1

    @property
    def has_previous(self) -> bool:
        return self.page_index > 0

    @staticmethod
    def derive_total_pages(total_count: int, page_size: int) -> int:
        """Number of pages needed for total_count items."""
        if page_size <= 0 or total_count <= 0:
            return 0
        return math.ceil(total_count / page_size)


@dataclass(frozen=True)
class OptimisticState(Generic[T]):
    """State of an OptimisticSession.

    Attributes:
        confirmed: Last value confirmed by the operation
        pending: Optimistic value awaiting confirmation
        is_optimistic: True exactly between the optimistic write and settle
    """

    confirmed: T | None = None
    pending: T | None = None
    is_optimistic: bool = False

    @property
    def value(self) -> T | None:
        """The value a UI should render right now."""
        return self.pending if self.is_optimistic else self.confirmed


@dataclass(frozen=True)
class BatchJob(Generic[TIn]):
    """Description of one executeBatch run."""

    items: tuple[TIn, ...]
    batch_size: int = 5
    delay_between_batches_ms: float = 100
    stop_on_error: bool = False

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.delay_between_batches_ms < 0:
            raise ValueError(
                f"delay_between_batches_ms must be >= 0, got {self.delay_between_batches_ms}"
            )

    def chunks(self) -> list[tuple[TIn, ...]]:
        """Split items into consecutive chunks of batch_size."""
        return [
            self.items[start : start + self.batch_size]
            for start in range(0, len(self.items), self.batch_size)
        ]


@dataclass(frozen=True)
class BatchItemOutcome(Generic[TIn, TOut]):
    """Settled result of one batch item.

    index is the item's position in the input list.
    """

    item: TIn
    index: int
    success: bool
    result: TOut | None = None
    error: BaseException | None = None
    attempts: int = 1


@dataclass(frozen=True)
class BatchOutcome(Generic[TIn, TOut]):
    """Aggregate result of a batch run.

    total counts the items that settled (successful + failed). requested
    is the size of the input; skipped items were never attempted or were
    cancelled by a stop-on-error abort.
    """

    total: int
    successful: int
    failed: int
    results: tuple[BatchItemOutcome[TIn, TOut], ...] = ()
    errors: tuple[BatchItemOutcome[TIn, TOut], ...] = ()
    requested: int = 0
    aborted: bool = False

    @property
    def skipped(self) -> int:
        return self.requested - self.total

    @classmethod
    def from_items(
        cls,
        settled: list[BatchItemOutcome[TIn, TOut]],
        requested: int,
        aborted: bool = False,
    ) -> BatchOutcome[TIn, TOut]:
        """Aggregate settled item outcomes, ordered by input position."""
        ordered = sorted(settled, key=lambda outcome: outcome.index)
        results = tuple(o for o in ordered if o.success)
        errors = tuple(o for o in ordered if not o.success)
        return cls(
            total=len(ordered),
            successful=len(results),
            failed=len(errors),
            results=results,
            errors=errors,
            requested=requested,
            aborted=aborted,
        )
