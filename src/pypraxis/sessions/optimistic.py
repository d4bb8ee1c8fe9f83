"""Optimistic session.

Shows a tentative value before the operation confirms it, and rolls back
to the last confirmed value if the operation fails.

A session supports one optimistic call at a time. Overlapping calls
would let an older failure roll back over a newer optimistic write, so
a second call while one is in flight raises OptimisticConflictError.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from pypraxis.executor.instance import Executor, invoke_callback
from pypraxis.executor.outcome import Failed, Succeeded
from pypraxis.models.cancellation import CancellationToken
from pypraxis.models.errors import OptimisticConflictError
from pypraxis.models.state import OptimisticState
from pypraxis.sessions.handle import SessionHandle, reject_token_option

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OptimisticSession(SessionHandle, Generic[T]):
    """Apply a value locally, confirm it through the operation.

    Example:
        ```python
        async def save_status(params: dict, *, token: CancellationToken) -> Visitor:
            return await client.patch(f"/visitors/{params['id']}", json=params)

        session = OptimisticSession(save_status, initial_data=visitor)
        await session.execute_optimistic(visitor.with_status("checked_in"), {"id": visitor.id})
        ```
    """

    def __init__(
        self,
        operation: Callable[..., Awaitable[T]],
        *,
        executor: Executor | None = None,
        initial_data: T | None = None,
        **options: Any,
    ):
        super().__init__(executor)
        reject_token_option(options)
        self._operation = operation
        self._initial_data = initial_data
        self._options = options
        self._state: OptimisticState[T] = OptimisticState(confirmed=initial_data)
        self._rollback: T | None = initial_data
        self._current: CancellationToken | None = None
        self._error: BaseException | None = None

    @property
    def state(self) -> OptimisticState[T]:
        return self._state

    @property
    def value(self) -> T | None:
        """Pending value while optimistic, else the confirmed value."""
        return self._state.value

    @property
    def loading(self) -> bool:
        return self._current is not None

    @property
    def error(self) -> BaseException | None:
        return self._error

    async def execute_optimistic(
        self, optimistic_value: T, params: Any = None, **options: Any
    ) -> T | None:
        """
        Show optimistic_value, then confirm it by running the operation.

        Args:
            optimistic_value: Value to show until the operation settles
            params: Passed to the operation as its first argument
            **options: Executor.execute() options for this call
                (all but cancellation_token)

        Returns:
            The value the operation returned (which becomes confirmed),
            or None if the call was cancelled

        Raises:
            ValueError: If options name cancellation_token
            OptimisticConflictError: If another optimistic call is in flight
            Exception: The operation's error, after rolling back
        """
        reject_token_option(options)
        if self._current is not None:
            raise OptimisticConflictError(
                f"OptimisticSession {self.session_id} already has a call in flight"
            )
        token = self._new_token()
        self._current = token
        self._rollback = self._state.confirmed
        self._state = OptimisticState(
            confirmed=self._rollback, pending=optimistic_value, is_optimistic=True
        )
        self._error = None

        merged = {**self._options, **options}
        on_success = merged.pop("on_success", None)
        on_error = merged.pop("on_error", None)

        try:
            outcome = await self._execute(
                lambda t: self._operation(params, token=t), token, **merged
            )
        finally:
            owned = self._current is token
            if owned:
                self._current = None

        match outcome:
            case Succeeded(value=value):
                self._state = OptimisticState(confirmed=value)
                await invoke_callback(on_success, value)
                return value
            case Failed(error=error):
                if owned:
                    self._state = OptimisticState(confirmed=self._rollback)
                    self._error = error
                logger.debug(
                    f"OptimisticSession {self.session_id}: rolled back after "
                    f"{type(error).__name__}"
                )
                await invoke_callback(on_error, error)
                raise error
            case _:
                # Cancelled, including by dispose(): the pending value never became confirmed
                if owned:
                    self._state = OptimisticState(confirmed=self._rollback)
                return None

    def update_data(self, value: T) -> None:
        """Set the confirmed value directly.

        While an optimistic call is in flight, value also becomes the
        rollback target should that call fail.
        """
        self._rollback = value
        self._state = OptimisticState(
            confirmed=value,
            pending=self._state.pending,
            is_optimistic=self._state.is_optimistic,
        )

    def reset(self) -> None:
        """Cancel any in-flight call and restore initial_data."""
        self.cancel("reset")
        self._current = None
        self._rollback = self._initial_data
        self._state = OptimisticState(confirmed=self._initial_data)
        self._error = None
