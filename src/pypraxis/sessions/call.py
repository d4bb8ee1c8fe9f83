"""Single-call session.

Owns CallState for one operation: data, loading, error, and the time of
the last successful call. The operation receives the call's arguments
plus the cancellation token as the keyword argument ``token``.

Example:
    ```python
    async def fetch_visitor(visitor_id: int, *, token: CancellationToken) -> dict:
        return await client.get(f"/visitors/{visitor_id}")

    session = CallSession(fetch_visitor, transform=Visitor.from_json, retries=2)
    visitor = await session.call(42)
    session.state.data is visitor  # True
    ```
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from pypraxis.executor.instance import Executor, invoke_callback
from pypraxis.executor.outcome import Cancelled, Failed, Succeeded
from pypraxis.models.errors import SessionDisposedError
from pypraxis.models.state import CallState
from pypraxis.sessions.handle import SessionHandle, reject_token_option

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CallSession(SessionHandle, Generic[T]):
    """Run one operation on demand and keep its latest result.

    Concurrent calls are allowed; each settle writes state, and loading
    stays True until the last of them settles.
    """

    def __init__(
        self,
        operation: Callable[..., Awaitable[Any]],
        *,
        executor: Executor | None = None,
        transform: Callable[[Any], T] | None = None,
        immediate: bool = False,
        dependencies: tuple[Any, ...] = (),
        **options: Any,
    ):
        """
        Args:
            operation: Async callable ``operation(*args, token=token)``
            executor: Executor to run calls on (default: a new Executor)
            transform: Applied to each result before it is stored
            immediate: Start one call() in the background right away;
                requires a running event loop
            dependencies: Initial dependency values, see update_dependencies()
            **options: Executor.execute() options applied to every call
                (all but cancellation_token)
        """
        super().__init__(executor)
        reject_token_option(options)
        self._operation = operation
        self._transform = transform
        self._immediate = immediate
        self._dependencies = tuple(dependencies)
        self._options = options
        self._state: CallState[T] = CallState()
        self._last_args: tuple[tuple[Any, ...], dict[str, Any]] = ((), {})
        self._pending = 0
        self._background_tasks: set[asyncio.Task] = set()

        if immediate:
            self._spawn()

    @property
    def state(self) -> CallState[T]:
        return self._state

    @property
    def data(self) -> T | None:
        return self._state.data

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> BaseException | None:
        return self._state.error

    async def call(self, *args: Any, **kwargs: Any) -> T | None:
        """
        Invoke the operation with args.

        Returns:
            The transformed result, or None if the call was cancelled

        Raises:
            SessionDisposedError: If the session was disposed
            Exception: The operation's error after retries are exhausted
        """
        token = self._new_token()
        self._last_args = (args, kwargs)
        options = dict(self._options)
        on_success = options.pop("on_success", None)
        on_error = options.pop("on_error", None)

        self._pending += 1
        self._state = replace(self._state, loading=True, error=None)
        try:
            outcome = await self._execute(
                lambda t: self._operation(*args, token=t, **kwargs), token, **options
            )
        finally:
            self._pending -= 1
            if self._pending == 0:
                self._state = replace(self._state, loading=False)

        match outcome:
            case Succeeded(value=value):
                data = self._transform(value) if self._transform else value
                self._state = replace(
                    self._state, data=data, last_executed_at=datetime.now(UTC)
                )
                await invoke_callback(on_success, data)
                return data
            case Failed(error=error):
                self._state = replace(self._state, error=error)
                await invoke_callback(on_error, error)
                raise error
            case Cancelled():
                return None

    async def retry(self) -> T | None:
        """Call again with the arguments of the most recent call."""
        args, kwargs = self._last_args
        return await self.call(*args, **kwargs)

    def reset(self) -> None:
        """Cancel in-flight calls and clear state."""
        self.cancel("reset")
        self._state = CallState()

    def update_dependencies(self, *dependencies: Any) -> bool:
        """
        Record new dependency values.

        When the session was created with immediate=True and the values
        changed, a background call is started with the last arguments.

        Returns:
            True if a call was triggered
        """
        if dependencies == self._dependencies:
            return False
        self._dependencies = dependencies
        if not self._immediate:
            return False
        self._spawn()
        return True

    async def wait_idle(self) -> None:
        """Wait for background calls (immediate or dependency-triggered)."""
        while self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

    def _spawn(self) -> None:
        args, kwargs = self._last_args
        task = asyncio.create_task(self._background_call(args, kwargs))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _background_call(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        try:
            await self.call(*args, **kwargs)
        except SessionDisposedError:
            logger.debug(f"CallSession {self.session_id}: background call skipped, disposed")
        except Exception as e:
            # Already recorded in state.error
            logger.warning(f"CallSession {self.session_id}: background call failed: {e}")
