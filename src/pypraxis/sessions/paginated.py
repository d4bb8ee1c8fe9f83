"""Paginated session.

Loads one page at a time through the Executor and keeps a PageState
built from the response's own pagination metadata. In append mode
(infinite scroll) pages after the first are concatenated onto the items
already loaded; in replace mode every load replaces them.

The operation receives a PageRequest and the cancellation token:

    ```python
    async def fetch_widgets(request: PageRequest, *, token: CancellationToken) -> dict:
        return await client.get(
            "/widgets",
            params={"page": request.page_index, "size": request.page_size, **request.params},
        )

    widgets = PaginatedSession(fetch_widgets, initial_page_size=20)
    await widgets.load_page(0)
    while widgets.state.has_next:
        await widgets.next_page()
    ```

Responses may be mappings or objects, using snake_case or camelCase
keys (items, page_index/pageIndex, page_size/pageSize,
total_count/totalCount, total_pages/totalPages).
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Generic, TypeVar

from pypraxis.executor.instance import Executor, invoke_callback
from pypraxis.executor.outcome import Failed, Succeeded
from pypraxis.models.cancellation import CancellationToken
from pypraxis.models.state import PageRequest, PageState
from pypraxis.sessions.handle import SessionHandle, reject_token_option

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _field(response: Any, *names: str) -> Any:
    """First non-None value among names, read as key or attribute."""
    for name in names:
        if isinstance(response, Mapping):
            value = response.get(name)
        else:
            value = getattr(response, name, None)
        if value is not None:
            return value
    return None


class PaginatedSession(SessionHandle, Generic[T]):
    """Page through an operation's results.

    Only the most recently issued load may change state. Issuing a new
    load cancels the previous one if it is still in flight.
    """

    def __init__(
        self,
        operation: Callable[..., Awaitable[Any]],
        *,
        executor: Executor | None = None,
        initial_page_size: int | None = None,
        append_mode: bool = False,
        transform: Callable[[Sequence[Any]], Sequence[T]] | None = None,
        **options: Any,
    ):
        """
        Args:
            operation: Async callable ``operation(request, token=token)``
            executor: Executor to run loads on (default: a new Executor)
            initial_page_size: Page size before the first load
                (default settings.page_size)
            append_mode: Concatenate pages after the first instead of
                replacing
            transform: Applied to each page's items before they are stored
            **options: Executor.execute() options applied to every load
                (all but cancellation_token)
        """
        super().__init__(executor)
        reject_token_option(options)
        self._operation = operation
        self._initial_page_size = initial_page_size or self._executor.settings.page_size
        if self._initial_page_size < 1:
            raise ValueError(f"initial_page_size must be >= 1, got {self._initial_page_size}")
        self._append_mode = append_mode
        self._transform = transform
        self._options = options
        self._state: PageState[T] = PageState(page_size=self._initial_page_size)
        self._params: dict[str, Any] = {}
        self._generation = 0
        self._current: CancellationToken | None = None
        self._error: BaseException | None = None

    @property
    def state(self) -> PageState[T]:
        return self._state

    @property
    def items(self) -> tuple[T, ...]:
        return self._state.items

    @property
    def loading(self) -> bool:
        return self._current is not None

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def params(self) -> dict[str, Any]:
        """Extra parameters reused by navigation calls."""
        return dict(self._params)

    async def load_page(
        self,
        page_index: int = 0,
        page_size: int | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> PageState[T] | None:
        """
        Load one page.

        Args:
            page_index: Zero-based page to load
            page_size: Items per page (default: current page size)
            params: Extra parameters; None reuses the last ones

        Returns:
            The new PageState, or None if this load was cancelled or
            superseded by a newer one

        Raises:
            ValueError: If page_index < 0 or page_size < 1
            Exception: The operation's error after retries are exhausted
        """
        size = self._state.page_size if page_size is None else page_size
        if page_index < 0:
            raise ValueError(f"page_index must be >= 0, got {page_index}")
        if size < 1:
            raise ValueError(f"page_size must be >= 1, got {size}")
        if params is not None:
            self._params = dict(params)

        token = self._new_token()
        if self._current is not None:
            self._current.cancel("superseded")
        self._current = token
        self._generation += 1
        generation = self._generation
        self._error = None

        options = dict(self._options)
        on_success = options.pop("on_success", None)
        on_error = options.pop("on_error", None)
        request = PageRequest(page_index=page_index, page_size=size, params=dict(self._params))
        logger.debug(
            f"PaginatedSession {self.session_id}: loading page {page_index} (size {size})"
        )

        try:
            outcome = await self._execute(
                lambda t: self._operation(request, token=t), token, **options
            )
        finally:
            if self._current is token:
                self._current = None

        latest = generation == self._generation and self._accepts(token)
        match outcome:
            case Succeeded(value=response) if latest:
                self._state = self._next_state(response, request)
                await invoke_callback(on_success, response)
                return self._state
            case Failed(error=error):
                if latest:
                    self._error = error
                await invoke_callback(on_error, error)
                raise error
            case _:
                return None

    async def next_page(self) -> PageState[T] | None:
        """Load the following page; no-op returning None on the last page."""
        if not self._state.has_next:
            return None
        return await self.load_page(self._state.page_index + 1, self._state.page_size)

    async def previous_page(self) -> PageState[T] | None:
        """Load the preceding page; no-op returning None on the first page."""
        if not self._state.has_previous:
            return None
        return await self.load_page(self._state.page_index - 1, self._state.page_size)

    async def go_to_page(self, page_index: int) -> PageState[T] | None:
        return await self.load_page(page_index, self._state.page_size)

    async def change_page_size(self, page_size: int) -> PageState[T] | None:
        """Switch page size and reload from the first page."""
        return await self.load_page(0, page_size)

    async def refresh(self, params: Mapping[str, Any] | None = None) -> PageState[T] | None:
        """Reload the current page, optionally with new extra parameters."""
        return await self.load_page(self._state.page_index, self._state.page_size, params)

    def reset(self) -> None:
        """Cancel any in-flight load and return to the initial state."""
        self.cancel("reset")
        self._generation += 1
        self._current = None
        self._state = PageState(page_size=self._initial_page_size)
        self._params = {}
        self._error = None

    def _next_state(self, response: Any, request: PageRequest) -> PageState[T]:
        raw_items = _field(response, "items") or ()
        items = tuple(self._transform(raw_items) if self._transform else raw_items)

        page_index = _field(response, "page_index", "pageIndex")
        page_size = _field(response, "page_size", "pageSize")
        page_index = request.page_index if page_index is None else int(page_index)
        page_size = request.page_size if page_size is None else int(page_size)
        total_count = int(_field(response, "total_count", "totalCount") or 0)
        total_pages = _field(response, "total_pages", "totalPages")
        if total_pages is None:
            total_pages = PageState.derive_total_pages(total_count, page_size)

        if self._append_mode and request.page_index > 0:
            items = self._state.items + items

        return PageState(
            items=items,
            page_index=page_index,
            page_size=page_size,
            total_count=total_count,
            total_pages=int(total_pages),
        )
