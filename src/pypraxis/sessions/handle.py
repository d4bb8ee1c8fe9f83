"""Session handle - explicit ownership of a session's lifetime.

Every session derives from SessionHandle. The handle holds the liveness
flag and the set of cancellation tokens it has handed out. dispose()
flips the flag and cancels every outstanding token, so results that
settle afterwards are discarded instead of mutating state that belongs
to a torn-down owner.

Usage:
    ```python
    async with CallSession(fetch_profile) as session:
        profile = await session.call(user_id)
    # session disposed here, any in-flight call cancelled
    ```
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from uuid_extensions import uuid7

from pypraxis.executor.instance import Executor, Operation
from pypraxis.executor.outcome import ExecutionOutcome
from pypraxis.models.cancellation import CancellationToken
from pypraxis.models.errors import SessionDisposedError

logger = logging.getLogger(__name__)


def reject_token_option(options: Mapping[str, Any]) -> None:
    """Refuse a caller-supplied cancellation_token among Executor options.

    Sessions hand out their own tokens; cancel through session.cancel()
    or dispose() instead.

    Raises:
        ValueError: If options contains cancellation_token
    """
    if "cancellation_token" in options:
        raise ValueError(
            "cancellation_token is managed by the session; "
            "use session.cancel() or dispose() to cancel its runs"
        )


class SessionHandle:
    """Base class owning liveness and outstanding tokens for one session."""

    def __init__(self, executor: Executor | None = None):
        self._executor = executor or Executor()
        self._session_id = str(uuid7())
        self._alive = True
        self._tokens: set[CancellationToken] = set()

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def executor(self) -> Executor:
        return self._executor

    @property
    def is_alive(self) -> bool:
        """False once dispose() has been called."""
        return self._alive

    def _new_token(self) -> CancellationToken:
        """Hand out a token tracked by this session.

        Raises:
            SessionDisposedError: If the session was disposed
        """
        if not self._alive:
            raise SessionDisposedError(
                f"{type(self).__name__} {self._session_id} has been disposed"
            )
        token = CancellationToken()
        self._tokens.add(token)
        return token

    def _accepts(self, token: CancellationToken) -> bool:
        """True if a result produced under token may still mutate state."""
        return self._alive and not token.is_cancelled

    async def _execute(
        self, operation: Operation[Any], token: CancellationToken, **options: Any
    ) -> ExecutionOutcome[Any]:
        """Run operation through the executor under a session token."""
        try:
            return await self._executor.execute(operation, cancellation_token=token, **options)
        finally:
            self._tokens.discard(token)

    def cancel(self, reason: str = "cancelled") -> int:
        """Cancel every outstanding run of this session.

        Returns:
            Number of tokens this call cancelled
        """
        tokens = list(self._tokens)
        self._tokens.clear()
        return sum(1 for token in tokens if token.cancel(reason))

    def dispose(self) -> None:
        """Tear the session down. Safe to call more than once."""
        if not self._alive:
            return
        self._alive = False
        cancelled = self.cancel("disposed")
        logger.info(
            f"{type(self).__name__} {self._session_id} disposed "
            f"({cancelled} in-flight run(s) cancelled)"
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()

    def __repr__(self) -> str:
        state = "alive" if self._alive else "disposed"
        return f"{type(self).__name__}(session_id={self._session_id!r}, {state})"
