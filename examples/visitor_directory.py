"""
Visitor Directory

Pages through a visitor list with PaginatedSession, then loads one
visitor's details with a CallSession that retries a flaky backend.

## How It Works

1. FakeVisitorApi serves 45 visitors in pages and fails every third
   detail request with HTTP 503
2. PaginatedSession loads page 0, then follows next_page() until
   has_next is False
3. CallSession fetches a visitor with retries=2, so the 503s are absorbed
4. Disposing the sessions cancels anything still in flight

## Run with
```bash
PYTHONPATH=src python3 examples/visitor_directory.py
```
"""

import asyncio
import logging

from pypraxis import (
    CallSession,
    CancellationToken,
    Executor,
    HttpStatusError,
    InMemoryErrorCounter,
    PageRequest,
    PaginatedSession,
    RecordingAlertSink,
    RetryPolicy,
)

logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s %(message)s")


class FakeVisitorApi:
    """In-memory backend with a deliberately unreliable detail endpoint."""

    def __init__(self, total: int = 45):
        self.visitors = [{"id": i, "name": f"Visitor {i}"} for i in range(total)]
        self.detail_requests = 0

    async def list_visitors(self, request: PageRequest, *, token: CancellationToken) -> dict:
        await asyncio.sleep(0.01)
        token.raise_if_cancelled()
        start = request.page_index * request.page_size
        return {
            "items": self.visitors[start : start + request.page_size],
            "pageIndex": request.page_index,
            "pageSize": request.page_size,
            "totalCount": len(self.visitors),
        }

    async def get_visitor(self, visitor_id: int, *, token: CancellationToken) -> dict:
        self.detail_requests += 1
        await asyncio.sleep(0.01)
        if self.detail_requests % 3 != 0:
            raise HttpStatusError(503, "visitor service unavailable")
        return self.visitors[visitor_id]


async def main():
    api = FakeVisitorApi()
    alerts = RecordingAlertSink()
    failures = InMemoryErrorCounter()
    executor = Executor(alert_sink=alerts, error_counter=failures).with_retry_policy(
        RetryPolicy(initial_delay_ms=50, max_delay_ms=200)
    )

    async with PaginatedSession(
        api.list_visitors, executor=executor, initial_page_size=20
    ) as directory:
        await directory.load_page(0)
        print(f"page 0: {len(directory.items)} of {directory.state.total_count} visitors")
        while directory.state.has_next:
            await directory.next_page()
            print(
                f"page {directory.state.page_index}: {len(directory.items)} visitors "
                f"(has_next={directory.state.has_next})"
            )

    async with CallSession(
        api.get_visitor, executor=executor, retries=2, transform=lambda v: v["name"]
    ) as details:
        name = await details.call(7)
        print(f"visitor 7 is {name!r} after {api.detail_requests} request(s)")

    print(f"failed attempts counted: {failures.count}")
    print(f"alerts shown: {len(alerts)}")


if __name__ == "__main__":
    asyncio.run(main())
