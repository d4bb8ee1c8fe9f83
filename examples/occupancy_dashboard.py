"""
Occupancy Dashboard

Polls a site's occupancy every 100ms with PollSession while an
OptimisticSession toggles a check-in flag that the backend rejects once.

## How It Works

1. PollSession runs one cycle immediately and then one per interval; a
   slow cycle never overlaps the next tick
2. Failed poll cycles only set `error`; the last good reading stays
3. The optimistic check-in shows the new value at once and rolls back
   when the backend answers 409

## Run with
```bash
PYTHONPATH=src python3 examples/occupancy_dashboard.py
```
"""

import asyncio
import logging
import random

from pypraxis import (
    CancellationToken,
    Executor,
    HttpStatusError,
    NullAlertSink,
    OptimisticSession,
    PollSession,
)

logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s %(message)s")


class FakeSite:
    def __init__(self):
        self.occupancy = 40
        self.checkins = 0

    async def read_occupancy(self, *, token: CancellationToken) -> int:
        await asyncio.sleep(random.uniform(0.01, 0.15))
        token.raise_if_cancelled()
        if random.random() < 0.2:
            raise ConnectionError("sensor gateway timeout")
        self.occupancy += random.randint(-3, 3)
        return self.occupancy

    async def set_checked_in(self, params: dict, *, token: CancellationToken) -> bool:
        await asyncio.sleep(0.05)
        self.checkins += 1
        if self.checkins == 1:
            raise HttpStatusError(409, "visitor record changed")
        return params["checked_in"]


async def main():
    site = FakeSite()
    executor = Executor(alert_sink=NullAlertSink())

    occupancy = PollSession(site.read_occupancy, executor=executor, interval_ms=100)
    occupancy.start_polling()

    checkin = OptimisticSession(site.set_checked_in, executor=executor, initial_data=False)
    for attempt in (1, 2):
        task = asyncio.create_task(checkin.execute_optimistic(True, {"checked_in": True}))
        await asyncio.sleep(0)
        print(f"check-in attempt {attempt}: showing {checkin.value}")
        try:
            await task
        except HttpStatusError as e:
            print(f"  rejected ({e}); rolled back to {checkin.value}")
        else:
            print(f"  confirmed {checkin.value}")

    await asyncio.sleep(0.6)
    print(
        f"occupancy={occupancy.data} error={occupancy.error!r} "
        f"cycles={occupancy.cycles} skipped_ticks={occupancy.skipped_ticks}"
    )

    occupancy.dispose()
    checkin.dispose()


if __name__ == "__main__":
    asyncio.run(main())
