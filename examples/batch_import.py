"""
Batch Import

Imports a list of badge records with BatchRunner, first collecting every
failure, then again with stop_on_error to show an early abort.

## Behavior

- Records with an empty name are rejected with HTTP 422 (terminal)
- Without stop_on_error all 12 records are attempted and the outcome
  lists the rejected ones by input position
- With stop_on_error and batch_size=1 the run stops at the first
  rejected record; later records are reported as skipped

## Run with
```bash
PYTHONPATH=src python3 examples/batch_import.py
```
"""

import asyncio
import logging

from pypraxis import BatchAbortedError, BatchRunner, CancellationToken, HttpStatusError

logging.basicConfig(level=logging.WARNING)

RECORDS = [{"badge": 100 + i, "name": "" if i in (4, 9) else f"Guest {i}"} for i in range(12)]


async def import_badge(record: dict, *, token: CancellationToken) -> int:
    await asyncio.sleep(0.005)
    token.raise_if_cancelled()
    if not record["name"]:
        raise HttpStatusError(422, f"badge {record['badge']}: name is required")
    return record["badge"]


def show_progress(processed: int, total: int) -> None:
    print(f"  {processed}/{total}", end="\r")


async def main():
    runner = BatchRunner(import_badge, batch_size=5, delay_between_batches_ms=20)

    outcome = await runner.execute_batch(RECORDS, on_progress=show_progress)
    print(f"imported {outcome.successful}/{outcome.total}, failed {outcome.failed}")
    for failure in outcome.errors:
        print(f"  #{failure.index}: {failure.error}")

    try:
        await runner.execute_batch(RECORDS, batch_size=1, stop_on_error=True)
    except BatchAbortedError as e:
        print(f"aborted: {e}")
        print(f"  settled={e.outcome.total} skipped={e.outcome.skipped}")

    runner.dispose()


if __name__ == "__main__":
    asyncio.run(main())
