"""Fixed-size worker pool for outstanding requests."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")


async def run_with_concurrency(tasks: Sequence[Callable[[], Awaitable[T]]], limit: int) -> list[T]:
    """Run task factories with at most *limit* awaiting at once.

    Workers pull the next index from a shared iterator, so a slow task never
    holds back the queue. Results come back in task order. The first failure
    cancels the remaining workers and is re-raised.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")
    results: list[T | None] = [None] * len(tasks)
    pending = iter(range(len(tasks)))

    async def worker() -> None:
        for index in pending:
            results[index] = await tasks[index]()

    workers = [asyncio.ensure_future(worker()) for _ in range(min(limit, len(tasks)))]
    try:
        await asyncio.gather(*workers)
    except BaseException:
        for w in workers:
            if not w.done():
                w.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        raise
    return results  # type: ignore[return-value]
