"""
Bounded concurrency helpers.

`map_bounded` runs one coroutine per index in ``range(count)`` on a fixed pool
of worker tasks. Workers claim the next index from a shared counter and write
their result into a pre-sized slot, so results come back in index order no
matter which worker finished first.
"""
import asyncio
import itertools
from typing import Awaitable, Callable, List, TypeVar

from ta_assistant.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def map_bounded(
        count: int,
        work: Callable[[int], Awaitable[T]],
        concurrency: int,
        name: str = "stage",
) -> List[T]:
    """
    Apply ``work`` to every index in ``range(count)`` with at most
    ``concurrency`` calls in flight.

    Args:
        count: Number of items (indices 0..count-1)
        work: Coroutine function receiving the claimed index
        concurrency: Pool size; the pool never exceeds ``count``
        name: Label used in log messages

    Returns:
        List of results, ``results[i] == await work(i)``

    Raises:
        The first exception raised by any worker. Remaining workers are
        cancelled and their results discarded.
    """
    if count <= 0:
        return []
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")

    results: List[T] = [None] * count  # type: ignore[list-item]
    # next() on the counter is the only claim; no await between claim and use
    cursor = itertools.count()

    async def worker() -> None:
        while True:
            index = next(cursor)
            if index >= count:
                return
            results[index] = await work(index)

    pool_size = min(concurrency, count)
    logger.debug(f"[{name}] {count} items on {pool_size} workers")

    tasks = [asyncio.create_task(worker()) for _ in range(pool_size)]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    failed = [task for task in done if not task.cancelled() and task.exception() is not None]
    if failed:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        error = failed[0].exception()
        logger.debug(f"[{name}] aborted: {error}")
        raise error

    return results
