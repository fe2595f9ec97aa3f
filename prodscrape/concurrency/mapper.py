"""Bounded-concurrency async map.

Applies an async mapper to every element of a sequence with a cap on the
number of mapper calls in flight, returning results in input order:

    # the legacy inventory service falls over beyond 3 simultaneous requests
    addresses = await concurrent_map(3, get_store_address, stores)

`concurrent_map` is the reference strategy: items are processed in chunks of
`concurrency` and a chunk must fully settle before the next one starts.
`concurrent_map_pool` admits a new item as soon as any in-flight call
finishes. Neither applies timeouts; a call that never completes stalls the
whole map.
"""

import asyncio
import functools
import logging
from typing import Awaitable, Callable, Sequence, TypeVar

from .chunks import check_positive, split

T = TypeVar("T")
G = TypeVar("G")

Mapper = Callable[[T], Awaitable[G]]

logger = logging.getLogger(__name__)


async def _invoke(mapper: Mapper, item: T) -> G:
    return await mapper(item)


async def _gather_chunk(mapper: Mapper, chunk: list[T]) -> list[G]:
    """Run mapper over one chunk concurrently and wait for every call.

    Calls that fail do not interrupt their siblings; once the whole chunk has
    settled the first failure in chunk order is raised.
    """
    responses = await asyncio.gather(
        *(_invoke(mapper, item) for item in chunk), return_exceptions=True
    )
    for response in responses:
        if isinstance(response, BaseException):
            raise response
    return responses


async def concurrent_map(
    concurrency: int, mapper: Mapper, items: Sequence[T]
) -> list[G]:
    """Map items through an async mapper, at most `concurrency` at a time.

    Args:
        concurrency: Maximum number of mapper calls in flight
        mapper: Async function applied to each item
        items: Items to transform

    Returns:
        Mapper results in the same order as items

    Raises:
        ValueError: If concurrency is not a positive integer
        Exception: The first error raised by a mapper call. Later chunks are
            never started and no partial result is returned.
    """
    check_positive("concurrency", concurrency)
    chunks = split(concurrency, items)

    results: list[G] = []
    for index, chunk in enumerate(chunks, start=1):
        logger.debug(f"Processing chunk {index}/{len(chunks)} ({len(chunk)} items)")
        results.extend(await _gather_chunk(mapper, chunk))
    return results


def concurrent_map_chained(
    concurrency: int, mapper: Mapper, items: Sequence[T]
) -> Awaitable[list[G]]:
    """Chunked map built as a single chain of awaitables.

    Each chunk is linked onto the previous one with functools.reduce, so the
    returned awaitable runs the chunks one after another. Results and error
    behavior match concurrent_map. Argument validation happens immediately,
    before anything is scheduled.
    """
    check_positive("concurrency", concurrency)
    chunks = split(concurrency, items)
    results: list[G] = []

    async def start() -> None:
        return None

    def link(previous: Awaitable[None], chunk: list[T]) -> Awaitable[None]:
        async def step() -> None:
            await previous
            results.extend(await _gather_chunk(mapper, chunk))

        # A task per link keeps awaits flat however many chunks there are
        return asyncio.ensure_future(step())

    async def chain() -> list[G]:
        await functools.reduce(link, chunks, start())
        return results

    return chain()


async def concurrent_map_pool(
    concurrency: int, mapper: Mapper, items: Sequence[T]
) -> list[G]:
    """Sliding-window variant of concurrent_map.

    A new item is started as soon as any in-flight call completes instead of
    waiting for a whole chunk, so throughput does not suffer from one slow
    item per chunk. Results keep input order. After the first failure no
    further items are started; calls already running are allowed to finish
    and the earliest failing item (in input order) has its error raised.
    """
    check_positive("concurrency", concurrency)
    items = list(items)
    if not items:
        return []

    results: list[G] = [None] * len(items)  # type: ignore[list-item]
    failures: list[tuple[int, Exception]] = []
    semaphore = asyncio.Semaphore(concurrency)

    async def run(index: int, item: T) -> None:
        try:
            results[index] = await mapper(item)
        except Exception as e:
            failures.append((index, e))
        finally:
            semaphore.release()

    tasks: list[asyncio.Task] = []
    try:
        for index, item in enumerate(items):
            await semaphore.acquire()
            if failures:
                semaphore.release()
                logger.debug(f"Stopping admission after failure, {index} items started")
                break
            tasks.append(asyncio.create_task(run(index, item)))
        await asyncio.gather(*tasks)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise

    if failures:
        raise min(failures, key=lambda failure: failure[0])[1]
    return results
