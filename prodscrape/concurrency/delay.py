"""Per-call latency injection for rate limiting."""

import asyncio
import functools
import logging
import time
from typing import Any, Awaitable, Callable, TypeVar

G = TypeVar("G")

logger = logging.getLogger(__name__)


async def sleep_until(deadline: float) -> None:
    """Sleep until time.monotonic() reaches deadline.

    asyncio.sleep can wake up early by up to the loop clock resolution, so
    keep sleeping until the deadline has really passed.
    """
    while (remaining := deadline - time.monotonic()) > 0:
        await asyncio.sleep(remaining)


def delayed_return(
    delay_ms: float, fn: Callable[..., Awaitable[G]]
) -> Callable[..., Awaitable[G]]:
    """Wrap an async function so every call waits delay_ms before running it.

    The delay is measured from the start of each call and is applied on
    failure paths too: if fn raises, the error surfaces after the full wait.

    This is not a throttle across calls. Awaiting the wrapper strictly one
    call at a time spaces the calls by at least delay_ms; callers that invoke
    it concurrently get no spacing at all.

    Raises:
        ValueError: If delay_ms is negative
    """
    if isinstance(delay_ms, bool) or not isinstance(delay_ms, (int, float)) or delay_ms < 0:
        raise ValueError(f"delay_ms must be a non-negative number, got {delay_ms!r}")

    delay = delay_ms / 1000

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> G:
        await sleep_until(time.monotonic() + delay)
        return await fn(*args, **kwargs)

    logger.debug(f"Delaying calls to {getattr(fn, '__name__', fn)} by {delay_ms}ms")
    return wrapper
