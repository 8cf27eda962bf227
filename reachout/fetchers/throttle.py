"""
Politeness primitives: a process-wide rate limiter and exponential-backoff retry.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Spaces out the start of scheduled operations by a minimum interval.

    Callers queue on an asyncio.Lock (FIFO). The lock only guards the wait for
    the next slot; the operation itself runs after the lock is released, so an
    operation may schedule further work on the same limiter.
    """

    def __init__(
        self,
        min_interval_ms: int = 1000,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval_ms = min_interval_ms
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_start: Optional[float] = None

    async def acquire(self) -> None:
        """Wait for the next free slot and claim it."""
        async with self._lock:
            if self._last_start is not None:
                ready_at = self._last_start + self.min_interval_ms / 1000
                now = self._clock()
                while now < ready_at:
                    await self._sleep(ready_at - now)
                    now = self._clock()
            self._last_start = self._clock()

    async def schedule(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run operation once a slot is free and return its result."""
        await self.acquire()
        return await operation()

    def wrap(self, func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        """Return a version of func whose calls go through this limiter."""
        async def limited(*args, **kwargs) -> T:
            return await self.schedule(lambda: func(*args, **kwargs))
        return limited


def backoff_delay_ms(base_delay_ms: int, attempt: int) -> int:
    """Exponential backoff delay in milliseconds for a 0-based attempt index."""
    return base_delay_ms * (2 ** attempt)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay_ms: int = 1000,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run operation, retrying every failure with exponential backoff.

    After a failure on attempt i (0-based) waits base_delay_ms * 2**i before
    the next attempt. The last exception is re-raised once max_attempts
    attempts have failed.
    """
    attempts = max(1, max_attempts)
    for attempt in range(attempts):
        try:
            return await operation()
        except Exception as e:
            if attempt == attempts - 1:
                raise
            delay = backoff_delay_ms(base_delay_ms, attempt)
            logger.debug("Attempt %d/%d failed (%s), retrying in %dms", attempt + 1, attempts, e, delay)
            await sleep(delay / 1000)
    raise AssertionError("unreachable")
