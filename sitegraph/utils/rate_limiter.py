import asyncio
import time
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass
class RateBudget:
    """Dispatch spacing state shared by every session"""
    min_interval: float
    last_request_time: float = 0.0


class RateLimiter:
    """
    Process-wide fixed-interval throttle for outbound page fetches.

    One instance is shared across all sessions; the lock serializes
    concurrent sessions so the spacing holds globally.
    """

    def __init__(self, requests_per_second: float = 25.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        self.budget = RateBudget(min_interval=1.0 / requests_per_second)
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()

    @property
    def min_interval(self) -> float:
        return self.budget.min_interval

    async def wait_for_rate_limit(self) -> float:
        """Wait until the next dispatch is allowed, then record it.

        Returns:
            float: seconds spent waiting
        """
        async with self._lock:
            wait_time = 0.0
            time_since_last = self._clock() - self.budget.last_request_time
            if time_since_last < self.budget.min_interval:
                wait_time = self.budget.min_interval - time_since_last
                logger.debug(f"Rate limiting: waiting {wait_time * 1000:.0f}ms")
                await self._sleep(wait_time)

            self.budget.last_request_time = self._clock()
            return wait_time
