import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Tick = Callable[[], Awaitable[None]]


class Heartbeat:
    """
    Periodic callback bound to the lifetime of one phase.

    Use as an async context manager: the ticker starts on entry and is
    stopped on every exit path, so no tick runs after the block ends.
    """

    def __init__(self, tick: Tick, interval: float = 3.0):
        self.tick = tick
        self.interval = interval
        self.reporting_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self.reporting_task is not None and not self.reporting_task.done()

    async def start_reporting(self):
        """Start periodic ticks"""
        self.reporting_task = asyncio.create_task(self._reporting_loop())

    async def stop_reporting(self):
        """Stop ticking; returns once the loop has exited"""
        if self.reporting_task:
            self.reporting_task.cancel()
            try:
                await self.reporting_task
            except asyncio.CancelledError:
                pass
            self.reporting_task = None

    async def _reporting_loop(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Heartbeat tick failed: {e}")

    async def __aenter__(self) -> "Heartbeat":
        await self.start_reporting()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop_reporting()


class CrawlProgressEstimate:
    """Advisory crawl percent: climbs by `step` per tick up to `ceiling`"""

    def __init__(self, start: int = 5, step: int = 3, ceiling: int = 89):
        self.value = start
        self.step = step
        self.ceiling = ceiling

    def advance(self) -> Optional[int]:
        """Next percent to report, None once the ceiling is reached"""
        if self.value > self.ceiling:
            return None
        current = self.value
        self.value += self.step
        return current
