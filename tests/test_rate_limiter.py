import asyncio
import unittest

from sitegraph.utils.rate_limiter import RateLimiter

from tests.fakes import FakeClock


class RateLimiterTests(unittest.IsolatedAsyncioTestCase):
    async def test_first_request_does_not_wait(self):
        clock = FakeClock(start=100.0)
        limiter = RateLimiter(25, clock=clock, sleep=clock.sleep)

        waited = await limiter.wait_for_rate_limit()

        self.assertEqual(waited, 0.0)
        self.assertEqual(clock.sleeps, [])

    async def test_back_to_back_requests_are_spaced(self):
        clock = FakeClock(start=100.0)
        limiter = RateLimiter(25, clock=clock, sleep=clock.sleep)

        await limiter.wait_for_rate_limit()
        clock.now += 0.01
        waited = await limiter.wait_for_rate_limit()

        self.assertAlmostEqual(waited, 0.03)
        self.assertAlmostEqual(limiter.min_interval, 0.04)

    async def test_concurrent_callers_share_the_spacing(self):
        clock = FakeClock(start=100.0)
        limiter = RateLimiter(10, clock=clock, sleep=clock.sleep)
        dispatched = []

        async def caller():
            await limiter.wait_for_rate_limit()
            dispatched.append(clock.now)

        await asyncio.gather(*(caller() for _ in range(4)))

        gaps = [b - a for a, b in zip(dispatched, dispatched[1:])]
        for gap in gaps:
            self.assertGreaterEqual(gap, 0.1 - 1e-9)

    def test_rejects_non_positive_rate(self):
        with self.assertRaises(ValueError):
            RateLimiter(0)
