import asyncio
import time
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, Optional

from ..errors import CrawlCancelled
from ..sessions import CancelToken
from .token_bucket import TokenBucket

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[Any]]


@dataclass
class _QueuedJob:
    job: Job
    future: asyncio.Future
    token: CancelToken


class EnrichmentQueue:
    """
    Rate-limited FIFO of completion calls, one queue per session.

    A dispatch needs a free slot in both the global bucket (shared by all
    sessions) and the session's own bucket, and records itself in both.
    Each session's queue is drained by its own task, one job at a time.
    """

    def __init__(self, max_per_window: int = 6, window_size: float = 1.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Optional[Callable[[float], Awaitable[None]]] = None):
        self.max_per_window = max_per_window
        self.window_size = window_size
        self.global_bucket = TokenBucket(max_per_window, window_size)
        self._clock = clock
        self._sleep = sleep

        self._session_buckets: Dict[str, TokenBucket] = {}
        self._queues: Dict[str, Deque[_QueuedJob]] = {}
        self._tokens: Dict[str, CancelToken] = {}
        self._drainers: Dict[str, asyncio.Task] = {}

    def session_bucket(self, session_id: str) -> TokenBucket:
        bucket = self._session_buckets.get(session_id)
        if bucket is None:
            bucket = TokenBucket(self.max_per_window, self.window_size)
            self._session_buckets[session_id] = bucket
        return bucket

    def has_session(self, session_id: str) -> bool:
        return (session_id in self._session_buckets or session_id in self._queues
                or session_id in self._drainers)

    def pending(self, session_id: str) -> int:
        return len(self._queues.get(session_id, ()))

    async def enqueue(self, job: Job, token: CancelToken, session_id: str) -> Any:
        """Queue `job` for the session and wait for its result.

        Raises:
            CrawlCancelled: if the session is cancelled before the job runs
        """
        token.raise_if_cancelled()

        future = asyncio.get_running_loop().create_future()
        self._queues.setdefault(session_id, deque()).append(_QueuedJob(job, future, token))
        self._tokens[session_id] = token
        self.session_bucket(session_id)

        drainer = self._drainers.get(session_id)
        if drainer is None or drainer.done():
            self._drainers[session_id] = asyncio.create_task(self._drain(session_id))

        return await future

    async def _drain(self, session_id: str) -> None:
        queue = self._queues.get(session_id)
        bucket = self.session_bucket(session_id)

        while queue:
            head = queue[0]
            if head.future.done():
                # caller went away
                queue.popleft()
                continue

            # jobs carry their own run's token; a re-registered id may share the queue
            token = head.token
            if token.cancelled:
                discarded = self._discard(queue, token)
                logger.info(f"Enrichment run cancelled for session {session_id}, discarded {discarded} jobs")
                continue

            now = self._clock()
            if not (self.global_bucket.can_dispatch(now) and bucket.can_dispatch(now)):
                wait_time = min(
                    b.time_until_available(now)
                    for b in (self.global_bucket, bucket)
                    if not b.can_dispatch(now)
                )
                logger.debug(f"Enrichment rate limit reached, waiting {wait_time * 1000:.0f}ms")
                await self._wait(token, wait_time)
                continue

            self.global_bucket.record(now)
            bucket.record(now)
            queued = queue.popleft()
            logger.debug(
                f"Dispatching enrichment job for session {session_id} "
                f"({bucket.count(now)}/{self.max_per_window} per {self.window_size:g}s)"
            )

            try:
                result = await token.guard(queued.job())
            except asyncio.CancelledError:
                if not queued.future.done():
                    queued.future.cancel()
                raise
            except Exception as e:
                if not queued.future.done():
                    queued.future.set_exception(e)
            else:
                if not queued.future.done():
                    queued.future.set_result(result)

    async def _wait(self, token: CancelToken, delay: float) -> None:
        if self._sleep is not None:
            await self._sleep(delay)
        else:
            await token.sleep(delay)

    @staticmethod
    def _discard(queue: Deque[_QueuedJob], token: Optional[CancelToken] = None) -> int:
        """Fail queued jobs with CrawlCancelled: all of them, or only those of `token`"""
        kept: Deque[_QueuedJob] = deque()
        discarded = 0
        while queue:
            queued = queue.popleft()
            if token is not None and queued.token is not token:
                kept.append(queued)
                continue
            if not queued.future.done():
                queued.future.set_exception(CrawlCancelled())
                discarded += 1
        queue.extend(kept)
        return discarded

    def release(self, session_id: str, token: Optional[CancelToken] = None) -> None:
        """Drop the session's bucket, queued jobs and drain task.

        With `token`, nothing is dropped once a newer run has enqueued
        under the same id.
        """
        owner = self._tokens.get(session_id)
        if token is not None and owner is not None and owner is not token:
            logger.debug(f"Session {session_id} belongs to a newer run, keeping its enrichment state")
            return

        queue = self._queues.pop(session_id, None)
        if queue:
            self._discard(queue)

        drainer = self._drainers.pop(session_id, None)
        if drainer is not None and not drainer.done():
            drainer.cancel()

        self._tokens.pop(session_id, None)
        if self._session_buckets.pop(session_id, None) is not None:
            logger.debug(f"Released enrichment budget for session {session_id}")
