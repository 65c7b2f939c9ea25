"""
Session registry and cooperative cancellation handles
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Dict, Optional, TypeVar

from .errors import CrawlCancelled

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CancelToken:
    """
    Cancellation handle shared by every suspend point of one session.

    Loops call raise_if_cancelled() at their heads; transport calls are
    wrapped in guard() so an in-flight request is torn down as soon as
    cancel() fires instead of running to completion in the background.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CrawlCancelled()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable`, aborting it with CrawlCancelled on cancel"""
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise CrawlCancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()

        if task in done:
            return task.result()
        raise CrawlCancelled()

    async def sleep(self, delay: float) -> None:
        """Sleep for `delay` seconds, waking early if cancelled"""
        if delay <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass


@dataclass
class Session:
    """One caller-identified unit of work"""
    session_id: str
    token: CancelToken = field(default_factory=CancelToken)
    created_at: float = field(default_factory=time.time)


class SessionRegistry:
    """Process-wide map of session id to cancellation handle"""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def register(self, session_id: str) -> CancelToken:
        """Register a session and return its cancellation handle.

        Re-registering an id still in flight cancels the older run first.
        """
        previous = self._sessions.get(session_id)
        if previous is not None:
            logger.warning(f"Session {session_id} re-registered while active, cancelling previous run")
            previous.token.cancel()

        session = Session(session_id=session_id)
        self._sessions[session_id] = session
        logger.debug(f"Registered session {session_id}")
        return session.token

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def cancel(self, session_id: str) -> bool:
        """Trigger cancellation. True if the session was found."""
        session = self._sessions.get(session_id)
        if session is None:
            return False
        session.token.cancel()
        logger.info(f"Cancellation requested for session {session_id}")
        return True

    def release(self, session_id: str, token: Optional[CancelToken] = None) -> None:
        """Remove a session. With `token`, only if it still owns the entry."""
        session = self._sessions.get(session_id)
        if session is None:
            return
        if token is not None and session.token is not token:
            return
        del self._sessions[session_id]
        logger.debug(f"Released session {session_id}")
