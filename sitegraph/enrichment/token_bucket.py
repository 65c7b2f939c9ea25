from collections import deque
from typing import Deque


class TokenBucket:
    """
    Time-windowed request budget.

    Keeps the dispatch times that fall inside the trailing window, so any
    window of `window_size` seconds holds at most `limit` dispatches. All
    operations take the current clock reading explicitly.
    """

    def __init__(self, limit: int, window_size: float):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_size <= 0:
            raise ValueError("window_size must be positive")
        self.limit = limit
        self.window_size = window_size
        self._dispatches: Deque[float] = deque()

    def _expire(self, now: float) -> None:
        while self._dispatches and now - self._dispatches[0] >= self.window_size:
            self._dispatches.popleft()

    def count(self, now: float) -> int:
        """Dispatches inside the window ending at `now`"""
        self._expire(now)
        return len(self._dispatches)

    def window_start(self, now: float) -> float:
        """Oldest dispatch still inside the window, `now` if there is none"""
        self._expire(now)
        return self._dispatches[0] if self._dispatches else now

    def can_dispatch(self, now: float) -> bool:
        return self.count(now) < self.limit

    def record(self, now: float) -> None:
        self._expire(now)
        self._dispatches.append(now)

    def time_until_available(self, now: float) -> float:
        """Seconds until a dispatch is permitted (0.0 if it already is)"""
        if self.can_dispatch(now):
            return 0.0
        return max(0.0, self._dispatches[0] + self.window_size - now)

    def __repr__(self) -> str:
        return f"TokenBucket(limit={self.limit}, window_size={self.window_size}, in_window={len(self._dispatches)})"
