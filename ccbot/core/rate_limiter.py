"""
Per-client request rate limiting for the HTTP server
Fixed budget of requests inside a sliding time window
"""

import logging
import time
from collections import deque
from collections.abc import Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window limiter keyed by client address"""

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: dict[str, deque[float]] = {}

    def allow(self, key: str) -> bool:
        """Record a request for ``key``; False once its budget for the window is spent."""
        now = self._clock()
        self._prune(now)

        recent = self._requests.setdefault(key, deque())
        if len(recent) >= self.max_requests:
            return False
        recent.append(now)
        return True

    def retry_after(self, key: str) -> int:
        """Seconds until ``key`` gets a request back"""
        recent = self._requests.get(key)
        if not recent:
            return 0
        return max(1, int(recent[0] + self.window_seconds - self._clock()) + 1)

    def _prune(self, now: float) -> None:
        cutoff = now - self.window_seconds
        for key in list(self._requests):
            recent = self._requests[key]
            while recent and recent[0] <= cutoff:
                recent.popleft()
            if not recent:
                del self._requests[key]
