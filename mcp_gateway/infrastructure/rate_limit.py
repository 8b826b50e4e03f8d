"""Rate Limiter — fixed-window request quota per client key.

Invariants:
    - At most max_requests hits per key inside one window; the next hit raises
      RateLimitExceededError carrying the time left until the window resets
    - A window starts at the first hit of a key and lasts window_ms
    - Expired windows are pruned on access, so idle clients do not accumulate

Design Decisions:
    - Fixed window over sliding window: one counter per key, O(1) per hit
    - threading.Lock: check-and-increment is sync and short
    - Clock injectable for deterministic tests
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from mcp_gateway.core.errors import RateLimitExceededError

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    started_at: float
    count: int = 0


class FixedWindowRateLimiter:
    """Counts hits per key in fixed windows of window_ms milliseconds."""

    def __init__(
        self,
        window_ms: int,
        max_requests: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        if window_ms <= 0 or max_requests <= 0:
            raise ValueError("window_ms and max_requests must be positive")
        self.window_ms = window_ms
        self.max_requests = max_requests
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, _Window] = {}

    def hit(self, key: str) -> int:
        """Record one request for key. Returns remaining quota in the window."""
        now = self._clock()
        window_s = self.window_ms / 1000
        with self._lock:
            self._prune(now, window_s)
            window = self._windows.setdefault(key, _Window(started_at=now))
            if window.count >= self.max_requests:
                retry_after_ms = int((window.started_at + window_s - now) * 1000)
                exceeded = True
            else:
                window.count += 1
                remaining = self.max_requests - window.count
                exceeded = False
        if exceeded:
            logger.warning(
                f"Rate limit exceeded for {key}", extra={"client": key},
            )
            raise RateLimitExceededError(max(retry_after_ms, 0))
        return remaining

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _prune(self, now: float, window_s: float) -> None:
        expired = [
            k for k, w in self._windows.items() if now - w.started_at >= window_s
        ]
        for k in expired:
            del self._windows[k]
