import logging
import math
from dataclasses import dataclass

from photovocab.errors import RateLimited
from photovocab.utils.time import Clock, SystemClock

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """Counts hits per key in fixed windows. State lives on the instance."""

    def __init__(self, limit: int, window_seconds: int, clock: Clock | None = None):
        if limit < 1 or window_seconds < 1:
            raise ValueError("limit and window_seconds must be positive")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock or SystemClock()
        self._windows: dict[str, _Window] = {}

    def _now(self) -> float:
        return self._clock.now().timestamp()

    def hit(self, key: str) -> int:
        """Count one request for ``key``; return how many remain in the window."""
        now = self._now()
        window = self._windows.get(key)
        if window is None or now >= window.reset_at:
            self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
            self._prune(now)
            return self.limit - 1

        if window.count >= self.limit:
            retry_after = max(1, math.ceil(window.reset_at - now))
            logger.warning("Rate limit exceeded for %s; retry in %ss", key, retry_after)
            raise RateLimited(key, retry_after)

        window.count += 1
        return self.limit - window.count

    def _prune(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]

    def reset(self, key: str | None = None) -> None:
        if key is None:
            self._windows.clear()
        else:
            self._windows.pop(key, None)
