"""
Sliding window rate limiting for GitHub API requests.

GitHub applies secondary ("abuse") rate limits to requests that create content
and trigger notifications, such as issues and comments. Those limits are far
below the documented primary limit, so every request to GitHub is admitted
through a SlidingWindowRateLimiter first.

The limiter keeps the start times of the last ``max_requests_per_interval``
requests. A new request may start once the oldest of them is at least one
interval old, so no window of length ``interval`` ever contains more than
``max_requests_per_interval`` request starts, including bursts straddling a
window boundary.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
import time
from collections import deque
from collections.abc import Callable

from .settings import to_seconds

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Delays callers so at most N requests start within any rolling interval."""

    def __init__(
        self,
        max_requests_per_interval: int,
        interval: float | dt.timedelta,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            max_requests_per_interval: Maximum number of request starts per interval (>= 1)
            interval: Length of the rolling window, in seconds or as a timedelta (> 0)
            clock: Monotonic time source returning seconds
            sleep: Function used to wait for the window to roll over

        Raises:
            ValueError: If the ceiling or the interval is out of range
        """
        interval_seconds = to_seconds(interval)
        if max_requests_per_interval < 1:
            msg = f"max_requests_per_interval must be at least 1, got {max_requests_per_interval}"
            raise ValueError(msg)
        if interval_seconds <= 0:
            msg = f"interval must be greater than zero, got {interval_seconds}"
            raise ValueError(msg)

        self.max_requests_per_interval: int = max_requests_per_interval
        self.interval: float = interval_seconds
        self._clock = clock
        self._sleep = sleep
        self._request_timestamps: deque[float] = deque()
        self._lock = threading.Lock()

    def acquire(self) -> None:
        """Block until a request may start, then record its start time.

        The whole check-wait-record sequence holds the lock, so concurrent
        callers are admitted one at a time and in order.
        """
        with self._lock:
            now = self._clock()

            if len(self._request_timestamps) == self.max_requests_per_interval:
                oldest = self._request_timestamps[0]
                elapsed = now - oldest
                if elapsed < self.interval:
                    wait = self.interval - elapsed
                    logger.debug(f"Rate limit of {self.max_requests_per_interval} requests reached, waiting {wait:.2f}s")
                    self._sleep(wait)
                    now = self._clock()
                self._request_timestamps.popleft()

            self._request_timestamps.append(now)

    @property
    def request_timestamps(self) -> tuple[float, ...]:
        """Snapshot of the recorded request start times, oldest first."""
        with self._lock:
            return tuple(self._request_timestamps)
