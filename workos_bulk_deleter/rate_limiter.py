"""Token bucket rate limiter shared by every worker in a run."""

import math
import threading
import time
from typing import Callable, Optional

from .exceptions import ConfigurationError


class TokenBucketRateLimiter:
    """Admits at most ``capacity`` requests in a burst and ``refill_rate`` per second after that."""

    def __init__(
        self,
        max_requests_per_second: float = 40,
        capacity: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_requests_per_second is None or max_requests_per_second <= 0:
            raise ConfigurationError(
                f"Requests per second must be greater than 0 (got {max_requests_per_second})"
            )
        if capacity is None:
            capacity = max_requests_per_second
        if capacity <= 0:
            raise ConfigurationError(f"Bucket capacity must be greater than 0 (got {capacity})")

        self.capacity = capacity
        self.tokens = capacity
        self.refill_rate = max_requests_per_second
        self.clock = clock
        self.sleep = sleep
        self.last_refill = clock()
        self.lock = threading.Lock()
        # Polling interval while the bucket is empty, in seconds.
        self.wait_interval = math.ceil(1000 / self.refill_rate) / 1000

    def _refill(self) -> None:
        # Caller must hold self.lock.
        now = self.clock()
        elapsed = max(0.0, now - self.last_refill)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    def try_acquire(self) -> bool:
        """Take a token if one is available right now."""
        with self.lock:
            self._refill()
            if self.tokens >= 1:
                self.tokens -= 1
                return True
            return False

    def acquire(self) -> None:
        """Block until a token has been taken."""
        while not self.try_acquire():
            self.sleep(self.wait_interval)

    def available_tokens(self) -> int:
        """Get current token availability (for debugging)."""
        with self.lock:
            self._refill()
            return math.floor(self.tokens)
