"""Runs remote calls through the rate limiter, backing off on HTTP 429."""

import logging
import time
from typing import Callable, TypeVar

from .exceptions import RateLimitError
from .rate_limiter import TokenBucketRateLimiter

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3


def exponential_backoff(attempt: int) -> float:
    """Seconds to wait after the given (1-based) failed attempt: 2, 4, 8, ..."""
    return float(2 ** attempt)


def is_rate_limit_error(error: BaseException) -> bool:
    """True for RateLimitError or anything else carrying HTTP status 429."""
    if isinstance(error, RateLimitError):
        return True
    status = getattr(error, "status_code", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)
    return status == 429


class RetryingExecutor:
    """Acquires a token before every attempt and retries rate-limited calls."""

    def __init__(
        self,
        rate_limiter: TokenBucketRateLimiter,
        backoff: Callable[[int], float] = exponential_backoff,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.rate_limiter = rate_limiter
        self.backoff = backoff
        self.sleep = sleep

    def execute_with_rate_limit(self, call: Callable[[], T], max_retries: int = DEFAULT_MAX_RETRIES) -> T:
        """Invoke ``call`` within the rate limit.

        Rate-limit errors are retried up to ``max_retries`` times, so a call
        that is always rate limited is attempted ``max_retries + 1`` times.
        Any other error, and the last rate-limit error, is re-raised as is.
        """
        attempt = 1
        while True:
            self.rate_limiter.acquire()
            try:
                return call()
            except Exception as e:
                if not is_rate_limit_error(e) or attempt > max_retries:
                    raise
                wait_time = self.backoff(attempt)
                logger.debug(
                    f"Rate limit hit. Backing off for {wait_time:g}s (attempt {attempt}/{max_retries})..."
                )
                self.sleep(wait_time)
                attempt += 1
