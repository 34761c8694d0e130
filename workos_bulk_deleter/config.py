"""Settings read from the environment (and a local .env file)."""

import logging
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from .client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 40
DEFAULT_REQUESTS_PER_SECOND = 40
# Documented WorkOS ceiling.
API_REQUESTS_PER_SECOND_LIMIT = 50


def _positive_int(name: str, value, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a whole number (got {value!r})") from None
    if parsed <= 0:
        raise ConfigurationError(f"{name} must be greater than 0 (got {parsed})")
    return parsed


@dataclass(frozen=True)
class Settings:
    api_key: str
    concurrency: int = DEFAULT_CONCURRENCY
    requests_per_second: int = DEFAULT_REQUESTS_PER_SECOND
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        if not self.api_key:
            raise ConfigurationError(
                "WORKOS_API_KEY environment variable is not set. "
                'Please set it with: export WORKOS_API_KEY="your-api-key"'
            )
        _positive_int("CONCURRENCY", self.concurrency, DEFAULT_CONCURRENCY)
        _positive_int("MAX_REQUESTS_PER_SECOND", self.requests_per_second, DEFAULT_REQUESTS_PER_SECOND)
        if self.requests_per_second > API_REQUESTS_PER_SECOND_LIMIT:
            logger.warning(
                f"MAX_REQUESTS_PER_SECOND={self.requests_per_second} exceeds the WorkOS limit of "
                f"{API_REQUESTS_PER_SECOND_LIMIT}/s; expect rate limit errors"
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> "Settings":
        """Build settings from ``environ`` (default ``os.environ``)."""
        if environ is None:
            if dotenv:
                load_dotenv(find_dotenv(usecwd=True))
            environ = os.environ
        return cls(
            api_key=environ.get("WORKOS_API_KEY", ""),
            concurrency=_positive_int("CONCURRENCY", environ.get("CONCURRENCY"), DEFAULT_CONCURRENCY),
            requests_per_second=_positive_int(
                "MAX_REQUESTS_PER_SECOND", environ.get("MAX_REQUESTS_PER_SECOND"), DEFAULT_REQUESTS_PER_SECOND
            ),
            base_url=environ.get("WORKOS_API_BASE_URL") or DEFAULT_BASE_URL,
        )

    def with_overrides(self, concurrency: Optional[int] = None, requests_per_second: Optional[int] = None) -> "Settings":
        """Apply command-line overrides; ``None`` keeps the current value."""
        changes = {}
        if concurrency is not None:
            changes["concurrency"] = _positive_int("--concurrency", concurrency, self.concurrency)
        if requests_per_second is not None:
            changes["requests_per_second"] = _positive_int("--rate-limit", requests_per_second, self.requests_per_second)
        return replace(self, **changes) if changes else self
