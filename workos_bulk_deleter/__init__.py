"""Rate-limited bulk deletion of WorkOS organizations and users."""

from .client import Page, WorkOSClient
from .deleter import BulkDeleter
from .exceptions import (
    BulkDeleterError,
    ConfigurationError,
    NotFoundError,
    RateLimitError,
    RunAbortedError,
    WorkOSApiError,
)
from .executor import RetryingExecutor
from .fetcher import PaginatedFetcher
from .filters import DateFilter, filter_by_date
from .models import DeletionOutcome, DeletionResults, Entity, RunResult
from .orchestrator import BulkDeletionRun, Stage
from .rate_limiter import TokenBucketRateLimiter

__version__ = "1.0.0"
