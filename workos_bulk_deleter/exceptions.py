"""Exception hierarchy for the bulk deleter."""

from typing import Optional


class BulkDeleterError(Exception):
    """Base class for all errors raised by the bulk deleter."""


class ConfigurationError(BulkDeleterError):
    """Invalid configuration or arguments. Raised before any network activity."""


class WorkOSApiError(BulkDeleterError):
    """Non-success response from the WorkOS API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{message} (HTTP {status_code})")
        self.status_code = status_code
        self.message = message


class RateLimitError(WorkOSApiError):
    """The API rejected the request with HTTP 429."""

    def __init__(self, message: str = "Rate limit exceeded"):
        super().__init__(429, message)


class NotFoundError(WorkOSApiError):
    """The requested resource does not exist (HTTP 404)."""

    def __init__(self, message: str = "Not found"):
        super().__init__(404, message)


class RunAbortedError(BulkDeleterError):
    """An unrecovered error stopped the run part way through.

    ``partial_result`` holds every outcome produced before the failing stage.
    """

    def __init__(self, stage, partial_result, cause: Optional[BaseException] = None):
        super().__init__(f"Run aborted during {stage.value}: {cause}")
        self.stage = stage
        self.partial_result = partial_result
        self.cause = cause
