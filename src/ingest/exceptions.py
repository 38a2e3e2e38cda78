"""Exception taxonomy for the ingestion engine."""

from datetime import datetime


class IngestError(Exception):
    """Base exception for ingestion errors."""

    pass


class InvalidUrlError(IngestError, ValueError):
    """Repository URL does not match any supported platform shape.

    Not retryable: the same URL will fail the same way.
    """

    pass


class DataProcessingException(IngestError):
    """A fetch strategy failed as a whole.

    Raised for clone failures, a missing platform client or any unexpected
    error inside a strategy. The caller may retry the whole scan later.
    """

    pass


class PlatformApiException(IngestError):
    """A platform REST call failed.

    Attributes:
        platform: Display name of the platform ("GitHub", "GitLab", ...)
        status_code: HTTP status code, or None when no response was received
    """

    def __init__(self, platform: str, message: str, status_code: int | None = None):
        super().__init__(message)
        self.platform = platform
        self.status_code = status_code


class RateLimitExceededException(DataProcessingException):
    """A platform refused further calls, or credentials were rejected.

    Carries enough detail for the caller to schedule a delayed retry.

    Attributes:
        platform: Display name of the platform
        used: Requests consumed in the current window
        limit: Window size
        reset_at: When the platform window resets (UTC)
    """

    def __init__(self, platform: str, used: int, limit: int, reset_at: datetime):
        self.platform = platform
        self.used = used
        self.limit = limit
        self.reset_at = reset_at
        super().__init__(
            f"Rate limit exceeded for {platform}: {used}/{limit} requests used "
            f"({self.percent_used:.0%}), resets at {reset_at.isoformat()}"
        )

    @property
    def percent_used(self) -> float:
        """Fraction of the window consumed (0.0 when the limit is unknown)."""
        if self.limit <= 0:
            return 0.0
        return self.used / self.limit
