"""Abstract base class for platform rate-limit monitors."""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

import requests

from ..config import IngestConfig
from ..models import Platform, RateLimitStatus


class RateLimitMonitor(ABC):
    """Reports a platform's current API quota for one credential.

    Each monitor also defines the conservative statuses the gate falls back
    to when no credential is available or the check itself fails.
    """

    platform: Platform

    def __init__(self, config: IngestConfig | None = None, session: requests.Session | None = None):
        self.config = config or IngestConfig.from_env()
        self.session = session or requests.Session()

    @abstractmethod
    def check(self, token: str, base_url: str | None = None) -> RateLimitStatus:
        """Query (or estimate) the quota for ``token``.

        Args:
            token: Credential as sent to the platform
            base_url: Host of an on-premise instance, if any

        Returns:
            Current status

        Raises:
            RateLimitExceededException: If the platform refuses further calls
                or rejects the credential
            requests.RequestException: On transport errors
        """
        pass

    @abstractmethod
    def unauthenticated_status(self) -> RateLimitStatus:
        """Status assumed for anonymous access; computed without network calls."""
        pass

    @abstractmethod
    def fallback_status(self) -> RateLimitStatus:
        """Status assumed when the check fails for reasons other than the quota."""
        pass

    def supports(self, platform: str) -> bool:
        key = platform.strip().lower()
        return key in (self.platform.value.lower(), self.platform.name.lower())

    def status(self, limit: int, used: int, reset_in_seconds: int) -> RateLimitStatus:
        return RateLimitStatus(
            platform=self.platform.display_name,
            limit=limit,
            used=used,
            reset_at=now_utc() + timedelta(seconds=reset_in_seconds),
        )

    @property
    def timeout(self) -> int:
        return self.config.http_timeout_seconds


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def from_epoch(seconds: int | float | str) -> datetime:
    return datetime.fromtimestamp(float(seconds), tz=timezone.utc)


def is_host_of(base_url: str | None, host: str) -> bool:
    """True when ``base_url`` is absent or points at the public ``host``."""
    return not base_url or host in base_url
