"""GitLab rate-limit monitor."""

import requests

from common.logger import get_logger

from ..exceptions import RateLimitExceededException
from ..models import Platform, RateLimitStatus
from .base import RateLimitMonitor, from_epoch, is_host_of

logger = get_logger(__name__)

# Authenticated gitlab.com limit per minute
DEFAULT_LIMIT = 2000


class GitLabRateLimitMonitor(RateLimitMonitor):
    """Probes ``GET /user`` and reads ``RateLimit-*`` headers when present.

    GitLab has no quota endpoint. Instances that do not send rate-limit
    headers get an estimate based on the documented per-minute limit.
    """

    platform = Platform.GITLAB

    def check(self, token: str, base_url: str | None = None) -> RateLimitStatus:
        url = f"{self._api_url(base_url)}/user"
        response = self.session.get(url, headers={"PRIVATE-TOKEN": token}, timeout=self.timeout)
        code = response.status_code

        if code == 401:
            logger.error("GitLab authentication failed - invalid or expired token")
            raise RateLimitExceededException(
                self.platform.display_name, 0, DEFAULT_LIMIT, self.status(DEFAULT_LIMIT, 0, 3600).reset_at
            )
        if code == 429:
            status = self._from_headers(response) or self.status(DEFAULT_LIMIT, DEFAULT_LIMIT, 60)
            raise RateLimitExceededException(status.platform, status.limit, status.limit, status.reset_at)
        if code == 403:
            logger.warning("GitLab API access forbidden - possible rate limit or permission issue")
            return self.status(limit=DEFAULT_LIMIT, used=1990, reset_in_seconds=300)
        if code == 404:
            logger.warning(
                "GitLab API endpoint not found (404) - check token permissions or API URL; "
                "using default rate limit status"
            )
            return self.status(limit=DEFAULT_LIMIT, used=1000, reset_in_seconds=60)
        if code >= 400:
            logger.error(f"Error checking GitLab rate limit (HTTP {code})")
            return self.fallback_status()

        return self._from_headers(response) or self.status(
            limit=DEFAULT_LIMIT, used=100, reset_in_seconds=60
        )

    def unauthenticated_status(self) -> RateLimitStatus:
        return self.status(limit=300, used=50, reset_in_seconds=60)

    def fallback_status(self) -> RateLimitStatus:
        return self.status(limit=DEFAULT_LIMIT, used=1500, reset_in_seconds=60)

    def _api_url(self, base_url: str | None) -> str:
        if is_host_of(base_url, "gitlab.com"):
            return self.config.gitlab_api_url
        base_url = base_url.rstrip("/")
        return base_url if base_url.endswith("/api/v4") else f"{base_url}/api/v4"

    def _from_headers(self, response: requests.Response) -> RateLimitStatus | None:
        headers = response.headers
        if "RateLimit-Limit" not in headers:
            return None
        try:
            limit = int(headers["RateLimit-Limit"])
            if "RateLimit-Remaining" in headers:
                used = limit - int(headers["RateLimit-Remaining"])
            else:
                used = int(headers.get("RateLimit-Observed", 0))
            reset = headers.get("RateLimit-Reset")
            reset_at = from_epoch(reset) if reset is not None else None
        except ValueError:
            logger.debug("Ignoring malformed GitLab rate limit headers")
            return None

        if reset_at is None:
            return self.status(limit=limit, used=used, reset_in_seconds=60)
        return RateLimitStatus(self.platform.display_name, limit, used, reset_at)
