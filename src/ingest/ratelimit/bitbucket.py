"""Bitbucket rate-limit monitor."""

from common.logger import get_logger

from ..exceptions import RateLimitExceededException
from ..models import Platform, RateLimitStatus
from .base import RateLimitMonitor, is_host_of

logger = get_logger(__name__)


def split_credentials(token: str) -> tuple[str, str]:
    """Split a ``username:appPassword`` credential string.

    Raises:
        ValueError: If the token is not in that form
    """
    if not token or ":" not in token:
        raise ValueError("Bitbucket token must be in format 'username:appPassword'")
    username, secret = token.split(":", 1)
    if not username or not secret:
        raise ValueError("Bitbucket token must be in format 'username:appPassword'")
    return username, secret


class BitbucketRateLimitMonitor(RateLimitMonitor):
    """Probes an authenticated endpoint; Bitbucket exposes no quota headers.

    Cloud allows roughly 5000 requests per hour, on-premise servers are
    estimated at 1000.
    """

    platform = Platform.BITBUCKET

    def check(self, token: str, base_url: str | None = None) -> RateLimitStatus:
        username, secret = split_credentials(token)
        cloud = is_host_of(base_url, "bitbucket.org")
        if cloud:
            url = f"{self.config.bitbucket_api_url}/user"
        else:
            url = f"{base_url.rstrip('/')}/rest/api/1.0/application-properties"

        response = self.session.get(
            url,
            auth=(username, secret),
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        code = response.status_code
        if code == 401:
            logger.error("Unauthorized access to Bitbucket API. Please check your credentials.")
            raise self._exceeded(used=0)
        if code in (403, 429):
            logger.error(f"Bitbucket API refused the request (HTTP {code}); rate limit may be exceeded")
            raise self._exceeded(used=1000)
        if code >= 400:
            logger.warning(f"Rate limit check failed for Bitbucket (HTTP {code})")
            return self.fallback_status()

        if cloud:
            return self.status(limit=5000, used=1000, reset_in_seconds=3600)
        return self.status(limit=1000, used=200, reset_in_seconds=3600)

    def unauthenticated_status(self) -> RateLimitStatus:
        return self.status(limit=60, used=0, reset_in_seconds=3600)

    def fallback_status(self) -> RateLimitStatus:
        return self.status(limit=1000, used=500, reset_in_seconds=3600)

    def _exceeded(self, used: int) -> RateLimitExceededException:
        return RateLimitExceededException(
            self.platform.display_name, used, 1000, self.status(1000, used, 3600).reset_at
        )
