"""GitHub rate-limit monitor."""

from common.logger import get_logger

from ..exceptions import RateLimitExceededException
from ..models import Platform, RateLimitStatus
from .base import RateLimitMonitor, from_epoch, is_host_of, now_utc

logger = get_logger(__name__)


class GitHubRateLimitMonitor(RateLimitMonitor):
    """Reads the core quota from ``GET /rate_limit``.

    The endpoint itself does not count against the quota.
    """

    platform = Platform.GITHUB

    def check(self, token: str, base_url: str | None = None) -> RateLimitStatus:
        url = f"{self._api_url(base_url)}/rate_limit"
        logger.debug("Checking GitHub rate limit status")

        response = self.session.get(
            url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
            },
            timeout=self.timeout,
        )
        if response.status_code == 401:
            logger.error("GitHub authentication failed - invalid or expired token")
            raise RateLimitExceededException(
                self.platform.display_name, 0, 5000, self.status(5000, 0, 3600).reset_at
            )
        response.raise_for_status()

        core = response.json()["resources"]["core"]
        limit = int(core["limit"])
        remaining = int(core["remaining"])
        reset_at = from_epoch(core["reset"]) if "reset" in core else now_utc()
        status = RateLimitStatus(self.platform.display_name, limit, limit - remaining, reset_at)

        if remaining <= 0:
            raise RateLimitExceededException(status.platform, status.used, status.limit, reset_at)

        logger.debug(f"GitHub rate limit status: {status.used}/{status.limit} used")
        return status

    def unauthenticated_status(self) -> RateLimitStatus:
        return self.status(limit=60, used=0, reset_in_seconds=3600)

    def fallback_status(self) -> RateLimitStatus:
        return self.status(limit=5000, used=1000, reset_in_seconds=3600)

    def _api_url(self, base_url: str | None) -> str:
        if is_host_of(base_url, "github.com"):
            return self.config.github_api_url
        # GitHub Enterprise Server
        return f"{base_url.rstrip('/')}/api/v3"
