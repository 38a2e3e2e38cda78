"""Azure DevOps rate-limit monitor."""

from common.logger import get_logger

from ..models import Platform, RateLimitStatus
from .base import RateLimitMonitor

logger = get_logger(__name__)


class AzureDevOpsRateLimitMonitor(RateLimitMonitor):
    """Estimates the quota locally.

    Azure DevOps throttles by resource consumption and only reports it once a
    request is already delayed, so there is nothing useful to ask the platform.
    """

    platform = Platform.AZURE_DEVOPS

    def check(self, token: str, base_url: str | None = None) -> RateLimitStatus:
        logger.debug("Azure DevOps exposes no rate limit endpoint; using estimate")
        return self.status(limit=300, used=50, reset_in_seconds=60)

    def unauthenticated_status(self) -> RateLimitStatus:
        return self.status(limit=300, used=50, reset_in_seconds=60)

    def fallback_status(self) -> RateLimitStatus:
        return self.status(limit=300, used=50, reset_in_seconds=60)
