"""Rate Limit Gate: decides whether a remote scan may proceed."""

import threading
import time
from collections.abc import Callable, Iterable

import requests

from common.logger import get_logger

from ..config import IngestConfig
from ..exceptions import RateLimitExceededException
from ..models import Platform, RateLimitStatus, ToolType
from .azure_devops import AzureDevOpsRateLimitMonitor
from .base import RateLimitMonitor, now_utc
from .bitbucket import BitbucketRateLimitMonitor
from .github import GitHubRateLimitMonitor
from .gitlab import GitLabRateLimitMonitor

logger = get_logger(__name__)

# Extra wait after a platform's reset time before calling again
COOLDOWN_BUFFER_SECONDS = 30


def default_monitors(
    config: IngestConfig, session: requests.Session | None = None
) -> list[RateLimitMonitor]:
    """One monitor per supported platform."""
    return [
        GitHubRateLimitMonitor(config, session),
        GitLabRateLimitMonitor(config, session),
        BitbucketRateLimitMonitor(config, session),
        AzureDevOpsRateLimitMonitor(config, session),
    ]


class RateLimitGate:
    """Checks platform quotas before remote fetches.

    Behaviour per check:

    - no token: the monitor's unauthenticated estimate, no network call
    - monitor raises ``RateLimitExceededException``: propagated to the caller
    - any other monitor failure: the monitor's conservative status
    - usage at or over the threshold: a warning, and optionally a bounded
      wait until the platform window resets

    The last status and the number of checks per platform are kept for
    inspection. Monitor queries run concurrently; only the bookkeeping update
    is serialized per platform.
    """

    def __init__(
        self,
        config: IngestConfig | None = None,
        monitors: Iterable[RateLimitMonitor] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config or IngestConfig.from_env()
        if monitors is None:
            monitors = default_monitors(self.config)
        self._monitors: dict[Platform, RateLimitMonitor] = {m.platform: m for m in monitors}
        self._sleep = sleep

        self._guard = threading.Lock()
        self._locks: dict[Platform, threading.Lock] = {}
        self._last_status: dict[Platform, RateLimitStatus] = {}
        self._check_counts: dict[Platform, int] = {}

        logger.debug(
            f"Rate limit gate - enabled: {self.config.rate_limit_enabled}, "
            f"threshold: {self.config.rate_limit_threshold:.0%}, "
            f"monitors: {', '.join(p.display_name for p in self._monitors)}"
        )

    def check_rate_limit(
        self,
        platform: Platform | ToolType | str,
        token: str | None,
        repository_name: str | None = None,
        base_url: str | None = None,
    ) -> RateLimitStatus | None:
        """Check the quota for one platform and credential.

        Args:
            platform: Platform, tool type or platform name (case-insensitive)
            token: Credential as sent to the platform
            repository_name: Repository being scanned, for log context
            base_url: Host of an on-premise instance, if any

        Returns:
            Current status, or None if no monitor serves the platform

        Raises:
            RateLimitExceededException: If the platform refuses further calls,
                or the cooldown is too long and failing is configured
        """
        monitor = self._monitor_for(platform)
        if monitor is None:
            logger.warning(f"No rate limit monitor found for platform: {platform}")
            return None

        if not self.config.rate_limit_enabled:
            logger.debug("Rate limit checking is disabled")
            return monitor.fallback_status()

        status = self._query(monitor, token, base_url)
        with self._lock_for(monitor.platform):
            self._last_status[monitor.platform] = status
            self._check_counts[monitor.platform] = self._check_counts.get(monitor.platform, 0) + 1

        logger.debug(
            f"Rate limit status for {status.platform} ({repository_name or 'N/A'}): "
            f"{status.used}/{status.limit} requests used ({status.usage_percentage:.1%}), "
            f"remaining: {status.remaining}"
        )

        threshold = self.config.rate_limit_threshold
        if status.exceeds_threshold(threshold):
            self._handle_threshold(status, threshold, repository_name)
        return status

    def last_status(self, platform: Platform | ToolType | str) -> RateLimitStatus | None:
        monitor = self._monitor_for(platform)
        if monitor is None:
            return None
        with self._lock_for(monitor.platform):
            return self._last_status.get(monitor.platform)

    def check_count(self, platform: Platform | ToolType | str) -> int:
        monitor = self._monitor_for(platform)
        if monitor is None:
            return 0
        with self._lock_for(monitor.platform):
            return self._check_counts.get(monitor.platform, 0)

    def _query(
        self, monitor: RateLimitMonitor, token: str | None, base_url: str | None
    ) -> RateLimitStatus:
        if token is None or not token.strip():
            logger.debug(f"No token for {monitor.platform.display_name}; assuming anonymous limits")
            return monitor.unauthenticated_status()

        try:
            return monitor.check(token, base_url)
        except RateLimitExceededException:
            raise
        except Exception as e:
            logger.warning(
                f"Failed to check rate limit for {monitor.platform.display_name}: {e}; "
                f"assuming conservative limits"
            )
            return monitor.fallback_status()

    def _handle_threshold(
        self, status: RateLimitStatus, threshold: float, repository_name: str | None
    ) -> None:
        wait_seconds = (status.reset_at - now_utc()).total_seconds()
        logger.warning(
            f"Rate limit threshold exceeded for {status.platform} "
            f"(repository: {repository_name or 'N/A'}): {status.used}/{status.limit} requests "
            f"({status.usage_percentage:.1%}, threshold {threshold:.1%}), "
            f"remaining {status.remaining}, resets at {status.reset_at:%Y-%m-%d %H:%M:%S} UTC"
        )

        if not self.config.rate_limit_wait_on_threshold:
            return
        if wait_seconds <= 0:
            logger.info("Platform rate limit reset time has already passed, continuing")
            return

        max_cooldown_seconds = self.config.rate_limit_max_cooldown_hours * 3600
        if wait_seconds > max_cooldown_seconds:
            logger.error(
                f"Platform cooldown ({wait_seconds / 3600:.1f} hours) exceeds the maximum "
                f"of {self.config.rate_limit_max_cooldown_hours} hours"
            )
            if self.config.rate_limit_fail_on_excessive_cooldown:
                raise RateLimitExceededException(
                    status.platform, status.used, status.limit, status.reset_at
                )
            logger.warning("Skipping rate limit wait; continuing with reduced API calls")
            return

        total = wait_seconds + COOLDOWN_BUFFER_SECONDS
        logger.info(f"Waiting {total:.0f} seconds for {status.platform} rate limit cooldown")
        self._sleep(total)
        logger.info(f"Rate limit cooldown completed for {status.platform}")

    def _monitor_for(self, platform: Platform | ToolType | str) -> RateLimitMonitor | None:
        if isinstance(platform, ToolType):
            return self._monitors.get(platform.platform)
        if isinstance(platform, Platform):
            return self._monitors.get(platform)
        if not platform:
            return None
        for monitor in self._monitors.values():
            if monitor.supports(platform):
                return monitor
        try:
            return self._monitors.get(ToolType.parse(platform).platform)
        except ValueError:
            return None

    def _lock_for(self, platform: Platform) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(platform)
            if lock is None:
                lock = self._locks[platform] = threading.Lock()
            return lock
