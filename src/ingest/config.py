"""Engine configuration.

``IngestConfig`` gathers every tunable of the engine in one value so that
strategies, the rate-limit gate and platform clients can be built from a
single object in tests. ``IngestConfig.from_env()`` reads the defaults from
``common.env``.
"""

from dataclasses import dataclass
from pathlib import Path

from common.env import env


@dataclass
class IngestConfig:
    """Engine configuration container.

    Attributes:
        clone_timeout_minutes: Maximum duration of one clone
        clone_temp_dir: Parent directory for per-scan clone directories
        cleanup_retry_delay_ms: Delay before the second removal attempt
        cleanup_final_delay_ms: Delay before the last removal attempt
        rate_limit_enabled: Check platform quotas before remote calls
        rate_limit_threshold: Usage fraction that triggers a warning, in (0, 1]
        rate_limit_wait_on_threshold: Sleep until the window resets when over threshold
        rate_limit_max_cooldown_hours: Longest wait the gate accepts
        rate_limit_fail_on_excessive_cooldown: Raise instead of proceeding past a long cooldown
        http_timeout_seconds: Per-request timeout for platform REST calls
        http_requests_per_minute: Client-side pace for each platform client
        github_api_url: GitHub REST base URL
        gitlab_api_url: GitLab REST base URL (used when no host context is given)
        bitbucket_api_url: Bitbucket Cloud REST base URL
    """

    clone_timeout_minutes: int = 10
    clone_temp_dir: Path | None = None
    cleanup_retry_delay_ms: int = 100
    cleanup_final_delay_ms: int = 500
    rate_limit_enabled: bool = True
    rate_limit_threshold: float = 0.8
    rate_limit_wait_on_threshold: bool = False
    rate_limit_max_cooldown_hours: int = 24
    rate_limit_fail_on_excessive_cooldown: bool = False
    http_timeout_seconds: int = 30
    http_requests_per_minute: int = 600
    github_api_url: str = "https://api.github.com"
    gitlab_api_url: str = "https://gitlab.com/api/v4"
    bitbucket_api_url: str = "https://api.bitbucket.org/2.0"

    def __post_init__(self):
        """Validate configuration after initialization."""
        if isinstance(self.clone_temp_dir, str):
            self.clone_temp_dir = Path(self.clone_temp_dir)

        if self.clone_timeout_minutes <= 0:
            raise ValueError("clone_timeout_minutes must be positive")
        if self.cleanup_retry_delay_ms < 0 or self.cleanup_final_delay_ms < 0:
            raise ValueError("cleanup delays must not be negative")
        if not 0 < self.rate_limit_threshold <= 1:
            raise ValueError(
                f"rate_limit_threshold must be in (0, 1], got {self.rate_limit_threshold}"
            )
        if self.rate_limit_max_cooldown_hours < 0:
            raise ValueError("rate_limit_max_cooldown_hours must not be negative")
        if self.http_timeout_seconds <= 0:
            raise ValueError("http_timeout_seconds must be positive")
        if self.http_requests_per_minute <= 0:
            raise ValueError("http_requests_per_minute must be positive")

        self.github_api_url = self.github_api_url.rstrip("/")
        self.gitlab_api_url = self.gitlab_api_url.rstrip("/")
        self.bitbucket_api_url = self.bitbucket_api_url.rstrip("/")

    @property
    def clone_timeout_seconds(self) -> int:
        return self.clone_timeout_minutes * 60

    @classmethod
    def from_env(cls) -> "IngestConfig":
        """Build a configuration from environment variables (and ``.env``)."""
        return cls(
            clone_timeout_minutes=env.clone_timeout_minutes(),
            clone_temp_dir=env.clone_temp_dir(),
            cleanup_retry_delay_ms=env.cleanup_retry_delay_ms(),
            cleanup_final_delay_ms=env.cleanup_final_delay_ms(),
            rate_limit_enabled=env.rate_limit_enabled(),
            rate_limit_threshold=env.rate_limit_threshold(),
            rate_limit_wait_on_threshold=env.rate_limit_wait_on_threshold(),
            rate_limit_max_cooldown_hours=env.rate_limit_max_cooldown_hours(),
            rate_limit_fail_on_excessive_cooldown=env.rate_limit_fail_on_excessive_cooldown(),
            http_timeout_seconds=env.http_timeout_seconds(),
            http_requests_per_minute=env.http_requests_per_minute(),
            github_api_url=env.github_api_url(),
            gitlab_api_url=env.gitlab_api_url(),
            bitbucket_api_url=env.bitbucket_api_url(),
        )
