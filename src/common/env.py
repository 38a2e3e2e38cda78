"""Environment configuration interface for scm-ingest.

This module provides a clean interface for accessing environment variables,
centralizing all environment variable access in one place.
"""

import os
import tempfile
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


class Environment:
    """Interface for accessing environment configuration."""

    # Clone strategy

    @staticmethod
    def clone_timeout_minutes() -> int:
        """Get the maximum duration of a single clone.

        Returns:
            Timeout in minutes, defaults to 10
        """
        return int(os.getenv("CLONE_TIMEOUT_MINUTES", "10"))

    @staticmethod
    def clone_temp_dir() -> Path:
        """Get the parent directory for per-scan clone directories.

        Returns:
            Directory path, defaults to the system temp directory
        """
        return Path(os.getenv("CLONE_TEMP_DIR", tempfile.gettempdir()))

    @staticmethod
    def cleanup_retry_delay_ms() -> int:
        """Get the delay before the second clone-directory removal attempt.

        Returns:
            Delay in milliseconds, defaults to 100
        """
        return int(os.getenv("CLEANUP_RETRY_DELAY_MS", "100"))

    @staticmethod
    def cleanup_final_delay_ms() -> int:
        """Get the delay before the last clone-directory removal attempt.

        Returns:
            Delay in milliseconds, defaults to 500
        """
        return int(os.getenv("CLEANUP_FINAL_DELAY_MS", "500"))

    # Rate limiting

    @staticmethod
    def rate_limit_enabled() -> bool:
        """Whether rate limits are checked before remote calls (default: True)."""
        return _flag("RATE_LIMIT_ENABLED", True)

    @staticmethod
    def rate_limit_threshold() -> float:
        """Get the usage fraction that triggers a rate-limit warning.

        Returns:
            Threshold between 0 and 1, defaults to 0.8
        """
        return float(os.getenv("RATE_LIMIT_THRESHOLD", "0.8"))

    @staticmethod
    def rate_limit_wait_on_threshold() -> bool:
        """Whether to sleep until the platform window resets (default: False)."""
        return _flag("RATE_LIMIT_WAIT_ON_THRESHOLD", False)

    @staticmethod
    def rate_limit_max_cooldown_hours() -> int:
        """Get the longest cooldown the gate is willing to wait for.

        Returns:
            Hours, defaults to 24
        """
        return int(os.getenv("RATE_LIMIT_MAX_COOLDOWN_HOURS", "24"))

    @staticmethod
    def rate_limit_fail_on_excessive_cooldown() -> bool:
        """Whether an over-long cooldown aborts the scan (default: False)."""
        return _flag("RATE_LIMIT_FAIL_ON_EXCESSIVE_COOLDOWN", False)

    # HTTP

    @staticmethod
    def http_timeout_seconds() -> int:
        """Get the per-request timeout for platform REST calls.

        Returns:
            Timeout in seconds, defaults to 30
        """
        return int(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

    @staticmethod
    def http_requests_per_minute() -> int:
        """Get the client-side request pace per platform client.

        Returns:
            Requests per minute, defaults to 600
        """
        return int(os.getenv("HTTP_REQUESTS_PER_MINUTE", "600"))

    @staticmethod
    def github_api_url() -> str:
        return os.getenv("GITHUB_API_URL", "https://api.github.com")

    @staticmethod
    def gitlab_api_url() -> str:
        return os.getenv("GITLAB_API_URL", "https://gitlab.com/api/v4")

    @staticmethod
    def bitbucket_api_url() -> str:
        return os.getenv("BITBUCKET_API_URL", "https://api.bitbucket.org/2.0")


# Singleton instance for convenient access
env = Environment()
