"""Tests for environment configuration interface."""

import tempfile
from pathlib import Path

from common.env import Environment, env


class TestEnvironment:
    """Tests for Environment class."""

    def test_clone_timeout_minutes_default(self, monkeypatch):
        """Test clone_timeout_minutes returns default value."""
        monkeypatch.delenv("CLONE_TIMEOUT_MINUTES", raising=False)
        assert Environment.clone_timeout_minutes() == 10

    def test_clone_timeout_minutes_from_env(self, monkeypatch):
        """Test clone_timeout_minutes reads from environment."""
        monkeypatch.setenv("CLONE_TIMEOUT_MINUTES", "3")
        assert Environment.clone_timeout_minutes() == 3

    def test_clone_temp_dir_default(self, monkeypatch):
        """Test clone_temp_dir defaults to the system temp directory."""
        monkeypatch.delenv("CLONE_TEMP_DIR", raising=False)
        assert Environment.clone_temp_dir() == Path(tempfile.gettempdir())

    def test_clone_temp_dir_from_env(self, monkeypatch):
        """Test clone_temp_dir reads from environment."""
        monkeypatch.setenv("CLONE_TEMP_DIR", "/var/tmp/scans")
        assert Environment.clone_temp_dir() == Path("/var/tmp/scans")

    def test_cleanup_delays_default(self, monkeypatch):
        """Test cleanup delays return default values."""
        monkeypatch.delenv("CLEANUP_RETRY_DELAY_MS", raising=False)
        monkeypatch.delenv("CLEANUP_FINAL_DELAY_MS", raising=False)
        assert Environment.cleanup_retry_delay_ms() == 100
        assert Environment.cleanup_final_delay_ms() == 500

    def test_rate_limit_enabled_default(self, monkeypatch):
        """Test rate limit checks are enabled by default."""
        monkeypatch.delenv("RATE_LIMIT_ENABLED", raising=False)
        assert Environment.rate_limit_enabled() is True

    def test_rate_limit_enabled_from_env(self, monkeypatch):
        """Test rate_limit_enabled accepts common false spellings."""
        monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
        assert Environment.rate_limit_enabled() is False
        monkeypatch.setenv("RATE_LIMIT_ENABLED", "0")
        assert Environment.rate_limit_enabled() is False
        monkeypatch.setenv("RATE_LIMIT_ENABLED", "Yes")
        assert Environment.rate_limit_enabled() is True

    def test_rate_limit_threshold_default(self, monkeypatch):
        """Test rate_limit_threshold returns default value."""
        monkeypatch.delenv("RATE_LIMIT_THRESHOLD", raising=False)
        assert Environment.rate_limit_threshold() == 0.8

    def test_rate_limit_threshold_from_env(self, monkeypatch):
        """Test rate_limit_threshold reads from environment."""
        monkeypatch.setenv("RATE_LIMIT_THRESHOLD", "0.5")
        assert Environment.rate_limit_threshold() == 0.5

    def test_rate_limit_wait_defaults(self, monkeypatch):
        """Test cooldown settings return default values."""
        monkeypatch.delenv("RATE_LIMIT_WAIT_ON_THRESHOLD", raising=False)
        monkeypatch.delenv("RATE_LIMIT_MAX_COOLDOWN_HOURS", raising=False)
        monkeypatch.delenv("RATE_LIMIT_FAIL_ON_EXCESSIVE_COOLDOWN", raising=False)
        assert Environment.rate_limit_wait_on_threshold() is False
        assert Environment.rate_limit_max_cooldown_hours() == 24
        assert Environment.rate_limit_fail_on_excessive_cooldown() is False

    def test_http_settings_default(self, monkeypatch):
        """Test HTTP settings return default values."""
        monkeypatch.delenv("HTTP_TIMEOUT_SECONDS", raising=False)
        monkeypatch.delenv("HTTP_REQUESTS_PER_MINUTE", raising=False)
        assert Environment.http_timeout_seconds() == 30
        assert Environment.http_requests_per_minute() == 600

    def test_api_urls_default(self, monkeypatch):
        """Test platform API URLs return default values."""
        monkeypatch.delenv("GITHUB_API_URL", raising=False)
        monkeypatch.delenv("GITLAB_API_URL", raising=False)
        monkeypatch.delenv("BITBUCKET_API_URL", raising=False)
        assert Environment.github_api_url() == "https://api.github.com"
        assert Environment.gitlab_api_url() == "https://gitlab.com/api/v4"
        assert Environment.bitbucket_api_url() == "https://api.bitbucket.org/2.0"

    def test_gitlab_api_url_from_env(self, monkeypatch):
        """Test gitlab_api_url reads from environment."""
        monkeypatch.setenv("GITLAB_API_URL", "https://git.example.com/api/v4")
        assert Environment.gitlab_api_url() == "https://git.example.com/api/v4"


class TestEnvSingleton:
    """Tests for env singleton instance."""

    def test_env_is_environment_instance(self):
        """Test that env is an instance of Environment."""
        assert isinstance(env, Environment)

    def test_env_singleton_methods_work(self, monkeypatch):
        """Test that env singleton methods work."""
        monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "5")
        assert env.http_timeout_seconds() == 5
