"""Tests for repository URL classification."""

import pytest

from ingest.exceptions import InvalidUrlError
from ingest.models import Platform, ToolType
from ingest.url_classifier import api_base_url, classify, is_valid_git_url


class TestGitHub:
    """Tests for GitHub URLs."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/acme/app",
            "https://github.com/acme/app.git",
            "https://github.com/acme/app/",
        ],
    )
    def test_parses_owner_and_repo(self, url):
        """Test that common GitHub URL shapes yield owner and repository."""
        info = classify(url, ToolType.GITHUB)
        assert info.platform == Platform.GITHUB
        assert info.owner == "acme"
        assert info.repository_name == "app"
        assert info.full_name == "acme/app"
        assert info.original_url == url

    def test_hint_used_for_unparseable_url(self):
        """Test that the name hint rescues proxied URLs when a username is set."""
        info = classify(
            "https://proxy.internal/scm/app",
            "GITHUB",
            username_hint="bot",
            repo_name_hint="acme/app",
        )
        assert (info.owner, info.repository_name) == ("acme", "app")

    def test_hint_ignored_without_username(self):
        """Test that the name hint needs a username on the connection."""
        with pytest.raises(InvalidUrlError):
            classify("https://proxy.internal/scm/app", "GITHUB", repo_name_hint="acme/app")


class TestGitLab:
    """Tests for GitLab URLs."""

    def test_nested_groups(self):
        """Test that subgroups become the organization path."""
        info = classify("https://gitlab.com/acme/platform/api.git", ToolType.GITLAB)
        assert info.platform == Platform.GITLAB
        assert info.organization == "acme/platform"
        assert info.owner == "platform"
        assert info.repository_name == "api"
        assert info.full_name == "acme/platform/api"

    def test_self_hosted_by_host_name(self):
        """Test that a host containing 'gitlab' is accepted."""
        info = classify("https://gitlab.internal.example/team/service.git", ToolType.GITLAB)
        assert info.organization == "team"
        assert info.repository_name == "service"

    def test_self_hosted_by_path_shape(self):
        """Test that an unknown host with a group/repo path is accepted."""
        info = classify("https://code.example.net/infra/tools/deployer", ToolType.GITLAB)
        assert info.full_name == "infra/tools/deployer"

    def test_rejects_other_platform_hosts(self):
        """Test that GitHub URLs are not taken for self-hosted GitLab."""
        with pytest.raises(InvalidUrlError):
            classify("https://github.com/acme/app", ToolType.GITLAB)

    def test_rejects_prose_like_paths(self):
        """Test that placeholder paths are not mistaken for group/repo."""
        with pytest.raises(InvalidUrlError):
            classify("https://docs.example.org/not/a/repo", ToolType.GITLAB)


class TestBitbucket:
    """Tests for Bitbucket URLs."""

    def test_cloud(self):
        """Test Bitbucket Cloud URLs, with and without embedded user."""
        info = classify("https://alice@bitbucket.org/acme/app.git", ToolType.BITBUCKET)
        assert info.platform == Platform.BITBUCKET
        assert info.full_name == "acme/app"

    def test_server(self):
        """Test on-premise /scm/ URLs."""
        info = classify("https://git.corp.example/bitbucket/scm/PROJ/service.git", "bitbucket")
        assert info.owner == "PROJ"
        assert info.repository_name == "service"


class TestAzureDevOps:
    """Tests for Azure DevOps URLs."""

    def test_dev_azure_com(self):
        """Test dev.azure.com URLs carry organization and project."""
        info = classify("https://dev.azure.com/contoso/Web/_git/portal", ToolType.AZURE_DEVOPS)
        assert info.platform == Platform.AZURE_DEVOPS
        assert info.organization == "contoso"
        assert info.project == "Web"
        assert info.repository_name == "portal"
        assert info.full_name == "contoso/Web/portal"

    def test_visualstudio_com(self):
        """Test legacy visualstudio.com URLs."""
        info = classify("https://contoso.visualstudio.com/Web/_git/portal", "azure")
        assert info.organization == "contoso"
        assert info.project == "Web"

    def test_project_defaults_to_repository(self):
        """Test that a URL without project uses the repository name."""
        info = classify("https://dev.azure.com/contoso/_git/portal", ToolType.AZURE_DEVOPS)
        assert info.project == "portal"

    def test_azure_url_needs_azure_tool_type(self):
        """Test that Azure shapes are only parsed for Azure connections."""
        assert not is_valid_git_url("https://dev.azure.com/contoso/Web/_git/portal", ToolType.GITHUB)


class TestInvalidInput:
    """Tests for rejected input."""

    @pytest.mark.parametrize("url", [None, "", "   "])
    def test_empty_url(self, url):
        """Test that missing URLs are rejected."""
        with pytest.raises(InvalidUrlError, match="cannot be null or empty"):
            classify(url, ToolType.GITHUB)

    def test_unknown_tool_type(self):
        """Test that an unknown tool type is an invalid URL error."""
        with pytest.raises(InvalidUrlError):
            classify("https://github.com/acme/app", "SVN")

    def test_invalid_url_is_value_error(self):
        """Test that InvalidUrlError can be caught as ValueError."""
        with pytest.raises(ValueError):
            classify("not a url", ToolType.GITHUB)

    def test_is_valid_git_url(self):
        """Test the boolean wrapper."""
        assert is_valid_git_url("https://github.com/acme/app", "GITHUB") is True
        assert is_valid_git_url("ftp://example.com", "GITHUB") is False


class TestApiBaseUrl:
    """Tests for api_base_url function."""

    def test_strips_path_and_credentials(self):
        """Test that only scheme and host remain."""
        assert api_base_url("https://bob@gitlab.example.com/team/app.git") == "https://gitlab.example.com"

    def test_keeps_port(self):
        """Test that non-default ports are kept."""
        assert api_base_url("http://git.local:8080/scm/p/r.git") == "http://git.local:8080"

    def test_rejects_hostless_url(self):
        """Test that a URL without host raises."""
        with pytest.raises(InvalidUrlError):
            api_base_url("/srv/git/repo")
