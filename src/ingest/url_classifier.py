"""Repository URL classification.

Turns a repository URL plus the connection's declared tool type into
``GitUrlInfo``. Supported shapes:

- GitHub: ``https://github.com/owner/repo(.git)``
- GitLab: ``https://gitlab.com/group/subgroup/repo(.git)`` and self-hosted
  instances recognised by host name or path shape
- Bitbucket: ``https://bitbucket.org/owner/repo(.git)`` and on-premise
  ``https://host/bitbucket/scm/project/repo(.git)``
- Azure DevOps: ``https://dev.azure.com/org/project/_git/repo`` and
  ``https://org.visualstudio.com/project/_git/repo``

Classification is a pure function of its inputs and the static host list
below; it never touches the network.
"""

import re
from urllib.parse import urlsplit

from .exceptions import InvalidUrlError
from .models import GitUrlInfo, Platform, ToolType

GITHUB_PATTERN = re.compile(r"https?://github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$")

GITLAB_COM_PATTERN = re.compile(r"https?://gitlab\.com/(.+)/([^/]+?)(?:\.git)?/?$")

GITLAB_PATTERN = re.compile(r"https?://([^/]+)/(.+)/([^/]+?)(?:\.git)?/?$")

AZURE_DEVOPS_PATTERN = re.compile(
    r"https?://(?:[\w.-]+@)?dev\.azure\.com/([^/]+)/(?:([^/]+)/)?_git/([^/]+?)/?$"
)

AZURE_VISUALSTUDIO_PATTERN = re.compile(
    r"https?://(?:[\w.-]+@)?([\w-]+)\.visualstudio\.com/(?:DefaultCollection/)?(?:([^/]+)/)?_git/([^/]+?)/?$"
)

BITBUCKET_PATTERN = re.compile(r"https?://(?:[\w.-]+@)?bitbucket\.org/([^/]+)/([^/]+?)(?:\.git)?/?$")

BITBUCKET_SERVER_PATTERN = re.compile(
    r"https?://(?:[\w.-]+@)?[^/]+(?:/bitbucket)?/scm/([^/]+)/([^/]+?)(?:\.git)?/?$"
)

KNOWN_GITLAB_HOSTS = ("gitlab.com", "gitlab.example.com", "git.company.com", "pscode.lioncloud.net")

# Path words that show up in prose or placeholder URLs but never as GitLab groups
GENERIC_WEB_TERMS = {"not", "a", "the", "and"}


def classify(
    repository_url: str,
    tool_type: ToolType | str,
    username_hint: str | None = None,
    repo_name_hint: str | None = None,
) -> GitUrlInfo:
    """Classify a repository URL.

    Args:
        repository_url: Repository URL as configured on the connection
        tool_type: Declared tool type of the connection
        username_hint: Username on the connection (enables the name hint)
        repo_name_hint: "owner/repo" fallback for URLs behind proxies

    Returns:
        Parsed URL information

    Raises:
        InvalidUrlError: If the URL matches no supported shape
    """
    if repository_url is None or not repository_url.strip():
        raise InvalidUrlError("Git URL cannot be null or empty")
    url = repository_url.strip()

    try:
        tool = ToolType.parse(tool_type)
    except ValueError as e:
        raise InvalidUrlError(str(e)) from e

    result = None
    if tool == ToolType.GITHUB:
        result = _parse_github(url, username_hint, repo_name_hint)
    elif tool == ToolType.GITLAB:
        result = _parse_gitlab(url)
    elif tool == ToolType.BITBUCKET:
        result = _parse_bitbucket(url, username_hint, repo_name_hint)
    elif tool == ToolType.AZURE_DEVOPS:
        result = _parse_azure_devops(url)

    if result is None:
        raise InvalidUrlError(f"Unsupported Git URL format: {repository_url}")
    return result


def is_valid_git_url(repository_url: str, tool_type: ToolType | str) -> bool:
    """Return True if ``classify`` accepts the URL for the tool type."""
    try:
        classify(repository_url, tool_type)
        return True
    except InvalidUrlError:
        return False


def api_base_url(repository_url: str) -> str:
    """Return ``scheme://host`` of a repository URL.

    Used as the per-call host context for on-premise instances.

    Raises:
        InvalidUrlError: If the URL has no host
    """
    if not repository_url or not repository_url.strip():
        raise InvalidUrlError("Git URL cannot be null or empty")
    parts = urlsplit(repository_url.strip())
    if not parts.hostname:
        raise InvalidUrlError(f"Invalid URL format: {repository_url}")
    host = parts.hostname
    if parts.port:
        host = f"{host}:{parts.port}"
    return f"{parts.scheme}://{host}"


def _split_hint(username_hint: str | None, repo_name_hint: str | None) -> tuple[str, str] | None:
    if not (username_hint and repo_name_hint):
        return None
    parts = repo_name_hint.split("/")
    if len(parts) >= 2 and parts[0] and parts[1]:
        return parts[0], parts[1]
    return None


def _parse_github(url: str, username_hint: str | None, repo_name_hint: str | None) -> GitUrlInfo | None:
    match = GITHUB_PATTERN.match(url)
    if match:
        return GitUrlInfo(Platform.GITHUB, match.group(1), match.group(2), url)

    hint = _split_hint(username_hint, repo_name_hint)
    if hint:
        return GitUrlInfo(Platform.GITHUB, hint[0], hint[1], url)
    return None


def _parse_gitlab(url: str) -> GitUrlInfo | None:
    match = GITLAB_COM_PATTERN.match(url)
    if match:
        group_path = match.group(1)
        return GitUrlInfo(
            Platform.GITLAB, group_path.split("/")[-1], match.group(2), url, organization=group_path
        )

    if not _looks_like_gitlab(url):
        return None

    match = GITLAB_PATTERN.match(url)
    if not match:
        return None

    group_path = match.group(2)
    owner = group_path.split("/")[-1]
    return GitUrlInfo(Platform.GITLAB, owner, match.group(3), url, organization=group_path)


def _looks_like_gitlab(url: str) -> bool:
    """Self-hosted GitLab cannot be enumerated, so fall back to host and path heuristics."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    host = (parts.hostname or "").lower()
    path = parts.path or ""
    if not host:
        return False

    if any(host == known or host.endswith("." + known) for known in KNOWN_GITLAB_HOSTS):
        return True
    if "gitlab" in host:
        return True

    # Shapes that belong to other platforms
    if "dev.azure.com" in host or "/_git/" in path or "github.com" in host or "bitbucket.org" in host:
        return False

    if "/api/v4/" in path or "/explore" in path:
        return True

    segments = [s[:-4] if s.endswith(".git") else s for s in path.split("/") if s]
    if len(segments) < 2:
        return False
    if any(s in GENERIC_WEB_TERMS for s in segments):
        return False
    if "repo" in segments and not path.rstrip("/").endswith(".git"):
        return False
    return True


def _parse_bitbucket(url: str, username_hint: str | None, repo_name_hint: str | None) -> GitUrlInfo | None:
    pattern = BITBUCKET_PATTERN if "bitbucket.org" in url else BITBUCKET_SERVER_PATTERN
    match = pattern.match(url)
    if match:
        return GitUrlInfo(Platform.BITBUCKET, match.group(1), match.group(2), url)

    hint = _split_hint(username_hint, repo_name_hint)
    if hint:
        return GitUrlInfo(Platform.BITBUCKET, hint[0], hint[1], url)
    return None


def _parse_azure_devops(url: str) -> GitUrlInfo | None:
    match = AZURE_DEVOPS_PATTERN.match(url) or AZURE_VISUALSTUDIO_PATTERN.match(url)
    if not match:
        return None
    organization, project, repository = match.group(1), match.group(2), match.group(3)
    return GitUrlInfo(
        Platform.AZURE_DEVOPS,
        None,
        repository,
        url,
        organization=organization,
        project=project or repository,
    )
