"""REST clients for the supported hosting platforms."""

import requests

from ..config import IngestConfig
from ..models import ToolType
from .azure_devops import AzureDevOpsClient
from .base import PlatformClient, RequestContext, RestPlatformClient
from .bitbucket import BitbucketClient
from .github import GitHubClient
from .gitlab import GitLabClient


def default_clients(
    config: IngestConfig | None = None, session: requests.Session | None = None
) -> dict[ToolType, PlatformClient]:
    """Build the client lookup table used by the remote strategy."""
    config = config or IngestConfig.from_env()
    return {
        ToolType.GITHUB: GitHubClient(config, session),
        ToolType.GITLAB: GitLabClient(config, session),
        ToolType.BITBUCKET: BitbucketClient(config, session),
        ToolType.AZURE_DEVOPS: AzureDevOpsClient(config, session),
    }


__all__ = [
    "AzureDevOpsClient",
    "BitbucketClient",
    "GitHubClient",
    "GitLabClient",
    "PlatformClient",
    "RequestContext",
    "RestPlatformClient",
    "default_clients",
]
