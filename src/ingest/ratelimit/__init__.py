"""Platform API quota checks and client-side request pacing."""

from .azure_devops import AzureDevOpsRateLimitMonitor
from .base import RateLimitMonitor
from .bitbucket import BitbucketRateLimitMonitor
from .gate import RateLimitGate, default_monitors
from .github import GitHubRateLimitMonitor
from .gitlab import GitLabRateLimitMonitor
from .pacer import RequestPacer

__all__ = [
    "AzureDevOpsRateLimitMonitor",
    "BitbucketRateLimitMonitor",
    "GitHubRateLimitMonitor",
    "GitLabRateLimitMonitor",
    "RateLimitGate",
    "RateLimitMonitor",
    "RequestPacer",
    "default_monitors",
]
