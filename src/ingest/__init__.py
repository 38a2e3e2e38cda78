"""Commit and merge request ingestion for GitHub, GitLab, Bitbucket and Azure DevOps.

Example:
    >>> from ingest import IngestionEngine, RepositoryCredentials, ScanRequest
    >>>
    >>> engine = IngestionEngine()
    >>> commits = engine.fetch_commits(
    ...     ScanRequest(
    ...         repository_url="https://gitlab.com/acme/platform/api.git",
    ...         tool_type="GITLAB",
    ...         credentials=RepositoryCredentials(token="glpat-..."),
    ...         connection_id="conn-7",
    ...         clone_enabled=True,
    ...     )
    ... )
"""

from .config import IngestConfig
from .engine import IngestionEngine
from .exceptions import (
    DataProcessingException,
    IngestError,
    InvalidUrlError,
    PlatformApiException,
    RateLimitExceededException,
)
from .models import (
    ChangeType,
    CommitRecord,
    FileChange,
    GitUrlInfo,
    MergeRequestRecord,
    MergeRequestState,
    Person,
    Platform,
    RateLimitStatus,
    RepositoryCredentials,
    ScanRequest,
    ToolType,
)
from .url_classifier import classify

__all__ = [
    # Engine
    "IngestionEngine",
    "IngestConfig",
    "classify",
    # Models
    "ChangeType",
    "CommitRecord",
    "FileChange",
    "GitUrlInfo",
    "MergeRequestRecord",
    "MergeRequestState",
    "Person",
    "Platform",
    "RateLimitStatus",
    "RepositoryCredentials",
    "ScanRequest",
    "ToolType",
    # Exceptions
    "IngestError",
    "InvalidUrlError",
    "DataProcessingException",
    "PlatformApiException",
    "RateLimitExceededException",
]
