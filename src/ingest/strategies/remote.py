"""Remote fetch strategy: delegate to the platform's REST client."""

from collections.abc import Mapping
from datetime import datetime

from common.logger import get_logger

from ..exceptions import DataProcessingException, PlatformApiException
from ..models import (
    CommitRecord,
    GitUrlInfo,
    MergeRequestRecord,
    RepositoryCredentials,
    ToolType,
)
from ..platforms.base import PlatformClient, RequestContext
from ..ratelimit.gate import RateLimitGate
from ..url_classifier import api_base_url
from .base import FetchStrategy

logger = get_logger(__name__)


def credential_string(tool_type: ToolType, credentials: RepositoryCredentials | None) -> str | None:
    """Build the credential string a platform client sends.

    Bitbucket wants ``username:appPassword``; a token already in that form
    is used as is. Every other platform takes the bare token, or the
    password when no token is configured.
    """
    if credentials is None:
        return None

    token = credentials.token.strip() if credentials.has_token() else None

    if tool_type == ToolType.BITBUCKET:
        if token:
            if ":" in token or not credentials.username:
                return token
            return f"{credentials.username}:{token}"
        if credentials.has_username_password():
            return f"{credentials.username}:{credentials.password}"
        return None

    if token:
        return token
    return credentials.password or None


class RemoteFetchStrategy(FetchStrategy):
    """Fetch commits and merge requests through platform REST APIs.

    Cheap compared to cloning and the only way to see merge requests, but
    bound by platform quotas: every call passes the rate limit gate first.
    """

    name = "remote"

    def __init__(self, clients: Mapping[ToolType, PlatformClient], gate: RateLimitGate):
        self.clients = dict(clients)
        self.gate = gate

    def supports(self, repository_url: str, tool_type: ToolType | str) -> bool:
        try:
            return ToolType.parse(tool_type) in self.clients
        except ValueError:
            return False

    def fetch_commits(
        self,
        tool_type: ToolType,
        tool_config_id: str,
        url_info: GitUrlInfo,
        branch_name: str | None,
        credentials: RepositoryCredentials,
        since: datetime | None,
        until: datetime | None = None,
        context: RequestContext | None = None,
    ) -> list[CommitRecord]:
        logger.info(f"Fetching commits via REST API for {url_info.original_url}")
        commits = self._call(
            "fetch_commits", tool_type, tool_config_id, url_info, branch_name, credentials, since, until, context
        )
        logger.info(f"Fetched {len(commits)} commits from {url_info.original_url}")
        return commits

    def fetch_merge_requests(
        self,
        tool_type: ToolType,
        tool_config_id: str,
        url_info: GitUrlInfo,
        branch_name: str | None,
        credentials: RepositoryCredentials,
        since: datetime | None,
        until: datetime | None = None,
        context: RequestContext | None = None,
    ) -> list[MergeRequestRecord]:
        """Fetch merge/pull requests targeting ``branch_name``.

        Same contract, gating and error policy as ``fetch_commits``.
        """
        logger.info(f"Fetching merge requests via REST API for {url_info.original_url}")
        merge_requests = self._call(
            "fetch_merge_requests",
            tool_type,
            tool_config_id,
            url_info,
            branch_name,
            credentials,
            since,
            until,
            context,
        )
        logger.info(f"Fetched {len(merge_requests)} merge requests from {url_info.original_url}")
        return merge_requests

    def _call(
        self,
        operation: str,
        tool_type: ToolType | str,
        tool_config_id: str,
        url_info: GitUrlInfo,
        branch_name: str | None,
        credentials: RepositoryCredentials,
        since: datetime | None,
        until: datetime | None,
        context: RequestContext | None,
    ) -> list:
        try:
            tool = ToolType.parse(tool_type)
        except ValueError as e:
            raise DataProcessingException(str(e)) from e

        client = self.clients.get(tool)
        if client is None:
            raise DataProcessingException(
                f"No platform client found for repository: {url_info.original_url}"
            )

        token = credential_string(tool, credentials)
        if context is None:
            context = RequestContext(base_url=api_base_url(url_info.original_url))

        try:
            self.gate.check_rate_limit(
                tool.platform, token, repository_name=url_info.full_name, base_url=context.base_url
            )
            return getattr(client, operation)(
                tool_config_id, url_info, branch_name, token, since, until, context
            )
        except (DataProcessingException, PlatformApiException):
            # RateLimitExceededException is a DataProcessingException
            raise
        except Exception as e:
            logger.error(f"Unexpected error in {operation} for {url_info.original_url}: {e}")
            raise DataProcessingException("Failed to fetch data using REST API strategy") from e
