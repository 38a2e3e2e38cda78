"""Ingestion engine facade.

Wires the classifier, the strategy registry, the rate limit gate and the
platform clients together so a scheduler only has to hand over a
``ScanRequest``.

Example:
    >>> from ingest import IngestionEngine, ScanRequest, RepositoryCredentials
    >>>
    >>> engine = IngestionEngine()
    >>> request = ScanRequest(
    ...     repository_url="https://github.com/acme/app.git",
    ...     tool_type="GITHUB",
    ...     credentials=RepositoryCredentials(token="ghp_..."),
    ...     connection_id="conn-1",
    ...     branch_name="main",
    ... )
    >>> commits = engine.fetch_commits(request)
"""

from collections.abc import Mapping

from common.logger import get_logger

from .config import IngestConfig
from .exceptions import DataProcessingException
from .models import CommitRecord, GitUrlInfo, MergeRequestRecord, ScanRequest, ToolType
from .platforms import default_clients
from .platforms.base import PlatformClient
from .ratelimit.gate import RateLimitGate
from .strategies.clone import CloneFetchStrategy
from .strategies.remote import RemoteFetchStrategy
from .strategies.selector import REMOTE, StrategySelector, build_strategy_registry
from .url_classifier import classify

logger = get_logger(__name__)


class IngestionEngine:
    """Entry point for commit and merge request ingestion.

    Args:
        config: Engine configuration (defaults to ``IngestConfig.from_env()``)
        clients: Platform client lookup table (defaults to one REST client per platform)
        gate: Rate limit gate (defaults to one built from ``config``)
    """

    def __init__(
        self,
        config: IngestConfig | None = None,
        clients: Mapping[ToolType, PlatformClient] | None = None,
        gate: RateLimitGate | None = None,
    ):
        self.config = config or IngestConfig.from_env()
        self.clients = dict(clients) if clients is not None else default_clients(self.config)
        self.gate = gate or RateLimitGate(self.config)

        self.strategies = build_strategy_registry(
            [
                lambda: CloneFetchStrategy(self.config),
                lambda: RemoteFetchStrategy(self.clients, self.gate),
            ]
        )
        self.selector = StrategySelector(self.strategies)

    def classify(self, request: ScanRequest) -> GitUrlInfo:
        """Classify the request's repository URL.

        Raises:
            InvalidUrlError: If the URL matches no supported shape
        """
        return classify(
            request.repository_url,
            request.tool_type,
            username_hint=request.credentials.username if request.credentials else None,
            repo_name_hint=request.repository_name,
        )

    def fetch_commits(self, request: ScanRequest) -> list[CommitRecord]:
        """Fetch commits for one scan with the selected strategy.

        Raises:
            InvalidUrlError: If the repository URL cannot be classified
            DataProcessingException: If no strategy supports the request or the fetch fails
            PlatformApiException: If a platform call fails (remote strategy)
        """
        url_info = self.classify(request)
        strategy = self.selector.select(request)
        if strategy is None:
            raise DataProcessingException(
                f"No fetch strategy supports repository: {request.repository_url}"
            )

        logger.info(f"Scanning {url_info.full_name} with {strategy.name} strategy")
        return strategy.fetch_commits(
            request.tool_type,
            request.tool_config_id,
            url_info,
            request.branch_name,
            request.credentials,
            request.since,
            request.until,
        )

    def fetch_merge_requests(self, request: ScanRequest) -> list[MergeRequestRecord]:
        """Fetch merge requests for one scan; always uses the remote strategy.

        Raises:
            InvalidUrlError: If the repository URL cannot be classified
            DataProcessingException: If no client serves the platform or the fetch fails
            PlatformApiException: If a platform call fails
        """
        url_info = self.classify(request)
        remote: RemoteFetchStrategy = self.strategies[REMOTE]
        return remote.fetch_merge_requests(
            request.tool_type,
            request.tool_config_id,
            url_info,
            request.branch_name,
            request.credentials,
            request.since,
            request.until,
        )
