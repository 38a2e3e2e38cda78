"""Strategy selection for commit fetches."""

from collections.abc import Callable, Iterable

from common.logger import get_logger

from ..models import ScanRequest
from .base import FetchStrategy

logger = get_logger(__name__)

CLONE = "clone"
REMOTE = "remote"

STRATEGY_ALIASES = {
    "jgit": CLONE,
    "git": CLONE,
    "rest": REMOTE,
    "rest_api": REMOTE,
    "restapi": REMOTE,
}


def canonical_name(name: str | None) -> str | None:
    """Normalize a strategy name or alias (case-insensitive)."""
    if name is None or not name.strip():
        return None
    key = name.strip().lower().replace("-", "_")
    return STRATEGY_ALIASES.get(key, key)


def build_strategy_registry(
    constructors: Iterable[Callable[[], FetchStrategy]],
) -> dict[str, FetchStrategy]:
    """Instantiate strategies in order, keyed by their name.

    Raises:
        ValueError: If two strategies share a name
    """
    registry: dict[str, FetchStrategy] = {}
    for constructor in constructors:
        strategy = constructor()
        if strategy.name in registry:
            raise ValueError(f"Duplicate strategy name: {strategy.name}")
        registry[strategy.name] = strategy
    return registry


class StrategySelector:
    """Picks the strategy for a scan request.

    Order of preference:

    1. the explicitly requested strategy, if registered and supporting
    2. clone when ``clone_enabled`` is set, remote otherwise
    3. remote as the fallback
    4. the first registered strategy that supports the request

    Returns None when nothing supports the request. The result depends only
    on the request and the registry.
    """

    def __init__(self, strategies: dict[str, FetchStrategy]):
        self.strategies = strategies
        logger.debug(
            f"Strategy selector initialized with {len(strategies)} strategies: {', '.join(strategies)}"
        )

    def select(self, request: ScanRequest) -> FetchStrategy | None:
        explicit = canonical_name(request.explicit_strategy_name)
        if explicit is not None:
            strategy = self.strategies.get(explicit)
            if strategy is not None and self._supports(strategy, request):
                logger.debug(f"Using explicitly requested strategy: {explicit}")
                return strategy
            logger.warning(
                f"Requested strategy {request.explicit_strategy_name} not found "
                f"or doesn't support repository"
            )

        preferred = CLONE if request.clone_enabled else REMOTE
        strategy = self.strategies.get(preferred)
        if strategy is not None and self._supports(strategy, request):
            logger.debug(f"Selected strategy based on configuration: {preferred}")
            return strategy
        logger.warning(
            f"Strategy {preferred} not found or doesn't support repository URL: {request.repository_url}"
        )

        return self._fallback(request)

    def _fallback(self, request: ScanRequest) -> FetchStrategy | None:
        remote = self.strategies.get(REMOTE)
        if remote is not None and self._supports(remote, request):
            logger.info("Using remote strategy as fallback")
            return remote

        for strategy in self.strategies.values():
            if self._supports(strategy, request):
                logger.info(f"Using {strategy.name} strategy as fallback")
                return strategy

        logger.error(f"No strategy supports repository: {request.repository_url}")
        return None

    def _supports(self, strategy: FetchStrategy, request: ScanRequest) -> bool:
        try:
            return strategy.supports(request.repository_url, request.tool_type)
        except Exception as e:
            logger.error(f"Error checking strategy support for {strategy.name}: {e}")
            return False
