"""Commit fetch strategies and their selection."""

from .base import FetchStrategy
from .clone import CloneFetchStrategy
from .remote import RemoteFetchStrategy, credential_string
from .selector import StrategySelector, build_strategy_registry, canonical_name

__all__ = [
    "CloneFetchStrategy",
    "FetchStrategy",
    "RemoteFetchStrategy",
    "StrategySelector",
    "build_strategy_registry",
    "canonical_name",
    "credential_string",
]
