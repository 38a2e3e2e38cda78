"""Abstract base class for commit fetch strategies."""

from abc import ABC, abstractmethod
from datetime import datetime

from ..models import CommitRecord, GitUrlInfo, RepositoryCredentials, ToolType


class FetchStrategy(ABC):
    """Base class for all commit fetch strategies.

    A strategy turns one classified repository into normalized commit
    records. Strategies hold no per-scan state; one instance serves any
    number of concurrent scans.
    """

    name: str = ""

    @abstractmethod
    def fetch_commits(
        self,
        tool_type: ToolType,
        tool_config_id: str,
        url_info: GitUrlInfo,
        branch_name: str | None,
        credentials: RepositoryCredentials,
        since: datetime | None,
        until: datetime | None = None,
    ) -> list[CommitRecord]:
        """Fetch commits of one branch, newest first.

        Args:
            tool_type: Declared tool type of the connection
            tool_config_id: Identifier stamped on every record
            url_info: Classified repository URL
            branch_name: Branch to read (None = repository default)
            credentials: Connection credentials
            since: Lower bound on author time (inclusive)
            until: Upper bound on author time (inclusive)

        Returns:
            Commit records

        Raises:
            DataProcessingException: If the fetch fails as a whole
        """
        pass

    @abstractmethod
    def supports(self, repository_url: str, tool_type: ToolType | str) -> bool:
        """Return True if this strategy can serve the repository."""
        pass
