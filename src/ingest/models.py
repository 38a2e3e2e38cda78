"""Data models shared by the URL classifier, fetch strategies and platform clients."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ToolType(str, Enum):
    """Hosting platform declared on a connection."""

    GITHUB = "GITHUB"
    GITLAB = "GITLAB"
    BITBUCKET = "BITBUCKET"
    AZURE_DEVOPS = "AZURE_DEVOPS"

    @classmethod
    def parse(cls, value: "ToolType | str") -> "ToolType":
        """Parse a tool type from its name or a known alias (case-insensitive).

        Raises:
            ValueError: If the value names no supported tool
        """
        if isinstance(value, ToolType):
            return value
        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return _TOOL_TYPE_ALIASES[key]
        except KeyError as e:
            raise ValueError(
                f"Unsupported tool type: {value}. "
                f"Must be one of: {', '.join(t.value for t in cls)}"
            ) from e

    @property
    def platform(self) -> "Platform":
        return Platform[self.name]


_TOOL_TYPE_ALIASES = {
    "github": ToolType.GITHUB,
    "gitlab": ToolType.GITLAB,
    "bitbucket": ToolType.BITBUCKET,
    "azure": ToolType.AZURE_DEVOPS,
    "azure_devops": ToolType.AZURE_DEVOPS,
    "azuredevops": ToolType.AZURE_DEVOPS,
    "azurerepository": ToolType.AZURE_DEVOPS,
}


class Platform(str, Enum):
    """Hosting platform as identified from a repository URL."""

    GITHUB = "GitHub"
    GITLAB = "GitLab"
    BITBUCKET = "Bitbucket"
    AZURE_DEVOPS = "Azure DevOps"

    @property
    def display_name(self) -> str:
        return self.value


class ChangeType(str, Enum):
    """How a file changed within a commit."""

    ADDED = "ADDED"
    DELETED = "DELETED"
    RENAMED = "RENAMED"
    MODIFIED = "MODIFIED"


class MergeRequestState(str, Enum):
    """Closed set of merge/pull request states."""

    OPEN = "OPEN"
    MERGED = "MERGED"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class RepositoryCredentials:
    """Credentials for one repository connection.

    Any combination may be present; the predicates tell strategies which
    transport to build. Secrets never appear in ``repr``.
    """

    username: str | None = None
    password: str | None = field(default=None, repr=False)
    token: str | None = field(default=None, repr=False)
    ssh_key: str | None = field(default=None, repr=False)
    ssh_key_passphrase: str | None = field(default=None, repr=False)

    def has_username_password(self) -> bool:
        return self.username is not None and self.password is not None

    def has_token(self) -> bool:
        return bool(self.token and self.token.strip())

    def has_ssh_key(self) -> bool:
        return bool(self.ssh_key and self.ssh_key.strip())


@dataclass(frozen=True)
class ScanRequest:
    """One scan of one repository, built by the scheduler and consumed once.

    Attributes:
        repository_url: Clone/browse URL of the repository
        tool_type: Platform declared on the connection
        credentials: Credentials for the connection
        connection_id: Identifier of the persisted connection
        branch_name: Branch to scan (None = repository default)
        since: Lower bound on commit author time (inclusive)
        until: Upper bound on commit author time (inclusive)
        clone_enabled: Prefer the clone strategy over the remote strategy
        explicit_strategy_name: Strategy forced by the caller, if any
        tool_config_id: Identifier stamped on produced records (defaults to connection_id)
        repository_name: Optional "owner/repo" hint for URLs the classifier cannot parse
    """

    repository_url: str
    tool_type: ToolType
    credentials: RepositoryCredentials
    connection_id: str
    branch_name: str | None = None
    since: datetime | None = None
    until: datetime | None = None
    clone_enabled: bool = False
    explicit_strategy_name: str | None = None
    tool_config_id: str | None = None
    repository_name: str | None = None

    def __post_init__(self):
        if not isinstance(self.tool_type, ToolType):
            object.__setattr__(self, "tool_type", ToolType.parse(self.tool_type))
        if self.tool_config_id is None:
            object.__setattr__(self, "tool_config_id", self.connection_id)


@dataclass(frozen=True)
class GitUrlInfo:
    """Parsed repository coordinates. Derived once per scan, never mutated."""

    platform: Platform
    owner: str | None
    repository_name: str
    original_url: str
    organization: str | None = None
    project: str | None = None

    @property
    def full_name(self) -> str:
        """Platform-native "owner/repo" style path of the repository."""
        if self.platform == Platform.AZURE_DEVOPS:
            return f"{self.organization}/{self.project}/{self.repository_name}"
        if self.platform == Platform.GITLAB and self.organization:
            return f"{self.organization}/{self.repository_name}"
        return f"{self.owner}/{self.repository_name}"


@dataclass(frozen=True)
class Person:
    """Author, committer or reviewer identity."""

    display_name: str | None = None
    email: str | None = None
    username: str | None = None


@dataclass(frozen=True)
class FileChange:
    """Per-file statistics of one commit.

    ``changed_line_numbers`` is normalized to 1-based, ascending, unique
    new-file line numbers on construction.
    """

    file_path: str
    change_type: ChangeType
    added_lines: int = 0
    removed_lines: int = 0
    changed_lines: int = 0
    changed_line_numbers: tuple[int, ...] = ()
    previous_path: str | None = None
    is_binary: bool = False

    def __post_init__(self):
        for name in ("added_lines", "removed_lines", "changed_lines"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0 for {self.file_path}")
        if any(n < 1 for n in self.changed_line_numbers):
            raise ValueError(f"Line numbers are 1-based for {self.file_path}")
        object.__setattr__(
            self, "changed_line_numbers", tuple(sorted(set(self.changed_line_numbers)))
        )


@dataclass(frozen=True)
class CommitRecord:
    """A normalized commit, ready for the persistence layer."""

    sha: str
    message: str
    author: Person
    committer: Person
    author_timestamp: datetime
    tool_config_id: str
    parent_shas: tuple[str, ...] = ()
    file_changes: tuple[FileChange, ...] = ()
    added_lines: int = 0
    removed_lines: int = 0
    changed_lines: int = 0
    external_url: str | None = None
    branch: str | None = None
    repository_name: str | None = None

    @property
    def is_merge_commit(self) -> bool:
        return len(self.parent_shas) > 1

    @property
    def files_changed(self) -> int:
        return len(self.file_changes)


@dataclass(frozen=True)
class MergeRequestRecord:
    """A normalized merge/pull request, ready for the persistence layer."""

    external_id: str
    title: str
    state: MergeRequestState
    from_branch: str | None
    to_branch: str | None
    author: Person
    created_at: datetime
    updated_at: datetime
    url: str | None
    tool_config_id: str
    summary: str | None = None
    closed_at: datetime | None = None
    merged_at: datetime | None = None
    picked_for_review_at: datetime | None = None
    repository_name: str | None = None
    added_lines: int | None = None
    removed_lines: int | None = None
    commit_count: int | None = None
    files_changed: int | None = None
    reviewers: tuple[Person, ...] = ()


@dataclass(frozen=True)
class RateLimitStatus:
    """Local estimate of a platform's API quota. Recomputed on every check."""

    platform: str
    limit: int
    used: int
    reset_at: datetime

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)

    @property
    def usage_percentage(self) -> float:
        """Usage as a fraction between 0.0 and 1.0."""
        if self.limit <= 0:
            return 0.0
        return self.used / self.limit

    def exceeds_threshold(self, threshold: float) -> bool:
        return self.usage_percentage >= threshold


def utc(value: datetime | None) -> datetime | None:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
