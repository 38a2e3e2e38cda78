"""Clone fetch strategy: full local clone, history walk and local diffing."""

from datetime import datetime

import git
from git.exc import GitCommandError

from common.constants import COMMIT_WALK_LIMIT, EMPTY_TREE_SHA
from common.logger import get_logger

from ..config import IngestConfig
from ..diff_stats import DiffStats, compute_edits, is_binary_path, stats_from_edits
from ..exceptions import DataProcessingException
from ..git_utils import (
    NameStatus,
    authenticated_url,
    clone_repository,
    diff_name_status,
    is_binary_content,
    read_blob,
    resolve_branch,
    split_lines,
)
from ..models import (
    ChangeType,
    CommitRecord,
    FileChange,
    GitUrlInfo,
    Person,
    RepositoryCredentials,
    ToolType,
    utc,
)
from ..temp_resources import CloneWorkspace
from ..url_classifier import is_valid_git_url
from .base import FetchStrategy

logger = get_logger(__name__)


class CloneFetchStrategy(FetchStrategy):
    """Fetch commits by cloning the repository into a temporary directory.

    Works against any host git can reach, needs no platform API and is not
    subject to API quotas, at the cost of disk and clone time. Merge requests
    are invisible to this strategy.
    """

    name = "clone"

    def __init__(self, config: IngestConfig | None = None):
        self.config = config or IngestConfig.from_env()

    def supports(self, repository_url: str, tool_type: ToolType | str) -> bool:
        return is_valid_git_url(repository_url, tool_type)

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
        repository_url = url_info.original_url
        logger.info(
            f"Fetching commits by clone for {repository_url} ({ToolType.parse(tool_type).value})"
        )

        try:
            with CloneWorkspace(
                parent_dir=self.config.clone_temp_dir,
                retry_delay_ms=self.config.cleanup_retry_delay_ms,
                final_delay_ms=self.config.cleanup_final_delay_ms,
            ) as workspace:
                repo = workspace.attach(
                    clone_repository(
                        authenticated_url(repository_url, credentials),
                        workspace.path,
                        self.config.clone_timeout_seconds,
                    )
                )
                commits = self._extract_commits(
                    repo, tool_config_id, url_info, branch_name, since, until
                )
        except GitCommandError as e:
            logger.error(f"Git operation failed for {repository_url}: {e}")
            raise DataProcessingException(
                f"Failed to perform Git operation on {repository_url}"
            ) from e
        except OSError as e:
            logger.error(f"IO error while processing {repository_url}: {e}")
            raise DataProcessingException("Failed to access repository files") from e
        except Exception as e:
            logger.error(f"Unexpected error fetching commits from {repository_url}: {e}")
            raise DataProcessingException("Failed to fetch commits using clone strategy") from e

        logger.info(f"Fetched {len(commits)} commits from {repository_url}")
        return commits

    def _extract_commits(
        self,
        repo: git.Repo,
        tool_config_id: str,
        url_info: GitUrlInfo,
        branch_name: str | None,
        since: datetime | None,
        until: datetime | None,
    ) -> list[CommitRecord]:
        rev = resolve_branch(repo, branch_name)
        if rev is None and not repo.head.is_valid():
            logger.info(f"Repository {url_info.full_name} has no commits")
            return []

        since, until = utc(since), utc(until)
        records = []

        # The date window is applied after the capped walk, so a window older
        # than the newest COMMIT_WALK_LIMIT commits yields nothing.
        for commit in repo.iter_commits(rev, max_count=COMMIT_WALK_LIMIT):
            authored_at = utc(commit.authored_datetime)
            if since is not None and authored_at < since:
                continue
            if until is not None and authored_at > until:
                continue
            records.append(self._to_record(repo, commit, tool_config_id, url_info, branch_name))

        return records

    def _to_record(
        self,
        repo: git.Repo,
        commit: git.Commit,
        tool_config_id: str,
        url_info: GitUrlInfo,
        branch_name: str | None,
    ) -> CommitRecord:
        file_changes = self._file_changes(repo, commit)

        return CommitRecord(
            sha=commit.hexsha,
            message=commit.message,
            author=_person(commit.author),
            committer=_person(commit.committer),
            author_timestamp=utc(commit.authored_datetime),
            tool_config_id=tool_config_id,
            parent_shas=tuple(parent.hexsha for parent in commit.parents),
            file_changes=tuple(file_changes),
            added_lines=sum(f.added_lines for f in file_changes),
            removed_lines=sum(f.removed_lines for f in file_changes),
            changed_lines=sum(f.changed_lines for f in file_changes),
            branch=branch_name,
            repository_name=url_info.full_name,
        )

    def _file_changes(self, repo: git.Repo, commit: git.Commit) -> list[FileChange]:
        """Diff a commit against its first parent, or the empty tree for a root commit."""
        parent = commit.parents[0] if commit.parents else None
        base = parent.hexsha if parent is not None else EMPTY_TREE_SHA

        try:
            return [
                self._file_change(commit, parent, entry)
                for entry in diff_name_status(repo, base, commit.hexsha)
            ]
        except (GitCommandError, ValueError, OSError) as e:
            logger.warning(f"Could not calculate diff stats for commit {commit.hexsha}: {e}")
            return []

    def _file_change(
        self, commit: git.Commit, parent: git.Commit | None, entry: NameStatus
    ) -> FileChange:
        old_data = None
        if entry.status != ChangeType.ADDED:
            old_data = read_blob(parent, entry.previous_path or entry.path)
        new_data = None
        if entry.status != ChangeType.DELETED:
            new_data = read_blob(commit, entry.path)

        binary = (
            is_binary_path(entry.path) or is_binary_content(old_data) or is_binary_content(new_data)
        )
        if binary:
            stats = DiffStats()
        else:
            stats = stats_from_edits(compute_edits(split_lines(old_data), split_lines(new_data)))

        return FileChange(
            file_path=entry.path,
            change_type=entry.status,
            added_lines=stats.added_lines,
            removed_lines=stats.removed_lines,
            changed_lines=stats.changed_lines,
            changed_line_numbers=stats.changed_line_numbers,
            previous_path=entry.previous_path,
            is_binary=binary,
        )


def _person(actor: git.Actor) -> Person:
    return Person(display_name=actor.name, email=actor.email, username=actor.name)
