"""GitLab REST v4 client."""

from datetime import datetime
from urllib.parse import quote

from common.logger import get_logger

from ..diff_stats import is_binary_path, stats_from_unified_diff
from ..models import (
    ChangeType,
    CommitRecord,
    FileChange,
    GitUrlInfo,
    MergeRequestRecord,
    MergeRequestState,
    Person,
    Platform,
)
from .base import (
    RequestContext,
    RestPlatformClient,
    convert_each,
    fetch_each,
    iso,
    link_next,
    parse_timestamp,
)

logger = get_logger(__name__)

MR_STATES = {
    "opened": MergeRequestState.OPEN,
    "locked": MergeRequestState.OPEN,
    "merged": MergeRequestState.MERGED,
    "closed": MergeRequestState.CLOSED,
}


class GitLabClient(RestPlatformClient):
    """Client for the GitLab REST API (gitlab.com and self-hosted).

    Projects are addressed by their URL-encoded full path, so no project id
    lookup is needed. The API root comes from the request context for
    self-hosted instances.

    API Documentation: https://docs.gitlab.com/ee/api/rest/
    """

    platform = Platform.GITLAB

    def fetch_commits(
        self,
        tool_config_id: str,
        url_info: GitUrlInfo,
        branch_name: str | None,
        token: str | None,
        since: datetime | None,
        until: datetime | None = None,
        context: RequestContext | None = None,
    ) -> list[CommitRecord]:
        project_url = self._project_url(url_info, context)
        headers = self._headers(token)
        params = {"per_page": 100}
        if branch_name:
            params["ref_name"] = branch_name
        if since:
            params["since"] = iso(since)
        if until:
            params["until"] = iso(until)

        summaries = list(
            self._paginate(f"{project_url}/repository/commits", link_next, headers=headers, params=params)
        )
        logger.info(f"Fetched {len(summaries)} commits from GitLab for {url_info.full_name}")

        def fetch_diffs(summary: dict) -> list[CommitRecord]:
            diffs = list(
                self._paginate(
                    f"{project_url}/repository/commits/{summary['id']}/diff",
                    link_next,
                    headers=headers,
                    params={"per_page": 100},
                )
            )
            return convert_each(
                [summary],
                lambda c: self._to_commit(c, diffs, tool_config_id, url_info, branch_name),
                "GitLab commit",
            )

        return fetch_each(summaries, fetch_diffs, "GitLab commit")

    def fetch_merge_requests(
        self,
        tool_config_id: str,
        url_info: GitUrlInfo,
        branch_name: str | None,
        token: str | None,
        since: datetime | None,
        until: datetime | None = None,
        context: RequestContext | None = None,
    ) -> list[MergeRequestRecord]:
        project_url = self._project_url(url_info, context)
        params = {"state": "all", "order_by": "updated_at", "sort": "desc", "per_page": 100}
        if branch_name:
            params["target_branch"] = branch_name
        if since:
            params["updated_after"] = iso(since)
        if until:
            params["updated_before"] = iso(until)

        items = list(
            self._paginate(
                f"{project_url}/merge_requests", link_next, headers=self._headers(token), params=params
            )
        )
        return convert_each(
            items, lambda mr: self._to_merge_request(mr, tool_config_id, url_info), "GitLab merge request"
        )

    def _project_url(self, url_info: GitUrlInfo, context: RequestContext | None) -> str:
        base_url = context.base_url if context else None
        if not base_url or "gitlab.com" in base_url:
            api_url = self.config.gitlab_api_url
        else:
            api_url = f"{base_url.rstrip('/')}/api/v4"
        project_path = quote(url_info.full_name, safe="")
        return f"{api_url}/projects/{project_path}"

    def _headers(self, token: str | None) -> dict[str, str]:
        return {"PRIVATE-TOKEN": token} if token else {}

    def _to_commit(
        self,
        data: dict,
        diffs: list[dict],
        tool_config_id: str,
        url_info: GitUrlInfo,
        branch_name: str | None,
    ) -> CommitRecord:
        file_changes = tuple(convert_each(diffs, _to_file_change, "GitLab diff"))
        return CommitRecord(
            sha=data["id"],
            message=data.get("message") or data.get("title") or "",
            author=Person(display_name=data.get("author_name"), email=data.get("author_email")),
            committer=Person(display_name=data.get("committer_name"), email=data.get("committer_email")),
            author_timestamp=parse_timestamp(data["authored_date"]),
            tool_config_id=tool_config_id,
            parent_shas=tuple(data.get("parent_ids") or ()),
            file_changes=file_changes,
            added_lines=sum(f.added_lines for f in file_changes),
            removed_lines=sum(f.removed_lines for f in file_changes),
            changed_lines=sum(f.changed_lines for f in file_changes),
            external_url=data.get("web_url"),
            branch=branch_name,
            repository_name=url_info.full_name,
        )

    def _to_merge_request(self, data: dict, tool_config_id: str, url_info: GitUrlInfo) -> MergeRequestRecord:
        author = data.get("author") or {}
        return MergeRequestRecord(
            external_id=str(data["iid"]),
            title=data.get("title") or "",
            state=MR_STATES.get(data.get("state"), MergeRequestState.OPEN),
            from_branch=data.get("source_branch"),
            to_branch=data.get("target_branch"),
            author=Person(display_name=author.get("name"), username=author.get("username")),
            created_at=parse_timestamp(data["created_at"]),
            updated_at=parse_timestamp(data["updated_at"]),
            url=data.get("web_url"),
            tool_config_id=tool_config_id,
            summary=data.get("description"),
            closed_at=parse_timestamp(data.get("closed_at")),
            merged_at=parse_timestamp(data.get("merged_at")),
            repository_name=url_info.full_name,
            reviewers=tuple(
                Person(display_name=r.get("name"), username=r.get("username"))
                for r in data.get("reviewers") or []
            ),
        )


def _to_file_change(data: dict) -> FileChange:
    if data.get("new_file"):
        change_type = ChangeType.ADDED
    elif data.get("deleted_file"):
        change_type = ChangeType.DELETED
    elif data.get("renamed_file"):
        change_type = ChangeType.RENAMED
    else:
        change_type = ChangeType.MODIFIED

    path = data.get("new_path") or data["old_path"]
    stats = stats_from_unified_diff(data.get("diff"))
    return FileChange(
        file_path=path,
        change_type=change_type,
        added_lines=stats.added_lines,
        removed_lines=stats.removed_lines,
        changed_lines=stats.changed_lines,
        changed_line_numbers=stats.changed_line_numbers,
        previous_path=data.get("old_path") if change_type != ChangeType.ADDED else None,
        is_binary=is_binary_path(path),
    )
