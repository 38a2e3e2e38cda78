"""GitHub REST v3 client."""

from dataclasses import replace
from datetime import datetime

from common.constants import REVIEW_ACTIVITY_STATES
from common.logger import get_logger

from ..diff_stats import is_binary_path, stats_from_unified_diff
from ..exceptions import PlatformApiException
from ..models import (
    ChangeType,
    CommitRecord,
    FileChange,
    GitUrlInfo,
    MergeRequestRecord,
    MergeRequestState,
    Person,
    Platform,
    utc,
)
from .base import (
    RequestContext,
    RestPlatformClient,
    convert_each,
    fetch_each,
    iso,
    link_next,
    parse_timestamp,
    within,
)

logger = get_logger(__name__)

FILE_STATUS = {
    "added": ChangeType.ADDED,
    "removed": ChangeType.DELETED,
    "renamed": ChangeType.RENAMED,
    "copied": ChangeType.ADDED,
}


class GitHubClient(RestPlatformClient):
    """Client for the GitHub REST API.

    Commit listing does not include files, so every commit costs one extra
    request for its detail. Pull request pickup time is the earliest review
    activity.

    API Documentation: https://docs.github.com/en/rest
    """

    platform = Platform.GITHUB

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
        repo_url = self._repo_url(url_info, context)
        headers = self._headers(token)
        params = {"per_page": 100}
        if branch_name:
            params["sha"] = branch_name
        if since:
            params["since"] = iso(since)
        if until:
            params["until"] = iso(until)

        summaries = list(self._paginate(f"{repo_url}/commits", link_next, headers=headers, params=params))
        logger.info(f"Fetched {len(summaries)} commit summaries from GitHub for {url_info.full_name}")

        def fetch_detail(summary: dict) -> list[CommitRecord]:
            detail = self._get_json(f"{repo_url}/commits/{summary['sha']}", headers=headers)
            return convert_each(
                [detail],
                lambda c: self._to_commit(c, tool_config_id, url_info, branch_name),
                "GitHub commit",
            )

        return fetch_each(summaries, fetch_detail, "GitHub commit")

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
        repo_url = self._repo_url(url_info, context)
        headers = self._headers(token)
        params = {"state": "all", "sort": "updated", "direction": "desc", "per_page": 100}
        if branch_name:
            params["base"] = branch_name

        pulls = []
        for pull in self._paginate(f"{repo_url}/pulls", link_next, headers=headers, params=params):
            updated_at = parse_timestamp(pull.get("updated_at"))
            # Sorted by update time, newest first
            if since is not None and updated_at is not None and updated_at < utc(since):
                break
            if within(parse_timestamp(pull.get("created_at")), None, until):
                pulls.append(pull)

        records = convert_each(
            pulls, lambda p: self._to_merge_request(p, tool_config_id, url_info), "GitHub pull request"
        )
        return [self._with_pickup_time(r, repo_url, headers) for r in records]

    def _repo_url(self, url_info: GitUrlInfo, context: RequestContext | None) -> str:
        base_url = context.base_url if context else None
        if not base_url or "github.com" in base_url:
            api_url = self.config.github_api_url
        else:
            api_url = f"{base_url.rstrip('/')}/api/v3"
        return f"{api_url}/repos/{url_info.owner}/{url_info.repository_name}"

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _to_commit(
        self, data: dict, tool_config_id: str, url_info: GitUrlInfo, branch_name: str | None
    ) -> CommitRecord:
        commit = data["commit"]
        author = commit.get("author") or {}
        committer = commit.get("committer") or {}
        file_changes = tuple(convert_each(data.get("files") or [], _to_file_change, "GitHub file"))

        return CommitRecord(
            sha=data["sha"],
            message=commit.get("message", ""),
            author=Person(
                display_name=author.get("name"),
                email=author.get("email"),
                username=(data.get("author") or {}).get("login"),
            ),
            committer=Person(
                display_name=committer.get("name"),
                email=committer.get("email"),
                username=(data.get("committer") or {}).get("login"),
            ),
            author_timestamp=parse_timestamp(author["date"]),
            tool_config_id=tool_config_id,
            parent_shas=tuple(p["sha"] for p in data.get("parents", [])),
            file_changes=file_changes,
            added_lines=sum(f.added_lines for f in file_changes),
            removed_lines=sum(f.removed_lines for f in file_changes),
            changed_lines=sum(f.changed_lines for f in file_changes),
            external_url=data.get("html_url"),
            branch=branch_name,
            repository_name=url_info.full_name,
        )

    def _to_merge_request(self, data: dict, tool_config_id: str, url_info: GitUrlInfo) -> MergeRequestRecord:
        if data.get("merged_at"):
            state = MergeRequestState.MERGED
        elif data.get("state") == "closed":
            state = MergeRequestState.CLOSED
        else:
            state = MergeRequestState.OPEN

        user = data.get("user") or {}
        return MergeRequestRecord(
            external_id=str(data["number"]),
            title=data.get("title") or "",
            state=state,
            from_branch=(data.get("head") or {}).get("ref"),
            to_branch=(data.get("base") or {}).get("ref"),
            author=Person(display_name=user.get("login"), username=user.get("login")),
            created_at=parse_timestamp(data["created_at"]),
            updated_at=parse_timestamp(data["updated_at"]),
            url=data.get("html_url"),
            tool_config_id=tool_config_id,
            summary=data.get("body"),
            closed_at=parse_timestamp(data.get("closed_at")),
            merged_at=parse_timestamp(data.get("merged_at")),
            repository_name=url_info.full_name,
            reviewers=tuple(
                Person(display_name=r.get("login"), username=r.get("login"))
                for r in data.get("requested_reviewers") or []
            ),
        )

    def _with_pickup_time(
        self, record: MergeRequestRecord, repo_url: str, headers: dict[str, str]
    ) -> MergeRequestRecord:
        try:
            reviews = self._get_json(
                f"{repo_url}/pulls/{record.external_id}/reviews", headers=headers, params={"per_page": 100}
            )
        except PlatformApiException as e:
            logger.warning(f"Could not read reviews of pull request #{record.external_id}: {e}")
            return record

        times = [
            parse_timestamp(review.get("submitted_at"))
            for review in reviews
            if review.get("state") in REVIEW_ACTIVITY_STATES and review.get("submitted_at")
        ]
        if not times:
            return record

        reviewers = {r.username: r for r in record.reviewers}
        for review in reviews:
            if review.get("state") not in REVIEW_ACTIVITY_STATES:
                continue
            login = (review.get("user") or {}).get("login")
            if login and login not in reviewers:
                reviewers[login] = Person(display_name=login, username=login)

        return replace(record, picked_for_review_at=min(times), reviewers=tuple(reviewers.values()))


def _to_file_change(data: dict) -> FileChange:
    path = data["filename"]
    stats = stats_from_unified_diff(data.get("patch"))
    return FileChange(
        file_path=path,
        change_type=FILE_STATUS.get(data.get("status"), ChangeType.MODIFIED),
        added_lines=int(data.get("additions", stats.added_lines)),
        removed_lines=int(data.get("deletions", stats.removed_lines)),
        changed_lines=stats.changed_lines,
        changed_line_numbers=stats.changed_line_numbers,
        previous_path=data.get("previous_filename"),
        is_binary=is_binary_path(path),
    )
