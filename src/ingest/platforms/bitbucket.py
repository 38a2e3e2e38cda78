"""Bitbucket Cloud REST 2.0 client."""

import re
from datetime import datetime

from common.logger import get_logger

from ..diff_stats import FilePatch, is_binary_path, split_unified_diff, stats_from_unified_diff
from ..exceptions import PlatformApiException
from ..models import (
    CommitRecord,
    FileChange,
    GitUrlInfo,
    MergeRequestRecord,
    MergeRequestState,
    Person,
    Platform,
    utc,
)
from ..ratelimit.bitbucket import split_credentials
from .base import (
    RequestContext,
    RestPlatformClient,
    convert_each,
    fetch_each,
    parse_timestamp,
    within,
)

logger = get_logger(__name__)

PR_STATES = {
    "OPEN": MergeRequestState.OPEN,
    "MERGED": MergeRequestState.MERGED,
    "DECLINED": MergeRequestState.CLOSED,
    "SUPERSEDED": MergeRequestState.CLOSED,
}

# "Jane Doe <jane@example.com>"
RAW_AUTHOR = re.compile(r"^\s*(?P<name>.*?)\s*<(?P<email>[^>]*)>\s*$")


def next_field(response, data: dict) -> str | None:
    """Next page from the ``next`` field of a Bitbucket paged response."""
    return data.get("next")


class BitbucketClient(RestPlatformClient):
    """Client for the Bitbucket Cloud API.

    Authenticates with HTTP Basic auth from a ``username:appPassword``
    credential string. Commit listings are newest first, so paging stops at
    the first commit older than the window.

    API Documentation: https://developer.atlassian.com/cloud/bitbucket/rest/
    """

    platform = Platform.BITBUCKET

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
        auth = self._auth(token)
        url = f"{repo_url}/commits/{branch_name}" if branch_name else f"{repo_url}/commits"

        selected = []
        for commit in self._paginate(
            url, next_field, items=lambda d: d.get("values", []), auth=auth, params={"pagelen": 100}
        ):
            committed_at = parse_timestamp(commit.get("date"))
            if since is not None and committed_at is not None and committed_at < utc(since):
                break
            if within(committed_at, None, until):
                selected.append(commit)

        logger.info(f"Fetched {len(selected)} commits from Bitbucket for {url_info.full_name}")

        def fetch_diff(commit: dict) -> list[CommitRecord]:
            diff_text = self._get(f"{repo_url}/diff/{commit['hash']}", auth=auth).text
            return convert_each(
                [commit],
                lambda c: self._to_commit(c, diff_text, tool_config_id, url_info, branch_name),
                "Bitbucket commit",
            )

        return fetch_each(selected, fetch_diff, "Bitbucket commit")

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
        params = [("state", state) for state in PR_STATES] + [("sort", "-updated_on"), ("pagelen", 50)]
        if branch_name:
            params.append(("q", f'destination.branch.name="{branch_name}"'))

        items = []
        for pull in self._paginate(
            f"{repo_url}/pullrequests",
            next_field,
            items=lambda d: d.get("values", []),
            auth=self._auth(token),
            params=params,
        ):
            updated_at = parse_timestamp(pull.get("updated_on"))
            if since is not None and updated_at is not None and updated_at < utc(since):
                break
            if within(parse_timestamp(pull.get("created_on")), None, until):
                items.append(pull)

        return convert_each(
            items, lambda p: self._to_merge_request(p, tool_config_id, url_info), "Bitbucket pull request"
        )

    def _repo_url(self, url_info: GitUrlInfo, context: RequestContext | None) -> str:
        base_url = context.base_url if context else None
        if base_url and "bitbucket.org" not in base_url:
            raise PlatformApiException(
                self.platform_name,
                f"Bitbucket Server at {base_url} is not supported by the REST client; use the clone strategy",
            )
        return f"{self.config.bitbucket_api_url}/repositories/{url_info.owner}/{url_info.repository_name}"

    def _auth(self, token: str | None) -> tuple[str, str] | None:
        if not token:
            return None
        try:
            return split_credentials(token)
        except ValueError as e:
            raise PlatformApiException(self.platform_name, str(e)) from e

    def _to_commit(
        self,
        data: dict,
        diff_text: str,
        tool_config_id: str,
        url_info: GitUrlInfo,
        branch_name: str | None,
    ) -> CommitRecord:
        file_changes = tuple(
            convert_each(split_unified_diff(diff_text), _to_file_change, "Bitbucket diff")
        )
        author = _person(data.get("author") or {})
        return CommitRecord(
            sha=data["hash"],
            message=data.get("message") or "",
            author=author,
            # The API exposes no separate committer
            committer=author,
            author_timestamp=parse_timestamp(data["date"]),
            tool_config_id=tool_config_id,
            parent_shas=tuple(p["hash"] for p in data.get("parents") or []),
            file_changes=file_changes,
            added_lines=sum(f.added_lines for f in file_changes),
            removed_lines=sum(f.removed_lines for f in file_changes),
            changed_lines=sum(f.changed_lines for f in file_changes),
            external_url=((data.get("links") or {}).get("html") or {}).get("href"),
            branch=branch_name,
            repository_name=url_info.full_name,
        )

    def _to_merge_request(self, data: dict, tool_config_id: str, url_info: GitUrlInfo) -> MergeRequestRecord:
        state = PR_STATES.get(data.get("state"), MergeRequestState.OPEN)
        updated_at = parse_timestamp(data["updated_on"])
        author = data.get("author") or {}
        return MergeRequestRecord(
            external_id=str(data["id"]),
            title=data.get("title") or "",
            state=state,
            from_branch=(((data.get("source") or {}).get("branch")) or {}).get("name"),
            to_branch=(((data.get("destination") or {}).get("branch")) or {}).get("name"),
            author=Person(display_name=author.get("display_name"), username=author.get("nickname")),
            created_at=parse_timestamp(data["created_on"]),
            updated_at=updated_at,
            url=((data.get("links") or {}).get("html") or {}).get("href"),
            tool_config_id=tool_config_id,
            summary=data.get("description"),
            # Bitbucket reports no close time; the last update is when the state changed
            closed_at=updated_at if state != MergeRequestState.OPEN else None,
            merged_at=updated_at if state == MergeRequestState.MERGED else None,
            repository_name=url_info.full_name,
            reviewers=tuple(
                Person(display_name=r.get("display_name"), username=r.get("nickname"))
                for r in data.get("reviewers") or []
            ),
        )


def _person(author: dict) -> Person:
    user = author.get("user") or {}
    match = RAW_AUTHOR.match(author.get("raw") or "")
    name = user.get("display_name") or (match.group("name") if match else author.get("raw"))
    return Person(
        display_name=name,
        email=match.group("email") if match else None,
        username=user.get("nickname"),
    )


def _to_file_change(patch: FilePatch) -> FileChange:
    stats = stats_from_unified_diff(patch.patch)
    return FileChange(
        file_path=patch.path,
        change_type=patch.change_type,
        added_lines=stats.added_lines,
        removed_lines=stats.removed_lines,
        changed_lines=stats.changed_lines,
        changed_line_numbers=stats.changed_line_numbers,
        previous_path=patch.old_path,
        is_binary=is_binary_path(patch.path) or "Binary files" in patch.patch,
    )
