"""Azure DevOps Git REST 7.0 client."""

from datetime import datetime
from urllib.parse import quote

from common.logger import get_logger

from ..diff_stats import is_binary_path
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
    parse_timestamp,
    within,
)

logger = get_logger(__name__)

API_VERSION = "7.0"

PAGE_SIZE = 100

PR_STATES = {
    "active": MergeRequestState.OPEN,
    "completed": MergeRequestState.MERGED,
    "abandoned": MergeRequestState.CLOSED,
}

BRANCH_PREFIX = "refs/heads/"


class AzureDevOpsClient(RestPlatformClient):
    """Client for Azure Repos.

    Authenticates with a personal access token as the Basic auth password.
    The changes endpoint lists touched paths without line counts, so file
    changes from this client carry zero line statistics.

    API Documentation: https://learn.microsoft.com/en-us/rest/api/azure/devops/git/
    """

    platform = Platform.AZURE_DEVOPS

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
        repo_url = self._repo_url(url_info)
        auth = self._auth(token)
        params = {"api-version": API_VERSION}
        if branch_name:
            params["searchCriteria.itemVersion.version"] = branch_name
        if since:
            params["searchCriteria.fromDate"] = iso(since)
        if until:
            params["searchCriteria.toDate"] = iso(until)

        summaries = self._paged(f"{repo_url}/commits", params, auth)
        logger.info(f"Fetched {len(summaries)} commits from Azure DevOps for {url_info.full_name}")

        def fetch_detail(summary: dict) -> list[CommitRecord]:
            commit_url = f"{repo_url}/commits/{summary['commitId']}"
            detail = self._get_json(commit_url, auth=auth, params={"api-version": API_VERSION})
            changes = self._get_json(
                f"{commit_url}/changes", auth=auth, params={"api-version": API_VERSION}
            ).get("changes", [])
            return convert_each(
                [detail],
                lambda c: self._to_commit(c, changes, tool_config_id, url_info, branch_name),
                "Azure DevOps commit",
            )

        return fetch_each(summaries, fetch_detail, "Azure DevOps commit")

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
        params = {"api-version": API_VERSION, "searchCriteria.status": "all"}
        if branch_name:
            params["searchCriteria.targetRefName"] = f"{BRANCH_PREFIX}{branch_name}"

        items = [
            pr
            for pr in self._paged(f"{self._repo_url(url_info)}/pullrequests", params, self._auth(token))
            if within(parse_timestamp(pr.get("creationDate")), since, until)
        ]
        return convert_each(
            items, lambda pr: self._to_merge_request(pr, tool_config_id, url_info), "Azure DevOps pull request"
        )

    def _repo_url(self, url_info: GitUrlInfo) -> str:
        organization = quote(url_info.organization or "", safe="")
        project = quote(url_info.project or url_info.repository_name, safe="")
        repository = quote(url_info.repository_name, safe="")
        return f"https://dev.azure.com/{organization}/{project}/_apis/git/repositories/{repository}"

    def _auth(self, token: str | None) -> tuple[str, str] | None:
        return ("", token) if token else None

    def _paged(self, url: str, params: dict, auth: tuple[str, str] | None) -> list[dict]:
        """Collect ``value`` items using ``$top``/``$skip`` paging."""
        items: list[dict] = []
        for page in range(self.MAX_PAGES):
            page_params = {**params, "$top": PAGE_SIZE, "$skip": page * PAGE_SIZE}
            values = self._get_json(url, auth=auth, params=page_params).get("value", [])
            items.extend(values)
            if len(values) < PAGE_SIZE:
                return items
        logger.warning(f"Stopped Azure DevOps pagination after {self.MAX_PAGES} pages")
        return items

    def _to_commit(
        self,
        data: dict,
        changes: list[dict],
        tool_config_id: str,
        url_info: GitUrlInfo,
        branch_name: str | None,
    ) -> CommitRecord:
        author = data.get("author") or {}
        committer = data.get("committer") or {}
        return CommitRecord(
            sha=data["commitId"],
            message=data.get("comment") or "",
            author=Person(display_name=author.get("name"), email=author.get("email")),
            committer=Person(display_name=committer.get("name"), email=committer.get("email")),
            author_timestamp=parse_timestamp(author["date"]),
            tool_config_id=tool_config_id,
            parent_shas=tuple(data.get("parents") or ()),
            file_changes=tuple(convert_each(changes, _to_file_change, "Azure DevOps change")),
            external_url=data.get("remoteUrl"),
            branch=branch_name,
            repository_name=url_info.full_name,
        )

    def _to_merge_request(self, data: dict, tool_config_id: str, url_info: GitUrlInfo) -> MergeRequestRecord:
        state = PR_STATES.get(data.get("status"), MergeRequestState.OPEN)
        created_at = parse_timestamp(data["creationDate"])
        closed_at = parse_timestamp(data.get("closedDate"))
        created_by = data.get("createdBy") or {}
        return MergeRequestRecord(
            external_id=str(data["pullRequestId"]),
            title=data.get("title") or "",
            state=state,
            from_branch=_branch(data.get("sourceRefName")),
            to_branch=_branch(data.get("targetRefName")),
            author=Person(
                display_name=created_by.get("displayName"), username=created_by.get("uniqueName")
            ),
            created_at=created_at,
            updated_at=closed_at or created_at,
            url=data.get("url"),
            tool_config_id=tool_config_id,
            summary=data.get("description"),
            closed_at=closed_at,
            merged_at=closed_at if state == MergeRequestState.MERGED else None,
            repository_name=url_info.full_name,
            reviewers=tuple(
                Person(display_name=r.get("displayName"), username=r.get("uniqueName"))
                for r in data.get("reviewers") or []
            ),
        )


def _branch(ref_name: str | None) -> str | None:
    if ref_name and ref_name.startswith(BRANCH_PREFIX):
        return ref_name[len(BRANCH_PREFIX) :]
    return ref_name


def _to_file_change(data: dict) -> FileChange | None:
    item = data.get("item") or {}
    # Folder entries accompany file changes
    if item.get("isFolder") or item.get("gitObjectType") == "tree":
        return None

    path = item["path"].lstrip("/")
    kinds = {kind.strip() for kind in (data.get("changeType") or "edit").split(",")}
    if "add" in kinds:
        change_type = ChangeType.ADDED
    elif "delete" in kinds:
        change_type = ChangeType.DELETED
    elif "rename" in kinds:
        change_type = ChangeType.RENAMED
    else:
        change_type = ChangeType.MODIFIED

    previous = data.get("sourceServerItem")
    return FileChange(
        file_path=path,
        change_type=change_type,
        previous_path=previous.lstrip("/") if previous else None,
        is_binary=is_binary_path(path),
    )
