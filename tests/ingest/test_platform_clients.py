"""Tests for platform REST clients, with the HTTP session mocked out."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
import requests

from ingest.config import IngestConfig
from ingest.exceptions import PlatformApiException, RateLimitExceededException
from ingest.models import ChangeType, GitUrlInfo, MergeRequestState, Platform, ToolType
from ingest.platforms import default_clients
from ingest.platforms.azure_devops import AzureDevOpsClient
from ingest.platforms.base import RequestContext, convert_each, fetch_each, parse_timestamp, within
from ingest.platforms.bitbucket import BitbucketClient
from ingest.platforms.github import GitHubClient
from ingest.platforms.gitlab import GitLabClient

SINCE = datetime(2026, 1, 2, tzinfo=timezone.utc)


def make_response(status=200, json_data=None, headers=None, links=None, text=""):
    """Build a stand-in for requests.Response."""
    response = Mock()
    response.status_code = status
    response.json.return_value = json_data
    response.headers = headers or {}
    response.links = links or {}
    response.text = text
    return response


@pytest.fixture
def session():
    session = requests.Session()
    session.get = Mock()
    return session


@pytest.fixture
def config():
    return IngestConfig(http_requests_per_minute=10_000)


def github_commit(sha, files=None):
    return {
        "sha": sha,
        "commit": {
            "message": f"commit {sha}",
            "author": {"name": "Ann", "email": "ann@example.com", "date": "2026-01-03T10:00:00Z"},
            "committer": {"name": "Bot", "email": "bot@example.com", "date": "2026-01-03T11:00:00Z"},
        },
        "author": {"login": "ann"},
        "parents": [{"sha": "p" * 40}],
        "files": files or [],
        "html_url": f"https://github.com/acme/app/commit/{sha}",
    }


class TestGitHubClient:
    """Tests for GitHubClient."""

    URL_INFO = GitUrlInfo(Platform.GITHUB, "acme", "app", "https://github.com/acme/app.git")

    def test_fetch_commits_paginates_and_reads_details(self, session, config):
        """Test listing follows Link headers and each commit is read in detail."""
        next_page = "https://api.github.com/repos/acme/app/commits?page=2"
        file_payload = {
            "filename": "src/app.py",
            "status": "modified",
            "additions": 1,
            "deletions": 1,
            "patch": "@@ -1,2 +1,2 @@\n a\n-b\n+B",
        }
        session.get.side_effect = [
            make_response(json_data=[{"sha": "a" * 40}], links={"next": {"url": next_page}}),
            make_response(json_data=[{"sha": "b" * 40}]),
            make_response(json_data=github_commit("a" * 40, [file_payload])),
            make_response(json_data=github_commit("b" * 40)),
        ]

        client = GitHubClient(config, session)
        commits = client.fetch_commits("cfg", self.URL_INFO, "main", "ghp_x", SINCE)

        assert [c.sha for c in commits] == ["a" * 40, "b" * 40]
        first_call, second_call = session.get.call_args_list[:2]
        assert first_call.args[0] == "https://api.github.com/repos/acme/app/commits"
        assert first_call.kwargs["params"]["sha"] == "main"
        assert first_call.kwargs["params"]["since"] == "2026-01-02T00:00:00+00:00"
        assert first_call.kwargs["headers"]["Authorization"] == "Bearer ghp_x"
        assert second_call.args[0] == next_page
        assert "params" not in second_call.kwargs

        commit = commits[0]
        assert commit.author.username == "ann"
        assert commit.committer.display_name == "Bot"
        assert commit.author_timestamp == datetime(2026, 1, 3, 10, tzinfo=timezone.utc)
        assert commit.parent_shas == ("p" * 40,)
        assert commit.repository_name == "acme/app"
        (change,) = commit.file_changes
        assert change.change_type == ChangeType.MODIFIED
        assert (change.added_lines, change.removed_lines, change.changed_lines) == (1, 1, 1)
        assert change.changed_line_numbers == (2,)
        assert commit.added_lines == 1

    def test_malformed_commit_skipped(self, session, config, caplog):
        """Test a commit payload that cannot be converted is skipped with a warning."""
        session.get.side_effect = [
            make_response(json_data=[{"sha": "a" * 40}, {"sha": "b" * 40}]),
            make_response(json_data={"sha": "a" * 40}),
            make_response(json_data=github_commit("b" * 40)),
        ]

        commits = GitHubClient(config, session).fetch_commits("cfg", self.URL_INFO, None, None, None)

        assert [c.sha for c in commits] == ["b" * 40]
        assert "Skipping GitHub commit" in caplog.text

    def test_enterprise_base_url(self, session, config):
        """Test GitHub Enterprise hosts use the /api/v3 root."""
        session.get.return_value = make_response(json_data=[])
        client = GitHubClient(config, session)
        client.fetch_commits(
            "cfg", self.URL_INFO, None, "t", None, context=RequestContext("https://ghe.corp.example")
        )
        assert session.get.call_args.args[0] == "https://ghe.corp.example/api/v3/repos/acme/app/commits"

    def test_fetch_pull_requests(self, session, config):
        """Test states, the since cut-off and pickup time from reviews."""
        pulls = [
            {
                "number": 7,
                "title": "Add feature",
                "state": "closed",
                "merged_at": "2026-01-05T09:00:00Z",
                "closed_at": "2026-01-05T09:00:00Z",
                "created_at": "2026-01-03T08:00:00Z",
                "updated_at": "2026-01-05T09:00:00Z",
                "user": {"login": "ann"},
                "head": {"ref": "feature"},
                "base": {"ref": "main"},
                "requested_reviewers": [],
            },
            {
                "number": 6,
                "title": "Abandoned idea",
                "state": "closed",
                "merged_at": None,
                "created_at": "2026-01-02T08:00:00Z",
                "updated_at": "2026-01-03T09:00:00Z",
                "user": {"login": "bob"},
            },
            {
                "number": 5,
                "title": "Old",
                "state": "open",
                "created_at": "2025-11-01T08:00:00Z",
                "updated_at": "2025-12-01T09:00:00Z",
            },
        ]
        reviews = [
            {"state": "PENDING", "submitted_at": "2026-01-03T09:00:00Z", "user": {"login": "zed"}},
            {"state": "COMMENTED", "submitted_at": "2026-01-04T10:00:00Z", "user": {"login": "rev"}},
            {"state": "APPROVED", "submitted_at": "2026-01-04T12:00:00Z", "user": {"login": "rev"}},
        ]
        session.get.side_effect = [
            make_response(json_data=pulls),
            make_response(json_data=reviews),
            make_response(json_data=[]),
        ]

        records = GitHubClient(config, session).fetch_merge_requests(
            "cfg", self.URL_INFO, "main", "t", SINCE
        )

        assert [r.external_id for r in records] == ["7", "6"]
        merged, closed = records
        assert merged.state == MergeRequestState.MERGED
        assert merged.from_branch == "feature"
        assert merged.picked_for_review_at == datetime(2026, 1, 4, 10, tzinfo=timezone.utc)
        assert [r.username for r in merged.reviewers] == ["rev"]
        assert closed.state == MergeRequestState.CLOSED
        assert closed.picked_for_review_at is None
        assert session.get.call_args_list[0].kwargs["params"]["base"] == "main"

    def test_rate_limited(self, session, config):
        """Test HTTP 429 raises RateLimitExceededException with a reset time."""
        session.get.return_value = make_response(
            status=429, headers={"Retry-After": "120", "X-RateLimit-Limit": "5000"}
        )
        with pytest.raises(RateLimitExceededException) as exc_info:
            GitHubClient(config, session).fetch_commits("cfg", self.URL_INFO, None, "t", None)

        error = exc_info.value
        assert error.platform == "GitHub"
        assert error.limit == 5000
        assert error.reset_at > datetime.now(timezone.utc)

    @pytest.mark.parametrize("status", [401, 403, 404, 500, 422])
    def test_http_errors(self, session, config, status):
        """Test other error statuses raise PlatformApiException with the status."""
        session.get.return_value = make_response(status=status)
        with pytest.raises(PlatformApiException) as exc_info:
            GitHubClient(config, session).fetch_commits("cfg", self.URL_INFO, None, "t", None)
        assert exc_info.value.status_code == status
        assert exc_info.value.platform == "GitHub"

    def test_timeout(self, session, config):
        """Test transport timeouts raise PlatformApiException."""
        session.get.side_effect = requests.exceptions.Timeout("slow")
        with pytest.raises(PlatformApiException, match="timeout"):
            GitHubClient(config, session).fetch_commits("cfg", self.URL_INFO, None, "t", None)

    def test_invalid_json_on_listing_page(self, session, config):
        """Test an unparseable listing page raises PlatformApiException."""
        page = make_response()
        page.json.side_effect = ValueError("not json")
        session.get.return_value = page
        with pytest.raises(PlatformApiException, match="invalid JSON") as exc_info:
            GitHubClient(config, session).fetch_commits("cfg", self.URL_INFO, None, "t", None)
        assert exc_info.value.status_code == 200

    def test_failed_commit_detail_skipped(self, session, config, caplog):
        """Test one commit whose detail request fails does not lose the others."""
        too_large = make_response(status=422)
        session.get.side_effect = [
            make_response(json_data=[{"sha": "a" * 40}, {"sha": "b" * 40}, {"sha": "c" * 40}]),
            make_response(json_data=github_commit("a" * 40)),
            too_large,
            make_response(json_data=github_commit("c" * 40)),
        ]

        commits = GitHubClient(config, session).fetch_commits("cfg", self.URL_INFO, None, "t", None)

        assert [c.sha for c in commits] == ["a" * 40, "c" * 40]
        assert "Skipping GitHub commit" in caplog.text
        assert "HTTP 422" in caplog.text

    def test_invalid_json_detail_skipped(self, session, config):
        """Test an unparseable detail body skips only that commit."""
        detail = make_response()
        detail.json.side_effect = ValueError("not json")
        session.get.side_effect = [
            make_response(json_data=[{"sha": "a" * 40}, {"sha": "b" * 40}]),
            detail,
            make_response(json_data=github_commit("b" * 40)),
        ]
        commits = GitHubClient(config, session).fetch_commits("cfg", self.URL_INFO, None, "t", None)
        assert [c.sha for c in commits] == ["b" * 40]

    def test_rate_limit_on_detail_stops_batch(self, session, config):
        """Test throttling during detail requests is not treated as a bad commit."""
        session.get.side_effect = [
            make_response(json_data=[{"sha": "a" * 40}, {"sha": "b" * 40}]),
            make_response(json_data=github_commit("a" * 40)),
            make_response(status=429, headers={"Retry-After": "60"}),
        ]
        with pytest.raises(RateLimitExceededException):
            GitHubClient(config, session).fetch_commits("cfg", self.URL_INFO, None, "t", None)

    def test_failed_reviews_keep_pull_request(self, session, config, caplog):
        """Test a pull request whose reviews cannot be read is kept without pickup time."""
        pull = {
            "number": 9,
            "title": "Tweak",
            "state": "open",
            "created_at": "2026-01-03T08:00:00Z",
            "updated_at": "2026-01-03T09:00:00Z",
            "user": {"login": "ann"},
        }
        session.get.side_effect = [make_response(json_data=[pull]), make_response(status=404)]

        (record,) = GitHubClient(config, session).fetch_merge_requests(
            "cfg", self.URL_INFO, None, "t", SINCE
        )

        assert record.external_id == "9"
        assert record.picked_for_review_at is None
        assert "Could not read reviews of pull request #9" in caplog.text


class TestGitLabClient:
    """Tests for GitLabClient."""

    URL_INFO = GitUrlInfo(
        Platform.GITLAB, "platform", "api", "https://gitlab.com/acme/platform/api.git", organization="acme/platform"
    )

    def test_fetch_commits(self, session, config):
        """Test commits are read with their per-commit diffs."""
        session.get.side_effect = [
            make_response(
                json_data=[
                    {
                        "id": "c" * 40,
                        "message": "Refactor",
                        "author_name": "Ann",
                        "author_email": "ann@example.com",
                        "committer_name": "Ann",
                        "committer_email": "ann@example.com",
                        "authored_date": "2026-01-03T10:00:00.000+01:00",
                        "parent_ids": ["d" * 40],
                        "web_url": "https://gitlab.com/acme/platform/api/-/commit/ccc",
                    }
                ]
            ),
            make_response(
                json_data=[
                    {"old_path": "a.py", "new_path": "a.py", "diff": "@@ -1 +1,2 @@\n-x\n+y\n+z"},
                    {"old_path": "old.md", "new_path": "new.md", "renamed_file": True, "diff": ""},
                    {"old_path": "img.png", "new_path": "img.png", "new_file": True, "diff": ""},
                ]
            ),
        ]

        commits = GitLabClient(config, session).fetch_commits("cfg", self.URL_INFO, "main", "glpat", None)

        list_call = session.get.call_args_list[0]
        assert list_call.args[0] == (
            "https://gitlab.com/api/v4/projects/acme%2Fplatform%2Fapi/repository/commits"
        )
        assert list_call.kwargs["params"]["ref_name"] == "main"
        assert list_call.kwargs["headers"] == {"PRIVATE-TOKEN": "glpat"}

        (commit,) = commits
        assert commit.author_timestamp == datetime(2026, 1, 3, 9, tzinfo=timezone.utc)
        assert commit.repository_name == "acme/platform/api"
        modified, renamed, added = commit.file_changes
        assert (modified.added_lines, modified.removed_lines, modified.changed_lines) == (2, 1, 1)
        assert renamed.change_type == ChangeType.RENAMED
        assert renamed.previous_path == "old.md"
        assert added.change_type == ChangeType.ADDED
        assert added.previous_path is None
        assert added.is_binary
        assert (commit.added_lines, commit.removed_lines) == (2, 1)

    def test_failed_diff_skips_commit(self, session, config, caplog):
        """Test a commit whose diff request fails is skipped and the rest are kept."""
        summary = {
            "message": "Change",
            "author_name": "Ann",
            "authored_date": "2026-01-03T10:00:00Z",
            "parent_ids": [],
        }
        session.get.side_effect = [
            make_response(json_data=[{**summary, "id": "1" * 40}, {**summary, "id": "2" * 40}]),
            make_response(status=500),
            make_response(json_data=[]),
        ]

        commits = GitLabClient(config, session).fetch_commits("cfg", self.URL_INFO, None, "t", None)

        assert [c.sha for c in commits] == ["2" * 40]
        assert "Skipping GitLab commit" in caplog.text

    def test_self_hosted_context(self, session, config):
        """Test self-hosted instances use the context host."""
        session.get.return_value = make_response(json_data=[])
        GitLabClient(config, session).fetch_merge_requests(
            "cfg", self.URL_INFO, None, "t", None, context=RequestContext("https://git.corp.example")
        )
        assert session.get.call_args.args[0] == (
            "https://git.corp.example/api/v4/projects/acme%2Fplatform%2Fapi/merge_requests"
        )

    def test_merge_request_states(self, session, config):
        """Test GitLab states map onto the closed state set."""

        def mr(iid, state):
            return {
                "iid": iid,
                "title": f"MR {iid}",
                "state": state,
                "created_at": "2026-01-03T10:00:00Z",
                "updated_at": "2026-01-04T10:00:00Z",
                "author": {"name": "Ann", "username": "ann"},
                "source_branch": "feature",
                "target_branch": "main",
            }

        session.get.return_value = make_response(
            json_data=[mr(1, "opened"), mr(2, "merged"), mr(3, "closed"), mr(4, "locked")]
        )

        records = GitLabClient(config, session).fetch_merge_requests(
            "cfg", self.URL_INFO, "main", "t", SINCE
        )

        assert [r.state for r in records] == [
            MergeRequestState.OPEN,
            MergeRequestState.MERGED,
            MergeRequestState.CLOSED,
            MergeRequestState.OPEN,
        ]
        params = session.get.call_args.kwargs["params"]
        assert params["target_branch"] == "main"
        assert params["updated_after"] == "2026-01-02T00:00:00+00:00"


class TestBitbucketClient:
    """Tests for BitbucketClient."""

    URL_INFO = GitUrlInfo(Platform.BITBUCKET, "acme", "app", "https://bitbucket.org/acme/app.git")

    DIFF = "\n".join(
        [
            "diff --git a/app.py b/app.py",
            "--- a/app.py",
            "+++ b/app.py",
            "@@ -1,2 +1,2 @@",
            " keep",
            "-old",
            "+new",
            "diff --git a/logo.png b/logo.png",
            "new file mode 100644",
            "Binary files /dev/null and b/logo.png differ",
        ]
    )

    def test_fetch_commits(self, session, config):
        """Test listing stops at the first commit older than since and diffs are split per file."""
        session.get.side_effect = [
            make_response(
                json_data={
                    "values": [
                        {
                            "hash": "e" * 40,
                            "message": "Update app",
                            "date": "2026-01-03T10:00:00+00:00",
                            "author": {"raw": "Ann Lee <ann@example.com>", "user": {"nickname": "ann"}},
                            "parents": [{"hash": "f" * 40}],
                        },
                        {"hash": "0" * 40, "date": "2025-12-01T10:00:00+00:00"},
                    ],
                    "next": "https://api.bitbucket.org/2.0/next-page",
                }
            ),
            make_response(text=self.DIFF),
        ]

        commits = BitbucketClient(config, session).fetch_commits(
            "cfg", self.URL_INFO, "main", "ann:app-pass", SINCE
        )

        assert session.get.call_count == 2
        list_call, diff_call = session.get.call_args_list
        assert list_call.args[0] == "https://api.bitbucket.org/2.0/repositories/acme/app/commits/main"
        assert list_call.kwargs["auth"] == ("ann", "app-pass")
        assert diff_call.args[0] == f"https://api.bitbucket.org/2.0/repositories/acme/app/diff/{'e' * 40}"

        (commit,) = commits
        assert commit.author.display_name == "Ann Lee"
        assert commit.author.email == "ann@example.com"
        assert commit.author.username == "ann"
        assert commit.committer == commit.author
        code, logo = commit.file_changes
        assert (code.added_lines, code.removed_lines, code.changed_lines) == (1, 1, 1)
        assert logo.change_type == ChangeType.ADDED
        assert logo.is_binary

    def test_pull_request_dates(self, session, config):
        """Test close and merge times are taken from the last update."""
        session.get.return_value = make_response(
            json_data={
                "values": [
                    {
                        "id": 12,
                        "title": "Ship it",
                        "state": "MERGED",
                        "created_on": "2026-01-03T10:00:00+00:00",
                        "updated_on": "2026-01-04T10:00:00+00:00",
                        "author": {"display_name": "Ann", "nickname": "ann"},
                        "source": {"branch": {"name": "feature"}},
                        "destination": {"branch": {"name": "main"}},
                    },
                    {
                        "id": 11,
                        "title": "Nope",
                        "state": "DECLINED",
                        "created_on": "2026-01-03T10:00:00+00:00",
                        "updated_on": "2026-01-03T12:00:00+00:00",
                    },
                ]
            }
        )

        merged, declined = BitbucketClient(config, session).fetch_merge_requests(
            "cfg", self.URL_INFO, "main", "ann:pw", SINCE
        )

        assert merged.state == MergeRequestState.MERGED
        assert merged.merged_at == merged.closed_at == datetime(2026, 1, 4, 10, tzinfo=timezone.utc)
        assert merged.to_branch == "main"
        assert declined.state == MergeRequestState.CLOSED
        assert declined.merged_at is None
        assert ("q", 'destination.branch.name="main"') in session.get.call_args.kwargs["params"]

    def test_server_not_supported(self, session, config):
        """Test on-premise Bitbucket Server is refused before any call."""
        with pytest.raises(PlatformApiException, match="clone strategy"):
            BitbucketClient(config, session).fetch_commits(
                "cfg", self.URL_INFO, None, "a:b", None, context=RequestContext("https://git.corp.example")
            )
        session.get.assert_not_called()

    def test_token_must_be_user_and_secret(self, session, config):
        """Test a bare token is rejected."""
        with pytest.raises(PlatformApiException, match="username:appPassword"):
            BitbucketClient(config, session).fetch_commits("cfg", self.URL_INFO, None, "bare", None)


class TestAzureDevOpsClient:
    """Tests for AzureDevOpsClient."""

    URL_INFO = GitUrlInfo(
        Platform.AZURE_DEVOPS,
        None,
        "portal",
        "https://dev.azure.com/contoso/Web/_git/portal",
        organization="contoso",
        project="Web",
    )

    def test_fetch_commits(self, session, config):
        """Test commits carry paths from the changes endpoint and skip folders."""
        session.get.side_effect = [
            make_response(json_data={"value": [{"commitId": "1" * 40}]}),
            make_response(
                json_data={
                    "commitId": "1" * 40,
                    "comment": "Fix header",
                    "author": {"name": "Ann", "email": "ann@example.com", "date": "2026-01-03T10:00:00Z"},
                    "committer": {"name": "Ann", "email": "ann@example.com", "date": "2026-01-03T10:00:00Z"},
                    "parents": ["2" * 40],
                }
            ),
            make_response(
                json_data={
                    "changes": [
                        {"item": {"path": "/src", "isFolder": True}, "changeType": "edit"},
                        {"item": {"path": "/src/header.ts"}, "changeType": "edit"},
                        {
                            "item": {"path": "/src/footer.ts"},
                            "changeType": "rename, edit",
                            "sourceServerItem": "/src/bottom.ts",
                        },
                    ]
                }
            ),
        ]

        (commit,) = AzureDevOpsClient(config, session).fetch_commits(
            "cfg", self.URL_INFO, "main", "pat", None
        )

        list_call = session.get.call_args_list[0]
        assert list_call.args[0] == "https://dev.azure.com/contoso/Web/_apis/git/repositories/portal/commits"
        assert list_call.kwargs["auth"] == ("", "pat")
        assert list_call.kwargs["params"]["searchCriteria.itemVersion.version"] == "main"
        assert commit.parent_shas == ("2" * 40,)
        assert [f.file_path for f in commit.file_changes] == ["src/header.ts", "src/footer.ts"]
        assert commit.file_changes[1].change_type == ChangeType.RENAMED
        assert commit.file_changes[1].previous_path == "src/bottom.ts"
        assert commit.added_lines == 0

    def test_pull_requests(self, session, config):
        """Test PR states, branch names and creation-date filtering."""
        session.get.return_value = make_response(
            json_data={
                "value": [
                    {
                        "pullRequestId": 3,
                        "title": "Done",
                        "status": "completed",
                        "creationDate": "2026-01-03T10:00:00Z",
                        "closedDate": "2026-01-04T10:00:00Z",
                        "sourceRefName": "refs/heads/feature",
                        "targetRefName": "refs/heads/main",
                        "createdBy": {"displayName": "Ann", "uniqueName": "ann@contoso.com"},
                    },
                    {"pullRequestId": 2, "status": "active", "creationDate": "2025-12-01T10:00:00Z"},
                ]
            }
        )

        (record,) = AzureDevOpsClient(config, session).fetch_merge_requests(
            "cfg", self.URL_INFO, "main", "pat", SINCE
        )

        assert record.state == MergeRequestState.MERGED
        assert record.from_branch == "feature"
        assert record.to_branch == "main"
        assert record.merged_at == datetime(2026, 1, 4, 10, tzinfo=timezone.utc)


class TestHelpers:
    """Tests for shared client helpers."""

    def test_default_clients(self, config):
        """Test one client per tool type."""
        clients = default_clients(config)
        assert set(clients) == set(ToolType)
        assert isinstance(clients[ToolType.GITLAB], GitLabClient)

    def test_convert_each_skips_none_and_failures(self, caplog):
        """Test converters returning None or raising are skipped."""

        def converter(item):
            if item == "skip":
                return None
            return item["value"]

        assert convert_each([{"value": 1}, "skip", {}, {"value": 2}], converter, "thing") == [1, 2]
        assert "Skipping thing" in caplog.text

    def test_fetch_each_skips_failed_requests(self, caplog):
        """Test platform errors skip one item while throttling propagates."""

        def fetch(item):
            if item == "bad":
                raise PlatformApiException("GitHub", "request failed", 422)
            if item == "throttled":
                raise RateLimitExceededException("GitHub", 10, 10, SINCE)
            return [item.upper()]

        assert fetch_each(["a", "bad", "b"], fetch, "thing") == ["A", "B"]
        assert "Skipping thing: request failed" in caplog.text
        with pytest.raises(RateLimitExceededException):
            fetch_each(["a", "throttled", "b"], fetch, "thing")

    def test_parse_timestamp(self):
        assert parse_timestamp("2026-01-03T10:00:00Z") == datetime(2026, 1, 3, 10, tzinfo=timezone.utc)
        assert parse_timestamp(None) is None

    def test_within(self):
        moment = datetime(2026, 1, 3, tzinfo=timezone.utc)
        assert within(moment, SINCE, None)
        assert within(moment, None, moment)
        assert not within(moment, datetime(2026, 1, 4, tzinfo=timezone.utc), None)
        assert within(None, None, None)
        assert not within(None, SINCE, None)
