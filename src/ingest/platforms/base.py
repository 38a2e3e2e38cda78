"""Base classes for platform REST clients."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, TypeVar

import requests

from common.logger import get_logger

from ..config import IngestConfig
from ..exceptions import PlatformApiException, RateLimitExceededException
from ..models import CommitRecord, GitUrlInfo, MergeRequestRecord, Platform, utc
from ..ratelimit.base import from_epoch, now_utc
from ..ratelimit.pacer import RequestPacer

logger = get_logger(__name__)

T = TypeVar("T")

USER_AGENT = "scm-ingest/0.1"


@dataclass(frozen=True)
class RequestContext:
    """Per-call settings of a remote fetch.

    Attributes:
        base_url: ``scheme://host`` of an on-premise instance; None for the
            platform's public service
    """

    base_url: str | None = None


class PlatformClient(ABC):
    """Base class for all platform clients.

    Implementations return records already normalized; callers never see
    platform payloads.
    """

    platform: Platform

    @abstractmethod
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
        """Fetch commits of one branch, newest first.

        Raises:
            PlatformApiException: If a platform call fails
            RateLimitExceededException: If the platform throttles the client
        """
        pass

    @abstractmethod
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
        """Fetch merge/pull requests targeting one branch, most recently updated first.

        Raises:
            PlatformApiException: If a platform call fails
            RateLimitExceededException: If the platform throttles the client
        """
        pass


class RestPlatformClient(PlatformClient):
    """Shared plumbing for ``requests``-based clients.

    Every request goes through the client's pacer and is mapped to the
    engine's exceptions: HTTP 429 becomes ``RateLimitExceededException``, any
    other error status or transport failure ``PlatformApiException``.
    """

    # Hard stop for runaway pagination
    MAX_PAGES = 100

    def __init__(self, config: IngestConfig | None = None, session: requests.Session | None = None):
        self.config = config or IngestConfig.from_env()
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        self.pacer = RequestPacer(
            requests_per_period=self.config.http_requests_per_minute,
            period_seconds=60,
        )

    @property
    def platform_name(self) -> str:
        return self.platform.display_name

    def _get(self, url: str, **kwargs: Any) -> requests.Response:
        self.pacer.wait_if_needed()
        kwargs.setdefault("timeout", self.config.http_timeout_seconds)

        try:
            logger.debug(f"GET {url}")
            response = self.session.get(url, **kwargs)
        except requests.exceptions.Timeout as e:
            raise PlatformApiException(self.platform_name, f"{self.platform_name} API timeout for {url}") from e
        except requests.exceptions.RequestException as e:
            raise PlatformApiException(self.platform_name, f"{self.platform_name} API error: {e}") from e

        self._raise_for_status(response, url)
        return response

    def _get_json(self, url: str, **kwargs: Any) -> Any:
        return self._decode(self._get(url, **kwargs), url)

    def _decode(self, response: requests.Response, url: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise PlatformApiException(
                self.platform_name,
                f"{self.platform_name} API returned invalid JSON for {url}",
                response.status_code,
            ) from e

    def _paginate(
        self,
        url: str,
        next_url: Callable[[requests.Response, Any], str | None],
        items: Callable[[Any], list[dict]] = lambda data: data,
        **kwargs: Any,
    ) -> Iterator[dict]:
        """Yield items across pages until ``next_url`` returns None.

        The first request carries ``kwargs["params"]``; follow-up URLs are
        expected to embed their own query string.
        """
        pages = 0
        while url and pages < self.MAX_PAGES:
            response = self._get(url, **kwargs)
            data = self._decode(response, url)
            yield from items(data)
            pages += 1
            url = next_url(response, data)
            kwargs.pop("params", None)

        if url:
            logger.warning(f"Stopped {self.platform_name} pagination after {self.MAX_PAGES} pages")

    def _raise_for_status(self, response: requests.Response, url: str) -> None:
        code = response.status_code
        if code < 400:
            return

        if code == 429:
            limit = _int_header(response, "X-RateLimit-Limit", "RateLimit-Limit") or 0
            raise RateLimitExceededException(self.platform_name, limit, limit, _reset_at(response))

        if code in (401, 403):
            message = f"{self.platform_name} API access denied (HTTP {code}) for {url}"
        elif code == 404:
            message = f"{self.platform_name} resource not found: {url}"
        elif code >= 500:
            message = f"{self.platform_name} API server error (HTTP {code}) for {url}"
        else:
            message = f"{self.platform_name} API request failed (HTTP {code}) for {url}"
        raise PlatformApiException(self.platform_name, message, code)


def link_next(response: requests.Response, data: Any) -> str | None:
    """Next page from an RFC 5988 ``Link`` header (GitHub, GitLab)."""
    return response.links.get("next", {}).get("url")


def convert_each(items: list[dict], converter: Callable[[dict], T | None], kind: str) -> list[T]:
    """Convert platform payloads, skipping (and logging) the ones that do not fit."""
    results = []
    for item in items:
        try:
            converted = converter(item)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Skipping {kind} that could not be converted: {e!r}")
            continue
        if converted is not None:
            results.append(converted)
    return results


def fetch_each(items: list[dict], fetch: Callable[[dict], list[T]], kind: str) -> list[T]:
    """Run a follow-up request per item, skipping (and logging) items whose request fails.

    ``RateLimitExceededException`` is not caught and stops the whole batch.
    """
    results = []
    for item in items:
        try:
            results.extend(fetch(item))
        except PlatformApiException as e:
            logger.warning(f"Skipping {kind}: {e}")
    return results


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp from a platform payload into UTC."""
    if not value:
        return None
    return utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def within(moment: datetime | None, since: datetime | None, until: datetime | None) -> bool:
    """True if ``moment`` lies inside the inclusive window; open ends are unbounded."""
    if moment is None:
        return since is None and until is None
    if since is not None and moment < utc(since):
        return False
    if until is not None and moment > utc(until):
        return False
    return True


def iso(value: datetime | None) -> str | None:
    return utc(value).isoformat() if value is not None else None


def _int_header(response: requests.Response, *names: str) -> int | None:
    for name in names:
        value = response.headers.get(name)
        if value is not None:
            try:
                return int(value)
            except ValueError:
                continue
    return None


def _reset_at(response: requests.Response) -> datetime:
    retry_after = _int_header(response, "Retry-After")
    if retry_after is not None:
        return now_utc() + timedelta(seconds=retry_after)
    reset = _int_header(response, "X-RateLimit-Reset", "RateLimit-Reset")
    if reset is not None:
        return from_epoch(reset)
    return now_utc() + timedelta(seconds=60)
