"""Best-effort repository metadata enrichment via the GitHub REST API."""
from __future__ import annotations

import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Tuple
from urllib.parse import urlsplit

import httpx
from pydantic import ValidationError

from .errors import MetadataFetchError
from .schema import GitHubMetadata
from .utils.config import BuildConfig
from .utils.logging import get_logger


LOGGER = get_logger(__name__)
ACCEPT_HEADER = "application/vnd.github.v3+json"


class MetadataFetcher:
    """Fetch repository statistics for links pointing at the trusted host.

    Every failure is reported as ``None`` plus a logged warning; nothing
    raised while enriching one app may reach the caller. Wrap a batch of
    fetches in :meth:`session` to reuse one connection pool; ``transport``
    replaces the network, e.g. with :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        config: Optional[BuildConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config or BuildConfig()
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        host = re.escape(self.config.trusted_host)
        self._repo_pattern = re.compile(
            rf"^https?://{host}/(?P<owner>[^/?#\s]+)/(?P<repo>[^/?#\s]+?)(?:\.git)?/?(?:[/?#].*)?$",
            re.IGNORECASE,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": ACCEPT_HEADER, "User-Agent": self.config.user_agent}
        if self.config.github_token:
            headers["Authorization"] = f"Bearer {self.config.github_token}"
        return headers

    def client_kwargs(self) -> Dict[str, Any]:
        # Renamed or transferred repositories answer with a 301.
        kwargs: Dict[str, Any] = {"follow_redirects": True}
        if self.transport is not None:
            kwargs["transport"] = self.transport
        if self.config.request_timeout is not None:
            kwargs["timeout"] = self.config.request_timeout
        return kwargs

    @asynccontextmanager
    async def session(self) -> AsyncIterator[httpx.AsyncClient]:
        """Share one client across every fetch made inside the block."""

        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(**self.client_kwargs()) as client:
            self._client = client
            try:
                yield client
            finally:
                self._client = None

    def parse_repo(self, repo_url: str) -> Tuple[str, str]:
        """Return ``(owner, repo)`` for a URL whose host is exactly the trusted host."""

        try:
            hostname = urlsplit(repo_url).hostname
        except ValueError as exc:
            raise MetadataFetchError(f"unparseable URL {repo_url!r}: {exc}") from exc
        if hostname != self.config.trusted_host.lower():
            raise MetadataFetchError(f"untrusted host {hostname!r} in {repo_url!r}")
        match = self._repo_pattern.match(repo_url)
        if match is None:
            raise MetadataFetchError(f"no owner/repository in {repo_url!r}")
        return match.group("owner"), match.group("repo")

    def api_url(self, owner: str, repo: str) -> str:
        return f"{self.config.github_api_url.rstrip('/')}/repos/{owner}/{repo}"

    @staticmethod
    def project(data: Any) -> GitHubMetadata:
        """Reduce an API response body to the fields the index publishes."""

        if not isinstance(data, dict):
            raise MetadataFetchError(f"expected a JSON object, got {type(data).__name__}")
        license_info = data.get("license")
        spdx_id = license_info.get("spdx_id") if isinstance(license_info, dict) else None
        try:
            return GitHubMetadata(
                stars=data["stargazers_count"],
                open_issues=data["open_issues_count"],
                forks=data["forks_count"],
                last_updated=data["updated_at"],
                license=spdx_id or None,
            )
        except (KeyError, ValidationError) as exc:
            raise MetadataFetchError(f"malformed repository payload: {exc}") from exc

    async def _request(self, client: httpx.AsyncClient, url: str) -> GitHubMetadata:
        response = await client.get(url, headers=self._headers())
        if not response.is_success:
            raise MetadataFetchError(f"{url} returned HTTP {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise MetadataFetchError(f"{url} returned invalid JSON: {exc}") from exc
        return self.project(data)

    async def fetch(self, repo_url: Optional[str]) -> Optional[GitHubMetadata]:
        if not repo_url:
            return None
        try:
            owner, repo = self.parse_repo(repo_url)
            url = self.api_url(owner, repo)
            LOGGER.debug("Requesting %s", url)
            if self._client is not None:
                return await self._request(self._client, url)
            async with httpx.AsyncClient(**self.client_kwargs()) as client:
                return await self._request(client, url)
        except (MetadataFetchError, httpx.HTTPError) as exc:
            LOGGER.warning("Failed to fetch GitHub metadata for %s: %s", repo_url, exc)
            return None
        except Exception as exc:  # pragma: no cover
            LOGGER.warning("Unexpected error fetching GitHub metadata for %s: %s", repo_url, exc)
            return None
