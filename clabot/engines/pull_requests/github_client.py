"""Async GitHub API client with page-count pagination and rate-limit waits."""

from __future__ import annotations

import asyncio
import re
import time
from typing import Any
from urllib.parse import parse_qs, urlsplit

import httpx
import structlog

from clabot.exceptions import RateLimitError, SourceUnavailable

log = structlog.get_logger("clabot.engine.github")

_LAST_LINK_RE = re.compile(r'<([^>]+)>;\s*rel="last"')

_MAX_RATE_LIMIT_WAITS = 3
_PER_PAGE = 100

PATCH_MEDIA_TYPE = "application/vnd.github.patch"


class GitHubClient:
    """Thin async wrapper around the GitHub REST API.

    Failed requests are never retried.  The only repeated request is one that
    GitHub rejected for rate limiting, after waiting for the window to reset.
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "clabot",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def get_all_pages(
        self,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch every page of a list endpoint and concatenate the items.

        Page 1 is fetched first and the total page count is read from its
        ``Link: <...>; rel="last"`` header; pages ``2..N`` are then fetched
        sequentially.  No ``Link`` header means a single page.
        """
        params = dict(params or {})
        params.setdefault("per_page", _PER_PAGE)

        first = await self._request("GET", path, params={**params, "page": 1})
        items = self._json_list(first, path)
        last_page = self._parse_last_page(first.headers.get("Link", ""))

        for page in range(2, last_page + 1):
            response = await self._request("GET", path, params={**params, "page": page})
            items.extend(self._json_list(response, path))
        return items

    async def get_text(self, path: str, *, accept: str = PATCH_MEDIA_TYPE) -> str:
        """GET a non-JSON rendering of a resource (e.g. a PR patch)."""
        response = await self._request("GET", path, headers={"Accept": accept})
        return response.text

    async def post(self, path: str, payload: dict[str, Any]) -> Any:
        response = await self._request("POST", path, json=payload)
        return self._json(response, path)

    async def delete(self, path: str, *, missing_ok: bool = False) -> bool:
        """DELETE *path*.  Returns False when it was absent and *missing_ok*."""
        response = await self._request(
            "DELETE", path, allowed_statuses=frozenset({404}) if missing_ok else frozenset()
        )
        return response.status_code != 404

    # ── internal ───────────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        allowed_statuses: frozenset[int] = frozenset(),
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one request, waiting out rate limits but never retrying failures."""
        for attempt in range(_MAX_RATE_LIMIT_WAITS + 1):
            try:
                resp = await self._client.request(method, path, **kwargs)
            except httpx.HTTPError as exc:
                log.warning("github.transport_error", method=method, path=path, error=str(exc))
                raise SourceUnavailable(f"{method} {path} failed: {exc}") from exc

            if resp.status_code in (403, 429) and self._is_rate_limited(resp):
                wait = self._get_rate_limit_wait(resp)
                if attempt == _MAX_RATE_LIMIT_WAITS:
                    raise RateLimitError(wait)
                log.warning(
                    "github.rate_limit",
                    method=method,
                    path=path,
                    wait_seconds=wait,
                    attempt=attempt + 1,
                    max_waits=_MAX_RATE_LIMIT_WAITS,
                )
                await asyncio.sleep(wait)
                continue

            if resp.status_code >= 400 and resp.status_code not in allowed_statuses:
                raise SourceUnavailable(
                    f"{method} {path} failed: HTTP {resp.status_code} {resp.text[:200]}"
                )

            await self._check_rate_limit(resp)
            return resp

        raise AssertionError("unreachable")  # pragma: no cover

    async def _check_rate_limit(self, response: httpx.Response) -> None:
        """Sleep until rate-limit resets if remaining == 0."""
        remaining = self._parse_header_int(response.headers.get("X-RateLimit-Remaining"))
        if remaining is not None and remaining == 0:
            wait = self._get_rate_limit_wait(response)
            log.warning("github.rate_limit_wait", wait_seconds=wait)
            await asyncio.sleep(wait)

    @staticmethod
    def _json(response: httpx.Response, path: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise SourceUnavailable(f"invalid JSON from {path}: {exc}") from exc

    @classmethod
    def _json_list(cls, response: httpx.Response, path: str) -> list[dict[str, Any]]:
        data = cls._json(response, path)
        if not isinstance(data, list):
            raise SourceUnavailable(f"expected a JSON list from {path}, got {type(data).__name__}")
        return data

    @staticmethod
    def _is_rate_limited(response: httpx.Response) -> bool:
        """Check if a 403/429 response is due to rate limiting."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is not None:
            try:
                return int(remaining) == 0
            except (ValueError, TypeError):
                pass
        # GitHub also uses Retry-After header for secondary rate limits
        return "Retry-After" in response.headers

    @staticmethod
    def _get_rate_limit_wait(response: httpx.Response) -> int:
        """Calculate how long to wait based on rate-limit headers."""
        retry_after = response.headers.get("Retry-After")
        if retry_after is not None:
            try:
                return max(int(retry_after), 1)
            except (ValueError, TypeError):
                pass
        reset_ts = response.headers.get("X-RateLimit-Reset")
        if reset_ts is not None:
            try:
                return max(int(reset_ts) - int(time.time()), 1)
            except (ValueError, TypeError):
                pass
        return 60

    @staticmethod
    def _parse_header_int(value: str | None) -> int | None:
        if value is None:
            return None
        try:
            return int(value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _parse_last_page(link_header: str) -> int:
        """Read the total page count from the ``rel="last"`` link, default 1."""
        match = _LAST_LINK_RE.search(link_header)
        if not match:
            return 1
        query = parse_qs(urlsplit(match.group(1)).query)
        try:
            return max(int(query["page"][0]), 1)
        except (KeyError, IndexError, ValueError):
            return 1
