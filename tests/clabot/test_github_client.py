"""Tests for the GitHub client (no network)."""

from __future__ import annotations

import time
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from clabot.engines.pull_requests.github_client import GitHubClient
from clabot.exceptions import RateLimitError, SourceUnavailable

from .fakes import OWNER, REPO, FakeGitHub, FakePR

# ── header parsing ────────────────────────────────────────────────────────


class TestHeaderParsing:
    def test_parse_last_page(self):
        header = (
            '<https://api.github.com/repos/a/b/pulls?state=open&page=2>; rel="next", '
            '<https://api.github.com/repos/a/b/pulls?state=open&page=5>; rel="last"'
        )
        assert GitHubClient._parse_last_page(header) == 5

    def test_parse_last_page_empty(self):
        assert GitHubClient._parse_last_page("") == 1

    def test_parse_last_page_no_last(self):
        header = '<https://api.github.com/repos/a/b/pulls?page=2>; rel="next"'
        assert GitHubClient._parse_last_page(header) == 1

    def test_parse_last_page_without_page_param(self):
        header = '<https://api.github.com/repos/a/b/pulls?state=open>; rel="last"'
        assert GitHubClient._parse_last_page(header) == 1

    def test_parse_header_int(self):
        assert GitHubClient._parse_header_int("42") == 42
        assert GitHubClient._parse_header_int(None) is None
        assert GitHubClient._parse_header_int("not-a-number") is None

    def test_is_rate_limited_by_remaining(self):
        resp = MagicMock()
        resp.headers = {"X-RateLimit-Remaining": "0"}
        assert GitHubClient._is_rate_limited(resp) is True

    def test_is_rate_limited_by_retry_after(self):
        resp = MagicMock()
        resp.headers = {"Retry-After": "120"}
        assert GitHubClient._is_rate_limited(resp) is True

    def test_not_rate_limited(self):
        resp = MagicMock()
        resp.headers = {"X-RateLimit-Remaining": "100"}
        assert GitHubClient._is_rate_limited(resp) is False

    def test_rate_limit_wait_prefers_retry_after(self):
        resp = MagicMock()
        resp.headers = {"Retry-After": "7", "X-RateLimit-Reset": str(int(time.time()) + 500)}
        assert GitHubClient._get_rate_limit_wait(resp) == 7

    def test_rate_limit_wait_fallback(self):
        resp = MagicMock()
        resp.headers = {}
        assert GitHubClient._get_rate_limit_wait(resp) == 60


# ── rate limits ───────────────────────────────────────────────────────────


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_rate_limit_sleep(self):
        """When remaining=0 after a successful call, _check_rate_limit sleeps."""
        client = GitHubClient.__new__(GitHubClient)
        response = MagicMock()
        response.headers = {
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(int(time.time()) + 2),
        }
        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await client._check_rate_limit(response)
            mock_sleep.assert_called_once()
            assert mock_sleep.call_args[0][0] >= 1

    @pytest.mark.asyncio
    async def test_rate_limit_no_sleep(self):
        client = GitHubClient.__new__(GitHubClient)
        response = MagicMock()
        response.headers = {"X-RateLimit-Remaining": "garbage"}
        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await client._check_rate_limit(response)
            mock_sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_low_but_nonzero_remaining_does_not_sleep(self):
        client = GitHubClient.__new__(GitHubClient)
        response = MagicMock()
        response.headers = {
            "X-RateLimit-Remaining": "1",
            "X-RateLimit-Reset": str(int(time.time()) + 600),
        }
        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await client._check_rate_limit(response)
            mock_sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_403_rate_limit_waits_then_succeeds(self):
        responses = [
            httpx.Response(403, headers={"X-RateLimit-Remaining": "0", "Retry-After": "5"}),
            httpx.Response(200, json=[{"id": 1}]),
        ]
        transport = httpx.MockTransport(lambda request: responses.pop(0))
        client = GitHubClient("t", transport=transport)

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            items = await client.get_all_pages("/x")

        assert items == [{"id": 1}]
        mock_sleep.assert_called_once_with(5)

    @pytest.mark.asyncio
    async def test_rate_limit_exhausted(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(429, headers={"Retry-After": "60"})

        client = GitHubClient("t", transport=httpx.MockTransport(handler))
        with patch("asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(RateLimitError) as exc_info:
                await client.get_text("/x")

        assert exc_info.value.retry_after == 60
        assert len(calls) == 4
        assert isinstance(exc_info.value, SourceUnavailable)


# ── failures are not retried ──────────────────────────────────────────────


class TestNoRetry:
    @pytest.mark.asyncio
    async def test_server_error_raises_without_retry(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(502, text="bad gateway")

        client = GitHubClient("t", transport=httpx.MockTransport(handler))
        with pytest.raises(SourceUnavailable, match="HTTP 502"):
            await client.get_all_pages("/x")
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_403_without_rate_limit_headers_raises(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(403, headers={"X-RateLimit-Remaining": "50"})
        )
        client = GitHubClient("t", transport=transport)
        with pytest.raises(SourceUnavailable) as exc_info:
            await client.post("/x", {"a": 1})
        assert not isinstance(exc_info.value, RateLimitError)

    @pytest.mark.asyncio
    async def test_transport_error_becomes_source_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = GitHubClient("t", transport=httpx.MockTransport(handler))
        with pytest.raises(SourceUnavailable, match="refused"):
            await client.get_text("/x")

    @pytest.mark.asyncio
    async def test_non_list_payload_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"a": 1}))
        client = GitHubClient("t", transport=transport)
        with pytest.raises(SourceUnavailable, match="expected a JSON list"):
            await client.get_all_pages("/x")


# ── pagination and requests ───────────────────────────────────────────────


class TestRequests:
    @pytest.mark.asyncio
    async def test_three_pages_three_fetches_in_order(self):
        gh = FakeGitHub([FakePR(n, f"u{n}@x.com") for n in range(1, 7)], page_size=2)
        items = await gh.client().get_all_pages(f"/repos/{OWNER}/{REPO}/pulls", {"state": "open"})

        assert [i["number"] for i in items] == [1, 2, 3, 4, 5, 6]
        pages = [r.url.params["page"] for r in gh.requests]
        assert pages == ["1", "2", "3"]
        assert all(r.url.params["state"] == "open" for r in gh.requests)

    @pytest.mark.asyncio
    async def test_single_page_without_link_header(self):
        gh = FakeGitHub([FakePR(1, "a@x.com")])
        items = await gh.client().get_all_pages(f"/repos/{OWNER}/{REPO}/pulls")
        assert len(items) == 1
        assert len(gh.requests) == 1
        assert gh.requests[0].url.params["per_page"] == "100"

    @pytest.mark.asyncio
    async def test_default_headers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, text="patch")

        client = GitHubClient("secret", transport=httpx.MockTransport(handler))
        assert await client.get_text("/x") == "patch"
        assert seen["authorization"] == "Bearer secret"
        assert seen["accept"] == "application/vnd.github.patch"
        assert seen["x-github-api-version"] == "2022-11-28"

    @pytest.mark.asyncio
    async def test_delete_missing_ok(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404, json={}))
        client = GitHubClient("t", transport=transport)
        assert await client.delete("/x", missing_ok=True) is False
        with pytest.raises(SourceUnavailable):
            await client.delete("/x")

    @pytest.mark.asyncio
    async def test_context_manager_closes(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[]))
        async with GitHubClient("t", transport=transport) as client:
            assert await client.get_all_pages("/x") == []
        assert client._client.is_closed
