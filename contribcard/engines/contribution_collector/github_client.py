"""Paginated GitHub API reads on top of the token pool."""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator

import httpx
import structlog

from contribcard.core.github import parse_next_link
from contribcard.engines.contribution_collector.models import Page
from contribcard.engines.contribution_collector.token_pool import ClientLease, TokenPool
from contribcard.exceptions import ApiError, TransportError

log = structlog.get_logger("contribcard.engine")

# A token at or below this many remaining requests is retired for the run.
MIN_RATELIMIT_REMAINING = 100

_RATELIMIT_HEADER = "X-RateLimit-Remaining"


class Paginator:
    """Drains every page of a GitHub collection, one leased client per request."""

    def __init__(self, pool: TokenPool) -> None:
        self._pool = pool

    async def pages(self, url: str) -> AsyncGenerator[Page, None]:
        """Yield pages starting at *url* in server order.

        Follows ``Link: <...>; rel="next"`` until there is no next link or
        a page comes back empty. Any failure raises; there is no retry.
        """
        next_url: str | None = url
        while next_url:
            async with self._pool.lease() as lease:
                page = await self._fetch_page(lease, next_url)
            if page is None:
                return
            yield page
            next_url = page.next_url

    async def _fetch_page(self, lease: ClientLease, url: str) -> Page | None:
        """GET one page; returns None when the collection is exhausted."""
        try:
            response = await lease.client.get(url)
        except httpx.HTTPError as exc:
            raise TransportError(f"GET {url} failed: {type(exc).__name__}: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise ApiError(
                f"unexpected status code ({response.status_code}) for {url}",
                status_code=response.status_code,
                url=url,
            )

        remaining = self._parse_remaining(response, url)
        if remaining <= MIN_RATELIMIT_REMAINING:
            # The response in hand is still used; the token is not.
            await self._pool.evict(lease)

        items = self._parse_body(response, url)
        log.debug(
            "github.page",
            url=url,
            items=len(items),
            ratelimit_remaining=remaining,
            token=lease.token_hash,
        )
        if not items:
            return None

        return Page(
            url=url,
            headers=response.headers,
            items=items,
            next_url=parse_next_link(response.headers.get("Link")),
        )

    @staticmethod
    def _parse_remaining(response: httpx.Response, url: str) -> int:
        value = response.headers.get(_RATELIMIT_HEADER)
        if value is None:
            raise ApiError(f"missing {_RATELIMIT_HEADER} header for {url}", url=url)
        try:
            return int(value)
        except ValueError as exc:
            raise ApiError(
                f"invalid {_RATELIMIT_HEADER} header value {value!r} for {url}", url=url
            ) from exc

    @staticmethod
    def _parse_body(response: httpx.Response, url: str) -> list[dict]:
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ApiError(f"malformed page body for {url}: {exc}", url=url) from exc
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise ApiError(f"malformed page body for {url}: expected a JSON list", url=url)
        return data
