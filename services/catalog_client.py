"""JSON fetcher for the manga catalog API.

Every call is a single GET with its own deadline. Failures are mapped onto a
small exception hierarchy so callers can branch on ``status`` instead of on
message text:

* ``CatalogTimeout``  - no response before the deadline (no status)
* ``RemoteFailure``   - response received with a non-2xx status
* ``ParseFailure``    - response body is not valid JSON (no status)
* ``CatalogError``    - any other transport failure (no status)
"""

import asyncio
import json
from contextlib import asynccontextmanager
from typing import Any, Optional
from urllib.parse import quote

import aiohttp

import config


JSON_HEADERS = {
    **config.CRAWLER_HEADERS,
    "Accept": "application/json",
}


class CatalogError(Exception):
    """Base failure for catalog requests. ``status`` is None unless the
    upstream actually answered."""

    status: Optional[int] = None

    def __init__(self, message: str, *, url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.url = url


class CatalogTimeout(CatalogError):
    pass


class ParseFailure(CatalogError):
    pass


class RemoteFailure(CatalogError):
    def __init__(self, status: int, message: str, *, body_excerpt: str = "", url: Optional[str] = None):
        super().__init__(message, url=url)
        self.status = status
        self.body_excerpt = body_excerpt


def _api_base(base_url: Optional[str]) -> str:
    return (base_url or config.CATALOG_API_BASE_URL).rstrip("/")


def detail_url(item_id: str, base_url: Optional[str] = None) -> str:
    return f"{_api_base(base_url)}/manga/detail/{quote(str(item_id), safe='')}"


def chapter_url(chapter_id: str, base_url: Optional[str] = None) -> str:
    return f"{_api_base(base_url)}/manga/chapter/{quote(str(chapter_id), safe='')}"


def update_url(page: int, base_url: Optional[str] = None) -> str:
    return f"{_api_base(base_url)}/manga/update?page={int(page)}"


def open_session() -> aiohttp.ClientSession:
    # limit=0 disables the connector cap so a batch is never throttled below its size
    connector = aiohttp.TCPConnector(limit=config.CATALOG_HTTP_CONCURRENCY_LIMIT, ttl_dns_cache=300)
    return aiohttp.ClientSession(connector=connector)


@asynccontextmanager
async def session_scope(session: Optional[aiohttp.ClientSession] = None):
    """Yield ``session`` as-is, or a temporary session closed on exit."""
    if session is not None:
        yield session
        return
    async with open_session() as own_session:
        yield own_session


async def _get_json(session: aiohttp.ClientSession, url: str, timeout_ms: int) -> Any:
    timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)
    try:
        async with session.get(url, headers=JSON_HEADERS, timeout=timeout) as response:
            status = response.status
            reason = response.reason or ""
            body = await response.read()
    except asyncio.TimeoutError as exc:
        raise CatalogTimeout(f"Timed out after {timeout_ms}ms: {url}", url=url) from exc
    except aiohttp.ClientError as exc:
        raise CatalogError(f"Request failed for {url}: {exc}", url=url) from exc

    if not 200 <= status < 300:
        excerpt = body.decode("utf-8", errors="replace")[: config.BODY_EXCERPT_CHARS]
        raise RemoteFailure(
            status,
            f"HTTP {status} {reason} - {excerpt}",
            body_excerpt=excerpt,
            url=url,
        )

    try:
        return json.loads(body)
    except ValueError as exc:
        raise ParseFailure(f"Invalid JSON from {url}: {exc}", url=url) from exc


async def fetch_json(
    url: str,
    timeout_ms: Optional[int] = None,
    *,
    session: Optional[aiohttp.ClientSession] = None,
) -> Any:
    """GET ``url`` and return the decoded JSON body.

    The request is abandoned once ``timeout_ms`` elapses. ``None`` or a
    non-positive value falls back to ``config.CATALOG_FETCH_TIMEOUT_MS``.
    Pass ``session`` to reuse a connection pool across calls; otherwise a
    one-shot session is used.
    """
    if timeout_ms is None or timeout_ms <= 0:
        timeout_ms = config.CATALOG_FETCH_TIMEOUT_MS
    # aiohttp reads a non-positive total as "no deadline"
    if timeout_ms <= 0:
        raise ValueError(f"CATALOG_FETCH_TIMEOUT_MS must be positive, got {timeout_ms}")
    async with session_scope(session) as active_session:
        return await _get_json(active_session, url, timeout_ms)
