"""Home page and diagnostics payloads built from the catalog update feed."""

from typing import Any, Dict, List, Optional

import config
from services.catalog_client import fetch_json, session_scope, update_url
from services.chapter_aggregator import get_latest_chapters_for
from utils.text import normalize_query


def _manga_list(data: Any) -> List[Dict[str, Any]]:
    items = data.get("mangaList") if isinstance(data, dict) else None
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def filter_by_query(items: List[Dict[str, Any]], query: Optional[str]) -> List[Dict[str, Any]]:
    normalized = normalize_query(query)
    if not normalized:
        return list(items)
    return [item for item in items if normalized in str(item.get("title") or "").lower()]


def select_latest_subset(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return items[config.HOME_LATEST_START:config.HOME_LATEST_END]


def _item_ids(items: List[Dict[str, Any]]) -> List[str]:
    return [str(item["id"]) for item in items if item.get("id")]


async def fetch_update_page(page: int = 1, *, base_url=None, timeout_ms=None, session=None) -> Any:
    return await fetch_json(update_url(page, base_url), timeout_ms, session=session)


async def build_home_payload(
    page: int = 1,
    query: Optional[str] = None,
    *,
    base_url=None,
    timeout_ms=None,
    session=None,
) -> Dict[str, Any]:
    """Update feed for ``page`` filtered by ``query``, plus the latest
    chapters of the "latest" block."""
    normalized = normalize_query(query)
    async with session_scope(session) as active_session:
        data = await fetch_update_page(page, base_url=base_url, timeout_ms=timeout_ms, session=active_session)
        manga_list = filter_by_query(_manga_list(data), normalized)
        latest = select_latest_subset(manga_list)
        chapter_map = await get_latest_chapters_for(
            _item_ids(latest),
            base_url=base_url,
            timeout_ms=timeout_ms,
            session=active_session,
        )

    return {
        "page": page,
        "query": normalized,
        "mangaList": manga_list,
        "pagination": data.get("pagination") if isinstance(data, dict) else None,
        "latest": latest,
        "chapterMap": chapter_map,
    }


async def build_diagnostics(*, base_url=None, timeout_ms=None, session=None) -> Dict[str, Any]:
    payload = await build_home_payload(1, base_url=base_url, timeout_ms=timeout_ms, session=session)
    latest = payload["latest"]
    sample_id = str(latest[0]["id"]) if latest and latest[0].get("id") else None
    return {
        "updateCount": len(payload["mangaList"]),
        "latestCount": len(latest),
        "chapterMapKeys": len(payload["chapterMap"]),
        "sampleId": sample_id,
        "sampleChapters": payload["chapterMap"].get(sample_id, [])[: config.LATEST_CHAPTERS_LIMIT],
    }
