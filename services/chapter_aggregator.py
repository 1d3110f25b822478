"""Latest-chapter lookup for a batch of series ids.

Each id gets its own detail request; all requests run concurrently and are
joined with ``asyncio.gather`` before the result map is assembled. A failing
id never fails the batch - it simply maps to an empty list.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import config
from services.catalog_client import detail_url, fetch_json, session_scope
from utils.text import text_or_empty

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChapterSummary:
    title: str
    number: str = ""
    date: str = ""
    chapterId: str = ""
    url: str = ""

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)


def to_chapter_summary(entry: Any) -> ChapterSummary:
    if not isinstance(entry, dict):
        entry = {}
    number = text_or_empty(entry.get("number"))
    title = text_or_empty(entry.get("title"))
    if not title:
        title = f"Chapter {number}" if number else "Chapter"
    return ChapterSummary(
        title=title,
        number=number,
        date=text_or_empty(entry.get("date")),
        chapterId=text_or_empty(entry.get("chapterId")),
        url=text_or_empty(entry.get("url")),
    )


def summarize_latest_chapters(detail: Any, limit: Optional[int] = None) -> List[Dict[str, str]]:
    """First ``limit`` chapters of a detail record, in upstream order."""
    if limit is None:
        limit = config.LATEST_CHAPTERS_LIMIT
    chapters = detail.get("chapters") if isinstance(detail, dict) else None
    if not isinstance(chapters, list):
        return []
    return [to_chapter_summary(entry).as_dict() for entry in chapters[:limit]]


async def _fetch_latest_for(session, item_id, *, base_url, timeout_ms, limit) -> Tuple[Any, List[Dict[str, str]]]:
    try:
        detail = await fetch_json(detail_url(item_id, base_url), timeout_ms, session=session)
        return item_id, summarize_latest_chapters(detail, limit)
    except Exception as exc:
        LOGGER.warning("[detail-failed] %s %s", item_id, exc)
        return item_id, []


def _coerce_ids(ids: Iterable[str]) -> List[str]:
    if isinstance(ids, (str, bytes)):
        raise TypeError("ids must be a sequence of identifiers, not a single string")
    try:
        return list(ids)
    except TypeError as exc:
        raise TypeError(f"ids must be iterable, got {type(ids).__name__}") from exc


async def get_latest_chapters_for(
    ids: Iterable[str],
    *,
    base_url: Optional[str] = None,
    timeout_ms: Optional[int] = None,
    limit: Optional[int] = None,
    session=None,
) -> Dict[str, List[Dict[str, str]]]:
    """Map every id in ``ids`` to at most ``limit`` latest chapter summaries.

    Every requested id is a key of the result, even when its fetch failed.
    """
    item_ids = _coerce_ids(ids)
    chapter_map: Dict[str, List[Dict[str, str]]] = {item_id: [] for item_id in item_ids}
    if not chapter_map:
        return chapter_map

    async with session_scope(session) as active_session:
        tasks = [
            _fetch_latest_for(
                active_session,
                item_id,
                base_url=base_url,
                timeout_ms=timeout_ms,
                limit=limit,
            )
            for item_id in chapter_map
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

    for item_id, result in zip(chapter_map, results):
        if isinstance(result, BaseException):
            LOGGER.warning("[detail-failed] %s %s", item_id, result)
            continue
        _, chapters = result
        chapter_map[item_id] = chapters

    failed = sum(1 for chapters in chapter_map.values() if not chapters)
    LOGGER.debug("latest chapters: ids=%d empty=%d", len(chapter_map), failed)
    return chapter_map
