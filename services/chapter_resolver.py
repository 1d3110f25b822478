"""Chapter lookup with a fallback for stale chapter ids.

The chapter endpoint sometimes 404s for ids that the series listing still
advertises under a different id. When the id follows the
``<series-slug>-chapter-<n>`` convention, the series listing is fetched and
the chapter is matched either by ``chapterId`` or by the last path segment
of its ``url``; the chapter endpoint is then retried once with the id found
there.
"""

import logging
import re
from typing import Any, Iterable, Optional

from services.catalog_client import chapter_url, detail_url, fetch_json, session_scope

LOGGER = logging.getLogger(__name__)

SERIES_SLUG_PATTERN = re.compile(r"(.+)-chapter-[0-9]+")


def derive_series_slug(chapter_id: str) -> Optional[str]:
    """``"foo-bar-chapter-12"`` -> ``"foo-bar"``; None when the id has no
    trailing ``-chapter-<digits>``."""
    if not isinstance(chapter_id, str):
        return None
    match = SERIES_SLUG_PATTERN.fullmatch(chapter_id)
    return match.group(1) if match else None


def url_tail(url: Any) -> Optional[str]:
    if not isinstance(url, str):
        return None
    segments = [segment for segment in url.split("/") if segment]
    return segments[-1] if segments else None


def find_matching_chapter(chapters: Iterable[Any], chapter_id: str) -> Optional[dict]:
    if not isinstance(chapters, list):
        return None
    for entry in chapters:
        if not isinstance(entry, dict):
            continue
        if entry.get("chapterId") == chapter_id or url_tail(entry.get("url")) == chapter_id:
            return entry
    return None


def is_not_found(exc: BaseException) -> bool:
    return getattr(exc, "status", None) == 404


async def fetch_chapter_smart(
    chapter_id: str,
    *,
    base_url: Optional[str] = None,
    timeout_ms: Optional[int] = None,
    session=None,
) -> Any:
    """Fetch a chapter, recovering from a 404 through the series listing.

    Anything other than a recoverable 404 propagates unchanged, including
    failures of the fallback's own requests.
    """
    async with session_scope(session) as active_session:
        try:
            return await fetch_json(chapter_url(chapter_id, base_url), timeout_ms, session=active_session)
        except Exception as exc:
            if not is_not_found(exc):
                raise
            not_found = exc

        slug = derive_series_slug(chapter_id)
        if not slug:
            raise not_found

        LOGGER.info("[chapter-fallback] %s -> series %s", chapter_id, slug)
        detail = await fetch_json(detail_url(slug, base_url), timeout_ms, session=active_session)
        chapters = detail.get("chapters") if isinstance(detail, dict) else None
        found = find_matching_chapter(chapters, chapter_id)

        recovered_id = found.get("chapterId") if found else None
        if not recovered_id or not isinstance(recovered_id, str):
            LOGGER.info("[chapter-fallback] no usable match for %s in %s", chapter_id, slug)
            raise not_found

        return await fetch_json(chapter_url(recovered_id, base_url), timeout_ms, session=active_session)
