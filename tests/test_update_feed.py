import asyncio

import services.update_feed as update_feed
from services.update_feed import build_diagnostics, build_home_payload, filter_by_query, select_latest_subset

BASE = "https://catalog.test/api"
FAKE_SESSION = object()


def _manga(count):
    return [{"id": f"m{n}", "title": f"Title {n}"} for n in range(count)]


def _install(monkeypatch, update_payload):
    recorded = {"update_urls": [], "chapter_ids": None}

    async def fake_fetch_json(url, timeout_ms=None, *, session=None):
        recorded["update_urls"].append(url)
        return update_payload

    async def fake_latest(ids, *, base_url=None, timeout_ms=None, session=None):
        recorded["chapter_ids"] = list(ids)
        return {item_id: [{"title": "Chapter 1"}] for item_id in ids}

    monkeypatch.setattr(update_feed, "fetch_json", fake_fetch_json)
    monkeypatch.setattr(update_feed, "get_latest_chapters_for", fake_latest)
    return recorded


def test_home_payload_uses_latest_block_for_chapter_map(monkeypatch):
    recorded = _install(monkeypatch, {"mangaList": _manga(30), "pagination": {"page": 2, "total": 9}})

    payload = asyncio.run(build_home_payload(2, base_url=BASE, session=FAKE_SESSION))

    assert recorded["update_urls"] == [f"{BASE}/manga/update?page=2"]
    assert recorded["chapter_ids"] == [f"m{n}" for n in range(10, 26)]
    assert len(payload["mangaList"]) == 30
    assert [item["id"] for item in payload["latest"]] == recorded["chapter_ids"]
    assert set(payload["chapterMap"]) == set(recorded["chapter_ids"])
    assert payload["pagination"] == {"page": 2, "total": 9}
    assert payload["query"] == ""


def test_home_payload_filters_before_selecting_latest(monkeypatch):
    items = _manga(12) + [{"id": "op", "title": "One Piece"}]
    recorded = _install(monkeypatch, {"mangaList": items})

    payload = asyncio.run(build_home_payload(1, "  ONE ", base_url=BASE, session=FAKE_SESSION))

    assert payload["query"] == "one"
    assert payload["mangaList"] == [{"id": "op", "title": "One Piece"}]
    assert payload["latest"] == []
    assert recorded["chapter_ids"] == []
    assert payload["pagination"] is None


def test_home_payload_tolerates_missing_list(monkeypatch):
    _install(monkeypatch, {"unexpected": True})

    payload = asyncio.run(build_home_payload(1, base_url=BASE, session=FAKE_SESSION))

    assert payload["mangaList"] == []
    assert payload["chapterMap"] == {}


def test_diagnostics_summarize_first_latest_item(monkeypatch):
    _install(monkeypatch, {"mangaList": _manga(20)})

    diag = asyncio.run(build_diagnostics(base_url=BASE, session=FAKE_SESSION))

    assert diag == {
        "updateCount": 20,
        "latestCount": 10,
        "chapterMapKeys": 10,
        "sampleId": "m10",
        "sampleChapters": [{"title": "Chapter 1"}],
    }


def test_diagnostics_with_short_list_has_no_sample(monkeypatch):
    _install(monkeypatch, {"mangaList": _manga(5)})

    diag = asyncio.run(build_diagnostics(base_url=BASE, session=FAKE_SESSION))

    assert diag["sampleId"] is None
    assert diag["sampleChapters"] == []


def test_filter_by_query_matches_title_case_insensitively():
    items = [{"title": "Solo Leveling"}, {"title": None}, {"title": "Omniscient Reader"}]

    assert filter_by_query(items, "LEVEL") == [{"title": "Solo Leveling"}]
    assert filter_by_query(items, "") == items


def test_select_latest_subset_uses_configured_window(monkeypatch):
    monkeypatch.setattr(update_feed.config, "HOME_LATEST_START", 1)
    monkeypatch.setattr(update_feed.config, "HOME_LATEST_END", 3)

    assert select_latest_subset([0, 1, 2, 3]) == [1, 2]
