# views/manga.py

import asyncio
import re

from flask import Blueprint, jsonify, request, current_app

from services.catalog_client import CatalogError, detail_url, fetch_json
from services.chapter_resolver import fetch_chapter_smart, is_not_found
from services.update_feed import build_diagnostics, build_home_payload

manga_bp = Blueprint('manga', __name__)

CHAPTER_ID_RE = re.compile(r"[A-Za-z0-9-]+")


def _not_found(message):
    return jsonify({
        "success": False,
        "error": {"code": "NOT_FOUND", "message": message}
    }), 404


def _upstream_error(prefix, exc):
    # only catalog errors carry upstream-facing text; anything else stays generic
    detail = exc.message if isinstance(exc, CatalogError) else "upstream request failed"
    return jsonify({
        "success": False,
        "error": {"code": "UPSTREAM", "message": f"{prefix}: {detail}"}
    }), 502


@manga_bp.route('/', methods=['GET'])
@manga_bp.route('/api/home', methods=['GET'])
def home():
    """Update feed for ?page= filtered by ?q=, with the latest chapters of the latest block."""
    page = request.args.get('page', 1, type=int) or 1
    query = request.args.get('q', '')

    try:
        payload = asyncio.run(build_home_payload(page, query))
    except Exception as exc:
        current_app.logger.exception("[home-error]")
        return _upstream_error("Failed to load home feed", exc)

    current_app.logger.info(
        "[home] page=%s | q=%s | list=%d | latest=%d | chapterMap keys=%d",
        page,
        payload["query"] or "-",
        len(payload["mangaList"]),
        len(payload["latest"]),
        len(payload["chapterMap"]),
    )
    return jsonify(payload)


@manga_bp.route('/api/diag', methods=['GET'])
def diagnostics():
    try:
        return jsonify(asyncio.run(build_diagnostics()))
    except Exception as exc:
        current_app.logger.exception("[diag-error]")
        message = exc.message if isinstance(exc, CatalogError) else "internal error"
        return jsonify({"error": message}), 500


@manga_bp.route('/api/series/<slug>', methods=['GET'])
def series_detail(slug):
    try:
        data = asyncio.run(fetch_json(detail_url(slug)))
    except Exception as exc:
        current_app.logger.exception("[series-error] %s", slug)
        if is_not_found(exc):
            return _not_found("Series not found.")
        return _upstream_error("Failed to load series", exc)
    return jsonify(data)


@manga_bp.route('/api/chapters/<chapter_id>', methods=['GET'])
def chapter_detail(chapter_id):
    if not CHAPTER_ID_RE.fullmatch(chapter_id):
        return _not_found("Chapter not found.")

    try:
        data = asyncio.run(fetch_chapter_smart(chapter_id))
    except Exception as exc:
        current_app.logger.exception("[chapter-error] %s", chapter_id)
        if is_not_found(exc):
            return _not_found("Chapter not found.")
        return _upstream_error("Failed to load chapter", exc)
    return jsonify(data)
