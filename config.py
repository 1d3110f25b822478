# config.py
import json
import os


def _parse_origins(raw):
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    if text.startswith("["):
        parsed = json.loads(text)
        origins = [str(origin).strip() for origin in parsed if str(origin).strip()]
    else:
        origins = [origin.strip() for origin in text.split(",") if origin.strip()]
    return origins or None


def _is_truthy(raw):
    if raw is None:
        return False
    return str(raw).strip().lower() in {"1", "true", "yes", "y", "on"}


# --- Crawler ---
CRAWLER_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/108.0.0.0 Safari/537.36'
}

# --- Catalog API ---
CATALOG_API_BASE_URL = os.getenv('CATALOG_API_BASE_URL', 'https://lk21.imgdesu.art/api')
CATALOG_FETCH_TIMEOUT_MS = int(os.getenv('CATALOG_FETCH_TIMEOUT_MS', 15000))
# 0 = no connector cap
CATALOG_HTTP_CONCURRENCY_LIMIT = int(os.getenv('CATALOG_HTTP_CONCURRENCY_LIMIT', 0))
BODY_EXCERPT_CHARS = int(os.getenv('BODY_EXCERPT_CHARS', 120))

# --- Home feed ---
LATEST_CHAPTERS_LIMIT = int(os.getenv('LATEST_CHAPTERS_LIMIT', 3))
HOME_LATEST_START = int(os.getenv('HOME_LATEST_START', 10))
HOME_LATEST_END = int(os.getenv('HOME_LATEST_END', 26))

# --- Web ---
CORS_ALLOW_ORIGINS = _parse_origins(os.getenv('CORS_ALLOW_ORIGINS'))
CORS_SUPPORTS_CREDENTIALS = _is_truthy(os.getenv('CORS_SUPPORTS_CREDENTIALS'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
