import math
import os

from dotenv import load_dotenv

load_dotenv()

import config

# direct chapter fetch -> series listing -> recovered chapter fetch
CHAPTER_FALLBACK_FETCHES = 3
WORKER_TIMEOUT_MARGIN_SECONDS = 5


def minimum_worker_timeout():
    """Seconds a worker needs to finish the longest chain of catalog fetches."""
    chain_ms = CHAPTER_FALLBACK_FETCHES * config.CATALOG_FETCH_TIMEOUT_MS
    return math.ceil(chain_ms / 1000) + WORKER_TIMEOUT_MARGIN_SECONDS


def resolve_worker_timeout():
    floor = minimum_worker_timeout()
    raw = (os.getenv("GUNICORN_TIMEOUT") or "").strip()
    if not raw:
        return floor
    requested = int(raw)
    if requested < floor:
        print(f"[startup] GUNICORN_TIMEOUT={requested} is below the catalog fetch chain; using {floor}.")
        return floor
    return requested


def build_gunicorn_command():
    port = (os.getenv("PORT") or "5000").strip()
    bind = (os.getenv("GUNICORN_BIND") or f"0.0.0.0:{port}").strip()
    workers = (os.getenv("WEB_CONCURRENCY") or "2").strip()

    return [
        "gunicorn",
        "app:app",
        "--bind",
        bind,
        "--workers",
        workers,
        "--timeout",
        str(resolve_worker_timeout()),
        "--log-level",
        config.LOG_LEVEL.lower(),
    ]


def main():
    command = build_gunicorn_command()
    print("[startup] Starting web server:", " ".join(command))
    os.execvp(command[0], command)


if __name__ == "__main__":
    main()
