import scripts.start_web as start_web


def _clear_web_env(monkeypatch):
    for key in ("PORT", "GUNICORN_BIND", "WEB_CONCURRENCY", "GUNICORN_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)


def test_default_timeout_covers_three_chained_catalog_fetches(monkeypatch):
    _clear_web_env(monkeypatch)
    monkeypatch.setattr(start_web.config, "CATALOG_FETCH_TIMEOUT_MS", 15000)

    assert start_web.minimum_worker_timeout() == 50
    assert start_web.resolve_worker_timeout() == 50


def test_default_timeout_rounds_partial_seconds_up(monkeypatch):
    monkeypatch.setattr(start_web.config, "CATALOG_FETCH_TIMEOUT_MS", 1100)

    assert start_web.minimum_worker_timeout() == 4 + start_web.WORKER_TIMEOUT_MARGIN_SECONDS


def test_timeout_override_below_fetch_chain_is_raised_to_floor(monkeypatch):
    _clear_web_env(monkeypatch)
    monkeypatch.setattr(start_web.config, "CATALOG_FETCH_TIMEOUT_MS", 15000)
    monkeypatch.setenv("GUNICORN_TIMEOUT", "30")

    assert start_web.resolve_worker_timeout() == 50


def test_timeout_override_above_floor_is_kept(monkeypatch):
    _clear_web_env(monkeypatch)
    monkeypatch.setattr(start_web.config, "CATALOG_FETCH_TIMEOUT_MS", 15000)
    monkeypatch.setenv("GUNICORN_TIMEOUT", " 120 ")

    assert start_web.resolve_worker_timeout() == 120


def test_build_gunicorn_command_defaults(monkeypatch):
    _clear_web_env(monkeypatch)
    monkeypatch.setattr(start_web.config, "CATALOG_FETCH_TIMEOUT_MS", 2000)
    monkeypatch.setattr(start_web.config, "LOG_LEVEL", "INFO")

    command = start_web.build_gunicorn_command()

    assert command == [
        "gunicorn",
        "app:app",
        "--bind",
        "0.0.0.0:5000",
        "--workers",
        "2",
        "--timeout",
        "11",
        "--log-level",
        "info",
    ]


def test_explicit_bind_wins_over_port(monkeypatch):
    _clear_web_env(monkeypatch)
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("GUNICORN_BIND", "127.0.0.1:9000")

    assert start_web.build_gunicorn_command()[3] == "127.0.0.1:9000"


def test_port_and_worker_env_overrides(monkeypatch):
    _clear_web_env(monkeypatch)
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("WEB_CONCURRENCY", " 4 ")

    command = start_web.build_gunicorn_command()

    assert command[3] == "0.0.0.0:8080"
    assert command[5] == "4"
