from tasker.config import DEFAULT_APP_ID, DEV_AUTH_SECRET, TaskerConfig


_ENV = (
    "TASKER_DATABASE_URL",
    "DATABASE_URL",
    "TASKER_APP_ID",
    "TASKER_INITIAL_AUTH_TOKEN",
    "TASKER_AUTH_SECRET",
    "TASKER_AUTH_MAX_ATTEMPTS",
    "TASKER_AUTH_BACKOFF_SECONDS",
    "TASKER_REFRESH_SECONDS",
    "TASKER_LOG_LEVEL",
)


def _clear(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("TASKER_DATABASE_URL", "sqlite://")
    cfg = TaskerConfig.from_env()
    assert cfg.database_url == "sqlite://"
    assert cfg.app_id == DEFAULT_APP_ID
    assert cfg.initial_auth_token is None
    assert cfg.auth_secret == DEV_AUTH_SECRET
    assert cfg.auth_max_attempts == 3
    assert cfg.refresh_seconds == 2.0
    assert cfg.log_level == "INFO"


def test_database_url_fallback(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg2://tasker@db/tasker")
    assert TaskerConfig.from_env().database_url == "postgresql+psycopg2://tasker@db/tasker"


def test_overrides_and_bounds(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("TASKER_DATABASE_URL", "sqlite://")
    monkeypatch.setenv("TASKER_APP_ID", "acme")
    monkeypatch.setenv("TASKER_INITIAL_AUTH_TOKEN", "  alice.abc  ")
    monkeypatch.setenv("TASKER_AUTH_MAX_ATTEMPTS", "0")
    monkeypatch.setenv("TASKER_AUTH_BACKOFF_SECONDS", "not-a-number")
    monkeypatch.setenv("TASKER_REFRESH_SECONDS", "0.1")
    monkeypatch.setenv("TASKER_LOG_LEVEL", "debug")

    cfg = TaskerConfig.from_env()
    assert cfg.app_id == "acme"
    assert cfg.initial_auth_token == "alice.abc"
    assert cfg.auth_max_attempts == 1
    assert cfg.auth_backoff_seconds == 0.5
    assert cfg.refresh_seconds == 0.5
    assert cfg.log_level == "DEBUG"
