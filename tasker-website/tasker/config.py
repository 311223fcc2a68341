"""Runtime configuration for the Team Tasker app."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_APP_ID = "team-tasker"
DEV_AUTH_SECRET = "change-this-tasker-dev-secret"


def env_str(name: str, default: str, *, strip: bool = True) -> str:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip() if strip else value


def env_optional_str(name: str, default: Optional[str] = None, *, strip: bool = True) -> Optional[str]:
    value = os.environ.get(name)
    if value is None:
        return default
    value = value.strip() if strip else value
    return value or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _default_sqlite_url() -> str:
    # .../tasker-website/tasker/config.py -> .../tasker-website/data/tasker.db
    data_dir = Path(__file__).resolve().parents[1] / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{(data_dir / 'tasker.db').as_posix()}"


@dataclass(frozen=True)
class TaskerConfig:
    """Connection parameters for the document store and identity provider.

    Environment variables:
    - TASKER_DATABASE_URL / DATABASE_URL: document store URL. Defaults to
      local SQLite at data/tasker.db.
    - TASKER_APP_ID: application namespace every collection lives under.
    - TASKER_INITIAL_AUTH_TOKEN: custom session token from the hosting
      environment. Without it sessions are anonymous.
    - TASKER_AUTH_SECRET: key custom tokens are signed with.
    - TASKER_AUTH_MAX_ATTEMPTS / TASKER_AUTH_BACKOFF_SECONDS: bounded retry
      for session establishment.
    - TASKER_REFRESH_SECONDS: re-render interval of live views.
    - TASKER_LOG_LEVEL: logging level name.
    """

    database_url: str
    app_id: str
    initial_auth_token: Optional[str]
    auth_secret: str
    auth_max_attempts: int
    auth_backoff_seconds: float
    refresh_seconds: float
    log_level: str

    @classmethod
    def from_env(cls) -> "TaskerConfig":
        database_url = env_optional_str("TASKER_DATABASE_URL") or env_optional_str("DATABASE_URL")
        if not database_url:
            database_url = _default_sqlite_url()

        return cls(
            database_url=database_url,
            app_id=env_str("TASKER_APP_ID", DEFAULT_APP_ID) or DEFAULT_APP_ID,
            initial_auth_token=env_optional_str("TASKER_INITIAL_AUTH_TOKEN"),
            auth_secret=env_str("TASKER_AUTH_SECRET", DEV_AUTH_SECRET, strip=False),
            auth_max_attempts=max(1, env_int("TASKER_AUTH_MAX_ATTEMPTS", 3)),
            auth_backoff_seconds=max(0.0, env_float("TASKER_AUTH_BACKOFF_SECONDS", 0.5)),
            refresh_seconds=max(0.5, env_float("TASKER_REFRESH_SECONDS", 2.0)),
            log_level=env_str("TASKER_LOG_LEVEL", "INFO").upper(),
        )


_config: Optional[TaskerConfig] = None


def get_config() -> TaskerConfig:
    """Get the app configuration (cached)."""
    global _config
    if _config is None:
        _config = TaskerConfig.from_env()
    return _config
