"""Application settings: environment, .env and runtime overrides."""

import json
import logging
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_config_logger = logging.getLogger(__name__)

_SETTINGS_FILE = Path("data/settings.json")
_PROJECT_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _PROJECT_DIR / ".env",
    ".env",
)
# Keys that may be overridden at runtime through data/settings.json
_RUNTIME_KEYS = frozenset({
    "max_data_items",
    "password_min_length",
    "cache_enabled",
    "cache_ttl_seconds",
    "enable_export",
    "max_login_attempts",
})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "SchoolDesk API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Persistence backend: "memory" keeps records in-process, "database"
    # stores them through SQLAlchemy at database_url.
    record_backend: str = "database"
    database_url: str = "sqlite:///./data/schooldesk.db"
    backend_timeout_seconds: float | None = 30.0

    # Record store
    max_data_items: int = 999
    password_min_length: int = 6
    revalidate_on_update: bool = True
    enable_export: bool = True

    # Login throttling: failed attempts allowed per username within the window
    max_login_attempts: int = 5
    login_attempt_window_seconds: float = 60.0

    # Query cache
    cache_enabled: bool = True
    cache_ttl_seconds: float = 300.0
    cache_sweep_interval_seconds: float = 60.0

    # Logging, per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_store: str = "INFO"            # RecordStore operations
    log_level_cache: str = "WARNING"         # QueryCache sweeps
    log_level_sql: str = "WARNING"           # sqlalchemy.engine SQL statements
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }

    def model_post_init(self, __context: object) -> None:
        """Apply store limits edited at runtime (data/settings.json).

        Only keys in the allow-list are read, and a value whose kind does not
        match the current setting is skipped with a warning.
        """
        if not _SETTINGS_FILE.exists():
            return
        try:
            overrides = json.loads(_SETTINGS_FILE.read_text("utf-8"))
        except (OSError, ValueError) as exc:
            _config_logger.warning("Could not load settings overrides: %s", exc)
            return
        if not isinstance(overrides, dict):
            return

        for key in sorted(_RUNTIME_KEYS & overrides.keys()):
            value = overrides[key]
            current = getattr(self, key)
            if isinstance(current, bool) != isinstance(value, bool) or not isinstance(
                value, (bool, int, float)
            ):
                _config_logger.warning("Ignoring settings override %s=%r", key, value)
                continue
            object.__setattr__(self, key, type(current)(value))


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance; reads .env once."""
    return Settings()
