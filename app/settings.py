from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from safequery.limits import ROW_LIMIT_STYLES

# Resolve repo root from this file's location:
# app/settings.py → parent = app/ → parent = repo root
REPO_ROOT = Path(__file__).resolve().parents[1]

# Demo DB shipped with the repo
DEFAULT_DEMO_DB = REPO_ROOT / "data" / "demo.db"

DB_MODES = ("sqlite", "postgres")


@dataclass
class Settings:
    """
    Centralized application configuration.

    Does NOT depend on pydantic. Values are loaded from environment
    variables via Settings.from_env() and are read-only after startup.
    """

    # --- Query limits (hard ceiling enforced by the executor) ---
    max_rows: int = 1000
    timeout_seconds: int = 30

    # --- Tool-facing row defaults ---
    tool_default_rows: int = 100
    tool_max_rows: int = 1000

    # --- DB mode / adapters ---
    db_mode: str = "sqlite"  # "sqlite" or "postgres"
    postgres_dsn: str = ""
    sqlite_path: str = str(DEFAULT_DEMO_DB)

    # "auto", "fetch_first" or "limit"
    row_limit_style: str = "auto"

    # --- Schema metadata cache ---
    schema_cache_ttl_sec: int = 43200  # 12 hours
    schema_cache_max_entries: int = 50

    # --- API keys (comma-separated) ---
    api_keys_raw: str = ""

    # --- App version / logging ---
    app_version: str = "dev"
    log_level: str = "INFO"

    @property
    def api_keys(self) -> set[str]:
        return {k.strip() for k in self.api_keys_raw.split(",") if k.strip()}

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build Settings from environment variables with sane fallbacks.

        - Malformed integers fall back to the default.
        - SQLITE_PATH can be absolute or relative; relative paths are
          resolved against REPO_ROOT.
        - Unknown DB_MODE / ROW_LIMIT_STYLE values are kept as-is and
          rejected at bootstrap with a ConfigError.
        """

        def getenv_int(name: str, default: int) -> int:
            raw = os.getenv(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return int(raw)
            except ValueError:
                return default

        raw_db = os.getenv("SQLITE_PATH", "").strip()
        if raw_db:
            db_candidate = Path(raw_db)
            if not db_candidate.is_absolute():
                db_candidate = REPO_ROOT / raw_db
        else:
            db_candidate = DEFAULT_DEMO_DB

        return cls(
            max_rows=getenv_int("QUERY_MAX_ROWS", cls.max_rows),
            timeout_seconds=getenv_int("QUERY_TIMEOUT_SECONDS", cls.timeout_seconds),
            tool_default_rows=getenv_int("TOOL_DEFAULT_ROWS", cls.tool_default_rows),
            tool_max_rows=getenv_int("TOOL_MAX_ROWS", cls.tool_max_rows),
            db_mode=os.getenv("DB_MODE", cls.db_mode).strip().lower(),
            postgres_dsn=os.getenv("POSTGRES_DSN", cls.postgres_dsn),
            sqlite_path=str(db_candidate),
            row_limit_style=os.getenv("ROW_LIMIT_STYLE", cls.row_limit_style)
            .strip()
            .lower(),
            schema_cache_ttl_sec=getenv_int(
                "SCHEMA_CACHE_TTL_SEC", cls.schema_cache_ttl_sec
            ),
            schema_cache_max_entries=getenv_int(
                "SCHEMA_CACHE_MAX", cls.schema_cache_max_entries
            ),
            api_keys_raw=os.getenv("API_KEYS", cls.api_keys_raw),
            app_version=os.getenv("APP_VERSION", cls.app_version),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).strip().upper(),
        )

    def validate(self) -> None:
        """Raise ValueError on values no runtime can be built from."""
        if self.db_mode not in DB_MODES:
            raise ValueError(f"Unsupported DB_MODE: {self.db_mode!r}")
        if self.db_mode == "postgres" and not self.postgres_dsn.strip():
            raise ValueError("POSTGRES_DSN must be set when DB_MODE=postgres")
        if self.row_limit_style != "auto" and self.row_limit_style not in ROW_LIMIT_STYLES:
            raise ValueError(f"Unsupported ROW_LIMIT_STYLE: {self.row_limit_style!r}")
        if self.max_rows < 1:
            raise ValueError("QUERY_MAX_ROWS must be >= 1")
        if self.timeout_seconds < 1:
            raise ValueError("QUERY_TIMEOUT_SECONDS must be >= 1")


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
