"""App bootstrap: load .env, configure logging and build the query runtime."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from adapters.db.base import DBAdapter
from adapters.db.postgres_adapter import PostgresAdapter
from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.metrics.base import Metrics
from adapters.metrics.prometheus import PrometheusMetrics
from app.errors import ConfigError
from app.settings import Settings
from safequery.executor import QueryExecutor
from safequery.limits import QueryLimits, RowLimitStyle
from safequery.schema.reader import SchemaReader
from safequery.validator import QueryValidator
from safequery.version import version_at_least

logger = logging.getLogger(__name__)

# First Postgres release that accepts `FETCH FIRST n ROWS ONLY`.
POSTGRES_FETCH_FIRST_MIN_VERSION = "8.4"

LOG_FORMAT = "%(asctime)s  %(name)-30s  %(levelname)-7s  %(message)s"

# Load .env if available; real environment variables win.
load_dotenv()


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once at process start."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


@dataclass(frozen=True)
class Runtime:
    """Everything a surface needs, resolved once at startup."""

    settings: Settings
    adapter: DBAdapter
    limits: QueryLimits
    validator: QueryValidator
    executor: QueryExecutor
    schema_reader: SchemaReader
    server_version: Optional[str]


def build_adapter(settings: Settings) -> DBAdapter:
    if settings.db_mode == "postgres":
        return PostgresAdapter(dsn=settings.postgres_dsn.strip())
    return SQLiteAdapter(path=settings.sqlite_path)


def probe_server_version(adapter: DBAdapter) -> Optional[str]:
    """Ask the server for its version once; None when the probe fails."""
    try:
        version = adapter.server_version()
    except Exception as exc:
        logger.warning(
            "Server version probe failed",
            extra={"adapter": adapter.name, "error": str(exc)},
        )
        return None
    logger.info("Connected to %s server version %s", adapter.name, version)
    return version


def resolve_row_limit_style(
    configured: str, dialect: str, server_version: Optional[str]
) -> RowLimitStyle:
    """
    Decide how the executor bounds result sets.

    An explicit `fetch_first` / `limit` setting wins. In `auto` mode SQLite
    always gets `LIMIT`; Postgres gets `FETCH FIRST` from 8.4 on, `LIMIT`
    before that, and `FETCH FIRST` when the version could not be probed.
    """
    if configured == "fetch_first":
        return "fetch_first"
    if configured == "limit":
        return "limit"
    if dialect == "sqlite":
        return "limit"
    if server_version is None:
        logger.warning(
            "Server version unknown; assuming FETCH FIRST support",
            extra={"dialect": dialect},
        )
        return "fetch_first"
    if version_at_least(server_version, POSTGRES_FETCH_FIRST_MIN_VERSION):
        return "fetch_first"
    return "limit"


def build_runtime(
    settings: Settings,
    *,
    adapter: Optional[DBAdapter] = None,
    metrics: Optional[Metrics] = None,
) -> Runtime:
    try:
        settings.validate()
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    adapter = adapter or build_adapter(settings)
    metrics = metrics or PrometheusMetrics()

    server_version = probe_server_version(adapter)
    style = resolve_row_limit_style(
        settings.row_limit_style, adapter.dialect, server_version
    )
    limits = QueryLimits(
        max_rows=settings.max_rows,
        timeout_seconds=settings.timeout_seconds,
        row_limit_style=style,
    )
    validator = QueryValidator(metrics=metrics)
    executor = QueryExecutor(adapter, limits, validator=validator, metrics=metrics)

    logger.info(
        "Runtime ready",
        extra={
            "db_mode": settings.db_mode,
            "row_limit_style": style,
            "max_rows": limits.max_rows,
            "timeout_seconds": limits.timeout_seconds,
        },
    )
    return Runtime(
        settings=settings,
        adapter=adapter,
        limits=limits,
        validator=validator,
        executor=executor,
        schema_reader=SchemaReader(adapter),
        server_version=server_version,
    )
