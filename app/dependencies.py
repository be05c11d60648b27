from functools import lru_cache
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from app.bootstrap import Runtime, build_runtime
from app.cache import SchemaCache
from app.services.database_service import DatabaseService
from app.settings import get_settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


@lru_cache()
def get_runtime() -> Runtime:
    """
    Singleton runtime (adapter, limits, executor) for the process.

    Built lazily so importing the app never touches the database.
    """
    return build_runtime(get_settings())


@lru_cache()
def get_cache() -> SchemaCache:
    """
    Singleton in-memory cache for schema metadata.

    TTL and size are loaded from Settings (SCHEMA_CACHE_TTL_SEC, SCHEMA_CACHE_MAX).
    """
    settings = get_settings()
    return SchemaCache(
        ttl=float(settings.schema_cache_ttl_sec),
        max_entries=settings.schema_cache_max_entries,
    )


@lru_cache()
def get_database_service() -> DatabaseService:
    return DatabaseService(runtime=get_runtime(), cache=get_cache())


def require_api_key(key: Optional[str] = Security(api_key_header)) -> None:
    """
    Simple API key check using X-API-Key header and configured API keys.

    - Settings.api_keys_raw is a comma-separated list of keys.
    - If api_keys_raw is empty → auth disabled (dev mode).
    """
    allowed = get_settings().api_keys
    if not allowed:
        # No keys configured → treat as dev mode (auth off).
        return
    if not key or key not in allowed:
        raise HTTPException(status_code=401, detail="invalid API key")
