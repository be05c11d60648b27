import sqlite3

import pytest

from app.bootstrap import build_runtime
from app.cache import SchemaCache
from app.dependencies import (
    get_cache,
    get_database_service,
    get_runtime,
    require_api_key,
)
from app.main import app
from app.services.database_service import DatabaseService
from app.settings import Settings, get_settings

DEMO_SCHEMA = """
CREATE TABLE departments (
    id INTEGER PRIMARY KEY,
    name VARCHAR(50) NOT NULL UNIQUE
);
CREATE TABLE employees (
    id INTEGER PRIMARY KEY,
    name VARCHAR(100) NOT NULL,
    salary DECIMAL(10, 2) DEFAULT 0,
    dept_id INTEGER REFERENCES departments(id) ON DELETE CASCADE,
    notes TEXT
);
CREATE TABLE items (
    id INTEGER PRIMARY KEY,
    label TEXT
);
"""


def make_demo_db(db_path) -> None:
    """Create a small SQLite DB: 2 departments, 3 employees, 10 items."""
    conn = sqlite3.connect(str(db_path))
    try:
        conn.executescript(DEMO_SCHEMA)
        conn.executemany(
            "INSERT INTO departments VALUES (?, ?);", [(1, "Sales"), (2, "R&D")]
        )
        conn.executemany(
            "INSERT INTO employees VALUES (?, ?, ?, ?, ?);",
            [
                (1, "Alice", 5000.5, 1, None),
                (2, "Bob", 4200, 2, "likes | pipes"),
                (3, "Carol", 6100, 2, "line1\nline2"),
            ],
        )
        conn.executemany(
            "INSERT INTO items VALUES (?, ?);", [(i, f"item-{i}") for i in range(1, 11)]
        )
        conn.commit()
    finally:
        conn.close()


@pytest.fixture
def demo_db(tmp_path):
    db_path = tmp_path / "demo.db"
    make_demo_db(db_path)
    return db_path


@pytest.fixture
def settings(demo_db) -> Settings:
    return Settings(db_mode="sqlite", sqlite_path=str(demo_db))


@pytest.fixture
def runtime(settings):
    return build_runtime(settings)


@pytest.fixture
def service(runtime) -> DatabaseService:
    return DatabaseService(runtime=runtime, cache=SchemaCache(ttl=60.0, max_entries=10))


@pytest.fixture
def api(runtime, service):
    """Point the FastAPI dependencies at the temp database."""
    app.dependency_overrides[get_runtime] = lambda: runtime
    app.dependency_overrides[get_database_service] = lambda: service
    try:
        yield app
    finally:
        app.dependency_overrides.pop(get_runtime, None)
        app.dependency_overrides.pop(get_database_service, None)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Settings and runtime providers are lru_cached; start each test clean."""
    for provider in (get_settings, get_runtime, get_cache, get_database_service):
        provider.cache_clear()
    yield
    for provider in (get_settings, get_runtime, get_cache, get_database_service):
        provider.cache_clear()


@pytest.fixture(autouse=True)
def disable_api_key_auth():
    """Disable X-API-Key auth for tests."""
    prev = app.dependency_overrides.get(require_api_key)
    app.dependency_overrides[require_api_key] = lambda: None
    try:
        yield
    finally:
        if prev is None:
            app.dependency_overrides.pop(require_api_key, None)
        else:
            app.dependency_overrides[require_api_key] = prev
