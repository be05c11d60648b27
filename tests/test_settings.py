import pytest

from app.settings import DEFAULT_DEMO_DB, REPO_ROOT, Settings

ENV_VARS = (
    "QUERY_MAX_ROWS",
    "QUERY_TIMEOUT_SECONDS",
    "TOOL_DEFAULT_ROWS",
    "TOOL_MAX_ROWS",
    "DB_MODE",
    "POSTGRES_DSN",
    "SQLITE_PATH",
    "ROW_LIMIT_STYLE",
    "SCHEMA_CACHE_TTL_SEC",
    "SCHEMA_CACHE_MAX",
    "API_KEYS",
    "APP_VERSION",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    s = Settings.from_env()
    assert s.max_rows == 1000
    assert s.timeout_seconds == 30
    assert s.tool_default_rows == 100
    assert s.tool_max_rows == 1000
    assert s.db_mode == "sqlite"
    assert s.sqlite_path == str(DEFAULT_DEMO_DB)
    assert s.row_limit_style == "auto"
    assert s.schema_cache_ttl_sec == 43200
    assert s.schema_cache_max_entries == 50
    assert s.api_keys == set()


def test_env_overrides(clean_env):
    clean_env.setenv("QUERY_MAX_ROWS", "250")
    clean_env.setenv("DB_MODE", "Postgres")
    clean_env.setenv("POSTGRES_DSN", "dbname=demo")
    clean_env.setenv("ROW_LIMIT_STYLE", "LIMIT")
    clean_env.setenv("SQLITE_PATH", "data/other.db")
    clean_env.setenv("API_KEYS", "k1, k2,,")

    s = Settings.from_env()
    assert s.max_rows == 250
    assert s.db_mode == "postgres"
    assert s.row_limit_style == "limit"
    assert s.sqlite_path == str(REPO_ROOT / "data/other.db")
    assert s.api_keys == {"k1", "k2"}
    s.validate()


def test_malformed_integers_fall_back_to_defaults(clean_env):
    clean_env.setenv("QUERY_MAX_ROWS", "lots")
    clean_env.setenv("QUERY_TIMEOUT_SECONDS", "")
    s = Settings.from_env()
    assert s.max_rows == 1000
    assert s.timeout_seconds == 30


@pytest.mark.parametrize(
    "kwargs",
    [
        {"db_mode": "oracle"},
        {"db_mode": "postgres", "postgres_dsn": " "},
        {"row_limit_style": "top"},
        {"max_rows": 0},
    ],
)
def test_validate_rejects_unusable_values(kwargs):
    with pytest.raises(ValueError):
        Settings(**kwargs).validate()
