from fastapi.testclient import TestClient

from app.dependencies import require_api_key
from app.main import app
from app.settings import get_settings

client = TestClient(app)


def test_execute_select_ok(api):
    path = app.url_path_for("execute_select")
    resp = client.post(path, json={"query": "SELECT * FROM items ORDER BY id", "max_rows": 5})

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["ok"] is True
    assert body["row_count"] == 5
    assert body["truncated"] is True
    assert body["row_limit"] == 5
    assert body["columns"] == ["id", "label"]
    assert body["content"].startswith("Query returned 5 row(s) (limited to 5).")


def test_execute_select_default_row_limit(api):
    resp = client.post("/api/v1/tools/execute-select", json={"query": "SELECT 1 AS one"})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["row_limit"] == 100
    assert body["truncated"] is False


def test_list_tables_is_markdown(api):
    resp = client.get("/api/v1/tools/list-tables")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/markdown")
    assert resp.text.startswith("Found 3 tables:")


def test_table_schema_found_and_missing(api):
    ok = client.get("/api/v1/tools/table-schema/main.employees")
    assert ok.status_code == 200
    assert ok.text.startswith("# Table: main.employees")

    missing = client.get("/api/v1/tools/table-schema/ghost")
    assert missing.status_code == 404
    err = missing.json()["error"]
    assert err["code"] == "TABLE_NOT_FOUND"
    assert err["message"] == "Table 'ghost' not found or not accessible."


def test_schema_resources(api):
    overview = client.get("/api/v1/resources/schema/overview")
    assert overview.status_code == 200
    assert overview.headers["content-type"].startswith("text/markdown")
    assert overview.text.startswith("# Database Schema Overview")

    rel = client.get("/api/v1/resources/schema/relationships")
    assert "## Relationship Diagram (Text)" in rel.text

    table = client.get("/api/v1/resources/schema/table/ghost")
    assert table.text == "# Table: ghost\n\nTable not found or not accessible."


def test_api_key_is_enforced_when_configured(api, monkeypatch):
    app.dependency_overrides.pop(require_api_key, None)
    monkeypatch.setenv("API_KEYS", "secret")
    get_settings.cache_clear()

    denied = client.get("/api/v1/tools/list-tables")
    assert denied.status_code == 401

    allowed = client.get("/api/v1/tools/list-tables", headers={"X-API-Key": "secret"})
    assert allowed.status_code == 200
