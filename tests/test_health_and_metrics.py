from dataclasses import replace

from fastapi.testclient import TestClient

from app.dependencies import get_runtime
from app.main import app

client = TestClient(app)


def test_healthz_ok():
    """Health endpoint should be up and return a stable 'ok' body."""
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.text == "ok"


def test_readyz_pings_the_database(api):
    r = client.get("/readyz")
    assert r.status_code == 200
    assert r.text == "ready"


def test_readyz_reports_not_ready_when_ping_fails(runtime):
    class DownDB:
        name = "sqlite"
        dialect = "sqlite"

        def ping(self):
            raise OSError("gone")

    app.dependency_overrides[get_runtime] = lambda: replace(runtime, adapter=DownDB())
    try:
        r = client.get("/readyz")
    finally:
        app.dependency_overrides.pop(get_runtime, None)
    assert r.status_code == 503
    body = r.json()["error"]
    assert body["code"] == "dependency_error"
    assert body["retryable"] is True
    assert body["details"] == ["gone"]
    assert r.headers["Retry-After"] == "2"


def test_metrics_exposes_prometheus_format(api):
    """
    Metrics endpoint should expose Prometheus text format, including the
    query counters after one query has run.
    """
    client.post("/api/v1/tools/execute-select", json={"query": "SELECT 1"})

    r = client.get("/metrics")
    assert r.status_code == 200

    body = r.text
    assert "# HELP" in body or "# TYPE" in body
    assert "query_runs_total" in body
    assert "validation_checks_total" in body
    assert "http_requests_total" in body
