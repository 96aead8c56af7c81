import pytest
from fastapi.testclient import TestClient

from conftest import NOW, RECORD_RESOURCES, FakeCrmClient, epoch, failing_client
from kpi_dashboard.core.deps import get_cache, get_orchestrator
from kpi_dashboard.main import app
from kpi_dashboard.services.cache import DashboardCache
from kpi_dashboard.services.orchestrator import DashboardOrchestrator


@pytest.fixture
def crm():
    return FakeCrmClient(
        {"jobs": {"results": [{"jnid": "j1", "status_name": "In Progress", "is_active": True, "date_created": epoch(NOW)}]}}
    )


@pytest.fixture
def cache():
    return DashboardCache(ttl_seconds=60)


@pytest.fixture
def client(crm, cache):
    orchestrator = DashboardOrchestrator(lambda office: crm, retry_delay=0, seed=1, clock=lambda: NOW)
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_cache] = lambda: cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health_sets_request_id_and_security_headers(client):
    res = client.get("/health", headers={"x-request-id": "abc123"})
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}
    assert res.headers["x-request-id"] == "abc123"
    assert res.headers["X-Content-Type-Options"] == "nosniff"


def test_api_root(client):
    body = client.get("/api").json()
    assert body["base"] == "/api/v1"


def test_offices_hide_api_keys(client):
    res = client.get("/api/v1/offices")
    assert res.status_code == 200
    offices = res.json()
    assert [o["id"] for o in offices] == ["guilford", "stamford"]
    assert offices[0]["is_default"] is True
    assert all("api_key" not in o for o in offices)


def test_dashboard_live(client, crm):
    res = client.get("/api/v1/dashboard/guilford", params={"period": "current-month"})
    assert res.status_code == 200
    body = res.json()
    assert body["source"] == "live"
    assert body["period"] == "current-month"
    assert body["office"] == "guilford"
    assert body["kpis"]["active_jobs"]["value"] == 1
    assert body["range"]["label"] == "Current Month"
    assert len(body["charts"]["monthly_trends"]) == 4


def test_dashboard_defaults_to_current_month(client):
    assert client.get("/api/v1/dashboard/stamford").json()["period"] == "current-month"


def test_dashboard_is_served_from_cache(client, crm):
    client.get("/api/v1/dashboard/guilford", params={"period": "last-year"})
    calls = len(crm.calls)
    again = client.get("/api/v1/dashboard/guilford", params={"period": "last-year"})
    assert again.status_code == 200
    assert len(crm.calls) == calls


def test_unknown_office_is_404(client):
    res = client.get("/api/v1/dashboard/nowhere")
    assert res.status_code == 404
    assert res.json()["detail"] == "Unknown office: nowhere"


def test_invalid_period_is_422(client):
    assert client.get("/api/v1/dashboard/guilford", params={"period": "next-decade"}).status_code == 422


def test_total_failure_returns_mock_and_is_not_cached(cache):
    crm = failing_client(*RECORD_RESOURCES, "summary")
    orchestrator = DashboardOrchestrator(lambda office: crm, retry_delay=0, seed=1, clock=lambda: NOW)
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_cache] = lambda: cache
    try:
        with TestClient(app) as test_client:
            body = test_client.get("/api/v1/dashboard/guilford").json()
    finally:
        app.dependency_overrides.clear()
    assert body["source"] == "mock"
    assert body["is_illustrative"] is True
    assert body["notice"]
    assert len(cache) == 0
