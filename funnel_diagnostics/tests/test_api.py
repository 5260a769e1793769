"""
Diagnostics API Test Module

Tests for the FastAPI host adapter (funnel_diagnostics/api/diagnostics.py and
funnel_diagnostics/main.py), using the FastAPI TestClient.

Test Coverage:
- POST /diagnostics: report shape, request validation (422), registry drift (500)
- POST /diagnostics/batch: order, empty and oversized batches (400)
- GET /diagnostics/targets and benchmark endpoints
- Health and root endpoints
- Start-up refuses to serve with a drifted registry
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from funnel_diagnostics.api.diagnostics import MAX_BATCH_SIZE
from funnel_diagnostics.core.dependencies import get_engine_config_dependency
from funnel_diagnostics.main import app
from funnel_diagnostics.services.registry import EngineConfig, RegistryConfigurationError


pytestmark = pytest.mark.api

HEALTHY_SNAPSHOT = {
    "spend": 10000,
    "impressions": 200000,
    "clicks": 3200,
    "leads": 200,
    "mql": 60,
    "sql": 24,
    "opportunities": 12,
    "closedDeals": 4,
}


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# =============================================================================
# Test Class: TestRunDiagnosticEndpoint
# =============================================================================

class TestRunDiagnosticEndpoint:

    def test_healthy_snapshot(self, client):
        response = client.post("/diagnostics", json={"snapshot": HEALTHY_SNAPSHOT})

        assert response.status_code == 200
        body = response.json()
        assert body["confidence"]["score"] == 100
        assert body["confidence"]["tier"] == "high"
        assert body["bottlenecks"]["primary"] is None
        assert body["bottlenecks"]["bestStage"]["stageId"] == "lead_to_mql"
        assert [s["status"] for s in body["stages"]] == ["ok"] * 4

    def test_sparse_snapshot_is_not_an_error(self, client):
        response = client.post("/diagnostics", json={"snapshot": {}})

        assert response.status_code == 200
        body = response.json()
        assert body["hasMinimumData"] is False
        assert body["derivedMetrics"]["leadToMql"] is None

    def test_context_and_overrides(self, client):
        payload = {
            "snapshot": {"leads": 100, "mql": 5, "spend": 5000},
            "context": {"channel": "linkedin_ads", "someHostFlag": True},
            "targets": {"leadToMql": {"value": 12, "direction": "min", "label": "Lead → MQL (%)"}},
        }

        response = client.post("/diagnostics", json=payload)

        assert response.status_code == 200
        body = response.json()
        assert body["stageImpacts"][0]["targetRate"] == 12
        assert [a["id"] for a in body["actions"]] == ["media_linkedin_quality"]

    def test_negative_counter_rejected(self, client):
        response = client.post("/diagnostics", json={"snapshot": {"leads": -5}})
        assert response.status_code == 422

    def test_non_numeric_counter_rejected(self, client):
        response = client.post("/diagnostics", json={"snapshot": {"leads": "many"}})
        assert response.status_code == 422

    def test_misconfigured_engine(self, client):
        defaults = EngineConfig()
        targets = dict(defaults.targets)
        del targets["mqlToSql"]
        app.dependency_overrides[get_engine_config_dependency] = lambda: defaults.with_targets(targets)

        response = client.post("/diagnostics", json={"snapshot": HEALTHY_SNAPSHOT})

        assert response.status_code == 500
        assert response.json()["detail"] == "Diagnostic engine misconfigured"

    def test_startup_rejects_drifted_registry(self, monkeypatch, caplog):
        defaults = EngineConfig()
        targets = dict(defaults.targets)
        del targets["mqlToSql"]
        monkeypatch.setattr("funnel_diagnostics.main.get_engine_config", lambda: defaults.with_targets(targets))

        with pytest.raises(RegistryConfigurationError, match="mqlToSql"):
            with TestClient(app):
                pass

        assert "Engine configuration invalid" in caplog.text


# =============================================================================
# Test Class: TestBatchEndpoint
# =============================================================================

class TestBatchEndpoint:

    def test_reports_in_request_order(self, client):
        payload = [
            {"snapshot": {"leads": 0}},
            {"snapshot": HEALTHY_SNAPSHOT},
        ]

        response = client.post("/diagnostics/batch", json=payload)

        assert response.status_code == 200
        assert [r["hasMinimumData"] for r in response.json()] == [False, True]

    def test_empty_batch(self, client):
        response = client.post("/diagnostics/batch", json=[])
        assert response.status_code == 400

    def test_oversized_batch(self, client):
        payload = [{"snapshot": {}}] * (MAX_BATCH_SIZE + 1)

        response = client.post("/diagnostics/batch", json=payload)

        assert response.status_code == 400
        assert str(MAX_BATCH_SIZE) in response.json()["detail"]


# =============================================================================
# Test Class: TestReferenceEndpoints
# =============================================================================

class TestReferenceEndpoints:

    def test_targets(self, client):
        response = client.get("/diagnostics/targets")

        assert response.status_code == 200
        assert response.json()["leadToMql"]["value"] == 15.0
        assert response.json()["cpl"]["direction"] == "max"

    def test_benchmark_catalog(self, client):
        body = client.get("/diagnostics/benchmarks").json()
        assert "seo" in body["channels"]
        assert "fintech" in body["segments"]

    def test_profile_segment_wins(self, client):
        response = client.get("/diagnostics/benchmarks/profile", params={"channel": "seo", "segment": "fintech"})

        assert response.status_code == 200
        assert response.json()["mqlToSql"] == 42.0

    def test_profile_not_found(self, client):
        assert client.get("/diagnostics/benchmarks/profile").status_code == 404

    def test_unknown_channel(self, client):
        response = client.get("/diagnostics/benchmarks/profile", params={"channel": "tiktok"})
        assert response.status_code == 422

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_root(self, client):
        body = client.get("/").json()
        assert body["name"] == "Funnel Diagnostics API"
        assert body["docs"] == "/docs"
