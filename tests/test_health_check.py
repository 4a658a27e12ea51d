from unittest.mock import patch

import pytest


class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "services" in data

    def test_health_check_reports_database_status(self, client):
        response = client.get("/health")
        data = response.json()
        assert data["services"]["database"]["status"] == "up"
        assert "response_time_ms" in data["services"]["database"]

    def test_health_check_reports_cache_status(self, client):
        response = client.get("/health")
        data = response.json()
        assert data["services"]["cache"]["status"] == "up"
        assert "response_time_ms" in data["services"]["cache"]

    @pytest.mark.parametrize("probe", ["_probe_database", "_probe_cache"])
    def test_failing_dependency_returns_503(self, client, probe):
        with patch(f"modules.core.views.{probe}", side_effect=ConnectionError("down")):
            response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    def test_health_check_reports_outbox_backlog(self, client, make_order):
        make_order()
        outbox = client.get("/health").json()["services"]["outbox"]
        assert outbox["pending"] >= 1
        assert outbox["failed"] == 0
        assert outbox["oldest_pending_at"] is not None
