"""Integration tests for health check endpoints."""

from collections import defaultdict
from collections.abc import Callable
from unittest.mock import MagicMock, patch

import httpx
from fastapi.testclient import TestClient

TEST_USER_ID = "550e8400-e29b-41d4-a716-446655440000"


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health_returns_200(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "version" in data

    def test_health_does_not_touch_the_store(
        self, client: TestClient, mock_supabase_client: MagicMock
    ) -> None:
        client.get("/health")

        mock_supabase_client.table.assert_not_called()


class TestReadinessEndpoint:
    """Tests for GET /health/ready."""

    def test_ready_when_database_reachable(
        self,
        client: TestClient,
        supabase_tables: defaultdict[str, MagicMock],
        response_with: Callable,
    ) -> None:
        profiles = supabase_tables["profiles"]
        profiles.select.return_value.limit.return_value.execute.return_value = response_with([])

        response = client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"][0]["name"] == "database"
        assert data["checks"][0]["healthy"] is True

    def test_not_ready_when_database_down(
        self, client: TestClient, supabase_tables: defaultdict[str, MagicMock]
    ) -> None:
        profiles = supabase_tables["profiles"]
        profiles.select.return_value.limit.return_value.execute.side_effect = httpx.ConnectError("refused")

        response = client.get("/health/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert "refused" in data["checks"][0]["error"]


class TestAuthenticatedHealthEndpoint:
    """Tests for GET /health/auth."""

    def test_returns_identity(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        response = client.get("/health/auth", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["authenticated"] is True
        assert data["user_id"] == TEST_USER_ID
        assert data["email"] == "student@iiti.ac.in"

    def test_requires_token(self, client: TestClient) -> None:
        response = client.get("/health/auth")

        assert response.status_code == 401

    def test_rejects_expired_token(self, client: TestClient, make_token: Callable[..., str]) -> None:
        token = make_token(exp_offset=-60)

        response = client.get("/health/auth", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert "expired" in response.text.lower()


class TestRequestSizeLimit:
    """Tests for the request body size limit."""

    @patch("src.api.middleware.request_size.get_settings")
    def test_oversized_body_rejected(
        self, mock_settings: MagicMock, client: TestClient, auth_headers: dict[str, str]
    ) -> None:
        mock_settings.return_value.max_request_body_size = 16

        response = client.post(
            "/api/v1/profiles",
            content=b"x" * 64,
            headers={**auth_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 413
        assert response.json()["error"] == "request_too_large"
