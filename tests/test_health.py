"""Tests for health endpoints."""

from fastapi.testclient import TestClient

from campaign_comments.main import create_app


def test_liveness(client: TestClient) -> None:
    """Test the liveness endpoint."""
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness(client: TestClient) -> None:
    """Test the readiness endpoint."""
    response = client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["store"] is True
    assert data["environment"] == "testing"


def test_readiness_without_store(settings) -> None:
    """Readiness reports 503 when no store is available."""
    client = TestClient(create_app(settings))
    response = client.get("/health/ready")
    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


def test_health(client: TestClient) -> None:
    """Test the general health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["app_name"] == "campaign-comments"
    assert data["identity_service"] == "http://identity.test"
    assert "version" in data


def test_root(client: TestClient) -> None:
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "Campaign Comments" in data["message"]
    assert "version" in data


def test_request_id_is_echoed(client: TestClient) -> None:
    """Request ID header is propagated to the response."""
    response = client.get("/health/live", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
