"""Tests for health endpoints."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from edumarket.core.database import CassandraConnection


def test_liveness(client: TestClient) -> None:
    """Test the liveness endpoint."""
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness(client: TestClient) -> None:
    """Test the readiness endpoint."""
    with patch.object(CassandraConnection, "is_connected", return_value=True):
        response = client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["cassandra"] is True
    assert "environment" in data
    assert data["redis"] is False


def test_readiness_without_cassandra(client: TestClient) -> None:
    """Not ready while the database is unreachable."""
    with patch.object(CassandraConnection, "is_connected", return_value=False):
        response = client.get("/health/ready")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "not_ready"
    assert data["cassandra"] is False


def test_health(client: TestClient) -> None:
    """Test the general health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["app_name"] == "edumarket"
    assert "version" in data


def test_root(client: TestClient) -> None:
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "edumarket" in data["message"]
    assert "version" in data


def test_request_id_header(client: TestClient) -> None:
    """Responses carry the request id."""
    response = client.get("/health/live", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
