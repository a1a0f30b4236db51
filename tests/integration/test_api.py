"""Integration tests for service endpoints"""

from fastapi.testclient import TestClient


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "energy-gateway"}


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "energy_storage_failures_total" in response.text


def test_movement_metrics_recorded(client: TestClient):
    client.post("/v1/balances/deposit", json={"user_id": 1, "amount": 10})

    text = client.get("/metrics").text

    assert 'energy_balance_movements_total{transaction_type="deposit",outcome="created"}' in text


def test_request_id_header(client: TestClient):
    """Caller-supplied request IDs are echoed back; otherwise one is generated"""
    echoed = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert echoed.headers["X-Request-ID"] == "req-123"

    generated = client.get("/health")
    assert len(generated.headers["X-Request-ID"]) == 36


def test_openapi_lists_routes(client: TestClient):
    paths = client.get("/openapi.json").json()["paths"]

    assert "/v1/balances/analytics" in paths
    assert "/v1/energy-readings/statistics" in paths
    assert "/v1/affiliates/{affiliate_id}/verify" in paths
