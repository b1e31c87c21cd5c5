"""Functional tests for health reporting and the shared error envelope."""

from __future__ import annotations

from unittest import mock

from sqlalchemy.exc import OperationalError


def test_health_reports_environment_and_database(client):
    body = client.get("/api/health").json()

    assert body["status"] == "OK"
    assert body["message"] == "MegaMart API is running"
    assert body["environment"] == "test"
    assert body["database"] == "connected"
    assert body["timestamp"].endswith("Z")


def test_health_reports_unavailable_database(client):
    with mock.patch("megamart.routes.health.ping_database", return_value=False):
        body = client.get("/api/health").json()

    assert body["status"] == "OK"
    assert body["database"] == "unavailable"


def test_unknown_api_path_returns_problem_json_404(client):
    resp = client.get("/api/does-not-exist")

    assert resp.status_code == 404
    assert resp.headers["content-type"].startswith("application/problem+json")
    assert resp.json()["detail"] == "API endpoint not found"


def test_validation_errors_are_400_problem_documents(client):
    resp = client.post("/api/products", json={"name": "Nameless"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["title"] == "Invalid Request"
    assert body["status"] == 400
    assert body["errors"]


def test_database_outage_during_a_request_answers_503_with_fallback(client):
    outage = OperationalError("SELECT 1", {}, Exception("database is locked"))
    with mock.patch("megamart.routes.products.list_products", side_effect=outage):
        resp = client.get("/api/products")

    assert resp.status_code == 503
    assert resp.json()["fallback"] is True
    assert resp.json()["error"] == "Database not available"


def test_request_id_is_echoed_or_generated(client):
    echoed = client.get("/api/health", headers={"X-Request-Id": "abc-123"})
    generated = client.get("/api/health")

    assert echoed.headers["X-Request-Id"] == "abc-123"
    assert generated.headers["X-Request-Id"]


def test_cors_allows_the_dev_storefront_origin(client):
    resp = client.options(
        "/api/products",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
    )

    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"
