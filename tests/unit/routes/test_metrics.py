"""
Unit tests for metrics endpoint.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from rental_payments.main import app
from rental_payments.metrics import (
    account_writes,
    resolver_requests,
    stripe_api_requests,
    validation_rejections,
)


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.mark.unit
def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]


@pytest.mark.unit
def test_metrics_endpoint_contains_custom_metrics(client: TestClient) -> None:
    """Test that /metrics includes the resolver, account write and Stripe metrics."""
    resolver_requests.labels(view="without_accounts", status="success").inc()
    account_writes.labels(operation="create", outcome="success").inc()
    validation_rejections.labels(reason="default_conflict").inc()
    stripe_api_requests.labels(endpoint="balance", status_code="200").inc()

    body = client.get("/metrics").text

    assert "rental_resolver_requests_total" in body
    assert "rental_resolver_duration_seconds" in body
    assert "rental_stripe_account_writes_total" in body
    assert "rental_validation_rejections_total" in body
    assert "rental_stripe_api_requests_total" in body
    assert "rental_stripe_api_latency_seconds" in body
