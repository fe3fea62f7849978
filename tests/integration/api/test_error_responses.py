"""Error body shape returned by the exception handlers."""

from __future__ import annotations

from typing import Any, AsyncGenerator
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from rental_payments.dependencies import get_db_engine
from rental_payments.main import app


@pytest_asyncio.fixture
async def async_client(db_engine: Engine) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_db_engine] = lambda: db_engine
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def property_body(name: str) -> dict[str, Any]:
    return {
        "name": name,
        "description": "lot",
        "address": {"street": "1", "city": "Austin", "state": "TX", "zip": "78701"},
    }


@pytest.mark.asyncio
async def test_duplicate_name_uses_camel_case_error_body(async_client: AsyncClient) -> None:
    await async_client.post("/api/v1/properties", json=property_body("Dup"))

    response = await async_client.post("/api/v1/properties", json=property_body("Dup"))

    assert response.status_code == 409
    body = response.json()
    assert set(body) == {"statusCode", "message", "errorMessages", "requestId"}
    assert body["statusCode"] == 409


@pytest.mark.asyncio
async def test_resolver_read_failure_returns_500(async_client: AsyncClient) -> None:
    """Test that a failed registry read surfaces as a 500 error body."""
    with patch("rental_payments.services.assignment.list_active_properties") as mock_list:
        mock_list.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        response = await async_client.get("/api/v1/properties/stripe-details")

    assert response.status_code == 500
    assert response.json()["message"] == "Failed to read properties or Stripe accounts"


@pytest.mark.asyncio
async def test_domain_error_body_names_offending_field(async_client: AsyncClient) -> None:
    response = await async_client.patch(
        "/api/v1/stripe-accounts/00000000-0000-0000-0000-000000000001",
        json={"description": "x"},
    )

    assert response.status_code == 404
    body = response.json()
    assert body["errorMessages"] == [{"path": "", "message": body["message"]}]
