"""
Shared fixtures.

Configuration is read at import time, so the environment is prepared before
anything from rental_payments is imported.
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_rental_payments.db")
os.environ.setdefault("ALLOWED_ORIGINS", "*")
os.environ["STRIPE_VERIFY"] = "false"

from typing import Any, Callable, Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from rental_payments.config import SCHEMA  # noqa: E402
from rental_payments.dependencies import get_db_engine  # noqa: E402
from rental_payments.main import app  # noqa: E402
from rental_payments.models.base import Base  # noqa: E402


@pytest.fixture
def db_engine() -> Generator[Engine, None, None]:
    """
    In-memory SQLite engine with every table created.

    The "rental" schema is translated away so the PostgreSQL models work
    unchanged on SQLite.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    ).execution_options(schema_translate_map={SCHEMA: None})

    Base.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture
def client(db_engine: Engine) -> Generator[TestClient, None, None]:
    """FastAPI test client bound to the in-memory database."""
    app.dependency_overrides[get_db_engine] = lambda: db_engine
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_property(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Create a property through the API and return the response body."""

    def _make(name: str, **overrides: Any) -> dict[str, Any]:
        body = {
            "name": name,
            "description": f"{name} storage lot",
            "address": {
                "street": "1 Main St",
                "city": "Austin",
                "state": "TX",
                "zip": "78701",
            },
            "amenities": ["gated"],
        }
        body.update(overrides)
        response = client.post("/api/v1/properties", json=body)
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def make_account(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Create a STANDARD Stripe account through the API (Stripe checks disabled)."""
    counter = {"n": 0}

    def _make(name: str, **overrides: Any) -> dict[str, Any]:
        counter["n"] += 1
        body = {
            "name": name,
            "stripe_secret_key": f"sk_test_{name.replace(' ', '_')}_{counter['n']}",
            "account_type": "STANDARD",
        }
        body.update(overrides)
        response = client.post("/api/v1/stripe-accounts", json=body)
        assert response.status_code == 201, response.text
        return response.json()

    return _make
