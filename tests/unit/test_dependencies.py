"""
Unit tests for FastAPI dependency injection.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from rental_payments.db.engine import engine as app_engine
from rental_payments.dependencies import get_db_engine


@pytest.mark.unit
def test_get_db_engine_yields_application_engine() -> None:
    engine = next(get_db_engine())

    assert isinstance(engine, Engine)
    assert engine is app_engine


@pytest.mark.unit
def test_get_db_engine_can_be_overridden() -> None:
    """Test that routes receive the override installed in dependency_overrides."""
    app = FastAPI()
    mock_engine = MagicMock(spec=Engine)

    @app.get("/engine")
    def engine_endpoint(engine: Engine = Depends(get_db_engine)) -> dict[str, bool]:
        return {"overridden": engine is mock_engine}

    app.dependency_overrides[get_db_engine] = lambda: mock_engine

    response = TestClient(app).get("/engine")

    assert response.json() == {"overridden": True}
