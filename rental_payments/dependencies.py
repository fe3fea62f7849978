"""
FastAPI dependency injection providers.

Routes never import the engine directly; they declare
``engine: Engine = Depends(get_db_engine)`` and tests override it with
``app.dependency_overrides[get_db_engine]``.
"""

from __future__ import annotations

from typing import Generator

from sqlalchemy.engine import Engine

from rental_payments.db.engine import engine


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine
    """
    yield engine
