"""
SQLAlchemy engine singleton with connection pooling.

One engine instance is shared by every request. Routes receive it through
``rental_payments.dependencies.get_db_engine`` so tests can swap it out.
"""

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from rental_payments.config import DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set.")

engine: Engine = create_engine(
    DATABASE_URL,
    future=True,
    pool_size=10,
    max_overflow=20,
    pool_pre_ping=True,
    pool_recycle=3600,
    echo=False,
)


def check_engine_health(db_engine: Engine = engine) -> bool:
    """
    Check if the database is reachable.

    Used by the /ready endpoint before the service accepts traffic.

    Args:
        db_engine: Engine to probe (defaults to the application engine)

    Returns:
        bool: True if a trivial query succeeds, False otherwise
    """
    try:
        with db_engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
