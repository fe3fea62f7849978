from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Models are used for table metadata (Alembic autogenerate, create_all) and
    as column namespaces for Core statements executed on plain connections.
    """

    pass
