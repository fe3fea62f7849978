"""SQLAlchemy model for rental properties."""

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Enum, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from rental_payments.config import SCHEMA
from rental_payments.models.base import Base
from rental_payments.models.enums import RecordStatus

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Property(Base):
    """
    ORM model for rental properties.

    Properties are never physically removed: deletion flips record_status to
    DELETED and stamps deleted_at. Stripe accounts reference properties by id
    only, so a deleted property leaves any existing reference stale.
    """

    __tablename__ = "properties"
    __table_args__ = {"schema": SCHEMA}

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    address = Column(JSONType, nullable=True)  # street, city, state, zip, country
    amenities = Column(JSONType, nullable=False, default=list)
    images = Column(JSONType, nullable=False, default=list)
    rules = Column(JSONType, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    record_status = Column(
        Enum(RecordStatus, name="record_status", native_enum=False, length=16),
        nullable=False,
        default=RecordStatus.ACTIVE,
        index=True,
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
