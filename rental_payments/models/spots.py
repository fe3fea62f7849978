import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.sql import func

from rental_payments.config import SCHEMA
from rental_payments.models.base import Base
from rental_payments.models.enums import SpotStatus
from rental_payments.models.properties import JSONType


class Spot(Base):
    """
    ORM model for a rentable spot (lot) inside a property.

    Spot numbers are unique within their property. Property listings derive
    total / available / maintenance counts from this table.
    """

    __tablename__ = "spots"
    __table_args__ = (
        UniqueConstraint("property_id", "spot_number", name="uq_spots_property_spot_number"),
        {"schema": SCHEMA},
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id = Column(
        Uuid,
        ForeignKey(f"{SCHEMA}.properties.id"),
        nullable=False,
        index=True,
    )
    spot_number = Column(String(64), nullable=False)
    status = Column(
        Enum(SpotStatus, name="spot_status", native_enum=False, length=16),
        nullable=False,
        default=SpotStatus.AVAILABLE,
    )
    length = Column(Float, nullable=False)
    width = Column(Float, nullable=False)
    price_daily = Column(Float, nullable=False)
    price_weekly = Column(Float, nullable=False)
    price_monthly = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    images = Column(JSONType, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
