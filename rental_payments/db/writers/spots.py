import uuid
from typing import Any
from uuid import UUID

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from rental_payments.models.enums import SpotStatus
from rental_payments.models.spots import Spot
from rental_payments.utils.datetime import utc_now


def insert_spot(conn: Connection, property_id: UUID, data: dict[str, Any]) -> UUID:
    """
    Insert a spot under a property.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        property_id (UUID): Owning property ID.
        data (dict[str, Any]): Flattened spot fields (size and price already split).

    Returns:
        UUID: ID of the created spot.
    """
    now = utc_now()
    spot_id = uuid.uuid4()

    conn.execute(
        insert(Spot).values(
            id=spot_id,
            property_id=property_id,
            spot_number=data["spot_number"],
            status=data.get("status") or SpotStatus.AVAILABLE,
            length=data["length"],
            width=data["width"],
            price_daily=data["price_daily"],
            price_weekly=data["price_weekly"],
            price_monthly=data["price_monthly"],
            description=data.get("description"),
            images=data.get("images") or [],
            is_active=data.get("is_active", True),
            created_at=now,
            updated_at=now,
        )
    )
    return spot_id


def update_spot(conn: Connection, spot_id: UUID, data: dict[str, Any]) -> None:
    data["updated_at"] = utc_now()
    conn.execute(update(Spot).where(Spot.id == spot_id).values(**data))
