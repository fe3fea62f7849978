from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.engine import Connection

from rental_payments.models.spots import Spot

SPOT_COLUMNS = (
    Spot.id,
    Spot.property_id,
    Spot.spot_number,
    Spot.status,
    Spot.length,
    Spot.width,
    Spot.price_daily,
    Spot.price_weekly,
    Spot.price_monthly,
    Spot.description,
    Spot.images,
    Spot.is_active,
    Spot.created_at,
    Spot.updated_at,
)


def list_spots(conn: Connection, property_id: UUID) -> list[dict[str, Any]]:
    """
    Fetch all spots of a property ordered by spot number.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        property_id (UUID): Owning property ID.

    Returns:
        list[dict[str, Any]]: Spot rows.
    """
    result = conn.execute(
        select(*SPOT_COLUMNS).where(Spot.property_id == property_id).order_by(Spot.spot_number)
    )
    return [dict(row) for row in result.mappings()]


def get_spot(conn: Connection, spot_id: UUID) -> Optional[dict[str, Any]]:
    row = conn.execute(select(*SPOT_COLUMNS).where(Spot.id == spot_id)).mappings().fetchone()
    return dict(row) if row else None
