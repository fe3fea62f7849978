from typing import Any, Iterable, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from rental_payments.models.enums import RecordStatus, SpotStatus
from rental_payments.models.properties import Property
from rental_payments.models.spots import Spot

PROPERTY_COLUMNS = (
    Property.id,
    Property.name,
    Property.description,
    Property.address,
    Property.amenities,
    Property.images,
    Property.rules,
    Property.is_active,
    Property.created_at,
    Property.updated_at,
)


def _spot_count(*conditions: Any) -> Any:
    """Correlated COUNT of spots belonging to the outer property row."""
    return (
        select(func.count(Spot.id))
        .where(Spot.property_id == Property.id, *conditions)
        .scalar_subquery()
    )


def _property_select() -> Any:
    return select(
        *PROPERTY_COLUMNS,
        _spot_count().label("total_spots"),
        _spot_count(Spot.status == SpotStatus.AVAILABLE).label("available_spots"),
        _spot_count(Spot.status == SpotStatus.MAINTENANCE).label("maintenance_spots"),
    )


def list_active_properties(conn: Connection) -> list[dict[str, Any]]:
    """
    Fetch all non-deleted properties with spot counts, newest first.

    Args:
        conn (Connection): An active SQLAlchemy database connection.

    Returns:
        list[dict[str, Any]]: Property rows including total_spots,
        available_spots and maintenance_spots.
    """
    stmt = (
        _property_select()
        .where(Property.record_status == RecordStatus.ACTIVE)
        .order_by(Property.created_at.desc(), Property.id)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def get_property(conn: Connection, property_id: UUID) -> Optional[dict[str, Any]]:
    """
    Fetch a single non-deleted property with spot counts.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        property_id (UUID): Property ID.

    Returns:
        Optional[dict[str, Any]]: The property row or None if missing or deleted.
    """
    stmt = _property_select().where(
        Property.id == property_id,
        Property.record_status == RecordStatus.ACTIVE,
    )
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def get_property_statuses(conn: Connection, property_ids: Iterable[UUID]) -> dict[UUID, RecordStatus]:
    """
    Look up the record status of each given property, deleted ones included.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        property_ids (Iterable[UUID]): Property IDs to look up.

    Returns:
        dict[UUID, RecordStatus]: Status per existing id; ids with no row are absent.
    """
    ids = list(property_ids)
    if not ids:
        return {}

    result = conn.execute(
        select(Property.id, Property.record_status).where(Property.id.in_(ids))
    )
    return {row[0]: row[1] for row in result}


def property_exists(conn: Connection, property_id: UUID) -> bool:
    result = conn.execute(
        select(Property.id).where(
            Property.id == property_id,
            Property.record_status == RecordStatus.ACTIVE,
        )
    )
    return result.fetchone() is not None


def list_property_briefs(conn: Connection, property_ids: Iterable[UUID]) -> list[dict[str, Any]]:
    """
    Fetch id, name and address for the given non-deleted properties.

    Used to populate the property list of an account. Order follows the
    order of property_ids; deleted or missing ids are dropped.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        property_ids (Iterable[UUID]): Property IDs in display order.

    Returns:
        list[dict[str, Any]]: Brief property rows.
    """
    ids = list(property_ids)
    if not ids:
        return []

    result = conn.execute(
        select(Property.id, Property.name, Property.address).where(
            Property.id.in_(ids),
            Property.record_status == RecordStatus.ACTIVE,
        )
    )
    by_id = {row["id"]: dict(row) for row in result.mappings()}
    return [by_id[pid] for pid in ids if pid in by_id]
