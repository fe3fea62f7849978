import uuid
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from rental_payments.models.enums import RecordStatus
from rental_payments.models.properties import Property
from rental_payments.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def insert_property(conn: Connection, data: dict[str, Any]) -> UUID:
    """
    Insert a new property.

    Args:
        conn (Connection): SQLAlchemy DB connection (inside a transaction).
        data (dict[str, Any]): Validated property fields.

    Returns:
        UUID: ID of the created property.
    """
    now = utc_now()
    property_id = uuid.uuid4()

    conn.execute(
        insert(Property).values(
            id=property_id,
            name=data["name"],
            description=data.get("description"),
            address=data.get("address"),
            amenities=data.get("amenities") or [],
            images=data.get("images") or [],
            rules=data.get("rules") or [],
            is_active=data.get("is_active", True),
            record_status=RecordStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
    )

    logger.info("property_inserted", property_id=str(property_id))
    return property_id


def update_property(conn: Connection, property_id: UUID, data: dict[str, Any]) -> None:
    """
    Update fields of an existing, non-deleted property.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        property_id (UUID): Property ID.
        data (dict): Fields to update (only non-None values)
    """
    data["updated_at"] = utc_now()

    conn.execute(
        update(Property)
        .where(Property.id == property_id, Property.record_status == RecordStatus.ACTIVE)
        .values(**data)
    )


def soft_delete_property(conn: Connection, property_id: UUID) -> None:
    """
    Soft delete a property: status DELETED, inactive, deleted_at stamped.

    Stripe accounts that still list the property are left untouched.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        property_id (UUID): Property ID.
    """
    now = utc_now()

    conn.execute(
        update(Property)
        .where(Property.id == property_id)
        .values(
            record_status=RecordStatus.DELETED,
            is_active=False,
            deleted_at=now,
            updated_at=now,
        )
    )
