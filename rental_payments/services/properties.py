"""
Property and spot write paths.

Creating a property links it to the active default Stripe account, if one
exists, in the same transaction as the insert.
"""

from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

import structlog
from sqlalchemy.engine import Connection, Engine

from rental_payments.db.readers.properties import get_property, list_active_properties
from rental_payments.db.readers.spots import get_spot, list_spots
from rental_payments.db.readers.stripe_accounts import (
    get_default_stripe_account,
    list_accounts_for_property,
)
from rental_payments.db.writers.properties import (
    insert_property,
    soft_delete_property,
    update_property,
)
from rental_payments.db.writers.spots import insert_spot, update_spot
from rental_payments.db.writers.stripe_accounts import replace_property_links
from rental_payments.errors import NotFoundError

logger = structlog.get_logger(__name__)


def _get_property_or_404(conn: Connection, property_id: UUID) -> dict[str, Any]:
    prop = get_property(conn, property_id)
    if not prop:
        raise NotFoundError(f"Property {property_id} not found")
    return prop


def assign_to_default_account(conn: Connection, property_id: UUID) -> Optional[UUID]:
    """
    Append a property to the active default account's association list.

    Nothing happens when there is no active default account or when the
    property is already linked to some account.

    Returns:
        Optional[UUID]: The default account id when the property was linked
    """
    default = get_default_stripe_account(conn, active_only=True)
    if not default:
        return None
    if list_accounts_for_property(conn, property_id):
        return None

    replace_property_links(conn, default["id"], [*default["property_ids"], property_id])
    logger.info(
        "property_auto_assigned",
        property_id=str(property_id),
        account_id=str(default["id"]),
    )
    return default["id"]


def list_properties(engine: Engine) -> list[dict[str, Any]]:
    with engine.connect() as conn:
        return list_active_properties(conn)


def get_property_details(engine: Engine, property_id: UUID) -> dict[str, Any]:
    with engine.connect() as conn:
        return _get_property_or_404(conn, property_id)


def create_property(engine: Engine, data: dict[str, Any]) -> dict[str, Any]:
    """
    Insert a property and auto-assign it to the default account.

    A duplicate name surfaces as IntegrityError and is translated by the
    API's duplicate-key handler.
    """
    with engine.begin() as conn:
        property_id = insert_property(conn, data)
        assign_to_default_account(conn, property_id)
        return _get_property_or_404(conn, property_id)


def update_property_details(
    engine: Engine, property_id: UUID, update_data: dict[str, Any]
) -> dict[str, Any]:
    """
    Update a property. Address fields are merged into the stored address.
    """
    with engine.begin() as conn:
        existing = _get_property_or_404(conn, property_id)

        values = dict(update_data)
        if "address" in values:
            address = dict(existing.get("address") or {})
            address.update({k: v for k, v in values["address"].items() if v is not None})
            values["address"] = address

        if values:
            update_property(conn, property_id, values)
            logger.info("property_updated", property_id=str(property_id), fields=sorted(values))

        return _get_property_or_404(conn, property_id)


def delete_property(engine: Engine, property_id: UUID) -> None:
    """Soft delete. Accounts listing the property keep the (now stale) reference."""
    with engine.begin() as conn:
        _get_property_or_404(conn, property_id)
        soft_delete_property(conn, property_id)
    logger.info("property_deleted", property_id=str(property_id))


def spot_view(row: dict[str, Any]) -> dict[str, Any]:
    """Nest the flat size and price columns the way the API exposes them."""
    return {
        "id": row["id"],
        "property_id": row["property_id"],
        "spot_number": row["spot_number"],
        "status": row["status"],
        "size": {"length": row["length"], "width": row["width"]},
        "price": {
            "daily": row["price_daily"],
            "weekly": row["price_weekly"],
            "monthly": row["price_monthly"],
        },
        "description": row["description"],
        "images": row["images"] or [],
        "is_active": row["is_active"],
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


def flatten_spot_payload(data: dict[str, Any]) -> dict[str, Any]:
    values = {k: v for k, v in data.items() if k not in ("size", "price")}
    size = data.get("size")
    if size is not None:
        values.update(length=size["length"], width=size["width"])
    price = data.get("price")
    if price is not None:
        values.update(
            price_daily=price["daily"],
            price_weekly=price["weekly"],
            price_monthly=price["monthly"],
        )
    return values


def create_spot(engine: Engine, property_id: UUID, data: dict[str, Any]) -> dict[str, Any]:
    with engine.begin() as conn:
        _get_property_or_404(conn, property_id)
        spot_id = insert_spot(conn, property_id, flatten_spot_payload(data))
        row = get_spot(conn, spot_id)

    logger.info("spot_created", property_id=str(property_id), spot_id=str(spot_id))
    return spot_view(row)  # type: ignore[arg-type]


def list_property_spots(engine: Engine, property_id: UUID) -> list[dict[str, Any]]:
    with engine.connect() as conn:
        _get_property_or_404(conn, property_id)
        return [spot_view(row) for row in list_spots(conn, property_id)]


def update_spot_details(engine: Engine, spot_id: UUID, update_data: dict[str, Any]) -> dict[str, Any]:
    with engine.begin() as conn:
        if not get_spot(conn, spot_id):
            raise NotFoundError(f"Spot {spot_id} not found")

        values = flatten_spot_payload(update_data)
        if values:
            update_spot(conn, spot_id, values)
        row = get_spot(conn, spot_id)

    logger.info("spot_updated", spot_id=str(spot_id), fields=sorted(update_data))
    return spot_view(row)  # type: ignore[arg-type]
