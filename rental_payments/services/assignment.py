"""
Resolution of Stripe accounts per property.

Three read-side views are derived from the non-deleted property and account
registries:

- resolve_all_with_accounts: every property with its dedicated account (if any)
- resolve_available_accounts: every property with its dedicated account plus
  all verified, active global accounts as fallbacks
- resolve_without_accounts: properties no account lists

The resolve_* functions are pure: they take already-loaded rows and return
new dicts. load_registries() is the only part that touches the database.

Dedicated-account tie-break: the property -> account map is filled while
iterating accounts in the order given, so when two accounts list the same
property the later one wins. load_registries() returns accounts newest
first, which makes the earliest-created account the winner.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence
from uuid import UUID

import structlog
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from rental_payments.db.readers.properties import list_active_properties
from rental_payments.db.readers.stripe_accounts import list_active_stripe_accounts
from rental_payments.errors import DataAccessError

logger = structlog.get_logger(__name__)

PropertyRow = Mapping[str, Any]
AccountRow = Mapping[str, Any]

PROPERTY_FIELDS = (
    "id",
    "name",
    "description",
    "address",
    "amenities",
    "images",
    "rules",
    "is_active",
    "created_at",
    "updated_at",
    "total_spots",
    "available_spots",
    "maintenance_spots",
)


def load_registries(conn: Connection) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """
    Read the non-deleted properties and accounts, both newest first.

    Args:
        conn: Database connection

    Returns:
        (properties, accounts): accounts carry 'property_ids' and no secret key

    Raises:
        DataAccessError: If either registry cannot be read
    """
    try:
        properties = list_active_properties(conn)
        accounts = list_active_stripe_accounts(conn)
    except SQLAlchemyError as e:
        logger.error("registry_read_failed", error=str(e))
        raise DataAccessError("Failed to read properties or Stripe accounts") from e

    return properties, accounts


def account_summary(account: AccountRow) -> dict[str, Any]:
    """Public view of an account used inside property views. Never includes the secret."""
    return {
        "id": account["id"],
        "name": account["name"],
        "description": account.get("description"),
        "stripe_account_id": account.get("stripe_account_id"),
        "is_active": bool(account["is_active"]),
        "is_verified": bool(account["is_verified"]),
        "is_global_account": bool(account["is_global_account"]),
        "is_default_account": bool(account["is_default_account"]),
    }


def is_available_global_account(account: AccountRow) -> bool:
    return bool(
        account["is_global_account"] and account["is_active"] and account["is_verified"]
    )


def build_dedicated_account_map(accounts: Sequence[AccountRow]) -> dict[UUID, dict[str, Any]]:
    """
    Map each linked property id to the summary of its dedicated account.

    Later accounts in the sequence overwrite earlier ones for the same property.
    """
    dedicated: dict[UUID, dict[str, Any]] = {}
    for account in accounts:
        summary = account_summary(account)
        for property_id in account.get("property_ids") or []:
            dedicated[property_id] = summary
    return dedicated


def assigned_property_ids(accounts: Sequence[AccountRow]) -> set[UUID]:
    return {pid for account in accounts for pid in account.get("property_ids") or []}


def _property_view(prop: PropertyRow) -> dict[str, Any]:
    return {field: prop.get(field) for field in PROPERTY_FIELDS}


def resolve_all_with_accounts(
    properties: Sequence[PropertyRow], accounts: Sequence[AccountRow]
) -> list[dict[str, Any]]:
    """
    Attach the dedicated account (or None) to every property.

    Args:
        properties: Non-deleted properties, newest first
        accounts: Non-deleted accounts with 'property_ids'

    Returns:
        One dict per property with 'stripe_account' and 'has_stripe_account'
    """
    dedicated = build_dedicated_account_map(accounts)

    results = []
    for prop in properties:
        stripe_account: Optional[dict[str, Any]] = dedicated.get(prop["id"])
        view = _property_view(prop)
        view["stripe_account"] = dict(stripe_account) if stripe_account else None
        view["has_stripe_account"] = stripe_account is not None
        results.append(view)
    return results


def resolve_available_accounts(
    properties: Sequence[PropertyRow], accounts: Sequence[AccountRow]
) -> list[dict[str, Any]]:
    """
    Attach the dedicated account and every usable global account to each property.

    Global accounts are not property-scoped: every property in the result
    gets the same list (global, active and verified accounts).

    Args:
        properties: Non-deleted properties, newest first
        accounts: Non-deleted accounts with 'property_ids'

    Returns:
        One dict per property with 'stripe_account' and 'available_stripe_accounts'
    """
    dedicated = build_dedicated_account_map(accounts)
    global_accounts = [account_summary(a) for a in accounts if is_available_global_account(a)]

    results = []
    for prop in properties:
        property_specific = dedicated.get(prop["id"])
        view = _property_view(prop)
        view["stripe_account"] = dict(property_specific) if property_specific else None
        view["available_stripe_accounts"] = {
            "property_specific": dict(property_specific) if property_specific else None,
            "global_accounts": [dict(g) for g in global_accounts],
            "has_property_specific": property_specific is not None,
            "has_global_accounts": len(global_accounts) > 0,
            "total_available_accounts": (1 if property_specific else 0) + len(global_accounts),
        }
        results.append(view)
    return results


def resolve_without_accounts(
    properties: Sequence[PropertyRow], accounts: Sequence[AccountRow]
) -> list[dict[str, Any]]:
    """
    Return the properties no non-deleted account lists.

    Args:
        properties: Non-deleted properties, newest first
        accounts: Non-deleted accounts with 'property_ids'

    Returns:
        One dict per unassigned property with stripe_account=None
    """
    assigned = assigned_property_ids(accounts)

    results = []
    for prop in properties:
        if prop["id"] in assigned:
            continue
        view = _property_view(prop)
        view["stripe_account"] = None
        view["has_stripe_account"] = False
        results.append(view)
    return results
