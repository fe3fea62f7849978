from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from rental_payments.models.enums import AccountType, RecordStatus
from rental_payments.models.stripe_accounts import StripeAccount, StripeAccountProperty

# No stripe_secret_key: read paths never return it
ACCOUNT_COLUMNS = (
    StripeAccount.id,
    StripeAccount.name,
    StripeAccount.description,
    StripeAccount.stripe_account_id,
    StripeAccount.account_type,
    StripeAccount.is_active,
    StripeAccount.is_verified,
    StripeAccount.is_global_account,
    StripeAccount.is_default_account,
    StripeAccount.webhook_id,
    StripeAccount.webhook_url,
    StripeAccount.webhook_status,
    StripeAccount.webhook_created_at,
    StripeAccount.metadata_.label("metadata"),
    StripeAccount.created_at,
    StripeAccount.updated_at,
)

_NOT_DELETED = StripeAccount.record_status == RecordStatus.ACTIVE


def _attach_property_ids(conn: Connection, accounts: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Load each account's association list (in link order) into 'property_ids'."""
    if not accounts:
        return accounts

    ids = [acct["id"] for acct in accounts]
    result = conn.execute(
        select(StripeAccountProperty.account_id, StripeAccountProperty.property_id)
        .where(StripeAccountProperty.account_id.in_(ids))
        .order_by(StripeAccountProperty.account_id, StripeAccountProperty.position)
    )

    links: dict[UUID, list[UUID]] = {}
    for account_id, property_id in result:
        links.setdefault(account_id, []).append(property_id)

    for acct in accounts:
        acct["property_ids"] = links.get(acct["id"], [])
    return accounts


def list_active_stripe_accounts(conn: Connection) -> list[dict[str, Any]]:
    """
    Fetch all non-deleted Stripe accounts with their association lists, newest first.

    Args:
        conn (Connection): An active SQLAlchemy database connection.

    Returns:
        list[dict[str, Any]]: Account rows (no secret key) with 'property_ids'.
    """
    result = conn.execute(
        select(*ACCOUNT_COLUMNS)
        .where(_NOT_DELETED)
        .order_by(StripeAccount.created_at.desc(), StripeAccount.id)
    )
    return _attach_property_ids(conn, [dict(row) for row in result.mappings()])


def get_stripe_account(conn: Connection, account_id: UUID) -> Optional[dict[str, Any]]:
    """
    Fetch one non-deleted Stripe account with its association list.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        account_id (UUID): Stripe account record ID.

    Returns:
        Optional[dict[str, Any]]: The account row or None if missing or deleted.
    """
    row = (
        conn.execute(select(*ACCOUNT_COLUMNS).where(StripeAccount.id == account_id, _NOT_DELETED))
        .mappings()
        .fetchone()
    )
    if not row:
        return None
    return _attach_property_ids(conn, [dict(row)])[0]


def get_stripe_secret_key(conn: Connection, account_id: UUID) -> Optional[str]:
    """
    Get the secret key of a non-deleted account for server-side Stripe calls.

    The value must never be placed in a response body or a log line.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        account_id (UUID): Stripe account record ID.

    Returns:
        Optional[str]: Secret key or None if not found.
    """
    row = conn.execute(
        select(StripeAccount.stripe_secret_key).where(StripeAccount.id == account_id, _NOT_DELETED)
    ).fetchone()
    return row[0] if row else None


def find_other_default_account_id(
    conn: Connection, exclude_account_id: Optional[UUID] = None
) -> Optional[UUID]:
    """
    Find a non-deleted default account other than the given one.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        exclude_account_id (Optional[UUID]): Account to ignore (the one being saved).

    Returns:
        Optional[UUID]: ID of the conflicting default account, if any.
    """
    stmt = select(StripeAccount.id).where(StripeAccount.is_default_account.is_(True), _NOT_DELETED)
    if exclude_account_id is not None:
        stmt = stmt.where(StripeAccount.id != exclude_account_id)
    row = conn.execute(stmt.limit(1)).fetchone()
    return row[0] if row else None


def get_default_stripe_account(conn: Connection, active_only: bool = False) -> Optional[dict[str, Any]]:
    """
    Fetch the default account, optionally requiring it to be active.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        active_only (bool): If True, ignore a default account with is_active=False.

    Returns:
        Optional[dict[str, Any]]: The default account row or None.
    """
    stmt = select(*ACCOUNT_COLUMNS).where(StripeAccount.is_default_account.is_(True), _NOT_DELETED)
    if active_only:
        stmt = stmt.where(StripeAccount.is_active.is_(True))
    row = conn.execute(stmt.limit(1)).mappings().fetchone()
    if not row:
        return None
    return _attach_property_ids(conn, [dict(row)])[0]


def list_accounts_for_property(conn: Connection, property_id: UUID) -> list[dict[str, Any]]:
    """
    Fetch non-deleted accounts whose association list contains the property.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        property_id (UUID): Property ID.

    Returns:
        list[dict[str, Any]]: Matching account rows, newest first.
    """
    result = conn.execute(
        select(*ACCOUNT_COLUMNS)
        .join(StripeAccountProperty, StripeAccountProperty.account_id == StripeAccount.id)
        .where(StripeAccountProperty.property_id == property_id, _NOT_DELETED)
        .order_by(StripeAccount.created_at.desc(), StripeAccount.id)
    )
    return _attach_property_ids(conn, [dict(row) for row in result.mappings()])


def find_account_by_unique_fields(
    conn: Connection,
    name: Optional[str] = None,
    stripe_secret_key: Optional[str] = None,
    stripe_account_id: Optional[str] = None,
) -> Optional[str]:
    """
    Report which unique field of a new account collides with an existing account.

    Soft-deleted accounts are included: the unique constraints cover every row.
    Checked in order: name, secret key, Stripe account id.

    Returns:
        Optional[str]: 'name', 'stripe_secret_key', 'stripe_account_id' or None.
    """
    checks = (
        ("name", StripeAccount.name, name),
        ("stripe_secret_key", StripeAccount.stripe_secret_key, stripe_secret_key),
        ("stripe_account_id", StripeAccount.stripe_account_id, stripe_account_id),
    )
    for field, column, value in checks:
        if value is None:
            continue
        hit = conn.execute(select(StripeAccount.id).where(column == value).limit(1))
        if hit.fetchone() is not None:
            return field
    return None


def get_account_statistics(conn: Connection) -> dict[str, int]:
    """
    Count non-deleted accounts by status flag and account type.

    Returns:
        dict[str, int]: total, active, verified, default, standard and connect counts.
    """

    def count_where(*conditions: Any) -> Any:
        return func.count(StripeAccount.id).filter(*conditions)

    row = conn.execute(
        select(
            func.count(StripeAccount.id).label("total_accounts"),
            count_where(StripeAccount.is_active.is_(True)).label("active_accounts"),
            count_where(StripeAccount.is_verified.is_(True)).label("verified_accounts"),
            count_where(StripeAccount.is_default_account.is_(True)).label("default_accounts"),
            count_where(StripeAccount.account_type == AccountType.STANDARD).label(
                "standard_accounts"
            ),
            count_where(StripeAccount.account_type == AccountType.CONNECT).label(
                "connect_accounts"
            ),
        ).where(_NOT_DELETED)
    ).mappings().one()
    return {key: int(value or 0) for key, value in row.items()}
