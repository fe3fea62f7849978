import uuid
from typing import Any, Sequence
from uuid import UUID

import structlog
from sqlalchemy import delete, insert, update
from sqlalchemy.engine import Connection

from rental_payments.models.enums import AccountType, RecordStatus, WebhookStatus
from rental_payments.models.stripe_accounts import StripeAccount, StripeAccountProperty
from rental_payments.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

# DML goes through the Table: the "metadata" column is mapped as metadata_ on the model
stripe_accounts = StripeAccount.__table__


def insert_stripe_account(conn: Connection, data: dict[str, Any]) -> UUID:
    """
    Insert a new Stripe account row (without its property links).

    Args:
        conn (Connection): SQLAlchemy DB connection (inside a transaction).
        data (dict[str, Any]): Validated account fields including stripe_secret_key.

    Returns:
        UUID: ID of the created account.
    """
    now = utc_now()
    account_id = uuid.uuid4()

    conn.execute(
        insert(stripe_accounts).values(
            id=account_id,
            name=data["name"],
            description=data.get("description"),
            stripe_account_id=data.get("stripe_account_id"),
            stripe_secret_key=data["stripe_secret_key"],
            account_type=data.get("account_type") or AccountType.STANDARD,
            is_active=data.get("is_active", True),
            is_verified=data.get("is_verified", False),
            is_global_account=data.get("is_global_account", False),
            is_default_account=data.get("is_default_account", False),
            webhook_status=WebhookStatus.INACTIVE,
            metadata=data.get("metadata"),
            record_status=RecordStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
    )

    logger.info("stripe_account_inserted", account_id=str(account_id))
    return account_id


def update_stripe_account_fields(conn: Connection, account_id: UUID, data: dict[str, Any]) -> None:
    """
    Update scalar fields of a Stripe account.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        account_id (UUID): Stripe account record ID.
        data (dict): Fields to update, keyed by API field name.
    """
    values = dict(data)
    values["updated_at"] = utc_now()

    conn.execute(update(stripe_accounts).where(stripe_accounts.c.id == account_id).values(**values))


def replace_property_links(conn: Connection, account_id: UUID, property_ids: Sequence[UUID]) -> None:
    """
    Replace an account's association list, preserving the given order.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        account_id (UUID): Stripe account record ID.
        property_ids (Sequence[UUID]): New association list (already de-duplicated).
    """
    conn.execute(
        delete(StripeAccountProperty).where(StripeAccountProperty.account_id == account_id)
    )
    if property_ids:
        conn.execute(
            insert(StripeAccountProperty),
            [
                {"account_id": account_id, "property_id": property_id, "position": position}
                for position, property_id in enumerate(property_ids)
            ],
        )
    conn.execute(
        update(StripeAccount).where(StripeAccount.id == account_id).values(updated_at=utc_now())
    )


def clear_default_flags(conn: Connection) -> None:
    """Unset is_default_account on every non-deleted account."""
    conn.execute(
        update(StripeAccount)
        .where(
            StripeAccount.record_status == RecordStatus.ACTIVE,
            StripeAccount.is_default_account.is_(True),
        )
        .values(is_default_account=False, updated_at=utc_now())
    )


def soft_delete_stripe_account(conn: Connection, account_id: UUID) -> None:
    """
    Soft delete an account: status DELETED, inactive, deleted_at stamped.

    The association list is kept as-is; resolution ignores deleted accounts.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        account_id (UUID): Stripe account record ID.
    """
    now = utc_now()

    conn.execute(
        update(StripeAccount)
        .where(StripeAccount.id == account_id)
        .values(
            record_status=RecordStatus.DELETED,
            is_active=False,
            deleted_at=now,
            updated_at=now,
        )
    )


def update_webhook(
    conn: Connection,
    account_id: UUID,
    status: WebhookStatus,
    webhook_id: str | None = None,
    webhook_url: str | None = None,
) -> None:
    """
    Record the outcome of a webhook registration for an account.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        account_id (UUID): Stripe account record ID.
        status (WebhookStatus): ACTIVE on success, FAILED otherwise.
        webhook_id (str | None): Stripe webhook endpoint ID.
        webhook_url (str | None): URL Stripe will call.
    """
    now = utc_now()
    values: dict[str, Any] = {"webhook_status": status, "updated_at": now}
    if status is WebhookStatus.ACTIVE:
        values.update(webhook_id=webhook_id, webhook_url=webhook_url, webhook_created_at=now)

    conn.execute(update(stripe_accounts).where(stripe_accounts.c.id == account_id).values(**values))

    logger.info(
        "stripe_account_webhook_updated",
        account_id=str(account_id),
        webhook_status=status.value,
    )
