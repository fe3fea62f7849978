"""
Pre-save validation for Stripe account writes.

These checks run on the account write path before anything is written, and
inside the same transaction as the write. Any failure raises and the
caller's ``engine.begin()`` block rolls back, so a rejected write leaves the
account exactly as it was.
"""

from __future__ import annotations

from typing import Optional, Sequence
from uuid import UUID

import structlog
from sqlalchemy.engine import Connection

from rental_payments.db.readers.properties import get_property_statuses
from rental_payments.db.readers.stripe_accounts import find_other_default_account_id
from rental_payments.errors import DefaultAccountConflictError, PropertyReferenceError
from rental_payments.metrics import validation_rejections
from rental_payments.models.enums import RecordStatus

logger = structlog.get_logger(__name__)


def validate_property_references(conn: Connection, property_ids: Sequence[UUID]) -> None:
    """
    Ensure every id in an association list names a non-deleted property.

    Args:
        conn: Database connection
        property_ids: Association list about to be saved

    Raises:
        PropertyReferenceError: For the first id that is missing or soft-deleted
    """
    if not property_ids:
        return

    statuses = get_property_statuses(conn, property_ids)
    for property_id in property_ids:
        if statuses.get(property_id) is not RecordStatus.ACTIVE:
            validation_rejections.labels(reason="property_reference").inc()
            logger.warning("invalid_property_reference", property_id=str(property_id))
            raise PropertyReferenceError(property_id)


def ensure_single_default(conn: Connection, account_id: UUID) -> None:
    """
    Reject saving an existing account as default while another default exists.

    Args:
        conn: Database connection
        account_id: The account being saved as default

    Raises:
        DefaultAccountConflictError: If another non-deleted account is default
    """
    conflicting_id = find_other_default_account_id(conn, exclude_account_id=account_id)
    if conflicting_id is not None:
        validation_rejections.labels(reason="default_conflict").inc()
        logger.warning(
            "default_account_conflict",
            account_id=str(account_id),
            existing_default_id=str(conflicting_id),
        )
        raise DefaultAccountConflictError()


def run_pre_save_checks(
    conn: Connection,
    account_id: Optional[UUID],
    is_default_account: bool,
    property_ids: Sequence[UUID],
) -> None:
    """
    Run all pre-save checks for the resulting state of an account.

    The default-account check only applies to updates of existing records
    (account_id is not None). New accounts are guarded by the create
    service and by the partial unique index on is_default_account.

    Args:
        conn: Database connection
        account_id: ID of the account being updated, None for a new account
        is_default_account: Default flag the record will have after the write
        property_ids: Association list the record will have after the write
    """
    validate_property_references(conn, property_ids)

    if account_id is not None and is_default_account:
        ensure_single_default(conn, account_id)
