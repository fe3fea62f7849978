"""
Stripe account orchestration: creation, updates, property links, default
selection, verification and webhook registration.

Every write runs inside one ``engine.begin()`` block. Validation happens in
that block before the first write, so a rejected request leaves the account
and its association list as they were. Remote Stripe calls are made outside
the database transaction.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence
from uuid import UUID

import requests
import structlog
from sqlalchemy.engine import Connection, Engine

from rental_payments.config import STRIPE_VERIFY
from rental_payments.db.readers.properties import (
    list_active_properties,
    list_property_briefs,
    property_exists,
)
from rental_payments.db.readers.stripe_accounts import (
    find_account_by_unique_fields,
    find_other_default_account_id,
    get_account_statistics,
    get_default_stripe_account,
    get_stripe_account,
    get_stripe_secret_key,
    list_accounts_for_property,
    list_active_stripe_accounts,
)
from rental_payments.db.writers.stripe_accounts import (
    clear_default_flags,
    insert_stripe_account,
    replace_property_links,
    soft_delete_stripe_account,
    update_stripe_account_fields,
    update_webhook,
)
from rental_payments.errors import (
    DefaultAccountConflictError,
    DuplicateAccountError,
    InactiveAccountError,
    NotFoundError,
    PropertyAssignmentConflictError,
    PropertyReferenceError,
    StripeApiError,
    StripeVerificationError,
)
from rental_payments.metrics import account_writes, validation_rejections
from rental_payments.models.enums import AccountType, WebhookStatus
from rental_payments.network.stripe_client import check_key_formats, verify_account
from rental_payments.services.account_validation import (
    run_pre_save_checks,
    validate_property_references,
)
from rental_payments.services.assignment import (
    assigned_property_ids,
    is_available_global_account,
    resolve_without_accounts,
)
from rental_payments.services.webhook_registration import delete_webhook, register_webhook

logger = structlog.get_logger(__name__)

DUPLICATE_MESSAGES = {
    "name": "Stripe account with this name already exists",
    "stripe_secret_key": "Stripe secret key is already in use by another account",
    "stripe_account_id": "Stripe account ID already exists",
}


def dedupe(property_ids: Iterable[UUID]) -> list[UUID]:
    """Drop repeated ids, keeping the first occurrence of each."""
    seen: set[UUID] = set()
    result = []
    for property_id in property_ids:
        if property_id not in seen:
            seen.add(property_id)
            result.append(property_id)
    return result


def _with_properties(conn: Connection, account: dict[str, Any]) -> dict[str, Any]:
    account["properties"] = list_property_briefs(conn, account.get("property_ids") or [])
    return account


def _get_account_or_404(conn: Connection, account_id: UUID) -> dict[str, Any]:
    account = get_stripe_account(conn, account_id)
    if not account:
        raise NotFoundError(f"Stripe account {account_id} not found")
    return account


def _get_secret_or_404(conn: Connection, account_id: UUID) -> str:
    secret_key = get_stripe_secret_key(conn, account_id)
    if not secret_key:
        raise NotFoundError(f"Stripe account {account_id} not found")
    return secret_key


def get_account(engine: Engine, account_id: UUID) -> dict[str, Any]:
    with engine.connect() as conn:
        return _with_properties(conn, _get_account_or_404(conn, account_id))


def create_stripe_account(engine: Engine, data: dict[str, Any]) -> dict[str, Any]:
    """
    Create a Stripe account after duplicate, Stripe and invariant checks.

    STANDARD accounts do not keep a stripe_account_id. A new account asking
    to be default is rejected while another default exists.

    Args:
        engine: Database engine
        data: Validated create payload (includes stripe_secret_key)

    Returns:
        dict: The created account with its properties

    Raises:
        DuplicateAccountError: Name, secret key or Stripe account id in use
        StripeVerificationError: Stripe rejected the credentials
        DefaultAccountConflictError: Another default account exists
        PropertyReferenceError: A property id is missing or deleted
    """
    data = dict(data)
    account_type = AccountType(data.get("account_type") or AccountType.STANDARD)
    if account_type is AccountType.STANDARD:
        data["stripe_account_id"] = None
    property_ids = dedupe(data.pop("property_ids", None) or [])

    with engine.connect() as conn:
        duplicate_field = find_account_by_unique_fields(
            conn,
            name=data["name"],
            stripe_secret_key=data["stripe_secret_key"],
            stripe_account_id=data.get("stripe_account_id"),
        )
    if duplicate_field:
        validation_rejections.labels(reason="duplicate").inc()
        account_writes.labels(operation="create", outcome="rejected").inc()
        raise DuplicateAccountError(
            DUPLICATE_MESSAGES[duplicate_field], path=duplicate_field
        )

    if STRIPE_VERIFY:
        verify_account(account_type, data["stripe_secret_key"], data.get("stripe_account_id"))

    with engine.begin() as conn:
        if data.get("is_default_account") and find_other_default_account_id(conn) is not None:
            validation_rejections.labels(reason="default_conflict").inc()
            account_writes.labels(operation="create", outcome="rejected").inc()
            raise DefaultAccountConflictError(
                "Another account is already set as default. Please unset it first."
            )

        run_pre_save_checks(conn, None, bool(data.get("is_default_account")), property_ids)

        data.update(account_type=account_type, is_verified=True, is_active=True)
        account_id = insert_stripe_account(conn, data)
        if property_ids:
            replace_property_links(conn, account_id, property_ids)

        account = _with_properties(conn, _get_account_or_404(conn, account_id))

    account_writes.labels(operation="create", outcome="success").inc()
    logger.info(
        "stripe_account_created",
        account_id=str(account_id),
        account_type=account_type.value,
        property_count=len(property_ids),
    )
    return account


CREDENTIAL_FIELDS = ("stripe_secret_key", "account_type", "stripe_account_id")


def _recheck_credentials(
    existing: dict[str, Any], current_secret_key: str, fields: dict[str, Any]
) -> None:
    """
    Check the credentials an update leaves the account with.

    Formats are always checked. The account is re-verified with Stripe when
    STRIPE_VERIFY is on; otherwise it is marked unverified. Mutates ``fields``.

    Raises:
        StripeVerificationError: On a malformed key or id, or a Stripe rejection
    """
    account_type = AccountType(fields.get("account_type", existing["account_type"]))
    secret_key = fields.get("stripe_secret_key") or current_secret_key
    if account_type is AccountType.STANDARD:
        fields["stripe_account_id"] = None
    stripe_account_id = fields.get("stripe_account_id", existing.get("stripe_account_id"))

    check_key_formats(account_type, secret_key, stripe_account_id)
    if STRIPE_VERIFY:
        verify_account(account_type, secret_key, stripe_account_id)
        fields["is_verified"] = True
    else:
        fields["is_verified"] = False


def update_stripe_account(
    engine: Engine, account_id: UUID, update_data: dict[str, Any]
) -> dict[str, Any]:
    """
    Apply a partial update to an existing account.

    The pre-save checks run against the state the account will have after
    the update: the resulting default flag and the resulting association list.
    Changing the secret key, account type or Stripe account id re-checks the
    resulting credentials and resets is_verified.

    Args:
        engine: Database engine
        account_id: Stripe account record ID
        update_data: Non-None payload fields

    Returns:
        dict: The updated account with its properties

    Raises:
        StripeVerificationError: The resulting credentials are malformed or rejected
    """
    fields = dict(update_data)
    new_property_ids = fields.pop("property_ids", None)

    if any(field in fields for field in CREDENTIAL_FIELDS):
        with engine.connect() as conn:
            existing = _get_account_or_404(conn, account_id)
            current_secret_key = _get_secret_or_404(conn, account_id)
        try:
            _recheck_credentials(existing, current_secret_key, fields)
        except StripeVerificationError:
            account_writes.labels(operation="update", outcome="rejected").inc()
            raise

    with engine.begin() as conn:
        existing = _get_account_or_404(conn, account_id)

        resulting_default = fields.get("is_default_account", existing["is_default_account"])
        resulting_ids = (
            dedupe(new_property_ids)
            if new_property_ids is not None
            else list(existing["property_ids"])
        )

        try:
            run_pre_save_checks(conn, account_id, bool(resulting_default), resulting_ids)
        except (PropertyReferenceError, DefaultAccountConflictError):
            account_writes.labels(operation="update", outcome="rejected").inc()
            raise

        if fields:
            update_stripe_account_fields(conn, account_id, fields)
        if new_property_ids is not None:
            replace_property_links(conn, account_id, resulting_ids)

        account = _with_properties(conn, _get_account_or_404(conn, account_id))

    account_writes.labels(operation="update", outcome="success").inc()
    logger.info(
        "stripe_account_updated",
        account_id=str(account_id),
        fields=sorted(fields),
        links_replaced=new_property_ids is not None,
    )
    return account


def link_properties(
    engine: Engine, account_id: UUID, property_ids: Sequence[UUID]
) -> dict[str, Any]:
    """
    Append properties to an account's association list.

    Properties already linked to a different non-deleted account are
    rejected. Existing links keep their position; new ids are appended in
    request order without repeats.

    Raises:
        PropertyReferenceError: A property id is missing or deleted
        PropertyAssignmentConflictError: A property belongs to another account
    """
    requested = dedupe(property_ids)

    with engine.begin() as conn:
        existing = _get_account_or_404(conn, account_id)
        validate_property_references(conn, requested)

        conflicts = [
            property_id
            for property_id in requested
            if any(acct["id"] != account_id for acct in list_accounts_for_property(conn, property_id))
        ]
        if conflicts:
            validation_rejections.labels(reason="assignment_conflict").inc()
            account_writes.labels(operation="link", outcome="rejected").inc()
            logger.warning(
                "property_assignment_conflict",
                account_id=str(account_id),
                property_ids=[str(pid) for pid in conflicts],
            )
            raise PropertyAssignmentConflictError(conflicts)

        merged = dedupe([*existing["property_ids"], *requested])
        run_pre_save_checks(conn, account_id, bool(existing["is_default_account"]), merged)
        replace_property_links(conn, account_id, merged)

        account = _with_properties(conn, _get_account_or_404(conn, account_id))

    account_writes.labels(operation="link", outcome="success").inc()
    logger.info("properties_linked", account_id=str(account_id), count=len(requested))
    return account


def unlink_properties(
    engine: Engine, account_id: UUID, property_ids: Sequence[UUID]
) -> dict[str, Any]:
    """
    Remove properties from an account's association list.

    Reference validation is not applied so stale (deleted) property ids can
    be removed.
    """
    to_remove = set(property_ids)

    with engine.begin() as conn:
        existing = _get_account_or_404(conn, account_id)
        remaining = [pid for pid in existing["property_ids"] if pid not in to_remove]
        replace_property_links(conn, account_id, remaining)
        account = _with_properties(conn, _get_account_or_404(conn, account_id))

    account_writes.labels(operation="unlink", outcome="success").inc()
    logger.info(
        "properties_unlinked",
        account_id=str(account_id),
        removed=len(existing["property_ids"]) - len(remaining),
    )
    return account


def set_default_account(engine: Engine, account_id: UUID) -> dict[str, Any]:
    """
    Make an account the default: clear every default flag, then set this one.

    Both statements run in one transaction.
    """
    with engine.begin() as conn:
        account = _get_account_or_404(conn, account_id)
        if not account["is_active"]:
            account_writes.labels(operation="set_default", outcome="rejected").inc()
            raise InactiveAccountError("Only active accounts can be set as default")

        clear_default_flags(conn)
        update_stripe_account_fields(conn, account_id, {"is_default_account": True})
        account = _with_properties(conn, _get_account_or_404(conn, account_id))

    account_writes.labels(operation="set_default", outcome="success").inc()
    logger.info("default_account_set", account_id=str(account_id))
    return account


def get_default_account(engine: Engine) -> dict[str, Any]:
    with engine.connect() as conn:
        account = get_default_stripe_account(conn)
        if not account:
            raise NotFoundError("No default Stripe account configured")
        return _with_properties(conn, account)


def delete_stripe_account(engine: Engine, account_id: UUID) -> None:
    """
    Soft delete an account, then remove its Stripe webhook endpoint if any.

    Webhook removal is best effort and happens after the commit.
    """
    with engine.begin() as conn:
        account = _get_account_or_404(conn, account_id)
        secret_key = _get_secret_or_404(conn, account_id)
        soft_delete_stripe_account(conn, account_id)

    account_writes.labels(operation="delete", outcome="success").inc()
    logger.info("stripe_account_deleted", account_id=str(account_id))

    if account.get("webhook_id"):
        delete_webhook(str(account_id), secret_key, account["webhook_id"])


def get_accounts_overview(engine: Engine) -> dict[str, Any]:
    """
    Accounts with their properties, unassigned properties, the default
    account and summary counts.
    """
    with engine.connect() as conn:
        properties = list_active_properties(conn)
        accounts = [_with_properties(conn, acct) for acct in list_active_stripe_accounts(conn)]

        unassigned = [
            {"id": p["id"], "name": p["name"], "address": p["address"]}
            for p in resolve_without_accounts(properties, accounts)
        ]

        default = next((acct for acct in accounts if acct["is_default_account"]), None)
        default_overview = None
        if default:
            default_overview = {
                "id": default["id"],
                "name": default["name"],
                "stripe_account_id": default.get("stripe_account_id"),
                "is_default_account": True,
                "properties": default["properties"],
            }

    return {
        "stripe_accounts": accounts,
        "unassigned_properties": unassigned,
        "default_account": default_overview,
        "summary": {
            "total_stripe_accounts": len(accounts),
            "total_properties": len(properties),
            "assigned_properties": len(properties) - len(unassigned),
            "unassigned_properties": len(unassigned),
            "has_default_account": default is not None,
            "default_account_properties_count": (
                len(default["properties"]) if default else 0
            ),
        },
    }


def list_unassigned_properties(engine: Engine) -> list[dict[str, Any]]:
    with engine.connect() as conn:
        properties = list_active_properties(conn)
        accounts = list_active_stripe_accounts(conn)
    return resolve_without_accounts(properties, accounts)


def list_accounts_by_property(engine: Engine, property_id: UUID) -> list[dict[str, Any]]:
    with engine.connect() as conn:
        if not property_exists(conn, property_id):
            raise NotFoundError(f"Property {property_id} not found")
        return [_with_properties(conn, a) for a in list_accounts_for_property(conn, property_id)]


def get_available_accounts_for_property(engine: Engine, property_id: UUID) -> dict[str, Any]:
    """
    Accounts usable for payments on one property.

    property_accounts: active accounts that list the property.
    global_accounts: global, active and verified accounts.
    default_account: the active default account, if any.
    """
    with engine.connect() as conn:
        if not property_exists(conn, property_id):
            raise NotFoundError(f"Property {property_id} not found")

        property_accounts = [
            _with_properties(conn, acct)
            for acct in list_accounts_for_property(conn, property_id)
            if acct["is_active"]
        ]
        global_accounts = [
            _with_properties(conn, acct)
            for acct in list_active_stripe_accounts(conn)
            if is_available_global_account(acct)
        ]
        default = get_default_stripe_account(conn, active_only=True)
        if default:
            default = _with_properties(conn, default)

    return {
        "property_accounts": property_accounts,
        "global_accounts": global_accounts,
        "default_account": default,
        "has_property_accounts": len(property_accounts) > 0,
        "has_global_accounts": len(global_accounts) > 0,
        "has_default_account": default is not None,
    }


def list_assignable_properties(engine: Engine, account_id: UUID) -> list[dict[str, Any]]:
    """Properties the account already holds or that no other account lists."""
    with engine.connect() as conn:
        _get_account_or_404(conn, account_id)
        properties = list_active_properties(conn)
        others = [a for a in list_active_stripe_accounts(conn) if a["id"] != account_id]
    taken = assigned_property_ids(others)
    return [p for p in properties if p["id"] not in taken]


def get_statistics(engine: Engine) -> dict[str, int]:
    with engine.connect() as conn:
        return get_account_statistics(conn)


def verify_stripe_account(engine: Engine, account_id: UUID) -> dict[str, Any]:
    """
    Re-verify an account with Stripe and store the outcome in is_verified.

    A rejection clears is_verified before the error is raised.
    """
    with engine.connect() as conn:
        account = _get_account_or_404(conn, account_id)
        secret_key = _get_secret_or_404(conn, account_id)

    account_type = AccountType(account["account_type"])
    try:
        result = verify_account(account_type, secret_key, account.get("stripe_account_id"))
    except StripeVerificationError:
        with engine.begin() as conn:
            update_stripe_account_fields(conn, account_id, {"is_verified": False})
        account_writes.labels(operation="verify", outcome="rejected").inc()
        raise

    with engine.begin() as conn:
        update_stripe_account_fields(conn, account_id, {"is_verified": True})
        account = _with_properties(conn, _get_account_or_404(conn, account_id))

    account_writes.labels(operation="verify", outcome="success").inc()
    return {"is_valid": result["is_valid"], "charges_enabled": result["charges_enabled"], "account": account}


def register_account_webhook(engine: Engine, account_id: UUID) -> dict[str, Any]:
    """
    Register a Stripe webhook endpoint for the account.

    On success the webhook id, url and creation time are stored with status
    ACTIVE. On failure the status becomes FAILED and StripeApiError is raised.
    """
    with engine.connect() as conn:
        _get_account_or_404(conn, account_id)
        secret_key = _get_secret_or_404(conn, account_id)

    webhook_id: Optional[str] = None
    error: Optional[Exception] = None
    try:
        webhook_id, webhook_url = register_webhook(str(account_id), secret_key)
    except requests.RequestException as e:
        error = e

    if webhook_id is None:
        with engine.begin() as conn:
            update_webhook(conn, account_id, WebhookStatus.FAILED)
        account_writes.labels(operation="webhook", outcome="rejected").inc()
        raise StripeApiError("Failed to register Stripe webhook") from error

    with engine.begin() as conn:
        update_webhook(
            conn, account_id, WebhookStatus.ACTIVE, webhook_id=webhook_id, webhook_url=webhook_url
        )
        account = _with_properties(conn, _get_account_or_404(conn, account_id))

    account_writes.labels(operation="webhook", outcome="success").inc()
    return account
