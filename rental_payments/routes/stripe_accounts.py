from __future__ import annotations

from typing import Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from rental_payments.dependencies import get_db_engine
from rental_payments.errors import RentalPaymentsError
from rental_payments.routes._account_helpers import (
    build_update_data,
    require_update_data_or_400,
    validate_key_formats_or_400,
)
from rental_payments.schemas.properties import PropertyOut
from rental_payments.schemas.stripe_accounts import (
    AccountStatistics,
    AvailableAccountsForProperty,
    PropertyIdsPayload,
    PropertyWithStripeAccount,
    SetDefaultPayload,
    StripeAccountCreatePayload,
    StripeAccountOut,
    StripeAccountsOverview,
    StripeAccountUpdatePayload,
)
from rental_payments.services.stripe_accounts import (
    create_stripe_account,
    delete_stripe_account,
    get_account,
    get_accounts_overview,
    get_available_accounts_for_property,
    get_default_account,
    get_statistics,
    link_properties,
    list_accounts_by_property,
    list_assignable_properties,
    list_unassigned_properties,
    register_account_webhook,
    set_default_account,
    unlink_properties,
    update_stripe_account,
    verify_stripe_account,
)

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "/stripe-accounts",
    status_code=status.HTTP_201_CREATED,
    response_model=StripeAccountOut,
)
def create_stripe_account_endpoint(
    payload: StripeAccountCreatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Create a Stripe account.

    The key is verified with Stripe before anything is stored. The account
    is saved as verified and active.

    Args:
        payload: Account fields including the write-only secret key
        engine: Database engine

    Returns:
        dict: The created account (without the secret key)
    """
    try:
        validate_key_formats_or_400(
            payload.account_type, payload.stripe_secret_key, payload.stripe_account_id
        )
        return create_stripe_account(engine, payload.model_dump())

    except (HTTPException, RentalPaymentsError, IntegrityError):
        raise
    except Exception as e:
        logger.exception("stripe_account_creation_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/stripe-accounts", response_model=StripeAccountsOverview)
def get_stripe_accounts_overview(engine: Engine = Depends(get_db_engine)) -> dict[str, Any]:
    """All accounts with their properties, unassigned properties and summary counts."""
    return get_accounts_overview(engine)


@router.get("/stripe-accounts/statistics", response_model=AccountStatistics)
def get_stripe_account_statistics(engine: Engine = Depends(get_db_engine)) -> dict[str, int]:
    return get_statistics(engine)


@router.get("/stripe-accounts/default", response_model=StripeAccountOut)
def get_default_stripe_account_endpoint(
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    return get_default_account(engine)


@router.post("/stripe-accounts/default", response_model=StripeAccountOut)
def set_default_stripe_account_endpoint(
    payload: SetDefaultPayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Make an account the default. Any previous default is cleared in the same
    transaction.
    """
    try:
        return set_default_account(engine, payload.account_id)

    except (HTTPException, RentalPaymentsError, IntegrityError):
        raise
    except Exception as e:
        logger.exception("set_default_failed", account_id=str(payload.account_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get(
    "/stripe-accounts/unassigned-properties",
    response_model=list[PropertyWithStripeAccount],
)
def get_unassigned_properties(engine: Engine = Depends(get_db_engine)) -> list[dict[str, Any]]:
    return list_unassigned_properties(engine)


@router.get(
    "/stripe-accounts/by-property/{property_id}",
    response_model=list[StripeAccountOut],
)
def get_accounts_by_property(
    property_id: UUID, engine: Engine = Depends(get_db_engine)
) -> list[dict[str, Any]]:
    return list_accounts_by_property(engine, property_id)


@router.get(
    "/stripe-accounts/available/{property_id}",
    response_model=AvailableAccountsForProperty,
)
def get_available_accounts(
    property_id: UUID, engine: Engine = Depends(get_db_engine)
) -> dict[str, Any]:
    """Dedicated, global and default accounts usable for one property."""
    return get_available_accounts_for_property(engine, property_id)


@router.get("/stripe-accounts/{account_id}", response_model=StripeAccountOut)
def get_stripe_account_endpoint(
    account_id: UUID, engine: Engine = Depends(get_db_engine)
) -> dict[str, Any]:
    return get_account(engine, account_id)


@router.patch("/stripe-accounts/{account_id}", response_model=StripeAccountOut)
def update_stripe_account_endpoint(
    account_id: UUID,
    payload: StripeAccountUpdatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Update an account.

    Rejected with 409 when it would become a second default, and with 400
    when its resulting property list names a missing or deleted property.

    Args:
        account_id: Stripe account record ID
        payload: Fields to update; property_ids replaces the whole list
        engine: Database engine

    Returns:
        dict: The updated account
    """
    try:
        update_data = build_update_data(payload)
        require_update_data_or_400(update_data)
        return update_stripe_account(engine, account_id, update_data)

    except (HTTPException, RentalPaymentsError, IntegrityError):
        raise
    except Exception as e:
        logger.exception("stripe_account_update_failed", account_id=str(account_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/stripe-accounts/{account_id}", status_code=status.HTTP_200_OK)
def delete_stripe_account_endpoint(
    account_id: UUID, engine: Engine = Depends(get_db_engine)
) -> dict[str, str]:
    """Soft delete an account and remove its Stripe webhook endpoint."""
    try:
        delete_stripe_account(engine, account_id)
        return {"message": f"Stripe account {account_id} deleted"}

    except (HTTPException, RentalPaymentsError):
        raise
    except Exception as e:
        logger.exception("stripe_account_delete_failed", account_id=str(account_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/stripe-accounts/{account_id}/link-properties", response_model=StripeAccountOut)
def link_properties_endpoint(
    account_id: UUID,
    payload: PropertyIdsPayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        return link_properties(engine, account_id, payload.property_ids)

    except (HTTPException, RentalPaymentsError, IntegrityError):
        raise
    except Exception as e:
        logger.exception("link_properties_failed", account_id=str(account_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/stripe-accounts/{account_id}/unlink-properties", response_model=StripeAccountOut)
def unlink_properties_endpoint(
    account_id: UUID,
    payload: PropertyIdsPayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        return unlink_properties(engine, account_id, payload.property_ids)

    except (HTTPException, RentalPaymentsError):
        raise
    except Exception as e:
        logger.exception("unlink_properties_failed", account_id=str(account_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get(
    "/stripe-accounts/{account_id}/assignable-properties",
    response_model=list[PropertyOut],
)
def get_assignable_properties(
    account_id: UUID, engine: Engine = Depends(get_db_engine)
) -> list[dict[str, Any]]:
    """Properties not yet linked to any account."""
    return list_assignable_properties(engine, account_id)


@router.post("/stripe-accounts/{account_id}/verify")
def verify_stripe_account_endpoint(
    account_id: UUID, engine: Engine = Depends(get_db_engine)
) -> dict[str, Any]:
    """
    Re-verify the account's credentials with Stripe.

    Returns:
        dict: is_valid, charges_enabled and the account
    """
    try:
        result = verify_stripe_account(engine, account_id)
        result["account"] = StripeAccountOut.model_validate(result["account"])
        return result

    except (HTTPException, RentalPaymentsError):
        raise
    except Exception as e:
        logger.exception("stripe_account_verify_failed", account_id=str(account_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/stripe-accounts/{account_id}/webhook", response_model=StripeAccountOut)
def register_webhook_endpoint(
    account_id: UUID, engine: Engine = Depends(get_db_engine)
) -> dict[str, Any]:
    """
    Register a Stripe webhook endpoint for the account.

    Returns 502 and stores webhook_status FAILED when Stripe rejects it.
    """
    try:
        return register_account_webhook(engine, account_id)

    except (HTTPException, RentalPaymentsError):
        raise
    except Exception as e:
        logger.exception("webhook_registration_failed", account_id=str(account_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
