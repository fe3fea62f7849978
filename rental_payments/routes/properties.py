from __future__ import annotations

import time
from typing import Any, Callable, Sequence
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from rental_payments.dependencies import get_db_engine
from rental_payments.errors import RentalPaymentsError
from rental_payments.metrics import resolver_duration, resolver_requests
from rental_payments.routes._account_helpers import build_update_data, require_update_data_or_400
from rental_payments.schemas.properties import (
    PropertyCreatePayload,
    PropertyOut,
    PropertyUpdatePayload,
)
from rental_payments.schemas.spots import SpotCreatePayload, SpotOut, SpotUpdatePayload
from rental_payments.schemas.stripe_accounts import (
    PropertyWithAvailableAccounts,
    PropertyWithStripeAccount,
)
from rental_payments.services.assignment import (
    load_registries,
    resolve_all_with_accounts,
    resolve_available_accounts,
    resolve_without_accounts,
)
from rental_payments.services.properties import (
    create_property,
    create_spot,
    delete_property,
    get_property_details,
    list_properties,
    list_property_spots,
    update_property_details,
    update_spot_details,
)

logger = structlog.get_logger(__name__)
router = APIRouter()

Resolver = Callable[[Sequence[Any], Sequence[Any]], list[dict[str, Any]]]


def run_resolver(engine: Engine, view: str, resolver: Resolver) -> list[dict[str, Any]]:
    """Load both registries in one connection and apply a resolver view."""
    start_time = time.time()
    try:
        with engine.connect() as conn:
            properties, accounts = load_registries(conn)
        results = resolver(properties, accounts)
    except RentalPaymentsError:
        resolver_requests.labels(view=view, status="failure").inc()
        raise

    resolver_requests.labels(view=view, status="success").inc()
    resolver_duration.labels(view=view).observe(time.time() - start_time)
    logger.info("properties_resolved", view=view, count=len(results))
    return results


# Resolver views are registered before /properties/{property_id}


@router.get("/properties/stripe-details", response_model=list[PropertyWithStripeAccount])
def get_properties_with_stripe_details(
    engine: Engine = Depends(get_db_engine),
) -> list[dict[str, Any]]:
    """Every property with its dedicated Stripe account, if any."""
    return run_resolver(engine, "all_with_accounts", resolve_all_with_accounts)


@router.get(
    "/properties/available-stripe-accounts",
    response_model=list[PropertyWithAvailableAccounts],
)
def get_properties_with_available_accounts(
    engine: Engine = Depends(get_db_engine),
) -> list[dict[str, Any]]:
    """Every property with its dedicated account and the usable global accounts."""
    return run_resolver(engine, "available_accounts", resolve_available_accounts)


@router.get("/properties/without-stripe-accounts", response_model=list[PropertyWithStripeAccount])
def get_properties_without_accounts(
    engine: Engine = Depends(get_db_engine),
) -> list[dict[str, Any]]:
    """Properties that no Stripe account lists."""
    return run_resolver(engine, "without_accounts", resolve_without_accounts)


@router.post("/properties", status_code=status.HTTP_201_CREATED, response_model=PropertyOut)
def create_property_endpoint(
    payload: PropertyCreatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Create a property. It is linked to the active default Stripe account, if any.

    Args:
        payload: Property fields
        engine: Database engine

    Returns:
        dict: The created property with spot counts
    """
    try:
        created = create_property(engine, payload.model_dump())
        logger.info("property_created", property_id=str(created["id"]))
        return created

    except (HTTPException, RentalPaymentsError, IntegrityError):
        raise
    except Exception as e:
        logger.exception("property_creation_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/properties", response_model=list[PropertyOut])
def list_properties_endpoint(engine: Engine = Depends(get_db_engine)) -> list[dict[str, Any]]:
    return list_properties(engine)


@router.get("/properties/{property_id}", response_model=PropertyOut)
def get_property_endpoint(
    property_id: UUID, engine: Engine = Depends(get_db_engine)
) -> dict[str, Any]:
    return get_property_details(engine, property_id)


@router.patch("/properties/{property_id}", response_model=PropertyOut)
def update_property_endpoint(
    property_id: UUID,
    payload: PropertyUpdatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Update a property. Only provided, non-null fields change.

    Args:
        property_id: Property ID
        payload: Fields to update
        engine: Database engine

    Returns:
        dict: The updated property
    """
    try:
        update_data = build_update_data(payload)
        require_update_data_or_400(update_data)
        return update_property_details(engine, property_id, update_data)

    except (HTTPException, RentalPaymentsError, IntegrityError):
        raise
    except Exception as e:
        logger.exception("property_update_failed", property_id=str(property_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/properties/{property_id}", status_code=status.HTTP_200_OK)
def delete_property_endpoint(
    property_id: UUID, engine: Engine = Depends(get_db_engine)
) -> dict[str, str]:
    """Soft delete a property. Stripe accounts listing it are not changed."""
    try:
        delete_property(engine, property_id)
        return {"message": f"Property {property_id} deleted"}

    except (HTTPException, RentalPaymentsError):
        raise
    except Exception as e:
        logger.exception("property_delete_failed", property_id=str(property_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post(
    "/properties/{property_id}/spots",
    status_code=status.HTTP_201_CREATED,
    response_model=SpotOut,
)
def create_spot_endpoint(
    property_id: UUID,
    payload: SpotCreatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        return create_spot(engine, property_id, payload.model_dump())

    except (HTTPException, RentalPaymentsError, IntegrityError):
        raise
    except Exception as e:
        logger.exception("spot_creation_failed", property_id=str(property_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/properties/{property_id}/spots", response_model=list[SpotOut])
def list_spots_endpoint(
    property_id: UUID, engine: Engine = Depends(get_db_engine)
) -> list[dict[str, Any]]:
    return list_property_spots(engine, property_id)


@router.patch("/spots/{spot_id}", response_model=SpotOut)
def update_spot_endpoint(
    spot_id: UUID,
    payload: SpotUpdatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Update a spot's status, size, price or other fields."""
    try:
        update_data = build_update_data(payload)
        require_update_data_or_400(update_data)
        return update_spot_details(engine, spot_id, update_data)

    except (HTTPException, RentalPaymentsError, IntegrityError):
        raise
    except Exception as e:
        logger.exception("spot_update_failed", spot_id=str(spot_id), error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
