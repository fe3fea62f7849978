"""
Internal helper functions for Stripe account route handlers.

Request-shape checks that can be answered without the database live here so
the handlers stay short.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status
from pydantic import BaseModel

from rental_payments.errors import StripeVerificationError
from rental_payments.models.enums import AccountType
from rental_payments.network.stripe_client import check_key_formats


def validate_key_formats_or_400(
    account_type: AccountType, secret_key: str, stripe_account_id: str | None
) -> None:
    """
    Validate the secret key and (for CONNECT) the Stripe account id prefixes.

    Raises:
        HTTPException: 400 with the format problem as detail
    """
    try:
        check_key_formats(account_type, secret_key, stripe_account_id)
    except StripeVerificationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e


def build_update_data(payload: BaseModel) -> dict[str, Any]:
    """
    Collect the fields of an update payload that were actually provided.

    Explicit nulls are dropped, matching PATCH semantics of "leave as is".
    """
    return {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None
    }


def require_update_data_or_400(update_data: dict[str, Any]) -> None:
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )
