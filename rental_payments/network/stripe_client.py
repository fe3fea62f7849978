"""
Thin client for the Stripe REST endpoints used to verify accounts and
manage webhook endpoints.

Every call authenticates with the account's own secret key. Keys are passed
in per call and never logged.
"""

from __future__ import annotations

import time
from typing import Any, Optional, cast

import requests
import structlog

from rental_payments.config import STRIPE_API_BASE_URL, STRIPE_API_VERSION
from rental_payments.errors import StripeApiError, StripeVerificationError
from rental_payments.metrics import stripe_api_latency, stripe_api_requests
from rental_payments.models.enums import AccountType

logger = structlog.get_logger(__name__)

REQUEST_TIMEOUT = 30


def _headers(secret_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {secret_key}",
        "Stripe-Version": STRIPE_API_VERSION,
    }


def _error_code(response: Optional[requests.Response]) -> Optional[str]:
    """Pull error.code (or error.type) out of a Stripe error body."""
    if response is None:
        return None
    try:
        error = response.json().get("error", {})
    except ValueError:
        return None
    return error.get("code") or error.get("type")


def stripe_request(
    method: str,
    endpoint: str,
    secret_key: str,
    data: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """
    Perform one Stripe API request and return the decoded JSON body.

    Args:
        method: HTTP method
        endpoint: Path below the API base URL (e.g. "balance", "accounts/acct_123")
        secret_key: Secret key of the account making the call
        data: Form fields for POST requests

    Returns:
        dict[str, Any]: Decoded response body

    Raises:
        requests.HTTPError: On non-2xx responses (after metrics are recorded)
        requests.RequestException: On transport failures
    """
    url = f"{STRIPE_API_BASE_URL}/{endpoint}"
    metric_endpoint = endpoint.split("/")[0]

    start_time = time.time()
    response = requests.request(
        method,
        url,
        headers=_headers(secret_key),
        data=data,
        timeout=REQUEST_TIMEOUT,
    )
    latency = time.time() - start_time

    stripe_api_requests.labels(
        endpoint=metric_endpoint, status_code=str(response.status_code)
    ).inc()
    stripe_api_latency.labels(endpoint=metric_endpoint).observe(latency)

    response.raise_for_status()
    return cast(dict[str, Any], response.json())


def check_key_formats(
    account_type: AccountType, secret_key: str, stripe_account_id: Optional[str]
) -> None:
    """
    Validate key/id prefixes before contacting Stripe.

    Raises:
        StripeVerificationError: On a missing or malformed id or key
    """
    if account_type is AccountType.CONNECT:
        if not stripe_account_id:
            raise StripeVerificationError("Stripe Account ID is required for CONNECT accounts")
        if not stripe_account_id.startswith("acct_"):
            raise StripeVerificationError(
                "Invalid Stripe account ID format. Must start with 'acct_'"
            )

    if not secret_key.startswith("sk_"):
        raise StripeVerificationError("Invalid Stripe secret key format. Must start with 'sk_'")


def verify_account(
    account_type: AccountType,
    secret_key: str,
    stripe_account_id: Optional[str] = None,
) -> dict[str, Any]:
    """
    Verify a secret key (and, for CONNECT, the connected account) with Stripe.

    STANDARD: retrieves the key's own account to learn its id.
    CONNECT: retrieves the given account and requires charges_enabled.
    Both finish with a balance call proving the key works.

    Args:
        account_type: STANDARD or CONNECT
        secret_key: Stripe secret key
        stripe_account_id: Connected account id (CONNECT only)

    Returns:
        dict: {"is_valid": True, "account_id": ..., "charges_enabled": ...}

    Raises:
        StripeVerificationError: If Stripe rejects the key or account
    """
    check_key_formats(account_type, secret_key, stripe_account_id)

    try:
        if account_type is AccountType.CONNECT:
            account = stripe_request("GET", f"accounts/{stripe_account_id}", secret_key)
            if account.get("object") != "account":
                raise StripeVerificationError("Invalid Stripe account ID")
            if account.get("charges_enabled") is False:
                raise StripeVerificationError("Stripe account is not enabled for charges")
        else:
            account = stripe_request("GET", "account", secret_key)

        stripe_request("GET", "balance", secret_key)

    except requests.HTTPError as e:
        code = _error_code(e.response)
        logger.warning(
            "stripe_verification_rejected",
            account_type=account_type.value,
            status=e.response.status_code if e.response is not None else None,
            code=code,
        )
        if code == "resource_missing":
            raise StripeVerificationError(
                "Stripe account not found. Please check the account ID"
            ) from e
        if e.response is not None and e.response.status_code == 401:
            raise StripeVerificationError(
                "Invalid Stripe secret key. Please check your credentials"
            ) from e
        raise StripeVerificationError(f"Stripe account verification failed: {e}") from e

    except requests.RequestException as e:
        logger.error("stripe_unreachable", error=str(e))
        raise StripeApiError(f"Stripe API request failed: {e}") from e

    logger.info("stripe_account_verified", account_type=account_type.value)
    return {
        "is_valid": True,
        "account_id": account.get("id"),
        "charges_enabled": account.get("charges_enabled"),
    }
