"""
Stripe webhook endpoint registration service.

Registers (and removes) a webhook endpoint on the Stripe account itself so
payment events for that account reach this service.
"""

import logging
from typing import Any

import requests

from rental_payments.config import WEBHOOK_BASE_URL
from rental_payments.network.stripe_client import stripe_request

logger = logging.getLogger(__name__)

WEBHOOK_EVENTS = (
    "checkout.session.completed",
    "payment_intent.succeeded",
    "payment_intent.payment_failed",
    "charge.refunded",
)


def webhook_url_for(account_id: str) -> str:
    return f"{WEBHOOK_BASE_URL}/api/v1/stripe/webhook/{account_id}"


def register_webhook(account_id: str, secret_key: str) -> tuple[str | None, str]:
    """
    Create a webhook endpoint on the Stripe account.

    Args:
        account_id: Internal Stripe account record ID (embedded in the URL)
        secret_key: The account's Stripe secret key

    Returns:
        tuple[str | None, str]: (Stripe webhook endpoint ID or None, registered URL)

    Raises:
        requests.HTTPError: If Stripe rejects the registration
    """
    webhook_url = webhook_url_for(account_id)

    payload: dict[str, Any] = {"url": webhook_url}
    for index, event in enumerate(WEBHOOK_EVENTS):
        payload[f"enabled_events[{index}]"] = event

    try:
        logger.info("Registering webhook for account %s: url=%s", account_id, webhook_url)

        result = stripe_request("POST", "webhook_endpoints", secret_key, data=payload)
        webhook_id = result.get("id")

        if webhook_id:
            logger.info(
                "Webhook registered successfully: account=%s, webhook_id=%s",
                account_id,
                webhook_id,
            )
            return str(webhook_id), webhook_url
        else:
            logger.error("Webhook registration returned no ID: account=%s", account_id)
            return None, webhook_url

    except requests.HTTPError as e:
        logger.error(
            "Failed to register webhook: account=%s, status=%s",
            account_id,
            e.response.status_code if e.response is not None else "N/A",
        )
        raise


def delete_webhook(account_id: str, secret_key: str, webhook_id: str) -> bool:
    """
    Delete a webhook endpoint from the Stripe account.

    Called when an account is deleted. Failures are logged, not raised.

    Args:
        account_id: Internal Stripe account record ID
        secret_key: The account's Stripe secret key
        webhook_id: Stripe webhook endpoint ID

    Returns:
        bool: True if successfully deleted, False otherwise
    """
    try:
        stripe_request("DELETE", f"webhook_endpoints/{webhook_id}", secret_key)

        logger.info(
            "Webhook deleted successfully: account=%s, webhook_id=%s",
            account_id,
            webhook_id,
        )
        return True

    except requests.RequestException as e:
        logger.error(
            "Failed to delete webhook: account=%s, webhook_id=%s, error=%s",
            account_id,
            webhook_id,
            str(e),
        )
        return False
