"""Unit tests for Stripe webhook registration service."""

from unittest.mock import Mock, patch

import pytest
import requests

from rental_payments.services.webhook_registration import (
    WEBHOOK_EVENTS,
    delete_webhook,
    register_webhook,
)


@pytest.mark.unit
@patch("rental_payments.services.webhook_registration.stripe_request")
def test_register_webhook_success(mock_stripe: Mock) -> None:
    """Test successful webhook registration returns the endpoint id and url."""
    mock_stripe.return_value = {"id": "we_123", "object": "webhook_endpoint"}

    webhook_id, webhook_url = register_webhook(account_id="acc-1", secret_key="sk_test_1")

    assert webhook_id == "we_123"
    assert webhook_url.endswith("/api/v1/stripe/webhook/acc-1")

    method, endpoint, secret_key = mock_stripe.call_args.args
    assert (method, endpoint, secret_key) == ("POST", "webhook_endpoints", "sk_test_1")
    data = mock_stripe.call_args.kwargs["data"]
    assert data["url"] == webhook_url
    assert [data[f"enabled_events[{i}]"] for i in range(len(WEBHOOK_EVENTS))] == list(
        WEBHOOK_EVENTS
    )


@pytest.mark.unit
@patch("rental_payments.services.webhook_registration.stripe_request")
def test_register_webhook_no_id_in_response(mock_stripe: Mock) -> None:
    mock_stripe.return_value = {}

    webhook_id, _ = register_webhook(account_id="acc-1", secret_key="sk_test_1")

    assert webhook_id is None


@pytest.mark.unit
@patch("rental_payments.services.webhook_registration.stripe_request")
def test_register_webhook_http_error(mock_stripe: Mock) -> None:
    """Test webhook registration re-raises HTTPError on API failure."""
    response = Mock()
    response.status_code = 400
    mock_stripe.side_effect = requests.HTTPError(response=response)

    with pytest.raises(requests.HTTPError):
        register_webhook(account_id="acc-1", secret_key="sk_test_1")


@pytest.mark.unit
@patch("rental_payments.services.webhook_registration.WEBHOOK_BASE_URL", "https://pay.example.com")
@patch("rental_payments.services.webhook_registration.stripe_request")
def test_register_webhook_uses_base_url(mock_stripe: Mock) -> None:
    mock_stripe.return_value = {"id": "we_1"}

    _, webhook_url = register_webhook(account_id="acc-9", secret_key="sk_test_1")

    assert webhook_url == "https://pay.example.com/api/v1/stripe/webhook/acc-9"


@pytest.mark.unit
@patch("rental_payments.services.webhook_registration.stripe_request")
def test_delete_webhook_success(mock_stripe: Mock) -> None:
    mock_stripe.return_value = {"id": "we_123", "deleted": True}

    assert delete_webhook("acc-1", "sk_test_1", "we_123") is True
    mock_stripe.assert_called_once_with("DELETE", "webhook_endpoints/we_123", "sk_test_1")


@pytest.mark.unit
@patch("rental_payments.services.webhook_registration.stripe_request")
def test_delete_webhook_failure_returns_false(mock_stripe: Mock) -> None:
    mock_stripe.side_effect = requests.ConnectionError("boom")

    assert delete_webhook("acc-1", "sk_test_1", "we_123") is False
