"""
Integration tests for /api/v1/stripe-accounts endpoints.

Stripe itself is never contacted: verification is disabled by the test
environment or patched per test.
"""

from __future__ import annotations

from typing import Any, Callable
from unittest.mock import Mock, patch

import pytest
import requests
from fastapi.testclient import TestClient

from rental_payments.errors import StripeVerificationError
from rental_payments.models.enums import AccountType

MakeFn = Callable[..., dict[str, Any]]


@pytest.mark.integration
def test_create_account_hides_secret_key(client: TestClient, make_property: MakeFn) -> None:
    prop = make_property("North")

    response = client.post(
        "/api/v1/stripe-accounts",
        json={
            "name": "Main",
            "stripe_secret_key": "sk_test_main",
            "stripe_account_id": "acct_ignored",
            "property_ids": [prop["id"], prop["id"]],
            "metadata": {"region": "south"},
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert "stripe_secret_key" not in body
    assert body["is_verified"] is True
    assert body["is_active"] is True
    assert body["webhook_status"] == "INACTIVE"
    assert body["stripe_account_id"] is None  # STANDARD accounts keep no account id
    assert body["property_ids"] == [prop["id"]]
    assert body["properties"][0]["name"] == "North"
    assert body["metadata"] == {"region": "south"}


@pytest.mark.integration
def test_create_connect_account_requires_account_id(client: TestClient) -> None:
    response = client.post(
        "/api/v1/stripe-accounts",
        json={"name": "Connect", "stripe_secret_key": "sk_test_c", "account_type": "CONNECT"},
    )

    assert response.status_code == 400
    assert "required for CONNECT" in response.json()["detail"]


@pytest.mark.integration
def test_create_account_rejects_bad_key_prefix(client: TestClient) -> None:
    response = client.post(
        "/api/v1/stripe-accounts",
        json={"name": "Bad", "stripe_secret_key": "pk_test_public"},
    )

    assert response.status_code == 400


@pytest.mark.integration
@pytest.mark.parametrize(
    ("field", "message"),
    [
        ("name", "Stripe account with this name already exists"),
        ("stripe_secret_key", "Stripe secret key is already in use by another account"),
    ],
)
def test_create_account_duplicates(client: TestClient, field: str, message: str) -> None:
    first = {"name": "Main", "stripe_secret_key": "sk_test_1"}
    second = {"name": "Other", "stripe_secret_key": "sk_test_2", field: first[field]}
    assert client.post("/api/v1/stripe-accounts", json=first).status_code == 201

    response = client.post("/api/v1/stripe-accounts", json=second)

    assert response.status_code == 409
    body = response.json()
    assert body["message"] == message
    assert body["errorMessages"][0]["path"] == field


@pytest.mark.integration
def test_create_account_with_invalid_property_returns_400(client: TestClient) -> None:
    missing = "00000000-0000-0000-0000-0000000000aa"

    response = client.post(
        "/api/v1/stripe-accounts",
        json={"name": "Main", "stripe_secret_key": "sk_test_1", "property_ids": [missing]},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == f"Invalid property ID {missing} or property is deleted"
    assert body["errorMessages"][0]["path"] == "property_ids"
    assert client.get("/api/v1/stripe-accounts/statistics").json()["total_accounts"] == 0


@pytest.mark.integration
def test_create_second_default_is_rejected(client: TestClient, make_account: MakeFn) -> None:
    make_account("Main", is_default_account=True)

    response = client.post(
        "/api/v1/stripe-accounts",
        json={"name": "Other", "stripe_secret_key": "sk_test_other", "is_default_account": True},
    )

    assert response.status_code == 409
    assert response.json()["errorMessages"][0]["path"] == "is_default_account"


@pytest.mark.integration
@patch("rental_payments.services.stripe_accounts.STRIPE_VERIFY", True)
@patch("rental_payments.services.stripe_accounts.verify_account")
def test_create_account_verification_failure(mock_verify: Mock, client: TestClient) -> None:
    mock_verify.side_effect = StripeVerificationError(
        "Invalid Stripe secret key. Please check your credentials"
    )

    response = client.post(
        "/api/v1/stripe-accounts",
        json={"name": "Main", "stripe_secret_key": "sk_test_revoked"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid Stripe secret key. Please check your credentials"
    assert client.get("/api/v1/stripe-accounts/statistics").json()["total_accounts"] == 0


@pytest.mark.integration
def test_update_to_second_default_returns_409_and_keeps_state(
    client: TestClient, make_account: MakeFn
) -> None:
    main = make_account("Main", is_default_account=True)
    other = make_account("Other")

    response = client.patch(
        f"/api/v1/stripe-accounts/{other['id']}", json={"is_default_account": True}
    )

    assert response.status_code == 409
    assert response.json()["message"] == "Another account is already set as default"
    assert client.get("/api/v1/stripe-accounts/default").json()["id"] == main["id"]


@pytest.mark.integration
def test_update_replaces_property_list(
    client: TestClient, make_account: MakeFn, make_property: MakeFn
) -> None:
    p1, p2 = make_property("A"), make_property("B")
    account = make_account("Main", property_ids=[p1["id"]])

    response = client.patch(
        f"/api/v1/stripe-accounts/{account['id']}",
        json={"property_ids": [p2["id"], p1["id"]], "description": "two lots"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["property_ids"] == [p2["id"], p1["id"]]
    assert body["description"] == "two lots"


@pytest.mark.integration
def test_set_default_moves_flag(client: TestClient, make_account: MakeFn) -> None:
    main = make_account("Main", is_default_account=True)
    other = make_account("Other")

    response = client.post("/api/v1/stripe-accounts/default", json={"account_id": other["id"]})

    assert response.status_code == 200
    assert response.json()["is_default_account"] is True
    assert client.get(f"/api/v1/stripe-accounts/{main['id']}").json()["is_default_account"] is False
    assert client.get("/api/v1/stripe-accounts/statistics").json()["default_accounts"] == 1


@pytest.mark.integration
def test_get_default_when_none_returns_404(client: TestClient) -> None:
    assert client.get("/api/v1/stripe-accounts/default").status_code == 404


@pytest.mark.integration
def test_link_and_unlink_properties(
    client: TestClient, make_account: MakeFn, make_property: MakeFn
) -> None:
    p1, p2, p3 = make_property("A"), make_property("B"), make_property("C")
    account = make_account("Main", property_ids=[p1["id"]])

    linked = client.post(
        f"/api/v1/stripe-accounts/{account['id']}/link-properties",
        json={"property_ids": [p3["id"], p1["id"], p2["id"], p3["id"]]},
    )
    assert linked.status_code == 200
    assert linked.json()["property_ids"] == [p1["id"], p3["id"], p2["id"]]

    unlinked = client.post(
        f"/api/v1/stripe-accounts/{account['id']}/unlink-properties",
        json={"property_ids": [p3["id"]]},
    )
    assert unlinked.status_code == 200
    assert unlinked.json()["property_ids"] == [p1["id"], p2["id"]]


@pytest.mark.integration
def test_link_property_owned_by_other_account_returns_409(
    client: TestClient, make_account: MakeFn, make_property: MakeFn
) -> None:
    prop = make_property("A")
    make_account("Owner", property_ids=[prop["id"]])
    other = make_account("Other")

    response = client.post(
        f"/api/v1/stripe-accounts/{other['id']}/link-properties",
        json={"property_ids": [prop["id"]]},
    )

    assert response.status_code == 409
    assert prop["id"] in response.json()["message"]


@pytest.mark.integration
def test_unlink_removes_stale_reference(
    client: TestClient, make_account: MakeFn, make_property: MakeFn
) -> None:
    """Test that a deleted property blocks updates until it is unlinked."""
    prop = make_property("A")
    account = make_account("Main", property_ids=[prop["id"]])
    client.delete(f"/api/v1/properties/{prop['id']}")

    blocked = client.patch(f"/api/v1/stripe-accounts/{account['id']}", json={"description": "x"})
    assert blocked.status_code == 400

    unlinked = client.post(
        f"/api/v1/stripe-accounts/{account['id']}/unlink-properties",
        json={"property_ids": [prop["id"]]},
    )
    assert unlinked.status_code == 200

    allowed = client.patch(f"/api/v1/stripe-accounts/{account['id']}", json={"description": "x"})
    assert allowed.status_code == 200


@pytest.mark.integration
def test_overview_and_statistics(
    client: TestClient, make_account: MakeFn, make_property: MakeFn
) -> None:
    p1, p2, _ = make_property("A"), make_property("B"), make_property("C")
    make_account("Main", is_default_account=True, property_ids=[p1["id"]])
    make_account("Second", property_ids=[p2["id"]])

    overview = client.get("/api/v1/stripe-accounts").json()

    assert overview["summary"] == {
        "total_stripe_accounts": 2,
        "total_properties": 3,
        "assigned_properties": 2,
        "unassigned_properties": 1,
        "has_default_account": True,
        "default_account_properties_count": 1,
    }
    assert [p["name"] for p in overview["unassigned_properties"]] == ["C"]
    assert overview["default_account"]["name"] == "Main"
    assert all("stripe_secret_key" not in a for a in overview["stripe_accounts"])

    stats = client.get("/api/v1/stripe-accounts/statistics").json()
    assert stats == {
        "total_accounts": 2,
        "active_accounts": 2,
        "verified_accounts": 2,
        "default_accounts": 1,
        "standard_accounts": 2,
        "connect_accounts": 0,
    }


@pytest.mark.integration
def test_property_scoped_lookups(
    client: TestClient, make_account: MakeFn, make_property: MakeFn
) -> None:
    p1, p2 = make_property("A"), make_property("B")
    owner = make_account("Owner", property_ids=[p1["id"]])
    make_account("Fallback", is_global_account=True)
    default = make_account("Main", is_default_account=True)

    by_property = client.get(f"/api/v1/stripe-accounts/by-property/{p1['id']}").json()
    assert [a["id"] for a in by_property] == [owner["id"]]

    available = client.get(f"/api/v1/stripe-accounts/available/{p1['id']}").json()
    assert [a["id"] for a in available["property_accounts"]] == [owner["id"]]
    assert [a["name"] for a in available["global_accounts"]] == ["Fallback"]
    assert available["default_account"]["id"] == default["id"]
    assert available["has_property_accounts"] is True

    unassigned = client.get("/api/v1/stripe-accounts/unassigned-properties").json()
    assert [p["id"] for p in unassigned] == [p2["id"]]

    assignable = client.get(f"/api/v1/stripe-accounts/{owner['id']}/assignable-properties").json()
    assert {p["id"] for p in assignable} == {p1["id"], p2["id"]}


@pytest.mark.integration
def test_property_scoped_lookup_unknown_property_returns_404(client: TestClient) -> None:
    missing = "00000000-0000-0000-0000-0000000000bb"

    assert client.get(f"/api/v1/stripe-accounts/by-property/{missing}").status_code == 404
    assert client.get(f"/api/v1/stripe-accounts/available/{missing}").status_code == 404


@pytest.mark.integration
def test_delete_account_releases_properties(
    client: TestClient, make_account: MakeFn, make_property: MakeFn
) -> None:
    prop = make_property("A")
    account = make_account("Main", property_ids=[prop["id"]])

    response = client.delete(f"/api/v1/stripe-accounts/{account['id']}")

    assert response.status_code == 200
    assert client.get(f"/api/v1/stripe-accounts/{account['id']}").status_code == 404
    unassigned = client.get("/api/v1/properties/without-stripe-accounts").json()
    assert [p["id"] for p in unassigned] == [prop["id"]]


@pytest.mark.integration
@patch("rental_payments.services.stripe_accounts.verify_account")
def test_verify_endpoint(mock_verify: Mock, client: TestClient, make_account: MakeFn) -> None:
    account = make_account("Main")
    mock_verify.return_value = {"is_valid": True, "account_id": "acct_1", "charges_enabled": True}

    response = client.post(f"/api/v1/stripe-accounts/{account['id']}/verify")

    assert response.status_code == 200
    body = response.json()
    assert body["is_valid"] is True
    assert body["account"]["is_verified"] is True


@pytest.mark.integration
@patch("rental_payments.services.stripe_accounts.verify_account")
def test_verify_failure_marks_account_unverified(
    mock_verify: Mock, client: TestClient, make_account: MakeFn
) -> None:
    account = make_account("Main")
    mock_verify.side_effect = StripeVerificationError("Stripe account verification failed")

    response = client.post(f"/api/v1/stripe-accounts/{account['id']}/verify")

    assert response.status_code == 400
    assert client.get(f"/api/v1/stripe-accounts/{account['id']}").json()["is_verified"] is False


@pytest.mark.integration
@patch("rental_payments.services.stripe_accounts.register_webhook")
def test_register_webhook_stores_endpoint(
    mock_register: Mock, client: TestClient, make_account: MakeFn
) -> None:
    account = make_account("Main")
    mock_register.return_value = ("we_123", "http://localhost:8000/api/v1/stripe/webhook/x")

    response = client.post(f"/api/v1/stripe-accounts/{account['id']}/webhook")

    assert response.status_code == 200
    body = response.json()
    assert body["webhook_status"] == "ACTIVE"
    assert body["webhook_id"] == "we_123"
    assert body["webhook_created_at"] is not None


@pytest.mark.integration
@patch("rental_payments.services.stripe_accounts.register_webhook")
def test_register_webhook_failure_marks_failed(
    mock_register: Mock, client: TestClient, make_account: MakeFn
) -> None:
    account = make_account("Main")
    mock_register.side_effect = requests.HTTPError("400 Client Error")

    response = client.post(f"/api/v1/stripe-accounts/{account['id']}/webhook")

    assert response.status_code == 502
    assert client.get(f"/api/v1/stripe-accounts/{account['id']}").json()["webhook_status"] == "FAILED"


@pytest.mark.integration
@patch("rental_payments.services.stripe_accounts.delete_webhook")
@patch("rental_payments.services.stripe_accounts.register_webhook")
def test_delete_account_removes_webhook(
    mock_register: Mock, mock_delete: Mock, client: TestClient, make_account: MakeFn
) -> None:
    account = make_account("Main")
    mock_register.return_value = ("we_9", "http://localhost:8000/api/v1/stripe/webhook/x")
    client.post(f"/api/v1/stripe-accounts/{account['id']}/webhook")

    client.delete(f"/api/v1/stripe-accounts/{account['id']}")

    mock_delete.assert_called_once()
    assert mock_delete.call_args.args[2] == "we_9"


@pytest.mark.integration
def test_assignable_properties_exclude_other_accounts(
    client: TestClient, make_account: MakeFn, make_property: MakeFn
) -> None:
    held, free, taken = make_property("A"), make_property("B"), make_property("C")
    account = make_account("Main", property_ids=[held["id"]])
    make_account("Other", property_ids=[taken["id"]])

    response = client.get(f"/api/v1/stripe-accounts/{account['id']}/assignable-properties")

    assert response.status_code == 200
    assert {p["id"] for p in response.json()} == {held["id"], free["id"]}


@pytest.mark.integration
def test_update_with_malformed_secret_key_returns_400_and_keeps_state(
    client: TestClient, make_account: MakeFn, make_property: MakeFn
) -> None:
    make_property("A")
    account = make_account("Fallback", is_global_account=True)

    response = client.patch(
        f"/api/v1/stripe-accounts/{account['id']}", json={"stripe_secret_key": "not-a-key"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid Stripe secret key format. Must start with 'sk_'"
    assert client.get(f"/api/v1/stripe-accounts/{account['id']}").json()["is_verified"] is True
    view = client.get("/api/v1/properties/available-stripe-accounts").json()
    assert [g["name"] for g in view[0]["available_stripe_accounts"]["global_accounts"]] == [
        "Fallback"
    ]


@pytest.mark.integration
def test_update_secret_key_without_verification_marks_unverified(
    client: TestClient, make_account: MakeFn, make_property: MakeFn
) -> None:
    make_property("A")
    account = make_account("Fallback", is_global_account=True)

    response = client.patch(
        f"/api/v1/stripe-accounts/{account['id']}", json={"stripe_secret_key": "sk_test_rotated"}
    )

    assert response.status_code == 200
    assert response.json()["is_verified"] is False
    view = client.get("/api/v1/properties/available-stripe-accounts").json()
    assert view[0]["available_stripe_accounts"]["global_accounts"] == []


@pytest.mark.integration
def test_update_to_connect_requires_account_id(client: TestClient, make_account: MakeFn) -> None:
    account = make_account("Main")

    response = client.patch(
        f"/api/v1/stripe-accounts/{account['id']}", json={"account_type": "CONNECT"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Stripe Account ID is required for CONNECT accounts"
    assert client.get(f"/api/v1/stripe-accounts/{account['id']}").json()["account_type"] == "STANDARD"


@pytest.mark.integration
@patch("rental_payments.services.stripe_accounts.STRIPE_VERIFY", True)
@patch("rental_payments.services.stripe_accounts.verify_account")
def test_update_to_connect_reverifies_with_stripe(
    mock_verify: Mock, client: TestClient, make_account: MakeFn
) -> None:
    account = make_account("Main")
    mock_verify.return_value = {"is_valid": True, "account_id": "acct_123", "charges_enabled": True}

    response = client.patch(
        f"/api/v1/stripe-accounts/{account['id']}",
        json={"account_type": "CONNECT", "stripe_account_id": "acct_123"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["account_type"] == "CONNECT"
    assert body["stripe_account_id"] == "acct_123"
    assert body["is_verified"] is True
    mock_verify.assert_called_once()
    assert mock_verify.call_args.args[0] == AccountType.CONNECT
    assert mock_verify.call_args.args[2] == "acct_123"


@pytest.mark.integration
def test_set_default_on_inactive_account_returns_400(
    client: TestClient, make_account: MakeFn
) -> None:
    account = make_account("Main")
    client.patch(f"/api/v1/stripe-accounts/{account['id']}", json={"is_active": False})

    response = client.post("/api/v1/stripe-accounts/default", json={"account_id": account["id"]})

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Only active accounts can be set as default"
    assert body["errorMessages"][0]["path"] == "account_id"
    assert client.get("/api/v1/stripe-accounts/default").status_code == 404


@pytest.mark.integration
def test_create_reusing_deleted_account_name_returns_409(
    client: TestClient, make_account: MakeFn
) -> None:
    account = make_account("Main")
    client.delete(f"/api/v1/stripe-accounts/{account['id']}")

    response = client.post(
        "/api/v1/stripe-accounts",
        json={"name": "Main", "stripe_secret_key": "sk_test_fresh"},
    )

    assert response.status_code == 409
    body = response.json()
    assert body["message"] == "Stripe account with this name already exists"
    assert body["errorMessages"][0]["path"] == "name"
