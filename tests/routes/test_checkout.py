"""
Tests for POST /api/create-stripe-checkout.

Requirements covered:
- Happy path returns the session id and checkout URL
- Missing token / organizationData / invoiceData → 400
- Missing Stripe key → 500 with diagnostic message
- Stripe failure → 500 with the upstream message
- Notion save failure does not fail the request
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import stripe
from fastapi.testclient import TestClient

from renewal_api.config import ConfigurationError
from renewal_api.main import app


@pytest.fixture
def client():
    """Create test client for FastAPI app."""
    return TestClient(app)


@pytest.fixture
def payload():
    return {
        "token": "page-token-123",
        "organizationData": {
            "name": "Campus Store U",
            "address": {"streetAddress": "1 University Ave", "city": "Toronto", "province": "Ontario", "postalCode": "M5S 1A1"},
            "primaryContact": {"name": "Dana Lee", "workEmail": "dana@example.edu"},
        },
        "invoiceData": {
            "membershipFee": 600,
            "conferenceTotal": 0,
            "institutionSize": "Small",
        },
        "qboInvoiceId": "9876",
        "qboInvoiceNumber": "INV-1042",
    }


@pytest.fixture
def mock_create_session():
    with patch(
        "renewal_api.routes.checkout.create_checkout_session", new_callable=AsyncMock
    ) as create_session:
        create_session.return_value = MagicMock(id="cs_test_123", url="https://checkout.stripe.com/c/pay/cs_test_123")
        yield create_session


@pytest.fixture
def mock_save_session():
    with patch(
        "renewal_api.routes.checkout.save_session_to_notion", new_callable=AsyncMock
    ) as save_session:
        yield save_session


class TestCreateStripeCheckout:

    def test_success(self, client, payload, mock_create_session, mock_save_session):
        response = client.post("/api/create-stripe-checkout", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["sessionId"] == "cs_test_123"
        assert data["checkoutUrl"] == "https://checkout.stripe.com/c/pay/cs_test_123"
        assert data["qboInvoiceId"] == "9876"
        assert data["qboInvoiceNumber"] == "INV-1042"
        mock_save_session.assert_awaited_once_with(
            "page-token-123", "cs_test_123", qbo_invoice_id="9876", qbo_invoice_number="INV-1042"
        )

    def test_billing_preferences_default(self, client, payload, mock_create_session, mock_save_session):
        client.post("/api/create-stripe-checkout", json=payload)

        request = mock_create_session.call_args.args[0]
        assert request.billing_preferences.billing_display == "individual-line-items"

    @pytest.mark.parametrize("missing", ["token", "organizationData", "invoiceData"])
    def test_missing_required_field_is_400(self, client, payload, missing, mock_create_session):
        del payload[missing]

        response = client.post("/api/create-stripe-checkout", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        mock_create_session.assert_not_awaited()

    def test_empty_token_is_400(self, client, payload, mock_create_session):
        payload["token"] = ""

        response = client.post("/api/create-stripe-checkout", json=payload)

        assert response.status_code == 400

    def test_missing_stripe_key_is_500(self, client, payload, mock_create_session, mock_save_session):
        mock_create_session.side_effect = ConfigurationError("Stripe configuration missing")

        response = client.post("/api/create-stripe-checkout", json=payload)

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "Stripe configuration missing"
        mock_save_session.assert_not_awaited()

    def test_stripe_error_is_500_with_message(self, client, payload, mock_create_session, mock_save_session):
        mock_create_session.side_effect = stripe.InvalidRequestError("No such product: 'prod_x'", param="line_items")

        response = client.post("/api/create-stripe-checkout", json=payload)

        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail["error"] == "Failed to create Stripe checkout session"
        assert "No such product" in detail["details"]

    def test_notion_failure_does_not_fail_request(self, client, payload, mock_create_session, mock_save_session):
        mock_save_session.side_effect = RuntimeError("Notion down")

        response = client.post("/api/create-stripe-checkout", json=payload)

        assert response.status_code == 200
        assert response.json()["sessionId"] == "cs_test_123"

    def test_wrong_method_is_405(self, client):
        response = client.get("/api/create-stripe-checkout")

        assert response.status_code == 405
