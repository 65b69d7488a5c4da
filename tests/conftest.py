"""
Pytest configuration for the membership renewal API tests.

Sets up the test environment and shared fixtures.
"""
import os

import pytest

# Disable config validation during tests
# This allows tests to run without requiring real environment variables
os.environ["VALIDATE_CONFIG"] = "false"

# Set test environment variables before settings is imported
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("STRIPE_TAX_MODE", "automatic")
os.environ.setdefault("NOTION_API_KEY", "secret_notion_test")
os.environ.setdefault("NOTION_ORGANIZATIONS_DB_ID", "orgs-db-id")
os.environ.setdefault("NOTION_SUBMISSIONS_DB_ID", "submissions-db-id")
os.environ.setdefault("RESEND_API_KEY", "re_test_key")
os.environ.setdefault("QBO_ACCESS_TOKEN", "test-access-token")
os.environ.setdefault("QBO_COMPANY_ID", "1234567890")
os.environ.setdefault("QBO_CLIENT_ID", "test-client-id")
os.environ.setdefault("QBO_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("QBO_REFRESH_TOKEN", "test-refresh-token")


@pytest.fixture
def completed_session():
    """A checkout.session.completed payload as Stripe sends it."""
    return {
        "id": "cs_test_a1b2c3d4e5f6g7h8",
        "object": "checkout.session",
        "amount_total": 135600,
        "currency": "cad",
        "payment_intent": "pi_test_123",
        "customer_details": {
            "name": "Campus Store U",
            "email": "store@example.edu",
            "address": {
                "line1": "1 University Ave",
                "city": "Toronto",
                "state": "ON",
                "postal_code": "M5S 1A1",
                "country": "CA",
            },
        },
        "total_details": {"amount_tax": 15600},
        "metadata": {
            "notion_token": "page-token-123",
            "organization_name": "Campus Store U",
            "qbo_invoice_id": "9876",
            "qbo_invoice_number": "INV-1042",
            "institution_size": "Small",
            "billing_display": "individual-line-items",
            "membership_fee": "600",
            "conference_total": "600",
            "paid_attendees": "2",
            "free_attendees": "1",
            "tax_mode": "automatic",
        },
    }
