"""
Tests for Stripe webhook processing.

Tests follow the payment-path rule: after Stripe confirms a payment, Notion
and email failures are logged and escalated but never raised.
"""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from renewal_api.clients.notion import NotionAPIError
from renewal_api.config import ConfigurationError, settings
from renewal_api.services.mailer import EmailResult
from renewal_api.services.webhook_service import (
    bookkeeper_details_from_session,
    handle_checkout_completed,
    mark_organization_paid,
)


@pytest.fixture
def notion_client():
    client = MagicMock()
    client.retrieve_page = AsyncMock(return_value={
        "id": "page-token-123",
        "properties": {
            "Tags": {"multi_select": [{"name": "Conference 2025"}]},
        },
    })
    client.update_page = AsyncMock(return_value={"id": "page-token-123"})
    return client


class TestMarkOrganizationPaid:

    @pytest.mark.asyncio
    async def test_updates_payment_fields_and_merges_tags(self, notion_client, monkeypatch):
        monkeypatch.setattr(settings, "NOTION_MEMBER_TAG", "25/26 Member")
        paid_at = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

        with patch("renewal_api.services.webhook_service.get_notion_client", return_value=notion_client):
            await mark_organization_paid("page-token-123", "cs_test", "pi_test_123", paid_at=paid_at)

        page_id, properties = notion_client.update_page.call_args.args
        assert page_id == "page-token-123"
        assert properties["Stripe Payment Intent"] == {"rich_text": [{"text": {"content": "pi_test_123"}}]}
        assert properties["Payment Status"] == {"select": {"name": "Paid"}}
        assert properties["Tags"] == {
            "multi_select": [{"name": "Conference 2025"}, {"name": "25/26 Member"}]
        }
        assert properties["Payment Date"] == {"date": {"start": "2025-06-01T12:00:00+00:00"}}

    @pytest.mark.asyncio
    async def test_member_tag_not_duplicated(self, notion_client, monkeypatch):
        monkeypatch.setattr(settings, "NOTION_MEMBER_TAG", "Conference 2025")

        with patch("renewal_api.services.webhook_service.get_notion_client", return_value=notion_client):
            await mark_organization_paid("page-token-123", "cs_test", None)

        properties = notion_client.update_page.call_args.args[1]
        assert properties["Tags"] == {"multi_select": [{"name": "Conference 2025"}]}
        # Falls back to the session id without a payment intent
        assert properties["Stripe Payment Intent"]["rich_text"][0]["text"]["content"] == "cs_test"


class TestBookkeeperDetailsFromSession:

    def test_maps_session_metadata_and_address(self, completed_session):
        details = bookkeeper_details_from_session(completed_session)

        assert details.organization_name == "Campus Store U"
        assert details.invoice_id == "9876"
        assert details.invoice_number == "INV-1042"
        assert details.membership_fee == Decimal("600")
        assert details.conference_total == Decimal("600")
        assert details.paid_attendees == 2
        assert details.total_amount == Decimal("1356")
        # Automatic tax: Stripe's own tax total
        assert details.tax_collected == Decimal("156")
        assert details.customer_address["province"] == "Ontario"
        assert details.extra_references["Stripe Payment Intent"] == "pi_test_123"

    def test_exclusive_mode_computes_tax(self, completed_session):
        completed_session["metadata"]["tax_mode"] = "exclusive"
        completed_session["customer_details"]["address"]["state"] = "AB"

        details = bookkeeper_details_from_session(completed_session)

        # 600 * 5% GST + 600 * 13% conference HST
        assert details.tax_collected == Decimal("108.00")

    def test_no_conference_tax_without_paid_attendees(self, completed_session):
        completed_session["metadata"]["tax_mode"] = "exclusive"
        completed_session["metadata"]["billing_display"] = "membership-conference"
        completed_session["metadata"]["paid_attendees"] = "0"
        completed_session["customer_details"]["address"]["state"] = "AB"

        details = bookkeeper_details_from_session(completed_session)

        # Membership GST only; no conference line was charged
        assert details.tax_collected == Decimal("30.00")

    def test_membership_conference_with_paid_attendees_taxes_conference(self, completed_session):
        completed_session["metadata"]["tax_mode"] = "inclusive"
        completed_session["metadata"]["billing_display"] = "membership-conference"
        completed_session["customer_details"]["address"]["state"] = "AB"

        details = bookkeeper_details_from_session(completed_session)

        assert details.tax_collected == Decimal("108.00")

    def test_missing_qbo_refs_fall_back_to_session(self, completed_session):
        completed_session["metadata"]["qbo_invoice_id"] = ""
        completed_session["metadata"]["qbo_invoice_number"] = ""

        details = bookkeeper_details_from_session(completed_session)

        assert details.invoice_id == "cs_test_a1b2c3d4e5f6g7h8"
        assert details.invoice_number == "STRIPE-e5f6g7h8"


class TestHandleCheckoutCompleted:

    @pytest.fixture
    def mocks(self):
        with patch(
            "renewal_api.services.webhook_service.mark_organization_paid", new_callable=AsyncMock
        ) as mark_paid, patch(
            "renewal_api.services.webhook_service.send_error_notification", new_callable=AsyncMock
        ) as send_error, patch(
            "renewal_api.services.webhook_service.send_bookkeeper_notification", new_callable=AsyncMock
        ) as send_bookkeeper, patch(
            "renewal_api.services.webhook_service.payments.retrieve_payment_intent"
        ) as retrieve_intent:
            send_error.return_value = EmailResult(success=True)
            send_bookkeeper.return_value = EmailResult(success=True)
            retrieve_intent.return_value = MagicMock(payment_method_types=["card"])
            yield {
                "mark_paid": mark_paid,
                "send_error": send_error,
                "send_bookkeeper": send_bookkeeper,
                "retrieve_intent": retrieve_intent,
            }

    @pytest.mark.asyncio
    async def test_happy_path_updates_notion_and_notifies_bookkeeper(self, mocks, completed_session):
        await handle_checkout_completed(completed_session)

        mocks["mark_paid"].assert_awaited_once_with("page-token-123", "cs_test_a1b2c3d4e5f6g7h8", "pi_test_123")
        mocks["send_error"].assert_not_awaited()
        mocks["send_bookkeeper"].assert_awaited_once()
        mocks["retrieve_intent"].assert_called_once()

    @pytest.mark.asyncio
    async def test_notion_failure_is_escalated_not_raised(self, mocks, completed_session):
        mocks["mark_paid"].side_effect = NotionAPIError(502, "Bad gateway")

        await handle_checkout_completed(completed_session)

        mocks["send_error"].assert_awaited_once()
        body = mocks["send_error"].call_args.kwargs["body"]
        assert "Campus Store U" in body
        assert "pi_test_123" in body
        mocks["send_bookkeeper"].assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_notion_key_is_escalated(self, mocks, completed_session):
        mocks["mark_paid"].side_effect = ConfigurationError("NOTION_API_KEY not configured")

        await handle_checkout_completed(completed_session)

        mocks["send_error"].assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_token_is_escalated(self, mocks, completed_session):
        del completed_session["metadata"]["notion_token"]

        await handle_checkout_completed(completed_session)

        mocks["mark_paid"].assert_not_awaited()
        mocks["send_error"].assert_awaited_once()

    @pytest.mark.asyncio
    async def test_email_and_stripe_failures_do_not_raise(self, mocks, completed_session):
        mocks["mark_paid"].side_effect = RuntimeError("boom")
        mocks["send_error"].side_effect = RuntimeError("resend down")
        mocks["send_bookkeeper"].side_effect = RuntimeError("resend down")
        mocks["retrieve_intent"].side_effect = RuntimeError("stripe down")

        await handle_checkout_completed(completed_session)
