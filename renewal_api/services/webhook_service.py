"""
Stripe webhook processing.

A completed checkout marks the organization as a paid member in Notion and
sends the bookkeeper the coding breakdown.

CRITICAL RULE: once Stripe reports a payment as completed, nothing downstream
may fail the webhook. Notion and email failures are logged and escalated to
the admin mailbox; the handler still acknowledges the event.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from fastapi.concurrency import run_in_threadpool

from renewal_api.clients import payments
from renewal_api.clients.notion import (
    date_property,
    get_notion_client,
    multi_select_names,
    multi_select_property,
    rich_text_property,
    select_property,
)
from renewal_api.config import settings
from renewal_api.services.line_items import InvoiceBreakdown, TaxMode, normalize_province, tax_summary
from renewal_api.services.mailer import (
    BookkeeperNotification,
    send_bookkeeper_notification,
    send_error_notification,
)
from renewal_api.utils.constants import BILLING_MEMBERSHIP_CONFERENCE
from renewal_api.utils.logging import get_logger

logger = get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


def _decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value)) if value not in (None, "") else Decimal("0")
    except InvalidOperation:
        return Decimal("0")


def _int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


async def mark_organization_paid(
    token: str,
    session_id: str,
    payment_intent_id: Optional[str],
    paid_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Record the payment on the organization's Notion page and tag it as a member.

    Existing tags are kept; the member tag is added if missing.

    Raises:
        ConfigurationError: If NOTION_API_KEY is not configured
        NotionAPIError: If Notion rejects the read or the update
    """
    client = get_notion_client()
    page = await client.retrieve_page(token)
    tags = multi_select_names((page.get("properties") or {}).get("Tags"))
    if settings.NOTION_MEMBER_TAG not in tags:
        tags.append(settings.NOTION_MEMBER_TAG)

    paid_at = paid_at or datetime.now(timezone.utc)
    properties = {
        "Stripe Payment Intent": rich_text_property(payment_intent_id or session_id),
        "Payment Status": select_property("Paid"),
        "Tags": multi_select_property(tags),
        "Payment Date": date_property(paid_at.isoformat()),
    }
    return await client.update_page(token, properties)


def _charged_conference_total(
    billing_display: Optional[str], conference_total: Decimal, paid_attendees: int
) -> Decimal:
    # membership-conference only adds a conference line when someone paid
    if billing_display == BILLING_MEMBERSHIP_CONFERENCE and paid_attendees <= 0:
        return Decimal("0")
    return conference_total


def bookkeeper_details_from_session(session: Dict[str, Any]) -> BookkeeperNotification:
    """Map a completed checkout session to the bookkeeping notification."""
    metadata = session.get("metadata") or {}
    session_id = session.get("id", "")
    payment_intent = session.get("payment_intent") or ""
    customer_details = session.get("customer_details") or {}
    address = customer_details.get("address") or {}
    total_details = session.get("total_details") or {}

    membership_fee = _decimal(metadata.get("membership_fee"))
    conference_total = _decimal(metadata.get("conference_total"))
    province = normalize_province(address.get("state"))

    if TaxMode.parse(metadata.get("tax_mode")) is TaxMode.AUTOMATIC:
        tax_collected = _decimal(total_details.get("amount_tax")) / 100
    else:
        charged_conference = _charged_conference_total(
            metadata.get("billing_display"), conference_total, _int(metadata.get("paid_attendees"))
        )
        taxes = tax_summary(
            InvoiceBreakdown(membership_fee=membership_fee, conference_total=charged_conference),
            province,
        )
        tax_collected = taxes["membership_tax"] + taxes["conference_tax"]

    return BookkeeperNotification(
        organization_name=metadata.get("organization_name") or customer_details.get("name") or "Unknown",
        invoice_id=metadata.get("qbo_invoice_id") or session_id,
        invoice_number=metadata.get("qbo_invoice_number") or f"STRIPE-{session_id[-8:]}",
        invoice_url=f"https://dashboard.stripe.com/payments/{payment_intent}",
        billing_display=metadata.get("billing_display"),
        institution_size=metadata.get("institution_size"),
        membership_fee=membership_fee,
        conference_total=conference_total,
        tax_collected=tax_collected,
        paid_attendees=_int(metadata.get("paid_attendees")),
        free_attendees=_int(metadata.get("free_attendees")),
        total_amount=_decimal(session.get("amount_total")) / 100,
        customer_address={
            "street_address": address.get("line1") or "",
            "city": address.get("city") or "",
            "province": province,
            "postal_code": address.get("postal_code") or "",
        },
        payment_method="Stripe",
        extra_references={
            "Stripe Session": session_id,
            "Stripe Payment Intent": payment_intent,
        },
    )


async def escalate_workspace_failure(session: Dict[str, Any], error: Exception | str) -> None:
    """Email the admin that a paid organization could not be updated in Notion."""
    metadata = session.get("metadata") or {}
    body = "\n".join([
        "PAYMENT RECEIVED BUT NOTION UPDATE FAILED",
        "=========================================",
        "",
        f"Organization: {metadata.get('organization_name') or 'Unknown'}",
        f"Notion page (token): {metadata.get('notion_token') or 'MISSING'}",
        f"Stripe Session: {session.get('id', '')}",
        f"Stripe Payment Intent: {session.get('payment_intent') or ''}",
        f"Amount: ${_decimal(session.get('amount_total')) / 100:.2f}",
        f"Error: {error}",
        "",
        "ACTION REQUIRED:",
        "---------------",
        "1. Open the organization's Notion page",
        "2. Set Payment Status to Paid and add the member tag",
        "3. Copy the Stripe Payment Intent id onto the page",
        "",
        "The payment itself succeeded; the customer has been charged.",
    ])
    try:
        result = await send_error_notification(
            subject="Payment recorded but Notion update failed - Action Required",
            body=body,
        )
        if not result.success:
            logger.error(f"❌ Escalation email failed: {result.error}")
    except Exception as e:
        logger.error(f"❌ Escalation email crashed: {e}", exc_info=True)


async def handle_checkout_completed(session: Dict[str, Any]) -> None:
    """
    Post-payment bookkeeping for a completed checkout session.

    Never raises: every step is best effort.
    """
    session_id = session.get("id", "")
    metadata = session.get("metadata") or {}
    token = metadata.get("notion_token")
    payment_intent_id = session.get("payment_intent")

    logger.info(
        f"💰 Payment completed for session: {session_id} "
        f"({_decimal(session.get('amount_total')) / 100:.2f} {(session.get('currency') or '').upper()})"
    )

    if token:
        logger.info("💾 Updating Notion with payment confirmation...")
        try:
            await mark_organization_paid(token, session_id, payment_intent_id)
            logger.info("✅ Notion updated with payment info")
        except Exception as e:
            logger.error(f"⚠️ Failed to update Notion for session {session_id}: {e}", exc_info=True)
            await escalate_workspace_failure(session, e)
    else:
        logger.warning(f"⚠️ Session {session_id} has no notion_token metadata")
        await escalate_workspace_failure(session, "Checkout session carried no notion_token")

    if payment_intent_id and settings.STRIPE_SECRET_KEY:
        try:
            intent = await run_in_threadpool(
                payments.retrieve_payment_intent,
                api_key=settings.STRIPE_SECRET_KEY,
                payment_intent_id=payment_intent_id,
            )
            method_types = getattr(intent, "payment_method_types", None) or []
            logger.info(f"💳 Payment method: {method_types[0] if method_types else 'unknown'}")
        except Exception as e:
            logger.error(f"⚠️ Failed to retrieve payment intent {payment_intent_id}: {e}")

    logger.info("📧 Sending bookkeeper notification for Stripe payment...")
    try:
        result = await send_bookkeeper_notification(bookkeeper_details_from_session(session))
        if result.success:
            logger.info("✅ Bookkeeper notification sent")
        else:
            logger.error(f"⚠️ Bookkeeper notification not sent: {result.error}")
    except Exception as e:
        logger.error(f"⚠️ Failed to send bookkeeper notification: {e}", exc_info=True)
