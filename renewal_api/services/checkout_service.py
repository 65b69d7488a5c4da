"""
Stripe checkout service.

Creates a customer and a checkout session for a renewal invoice and links the
session back to the organization's Notion page so the webhook can find it.
"""

from typing import Any, Dict, List

import stripe
from fastapi.concurrency import run_in_threadpool

from renewal_api.clients import payments
from renewal_api.clients.notion import get_notion_client, rich_text_property
from renewal_api.config import settings
from renewal_api.schemas.checkout import CheckoutRequest, InvoiceData
from renewal_api.services.line_items import (
    Attendee,
    InvoiceBreakdown,
    TaxMode,
    build_line_items,
    to_stripe_line_items,
)
from renewal_api.utils.logging import get_logger

logger = get_logger(__name__)


def breakdown_from_invoice(invoice: InvoiceData) -> InvoiceBreakdown:
    return InvoiceBreakdown(
        membership_fee=invoice.membership_fee,
        conference_total=invoice.conference_total,
        institution_size=invoice.institution_size,
        paid_attendees=invoice.paid_attendees,
        free_attendees=invoice.free_attendees,
        attendees=tuple(
            Attendee(name=a.name, category=a.category, reason=a.reason)
            for a in invoice.attendee_breakdown
        ),
    )


def product_ids(institution_size: str | None) -> Dict[str, str]:
    """Stripe product id per line item key for an institution size."""
    return {
        "membership": settings.STRIPE_MEMBERSHIP_PRODUCTS.get(institution_size or "", ""),
        "conference": settings.STRIPE_PRODUCT_CONFERENCE,
        "combined": settings.STRIPE_PRODUCT_COMBINED,
    }


def build_checkout_line_items(request: CheckoutRequest, tax_mode: TaxMode) -> List[Dict[str, Any]]:
    province = request.organization_data.address.province if request.organization_data.address else None
    items = build_line_items(
        breakdown_from_invoice(request.invoice_data),
        request.billing_preferences.billing_display,
        province=province,
        tax_mode=tax_mode,
    )
    logger.info(f"✅ Built {len(items)} line items for Stripe")
    return to_stripe_line_items(
        items,
        product_ids(request.invoice_data.institution_size),
        currency=settings.STRIPE_CURRENCY,
    )


def build_session_metadata(request: CheckoutRequest, tax_mode: TaxMode) -> Dict[str, str]:
    """Session metadata; Stripe stores every value as a string."""
    invoice = request.invoice_data
    return {
        **payment_intent_metadata(request),
        "institution_size": invoice.institution_size or "",
        "billing_display": request.billing_preferences.billing_display,
        "membership_fee": str(invoice.membership_fee),
        "conference_total": str(invoice.conference_total),
        "paid_attendees": str(invoice.paid_attendees),
        "free_attendees": str(invoice.free_attendees),
        "tax_mode": tax_mode.value,
    }


def payment_intent_metadata(request: CheckoutRequest) -> Dict[str, str]:
    return {
        "notion_token": request.token,
        "organization_name": request.organization_data.name,
        "qbo_invoice_id": request.qbo_invoice_id or "",
        "qbo_invoice_number": request.qbo_invoice_number or "",
    }


def customer_address(request: CheckoutRequest) -> Dict[str, str]:
    address = request.organization_data.address
    if not address:
        return {}
    fields = {
        "line1": address.street_address,
        "city": address.city,
        "state": address.province,
        "postal_code": address.postal_code,
    }
    result = {key: value for key, value in fields.items() if value}
    if result:
        result["country"] = "CA"
    return result


async def create_checkout_session(request: CheckoutRequest) -> stripe.checkout.Session:
    """
    Create a Stripe customer and checkout session for a renewal.

    Raises:
        ConfigurationError: If STRIPE_SECRET_KEY is not configured
        stripe.StripeError: If Stripe rejects either call
    """
    api_key = payments.get_stripe_api_key()
    tax_mode = TaxMode.parse(settings.STRIPE_TAX_MODE)
    organization = request.organization_data

    line_items = build_checkout_line_items(request, tax_mode)

    contact = organization.primary_contact
    customer = await run_in_threadpool(
        payments.create_customer,
        api_key=api_key,
        email=contact.work_email if contact else None,
        name=organization.name,
        address=customer_address(request) or None,
        metadata={"notion_token": request.token},
    )
    logger.info(f"👤 Stripe customer created: {customer.id}")

    params: Dict[str, Any] = {
        "mode": "payment",
        "customer": customer.id,
        "line_items": line_items,
        "success_url": settings.STRIPE_SUCCESS_URL + "?session_id={CHECKOUT_SESSION_ID}",
        "cancel_url": settings.STRIPE_CANCEL_URL,
        "metadata": build_session_metadata(request, tax_mode),
        "payment_intent_data": {"metadata": payment_intent_metadata(request)},
        "billing_address_collection": "required",
        "phone_number_collection": {"enabled": False},
    }
    if tax_mode is TaxMode.AUTOMATIC:
        params["automatic_tax"] = {"enabled": True}
        params["customer_update"] = {"address": "auto", "name": "auto"}

    session = await run_in_threadpool(payments.create_checkout_session, api_key=api_key, **params)
    logger.info(f"✅ Stripe Checkout Session created: {session.id}")
    return session


async def save_session_to_notion(
    token: str,
    session_id: str,
    qbo_invoice_id: str | None = None,
    qbo_invoice_number: str | None = None,
) -> Dict[str, Any]:
    """
    Store the checkout session id (and QuickBooks invoice refs) on the organization page.

    The token is the Notion page id.

    Raises:
        ConfigurationError: If NOTION_API_KEY is not configured
        NotionAPIError: If Notion rejects the update
    """
    properties = {"Stripe Session ID": rich_text_property(session_id)}
    if qbo_invoice_id:
        properties["QB Invoice ID"] = rich_text_property(qbo_invoice_id)
    if qbo_invoice_number:
        properties["QB Invoice Number"] = rich_text_property(qbo_invoice_number)

    client = get_notion_client()
    return await client.update_page(token, properties)
