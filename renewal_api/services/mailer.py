"""
Email sending service (Resend).

One send primitive plus the composers built on it:

- send_error_notification: operational alert to the admin mailbox
- build_sync_failure_email: alert body for a renewal that never reached Notion
- send_bookkeeper_notification: how a paid invoice's revenue and tax should be
  recorded in QuickBooks

Sending never raises. Callers get an ``EmailResult`` and decide whether a
failed send matters; on the payment path it never does.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

import httpx

from renewal_api.config import settings
from renewal_api.services.line_items import (
    Attendee,
    InvoiceBreakdown,
    membership_account,
    province_tax_name,
    tax_summary,
)
from renewal_api.utils.constants import ACCOUNT_REFERENCE, BILLING_SINGLE_ITEM, CONFERENCE_ACCOUNT
from renewal_api.utils.logging import get_logger

logger = get_logger(__name__)

TORONTO = ZoneInfo("America/Toronto")


@dataclass
class EmailResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    error_name: Optional[str] = None


@dataclass
class BookkeeperNotification:
    """Invoice details for the bookkeeping coding breakdown."""
    organization_name: str
    invoice_id: str
    invoice_number: str
    invoice_url: str
    billing_display: Optional[str]
    institution_size: Optional[str]
    membership_fee: Decimal
    conference_total: Decimal
    tax_collected: Decimal = Decimal("0")
    paid_attendees: int = 0
    free_attendees: int = 0
    attendees: Sequence[Attendee] = ()
    total_amount: Decimal = Decimal("0")
    customer_address: Optional[Dict[str, str]] = None
    payment_method: Optional[str] = None
    extra_references: Dict[str, str] = field(default_factory=dict)


async def send_email(
    to: Optional[str],
    subject: str,
    body: str,
    sender: Optional[str] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> EmailResult:
    """
    Send a plain-text email through Resend.

    Args:
        to: Recipient email address
        subject: Email subject
        body: Plain-text body
        sender: Sender address (defaults to RESEND_SENDER_EMAIL)
        transport: Optional httpx transport (tests)

    Returns:
        EmailResult with the provider message id, or the error on failure.
    """
    sender_email = sender or settings.RESEND_SENDER_EMAIL

    if not settings.RESEND_API_KEY:
        logger.error("❌ Missing RESEND_API_KEY")
        return EmailResult(success=False, error="Resend API key not configured")

    if not to:
        logger.error("❌ Missing recipient email address")
        return EmailResult(success=False, error="Recipient email address required")

    logger.info(f"📧 Sending email via Resend to: {to} (subject: {subject})")

    payload = {
        "from": sender_email,
        "to": [to],
        "subject": subject,
        "text": body,
    }
    url = settings.RESEND_API_URL.rstrip("/") + "/emails"

    try:
        async with httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        ) as client:
            response = await client.post(
                url,
                headers={
                    "Authorization": f"Bearer {settings.RESEND_API_KEY}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error(f"❌ Failed to send email via Resend: {e}")
        return EmailResult(success=False, error=str(e), error_name=type(e).__name__)

    if response.status_code >= 400:
        error_name, message = _parse_resend_error(response)
        logger.error(f"❌ Resend rejected email: {response.status_code} {error_name}: {message}")
        if error_name == "validation_error" and "from" in message.lower():
            logger.error("💥 Invalid sender email - must use verified domain")
        elif response.status_code == 401 or "api key" in message.lower():
            logger.error("💥 Invalid Resend API key - check RESEND_API_KEY env var")
        elif response.status_code == 429:
            logger.error("💥 Resend rate limit exceeded")
        return EmailResult(success=False, error=message, error_name=error_name)

    message_id = _parse_message_id(response)
    logger.info(f"✅ Email sent successfully via Resend (message id: {message_id})")
    return EmailResult(success=True, message_id=message_id)


def _parse_message_id(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return data.get("id")


def _parse_resend_error(response: httpx.Response) -> Tuple[str, str]:
    try:
        data = response.json()
    except ValueError:
        return "http_error", response.text
    if not isinstance(data, dict):
        return "http_error", response.text
    return str(data.get("name") or "http_error"), str(data.get("message") or response.text)


async def send_error_notification(subject: str, body: str) -> EmailResult:
    """Send an operational alert to the admin mailbox."""
    admin_email = settings.ERROR_NOTIFICATION_EMAIL
    logger.info(f"🚨 Sending error notification to: {admin_email}")
    return await send_email(to=admin_email, subject=f"[CSC Membership] {subject}", body=body)


def _money(amount: Decimal) -> str:
    return f"${Decimal(amount):.2f}"


def _attendee_lines(attendees: Sequence[Attendee]) -> List[str]:
    lines = ["Conference Attendees Detail:"]
    for attendee in attendees:
        icon = "💵" if attendee.category == "paid" else "🎫"
        lines.append(f"  {icon} {attendee.name} - {attendee.reason}")
    lines.append("")
    return lines


def build_bookkeeper_email(
    details: BookkeeperNotification,
    now: Optional[datetime] = None,
) -> Tuple[str, str]:
    """
    Compose the bookkeeping notification.

    Returns:
        (subject, body) tuple. The subject is not yet prefixed with
        ``[Bookkeeper]``.
    """
    single_item = details.billing_display == BILLING_SINGLE_ITEM
    account = membership_account(details.institution_size)
    address = details.customer_address or {}
    province = address.get("province") or ""

    lines = [
        "QUICKBOOKS INVOICE CODING NOTIFICATION",
        "========================================",
        "",
        f"Organization: {details.organization_name}",
        f"Invoice Number: {details.invoice_number}",
        f"QB Invoice ID: {details.invoice_id}",
        f"Invoice Total: {_money(details.total_amount)}",
    ]
    if details.payment_method:
        lines.append(f"Payment Method: {details.payment_method}")
    for label, value in details.extra_references.items():
        lines.append(f"{label}: {value}")
    lines.append("")

    if details.customer_address:
        lines += [
            "Billing Address:",
            address.get("street_address") or "",
            f"{address.get('city') or ''}, {province} {address.get('postal_code') or ''}",
            "",
        ]

    lines += [
        f"View Invoice: {details.invoice_url}",
        "",
        "BILLING TYPE: "
        + ("SINGLE LINE ITEM (Combined Payment)" if single_item else "INDIVIDUAL LINE ITEMS"),
        "========================================",
        "",
    ]

    if single_item:
        taxes = tax_summary(
            InvoiceBreakdown(
                membership_fee=details.membership_fee,
                conference_total=details.conference_total,
            ),
            province,
        )
        tax_name = province_tax_name(province)
        percent = f"{taxes['membership_rate'] * 100:.0f}"
        membership_tax = taxes["membership_tax"]
        conference_tax = taxes["conference_tax"]
        grand_total = taxes["total"]

        lines += [
            "⚠️ CODING REQUIRED - SINGLE LINE ITEM INVOICE (TAX EXEMPT)",
            "This invoice was billed as a single TAX-EXEMPT line in QuickBooks.",
            "Revenue AND taxes must be split manually using the breakdown below.",
            "",
            "REVENUE ALLOCATION:",
            "-------------------",
            f"Account {account}: Membership {details.institution_size or ''}",
            f"  Pre-tax Amount: {_money(details.membership_fee)}",
            f"  {tax_name} ({percent}%): {_money(membership_tax)}",
            f"  Total with tax: {_money(details.membership_fee + membership_tax)}",
            "",
            f"Account {CONFERENCE_ACCOUNT}: Conference - Delegate Reg",
            f"  Pre-tax Amount: {_money(details.conference_total)}",
            f"  HST (13%): {_money(conference_tax)}",
            f"  Total with tax: {_money(details.conference_total + conference_tax)}",
            f"  Attendees: {details.paid_attendees} paid, {details.free_attendees} complimentary",
            "",
        ]
        if details.attendees:
            lines += _attendee_lines(details.attendees)
        lines += [
            f"TOTAL INVOICE AMOUNT: {_money(grand_total)}",
            "  (Marked as tax-exempt in QuickBooks - taxes included in line total)",
            "",
            "JOURNAL ENTRY NEEDED:",
            "-------------------",
            f"Dr. Account 4110 (Combined Revenue): {_money(grand_total)}",
            f"Cr. Account {account} (Membership): {_money(details.membership_fee)}",
            f"Cr. Account {CONFERENCE_ACCOUNT} (Conference): {_money(details.conference_total)}",
            f"Cr. GST/HST Payable (Membership {tax_name}): {_money(membership_tax)}",
            f"Cr. GST/HST Payable (Conference HST): {_money(conference_tax)}",
            "",
        ]
    else:
        lines += [
            "✓ NO CODING REQUIRED - LINE ITEMS SEPARATED",
            "This invoice has individual line items already coded in QuickBooks.",
            "",
            "LINE ITEM BREAKDOWN:",
            "-------------------",
            f"Line 1: Membership {details.institution_size or ''}",
            f"  Account: {account}",
            f"  Amount: {_money(details.membership_fee)}",
            "",
        ]
        if details.conference_total > 0:
            lines += [
                "Line 2: Conference - Delegate Reg",
                f"  Account: {CONFERENCE_ACCOUNT}",
                f"  Amount: {_money(details.conference_total)}",
                f"  Attendees: {details.paid_attendees} paid, {details.free_attendees} complimentary",
                "",
            ]
            if details.attendees:
                lines += _attendee_lines(details.attendees)
        lines += [
            f"Tax collected: {_money(details.tax_collected)}",
            "  (Applied at payment; GST/HST already separated per line)",
            "",
        ]

    lines += ["ACCOUNT REFERENCE:", "-------------------"]
    lines += [f"{code}: {label}" for code, label in ACCOUNT_REFERENCE]
    timestamp = (now or datetime.now(TORONTO)).astimezone(TORONTO)
    lines += [
        "",
        "---",
        "This notification was generated automatically when the invoice was paid.",
        f"Timestamp: {timestamp.strftime('%Y-%m-%d %I:%M:%S %p %Z')}",
    ]

    subject = (
        f"QB Invoice {details.invoice_number} - "
        f"{'CODING REQUIRED' if single_item else 'Info Only'} - {details.organization_name}"
    )
    return subject, "\n".join(lines) + "\n"


async def send_bookkeeper_notification(details: BookkeeperNotification) -> EmailResult:
    """Email the bookkeeper the coding breakdown for a paid invoice."""
    bookkeeper_email = settings.BOOKKEEPER_EMAIL
    logger.info(f"📊 Sending bookkeeper notification to: {bookkeeper_email}")
    subject, body = build_bookkeeper_email(details)
    return await send_email(to=bookkeeper_email, subject=f"[Bookkeeper] {subject}", body=body)


def build_sync_failure_email(
    error: Optional[str],
    details: Optional[str] = None,
    organization_name: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> Tuple[str, str]:
    """Compose the alert for a renewal submission that failed to reach Notion."""
    lines = [
        "NOTION SYNC ERROR",
        "=================",
        "",
        "A membership renewal submission failed to sync to Notion.",
        "",
    ]
    if organization_name:
        lines.append(f"Organization: {organization_name}")
    lines += [
        f"Timestamp: {timestamp or datetime.now(TORONTO).isoformat()}",
        f"Error: {error or 'Unknown error'}",
        "",
    ]
    if details:
        lines += ["Error Details:", details, ""]
    lines += [
        "ACTION REQUIRED:",
        "---------------",
        "1. Check the server logs for full error details",
        "2. Verify NOTION_API_KEY is configured correctly",
        "3. Check Notion database permissions",
        "4. Review network connectivity to Notion API",
        "",
        "Note: QuickBooks and Stripe invoices were still created successfully.",
        "The customer may have payment links but their data wasn't saved to Notion.",
    ]
    return "Notion Sync Failed - Action Required", "\n".join(lines) + "\n"
