"""
Service layer for the membership renewal API.

Contains the business logic behind each endpoint:
- Turns invoice breakdowns into priced Stripe line items with GST/HST
- Orchestrates Stripe, Notion, QuickBooks and Resend calls
- Composes bookkeeping and admin notification emails

Services act as the glue between routes (HTTP layer) and the external API
clients. They raise typed errors; routes map them to HTTP responses.
"""

from .checkout_service import create_checkout_session, save_session_to_notion
from .line_items import (
    InvoiceBreakdown,
    LineItem,
    TaxMode,
    build_line_items,
    province_tax_rate,
    tax_summary,
    to_stripe_line_items,
)
from .mailer import (
    BookkeeperNotification,
    EmailResult,
    send_bookkeeper_notification,
    send_email,
    send_error_notification,
)
from .vendor_service import OrganizationNotFoundError, submit_vendor_profile
from .webhook_service import handle_checkout_completed, mark_organization_paid

__all__ = [
    "create_checkout_session",
    "save_session_to_notion",
    "InvoiceBreakdown",
    "LineItem",
    "TaxMode",
    "build_line_items",
    "province_tax_rate",
    "tax_summary",
    "to_stripe_line_items",
    "BookkeeperNotification",
    "EmailResult",
    "send_bookkeeper_notification",
    "send_email",
    "send_error_notification",
    "OrganizationNotFoundError",
    "submit_vendor_profile",
    "handle_checkout_completed",
    "mark_organization_paid",
]
