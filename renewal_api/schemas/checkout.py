"""
Pydantic schemas for the Stripe checkout endpoint.

Request keys mirror what the renewal form posts (camelCase).
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from renewal_api.schemas.common import CamelModel
from renewal_api.utils.constants import BILLING_INDIVIDUAL_LINE_ITEMS


class Address(CamelModel):
    street_address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None


class PrimaryContact(CamelModel):
    name: Optional[str] = None
    work_email: Optional[str] = None


class OrganizationData(CamelModel):
    """Organization block from the renewal form (extra keys are ignored)."""
    name: str = Field(..., min_length=1, description="Organization name")
    address: Optional[Address] = None
    primary_contact: Optional[PrimaryContact] = None


class AttendeeEntry(CamelModel):
    name: str = ""
    category: str = Field("", description="'paid' or a complimentary category")
    reason: str = ""


class InvoiceData(CamelModel):
    """Fee breakdown calculated by the renewal form."""
    membership_fee: Decimal = Field(Decimal("0"), ge=0)
    conference_total: Decimal = Field(Decimal("0"), ge=0)
    institution_size: Optional[str] = Field(None, examples=["Small"])
    paid_attendees: int = Field(0, ge=0)
    free_attendees: int = Field(0, ge=0)
    attendee_breakdown: List[AttendeeEntry] = Field(default_factory=list)


class BillingPreferences(CamelModel):
    billing_display: str = Field(
        BILLING_INDIVIDUAL_LINE_ITEMS,
        description="single-item | membership-conference | individual-line-items",
    )


class CheckoutRequest(CamelModel):
    """Request body for POST /api/create-stripe-checkout."""
    token: str = Field(..., min_length=1, description="Notion page id of the organization")
    organization_data: OrganizationData
    invoice_data: InvoiceData
    billing_preferences: BillingPreferences = Field(default_factory=BillingPreferences)
    qbo_invoice_id: Optional[str] = None
    qbo_invoice_number: Optional[str] = None


class CheckoutResponse(CamelModel):
    """Response for a created checkout session."""
    success: bool = True
    message: str = "Stripe checkout session created"
    session_id: str
    checkout_url: Optional[str] = None
    qbo_invoice_id: Optional[str] = None
    qbo_invoice_number: Optional[str] = None
