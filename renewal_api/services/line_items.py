"""
Line item and tax calculation for membership renewal invoices.

Turns an invoice breakdown plus a billing-display mode into priced line items:

- ``single-item``: one combined membership + conference line
- ``membership-conference``: a membership line and one conference line
  (quantity = paid attendees)
- ``individual-line-items`` (and any unrecognised mode): a membership line and
  one conference line per paid attendee

Tax handling depends on the active ``TaxMode``:

- ``automatic``: lines are pre-tax, the payment processor computes tax
- ``exclusive``: lines are pre-tax and explicit GST/HST lines are appended
- ``inclusive``: tax is folded into each unit price

Membership tax follows the organization's province; conference tax is always
the Ontario HST rate.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from renewal_api.utils.constants import (
    BILLING_MEMBERSHIP_CONFERENCE,
    BILLING_SINGLE_ITEM,
    CONFERENCE_TAX_RATE,
    DEFAULT_MEMBERSHIP_ACCOUNT,
    GST_RATE,
    MEMBERSHIP_ACCOUNTS,
    PROVINCE_CODES,
    PROVINCE_HST_RATES,
    QBO_TAX_CODES,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class TaxMode(str, Enum):
    AUTOMATIC = "automatic"
    EXCLUSIVE = "exclusive"
    INCLUSIVE = "inclusive"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TaxMode":
        """Parse a configured tax mode, defaulting to AUTOMATIC."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            logger.warning(f"Unknown tax mode {value!r}, using automatic")
            return cls.AUTOMATIC


@dataclass(frozen=True)
class Attendee:
    name: str
    category: str
    reason: str = ""


@dataclass(frozen=True)
class InvoiceBreakdown:
    """Fee amounts and attendee counts for a single renewal invoice."""
    membership_fee: Decimal
    conference_total: Decimal
    institution_size: Optional[str] = None
    paid_attendees: int = 0
    free_attendees: int = 0
    attendees: Sequence[Attendee] = ()


@dataclass(frozen=True)
class LineItem:
    """
    A priced invoice line.

    ``unit_amount`` is in dollars, already rounded to cents. ``product_key`` is
    one of ``membership``, ``conference``, ``combined`` or ``tax`` and selects
    the payment-processor product.
    """
    product_key: str
    name: str
    unit_amount: Decimal
    quantity: int = 1
    description: Optional[str] = None

    @property
    def total(self) -> Decimal:
        return self.unit_amount * self.quantity


def to_cents(amount: Decimal) -> int:
    """Convert a dollar amount to integer cents, rounding half up."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def round_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def normalize_province(province: Optional[str]) -> str:
    """Map two-letter province codes to full names; pass names through."""
    value = (province or "").strip()
    return PROVINCE_CODES.get(value.upper(), value)


def province_tax_rate(province: Optional[str]) -> Decimal:
    """
    Membership tax rate for an organization's province.

    Ontario 13%, Nova Scotia 14%, New Brunswick / Newfoundland / PEI 15%,
    everything else 5% GST.
    """
    return PROVINCE_HST_RATES.get(normalize_province(province), GST_RATE)


def province_tax_name(province: Optional[str]) -> str:
    return "HST" if normalize_province(province) in PROVINCE_HST_RATES else "GST"


def province_tax_code(province: Optional[str]) -> str:
    """QuickBooks tax code id for membership lines billed to ``province``."""
    name = normalize_province(province)
    if name == "Ontario":
        return QBO_TAX_CODES["HST_ON"]
    if name == "Nova Scotia":
        return QBO_TAX_CODES["HST_NS"]
    if name in ("Newfoundland", "Newfoundland and Labrador"):
        return QBO_TAX_CODES["HST_NL"]
    if name in ("New Brunswick", "Prince Edward Island"):
        return QBO_TAX_CODES["HST_NB_PEI"]
    return QBO_TAX_CODES["GST"]


def conference_tax_rate(province: Optional[str] = None) -> Decimal:
    """Conference tax is the Ontario rate regardless of the organization's province."""
    return CONFERENCE_TAX_RATE


def membership_account(institution_size: Optional[str]) -> str:
    return MEMBERSHIP_ACCOUNTS.get(institution_size or "", DEFAULT_MEMBERSHIP_ACCOUNT)


def per_attendee_fee(breakdown: InvoiceBreakdown) -> Decimal:
    """Even split of the conference total across paid attendees."""
    paid = breakdown.paid_attendees
    if paid <= 0:
        # Counts missing from the form; fall back to the attendee list
        paid = len([a for a in breakdown.attendees if a.category == "paid"])
    if paid <= 0:
        return Decimal("0")
    return Decimal(breakdown.conference_total) / paid


def _gross(amount: Decimal, rate: Decimal, tax_mode: TaxMode) -> Decimal:
    if tax_mode is TaxMode.INCLUSIVE:
        return round_money(amount * (1 + rate))
    return round_money(amount)


def build_line_items(
    breakdown: InvoiceBreakdown,
    billing_display: Optional[str],
    province: Optional[str] = None,
    tax_mode: TaxMode = TaxMode.AUTOMATIC,
) -> List[LineItem]:
    """
    Build priced line items for an invoice.

    Args:
        breakdown: Fee amounts and attendees
        billing_display: Billing-display mode chosen on the form
        province: Organization province (full name or two-letter code)
        tax_mode: How tax is represented on the lines

    Returns:
        Line items in display order; under ``TaxMode.EXCLUSIVE`` the tax lines
        come last.
    """
    membership_rate = province_tax_rate(province)
    conference_rate = conference_tax_rate(province)
    membership_fee = Decimal(breakdown.membership_fee)
    conference_total = Decimal(breakdown.conference_total)
    size = breakdown.institution_size or ""

    items: List[LineItem] = []
    # Pre-tax amounts subject to each rate, for EXCLUSIVE tax lines
    membership_taxable = Decimal("0")
    conference_taxable = Decimal("0")

    logger.debug(f"Building line items with billing_display={billing_display}, tax_mode={tax_mode.value}")

    if billing_display == BILLING_SINGLE_ITEM:
        if tax_mode is TaxMode.INCLUSIVE:
            amount = round_money(
                membership_fee * (1 + membership_rate) + conference_total * (1 + conference_rate)
            )
        else:
            amount = round_money(membership_fee + conference_total)
        items.append(LineItem(
            product_key="combined",
            name="Membership 2025-2026",
            unit_amount=amount,
        ))
        membership_taxable = membership_fee
        conference_taxable = conference_total

    elif billing_display == BILLING_MEMBERSHIP_CONFERENCE:
        items.append(LineItem(
            product_key="membership",
            name=f"Membership 2025-2026 - {size}".rstrip(" -"),
            unit_amount=_gross(membership_fee, membership_rate, tax_mode),
        ))
        membership_taxable = membership_fee

        if conference_total > 0 and breakdown.paid_attendees > 0:
            unit = conference_total / breakdown.paid_attendees
            items.append(LineItem(
                product_key="conference",
                name="Conference Registration",
                unit_amount=_gross(unit, conference_rate, tax_mode),
                quantity=breakdown.paid_attendees,
            ))
            conference_taxable = conference_total

    else:
        items.append(LineItem(
            product_key="membership",
            name=f"Membership 2025-2026 - {size}".rstrip(" -"),
            unit_amount=_gross(membership_fee, membership_rate, tax_mode),
        ))
        membership_taxable = membership_fee

        paid = [a for a in breakdown.attendees if a.category == "paid"]
        if paid:
            unit = per_attendee_fee(breakdown)
            logger.debug(f"Adding {len(paid)} individual attendee lines")
            for attendee in paid:
                items.append(LineItem(
                    product_key="conference",
                    name="Conference Registration",
                    unit_amount=_gross(unit, conference_rate, tax_mode),
                    description=attendee.name,
                ))
                conference_taxable += unit
        else:
            logger.debug("No paid attendees in breakdown, skipping conference lines")

    if tax_mode is TaxMode.EXCLUSIVE:
        items.extend(_tax_lines(membership_taxable, conference_taxable, province))

    return items


def _tax_lines(
    membership_taxable: Decimal,
    conference_taxable: Decimal,
    province: Optional[str],
) -> List[LineItem]:
    lines = []
    rate = province_tax_rate(province)
    if membership_taxable > 0:
        lines.append(LineItem(
            product_key="tax",
            name=f"Membership {province_tax_name(province)} ({rate * 100:.0f}%)",
            unit_amount=round_money(membership_taxable * rate),
        ))
    if conference_taxable > 0:
        lines.append(LineItem(
            product_key="tax",
            name=f"Conference HST ({CONFERENCE_TAX_RATE * 100:.0f}%)",
            unit_amount=round_money(conference_taxable * CONFERENCE_TAX_RATE),
        ))
    return lines


def tax_summary(breakdown: InvoiceBreakdown, province: Optional[str]) -> Dict[str, Decimal]:
    """Membership and conference tax amounts for bookkeeping."""
    membership_rate = province_tax_rate(province)
    membership_tax = round_money(Decimal(breakdown.membership_fee) * membership_rate)
    conference_tax = round_money(Decimal(breakdown.conference_total) * CONFERENCE_TAX_RATE)
    return {
        "membership_rate": membership_rate,
        "membership_tax": membership_tax,
        "conference_rate": CONFERENCE_TAX_RATE,
        "conference_tax": conference_tax,
        "total": round_money(
            Decimal(breakdown.membership_fee) + membership_tax
            + Decimal(breakdown.conference_total) + conference_tax
        ),
    }


def to_stripe_line_items(
    items: Sequence[LineItem],
    products: Mapping[str, Optional[str]],
    currency: str = "cad",
) -> List[Dict[str, Any]]:
    """
    Map line items to Stripe Checkout ``line_items`` entries.

    ``products`` maps a ``product_key`` to a Stripe product id. Keys without a
    configured id, and lines carrying a description (attendee names), are sent
    as inline ``product_data`` so the name shows on the checkout page.
    """
    stripe_items = []
    for item in items:
        price_data: Dict[str, Any] = {
            "currency": currency,
            "unit_amount": to_cents(item.unit_amount),
        }
        product_id = products.get(item.product_key)
        if item.description:
            price_data["product_data"] = {"name": f"{item.name} - {item.description}"}
        elif product_id:
            price_data["product"] = product_id
        else:
            price_data["product_data"] = {"name": item.name}

        stripe_items.append({"price_data": price_data, "quantity": item.quantity})

    return stripe_items
