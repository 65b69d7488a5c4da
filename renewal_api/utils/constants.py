"""
Accounting and tax constants shared by the checkout, webhook and bookkeeping code.

Tax rates follow the Canadian GST/HST schedule used by the association:
HST provinces carry their harmonized rate, every other province pays 5% GST.
Conference registrations are taxed at the Ontario rate because the conference
is held in Ontario.

See: QuickBooks chart of accounts "Membership Revenue" and "Conference".
"""

from decimal import Decimal

GST_RATE = Decimal("0.05")
ONTARIO_HST_RATE = Decimal("0.13")
CONFERENCE_TAX_RATE = ONTARIO_HST_RATE

PROVINCE_HST_RATES = {
    'Ontario': ONTARIO_HST_RATE,
    'Nova Scotia': Decimal("0.14"),
    'New Brunswick': Decimal("0.15"),
    'Newfoundland': Decimal("0.15"),
    'Newfoundland and Labrador': Decimal("0.15"),
    'Prince Edward Island': Decimal("0.15"),
}

# Stripe reports customer addresses with two-letter codes
PROVINCE_CODES = {
    'ON': 'Ontario',
    'NS': 'Nova Scotia',
    'NB': 'New Brunswick',
    'NL': 'Newfoundland and Labrador',
    'PE': 'Prince Edward Island',
    'QC': 'Quebec',
    'MB': 'Manitoba',
    'SK': 'Saskatchewan',
    'AB': 'Alberta',
    'BC': 'British Columbia',
    'YT': 'Yukon',
    'NT': 'Northwest Territories',
    'NU': 'Nunavut',
}

# QuickBooks tax code ids
QBO_TAX_CODES = {
    'GST': '3',
    'HST_NB_PEI': '8',
    'HST_NS': '10',
    'HST_NL': '12',
    'HST_ON': '13',
    'EXEMPT': 'NON',
}

QBO_TAX_CODE_DESCRIPTIONS = {
    '3': 'GST 5%',
    '8': 'HST 15% (NB, PEI)',
    '10': 'HST 14% (NS)',
    '12': 'HST 15% (NL)',
    '13': 'HST 13% (ON - conference)',
    'NON': 'Tax exempt (for single-item billing)',
}

# Revenue accounts per institution size
MEMBERSHIP_ACCOUNTS = {
    'XSmall': '4114',
    'Small': '4118',
    'Medium': '4119',
    'Large': '4120',
    'XLarge': '4121',
}
DEFAULT_MEMBERSHIP_ACCOUNT = '4110'
CONFERENCE_ACCOUNT = '4210'

ACCOUNT_REFERENCE = [
    ('4110', 'Membership Revenue (Combined - default)'),
    ('4114', 'Membership Revenue - XSmall'),
    ('4118', 'Membership Revenue - Small'),
    ('4119', 'Membership Revenue - Medium'),
    ('4120', 'Membership Revenue - Large'),
    ('4121', 'Membership Revenue - XLarge'),
    ('4210', 'Conference - Delegate Reg'),
]

# QuickBooks items the renewal form invoices against
QBO_EXPECTED_ITEMS = [
    ('Membership 2025-2026 - XSmall', '200000304'),
    ('Membership 2025-2026 - Small', '200000404'),
    ('Membership 2025-2026 - Medium', '200000309'),
    ('Membership 2025-2026 - Large', '200000205'),
    ('Membership 2025-2026 - XLarge', '200000210'),
    ('Membership 2025-2026 (flexible/combined)', '200000312'),
    ('Conference Registration', '200000504'),
]
DEFAULT_TEST_ITEM_ID = '200000404'

# Billing display modes
BILLING_SINGLE_ITEM = 'single-item'
BILLING_MEMBERSHIP_CONFERENCE = 'membership-conference'
BILLING_INDIVIDUAL_LINE_ITEMS = 'individual-line-items'
