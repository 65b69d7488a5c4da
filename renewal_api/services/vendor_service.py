"""
Vendor profile submission service.

Exhibitors submit a vendor profile through the renewal site. Each submission
is stored as a new page in the submissions database, tagged with the
organization's token and the booth number assigned to it.
"""

import re
from datetime import date
from typing import Any, Dict, Optional

from renewal_api.clients.notion import (
    NotionClient,
    date_property,
    get_notion_client,
    plain_text,
    relation_ids,
    rich_text_property,
    select_property,
    status_property,
    title_property,
    url_property,
)
from renewal_api.config import ConfigurationError, settings
from renewal_api.schemas.vendor import CatalogueState, VendorFormState
from renewal_api.utils.logging import get_logger

logger = get_logger(__name__)

BOOTH_RELATION = "26 Booth Number"
BOOTH_TITLE = "Booth Number"
BOOTH_TBD = "TBD"
PENDING_REVIEW = "Pending Review"

_BOOTH_NUMBER = re.compile(r"^(\d{1,3})")


class OrganizationNotFoundError(LookupError):
    """No organization page carries the submitted token."""


def booth_number_from_title(title: str) -> str:
    """Leading 1-3 digits of a booth page title, else ``TBD``."""
    match = _BOOTH_NUMBER.match(title or "")
    return match.group(1) if match else BOOTH_TBD


def ensure_vendor_configuration() -> None:
    """Raise ``ConfigurationError`` unless the Notion key and both database ids are set."""
    if (
        not settings.NOTION_API_KEY
        or not settings.NOTION_ORGANIZATIONS_DB_ID
        or not settings.NOTION_SUBMISSIONS_DB_ID
    ):
        raise ConfigurationError("Missing configuration")


async def find_organization(client: NotionClient, token: str) -> Dict[str, Any]:
    results = await client.query_database(
        settings.NOTION_ORGANIZATIONS_DB_ID,
        filter={"property": "Token", "rich_text": {"equals": token}},
    )
    if not results:
        raise OrganizationNotFoundError(token)
    return results[0]


async def resolve_booth_number(client: NotionClient, organization: Dict[str, Any]) -> str:
    """Booth number from the organization's booth relation; ``TBD`` when unassigned."""
    related = relation_ids((organization.get("properties") or {}).get(BOOTH_RELATION))
    if not related:
        return BOOTH_TBD

    try:
        booth_page = await client.retrieve_page(related[0])
    except Exception as e:
        logger.warning(f"Could not load booth page {related[0]}: {e}")
        return BOOTH_TBD

    title = plain_text((booth_page.get("properties") or {}).get(BOOTH_TITLE))
    booth_number = booth_number_from_title(title)
    logger.info(f"🎪 Found booth number: {booth_number}")
    return booth_number


def build_submission_properties(
    token: str,
    booth_number: str,
    form: Optional[VendorFormState],
    catalogue: Optional[CatalogueState],
    submitted_on: Optional[date] = None,
) -> Dict[str, Any]:
    """Submission page properties; empty form fields are left out."""
    properties: Dict[str, Any] = {
        "Token": title_property(token),
        "Booth Number": rich_text_property(booth_number),
        "Submission Date": date_property((submitted_on or date.today()).isoformat()),
        "Status": status_property(PENDING_REVIEW),
    }

    form = form or VendorFormState()
    text_fields = {
        "Company Name": form.company_name,
        "Company Description": form.description,
        "Highlight Product Name": form.highlight_headline,
        "Highlight Product Description": form.highlight_description,
        "Conference Special": form.highlight_deal,
    }
    for name, value in text_fields.items():
        if value:
            properties[name] = rich_text_property(value)

    if form.website:
        properties["Website URL"] = url_property(form.website)
    if form.category:
        properties["Primary Category"] = select_property(form.category)
    if form.highlight_image_url:
        properties["Highlight Image URL"] = url_property(form.highlight_image_url)
    if catalogue and catalogue.uploaded_url:
        properties["Catalogue"] = url_property(catalogue.uploaded_url)

    return properties


async def submit_vendor_profile(
    token: str,
    form: Optional[VendorFormState] = None,
    catalogue: Optional[CatalogueState] = None,
) -> Dict[str, Any]:
    """
    Create a vendor submission for the organization identified by ``token``.

    Returns:
        The created Notion page.

    Raises:
        ConfigurationError: If the Notion key or either database id is missing
        OrganizationNotFoundError: If no organization has this token
        NotionAPIError: If Notion rejects the query or the page creation
    """
    ensure_vendor_configuration()
    client = get_notion_client()

    logger.info(f"🚀 Creating vendor submission for token: {token}")
    organization = await find_organization(client, token)
    org_name = plain_text((organization.get("properties") or {}).get("Organization"))
    logger.info(f"🏢 Found organization: {org_name or organization.get('id')}")

    booth_number = await resolve_booth_number(client, organization)
    properties = build_submission_properties(token, booth_number, form, catalogue)

    submission = await client.create_page(settings.NOTION_SUBMISSIONS_DB_ID, properties)
    logger.info(f"🎉 Created vendor submission: {submission.get('id')}")
    return submission
