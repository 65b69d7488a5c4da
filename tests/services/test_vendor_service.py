"""
Tests for vendor profile submissions.
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from renewal_api.clients.notion import NotionAPIError
from renewal_api.config import ConfigurationError, settings
from renewal_api.schemas.vendor import CatalogueState, VendorFormState
from renewal_api.services.vendor_service import (
    OrganizationNotFoundError,
    booth_number_from_title,
    build_submission_properties,
    resolve_booth_number,
    submit_vendor_profile,
)


@pytest.fixture
def organization():
    return {
        "id": "org-page-1",
        "properties": {
            "Organization": {"title": [{"plain_text": "Campus Store U"}]},
            "26 Booth Number": {"relation": [{"id": "booth-page-1"}]},
        },
    }


@pytest.fixture
def notion_client(organization):
    client = MagicMock()
    client.query_database = AsyncMock(return_value=[organization])
    client.retrieve_page = AsyncMock(return_value={
        "properties": {"Booth Number": {"title": [{"text": {"content": "112 - Main Hall"}}]}},
    })
    client.create_page = AsyncMock(return_value={"id": "submission-1"})
    return client


@pytest.fixture
def db_settings(monkeypatch):
    monkeypatch.setattr(settings, "NOTION_ORGANIZATIONS_DB_ID", "orgs-db-id")
    monkeypatch.setattr(settings, "NOTION_SUBMISSIONS_DB_ID", "submissions-db-id")


class TestBoothNumber:

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("112 - Main Hall", "112"),
            ("7", "7"),
            ("1234 Annex", "123"),
            ("Booth 12", "TBD"),
            ("", "TBD"),
        ],
    )
    def test_leading_digits(self, title, expected):
        assert booth_number_from_title(title) == expected

    @pytest.mark.asyncio
    async def test_no_relation_is_tbd(self, notion_client):
        booth = await resolve_booth_number(notion_client, {"properties": {}})

        assert booth == "TBD"
        notion_client.retrieve_page.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unreadable_booth_page_is_tbd(self, notion_client, organization):
        notion_client.retrieve_page.side_effect = NotionAPIError(404, "not found")

        assert await resolve_booth_number(notion_client, organization) == "TBD"


class TestBuildSubmissionProperties:

    def test_required_properties(self):
        properties = build_submission_properties("tok-1", "112", None, None, submitted_on=date(2025, 6, 1))

        assert properties == {
            "Token": {"title": [{"text": {"content": "tok-1"}}]},
            "Booth Number": {"rich_text": [{"text": {"content": "112"}}]},
            "Submission Date": {"date": {"start": "2025-06-01"}},
            "Status": {"status": {"name": "Pending Review"}},
        }

    def test_optional_fields_are_mapped(self):
        form = VendorFormState(
            company_name="Acme Books",
            website="https://acme.example",
            category="Textbooks",
            description="Course materials",
            highlight_headline="Open Texts",
            highlight_description="Free digital editions",
            highlight_deal="10% off",
            highlight_image_url="https://cdn.example/img.png",
        )
        catalogue = CatalogueState(uploaded_url="https://cdn.example/catalogue.pdf")

        properties = build_submission_properties("tok-1", "TBD", form, catalogue)

        assert properties["Company Name"] == {"rich_text": [{"text": {"content": "Acme Books"}}]}
        assert properties["Website URL"] == {"url": "https://acme.example"}
        assert properties["Primary Category"] == {"select": {"name": "Textbooks"}}
        assert properties["Conference Special"] == {"rich_text": [{"text": {"content": "10% off"}}]}
        assert properties["Highlight Product Name"]["rich_text"][0]["text"]["content"] == "Open Texts"
        assert properties["Highlight Image URL"] == {"url": "https://cdn.example/img.png"}
        assert properties["Catalogue"] == {"url": "https://cdn.example/catalogue.pdf"}

    def test_empty_fields_are_omitted(self):
        properties = build_submission_properties("tok-1", "TBD", VendorFormState(company_name=""), CatalogueState())

        assert "Company Name" not in properties
        assert "Catalogue" not in properties


class TestSubmitVendorProfile:

    @pytest.mark.asyncio
    async def test_creates_submission_with_booth_number(self, notion_client, db_settings):
        with patch("renewal_api.services.vendor_service.get_notion_client", return_value=notion_client):
            submission = await submit_vendor_profile("tok-1", VendorFormState(company_name="Acme"))

        assert submission == {"id": "submission-1"}
        notion_client.query_database.assert_awaited_once_with(
            "orgs-db-id",
            filter={"property": "Token", "rich_text": {"equals": "tok-1"}},
        )
        database_id, properties = notion_client.create_page.call_args.args
        assert database_id == "submissions-db-id"
        assert properties["Booth Number"]["rich_text"][0]["text"]["content"] == "112"

    @pytest.mark.asyncio
    async def test_unknown_token_raises_not_found(self, notion_client, db_settings):
        notion_client.query_database.return_value = []

        with patch("renewal_api.services.vendor_service.get_notion_client", return_value=notion_client):
            with pytest.raises(OrganizationNotFoundError):
                await submit_vendor_profile("unknown")

        notion_client.create_page.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_database_id_is_configuration_error(self, monkeypatch):
        monkeypatch.setattr(settings, "NOTION_ORGANIZATIONS_DB_ID", "")

        with pytest.raises(ConfigurationError):
            await submit_vendor_profile("tok-1")
