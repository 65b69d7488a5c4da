"""
Tests for POST /api/submit-vendor-profile.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from renewal_api.clients.notion import NotionAPIError
from renewal_api.config import ConfigurationError, settings
from renewal_api.main import app
from renewal_api.services.vendor_service import OrganizationNotFoundError


@pytest.fixture
def client():
    """Create test client for FastAPI app."""
    return TestClient(app)


@pytest.fixture
def payload():
    return {
        "token": "org-token-abc",
        "formState": {
            "companyName": "Paper Goods Co",
            "website": "https://papergoods.example.com",
            "category": "Stationery",
        },
        "catalogueState": {"uploadedUrl": "https://files.example.com/catalogue.pdf"},
    }


@pytest.fixture
def mock_submit():
    with patch(
        "renewal_api.routes.vendor.submit_vendor_profile", new_callable=AsyncMock
    ) as submit:
        submit.return_value = {"id": "submission-page-1"}
        yield submit


class TestSubmitVendorProfile:

    def test_success(self, client, payload, mock_submit):
        response = client.post("/api/submit-vendor-profile", json=payload)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "submissionId": "submission-page-1",
            "message": "Vendor profile submitted for review!",
        }
        args, kwargs = mock_submit.call_args
        assert args == ("org-token-abc",)
        assert kwargs["form"].company_name == "Paper Goods Co"
        assert kwargs["catalogue"].uploaded_url == "https://files.example.com/catalogue.pdf"

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token_is_400(self, client, payload, token, mock_submit):
        payload["token"] = token

        response = client.post("/api/submit-vendor-profile", json=payload)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "Token is required"
        mock_submit.assert_not_awaited()

    def test_unknown_organization_is_404(self, client, payload, mock_submit):
        mock_submit.side_effect = OrganizationNotFoundError("org-token-abc")

        response = client.post("/api/submit-vendor-profile", json=payload)

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "Organization not found"

    def test_configuration_checked_before_token(self, client, payload, mock_submit, monkeypatch):
        monkeypatch.setattr(settings, "NOTION_SUBMISSIONS_DB_ID", "")
        payload["token"] = None

        response = client.post("/api/submit-vendor-profile", json=payload)

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "Missing configuration"
        mock_submit.assert_not_awaited()

    def test_missing_configuration_is_500(self, client, payload, mock_submit):
        mock_submit.side_effect = ConfigurationError("Missing configuration")

        response = client.post("/api/submit-vendor-profile", json=payload)

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "Missing configuration"

    def test_notion_rejection_is_500(self, client, payload, mock_submit):
        mock_submit.side_effect = NotionAPIError(400, "validation_error: Status is not a property")

        response = client.post("/api/submit-vendor-profile", json=payload)

        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail["error"] == "Failed to submit vendor profile"

    def test_form_and_catalogue_are_optional(self, client, mock_submit):
        response = client.post("/api/submit-vendor-profile", json={"token": "org-token-abc"})

        assert response.status_code == 200
        assert mock_submit.call_args.kwargs["form"] is None
