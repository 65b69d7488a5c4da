"""
Pydantic schemas for vendor profile submissions.
"""

from typing import Optional

from pydantic import Field

from renewal_api.schemas.common import CamelModel


class VendorFormState(CamelModel):
    """Vendor profile form fields; every field is optional."""
    company_name: Optional[str] = None
    website: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    highlight_headline: Optional[str] = None
    highlight_description: Optional[str] = None
    highlight_deal: Optional[str] = None
    highlight_image_url: Optional[str] = None


class CatalogueState(CamelModel):
    uploaded_url: Optional[str] = None


class VendorProfileRequest(CamelModel):
    """Request body for POST /api/submit-vendor-profile."""
    token: Optional[str] = Field(None, description="Organization token")
    form_state: Optional[VendorFormState] = None
    catalogue_state: Optional[CatalogueState] = None


class VendorProfileResponse(CamelModel):
    success: bool = True
    submission_id: str
    message: str = "Vendor profile submitted for review!"
