"""
Vendor profile submission endpoint.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from renewal_api.config import ConfigurationError
from renewal_api.schemas.vendor import VendorProfileRequest, VendorProfileResponse
from renewal_api.services.vendor_service import (
    OrganizationNotFoundError,
    ensure_vendor_configuration,
    submit_vendor_profile,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["vendors"])


def _missing_configuration(e: ConfigurationError) -> HTTPException:
    logger.error(f"❌ Missing configuration: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "Missing configuration", "details": str(e)},
    )


@router.post(
    "/submit-vendor-profile",
    response_model=VendorProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Submit an exhibitor vendor profile for review",
    description="""
    Create a submission page in the vendor submissions database.

    - The organization is found by its token; unknown tokens get 404
    - The booth number comes from the organization's booth relation (or TBD)
    - Only the form fields that were filled in are written
    """,
)
async def submit_vendor_profile_endpoint(request: VendorProfileRequest) -> VendorProfileResponse:
    try:
        ensure_vendor_configuration()
    except ConfigurationError as e:
        raise _missing_configuration(e)

    if not request.token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Token is required"},
        )

    try:
        submission = await submit_vendor_profile(
            request.token,
            form=request.form_state,
            catalogue=request.catalogue_state,
        )
    except ConfigurationError as e:
        raise _missing_configuration(e)
    except OrganizationNotFoundError:
        logger.warning(f"Organization not found for token: {request.token}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Organization not found"},
        )
    except Exception as e:
        logger.error(f"💥 Error in vendor profile submission: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to submit vendor profile", "details": str(e)},
        )

    return VendorProfileResponse(submission_id=submission.get("id", ""))
