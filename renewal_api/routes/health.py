"""
Health check route for the membership renewal API.

This endpoint is PUBLIC and provides a simple status check for load
balancers, monitoring, and deployment verification. It does not call any
external service.
"""

from fastapi import APIRouter

from renewal_api.schemas.health import HealthResponse
from renewal_api.utils.logging import get_logger

logger = get_logger(__name__)

# Create router with no prefix (mounted at root level in main.py)
router = APIRouter(tags=["system"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint",
    description=(
        "Public health check endpoint. "
        "Returns a simple status indicator for monitoring and load balancing."
    ),
    status_code=200,
)
async def health_check() -> HealthResponse:
    """
    Public health check endpoint.

    Example response:
        {
            "status": "healthy",
            "service": "csc-membership-renewal-api"
        }
    """
    logger.debug("Health check endpoint called")

    return HealthResponse()
