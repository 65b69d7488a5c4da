"""
Health check endpoint schemas.
"""

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """
    Response model for GET /health endpoint.

    Used by load balancers, monitoring systems, and deployment checks.
    """

    status: str = Field(
        default="healthy",
        description="Health status of the API (always 'healthy' if responding)",
        examples=["healthy"]
    )
    service: str = Field(default="csc-membership-renewal-api")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "service": "csc-membership-renewal-api"
            }
        }
    )
