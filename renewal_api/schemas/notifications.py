"""
Pydantic schemas for the notification endpoints.
"""

from typing import Optional

from pydantic import Field

from renewal_api.schemas.common import CamelModel


class ErrorNotificationRequest(CamelModel):
    """Sync failure reported by the renewal form."""
    error: Optional[str] = Field(None, description="Short error message")
    details: Optional[str] = Field(None, description="Stack trace or response body")
    organization_name: Optional[str] = None
    timestamp: Optional[str] = Field(None, description="ISO timestamp from the browser")


class NotificationResponse(CamelModel):
    success: bool
    message: str
