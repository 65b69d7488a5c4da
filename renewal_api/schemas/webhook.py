"""
Response schema for the Stripe webhook endpoint.
"""

from typing import Optional

from pydantic import BaseModel


class WebhookResponse(BaseModel):
    """Acknowledgement returned to Stripe; any 2xx stops redelivery."""
    received: bool = True
    session_id: Optional[str] = None
    event_type: Optional[str] = None
