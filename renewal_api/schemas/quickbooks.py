"""
Pydantic schemas for the QuickBooks endpoints.
"""

from typing import Any, Dict, Optional

from renewal_api.schemas.common import CamelModel


class ItemDetail(CamelModel):
    id: Optional[str] = None
    name: str = ""
    type: str = ""
    active: bool = False
    description: str = ""
    unit_price: float = 0
    income_account_ref: Optional[Dict[str, Any]] = None


class ItemCheckResponse(CamelModel):
    """Result of GET /api/test-qbo-item; a missing item is not an error."""
    exists: bool
    item_id: str
    item: Optional[ItemDetail] = None
    error: Optional[str] = None
    details: Optional[str] = None


class OAuthTokenResponse(CamelModel):
    """Tokens from a completed OAuth authorization (JSON clients only)."""
    success: bool = True
    access_token: str
    refresh_token: str
    realm_id: str
    expires_in: Optional[int] = None
    token_type: str = "bearer"
