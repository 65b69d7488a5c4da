"""QuickBooks Online (QBO) connector.

Purpose
- Read-only data calls used by the diagnostics pages (items, tax codes,
  company info) over httpx.
- OAuth code exchange and refresh through intuitlib's AuthClient.

The OAuth helpers are blocking; routes run them in FastAPI's threadpool.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from intuitlib.client import AuthClient

from renewal_api.config import ConfigurationError, settings
from renewal_api.utils.logging import get_logger

logger = get_logger(__name__)


class QuickBooksAPIError(RuntimeError):
    """Non-2xx response from the QuickBooks API."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"QuickBooks API error: {status_code} {body}")


@dataclass
class QBOTokens:
    access_token: str
    refresh_token: str
    realm_id: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: str = "bearer"


class QuickBooksClient:
    def __init__(
        self,
        *,
        access_token: str,
        company_id: str,
        base_url: str = "https://quickbooks.api.intuit.com",
        minor_version: Optional[str] = "65",
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._access_token = access_token
        self._company_id = company_id
        self._base_url = base_url.rstrip("/")
        self._minor_version = minor_version
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "QuickBooksClient":
        if not settings.QBO_ACCESS_TOKEN or not settings.QBO_COMPANY_ID:
            raise ConfigurationError("Missing QuickBooks credentials")
        return cls(
            access_token=settings.QBO_ACCESS_TOKEN,
            company_id=settings.QBO_COMPANY_ID,
            base_url=settings.QBO_BASE_URL,
            minor_version=settings.QBO_MINOR_VERSION,
            timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
        )

    @property
    def company_id(self) -> str:
        return self._company_id

    async def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        params = dict(params or {})
        if self._minor_version:
            params.setdefault("minorversion", self._minor_version)

        async with httpx.AsyncClient(
            timeout=self._timeout_seconds,
            transport=self._transport,
        ) as client:
            response = await client.get(
                f"{self._base_url}/v3/company/{self._company_id}{path}",
                headers={
                    "Authorization": f"Bearer {self._access_token}",
                    "Accept": "application/json",
                },
                params=params,
            )

        if response.status_code >= 400:
            raise QuickBooksAPIError(response.status_code, response.text)
        return response.json()

    async def query(self, statement: str) -> Dict[str, Any]:
        """Run a QBO Query API statement."""
        return await self._get("/query", params={"query": statement})

    async def _query_entities(self, entity: str, statement: str) -> List[Dict[str, Any]]:
        data = await self.query(statement)
        found = (data.get("QueryResponse") or {}).get(entity)
        if found is None:
            return []
        if isinstance(found, dict):
            return [found]
        return list(found)

    async def list_items(self, *, max_results: int = 100) -> List[Dict[str, Any]]:
        statement = (
            "SELECT * FROM Item WHERE Type = 'Service' OR Type = 'NonInventory' "
            f"MAXRESULTS {int(max_results)}"
        )
        return await self._query_entities("Item", statement)

    async def list_tax_codes(self, *, max_results: int = 100) -> List[Dict[str, Any]]:
        return await self._query_entities("TaxCode", f"SELECT * FROM TaxCode MAXRESULTS {int(max_results)}")

    async def get_item(self, item_id: str) -> Dict[str, Any]:
        data = await self._get(f"/item/{item_id}")
        return data.get("Item") or {}

    async def get_company_info(self) -> Dict[str, Any]:
        data = await self._get(f"/companyinfo/{self._company_id}")
        return data.get("CompanyInfo") or {}


def build_auth_client(redirect_uri: Optional[str] = None, refresh_token: Optional[str] = None) -> AuthClient:
    if not settings.QBO_CLIENT_ID or not settings.QBO_CLIENT_SECRET:
        raise ConfigurationError("QuickBooks credentials not configured")
    return AuthClient(
        client_id=settings.QBO_CLIENT_ID.strip(),
        client_secret=settings.QBO_CLIENT_SECRET.strip(),
        redirect_uri=redirect_uri or settings.QBO_REDIRECT_URI or f"{settings.PUBLIC_BASE_URL}/api/qbo-oauth-callback",
        environment=settings.QBO_ENVIRONMENT,
        refresh_token=refresh_token,
    )


def exchange_authorization_code(code: str, realm_id: str, redirect_uri: str) -> QBOTokens:
    """
    Exchange an OAuth authorization code for access/refresh tokens.

    Raises:
        ConfigurationError: If client id/secret are missing
        intuitlib.exceptions.AuthClientError: If Intuit rejects the exchange
    """
    auth = build_auth_client(redirect_uri=redirect_uri)
    auth.get_bearer_token(code, realm_id=realm_id)
    return QBOTokens(
        access_token=auth.access_token,
        refresh_token=auth.refresh_token,
        realm_id=realm_id,
        expires_in=auth.expires_in,
    )


def refresh_access_token(refresh_token: str) -> QBOTokens:
    """
    Trade a refresh token for a new access token.

    Raises:
        intuitlib.exceptions.AuthClientError: If Intuit rejects the refresh token
    """
    auth = build_auth_client(refresh_token=refresh_token.strip())
    auth.refresh(refresh_token=auth.refresh_token)
    if not auth.access_token:
        raise RuntimeError("QBO token refresh failed (missing refreshed access_token)")
    return QBOTokens(
        access_token=auth.access_token,
        refresh_token=auth.refresh_token,
        expires_in=auth.expires_in,
    )
