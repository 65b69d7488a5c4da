"""
QuickBooks Online endpoints.

Read-only diagnostics used while setting up and maintaining the integration:

- GET /api/list-qbo-items          HTML table of service/non-inventory items
- GET /api/list-qbo-tax-codes      HTML table of tax codes
- GET /api/test-qbo-item           does one item id exist?
- GET /api/diagnose-qb             credential shape plus a live refresh test
- GET /api/qb-token-status         live access-token test with warnings
- GET /api/qbo-oauth-callback      OAuth redirect target; shows the new tokens
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Header, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse
from intuitlib.exceptions import AuthClientError

from renewal_api.clients.quickbooks import QuickBooksAPIError, exchange_authorization_code
from renewal_api.config import ConfigurationError, settings
from renewal_api.schemas.quickbooks import ItemCheckResponse, OAuthTokenResponse
from renewal_api.services import quickbooks_service
from renewal_api.utils.constants import (
    DEFAULT_TEST_ITEM_ID,
    QBO_EXPECTED_ITEMS,
    QBO_TAX_CODE_DESCRIPTIONS,
)
from renewal_api.utils.templates import templates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["quickbooks"])

OAUTH_CALLBACK_PATH = "/api/qbo-oauth-callback"


def _missing_credentials(e: ConfigurationError) -> HTTPException:
    logger.error(f"❌ {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "Missing QuickBooks credentials", "details": str(e)},
    )


def _upstream_failure(error: str, e: Exception) -> HTTPException:
    logger.error(f"❌ {error}: {e}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": error, "details": str(e)},
    )


@router.get(
    "/list-qbo-items",
    response_class=HTMLResponse,
    summary="List QuickBooks items",
)
async def list_qbo_items(request: Request) -> HTMLResponse:
    try:
        items = await quickbooks_service.list_items()
    except ConfigurationError as e:
        raise _missing_credentials(e)
    except QuickBooksAPIError as e:
        raise _upstream_failure("Failed to fetch QuickBooks items", e)

    return templates.TemplateResponse(
        request,
        "qbo_items.html",
        {"items": items, "expected_items": QBO_EXPECTED_ITEMS},
    )


@router.get(
    "/list-qbo-tax-codes",
    response_class=HTMLResponse,
    summary="List QuickBooks tax codes",
)
async def list_qbo_tax_codes(request: Request) -> HTMLResponse:
    try:
        tax_codes = await quickbooks_service.list_tax_codes()
    except ConfigurationError as e:
        raise _missing_credentials(e)
    except QuickBooksAPIError as e:
        raise _upstream_failure("Failed to fetch QuickBooks tax codes", e)

    return templates.TemplateResponse(
        request,
        "qbo_tax_codes.html",
        {"tax_codes": tax_codes, "codes_in_use": QBO_TAX_CODE_DESCRIPTIONS},
    )


@router.get(
    "/test-qbo-item",
    response_model=ItemCheckResponse,
    response_model_exclude_none=True,
    summary="Check whether a QuickBooks item id exists",
)
async def test_qbo_item(
    item_id: Optional[str] = Query(None, alias="itemId"),
) -> ItemCheckResponse:
    try:
        result = await quickbooks_service.check_item(item_id or DEFAULT_TEST_ITEM_ID)
    except ConfigurationError as e:
        raise _missing_credentials(e)
    except Exception as e:
        raise _upstream_failure("Failed to test item", e)

    return ItemCheckResponse.model_validate(result)


@router.get("/diagnose-qb", summary="Diagnose QuickBooks credentials")
async def diagnose_qb() -> Dict[str, Any]:
    """Always 200; failures are reported inside the diagnosis."""
    return await quickbooks_service.diagnose()


@router.get("/qb-token-status", summary="QuickBooks token status")
async def qb_token_status() -> Dict[str, Any]:
    return await quickbooks_service.token_status()


def _redirect_uri(origin: Optional[str]) -> str:
    if origin:
        return origin.rstrip("/") + OAUTH_CALLBACK_PATH
    return settings.QBO_REDIRECT_URI or settings.PUBLIC_BASE_URL.rstrip("/") + OAUTH_CALLBACK_PATH


def _auth_error_body(e: AuthClientError) -> str:
    content = e.content
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return str(content or "")


@router.get(
    "/qbo-oauth-callback",
    response_model=None,
    summary="QuickBooks OAuth redirect target",
)
async def qbo_oauth_callback(
    request: Request,
    code: Optional[str] = None,
    realm_id: Optional[str] = Query(None, alias="realmId"),
    state: Optional[str] = None,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
    origin: Optional[str] = Header(None),
    accept: str = Header(""),
) -> HTMLResponse | JSONResponse:
    """
    Exchange the authorization code for tokens.

    JSON clients (``Accept: application/json``) get the tokens as JSON;
    browsers get a page to copy them into the environment.
    """
    logger.info(f"📥 QuickBooks OAuth callback received (state: {state})")

    if error:
        logger.error(f"❌ OAuth error: {error}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "success": False,
                "error": "OAuth authorization failed",
                "message": error_description or error,
            },
        )

    if not code or not realm_id:
        logger.error("❌ Missing code or realmId")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "success": False,
                "error": "Missing required parameters",
                "message": "Authorization code and realm ID are required",
            },
        )

    if not settings.QBO_CLIENT_ID or not settings.QBO_CLIENT_SECRET:
        logger.error("❌ Missing QB credentials")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "success": False,
                "error": "Server configuration error",
                "message": "QuickBooks credentials not configured",
            },
        )

    logger.info("🔄 Exchanging authorization code for tokens...")
    try:
        tokens = await run_in_threadpool(
            exchange_authorization_code, code, realm_id, _redirect_uri(origin)
        )
    except AuthClientError as e:
        body = _auth_error_body(e)
        logger.error(f"❌ Token exchange failed: {e.status_code} {body}")
        raise HTTPException(
            status_code=e.status_code,
            detail={
                "success": False,
                "error": "Token exchange failed",
                "message": "Failed to exchange authorization code for tokens",
                "details": body,
            },
        )
    except Exception as e:
        logger.error(f"💥 OAuth callback error: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "success": False,
                "error": "Internal server error",
                "message": str(e),
            },
        )

    logger.info("✅ Tokens received successfully")

    if "application/json" in accept:
        payload = OAuthTokenResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            realm_id=realm_id,
            expires_in=tokens.expires_in,
            token_type=tokens.token_type,
        )
        return JSONResponse(payload.model_dump(by_alias=True))

    return templates.TemplateResponse(
        request,
        "qbo_oauth_success.html",
        {
            "tokens": tokens,
            "realm_id": realm_id,
            "expires_hours": (tokens.expires_in or 0) // 3600,
        },
    )
