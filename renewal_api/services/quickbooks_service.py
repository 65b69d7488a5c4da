"""
QuickBooks diagnostics service.

Read-only helpers behind the QuickBooks pages: listing items and tax codes,
checking a single item, diagnosing the OAuth credentials and testing the
current access token. Nothing here writes to QuickBooks.

Credentials are never returned in full; diagnostics expose lengths and short
previews only.
"""

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool
from intuitlib.exceptions import AuthClientError

from renewal_api.clients.quickbooks import QuickBooksAPIError, QuickBooksClient, refresh_access_token
from renewal_api.config import settings
from renewal_api.utils.logging import get_logger

logger = get_logger(__name__)

REAUTH_URL = "/qbo-oauth-helper.html"

TOKEN_VALID = "VALID ✅"


def format_item(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": item.get("Id"),
        "name": item.get("Name") or "",
        "type": item.get("Type") or "",
        "active": bool(item.get("Active")),
        "description": item.get("Description") or "",
        "unit_price": float(item.get("UnitPrice") or 0),
        "income_account": (item.get("IncomeAccountRef") or {}).get("name") or "",
    }


def format_tax_code(code: Dict[str, Any]) -> Dict[str, Any]:
    sales_rates = ((code.get("SalesTaxRateList") or {}).get("TaxRateDetail")) or []
    return {
        "id": code.get("Id"),
        "name": code.get("Name") or "",
        "description": code.get("Description") or "",
        "active": bool(code.get("Active")),
        "taxable": bool(code.get("Taxable")),
        "sales_rates": [
            (detail.get("TaxRateRef") or {}).get("name") or (detail.get("TaxRateRef") or {}).get("value")
            for detail in sales_rates
        ],
    }


async def list_items() -> List[Dict[str, Any]]:
    """
    Service and non-inventory items, sorted by name.

    Raises:
        ConfigurationError: If the access token or company id is missing
        QuickBooksAPIError: If QuickBooks rejects the query
    """
    client = QuickBooksClient.from_settings()
    logger.info("📋 Fetching QuickBooks items...")
    items = [format_item(item) for item in await client.list_items()]
    logger.info(f"✅ Found {len(items)} items")
    return sorted(items, key=lambda item: item["name"].lower())


async def list_tax_codes() -> List[Dict[str, Any]]:
    """
    Tax codes, sorted by name.

    Raises:
        ConfigurationError: If the access token or company id is missing
        QuickBooksAPIError: If QuickBooks rejects the query
    """
    client = QuickBooksClient.from_settings()
    logger.info("📋 Fetching QuickBooks tax codes...")
    codes = [format_tax_code(code) for code in await client.list_tax_codes()]
    logger.info(f"✅ Found {len(codes)} tax codes")
    return sorted(codes, key=lambda code: code["name"].lower())


async def check_item(item_id: str) -> Dict[str, Any]:
    """
    Look up one item id.

    A missing or inaccessible item is a normal answer (``exists: False``),
    not an error.

    Raises:
        ConfigurationError: If the access token or company id is missing
    """
    client = QuickBooksClient.from_settings()
    logger.info(f"🔍 Testing item ID: {item_id}")
    try:
        item = await client.get_item(item_id)
    except QuickBooksAPIError as e:
        logger.warning(f"Item {item_id} not found or inaccessible: {e.status_code}")
        return {
            "exists": False,
            "itemId": item_id,
            "error": f"Item not found or inaccessible: {e.status_code}",
            "details": e.body,
        }

    formatted = format_item(item)
    return {
        "exists": True,
        "itemId": item_id,
        "item": {
            "id": formatted["id"],
            "name": formatted["name"],
            "type": formatted["type"],
            "active": formatted["active"],
            "description": formatted["description"],
            "unitPrice": formatted["unit_price"],
            "incomeAccountRef": item.get("IncomeAccountRef"),
        },
    }


# --- Credential diagnosis ---

def _has_whitespace(value: str) -> bool:
    return bool(re.search(r"\s", value))


def _looks_valid(value: str, min_length: int) -> bool:
    return len(value) > min_length and " " not in value


def describe_credentials() -> Dict[str, Any]:
    """Shape of each QuickBooks credential without revealing it."""
    client_id = settings.QBO_CLIENT_ID
    client_secret = settings.QBO_CLIENT_SECRET
    refresh_token = settings.QBO_REFRESH_TOKEN
    access_token = settings.QBO_ACCESS_TOKEN
    base_url = settings.QBO_BASE_URL

    return {
        "client_id": {
            "present": bool(client_id),
            "length": len(client_id),
            "preview": f"{client_id[:10]}..." if client_id else "MISSING",
            "looks_valid": _looks_valid(client_id, 20),
        },
        "client_secret": {
            "present": bool(client_secret),
            "length": len(client_secret),
            "looks_valid": _looks_valid(client_secret, 20),
        },
        "refresh_token": {
            "present": bool(refresh_token),
            "length": len(refresh_token),
            "preview": f"{refresh_token[:15]}...{refresh_token[-10:]}" if refresh_token else "MISSING",
            "looks_valid": _looks_valid(refresh_token, 50),
            "has_whitespace": _has_whitespace(refresh_token),
            "has_newlines": "\n" in refresh_token,
        },
        "access_token": {
            "present": bool(access_token),
            "length": len(access_token),
            "looks_valid": len(access_token) > 50,
        },
        "company_id": {
            "present": bool(settings.QBO_COMPANY_ID),
            "value": settings.QBO_COMPANY_ID or "MISSING",
        },
        "base_url": {
            "value": base_url,
            "is_production": "quickbooks.api.intuit.com" in base_url and "sandbox" not in base_url,
            "is_sandbox": "sandbox" in base_url,
        },
    }


def _auth_error_payload(error: AuthClientError) -> Dict[str, Any]:
    content = error.content
    text = content.decode("utf-8", errors="replace") if isinstance(content, bytes) else str(content or "")
    try:
        data = json.loads(text)
    except ValueError:
        data = {"raw": text}
    if not isinstance(data, dict):
        data = {"raw": text}
    return {
        "http_status": error.status_code,
        "error": data.get("error") or "unknown",
        "error_description": data.get("error_description") or text,
    }


def classify_refresh_error(error_code: str) -> List[str]:
    """Likely causes for an OAuth token-endpoint error code."""
    if error_code == "invalid_grant":
        return [
            "Refresh token is invalid, expired, or revoked",
            "Client ID/Secret don't match the app that issued the token",
            "Token may have been issued for sandbox but you're using production credentials (or vice versa)",
            "App may have been disconnected from QuickBooks company settings",
        ]
    if error_code == "invalid_client":
        return [
            "Client ID or Client Secret is wrong",
            "Credentials may have extra spaces or newlines",
        ]
    return []


async def test_token_refresh() -> Dict[str, Any]:
    """Trade the configured refresh token for a new access token."""
    if not (settings.QBO_CLIENT_ID and settings.QBO_CLIENT_SECRET and settings.QBO_REFRESH_TOKEN):
        return {
            "success": False,
            "error": "Missing required credentials",
            "message": "Cannot test - QBO_CLIENT_ID, QBO_CLIENT_SECRET, or QBO_REFRESH_TOKEN not set",
        }

    logger.info("🧪 Testing token refresh with current credentials...")
    try:
        tokens = await run_in_threadpool(refresh_access_token, settings.QBO_REFRESH_TOKEN)
    except AuthClientError as e:
        result = {"success": False, **_auth_error_payload(e)}
        result["possible_causes"] = classify_refresh_error(result["error"])
        logger.warning(f"Token refresh failed: {result['http_status']} {result['error']}")
        return result
    except Exception as e:
        logger.error(f"Token refresh test crashed: {e}", exc_info=True)
        return {"success": False, "error": "Network or system error", "message": str(e)}

    return {
        "success": True,
        "message": "Token refresh WORKS! ✅",
        "new_token_received": bool(tokens.access_token),
        "expires_in": tokens.expires_in,
    }


def build_recommendations(configuration: Dict[str, Any], refresh_test: Dict[str, Any]) -> List[str]:
    recommendations = []
    if not configuration["client_id"]["looks_valid"]:
        recommendations.append("⚠️ Client ID looks invalid - check for truncation or extra spaces")
    if not configuration["client_secret"]["looks_valid"]:
        recommendations.append("⚠️ Client Secret looks invalid - check for truncation or extra spaces")
    if configuration["refresh_token"]["has_whitespace"]:
        recommendations.append(
            "🚨 Refresh token contains whitespace - this will cause failures! Remove spaces/newlines."
        )
    if not configuration["refresh_token"]["looks_valid"]:
        recommendations.append("⚠️ Refresh token looks invalid - check for truncation or extra spaces")
    if not refresh_test.get("success"):
        recommendations.append(
            f"🔧 Run manual re-authentication at: {settings.PUBLIC_BASE_URL}{REAUTH_URL}"
        )
    return recommendations


async def diagnose() -> Dict[str, Any]:
    """Full credential diagnosis with a live refresh test."""
    configuration = describe_credentials()
    refresh_test = await test_token_refresh()
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "configuration": configuration,
        "token_refresh_test": refresh_test,
        "recommendations": build_recommendations(configuration, refresh_test),
    }


# --- Token status ---

def _set_with_length(value: str) -> str:
    return f"SET ({len(value)} chars)" if value else "MISSING ❌"


def _set(value: str) -> str:
    return "SET ✅" if value else "MISSING ❌"


async def test_access_token() -> Dict[str, Any]:
    """Call company info with the configured access token."""
    if not (settings.QBO_ACCESS_TOKEN and settings.QBO_COMPANY_ID):
        return {"status": "CANNOT TEST ❌", "message": "Missing QBO_ACCESS_TOKEN or QBO_COMPANY_ID"}

    try:
        company = await QuickBooksClient.from_settings().get_company_info()
    except QuickBooksAPIError as e:
        return {
            "status": "INVALID/EXPIRED ❌",
            "http_status": e.status_code,
            "message": (
                "Access token expired - needs refresh"
                if e.status_code == 401
                else f"QuickBooks API error: {e.status_code}"
            ),
        }
    except Exception as e:
        logger.error(f"Access token test failed: {e}", exc_info=True)
        return {"status": "ERROR ❌", "message": "Failed to test token", "error": str(e)}

    return {
        "status": TOKEN_VALID,
        "message": "Access token is working",
        "company_name": company.get("CompanyName") or "Unknown",
    }


def build_token_warnings(token_test: Dict[str, Any]) -> List[Dict[str, str]]:
    warnings = []
    if token_test.get("status") != TOKEN_VALID:
        warnings.append({
            "level": "CRITICAL",
            "message": "QuickBooks access token is invalid or expired",
            "action": f"Re-authenticate via {settings.PUBLIC_BASE_URL}{REAUTH_URL}",
        })
    if not settings.QBO_REFRESH_TOKEN:
        warnings.append({
            "level": "CRITICAL",
            "message": "No refresh token available - cannot refresh the access token",
            "action": f"Re-authenticate via {settings.PUBLIC_BASE_URL}{REAUTH_URL}",
        })
    if not (settings.QBO_CLIENT_ID and settings.QBO_CLIENT_SECRET):
        warnings.append({
            "level": "HIGH",
            "message": "QBO_CLIENT_ID or QBO_CLIENT_SECRET not set - OAuth callback and refresh will fail",
            "action": "Set the QuickBooks app credentials in the environment",
        })
    return warnings


async def token_status(now: Optional[datetime] = None) -> Dict[str, Any]:
    """Credential presence, live access-token test and leveled warnings."""
    token_test = await test_access_token()
    return {
        "timestamp": (now or datetime.now(timezone.utc)).isoformat(),
        "environment_variables": {
            "QBO_ACCESS_TOKEN": _set_with_length(settings.QBO_ACCESS_TOKEN),
            "QBO_REFRESH_TOKEN": _set_with_length(settings.QBO_REFRESH_TOKEN),
            "QBO_CLIENT_ID": _set(settings.QBO_CLIENT_ID),
            "QBO_CLIENT_SECRET": _set(settings.QBO_CLIENT_SECRET),
            "QBO_COMPANY_ID": _set(settings.QBO_COMPANY_ID),
        },
        "token_test": token_test,
        "warnings": build_token_warnings(token_test),
    }
