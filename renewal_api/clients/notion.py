"""
Notion API client.

The workspace database holds one page per member organization (the page id
doubles as the correlation token handed to the renewal form) and a
submissions database for vendor profiles.

Only the handful of endpoints the renewal flow needs are wrapped:
retrieve/update/create page and query database.
"""

from typing import Any, Dict, Iterable, List, Optional

import httpx

from renewal_api.config import ConfigurationError, settings
from renewal_api.utils.logging import get_logger

logger = get_logger(__name__)

NOTION_API_VERSION = "2022-06-28"
NOTION_BASE_URL = "https://api.notion.com/v1"


class NotionAPIError(RuntimeError):
    """Non-2xx response from the Notion API."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Notion API error: {status_code} - {body}")


class NotionClient:
    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = NOTION_BASE_URL,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Notion-Version": NOTION_API_VERSION,
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers(),
            timeout=self._timeout_seconds,
            transport=self._transport,
        ) as client:
            response = await client.request(method, path, json=json)

        if response.status_code >= 400:
            raise NotionAPIError(response.status_code, response.text)
        return response.json()

    async def retrieve_page(self, page_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/pages/{page_id}")

    async def update_page(self, page_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"Updating Notion page {page_id}: {sorted(properties)}")
        return await self._request("PATCH", f"/pages/{page_id}", json={"properties": properties})

    async def create_page(self, database_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        payload = {"parent": {"database_id": database_id}, "properties": properties}
        return await self._request("POST", "/pages", json=payload)

    async def query_database(
        self,
        database_id: str,
        *,
        filter: Optional[Dict[str, Any]] = None,
        page_size: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Query a database and return the first page of results."""
        payload: Dict[str, Any] = {}
        if filter:
            payload["filter"] = filter
        if page_size:
            payload["page_size"] = page_size
        data = await self._request("POST", f"/databases/{database_id}/query", json=payload)
        return data.get("results") or []


def get_notion_client() -> NotionClient:
    """
    Create a Notion client from settings.

    Raises:
        ConfigurationError: If NOTION_API_KEY is not configured
    """
    if not settings.NOTION_API_KEY:
        raise ConfigurationError("NOTION_API_KEY not configured")
    return NotionClient(settings.NOTION_API_KEY, timeout_seconds=settings.HTTP_TIMEOUT_SECONDS)


# --- Property value builders ---

def rich_text_property(content: str) -> Dict[str, Any]:
    return {"rich_text": [{"text": {"content": content}}]}


def title_property(content: str) -> Dict[str, Any]:
    return {"title": [{"text": {"content": content}}]}


def url_property(url: str) -> Dict[str, Any]:
    return {"url": url}


def select_property(name: str) -> Dict[str, Any]:
    return {"select": {"name": name}}


def status_property(name: str) -> Dict[str, Any]:
    return {"status": {"name": name}}


def multi_select_property(names: Iterable[str]) -> Dict[str, Any]:
    return {"multi_select": [{"name": name} for name in names]}


def date_property(start: str) -> Dict[str, Any]:
    return {"date": {"start": start}}


# --- Property value readers ---

def plain_text(prop: Optional[Dict[str, Any]]) -> str:
    """Concatenated text of a title or rich_text property value."""
    if not prop:
        return ""
    fragments = prop.get("title") or prop.get("rich_text") or []
    parts = []
    for fragment in fragments:
        text = fragment.get("plain_text")
        if text is None:
            text = (fragment.get("text") or {}).get("content", "")
        parts.append(text)
    return "".join(parts)


def multi_select_names(prop: Optional[Dict[str, Any]]) -> List[str]:
    if not prop:
        return []
    return [option.get("name") for option in prop.get("multi_select") or [] if option.get("name")]


def relation_ids(prop: Optional[Dict[str, Any]]) -> List[str]:
    if not prop:
        return []
    return [rel["id"] for rel in prop.get("relation") or [] if rel.get("id")]
