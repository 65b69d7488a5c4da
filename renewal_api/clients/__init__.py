"""
Clients for the external systems the renewal flow talks to.

- notion: workspace database (organization pages, vendor submissions)
- quickbooks: accounting data queries and OAuth
- payments: Stripe checkout, payment intents and webhook verification

No FastAPI request/response objects in here.
"""

from .notion import NotionAPIError, NotionClient, get_notion_client
from .quickbooks import QuickBooksAPIError, QuickBooksClient

__all__ = [
    "NotionAPIError",
    "NotionClient",
    "get_notion_client",
    "QuickBooksAPIError",
    "QuickBooksClient",
]
