"""
Tests for the Notion client, using httpx.MockTransport.
"""

import json

import httpx
import pytest

from renewal_api.clients.notion import (
    NOTION_API_VERSION,
    NotionAPIError,
    NotionClient,
    multi_select_names,
    plain_text,
    relation_ids,
)


def make_client(handler) -> NotionClient:
    return NotionClient("secret_test", transport=httpx.MockTransport(handler))


class TestNotionClient:

    @pytest.mark.asyncio
    async def test_update_page_sends_properties_with_headers(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["url"] = str(request.url)
            captured["headers"] = request.headers
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "page-1"})

        result = await make_client(handler).update_page(
            "page-1", {"Payment Status": {"select": {"name": "Paid"}}}
        )

        assert result == {"id": "page-1"}
        assert captured["method"] == "PATCH"
        assert captured["url"] == "https://api.notion.com/v1/pages/page-1"
        assert captured["headers"]["Authorization"] == "Bearer secret_test"
        assert captured["headers"]["Notion-Version"] == NOTION_API_VERSION
        assert captured["body"] == {"properties": {"Payment Status": {"select": {"name": "Paid"}}}}

    @pytest.mark.asyncio
    async def test_query_database_returns_results(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/databases/db-1/query"
            assert json.loads(request.content) == {
                "filter": {"property": "Token", "rich_text": {"equals": "abc"}}
            }
            return httpx.Response(200, json={"results": [{"id": "org-1"}], "has_more": False})

        results = await make_client(handler).query_database(
            "db-1", filter={"property": "Token", "rich_text": {"equals": "abc"}}
        )

        assert results == [{"id": "org-1"}]

    @pytest.mark.asyncio
    async def test_create_page_sets_parent_database(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert body["parent"] == {"database_id": "db-2"}
            return httpx.Response(200, json={"id": "new-page"})

        result = await make_client(handler).create_page("db-2", {})

        assert result["id"] == "new-page"

    @pytest.mark.asyncio
    async def test_error_status_raises_with_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"object": "error", "code": "object_not_found"})

        with pytest.raises(NotionAPIError) as exc_info:
            await make_client(handler).retrieve_page("missing")

        assert exc_info.value.status_code == 404
        assert "object_not_found" in exc_info.value.body


class TestPropertyReaders:

    def test_plain_text_prefers_plain_text_fragments(self):
        prop = {"title": [{"plain_text": "12 - ", "text": {"content": "ignored"}}, {"text": {"content": "Hall A"}}]}

        assert plain_text(prop) == "12 - Hall A"

    def test_plain_text_of_missing_property(self):
        assert plain_text(None) == ""

    def test_multi_select_names(self):
        assert multi_select_names({"multi_select": [{"name": "A"}, {"name": "B"}]}) == ["A", "B"]
        assert multi_select_names(None) == []

    def test_relation_ids(self):
        assert relation_ids({"relation": [{"id": "r1"}, {"id": "r2"}]}) == ["r1", "r2"]
        assert relation_ids({"relation": []}) == []
