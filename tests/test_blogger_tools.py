"""Tests for the Blogger tool catalog wired through the dispatcher."""

import json

import pytest

from blogger_mcp.blogger import BloggerAPIError, BloggerNotFoundError
from blogger_mcp.server.dispatcher import HANDLER_FAULT, INVALID_PARAMETERS, Dispatcher
from blogger_mcp.server.registry import Registry
from blogger_mcp.server.tracker import Tracker
from blogger_mcp.tools import build_operations
from blogger_mcp.tools.blogger_tools import BLOG_CREATION_UNSUPPORTED

EXPECTED_TOOLS = [
    "list_blogs",
    "get_blog",
    "get_blog_by_url",
    "create_blog",
    "list_posts",
    "search_posts",
    "get_post",
    "create_post",
    "update_post",
    "delete_post",
    "list_labels",
    "get_label",
]


class FakeBloggerService:
    """Stands in for BloggerService; records calls."""

    def __init__(self):
        self.calls = []
        self.fail_with = None

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        if self.fail_with is not None:
            raise self.fail_with

    async def list_blogs(self):
        self._record("list_blogs")
        return {"items": [{"id": "1"}]}

    async def get_blog(self, blog_id):
        self._record("get_blog", blog_id)
        return {"id": blog_id}

    async def get_blog_by_url(self, url):
        self._record("get_blog_by_url", url)
        return {"id": "1", "url": url}

    async def list_posts(self, blog_id, max_results=None):
        self._record("list_posts", blog_id, max_results)
        return {"items": []}

    async def search_posts(self, blog_id, query, max_results=None):
        self._record("search_posts", blog_id, query, max_results)
        return {"items": [{"id": "p"}]}

    async def get_post(self, blog_id, post_id):
        self._record("get_post", blog_id, post_id)
        return {"id": post_id}

    async def create_post(self, blog_id, title, content, labels=None):
        self._record("create_post", blog_id, title, content, labels)
        return {"id": "new", "title": title}

    async def update_post(self, blog_id, post_id, title=None, content=None, labels=None):
        self._record("update_post", blog_id, post_id, title=title, content=content, labels=labels)
        return {"id": post_id}

    async def delete_post(self, blog_id, post_id):
        self._record("delete_post", blog_id, post_id)

    async def list_labels(self, blog_id):
        self._record("list_labels", blog_id)
        return {"kind": "blogger#labelList", "items": [{"name": "python"}]}

    async def get_label(self, blog_id, label_name):
        self._record("get_label", blog_id, label_name)
        if label_name != "python":
            raise BloggerNotFoundError(f"Label {label_name} not found")
        return {"name": label_name}


def _payload(result):
    return json.loads(result.payload["content"][0]["text"])


class TestCatalog:
    def test_tool_names_and_order(self):
        registry = Registry(build_operations(FakeBloggerService()))
        assert registry.names() == EXPECTED_TOOLS

    def test_catalog_without_service(self):
        assert [op.name for op in build_operations()] == EXPECTED_TOOLS

    def test_every_tool_has_description_and_object_schema(self):
        for op in build_operations():
            assert op.description
            assert op.input_schema["type"] == "object"


class TestBloggerTools:
    @pytest.fixture
    def service(self):
        return FakeBloggerService()

    @pytest.fixture
    def tracker(self):
        return Tracker(EXPECTED_TOOLS)

    @pytest.fixture
    def dispatcher(self, service, tracker):
        return Dispatcher(Registry(build_operations(service)), tracker)

    @pytest.mark.asyncio
    async def test_list_blogs(self, dispatcher):
        result = await dispatcher.dispatch("list_blogs")
        assert _payload(result) == {"blogs": {"items": [{"id": "1"}]}}

    @pytest.mark.asyncio
    async def test_get_blog(self, dispatcher, tracker):
        result = await dispatcher.dispatch("get_blog", {"blogId": "42"})
        assert _payload(result) == {"blog": {"id": "42"}}
        assert tracker.get_stats()["toolUsage"]["get_blog"] == 1

    @pytest.mark.asyncio
    async def test_get_blog_by_url(self, dispatcher):
        result = await dispatcher.dispatch("get_blog_by_url", {"url": "https://x.blogspot.com"})
        assert _payload(result)["blog"]["url"] == "https://x.blogspot.com"

    @pytest.mark.asyncio
    async def test_create_blog_unsupported(self, dispatcher, service):
        result = await dispatcher.dispatch("create_blog", {"name": "My Blog"})
        assert result.ok
        assert result.payload["isError"] is True
        assert result.payload["content"][0]["text"] == BLOG_CREATION_UNSUPPORTED
        assert service.calls == []

    @pytest.mark.asyncio
    async def test_list_posts_passes_max_results(self, dispatcher, service):
        await dispatcher.dispatch("list_posts", {"blogId": "1", "maxResults": 5})
        await dispatcher.dispatch("list_posts", {"blogId": "1"})
        assert service.calls == [("list_posts", ("1", 5), {}), ("list_posts", ("1", None), {})]

    @pytest.mark.asyncio
    async def test_list_posts_rejects_bad_max_results(self, dispatcher):
        result = await dispatcher.dispatch("list_posts", {"blogId": "1", "maxResults": "ten"})
        assert result.error_kind == INVALID_PARAMETERS

    @pytest.mark.asyncio
    async def test_search_posts(self, dispatcher, service):
        result = await dispatcher.dispatch("search_posts", {"blogId": "1", "query": "mcp"})
        assert _payload(result) == {"posts": {"items": [{"id": "p"}]}}
        assert service.calls[0] == ("search_posts", ("1", "mcp", None), {})

    @pytest.mark.asyncio
    async def test_get_post(self, dispatcher):
        result = await dispatcher.dispatch("get_post", {"blogId": "1", "postId": "9"})
        assert _payload(result) == {"post": {"id": "9"}}

    @pytest.mark.asyncio
    async def test_create_post_with_labels(self, dispatcher, service):
        result = await dispatcher.dispatch("create_post", {
            "blogId": "1", "title": "Hi", "content": "<p>x</p>", "labels": ["a", "b"],
        })
        assert _payload(result) == {"post": {"id": "new", "title": "Hi"}}
        assert service.calls[0] == ("create_post", ("1", "Hi", "<p>x</p>", ["a", "b"]), {})

    @pytest.mark.asyncio
    async def test_create_post_labels_must_be_strings(self, dispatcher):
        result = await dispatcher.dispatch("create_post", {
            "blogId": "1", "title": "Hi", "content": "x", "labels": [1],
        })
        assert result.error_kind == INVALID_PARAMETERS

    @pytest.mark.asyncio
    async def test_update_post_optional_fields(self, dispatcher, service):
        await dispatcher.dispatch("update_post", {"blogId": "1", "postId": "2", "title": "T"})
        assert service.calls[0] == (
            "update_post", ("1", "2"), {"title": "T", "content": None, "labels": None},
        )

    @pytest.mark.asyncio
    async def test_delete_post(self, dispatcher):
        result = await dispatcher.dispatch("delete_post", {"blogId": "1", "postId": "2"})
        assert _payload(result) == {"success": True}

    @pytest.mark.asyncio
    async def test_labels(self, dispatcher):
        result = await dispatcher.dispatch("list_labels", {"blogId": "1"})
        assert _payload(result)["labels"]["items"] == [{"name": "python"}]

        result = await dispatcher.dispatch("get_label", {"blogId": "1", "labelName": "python"})
        assert _payload(result) == {"label": {"name": "python"}}

    @pytest.mark.asyncio
    async def test_missing_label_is_tool_error(self, dispatcher):
        result = await dispatcher.dispatch("get_label", {"blogId": "1", "labelName": "rust"})
        assert result.ok
        assert result.payload["isError"] is True
        assert result.payload["content"][0]["text"] == "Error fetching label: Label rust not found"

    @pytest.mark.asyncio
    async def test_upstream_error_is_tool_error(self, dispatcher, service, tracker):
        service.fail_with = BloggerAPIError("Not Found", status_code=404, path="/blogs/1")
        result = await dispatcher.dispatch("get_blog", {"blogId": "1"})
        assert result.ok
        assert result.payload["isError"] is True
        assert result.payload["content"][0]["text"].startswith("Error fetching blog: Not Found")
        assert tracker.get_stats()["failedRequests"] == 0

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_fault(self, dispatcher, service):
        service.fail_with = KeyError("items")
        result = await dispatcher.dispatch("list_posts", {"blogId": "1"})
        assert not result.ok
        assert result.error_kind == HANDLER_FAULT
