"""Tests for category and tag abilities."""

from __future__ import annotations

from wpabilities.core.permissions import CallerContext
from wpabilities.core.pipeline import InvocationPipeline
from wpabilities.store.memory import InMemoryContentStore


class TestTaxonomyAbilities:
    async def test_create_category(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        body = (await pipeline.invoke("mcp-wp/create-category", {"name": "News"}, admin)).to_dict()
        assert body["data"]["slug"] == "news"
        assert body["category_id"] == body["data"]["id"]

    async def test_create_duplicate_category(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        await pipeline.invoke("mcp-wp/create-category", {"name": "News"}, admin)
        envelope = await pipeline.invoke("mcp-wp/create-category", {"name": "News"}, admin)
        assert envelope.code == "store_error"

    async def test_create_tag(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        body = (await pipeline.invoke("mcp-wp/create-tag", {"name": "Figma", "slug": "figma-tag"}, admin)).to_dict()
        assert body["tag_id"] == body["data"]["id"]
        assert body["data"]["slug"] == "figma-tag"

    async def test_list_categories_hide_empty(
        self, pipeline: InvocationPipeline, admin: CallerContext, store: InMemoryContentStore
    ) -> None:
        news = await store.create_term("category", "News")
        await store.create_post({"post_type": "post", "title": "x", "status": "publish", "categories": [news.id]})

        body = (await pipeline.invoke("mcp-wp/list-categories", {}, admin)).to_dict()
        assert [c["name"] for c in body["data"]] == ["News"]
        assert body["data"][0]["count"] == 1
        assert body["data"][0]["parent"] == 0

        body = (await pipeline.invoke("mcp-wp/list-categories", {"hide_empty": False}, admin)).to_dict()
        assert body["total"] == 2

    async def test_list_tags_by_count(
        self, pipeline: InvocationPipeline, admin: CallerContext, store: InMemoryContentStore
    ) -> None:
        await pipeline.invoke(
            "mcp-wp/create-post", {"title": "a", "content": "c", "status": "publish", "tags": ["one", "two"]}, admin
        )
        await pipeline.invoke(
            "mcp-wp/create-post", {"title": "b", "content": "c", "status": "publish", "tags": ["two"]}, admin
        )
        body = (await pipeline.invoke("mcp-wp/list-tags", {"orderby": "count"}, admin)).to_dict()
        assert [(t["name"], t["count"]) for t in body["data"]] == [("one", 1), ("two", 2)]

    async def test_subscriber_cannot_create(self, pipeline: InvocationPipeline, subscriber: CallerContext) -> None:
        envelope = await pipeline.invoke("mcp-wp/create-tag", {"name": "x"}, subscriber)
        assert envelope.code == "unauthorized"
