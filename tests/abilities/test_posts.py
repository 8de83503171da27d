"""Tests for page and post abilities."""

from __future__ import annotations

from wpabilities.core.permissions import CallerContext
from wpabilities.core.pipeline import InvocationPipeline
from wpabilities.store.memory import InMemoryContentStore


class TestPages:
    async def test_create_then_get(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        created = await pipeline.invoke("mcp-wp/create-page", {"title": "T", "content": "C"}, admin)
        body = created.to_dict()
        assert body["success"] is True
        page_id = body["data"]["id"]
        assert body["page_id"] == page_id
        assert body["data"]["status"] == "draft"
        assert body["data"]["author_id"] == 1
        assert body["url"] == f"http://localhost/?page_id={page_id}"

        fetched = (await pipeline.invoke("mcp-wp/get-page", {"page_id": page_id}, admin)).to_dict()
        assert fetched["success"] is True
        assert fetched["data"]["id"] == page_id
        assert fetched["data"]["title"] == "T"
        assert fetched["data"]["content"] == "C"

    async def test_create_requires_title_and_content(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        envelope = await pipeline.invoke("mcp-wp/create-page", {"title": "T"}, admin)
        assert envelope.code == "invalid_input"

    async def test_create_sanitizes(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        envelope = await pipeline.invoke(
            "mcp-wp/create-page",
            {"title": "<b>Hello</b>  World", "content": "<p onclick='x()'>Hi</p><script>bad()</script>"},
            admin,
        )
        data = envelope.to_dict()["data"]
        assert data["title"] == "Hello World"
        assert data["content"] == "<p>Hi</p>"

    async def test_subscriber_cannot_create(self, pipeline: InvocationPipeline, subscriber: CallerContext) -> None:
        envelope = await pipeline.invoke("mcp-wp/create-page", {"title": "T", "content": "C"}, subscriber)
        assert envelope.to_dict()["code"] == "unauthorized"

    async def test_edit(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        created = await pipeline.invoke("mcp-wp/create-page", {"title": "Old", "content": "C"}, admin)
        page_id = created.to_dict()["page_id"]

        edited = await pipeline.invoke(
            "mcp-wp/edit-page", {"page_id": page_id, "title": "New", "status": "publish"}, admin
        )
        data = edited.to_dict()["data"]
        assert data["title"] == "New"
        assert data["status"] == "publish"
        assert data["content"] == "C"

    async def test_get_missing(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        envelope = await pipeline.invoke("mcp-wp/get-page", {"page_id": 404}, admin)
        assert envelope.to_dict() == {"success": False, "error": "Page not found", "code": "not_found"}

    async def test_get_page_rejects_post_id(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        created = await pipeline.invoke("mcp-wp/create-post", {"title": "T", "content": "C"}, admin)
        post_id = created.to_dict()["post_id"]
        envelope = await pipeline.invoke("mcp-wp/get-page", {"page_id": post_id}, admin)
        assert envelope.error == "Page not found"

    async def test_list_pages_by_parent(
        self, pipeline: InvocationPipeline, admin: CallerContext, store: InMemoryContentStore
    ) -> None:
        parent = await store.create_post({"post_type": "page", "title": "Parent", "status": "publish"})
        await store.create_post({"post_type": "page", "title": "B child", "status": "publish", "parent_id": parent})
        await store.create_post({"post_type": "page", "title": "A child", "status": "publish", "parent_id": parent})

        body = (await pipeline.invoke("mcp-wp/list-pages", {"parent_id": parent}, admin)).to_dict()
        assert body["total"] == 2
        assert [p["title"] for p in body["data"]] == ["A child", "B child"]
        assert "content" not in body["data"][0]

    async def test_list_is_idempotent(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        await pipeline.invoke("mcp-wp/create-page", {"title": "T", "content": "C", "status": "publish"}, admin)
        first = await pipeline.invoke("mcp-wp/list-pages", {"status": "any"}, admin)
        second = await pipeline.invoke("mcp-wp/list-pages", {"status": "any"}, admin)
        assert first.to_dict() == second.to_dict()


class TestPosts:
    async def test_create_with_terms(
        self, pipeline: InvocationPipeline, admin: CallerContext, store: InMemoryContentStore
    ) -> None:
        news = await store.create_term("category", "News")
        body = (
            await pipeline.invoke(
                "mcp-wp/create-post",
                {"title": "T", "content": "C", "categories": [news.id], "tags": ["Design", "Figma"]},
                admin,
            )
        ).to_dict()
        post = await store.get_post(body["post_id"])
        assert post is not None
        assert post.terms["category"] == [news.id]
        assert len(post.terms["post_tag"]) == 2

    async def test_featured_image(
        self, pipeline: InvocationPipeline, admin: CallerContext, store: InMemoryContentStore
    ) -> None:
        image = await store.create_post({"post_type": "attachment", "guid": "http://localhost/a.png"})
        body = (
            await pipeline.invoke(
                "mcp-wp/create-post", {"title": "T", "content": "C", "featured_image": image}, admin
            )
        ).to_dict()
        assert body["data"]["featured_image_id"] == image

    async def test_delete_then_get(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        created = await pipeline.invoke("mcp-wp/create-post", {"title": "T", "content": "C"}, admin)
        post_id = created.to_dict()["post_id"]

        deleted = await pipeline.invoke("mcp-wp/delete-post", {"post_id": post_id, "force": True}, admin)
        assert deleted.to_dict() == {"success": True, "message": "Post permanently deleted"}

        fetched = await pipeline.invoke("mcp-wp/get-post", {"post_id": post_id}, admin)
        assert fetched.to_dict()["success"] is False
        assert fetched.to_dict()["error"] == "Post not found"

    async def test_delete_moves_to_trash(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        created = await pipeline.invoke("mcp-wp/create-post", {"title": "T", "content": "C"}, admin)
        post_id = created.to_dict()["post_id"]

        deleted = await pipeline.invoke("mcp-wp/delete-post", {"post_id": post_id}, admin)
        assert deleted.to_dict()["message"] == "Post moved to trash"

        fetched = await pipeline.invoke("mcp-wp/get-post", {"post_id": post_id}, admin)
        assert fetched.to_dict()["data"]["status"] == "trash"

    async def test_list_filters(
        self, pipeline: InvocationPipeline, admin: CallerContext, store: InMemoryContentStore
    ) -> None:
        editor = await store.create_user({"username": "ed", "email": "ed@example.com", "role": "editor"})
        await store.create_post({"post_type": "post", "title": "Mine", "status": "publish", "author_id": editor})
        await store.create_post({"post_type": "post", "title": "Other", "status": "publish", "author_id": 1})
        await store.create_post({"post_type": "post", "title": "Hidden draft", "author_id": editor})

        body = (await pipeline.invoke("mcp-wp/list-posts", {"author_id": editor}, admin)).to_dict()
        assert [p["title"] for p in body["data"]] == ["Mine"]

        body = (await pipeline.invoke("mcp-wp/list-posts", {"search": "other"}, admin)).to_dict()
        assert body["total"] == 1

    async def test_list_caps_per_page(
        self, pipeline: InvocationPipeline, admin: CallerContext, store: InMemoryContentStore
    ) -> None:
        for i in range(3):
            await store.create_post({"post_type": "post", "title": f"P{i}", "status": "publish"})
        body = (await pipeline.invoke("mcp-wp/list-posts", {"per_page": 2, "page": 2}, admin)).to_dict()
        assert body["total"] == 3
        assert len(body["data"]) == 1

    async def test_list_rejects_string_page(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        envelope = await pipeline.invoke("mcp-wp/list-posts", {"page": "2"}, admin)
        assert envelope.code == "invalid_input"

    async def test_store_error_surfaces(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        created = await pipeline.invoke("mcp-wp/create-page", {"title": "T", "content": "C"}, admin)
        page_id = created.to_dict()["page_id"]
        envelope = await pipeline.invoke("mcp-wp/edit-page", {"page_id": page_id, "parent_id": page_id}, admin)
        assert envelope.to_dict() == {
            "success": False,
            "error": "A post cannot be its own parent.",
            "code": "store_error",
        }
