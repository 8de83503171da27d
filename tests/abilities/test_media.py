"""Tests for media abilities."""

from __future__ import annotations

import base64

from wpabilities.core.permissions import CallerContext
from wpabilities.core.pipeline import InvocationPipeline

PNG_1X1 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="


class TestMediaAbilities:
    async def test_upload_then_get(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        uploaded = (
            await pipeline.invoke(
                "mcp-wp/upload-media", {"filename": "hero image.png", "base64_data": PNG_1X1}, admin
            )
        ).to_dict()
        attachment_id = uploaded["attachment_id"]
        assert uploaded["data"]["filename"] == "hero-image.png"
        assert uploaded["data"]["title"] == "hero-image"
        assert uploaded["url"].endswith("/hero-image.png")

        media = (await pipeline.invoke("mcp-wp/get-media", {"attachment_id": attachment_id}, admin)).to_dict()
        assert media["data"]["type"] == "image/png"
        assert (media["data"]["width"], media["data"]["height"]) == (1, 1)
        assert media["data"]["filename"] == "hero-image.png"

    async def test_upload_invalid_base64(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        envelope = await pipeline.invoke(
            "mcp-wp/upload-media", {"filename": "x.png", "base64_data": "not base64!!"}, admin
        )
        assert envelope.to_dict() == {"success": False, "error": "Invalid base64 data", "code": "invalid_input"}

    async def test_list_by_type(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        text = base64.b64encode(b"hello").decode()
        await pipeline.invoke("mcp-wp/upload-media", {"filename": "a.png", "base64_data": PNG_1X1}, admin)
        await pipeline.invoke("mcp-wp/upload-media", {"filename": "notes.txt", "base64_data": text}, admin)

        everything = (await pipeline.invoke("mcp-wp/list-media", {}, admin)).to_dict()
        assert everything["total"] == 2

        images = (await pipeline.invoke("mcp-wp/list-media", {"media_type": "image"}, admin)).to_dict()
        assert [m["filename"] for m in images["data"]] == ["a.png"]

    async def test_get_media_rejects_posts(self, pipeline: InvocationPipeline, admin: CallerContext) -> None:
        post_id = (
            await pipeline.invoke("mcp-wp/create-post", {"title": "T", "content": "C"}, admin)
        ).to_dict()["post_id"]
        envelope = await pipeline.invoke("mcp-wp/get-media", {"attachment_id": post_id}, admin)
        assert envelope.error == "Media not found"

    async def test_contributor_cannot_upload(self, pipeline: InvocationPipeline, subscriber: CallerContext) -> None:
        envelope = await pipeline.invoke("mcp-wp/upload-media", {"filename": "a.png", "base64_data": PNG_1X1}, subscriber)
        assert envelope.code == "unauthorized"
