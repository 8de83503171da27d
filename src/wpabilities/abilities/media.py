"""Media library abilities."""

from __future__ import annotations

import base64
import binascii
import posixpath
from typing import TYPE_CHECKING, Any

from wpabilities.abilities._helpers import (
    READ_ONLY,
    WRITE,
    define,
    object_result,
    pagination,
    pagination_properties,
    response_schema,
    store_errors,
)
from wpabilities.core.models import ErrorCode, err, ok
from wpabilities.core.permissions import RequiresCapability
from wpabilities.core.schema import arr, integer, obj, string
from wpabilities.store.base import PostQuery
from wpabilities.utils.text import absint, sanitize_file_name, sanitize_text

if TYPE_CHECKING:
    from wpabilities.core.models import AbilityDefinition
    from wpabilities.core.permissions import CallerContext
    from wpabilities.store.base import ContentStore, Post

MEDIA_TYPES = ["image", "video", "audio", "all"]


def format_media(attachment: Post) -> dict[str, Any]:
    return {
        "id": attachment.id,
        "title": attachment.title,
        "filename": posixpath.basename(attachment.guid),
        "url": attachment.guid,
        "type": attachment.mime_type,
        "date": attachment.date,
    }


def build(store: ContentStore) -> list[AbilityDefinition]:
    @store_errors
    async def upload_media(args: dict[str, Any], context: CallerContext) -> Any:
        filename = sanitize_file_name(args["filename"])
        try:
            content = base64.b64decode(args["base64_data"], validate=True)
        except (binascii.Error, ValueError):
            return err("Invalid base64 data", ErrorCode.INVALID_INPUT)

        upload = await store.save_upload(filename, content)
        metadata: dict[str, Any] = {"file": upload.filename, "filesize": upload.size, "sizes": {}}
        if upload.width is not None:
            metadata.update(width=upload.width, height=upload.height)

        stem = posixpath.splitext(upload.filename)[0]
        attachment_id = await store.create_post(
            {
                "post_type": "attachment",
                "status": "inherit",
                "title": sanitize_text(args["title"]) if "title" in args else stem,
                "content": sanitize_text(args.get("description", "")),
                "author_id": context.user_id or 0,
                "mime_type": upload.mime_type,
                "guid": upload.url,
                "attachment_meta": metadata,
            }
        )
        attachment = await store.get_post(attachment_id)
        title = attachment.title if attachment is not None else stem
        return ok(
            {"id": attachment_id, "title": title, "filename": upload.filename, "url": upload.url},
            attachment_id=attachment_id,
            url=upload.url,
        )

    @store_errors
    async def list_media(args: dict[str, Any], context: CallerContext) -> Any:
        per_page, page = pagination(args)
        query = PostQuery(post_types=["attachment"], per_page=per_page, page=page, orderby="date", order="DESC")
        media_type = args.get("media_type", "all")
        if media_type in ("image", "video", "audio"):
            query.mime_type = media_type
        if "search" in args:
            query.search = sanitize_text(args["search"])

        result = await store.query_posts(query)
        return ok([format_media(p) for p in result.items], total=result.total)

    @store_errors
    async def get_media(args: dict[str, Any], context: CallerContext) -> Any:
        attachment = await store.get_post(absint(args["attachment_id"]))
        if attachment is None or attachment.post_type != "attachment":
            return err("Media not found", ErrorCode.NOT_FOUND)

        metadata = attachment.attachment_meta
        return ok(
            {
                **format_media(attachment),
                "width": metadata.get("width"),
                "height": metadata.get("height"),
                "sizes": metadata.get("sizes", {}),
            }
        )

    upload_files = RequiresCapability(capability="upload_files")
    return [
        define(
            "upload-media",
            "Upload Media",
            "Upload image/media file",
            permission=upload_files,
            executor=upload_media,
            input_schema=obj(
                {
                    "filename": string("Filename"),
                    "base64_data": string("Base64 encoded file data"),
                    "title": string("Media title"),
                    "description": string("Media description"),
                },
                required=["filename", "base64_data"],
            ),
            output_schema=response_schema(attachment_id=integer(), url=string(), data=obj()),
            annotations=WRITE,
        ),
        define(
            "list-media",
            "List Media",
            "Get uploaded media",
            permission=upload_files,
            executor=list_media,
            input_schema=obj(
                {
                    "media_type": string("Filter by media type", enum=MEDIA_TYPES),
                    **pagination_properties(),
                    "search": string("Search by filename/title"),
                }
            ),
            output_schema=response_schema(data=arr(), total=integer()),
            annotations=READ_ONLY,
        ),
        define(
            "get-media",
            "Get Media",
            "Get media by ID",
            permission=upload_files,
            executor=get_media,
            input_schema=obj({"attachment_id": integer("Attachment ID")}, required=["attachment_id"]),
            output_schema=object_result(),
            annotations=READ_ONLY,
        ),
    ]
