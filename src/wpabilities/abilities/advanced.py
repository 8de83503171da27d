"""Advanced abilities: REST passthrough, rich queries, batch updates,
pattern import/export and cloning.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from wpabilities.abilities._helpers import (
    DESTRUCTIVE,
    MAX_PER_PAGE,
    READ_ONLY,
    WRITE,
    define,
    format_post,
    max_num_pages,
    object_result,
    pagination,
    response_schema,
    store_errors,
)
from wpabilities.abilities.patterns import PATTERN_NOT_FOUND
from wpabilities.abilities.posts import fetch
from wpabilities.core.models import ErrorCode, err, ok
from wpabilities.core.permissions import RequiresCapability
from wpabilities.core.schema import arr, integer, obj, string
from wpabilities.store.base import Pattern, PostQuery, StoreError
from wpabilities.utils.text import absint, kses_post, sanitize_text

if TYPE_CHECKING:
    from wpabilities.core.models import AbilityDefinition
    from wpabilities.core.permissions import CallerContext
    from wpabilities.store.base import ContentStore

logger = logging.getLogger(__name__)

# Post field aliases accepted by batch-update (WordPress column names).
POST_FIELD_ALIASES = {
    "ID": "id",
    "post_title": "title",
    "post_content": "content",
    "post_excerpt": "excerpt",
    "post_name": "slug",
    "post_status": "status",
    "post_author": "author_id",
    "post_parent": "parent_id",
    "page_template": "template",
}

CLONE_STATUSES = {"scheduled": "future"}


def normalize_post_item(item: dict[str, Any]) -> dict[str, Any]:
    return {POST_FIELD_ALIASES.get(key, key): value for key, value in item.items()}


def build(store: ContentStore) -> list[AbilityDefinition]:
    @store_errors
    async def custom_rest_call(args: dict[str, Any], context: CallerContext) -> Any:
        method = sanitize_text(args["method"]).upper()
        body = args.get("body") if method in ("POST", "PUT") else None
        response = await store.rest_request(
            method,
            sanitize_text(args["route"]),
            params=dict(args.get("params") or {}),
            body=body,
        )
        return ok(response.data, status=response.status)

    @store_errors
    async def query_posts_advanced(args: dict[str, Any], context: CallerContext) -> Any:
        per_page, page = pagination(args)
        query = PostQuery(per_page=per_page, page=page, orderby="date", order="DESC")
        if "post_type" in args:
            query.post_types = [sanitize_text(t) for t in args["post_type"]]
        if "status" in args:
            query.statuses = [sanitize_text(s) for s in args["status"]]
        if "author_id" in args:
            query.author_id = absint(args["author_id"])
        if "date_after" in args:
            query.date_after = sanitize_text(args["date_after"])
        if "date_before" in args:
            query.date_before = sanitize_text(args["date_before"])
        if isinstance(args.get("meta_query"), list):
            query.meta_query = [clause for clause in args["meta_query"] if isinstance(clause, dict)]

        result = await store.query_posts(query)
        items = [await format_post(store, p, include_content=False) for p in result.items]
        effective = per_page or int(await store.get_option("posts_per_page", 10))
        return ok(items, total=result.total, pages=max_num_pages(result.total, effective))

    async def batch_update(args: dict[str, Any], context: CallerContext) -> Any:
        kind = sanitize_text(args["type"])
        updated = failed = 0
        errors: list[str] = []

        for item in args["items"]:
            if not isinstance(item, dict):
                failed += 1
                errors.append("Item must be an object")
                continue
            try:
                if kind in ("post", "page"):
                    fields = normalize_post_item(item)
                    await store.update_post(absint(fields.get("id", 0)), fields)
                    updated += 1
                elif kind == "term":
                    term_id = absint(item.get("id", 0))
                    if not term_id:
                        logger.debug("Skipping batch term without an id")
                        continue
                    await store.update_term(term_id, str(item.get("taxonomy", "category")), item)
                    updated += 1
            except StoreError as exc:
                failed += 1
                errors.append(exc.message)
            except Exception as exc:
                logger.warning("Batch %s item %r failed: %s", kind, item.get("id"), exc)
                failed += 1
                errors.append(str(exc) or type(exc).__name__)

        return ok(updated=updated, failed=failed, errors=errors)

    @store_errors
    async def export_pattern(args: dict[str, Any], context: CallerContext) -> Any:
        pattern = await store.get_pattern(sanitize_text(args["pattern_name"]))
        if pattern is None:
            return err(PATTERN_NOT_FOUND, ErrorCode.NOT_FOUND)
        return ok(json=json.dumps(pattern.model_dump()))

    @store_errors
    async def import_pattern(args: dict[str, Any], context: CallerContext) -> Any:
        try:
            data = json.loads(args["pattern_json"])
        except json.JSONDecodeError:
            data = None
        if not isinstance(data, dict):
            return err("Invalid JSON data", ErrorCode.INVALID_INPUT)
        if data.get("name") is None or data.get("content") is None:
            return err("Missing required fields: name, content", ErrorCode.INVALID_INPUT)
        if not store.supports_patterns:
            return err("Block patterns not supported", ErrorCode.UNSUPPORTED)

        keywords = data.get("keywords")
        if keywords is None:
            keywords = []
        elif not isinstance(keywords, list):
            keywords = [keywords]
        await store.register_pattern(
            Pattern(
                name=sanitize_text(data["name"]),
                title=sanitize_text(data.get("title", "Imported Pattern")),
                content=kses_post(data["content"]),
                category=sanitize_text(data.get("category", "default")),
                description=sanitize_text(data.get("description", "")),
                keywords=[sanitize_text(k) for k in keywords],
            )
        )
        return ok(data)

    @store_errors
    async def get_pattern_usage(args: dict[str, Any], context: CallerContext) -> Any:
        name = sanitize_text(args["pattern_name"])
        usage: list[dict[str, Any]] = []
        page = 1
        while True:
            result = await store.query_posts(
                PostQuery(
                    post_types=["post", "page"],
                    statuses=["any"],
                    search=name,
                    per_page=MAX_PER_PAGE,
                    page=page,
                )
            )
            for post in result.items:
                if name in post.content:
                    usage.append(
                        {
                            "id": post.id,
                            "title": post.title,
                            "type": post.post_type,
                            "url": await store.permalink(post.id),
                        }
                    )
            if page * MAX_PER_PAGE >= result.total:
                break
            page += 1
        return ok(usage, count=len(usage))

    @store_errors
    async def clone_item(args: dict[str, Any], context: CallerContext) -> Any:
        item_id = absint(args["item_id"])
        original = await fetch(store, sanitize_text(args["type"]), item_id)
        if original is None:
            return err("Item not found or type mismatch", ErrorCode.NOT_FOUND)

        status = sanitize_text(args.get("new_status", "draft"))
        new_id = await store.create_post(
            {
                "post_type": original.post_type,
                "title": sanitize_text(args["new_title"]) if "new_title" in args else f"{original.title} - Copy",
                "content": original.content,
                "excerpt": original.excerpt,
                "status": CLONE_STATUSES.get(status, status),
                "author_id": context.user_id or 0,
            }
        )
        if original.featured_image_id:
            await store.set_thumbnail(new_id, original.featured_image_id)
        for key, values in (await store.get_post_meta(item_id)).items():
            if key.startswith("_"):
                continue
            for value in values:
                await store.add_post_meta(new_id, key, value)

        cloned = await store.get_post(new_id)
        if cloned is None:
            return err("Item not found or type mismatch", ErrorCode.NOT_FOUND)
        return ok(await format_post(store, cloned), new_id=new_id, url=await store.permalink(new_id))

    pattern_name = obj({"pattern_name": string("Pattern name")}, required=["pattern_name"])

    return [
        define(
            "custom-rest-call",
            "Custom REST Call",
            "Make custom REST calls",
            permission=RequiresCapability(capability="manage_options"),
            executor=custom_rest_call,
            input_schema=obj(
                {
                    "route": string("REST API route"),
                    "method": string("HTTP method", enum=["GET", "POST", "PUT", "DELETE"]),
                    "params": obj(description="Request parameters"),
                    "body": obj(description="Request body (for POST/PUT)"),
                },
                required=["route", "method"],
            ),
            output_schema=response_schema(status=integer()),
            annotations=DESTRUCTIVE,
        ),
        define(
            "query-posts-advanced",
            "Query Posts Advanced",
            "Advanced post queries",
            permission=RequiresCapability(capability="read"),
            executor=query_posts_advanced,
            input_schema=obj(
                {
                    "post_type": arr(string(), description="Post types to query"),
                    "status": arr(string(), description="Post statuses"),
                    "meta_query": arr(description="Meta query conditions"),
                    "date_after": string("Date after (YYYY-MM-DD)"),
                    "date_before": string("Date before (YYYY-MM-DD)"),
                    "author_id": integer("Filter by author ID"),
                    "per_page": integer("Number per page (max 100)"),
                    "page": integer("Page number"),
                }
            ),
            output_schema=response_schema(data=arr(), total=integer(), pages=integer()),
            annotations=READ_ONLY,
        ),
        define(
            "batch-update",
            "Batch Update",
            "Update multiple items",
            permission=RequiresCapability(capability="edit_posts"),
            executor=batch_update,
            input_schema=obj(
                {
                    "items": arr(description="Array of items to update"),
                    "type": string("Item type", enum=["post", "page", "term"]),
                },
                required=["items", "type"],
            ),
            output_schema=response_schema(updated=integer(), failed=integer(), errors=arr()),
            annotations=WRITE,
        ),
        define(
            "export-pattern",
            "Export Pattern",
            "Export pattern as JSON",
            permission=RequiresCapability(capability="read"),
            executor=export_pattern,
            input_schema=pattern_name,
            output_schema=response_schema(json=string()),
            annotations=READ_ONLY,
        ),
        define(
            "import-pattern",
            "Import Pattern",
            "Import pattern from JSON",
            permission=RequiresCapability(capability="edit_posts"),
            executor=import_pattern,
            input_schema=obj({"pattern_json": string("Pattern JSON data")}, required=["pattern_json"]),
            output_schema=object_result(),
            annotations=WRITE,
        ),
        define(
            "get-pattern-usage",
            "Get Pattern Usage",
            "Find where pattern is used",
            permission=RequiresCapability(capability="read"),
            executor=get_pattern_usage,
            input_schema=pattern_name,
            output_schema=response_schema(data=arr(), count=integer()),
            annotations=READ_ONLY,
        ),
        define(
            "clone-item",
            "Clone Item",
            "Duplicate page/post",
            permission=RequiresCapability(capability="edit_posts"),
            executor=clone_item,
            input_schema=obj(
                {
                    "item_id": integer("Item ID to clone"),
                    "type": string("Item type", enum=["post", "page"]),
                    "new_title": string("Title for cloned item"),
                    "new_status": string("Status for cloned item", enum=["draft", "publish", "scheduled"]),
                },
                required=["item_id", "type"],
            ),
            output_schema=response_schema(new_id=integer(), url=string(), data=obj()),
            annotations=WRITE,
        ),
    ]
