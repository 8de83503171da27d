"""Category and tag abilities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from wpabilities.abilities._helpers import (
    READ_ONLY,
    WRITE,
    define,
    format_term,
    response_schema,
    store_errors,
)
from wpabilities.core.models import ok
from wpabilities.core.permissions import RequiresCapability
from wpabilities.core.schema import arr, boolean, integer, obj, string
from wpabilities.utils.text import absint, sanitize_text

if TYPE_CHECKING:
    from wpabilities.core.models import AbilityDefinition
    from wpabilities.core.permissions import CallerContext
    from wpabilities.store.base import ContentStore


def build(store: ContentStore) -> list[AbilityDefinition]:
    @store_errors
    async def list_categories(args: dict[str, Any], context: CallerContext) -> Any:
        terms = await store.query_terms(
            "category",
            hide_empty=bool(args.get("hide_empty", True)),
            parent=absint(args["parent"]) if "parent" in args else None,
            search=sanitize_text(args["search"]) if "search" in args else None,
        )
        data = [format_term(t, with_count=True, with_parent=True) for t in terms]
        return ok(data, total=len(data))

    @store_errors
    async def list_tags(args: dict[str, Any], context: CallerContext) -> Any:
        terms = await store.query_terms(
            "post_tag",
            hide_empty=bool(args.get("hide_empty", True)),
            search=sanitize_text(args["search"]) if "search" in args else None,
            orderby=sanitize_text(args.get("orderby", "name")),
        )
        data = [format_term(t, with_count=True) for t in terms]
        return ok(data, total=len(data))

    @store_errors
    async def create_category(args: dict[str, Any], context: CallerContext) -> Any:
        term = await store.create_term(
            "category",
            sanitize_text(args["name"]),
            slug=sanitize_text(args["slug"]) if "slug" in args else None,
            description=sanitize_text(args.get("description", "")),
            parent=absint(args.get("parent", 0)),
        )
        return ok(format_term(term), category_id=term.id)

    @store_errors
    async def create_tag(args: dict[str, Any], context: CallerContext) -> Any:
        term = await store.create_term(
            "post_tag",
            sanitize_text(args["name"]),
            slug=sanitize_text(args["slug"]) if "slug" in args else None,
            description=sanitize_text(args.get("description", "")),
        )
        return ok(format_term(term), tag_id=term.id)

    read = RequiresCapability(capability="read")
    manage_categories = RequiresCapability(capability="manage_categories")
    list_output = response_schema(data=arr(), total=integer())

    return [
        define(
            "list-categories",
            "List Categories",
            "Get post categories",
            permission=read,
            executor=list_categories,
            input_schema=obj(
                {
                    "parent": integer("Filter by parent category"),
                    "hide_empty": boolean("Hide categories with no posts"),
                    "search": string("Search category name"),
                }
            ),
            output_schema=list_output,
            annotations=READ_ONLY,
        ),
        define(
            "list-tags",
            "List Tags",
            "Get post tags",
            permission=read,
            executor=list_tags,
            input_schema=obj(
                {
                    "hide_empty": boolean("Hide tags with no posts"),
                    "search": string("Search tag name"),
                    "orderby": string(enum=["name", "count"]),
                }
            ),
            output_schema=list_output,
            annotations=READ_ONLY,
        ),
        define(
            "create-category",
            "Create Category",
            "Create category",
            permission=manage_categories,
            executor=create_category,
            input_schema=obj(
                {
                    "name": string("Category name"),
                    "slug": string("Category slug"),
                    "description": string("Category description"),
                    "parent": integer("Parent category ID"),
                },
                required=["name"],
            ),
            output_schema=response_schema(category_id=integer(), data=obj()),
            annotations=WRITE,
        ),
        define(
            "create-tag",
            "Create Tag",
            "Create tag",
            permission=manage_categories,
            executor=create_tag,
            input_schema=obj(
                {
                    "name": string("Tag name"),
                    "slug": string("Tag slug"),
                    "description": string("Tag description"),
                },
                required=["name"],
            ),
            output_schema=response_schema(tag_id=integer(), data=obj()),
            annotations=WRITE,
        ),
    ]
