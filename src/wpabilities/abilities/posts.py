"""Page and post management abilities.

Pages and posts share one CRUD shape, so the five abilities per kind are
produced by the ``make_*_ability`` builders from a :class:`PostKind`.
Pages are hierarchical (parent, template); posts carry an excerpt and
taxonomy terms instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel

from wpabilities.abilities._helpers import (
    DESTRUCTIVE,
    READ_ONLY,
    WRITE,
    define,
    format_post,
    object_result,
    pagination,
    pagination_properties,
    response_schema,
    store_errors,
)
from wpabilities.core.models import ErrorCode, err, ok
from wpabilities.core.permissions import RequiresCapability
from wpabilities.core.schema import SchemaNode, arr, boolean, integer, obj, string
from wpabilities.store.base import PostQuery
from wpabilities.utils.text import absint, kses_post, sanitize_text, sanitize_title

if TYPE_CHECKING:
    from wpabilities.core.models import AbilityDefinition
    from wpabilities.core.permissions import CallerContext
    from wpabilities.store.base import ContentStore, Post

STATUSES = ["draft", "publish", "private"]
LIST_STATUSES = ["publish", "draft", "private", "any"]


class PostKind(BaseModel):
    """Describes one post type for the CRUD builders."""

    model_config = {"frozen": True}

    post_type: Literal["page", "post"]
    label: str
    id_field: str
    edit_capability: str
    delete_capability: str
    hierarchical: bool
    orderby: Literal["date", "title"]
    order: Literal["ASC", "DESC"]
    create_description: str

    @property
    def noun(self) -> str:
        return self.label.lower()

    @property
    def not_found(self) -> str:
        return f"{self.label} not found"


PAGE = PostKind(
    post_type="page",
    label="Page",
    id_field="page_id",
    edit_capability="edit_pages",
    delete_capability="delete_pages",
    hierarchical=True,
    orderby="title",
    order="ASC",
    create_description="Create new WordPress page",
)

POST = PostKind(
    post_type="post",
    label="Post",
    id_field="post_id",
    edit_capability="edit_posts",
    delete_capability="delete_posts",
    hierarchical=False,
    orderby="date",
    order="DESC",
    create_description="Create new blog post",
)


async def fetch(store: ContentStore, post_type: str, post_id: int) -> Post | None:
    """The post with *post_id* if it exists and is of *post_type*."""
    post = await store.get_post(post_id)
    if post is None or post.post_type != post_type:
        return None
    return post


def _content_properties(kind: PostKind) -> dict[str, SchemaNode]:
    properties: dict[str, SchemaNode] = {
        "title": string(f"{kind.label} title"),
        "content": string(f"{kind.label} content (HTML or blocks)"),
        "status": string(f"{kind.label} status", enum=STATUSES),
        "slug": string(f"{kind.label} slug"),
    }
    if kind.hierarchical:
        properties["parent_id"] = integer("Parent page ID")
        properties["template"] = string("Page template")
    else:
        properties["excerpt"] = string("Post excerpt")
        properties["categories"] = arr(integer(), description="Category IDs")
        properties["tags"] = arr(string(), description="Tag names")
    properties["featured_image"] = integer("Featured image ID")
    return properties


def _field_changes(kind: PostKind, args: dict[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if "title" in args:
        fields["title"] = sanitize_text(args["title"])
    if "content" in args:
        fields["content"] = kses_post(args["content"])
    if "status" in args:
        fields["status"] = sanitize_text(args["status"])
    if "slug" in args:
        fields["slug"] = sanitize_title(args["slug"])
    if kind.hierarchical:
        if "parent_id" in args:
            fields["parent_id"] = absint(args["parent_id"])
        if "template" in args:
            fields["template"] = sanitize_text(args["template"])
    elif "excerpt" in args:
        fields["excerpt"] = sanitize_text(args["excerpt"])
    return fields


async def _apply_relations(store: ContentStore, kind: PostKind, post_id: int, args: dict[str, Any]) -> None:
    if not kind.hierarchical:
        if "categories" in args:
            await store.set_post_terms(post_id, "category", [absint(c) for c in args["categories"]])
        if "tags" in args:
            tag_ids = await store.resolve_tags([sanitize_text(t) for t in args["tags"]])
            await store.set_post_terms(post_id, "post_tag", tag_ids)
    if "featured_image" in args:
        await store.set_thumbnail(post_id, absint(args["featured_image"]))


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_create_ability(store: ContentStore, kind: PostKind) -> AbilityDefinition:
    @store_errors
    async def execute(args: dict[str, Any], context: CallerContext) -> Any:
        fields = _field_changes(kind, args)
        fields.setdefault("status", "draft")
        fields["post_type"] = kind.post_type
        fields["author_id"] = context.user_id or 0
        post_id = await store.create_post(fields)
        await _apply_relations(store, kind, post_id, args)

        post = await store.get_post(post_id)
        if post is None:
            return err(kind.not_found, ErrorCode.NOT_FOUND)
        return ok(
            await format_post(store, post),
            **{kind.id_field: post_id, "url": await store.permalink(post_id)},
        )

    return define(
        f"create-{kind.noun}",
        f"Create {kind.label}",
        kind.create_description,
        permission=RequiresCapability(capability=kind.edit_capability),
        executor=execute,
        input_schema=obj(_content_properties(kind), required=["title", "content"]),
        output_schema=response_schema(
            **{kind.id_field: integer(), "url": string(), "data": obj()}
        ),
        annotations=WRITE,
    )


def make_edit_ability(store: ContentStore, kind: PostKind) -> AbilityDefinition:
    @store_errors
    async def execute(args: dict[str, Any], context: CallerContext) -> Any:
        post_id = absint(args[kind.id_field])
        if await fetch(store, kind.post_type, post_id) is None:
            return err(kind.not_found, ErrorCode.NOT_FOUND)

        await store.update_post(post_id, _field_changes(kind, args))
        await _apply_relations(store, kind, post_id, args)

        updated = await store.get_post(post_id)
        if updated is None:
            return err(kind.not_found, ErrorCode.NOT_FOUND)
        return ok(await format_post(store, updated))

    properties = {kind.id_field: integer(f"{kind.label} ID to edit"), **_content_properties(kind)}
    return define(
        f"edit-{kind.noun}",
        f"Edit {kind.label}",
        f"Modify existing {kind.noun}",
        permission=RequiresCapability(capability=kind.edit_capability),
        executor=execute,
        input_schema=obj(properties, required=[kind.id_field]),
        output_schema=object_result(),
        annotations=WRITE,
    )


def make_get_ability(store: ContentStore, kind: PostKind) -> AbilityDefinition:
    @store_errors
    async def execute(args: dict[str, Any], context: CallerContext) -> Any:
        post = await fetch(store, kind.post_type, absint(args[kind.id_field]))
        if post is None:
            return err(kind.not_found, ErrorCode.NOT_FOUND)
        return ok(await format_post(store, post))

    return define(
        f"get-{kind.noun}",
        f"Get {kind.label}",
        f"Retrieve {kind.noun} by ID",
        permission=RequiresCapability(capability="read"),
        executor=execute,
        input_schema=obj({kind.id_field: integer(f"{kind.label} ID")}, required=[kind.id_field]),
        output_schema=object_result(),
        annotations=READ_ONLY,
    )


def make_list_ability(store: ContentStore, kind: PostKind) -> AbilityDefinition:
    @store_errors
    async def execute(args: dict[str, Any], context: CallerContext) -> Any:
        per_page, page = pagination(args)
        query = PostQuery(
            post_types=[kind.post_type],
            orderby=kind.orderby,
            order=kind.order,
            per_page=per_page,
            page=page,
        )
        if "status" in args:
            query.statuses = [sanitize_text(args["status"])]
        if "search" in args:
            query.search = sanitize_text(args["search"])
        if kind.hierarchical:
            if "parent_id" in args:
                query.parent_id = absint(args["parent_id"])
        else:
            if "category" in args:
                query.category_id = absint(args["category"])
            if "tag" in args:
                query.tag_slug = sanitize_text(args["tag"])
            if "author_id" in args:
                query.author_id = absint(args["author_id"])

        result = await store.query_posts(query)
        items = [await format_post(store, p, include_content=False) for p in result.items]
        return ok(items, total=result.total)

    properties: dict[str, SchemaNode] = {"status": string(enum=LIST_STATUSES)}
    if kind.hierarchical:
        properties["parent_id"] = integer("Filter by parent page")
    else:
        properties["category"] = integer("Filter by category ID")
        properties["tag"] = string("Filter by tag slug")
        properties["author_id"] = integer("Filter by author")
    properties["search"] = string("Search term")
    properties.update(pagination_properties())

    return define(
        f"list-{kind.noun}s",
        f"List {kind.label}s",
        f"Get all {kind.noun}s with filtering",
        permission=RequiresCapability(capability="read"),
        executor=execute,
        input_schema=obj(properties),
        output_schema=response_schema(data=arr(), total=integer()),
        annotations=READ_ONLY,
    )


def make_delete_ability(store: ContentStore, kind: PostKind) -> AbilityDefinition:
    @store_errors
    async def execute(args: dict[str, Any], context: CallerContext) -> Any:
        post_id = absint(args[kind.id_field])
        if await fetch(store, kind.post_type, post_id) is None:
            return err(kind.not_found, ErrorCode.NOT_FOUND)

        force = bool(args.get("force", False))
        if not await store.delete_post(post_id, force=force):
            return err(f"Failed to delete {kind.noun}", ErrorCode.STORE_ERROR)
        if force:
            return ok(message=f"{kind.label} permanently deleted")
        return ok(message=f"{kind.label} moved to trash")

    return define(
        f"delete-{kind.noun}",
        f"Delete {kind.label}",
        f"Delete {kind.noun}",
        permission=RequiresCapability(capability=kind.delete_capability),
        executor=execute,
        input_schema=obj(
            {
                kind.id_field: integer(f"{kind.label} ID to delete"),
                "force": boolean("Force delete (bypass trash)"),
            },
            required=[kind.id_field],
        ),
        output_schema=response_schema(message=string()),
        annotations=DESTRUCTIVE,
    )


def build(store: ContentStore) -> list[AbilityDefinition]:
    abilities: list[AbilityDefinition] = []
    for kind in (PAGE, POST):
        abilities.extend(
            [
                make_create_ability(store, kind),
                make_edit_ability(store, kind),
                make_get_ability(store, kind),
                make_list_ability(store, kind),
                make_delete_ability(store, kind),
            ]
        )
    return abilities
