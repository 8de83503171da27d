"""Shared pieces for the concrete abilities: naming, schemas, formatting."""

from __future__ import annotations

import functools
import logging
import math
from typing import TYPE_CHECKING, Any

from wpabilities.core.models import AbilityDefinition, ErrorCode, Visibility, err
from wpabilities.core.schema import SchemaNode, boolean, integer, obj, string
from wpabilities.store.base import StoreError, UnsupportedOperationError
from wpabilities.utils.text import absint

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from wpabilities.core.permissions import CallerContext, PermissionCheck
    from wpabilities.store.base import ContentStore, Post, Term, User

logger = logging.getLogger(__name__)

PROVIDER = "mcp-wp"
CATEGORY = "mcp-wp"
CATEGORY_LABEL = "MCP WordPress Capabilities"
CATEGORY_DESCRIPTION = "WordPress capabilities for MCP integration with Figma and design automation"

DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100

READ_ONLY = {"readOnlyHint": True, "destructiveHint": False, "idempotentHint": True}
WRITE = {"readOnlyHint": False, "destructiveHint": False}
DESTRUCTIVE = {"readOnlyHint": False, "destructiveHint": True}


def define(
    verb_noun: str,
    label: str,
    description: str,
    *,
    permission: PermissionCheck,
    executor: Callable[..., Any],
    input_schema: SchemaNode | None = None,
    output_schema: SchemaNode | None = None,
    annotations: dict[str, Any] | None = None,
    visibility: Visibility = Visibility.PUBLIC,
) -> AbilityDefinition:
    """Build an ability in the ``mcp-wp`` provider namespace."""
    return AbilityDefinition(
        name=f"{PROVIDER}/{verb_noun}",
        label=label,
        description=description,
        category=CATEGORY,
        input_schema=input_schema or obj(),
        output_schema=output_schema or obj(),
        permission=permission,
        executor=executor,
        visibility=visibility,
        annotations=dict(annotations or {}),
    )


def response_schema(**properties: SchemaNode) -> SchemaNode:
    """Output schema: ``success`` and ``error`` plus ability-specific fields."""
    return obj({"success": boolean(), **properties, "error": string()})


def object_result() -> SchemaNode:
    return response_schema(data=obj())


def store_errors(
    fn: Callable[[dict[str, Any], CallerContext], Awaitable[Any]],
) -> Callable[[dict[str, Any], CallerContext], Awaitable[Any]]:
    """Turn store failures raised by *fn* into ``Err`` results."""

    @functools.wraps(fn)
    async def wrapper(args: dict[str, Any], context: CallerContext) -> Any:
        try:
            return await fn(args, context)
        except UnsupportedOperationError as exc:
            return err(exc.message, ErrorCode.UNSUPPORTED)
        except StoreError as exc:
            logger.info("Store error in %s: %s", fn.__qualname__, exc.message)
            return err(exc.message, ErrorCode.STORE_ERROR)

    return wrapper


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


def pagination(args: dict[str, Any]) -> tuple[int, int]:
    """``(per_page, page)`` with the default of 10 and the cap of 100."""
    per_page = min(absint(args.get("per_page", DEFAULT_PER_PAGE)), MAX_PER_PAGE)
    page = absint(args.get("page", 1))
    return per_page, page


def pagination_properties() -> dict[str, SchemaNode]:
    return {
        "per_page": integer("Number to return (default: 10, max: 100)"),
        "page": integer("Page number"),
    }


def max_num_pages(total: int, per_page: int) -> int:
    if per_page <= 0:
        return 1 if total else 0
    return math.ceil(total / per_page)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


async def format_post(store: ContentStore, post: Post, include_content: bool = True) -> dict[str, Any]:
    response: dict[str, Any] = {
        "id": post.id,
        "title": post.title,
        "slug": post.slug,
        "status": post.status,
        "type": post.post_type,
        "author_id": post.author_id,
        "date": post.date,
        "modified": post.modified,
        "excerpt": post.excerpt,
        "url": await store.permalink(post.id),
        "parent_id": post.parent_id,
        "featured_image_id": post.featured_image_id,
    }
    if include_content:
        response["content"] = post.content
    return response


def format_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "display_name": user.display_name,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "roles": list(user.roles),
        "registered": user.registered,
    }


def format_term(term: Term, *, with_count: bool = False, with_parent: bool = False) -> dict[str, Any]:
    data: dict[str, Any] = {"id": term.id, "name": term.name, "slug": term.slug}
    if with_count:
        data["count"] = term.count
    if with_parent:
        data["parent"] = term.parent
    data["description"] = term.description
    return data
