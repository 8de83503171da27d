"""Block pattern and block type abilities."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from wpabilities.abilities._helpers import (
    DESTRUCTIVE,
    READ_ONLY,
    WRITE,
    define,
    object_result,
    response_schema,
    store_errors,
)
from wpabilities.core.models import ErrorCode, err, ok
from wpabilities.core.permissions import RequiresCapability
from wpabilities.core.schema import arr, boolean, integer, obj, string
from wpabilities.store.base import Pattern
from wpabilities.utils.text import kses_post, sanitize_text

if TYPE_CHECKING:
    from wpabilities.core.models import AbilityDefinition
    from wpabilities.core.permissions import CallerContext
    from wpabilities.store.base import BlockType, ContentStore

PATTERN_NOT_FOUND = "Pattern not found"


def validate_block_json(blocks_json: str) -> tuple[bool, list[str]]:
    """Check that *blocks_json* is a JSON list of objects with ``blockName``.

    Returns ``(valid, errors)``. Parse failures stop at the first error;
    otherwise every block is checked.
    """
    try:
        blocks = json.loads(blocks_json)
    except json.JSONDecodeError as exc:
        return False, [f"Invalid JSON: {exc.msg}"]

    if isinstance(blocks, dict):
        entries = list(blocks.items())
    elif isinstance(blocks, list):
        entries = list(enumerate(blocks))
    else:
        return False, ["Blocks must be an array"]

    errors: list[str] = []
    for index, block in entries:
        if not isinstance(block, dict):
            errors.append(f"Block at index {index} is not an object")
            continue
        if block.get("blockName") is None:
            errors.append(f"Block at index {index} missing 'blockName'")
    return not errors, errors


def format_block_type(block_type: BlockType) -> dict[str, Any]:
    return {
        "name": block_type.name,
        "title": block_type.title,
        "category": block_type.category,
        "description": block_type.description,
        "icon": block_type.icon,
        "attributes": dict(block_type.attributes),
    }


def build(store: ContentStore) -> list[AbilityDefinition]:
    @store_errors
    async def list_patterns(args: dict[str, Any], context: CallerContext) -> Any:
        patterns = await store.list_patterns()
        if "category" in args:
            category = sanitize_text(args["category"])
            patterns = [p for p in patterns if p.category == category]
        if "search" in args:
            needle = sanitize_text(args["search"]).lower()
            patterns = [p for p in patterns if needle in p.name.lower() or needle in p.title.lower()]
        return ok([p.model_dump() for p in patterns], total=len(patterns))

    @store_errors
    async def get_pattern(args: dict[str, Any], context: CallerContext) -> Any:
        pattern = await store.get_pattern(sanitize_text(args["pattern_name"]))
        if pattern is None:
            return err(PATTERN_NOT_FOUND, ErrorCode.NOT_FOUND)
        return ok(pattern.model_dump())

    @store_errors
    async def create_pattern(args: dict[str, Any], context: CallerContext) -> Any:
        pattern = Pattern(
            name=sanitize_text(args["name"]),
            title=sanitize_text(args["title"]),
            content=kses_post(args["content"]),
            category=sanitize_text(args["category"]) if "category" in args else "default",
            description=sanitize_text(args.get("description", "")),
            keywords=[sanitize_text(k) for k in args.get("keywords", [])],
        )
        await store.register_pattern(pattern)
        return ok(pattern.model_dump())

    @store_errors
    async def edit_pattern(args: dict[str, Any], context: CallerContext) -> Any:
        existing = await store.get_pattern(sanitize_text(args["pattern_name"]))
        if existing is None:
            return err(PATTERN_NOT_FOUND, ErrorCode.NOT_FOUND)

        changes: dict[str, Any] = {}
        for key in ("title", "category", "description"):
            if key in args:
                changes[key] = sanitize_text(args[key])
        if "content" in args:
            changes["content"] = kses_post(args["content"])
        if "keywords" in args:
            changes["keywords"] = [sanitize_text(k) for k in args["keywords"]]

        updated = existing.model_copy(update=changes)
        await store.register_pattern(updated)
        return ok(updated.model_dump())

    @store_errors
    async def delete_pattern(args: dict[str, Any], context: CallerContext) -> Any:
        name = sanitize_text(args["pattern_name"])
        if await store.get_pattern(name) is None:
            return err(PATTERN_NOT_FOUND, ErrorCode.NOT_FOUND)
        if not await store.unregister_pattern(name):
            return err("Unable to delete pattern", ErrorCode.STORE_ERROR)
        return ok(message="Pattern deleted successfully")

    async def get_block_types(args: dict[str, Any], context: CallerContext) -> Any:
        namespace = sanitize_text(args.get("namespace", ""))
        include_deprecated = bool(args.get("include_deprecated", False))
        block_types = [
            format_block_type(b)
            for b in await store.list_block_types()
            if (not namespace or b.name.startswith(namespace))
            and (include_deprecated or not b.deprecated)
        ]
        return ok(block_types, total=len(block_types))

    def validate_blocks(args: dict[str, Any], context: CallerContext) -> Any:
        valid, errors = validate_block_json(args["blocks_json"])
        return ok(valid=valid, errors=errors)

    pattern_fields = {
        "title": string("Pattern title"),
        "content": string("Pattern block content"),
        "category": string("Pattern category"),
        "description": string("Pattern description"),
        "keywords": arr(string(), description="Keywords for pattern"),
    }

    return [
        define(
            "list-patterns",
            "List Patterns",
            "List all saved Gutenberg patterns",
            permission=RequiresCapability(capability="read"),
            executor=list_patterns,
            input_schema=obj(
                {
                    "category": string("Filter by category"),
                    "search": string("Search pattern name/title"),
                }
            ),
            output_schema=response_schema(data=arr(), total=integer()),
            annotations=READ_ONLY,
        ),
        define(
            "get-pattern",
            "Get Pattern",
            "Get specific pattern by name",
            permission=RequiresCapability(capability="read"),
            executor=get_pattern,
            input_schema=obj({"pattern_name": string("Pattern name/slug")}, required=["pattern_name"]),
            output_schema=object_result(),
            annotations=READ_ONLY,
        ),
        define(
            "create-pattern",
            "Create Pattern",
            "Create new Gutenberg pattern",
            permission=RequiresCapability(capability="edit_posts"),
            executor=create_pattern,
            input_schema=obj(
                {"name": string("Pattern name/slug"), **pattern_fields},
                required=["title", "name", "content"],
            ),
            output_schema=object_result(),
            annotations=WRITE,
        ),
        define(
            "edit-pattern",
            "Edit Pattern",
            "Modify saved pattern",
            permission=RequiresCapability(capability="edit_posts"),
            executor=edit_pattern,
            input_schema=obj(
                {"pattern_name": string("Pattern name to update"), **pattern_fields},
                required=["pattern_name"],
            ),
            output_schema=object_result(),
            annotations=WRITE,
        ),
        define(
            "delete-pattern",
            "Delete Pattern",
            "Remove pattern",
            permission=RequiresCapability(capability="delete_posts"),
            executor=delete_pattern,
            input_schema=obj({"pattern_name": string("Pattern name to delete")}, required=["pattern_name"]),
            output_schema=response_schema(message=string()),
            annotations=DESTRUCTIVE,
        ),
        define(
            "get-block-types",
            "Get Block Types",
            "List available block types",
            permission=RequiresCapability(capability="read"),
            executor=get_block_types,
            input_schema=obj(
                {
                    "namespace": string("Filter by namespace (e.g., core)"),
                    "include_deprecated": boolean("Include deprecated blocks"),
                }
            ),
            output_schema=response_schema(data=arr(), total=integer()),
            annotations=READ_ONLY,
        ),
        define(
            "validate-blocks",
            "Validate Blocks",
            "Validate block JSON",
            permission=RequiresCapability(capability="read"),
            executor=validate_blocks,
            input_schema=obj({"blocks_json": string("Block JSON to validate")}, required=["blocks_json"]),
            output_schema=response_schema(valid=boolean(), errors=arr()),
            annotations=READ_ONLY,
        ),
    ]
