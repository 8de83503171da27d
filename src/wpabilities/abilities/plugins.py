"""Plugin and theme abilities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from wpabilities.abilities._helpers import (
    READ_ONLY,
    WRITE,
    define,
    object_result,
    response_schema,
    store_errors,
)
from wpabilities.core.models import ErrorCode, err, ok
from wpabilities.core.permissions import RequiresCapability
from wpabilities.core.schema import arr, integer, obj, string
from wpabilities.utils.text import sanitize_text

if TYPE_CHECKING:
    from wpabilities.core.models import AbilityDefinition
    from wpabilities.core.permissions import CallerContext
    from wpabilities.store.base import ContentStore, Plugin

# Reported feature name -> theme support flags, any of which enables it.
THEME_FEATURES: dict[str, tuple[str, ...]] = {
    "post_thumbnails": ("post-thumbnails",),
    "html5": ("html5",),
    "widgets": ("widgets",),
    "menus": ("menus",),
    "automatic_feed_links": ("automatic-feed-links",),
    "gutenberg": ("align-wide", "wp-block-styles"),
    "custom_colors": ("editor-color-palette",),
    "custom_fonts": ("editor-font-sizes",),
}


def format_plugin(plugin: Plugin, *, detailed: bool = False) -> dict[str, Any]:
    data: dict[str, Any] = {
        "file": plugin.file,
        "name": plugin.name,
        "version": plugin.version,
        "description": plugin.description,
        "author": plugin.author,
        "active": plugin.active,
        "url": plugin.url,
    }
    if detailed:
        data.update(license=plugin.license, requires_wp=plugin.requires_wp, requires_php=plugin.requires_php)
    return data


def build(store: ContentStore) -> list[AbilityDefinition]:
    async def find_plugin(plugin_file: str) -> Plugin | None:
        return next((p for p in await store.list_plugins() if p.file == plugin_file), None)

    async def list_plugins(args: dict[str, Any], context: CallerContext) -> Any:
        status = sanitize_text(args.get("status", "all"))
        plugins = [
            format_plugin(p)
            for p in await store.list_plugins()
            if not (status == "active" and not p.active) and not (status == "inactive" and p.active)
        ]
        return ok(plugins, total=len(plugins))

    async def get_plugin(args: dict[str, Any], context: CallerContext) -> Any:
        plugin = await find_plugin(sanitize_text(args["plugin_file"]))
        if plugin is None:
            return err("Plugin not found", ErrorCode.NOT_FOUND)
        return ok(format_plugin(plugin, detailed=True))

    @store_errors
    async def activate_plugin(args: dict[str, Any], context: CallerContext) -> Any:
        await store.activate_plugin(sanitize_text(args["plugin_file"]))
        return ok(message="Plugin activated successfully")

    @store_errors
    async def deactivate_plugin(args: dict[str, Any], context: CallerContext) -> Any:
        await store.deactivate_plugin(sanitize_text(args["plugin_file"]))
        return ok(message="Plugin deactivated successfully")

    async def get_theme(args: dict[str, Any], context: CallerContext) -> Any:
        theme = await store.get_theme()
        return ok(theme.model_dump(exclude={"supports"}))

    async def get_theme_supports(args: dict[str, Any], context: CallerContext) -> Any:
        features = {}
        for feature, flags in THEME_FEATURES.items():
            supported = False
            for flag in flags:
                if await store.theme_supports(flag):
                    supported = True
                    break
            features[feature] = supported
        return ok(features)

    plugin_file = obj({"plugin_file": string("Plugin file path (e.g. akismet/akismet.php)")}, required=["plugin_file"])
    manage_plugins = RequiresCapability(capability="manage_plugins")
    switch_themes = RequiresCapability(capability="switch_themes")

    return [
        define(
            "list-plugins",
            "List Plugins",
            "Get installed plugins",
            permission=manage_plugins,
            executor=list_plugins,
            input_schema=obj({"status": string("Filter by status", enum=["active", "inactive", "all"])}),
            output_schema=response_schema(data=arr(), total=integer()),
            annotations=READ_ONLY,
        ),
        define(
            "get-plugin",
            "Get Plugin",
            "Get plugin details",
            permission=manage_plugins,
            executor=get_plugin,
            input_schema=plugin_file,
            output_schema=object_result(),
            annotations=READ_ONLY,
        ),
        define(
            "activate-plugin",
            "Activate Plugin",
            "Activate plugin",
            permission=manage_plugins,
            executor=activate_plugin,
            input_schema=plugin_file,
            output_schema=response_schema(message=string()),
            annotations=WRITE,
        ),
        define(
            "deactivate-plugin",
            "Deactivate Plugin",
            "Deactivate plugin",
            permission=manage_plugins,
            executor=deactivate_plugin,
            input_schema=plugin_file,
            output_schema=response_schema(message=string()),
            annotations=WRITE,
        ),
        define(
            "get-theme",
            "Get Theme",
            "Get theme info",
            permission=switch_themes,
            executor=get_theme,
            output_schema=object_result(),
            annotations=READ_ONLY,
        ),
        define(
            "get-theme-supports",
            "Get Theme Supports",
            "Get theme features",
            permission=switch_themes,
            executor=get_theme_supports,
            output_schema=object_result(),
            annotations=READ_ONLY,
        ),
    ]
