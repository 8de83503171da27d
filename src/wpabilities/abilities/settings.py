"""Site settings and statistics abilities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from wpabilities.abilities._helpers import READ_ONLY, define, object_result
from wpabilities.core.models import ok
from wpabilities.core.permissions import RequiresCapability

if TYPE_CHECKING:
    from wpabilities.core.models import AbilityDefinition
    from wpabilities.core.permissions import CallerContext
    from wpabilities.store.base import ContentStore

# Response key -> option name.
SETTINGS_OPTIONS: dict[str, str] = {
    "site_title": "blogname",
    "site_tagline": "blogdescription",
    "site_url": "siteurl",
    "home_url": "home",
    "admin_email": "admin_email",
    "timezone": "timezone_string",
    "date_format": "date_format",
    "time_format": "time_format",
    "posts_per_page": "posts_per_page",
    "pages_per_page": "posts_per_page_page",
    "blog_public": "blog_public",
    "users_can_register": "users_can_register",
    "default_user_role": "default_role",
    "wp_version": "version",
    "language": "WPLANG",
    "permalink_structure": "permalink_structure",
}


async def site_stats(store: ContentStore) -> dict[str, Any]:
    theme = await store.get_theme()
    return {
        "site_title": await store.get_option("blogname"),
        "site_url": await store.get_option("home"),
        "admin_email": await store.get_option("admin_email"),
        "page_count": await store.count_posts("page"),
        "post_count": await store.count_posts("post"),
        "user_count": await store.count_users(),
        "active_plugins": len(await store.get_option("active_plugins", []) or []),
        "active_theme": theme.name,
        "wp_version": await store.get_option("version"),
        "php_version": await store.get_option("php_version"),
        "timezone": await store.get_option("timezone_string") or "UTC",
        "language": await store.get_option("WPLANG"),
    }


def build(store: ContentStore) -> list[AbilityDefinition]:
    async def get_settings(args: dict[str, Any], context: CallerContext) -> Any:
        settings = {key: await store.get_option(option) for key, option in SETTINGS_OPTIONS.items()}
        settings["pages_per_page"] = settings["pages_per_page"] or 10
        return ok(settings)

    async def get_gutenberg_settings(args: dict[str, Any], context: CallerContext) -> Any:
        return ok(
            {
                "can_use_block_editor": True,
                "enable_on_posts": True,
                "enable_on_pages": True,
                "block_patterns_enabled": store.supports_patterns,
                "custom_colors": await store.theme_supports("editor-color-palette"),
                "custom_font_sizes": await store.theme_supports("editor-font-sizes"),
                "wide_alignment": await store.theme_supports("align-wide"),
                "global_styles_enabled": True,
            }
        )

    async def get_site_stats(args: dict[str, Any], context: CallerContext) -> Any:
        return ok(await site_stats(store))

    manage_options = RequiresCapability(capability="manage_options")
    return [
        define(
            "get-settings",
            "Get Settings",
            "Get WordPress settings",
            permission=manage_options,
            executor=get_settings,
            output_schema=object_result(),
            annotations=READ_ONLY,
        ),
        define(
            "get-gutenberg-settings",
            "Get Gutenberg Settings",
            "Get block editor settings",
            permission=manage_options,
            executor=get_gutenberg_settings,
            output_schema=object_result(),
            annotations=READ_ONLY,
        ),
        define(
            "get-site-stats",
            "Get Site Stats",
            "Get site overview stats",
            permission=manage_options,
            executor=get_site_stats,
            output_schema=object_result(),
            annotations=READ_ONLY,
        ),
    ]
