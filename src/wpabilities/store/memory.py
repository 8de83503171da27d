"""Dict-backed :class:`~wpabilities.store.base.ContentStore` implementation.

Suitable for tests, the CLI demo and single-process deployments. Entities
are returned as deep copies so callers can never mutate stored state
behind the store's back.
"""

from __future__ import annotations

import itertools
import logging
import mimetypes
import re
import struct
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from wpabilities.core.permissions import CallerContext
from wpabilities.store.base import (
    BlockType,
    Pattern,
    Plugin,
    Post,
    PostQuery,
    QueryResult,
    RestResponse,
    StoreError,
    Term,
    Theme,
    UnsupportedOperationError,
    UploadedFile,
    User,
)
from wpabilities.utils.text import sanitize_text, sanitize_title

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)

# ---------------------------------------------------------------------------
# Roles and defaults
# ---------------------------------------------------------------------------

_SUBSCRIBER = frozenset({"read"})
_CONTRIBUTOR = _SUBSCRIBER | {"edit_posts", "delete_posts"}
_AUTHOR = _CONTRIBUTOR | {
    "upload_files",
    "publish_posts",
    "edit_published_posts",
    "delete_published_posts",
}
_EDITOR = _AUTHOR | {
    "edit_pages",
    "edit_others_pages",
    "edit_published_pages",
    "publish_pages",
    "delete_pages",
    "delete_others_pages",
    "delete_published_pages",
    "edit_others_posts",
    "delete_others_posts",
    "read_private_posts",
    "read_private_pages",
    "edit_private_posts",
    "edit_private_pages",
    "delete_private_posts",
    "delete_private_pages",
    "manage_categories",
    "moderate_comments",
    "manage_links",
    "unfiltered_html",
}
_ADMINISTRATOR = _EDITOR | {
    "manage_options",
    "switch_themes",
    "edit_themes",
    "edit_theme_options",
    "activate_plugins",
    "manage_plugins",
    "edit_plugins",
    "install_plugins",
    "update_plugins",
    "delete_plugins",
    "list_users",
    "create_users",
    "edit_users",
    "delete_users",
    "promote_users",
    "import",
    "export",
}

ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    "administrator": _ADMINISTRATOR,
    "editor": _EDITOR,
    "author": _AUTHOR,
    "contributor": _CONTRIBUTOR,
    "subscriber": _SUBSCRIBER,
}

DEFAULT_OPTIONS: dict[str, Any] = {
    "blogname": "My WordPress Site",
    "blogdescription": "Just another WordPress site",
    "siteurl": "http://localhost",
    "home": "http://localhost",
    "admin_email": "admin@example.com",
    "timezone_string": "UTC",
    "date_format": "F j, Y",
    "time_format": "g:i a",
    "posts_per_page": 10,
    "blog_public": 1,
    "users_can_register": 0,
    "default_role": "subscriber",
    "default_category": 1,
    "WPLANG": "",
    "permalink_structure": "/%postname%/",
    "version": "6.9",
    "php_version": "8.2.0",
}

_POST_STATUSES = frozenset(
    {"draft", "publish", "private", "pending", "future", "trash", "inherit", "auto-draft"}
)
_HIDDEN_FROM_ANY = frozenset({"trash", "auto-draft"})
_POST_FIELDS = (
    "title",
    "content",
    "excerpt",
    "slug",
    "status",
    "author_id",
    "parent_id",
    "template",
)

_REST_NOT_FOUND = {
    "code": "rest_no_route",
    "message": "No route was found matching the URL and request method.",
    "data": {"status": 404},
}


def _default_block_types() -> list[BlockType]:
    return [
        BlockType(name="core/paragraph", title="Paragraph", category="text",
                  description="Start with the basic building block of all narrative.",
                  icon="editor-paragraph", attributes={"content": {"type": "string"}}),
        BlockType(name="core/heading", title="Heading", category="text",
                  description="Introduce new sections and organize content.",
                  icon="heading", attributes={"level": {"type": "number", "default": 2}}),
        BlockType(name="core/image", title="Image", category="media",
                  description="Insert an image to make a visual statement.",
                  icon="format-image", attributes={"id": {"type": "number"}, "url": {"type": "string"}}),
        BlockType(name="core/list", title="List", category="text",
                  description="Create a bulleted or numbered list.", icon="editor-ul"),
        BlockType(name="core/buttons", title="Buttons", category="design",
                  description="Prompt visitors to take action with a group of button-style links.",
                  icon="button"),
        BlockType(name="core/columns", title="Columns", category="design",
                  description="Display content in multiple columns.", icon="columns"),
        BlockType(name="core/group", title="Group", category="design",
                  description="Gather blocks in a layout container.", icon="group"),
        BlockType(name="core/text-columns", title="Text Columns (deprecated)", category="design",
                  description="This block is deprecated. Please use the Columns block instead.",
                  icon="columns", deprecated=True),
    ]


def _default_theme() -> Theme:
    return Theme(
        name="Twenty Twenty-Five",
        version="1.2",
        description="The default block theme.",
        author="the WordPress team",
        author_uri="https://wordpress.org",
        theme_uri="https://wordpress.org/themes/twentytwentyfive/",
        screenshot="http://localhost/wp-content/themes/twentytwentyfive/screenshot.png",
        stylesheet="twentytwentyfive",
        template="twentytwentyfive",
        supports=[
            "post-thumbnails",
            "html5",
            "automatic-feed-links",
            "wp-block-styles",
            "align-wide",
            "editor-color-palette",
            "editor-font-sizes",
        ],
    )


def _default_plugins() -> list[Plugin]:
    return [
        Plugin(file="akismet/akismet.php", name="Akismet Anti-spam", version="5.3",
               description="Protects your blog from spam.", author="Automattic",
               url="https://akismet.com/", license="GPLv2 or later",
               requires_wp="5.8", requires_php="7.2"),
        Plugin(file="hello.php", name="Hello Dolly", version="1.7.2",
               description="A plugin symbolizing the hope of a generation.",
               author="Matt Mullenweg", url="http://wordpress.org/plugins/hello-dolly/",
               license="GPLv2 or later"),
        Plugin(file="mcp-adapter/mcp-adapter.php", name="MCP Adapter", version="0.3.0",
               description="Exposes abilities as MCP tools.", author="WordPress.org",
               license="GPLv2 or later", requires_wp="6.8", requires_php="7.4", active=True),
    ]


def _image_size(content: bytes) -> tuple[int, int] | None:
    if content.startswith(b"\x89PNG\r\n\x1a\n") and len(content) >= 24:
        width, height = struct.unpack(">II", content[16:24])
        return width, height
    if content[:6] in (b"GIF87a", b"GIF89a") and len(content) >= 10:
        width, height = struct.unpack("<HH", content[6:10])
        return width, height
    return None


def _with_changes(model: _M, changes: Mapping[str, Any]) -> _M:
    """Validated copy of *model* with *changes* applied.

    Raises :class:`StoreError` naming the first offending field.
    """
    try:
        return type(model).model_validate({**model.model_dump(), **changes})
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or type(model).__name__
        raise StoreError(f"Invalid value for {field}: {first['msg']}") from exc


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class InMemoryContentStore:
    """Dict-backed content store with WordPress-like defaults.

    A fresh store holds one administrator (``admin``, ID 1), the
    ``Uncategorized`` category, a few plugins, an active block theme and
    the core block type catalogue. Pass ``with_defaults=False`` for an
    empty store and ``supports_patterns=False`` to emulate a platform
    without block pattern support.
    """

    def __init__(
        self,
        *,
        with_defaults: bool = True,
        supports_patterns: bool = True,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._posts: dict[int, Post] = {}
        self._users: dict[int, User] = {}
        self._terms: dict[int, Term] = {}
        self._patterns: dict[str, Pattern] = {}
        self._plugins: dict[str, Plugin] = {}
        self._uploads: dict[str, bytes] = {}
        self._block_types: list[BlockType] = []
        self._options: dict[str, Any] = dict(DEFAULT_OPTIONS)
        self._theme = _default_theme()
        self._supports_patterns = supports_patterns
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._post_ids = itertools.count(1)
        self._user_ids = itertools.count(1)
        self._term_ids = itertools.count(1)

        if with_defaults:
            self._install_defaults()

    def _install_defaults(self) -> None:
        self._insert_user(
            {
                "username": "admin",
                "email": self._options["admin_email"],
                "password": "password",
                "display_name": "admin",
                "role": "administrator",
            }
        )
        self._insert_term("category", "Uncategorized")
        for plugin in _default_plugins():
            self._plugins[plugin.file] = plugin
        self._block_types = _default_block_types()

    def load_fixtures(self, data: Mapping[str, Any]) -> None:
        """Populate the store from plain data, e.g. a config ``seed`` section.

        Recognised keys: ``options``, ``users``, ``categories``, ``tags``,
        ``pages``, ``posts``, ``patterns``, ``plugins``.
        """
        self._options.update(data.get("options") or {})
        for user in data.get("users") or []:
            self._insert_user(dict(user))
        for term in data.get("categories") or []:
            self._insert_term("category", **dict(term))
        for term in data.get("tags") or []:
            self._insert_term("post_tag", **dict(term))
        for page in data.get("pages") or []:
            self._insert_post({**page, "post_type": "page"})
        for post in data.get("posts") or []:
            self._insert_post({**post, "post_type": "post"})
        for pattern in data.get("patterns") or []:
            model = Pattern.model_validate(pattern)
            self._patterns[model.name] = model
        for plugin in data.get("plugins") or []:
            model = Plugin.model_validate(plugin)
            self._plugins[model.file] = model
        logger.debug("Loaded fixtures: %s", sorted(data))

    def _now(self) -> str:
        return self._clock().strftime("%Y-%m-%d %H:%M:%S")

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    async def create_post(self, fields: dict[str, Any]) -> int:
        return self._insert_post(fields)

    def _insert_post(self, fields: Mapping[str, Any]) -> int:
        post_type = fields.get("post_type", "post")
        if post_type not in ("page", "post", "attachment"):
            raise StoreError("Invalid post type.")
        status = fields.get("status") or ("inherit" if post_type == "attachment" else "draft")
        self._check_status(status)

        title = fields.get("title", "") or ""
        content = fields.get("content", "") or ""
        excerpt = fields.get("excerpt", "") or ""
        if post_type != "attachment" and not (title or content or excerpt):
            raise StoreError("Content, title, and excerpt are empty.")

        post_id = next(self._post_ids)
        now = self._now()
        slug = sanitize_title(fields.get("slug") or title) or str(post_id)
        post = Post(
            id=post_id,
            post_type=post_type,
            title=title,
            content=content,
            excerpt=excerpt,
            slug=self._unique_slug(slug, post_type, post_id),
            status=status,
            author_id=int(fields.get("author_id", 0) or 0),
            parent_id=int(fields.get("parent_id", 0) or 0),
            date=fields.get("date") or now,
            modified=now,
            template=fields.get("template", "") or "",
            mime_type=fields.get("mime_type", "") or "",
            guid=fields.get("guid", "") or "",
            attachment_meta=dict(fields.get("attachment_meta") or {}),
        )
        for key, value in (fields.get("meta") or {}).items():
            post.meta.setdefault(key, []).append(value)
        self._posts[post_id] = post

        if post_type == "post":
            default_category = int(self._options.get("default_category", 0) or 0)
            categories = list(fields.get("categories") or [])
            if not categories and default_category in self._terms:
                categories = [default_category]
            post.terms["category"] = categories
        logger.debug("Created %s %d", post_type, post_id)
        return post_id

    async def get_post(self, post_id: int) -> Post | None:
        post = self._posts.get(post_id)
        return post.model_copy(deep=True) if post else None

    async def update_post(self, post_id: int, fields: dict[str, Any]) -> Post:
        post = self._posts.get(post_id)
        if post is None:
            raise StoreError("Invalid post ID.")
        changes = {key: fields[key] for key in _POST_FIELDS if key in fields}
        if "status" in changes:
            self._check_status(changes["status"])
        if "slug" in changes:
            slug = sanitize_title(changes["slug"]) or str(post_id)
            changes["slug"] = self._unique_slug(slug, post.post_type, post_id)
        for key in ("author_id", "parent_id"):
            if key in changes:
                changes[key] = int(changes[key] or 0)
        if changes.get("parent_id") == post_id:
            raise StoreError("A post cannot be its own parent.")
        changes["modified"] = self._now()
        updated = _with_changes(post, changes)
        self._posts[post_id] = updated
        return updated.model_copy(deep=True)

    async def delete_post(self, post_id: int, *, force: bool = False) -> bool:
        post = self._posts.get(post_id)
        if post is None:
            return False
        if force or post.status == "trash" or post.post_type == "attachment":
            del self._posts[post_id]
            logger.debug("Deleted %s %d", post.post_type, post_id)
            return True
        post.meta["_wp_trash_meta_status"] = [post.status]
        post.status = "trash"
        post.modified = self._now()
        logger.debug("Trashed %s %d", post.post_type, post_id)
        return True

    async def query_posts(self, query: PostQuery) -> QueryResult:
        matches = [post for post in self._posts.values() if self._matches(post, query)]
        if query.orderby == "title":
            matches.sort(key=lambda p: (p.title.casefold(), p.id))
        else:
            matches.sort(key=lambda p: (p.date, p.id))
        if query.order == "DESC":
            matches.reverse()

        per_page = query.per_page if query.per_page > 0 else int(self._options["posts_per_page"])
        page = max(query.page, 1)
        start = (page - 1) * per_page
        items = [p.model_copy(deep=True) for p in matches[start : start + per_page]]
        return QueryResult(items=items, total=len(matches))

    def _matches(self, post: Post, query: PostQuery) -> bool:
        if post.post_type not in query.post_types:
            return False
        if query.statuses is None:
            allowed = {"publish", "inherit"} if post.post_type == "attachment" else {"publish"}
            if post.status not in allowed:
                return False
        elif "any" in query.statuses:
            if post.status in _HIDDEN_FROM_ANY:
                return False
        elif post.status not in query.statuses:
            return False
        if query.parent_id is not None and post.parent_id != query.parent_id:
            return False
        if query.author_id is not None and post.author_id != query.author_id:
            return False
        if query.category_id is not None and query.category_id not in post.terms.get("category", []):
            return False
        if query.tag_slug is not None:
            tag_ids = {
                t.id for t in self._terms.values() if t.taxonomy == "post_tag" and t.slug == query.tag_slug
            }
            if not tag_ids.intersection(post.terms.get("post_tag", [])):
                return False
        if query.mime_type and not post.mime_type.startswith(query.mime_type):
            return False
        if query.search:
            needle = query.search.casefold()
            haystack = f"{post.title}\n{post.content}\n{post.excerpt}".casefold()
            if needle not in haystack:
                return False
        if query.date_after and post.date[:10] < query.date_after[:10]:
            return False
        if query.date_before and post.date[:10] > query.date_before[:10]:
            return False
        return all(_meta_clause_matches(post.meta, clause) for clause in query.meta_query)

    async def set_post_terms(self, post_id: int, taxonomy: str, term_ids: list[int]) -> None:
        post = self._require_post(post_id)
        valid = [tid for tid in term_ids if tid in self._terms and self._terms[tid].taxonomy == taxonomy]
        if taxonomy == "category" and not valid:
            default_category = int(self._options.get("default_category", 0) or 0)
            if default_category in self._terms:
                valid = [default_category]
        post.terms[taxonomy] = valid

    async def set_thumbnail(self, post_id: int, attachment_id: int) -> None:
        post = self._require_post(post_id)
        attachment = self._posts.get(attachment_id)
        if attachment is None or attachment.post_type != "attachment":
            logger.debug("Ignoring thumbnail %d for post %d: not an attachment", attachment_id, post_id)
            return
        post.featured_image_id = attachment_id

    async def get_post_meta(self, post_id: int) -> dict[str, list[Any]]:
        post = self._require_post(post_id)
        return {key: list(values) for key, values in post.meta.items()}

    async def add_post_meta(self, post_id: int, key: str, value: Any) -> None:
        post = self._require_post(post_id)
        post.meta.setdefault(key, []).append(value)

    async def permalink(self, post_id: int) -> str:
        post = self._posts.get(post_id)
        if post is None:
            return ""
        if post.post_type == "attachment":
            return post.guid
        home = str(self._options["home"]).rstrip("/")
        structure = str(self._options.get("permalink_structure") or "")
        if "%postname%" in structure and post.status in ("publish", "private"):
            return f"{home}/{'/'.join(self._slug_path(post))}/"
        if post.post_type == "page":
            return f"{home}/?page_id={post.id}"
        return f"{home}/?p={post.id}"

    async def count_posts(self, post_type: str, status: str = "publish") -> int:
        return sum(1 for p in self._posts.values() if p.post_type == post_type and p.status == status)

    def _require_post(self, post_id: int) -> Post:
        post = self._posts.get(post_id)
        if post is None:
            raise StoreError("Invalid post ID.")
        return post

    def _slug_path(self, post: Post) -> list[str]:
        path = [post.slug]
        seen = {post.id}
        parent = self._posts.get(post.parent_id) if post.post_type == "page" else None
        while parent is not None and parent.id not in seen:
            path.insert(0, parent.slug)
            seen.add(parent.id)
            parent = self._posts.get(parent.parent_id)
        return path

    def _unique_slug(self, slug: str, post_type: str, post_id: int) -> str:
        taken = {p.slug for p in self._posts.values() if p.post_type == post_type and p.id != post_id}
        candidate, suffix = slug, 2
        while candidate in taken:
            candidate = f"{slug}-{suffix}"
            suffix += 1
        return candidate

    @staticmethod
    def _check_status(status: str) -> None:
        if status not in _POST_STATUSES:
            raise StoreError(f"Invalid post status: {status}")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(self, fields: dict[str, Any]) -> int:
        return self._insert_user(fields)

    def _insert_user(self, fields: Mapping[str, Any]) -> int:
        username = str(fields.get("username") or "").strip()
        if not username:
            raise StoreError("Cannot create a user with an empty login name.")
        if any(u.username == username for u in self._users.values()):
            raise StoreError("Sorry, that username already exists!")
        email = str(fields.get("email") or "")
        self._check_email_free(email, None)
        role = fields.get("role") or self._options.get("default_role", "subscriber")
        self._check_role(role)

        user_id = next(self._user_ids)
        self._users[user_id] = User(
            id=user_id,
            username=username,
            email=email,
            password=str(fields.get("password") or ""),
            display_name=fields.get("display_name") or username,
            first_name=fields.get("first_name", "") or "",
            last_name=fields.get("last_name", "") or "",
            roles=[role],
            registered=self._now(),
        )
        logger.debug("Created user %d (%s)", user_id, username)
        return user_id

    async def get_user(self, user_id: int) -> User | None:
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def update_user(self, user_id: int, fields: dict[str, Any]) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise StoreError("Invalid user ID.")
        changes = {
            key: fields[key]
            for key in ("email", "first_name", "last_name", "display_name", "password")
            if key in fields
        }
        if "email" in changes:
            self._check_email_free(changes["email"], user_id)
        updated = _with_changes(user, changes)
        self._users[user_id] = updated
        return updated.model_copy(deep=True)

    async def set_user_role(self, user_id: int, role: str) -> None:
        user = self._users.get(user_id)
        if user is None:
            raise StoreError("Invalid user ID.")
        self._check_role(role)
        user.roles = [role]

    async def query_users(
        self,
        *,
        role: str | None = None,
        search: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> QueryResult:
        users = sorted(self._users.values(), key=lambda u: u.username.casefold())
        if role:
            users = [u for u in users if role in u.roles]
        if search:
            needle = search.strip("*").casefold()
            users = [
                u
                for u in users
                if needle in u.username.casefold()
                or needle in u.email.casefold()
                or needle in u.display_name.casefold()
            ]
        page = users[max(offset, 0) : max(offset, 0) + limit] if limit > 0 else users
        return QueryResult(items=[u.model_copy(deep=True) for u in page], total=len(users))

    async def count_users(self) -> int:
        return len(self._users)

    async def user_can(self, context: CallerContext, capability: str) -> bool:
        if not context.is_authenticated:
            return False
        user = self._users.get(context.user_id) if context.user_id is not None else None
        roles = user.roles if user is not None else context.roles
        granted: set[str] = set(context.capabilities)
        for role in roles:
            granted |= ROLE_CAPABILITIES.get(role, frozenset())
        return capability in granted

    def _check_email_free(self, email: str, user_id: int | None) -> None:
        if email and any(u.email == email and u.id != user_id for u in self._users.values()):
            raise StoreError("Sorry, that email address is already used!")

    @staticmethod
    def _check_role(role: str) -> None:
        if role not in ROLE_CAPABILITIES:
            raise StoreError(f"Invalid role: {role}")

    # ------------------------------------------------------------------
    # Terms
    # ------------------------------------------------------------------

    async def create_term(
        self,
        taxonomy: str,
        name: str,
        *,
        slug: str | None = None,
        description: str = "",
        parent: int = 0,
    ) -> Term:
        return self._term_with_count(
            self._insert_term(taxonomy, name, slug=slug, description=description, parent=parent)
        )

    def _insert_term(
        self,
        taxonomy: str,
        name: str,
        *,
        slug: str | None = None,
        description: str = "",
        parent: int = 0,
    ) -> Term:
        if taxonomy not in ("category", "post_tag"):
            raise StoreError("Invalid taxonomy.")
        name = sanitize_text(name)
        if not name:
            raise StoreError("A name is required for this term.")
        if taxonomy == "post_tag":
            parent = 0
        elif parent and (parent not in self._terms or self._terms[parent].taxonomy != taxonomy):
            raise StoreError("Parent term does not exist.")
        if any(
            t.taxonomy == taxonomy and t.parent == parent and t.name.casefold() == name.casefold()
            for t in self._terms.values()
        ):
            raise StoreError("A term with the name provided already exists with this parent.")

        term_id = next(self._term_ids)
        base = sanitize_title(slug or name) or str(term_id)
        term = Term(
            id=term_id,
            taxonomy=taxonomy,
            name=name,
            slug=self._unique_term_slug(base, taxonomy, term_id),
            description=description,
            parent=parent,
        )
        self._terms[term_id] = term
        return term

    async def get_term(self, term_id: int) -> Term | None:
        term = self._terms.get(term_id)
        return self._term_with_count(term) if term else None

    async def update_term(self, term_id: int, taxonomy: str, fields: dict[str, Any]) -> Term:
        term = self._terms.get(term_id)
        if term is None or term.taxonomy != taxonomy:
            raise StoreError("Term does not exist.")
        changes: dict[str, Any] = {}
        if "name" in fields:
            name = sanitize_text(fields["name"])
            if not name:
                raise StoreError("A name is required for this term.")
            changes["name"] = name
        if "slug" in fields:
            base = sanitize_title(fields["slug"]) or str(term_id)
            changes["slug"] = self._unique_term_slug(base, taxonomy, term_id)
        if "description" in fields:
            changes["description"] = str(fields["description"])
        if "parent" in fields and taxonomy == "category":
            parent = int(fields["parent"] or 0)
            if parent == term_id or (parent and parent not in self._terms):
                raise StoreError("Parent term does not exist.")
            changes["parent"] = parent
        updated = _with_changes(term, changes)
        self._terms[term_id] = updated
        return self._term_with_count(updated)

    async def query_terms(
        self,
        taxonomy: str,
        *,
        hide_empty: bool = True,
        parent: int | None = None,
        search: str | None = None,
        orderby: str = "name",
    ) -> list[Term]:
        terms = [self._term_with_count(t) for t in self._terms.values() if t.taxonomy == taxonomy]
        if hide_empty:
            terms = [t for t in terms if t.count > 0]
        if parent is not None:
            terms = [t for t in terms if t.parent == parent]
        if search:
            needle = search.casefold()
            terms = [t for t in terms if needle in t.name.casefold() or needle in t.slug]
        if orderby == "count":
            terms.sort(key=lambda t: (t.count, t.name.casefold()))
        else:
            terms.sort(key=lambda t: t.name.casefold())
        return terms

    async def resolve_tags(self, names: list[str]) -> list[int]:
        ids: list[int] = []
        for raw in names:
            name = sanitize_text(raw)
            if not name:
                continue
            existing = next(
                (
                    t
                    for t in self._terms.values()
                    if t.taxonomy == "post_tag" and t.name.casefold() == name.casefold()
                ),
                None,
            )
            term = existing or self._insert_term("post_tag", name)
            if term.id not in ids:
                ids.append(term.id)
        return ids

    def _term_with_count(self, term: Term) -> Term:
        count = sum(
            1
            for p in self._posts.values()
            if p.status == "publish" and term.id in p.terms.get(term.taxonomy, [])
        )
        return term.model_copy(update={"count": count})

    def _unique_term_slug(self, slug: str, taxonomy: str, term_id: int) -> str:
        taken = {t.slug for t in self._terms.values() if t.taxonomy == taxonomy and t.id != term_id}
        candidate, suffix = slug, 2
        while candidate in taken:
            candidate = f"{slug}-{suffix}"
            suffix += 1
        return candidate

    # ------------------------------------------------------------------
    # Patterns & blocks
    # ------------------------------------------------------------------

    @property
    def supports_patterns(self) -> bool:
        return self._supports_patterns

    def _require_patterns(self) -> None:
        if not self._supports_patterns:
            raise UnsupportedOperationError("Block patterns not supported in this WordPress version")

    async def list_patterns(self) -> list[Pattern]:
        self._require_patterns()
        return [p.model_copy(deep=True) for p in self._patterns.values()]

    async def get_pattern(self, name: str) -> Pattern | None:
        self._require_patterns()
        pattern = self._patterns.get(name)
        return pattern.model_copy(deep=True) if pattern else None

    async def register_pattern(self, pattern: Pattern) -> None:
        self._require_patterns()
        self._patterns[pattern.name] = pattern.model_copy(deep=True)

    async def unregister_pattern(self, name: str) -> bool:
        self._require_patterns()
        return self._patterns.pop(name, None) is not None

    async def list_block_types(self) -> list[BlockType]:
        return [b.model_copy(deep=True) for b in self._block_types]

    # ------------------------------------------------------------------
    # Plugins & themes
    # ------------------------------------------------------------------

    async def list_plugins(self) -> list[Plugin]:
        return [p.model_copy() for p in sorted(self._plugins.values(), key=lambda p: p.name.casefold())]

    async def activate_plugin(self, plugin_file: str) -> None:
        plugin = self._plugins.get(plugin_file)
        if plugin is None:
            raise StoreError("Plugin file does not exist.")
        plugin.active = True

    async def deactivate_plugin(self, plugin_file: str) -> None:
        plugin = self._plugins.get(plugin_file)
        if plugin is not None:
            plugin.active = False

    async def get_theme(self) -> Theme:
        return self._theme.model_copy(deep=True)

    async def theme_supports(self, feature: str) -> bool:
        return feature in self._theme.supports

    # ------------------------------------------------------------------
    # Settings, media, REST
    # ------------------------------------------------------------------

    async def get_option(self, key: str, default: Any = None) -> Any:
        if key == "active_plugins":
            return [p.file for p in self._plugins.values() if p.active]
        return self._options.get(key, default)

    async def save_upload(self, filename: str, content: bytes) -> UploadedFile:
        if not filename:
            raise StoreError("Empty filename")
        now = self._clock()
        folder = f"{now:%Y}/{now:%m}"
        stem, dot, ext = filename.rpartition(".")
        if not dot:
            stem, ext = filename, ""
        unique, counter = filename, 1
        while f"{folder}/{unique}" in self._uploads:
            unique = f"{stem}-{counter}.{ext}" if ext else f"{stem}-{counter}"
            counter += 1
        self._uploads[f"{folder}/{unique}"] = content

        siteurl = str(self._options["siteurl"]).rstrip("/")
        mime_type = mimetypes.guess_type(unique)[0] or "application/octet-stream"
        size = _image_size(content) if mime_type.startswith("image/") else None
        upload = UploadedFile(
            filename=unique,
            url=f"{siteurl}/wp-content/uploads/{folder}/{unique}",
            mime_type=mime_type,
            size=len(content),
        )
        if size is not None:
            upload.width, upload.height = size
        return upload

    async def rest_request(
        self,
        method: str,
        route: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> RestResponse:
        params = params or {}
        route = "/" + route.strip("/")
        for pattern, methods, handler in self._rest_routes():
            match = re.fullmatch(pattern, route)
            if match and method.upper() in methods:
                return await handler(method.upper(), match, params, body or {})
        return RestResponse(status=404, data=dict(_REST_NOT_FOUND))

    def _rest_routes(self) -> list[tuple[str, tuple[str, ...], Any]]:
        return [
            (r"/", ("GET",), self._rest_index),
            (r"/wp/v2/(posts|pages)", ("GET", "POST"), self._rest_collection),
            (r"/wp/v2/(posts|pages)/(\d+)", ("GET", "PUT", "POST", "DELETE"), self._rest_item),
            (r"/wp/v2/(categories|tags)", ("GET",), self._rest_terms),
            (r"/wp/v2/settings", ("GET",), self._rest_settings),
        ]

    async def _rest_index(
        self, method: str, match: Any, params: dict[str, Any], body: dict[str, Any]
    ) -> RestResponse:
        return RestResponse(
            data={
                "name": self._options["blogname"],
                "description": self._options["blogdescription"],
                "url": self._options["siteurl"],
                "home": self._options["home"],
                "namespaces": ["wp/v2"],
            }
        )

    async def _rest_collection(
        self, method: str, match: Any, params: dict[str, Any], body: dict[str, Any]
    ) -> RestResponse:
        post_type = "page" if match.group(1) == "pages" else "post"
        if method == "POST":
            fields = {**params, **body, "post_type": post_type}
            try:
                post_id = self._insert_post(fields)
            except StoreError as exc:
                return RestResponse(status=400, data={"code": "rest_invalid_param", "message": exc.message, "data": {"status": 400}})
            return RestResponse(status=201, data=await self._rest_post(self._posts[post_id]))
        per_page = int(params.get("per_page", 10) or 10)
        page = int(params.get("page", 1) or 1)
        result = await self.query_posts(
            PostQuery(post_types=[post_type], search=params.get("search"), per_page=per_page, page=page)
        )
        items = [await self._rest_post(p) for p in result.items]
        return RestResponse(data=items)

    async def _rest_item(
        self, method: str, match: Any, params: dict[str, Any], body: dict[str, Any]
    ) -> RestResponse:
        post_type = "page" if match.group(1) == "pages" else "post"
        post = self._posts.get(int(match.group(2)))
        if post is None or post.post_type != post_type:
            return RestResponse(
                status=404,
                data={"code": "rest_post_invalid_id", "message": "Invalid post ID.", "data": {"status": 404}},
            )
        if method == "DELETE":
            force = str(params.get("force", "")).lower() in ("1", "true")
            previous = await self._rest_post(post)
            await self.delete_post(post.id, force=force)
            return RestResponse(data={"deleted": True, "previous": previous} if force else previous)
        if method in ("PUT", "POST"):
            updated = await self.update_post(post.id, {**params, **body})
            return RestResponse(data=await self._rest_post(updated))
        return RestResponse(data=await self._rest_post(post))

    async def _rest_terms(
        self, method: str, match: Any, params: dict[str, Any], body: dict[str, Any]
    ) -> RestResponse:
        taxonomy = "category" if match.group(1) == "categories" else "post_tag"
        hide_empty = str(params.get("hide_empty", "")).lower() in ("1", "true")
        terms = await self.query_terms(taxonomy, hide_empty=hide_empty, search=params.get("search"))
        return RestResponse(data=[t.model_dump() for t in terms])

    async def _rest_settings(
        self, method: str, match: Any, params: dict[str, Any], body: dict[str, Any]
    ) -> RestResponse:
        return RestResponse(
            data={
                "title": self._options["blogname"],
                "description": self._options["blogdescription"],
                "url": self._options["siteurl"],
                "email": self._options["admin_email"],
                "timezone": self._options["timezone_string"],
                "date_format": self._options["date_format"],
                "time_format": self._options["time_format"],
                "posts_per_page": self._options["posts_per_page"],
                "default_category": self._options["default_category"],
            }
        )

    async def _rest_post(self, post: Post) -> dict[str, Any]:
        return {
            "id": post.id,
            "type": post.post_type,
            "slug": post.slug,
            "status": post.status,
            "date_gmt": post.date,
            "title": {"rendered": post.title},
            "content": {"rendered": post.content},
            "excerpt": {"rendered": post.excerpt},
            "author": post.author_id,
            "parent": post.parent_id,
            "link": await self.permalink(post.id),
        }


def _meta_clause_matches(meta: dict[str, list[Any]], clause: Mapping[str, Any]) -> bool:
    key = clause.get("key")
    compare = str(clause.get("compare", "=")).upper()
    values = [str(v) for v in meta.get(str(key), [])] if key is not None else []
    expected = clause.get("value")

    if compare == "EXISTS":
        return bool(values)
    if compare == "NOT EXISTS":
        return not values
    if compare == "!=":
        return str(expected) not in values
    if compare == "LIKE":
        return any(str(expected).casefold() in v.casefold() for v in values)
    if compare == "IN":
        options = {str(v) for v in (expected or [])}
        return bool(options.intersection(values))
    return str(expected) in values

