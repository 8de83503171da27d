"""Content store contract.

:class:`ContentStore` is the async protocol abilities use to read and
mutate site content. The entity models below are what it hands back;
abilities format them into response payloads.

Store failures raise :class:`StoreError`. A store that cannot perform an
operation at all (e.g. no block pattern support) raises
:class:`UnsupportedOperationError`.
"""

from __future__ import annotations

from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from wpabilities.core.permissions import CallerContext

PostType = Literal["page", "post", "attachment"]
Taxonomy = Literal["category", "post_tag"]


class StoreError(Exception):
    """A content store operation failed."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnsupportedOperationError(StoreError):
    """The store does not support the requested operation."""


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class Post(BaseModel):
    """A page, post or media attachment."""

    id: int
    post_type: PostType
    title: str = ""
    content: str = ""
    excerpt: str = ""
    slug: str = ""
    status: str = "draft"
    author_id: int = 0
    parent_id: int = 0
    date: str = ""
    modified: str = ""
    template: str = ""
    mime_type: str = ""
    guid: str = ""
    featured_image_id: int = 0
    terms: dict[str, list[int]] = Field(default_factory=dict)
    meta: dict[str, list[Any]] = Field(default_factory=dict)
    attachment_meta: dict[str, Any] = Field(default_factory=dict)


class User(BaseModel):
    id: int
    username: str
    email: str
    password: str = Field(default="", repr=False)
    display_name: str = ""
    first_name: str = ""
    last_name: str = ""
    roles: list[str] = Field(default_factory=list)
    registered: str = ""


class Term(BaseModel):
    id: int
    taxonomy: Taxonomy
    name: str
    slug: str
    description: str = ""
    parent: int = 0
    count: int = 0


class Pattern(BaseModel):
    """A registered block pattern."""

    name: str
    title: str = ""
    description: str = ""
    content: str = ""
    category: str = "default"
    keywords: list[str] = Field(default_factory=list)


class BlockType(BaseModel):
    name: str
    title: str = ""
    category: str = ""
    description: str = ""
    icon: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    deprecated: bool = False


class Plugin(BaseModel):
    file: str
    name: str
    version: str = ""
    description: str = ""
    author: str = ""
    url: str = ""
    license: str = ""
    requires_wp: str = ""
    requires_php: str = ""
    active: bool = False


class Theme(BaseModel):
    name: str
    version: str = ""
    description: str = ""
    author: str = ""
    author_uri: str = ""
    theme_uri: str = ""
    screenshot: str = ""
    stylesheet: str = ""
    template: str = ""
    supports: list[str] = Field(default_factory=list)


class RestResponse(BaseModel):
    status: int = 200
    data: Any = None


class UploadedFile(BaseModel):
    """A file written to the media library storage."""

    filename: str
    url: str
    mime_type: str = "application/octet-stream"
    size: int = 0
    width: int | None = None
    height: int | None = None


class QueryResult(BaseModel):
    """One page of results plus the total number of matches."""

    items: list[Any] = Field(default_factory=list)
    total: int = 0


class PostQuery(BaseModel):
    """Filters for :meth:`ContentStore.query_posts`.

    ``statuses=None`` means the store's default visibility (published
    content, plus ``inherit`` for attachments). ``["any"]`` matches every
    status except ``trash``.
    """

    post_types: list[str] = Field(default_factory=lambda: ["post"])
    statuses: list[str] | None = None
    parent_id: int | None = None
    author_id: int | None = None
    category_id: int | None = None
    tag_slug: str | None = None
    search: str | None = None
    mime_type: str | None = None
    date_after: str | None = None
    date_before: str | None = None
    meta_query: list[dict[str, Any]] = Field(default_factory=list)
    orderby: Literal["date", "title"] = "date"
    order: Literal["ASC", "DESC"] = "DESC"
    per_page: int = 10
    page: int = 1


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class ContentStore(Protocol):
    """Async persistence protocol for site content."""

    # -- posts ---------------------------------------------------------------

    async def create_post(self, fields: dict[str, Any]) -> int:
        """Insert a post and return its new ID."""
        ...

    async def get_post(self, post_id: int) -> Post | None:
        """Return the post, or ``None`` if it does not exist.

        Trashed posts are still returned (with ``status="trash"``).
        """
        ...

    async def update_post(self, post_id: int, fields: dict[str, Any]) -> Post:
        ...

    async def delete_post(self, post_id: int, *, force: bool = False) -> bool:
        """Delete a post. ``force=False`` moves it to the trash instead."""
        ...

    async def query_posts(self, query: PostQuery) -> QueryResult:
        ...

    async def set_post_terms(self, post_id: int, taxonomy: str, term_ids: list[int]) -> None:
        ...

    async def set_thumbnail(self, post_id: int, attachment_id: int) -> None:
        ...

    async def get_post_meta(self, post_id: int) -> dict[str, list[Any]]:
        ...

    async def add_post_meta(self, post_id: int, key: str, value: Any) -> None:
        ...

    async def permalink(self, post_id: int) -> str:
        ...

    async def count_posts(self, post_type: str, status: str = "publish") -> int:
        ...

    # -- users ---------------------------------------------------------------

    async def create_user(self, fields: dict[str, Any]) -> int:
        ...

    async def get_user(self, user_id: int) -> User | None:
        ...

    async def update_user(self, user_id: int, fields: dict[str, Any]) -> User:
        ...

    async def set_user_role(self, user_id: int, role: str) -> None:
        ...

    async def query_users(
        self,
        *,
        role: str | None = None,
        search: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> QueryResult:
        ...

    async def count_users(self) -> int:
        ...

    async def user_can(self, context: CallerContext, capability: str) -> bool:
        """Return ``True`` if the caller holds *capability*."""
        ...

    # -- terms ---------------------------------------------------------------

    async def create_term(
        self,
        taxonomy: str,
        name: str,
        *,
        slug: str | None = None,
        description: str = "",
        parent: int = 0,
    ) -> Term:
        ...

    async def get_term(self, term_id: int) -> Term | None:
        ...

    async def update_term(self, term_id: int, taxonomy: str, fields: dict[str, Any]) -> Term:
        ...

    async def query_terms(
        self,
        taxonomy: str,
        *,
        hide_empty: bool = True,
        parent: int | None = None,
        search: str | None = None,
        orderby: str = "name",
    ) -> list[Term]:
        ...

    async def resolve_tags(self, names: list[str]) -> list[int]:
        """Return tag IDs for *names*, creating tags that do not exist."""
        ...

    # -- patterns & blocks ---------------------------------------------------

    @property
    def supports_patterns(self) -> bool: ...

    async def list_patterns(self) -> list[Pattern]:
        ...

    async def get_pattern(self, name: str) -> Pattern | None:
        ...

    async def register_pattern(self, pattern: Pattern) -> None:
        """Register *pattern*, replacing any pattern with the same name."""
        ...

    async def unregister_pattern(self, name: str) -> bool:
        ...

    async def list_block_types(self) -> list[BlockType]:
        ...

    # -- plugins & themes ----------------------------------------------------

    async def list_plugins(self) -> list[Plugin]:
        ...

    async def activate_plugin(self, plugin_file: str) -> None:
        ...

    async def deactivate_plugin(self, plugin_file: str) -> None:
        ...

    async def get_theme(self) -> Theme:
        ...

    async def theme_supports(self, feature: str) -> bool:
        ...

    # -- settings, media, REST -----------------------------------------------

    async def get_option(self, key: str, default: Any = None) -> Any:
        ...

    async def save_upload(self, filename: str, content: bytes) -> UploadedFile:
        ...

    async def rest_request(
        self,
        method: str,
        route: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> RestResponse:
        ...
