"""Content store contract and the in-memory reference store."""

from wpabilities.store.base import (
    BlockType,
    ContentStore,
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
from wpabilities.store.memory import ROLE_CAPABILITIES, InMemoryContentStore

__all__ = [
    "ROLE_CAPABILITIES",
    "BlockType",
    "ContentStore",
    "InMemoryContentStore",
    "Pattern",
    "Plugin",
    "Post",
    "PostQuery",
    "QueryResult",
    "RestResponse",
    "StoreError",
    "Term",
    "Theme",
    "UnsupportedOperationError",
    "UploadedFile",
    "User",
]
