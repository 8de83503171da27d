"""User account abilities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from wpabilities.abilities._helpers import (
    READ_ONLY,
    WRITE,
    define,
    format_user,
    object_result,
    pagination,
    pagination_properties,
    response_schema,
    store_errors,
)
from wpabilities.core.models import ErrorCode, err, ok
from wpabilities.core.permissions import RequiresAuthentication, RequiresCapability
from wpabilities.core.schema import arr, integer, obj, string
from wpabilities.utils.text import absint, sanitize_email, sanitize_text, sanitize_user

if TYPE_CHECKING:
    from wpabilities.core.models import AbilityDefinition
    from wpabilities.core.permissions import CallerContext
    from wpabilities.store.base import ContentStore

USER_NOT_FOUND = "User not found"


def _profile_fields(args: dict[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if "email" in args:
        fields["email"] = sanitize_email(args["email"])
    for key in ("first_name", "last_name", "display_name", "password"):
        if key in args:
            fields[key] = sanitize_text(args[key])
    return fields


def build(store: ContentStore) -> list[AbilityDefinition]:
    @store_errors
    async def list_users(args: dict[str, Any], context: CallerContext) -> Any:
        per_page, page = pagination(args)
        result = await store.query_users(
            role=sanitize_text(args["role"]) if "role" in args else None,
            search=f"*{sanitize_text(args['search'])}*" if "search" in args else None,
            limit=per_page,
            offset=max(page - 1, 0) * per_page,
        )
        return ok([format_user(u) for u in result.items], total=result.total)

    @store_errors
    async def get_user(args: dict[str, Any], context: CallerContext) -> Any:
        user = await store.get_user(absint(args["user_id"]))
        if user is None:
            return err(USER_NOT_FOUND, ErrorCode.NOT_FOUND)
        return ok(format_user(user))

    @store_errors
    async def get_current_user(args: dict[str, Any], context: CallerContext) -> Any:
        if not context.user_id:
            return err("No user authenticated", ErrorCode.UNAUTHORIZED)
        user = await store.get_user(context.user_id)
        if user is None:
            return err(USER_NOT_FOUND, ErrorCode.NOT_FOUND)
        return ok(format_user(user))

    @store_errors
    async def create_user(args: dict[str, Any], context: CallerContext) -> Any:
        fields = {
            "first_name": "",
            "last_name": "",
            "display_name": "",
            **_profile_fields(args),
            "username": sanitize_user(args["username"]),
        }
        if "role" in args:
            fields["role"] = sanitize_text(args["role"])
        user_id = await store.create_user(fields)

        user = await store.get_user(user_id)
        if user is None:
            return err(USER_NOT_FOUND, ErrorCode.NOT_FOUND)
        return ok(format_user(user), user_id=user_id)

    @store_errors
    async def edit_user(args: dict[str, Any], context: CallerContext) -> Any:
        user_id = absint(args["user_id"])
        if await store.get_user(user_id) is None:
            return err(USER_NOT_FOUND, ErrorCode.NOT_FOUND)

        await store.update_user(user_id, _profile_fields(args))
        if "role" in args:
            await store.set_user_role(user_id, sanitize_text(args["role"]))

        updated = await store.get_user(user_id)
        if updated is None:
            return err(USER_NOT_FOUND, ErrorCode.NOT_FOUND)
        return ok(format_user(updated))

    profile = {
        "email": string("User email address"),
        "first_name": string("First name"),
        "last_name": string("Last name"),
        "display_name": string("Display name"),
        "role": string("User role"),
    }

    return [
        define(
            "list-users",
            "List Users",
            "Get all users with filtering",
            permission=RequiresCapability(capability="list_users"),
            executor=list_users,
            input_schema=obj(
                {
                    "role": string("Filter by role"),
                    "search": string("Search by name/email"),
                    **pagination_properties(),
                }
            ),
            output_schema=response_schema(data=arr(), total=integer()),
            annotations=READ_ONLY,
        ),
        define(
            "get-user",
            "Get User",
            "Retrieve user by ID",
            permission=RequiresCapability(capability="list_users"),
            executor=get_user,
            input_schema=obj({"user_id": integer("User ID")}, required=["user_id"]),
            output_schema=object_result(),
            annotations=READ_ONLY,
        ),
        define(
            "get-current-user",
            "Get Current User",
            "Get the currently authenticated user",
            permission=RequiresAuthentication(),
            executor=get_current_user,
            output_schema=object_result(),
            annotations=READ_ONLY,
        ),
        define(
            "create-user",
            "Create User",
            "Create new user account",
            permission=RequiresCapability(capability="create_users"),
            executor=create_user,
            input_schema=obj(
                {
                    "username": string("User login name"),
                    "password": string("User password"),
                    **profile,
                },
                required=["username", "email", "password"],
            ),
            output_schema=response_schema(user_id=integer(), data=obj()),
            annotations=WRITE,
        ),
        define(
            "edit-user",
            "Edit User",
            "Modify existing user",
            permission=RequiresCapability(capability="edit_users"),
            executor=edit_user,
            input_schema=obj(
                {
                    "user_id": integer("User ID to update"),
                    "password": string("New password (optional)"),
                    **profile,
                },
                required=["user_id"],
            ),
            output_schema=object_result(),
            annotations=WRITE,
        ),
    ]
