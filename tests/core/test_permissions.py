"""Tests for permission checks and the PermissionGate."""

from __future__ import annotations

from wpabilities.core.models import AbilityDefinition, ok
from wpabilities.core.permissions import (
    NOT_AUTHENTICATED,
    AllowAll,
    CallerContext,
    CapabilityResolver,
    ContextCapabilityResolver,
    Custom,
    PermissionCheck,
    PermissionDecision,
    PermissionGate,
    RequiresAuthentication,
    RequiresCapability,
)
from wpabilities.store.memory import InMemoryContentStore


def _ability(permission: PermissionCheck) -> AbilityDefinition:
    return AbilityDefinition(
        name="test/do-thing",
        label="Do Thing",
        category="test",
        permission=permission,
        executor=lambda args, ctx: ok(),
    )


class TestCallerContext:
    def test_anonymous(self) -> None:
        ctx = CallerContext.anonymous()
        assert not ctx.is_authenticated
        assert ctx.roles == frozenset()

    def test_authenticated(self) -> None:
        assert CallerContext(user_id=0).is_authenticated


class TestContextCapabilityResolver:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(ContextCapabilityResolver(), CapabilityResolver)

    async def test_checks_context_capabilities(self) -> None:
        resolver = ContextCapabilityResolver()
        ctx = CallerContext(user_id=1, capabilities=frozenset({"read"}))
        assert await resolver.user_can(ctx, "read")
        assert not await resolver.user_can(ctx, "edit_posts")


class TestPermissionGate:
    async def test_anonymous_denied_by_default(self) -> None:
        gate = PermissionGate()
        decision = await gate.authorize(_ability(RequiresAuthentication()), CallerContext.anonymous())
        assert not decision.allowed
        assert decision.reason == NOT_AUTHENTICATED

    async def test_allow_all_admits_anonymous(self) -> None:
        gate = PermissionGate()
        decision = await gate.authorize(_ability(AllowAll()), CallerContext.anonymous())
        assert decision.allowed

    async def test_requires_capability(self) -> None:
        gate = PermissionGate()
        ability = _ability(RequiresCapability(capability="edit_pages"))

        granted = CallerContext(user_id=2, capabilities=frozenset({"edit_pages"}))
        assert (await gate.authorize(ability, granted)).allowed

        denied = await gate.authorize(ability, CallerContext(user_id=2))
        assert not denied.allowed
        assert "edit_pages" in denied.reason

    async def test_custom_same_user_or_admin(self) -> None:
        check = Custom(fn=lambda ctx, resolver: ctx.user_id == 7 or "administrator" in ctx.roles)
        gate = PermissionGate()
        ability = _ability(check)

        assert (await gate.authorize(ability, CallerContext(user_id=7))).allowed
        assert (await gate.authorize(ability, CallerContext(user_id=3, roles=frozenset({"administrator"})))).allowed
        denied = await gate.authorize(ability, CallerContext(user_id=3))
        assert not denied.allowed
        assert denied.reason == "Permission denied"

    async def test_custom_may_return_decision(self) -> None:
        check = Custom(fn=lambda ctx, resolver: PermissionDecision.deny("Nope"))
        decision = await PermissionGate().authorize(_ability(check), CallerContext(user_id=1))
        assert decision.reason == "Nope"

    async def test_async_custom_consults_resolver(self, store: InMemoryContentStore) -> None:
        async def self_or_admin(ctx: CallerContext, resolver: CapabilityResolver) -> bool:
            return ctx.user_id == 7 or await resolver.user_can(ctx, "manage_options")

        gate = PermissionGate(store)
        ability = _ability(Custom(fn=self_or_admin))

        assert (await gate.authorize(ability, CallerContext(user_id=7))).allowed
        assert (await gate.authorize(ability, CallerContext(user_id=1))).allowed
        denied = await gate.authorize(ability, CallerContext(user_id=3))
        assert denied.reason == "Permission denied"

    async def test_async_custom_may_return_decision(self) -> None:
        async def never(ctx: CallerContext, resolver: CapabilityResolver) -> PermissionDecision:
            return PermissionDecision.deny("Closed for maintenance")

        decision = await PermissionGate().authorize(_ability(Custom(fn=never)), CallerContext(user_id=1))
        assert decision.reason == "Closed for maintenance"

    async def test_custom_can_opt_out_of_authentication(self) -> None:
        check = Custom(fn=lambda ctx, resolver: True, requires_auth=False)
        decision = await PermissionGate().authorize(_ability(check), CallerContext.anonymous())
        assert decision.allowed

    async def test_raising_check_fails_closed(self) -> None:
        def boom(ctx: CallerContext, resolver: CapabilityResolver) -> bool:
            raise RuntimeError("broken")

        decision = await PermissionGate().authorize(_ability(Custom(fn=boom)), CallerContext(user_id=1))
        assert not decision.allowed
        assert decision.reason == "Permission check failed"


class TestDescribe:
    def test_descriptions(self) -> None:
        assert RequiresCapability(capability="read").describe() == "capability:read"
        assert RequiresAuthentication().describe() == "authenticated"
        assert AllowAll().describe() == "public"
        assert Custom(fn=lambda ctx, resolver: True).describe() == "custom"
