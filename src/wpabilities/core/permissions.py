"""Permission checks and the gate that evaluates them.

Every ability owns exactly one :class:`PermissionCheck`. Checks are
declarative so that abilities can be table-declared:

- ``RequiresCapability("edit_posts")``: caller must hold the capability
- ``RequiresAuthentication()``: any logged-in caller
- ``AllowAll()``: no authentication needed
- ``Custom(fn)``: escape hatch for one-off rules

The :class:`PermissionGate` fails closed: an unauthenticated caller is
denied unless the check explicitly opts out of authentication.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol, Union, runtime_checkable

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from wpabilities.core.models import AbilityDefinition

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "User must be authenticated"


class CallerContext(BaseModel):
    """Identity and authorization state of whoever invokes an ability.

    Supplied by the hosting platform's auth system and threaded unchanged
    into the permission check and the executor.
    """

    model_config = {"frozen": True}

    user_id: int | None = None
    roles: frozenset[str] = frozenset()
    capabilities: frozenset[str] = frozenset()
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def anonymous(cls) -> CallerContext:
        return cls()


class PermissionDecision(BaseModel):
    """Allow, or deny with a reason fit to show the caller."""

    allowed: bool
    reason: str = ""

    @classmethod
    def allow(cls) -> PermissionDecision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> PermissionDecision:
        return cls(allowed=False, reason=reason)


CustomOutcome = Union[bool, PermissionDecision]


@runtime_checkable
class CapabilityResolver(Protocol):
    """Answers "may this caller use this named capability?"."""

    async def user_can(self, context: CallerContext, capability: str) -> bool: ...


class ContextCapabilityResolver:
    """Resolver that only trusts capabilities granted on the context itself.

    Satisfies the :class:`CapabilityResolver` protocol.
    """

    async def user_can(self, context: CallerContext, capability: str) -> bool:
        return capability in context.capabilities


# ---------------------------------------------------------------------------
# Check variants
# ---------------------------------------------------------------------------


class PermissionCheck(BaseModel):
    """Base for all permission check variants."""

    model_config = {"frozen": True}

    @property
    def requires_authentication(self) -> bool:
        return True

    async def evaluate(
        self, context: CallerContext, resolver: CapabilityResolver
    ) -> PermissionDecision:
        raise NotImplementedError

    def describe(self) -> str:
        return type(self).__name__


class RequiresCapability(PermissionCheck):
    """Caller must hold *capability* according to the resolver."""

    capability: str

    async def evaluate(
        self, context: CallerContext, resolver: CapabilityResolver
    ) -> PermissionDecision:
        if await resolver.user_can(context, self.capability):
            return PermissionDecision.allow()
        return PermissionDecision.deny(f"User lacks required capability: {self.capability}")

    def describe(self) -> str:
        return f"capability:{self.capability}"


class RequiresAuthentication(PermissionCheck):
    """Any authenticated caller is allowed."""

    async def evaluate(
        self, context: CallerContext, resolver: CapabilityResolver
    ) -> PermissionDecision:
        return PermissionDecision.allow()

    def describe(self) -> str:
        return "authenticated"


class AllowAll(PermissionCheck):
    """Everyone is allowed, including anonymous callers."""

    @property
    def requires_authentication(self) -> bool:
        return False

    async def evaluate(
        self, context: CallerContext, resolver: CapabilityResolver
    ) -> PermissionDecision:
        return PermissionDecision.allow()

    def describe(self) -> str:
        return "public"


class Custom(PermissionCheck):
    """Arbitrary rule, e.g. "same user or an administrator".

    *fn* receives the caller context and the gate's resolver and returns a
    bool or a :class:`PermissionDecision`, directly or as an awaitable::

        async def self_or_admin(context, resolver):
            return context.user_id == 7 or await resolver.user_can(context, "manage_options")

        Custom(fn=self_or_admin)
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    fn: Callable[[CallerContext, CapabilityResolver], CustomOutcome | Awaitable[CustomOutcome]]
    requires_auth: bool = True
    denial_reason: str = "Permission denied"

    @property
    def requires_authentication(self) -> bool:
        return self.requires_auth

    async def evaluate(
        self, context: CallerContext, resolver: CapabilityResolver
    ) -> PermissionDecision:
        outcome = self.fn(context, resolver)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        if isinstance(outcome, PermissionDecision):
            return outcome
        if outcome:
            return PermissionDecision.allow()
        return PermissionDecision.deny(self.denial_reason)

    def describe(self) -> str:
        return "custom"


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------


class PermissionGate:
    """Evaluate an ability's permission check for a caller."""

    def __init__(self, resolver: CapabilityResolver | None = None) -> None:
        self._resolver = resolver or ContextCapabilityResolver()

    @property
    def resolver(self) -> CapabilityResolver:
        return self._resolver

    async def authorize(
        self, ability: AbilityDefinition, context: CallerContext
    ) -> PermissionDecision:
        """Return the decision for *context* invoking *ability*.

        Resolution order:
        1. Unauthenticated callers are denied unless the check opts out.
        2. The ability's own check decides.
        """
        check = ability.permission
        if check.requires_authentication and not context.is_authenticated:
            return PermissionDecision.deny(NOT_AUTHENTICATED)

        try:
            decision = await check.evaluate(context, self._resolver)
        except Exception:
            logger.exception("Permission check for %s raised; denying.", ability.name)
            return PermissionDecision.deny("Permission check failed")

        if not decision.allowed:
            logger.warning(
                "Denied %s for user %s: %s", ability.name, context.user_id, decision.reason
            )
        return decision
