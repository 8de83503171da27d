"""InvocationPipeline: lookup, validate, authorize, execute, wrap.

The pipeline owns a registry and a permission gate and turns every outcome,
good or bad, into an :class:`InvocationEnvelope`.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any

from wpabilities.core.errors import AbilityNotFoundError
from wpabilities.core.models import (
    Err,
    ErrorCode,
    InvocationEnvelope,
    InvocationState,
    Ok,
)
from wpabilities.core.permissions import CallerContext, PermissionGate
from wpabilities.core.schema import validate
from wpabilities.utils.telemetry import (
    ATTR_ABILITY_CATEGORY,
    ATTR_ABILITY_NAME,
    ATTR_AUTHENTICATED,
    ATTR_BATCH_SIZE,
    ATTR_ERROR_CODE,
    ATTR_STATE,
    ATTR_SUCCESS,
    ATTR_TIMEOUT,
    ATTR_USER_ID,
    get_tracer,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from wpabilities.core.models import AbilityDefinition
    from wpabilities.core.registry import AbilityRegistry

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class InvocationPipeline:
    """Runs abilities by name and always answers with an envelope.

    Usage::

        pipeline = InvocationPipeline(registry, PermissionGate(store))
        envelope = await pipeline.invoke("mcp-wp/get-page", {"page_id": 3}, context)
        envelope.to_dict()   # {"success": True, "data": {...}}

    Nothing an executor raises escapes :meth:`invoke`, except task
    cancellation which is propagated to the caller.
    """

    def __init__(
        self,
        registry: AbilityRegistry,
        gate: PermissionGate | None = None,
        *,
        default_timeout: float | None = None,
    ) -> None:
        self._registry = registry
        self._gate = gate or PermissionGate()
        self._default_timeout = default_timeout

    @property
    def registry(self) -> AbilityRegistry:
        return self._registry

    @property
    def gate(self) -> PermissionGate:
        return self._gate

    @property
    def default_timeout(self) -> float | None:
        return self._default_timeout

    async def invoke(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        context: CallerContext | None = None,
        *,
        timeout: float | None = None,
    ) -> InvocationEnvelope:
        """Invoke the ability *name* with *arguments* on behalf of *context*."""
        context = context or CallerContext.anonymous()
        with _tracer.start_as_current_span("ability.invoke") as span:
            span.set_attribute(ATTR_ABILITY_NAME, name)
            span.set_attribute(ATTR_AUTHENTICATED, context.is_authenticated)
            if context.user_id is not None:
                span.set_attribute(ATTR_USER_ID, context.user_id)

            envelope = await self._run(name, arguments, context, timeout, span)

            span.set_attribute(ATTR_STATE, envelope.state.value)
            span.set_attribute(ATTR_SUCCESS, envelope.success)
            if envelope.code:
                span.set_attribute(ATTR_ERROR_CODE, envelope.code)
            return envelope

    async def invoke_many(
        self,
        calls: Sequence[tuple[str, dict[str, Any] | None]],
        context: CallerContext | None = None,
        *,
        timeout: float | None = None,
    ) -> list[InvocationEnvelope]:
        """Invoke several abilities concurrently; results keep call order."""
        with _tracer.start_as_current_span("ability.invoke_many") as span:
            span.set_attribute(ATTR_BATCH_SIZE, len(calls))
            return list(
                await asyncio.gather(
                    *[
                        self.invoke(name, arguments, context, timeout=timeout)
                        for name, arguments in calls
                    ]
                )
            )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _run(
        self,
        name: str,
        arguments: dict[str, Any] | None,
        context: CallerContext,
        timeout: float | None,
        span: Any,
    ) -> InvocationEnvelope:
        try:
            ability = self._registry.lookup(name)
        except AbilityNotFoundError as exc:
            return InvocationEnvelope.failed(str(exc), ErrorCode.ABILITY_NOT_FOUND)
        span.set_attribute(ATTR_ABILITY_CATEGORY, ability.category)

        payload: Any = {} if arguments is None else arguments
        result = validate(payload, ability.input_schema)
        if not result.valid:
            logger.info("Rejected input for %s: %s", name, result.message())
            return InvocationEnvelope.failed(
                result.message(),
                ErrorCode.INVALID_INPUT,
                state=InvocationState.REJECTED_INVALID_INPUT,
            )

        decision = await self._gate.authorize(ability, context)
        if not decision.allowed:
            return InvocationEnvelope.failed(
                decision.reason,
                ErrorCode.UNAUTHORIZED,
                state=InvocationState.REJECTED_UNAUTHORIZED,
            )

        deadline = timeout if timeout is not None else self._default_timeout
        if deadline is not None:
            span.set_attribute(ATTR_TIMEOUT, deadline)

        try:
            outcome = await asyncio.wait_for(
                self._execute(ability, payload, context), timeout=deadline
            )
        except asyncio.TimeoutError:
            logger.warning("Ability %s timed out after %ss", name, deadline)
            return InvocationEnvelope.failed(
                f"Ability {name} timed out after {deadline}s",
                ErrorCode.TIMEOUT,
                state=InvocationState.TIMED_OUT,
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Executor for %s raised", name)
            return InvocationEnvelope.failed(
                f"Internal error while executing {name}", ErrorCode.INTERNAL_ERROR
            )

        try:
            envelope = self._wrap(name, outcome)
        except Exception:
            logger.exception("Result of %s cannot form an envelope", name)
            return InvocationEnvelope.failed(
                f"Internal error while executing {name}", ErrorCode.INTERNAL_ERROR
            )
        if envelope.success:
            self._check_output(ability, envelope)
        return envelope

    @staticmethod
    async def _execute(
        ability: AbilityDefinition, payload: Any, context: CallerContext
    ) -> Any:
        outcome = ability.executor(payload, context)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return outcome

    @staticmethod
    def _wrap(name: str, outcome: Any) -> InvocationEnvelope:
        if isinstance(outcome, Ok):
            return InvocationEnvelope.succeeded(outcome.data, **outcome.extra)
        if isinstance(outcome, Err):
            return InvocationEnvelope.failed(outcome.message, outcome.code)
        logger.error(
            "Executor for %s returned %s instead of Ok/Err", name, type(outcome).__name__
        )
        return InvocationEnvelope.failed(
            f"Internal error while executing {name}", ErrorCode.INTERNAL_ERROR
        )

    @staticmethod
    def _check_output(ability: AbilityDefinition, envelope: InvocationEnvelope) -> None:
        result = validate(envelope.to_dict(), ability.output_schema)
        if not result.valid:
            logger.warning(
                "Output of %s does not match its schema: %s", ability.name, result.message()
            )
