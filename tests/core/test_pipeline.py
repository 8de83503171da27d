"""Tests for InvocationPipeline: validation, authorization, execution, wrapping."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from wpabilities.core.models import AbilityDefinition, ErrorCode, InvocationState, Ok, err, ok
from wpabilities.core.permissions import AllowAll, CallerContext, PermissionCheck, RequiresCapability
from wpabilities.core.pipeline import InvocationPipeline
from wpabilities.core.registry import AbilityRegistry
from wpabilities.core.schema import SchemaNode, integer, obj, string


class CountingExecutor:
    """Stub executor that records its calls."""

    def __init__(self, result: Any = None) -> None:
        self.calls: list[tuple[dict[str, Any], CallerContext]] = []
        self.result = result if result is not None else ok({"echo": True})

    async def __call__(self, args: dict[str, Any], context: CallerContext) -> Any:
        self.calls.append((args, context))
        return self.result


def _pipeline(
    executor: Any,
    *,
    permission: PermissionCheck | None = None,
    input_schema: SchemaNode | None = None,
    output_schema: SchemaNode | None = None,
    default_timeout: float | None = None,
) -> InvocationPipeline:
    registry = AbilityRegistry()
    registry.register_category("test")
    registry.register(
        AbilityDefinition(
            name="test/run",
            label="Run",
            category="test",
            permission=permission or AllowAll(),
            executor=executor,
            input_schema=input_schema or obj(),
            output_schema=output_schema or obj(),
        )
    )
    return InvocationPipeline(registry, default_timeout=default_timeout)


USER = CallerContext(user_id=1, capabilities=frozenset({"edit_posts"}))


class TestLookup:
    async def test_unknown_ability(self) -> None:
        pipeline = _pipeline(CountingExecutor())
        envelope = await pipeline.invoke("test/missing", {})
        assert envelope.to_dict() == {
            "success": False,
            "error": "Ability not found: test/missing",
            "code": "ability_not_found",
        }


class TestValidation:
    async def test_missing_required_field_never_executes(self) -> None:
        executor = CountingExecutor()
        pipeline = _pipeline(executor, input_schema=obj({"title": string()}, required=["title"]))

        envelope = await pipeline.invoke("test/run", {}, USER)

        assert envelope.to_dict()["code"] == "invalid_input"
        assert not envelope.success
        assert envelope.state == InvocationState.REJECTED_INVALID_INPUT
        assert executor.calls == []

    async def test_wrong_type_never_executes(self) -> None:
        executor = CountingExecutor()
        pipeline = _pipeline(executor, input_schema=obj({"id": integer()}))

        envelope = await pipeline.invoke("test/run", {"id": "7"}, USER)

        assert envelope.code == ErrorCode.INVALID_INPUT.value
        assert "id" in (envelope.error or "")
        assert executor.calls == []

    async def test_none_arguments_treated_as_empty_object(self) -> None:
        executor = CountingExecutor()
        pipeline = _pipeline(executor)
        envelope = await pipeline.invoke("test/run", None, USER)
        assert envelope.success
        assert executor.calls[0][0] == {}

    async def test_validation_runs_before_authorization(self) -> None:
        executor = CountingExecutor()
        pipeline = _pipeline(
            executor,
            permission=RequiresCapability(capability="manage_options"),
            input_schema=obj({"id": integer()}, required=["id"]),
        )
        envelope = await pipeline.invoke("test/run", {}, CallerContext.anonymous())
        assert envelope.code == "invalid_input"


class TestAuthorization:
    @pytest.mark.parametrize(
        "context",
        [
            CallerContext.anonymous(),
            CallerContext(user_id=5),
            CallerContext(user_id=5, capabilities=frozenset({"read"})),
        ],
    )
    async def test_denied_never_executes(self, context: CallerContext) -> None:
        executor = CountingExecutor()
        pipeline = _pipeline(executor, permission=RequiresCapability(capability="edit_posts"))

        envelope = await pipeline.invoke("test/run", {}, context)

        assert envelope.to_dict()["code"] == "unauthorized"
        assert envelope.state == InvocationState.REJECTED_UNAUTHORIZED
        assert executor.calls == []

    async def test_context_passed_unchanged(self) -> None:
        executor = CountingExecutor()
        pipeline = _pipeline(executor, permission=RequiresCapability(capability="edit_posts"))
        await pipeline.invoke("test/run", {"x": 1}, USER)
        assert executor.calls == [({"x": 1}, USER)]


class TestExecution:
    async def test_success_with_extras(self) -> None:
        pipeline = _pipeline(CountingExecutor(ok({"id": 9}, post_id=9)))
        envelope = await pipeline.invoke("test/run", {}, USER)
        assert envelope.to_dict() == {"success": True, "data": {"id": 9}, "post_id": 9}
        assert envelope.state == InvocationState.COMPLETED

    async def test_domain_failure(self) -> None:
        pipeline = _pipeline(CountingExecutor(err("Post not found", ErrorCode.NOT_FOUND)))
        envelope = await pipeline.invoke("test/run", {}, USER)
        assert envelope.to_dict() == {"success": False, "error": "Post not found", "code": "not_found"}

    async def test_sync_executor(self) -> None:
        pipeline = _pipeline(lambda args, ctx: ok(message="sync"))
        envelope = await pipeline.invoke("test/run", {}, USER)
        assert envelope.to_dict() == {"success": True, "message": "sync"}

    async def test_raising_executor_becomes_internal_error(self) -> None:
        async def boom(args: dict[str, Any], ctx: CallerContext) -> Any:
            raise RuntimeError("secret stack detail")

        envelope = await _pipeline(boom).invoke("test/run", {}, USER)

        assert envelope.code == "internal_error"
        assert "secret" not in (envelope.error or "")
        assert envelope.state == InvocationState.FAILED

    async def test_non_result_return_becomes_internal_error(self) -> None:
        envelope = await _pipeline(lambda args, ctx: {"success": True}).invoke("test/run", {}, USER)
        assert envelope.code == "internal_error"

    async def test_reserved_extra_becomes_internal_error(self) -> None:
        pipeline = _pipeline(lambda args, ctx: ok({"a": 1}, error="oops"))
        envelope = await pipeline.invoke("test/run", {}, USER)
        assert envelope.to_dict() == {
            "success": False,
            "error": "Internal error while executing test/run",
            "code": "internal_error",
        }

    async def test_unbuildable_envelope_becomes_internal_error(self) -> None:
        result = Ok.model_construct(data={"a": 1}, extra={"error": "oops"})
        envelope = await _pipeline(CountingExecutor(result)).invoke("test/run", {}, USER)
        assert envelope.code == "internal_error"
        assert envelope.state == InvocationState.FAILED

    async def test_output_schema_mismatch_keeps_success(self) -> None:
        pipeline = _pipeline(
            CountingExecutor(ok({"id": 1}, undeclared="x", total="not-an-int")),
            output_schema=obj({"success": string(), "total": integer()}),
        )
        envelope = await pipeline.invoke("test/run", {}, USER)
        assert envelope.success
        assert envelope.to_dict()["undeclared"] == "x"

    async def test_read_is_idempotent(self) -> None:
        pipeline = _pipeline(CountingExecutor(ok([{"id": 1}], total=1)))
        first = await pipeline.invoke("test/run", {"page": 1}, USER)
        second = await pipeline.invoke("test/run", {"page": 1}, USER)
        assert first.to_dict() == second.to_dict()


class TestTimeoutAndCancellation:
    async def test_per_call_timeout(self) -> None:
        async def slow(args: dict[str, Any], ctx: CallerContext) -> Any:
            await asyncio.sleep(5)
            return ok()

        envelope = await _pipeline(slow).invoke("test/run", {}, USER, timeout=0.01)

        assert envelope.code == "timeout"
        assert envelope.state == InvocationState.TIMED_OUT

    async def test_default_timeout(self) -> None:
        async def slow(args: dict[str, Any], ctx: CallerContext) -> Any:
            await asyncio.sleep(5)
            return ok()

        pipeline = _pipeline(slow, default_timeout=0.01)
        assert pipeline.default_timeout == 0.01
        envelope = await pipeline.invoke("test/run", {}, USER)
        assert envelope.code == "timeout"

    async def test_cancellation_propagates(self) -> None:
        started = asyncio.Event()

        async def slow(args: dict[str, Any], ctx: CallerContext) -> Any:
            started.set()
            await asyncio.sleep(5)
            return ok()

        task = asyncio.create_task(_pipeline(slow).invoke("test/run", {}, USER))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


class TestInvokeMany:
    async def test_results_keep_call_order(self) -> None:
        async def echo(args: dict[str, Any], ctx: CallerContext) -> Any:
            await asyncio.sleep(args.get("delay", 0))
            return ok(args["n"])

        pipeline = _pipeline(echo)
        envelopes = await pipeline.invoke_many(
            [("test/run", {"n": 1, "delay": 0.02}), ("test/missing", None), ("test/run", {"n": 3})],
            USER,
        )
        assert [e.to_dict() for e in envelopes] == [
            {"success": True, "data": 1},
            {"success": False, "error": "Ability not found: test/missing", "code": "ability_not_found"},
            {"success": True, "data": 3},
        ]
