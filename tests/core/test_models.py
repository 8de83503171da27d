"""Tests for the InvocationEnvelope and execution result helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from wpabilities.core.models import (
    Err,
    ErrorCode,
    InvocationEnvelope,
    InvocationState,
    Ok,
    err,
    ok,
)


class TestResultHelpers:
    def test_ok_collects_extras(self) -> None:
        result = ok({"id": 1}, page_id=1, url="http://x")
        assert isinstance(result, Ok)
        assert result.data == {"id": 1}
        assert result.extra == {"page_id": 1, "url": "http://x"}

    def test_err(self) -> None:
        result = err("Page not found", ErrorCode.NOT_FOUND)
        assert isinstance(result, Err)
        assert result.code == ErrorCode.NOT_FOUND

    @pytest.mark.parametrize("key", ["error", "success", "code", "state"])
    def test_ok_rejects_reserved_extras(self, key: str) -> None:
        with pytest.raises(ValidationError, match="reserved envelope keys"):
            ok({"a": 1}, **{key: "oops"})


class TestInvocationEnvelope:
    def test_success_shape(self) -> None:
        envelope = InvocationEnvelope.succeeded({"id": 3}, page_id=3)
        assert envelope.to_dict() == {"success": True, "data": {"id": 3}, "page_id": 3}
        assert envelope.state == InvocationState.COMPLETED

    def test_success_without_data_omits_key(self) -> None:
        assert InvocationEnvelope.succeeded(message="hi").to_dict() == {"success": True, "message": "hi"}

    def test_failure_shape(self) -> None:
        envelope = InvocationEnvelope.failed("bad", ErrorCode.INVALID_INPUT)
        assert envelope.to_dict() == {"success": False, "error": "bad", "code": "invalid_input"}
        assert envelope.state == InvocationState.FAILED

    def test_failure_without_code(self) -> None:
        assert InvocationEnvelope.failed("bad").to_dict() == {"success": False, "error": "bad"}

    def test_success_cannot_carry_error(self) -> None:
        with pytest.raises(ValidationError):
            InvocationEnvelope(success=True, error="x")

    def test_failure_cannot_carry_data(self) -> None:
        with pytest.raises(ValidationError):
            InvocationEnvelope(success=False, error="x", data={"a": 1})

    def test_extra_fields(self) -> None:
        envelope = InvocationEnvelope.succeeded(None, total=4)
        assert envelope.extra_fields == {"total": 4}
