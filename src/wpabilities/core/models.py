"""Data models for abilities, execution results and response envelopes."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Callable, Union

from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator

from wpabilities.core.errors import InvalidAbilityNameError
from wpabilities.core.permissions import CallerContext, PermissionCheck
from wpabilities.core.schema import SchemaNode, obj

_SEGMENT = r"[a-z0-9]+(?:-[a-z0-9]+)*"
ABILITY_NAME_RE = re.compile(rf"^{_SEGMENT}/{_SEGMENT}$")


class ErrorCode(str, Enum):
    """Machine-readable failure codes carried on failure envelopes."""

    INVALID_INPUT = "invalid_input"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    STORE_ERROR = "store_error"
    UNSUPPORTED = "unsupported"
    INTERNAL_ERROR = "internal_error"
    ABILITY_NOT_FOUND = "ability_not_found"
    TIMEOUT = "timeout"


class Visibility(str, Enum):
    """Whether an ability is offered to external tool callers."""

    PUBLIC = "public"
    INTERNAL = "internal"


class InvocationState(str, Enum):
    """States an invocation passes through; the last one is terminal."""

    RECEIVED = "received"
    VALIDATING = "validating"
    AUTHORIZING = "authorizing"
    EXECUTING = "executing"
    COMPLETED = "completed"
    REJECTED_INVALID_INPUT = "rejected_invalid_input"
    REJECTED_UNAUTHORIZED = "rejected_unauthorized"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


# ---------------------------------------------------------------------------
# Execution results
# ---------------------------------------------------------------------------


RESERVED_ENVELOPE_KEYS = frozenset({"success", "data", "error", "code", "state"})


class Ok(BaseModel):
    """Successful execution: a payload plus optional top-level fields."""

    data: Any = None
    extra: dict[str, Any] = Field(default_factory=dict)

    @field_validator("extra")
    @classmethod
    def _no_reserved_keys(cls, value: dict[str, Any]) -> dict[str, Any]:
        clash = sorted(RESERVED_ENVELOPE_KEYS.intersection(value))
        if clash:
            msg = f"Ok extras must not use reserved envelope keys: {', '.join(clash)}"
            raise ValueError(msg)
        return value


class Err(BaseModel):
    """Domain failure, e.g. "Page not found". A normal outcome, not a fault."""

    message: str
    code: ErrorCode | None = None


ExecutionResult = Union[Ok, Err]


def ok(data: Any = None, **extra: Any) -> Ok:
    return Ok(data=data, extra=extra)


def err(message: str, code: ErrorCode | None = None) -> Err:
    return Err(message=message, code=code)


Executor = Callable[[dict[str, Any], CallerContext], Any]


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


class AbilityCategory(BaseModel):
    """Grouping tag for discovery; not used for access control."""

    model_config = {"frozen": True}

    name: str
    label: str = ""
    description: str = ""


class AbilityDefinition(BaseModel):
    """The unit of registration: name, schemas, permission and executor.

    The executor receives the validated input dict and the caller context,
    and returns an :class:`Ok` / :class:`Err` (or an awaitable of one).
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    name: str
    label: str
    description: str = ""
    category: str
    input_schema: SchemaNode = Field(default_factory=obj)
    output_schema: SchemaNode = Field(default_factory=obj)
    permission: PermissionCheck
    executor: Executor
    visibility: Visibility = Visibility.PUBLIC
    annotations: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not ABILITY_NAME_RE.match(value):
            raise InvalidAbilityNameError(value)
        return value

    @property
    def provider(self) -> str:
        return self.name.split("/", 1)[0]

    @property
    def is_public(self) -> bool:
        return self.visibility == Visibility.PUBLIC

    def describe(self) -> dict[str, Any]:
        """Serializable summary (everything except the executor)."""
        return {
            "name": self.name,
            "label": self.label,
            "description": self.description,
            "category": self.category,
            "visibility": self.visibility.value,
            "permission": self.permission.describe(),
            "input_schema": self.input_schema.to_json_schema(),
            "output_schema": self.output_schema.to_json_schema(),
            "annotations": dict(self.annotations),
        }


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class InvocationEnvelope(BaseModel):
    """Uniform response of every invocation.

    Ability-specific top-level fields (``page_id``, ``total``, ...) are
    stored as pydantic extras.
    """

    model_config = {"extra": "allow"}

    success: bool
    data: Any = None
    error: str | None = None
    code: str | None = None

    _state: InvocationState = PrivateAttr(default=InvocationState.RECEIVED)

    @model_validator(mode="after")
    def _check_invariants(self) -> InvocationEnvelope:
        if self.success and self.error is not None:
            msg = "successful envelope must not carry an error"
            raise ValueError(msg)
        if not self.success and self.data is not None:
            msg = "failure envelope must not carry data"
            raise ValueError(msg)
        return self

    @property
    def state(self) -> InvocationState:
        return self._state

    @property
    def extra_fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    @classmethod
    def succeeded(
        cls,
        data: Any = None,
        *,
        state: InvocationState = InvocationState.COMPLETED,
        **extra: Any,
    ) -> InvocationEnvelope:
        envelope = cls(success=True, data=data, **extra)
        envelope._state = state
        return envelope

    @classmethod
    def failed(
        cls,
        error: str,
        code: ErrorCode | str | None = None,
        *,
        state: InvocationState = InvocationState.FAILED,
    ) -> InvocationEnvelope:
        code_value = code.value if isinstance(code, ErrorCode) else code
        envelope = cls(success=False, error=error, code=code_value)
        envelope._state = state
        return envelope

    def to_dict(self) -> dict[str, Any]:
        """JSON shape: ``success`` always, other keys only when set."""
        out: dict[str, Any] = {"success": self.success}
        if self.success:
            if self.data is not None:
                out["data"] = self.data
        else:
            out["error"] = self.error or "Unknown error"
            if self.code:
                out["code"] = self.code
        out.update(self.extra_fields)
        return out
