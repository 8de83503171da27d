"""SchemaNode and the input/output validator.

A :class:`SchemaNode` is a small, recursive description of a JSON value.
It renders to standard JSON Schema (draft 7) so that validation can be
delegated to :mod:`jsonschema` and the same document can be published as
an MCP ``inputSchema``.

Validation is open and non-coercing:

- undeclared object properties pass through untouched;
- values are never converted (``"5"`` is not an integer, ``True`` is not
  an integer); casting is left to each executor.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from jsonschema import Draft7Validator
from pydantic import BaseModel, Field


class SchemaKind(str, Enum):
    """JSON value kinds a :class:`SchemaNode` can describe."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"


class SchemaNode(BaseModel):
    """Recursive descriptor of an accepted or produced JSON value."""

    model_config = {"frozen": True}

    kind: SchemaKind
    properties: dict[str, SchemaNode] = Field(default_factory=dict)
    items: SchemaNode | None = None
    required: list[str] = Field(default_factory=list)
    enum: list[Any] | None = None
    description: str = ""

    def to_json_schema(self) -> dict[str, Any]:
        """Render this node as a JSON Schema document."""
        schema: dict[str, Any] = {"type": self.kind.value}
        if self.description:
            schema["description"] = self.description
        if self.enum is not None:
            schema["enum"] = list(self.enum)
        if self.kind == SchemaKind.OBJECT:
            schema["properties"] = {
                name: node.to_json_schema() for name, node in self.properties.items()
            }
            if self.required:
                schema["required"] = list(self.required)
        elif self.kind == SchemaKind.ARRAY and self.items is not None:
            schema["items"] = self.items.to_json_schema()
        return schema

    @classmethod
    def from_json_schema(cls, schema: dict[str, Any]) -> SchemaNode:
        """Parse a JSON Schema dict (the subset this model covers)."""
        kind = SchemaKind(schema.get("type", "object"))
        properties = {
            name: cls.from_json_schema(sub)
            for name, sub in (schema.get("properties") or {}).items()
        }
        items = schema.get("items")
        return cls(
            kind=kind,
            properties=properties,
            items=cls.from_json_schema(items) if isinstance(items, dict) else None,
            required=list(schema.get("required", [])),
            enum=schema.get("enum"),
            description=schema.get("description", ""),
        )


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def obj(
    properties: dict[str, SchemaNode] | None = None,
    *,
    required: list[str] | None = None,
    description: str = "",
) -> SchemaNode:
    return SchemaNode(
        kind=SchemaKind.OBJECT,
        properties=properties or {},
        required=required or [],
        description=description,
    )


def arr(items: SchemaNode | None = None, *, description: str = "") -> SchemaNode:
    return SchemaNode(kind=SchemaKind.ARRAY, items=items, description=description)


def string(description: str = "", *, enum: list[str] | None = None) -> SchemaNode:
    return SchemaNode(kind=SchemaKind.STRING, description=description, enum=enum)


def integer(description: str = "") -> SchemaNode:
    return SchemaNode(kind=SchemaKind.INTEGER, description=description)


def boolean(description: str = "") -> SchemaNode:
    return SchemaNode(kind=SchemaKind.BOOLEAN, description=description)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class FieldError(BaseModel):
    """A single validation failure at a dotted field path."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"


class ValidationResult(BaseModel):
    """Outcome of :func:`validate`; valid when there are no errors."""

    errors: list[FieldError] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def message(self) -> str:
        """Join all errors into one human-readable string."""
        return "; ".join(str(e) for e in self.errors)


def validate(value: Any, schema: SchemaNode) -> ValidationResult:
    """Validate *value* against *schema* without coercing it.

    Never raises for bad input. Errors are ordered by path so the joined
    message is deterministic.
    """
    validator = Draft7Validator(schema.to_json_schema())
    errors = [
        FieldError(path=_format_path(error.absolute_path), reason=error.message)
        for error in validator.iter_errors(value)
    ]
    errors.sort(key=lambda e: (e.path, e.reason))
    return ValidationResult(errors=errors)


def _format_path(path: Any) -> str:
    parts = [str(p) for p in path]
    return ".".join(parts) if parts else "(root)"
