"""MCP models: JSON-RPC 2.0 messages and tool definitions.

Implements the message format used by the Model Context Protocol for
tool discovery (``tools/list``) and execution (``tools/call``).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message. Without an ``id`` it is a notification."""

    jsonrpc: str = "2.0"
    method: str
    id: int | str | None = None
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_notification(self) -> bool:
        return self.id is None


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message."""

    jsonrpc: str = "2.0"
    id: int | str | None = None
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    def to_wire(self) -> dict[str, Any]:
        """Serialise with exactly one of ``result`` / ``error``."""
        message: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            message["error"] = self.error.model_dump(exclude_none=True)
        else:
            message["result"] = self.result if self.result is not None else {}
        return message


# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class MCPToolDef(BaseModel):
    """A tool definition as returned by ``tools/list``."""

    model_config = {"populate_by_name": True}

    name: str
    title: str = ""
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict, alias="inputSchema")
    output_schema: dict[str, Any] | None = Field(default=None, alias="outputSchema")
    annotations: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
