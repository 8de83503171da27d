"""Protocol layer: MCP JSON-RPC surface over the ability pipeline."""

from wpabilities.protocols.errors import (
    InvalidParamsError,
    MethodNotFoundError,
    ProtocolError,
    ToolNotExposedError,
)

__all__ = [
    "InvalidParamsError",
    "MethodNotFoundError",
    "ProtocolError",
    "ToolNotExposedError",
]
