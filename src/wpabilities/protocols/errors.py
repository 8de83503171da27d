"""Shared error types for the protocol layer.

Each error carries the JSON-RPC 2.0 error code it is reported with.
"""

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ProtocolError(Exception):
    """Base error for all protocol-layer failures."""

    code = INTERNAL_ERROR


class MethodNotFoundError(ProtocolError):
    """The request named a method the server does not implement."""

    code = METHOD_NOT_FOUND

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Method not found: {method}")


class InvalidParamsError(ProtocolError):
    """The request parameters are malformed."""

    code = INVALID_PARAMS


class ToolNotExposedError(InvalidParamsError):
    """Requested tool is unknown or not exposed by this server."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")
