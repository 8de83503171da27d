"""MCP protocol: Model Context Protocol server."""

from wpabilities.protocols.mcp.models import JsonRpcError, JsonRpcRequest, JsonRpcResponse, MCPToolDef
from wpabilities.protocols.mcp.server import MCPServer, tool_name
from wpabilities.protocols.mcp.transport import StdioServer

__all__ = [
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MCPServer",
    "MCPToolDef",
    "StdioServer",
    "tool_name",
]
