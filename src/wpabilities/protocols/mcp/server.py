"""MCPServer: answers MCP JSON-RPC requests from an ability pipeline.

Exposed abilities are published as tools. Tool names are ability names
with ``/`` replaced by ``-`` (``mcp-wp/get-page`` becomes
``mcp-wp-get-page``) since MCP tool names may not contain slashes.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from wpabilities.core.permissions import CallerContext
from wpabilities.protocols.errors import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    InvalidParamsError,
    MethodNotFoundError,
    ProtocolError,
    ToolNotExposedError,
)
from wpabilities.protocols.mcp.models import JsonRpcError, JsonRpcRequest, JsonRpcResponse, MCPToolDef
from wpabilities.utils.telemetry import ATTR_ABILITY_NAME, ATTR_MCP_METHOD, get_tracer

if TYPE_CHECKING:
    from collections.abc import Iterable

    from wpabilities.core.models import AbilityDefinition
    from wpabilities.core.pipeline import InvocationPipeline

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

PROTOCOL_VERSION = "2025-06-18"


def tool_name(ability_name: str) -> str:
    return ability_name.replace("/", "-")


class MCPServer:
    """Dispatches JSON-RPC requests to ``initialize``, ``tools/*`` and ``ping``.

    Usage::

        server = MCPServer(pipeline, context=CallerContext(user_id=1, roles=frozenset({"administrator"})))
        response = await server.handle(JsonRpcRequest(id=1, method="tools/list"))

    *exposed* lists the ability names to publish; ``None`` publishes every
    public ability. Every ``tools/call`` runs on behalf of *context*.
    """

    def __init__(
        self,
        pipeline: InvocationPipeline,
        *,
        name: str = "wpabilities",
        version: str = "0.1.0",
        exposed: Iterable[str] | None = None,
        context: CallerContext | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._name = name
        self._version = version
        self._exposed = list(exposed) if exposed is not None else None
        self._context = context or CallerContext.anonymous()

    @property
    def context(self) -> CallerContext:
        return self._context

    def exposed_abilities(self) -> list[AbilityDefinition]:
        """Abilities currently published as tools, in registration order."""
        registry = self._pipeline.registry
        if self._exposed is None:
            return [a for a in registry if a.is_public]
        abilities = []
        for name in self._exposed:
            ability = registry.get(name)
            if ability is None:
                logger.warning("Exposed ability %s is not registered", name)
                continue
            abilities.append(ability)
        return abilities

    def tool_definitions(self) -> list[MCPToolDef]:
        return [
            MCPToolDef(
                name=tool_name(a.name),
                title=a.label,
                description=a.description,
                input_schema=a.input_schema.to_json_schema(),
                output_schema=a.output_schema.to_json_schema(),
                annotations={"title": a.label, **a.annotations},
            )
            for a in self.exposed_abilities()
        ]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def handle_raw(self, message: dict[str, Any]) -> JsonRpcResponse | None:
        """Validate a decoded JSON message and handle it."""
        try:
            request = JsonRpcRequest.model_validate(message)
        except ValidationError as exc:
            request_id = message.get("id") if isinstance(message, dict) else None
            return JsonRpcResponse(
                id=request_id,
                error=JsonRpcError(code=INVALID_REQUEST, message="Invalid Request", data=str(exc)),
            )
        return await self.handle(request)

    async def handle(self, request: JsonRpcRequest) -> JsonRpcResponse | None:
        """Answer *request*. Notifications produce no response."""
        with _tracer.start_as_current_span("mcp.request") as span:
            span.set_attribute(ATTR_MCP_METHOD, request.method)
            try:
                result = await self._dispatch(request)
            except ProtocolError as exc:
                logger.info("MCP %s failed: %s", request.method, exc)
                error = JsonRpcError(code=exc.code, message=str(exc))
                return None if request.is_notification else JsonRpcResponse(id=request.id, error=error)
            except Exception:
                logger.exception("MCP %s raised", request.method)
                error = JsonRpcError(code=INTERNAL_ERROR, message="Internal error")
                return None if request.is_notification else JsonRpcResponse(id=request.id, error=error)

        if request.is_notification:
            return None
        return JsonRpcResponse(id=request.id, result=result)

    async def _dispatch(self, request: JsonRpcRequest) -> dict[str, Any]:
        method = request.method
        if method == "initialize":
            return self._initialize(request.params)
        if method == "ping":
            return {}
        if method == "tools/list":
            return {"tools": [tool.to_wire() for tool in self.tool_definitions()]}
        if method == "tools/call":
            return await self._call_tool(request.params)
        if method.startswith("notifications/"):
            logger.debug("Notification %s", method)
            return {}
        raise MethodNotFoundError(method)

    def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        client = params.get("clientInfo") or {}
        logger.info("MCP client connected: %s %s", client.get("name", "?"), client.get("version", ""))
        return {
            "protocolVersion": params.get("protocolVersion") or PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": self._name, "version": self._version},
        }

    async def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            msg = "tools/call requires a tool name"
            raise InvalidParamsError(msg)
        arguments = params.get("arguments")
        if arguments is not None and not isinstance(arguments, dict):
            msg = "tools/call arguments must be an object"
            raise InvalidParamsError(msg)

        ability = next((a for a in self.exposed_abilities() if tool_name(a.name) == name), None)
        if ability is None:
            raise ToolNotExposedError(name)

        with _tracer.start_as_current_span("mcp.tools.call") as span:
            span.set_attribute(ATTR_ABILITY_NAME, ability.name)
            envelope = await self._pipeline.invoke(ability.name, arguments, self._context)

        payload = envelope.to_dict()
        return {
            "content": [{"type": "text", "text": json.dumps(payload)}],
            "structuredContent": payload,
            "isError": not envelope.success,
        }
