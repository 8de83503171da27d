"""Stdio transport for :class:`MCPServer`.

Reads newline-delimited JSON requests and writes one JSON line per
response.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import IO, TYPE_CHECKING, Any

from wpabilities.protocols.errors import PARSE_ERROR
from wpabilities.protocols.mcp.models import JsonRpcError, JsonRpcResponse

if TYPE_CHECKING:
    from wpabilities.protocols.mcp.server import MCPServer

logger = logging.getLogger(__name__)


class StdioServer:
    """Serves an :class:`MCPServer` over a pair of text streams.

    Usage::

        await StdioServer(server).serve()

    Lines are read in a worker thread so a blocking ``stdin`` does not
    stall the event loop. Serving stops at end of input.
    """

    def __init__(
        self,
        server: MCPServer,
        *,
        stdin: IO[str] | None = None,
        stdout: IO[str] | None = None,
    ) -> None:
        self._server = server
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout

    async def serve(self) -> None:
        logger.info("MCP stdio server started")
        while True:
            line = await asyncio.to_thread(self._stdin.readline)
            if not line:
                break
            if not line.strip():
                continue
            response = await self.handle_line(line)
            if response is not None:
                self.send(response)
        logger.info("MCP stdio server stopped: end of input")

    async def handle_line(self, line: str) -> JsonRpcResponse | None:
        try:
            message: Any = json.loads(line)
        except json.JSONDecodeError as exc:
            logger.warning("Unparseable MCP message: %s", exc)
            return JsonRpcResponse(error=JsonRpcError(code=PARSE_ERROR, message="Parse error", data=str(exc)))
        if not isinstance(message, dict):
            message = {"invalid": message}
        return await self._server.handle_raw(message)

    def send(self, response: JsonRpcResponse) -> None:
        self._stdout.write(json.dumps(response.to_wire()) + "\n")
        self._stdout.flush()
