"""``wpabilities serve``: MCP JSON-RPC over stdio."""

from __future__ import annotations

import asyncio

import click

from wpabilities.cli_commands._output import config_option, load_runtime


@click.command()
@config_option
def serve(config_path: str | None) -> None:
    """Serve the exposed abilities as MCP tools on stdin/stdout."""
    from wpabilities.protocols.mcp.transport import StdioServer

    runtime = load_runtime(config_path)
    runtime.setup_telemetry()
    asyncio.run(StdioServer(runtime.mcp_server()).serve())
