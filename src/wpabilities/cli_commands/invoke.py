"""``wpabilities invoke``: run one ability and print its envelope."""

from __future__ import annotations

import asyncio
import json
import sys

import click
from rich.markup import escape

from wpabilities.cli_commands._output import config_option, console, load_runtime, print_json
from wpabilities.core.permissions import CallerContext


@click.command()
@click.argument("name")
@click.option("--input", "input_json", default=None, help="Arguments as a JSON object.")
@click.option("--user-id", type=int, default=None, help="Caller user ID.")
@click.option("--role", "roles", multiple=True, help="Caller role (repeatable).")
@click.option("--capability", "capabilities", multiple=True, help="Extra caller capability (repeatable).")
@click.option("--timeout", type=float, default=None, help="Deadline in seconds.")
@config_option
def invoke(
    name: str,
    input_json: str | None,
    user_id: int | None,
    roles: tuple[str, ...],
    capabilities: tuple[str, ...],
    timeout: float | None,
    config_path: str | None,
) -> None:
    """Invoke ability NAME and print the response envelope.

    Exits with status 1 when the envelope reports ``success: false``.
    Without caller options the config's ``caller`` is used.
    """
    try:
        arguments = json.loads(input_json) if input_json else None
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid --input JSON:[/red] {escape(str(exc))}")
        sys.exit(1)

    runtime = load_runtime(config_path)
    if user_id is not None or roles or capabilities:
        context = CallerContext(
            user_id=user_id,
            roles=frozenset(roles),
            capabilities=frozenset(capabilities),
        )
    else:
        context = runtime.config.caller.to_context()

    envelope = asyncio.run(runtime.pipeline.invoke(name, arguments, context, timeout=timeout))
    print_json(envelope.to_dict())
    if not envelope.success:
        sys.exit(1)
