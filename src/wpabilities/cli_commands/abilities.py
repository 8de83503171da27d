"""``wpabilities abilities``: list and describe registered abilities."""

from __future__ import annotations

import sys

import click
from rich.markup import escape

from wpabilities.cli_commands._output import config_option, console, load_runtime, print_abilities_table, print_json
from wpabilities.core.models import Visibility


@click.group()
def abilities() -> None:
    """List and describe registered abilities."""


@abilities.command("list")
@click.option("--category", default=None, help="Only abilities in this category.")
@click.option(
    "--visibility",
    type=click.Choice([v.value for v in Visibility]),
    default=None,
    help="Only public or only internal abilities.",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format.",
)
@config_option
def list_abilities(category: str | None, visibility: str | None, fmt: str, config_path: str | None) -> None:
    """List registered abilities."""
    runtime = load_runtime(config_path)
    found = runtime.registry.list(
        category=category,
        visibility=Visibility(visibility) if visibility else None,
    )

    if fmt == "json":
        print_json([a.describe() for a in found])
        return

    if not found:
        console.print("[yellow]No abilities found.[/yellow]")
        return
    print_abilities_table(found)


@abilities.command("describe")
@click.argument("name")
@config_option
def describe(name: str, config_path: str | None) -> None:
    """Show NAME's metadata and JSON schemas."""
    runtime = load_runtime(config_path)
    ability = runtime.registry.get(name)
    if ability is None:
        console.print(f"[red]Ability not found:[/red] {escape(name)}")
        sys.exit(1)
    print_json(ability.describe())
