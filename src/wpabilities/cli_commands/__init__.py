"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from wpabilities.cli_commands.abilities import abilities
    from wpabilities.cli_commands.invoke import invoke
    from wpabilities.cli_commands.serve import serve

    cli.add_command(abilities)
    cli.add_command(invoke)
    cli.add_command(serve)
