"""Shared CLI output formatters and runtime loading."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from wpabilities.config.runtime import AbilityRuntime
    from wpabilities.core.models import AbilityDefinition

console = Console()

config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Server config YAML file.",
)


def load_runtime(config_path: str | None) -> AbilityRuntime:
    """Build the runtime from *config_path* (or defaults); exit 1 on a bad config."""
    from wpabilities.cli import setup_logging
    from wpabilities.config import AbilityRuntime, ConfigLoader, ConfigValidationError, ServerConfig

    try:
        config = ConfigLoader(Path(config_path)).load() if config_path else ServerConfig()
    except ConfigValidationError as exc:
        console.print(f"[red]Config error:[/red] {escape(str(exc))}")
        sys.exit(1)

    ctx = click.get_current_context(silent=True)
    root_obj = ctx.find_root().obj if ctx is not None else None
    if not (root_obj or {}).get("log_level"):
        setup_logging(config.log_level)
    return AbilityRuntime(config)


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))


def print_abilities_table(abilities: list[AbilityDefinition]) -> None:
    """Pretty-print ability definitions as a table."""
    table = Table(title="Registered Abilities")
    table.add_column("Name", style="cyan")
    table.add_column("Permission")
    table.add_column("Visibility")
    table.add_column("Description")

    for ability in abilities:
        table.add_row(
            ability.name,
            ability.permission.describe(),
            ability.visibility.value,
            _truncate(ability.description),
        )

    console.print(table)


def _truncate(text: str, max_len: int = 60) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
