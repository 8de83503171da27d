"""wpabilities CLI entrypoint."""

from __future__ import annotations

import logging

import click

from wpabilities import __version__

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(level: str) -> None:
    """Send log records to stderr at *level*; stdout is reserved for output."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="wpabilities")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (overrides the config file).",
)
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    """wpabilities: CMS abilities as schema-validated MCP tools."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level
    if log_level:
        setup_logging(log_level)


# Register subcommands
from wpabilities.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
