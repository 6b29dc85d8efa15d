"""Main Typer application — imports and registers all CLI commands.

Entry point: ``lockforge`` (configured via pyproject.toml project.scripts).

Commands: validate, resolve, find, env.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from lockforge.cli.commands.env_cmd import env_cmd
from lockforge.cli.commands.find_cmd import find_cmd
from lockforge.cli.commands.resolve import resolve_cmd
from lockforge.cli.commands.validate import validate_cmd
from lockforge.config import config

app = typer.Typer(
    name="lockforge",
    help="Lockforge: reproducible installs from pylock.toml lock files.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="validate", help="Validate a lock file and summarise it.")(validate_cmd)
app.command(name="resolve", help="Compute and verify the install plan for an environment.")(
    resolve_cmd
)
app.command(name="find", help="List lock files in a directory.")(find_cmd)
app.command(name="env", help="Print the host environment descriptor as JSON.")(env_cmd)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level. Defaults to LOCKFORGE_LOG_LEVEL.",
    ),
) -> None:
    """Configure logging for every command."""
    configure_logging(log_level or config.log_level)


def configure_logging(level: str) -> None:
    """Send lockforge log records to stderr through Rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
