"""``lockforge find [DIR]`` — list recognised lock files."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from lockforge.cli.render import PlanRenderer
from lockforge.core.errors import LockError
from lockforge.core.lockfile import DEFAULT_LOCK_FILE_NAME, find_lock_files, lock_file_identifier

console = Console()


def find_cmd(
    directory: Path = typer.Argument(Path("."), help="Directory to search."),
) -> None:
    """List ``pylock.toml`` and ``pylock.<identifier>.toml`` files in DIR."""
    try:
        paths = find_lock_files(directory)
    except LockError as exc:
        PlanRenderer(console=console).print_error(exc)
        raise typer.Exit(code=1) from exc

    if not paths:
        console.print(f"[dim]No lock files in {directory}.[/dim]")
        return

    table = Table(title="Lock Files")
    table.add_column("File", style="cyan")
    table.add_column("Identifier")
    for lock_path in paths:
        identifier = lock_file_identifier(lock_path.name)
        if lock_path.name == DEFAULT_LOCK_FILE_NAME:
            label = "[dim](default)[/dim]"
        else:
            label = identifier or ""
        table.add_row(lock_path.name, label)
    console.print(table)
