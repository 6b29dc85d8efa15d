"""``lockforge validate PATH`` — parse a lock file and summarise it."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from lockforge.cli.render import PlanRenderer
from lockforge.core.errors import LockError
from lockforge.core.hasher import document_fingerprint
from lockforge.core.lockfile import read_lock_text
from lockforge.core.parser import load_payload, parse_payload

console = Console()


def validate_cmd(
    path: Path = typer.Argument(..., help="Lock file to validate."),
) -> None:
    """Validate a lock file's name, format version and structure.

    Prints the locking mode, lock names or requires-python, the package
    count and a fingerprint of the document content that ignores TOML
    formatting.
    """
    renderer = PlanRenderer(console=console)
    try:
        payload = load_payload(read_lock_text(path))
        document = parse_payload(payload)
        fingerprint = document_fingerprint(payload)
    except LockError as exc:
        renderer.print_error(exc)
        raise typer.Exit(code=1) from exc

    console.print(renderer.render_document(path, document, fingerprint))
