"""``lockforge resolve PATH`` — compute and verify an install plan.

Selects the artifacts the lock file locks for the target environment (the
running interpreter unless ``--environment`` names a JSON descriptor),
verifies each one against its recorded hash and prints the plan.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from lockforge.cli.render import PlanRenderer
from lockforge.config import config
from lockforge.core.environment import detect_environment, load_environment
from lockforge.core.errors import LockError
from lockforge.core.installer import Installer

console = Console()


def resolve_cmd(
    path: Path = typer.Argument(..., help="Lock file to resolve."),
    environment_file: Path = typer.Option(
        None,
        "--environment",
        "-e",
        help="JSON environment descriptor (see `lockforge env`). Defaults to this interpreter.",
    ),
    build_environment_file: Path = typer.Option(
        None,
        "--build-environment",
        help="JSON descriptor of the environment builds run in. Defaults to the target.",
    ),
    wheelhouse: Path = typer.Option(
        None,
        "--wheelhouse",
        "-w",
        help="Directory holding the locked files.",
    ),
    cache: Path = typer.Option(
        None,
        "--cache",
        help="Artifact cache directory.",
    ),
    allow_adhoc_builds: bool = typer.Option(
        False,
        "--allow-adhoc-builds",
        help="Build source artifacts lacking locked build-requires (not reproducible).",
    ),
    only_binary: bool = typer.Option(
        False,
        "--only-binary",
        help="Never select sdists or VCS checkouts under package locking.",
    ),
    verify: bool = typer.Option(
        config.verify_hashes,
        "--verify/--no-verify",
        help="Verify artifact hashes. Defaults to LOCKFORGE_VERIFY_HASHES.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the plan as JSON instead of a table.",
    ),
) -> None:
    """Resolve a lock file into the exact artifacts to install."""
    renderer = PlanRenderer(console=console)

    updates: dict[str, object] = {
        "allow_adhoc_builds": allow_adhoc_builds or config.allow_adhoc_builds,
        "only_binary": only_binary or config.only_binary,
    }
    if wheelhouse is not None:
        updates["wheelhouse_path"] = wheelhouse
    if cache is not None:
        updates["artifact_cache_path"] = cache
    settings = config.model_copy(update=updates)

    try:
        installer = Installer(settings)
        document = installer.load(path)
        if environment_file is not None:
            environment = load_environment(environment_file)
        else:
            environment = detect_environment()
        build_environment = (
            load_environment(build_environment_file) if build_environment_file is not None else None
        )
        plan = installer.resolve(
            document,
            environment,
            verify=verify,
            build_environment=build_environment,
        )
    except LockError as exc:
        renderer.print_error(exc)
        raise typer.Exit(code=1) from exc

    if as_json:
        typer.echo(plan.model_dump_json(indent=2, by_alias=True))
    else:
        renderer.print_plan(plan, verified=verify)
