"""``lockforge env`` — print the host environment descriptor as JSON.

The output can be edited and passed back with ``lockforge resolve
--environment`` to plan for another target.
"""

from __future__ import annotations

import typer

from lockforge.core.environment import detect_environment, dump_environment


def env_cmd() -> None:
    """Print the detected marker values, Python version and wheel tags."""
    typer.echo(dump_environment(detect_environment()))
