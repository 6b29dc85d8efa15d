"""Rich terminal rendering for lock documents, install plans and errors.

Color scheme
------------
- green   : wheel
- yellow  : sdist (built with locked build requirements)
- cyan    : vcs checkout
- red     : errors, ad hoc builds
"""

from __future__ import annotations

from pathlib import Path

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from lockforge.core.errors import LockError
from lockforge.models.lock import LockDocument, LockingMode
from lockforge.models.plan import ArtifactKind, InstallPlan, SelectedArtifact

_KIND_STYLES: dict[ArtifactKind, str] = {
    ArtifactKind.WHEEL: "green",
    ArtifactKind.SDIST: "yellow",
    ArtifactKind.VCS: "cyan",
}


def _kind_label(artifact: SelectedArtifact) -> str:
    style = _KIND_STYLES[artifact.kind]
    return f"[{style}]{artifact.kind.value}[/{style}]"


def _build_label(artifact: SelectedArtifact) -> str:
    if artifact.build_adhoc:
        return "[bold red]ad hoc[/bold red]"
    if artifact.build_plan is not None:
        return f"{len(artifact.build_plan.artifacts)} locked"
    return "[dim]-[/dim]"


class PlanRenderer:
    """Renders documents and plans as Rich renderables.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Lock document summary
    # ------------------------------------------------------------------

    def render_document(
        self, path: Path, document: LockDocument, fingerprint: str
    ) -> Panel:
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Field", style="bold")
        table.add_column("Value")

        table.add_row("Version", document.version)
        table.add_row("Locking", document.locking_mode.value)
        table.add_row("Hash algorithm", document.hash_algorithm)
        if document.locking_mode == LockingMode.PER_FILE:
            table.add_row("Lock names", ", ".join(document.lock_names()))
        else:
            assert document.package_lock is not None
            table.add_row("Requires Python", document.package_lock.requires_python)
        table.add_row("Packages", str(len(document.packages)))
        if document.dependencies:
            table.add_row("Dependencies", ", ".join(document.dependencies))
        table.add_row("Fingerprint", fingerprint)

        return Panel(
            table,
            title=f"[bold]{path.name}[/bold]",
            subtitle="[green]valid[/green]",
            border_style="green",
            padding=(1, 2),
        )

    # ------------------------------------------------------------------
    # Install plan
    # ------------------------------------------------------------------

    def render_plan(self, plan: InstallPlan, *, verified: bool) -> Panel:
        """Render the top-level artifacts as a table, build plans as a tree."""
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("Package", style="bold")
        table.add_column("Version")
        table.add_column("Kind", justify="center")
        table.add_column("Artifact")
        table.add_column("Build", justify="center")

        for artifact in plan.artifacts:
            table.add_row(
                artifact.package,
                artifact.version,
                _kind_label(artifact),
                artifact.display_name,
                _build_label(artifact),
            )

        parts: list[object] = [table]
        if any(a.build_plan is not None for a in plan.artifacts):
            parts.extend([Text(""), self.render_build_tree(plan)])

        summary_parts = [
            f"[bold]Mode:[/bold] {plan.mode.value}",
            f"[bold]Artifacts:[/bold] {len(plan.artifacts)}",
        ]
        if plan.lock_name is not None:
            summary_parts.insert(1, f"[bold]Lock name:[/bold] {plan.lock_name}")
        if verified:
            summary_parts.append("[bold]Hashes:[/bold] [green]verified[/green]")
        else:
            summary_parts.append("[bold]Hashes:[/bold] [bold yellow]NOT VERIFIED[/bold yellow]")
        parts.extend([Text(""), Text.from_markup("  |  ".join(summary_parts))])

        return Panel(
            Group(*parts),
            title="[bold]Install Plan[/bold]",
            border_style="green" if verified else "yellow",
            padding=(1, 2),
        )

    def render_build_tree(self, plan: InstallPlan) -> Tree:
        tree = Tree("[bold]Build requirements[/bold]")
        for artifact in plan.artifacts:
            if artifact.build_plan is not None:
                self._add_build_branch(tree, artifact)
        return tree

    def _add_build_branch(self, parent: Tree, artifact: SelectedArtifact) -> None:
        branch = parent.add(f"{artifact.package} {artifact.version} ({_kind_label(artifact)})")
        assert artifact.build_plan is not None
        for requirement in artifact.build_plan.artifacts:
            if requirement.build_plan is not None:
                self._add_build_branch(branch, requirement)
            else:
                branch.add(
                    f"{requirement.package} {requirement.version} "
                    f"({_kind_label(requirement)}) {requirement.display_name}"
                )

    def print_plan(self, plan: InstallPlan, *, verified: bool) -> None:
        self.console.print(self.render_plan(plan, verified=verified))

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def print_error(self, exc: LockError) -> None:
        self.console.print(f"[bold red]{exc.code.value}:[/bold red] {escape(exc.message)}")
        if exc.hint:
            self.console.print(f"[dim]Hint: {escape(exc.hint)}[/dim]")
        for key, value in exc.context.items():
            if value:
                self.console.print(f"  [bold]{key}:[/bold] {escape(value)}")
