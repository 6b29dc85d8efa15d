"""Install plan models — the output of a resolution pass."""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum

from pydantic import BaseModel, ConfigDict

from lockforge.models.lock import FileRecord, LockingMode, VcsReference


class ArtifactKind(str, Enum):
    """What was selected for a package."""

    WHEEL = "wheel"
    SDIST = "sdist"
    VCS = "vcs"


class SelectedArtifact(BaseModel):
    """One artifact chosen for installation.

    Exactly one of ``file`` / ``vcs`` is set, matching ``kind``.  Source
    artifacts (``SDIST``, ``VCS``) carry either a ``build_plan`` resolved
    from the package's ``build-requires`` or ``build_adhoc=True`` when the
    caller allowed build dependencies to be resolved outside the lock.
    """

    model_config = ConfigDict(frozen=True)

    kind: ArtifactKind
    package: str
    version: str
    file: FileRecord | None = None
    vcs: VcsReference | None = None
    build_plan: InstallPlan | None = None
    build_adhoc: bool = False

    @property
    def display_name(self) -> str:
        if self.file is not None:
            return self.file.name
        assert self.vcs is not None
        return self.vcs.display_name


class InstallPlan(BaseModel):
    """The exact set of artifacts to install for one environment."""

    model_config = ConfigDict(frozen=True)

    mode: LockingMode
    lock_name: str | None = None  # matched [[file-lock]] name, per-file mode only
    artifacts: tuple[SelectedArtifact, ...] = ()

    def iter_artifacts(self) -> Iterator[SelectedArtifact]:
        """Walk every artifact, each followed by its build-time artifacts."""
        for artifact in self.artifacts:
            yield artifact
            if artifact.build_plan is not None:
                yield from artifact.build_plan.iter_artifacts()

    def package_names(self) -> list[str]:
        return [artifact.package for artifact in self.artifacts]


SelectedArtifact.model_rebuild()
