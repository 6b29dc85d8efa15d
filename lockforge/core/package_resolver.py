"""Package resolution — evaluate every entry independently.

1. ``[package-lock].requires-python`` must contain the environment's
   Python (``IncompatiblePythonError``).
2. Entries whose marker is false, or whose own ``requires-python`` excludes
   the environment, are skipped.
3. For each remaining entry the best file is chosen:

   - compatible wheels rank by the best position of any of their tags in
     the environment's ordered tag list (lower is better);
   - source files rank after every compatible wheel and are excluded when
     ``only_binary`` is set;
   - ties go to the file listed first in the document;
   - with no usable file, the entry's ``vcs`` reference is used.

4. An applicable entry with nothing selectable is a
   ``NoInstallableArtifactError``, as is a document whose entries are all
   skipped.

Two applicable entries of the same package are rejected
(``AmbiguousFileSelectionError``).  Conflicts between differently named
entries are not looked for; keeping those apart is the locker's job.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from packaging.utils import NormalizedName

from lockforge.core.build_requirements import plan_build
from lockforge.core.errors import (
    AmbiguousFileSelectionError,
    IncompatiblePythonError,
    NoInstallableArtifactError,
    SchemaError,
)
from lockforge.models.environment import EnvironmentDescriptor
from lockforge.models.lock import FileRecord, LockDocument, LockingMode, PackageEntry, PackageLock
from lockforge.models.plan import ArtifactKind, InstallPlan, SelectedArtifact

logger = logging.getLogger(__name__)


def check_requires_python(package_lock: PackageLock, environment: EnvironmentDescriptor) -> None:
    specifier = package_lock.python_specifier
    if not specifier.contains(environment.parsed_python_version, prereleases=True):
        raise IncompatiblePythonError(
            f"Python {environment.python_version} does not satisfy "
            f"requires-python {package_lock.requires_python!r}.",
            context={
                "python": environment.python_version,
                "requires_python": package_lock.requires_python,
            },
        )


def entry_applies(
    entry: PackageEntry,
    environment: EnvironmentDescriptor,
    context: Mapping[str, str],
) -> bool:
    """True if *entry*'s marker and ``requires-python`` accept the environment."""
    marker = entry.parsed_marker
    if marker is not None and not marker.evaluate(context):
        logger.debug("Skipping %s: marker %r is false", entry.identify(), entry.marker)
        return False

    specifier = entry.python_specifier
    if specifier is not None and not specifier.contains(
        environment.parsed_python_version, prereleases=True
    ):
        logger.debug(
            "Skipping %s: requires-python %r excludes %s",
            entry.identify(),
            entry.requires_python,
            environment.python_version,
        )
        return False
    return True


def select_file(
    entry: PackageEntry,
    environment: EnvironmentDescriptor,
    *,
    only_binary: bool = False,
) -> FileRecord | None:
    """Return the best file of *entry* for *environment*, if any."""
    source_rank = len(environment.wheel_tags)
    best_key: tuple[int, int] | None = None
    best: FileRecord | None = None

    for position, record in enumerate(entry.files):
        if record.is_wheel:
            rank = environment.tag_rank(record.wheel_tags)
            if rank is None:
                continue
        elif only_binary:
            continue
        else:
            rank = source_rank

        key = (rank, position)
        if best_key is None or key < best_key:
            best_key, best = key, record

    return best


def resolve_packages(
    document: LockDocument,
    environment: EnvironmentDescriptor,
    *,
    build_environment: EnvironmentDescriptor | None = None,
    allow_adhoc_builds: bool = False,
    only_binary: bool = False,
) -> InstallPlan:
    """Select a self-consistent install set under package locking."""
    package_lock = document.package_lock
    if document.locking_mode != LockingMode.PACKAGE or package_lock is None:
        raise SchemaError("Package resolution needs a document with [package-lock].")

    check_requires_python(package_lock, environment)

    artifacts = _select_packages(
        document.packages,
        environment,
        build_environment or environment,
        allow_adhoc_builds=allow_adhoc_builds,
        only_binary=only_binary,
    )
    if document.packages and not artifacts:
        raise NoInstallableArtifactError(
            "No package entry applies to this environment.",
            hint="Every entry was excluded by its marker or requires-python.",
            context={"packages": ", ".join(e.identify() for e in document.packages)},
        )

    logger.info("Selected %d package(s) by package locking", len(artifacts))
    return InstallPlan(mode=LockingMode.PACKAGE, artifacts=artifacts)


def _select_packages(
    packages: tuple[PackageEntry, ...],
    environment: EnvironmentDescriptor,
    build_environment: EnvironmentDescriptor,
    *,
    allow_adhoc_builds: bool,
    only_binary: bool,
) -> tuple[SelectedArtifact, ...]:
    context = environment.evaluation_context()
    selected: list[SelectedArtifact] = []
    chosen: dict[NormalizedName, PackageEntry] = {}

    def resolve_nested(requirements: tuple[PackageEntry, ...]) -> InstallPlan:
        return InstallPlan(
            mode=LockingMode.PACKAGE,
            artifacts=_select_packages(
                requirements,
                build_environment,
                build_environment,
                allow_adhoc_builds=allow_adhoc_builds,
                only_binary=only_binary,
            ),
        )

    for entry in packages:
        if not entry_applies(entry, environment, context):
            continue

        previous = chosen.get(entry.canonical_name)
        if previous is not None:
            raise AmbiguousFileSelectionError(
                f"Both {previous.identify()} and {entry.identify()} apply to this environment.",
                hint="Entries of one package must carry mutually exclusive markers.",
            )
        chosen[entry.canonical_name] = entry

        record = select_file(entry, environment, only_binary=only_binary)
        if record is not None:
            kind = ArtifactKind.WHEEL if record.is_binary else ArtifactKind.SDIST
            vcs = None
        elif entry.vcs is not None and not only_binary:
            kind = ArtifactKind.VCS
            vcs = entry.vcs
        else:
            raise NoInstallableArtifactError(
                f"No locked artifact of {entry.identify()} is compatible with this environment.",
                context={
                    "files": ", ".join(f.name for f in entry.files),
                    "vcs": entry.vcs.display_name if entry.vcs else "",
                },
            )

        build_plan, build_adhoc = plan_build(
            entry,
            kind,
            resolve_nested=resolve_nested,
            allow_adhoc_builds=allow_adhoc_builds,
        )
        selected.append(
            SelectedArtifact(
                kind=kind,
                package=entry.name,
                version=entry.version,
                file=record,
                vcs=vcs,
                build_plan=build_plan,
                build_adhoc=build_adhoc,
            )
        )

    return tuple(selected)
