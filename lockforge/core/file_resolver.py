"""Per-file resolution — pick the one known environment, then its files.

1. Every ``[[file-lock]]`` entry is matched against the environment; exactly
   one must match (``NoCompatibleEnvironmentError`` /
   ``AmbiguousEnvironmentError`` otherwise, with no fallback heuristic).
2. The matched entry's name is the lock name.  Each package entry
   contributes the single file or VCS reference carrying that lock name.
   Two candidates in one entry, or two entries of the same package both
   carrying it, is an ``AmbiguousFileSelectionError``.
3. Source artifacts recurse into ``build-requires``, re-matching the
   file-lock table against the build environment.

Selection is a pure function of (document, environment); hash checks
happen afterwards in ``verifier``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from packaging.utils import NormalizedName

from lockforge.core.build_requirements import plan_build
from lockforge.core.errors import (
    AmbiguousEnvironmentError,
    AmbiguousFileSelectionError,
    NoCompatibleEnvironmentError,
    SchemaError,
)
from lockforge.models.environment import EnvironmentDescriptor
from lockforge.models.lock import FileLockEntry, LockDocument, LockingMode, PackageEntry
from lockforge.models.plan import ArtifactKind, InstallPlan, SelectedArtifact

logger = logging.getLogger(__name__)


def entry_matches(
    entry: FileLockEntry,
    context: Mapping[str, str],
    supported_tags: frozenset[str],
) -> bool:
    """True if *entry*'s marker values and wheel tags fit the environment."""
    for name, value in entry.marker_values.items():
        if context.get(name) != value:
            return False
    return entry.wheel_tags <= supported_tags


def match_environment(
    document: LockDocument, environment: EnvironmentDescriptor
) -> FileLockEntry:
    """Return the single ``[[file-lock]]`` entry matching *environment*."""
    context = environment.evaluation_context()
    supported = environment.supported_tags
    matches = [
        entry
        for entry in document.file_locks or ()
        if entry_matches(entry, context, supported)
    ]

    if not matches:
        raise NoCompatibleEnvironmentError(
            "No [[file-lock]] entry matches this environment.",
            hint="The lock file was not generated for this platform or interpreter.",
            context={
                "lock_names": ", ".join(document.lock_names()),
                "python": environment.python_version,
            },
        )
    if len(matches) > 1:
        raise AmbiguousEnvironmentError(
            f"{len(matches)} [[file-lock]] entries match this environment.",
            hint="Entries must not overlap; regenerate the lock file.",
            context={"matches": ", ".join(entry.name for entry in matches)},
        )
    return matches[0]


def resolve_per_file(
    document: LockDocument,
    environment: EnvironmentDescriptor,
    *,
    build_environment: EnvironmentDescriptor | None = None,
    allow_adhoc_builds: bool = False,
) -> InstallPlan:
    """Select the exact artifacts to install under per-file locking."""
    if document.locking_mode != LockingMode.PER_FILE:
        raise SchemaError("Per-file resolution needs a document with [[file-lock]] entries.")

    lock_entry = match_environment(document, environment)
    logger.info("Environment matched lock name %r", lock_entry.name)

    artifacts = _select_for_lock_name(
        document,
        document.packages,
        lock_entry.name,
        build_environment or environment,
        allow_adhoc_builds,
    )
    return InstallPlan(
        mode=LockingMode.PER_FILE,
        lock_name=lock_entry.name,
        artifacts=artifacts,
    )


def _select_for_lock_name(
    document: LockDocument,
    packages: tuple[PackageEntry, ...],
    lock_name: str,
    build_environment: EnvironmentDescriptor,
    allow_adhoc_builds: bool,
) -> tuple[SelectedArtifact, ...]:
    selected: list[SelectedArtifact] = []
    chosen: dict[NormalizedName, PackageEntry] = {}

    def resolve_nested(requirements: tuple[PackageEntry, ...]) -> InstallPlan:
        build_lock = match_environment(document, build_environment)
        return InstallPlan(
            mode=LockingMode.PER_FILE,
            lock_name=build_lock.name,
            artifacts=_select_for_lock_name(
                document, requirements, build_lock.name, build_environment, allow_adhoc_builds
            ),
        )

    for entry in packages:
        files = [record for record in entry.files if lock_name in record.lock_names]
        vcs = entry.vcs if entry.vcs is not None and lock_name in entry.vcs.lock_names else None
        candidates = [record.name for record in files]
        if vcs is not None:
            candidates.append(vcs.display_name)

        if not candidates:
            continue
        if len(candidates) > 1:
            raise AmbiguousFileSelectionError(
                f"{entry.identify()} has {len(candidates)} artifacts for lock name {lock_name!r}.",
                context={"artifacts": ", ".join(candidates)},
            )

        previous = chosen.get(entry.canonical_name)
        if previous is not None:
            raise AmbiguousFileSelectionError(
                f"Both {previous.identify()} and {entry.identify()} provide lock name {lock_name!r}.",
                hint="A lock name may select at most one artifact per package.",
            )
        chosen[entry.canonical_name] = entry

        if files:
            record = files[0]
            kind = ArtifactKind.WHEEL if record.is_binary else ArtifactKind.SDIST
        else:
            record = None
            kind = ArtifactKind.VCS

        build_plan, build_adhoc = plan_build(
            entry,
            kind,
            resolve_nested=resolve_nested,
            allow_adhoc_builds=allow_adhoc_builds,
        )
        logger.debug("Selected %s for %s", candidates[0], entry.identify())
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
