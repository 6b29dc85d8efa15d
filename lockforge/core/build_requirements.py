"""Build-step decision for source artifacts.

A wheel installs as-is.  A source distribution or VCS checkout must be
built first, which needs the package's ``build-requires``:

- present: resolved recursively by the caller's resolver;
- absent: allowed only when the caller opted in to ad hoc resolution of
  build dependencies, otherwise ``MissingBuildRequirementsError``.

This module only decides whether building is permitted; building itself
belongs to an external build back-end.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from lockforge.core.errors import MissingBuildRequirementsError
from lockforge.models.lock import PackageEntry
from lockforge.models.plan import ArtifactKind, InstallPlan

logger = logging.getLogger(__name__)

NestedResolver = Callable[[tuple[PackageEntry, ...]], InstallPlan]


def plan_build(
    entry: PackageEntry,
    kind: ArtifactKind,
    *,
    resolve_nested: NestedResolver,
    allow_adhoc_builds: bool,
) -> tuple[InstallPlan | None, bool]:
    """Return ``(build_plan, build_adhoc)`` for the artifact selected from *entry*."""
    if kind == ArtifactKind.WHEEL:
        return None, False

    if entry.build_requires is not None:
        logger.debug(
            "Resolving %d build requirement(s) of %s",
            len(entry.build_requires),
            entry.identify(),
        )
        return resolve_nested(entry.build_requires), False

    if allow_adhoc_builds:
        logger.warning(
            "%s has no locked build-requires; build dependencies will be resolved ad hoc",
            entry.identify(),
        )
        return None, True

    raise MissingBuildRequirementsError(
        f"{entry.identify()} must be built from a {kind.value} but locks no build-requires.",
        hint="Allow ad hoc build resolution to build it anyway (not reproducible).",
        context={"package": entry.identify(), "artifact": kind.value},
    )
