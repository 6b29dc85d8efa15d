"""Installer facade — the single entry point for a resolution pass.

The Installer wires together the parser, the two resolvers and the
artifact verifier.  A pass is all-or-nothing: the first error raised by
any stage propagates unchanged and no partial plan is returned.
"""

from __future__ import annotations

import logging
from pathlib import Path

from lockforge.config import InstallerConfig
from lockforge.core.artifact_store import ContentAddressedStore
from lockforge.core.file_resolver import resolve_per_file
from lockforge.core.lockfile import read_lock_file
from lockforge.core.package_resolver import resolve_packages
from lockforge.core.verifier import (
    ArtifactSource,
    ArtifactVerifier,
    ChainedArtifactSource,
    CommitChecker,
    DirectoryArtifactSource,
)
from lockforge.models.environment import EnvironmentDescriptor
from lockforge.models.lock import LockDocument, LockingMode
from lockforge.models.plan import InstallPlan

logger = logging.getLogger(__name__)


class Installer:
    """Computes and verifies install plans from lock documents.

    Parameters
    ----------
    config:
        Installer settings.  Uses defaults (and ``LOCKFORGE_*`` overrides)
        if not provided.
    source:
        Where artifact bytes come from during verification.  Defaults to
        the artifact cache followed by the configured wheelhouse (or the
        current directory).
    commit_checker:
        Optional callable confirming that a selected VCS commit exists.
    """

    def __init__(
        self,
        config: InstallerConfig | None = None,
        *,
        source: ArtifactSource | None = None,
        commit_checker: CommitChecker | None = None,
    ) -> None:
        self.config = config or InstallerConfig()
        self._source = source
        self._commit_checker = commit_checker
        self._cache: ContentAddressedStore | None = None

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    @property
    def cache(self) -> ContentAddressedStore:
        """The artifact cache, created on first use."""
        if self._cache is None:
            self._cache = ContentAddressedStore(self.config.artifact_cache_path)
        return self._cache

    def artifact_source(self) -> ArtifactSource:
        if self._source is not None:
            return self._source
        wheelhouse = self.config.wheelhouse_path or Path(".")
        return ChainedArtifactSource(self.cache, DirectoryArtifactSource(wheelhouse))

    def verifier_for(self, document: LockDocument) -> ArtifactVerifier:
        return ArtifactVerifier(
            self.artifact_source(),
            document.hash_algorithm,
            max_workers=self.config.verify_workers,
            cache=self.cache,
            commit_checker=self._commit_checker,
        )

    # ------------------------------------------------------------------
    # Resolution pass
    # ------------------------------------------------------------------

    def load(self, path: str | Path) -> LockDocument:
        """Read and validate a lock file."""
        document = read_lock_file(path)
        logger.info("Loaded %s (%s locking)", path, document.locking_mode.value)
        return document

    def plan(
        self,
        document: LockDocument,
        environment: EnvironmentDescriptor,
        *,
        build_environment: EnvironmentDescriptor | None = None,
    ) -> InstallPlan:
        """Select artifacts for *environment* without touching any file."""
        if document.locking_mode == LockingMode.PER_FILE:
            return resolve_per_file(
                document,
                environment,
                build_environment=build_environment,
                allow_adhoc_builds=self.config.allow_adhoc_builds,
            )
        return resolve_packages(
            document,
            environment,
            build_environment=build_environment,
            allow_adhoc_builds=self.config.allow_adhoc_builds,
            only_binary=self.config.only_binary,
        )

    def resolve(
        self,
        document: LockDocument,
        environment: EnvironmentDescriptor,
        *,
        verify: bool = True,
        build_environment: EnvironmentDescriptor | None = None,
    ) -> InstallPlan:
        """Plan, then verify every selected artifact.

        With ``verify=False`` the plan is returned unchecked; nothing it
        names may be installed until it has been verified.
        """
        plan = self.plan(document, environment, build_environment=build_environment)
        logger.info("Planned: %s", ", ".join(plan.package_names()) or "(nothing)")
        if verify:
            self.verifier_for(document).verify_plan(plan)
        else:
            logger.warning("Hash verification skipped; the plan is not safe to install")
        return plan
