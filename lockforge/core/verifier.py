"""Artifact verification — the only I/O in a resolution pass.

Runs after selection is final.  Every selected file must be obtainable
from an ``ArtifactSource`` and hash to the value recorded in the document
under the document's ``hash-algorithm``; every selected VCS reference must
carry a well-formed commit id (and pass the optional ``commit_checker``).
Any failure raises and aborts the pass: a missing hash is as fatal as a
wrong one.

Artifacts are independent, so they are checked on a thread pool; results
are consumed in plan order so the error raised is always the first failing
artifact of the plan, whatever the scheduling.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Protocol
from urllib.parse import unquote, urlparse

from lockforge.core.artifact_store import ContentAddressedStore
from lockforge.core.errors import ArtifactUnavailableError, HashVerificationError
from lockforge.core.hasher import compute_digest, digests_match
from lockforge.models.lock import FileRecord, VcsReference
from lockforge.models.plan import InstallPlan, SelectedArtifact

logger = logging.getLogger(__name__)

CommitChecker = Callable[[VcsReference], bool]

_COMMIT_PATTERNS: dict[str, re.Pattern[str]] = {
    "git": re.compile(r"^[0-9a-f]{7,64}$"),
    "hg": re.compile(r"^[0-9a-f]{12,40}$"),
    "svn": re.compile(r"^r?[0-9]+$"),
    "bzr": re.compile(r"^\S+$"),
}


class ArtifactSource(Protocol):
    """Supplies the bytes of a locked file."""

    def fetch(self, record: FileRecord, algorithm: str) -> bytes: ...


class DirectoryArtifactSource:
    """Reads files from a local directory (a wheelhouse).

    A ``file://`` origin is read from its own path; anything else is looked
    up by file name under *root*.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    def path_for(self, record: FileRecord) -> Path:
        if record.origin and record.origin.startswith("file://"):
            return Path(unquote(urlparse(record.origin).path))
        return self._root / record.name

    def fetch(self, record: FileRecord, algorithm: str) -> bytes:
        path = self.path_for(record)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise ArtifactUnavailableError(
                f"{record.name} was not found.",
                context={"path": str(path)},
            ) from exc
        except OSError as exc:
            raise ArtifactUnavailableError(
                f"{record.name} could not be read.",
                context={"path": str(path), "error": exc.strerror or str(exc)},
            ) from exc


class ChainedArtifactSource:
    """Tries each source in order; the first one holding the file wins."""

    def __init__(self, *sources: ArtifactSource) -> None:
        self._sources = sources

    def fetch(self, record: FileRecord, algorithm: str) -> bytes:
        for source in self._sources:
            try:
                return source.fetch(record, algorithm)
            except ArtifactUnavailableError:
                continue
        raise ArtifactUnavailableError(
            f"No artifact source can supply {record.name}.",
            context={"origin": record.origin or ""},
        )


class ArtifactVerifier:
    """Checks every artifact of an install plan.

    Parameters
    ----------
    source:
        Where file bytes come from.
    hash_algorithm:
        The document's ``hash-algorithm``.
    max_workers:
        Thread pool size for independent artifact checks.
    cache:
        Optional store receiving every verified file.
    commit_checker:
        Optional callable confirming a VCS commit exists (for example by
        asking the repository).  Returning False fails verification.
    """

    def __init__(
        self,
        source: ArtifactSource,
        hash_algorithm: str,
        *,
        max_workers: int = 4,
        cache: ContentAddressedStore | None = None,
        commit_checker: CommitChecker | None = None,
    ) -> None:
        self._source = source
        self._algorithm = hash_algorithm
        self._max_workers = max(1, max_workers)
        self._cache = cache
        self._commit_checker = commit_checker

    def verify_file(self, record: FileRecord) -> str:
        """Verify one file and return its digest."""
        if record.hash is None:
            raise HashVerificationError(
                f"{record.name} has no recorded {self._algorithm} hash.",
                hint="Artifacts without a hash cannot be installed.",
            )

        data = self._source.fetch(record, self._algorithm)
        if not digests_match(data, record.hash, self._algorithm):
            raise HashVerificationError(
                f"{record.name} does not match its recorded {self._algorithm} hash.",
                context={
                    "expected": record.hash,
                    "actual": compute_digest(data, self._algorithm),
                },
            )

        if self._cache is not None:
            self._cache.store(data, self._algorithm)
        logger.debug("Verified %s", record.name)
        return record.hash

    def verify_commit(self, vcs: VcsReference) -> str:
        """Verify a VCS reference's commit id and return it."""
        pattern = _COMMIT_PATTERNS[vcs.type]
        if not pattern.match(vcs.commit):
            raise HashVerificationError(
                f"{vcs.display_name} does not pin a valid {vcs.type} commit id.",
                context={"commit": vcs.commit},
            )
        if self._commit_checker is not None and not self._commit_checker(vcs):
            raise HashVerificationError(
                f"Commit {vcs.commit} was not found in {vcs.origin}.",
            )
        logger.debug("Verified %s", vcs.display_name)
        return vcs.commit

    def verify_artifact(self, artifact: SelectedArtifact) -> str:
        if artifact.file is not None:
            return self.verify_file(artifact.file)
        assert artifact.vcs is not None
        return self.verify_commit(artifact.vcs)

    def verify_plan(self, plan: InstallPlan) -> list[str]:
        """Verify every artifact of *plan*, build plans included.

        Returns the verified digests / commit ids in plan order.
        """
        artifacts = list(plan.iter_artifacts())
        if not artifacts:
            return []

        verified: list[str] = []
        workers = min(self._max_workers, len(artifacts))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # One check per distinct file or commit; a wheel shared by several
            # build plans is fetched and cached once.
            checks: dict[FileRecord | VcsReference, Future[str]] = {}
            for artifact in artifacts:
                key = artifact.file if artifact.file is not None else artifact.vcs
                if key not in checks:
                    checks[key] = executor.submit(self.verify_artifact, artifact)
            try:
                for artifact in artifacts:
                    key = artifact.file if artifact.file is not None else artifact.vcs
                    verified.append(checks[key].result())
            except Exception:
                for future in checks.values():
                    future.cancel()
                raise

        logger.info("Verified %d artifact(s)", len(verified))
        return verified
