"""Content-addressed cache of verified artifacts.

Storage layout: {base_path}/{algorithm}/{digest[0:2]}/{digest[2:4]}/{digest}.dat
No delete method — cached artifacts are immutable once stored.

The store is also an artifact source: a file whose recorded hash is
already cached is served from here without touching the wheelhouse.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from lockforge.core.errors import ArtifactUnavailableError, HashVerificationError
from lockforge.core.hasher import compute_digest
from lockforge.models.lock import FileRecord

logger = logging.getLogger(__name__)


class ArtifactIntegrityError(HashVerificationError):
    """Raised when a cached artifact's bytes no longer match its address."""


class ContentAddressedStore:
    """Digest-keyed, immutable artifact cache.

    Storing the same content twice is a no-op (idempotent).  There is no
    update or delete.

    Parameters
    ----------
    base_path:
        Root directory for artifact storage.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)

    @property
    def base_path(self) -> Path:
        return self._base

    def _artifact_path(self, digest: str, algorithm: str) -> Path:
        return self._base / algorithm / digest[:2] / digest[2:4] / f"{digest}.dat"

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    def store(self, data: bytes, algorithm: str = "sha256") -> str:
        """Store *data* and return its hex digest under *algorithm*.

        If the content already exists, its integrity is re-checked and the
        existing file is kept.
        """
        digest = compute_digest(data, algorithm)
        path = self._artifact_path(digest, algorithm)

        if path.exists():
            if not self.verify(digest, algorithm):
                raise ArtifactIntegrityError(
                    "Cached artifact failed its integrity check.",
                    context={"digest": digest, "path": str(path)},
                )
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._write_atomic(path, data)
            logger.debug("Cached %d bytes as %s:%s", len(data), algorithm, digest)

        return digest

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        # Readers only ever see a complete file or no file at all.
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    # ------------------------------------------------------------------
    # Retrieve
    # ------------------------------------------------------------------

    def retrieve(self, digest: str, algorithm: str = "sha256") -> bytes:
        path = self._artifact_path(digest.lower(), algorithm)
        if not path.exists():
            raise FileNotFoundError(f"Artifact not cached: {algorithm}:{digest}")
        return path.read_bytes()

    def fetch(self, record: FileRecord, algorithm: str) -> bytes:
        """Serve *record* from the cache by its recorded hash."""
        if record.hash is None or not self.exists(record.hash, algorithm):
            raise ArtifactUnavailableError(
                f"{record.name} is not in the artifact cache.",
                context={"cache": str(self._base)},
            )
        return self.retrieve(record.hash, algorithm)

    # ------------------------------------------------------------------
    # Check and verify
    # ------------------------------------------------------------------

    def exists(self, digest: str, algorithm: str = "sha256") -> bool:
        return self._artifact_path(digest.lower(), algorithm).exists()

    def verify(self, digest: str, algorithm: str = "sha256") -> bool:
        """Re-hash stored data and compare against its address."""
        path = self._artifact_path(digest.lower(), algorithm)
        if not path.exists():
            return False
        return compute_digest(path.read_bytes(), algorithm) == digest.lower()
