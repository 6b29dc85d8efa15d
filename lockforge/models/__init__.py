"""Lockforge data models — all Pydantic v2, all frozen (immutable)."""

from lockforge.models.environment import EnvironmentDescriptor
from lockforge.models.lock import (
    SUPPORTED_LOCK_VERSION,
    VCS_TYPES,
    FileLockEntry,
    FileRecord,
    LockDocument,
    LockingMode,
    PackageEntry,
    PackageLock,
    VcsReference,
)
from lockforge.models.plan import ArtifactKind, InstallPlan, SelectedArtifact

__all__ = [
    # lock document
    "SUPPORTED_LOCK_VERSION",
    "VCS_TYPES",
    "LockingMode",
    "LockDocument",
    "FileLockEntry",
    "PackageLock",
    "PackageEntry",
    "FileRecord",
    "VcsReference",
    # environment
    "EnvironmentDescriptor",
    # plan
    "ArtifactKind",
    "SelectedArtifact",
    "InstallPlan",
]
