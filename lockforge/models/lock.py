"""Lock document models — the parsed, immutable form of a ``pylock.toml``.

A document is validated as a whole when it is constructed: field-level
checks live on each model, cross-entry invariants (lock name uniqueness,
``multiple-entries`` exclusivity, hash lengths) run in the
``model_validator`` hooks.  Nothing is mutated after construction.
"""

from __future__ import annotations

import re
from collections import defaultdict
from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Any

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.tags import Tag
from packaging.utils import (
    InvalidWheelFilename,
    NormalizedName,
    canonicalize_name,
    parse_wheel_filename,
)
from packaging.version import InvalidVersion, Version
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from lockforge.core.errors import InvalidMarkerError
from lockforge.core.hasher import SUPPORTED_HASH_ALGORITHMS, digest_length
from lockforge.core.markers import MARKER_VARIABLES, Marker, parse_marker

SUPPORTED_LOCK_VERSION = "1.0"

VCS_TYPES: frozenset[str] = frozenset({"git", "hg", "svn", "bzr"})

_PROJECT_NAME_RE = re.compile(r"^([A-Z0-9]|[A-Z0-9][A-Z0-9._-]*[A-Z0-9])$", re.IGNORECASE)
_HEX_RE = re.compile(r"^[0-9a-f]+$")


def _hyphenate(field_name: str) -> str:
    return field_name.replace("_", "-")


def _reject_duplicates(values: Any, what: str) -> Any:
    if isinstance(values, (list, tuple)):
        seen: set[str] = set()
        dupes: set[str] = set()
        for value in values:
            if not isinstance(value, str):
                continue
            if value in seen:
                dupes.add(value)
            seen.add(value)
        if dupes:
            raise ValueError(f"duplicate {what}: {', '.join(sorted(dupes))}")
    return values


class LockingMode(str, Enum):
    """Which of the two mutually exclusive locking styles a document uses."""

    PER_FILE = "per-file"
    PACKAGE = "package"


class _LockModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=_hyphenate,
    )


# ---------------------------------------------------------------------------
# Per-file locking table
# ---------------------------------------------------------------------------


class FileLockEntry(_LockModel):
    """One known environment under per-file locking.

    An entry matches an environment when every ``marker_values`` item equals
    the environment's value and every wheel tag is supported by it.  Empty
    mappings and tag sets match anything.
    """

    name: str = Field(min_length=1)
    marker_values: dict[str, str] = Field(default_factory=dict)
    wheel_tags: frozenset[str] = frozenset()

    @field_validator("marker_values")
    @classmethod
    def _known_marker_names(cls, value: dict[str, str]) -> dict[str, str]:
        unknown = sorted(set(value) - MARKER_VARIABLES)
        if unknown:
            raise ValueError(f"unknown marker names: {', '.join(unknown)}")
        return value

    @field_validator("wheel_tags", mode="before")
    @classmethod
    def _plain_wheel_tags(cls, value: Any) -> Any:
        value = _reject_duplicates(value, "wheel tags")
        if isinstance(value, (list, tuple)):
            for tag in value:
                if not isinstance(tag, str):
                    continue
                parts = tag.split("-")
                if len(parts) != 3 or not all(parts):
                    raise ValueError(f"wheel tag {tag!r} is not interpreter-abi-platform")
                if any("." in part for part in parts):
                    raise ValueError(f"compressed wheel tag {tag!r} is not allowed")
        return value


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------


class FileRecord(_LockModel):
    """A locked file (wheel or source distribution) of a package entry."""

    name: str = Field(min_length=1)
    lock_names: frozenset[str] = frozenset()
    origin: str | None = None
    hash: str | None = None

    @field_validator("name")
    @classmethod
    def _plain_file_name(cls, value: str) -> str:
        if "/" in value or "\\" in value:
            raise ValueError(f"file name {value!r} must not contain path separators")
        if value.endswith(".whl"):
            try:
                parse_wheel_filename(value)
            except InvalidWheelFilename as exc:
                raise ValueError(str(exc)) from exc
        return value

    @field_validator("lock_names", mode="before")
    @classmethod
    def _unique_lock_names(cls, value: Any) -> Any:
        return _reject_duplicates(value, "lock names")

    @field_validator("hash", mode="before")
    @classmethod
    def _hex_hash(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.lower()
            if not _HEX_RE.match(value):
                raise ValueError("hash must be a hex digest")
        return value

    @property
    def is_wheel(self) -> bool:
        return self.name.endswith(".whl")

    @property
    def is_binary(self) -> bool:
        """Only wheels install without a build step."""
        return self.is_wheel

    @property
    def wheel_tags(self) -> frozenset[Tag]:
        if not self.is_wheel:
            return frozenset()
        return parse_wheel_filename(self.name)[3]


class VcsReference(_LockModel):
    """A version-control checkout pinned to an immutable commit."""

    type: str
    origin: str = Field(min_length=1)
    commit: str = Field(min_length=1)
    lock_names: frozenset[str] = frozenset()

    @field_validator("type")
    @classmethod
    def _known_vcs(cls, value: str) -> str:
        if value not in VCS_TYPES:
            raise ValueError(f"unsupported vcs type {value!r}; expected one of {sorted(VCS_TYPES)}")
        return value

    @field_validator("lock_names", mode="before")
    @classmethod
    def _unique_lock_names(cls, value: Any) -> Any:
        return _reject_duplicates(value, "lock names")

    @property
    def display_name(self) -> str:
        return f"{self.type}+{self.origin}@{self.commit}"


# ---------------------------------------------------------------------------
# Packages
# ---------------------------------------------------------------------------


class PackageLock(_LockModel):
    """The ``[package-lock]`` table."""

    requires_python: str

    @field_validator("requires_python")
    @classmethod
    def _valid_specifier(cls, value: str) -> str:
        try:
            SpecifierSet(value)
        except InvalidSpecifier as exc:
            raise ValueError(str(exc)) from exc
        return value

    @property
    def python_specifier(self) -> SpecifierSet:
        return SpecifierSet(self.requires_python)


class PackageEntry(_LockModel):
    """One ``[[package]]`` entry (or a nested ``build-requires`` entry)."""

    name: str
    version: str
    multiple_entries: bool = False
    marker: str | None = None
    requires_python: str | None = None
    direct: bool = False
    files: tuple[FileRecord, ...] = ()
    vcs: VcsReference | None = None
    build_requires: tuple[PackageEntry, ...] | None = None

    @field_validator("name")
    @classmethod
    def _valid_name(cls, value: str) -> str:
        if not _PROJECT_NAME_RE.match(value):
            raise ValueError(f"invalid project name {value!r}")
        return value

    @field_validator("version")
    @classmethod
    def _valid_version(cls, value: str) -> str:
        try:
            Version(value)
        except InvalidVersion as exc:
            raise ValueError(str(exc)) from exc
        return value

    @field_validator("marker")
    @classmethod
    def _valid_marker(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                parse_marker(value)
            except InvalidMarkerError as exc:
                raise ValueError(exc.message) from exc
        return value

    @field_validator("requires_python")
    @classmethod
    def _valid_specifier(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                SpecifierSet(value)
            except InvalidSpecifier as exc:
                raise ValueError(str(exc)) from exc
        return value

    @model_validator(mode="after")
    def _check_artifacts(self) -> PackageEntry:
        if not self.files and self.vcs is None:
            raise ValueError(f"{self.identify()} lists neither files nor vcs")
        _reject_duplicates([f.name for f in self.files], f"file names in {self.identify()}")
        if self.build_requires:
            check_package_set(self.build_requires)
        return self

    @property
    def canonical_name(self) -> NormalizedName:
        return canonicalize_name(self.name)

    @property
    def parsed_version(self) -> Version:
        return Version(self.version)

    @property
    def parsed_marker(self) -> Marker | None:
        return parse_marker(self.marker) if self.marker is not None else None

    @property
    def python_specifier(self) -> SpecifierSet | None:
        return SpecifierSet(self.requires_python) if self.requires_python is not None else None

    def identify(self) -> str:
        return f"{self.name}=={self.version}"

    def lock_name_holders(self) -> Iterator[tuple[str, frozenset[str]]]:
        """Yield ``(artifact display name, lock names)`` for files and vcs."""
        for record in self.files:
            yield record.name, record.lock_names
        if self.vcs is not None:
            yield self.vcs.display_name, self.vcs.lock_names


def iter_package_tree(packages: Iterable[PackageEntry]) -> Iterator[PackageEntry]:
    """Depth-first walk over *packages* and their nested ``build-requires``."""
    for entry in packages:
        yield entry
        if entry.build_requires:
            yield from iter_package_tree(entry.build_requires)


def check_package_set(packages: Iterable[PackageEntry]) -> None:
    """Check the cross-entry invariants of one package list.

    * a lock name is used by at most one file or vcs reference per package,
      across every version of that package;
    * entries sharing (name, version) all declare ``multiple-entries`` and
      each carries a marker.

    Raises ``ValueError`` so pydantic reports the failing location.
    """
    by_key: dict[tuple[NormalizedName, Version], list[PackageEntry]] = defaultdict(list)
    holders: dict[tuple[NormalizedName, str], str] = {}

    for entry in packages:
        by_key[(entry.canonical_name, entry.parsed_version)].append(entry)
        for artifact_name, lock_names in entry.lock_name_holders():
            for lock_name in sorted(lock_names):
                key = (entry.canonical_name, lock_name)
                if key in holders:
                    raise ValueError(
                        f"lock name {lock_name!r} is used by both {holders[key]} "
                        f"and {artifact_name} of package {entry.canonical_name}"
                    )
                holders[key] = artifact_name

    for (name, version), entries in by_key.items():
        if len(entries) < 2:
            continue
        if not all(e.multiple_entries for e in entries):
            raise ValueError(
                f"{name}=={version} appears {len(entries)} times; "
                "each entry must set multiple-entries = true"
            )
        if not all(e.marker for e in entries):
            raise ValueError(
                f"{name}=={version} has multiple entries; each must carry a marker"
            )


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class LockDocument(_LockModel):
    """A whole lock document.

    Exactly one of ``file_locks`` (per-file locking) or ``package_lock``
    (package locking) is present.
    """

    version: str
    hash_algorithm: str
    dependencies: tuple[str, ...] = ()
    file_locks: tuple[FileLockEntry, ...] | None = Field(default=None, alias="file-lock")
    package_lock: PackageLock | None = None
    packages: tuple[PackageEntry, ...] = Field(default=(), alias="package")
    tool: dict[str, Any] = Field(default_factory=dict)

    @field_validator("version")
    @classmethod
    def _supported_version(cls, value: str) -> str:
        if value != SUPPORTED_LOCK_VERSION:
            raise ValueError(f"unsupported lock version {value!r}")
        return value

    @field_validator("hash_algorithm")
    @classmethod
    def _supported_algorithm(cls, value: str) -> str:
        value = value.lower()
        if value not in SUPPORTED_HASH_ALGORITHMS:
            raise ValueError(
                f"unsupported hash algorithm {value!r}; "
                f"expected one of {', '.join(sorted(SUPPORTED_HASH_ALGORITHMS))}"
            )
        return value

    @model_validator(mode="after")
    def _check_document(self) -> LockDocument:
        if (self.file_locks is None) == (self.package_lock is None):
            raise ValueError("exactly one of [[file-lock]] or [package-lock] must be present")

        if self.file_locks is not None:
            if not self.file_locks:
                raise ValueError("[[file-lock]] must list at least one environment")
            _reject_duplicates([e.name for e in self.file_locks], "file-lock names")

        check_package_set(self.packages)

        expected_length = digest_length(self.hash_algorithm)
        known_lock_names = set(self.lock_names())
        for entry in iter_package_tree(self.packages):
            for record in entry.files:
                if record.hash is not None and len(record.hash) != expected_length:
                    raise ValueError(
                        f"hash of {record.name} is not a {self.hash_algorithm} digest"
                    )
            for artifact_name, lock_names in entry.lock_name_holders():
                if not lock_names:
                    continue
                if self.file_locks is None:
                    raise ValueError(
                        f"{artifact_name} has lock-names but the document uses package locking"
                    )
                unknown = sorted(lock_names - known_lock_names)
                if unknown:
                    raise ValueError(
                        f"{artifact_name} refers to undeclared lock names: {', '.join(unknown)}"
                    )
        return self

    @property
    def locking_mode(self) -> LockingMode:
        return LockingMode.PER_FILE if self.file_locks is not None else LockingMode.PACKAGE

    def lock_names(self) -> tuple[str, ...]:
        """Names of the ``[[file-lock]]`` entries, in document order."""
        return tuple(entry.name for entry in self.file_locks or ())
