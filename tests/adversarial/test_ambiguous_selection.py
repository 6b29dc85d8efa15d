"""Adversarial tests — selection ambiguity in documents that skipped validation.

``LockDocument.model_construct`` bypasses every cross-entry invariant, the
way a buggy locker or a hand-edited in-memory document would.  The
resolvers must still refuse to guess.
"""

from __future__ import annotations

import pytest

from lockforge.core.errors import AmbiguousEnvironmentError, AmbiguousFileSelectionError
from lockforge.core.file_resolver import resolve_per_file
from lockforge.core.package_resolver import resolve_packages
from lockforge.models.lock import FileLockEntry, LockDocument, PackageEntry, PackageLock


def _entry(name: str, version: str, *files: dict, **fields) -> PackageEntry:
    return PackageEntry.model_validate(
        {"name": name, "version": version, "files": list(files), **fields}
    )


def _per_file(*packages: PackageEntry, file_locks=None) -> LockDocument:
    return LockDocument.model_construct(
        version="1.0",
        hash_algorithm="sha256",
        dependencies=(),
        file_locks=file_locks or (FileLockEntry(name="linux", marker_values={"sys_platform": "linux"}),),
        package_lock=None,
        packages=packages,
        tool={},
    )


def _package(*packages: PackageEntry) -> LockDocument:
    return LockDocument.model_construct(
        version="1.0",
        hash_algorithm="sha256",
        dependencies=(),
        file_locks=None,
        package_lock=PackageLock(requires_python=">=3.9"),
        packages=packages,
        tool={},
    )


class TestPerFileAmbiguity:
    def test_two_files_of_one_entry_share_a_lock_name(self, linux_env):
        doc = _per_file(
            _entry(
                "demo",
                "1.0",
                {"name": "demo-1.0.tar.gz", "lock-names": ["linux"]},
                {"name": "demo-1.0-py3-none-any.whl", "lock-names": ["linux"]},
            )
        )
        with pytest.raises(AmbiguousFileSelectionError) as info:
            resolve_per_file(doc, linux_env)
        assert "demo-1.0.tar.gz" in info.value.context["artifacts"]

    def test_file_and_vcs_share_a_lock_name(self, linux_env):
        doc = _per_file(
            _entry(
                "demo",
                "1.0",
                {"name": "demo-1.0-py3-none-any.whl", "lock-names": ["linux"]},
                vcs={"type": "git", "origin": "https://example.com/demo.git", "commit": "0123456789abcdef", "lock-names": ["linux"]},
            )
        )
        with pytest.raises(AmbiguousFileSelectionError):
            resolve_per_file(doc, linux_env)

    def test_two_versions_share_a_lock_name(self, linux_env):
        doc = _per_file(
            _entry("demo", "1.0", {"name": "demo-1.0-py3-none-any.whl", "lock-names": ["linux"]}),
            _entry("Demo", "2.0", {"name": "demo-2.0-py3-none-any.whl", "lock-names": ["linux"]}),
        )
        with pytest.raises(AmbiguousFileSelectionError, match="demo==1.0"):
            resolve_per_file(doc, linux_env)

    def test_duplicate_environment_entries(self, linux_env):
        doc = _per_file(
            file_locks=(
                FileLockEntry(name="linux", marker_values={"sys_platform": "linux"}),
                FileLockEntry(name="linux", marker_values={"sys_platform": "linux"}),
            )
        )
        with pytest.raises(AmbiguousEnvironmentError):
            resolve_per_file(doc, linux_env)


class TestPackageAmbiguity:
    def test_two_unmarked_entries_of_one_package(self, linux_env):
        doc = _package(
            _entry("demo", "1.0", {"name": "demo-1.0-py3-none-any.whl"}),
            _entry("demo", "2.0", {"name": "demo-2.0-py3-none-any.whl"}),
        )
        with pytest.raises(AmbiguousFileSelectionError):
            resolve_packages(doc, linux_env)

    def test_overlapping_markers(self, linux_env):
        doc = _package(
            _entry("demo", "1.0", {"name": "demo-1.0-py3-none-any.whl"}, marker="sys_platform == 'linux'", **{"multiple-entries": True}),
            _entry("demo", "1.0", {"name": "demo-1.0.tar.gz"}, marker="os_name == 'posix'", **{"multiple-entries": True}),
        )
        with pytest.raises(AmbiguousFileSelectionError):
            resolve_packages(doc, linux_env)

    def test_differently_named_entries_are_not_checked(self, linux_env):
        doc = _package(
            _entry("demo", "1.0", {"name": "demo-1.0-py3-none-any.whl"}),
            _entry("demo-fork", "1.0", {"name": "demo_fork-1.0-py3-none-any.whl"}),
        )
        assert resolve_packages(doc, linux_env).package_names() == ["demo", "demo-fork"]
