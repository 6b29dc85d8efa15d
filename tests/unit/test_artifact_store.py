"""Tests for ContentAddressedStore — immutability, integrity, content addressing."""

from __future__ import annotations

import hashlib
import os
from concurrent.futures import ThreadPoolExecutor

import pytest

from lockforge.core.artifact_store import ArtifactIntegrityError, ContentAddressedStore
from lockforge.core.errors import ArtifactUnavailableError, HashVerificationError
from lockforge.models.lock import FileRecord


class TestContentAddressedStore:
    def test_store_and_retrieve(self, artifact_store: ContentAddressedStore):
        data = b"hello lockforge"
        digest = artifact_store.store(data)
        assert digest == hashlib.sha256(data).hexdigest()
        assert artifact_store.retrieve(digest) == data

    def test_layout_is_sharded_by_algorithm_and_digest(self, artifact_store: ContentAddressedStore):
        digest = artifact_store.store(b"layout", "sha512")
        expected = artifact_store.base_path / "sha512" / digest[:2] / digest[2:4] / f"{digest}.dat"
        assert expected.read_bytes() == b"layout"

    def test_algorithms_do_not_collide(self, artifact_store: ContentAddressedStore):
        sha256 = artifact_store.store(b"same bytes", "sha256")
        artifact_store.store(b"same bytes", "sha512")
        assert artifact_store.exists(sha256, "sha256")
        assert not artifact_store.exists(sha256, "sha512")

    def test_idempotent_store(self, artifact_store: ContentAddressedStore):
        assert artifact_store.store(b"store me twice") == artifact_store.store(b"store me twice")

    def test_exists(self, artifact_store: ContentAddressedStore):
        digest = artifact_store.store(b"check existence")
        assert artifact_store.exists(digest) is True
        assert artifact_store.exists(digest.upper()) is True
        assert artifact_store.exists("0" * 64) is False

    def test_verify_valid(self, artifact_store: ContentAddressedStore):
        assert artifact_store.verify(artifact_store.store(b"verify me")) is True

    def test_retrieve_nonexistent(self, artifact_store: ContentAddressedStore):
        with pytest.raises(FileNotFoundError):
            artifact_store.retrieve("0" * 64)

    def test_verify_nonexistent(self, artifact_store: ContentAddressedStore):
        assert artifact_store.verify("0" * 64) is False

    def test_corrupted_entry_detected_on_restore(self, artifact_store: ContentAddressedStore):
        data = b"original"
        digest = artifact_store.store(data)
        path = artifact_store.base_path / "sha256" / digest[:2] / digest[2:4] / f"{digest}.dat"
        path.write_bytes(b"corrupted")
        assert artifact_store.verify(digest) is False
        with pytest.raises(ArtifactIntegrityError) as info:
            artifact_store.store(data)
        assert isinstance(info.value, HashVerificationError)

    def test_fetch_requires_hash(self, artifact_store: ContentAddressedStore):
        with pytest.raises(ArtifactUnavailableError):
            artifact_store.fetch(FileRecord(name="demo-1.0.tar.gz"), "sha256")

    def test_fetch_missing(self, artifact_store: ContentAddressedStore):
        with pytest.raises(ArtifactUnavailableError):
            artifact_store.fetch(FileRecord(name="demo-1.0.tar.gz", hash="0" * 64), "sha256")


class TestConcurrentWrites:
    def test_interrupted_write_leaves_no_entry(self, artifact_store: ContentAddressedStore, monkeypatch):
        def fail_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", fail_replace)
        data = b"interrupted"
        with pytest.raises(OSError):
            artifact_store.store(data)
        monkeypatch.undo()

        digest = hashlib.sha256(data).hexdigest()
        assert not artifact_store.exists(digest)
        assert list(artifact_store.base_path.rglob("*.tmp")) == []
        assert artifact_store.store(data) == digest

    def test_same_content_stored_from_many_threads(self, artifact_store: ContentAddressedStore):
        data = os.urandom(1 << 20)
        with ThreadPoolExecutor(max_workers=8) as executor:
            digests = list(executor.map(lambda _: artifact_store.store(data), range(32)))
        assert set(digests) == {hashlib.sha256(data).hexdigest()}
        assert artifact_store.verify(digests[0])
        assert list(artifact_store.base_path.rglob("*.tmp")) == []
