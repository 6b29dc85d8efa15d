"""Shared test fixtures for lockforge."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from lockforge.core.artifact_store import ContentAddressedStore
from lockforge.core.hasher import compute_digest
from lockforge.core.parser import parse
from lockforge.models.environment import EnvironmentDescriptor
from lockforge.models.lock import LockDocument

LINUX_MARKERS: dict[str, str] = {
    "implementation_name": "cpython",
    "implementation_version": "3.12.1",
    "os_name": "posix",
    "platform_machine": "x86_64",
    "platform_python_implementation": "CPython",
    "platform_release": "6.5.0",
    "platform_system": "Linux",
    "platform_version": "#1 SMP",
    "python_full_version": "3.12.1",
    "python_version": "3.12",
    "sys_platform": "linux",
}

LINUX_TAGS: tuple[str, ...] = (
    "cp312-cp312-manylinux_2_17_x86_64",
    "cp312-abi3-manylinux_2_17_x86_64",
    "cp312-none-manylinux_2_17_x86_64",
    "py3-none-manylinux_2_17_x86_64",
    "cp312-none-any",
    "py3-none-any",
)

WINDOWS_MARKERS: dict[str, str] = {
    **LINUX_MARKERS,
    "os_name": "nt",
    "platform_machine": "AMD64",
    "platform_release": "11",
    "platform_system": "Windows",
    "platform_version": "10.0.22631",
    "sys_platform": "win32",
}

WINDOWS_TAGS: tuple[str, ...] = (
    "cp312-cp312-win_amd64",
    "cp312-abi3-win_amd64",
    "cp312-none-win_amd64",
    "py3-none-win_amd64",
    "cp312-none-any",
    "py3-none-any",
)

# Bytes standing in for the locked files of the sample documents.
ARTIFACTS: dict[str, bytes] = {
    "requests-2.31.0-py3-none-any.whl": b"requests 2.31.0 wheel",
    "requests-2.31.0.tar.gz": b"requests 2.31.0 sdist",
    "numpy-1.26.4-cp312-cp312-manylinux_2_17_x86_64.whl": b"numpy linux wheel",
    "numpy-1.26.4-cp312-cp312-win_amd64.whl": b"numpy windows wheel",
    "numpy-1.26.4.tar.gz": b"numpy sdist",
    "pywin32-306-cp312-cp312-win_amd64.whl": b"pywin32 wheel",
    "legacy-1.0.tar.gz": b"legacy sdist",
    "setuptools-69.0.0-py3-none-any.whl": b"setuptools wheel",
}


# ---------------------------------------------------------------------------
# Environments
# ---------------------------------------------------------------------------


@pytest.fixture
def make_environment() -> Callable[..., EnvironmentDescriptor]:
    """Factory fixture: build an EnvironmentDescriptor, Linux by default."""

    def _factory(
        markers: dict[str, str] | None = None,
        python_version: str = "3.12.1",
        wheel_tags: tuple[str, ...] = LINUX_TAGS,
        **marker_overrides: str,
    ) -> EnvironmentDescriptor:
        values = dict(LINUX_MARKERS if markers is None else markers)
        values.update(marker_overrides)
        return EnvironmentDescriptor(
            marker_values=values,
            python_version=python_version,
            wheel_tags=wheel_tags,
        )

    return _factory


@pytest.fixture
def linux_env() -> EnvironmentDescriptor:
    return EnvironmentDescriptor(
        marker_values=LINUX_MARKERS, python_version="3.12.1", wheel_tags=LINUX_TAGS
    )


@pytest.fixture
def windows_env() -> EnvironmentDescriptor:
    return EnvironmentDescriptor(
        marker_values=WINDOWS_MARKERS, python_version="3.12.1", wheel_tags=WINDOWS_TAGS
    )


@pytest.fixture
def macos_env() -> EnvironmentDescriptor:
    """An environment none of the sample documents were locked for."""
    return EnvironmentDescriptor(
        marker_values={
            **LINUX_MARKERS,
            "platform_machine": "arm64",
            "platform_system": "Darwin",
            "sys_platform": "darwin",
        },
        python_version="3.12.1",
        wheel_tags=("cp312-cp312-macosx_14_0_arm64", "py3-none-any"),
    )


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------


@pytest.fixture
def hashes() -> dict[str, str]:
    """sha256 of every sample artifact, by file name."""
    return {name: compute_digest(data) for name, data in ARTIFACTS.items()}


@pytest.fixture
def wheelhouse(tmp_path: Path) -> Path:
    """A directory holding every sample artifact."""
    root = tmp_path / "wheelhouse"
    root.mkdir()
    for name, data in ARTIFACTS.items():
        (root / name).write_bytes(data)
    return root


@pytest.fixture
def artifact_store(tmp_path: Path) -> ContentAddressedStore:
    """Provide a fresh ContentAddressedStore in a temp directory."""
    return ContentAddressedStore(tmp_path / "cache")


# ---------------------------------------------------------------------------
# Lock documents
# ---------------------------------------------------------------------------


@pytest.fixture
def per_file_text(hashes: dict[str, str]) -> str:
    """Per-file locking for a Linux and a Windows CPython 3.12 environment."""
    return f"""
version = "1.0"
hash-algorithm = "sha256"
dependencies = ["requests", "numpy"]

[[file-lock]]
name = "cpython312-linux"
marker-values = {{ sys_platform = "linux", platform_machine = "x86_64" }}
wheel-tags = ["cp312-cp312-manylinux_2_17_x86_64"]

[[file-lock]]
name = "cpython312-windows"
marker-values = {{ sys_platform = "win32" }}
wheel-tags = ["cp312-cp312-win_amd64"]

[[package]]
name = "requests"
version = "2.31.0"
direct = true
files = [
    {{ name = "requests-2.31.0-py3-none-any.whl", lock-names = ["cpython312-linux", "cpython312-windows"], hash = "{hashes['requests-2.31.0-py3-none-any.whl']}" }},
    {{ name = "requests-2.31.0.tar.gz", hash = "{hashes['requests-2.31.0.tar.gz']}" }},
]

[[package]]
name = "numpy"
version = "1.26.4"
files = [
    {{ name = "numpy-1.26.4-cp312-cp312-manylinux_2_17_x86_64.whl", lock-names = ["cpython312-linux"], hash = "{hashes['numpy-1.26.4-cp312-cp312-manylinux_2_17_x86_64.whl']}" }},
    {{ name = "numpy-1.26.4-cp312-cp312-win_amd64.whl", lock-names = ["cpython312-windows"], hash = "{hashes['numpy-1.26.4-cp312-cp312-win_amd64.whl']}" }},
]
"""


@pytest.fixture
def package_text(hashes: dict[str, str]) -> str:
    """Package locking with a platform-only entry and mixed file kinds."""
    return f"""
version = "1.0"
hash-algorithm = "sha256"

[package-lock]
requires-python = ">=3.9"

[[package]]
name = "requests"
version = "2.31.0"
files = [
    {{ name = "requests-2.31.0.tar.gz", hash = "{hashes['requests-2.31.0.tar.gz']}" }},
    {{ name = "requests-2.31.0-py3-none-any.whl", hash = "{hashes['requests-2.31.0-py3-none-any.whl']}" }},
]

[[package]]
name = "numpy"
version = "1.26.4"
files = [
    {{ name = "numpy-1.26.4.tar.gz", hash = "{hashes['numpy-1.26.4.tar.gz']}" }},
    {{ name = "numpy-1.26.4-cp312-cp312-win_amd64.whl", hash = "{hashes['numpy-1.26.4-cp312-cp312-win_amd64.whl']}" }},
    {{ name = "numpy-1.26.4-cp312-cp312-manylinux_2_17_x86_64.whl", hash = "{hashes['numpy-1.26.4-cp312-cp312-manylinux_2_17_x86_64.whl']}" }},
]

[[package.build-requires]]
name = "setuptools"
version = "69.0.0"
files = [
    {{ name = "setuptools-69.0.0-py3-none-any.whl", hash = "{hashes['setuptools-69.0.0-py3-none-any.whl']}" }},
]

[[package]]
name = "pywin32"
version = "306"
marker = "sys_platform == 'win32'"
files = [
    {{ name = "pywin32-306-cp312-cp312-win_amd64.whl", hash = "{hashes['pywin32-306-cp312-cp312-win_amd64.whl']}" }},
]
"""


@pytest.fixture
def per_file_doc(per_file_text: str) -> LockDocument:
    return parse(per_file_text)


@pytest.fixture
def package_doc(package_text: str) -> LockDocument:
    return parse(package_text)


@pytest.fixture
def write_lock(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture: write TOML text to a lock file and return its path."""

    def _factory(text: str, name: str = "pylock.toml") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _factory
