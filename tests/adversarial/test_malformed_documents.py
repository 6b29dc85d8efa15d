"""Adversarial tests — hostile or broken lock documents fail before resolution."""

from __future__ import annotations

import pytest

from lockforge.core.errors import FormatVersionError, SchemaError
from lockforge.core.parser import parse

HEADER = """
version = "1.0"
hash-algorithm = "sha256"

[package-lock]
requires-python = ">=3.9"
"""


class TestHostileDocuments:
    @pytest.mark.parametrize(
        "file_name",
        ["../../etc/passwd", "/abs/demo-1.0.tar.gz", "dir\\\\demo-1.0.tar.gz"],
    )
    def test_path_like_file_names(self, file_name: str):
        text = HEADER + f"""
[[package]]
name = "demo"
version = "1.0"
files = [{{ name = "{file_name}" }}]
"""
        with pytest.raises(SchemaError):
            parse(text)

    @pytest.mark.parametrize(
        "marker",
        [
            "__import__('os').system('true')",
            "sys_platform == 'linux'; rm -rf /",
            "os.name == 'nt'",
            "sys_platform == 'linux' or",
        ],
    )
    def test_markers_are_not_evaluated_as_code(self, marker: str):
        text = HEADER + f"""
[[package]]
name = "demo"
version = "1.0"
marker = "{marker}"
files = [{{ name = "demo-1.0.tar.gz" }}]
"""
        with pytest.raises(SchemaError):
            parse(text)

    def test_version_as_number(self):
        with pytest.raises(FormatVersionError):
            parse(HEADER.replace('version = "1.0"', "version = 1.0", 1))

    def test_wrong_types(self):
        with pytest.raises(SchemaError):
            parse(HEADER + '\n[[package]]\nname = "demo"\nversion = "1.0"\nfiles = "demo-1.0.tar.gz"\n')

    def test_lock_name_reused_across_versions(self):
        text = """
version = "1.0"
hash-algorithm = "sha256"

[[file-lock]]
name = "linux"

[[package]]
name = "demo"
version = "1.0"
files = [{ name = "demo-1.0.tar.gz", lock-names = ["linux"] }]

[[package]]
name = "demo"
version = "2.0"
files = [{ name = "demo-2.0.tar.gz", lock-names = ["linux"] }]
"""
        with pytest.raises(SchemaError):
            parse(text)

    def test_nested_build_requires_invariants_checked(self):
        text = HEADER + """
[[package]]
name = "legacy"
version = "1.0"
files = [{ name = "legacy-1.0.tar.gz" }]

[[package.build-requires]]
name = "setuptools"
version = "69.0.0"
files = [{ name = "setuptools-69.0.0.tar.gz" }]

[[package.build-requires]]
name = "setuptools"
version = "69.0.0"
files = [{ name = "setuptools-69.0.0.zip" }]
"""
        with pytest.raises(SchemaError):
            parse(text)

    def test_nested_hash_length_checked(self):
        text = HEADER + """
[[package]]
name = "legacy"
version = "1.0"
files = [{ name = "legacy-1.0.tar.gz" }]

[[package.build-requires]]
name = "setuptools"
version = "69.0.0"
files = [{ name = "setuptools-69.0.0.tar.gz", hash = "abcd" }]
"""
        with pytest.raises(SchemaError):
            parse(text)
