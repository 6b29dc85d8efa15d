"""Lock resolution error taxonomy.

Every failure surfaced by parsing, resolution or verification is a
``LockError`` subclass with a stable machine-readable ``code``.  None of
these are caught and downgraded inside lockforge: any raise aborts the
whole resolution pass.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum


class ErrorCode(str, Enum):
    """Stable error identifiers shown by the CLI and ``to_dict()``."""

    FORMAT_VERSION = "E_FORMAT_VERSION"
    SCHEMA = "E_SCHEMA"
    NOT_FOUND = "E_NOT_FOUND"
    PYTHON = "E_PYTHON"
    NO_ENVIRONMENT = "E_NO_ENVIRONMENT"
    AMBIGUOUS_ENVIRONMENT = "E_AMBIGUOUS_ENVIRONMENT"
    AMBIGUOUS_FILE = "E_AMBIGUOUS_FILE"
    NO_ARTIFACT = "E_NO_ARTIFACT"
    BUILD_REQUIREMENTS = "E_BUILD_REQUIREMENTS"
    HASH = "E_HASH"
    ARTIFACT_UNAVAILABLE = "E_ARTIFACT_UNAVAILABLE"
    MARKER = "E_MARKER"


class LockError(RuntimeError):
    """Base error carrying a code, an optional hint, and string context."""

    code: ErrorCode = ErrorCode.SCHEMA

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [self.message]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        for key, value in self.context.items():
            if value:
                parts.append(f"  {key}: {value}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code.value,
            "message": self.message,
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


# ---------------------------------------------------------------------------
# Document errors
# ---------------------------------------------------------------------------


class FormatVersionError(LockError):
    """Raised when the document's ``version`` is not the supported one."""

    code = ErrorCode.FORMAT_VERSION


class SchemaError(LockError):
    """Raised when a document is structurally invalid."""

    code = ErrorCode.SCHEMA


class LockFileNameError(SchemaError):
    """Raised when a path does not follow the lock file naming convention."""


class InvalidMarkerError(SchemaError):
    """Raised when a marker expression cannot be parsed."""


class LockFileNotFoundError(LockError):
    code = ErrorCode.NOT_FOUND


# ---------------------------------------------------------------------------
# Resolution errors
# ---------------------------------------------------------------------------


class IncompatiblePythonError(LockError):
    """Raised when the environment's Python is outside ``requires-python``."""

    code = ErrorCode.PYTHON


class NoCompatibleEnvironmentError(LockError):
    """Raised when no ``[[file-lock]]`` entry matches the environment."""

    code = ErrorCode.NO_ENVIRONMENT


class AmbiguousEnvironmentError(LockError):
    """Raised when more than one ``[[file-lock]]`` entry matches."""

    code = ErrorCode.AMBIGUOUS_ENVIRONMENT


class AmbiguousFileSelectionError(LockError):
    """Raised when several files or entries compete for one selection."""

    code = ErrorCode.AMBIGUOUS_FILE


class NoInstallableArtifactError(LockError):
    code = ErrorCode.NO_ARTIFACT


class MissingBuildRequirementsError(LockError):
    """Raised when a source artifact must be built without ``build-requires``
    and ad hoc build resolution was not allowed."""

    code = ErrorCode.BUILD_REQUIREMENTS


class MarkerEvaluationError(LockError):
    """Raised when a marker refers to a variable the environment lacks."""

    code = ErrorCode.MARKER


# ---------------------------------------------------------------------------
# Verification errors
# ---------------------------------------------------------------------------


class HashVerificationError(LockError):
    """Raised when an artifact's digest or commit cannot be verified.

    Never recoverable by relaxing verification.
    """

    code = ErrorCode.HASH


class ArtifactUnavailableError(LockError):
    """Raised when no artifact source can supply a selected file."""

    code = ErrorCode.ARTIFACT_UNAVAILABLE


__all__ = [
    "AmbiguousEnvironmentError",
    "AmbiguousFileSelectionError",
    "ArtifactUnavailableError",
    "ErrorCode",
    "FormatVersionError",
    "HashVerificationError",
    "IncompatiblePythonError",
    "InvalidMarkerError",
    "LockError",
    "LockFileNameError",
    "LockFileNotFoundError",
    "MarkerEvaluationError",
    "MissingBuildRequirementsError",
    "NoCompatibleEnvironmentError",
    "NoInstallableArtifactError",
    "SchemaError",
]
