"""Lock document parser and structural validator.

``parse()`` turns raw TOML text into a ``LockDocument`` or fails before any
resolution is attempted:

- ``FormatVersionError`` when ``version`` is not the supported value;
- ``SchemaError`` for bad TOML, missing keys, both or neither locking
  sections, and any violated uniqueness or exclusivity invariant.

Parsing is pure: the same text always yields an equal document.
"""

from __future__ import annotations

import logging
import tomllib
from typing import Any

from pydantic import ValidationError

from lockforge.core.errors import FormatVersionError, SchemaError
from lockforge.models.lock import SUPPORTED_LOCK_VERSION, LockDocument

logger = logging.getLogger(__name__)


def load_payload(raw_text: str) -> dict[str, Any]:
    """Decode TOML text into a plain table, without schema validation."""
    try:
        return tomllib.loads(raw_text)
    except tomllib.TOMLDecodeError as exc:
        raise SchemaError("Lock document is not valid TOML.", hint=str(exc)) from exc


def parse(raw_text: str) -> LockDocument:
    """Parse and validate a lock document."""
    return parse_payload(load_payload(raw_text))


def parse_payload(payload: dict[str, Any]) -> LockDocument:
    """Validate an already-decoded lock table."""
    if "version" not in payload:
        raise SchemaError("Lock document is missing the `version` key.")

    version = payload["version"]
    if version != SUPPORTED_LOCK_VERSION:
        raise FormatVersionError(
            f"Unsupported lock file version {version!r}.",
            hint=f"This installer only reads version {SUPPORTED_LOCK_VERSION!r}.",
        )

    try:
        document = LockDocument.model_validate(payload)
    except ValidationError as exc:
        problems = describe_errors(exc)
        raise SchemaError(
            f"Lock document failed validation ({len(problems)} problem(s)).",
            context=problems,
        ) from exc

    logger.debug(
        "Parsed lock document: mode=%s packages=%d hash=%s",
        document.locking_mode.value,
        len(document.packages),
        document.hash_algorithm,
    )
    return document


def describe_errors(exc: ValidationError) -> dict[str, str]:
    """Map dotted error locations to pydantic's messages."""
    problems: dict[str, str] = {}
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "<document>"
        message = error["msg"]
        if location in problems:
            problems[location] = f"{problems[location]}; {message}"
        else:
            problems[location] = message
    return problems
