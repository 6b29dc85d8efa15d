"""Lock file naming and discovery.

Installers recognise ``pylock.toml`` and ``pylock.<identifier>.toml``.
The fixed parts are lowercase and matched case-sensitively; the
identifier must be non-empty and free of dots and path separators.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from lockforge.core.errors import LockFileNameError, LockFileNotFoundError, SchemaError
from lockforge.core.parser import parse
from lockforge.models.lock import LockDocument

logger = logging.getLogger(__name__)

DEFAULT_LOCK_FILE_NAME = "pylock.toml"

_NAMED_LOCK_FILE_RE = re.compile(r"^pylock\.(?P<identifier>[^./\\]+)\.toml$")


def is_lock_file_name(name: str) -> bool:
    """Return True if *name* (a base name) follows the lock file convention."""
    return name == DEFAULT_LOCK_FILE_NAME or _NAMED_LOCK_FILE_RE.match(name) is not None


def lock_file_identifier(name: str) -> str | None:
    """Return the ``<identifier>`` of ``pylock.<identifier>.toml``, if any."""
    match = _NAMED_LOCK_FILE_RE.match(name)
    return match.group("identifier") if match else None


def find_lock_files(directory: str | Path = ".") -> list[Path]:
    """List recognised lock files directly inside *directory*, sorted by name."""
    root = Path(directory)
    if not root.is_dir():
        raise LockFileNotFoundError(
            "Lock file directory does not exist.",
            context={"path": str(root)},
        )
    found = sorted(
        (p for p in root.iterdir() if p.is_file() and is_lock_file_name(p.name)),
        key=lambda p: p.name,
    )
    logger.debug("Found %d lock file(s) in %s", len(found), root)
    return found


def read_lock_text(path: str | Path) -> str:
    """Return the text of a lock file, enforcing the naming convention."""
    lock_path = Path(path)
    if not is_lock_file_name(lock_path.name):
        raise LockFileNameError(
            f"{lock_path.name!r} is not a recognised lock file name.",
            hint="Name the file pylock.toml or pylock.<identifier>.toml.",
            context={"path": str(lock_path)},
        )
    try:
        return lock_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise LockFileNotFoundError(
            "Lock file does not exist.",
            context={"path": str(lock_path)},
        ) from exc
    except UnicodeDecodeError as exc:
        raise SchemaError(
            "Lock file is not valid UTF-8.",
            context={"path": str(lock_path), "error": str(exc)},
        ) from exc
    except OSError as exc:
        raise LockFileNotFoundError(
            "Lock file could not be read.",
            context={"path": str(lock_path), "error": exc.strerror or str(exc)},
        ) from exc


def read_lock_file(path: str | Path) -> LockDocument:
    """Read and parse a lock file, enforcing the naming convention."""
    return parse(read_lock_text(path))
