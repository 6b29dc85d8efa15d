"""Host environment detection and environment descriptor files."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from lockforge.core.errors import LockFileNotFoundError, SchemaError
from lockforge.core.parser import describe_errors
from lockforge.models.environment import EnvironmentDescriptor

logger = logging.getLogger(__name__)


def detect_environment() -> EnvironmentDescriptor:
    """Describe the running interpreter."""
    environment = EnvironmentDescriptor.from_host()
    logger.debug(
        "Detected Python %s with %d supported wheel tags",
        environment.python_version,
        len(environment.wheel_tags),
    )
    return environment


def load_environment(path: Path) -> EnvironmentDescriptor:
    """Read an environment descriptor from a JSON file.

    The file holds ``marker_values``, ``python_version`` and an ordered
    ``wheel_tags`` list, the same shape ``lockforge env`` prints.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise LockFileNotFoundError(
            f"Environment file {path} does not exist.",
        ) from exc
    except UnicodeDecodeError as exc:
        raise SchemaError(
            f"Environment file {path} is not valid UTF-8.",
            context={"error": str(exc)},
        ) from exc
    except OSError as exc:
        raise LockFileNotFoundError(
            f"Environment file {path} could not be read.",
            context={"error": exc.strerror or str(exc)},
        ) from exc

    try:
        return EnvironmentDescriptor.model_validate(json.loads(raw))
    except json.JSONDecodeError as exc:
        raise SchemaError(
            f"Environment file {path} is not valid JSON.",
            context={"error": str(exc)},
        ) from exc
    except ValidationError as exc:
        raise SchemaError(
            f"Environment file {path} is not a valid environment descriptor.",
            context=describe_errors(exc),
        ) from exc


def dump_environment(environment: EnvironmentDescriptor) -> str:
    """Render *environment* as the JSON ``load_environment`` accepts."""
    return json.dumps(environment.model_dump(mode="json"), indent=2, sort_keys=True)
