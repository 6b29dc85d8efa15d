"""Installer configuration — env-driven.

Centralized settings using pydantic-settings.  Reads from a ``.env`` file
and ``LOCKFORGE_*`` environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class InstallerConfig(BaseSettings):
    """Installer settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export LOCKFORGE_LOG_LEVEL=DEBUG
        export LOCKFORGE_ONLY_BINARY=true
        export LOCKFORGE_WHEELHOUSE_PATH=/srv/wheels

    Or via .env file::

        LOCKFORGE_VERIFY_WORKERS=8
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LOCKFORGE_",
        env_file_encoding="utf-8",
    )

    log_level: str = "WARNING"

    # Resolution policy
    allow_adhoc_builds: bool = False
    only_binary: bool = False

    # Verification
    verify_hashes: bool = True
    verify_workers: int = 4

    # Storage paths
    artifact_cache_path: Path = Path(".lockforge/artifacts")
    wheelhouse_path: Path | None = None


# Module-level singleton, import as `from lockforge.config import config`
config = InstallerConfig()
