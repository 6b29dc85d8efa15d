"""Lockforge: reproducible installs from pylock.toml lock files.

Reads a lock document, picks the exact artifacts it locks for a target
environment and verifies every one of them before anything is installed:
  - Per-file locking: one known environment per [[file-lock]] entry
  - Package locking: independent per-package selection with wheel ranking
  - Locked build requirements for sdists and VCS checkouts
  - Hash verification with a content-addressed artifact cache
"""

__version__ = "0.1.0"
__description__ = "Lock file reader and install planner for pylock.toml"

from lockforge.core.installer import Installer
from lockforge.core.parser import parse
from lockforge.cli.app import app as cli

__all__ = ["Installer", "parse", "cli", "__version__"]
