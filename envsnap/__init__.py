"""envsnap: versioned snapshots of a project's environment files.

  - Group snapshots of every tracked file (``.env``, ``.env.local``, ...)
  - Content-addressed integrity checks with SHA-256
  - Line diffs against the previous snapshot or the live files
  - Tags, descriptions, retention pruning, zip export and import
  - Optional git commits, notification hooks and manifest plugins
"""

__version__ = "0.1.0"
__description__ = "Snapshot, diff and restore project environment files"

from envsnap.core.engine import SnapshotEngine
from envsnap.core.context import SnapshotContext
from envsnap.cli.app import app as cli

__all__ = ["SnapshotEngine", "SnapshotContext", "cli", "__version__"]
