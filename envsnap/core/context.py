"""Explicit snapshot context: the resolved configuration of one project.

Every engine is handed a ``SnapshotContext`` instead of reading
configuration from module globals.  The context answers the three
questions the core asks of its configuration:

* which files are tracked (absolute paths),
* where the snapshot directory is,
* how many snapshots to keep, if any.
"""

from __future__ import annotations

from pathlib import Path

from envsnap.config import EnvSnapSettings, load_project_config
from envsnap.core.cache import MetadataCache
from envsnap.core.store import SnapshotStore
from envsnap.models.config import ProjectConfig


class SnapshotContext:
    """Project root + project config, resolved to absolute paths.

    Parameters
    ----------
    root:
        Project root; relative paths in the config resolve against it.
    config:
        The project configuration.
    settings:
        Process settings (worker count, cache TTL, timeouts).
    """

    def __init__(
        self,
        root: Path,
        config: ProjectConfig | None = None,
        settings: EnvSnapSettings | None = None,
    ) -> None:
        self.root = Path(root).expanduser().resolve()
        self.config = config or ProjectConfig()
        self.settings = settings or EnvSnapSettings(project_root=self.root)
        self._store: SnapshotStore | None = None

    @classmethod
    def from_settings(cls, settings: EnvSnapSettings) -> SnapshotContext:
        """Build a context by loading the project config named in *settings*."""
        root = settings.resolved_root
        config = load_project_config(root, settings.config_file)
        return cls(root, config, settings)

    # ------------------------------------------------------------------
    # Config provider
    # ------------------------------------------------------------------

    def resolve(self, path: str | Path) -> Path:
        path = Path(path).expanduser()
        return path if path.is_absolute() else self.root / path

    def tracked_files(self) -> list[Path]:
        """Absolute paths of every tracked file, in configured order."""
        return [self.resolve(name) for name in self.config.tracked_file_names]

    def live_path(self, base_name: str) -> Path:
        """Where the working copy of a captured file lives.

        Snapshots record base names only; the tracked path with that name
        wins, otherwise the file is looked up in the project root.
        """
        for path in self.tracked_files():
            if path.name == base_name:
                return path
        return self.root / base_name

    def snapshot_directory(self) -> Path:
        return self.resolve(self.config.snapshot_dir)

    def max_snapshots(self) -> int | None:
        return self.config.max_snapshots

    def plugins_directory(self) -> Path:
        return self.resolve(self.config.plugins_dir)

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    @property
    def store(self) -> SnapshotStore:
        """The project's snapshot store, created (with its directory) on first use."""
        if self._store is None:
            cache = None
            if self.settings.cache_ttl_seconds > 0:
                cache = MetadataCache(self.settings.cache_ttl_seconds)
            self._store = SnapshotStore(self.snapshot_directory(), cache=cache)
        return self._store
