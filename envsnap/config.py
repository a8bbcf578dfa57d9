"""Runtime configuration: env-driven settings plus the project config file.

Two layers:

* ``EnvSnapSettings``: process-level knobs (log level, worker count,
  cache TTL, ...) read from ``ENVSNAP_*`` environment variables or an
  optional ``.envsnap.env`` file via pydantic-settings.
* ``ProjectConfig``: what to snapshot and where, read from
  ``env-snap.config.json`` in the project root by ``load_project_config``.

Neither is a module-level singleton; callers build a ``SnapshotContext``
from them and pass it explicitly.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from envsnap.models.config import ProjectConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "env-snap.config.json"


class ConfigurationError(RuntimeError):
    """Raised when the project configuration cannot drive a snapshot."""


class EnvSnapSettings(BaseSettings):
    """Process settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export ENVSNAP_LOG_LEVEL=DEBUG
        export ENVSNAP_PROJECT_ROOT=/srv/app
        export ENVSNAP_CAPTURE_WORKERS=8
    """

    model_config = SettingsConfigDict(
        env_file=".envsnap.env",
        env_prefix="ENVSNAP_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "WARNING"
    project_root: Path = Path(".")
    config_file: str = DEFAULT_CONFIG_FILE

    # Capture
    capture_workers: int = 4

    # Optional metadata read-through cache; 0 disables it
    cache_ttl_seconds: float = 0.0

    # Integrations
    webhook_timeout_seconds: float = 10.0
    watch_interval_seconds: float = 1.0

    @property
    def resolved_root(self) -> Path:
        return self.project_root.expanduser().resolve()


def load_project_config(
    root: Path, filename: str = DEFAULT_CONFIG_FILE
) -> ProjectConfig:
    """Load ``env-snap.config.json`` from *root*.

    A missing file yields the defaults.  A file that exists but cannot be
    parsed raises ``ConfigurationError`` rather than silently snapshotting
    the wrong files.
    """
    path = Path(root) / filename
    if not path.exists():
        logger.debug("No project config at %s, using defaults", path)
        return ProjectConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")

    try:
        config = ProjectConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid project config {path}: {exc}") from exc

    logger.debug("Loaded project config from %s", path)
    return config
