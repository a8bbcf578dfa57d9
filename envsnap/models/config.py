"""Project configuration model: the contents of ``env-snap.config.json``.

Keys are camelCase on disk (``snapshotDir``, ``maxSnapshots``, ...) and
snake_case in Python.  Unknown keys are ignored so configs written for
newer versions still load.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_SNAPSHOT_DIR = ".env-snapshots"
DEFAULT_ENV_FILE = ".env"
DEFAULT_PLUGINS_DIR = "env-snap-plugins"


class HookType(str, Enum):
    """Kinds of post-snapshot notification hooks."""

    SHELL = "shell"
    WEBHOOK = "webhook"
    SLACK = "slack"
    DISCORD = "discord"
    TEAMS = "teams"


class HookConfig(BaseModel):
    """A single notification hook declared under ``hooks``.

    Which fields are meaningful depends on ``type``:

    * ``shell``: ``command``
    * ``webhook``: ``url`` and optional JSON ``body``
    * ``slack``: ``webhook`` and ``message``
    * ``discord``: ``webhook`` and ``content``
    * ``teams``: ``webhook`` and ``text``

    Every string may contain ``$SNAPSHOT_ID``, ``$USER`` and ``$HOST``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: HookType
    command: str | None = None
    url: str | None = None
    webhook: str | None = None
    body: dict[str, Any] | None = None
    message: str | None = None
    content: str | None = None
    text: str | None = None


class ProjectConfig(BaseModel):
    """Per-project snapshot configuration."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    snapshot_dir: str = DEFAULT_SNAPSHOT_DIR
    files: list[str] = Field(default_factory=list)
    env_file: str | None = None
    max_snapshots: int | None = None

    # Git integration
    auto_git_commit: bool = False
    auto_push: bool = False
    branch: str | None = None
    tag: bool = False
    commit_hooks: list[str] = Field(default_factory=list)

    hooks: list[HookConfig] = Field(default_factory=list)
    plugins_dir: str = DEFAULT_PLUGINS_DIR

    @field_validator("max_snapshots")
    @classmethod
    def _positive(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("maxSnapshots must be >= 1")
        return value

    @property
    def tracked_file_names(self) -> list[str]:
        """Configured tracked paths, as written in the config.

        ``files`` wins over ``envFile``; with neither, ``.env`` is tracked.
        """
        if self.files:
            return list(self.files)
        if self.env_file:
            return [self.env_file]
        return [DEFAULT_ENV_FILE]

    @property
    def git_enabled(self) -> bool:
        """Whether any post-snapshot git action is configured."""
        return bool(
            self.auto_git_commit
            or self.auto_push
            or self.branch
            or self.tag
            or self.commit_hooks
        )
