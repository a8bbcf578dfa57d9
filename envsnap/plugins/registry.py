"""Plugin registry: manifest-declared commands and lifecycle hooks.

Plugins live in one directory each under the project's plugins directory
(``env-snap-plugins`` by default) and are described entirely by a
``plugin.json`` manifest::

    {
      "name": "example-plugin",
      "version": "1.0.0",
      "description": "Says hello",
      "commands": [{"name": "hello", "description": "...", "run": "echo hello"}],
      "hooks": [{"name": "post-snapshot", "run": "echo made $SNAPSHOT_ID"}]
    }

Commands and hooks are shell commands executed through one fixed
interface.  No plugin code is imported into the process.
"""

from __future__ import annotations

import json
import logging
import shlex
import subprocess
from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from envsnap.models.events import SnapshotEvent
from envsnap.notify._formatting import substitute

logger = logging.getLogger(__name__)

MANIFEST_NAME = "plugin.json"


class PluginHookName(str, Enum):
    """Lifecycle points a plugin can hook into."""

    POST_SNAPSHOT = "post-snapshot"


class PluginError(RuntimeError):
    """Raised for unknown plugins or commands, or a failing plugin command."""


class PluginCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    run: str


class PluginHook(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: PluginHookName
    run: str


class PluginManifest(BaseModel):
    """Immutable record of one installed plugin."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    description: str = ""
    commands: list[PluginCommand] = Field(default_factory=list)
    hooks: list[PluginHook] = Field(default_factory=list)
    path: Path | None = Field(default=None, exclude=True)

    def command(self, name: str) -> PluginCommand | None:
        for cmd in self.commands:
            if cmd.name == name:
                return cmd
        return None


class PluginRegistry:
    """Loads plugin manifests and invokes their commands and hooks.

    Parameters
    ----------
    plugins_dir:
        Directory containing one sub-directory per plugin.
    runner:
        ``subprocess.run``-compatible callable, injectable for tests.
    """

    def __init__(
        self,
        plugins_dir: Path,
        *,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self._plugins_dir = Path(plugins_dir)
        self._runner = runner
        self._plugins: dict[str, PluginManifest] = {}

    # -- Loading ------------------------------------------------------------

    def load(self) -> list[PluginManifest]:
        """(Re)load every valid manifest.  Invalid ones are skipped with a warning."""
        self._plugins.clear()
        if not self._plugins_dir.is_dir():
            logger.debug("No plugins directory at %s", self._plugins_dir)
            return []

        for plugin_dir in sorted(p for p in self._plugins_dir.iterdir() if p.is_dir()):
            manifest = self._load_manifest(plugin_dir)
            if manifest is None:
                continue
            if manifest.name in self._plugins:
                logger.warning(
                    "Duplicate plugin name %r in %s, keeping the first", manifest.name, plugin_dir
                )
                continue
            self._plugins[manifest.name] = manifest
            logger.info("Loaded plugin %s v%s", manifest.name, manifest.version)
        return self.list_plugins()

    def _load_manifest(self, plugin_dir: Path) -> PluginManifest | None:
        manifest_path = plugin_dir / MANIFEST_NAME
        if not manifest_path.exists():
            logger.warning("Plugin manifest not found in %s", plugin_dir)
            return None
        try:
            raw = json.loads(manifest_path.read_text(encoding="utf-8"))
            manifest = PluginManifest.model_validate(raw)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.warning("Invalid plugin manifest in %s: %s", plugin_dir, exc)
            return None
        return manifest.model_copy(update={"path": plugin_dir})

    # -- Lookup ---------------------------------------------------------------

    def get(self, name: str) -> PluginManifest | None:
        return self._plugins.get(name)

    def list_plugins(self) -> list[PluginManifest]:
        return sorted(self._plugins.values(), key=lambda p: p.name)

    # -- Invocation -----------------------------------------------------------

    def _run(self, command: str, cwd: Path | None) -> subprocess.CompletedProcess:
        return self._runner(
            command,
            shell=True,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )

    def run_command(self, plugin_name: str, command_name: str, args: Sequence[str] = ()) -> str:
        """Run a plugin command, appending *args* shell-quoted.  Returns stdout."""
        plugin = self.get(plugin_name)
        if plugin is None:
            raise PluginError(f"Plugin {plugin_name} not found")
        command = plugin.command(command_name)
        if command is None:
            raise PluginError(f"Command {command_name} not found in plugin {plugin_name}")

        line = " ".join([command.run, *(shlex.quote(a) for a in args)])
        result = self._run(line, plugin.path)
        if result.returncode != 0:
            raise PluginError(
                f"{plugin_name} {command_name} exited {result.returncode}: "
                f"{(result.stderr or '').strip()}"
            )
        return result.stdout or ""

    def run_hook(self, hook_name: PluginHookName, event: SnapshotEvent) -> list[str]:
        """Run *hook_name* in every plugin that declares it.

        Failures are logged and never raised.  Returns the names of the
        plugins whose hook succeeded.
        """
        succeeded: list[str] = []
        for plugin in self.list_plugins():
            for hook in plugin.hooks:
                if hook.name != hook_name:
                    continue
                try:
                    result = self._run(substitute(hook.run, event), plugin.path)
                except (subprocess.SubprocessError, OSError) as exc:
                    logger.error("Hook %s in plugin %s failed: %s", hook_name.value, plugin.name, exc)
                    continue
                if result.returncode != 0:
                    logger.error(
                        "Hook %s in plugin %s exited %d: %s",
                        hook_name.value,
                        plugin.name,
                        result.returncode,
                        (result.stderr or "").strip(),
                    )
                    continue
                succeeded.append(plugin.name)
        return succeeded
