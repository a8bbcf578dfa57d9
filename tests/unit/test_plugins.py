"""Tests for the manifest plugin registry."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from envsnap.models.events import SnapshotEvent
from envsnap.plugins.registry import (
    MANIFEST_NAME,
    PluginError,
    PluginHookName,
    PluginRegistry,
)


class FakeRunner:
    def __init__(self, returncode: int = 0, stdout: str = "") -> None:
        self.calls: list[tuple[str, Path]] = []
        self.returncode = returncode
        self.stdout = stdout

    def __call__(self, command, **kwargs):
        self.calls.append((command, kwargs["cwd"]))
        return subprocess.CompletedProcess(command, self.returncode, stdout=self.stdout, stderr="err")


def _install(plugins_dir: Path, dirname: str, manifest: dict | str) -> Path:
    plugin_dir = plugins_dir / dirname
    plugin_dir.mkdir(parents=True)
    text = manifest if isinstance(manifest, str) else json.dumps(manifest)
    (plugin_dir / MANIFEST_NAME).write_text(text)
    return plugin_dir


HELLO = {
    "name": "hello",
    "version": "1.0.0",
    "description": "Says hello",
    "commands": [{"name": "greet", "run": "echo hello"}],
    "hooks": [{"name": "post-snapshot", "run": "echo made $SNAPSHOT_ID"}],
}


@pytest.fixture
def plugins_dir(tmp_path: Path) -> Path:
    return tmp_path / "env-snap-plugins"


class TestLoading:
    def test_missing_directory(self, plugins_dir: Path):
        assert PluginRegistry(plugins_dir).load() == []

    def test_loads_valid_and_skips_invalid(self, plugins_dir: Path):
        _install(plugins_dir, "a-hello", HELLO)
        _install(plugins_dir, "b-broken", "{not json")
        _install(plugins_dir, "c-nameless", {"version": "1"})
        (plugins_dir / "d-empty").mkdir()

        plugins = PluginRegistry(plugins_dir).load()

        assert [p.name for p in plugins] == ["hello"]
        assert plugins[0].path == plugins_dir / "a-hello"

    def test_duplicate_names_keep_first(self, plugins_dir: Path):
        _install(plugins_dir, "a", HELLO)
        _install(plugins_dir, "b", {**HELLO, "version": "2.0.0"})
        registry = PluginRegistry(plugins_dir)
        registry.load()
        assert registry.get("hello").version == "1.0.0"


class TestRunCommand:
    def test_runs_in_plugin_dir_with_quoted_args(self, plugins_dir: Path):
        plugin_dir = _install(plugins_dir, "hello", HELLO)
        runner = FakeRunner(stdout="hello\n")
        registry = PluginRegistry(plugins_dir, runner=runner)
        registry.load()

        output = registry.run_command("hello", "greet", ["world", "two words"])

        assert output == "hello\n"
        assert runner.calls == [("echo hello world 'two words'", plugin_dir)]

    def test_unknown_plugin_or_command(self, plugins_dir: Path):
        _install(plugins_dir, "hello", HELLO)
        registry = PluginRegistry(plugins_dir, runner=FakeRunner())
        registry.load()
        with pytest.raises(PluginError):
            registry.run_command("nope", "greet")
        with pytest.raises(PluginError):
            registry.run_command("hello", "nope")

    def test_failing_command_raises(self, plugins_dir: Path):
        _install(plugins_dir, "hello", HELLO)
        registry = PluginRegistry(plugins_dir, runner=FakeRunner(returncode=2))
        registry.load()
        with pytest.raises(PluginError, match="exited 2"):
            registry.run_command("hello", "greet")


class TestHooks:
    def test_post_snapshot_hook_substitutes_placeholders(self, plugins_dir: Path):
        _install(plugins_dir, "hello", HELLO)
        runner = FakeRunner()
        registry = PluginRegistry(plugins_dir, runner=runner)
        registry.load()

        succeeded = registry.run_hook(PluginHookName.POST_SNAPSHOT, SnapshotEvent(snapshot_id="env-1"))

        assert succeeded == ["hello"]
        assert runner.calls[0][0] == "echo made env-1"

    def test_failing_hook_is_not_raised(self, plugins_dir: Path):
        _install(plugins_dir, "hello", HELLO)
        registry = PluginRegistry(plugins_dir, runner=FakeRunner(returncode=1))
        registry.load()
        assert registry.run_hook(PluginHookName.POST_SNAPSHOT, SnapshotEvent(snapshot_id="env-1")) == []
