"""Shared test fixtures for envsnap."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from envsnap.config import EnvSnapSettings
from envsnap.core.context import SnapshotContext
from envsnap.core.engine import SnapshotEngine
from envsnap.core.lifecycle import SnapshotLifecycle
from envsnap.core.store import SnapshotStore
from envsnap.core.verifier import IntegrityVerifier
from envsnap.models.config import ProjectConfig
from envsnap.models.snapshots import CaptureIdentity


class TickingClock:
    """UTC clock that advances one second on every call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Provide an empty project directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def write_env(project_root: Path) -> Callable[..., Path]:
    """Write a tracked file in the project root and return its path."""

    def _write(content: str, name: str = ".env") -> Path:
        path = project_root / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def project_config() -> ProjectConfig:
    """Track ``.env`` and ``.env.local``; no retention, no git."""
    return ProjectConfig(files=[".env", ".env.local"])


@pytest.fixture
def context(project_root: Path, project_config: ProjectConfig) -> SnapshotContext:
    """Provide a SnapshotContext for the temp project."""
    settings = EnvSnapSettings(project_root=project_root, capture_workers=2)
    return SnapshotContext(project_root, project_config, settings)


@pytest.fixture
def store(context: SnapshotContext) -> SnapshotStore:
    return context.store


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def engine(context: SnapshotContext, clock: TickingClock) -> SnapshotEngine:
    """Provide an engine with a fixed identity, a ticking clock and no integrations."""
    return SnapshotEngine(
        context,
        identity_provider=lambda: CaptureIdentity(user="tester", hostname="testbox"),
        clock=clock,
    )


@pytest.fixture
def lifecycle(store: SnapshotStore) -> SnapshotLifecycle:
    return SnapshotLifecycle(store)


@pytest.fixture
def verifier(store: SnapshotStore) -> IntegrityVerifier:
    return IntegrityVerifier(store)
