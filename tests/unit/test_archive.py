"""Tests for zip export and import of the snapshot directory."""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from envsnap.core.engine import SnapshotEngine
from envsnap.core.store import SnapshotStore
from envsnap.integrations.archive import ArchiveError, export_snapshots, import_snapshots


class TestExport:
    def test_exports_every_file(self, engine: SnapshotEngine, store: SnapshotStore, write_env, tmp_path: Path):
        write_env("A=1\n")
        write_env("B=1\n", ".env.local")
        group = engine.create_snapshot()
        output = tmp_path / "out" / "snaps.zip"

        names = export_snapshots(store, output)

        assert names == sorted([f"{group.id}.json", f"{group.id}__.env", f"{group.id}__.env.local"])
        with zipfile.ZipFile(output) as zf:
            assert sorted(zf.namelist()) == names
            assert zf.read(f"{group.id}__.env") == b"A=1\n"

    def test_empty_store(self, store: SnapshotStore, tmp_path: Path):
        with pytest.raises(ArchiveError):
            export_snapshots(store, tmp_path / "x.zip")


class TestImport:
    def test_round_trip_into_empty_store(
        self, engine: SnapshotEngine, store: SnapshotStore, write_env, tmp_path: Path
    ):
        write_env("A=1\n")
        group = engine.create_snapshot()
        archive = tmp_path / "snaps.zip"
        export_snapshots(store, archive)

        target = SnapshotStore(tmp_path / "other")
        imported, skipped = import_snapshots(target, archive)

        assert skipped == []
        assert len(imported) == 2
        assert target.read_metadata(group.id) == group
        assert target.read_artifact(group.id, ".env") == b"A=1\n"

    def test_existing_files_are_not_overwritten(self, store: SnapshotStore, tmp_path: Path):
        store.write_artifact("env-1", ".env", b"local\n")
        archive = tmp_path / "in.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("env-1__.env", b"remote\n")
            zf.writestr("env-2__.env", b"new\n")

        imported, skipped = import_snapshots(store, archive)

        assert imported == ["env-2__.env"]
        assert skipped == ["env-1__.env"]
        assert store.read_artifact("env-1", ".env") == b"local\n"

    def test_unsafe_entries_skipped(self, store: SnapshotStore, tmp_path: Path):
        archive = tmp_path / "evil.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("../escape.json", b"{}")
            zf.writestr("nested/env-1.json", b"{}")

        imported, skipped = import_snapshots(store, archive)

        assert imported == []
        assert len(skipped) == 2
        assert not (store.base_path.parent / "escape.json").exists()

    def test_missing_archive(self, store: SnapshotStore, tmp_path: Path):
        with pytest.raises(ArchiveError):
            import_snapshots(store, tmp_path / "absent.zip")

    def test_not_a_zip(self, store: SnapshotStore, tmp_path: Path):
        bogus = tmp_path / "bogus.zip"
        bogus.write_text("plain text")
        with pytest.raises(ArchiveError):
            import_snapshots(store, bogus)
