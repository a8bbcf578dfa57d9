"""Tests for the diff engine: line diffs, directions, sensitivity flags."""

from __future__ import annotations

import pytest

from envsnap.core.context import SnapshotContext
from envsnap.core.differ import (
    SnapshotDiffer,
    diff_lines,
    filter_ignored,
    is_sensitive,
    line_key,
)
from envsnap.core.engine import SnapshotEngine
from envsnap.core.store import SnapshotNotFoundError
from envsnap.models.reports import DiffMode, DiffOp


class TestLineHelpers:
    def test_line_key(self):
        assert line_key("API_KEY=abc=def") == "API_KEY"
        assert line_key("  SPACED = 1") == "SPACED"
        assert line_key("# comment") == "# comment"

    @pytest.mark.parametrize(
        "line",
        ["DB_PASSWORD=x", "client_secret=y", "API_KEY=z", "GITHUB_TOKEN=t", "AUTH_URL=u"],
    )
    def test_sensitive_keys(self, line: str):
        assert is_sensitive(line)

    def test_value_does_not_make_line_sensitive(self):
        assert not is_sensitive("DEBUG=password123")

    def test_filter_ignored_matches_whole_key(self):
        lines = ["A=1", "AB=2", "B=3"]
        assert filter_ignored(lines, ["A", " "]) == ["AB=2", "B=3"]
        assert filter_ignored(lines, []) == lines


class TestDiffLines:
    def test_identical(self):
        result = diff_lines(["A=1"], ["A=1"])
        assert [d.op for d in result] == [DiffOp.UNCHANGED]

    def test_replace_lists_removed_then_added(self):
        result = diff_lines(["A=1", "B=2", "C=3"], ["A=1", "B=3", "C=3"])
        assert [(d.op, d.text) for d in result] == [
            (DiffOp.UNCHANGED, "A=1"),
            (DiffOp.REMOVED, "B=2"),
            (DiffOp.ADDED, "B=3"),
            (DiffOp.UNCHANGED, "C=3"),
        ]

    def test_insert_and_delete(self):
        result = diff_lines(["A=1", "B=2"], ["B=2", "C=3"])
        assert [(d.op, d.text) for d in result if d.op != DiffOp.UNCHANGED] == [
            (DiffOp.REMOVED, "A=1"),
            (DiffOp.ADDED, "C=3"),
        ]

    def test_sensitive_flag_is_advisory(self):
        result = diff_lines([], ["SECRET_TOKEN=abc"])
        assert result[0].sensitive
        assert result[0].text == "SECRET_TOKEN=abc"


class TestSnapshotDiffer:
    def test_previous_mode_compares_older_to_newer(
        self, context: SnapshotContext, engine: SnapshotEngine, write_env
    ):
        write_env("A=1\nB=2\n")
        first = engine.create_snapshot()
        write_env("A=1\nB=3\n")
        second = engine.create_snapshot(tracked_files=[".env"])

        (diff,) = SnapshotDiffer(context).diff(second.id, DiffMode.AGAINST_PREVIOUS)

        assert diff.file == ".env"
        assert first.id in diff.old_label
        assert second.id in diff.new_label
        assert [line.text for line in diff.removed] == ["B=2"]
        assert [line.text for line in diff.added] == ["B=3"]

    def test_first_snapshot_has_no_previous(
        self, context: SnapshotContext, engine: SnapshotEngine, write_env
    ):
        write_env("A=1\n")
        group = engine.create_snapshot(tracked_files=[".env"])
        (diff,) = SnapshotDiffer(context).diff(group.id, DiffMode.AGAINST_PREVIOUS)
        assert diff.no_previous
        assert diff.lines == []

    def test_current_mode_compares_snapshot_to_live(
        self, context: SnapshotContext, engine: SnapshotEngine, write_env
    ):
        write_env("A=1\n")
        group = engine.create_snapshot(tracked_files=[".env"])
        write_env("A=2\n")

        (diff,) = SnapshotDiffer(context).diff(group.id, DiffMode.AGAINST_CURRENT)

        assert [line.text for line in diff.removed] == ["A=1"]
        assert [line.text for line in diff.added] == ["A=2"]
        assert diff.new_label == ".env (current)"

    def test_current_mode_with_deleted_live_file(
        self, context: SnapshotContext, engine: SnapshotEngine, write_env
    ):
        env = write_env("A=1\n")
        group = engine.create_snapshot(tracked_files=[".env"])
        env.unlink()

        (diff,) = SnapshotDiffer(context).diff(group.id)

        assert [line.text for line in diff.removed] == ["A=1"]
        assert diff.added == []

    def test_ignore_removes_lines_before_diffing(
        self, context: SnapshotContext, engine: SnapshotEngine, write_env
    ):
        write_env("A=1\nAPI_KEY=old\n")
        group = engine.create_snapshot(tracked_files=[".env"])
        write_env("A=1\nAPI_KEY=new\n")

        (diff,) = SnapshotDiffer(context).diff(group.id, ignore=["API_KEY"])

        assert not diff.has_changes

    def test_sensitive_changes_reported(
        self, context: SnapshotContext, engine: SnapshotEngine, write_env
    ):
        write_env("A=1\nAPI_KEY=old\n")
        group = engine.create_snapshot(tracked_files=[".env"])
        write_env("A=1\nAPI_KEY=new\n")

        (diff,) = SnapshotDiffer(context).diff(group.id)

        assert [line.text for line in diff.sensitive_lines] == ["API_KEY=old", "API_KEY=new"]

    def test_missing_artifact_does_not_abort(
        self, context: SnapshotContext, engine: SnapshotEngine, write_env
    ):
        write_env("A=1\n")
        write_env("B=1\n", ".env.local")
        group = engine.create_snapshot()
        engine.store.delete_artifact(group.id, ".env")

        diffs = {d.file: d for d in SnapshotDiffer(context).diff(group.id)}

        assert diffs[".env"].missing_artifact
        assert not diffs[".env.local"].missing_artifact

    def test_previous_missing_artifact(
        self, context: SnapshotContext, engine: SnapshotEngine, write_env
    ):
        write_env("A=1\n")
        first = engine.create_snapshot(tracked_files=[".env"])
        second = engine.create_snapshot(tracked_files=[".env"])
        engine.store.delete_artifact(first.id, ".env")

        (diff,) = SnapshotDiffer(context).diff(second.id, DiffMode.AGAINST_PREVIOUS)

        assert diff.missing_artifact
        assert not diff.no_previous

    def test_unknown_snapshot(self, context: SnapshotContext):
        with pytest.raises(SnapshotNotFoundError):
            SnapshotDiffer(context).diff("env-1999-01-01T00-00-00-000000Z")

    def test_resolve_without_prefix(
        self, context: SnapshotContext, engine: SnapshotEngine, write_env
    ):
        write_env("A=1\n")
        group = engine.create_snapshot(tracked_files=[".env"])
        assert SnapshotDiffer(context).resolve_group(group.short_id) == group
