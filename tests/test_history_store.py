"""
Tests for the git-backed HistoryStore.

Tests cover:
- Repository initialization and isolation
- Snapshots (including the unchanged no-op)
- Labels: kinds, ordering, immutability
- Materialize and working-tree helpers
- Structured diffs between labels and against the working tree
"""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from themesafe.core.history import (
    ChangeKind,
    GitError,
    HistoryStore,
    LabelExistsError,
    LabelKind,
    UnknownReferenceError,
)


def labelled(history: HistoryStore, name: str, files: dict[str, str]) -> None:
    for key, content in files.items():
        history.write_file(key, content)
    checkpoint = history.snapshot(f"state for {name}")
    history.label(checkpoint, name, LabelKind.infer(name), f"message for {name}")


class TestInitialization:
    """Tests for repository lifecycle."""

    def test_initialize_creates_repo(self, tmp_path: Path) -> None:
        history = HistoryStore(tmp_path / "theme")
        assert not history.is_initialized()

        history.initialize()

        assert history.is_initialized()
        assert history.head() is None

    def test_initialize_is_idempotent(self, history: HistoryStore) -> None:
        history.initialize()
        assert history.is_initialized()

    def test_uninitialized_store_never_uses_enclosing_repo(self, tmp_path: Path) -> None:
        """Commands in an uninitialized tree must not reach a parent repository."""
        subprocess.run(["git", "init", "-q"], cwd=tmp_path, check=True)
        history = HistoryStore(tmp_path / "theme")
        (tmp_path / "theme").mkdir()

        assert history.list_labels() == []
        assert history.head() is None
        with pytest.raises(UnknownReferenceError):
            history.get_label("v1-push")


class TestSnapshot:
    """Tests for snapshot."""

    def test_snapshot_records_files(self, history: HistoryStore) -> None:
        history.write_file("sections/header.liquid", "<header>")

        checkpoint = history.snapshot("first")

        assert checkpoint.message == "first"
        assert history.tracked_files() == ["sections/header.liquid"]

    def test_unchanged_tree_returns_current_checkpoint(self, history: HistoryStore) -> None:
        history.write_file("assets/a.css", "a")
        first = history.snapshot("first")

        second = history.snapshot("second")

        assert second.sha == first.sha

    def test_empty_first_snapshot_is_allowed(self, history: HistoryStore) -> None:
        checkpoint = history.snapshot("empty")
        assert history.tracked_files(checkpoint.sha) == []

    def test_has_changes(self, history: HistoryStore) -> None:
        history.write_file("assets/a.css", "a")
        history.snapshot("first")
        assert not history.has_changes()

        history.write_file("assets/a.css", "b")
        assert history.has_changes()


class TestLabels:
    """Tests for labels."""

    def test_label_kind_is_recorded(self, history: HistoryStore) -> None:
        history.write_file("assets/a.css", "a")
        checkpoint = history.snapshot("first")

        label = history.label(checkpoint, "custom-name", LabelKind.PUSH, "hello")

        assert label.kind is LabelKind.PUSH
        assert label.checkpoint_sha == checkpoint.sha
        assert label.message == "hello"
        assert history.get_label("custom-name").kind is LabelKind.PUSH

    def test_existing_label_is_never_moved(self, history: HistoryStore) -> None:
        labelled(history, "v1-push", {"assets/a.css": "a"})
        history.write_file("assets/a.css", "b")
        checkpoint = history.snapshot("second")

        with pytest.raises(LabelExistsError):
            history.label(checkpoint, "v1-push", LabelKind.PUSH, "again")

    def test_invalid_label_name(self, history: HistoryStore) -> None:
        checkpoint = history.snapshot("empty")
        with pytest.raises(GitError):
            history.label(checkpoint, "bad name..", LabelKind.OTHER, "")

    def test_list_labels_filter_and_limit(self, history: HistoryStore) -> None:
        labelled(history, "v0-init", {"assets/a.css": "0"})
        labelled(history, "v1-push", {"assets/a.css": "1"})
        labelled(history, "v2-push", {"assets/a.css": "2"})

        pushes = history.list_labels(kind=LabelKind.PUSH)
        assert {label.name for label in pushes} == {"v1-push", "v2-push"}
        assert len(history.list_labels(limit=2)) == 2
        assert len(history.list_labels()) == 3

    def test_labels_in_same_second_keep_creation_order(self, history: HistoryStore) -> None:
        """Newest first holds even when tag dates tie."""
        for name in ("v2-push", "v10-push", "v1-push"):
            labelled(history, name, {"assets/a.css": name})

        names = [label.name for label in history.list_labels()]

        assert names == ["v1-push", "v10-push", "v2-push"]

    def test_unknown_label(self, history: HistoryStore) -> None:
        with pytest.raises(UnknownReferenceError):
            history.get_label("nope")

    @pytest.mark.parametrize(
        ("name", "kind"),
        [
            ("v0-init", LabelKind.INIT),
            ("v12-push", LabelKind.PUSH),
            ("v3-push-rollback-1718031234", LabelKind.ROLLBACK),
            ("pre-promote-20240610-141500", LabelKind.PRE_PROMOTE),
            ("promote-20240610-141500", LabelKind.PROMOTE),
            ("release-candidate", LabelKind.OTHER),
        ],
    )
    def test_kind_inferred_from_name(self, name: str, kind: LabelKind) -> None:
        assert LabelKind.infer(name) is kind


class TestMaterialize:
    """Tests for materialize and working-tree helpers."""

    def test_materialize_restores_label_files(self, history: HistoryStore) -> None:
        labelled(history, "v1-push", {"assets/a.css": "one"})
        history.write_file("assets/a.css", "two")
        history.snapshot("second")

        files = history.materialize("v1-push")

        assert files == ["assets/a.css"]
        assert history.read_file("assets/a.css") == b"one"

    def test_materialize_leaves_extra_files(self, history: HistoryStore) -> None:
        """Reconciling extras is the caller's job."""
        labelled(history, "v1-push", {"assets/a.css": "one"})
        history.write_file("sections/new.liquid", "new")
        history.snapshot("second")

        history.materialize("v1-push")

        assert history.read_file("sections/new.liquid") == b"new"

    def test_materialize_unknown_reference(self, history: HistoryStore) -> None:
        with pytest.raises(UnknownReferenceError):
            history.materialize("v9-push")

    def test_remove_file_prunes_empty_dirs(self, history: HistoryStore) -> None:
        history.write_file("snippets/deep/x.liquid", "x")

        assert history.remove_file("snippets/deep/x.liquid")
        assert not (history.repo_dir / "snippets").exists()
        assert not history.remove_file("snippets/deep/x.liquid")

    def test_path_escape_rejected(self, history: HistoryStore) -> None:
        with pytest.raises(ValueError):
            history.write_file("../outside.txt", "x")
        with pytest.raises(ValueError):
            history.read_file(".git/config")

    def test_clear_working_tree_keeps_repo(self, history: HistoryStore) -> None:
        history.write_file("assets/a.css", "a")
        history.write_file("layout/theme.liquid", "t")

        history.clear_working_tree()

        assert history.working_files() == []
        assert history.is_initialized()

    def test_binary_round_trip(self, history: HistoryStore) -> None:
        data = bytes(range(256))
        history.write_file("assets/logo.png", data)
        assert history.read_file("assets/logo.png") == data


class TestDiff:
    """Tests for diff and diff_uncommitted."""

    def test_diff_classifies_changes(self, history: HistoryStore) -> None:
        labelled(history, "v1-push", {"assets/a.css": "a\n", "assets/b.css": "b\n"})
        history.remove_file("assets/b.css")
        history.write_file("assets/a.css", "a2\n")
        history.write_file("sections/c.liquid", "c\n")
        checkpoint = history.snapshot("second")
        history.label(checkpoint, "v2-push", LabelKind.PUSH, "")

        report = history.diff("v1-push", "v2-push")

        kinds = {change.path: change.kind for change in report.changes}
        assert kinds == {
            "assets/a.css": ChangeKind.MODIFIED,
            "assets/b.css": ChangeKind.DELETED,
            "sections/c.liquid": ChangeKind.ADDED,
        }
        assert report.added == 1
        assert report.modified == 1
        assert report.deleted == 1
        assert report.patch is None

    def test_diff_with_patch(self, history: HistoryStore) -> None:
        labelled(history, "v1-push", {"assets/a.css": "old\n"})
        labelled(history, "v2-push", {"assets/a.css": "new\n"})

        report = history.diff("v1-push", "v2-push", patch=True)

        assert report.patch is not None
        assert "+new" in report.patch
        assert report.changes[0].insertions == 1
        assert report.changes[0].deletions == 1

    def test_diff_unknown_reference(self, history: HistoryStore) -> None:
        labelled(history, "v1-push", {"assets/a.css": "a"})
        with pytest.raises(UnknownReferenceError):
            history.diff("v1-push", "v7-push")

    def test_diff_uncommitted_includes_untracked(self, history: HistoryStore) -> None:
        labelled(history, "v1-push", {"assets/a.css": "a\n"})
        history.write_file("assets/a.css", "changed\n")
        history.write_file("assets/new.css", "n\n")

        report = history.diff_uncommitted()

        kinds = {change.path: change.kind for change in report.changes}
        assert kinds == {
            "assets/a.css": ChangeKind.MODIFIED,
            "assets/new.css": ChangeKind.ADDED,
        }

    def test_diff_uncommitted_leaves_index_alone(self, history: HistoryStore) -> None:
        """Comparing against the working tree does not stage anything."""
        labelled(history, "v1-push", {"assets/a.css": "a\n"})
        history.write_file("assets/new.css", "n\n")

        history.diff_uncommitted()

        staged = subprocess.run(
            ["git", "diff", "--cached", "--name-only"],
            cwd=history.repo_dir,
            capture_output=True,
            text=True,
            check=True,
        ).stdout
        assert staged.strip() == ""

    def test_diff_uncommitted_before_first_checkpoint(self, history: HistoryStore) -> None:
        history.write_file("assets/a.css", "a\n")

        report = history.diff_uncommitted()

        assert [change.kind for change in report.changes] == [ChangeKind.ADDED]
