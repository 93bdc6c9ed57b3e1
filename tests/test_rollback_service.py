"""
Tests for RollbackService.

Tests cover:
- Restoring a label's file set onto the mutable target
- Removing items added after the label
- Recording the rollback under its own label
- Listing and deletion failures
- Keeping remote items no checkpoint holds
"""

from __future__ import annotations

from datetime import datetime

import pytest

from themesafe.core.history import HistoryStore, LabelKind, UnknownReferenceError
from themesafe.core.services import BaselineService, BlockedError, RollbackService
from themesafe.core.store import NotFoundError, TransientError

V1 = {"assets/base.css": "one", "layout/theme.liquid": "<html>"}
V2 = {"assets/base.css": "two", "layout/theme.liquid": "<html>", "sections/new.liquid": "new"}


def record(history: HistoryStore, name: str, files: dict[str, str]) -> None:
    history.clear_working_tree()
    for key, content in files.items():
        history.write_file(key, content)
    checkpoint = history.snapshot(f"state {name}")
    history.label(checkpoint, name, LabelKind.infer(name), name)


@pytest.fixture
def service(config, store, history, clock) -> RollbackService:
    return RollbackService(config, store, history, clock=clock)


@pytest.fixture
def pushed_twice(store, history, config):
    """History holds v1-push and v2-push; the target holds the v2 state."""
    record(history, "v1-push", V1)
    record(history, "v2-push", V2)
    store.seed(config.mutable_target_id, V2)


class TestRollback:
    """Tests for a successful rollback."""

    def test_rollback_removes_item_added_later(self, service, store, history, pushed_twice) -> None:
        """v2 added sections/new.liquid; rolling back to v1 deletes it remotely."""
        result = service.rollback("v1-push")

        assert store.contents(2002) == V1
        assert result.deletions.succeeded == ["sections/new.liquid"]
        assert sorted(result.uploads.succeeded) == sorted(V1)
        assert result.success

    def test_working_tree_matches_label(self, service, history, pushed_twice) -> None:
        service.rollback("v1-push")

        assert history.working_files() == sorted(V1)
        assert history.read_file("assets/base.css") == b"one"

    def test_rollback_is_labelled(self, service, history, pushed_twice) -> None:
        expected_ts = int(datetime(2024, 6, 10, 14, 15, 0).timestamp())

        result = service.rollback("v1-push")

        assert result.label.name == f"v1-push-rollback-{expected_ts}"
        assert result.label.kind is LabelKind.ROLLBACK
        assert history.diff("v1-push", result.label.name).is_empty

    def test_pre_checkpoint_holds_state_before_rollback(
        self, service, history, pushed_twice
    ) -> None:
        result = service.rollback("v1-push")

        assert history.tracked_files(result.pre_checkpoint.sha) == sorted(V2)
        assert result.previous_label == "v2-push"

    def test_round_trip_restores_each_state(self, service, store, pushed_twice) -> None:
        """Rolling back to v1 then to v2 leaves the target exactly at v2."""
        service.rollback("v1-push")
        assert store.contents(2002) == V1

        service.rollback("v2-push")
        assert store.contents(2002) == V2

    def test_rollback_can_be_undone(self, service, store, pushed_twice) -> None:
        first = service.rollback("v1-push")

        service.rollback(first.previous_label)

        assert store.contents(2002) == V2

    def test_never_writes_protected_target(self, service, store, pushed_twice) -> None:
        service.rollback("v1-push")
        assert store.writes_to(1001) == []

    def test_item_already_gone_counts_as_deleted(self, service, store, pushed_twice) -> None:
        store.delete_errors["sections/new.liquid"] = NotFoundError("gone")

        result = service.rollback("v1-push")

        assert result.deletions.succeeded == ["sections/new.liquid"]
        assert result.success

    def test_list_versions(self, service, pushed_twice) -> None:
        names = [label.name for label in service.list_versions()]
        assert set(names) == {"v1-push", "v2-push"}
        assert len(service.list_versions(limit=1)) == 1


class TestRollbackFailures:
    """Tests for refused and partial rollbacks."""

    def test_unknown_label(self, service, store, pushed_twice) -> None:
        with pytest.raises(UnknownReferenceError):
            service.rollback("v9-push")
        assert store.writes == []

    def test_protected_role_blocks(self, service, store, history, pushed_twice) -> None:
        store.set_role(2002, "main")
        labels_before = history.list_labels()

        with pytest.raises(BlockedError):
            service.rollback("v1-push")

        assert store.writes == []
        assert history.list_labels() == labels_before

    def test_listing_failure_skips_reconciliation(self, service, store, pushed_twice) -> None:
        """Uploads still happen and the rollback is labelled, with a warning."""
        store.list_error = TransientError("timeout")

        result = service.rollback("v1-push")

        assert result.reconcile_skipped
        assert not result.success
        assert result.label is not None
        assert "sections/new.liquid" in store.contents(2002)
        assert any("not removed" in warning for warning in result.warnings)

    def test_deletion_failure_is_counted(self, service, store, pushed_twice) -> None:
        store.delete_errors["sections/new.liquid"] = TransientError("timeout")

        result = service.rollback("v1-push")

        assert result.deletions.failed_keys == ["sections/new.liquid"]
        assert not result.success
        assert result.label is not None

    def test_upload_failure_is_counted(self, service, store, pushed_twice) -> None:
        store.put_errors["assets/base.css"] = TransientError("timeout")

        result = service.rollback("v1-push")

        assert result.uploads.failed_keys == ["assets/base.css"]
        assert result.uploads.success_count == 1
        assert not result.success


class TestUntrackedItems:
    """Remote items that no checkpoint holds are never deleted."""

    def test_item_outside_history_is_kept(self, service, store, pushed_twice) -> None:
        store.seed(2002, {"assets/hand-made.css": "made in the admin"})

        result = service.rollback("v1-push")

        assert store.contents(2002)["assets/hand-made.css"] == "made in the admin"
        assert result.untracked == ["assets/hand-made.css"]
        assert result.deletions.succeeded == ["sections/new.liquid"]
        assert ("delete", 2002, "assets/hand-made.css") not in store.writes
        assert any("assets/hand-made.css" in warning for warning in result.warnings)

    def test_item_missed_by_baseline_survives_rollback_to_init(
        self, config, store, history, clock
    ) -> None:
        """A file the baseline could not download is not in v0-init and must survive."""
        store.seed(2002, {"assets/base.css": "body {}", "layout/theme.liquid": "<html>"})
        store.get_errors["layout/theme.liquid"] = TransientError("timeout")
        BaselineService(config, store, history, clock=clock).run()
        del store.get_errors["layout/theme.liquid"]

        result = RollbackService(config, store, history, clock=clock).rollback("v0-init")

        assert store.contents(2002)["layout/theme.liquid"] == "<html>"
        assert result.untracked == ["layout/theme.liquid"]
        assert store.writes_to(2002) == [("put", 2002, "assets/base.css")]

    def test_untracked_items_do_not_fail_the_rollback(
        self, service, store, pushed_twice
    ) -> None:
        store.seed(2002, {"snippets/app.liquid": "{% app %}"})

        result = service.rollback("v1-push")

        assert result.success
        assert "1 untracked kept" in result.summary()


class TestRollbackLabelNames:
    """Label names stay unique when the clock does not move."""

    def test_same_second_rollbacks_are_both_labelled(
        self, config, store, history, pushed_twice
    ) -> None:
        moment = datetime(2024, 6, 10, 14, 15, 0)
        service = RollbackService(config, store, history, clock=lambda: moment)

        first = service.rollback("v1-push")
        service.rollback("v2-push")
        third = service.rollback("v1-push")

        ts = int(moment.timestamp())
        assert first.label.name == f"v1-push-rollback-{ts}"
        assert third.label.name == f"v1-push-rollback-{ts + 1}"
        assert store.contents(2002) == V1
