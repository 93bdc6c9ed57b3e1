"""
Rollback: restore a labelled checkpoint onto the mutable target.

The label's own file set decides what the target should hold afterwards.
Files in that set are uploaded; items on the target outside it are
deleted when the pre-rollback checkpoint holds them, and otherwise kept
with a warning, so every deletion can be undone. Rollback is itself
recorded, so it can be undone by rolling back to the pre-rollback
checkpoint.
"""

from __future__ import annotations

import logging

from themesafe.core.history.models import Label, LabelKind
from themesafe.core.services.base import BaseService
from themesafe.core.services.models import RollbackResult
from themesafe.core.services.transfer import run_batch, upload_from_tree
from themesafe.core.store.exceptions import NotFoundError, StoreError

logger = logging.getLogger(__name__)


class RollbackService(BaseService):
    """
    Restores the mutable target to the state recorded under a label.

    Example:
        >>> service = RollbackService(config, client, history)
        >>> [label.name for label in service.list_versions(limit=3)]
        ['v3-push', 'v2-push', 'v1-push']
        >>> service.rollback("v2-push").label.name
        'v2-push-rollback-1718031234'
    """

    def list_versions(self, limit: int | None = 20) -> list[Label]:
        """Labels available as rollback targets, newest first."""
        return self.history.list_labels(limit=limit)

    def rollback(self, label_name: str) -> RollbackResult:
        """
        Make the mutable target match the checkpoint behind ``label_name``.

        Raises:
            UnknownReferenceError: If the label does not exist
            BlockedError: If the mutable target is not SAFE right now
            LockHeldError: If another run holds the operation lock
        """
        target_id = self.config.mutable_target_id
        with self._locked():
            target_label = self.history.get_label(label_name)
            guard_result = self._require_safe(target_id)
            result = RollbackResult(
                target_label=target_label,
                preview_url=self.config.preview_url(target_id),
                warnings=list(guard_result.warnings),
            )

            rollback_name = self._unused_label_name(
                lambda moment: f"{label_name}-rollback-{int(moment.timestamp())}"
            )
            latest = self.history.list_labels(limit=1)
            result.previous_label = latest[0].name if latest else None
            result.pre_checkpoint = self.history.snapshot(
                f"Pre-rollback snapshot (before rolling back to {label_name})"
            )
            known = set(self.history.tracked_files(result.pre_checkpoint.sha))

            files = self.history.materialize(target_label.checkpoint_sha)
            wanted = set(files)
            for path in self.history.working_files():
                if path not in wanted:
                    self.history.remove_file(path)
            result.restored_files = files

            result.uploads = upload_from_tree(self.store, self.history, target_id, files)

            try:
                remote_keys = [ref.key for ref in self.store.list_items(target_id)]
            except StoreError as e:
                logger.error("Could not list target items; skipping removal of extras: %s", e)
                result.reconcile_skipped = True
                result.warnings.append(
                    f"Could not list items on the target ({e}); items added after "
                    f"{label_name} were not removed."
                )
            else:
                extras = sorted(key for key in remote_keys if key not in wanted)
                # Only delete what the pre-rollback checkpoint can restore
                result.untracked = [key for key in extras if key not in known]
                if result.untracked:
                    logger.warning("Keeping items no checkpoint holds: %s", result.untracked)
                    result.warnings.append(
                        f"Kept {len(result.untracked)} item(s) on the target that are not in "
                        f"the history: {', '.join(result.untracked)}. Run init-history to "
                        "record them."
                    )
                extras = [key for key in extras if key in known]
                result.deletions = run_batch(
                    extras, lambda key: self._delete(target_id, key), "delete"
                )

            result.post_checkpoint = self.history.snapshot(f"Rollback to {label_name}")
            result.label = self.history.label(
                result.post_checkpoint,
                rollback_name,
                LabelKind.ROLLBACK,
                f"Rolled back to {label_name}",
            )
            logger.info("Rollback complete: %s", result.summary())
            return result

    def _delete(self, target_id: int, key: str) -> None:
        try:
            self.store.delete_item(target_id, key)
        except NotFoundError:
            logger.debug("%s already gone from target %s", key, target_id)
