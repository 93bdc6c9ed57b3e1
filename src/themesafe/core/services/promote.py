"""
Promotion: copy the mutable working tree onto the protected target.

This is the only operation allowed to write to the protected target, and
only after the operator confirms. Before any protected write the current
protected content is saved as a ``pre-promote-<ts>`` label, so a bad
promotion can be undone with a rollback to that label.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from themesafe.core.config.models import ProjectConfig
from themesafe.core.guard.guard import SafetyGuard
from themesafe.core.history.models import LabelKind
from themesafe.core.history.store import HistoryStore
from themesafe.core.services.base import BaseService, Clock, local_now
from themesafe.core.services.exceptions import PromotionAbortedError, RoleChangedError
from themesafe.core.services.models import PromotionPlan, PromotionResult
from themesafe.core.services.transfer import upload_from_tree
from themesafe.core.store.backend import RemoteStore
from themesafe.core.store.exceptions import NotFoundError, StoreError
from themesafe.core.store.models import Item, TargetRole

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"

Confirm = Callable[[PromotionPlan], bool]


class PromotionService(BaseService):
    """
    Promotes the mutable target's working tree to the protected target.

    Example:
        >>> service = PromotionService(config, client, history, confirm=ask_operator)
        >>> result = service.promote()
        >>> result.restore_command
        'themesafe rollback --to pre-promote-20240610-141500 && themesafe promote'
    """

    def __init__(
        self,
        config: ProjectConfig,
        store: RemoteStore,
        history: HistoryStore,
        guard: SafetyGuard | None = None,
        *,
        lock_path: Path | None = None,
        clock: Clock = local_now,
        confirm: Confirm | None = None,
    ) -> None:
        super().__init__(config, store, history, guard, lock_path=lock_path, clock=clock)
        self.confirm = confirm

    def plan(self) -> PromotionPlan:
        """
        Verify both targets and describe the promotion.

        Raises:
            RoleChangedError: If the protected target is gone or no longer protected
            BlockedError: If the mutable target is not SAFE
        """
        protected_id = self.config.protected_target_id
        try:
            protected = self.store.get_target_info(protected_id)
        except NotFoundError as e:
            raise RoleChangedError(protected_id) from e
        if protected.role is not TargetRole.PROTECTED:
            raise RoleChangedError(protected_id, protected)

        source = self._require_safe(self.config.mutable_target_id)
        return PromotionPlan(
            source_target_id=self.config.mutable_target_id,
            source_name=source.target.name if source.target else self.config.mutable_target_name,
            protected_target_id=protected_id,
            protected_name=protected.name,
            warnings=list(source.warnings),
        )

    def promote(self, assume_yes: bool = False) -> PromotionResult:
        """
        Run the promotion.

        Args:
            assume_yes: Skip the confirmation callback

        Raises:
            RoleChangedError: If the protected target is no longer protected
            BlockedError: If either target cannot be verified
            PromotionAbortedError: If the operator declines, the working
                tree is empty, or the protected backup cannot be completed.
                Nothing has been written to the protected target.
            LockHeldError: If another run holds the operation lock
        """
        with self._locked():
            plan = self.plan()
            if not assume_yes and (self.confirm is None or not self.confirm(plan)):
                raise PromotionAbortedError("Promotion cancelled; no changes made", declined=True)

            self._ensure_history()
            # Confirmation may have taken a while; re-check right before writing.
            protected_id = self.config.protected_target_id
            live = self._require_safe(protected_id, allow_protected=True)
            if live.role is not TargetRole.PROTECTED:
                raise RoleChangedError(protected_id, live.target)

            pre_name = self._unused_label_name(
                lambda moment: f"pre-promote-{moment.strftime(TIMESTAMP_FORMAT)}"
            )
            promote_name = self._unused_label_name(
                lambda moment: f"promote-{moment.strftime(TIMESTAMP_FORMAT)}"
            )

            result = PromotionResult(plan=plan, warnings=[*plan.warnings, *live.warnings])

            dev_checkpoint = self.history.snapshot("Pre-promotion snapshot of working tree")
            dev_files = self.history.tracked_files(dev_checkpoint.sha)
            if not dev_files:
                raise PromotionAbortedError(
                    "Working tree is empty; nothing to promote. Run init-history first."
                )

            backup = self._download_protected(protected_id)

            self.history.clear_working_tree()
            for item in backup:
                self.history.write_file(item.key, item.content)
            backup_checkpoint = self.history.snapshot("Pre-promotion snapshot of live target")
            result.pre_promote_label = self.history.label(
                backup_checkpoint,
                pre_name,
                LabelKind.PRE_PROMOTE,
                f"Live target {protected_id} before promotion",
            )
            result.backup_items = len(backup)
            # Rollback resets dev to the live files; promoting again carries them back.
            result.restore_command = (
                f"themesafe rollback --to {result.pre_promote_label.name} && themesafe promote"
            )

            self.history.clear_working_tree()
            self.history.materialize(dev_checkpoint.sha)
            restored = self.history.snapshot("Restore working tree after live snapshot")

            result.uploads = upload_from_tree(self.store, self.history, protected_id, dev_files)
            if result.uploads.failure_count:
                result.warnings.append(
                    f"{result.uploads.failure_count} file(s) failed to upload; the live "
                    "target may now mix old and new files. Restore it with: "
                    f"{result.restore_command} (this also resets dev target "
                    f"{plan.source_target_id} to the live files, removing dev-only files from it)"
                )

            result.promote_label = self.history.label(
                restored,
                promote_name,
                LabelKind.PROMOTE,
                f"Promoted target {plan.source_target_id} to live target {protected_id}",
            )
            logger.info("Promotion complete: %s", result.summary())
            return result

    def _download_protected(self, protected_id: int) -> list[Item]:
        """Fetch every protected item, or abort if any cannot be saved."""
        items: list[Item] = []
        try:
            listing = self.store.list_items(protected_id)
        except StoreError as e:
            raise PromotionAbortedError(
                f"Could not list the live target ({e}); promotion aborted before any change"
            ) from e

        for ref in listing:
            try:
                items.append(self.store.get_item(protected_id, ref.key))
            except NotFoundError:
                logger.info("%s disappeared from the live target during backup", ref.key)
            except StoreError as e:
                raise PromotionAbortedError(
                    f"Could not back up {ref.key} from the live target ({e}); "
                    "promotion aborted before any change"
                ) from e
        logger.info("Backed up %d items from live target %s", len(items), protected_id)
        return items


__all__ = ["PromotionService", "TIMESTAMP_FORMAT"]
