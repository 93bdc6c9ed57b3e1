"""
Baseline: mirror the mutable target into the working tree.

Used once after setup to seed the history with the target's current
content under the ``v0-init`` label. Running it again re-syncs the
working tree from the target without relabelling.
"""

from __future__ import annotations

import logging

from themesafe.core.history.models import LabelKind
from themesafe.core.services.base import BaseService
from themesafe.core.services.models import BaselineResult, BatchOutcome
from themesafe.core.services.transfer import failure_for
from themesafe.core.store.exceptions import NotFoundError, StoreError
from themesafe.core.store.models import Item
from themesafe.core.store.pacing import poll_until

logger = logging.getLogger(__name__)

INIT_LABEL = "v0-init"


class BaselineService(BaseService):
    """Downloads the mutable target and records it as the history baseline."""

    ready_attempts = 30
    ready_delay = 2.0

    def wait_until_ready(self) -> bool:
        """Poll until the mutable target is previewable (bounded)."""
        target_id = self.config.mutable_target_id

        def previewable() -> bool:
            try:
                return self.store.get_target_info(target_id).previewable
            except StoreError as e:
                if e.fatal:
                    raise
                logger.warning("Readiness check for target %s failed: %s", target_id, e)
                return False

        return poll_until(
            previewable,
            max_attempts=self.ready_attempts,
            delay=self.ready_delay,
        )

    def run(self) -> BaselineResult:
        """
        Replace the working tree with the mutable target's content.

        Raises:
            BlockedError: If the mutable target is not SAFE right now
            LockHeldError: If another run holds the operation lock
            StoreError: If the item listing fails or a fatal error occurs
        """
        target_id = self.config.mutable_target_id
        with self._locked():
            guard_result = self._require_safe(target_id)
            result = BaselineResult(warnings=list(guard_result.warnings))

            result.target_ready = self.wait_until_ready()
            if not result.target_ready:
                result.warnings.append(
                    f"Target {target_id} is still processing; the download may be incomplete."
                )

            self._ensure_history()
            items, result.downloads = self._download(target_id)

            self.history.clear_working_tree()
            for item in items:
                self.history.write_file(item.key, item.content)

            if self.history.label_exists(INIT_LABEL):
                result.checkpoint = self.history.snapshot(f"Sync from target {target_id}")
            else:
                result.checkpoint = self.history.snapshot(
                    f"Initial snapshot of target {target_id}"
                )
                result.label = self.history.label(
                    result.checkpoint,
                    INIT_LABEL,
                    LabelKind.INIT,
                    f"Initial state of target {target_id}",
                )
            for failure in result.downloads.failed:
                result.warnings.append(f"Could not download {failure.key}: {failure.error}")
            logger.info(
                "Baseline: %d downloaded, %d failed",
                result.downloads.success_count,
                result.downloads.failure_count,
            )
            return result

    def _download(self, target_id: int) -> tuple[list[Item], BatchOutcome]:
        outcome = BatchOutcome()
        items: list[Item] = []
        for ref in self.store.list_items(target_id):
            try:
                item = self.store.get_item(target_id, ref.key)
            except NotFoundError:
                logger.info("%s disappeared during download", ref.key)
                continue
            except StoreError as e:
                if e.fatal:
                    raise
                outcome.failed.append(failure_for(ref.key, e))
                continue
            items.append(item)
            outcome.succeeded.append(ref.key)
        return items, outcome
