"""
Push: upload working-tree edits to the mutable target.

Every push is bracketed by two checkpoints. The pre-push checkpoint holds
what the target contained for the pushed keys before the upload; the
post-push checkpoint holds what it contains afterwards and carries the
next ``v<N>-push`` label. Push is additive: keys are only ever created
or replaced, never deleted.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from themesafe.core.history.models import LabelKind
from themesafe.core.services.base import BaseService
from themesafe.core.services.exceptions import NothingToPushError
from themesafe.core.services.models import PushResult
from themesafe.core.services.transfer import fetch_into_tree, upload_from_tree
from themesafe.core.store.exceptions import StoreError
from themesafe.core.store.models import validate_key

logger = logging.getLogger(__name__)


class PushService(BaseService):
    """
    Uploads selected working-tree files to the mutable target.

    Example:
        >>> service = PushService(config, client, history, lock_path=ws.lock_path)
        >>> result = service.push(["sections/header.liquid"], "Tighten header spacing")
        >>> result.label.name
        'v3-push'
    """

    def next_version(self) -> int:
        """One more than the highest existing push number (1 if none)."""
        numbers = [
            label.push_number
            for label in self.history.list_labels(kind=LabelKind.PUSH)
            if label.push_number is not None
        ]
        return max(numbers, default=0) + 1

    def next_label_name(self) -> str:
        return f"v{self.next_version()}-push"

    def push(self, keys: Sequence[str], message: str | None = None) -> PushResult:
        """
        Push ``keys`` from the working tree to the mutable target.

        Args:
            keys: Item keys to upload, in order (duplicates are ignored)
            message: Label message (default: lists the keys)

        Returns:
            PushResult with per-key outcomes. ``label`` is None when no
            upload succeeded.

        Raises:
            NothingToPushError: If ``keys`` is empty
            ValueError: If a key is malformed
            BlockedError: If the mutable target is not SAFE right now
            LockHeldError: If another run holds the operation lock
        """
        ordered = list(dict.fromkeys(keys))
        if not ordered:
            raise NothingToPushError("No files given to push")
        for key in ordered:
            validate_key(key)
        message = message or f"Push: {' '.join(ordered)}"

        target_id = self.config.mutable_target_id
        with self._locked():
            self._ensure_history()
            guard_result = self._require_safe(target_id)
            result = PushResult(
                keys=ordered,
                message=message,
                preview_url=self.config.preview_url(target_id),
                warnings=list(guard_result.warnings),
            )

            # Hold the operator's edits while the tree is turned into a
            # mirror of the remote for the pre-push checkpoint.
            staged = {key: self.history.read_file(key) for key in ordered}

            try:
                fetched, _missing = fetch_into_tree(
                    self.store, self.history, target_id, ordered
                )
                for failure in fetched.failed:
                    result.warnings.append(
                        f"Could not save remote state of {failure.key} before push: "
                        f"{failure.error}"
                    )
                result.pre_checkpoint = self.history.snapshot(f"Pre-push snapshot: {message}")
            finally:
                self._restore(staged)

            result.uploads = upload_from_tree(self.store, self.history, target_id, ordered)
            if result.uploads.success_count == 0:
                logger.error("Push failed: no file uploaded; no label created")
                return result

            try:
                refetched, _missing = fetch_into_tree(
                    self.store, self.history, target_id, ordered
                )
            except StoreError as e:
                logger.error("Could not read back pushed files: %s", e)
                result.warnings.append(
                    f"Could not read back pushed files ({e}); the post-push checkpoint "
                    "records the local content that was uploaded."
                )
            else:
                for failure in refetched.failed:
                    result.warnings.append(
                        f"Could not read back {failure.key} after push: {failure.error}"
                    )
            result.post_checkpoint = self.history.snapshot(f"Post-push snapshot: {message}")

            # Unsent edits stay in the working tree for a retry.
            for failure in result.uploads.failed:
                self._restore({failure.key: staged.get(failure.key)})

            latest = self.history.list_labels(limit=1)
            result.previous_label = latest[0].name if latest else None
            result.label = self.history.label(
                result.post_checkpoint, self.next_label_name(), LabelKind.PUSH, message
            )
            logger.info("Push complete: %s", result.summary())
            return result

    def _restore(self, staged: dict[str, bytes | None]) -> None:
        """Put the operator's files back; keys with no local file stay absent."""
        for key, data in staged.items():
            if data is None:
                self.history.remove_file(key)
            else:
                self.history.write_file(key, data)
