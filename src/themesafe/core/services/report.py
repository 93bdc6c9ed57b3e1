"""Read-only views over the history: diffs and label listings."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from themesafe.core.history.models import DiffReport, Label
from themesafe.core.history.store import HistoryStore

logger = logging.getLogger(__name__)


class HistoryListing(BaseModel):
    """Labels shown by ``history``, newest first."""

    labels: list[Label] = Field(default_factory=list)
    total: int = Field(default=0, description="Labels in the history, before the limit")
    head: str | None = Field(default=None, description="SHA of the latest checkpoint")

    @property
    def truncated(self) -> bool:
        return self.total > len(self.labels)


class ReportService:
    """
    Answers what changed, when, and under which label.

    Never touches the remote store, so it needs no config or lock.
    """

    def __init__(self, history: HistoryStore) -> None:
        self.history = history

    def diff_labels(self, ref_a: str, ref_b: str, stat_only: bool = False) -> DiffReport:
        """
        Per-file changes from ``ref_a`` to ``ref_b``.

        Raises:
            UnknownReferenceError: If either reference does not resolve
        """
        return self.history.diff(ref_a, ref_b, patch=not stat_only)

    def diff_uncommitted(self, stat_only: bool = False) -> DiffReport:
        """Working-tree changes since the latest checkpoint."""
        return self.history.diff_uncommitted(patch=not stat_only)

    def list_history(self, limit: int | None = 20) -> HistoryListing:
        """Labels newest first, at most ``limit`` of them (None for all)."""
        labels = self.history.list_labels()
        head = self.history.head() if self.history.is_initialized() else None
        shown = labels if limit is None else labels[:limit]
        return HistoryListing(labels=shown, total=len(labels), head=head.sha if head else None)
