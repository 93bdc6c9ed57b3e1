"""Shared wiring for the orchestration services."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from datetime import datetime, timedelta
from pathlib import Path

from themesafe.core.config.models import ProjectConfig
from themesafe.core.guard.guard import SafetyGuard
from themesafe.core.guard.models import GuardResult
from themesafe.core.history.store import HistoryStore
from themesafe.core.lock import operation_lock
from themesafe.core.services.exceptions import BlockedError
from themesafe.core.store.backend import RemoteStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def local_now() -> datetime:
    return datetime.now()


class BaseService:
    """
    Holds the collaborators every orchestrator needs.

    Args:
        config: Project configuration (never mutated)
        store: Remote store backend
        history: Version history of the working tree
        guard: Safety guard (default: one built over ``store``)
        lock_path: Operation lock file; None disables locking
        clock: Source of label timestamps (local time)
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
    ) -> None:
        self.config = config
        self.store = store
        self.history = history
        self.guard = guard or SafetyGuard(store)
        self.lock_path = lock_path
        self.clock = clock

    def _locked(self) -> AbstractContextManager[None]:
        if self.lock_path is None:
            return nullcontext()
        return operation_lock(self.lock_path)

    def _unused_label_name(self, render: Callable[[datetime], str]) -> str:
        """
        Name a label from the clock, stepping forward a second while taken.

        Called before any remote write, so a run never ends with a name clash.
        """
        moment = self.clock()
        name = render(moment)
        while self.history.label_exists(name):
            moment += timedelta(seconds=1)
            name = render(moment)
        return name

    def _ensure_history(self) -> None:
        if not self.history.is_initialized():
            self.history.initialize()

    def _require_safe(self, target_id: int, *, allow_protected: bool = False) -> GuardResult:
        """
        Run a fresh safety check and refuse anything but SAFE.

        Raises:
            BlockedError: If the verdict is BLOCKED or UNRESOLVED
        """
        result = self.guard.check(target_id, allow_protected=allow_protected)
        if not result.is_safe:
            raise BlockedError(result)
        return result
