"""
Service layer for themesafe.

Services are the orchestrators that compose the store client, the history
store and the safety guard into the user-facing operations. They return
typed results and raise typed exceptions; presentation is the caller's job.

Modules:
    push: PushService uploads working-tree edits to the mutable target.
    rollback: RollbackService restores a label onto the mutable target.
    promote: PromotionService copies the working tree onto the protected target.
    report: ReportService answers read-only diff and history queries.
    baseline: BaselineService seeds the history from the mutable target.
    models: Result models shared by the services.
"""

from themesafe.core.services.baseline import INIT_LABEL, BaselineService
from themesafe.core.services.exceptions import (
    BlockedError,
    LockHeldError,
    NothingToPushError,
    PromotionAbortedError,
    RoleChangedError,
    ServiceError,
)
from themesafe.core.services.models import (
    BaselineResult,
    BatchOutcome,
    ItemFailure,
    PromotionPlan,
    PromotionResult,
    PushResult,
    RollbackResult,
)
from themesafe.core.services.promote import PromotionService
from themesafe.core.services.push import PushService
from themesafe.core.services.report import HistoryListing, ReportService
from themesafe.core.services.rollback import RollbackService

__all__ = [
    # Services
    "PushService",
    "RollbackService",
    "PromotionService",
    "ReportService",
    "BaselineService",
    "INIT_LABEL",
    # Models
    "BatchOutcome",
    "ItemFailure",
    "PushResult",
    "RollbackResult",
    "PromotionPlan",
    "PromotionResult",
    "BaselineResult",
    "HistoryListing",
    # Errors
    "ServiceError",
    "BlockedError",
    "RoleChangedError",
    "PromotionAbortedError",
    "NothingToPushError",
    "LockHeldError",
]
