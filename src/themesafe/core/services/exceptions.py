"""
Typed exceptions for the orchestration services.

These signal that a run was refused or aborted before (or instead of)
writing. Per-item failures inside a batch are never raised; they are
reported in the result models.
"""

from __future__ import annotations

from themesafe.core.guard.models import GuardResult
from themesafe.core.lock import LockHeldError
from themesafe.core.store.models import TargetInfo


class ServiceError(Exception):
    """Base exception for orchestration errors."""


class BlockedError(ServiceError):
    """The safety guard did not return SAFE for the target."""

    def __init__(self, result: GuardResult) -> None:
        self.result = result
        reason = result.reason or result.verdict.value
        super().__init__(f"Safety check {result.verdict.value} for {result.describe()}: {reason}")


class RoleChangedError(ServiceError):
    """The configured protected target is no longer the protected one."""

    def __init__(self, target_id: int, info: TargetInfo | None = None) -> None:
        self.target_id = target_id
        self.info = info
        if info is None:
            detail = "could not be found"
        else:
            detail = f"is no longer the live target (role: {info.raw_role or info.role.value})"
        super().__init__(
            f"Target {target_id} {detail}. The configuration is out of date; "
            "refresh it before promoting."
        )


class PromotionAbortedError(ServiceError):
    """Promotion stopped before writing to the protected target."""

    def __init__(self, message: str, *, declined: bool = False) -> None:
        self.declined = declined
        super().__init__(message)


class NothingToPushError(ServiceError):
    """Push was called without any item keys."""


__all__ = [
    "ServiceError",
    "BlockedError",
    "RoleChangedError",
    "PromotionAbortedError",
    "NothingToPushError",
    "LockHeldError",
]
