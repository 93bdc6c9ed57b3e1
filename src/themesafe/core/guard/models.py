"""Data models for the safety guard."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from themesafe.core.store.models import TargetInfo, TargetRole


class Verdict(str, Enum):
    """Outcome of a safety check. Only SAFE permits a write."""

    SAFE = "safe"
    BLOCKED = "blocked"
    UNRESOLVED = "unresolved"


class GuardResult(BaseModel):
    """
    Result of checking one target.

    ``target`` is the freshly fetched metadata, or None when the target
    could not be resolved. ``warnings`` carries messages the caller must
    surface to the operator (protected override, OTHER role).
    """

    model_config = ConfigDict(frozen=True)

    target_id: int
    verdict: Verdict
    target: TargetInfo | None = None
    reason: str = ""
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_safe(self) -> bool:
        return self.verdict is Verdict.SAFE

    @property
    def role(self) -> TargetRole | None:
        return self.target.role if self.target else None

    def describe(self) -> str:
        if self.target is None:
            return f"target {self.target_id}"
        return f"'{self.target.name}' ({self.target_id}, role: {self.target.raw_role or '?'})"
