"""
Service layer data models.

Result models for push, rollback, promotion and baseline runs. Each
carries per-item outcomes so partial failures are always counted and
reported, never absorbed.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from themesafe.core.history.models import Checkpoint, Label


class ItemFailure(BaseModel):
    """One item that could not be transferred."""

    key: str = Field(description="Item key")
    error: str = Field(description="Human-readable cause")
    error_type: str = Field(default="", description="Exception class name, if any")


class BatchOutcome(BaseModel):
    """Per-key tally for one batch of remote calls."""

    succeeded: list[str] = Field(default_factory=list)
    failed: list[ItemFailure] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count

    @property
    def failed_keys(self) -> list[str]:
        return [failure.key for failure in self.failed]


class PushResult(BaseModel):
    """Result of a push to the mutable target."""

    keys: list[str] = Field(description="Keys requested, in order")
    message: str = Field(default="")
    uploads: BatchOutcome = Field(default_factory=BatchOutcome)
    pre_checkpoint: Checkpoint | None = Field(default=None)
    post_checkpoint: Checkpoint | None = Field(default=None)
    label: Label | None = Field(default=None, description="New v<N>-push label, if any")
    previous_label: str | None = Field(
        default=None, description="Newest label before this push, the undo point"
    )
    preview_url: str = Field(default="")
    warnings: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.uploads.success_count > 0

    @property
    def total_failure(self) -> bool:
        return self.uploads.success_count == 0

    def summary(self) -> str:
        if self.total_failure:
            return f"push failed: 0/{len(self.keys)} uploaded"
        parts = [f"{self.uploads.success_count}/{len(self.keys)} uploaded"]
        if self.uploads.failure_count:
            parts.append(f"{self.uploads.failure_count} failed")
        if self.label:
            parts.append(f"labelled {self.label.name}")
        return ", ".join(parts)


class RollbackResult(BaseModel):
    """Result of restoring a label onto the mutable target."""

    target_label: Label
    restored_files: list[str] = Field(default_factory=list)
    uploads: BatchOutcome = Field(default_factory=BatchOutcome)
    deletions: BatchOutcome = Field(default_factory=BatchOutcome)
    reconcile_skipped: bool = Field(
        default=False,
        description="True if the remote listing failed and no deletions were attempted",
    )
    untracked: list[str] = Field(
        default_factory=list,
        description="Remote items outside the label that no checkpoint holds; left in place",
    )
    pre_checkpoint: Checkpoint | None = Field(default=None)
    post_checkpoint: Checkpoint | None = Field(default=None)
    label: Label | None = Field(default=None, description="New <label>-rollback-<ts> label")
    previous_label: str | None = Field(
        default=None, description="Newest label before this rollback, the undo point"
    )
    preview_url: str = Field(default="")
    warnings: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return (
            self.uploads.failure_count == 0
            and self.deletions.failure_count == 0
            and not self.reconcile_skipped
        )

    def summary(self) -> str:
        parts = [
            f"restored {self.target_label.name}",
            f"{self.uploads.success_count} uploaded",
            f"{self.uploads.failure_count} failed",
            f"{self.deletions.success_count} removed",
        ]
        if self.deletions.failure_count:
            parts.append(f"{self.deletions.failure_count} removals failed")
        if self.reconcile_skipped:
            parts.append("reconciliation skipped")
        if self.untracked:
            parts.append(f"{len(self.untracked)} untracked kept")
        return ", ".join(parts)


class PromotionPlan(BaseModel):
    """What a promotion is about to do, shown to the operator for confirmation."""

    source_target_id: int
    source_name: str
    protected_target_id: int
    protected_name: str
    warnings: list[str] = Field(default_factory=list)


class PromotionResult(BaseModel):
    """Result of copying the mutable working tree onto the protected target."""

    plan: PromotionPlan
    backup_items: int = Field(default=0, description="Protected items saved before promotion")
    uploads: BatchOutcome = Field(default_factory=BatchOutcome)
    pre_promote_label: Label | None = Field(default=None)
    promote_label: Label | None = Field(default=None)
    restore_command: str = Field(default="")
    warnings: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.uploads.failure_count == 0

    @property
    def possibly_partial(self) -> bool:
        """True if the protected target may hold a mix of old and new files."""
        return self.uploads.failure_count > 0

    def summary(self) -> str:
        return (
            f"{self.uploads.success_count} uploaded, {self.uploads.failure_count} failed; "
            f"restore with: {self.restore_command}"
        )


class BaselineResult(BaseModel):
    """Result of mirroring the mutable target into the working tree."""

    downloads: BatchOutcome = Field(default_factory=BatchOutcome)
    checkpoint: Checkpoint | None = Field(default=None)
    label: Label | None = Field(default=None, description="v0-init, when newly created")
    target_ready: bool = Field(default=True)
    warnings: list[str] = Field(default_factory=list)
