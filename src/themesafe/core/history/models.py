"""
Data models for the version history store.

Checkpoints are commits in the history repository; labels are annotated
tags pointing at them. Both are immutable once created.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

PUSH_LABEL_RE = re.compile(r"^v(\d+)-push$")


class LabelKind(str, Enum):
    """What kind of state transition a label records."""

    INIT = "init"
    PUSH = "push"
    ROLLBACK = "rollback"
    PROMOTE = "promote"
    PRE_PROMOTE = "pre-promote"
    OTHER = "other"

    @classmethod
    def infer(cls, name: str) -> LabelKind:
        """Infer the kind of a label from the naming convention."""
        if name == "v0-init":
            return cls.INIT
        if PUSH_LABEL_RE.match(name):
            return cls.PUSH
        if "-rollback-" in name:
            return cls.ROLLBACK
        if name.startswith("pre-promote-"):
            return cls.PRE_PROMOTE
        if name.startswith("promote-"):
            return cls.PROMOTE
        return cls.OTHER


class Checkpoint(BaseModel):
    """An immutable snapshot of the working tree."""

    model_config = ConfigDict(frozen=True)

    sha: str = Field(description="Commit SHA")
    message: str = Field(default="", description="Commit subject")
    created_at: datetime | None = Field(default=None, description="Commit timestamp")

    @property
    def short_sha(self) -> str:
        return self.sha[:8]


class Label(BaseModel):
    """A named, kind-tagged pointer to exactly one checkpoint."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: LabelKind
    checkpoint_sha: str
    message: str = ""
    created_at: datetime | None = None

    @property
    def push_number(self) -> int | None:
        """N for a ``v<N>-push`` label, else None."""
        match = PUSH_LABEL_RE.match(self.name)
        return int(match.group(1)) if match else None


class ChangeKind(str, Enum):
    """Per-file classification in a diff."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"

    @classmethod
    def from_git_status(cls, status: str) -> ChangeKind:
        code = status[:1]
        if code == "A":
            return cls.ADDED
        if code == "D":
            return cls.DELETED
        return cls.MODIFIED


class FileChange(BaseModel):
    """One changed file between two states."""

    model_config = ConfigDict(frozen=True)

    path: str
    kind: ChangeKind
    insertions: int | None = Field(default=None, description="None for binary files")
    deletions: int | None = Field(default=None, description="None for binary files")


class DiffReport(BaseModel):
    """Structured diff between two states of the working tree."""

    base: str = Field(description="Reference the diff starts from")
    head: str = Field(description="Reference the diff ends at ('working tree' if uncommitted)")
    changes: list[FileChange] = Field(default_factory=list)
    patch: str | None = Field(default=None, description="Unified diff text, if requested")

    @property
    def is_empty(self) -> bool:
        return not self.changes

    def count(self, kind: ChangeKind) -> int:
        return sum(1 for change in self.changes if change.kind is kind)

    @property
    def added(self) -> int:
        return self.count(ChangeKind.ADDED)

    @property
    def modified(self) -> int:
        return self.count(ChangeKind.MODIFIED)

    @property
    def deleted(self) -> int:
        return self.count(ChangeKind.DELETED)

    def summary(self) -> str:
        if self.is_empty:
            return "No differences"
        return f"+{self.added} added  ~{self.modified} modified  -{self.deleted} deleted"
