"""
Local version history for the working tree.

Every state transition of the working tree is a Checkpoint (a git commit);
named, kind-tagged Labels (annotated tags) make them recoverable.

Example:
    >>> from themesafe.core.history import HistoryStore, LabelKind
    >>> history = HistoryStore(workspace.theme_dir)
    >>> checkpoint = history.snapshot("pre-push: header tweaks")
    >>> history.diff("v1-push", "v2-push").summary()
    '+0 added  ~1 modified  -0 deleted'
"""

from themesafe.core.history.exceptions import (
    GitError,
    HistoryError,
    LabelExistsError,
    UnknownReferenceError,
)
from themesafe.core.history.models import (
    ChangeKind,
    Checkpoint,
    DiffReport,
    FileChange,
    Label,
    LabelKind,
)
from themesafe.core.history.store import HistoryStore

__all__ = [
    "HistoryStore",
    "Checkpoint",
    "Label",
    "LabelKind",
    "ChangeKind",
    "FileChange",
    "DiffReport",
    "HistoryError",
    "GitError",
    "UnknownReferenceError",
    "LabelExistsError",
]
