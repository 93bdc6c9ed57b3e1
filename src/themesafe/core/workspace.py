"""
On-disk layout of a themesafe project.

A project root holds:

    .themesafe/
    ├── config.json       # ProjectConfig (contains the credential)
    └── operation.lock    # held while a mutating command runs
    theme/                # working tree + git history of the mutable target

The history repository is a sibling of the state directory, so the
credential is never inside a version-controlled directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from themesafe.utils.project import find_project_root

STATE_DIR_NAME = ".themesafe"


@dataclass(frozen=True)
class Workspace:
    """Paths for one project's local state."""

    root: Path

    @property
    def state_dir(self) -> Path:
        return self.root / STATE_DIR_NAME

    @property
    def config_path(self) -> Path:
        return self.state_dir / "config.json"

    @property
    def lock_path(self) -> Path:
        return self.state_dir / "operation.lock"

    @property
    def theme_dir(self) -> Path:
        return self.root / "theme"

    @classmethod
    def discover(cls, start: Path | None = None) -> Workspace:
        """
        Locate the workspace for ``start`` (default: cwd).

        Falls back to ``start`` itself when no enclosing project is found,
        so callers get a well-defined (if empty) layout.
        """
        start = (start or Path.cwd()).resolve()
        return cls(root=find_project_root(start) or start)
