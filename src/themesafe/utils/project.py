"""
Project root discovery utilities for themesafe.

A project root is the nearest directory (searching upward) that contains
a ``.themesafe/`` state directory.
"""

from pathlib import Path

PROJECT_ROOT_MARKER = ".themesafe"


def find_project_root(start: Path | None = None) -> Path | None:
    """
    Find the project root directory by searching upward for ``.themesafe/``.

    Args:
        start: Directory to start searching from. Defaults to current working directory.

    Returns:
        Path to the project root directory, or None if not found.

    Example:
        >>> find_project_root(Path("/shop/sections"))  # with /shop/.themesafe/
        PosixPath('/shop')
    """
    if start is None:
        start = Path.cwd()

    current = start.resolve()
    while True:
        if (current / PROJECT_ROOT_MARKER).is_dir():
            return current
        if current == current.parent:
            return None
        current = current.parent
