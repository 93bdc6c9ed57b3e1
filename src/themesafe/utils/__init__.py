"""Utility modules for themesafe."""

from themesafe.utils.project import find_project_root

__all__ = ["find_project_root"]
