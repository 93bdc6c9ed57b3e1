"""
themesafe - Safe theme sync

Push, roll back and promote store themes with a complete, restorable
version history and a guard against writing to the live theme.
"""

__version__ = "0.3.0"

# Re-export core models for convenience
from themesafe.core.config.models import ProjectConfig
from themesafe.core.store.models import Item, TargetRole

__all__ = ["ProjectConfig", "Item", "TargetRole", "__version__"]
