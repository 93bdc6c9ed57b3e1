"""
Safety guard for remote writes.

Example:
    >>> from themesafe.core.guard import SafetyGuard, Verdict
    >>> result = SafetyGuard(client).check(target_id)
    >>> if result.verdict is not Verdict.SAFE:
    ...     raise SystemExit(1)
"""

from themesafe.core.guard.guard import SafetyGuard
from themesafe.core.guard.models import GuardResult, Verdict

__all__ = ["SafetyGuard", "GuardResult", "Verdict"]
