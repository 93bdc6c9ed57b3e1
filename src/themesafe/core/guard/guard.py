"""
Role-based gate in front of every remote write.

The guard never trusts a cached role: each check issues a fresh
``get_target_info`` call and decides from the role the store reports right
now. Display names play no part in the decision.
"""

from __future__ import annotations

import logging

from themesafe.core.guard.models import GuardResult, Verdict
from themesafe.core.store.backend import RemoteStore
from themesafe.core.store.exceptions import NotFoundError, StoreError
from themesafe.core.store.models import TargetRole

logger = logging.getLogger(__name__)


class SafetyGuard:
    """
    Classifies remote targets as safe or blocked for writing.

    Example:
        >>> guard = SafetyGuard(store)
        >>> guard.check(config.mutable_target_id).verdict
        <Verdict.SAFE: 'safe'>
        >>> guard.check(config.protected_target_id).verdict
        <Verdict.BLOCKED: 'blocked'>
    """

    def __init__(self, store: RemoteStore) -> None:
        self.store = store

    def check(self, target_id: int, allow_protected: bool = False) -> GuardResult:
        """
        Decide whether ``target_id`` may be written to right now.

        Args:
            target_id: Target to check
            allow_protected: Explicit override for intentional writes to the
                protected target (promotion only)

        Returns:
            SAFE, BLOCKED (protected without override) or UNRESOLVED (the
            target could not be fetched). Callers must treat UNRESOLVED as
            unsafe.
        """
        try:
            info = self.store.get_target_info(target_id)
        except NotFoundError as e:
            logger.warning("Target %s not found: %s", target_id, e)
            return GuardResult(
                target_id=target_id,
                verdict=Verdict.UNRESOLVED,
                reason=f"Target {target_id} not found",
            )
        except StoreError as e:
            logger.warning("Could not verify target %s: %s", target_id, e)
            return GuardResult(
                target_id=target_id,
                verdict=Verdict.UNRESOLVED,
                reason=f"Could not verify target {target_id}: {e}",
            )

        if info.role is TargetRole.PROTECTED:
            if not allow_protected:
                logger.warning("Blocked write to protected target %s (%s)", info.id, info.name)
                return GuardResult(
                    target_id=target_id,
                    verdict=Verdict.BLOCKED,
                    target=info,
                    reason=(
                        f"Target '{info.name}' ({info.id}) is the live target. "
                        "Push to the dev target instead and promote when ready."
                    ),
                )
            warning = (
                f"Target '{info.name}' ({info.id}) is the LIVE target; "
                "proceeding because the protected override was given."
            )
            logger.warning(warning)
            return GuardResult(
                target_id=target_id,
                verdict=Verdict.SAFE,
                target=info,
                reason="protected override",
                warnings=[warning],
            )

        warnings: list[str] = []
        if info.role is TargetRole.OTHER:
            warnings.append(
                f"Target '{info.name}' ({info.id}) has role '{info.raw_role}'; "
                "treating it as mutable."
            )
            logger.warning(warnings[0])

        return GuardResult(
            target_id=target_id,
            verdict=Verdict.SAFE,
            target=info,
            reason=f"role {info.raw_role or info.role.value}",
            warnings=warnings,
        )

    def validate(self, target_id: int) -> GuardResult:
        """
        Check only that a target exists, without a write decision.

        Returns SAFE with the target's metadata if it exists, else UNRESOLVED.
        """
        result = self.check(target_id, allow_protected=True)
        if result.target is None:
            return result
        return GuardResult(
            target_id=target_id,
            verdict=Verdict.SAFE,
            target=result.target,
            reason="exists",
        )
