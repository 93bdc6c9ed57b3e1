"""
Batch transfer helpers shared by the orchestrators.

Items are independent: a non-fatal failure is recorded and the batch
moves on. A fatal failure (bad credential, missing capability, exhausted
rate limit) stops the batch, and every key not yet attempted is reported
as failed with the same cause.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from themesafe.core.history.store import HistoryStore
from themesafe.core.services.models import BatchOutcome, ItemFailure
from themesafe.core.store.backend import RemoteStore
from themesafe.core.store.exceptions import NotFoundError, StoreError
from themesafe.core.store.models import Item

logger = logging.getLogger(__name__)


def failure_for(key: str, error: Exception | str) -> ItemFailure:
    if isinstance(error, Exception):
        return ItemFailure(key=key, error=str(error), error_type=type(error).__name__)
    return ItemFailure(key=key, error=error)


def run_batch(keys: Sequence[str], action: Callable[[str], None], verb: str) -> BatchOutcome:
    """
    Apply ``action`` to each key, tallying successes and failures.

    ``action`` may raise StoreError (recorded per key) or ValueError
    (bad local data, recorded per key).
    """
    outcome = BatchOutcome()
    for index, key in enumerate(keys):
        try:
            action(key)
        except StoreError as e:
            logger.warning("Failed to %s %s: %s", verb, key, e)
            outcome.failed.append(failure_for(key, e))
            if e.fatal:
                remaining = keys[index + 1 :]
                if remaining:
                    logger.error(
                        "Stopping after fatal error; %d %s(s) not attempted",
                        len(remaining),
                        verb,
                    )
                outcome.failed.extend(failure_for(rest, e) for rest in remaining)
                break
        except ValueError as e:
            logger.warning("Failed to %s %s: %s", verb, key, e)
            outcome.failed.append(failure_for(key, e))
        else:
            logger.debug("%s %s", verb, key)
            outcome.succeeded.append(key)
    return outcome


def upload_from_tree(
    store: RemoteStore,
    history: HistoryStore,
    target_id: int,
    keys: Sequence[str],
) -> BatchOutcome:
    """Upload working-tree files to a target, one item per key."""

    def upload(key: str) -> None:
        data = history.read_file(key)
        if data is None:
            raise ValueError("not staged: no local file for this key")
        store.put_item(target_id, Item.from_bytes(key, data))

    return run_batch(keys, upload, "upload")


def fetch_into_tree(
    store: RemoteStore,
    history: HistoryStore,
    target_id: int,
    keys: Sequence[str],
) -> tuple[BatchOutcome, list[str]]:
    """
    Write the remote content of ``keys`` into the working tree.

    Keys missing on the target are removed from the working tree so the
    tree mirrors the remote. Fatal errors propagate.

    Returns:
        The per-key outcome and the keys found missing on the target
    """
    outcome = BatchOutcome()
    missing: list[str] = []
    for key in keys:
        try:
            item = store.get_item(target_id, key)
        except NotFoundError:
            history.remove_file(key)
            missing.append(key)
            outcome.succeeded.append(key)
            continue
        except StoreError as e:
            if e.fatal:
                raise
            logger.warning("Could not fetch %s: %s", key, e)
            outcome.failed.append(failure_for(key, e))
            continue
        history.write_file(key, item.content)
        outcome.succeeded.append(key)
    return outcome, missing
