"""
Single-writer lock for mutating operations.

The working tree and its history are single-writer: two push/rollback/
promotion runs must never interleave. The store itself has no locking, so
each run holds an advisory lock file for its whole duration.

The lock file is created with O_CREAT | O_EXCL and records the holder's
pid, hostname and acquisition time. A lock left behind by a dead process
on the same host is treated as stale and removed.
"""

from __future__ import annotations

import json
import logging
import os
import socket
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


class LockHeldError(Exception):
    """Another run currently holds the operation lock."""

    def __init__(self, path: Path, holder: dict[str, object] | None = None) -> None:
        self.path = path
        self.holder = holder or {}
        pid = self.holder.get("pid", "?")
        super().__init__(f"Another themesafe operation is running (pid {pid}, lock {path})")


def _is_process_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)  # Signal 0 = check existence only
        return True
    except ProcessLookupError:
        return False
    except PermissionError:
        # Process exists but belongs to another user
        return True


def _read_holder(lock_path: Path) -> dict[str, object] | None:
    try:
        data = json.loads(lock_path.read_text())
    except (json.JSONDecodeError, OSError):
        return None
    return data if isinstance(data, dict) else None


def _is_stale(lock_path: Path) -> bool:
    """
    Decide whether an existing lock can be broken.

    Same host: stale only if the holder pid is dead. Different host: never
    stale, since the pid cannot be checked. Unreadable lock data is stale.
    """
    holder = _read_holder(lock_path)
    if holder is None:
        logger.warning("Lock file %s is unreadable; treating as stale", lock_path)
        return True

    if holder.get("hostname") != socket.gethostname():
        return False

    pid = holder.get("pid")
    if not isinstance(pid, int):
        return True
    if _is_process_alive(pid):
        return False

    logger.warning("Detected stale lock from dead process %s", pid)
    return True


@contextmanager
def operation_lock(lock_path: Path) -> Iterator[None]:
    """
    Hold the operation lock for the duration of the block.

    Raises:
        LockHeldError: If a live process already holds the lock.
    """
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_data = {
        "pid": os.getpid(),
        "hostname": socket.gethostname(),
        "acquired_at": datetime.now(timezone.utc).isoformat(),
    }

    for _ in range(2):
        try:
            fd = os.open(str(lock_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            if _is_stale(lock_path):
                lock_path.unlink(missing_ok=True)
                logger.info("Removed stale lock file %s", lock_path)
                continue
            raise LockHeldError(lock_path, _read_holder(lock_path)) from None
        try:
            os.write(fd, json.dumps(lock_data).encode())
            os.fsync(fd)
        finally:
            os.close(fd)
        break
    else:
        raise LockHeldError(lock_path, _read_holder(lock_path))

    logger.debug("Acquired operation lock %s", lock_path)
    try:
        yield
    finally:
        lock_path.unlink(missing_ok=True)
        logger.debug("Released operation lock %s", lock_path)


__all__ = ["LockHeldError", "operation_lock"]
