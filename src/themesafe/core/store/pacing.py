"""
Request pacing for the store's leaky-bucket rate limit.

The store enforces a per-credential bucket (40 calls, leaking 2 per second
on the REST API). Every call made through the client waits until at least
``interval`` seconds have passed since the previous call, which keeps the
sustained rate under the leak rate. When the store reports the bucket is
nearly full, the next spacing is doubled.

Example:
    >>> pacer = RequestPacer(interval=0.55)
    >>> pacer.wait()          # first call: no delay
    >>> pacer.wait()          # sleeps ~0.55s
    >>> pacer.observe_limit_header("36/40")
    >>> pacer.wait()          # sleeps ~1.1s (bucket 90% full)

Configuration:
    - Default interval: 0.55 seconds
    - Pressure threshold: 80% of bucket capacity
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


DEFAULT_INTERVAL = 0.55
PRESSURE_THRESHOLD = 0.8


class RequestPacer:
    """
    Enforces a minimum spacing between consecutive store calls.

    Attributes:
        interval: Minimum seconds between two calls
        clock: Monotonic clock (injectable for tests)
        sleep: Sleep function (injectable for tests)
    """

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval < 0:
            raise ValueError("interval must be non-negative")

        self.interval = interval
        self.clock = clock
        self.sleep = sleep
        self._last_call: float | None = None
        self._pressure = False

    @property
    def next_spacing(self) -> float:
        """Spacing that will be enforced before the next call."""
        return self.interval * 2 if self._pressure else self.interval

    def wait(self) -> float:
        """
        Block until the next call is allowed, then record it.

        Returns:
            Seconds actually slept
        """
        slept = 0.0
        now = self.clock()
        if self._last_call is not None:
            remaining = self.next_spacing - (now - self._last_call)
            if remaining > 0:
                logger.debug("Pacing store call: sleeping %.2fs", remaining)
                self.sleep(remaining)
                slept = remaining
                now = self.clock()
        self._last_call = now
        return slept

    def observe_limit_header(self, header: str | None) -> None:
        """
        Read a ``used/capacity`` call-limit header and adjust spacing.

        Unparsable headers are ignored.
        """
        if not header:
            return
        try:
            used_str, capacity_str = header.split("/", 1)
            used, capacity = int(used_str), int(capacity_str)
        except ValueError:
            logger.debug("Ignoring unparsable call-limit header: %r", header)
            return
        if capacity <= 0:
            return

        pressure = used / capacity >= PRESSURE_THRESHOLD
        if pressure and not self._pressure:
            logger.info("Store call bucket at %d/%d; slowing down", used, capacity)
        self._pressure = pressure


class NoPacer(RequestPacer):
    """Pacer that never sleeps. Used by tests and offline tooling."""

    def __init__(self) -> None:
        super().__init__(interval=0.0)

    def wait(self) -> float:
        return 0.0


def poll_until(
    check: Callable[[], bool],
    *,
    max_attempts: int,
    delay: float,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """
    Call ``check`` until it returns True or ``max_attempts`` is reached.

    Args:
        check: Condition to run on each attempt
        max_attempts: Upper bound on the number of checks (>= 1)
        delay: Seconds to sleep between checks
        sleep: Sleep function (injectable for tests)

    Returns:
        True if the check succeeded, False if attempts ran out. Callers
        continue in a degraded mode on False rather than waiting longer.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    for attempt in range(max_attempts):
        if check():
            return True
        if attempt < max_attempts - 1:
            sleep(delay)

    logger.warning("Gave up after %d attempts", max_attempts)
    return False


__all__ = ["RequestPacer", "NoPacer", "poll_until", "DEFAULT_INTERVAL"]
