"""Shared heartbeat bookkeeping guarded by a single lock."""

import threading
from dataclasses import dataclass

from heartwatch.clock import monotonic_now


@dataclass(frozen=True)
class CheckOutcome:
    """Result of one deadline check, computed atomically under the state lock."""
    elapsed: float
    missed: bool
    miss_count: int
    escalate: bool


class HeartbeatState:
    """Time of the last valid heartbeat plus the consecutive-miss counter.

    Every read-modify-write goes through one lock. The lock is never held
    across network I/O or escalation.
    """

    def __init__(self, time_func=None):
        self._time_func = time_func or monotonic_now
        self._lock = threading.Lock()
        self._last_seen = self._time_func()
        self._miss_count = 0

    @property
    def last_seen(self) -> float:
        with self._lock:
            return self._last_seen

    @property
    def miss_count(self) -> int:
        with self._lock:
            return self._miss_count

    def now(self) -> float:
        return self._time_func()

    def record_heartbeat(self) -> float:
        """Mark a valid heartbeat: refresh last_seen and clear misses.

        Returns the resulting last_seen. A timestamp older than the
        current one is ignored so last_seen never moves backwards.
        """
        now = self._time_func()
        with self._lock:
            if now > self._last_seen:
                self._last_seen = now
            self._miss_count = 0
            return self._last_seen

    def check(self, timeout: float, attempts: int) -> CheckOutcome:
        """Apply one deadline check.

        A miss increments the counter; reaching `attempts` resets it and
        flags escalation. A heartbeat inside the window resets it.
        """
        with self._lock:
            elapsed = self._time_func() - self._last_seen
            missed = elapsed > timeout
            escalate = False
            if missed:
                self._miss_count += 1
                if self._miss_count >= attempts:
                    escalate = True
            else:
                self._miss_count = 0
            count = self._miss_count
            if escalate:
                self._miss_count = 0
        return CheckOutcome(elapsed=elapsed, missed=missed, miss_count=count,
                            escalate=escalate)
