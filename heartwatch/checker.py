"""Periodic deadline check and escalation policy."""

import logging
import threading

from heartwatch.clock import Ticker
from heartwatch.escalation import EscalationResult
from heartwatch.state import CheckOutcome, HeartbeatState

logger = logging.getLogger(__name__)


class DeadlineChecker:
    """Counts consecutive missed windows and escalates at the threshold.

    By default the check period equals the timeout, so `attempts` misses
    mean roughly `attempts * timeout` without a valid heartbeat. With a
    separate `interval`, a miss is still any tick where the time since the
    last heartbeat exceeds the timeout.

    Escalation runs on the checker thread, outside the state lock, so two
    escalations never overlap and heartbeats are never blocked by one.
    """

    def __init__(self, state: HeartbeatState, escalation, timeout: float,
                 attempts: int, shutdown_event: threading.Event,
                 interval: float | None = None):
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self._state = state
        self._escalation = escalation
        self._timeout = timeout
        self._attempts = attempts
        self._shutdown = shutdown_event
        self._ticker = Ticker(interval or timeout, self.tick, shutdown_event)
        self._thread: threading.Thread | None = None
        self.escalations = 0

    @property
    def interval(self) -> float:
        return self._ticker.interval

    def start(self):
        """Start the background check thread."""
        self._thread = threading.Thread(target=self._ticker.run, daemon=True)
        self._thread.start()

    def stop(self):
        self._shutdown.set()
        if self._thread:
            self._thread.join(timeout=5)

    def tick(self) -> CheckOutcome:
        outcome = self._state.check(self._timeout, self._attempts)
        if outcome.missed:
            logger.warning("Heartbeat timeout (%.1fs since last) - failed attempt count: %d",
                           outcome.elapsed, outcome.miss_count)
        else:
            logger.debug("Heartbeat interval check - attempts: %d", outcome.miss_count)

        if outcome.escalate:
            self._escalate()
        return outcome

    def _escalate(self):
        logger.error("Missed %d consecutive heartbeat windows, running escalation",
                     self._attempts)
        self.escalations += 1
        try:
            result: EscalationResult = self._escalation.run()
        except Exception:
            logger.exception("Escalation raised an unexpected error")
            return
        if result.last_error:
            logger.error("Escalation finished: %d action(s) run, last error: %s",
                         result.ran_count, result.last_error)
        else:
            logger.info("Escalation finished: %d action(s) run", result.ran_count)
