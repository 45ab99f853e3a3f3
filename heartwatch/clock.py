"""Monotonic time source and a periodic ticker driven by a shutdown event."""

import threading
import time


def monotonic_now() -> float:
    """Default time source. Wall-clock adjustments never move it."""
    return time.monotonic()


class Ticker:
    """Calls a function every `interval` seconds until shutdown is signalled.

    The wait happens before each call, so the first tick fires one full
    interval after start. Exceptions raised by the callback propagate;
    callers that must survive them catch inside the callback.
    """

    def __init__(self, interval: float, callback, shutdown_event: threading.Event):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._interval = interval
        self._callback = callback
        self._shutdown = shutdown_event

    @property
    def interval(self) -> float:
        return self._interval

    def run(self):
        """Block, ticking on every interval, until the shutdown event is set."""
        while not self._shutdown.wait(self._interval):
            self._callback()
