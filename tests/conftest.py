"""Shared pytest fixtures for the heartwatch test suite."""

import threading

import pytest

from heartwatch.escalation import EscalationResult


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingEscalation:
    """Escalation stand-in that counts invocations."""

    def __init__(self, result=None, error=None):
        self.calls = 0
        self._result = result or EscalationResult(ran_count=1)
        self._error = error
        self.called = threading.Event()

    def run(self) -> EscalationResult:
        self.calls += 1
        self.called.set()
        if self._error is not None:
            raise self._error
        return self._result


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def escalation() -> RecordingEscalation:
    return RecordingEscalation()
