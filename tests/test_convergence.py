import pytest

from dmops.core.convergence import wait_until_converged
from dmops.core.errors import ConvergenceTimeoutError, ConvergenceWaitInterrupted


class _Event:
    """threading.Event stand-in that records waits instead of sleeping."""

    def __init__(self, fire_on_wait=False, set_=False):
        self.fire_on_wait = fire_on_wait
        self._set = set_
        self.waits: list[float] = []

    def is_set(self):
        return self._set

    def wait(self, timeout=None):
        self.waits.append(timeout)
        if self.fire_on_wait:
            self._set = True
        return self._set


class _Check:
    def __init__(self, *answers):
        self.answers = list(answers)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.answers.pop(0)


def test_returns_after_rows_disappear():
    check = _Check(True, False)
    event = _Event()

    attempts = wait_until_converged(check, description="cleanup", cancel=event)

    assert attempts == 2
    assert check.calls == 2
    assert event.waits == [1.0]


def test_returns_immediately_when_already_converged():
    check = _Check(False)
    event = _Event()

    assert wait_until_converged(check, description="cleanup", cancel=event) == 1
    assert event.waits == []


def test_interruption_during_wait_stops_polling():
    check = _Check(True, False)
    event = _Event(fire_on_wait=True)

    with pytest.raises(ConvergenceWaitInterrupted, match="cleanup"):
        wait_until_converged(check, description="cleanup", cancel=event)

    assert check.calls == 1


def test_cancelled_before_first_check():
    check = _Check(True)

    with pytest.raises(ConvergenceWaitInterrupted):
        wait_until_converged(check, description="cleanup", cancel=_Event(set_=True))

    assert check.calls == 0


def test_keyboard_interrupt_is_reported_as_interruption():
    class _InterruptedEvent(_Event):
        def wait(self, timeout=None):
            raise KeyboardInterrupt

    with pytest.raises(ConvergenceWaitInterrupted):
        wait_until_converged(_Check(True), description="cleanup", cancel=_InterruptedEvent())


def test_attempt_ceiling_raises_timeout():
    check = _Check(True, True, True)
    event = _Event()

    with pytest.raises(ConvergenceTimeoutError, match="3 checks"):
        wait_until_converged(
            check, description="cleanup", interval=0.5, max_attempts=3, cancel=event
        )

    assert check.calls == 3
    assert event.waits == [0.5, 0.5]


def test_rejects_non_positive_attempt_ceiling():
    with pytest.raises(ValueError, match="max_attempts"):
        wait_until_converged(_Check(), description="cleanup", max_attempts=0)
