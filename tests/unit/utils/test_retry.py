"""Unit tests for RetryExecutor (tenacity-backed, linear backoff)."""

import pytest

from pte.errors import AuthError, NotFoundError, TransientError
from pte.utils.retry import RetryExecutor


class Flaky:
    """Callable failing with ``errors`` in order, then returning ``result``."""

    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def test_success_first_try_does_not_sleep():
    sleeps = []
    op = Flaky([])
    assert RetryExecutor(base_delay=1.0, sleep=sleeps.append).execute(op, 3) == "ok"
    assert op.calls == 1
    assert sleeps == []


def test_transient_errors_are_retried_with_linear_backoff():
    sleeps = []
    op = Flaky([TransientError("503"), TransientError("503")])

    result = RetryExecutor(base_delay=1.0, sleep=sleeps.append).execute(op, 3)

    assert result == "ok"
    assert op.calls == 3
    assert sleeps == [1.0, 2.0]


def test_exhausted_attempts_reraise_last_transient_error():
    sleeps = []
    last = TransientError("third")
    op = Flaky([TransientError("first"), TransientError("second"), last])

    with pytest.raises(TransientError) as exc:
        RetryExecutor(base_delay=0.5, sleep=sleeps.append).execute(op, 3)

    assert exc.value is last
    assert op.calls == 3
    assert sleeps == [0.5, 1.0]


@pytest.mark.parametrize("error", [AuthError("401"), NotFoundError("404"), ValueError("bug")])
def test_non_transient_errors_are_not_retried(error):
    sleeps = []
    op = Flaky([error])

    with pytest.raises(type(error)):
        RetryExecutor(sleep=sleeps.append).execute(op, 5)

    assert op.calls == 1
    assert sleeps == []


@pytest.mark.parametrize("attempts", [0, 1])
def test_zero_or_one_attempt_means_single_call(attempts):
    op = Flaky([TransientError("down")])
    with pytest.raises(TransientError):
        RetryExecutor(sleep=lambda s: None).execute(op, attempts)
    assert op.calls == 1


def test_negative_base_delay_rejected():
    with pytest.raises(ValueError):
        RetryExecutor(base_delay=-1)


def test_stop_event_ends_retries_with_last_error():
    import threading
    stop = threading.Event()
    sleeps = []

    def op():
        stop.set()
        raise TransientError("503 after cancel")

    with pytest.raises(TransientError, match="after cancel"):
        RetryExecutor(base_delay=1.0, sleep=sleeps.append, stop_event=stop).execute(op, 5)
    assert sleeps == []


def test_unset_stop_event_does_not_limit_retries():
    import threading
    sleeps = []
    op = Flaky([TransientError("a"), TransientError("b")])
    executor = RetryExecutor(base_delay=1.0, sleep=sleeps.append, stop_event=threading.Event())
    assert executor.execute(op, 3) == "ok"
    assert op.calls == 3
