import pytest

from gigscout.retry import backoff_delay, retry


def test_succeeds_after_transient_failures():
    delays = []
    attempts = {"n": 0}

    @retry(max_attempts=3, base_delay=1.0, jitter=False, retryable=(ConnectionError,),
           sleep=delays.append)
    def flaky():
        attempts["n"] += 1
        if attempts["n"] < 3:
            raise ConnectionError("try again")
        return "ok"

    assert flaky() == "ok"
    assert attempts["n"] == 3
    assert delays == [1.0, 2.0]


def test_non_retryable_error_propagates_immediately():
    delays = []
    calls = []

    @retry(max_attempts=5, retryable=(ConnectionError,), sleep=delays.append)
    def broken():
        calls.append(1)
        raise KeyError("bad input")

    with pytest.raises(KeyError):
        broken()
    assert len(calls) == 1
    assert delays == []


def test_exhaustion_reraises_last_error():
    calls = []

    @retry(max_attempts=2, jitter=False, sleep=lambda s: None)
    def always_fails():
        calls.append(1)
        raise OSError(f"attempt {len(calls)}")

    with pytest.raises(OSError, match="attempt 2"):
        always_fails()
    assert len(calls) == 2


def test_max_attempts_must_be_positive():
    with pytest.raises(ValueError):
        retry(max_attempts=0)


def test_backoff_is_capped():
    assert backoff_delay(1, base_delay=1, max_delay=5, backoff_factor=2, jitter=False) == 1
    assert backoff_delay(3, base_delay=1, max_delay=5, backoff_factor=2, jitter=False) == 4
    assert backoff_delay(10, base_delay=1, max_delay=5, backoff_factor=2, jitter=False) == 5


def test_jitter_stays_within_bounds():
    for _ in range(50):
        delay = backoff_delay(2, base_delay=1, max_delay=30, backoff_factor=2, jitter=True)
        assert 1.0 <= delay <= 3.0
