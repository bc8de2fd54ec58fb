import functools
import threading
import time
from datetime import datetime, timedelta

import pytest

from respkit.timewheel import TimeWheel, at, cancel, delay


@pytest.fixture
def wheel():
    tw = TimeWheel(0.05, 8)
    tw.start()
    yield tw
    tw.stop()


def _wait_for(predicate, timeout):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_delay_runs_after_about_a_second_and_cancel():
    fired = []
    done = threading.Event()
    cancelled = threading.Event()
    begin = time.monotonic()

    def job():
        fired.append(time.monotonic())
        done.set()

    delay(1, "", job)
    delay(1, "cancel-me", cancelled.set)
    cancel("cancel-me")
    assert done.wait(5)
    elapsed = fired[0] - begin
    assert 1.0 <= elapsed <= 3.0
    time.sleep(0.3)
    assert not cancelled.is_set()


def test_at_runs_at_given_time():
    fired = []
    begin = time.monotonic()
    at(datetime.now() + timedelta(seconds=2), "", functools.partial(fired.append, "fired"))
    assert _wait_for(lambda: fired, 5)
    elapsed = time.monotonic() - begin
    assert 0.9 <= elapsed <= 3.6
    time.sleep(0.3)
    assert fired == ["fired"]


def test_job_runs(wheel):
    done = threading.Event()
    wheel.add_job(0.1, "", done.set)
    assert done.wait(2)


def test_timedelta_delay(wheel):
    done = threading.Event()
    wheel.add_job(timedelta(milliseconds=100), "k", done.set)
    assert done.wait(2)


def test_remove_job(wheel):
    done = threading.Event()
    wheel.add_job(0.2, "k", done.set)
    wheel.remove_job("k")
    time.sleep(0.5)
    assert not done.is_set()


def test_same_key_replaces_job(wheel):
    first = threading.Event()
    second = threading.Event()
    wheel.add_job(0.1, "k", first.set)
    wheel.add_job(0.1, "k", second.set)
    assert second.wait(2)
    time.sleep(0.2)
    assert not first.is_set()


def test_negative_delay_is_ignored(wheel):
    done = threading.Event()
    wheel.add_job(-1, "", done.set)
    time.sleep(0.3)
    assert not done.is_set()


def test_delay_longer_than_one_turn():
    tw = TimeWheel(0.05, 4)
    tw.start()
    try:
        fired = []
        begin = time.monotonic()
        tw.add_job(0.5, "", functools.partial(fired.append, "fired"))
        assert _wait_for(lambda: fired, 3)
        elapsed = time.monotonic() - begin
        assert 0.45 <= elapsed <= 3.1
        time.sleep(0.3)
        assert fired == ["fired"]
    finally:
        tw.stop()


def test_failing_job_does_not_stop_wheel(wheel):
    def boom():
        raise RuntimeError("boom")

    done = threading.Event()
    wheel.add_job(0.05, "", boom)
    wheel.add_job(0.15, "", done.set)
    assert done.wait(2)


@pytest.mark.parametrize("interval, slots", [(0, 10), (-1, 10), (1, 0)])
def test_invalid_arguments(interval, slots):
    with pytest.raises(ValueError):
        TimeWheel(interval, slots)


def test_start_twice_raises(wheel):
    with pytest.raises(RuntimeError):
        wheel.start()