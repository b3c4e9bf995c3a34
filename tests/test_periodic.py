"""Tests for the PeriodicSweeper background thread."""

import threading
import time

import pytest

from app.utils.periodic import PeriodicSweeper


def _wait_until(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_runs_callback_repeatedly() -> None:
    calls = []
    sweeper = PeriodicSweeper("test", 0.01, lambda: calls.append(1))
    sweeper.start()
    try:
        assert _wait_until(lambda: len(calls) >= 3)
        assert sweeper.running
    finally:
        sweeper.stop()


def test_callback_never_fires_after_stop() -> None:
    calls = []
    sweeper = PeriodicSweeper("test", 0.01, lambda: calls.append(1))
    sweeper.start()
    assert _wait_until(lambda: len(calls) >= 1)

    sweeper.stop()
    count_at_stop = len(calls)
    time.sleep(0.05)

    assert len(calls) == count_at_stop
    assert not sweeper.running


def test_stop_is_idempotent_and_safe_before_start() -> None:
    sweeper = PeriodicSweeper("test", 10, lambda: None)

    sweeper.stop()
    sweeper.stop()
    # A stopped sweeper cannot be re-armed
    sweeper.start()

    assert not sweeper.running


def test_start_twice_keeps_single_thread() -> None:
    sweeper = PeriodicSweeper("test", 10, lambda: None)
    sweeper.start()
    sweeper.start()
    try:
        names = [t.name for t in threading.enumerate() if t.name == "sweeper-test"]
        assert len(names) == 1
    finally:
        sweeper.stop()


def test_stop_returns_promptly_for_long_intervals() -> None:
    sweeper = PeriodicSweeper("test", 3600, lambda: None)
    sweeper.start()

    start = time.monotonic()
    sweeper.stop()

    assert time.monotonic() - start < 1.0


def test_failing_callback_keeps_thread_alive() -> None:
    calls = []

    def _boom() -> None:
        calls.append(1)
        raise RuntimeError("sweep failed")

    sweeper = PeriodicSweeper("test", 0.01, _boom)
    sweeper.start()
    try:
        assert _wait_until(lambda: len(calls) >= 2)
        assert sweeper.running
    finally:
        sweeper.stop()


def test_invalid_interval() -> None:
    with pytest.raises(ValueError):
        PeriodicSweeper("test", 0, lambda: None)
