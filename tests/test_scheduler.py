"""Tests for PeriodicTask."""

from __future__ import annotations

import threading

import pytest

from gesture_manipulator.scheduler import PeriodicTask


def test_runs_until_stopped():
    calls = []
    done = threading.Event()

    def tick(dt):
        calls.append(dt)
        if len(calls) >= 3:
            done.set()

    task = PeriodicTask("test", 0.01, tick)
    task.start()
    assert done.wait(2.0)
    task.stop()

    assert not task.running
    assert task.stop_event.is_set()
    assert calls[0] == pytest.approx(0.0, abs=0.05)
    assert all(dt >= 0 for dt in calls)


def test_failing_callback_stops_task():
    def boom(dt):
        raise RuntimeError("inference failed")

    task = PeriodicTask("boom", 0.01, boom)
    task.start()
    assert task.stop_event.wait(2.0)
    task.stop()
    assert not task.running


def test_rejects_non_positive_period():
    with pytest.raises(ValueError):
        PeriodicTask("bad", 0.0, lambda dt: None)
