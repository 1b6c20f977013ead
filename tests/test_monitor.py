"""Tests for the quiescence monitor loop."""

from __future__ import annotations

import gc
import threading
import time

from liveness.monitor.monitor import QuiescenceMonitor
from liveness.register.register import ExplicitLivenessRegister, WeakRefLivenessRegister
from liveness.settings import LivenessSettings


class _Task:
    """Weak-referenceable stand-in for an actor."""


def test_tick_reports_quiescence() -> None:
    """A single tick reclaims and answers the shutdown question."""
    settings = LivenessSettings.load(reclaim_interval=0.01)
    register = WeakRefLivenessRegister(settings)
    monitor = QuiescenceMonitor(register, settings)

    task = _Task()
    register.register(task)
    assert monitor.tick() is False

    del task
    gc.collect()
    assert monitor.tick() is True


def test_monitor_fires_once_when_tasks_finish() -> None:
    """The loop stops and calls back once the last task terminates."""
    settings = LivenessSettings.load(reclaim_interval=0.01)
    register = WeakRefLivenessRegister(settings)
    calls: list[str] = []
    monitor = QuiescenceMonitor(register, settings, on_quiescent=lambda: calls.append("shutdown"))

    tasks = [_Task(), _Task()]
    for task in tasks:
        register.register(task)

    worker = threading.Thread(target=monitor.run)
    worker.start()
    try:
        time.sleep(0.05)
        assert not monitor.wait_quiescent(timeout=0)
        for task in tasks:
            register.notify_terminated(task)

        assert monitor.wait_quiescent(timeout=2)
    finally:
        monitor.stop()
        worker.join(timeout=2)

    assert calls == ["shutdown"]
    assert not monitor.is_running


def test_monitor_collects_abandoned_tasks() -> None:
    """With forced collection the monitor discovers cyclic garbage on its own."""
    settings = LivenessSettings.load(reclaim_interval=0.01, force_collect=True)
    register = WeakRefLivenessRegister(settings)
    monitor = QuiescenceMonitor(register, settings)

    task = _Task()
    task.self_ref = task  # type: ignore[attr-defined]
    register.register(task)
    del task

    worker = threading.Thread(target=monitor.run)
    worker.start()
    try:
        assert monitor.wait_quiescent(timeout=2)
    finally:
        monitor.stop()
        worker.join(timeout=2)

    assert register.is_quiescent()


def test_stop_interrupts_waiting_monitor() -> None:
    """Stopping the monitor ends the loop while work is still pending."""
    settings = LivenessSettings.load(reclaim_interval=10.0)
    register = ExplicitLivenessRegister(settings)
    register.register(_Task())
    monitor = QuiescenceMonitor(register, settings)

    worker = threading.Thread(target=monitor.run)
    worker.start()
    time.sleep(0.05)
    assert monitor.is_running

    monitor.stop()
    worker.join(timeout=2)

    assert not worker.is_alive()
    assert not monitor.is_running
    assert not monitor.wait_quiescent(timeout=0)


def test_stop_before_run_is_honoured() -> None:
    """A stop requested before the loop thread starts still ends the loop."""
    settings = LivenessSettings.load(reclaim_interval=0.01)
    register = ExplicitLivenessRegister(settings)
    register.register(_Task())
    monitor = QuiescenceMonitor(register, settings)

    monitor.stop()
    worker = threading.Thread(target=monitor.run)
    worker.start()
    worker.join(timeout=2)

    assert not worker.is_alive()
    assert not monitor.is_running


def test_rerun_forgets_previous_quiescence() -> None:
    """A second run does not report quiescence observed by the first one."""
    settings = LivenessSettings.load(reclaim_interval=0.01)
    register = ExplicitLivenessRegister(settings)
    monitor = QuiescenceMonitor(register, settings)

    monitor.run()
    assert monitor.wait_quiescent(timeout=0)

    task = _Task()
    register.register(task)
    worker = threading.Thread(target=monitor.run)
    worker.start()
    try:
        time.sleep(0.05)
        assert not monitor.wait_quiescent(timeout=0.1)

        register.notify_terminated(task)
        assert monitor.wait_quiescent(timeout=2)
    finally:
        monitor.stop()
        worker.join(timeout=2)
