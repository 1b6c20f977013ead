"""Concurrent use of a register from many threads."""

from __future__ import annotations

import gc
import threading

import pytest

from liveness.common import LivenessRegisterEnum
from liveness.context import initialize_liveness_register, initialize_settings
from liveness.register.register import LivenessRegisterProtocol, WeakRefLivenessRegister
from liveness.settings import LivenessSettings

WORKERS = 8
TASKS_PER_WORKER = 200


class _Task:
    """Weak-referenceable stand-in for an actor."""


def _run_all(targets: list[threading.Thread]) -> None:
    for thread in targets:
        thread.start()
    for thread in targets:
        thread.join(timeout=10)
        assert not thread.is_alive(), "worker did not finish in time"


@pytest.mark.parametrize("implementation", tuple(LivenessRegisterEnum))
def test_concurrent_register_and_notify(implementation: LivenessRegisterEnum) -> None:
    """Interleaved registrations and terminations always settle at zero."""
    register: LivenessRegisterProtocol = initialize_liveness_register(
        initialize_settings(liveness_register=implementation)
    )
    handler_calls: list[int] = []
    calls_lock = threading.Lock()

    def _on_terminate() -> None:
        with calls_lock:
            handler_calls.append(1)

    def worker() -> None:
        tasks = [_Task() for _ in range(TASKS_PER_WORKER)]
        for task in tasks:
            register.on_terminate(task, _on_terminate)
            register.register(task)
        for task in tasks:
            register.notify_terminated(task)

    _run_all([threading.Thread(target=worker) for _ in range(WORKERS)])

    assert register.pending_count() == 0
    assert register.is_quiescent()
    assert len(handler_calls) == WORKERS * TASKS_PER_WORKER


def test_concurrent_terminations_and_reclamation() -> None:
    """Explicit terminations, abandoned tasks and a reclaiming thread never double count."""
    register = WeakRefLivenessRegister(LivenessSettings.load())
    stop = threading.Event()
    started = threading.Barrier(WORKERS + 1)

    def terminating_worker() -> None:
        started.wait()
        for _ in range(TASKS_PER_WORKER):
            task = _Task()
            register.register(task)
            register.notify_terminated(task)

    def abandoning_worker() -> None:
        started.wait()
        for _ in range(TASKS_PER_WORKER):
            register.register(_Task())

    def reclaimer() -> None:
        while not stop.is_set():
            register.reclaim()

    reclaim_thread = threading.Thread(target=reclaimer)
    reclaim_thread.start()
    try:
        workers = [
            threading.Thread(target=terminating_worker if idx % 2 else abandoning_worker)
            for idx in range(WORKERS)
        ]
        for thread in workers:
            thread.start()
        started.wait()
        for thread in workers:
            thread.join(timeout=10)
            assert not thread.is_alive(), "worker did not finish in time"
    finally:
        stop.set()
        reclaim_thread.join(timeout=10)

    gc.collect()
    register.reclaim()

    assert register.pending_count() == 0
    assert register.is_quiescent()
    assert register.status().tracked == 0


def test_quiescence_reads_during_mutation() -> None:
    """Observers may query the register while it is being mutated."""
    register = WeakRefLivenessRegister(LivenessSettings.load())
    stop = threading.Event()
    observed: list[bool] = []

    def observer() -> None:
        while True:
            observed.append(register.is_quiescent())
            register.status()
            if stop.is_set():
                return

    observer_thread = threading.Thread(target=observer)
    observer_thread.start()
    try:
        tasks = [_Task() for _ in range(TASKS_PER_WORKER)]
        for task in tasks:
            register.register(task)
        for task in tasks:
            register.notify_terminated(task)
    finally:
        stop.set()
        observer_thread.join(timeout=10)

    assert register.is_quiescent()
    assert observed
