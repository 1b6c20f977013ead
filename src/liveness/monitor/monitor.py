"""Quiescence monitor driving periodic reclamation of a liveness register."""

from __future__ import annotations

import gc
import threading
from typing import TYPE_CHECKING

from liveness.logging import WithLogger
from liveness.settings import LivenessSettings

if TYPE_CHECKING:
    from collections.abc import Callable

    from liveness.register.register import LivenessRegisterProtocol


class QuiescenceMonitor(WithLogger):
    """Reclaim collected tasks periodically and report once nothing is pending.

    The monitor only observes: what happens on quiescence is up to ``on_quiescent``.
    A register that never had anything registered is quiescent on the first tick.
    """

    def __init__(
        self,
        register: LivenessRegisterProtocol,
        settings: LivenessSettings | None = None,
        on_quiescent: Callable[[], object] | None = None,
    ) -> None:
        """Initialize the monitor.

        :param register: Register to reclaim and query.
        :param settings: Provides ``reclaim_interval`` and ``force_collect``.
        :param on_quiescent: Called once from the loop thread when quiescence is observed.
        """
        self.register = register
        self.settings = settings or LivenessSettings.load()
        self._on_quiescent = on_quiescent
        self._running = False
        self._stop_requested = threading.Event()
        self._quiescent = threading.Event()

    @property
    def is_running(self) -> bool:
        """Return True while the monitor loop is active."""
        return self._running

    def tick(self) -> bool:
        """Reclaim collected tasks once and return whether the register is quiescent."""
        if self.settings.force_collect:
            gc.collect()
        self.register.reclaim()
        return self.register.is_quiescent()

    def run(self) -> None:
        """Tick until the register is quiescent or :meth:`stop` is called.

        A stop requested before the loop starts is honoured; it is consumed when the loop exits.
        """
        self._running = True
        self._quiescent.clear()
        try:
            while not self._stop_requested.is_set():
                if self.tick():
                    self._quiescent.set()
                    self._logger.info("Register is quiescent")
                    if self._on_quiescent is not None:
                        self._on_quiescent()
                    return
                self._stop_requested.wait(self.settings.reclaim_interval)
        finally:
            self._running = False
            self._stop_requested.clear()

    def stop(self) -> None:
        """Stop the monitor loop after the current tick."""
        self._stop_requested.set()

    def wait_quiescent(self, timeout: float | None = None) -> bool:
        """Block until the loop has observed quiescence.

        :returns: ``False`` if *timeout* elapsed first.
        """
        return self._quiescent.wait(timeout)
