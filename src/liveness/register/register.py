"""Liveness registers keeping count of tasks that are started but not yet finished.

A scheduler registers every task it starts and asks the register whether it is quiescent
to decide when to shut down. A task stops being pending in exactly one of two ways:

* the task (or whatever detects its completion) calls :meth:`notify_terminated`;
* the task becomes unreachable, the garbage collector reclaims it, and a later
  :meth:`reclaim` call discovers that.

All state of a register lives behind a single re-entrant lock, so the pending counter and
the tracking registry are always updated together.
"""

from __future__ import annotations

__all__ = [
    "KNOWN_LIVENESS_REGISTERS",
    "AbstractLivenessRegister",
    "ExplicitLivenessRegister",
    "LivenessRegisterProtocol",
    "WeakRefLivenessRegister",
]

from abc import ABC, abstractmethod
import queue
import threading
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from liveness.common import LivenessRegisterEnum
from liveness.errors import TaskNotTrackableError
from liveness.logging import WithLogger
from liveness.register.common import RegisterStatus, TerminationHook, TrackingHandle
from liveness.settings import LivenessSettings
from liveness.utils import describe_task, make_specific_register_func, task_key

if TYPE_CHECKING:
    from liveness.liveness_types import TaskKey, TTerminationHandler

KNOWN_LIVENESS_REGISTERS: dict[LivenessRegisterEnum, type[LivenessRegisterProtocol]] = {}

_register = make_specific_register_func(KNOWN_LIVENESS_REGISTERS)


@runtime_checkable
class LivenessRegisterProtocol(Protocol):
    """Structural contract for liveness register implementations."""

    def register(self, task: object) -> None:
        """Start tracking *task* and add one unit of pending work.

        Registering the same task twice adds two independent units of pending work.
        """

    def on_terminate(self, task: object, handler: TTerminationHandler) -> None:
        """Run *handler* once, when termination of *task* is notified.

        A handler registered earlier for the same task is replaced.
        """

    def notify_terminated(self, task: object) -> None:
        """Record explicit termination of *task*.

        Runs the termination handler (if any), stops tracking the task and removes one
        unit of pending work.
        """

    def reclaim(self) -> int:
        """Account for every tracked task collected since the previous call.

        :returns: Number of tasks reclaimed by this call.
        """

    def is_quiescent(self) -> bool:
        """Return ``True`` when no work is pending."""

    def pending_count(self) -> int:
        """Return the value of the pending counter."""

    def set_pending_count(self, count: int) -> None:
        """Overwrite the pending counter. The value is not validated."""

    def status(self) -> RegisterStatus:
        """Return a diagnostic snapshot of the register."""


class AbstractLivenessRegister(LivenessRegisterProtocol, WithLogger, ABC):
    """Abstract base class owning the pending counter and the exclusion domain.

    Subclasses decide how tasks are tracked and how termination handlers are stored,
    and are called only while the lock is held.
    """

    def __init__(self, settings: LivenessSettings | None = None) -> None:
        """Initialize an empty register.

        :param settings: Resolved settings; loaded from defaults and environment when omitted.
        """
        self.settings = settings or LivenessSettings.load()
        self._lock = threading.RLock()
        self._pending = 0

    @classmethod
    def get_name(cls) -> LivenessRegisterEnum:
        """Return the registry key for this register based on its class name."""
        return LivenessRegisterEnum(cls.__name__)

    def register(self, task: object) -> None:
        """Start tracking *task* and add one unit of pending work.

        :raises TaskNotTrackableError: If the implementation cannot observe *task*.
        """
        with self._lock:
            self._track(task)
            self._pending += 1
            self._logger.debug("Registered %s, pending=%d", describe_task(task), self._pending)

    def on_terminate(self, task: object, handler: TTerminationHandler) -> None:
        """Run *handler* once, when termination of *task* is notified."""
        with self._lock:
            self._store_handler(task, handler)

    def notify_terminated(self, task: object) -> None:
        """Record explicit termination of *task*.

        The termination handler runs before the task stops being tracked. If it raises, the
        bookkeeping still completes and the exception propagates to the caller.

        Notifying a task that is not tracked (a second notification, or a task that was never
        registered) is logged. With ``guard_double_termination`` enabled the pending counter is
        left untouched in that case, otherwise it is decremented regardless.
        """
        with self._lock:
            handler = self._pop_handler(task)
            try:
                if handler is not None:
                    handler()
            finally:
                tracked = self._untrack(task)
                if tracked or not self.settings.guard_double_termination:
                    self._pending -= 1
                if tracked:
                    self._logger.debug("Terminated %s, pending=%d", describe_task(task), self._pending)
                else:
                    self._logger.warning(
                        "Termination of untracked task %s notified, pending=%d",
                        describe_task(task),
                        self._pending,
                    )

    def is_quiescent(self) -> bool:
        """Return ``True`` when no work is pending."""
        with self._lock:
            return self._pending <= 0

    def pending_count(self) -> int:
        """Return the value of the pending counter."""
        with self._lock:
            return self._pending

    def set_pending_count(self, count: int) -> None:
        """Overwrite the pending counter. The value is not validated."""
        with self._lock:
            self._pending = count

    def status(self) -> RegisterStatus:
        """Return a diagnostic snapshot of the register and log it."""
        with self._lock:
            snapshot = RegisterStatus(
                pending=self._pending,
                tracked=self._tracked_count(),
                handlers=self._handler_count(),
            )
        self._logger.info(
            "%s: pending=%d tracked=%d handlers=%d",
            type(self).__name__,
            snapshot.pending,
            snapshot.tracked,
            snapshot.handlers,
        )
        return snapshot

    @abstractmethod
    def reclaim(self) -> int:
        """Account for every tracked task collected since the previous call."""

    @abstractmethod
    def _track(self, task: object) -> None:
        """Create a tracking entry for *task*."""

    @abstractmethod
    def _untrack(self, task: object) -> bool:
        """Remove one tracking entry for *task*.

        :returns: ``False`` if *task* was not tracked.
        """

    @abstractmethod
    def _store_handler(self, task: object, handler: TTerminationHandler) -> None:
        """Remember *handler* for *task*, replacing any previous one."""

    @abstractmethod
    def _pop_handler(self, task: object) -> TTerminationHandler | None:
        """Remove and return the handler stored for *task*."""

    @abstractmethod
    def _tracked_count(self) -> int:
        """Return the number of tracking entries."""

    @abstractmethod
    def _handler_count(self) -> int:
        """Return the number of stored handlers."""


@_register(LivenessRegisterEnum.WeakRefLivenessRegister)
class WeakRefLivenessRegister(AbstractLivenessRegister):
    """Register observing tasks through weak references.

    Every registration creates a :class:`~liveness.register.common.TrackingHandle`. When a
    task is collected, its handle is put on a reclamation queue by the weak reference callback;
    :meth:`reclaim` drains that queue. The callback only touches the queue, never the lock,
    because the garbage collector may run it in any thread at any time.

    Handles are indexed by task identity, so termination does not scan all handles. A handle
    removed on termination is dropped together with its callback and is never queued.
    Termination handlers hold their task through a handle of their own, so a handler whose
    task is collected unnotified is discarded by the next :meth:`reclaim`.
    """

    def __init__(self, settings: LivenessSettings | None = None) -> None:
        """Initialize an empty register with its own reclamation queue."""
        super().__init__(settings)
        self._reclaimed: queue.SimpleQueue[TrackingHandle] = queue.SimpleQueue()
        self._handles: dict[TaskKey, list[TrackingHandle]] = {}
        self._hooks: dict[TaskKey, TerminationHook] = {}
        self._orphaned_hooks: queue.SimpleQueue[TrackingHandle] = queue.SimpleQueue()

    def reclaim(self) -> int:
        """Drain the reclamation queue without running any termination handler.

        :returns: Number of tasks reclaimed by this call.
        """
        reclaimed = 0
        with self._lock:
            while True:
                try:
                    handle = self._reclaimed.get_nowait()
                except queue.Empty:
                    break
                if not self._discard_handle(handle):
                    continue
                self._pending -= 1
                reclaimed += 1
            self._drop_orphaned_hooks()

            if reclaimed:
                self._logger.debug("Reclaimed %d collected task(s), pending=%d", reclaimed, self._pending)
        return reclaimed

    def _track(self, task: object) -> None:
        try:
            handle = TrackingHandle(task, self._reclaimed.put)
        except TypeError as exc:
            msg = f"{type(task).__name__!r} objects cannot be tracked: weak references are not supported"
            raise TaskNotTrackableError(msg) from exc
        self._handles.setdefault(handle.key, []).append(handle)

    def _untrack(self, task: object) -> bool:
        key = task_key(task)
        bucket = self._handles.get(key, [])
        for idx, handle in enumerate(bucket):
            if handle() is task:
                del bucket[idx]
                if not bucket:
                    del self._handles[key]
                return True
        return False

    def _discard_handle(self, handle: TrackingHandle) -> bool:
        """Remove *handle* from the index, returning ``False`` if it was already gone."""
        bucket = self._handles.get(handle.key, [])
        for idx, candidate in enumerate(bucket):
            if candidate is handle:
                del bucket[idx]
                if not bucket:
                    del self._handles[handle.key]
                return True
        return False

    def _drop_orphaned_hooks(self) -> None:
        """Forget handlers whose task was collected, without running them."""
        while True:
            try:
                task_ref = self._orphaned_hooks.get_nowait()
            except queue.Empty:
                return
            hook = self._hooks.get(task_ref.key)
            if hook is not None and hook.task_ref is task_ref:
                del self._hooks[task_ref.key]

    def _store_handler(self, task: object, handler: TTerminationHandler) -> None:
        try:
            task_ref = TrackingHandle(task, self._orphaned_hooks.put)
        except TypeError as exc:
            msg = f"{type(task).__name__!r} objects cannot be tracked: weak references are not supported"
            raise TaskNotTrackableError(msg) from exc
        self._hooks[task_key(task)] = TerminationHook(task_ref=task_ref, handler=handler)

    def _pop_handler(self, task: object) -> TTerminationHandler | None:
        key = task_key(task)
        hook = self._hooks.get(key)
        if hook is None:
            return None
        # The key may belong to a collected task whose identity was reused.
        del self._hooks[key]
        return hook.handler if hook.belongs_to(task) else None

    def _tracked_count(self) -> int:
        return sum(len(bucket) for bucket in self._handles.values())

    def _handler_count(self) -> int:
        return len(self._hooks)


@_register(LivenessRegisterEnum.ExplicitLivenessRegister)
class ExplicitLivenessRegister(AbstractLivenessRegister):
    """Register for engines that notify termination on every exit path.

    Tasks are tracked by identity alone and are never referenced, weakly or otherwise,
    so any object can be registered. Nothing is ever reclaimed automatically: a task
    that is dropped without notification stays pending.
    """

    def __init__(self, settings: LivenessSettings | None = None) -> None:
        """Initialize an empty register."""
        super().__init__(settings)
        self._registrations: dict[TaskKey, int] = {}
        self._handlers: dict[TaskKey, TTerminationHandler] = {}

    def reclaim(self) -> int:
        """Return ``0``; termination is only ever learnt from notifications."""
        return 0

    def _track(self, task: object) -> None:
        key = task_key(task)
        self._registrations[key] = self._registrations.get(key, 0) + 1

    def _untrack(self, task: object) -> bool:
        key = task_key(task)
        remaining = self._registrations.get(key, 0)
        if remaining == 0:
            return False
        if remaining == 1:
            del self._registrations[key]
        else:
            self._registrations[key] = remaining - 1
        return True

    def _store_handler(self, task: object, handler: TTerminationHandler) -> None:
        self._handlers[task_key(task)] = handler

    def _pop_handler(self, task: object) -> TTerminationHandler | None:
        return self._handlers.pop(task_key(task), None)

    def _tracked_count(self) -> int:
        return sum(self._registrations.values())

    def _handler_count(self) -> int:
        return len(self._handlers)
