"""Contains common objects and functionality for liveness registers."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any
import weakref

from liveness.utils import task_key

if TYPE_CHECKING:
    from collections.abc import Callable

    from liveness.liveness_types import TaskKey, TTerminationHandler


class TrackingHandle(weakref.ref):  # type: ignore[type-arg]
    """Weak observation of a registered task.

    The handle remembers the identity key of its task so it can still be located
    in the registry after the task itself has been collected.
    """

    key: TaskKey

    def __init__(self, task: Any, callback: Callable[[TrackingHandle], Any]) -> None:
        """Observe *task*; *callback* receives the handle once the task is collected."""
        super().__init__(task, callback)
        self.key = task_key(task)


@dataclasses.dataclass(slots=True)
class TerminationHook:
    """A termination handler together with a weak handle on the task it belongs to."""

    task_ref: TrackingHandle
    handler: TTerminationHandler

    def belongs_to(self, task: object) -> bool:
        """Return ``True`` when the hook was registered for this very *task*."""
        return self.task_ref() is task


@dataclasses.dataclass(slots=True, frozen=True)
class RegisterStatus:
    """Diagnostic snapshot of a liveness register."""

    pending: int
    """Value of the pending counter."""
    tracked: int
    """Number of tracking entries currently held."""
    handlers: int
    """Number of termination handlers waiting for their task."""
