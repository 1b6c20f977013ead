"""Utility functions accessible from everywhere in the application."""

__all__ = ["describe_task", "make_specific_register_func", "task_key"]

from collections.abc import Callable

from liveness.liveness_types import TaskKey, TImplementation, TStrEnum


def make_specific_register_func(
    registry_map: dict[TStrEnum, TImplementation],
) -> Callable[[TStrEnum], Callable[[TImplementation], TImplementation]]:
    """Build a class decorator factory storing implementations in *registry_map* by enum key."""

    def _register(enum_key: TStrEnum) -> Callable[[TImplementation], TImplementation]:
        def wrapper(item: TImplementation) -> TImplementation:
            registry_map[enum_key] = item
            return item

        return wrapper

    return _register


def task_key(task: object) -> TaskKey:
    """Return the identity key a task is indexed under.

    Keys may be reused once a task is gone, so callers must still compare the task itself with ``is``.
    """
    return id(task)


def describe_task(task: object) -> str:
    """Return a short human-readable label for log records."""
    return f"{type(task).__name__}@{task_key(task):#x}"
