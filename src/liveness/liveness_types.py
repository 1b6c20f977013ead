"""Collection of generic types and type aliases for the liveness package."""

__all__ = ["TImplementation", "TStrEnum", "TTerminationHandler", "TaskKey"]

from collections.abc import Callable
from typing import TypeAlias, TypeVar

from liveness.py_compatibility import StrEnum

TTerminationHandler: TypeAlias = Callable[[], object]
TStrEnum = TypeVar("TStrEnum", bound=StrEnum)
TImplementation = TypeVar("TImplementation")
TaskKey: TypeAlias = int
