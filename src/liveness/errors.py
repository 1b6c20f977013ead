"""Module containing liveness-related errors."""


class LivenessError(Exception):
    """Base class for all liveness-related errors."""


class TaskNotTrackableError(LivenessError, TypeError):
    """Raised when a task cannot be observed through a weak reference."""


class LivenessConfigError(LivenessError, ValueError):
    """Raised when a configuration value supplied through settings is invalid."""


class LivenessApplicationError(LivenessError, AssertionError):
    """Raised when a liveness development error occurred.

    Signals a known implementation enum without a registered class behind it.
    """


class InvalidSpecifiedTypeError(LivenessError, TypeError):
    """Raised when a specified type by settings is invalid."""
