"""Some common constants and objects which may be used in any modules."""

from __future__ import annotations

from typing import Final

from liveness.py_compatibility import StrEnum

LIVENESS_ENV_PREFIX: Final[str] = "LIVENESS"
DEFAULT_RECLAIM_INTERVAL: Final[float] = 0.1


class LivenessRegisterEnum(StrEnum):
    """Enum of known liveness registers."""

    WeakRefLivenessRegister = "WeakRefLivenessRegister"
    """Tracks tasks weakly and learns about abandoned ones from the garbage collector."""
    ExplicitLivenessRegister = "ExplicitLivenessRegister"
    """Relies solely on explicit termination notifications."""
