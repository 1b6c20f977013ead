"""Public interface for the liveness package."""

from __future__ import annotations

from .context import initialize_liveness_register, initialize_settings
from .monitor.monitor import QuiescenceMonitor
from .register.common import RegisterStatus
from .register.register import (
    ExplicitLivenessRegister,
    LivenessRegisterProtocol,
    WeakRefLivenessRegister,
)
from .settings import LivenessSettings

__all__ = [
    "ExplicitLivenessRegister",
    "LivenessRegisterProtocol",
    "LivenessSettings",
    "QuiescenceMonitor",
    "RegisterStatus",
    "WeakRefLivenessRegister",
    "initialize_liveness_register",
    "initialize_settings",
]
