"""Registers tracking which started tasks are still pending."""

from .common import RegisterStatus, TrackingHandle
from .register import (
    KNOWN_LIVENESS_REGISTERS,
    AbstractLivenessRegister,
    ExplicitLivenessRegister,
    LivenessRegisterProtocol,
    WeakRefLivenessRegister,
)

__all__ = [
    "KNOWN_LIVENESS_REGISTERS",
    "AbstractLivenessRegister",
    "ExplicitLivenessRegister",
    "LivenessRegisterProtocol",
    "RegisterStatus",
    "TrackingHandle",
    "WeakRefLivenessRegister",
]
