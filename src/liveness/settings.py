"""Settings for the liveness register and useful functionality to work with them."""

from __future__ import annotations

import dataclasses
import os
from typing import Any, TypedDict

from liveness.common import DEFAULT_RECLAIM_INTERVAL, LIVENESS_ENV_PREFIX, LivenessRegisterEnum
from liveness.errors import LivenessConfigError
from liveness.py_compatibility import NotRequired, Unpack


class LivenessSettingsKwargs(TypedDict):
    """Kwargs accepted by :meth:`LivenessSettings.load`."""

    liveness_register: NotRequired[LivenessRegisterEnum | str]
    reclaim_interval: NotRequired[float]
    guard_double_termination: NotRequired[bool]
    force_collect: NotRequired[bool]


@dataclasses.dataclass
class LivenessSettings:
    """Strongly typed configuration holder for liveness tracking.

    :param liveness_register: Register implementation, either a known enum member or a dotted path.
    :param reclaim_interval: Seconds a :class:`~liveness.monitor.monitor.QuiescenceMonitor` sleeps
        between reclamation passes.
    :param guard_double_termination: When ``True`` a termination notification for a task that is not
        tracked leaves the pending counter untouched. When ``False`` the counter is decremented anyway.
    :param force_collect: Run a full garbage collection before every monitor reclamation pass.
    """

    liveness_register: LivenessRegisterEnum | str
    reclaim_interval: float
    guard_double_termination: bool
    force_collect: bool

    @classmethod
    def from_defaults(cls) -> dict[str, Any]:
        """Return the canonical default values for all settings fields."""
        return {
            "liveness_register": LivenessRegisterEnum.WeakRefLivenessRegister,
            "reclaim_interval": DEFAULT_RECLAIM_INTERVAL,
            "guard_double_termination": True,
            "force_collect": False,
        }

    @classmethod
    def load(cls, **settings: Any) -> LivenessSettings:
        """Load settings from keyword overrides, env vars, and defaults (in that order).

        :param settings: Keyword arguments that override both environment variables and defaults.
        :returns: A fully instantiated :class:`LivenessSettings` object.
        """
        final_settings = cls.from_defaults()
        final_settings.update(cls.from_envs())
        final_settings.update(settings)
        return cls(**final_settings)

    def update(self, **settings: Unpack[LivenessSettingsKwargs]) -> None:
        """Apply keyword overrides directly to the instance."""
        for k, v in settings.items():
            if hasattr(self, k):
                setattr(self, k, v)

    def as_dict(self) -> dict[str, Any]:
        """Return specified settings as a plain dictionary for serialisation."""
        return dataclasses.asdict(self)

    @classmethod
    def from_envs(cls) -> dict[str, Any]:
        """Return settings overridden via ``LIVENESS_*`` environment variables."""
        coercers: dict[str, Any] = {
            "liveness_register": lambda v: _enum_or_path(v, LivenessRegisterEnum),
            "reclaim_interval": _to_interval,
            "guard_double_termination": _to_bool,
            "force_collect": _to_bool,
        }

        to_return: dict[str, Any] = {}
        for field in dataclasses.fields(cls):
            env_var = f"{LIVENESS_ENV_PREFIX}_{field.name.upper()}"
            if env_var not in os.environ:
                continue
            raw_value = os.environ[env_var]
            if field.name not in coercers:
                to_return[field.name] = raw_value
                continue

            try:
                to_return[field.name] = coercers[field.name](raw_value)
            except ValueError as exc:
                msg = f"{raw_value!r} is not a valid value for {field.name!r}"
                raise LivenessConfigError(msg) from exc
        return to_return


def _enum_or_path(value: str, enum_cls: Any) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _to_interval(value: str) -> float:
    interval = float(value)
    if interval < 0:
        msg = f"Must be a non-negative number of seconds, got {value!r}"
        raise ValueError(msg)
    return interval


def _to_bool(value: str) -> bool:
    truthy = {"1", "true", "yes", "on"}
    falsy = {"0", "false", "no", "off"}
    lower = value.lower()
    if lower in truthy:
        return True
    if lower in falsy:
        return False
    msg = f"Must be a boolean (one of {sorted(truthy | falsy)}), got {value!r}"
    raise ValueError(msg)
