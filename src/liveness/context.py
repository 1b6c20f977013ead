"""Resolve :class:`~liveness.settings.LivenessSettings` into runtime services."""

import importlib
from typing import Any, cast

from typing_extensions import assert_never

from liveness.common import LivenessRegisterEnum
from liveness.errors import InvalidSpecifiedTypeError, LivenessApplicationError
from liveness.liveness_types import TImplementation, TStrEnum
from liveness.register.register import KNOWN_LIVENESS_REGISTERS, LivenessRegisterProtocol
from liveness.settings import LivenessSettings


def initialize_settings(**settings: Any) -> LivenessSettings:
    """Load settings, giving *settings* priority over environment variables and defaults."""
    return LivenessSettings.load(**settings)


def initialize_liveness_register(settings: LivenessSettings) -> LivenessRegisterProtocol:
    """Instantiate the liveness register selected by *settings*."""
    return _initialize(
        settings.liveness_register,
        KNOWN_LIVENESS_REGISTERS,
        LivenessRegisterProtocol,  # type: ignore[type-abstract]
        LivenessRegisterEnum,
        settings,
    )


def _unregistered_known_type(type_: TStrEnum) -> LivenessApplicationError:
    """Return an error when a known enum value lacks a registered implementation."""
    msg = (
        f"Found unregistered type: {type_!r}. "
        f"If you are developer, ensure you register it here. "
        f"If you are library user, please issue the error to development team."
    )
    return LivenessApplicationError(msg)


def _invalid_specified_type(py_path: str, expected_type: type[Any]) -> InvalidSpecifiedTypeError:
    """Return an error when importing a dotted path yields the wrong type."""
    msg = (
        f"Object specified by {py_path!r} is not an instance of {expected_type!r}. "
        f"Please, ensure correctness of application configuration."
    )
    return InvalidSpecifiedTypeError(msg)


def _initialize(
    settings_value: TStrEnum | str,
    registry: dict[TStrEnum, type[TImplementation]],
    expected_type: type[TImplementation],
    enum_type: type[TStrEnum],
    settings: LivenessSettings,
) -> TImplementation:
    """Instantiate either a registered enum implementation or a dotted Python path.

    :param settings_value: Value provided by :class:`LivenessSettings`, either an enum member
        or a dotted import path string.
    :param registry: Mapping of enum values to concrete classes.
    :param expected_type: Protocol or abstract base class that the result must satisfy.
    :param enum_type: Enum class associated with *registry*.
    :param settings: Settings handed to the constructor of the implementation.
    :returns: Instantiated implementation matching *settings_value*.
    :raises LivenessApplicationError: If an enum value is not registered.
    :raises InvalidSpecifiedTypeError: If the dotted path resolves to an incompatible type.
    """
    match settings_value:
        case _ if isinstance(settings_value, enum_type):
            if settings_value in registry:
                return registry[settings_value](settings)  # type: ignore[call-arg]
            raise _unregistered_known_type(settings_value)
        case str():
            return _initialize_by_py_path(settings_value, expected_type, settings)
        case _:
            assert_never(settings_value)


def _initialize_by_py_path(
    py_path: str, expected_type: type[TImplementation], settings: LivenessSettings
) -> TImplementation:
    """Resolve a dotted Python path into an instantiated object.

    :param py_path: Fully qualified import path in the ``package.module.Class`` format.
    :param expected_type: Protocol or ABC instance the resulting object must satisfy.
    :param settings: Settings handed to the constructor.
    :returns: An instance of the class referred to by *py_path*.
    :raises ImportError: If the module portion cannot be imported.
    :raises AttributeError: If the target attribute is missing.
    :raises InvalidSpecifiedTypeError: If the object does not implement *expected_type*.
    """
    module, klass = py_path.rsplit(".", 1)
    module_obj = importlib.import_module(module)
    result = getattr(module_obj, klass)(settings)
    if not isinstance(result, expected_type):
        raise _invalid_specified_type(py_path, expected_type)
    return cast("TImplementation", result)
