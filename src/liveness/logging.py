"""Logging helpers shared by liveness components."""

from __future__ import annotations

__all__ = ["DEFAULT_LOG_FORMAT", "WithLogger", "configure_logging"]

import logging
from typing import Final

DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_HANDLER_NAME: Final[str] = "liveness"


class WithLogger:
    """Mixin providing a logger named after the concrete class."""

    @classmethod
    def _get_logger(cls) -> logging.Logger:
        return logging.getLogger(cls.__name__)

    @property
    def _logger(self) -> logging.Logger:
        return self._get_logger()


def configure_logging(level: int | str = logging.INFO, fmt: str = DEFAULT_LOG_FORMAT) -> None:
    """Configure the root logger with a stream handler using *fmt*.

    :param level: Numeric level or level name such as ``"DEBUG"``.
    :param fmt: Format string for the installed handler.
    :raises ValueError: If *level* is a string that does not name a logging level.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            msg = f"{level!r} is not a valid logging level name"
            raise ValueError(msg)
        level = resolved

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    handler = next((h for h in root_logger.handlers if h.get_name() == _HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        root_logger.addHandler(handler)
    handler.setFormatter(logging.Formatter(fmt))
