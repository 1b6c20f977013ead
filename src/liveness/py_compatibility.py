"""Module to contain compatibility objects based on different Python versions supported."""

__all__ = ["NotRequired", "StrEnum", "Unpack"]

import sys

if sys.version_info >= (3, 11):
    from enum import StrEnum
    from typing import NotRequired, Unpack
else:
    from backports.strenum import StrEnum
    from typing_extensions import NotRequired, Unpack
