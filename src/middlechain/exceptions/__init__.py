"""Custom exceptions for the middlechain library.

This module defines the exceptions middlechain raises itself. Errors
produced by steps are never wrapped: they travel through the chain as-is
and reach the terminal continuation unchanged.
"""

from middlechain._internal.exceptions import (
    BaseMiddlechainError,
    SchedulingError,
    StepSignatureError,
)

__all__ = (
    "BaseMiddlechainError",
    "SchedulingError",
    "StepSignatureError",
)
