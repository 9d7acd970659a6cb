"""Exception hierarchy shared by the filter design and analysis helpers."""

from __future__ import annotations


class FilterError(ValueError):
    """Base class for every error raised by :mod:`gyrofilter`."""


class InvalidParameterError(FilterError):
    """A numeric or enumerated parameter is outside its valid domain."""


class NotchDivisionByZeroError(FilterError, ZeroDivisionError):
    """Notch Q cannot be derived because center equals bandwidth."""


class NumericInstabilityError(FilterError, ArithmeticError):
    """A coefficient, gain or state value is non-finite or unstable."""


__all__ = [
    "FilterError",
    "InvalidParameterError",
    "NotchDivisionByZeroError",
    "NumericInstabilityError",
]
