"""Exception taxonomy shared by the parameter codec.

Every failure raised by this package is a :class:`CgiParamsError`, so CGI
builders can turn any of them into a user-facing error with a single
``except`` clause while tests can still assert on the precise subclass.
"""

from __future__ import annotations


class CgiParamsError(Exception):
    """Base class for all parameter codec errors."""


class ConversionFailure(CgiParamsError, ValueError):
    """Text could not be converted to the parameter's type."""


class AlreadySetError(CgiParamsError):
    """A single-valued parameter was assigned a second time."""


class OutOfRangeError(CgiParamsError, ValueError):
    """A bounded integer parameter received a value outside its bounds."""


class IllegalValueError(CgiParamsError, ValueError):
    """A parameter received a value it explicitly disallows."""


class ValidationError(CgiParamsError):
    """A whole-set validator rejected a candidate parameter set."""


class EmptyValueError(CgiParamsError, LookupError):
    """``get()`` was called on an absent optional value."""


class UnsetOptionalError(EmptyValueError):
    """The value of an optional parameter was read before it was set."""


class MalformedURLError(CgiParamsError, ValueError):
    """A URL token could not be split into a name and a value."""


class UnknownParameterError(MalformedURLError):
    """A URL token names no declared parameter (strict parsing only)."""


class SchemaConfigError(CgiParamsError):
    """A schema declaration file is malformed or inconsistent."""


__all__ = [
    "CgiParamsError",
    "ConversionFailure",
    "AlreadySetError",
    "OutOfRangeError",
    "IllegalValueError",
    "ValidationError",
    "EmptyValueError",
    "UnsetOptionalError",
    "MalformedURLError",
    "UnknownParameterError",
    "SchemaConfigError",
]
