"""Two-case optional values used wherever a conversion or lookup may fail.

``Present`` wraps a value and ``Absent`` carries the reason there is none.
Conversions return one of the two instead of raising, so the caller decides
whether a missing value is fatal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterator, Optional, TypeVar, Union

from .errors import EmptyValueError, UnsetOptionalError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Present(Generic[T]):
    """An option holding ``value``."""

    value: T

    def __post_init__(self) -> None:
        if self.value is None:
            raise TypeError("Present cannot wrap None; use Absent instead.")

    def map(self, function: Callable[[T], U]) -> "Option[U]":
        return some(function(self.value))

    def bind(self, function: Callable[[T], "Option[U]"]) -> "Option[U]":
        return function(self.value)

    def get(self) -> T:
        return self.value

    def get_or_else(self, default: Any) -> T:
        return self.value

    def is_absent(self) -> bool:
        return False

    def is_present(self) -> bool:
        return True

    @property
    def reason(self) -> str:
        raise AttributeError("A present option has no absence reason.")

    def __iter__(self) -> Iterator[T]:
        yield self.value


@dataclass(frozen=True)
class Absent:
    """An option without a value.

    ``parameter`` is set when this is the unset default of an optional
    parameter, in which case :meth:`get` raises :class:`UnsetOptionalError`
    instead of the plain :class:`EmptyValueError`.
    """

    reason: str
    parameter: Optional[str] = None

    def map(self, function: Callable[[Any], Any]) -> "Absent":
        return self

    def bind(self, function: Callable[[Any], "Option[Any]"]) -> "Absent":
        return self

    def get(self) -> Any:
        if self.parameter is not None:
            raise UnsetOptionalError(self.reason)
        raise EmptyValueError(
            "This option has no value, get() cannot be called on it. "
            f"The reason it has no value: {self.reason}"
        )

    def get_or_else(self, default: T) -> T:
        return default

    def is_absent(self) -> bool:
        return True

    def is_present(self) -> bool:
        return False

    def __iter__(self) -> Iterator[Any]:
        return iter(())


Option = Union[Present[T], Absent]


def some(value: T) -> Present[T]:
    """Return ``value`` wrapped in :class:`Present`."""

    return Present(value)


def none(reason: str) -> Absent:
    """Return an :class:`Absent` explaining why there is no value."""

    return Absent(reason)


__all__ = ["Present", "Absent", "Option", "some", "none"]
