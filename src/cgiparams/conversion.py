"""Composable conversions and the two-way text conversions built from them.

A :class:`Conversion` is a total function value that composes with
:meth:`Conversion.and_then`. A :class:`StringConversion` pairs two *partial*
conversions, text to value and value to text, each returning an
:class:`~cgiparams.option.Option`. The built-in conversions below cover the
value types used by CGI parameters: plain strings, booleans, decimal and
hexadecimal integers, and case-insensitive enumerations.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Type, TypeVar

from .option import Option, none, some

A = TypeVar("A")
B = TypeVar("B")
C = TypeVar("C")
T = TypeVar("T")
E = TypeVar("E", bound=Enum)

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1

_DECIMAL_PATTERN = re.compile(r"[+-]?[0-9]+")
_HEX_PATTERN = re.compile(r"[0-9a-fA-F]+")


class Conversion(Generic[A, B]):
    """A total function from ``A`` to ``B`` that can be chained."""

    def __init__(self, function: Callable[[A], B]) -> None:
        self._function = function

    def __call__(self, value: A) -> B:
        return self._function(value)

    def and_then(self, after: Callable[[B], C]) -> "Conversion[A, C]":
        """Return a conversion applying this one and then ``after``."""

        return Conversion(lambda value: after(self._function(value)))

    @staticmethod
    def identity() -> "Conversion[A, A]":
        return Conversion(lambda value: value)

    @staticmethod
    def constant(result: B) -> "Conversion[object, B]":
        return Conversion(lambda _value: result)


@dataclass(frozen=True)
class StringConversion(Generic[T]):
    """Partial conversions from text to ``T`` and back.

    For every value produced by :attr:`from_text`, converting it back with
    :attr:`to_text` and parsing the result again yields an equal value. The
    pair does not have to be bijective over all of ``T``; case-insensitive
    parsing is an example.
    """

    from_text: Callable[[str], Option[T]]
    to_text: Callable[[T], Option[str]]

    @staticmethod
    def partial(
        from_text: Callable[[str], Option[T]],
        to_text: Callable[[T], Option[str]],
    ) -> "StringConversion[T]":
        return StringConversion(from_text, to_text)

    @staticmethod
    def total(
        from_text: Callable[[str], T], to_text: Callable[[T], str]
    ) -> "StringConversion[T]":
        """Wrap two always-succeeding functions so that both return ``Present``."""

        return StringConversion(
            Conversion(from_text).and_then(some),
            Conversion(to_text).and_then(some),
        )

    @staticmethod
    def convenient_partial(
        from_text: Callable[[str], Option[T]]
    ) -> "StringConversion[T]":
        """Partial parsing with ``str`` as the reverse direction."""

        return StringConversion(from_text, Conversion(str).and_then(some))

    @staticmethod
    def convenient_total(from_text: Callable[[str], T]) -> "StringConversion[T]":
        return StringConversion.total(from_text, str)

    @staticmethod
    def unsupported(reason: str) -> "StringConversion[T]":
        """A conversion that fails in both directions with ``reason``."""

        return StringConversion(lambda _text: none(reason), lambda _value: none(reason))


def _text_to_int(text: str) -> Option[int]:
    if not _DECIMAL_PATTERN.fullmatch(text):
        return none(f"{text!r} is not a decimal integer")
    value = int(text)
    if not INT_MIN <= value <= INT_MAX:
        return none(f"{text!r} is outside the 32-bit integer range")
    return some(value)


def _text_to_bool(text: str) -> Option[bool]:
    lowered = text.lower()
    if lowered == "true":
        return some(True)
    if lowered == "false":
        return some(False)
    return none(f"{text!r} is not 'true' or 'false'")


def _bool_to_text(value: bool) -> Option[str]:
    return some("true" if value else "false")


def _hex_to_int(bits: int) -> Callable[[str], Option[int]]:
    mask = (1 << bits) - 1
    sign_bit = 1 << (bits - 1)

    def convert(text: str) -> Option[int]:
        if not _HEX_PATTERN.fullmatch(text):
            return none(f"{text!r} is not a hexadecimal number")
        value = int(text, 16) & mask
        return some(value - (1 << bits) if value & sign_bit else value)

    return convert


def _int_to_hex(bits: int) -> Callable[[int], Option[str]]:
    mask = (1 << bits) - 1
    lower = -(1 << (bits - 1))
    upper = (1 << (bits - 1)) - 1

    def convert(value: int) -> Option[str]:
        if not lower <= value <= upper:
            return none(f"{value} does not fit in {bits} bits")
        return some(format(value & mask, "x"))

    return convert


def string() -> StringConversion[str]:
    """Identity conversion for free-text parameters."""

    return StringConversion.total(lambda text: text, lambda value: value)


def integer() -> StringConversion[int]:
    """Signed decimal integers within the 32-bit range."""

    return StringConversion.convenient_partial(_text_to_int)


def boolean() -> StringConversion[bool]:
    """``true``/``false`` in any case, written back in lowercase."""

    return StringConversion(_text_to_bool, _bool_to_text)


def hex_int() -> StringConversion[int]:
    """32-bit integers written as lowercase hexadecimal without leading zeros.

    Negative values use their two's complement form, so ``-1`` is written as
    ``ffffffff`` and parsed back to ``-1``.
    """

    return StringConversion(_hex_to_int(32), _int_to_hex(32))


def hex_long() -> StringConversion[int]:
    """64-bit variant of :func:`hex_int`."""

    return StringConversion(_hex_to_int(64), _int_to_hex(64))


def enum_conversion(enum_cls: Type[E]) -> StringConversion[E]:
    """Members of ``enum_cls`` by name, case-insensitively.

    Members are written back as their lowercase name.
    """

    members = {member.name.lower(): member for member in enum_cls}

    def from_text(text: str) -> Option[E]:
        member = members.get(text.lower())
        if member is None:
            return none(f"{text} is not a valid {enum_cls.__name__}")
        return some(member)

    return StringConversion(from_text, lambda member: some(member.name.lower()))


__all__ = [
    "INT_MIN",
    "INT_MAX",
    "Conversion",
    "StringConversion",
    "string",
    "integer",
    "boolean",
    "hex_int",
    "hex_long",
    "enum_conversion",
]
