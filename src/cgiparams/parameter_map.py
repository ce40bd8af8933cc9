"""Immutable parameter sets and the validators that guard them.

A :class:`ParameterSet` maps parameter descriptions to their stored values.
Every assignment returns a new set after the description's own constraint and
the set-wide :class:`Validator` have both accepted the candidate, so a set
that exists is always valid and can be shared freely, including between
threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Sequence, TypeVar

from .descriptions import ParameterDescription
from .errors import ConversionFailure, ValidationError
from .url import URLParameter

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Validator:
    """A named predicate over a whole candidate parameter set."""

    predicate: Callable[["ParameterSet"], bool]
    description: str = "custom validator"

    def is_valid(self, parameter_set: "ParameterSet") -> bool:
        return bool(self.predicate(parameter_set))

    def __call__(self, parameter_set: "ParameterSet") -> bool:
        return self.is_valid(parameter_set)

    @staticmethod
    def mutually_exclusive(
        descriptions: Iterable[ParameterDescription[Any, Any]]
    ) -> "Validator":
        """Accept sets in which at most one of ``descriptions`` is non-default."""

        exclusive = tuple(descriptions)
        names = ", ".join(description.name for description in exclusive)

        def predicate(parameter_set: "ParameterSet") -> bool:
            non_default = sum(
                0 if parameter_set.is_default(description) else 1
                for description in exclusive
            )
            return non_default < 2

        return Validator(predicate, f"mutually exclusive: {names}")

    @staticmethod
    def all_of(validators: Iterable["Validator"]) -> "Validator":
        """Accept sets that every validator in ``validators`` accepts."""

        combined = tuple(validators)
        if not combined:
            return ACCEPT_ALL
        if len(combined) == 1:
            return combined[0]
        return Validator(
            lambda parameter_set: all(v.is_valid(parameter_set) for v in combined),
            "; ".join(v.description for v in combined),
        )


ACCEPT_ALL = Validator(lambda _parameter_set: True, "accept all")


class ParameterSet:
    """Immutable, validated mapping from parameter descriptions to values.

    Parameters
    ----------
    validator:
        Set-wide rule run after every assignment. Defaults to accepting every
        set.
    """

    __slots__ = ("_values", "_validator")

    def __init__(self, validator: Validator = ACCEPT_ALL) -> None:
        self._values: Mapping[ParameterDescription[Any, Any], Any] = MappingProxyType({})
        self._validator = validator

    @classmethod
    def _from_values(
        cls,
        values: dict[ParameterDescription[Any, Any], Any],
        validator: Validator,
    ) -> "ParameterSet":
        built = cls.__new__(cls)
        built._values = MappingProxyType(values)
        built._validator = validator
        return built

    @property
    def validator(self) -> Validator:
        return self._validator

    @property
    def values(self) -> Mapping[ParameterDescription[Any, Any], Any]:
        """Read-only view of the explicitly stored values."""

        return self._values

    def get(self, description: ParameterDescription[Any, R]) -> R:
        """Return the stored value for ``description`` or its default."""

        if description in self._values:
            return self._values[description]
        return description.default_value

    def is_default(self, description: ParameterDescription[Any, Any]) -> bool:
        """Return whether ``description`` currently holds its default value."""

        if description not in self._values:
            return True
        return self._values[description] == description.default_value

    def with_value(self, description: ParameterDescription[T, Any], value: T) -> "ParameterSet":
        """Return a new set with ``value`` merged into ``description``'s slot.

        Raises
        ------
        TypeError
            If ``value`` is ``None``.
        AlreadySetError, OutOfRangeError, IllegalValueError
            If the description refuses ``value``.
        ConversionFailure
            If ``value`` would not be written and read back unchanged.
        ValidationError
            If the validator rejects the resulting set. The receiver is left
            unchanged in every case.
        """

        if value is None:
            raise TypeError(f"Values for the {description.name} parameter cannot be None.")

        copy = dict(self._values)
        copy[description] = description.reduce(value, self.get(description))
        built = ParameterSet._from_values(copy, self._validator)
        if not self._validator.is_valid(built):
            raise ValidationError(
                f"{value} for {description.name} violates the constraints on this "
                f"parameter set ({self._validator.description})"
            )
        return built

    def with_url_parameter(
        self, description: ParameterDescription[Any, Any], parameter: URLParameter
    ) -> "ParameterSet":
        """Parse ``parameter`` with ``description`` and assign the result."""

        parsed = description.from_url_parameter(parameter)
        if parsed.is_absent():
            raise ConversionFailure(
                f"Cannot parse {parameter.name}={parameter.value!r}: {parsed.reason}"
            )
        return self.with_value(description, parsed.get())

    def with_text(self, description: ParameterDescription[Any, Any], text: str) -> "ParameterSet":
        """Parse ``text`` as the value of a scalar ``description`` and assign it."""

        return self.with_url_parameter(description, URLParameter(description.name, text))

    def to_url_parameters(
        self, descriptions: Sequence[ParameterDescription[Any, Any]]
    ) -> str:
        """Serialize the non-default values of ``descriptions`` in order.

        Raises
        ------
        ConversionFailure
            If a stored value cannot be written as text.
        """

        pieces = []
        for description in descriptions:
            if self.is_default(description):
                continue
            text = description.to_url_parameter(self.get(description))
            if text.is_absent():
                raise ConversionFailure(
                    f"Cannot write the {description.name} parameter: {text.reason}"
                )
            if text.get():
                pieces.append(text.get())
        return "&".join(pieces)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterSet):
            return NotImplemented
        descriptions = set(self._values) | set(other._values)
        return all(
            self.get(description) == other.get(description)
            for description in descriptions
        )

    def __hash__(self) -> int:
        return hash(
            frozenset(
                description
                for description in self._values
                if not self.is_default(description)
            )
        )

    def __repr__(self) -> str:
        items = ", ".join(
            f"{description.name}={value!r}" for description, value in self._values.items()
        )
        return f"ParameterSet({items})"


__all__ = ["Validator", "ACCEPT_ALL", "ParameterSet"]
