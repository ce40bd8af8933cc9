"""Parameter descriptions: the named, typed slots that make up a schema.

A description knows how to parse its value out of a URL parameter, how to
merge a newly parsed value with the value already stored for it (``reduce``),
which values it refuses (``check``) and how to write its value back into a
query string. Descriptions hold no state of their own; all values live in a
:class:`~cgiparams.parameter_map.ParameterSet`.

The variants form a closed set:

``ParameterWithDefault``
    A scalar with a default, settable at most once.
``ParameterWithoutDefault``
    An optional scalar stored as an :data:`~cgiparams.option.Option`.
``SparseArrayParameter``
    An ``index -> value`` mapping built from keys such as ``commands[3]``.
``BannedValueParameter``
    Wraps another description and refuses one value.
``BoundedParameter``
    Wraps an integer description and refuses values outside inclusive bounds.

Descriptions compare and hash by identity, so two declarations with the same
name are still different schema nodes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import (
    Any,
    Generic,
    Iterable,
    List,
    Mapping,
    Sequence,
    Tuple,
    TypeVar,
)

from .conversion import INT_MAX, StringConversion
from .errors import AlreadySetError, ConversionFailure, IllegalValueError, OutOfRangeError
from .escaping import escape_string
from .option import Absent, Option, none, some
from .strings import (
    remove_surrounding_quotes,
    split_ignoring_quoted_sections,
    surround_with_quotes,
)
from .url import URLParameter

T = TypeVar("T")
R = TypeVar("R")

IndexedValues = Tuple[Tuple[int, Any], ...]

LIST_SEPARATOR = ","


class ParameterDescription(ABC, Generic[T, R]):
    """Shared contract of every parameter description variant.

    ``T`` is the type parsed from one URL occurrence and ``R`` the type stored
    in a parameter set.
    """

    name: str

    @property
    @abstractmethod
    def default_value(self) -> R:
        """Value reported by a parameter set that never stored this parameter."""

    def matches(self, url_name: str) -> bool:
        """Return whether the URL key ``url_name`` addresses this parameter."""

        return url_name == self.name

    @abstractmethod
    def from_url_parameter(self, parameter: URLParameter) -> Option[T]:
        """Parse one decoded URL parameter into an input value."""

    def check(self, value: T) -> None:
        """Raise if ``value`` is never acceptable for this parameter."""

    @abstractmethod
    def reduce(self, new_value: T, original: R) -> R:
        """Merge ``new_value`` into the previously stored ``original``."""

    @abstractmethod
    def to_url_parameter(self, value: R) -> Option[str]:
        """Return ``value`` as one or more ``name=value`` pairs joined by ``&``."""


@dataclass(frozen=True, eq=False)
class ParameterWithDefault(ParameterDescription[T, T]):
    """A scalar parameter with a default value that may be set once."""

    name: str
    default: T
    conversion: StringConversion[T]

    @property
    def default_value(self) -> T:
        return self.default

    def from_url_parameter(self, parameter: URLParameter) -> Option[T]:
        return self.conversion.from_text(parameter.value)

    def check(self, value: T) -> None:
        _require_round_trip(self.name, self.conversion, value)

    def reduce(self, new_value: T, original: T) -> T:
        self.check(new_value)
        if original == self.default:
            return new_value
        raise AlreadySetError(
            f"The {self.name} parameter has already been set to a value other "
            "than its default"
        )

    def to_url_parameter(self, value: T) -> Option[str]:
        return self.conversion.to_text(value).map(
            lambda text: f"{self.name}={escape_string(text)}"
        )


@dataclass(frozen=True, eq=False)
class ParameterWithoutDefault(ParameterDescription[T, Option[T]]):
    """A scalar parameter with no default, stored as an option."""

    name: str
    conversion: StringConversion[T]

    @property
    def default_value(self) -> Absent:
        return Absent(
            f"The value for the {self.name} parameter has not been set yet",
            parameter=self.name,
        )

    def from_url_parameter(self, parameter: URLParameter) -> Option[T]:
        return self.conversion.from_text(parameter.value)

    def check(self, value: T) -> None:
        _require_round_trip(self.name, self.conversion, value)

    def reduce(self, new_value: T, original: Option[T]) -> Option[T]:
        self.check(new_value)
        if original.is_absent():
            return some(new_value)
        raise AlreadySetError(f"The {self.name} parameter has already been set to a value.")

    def to_url_parameter(self, value: Option[T]) -> Option[str]:
        return value.bind(
            lambda inner: self.conversion.to_text(inner).map(
                lambda text: f"{self.name}={escape_string(text)}"
            )
        )


@dataclass(frozen=True, eq=False)
class SparseArrayParameter(ParameterDescription[IndexedValues, Mapping[int, T]]):
    """An unbounded ``index -> value`` array carried by indexed URL keys.

    ``name[k]=a,b,c`` assigns ``a``, ``b`` and ``c`` to indices ``k``,
    ``k + 1`` and ``k + 2``. Elements may be wrapped in double quotes to
    protect embedded commas. Later assignments to an index overwrite earlier
    ones.
    """

    name: str
    conversion: StringConversion[T]

    @property
    def default_value(self) -> Mapping[int, T]:
        return MappingProxyType({})

    def matches(self, url_name: str) -> bool:
        return url_name.startswith(self.name + "[") and url_name.endswith("]")

    def start_index(self, url_name: str) -> Option[int]:
        """Return the index embedded in ``url_name`` such as ``name[4]``."""

        index_text = url_name[len(self.name) + 1 : -1]
        if not index_text.isdigit() or not index_text.isascii():
            return none(
                f"{url_name} does not carry a non-negative integer index for the "
                f"{self.name} parameter"
            )
        return some(int(index_text))

    def from_url_parameter(self, parameter: URLParameter) -> Option[IndexedValues]:
        index = self.start_index(parameter.name)
        if index.is_absent():
            return index
        return self._parse_elements(index.get(), parameter.value)

    def _parse_elements(self, start: int, value: str) -> Option[IndexedValues]:
        results: List[Tuple[int, Any]] = []
        for offset, element in enumerate(
            split_ignoring_quoted_sections(value, LIST_SEPARATOR)
        ):
            parsed = self.conversion.from_text(remove_surrounding_quotes(element))
            if parsed.is_absent():
                return none(
                    f"Element {start + offset} of the {self.name} parameter is "
                    f"invalid: {parsed.reason}"
                )
            results.append((start + offset, parsed.get()))
        return some(tuple(results))

    def check(self, value: Iterable[Tuple[int, Any]]) -> None:
        for index, element in value:
            if isinstance(index, bool) or not isinstance(index, int) or index < 0:
                raise IllegalValueError(
                    f"{index!r} is not a valid index for the {self.name} parameter"
                )
            if element is None:
                raise TypeError(
                    f"Values for the {self.name} parameter cannot be None."
                )
            _require_round_trip(f"{self.name}[{index}]", self.conversion, element)

    def reduce(
        self, new_value: Iterable[Tuple[int, Any]], original: Mapping[int, T]
    ) -> Mapping[int, T]:
        pairs = tuple(new_value)
        self.check(pairs)
        merged = dict(original)
        merged.update(pairs)
        result = MappingProxyType(dict(sorted(merged.items())))
        written = self.to_url_parameter(result)
        if written.is_absent():
            raise ConversionFailure(written.reason)
        return result

    def to_url_parameter(self, value: Mapping[int, T]) -> Option[str]:
        pieces = []
        for start, elements in _contiguous_runs(value):
            texts = []
            for element in elements:
                text = self.conversion.to_text(element)
                if text.is_absent():
                    return text
                texts.append(text.get())
            joined = _join_elements(texts)
            if joined is None:
                return none(
                    f"The values {texts!r} of the {self.name} parameter cannot be "
                    "written as a quoted list"
                )
            pieces.append(f"{self.name}[{start}]={escape_string(joined)}")
        return some("&".join(pieces))


@dataclass(frozen=True, eq=False)
class BannedValueParameter(ParameterDescription[T, R]):
    """Delegates to ``delegate`` but refuses the value ``banned``."""

    banned: T
    delegate: ParameterDescription[T, R]

    @property
    def name(self) -> str:  # type: ignore[override]
        return self.delegate.name

    @property
    def default_value(self) -> R:
        return self.delegate.default_value

    def matches(self, url_name: str) -> bool:
        return self.delegate.matches(url_name)

    def from_url_parameter(self, parameter: URLParameter) -> Option[T]:
        return self.delegate.from_url_parameter(parameter)

    def check(self, value: T) -> None:
        if value == self.banned:
            raise IllegalValueError(
                f"The {self.name} parameter is not allowed to take the supplied "
                f"value, {value}."
            )
        self.delegate.check(value)

    def reduce(self, new_value: T, original: R) -> R:
        self.check(new_value)
        return self.delegate.reduce(new_value, original)

    def to_url_parameter(self, value: R) -> Option[str]:
        return self.delegate.to_url_parameter(value)


@dataclass(frozen=True, eq=False)
class BoundedParameter(ParameterDescription[int, R]):
    """Delegates to an integer description, refusing values outside the bounds.

    Values in ``exceptions`` are accepted even though they lie outside
    ``[lower, upper]``, for CGI parameters where a sentinel such as ``-1``
    means "unlimited".
    """

    lower: int
    upper: int
    delegate: ParameterDescription[int, R]
    exceptions: Tuple[int, ...] = field(default=())

    def __post_init__(self) -> None:
        if self.lower > self.upper:
            raise ValueError(
                f"Lower bound {self.lower} is above upper bound {self.upper} for "
                f"the {self.delegate.name} parameter"
            )

    @property
    def name(self) -> str:  # type: ignore[override]
        return self.delegate.name

    @property
    def default_value(self) -> R:
        return self.delegate.default_value

    def matches(self, url_name: str) -> bool:
        return self.delegate.matches(url_name)

    def from_url_parameter(self, parameter: URLParameter) -> Option[int]:
        return self.delegate.from_url_parameter(parameter)

    def check(self, value: int) -> None:
        self.delegate.check(value)
        if value not in self.exceptions and not self.lower <= value <= self.upper:
            raise OutOfRangeError(
                f"The value {value} is not within the bounds for the {self.name} "
                f"parameter ({self.lower} to {self.upper} inclusive)."
            )

    def reduce(self, new_value: int, original: R) -> R:
        self.check(new_value)
        return self.delegate.reduce(new_value, original)

    def to_url_parameter(self, value: R) -> Option[str]:
        return self.delegate.to_url_parameter(value)


def _require_round_trip(name: str, conversion: StringConversion[T], value: T) -> None:
    """Raise unless ``value`` is written as text and parses back to itself.

    The parsed value must also have the same type, so ``True`` is refused by an
    integer parameter even though ``True == 1``.

    Raises
    ------
    ConversionFailure
        If ``value`` cannot be stored without breaking a later round trip.
    """

    try:
        text = conversion.to_text(value)
    except (AttributeError, TypeError, ValueError) as err:
        raise ConversionFailure(
            f"{value!r} is not a valid value for the {name} parameter: {err}"
        ) from err
    if text.is_absent():
        raise ConversionFailure(
            f"{value!r} cannot be written for the {name} parameter: {text.reason}"
        )
    if not isinstance(text.get(), str):
        raise ConversionFailure(
            f"{value!r} is not a valid value for the {name} parameter: expected "
            f"text, got {type(value).__name__}"
        )
    parsed = conversion.from_text(text.get())
    if parsed.is_absent():
        raise ConversionFailure(
            f"{value!r} would not read back for the {name} parameter: {parsed.reason}"
        )
    if type(parsed.get()) is not type(value) or parsed.get() != value:
        raise ConversionFailure(
            f"{value!r} would read back as {parsed.get()!r} for the {name} parameter"
        )


def _contiguous_runs(values: Mapping[int, T]) -> List[Tuple[int, List[T]]]:
    runs: List[Tuple[int, List[T]]] = []
    previous = None
    for index in sorted(values):
        if previous is not None and index == previous + 1:
            runs[-1][1].append(values[index])
        else:
            runs.append((index, [values[index]]))
        previous = index
    return runs


def _join_elements(texts: Sequence[str]) -> str | None:
    """Join list elements, quoting those that need it, or ``None`` if impossible."""

    quoted = [
        surround_with_quotes(text)
        if LIST_SEPARATOR in text or '"' in text
        else text
        for text in texts
    ]
    joined = LIST_SEPARATOR.join(quoted)
    parsed = [
        remove_surrounding_quotes(element)
        for element in split_ignoring_quoted_sections(joined, LIST_SEPARATOR)
    ]
    return joined if parsed == list(texts) else None


def parameter_with_default(
    name: str, default: T, conversion: StringConversion[T]
) -> ParameterWithDefault[T]:
    """Describe a scalar parameter that falls back to ``default``."""

    if default is None:
        raise TypeError(f"The default for the {name} parameter cannot be None.")
    return ParameterWithDefault(name, default, conversion)


def parameter_without_default(
    name: str, conversion: StringConversion[T]
) -> ParameterWithoutDefault[T]:
    """Describe an optional scalar parameter read back as an option."""

    return ParameterWithoutDefault(name, conversion)


def sparse_array_parameter(
    name: str, conversion: StringConversion[T]
) -> SparseArrayParameter[T]:
    """Describe a sparse array parameter addressed as ``name[index]``."""

    return SparseArrayParameter(name, conversion)


def parameter_disallowing(
    banned: T, delegate: ParameterDescription[T, R]
) -> BannedValueParameter[T, R]:
    """Wrap ``delegate`` so that it refuses ``banned``."""

    if banned is None:
        raise TypeError("The banned value cannot be None.")
    return BannedValueParameter(banned, delegate)


def parameter_with_bounds(
    lower: int,
    upper: int,
    delegate: ParameterDescription[int, R],
    exceptions: Iterable[int] = (),
) -> BoundedParameter[R]:
    """Wrap ``delegate`` so that it only accepts ``lower <= value <= upper``."""

    return BoundedParameter(lower, upper, delegate, tuple(exceptions))


def non_negative_parameter(delegate: ParameterDescription[int, R]) -> BoundedParameter[R]:
    return parameter_with_bounds(0, INT_MAX, delegate)


def positive_parameter(delegate: ParameterDescription[int, R]) -> BoundedParameter[R]:
    return parameter_with_bounds(1, INT_MAX, delegate)


__all__ = [
    "ParameterDescription",
    "ParameterWithDefault",
    "ParameterWithoutDefault",
    "SparseArrayParameter",
    "BannedValueParameter",
    "BoundedParameter",
    "IndexedValues",
    "parameter_with_default",
    "parameter_without_default",
    "sparse_array_parameter",
    "parameter_disallowing",
    "parameter_with_bounds",
    "non_negative_parameter",
    "positive_parameter",
]
