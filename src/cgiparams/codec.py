"""Parse parameter sets from URLs and write them back as query strings.

:func:`from_url` folds every recognised URL token into an all-defaults
parameter set in URL order; :func:`to_url_parameters` writes the non-default
values back in schema order. For any set built through the public API,
``from_url(to_url_parameters(s, schema), schema) == s``.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .conversion import StringConversion
from .errors import CgiParamsError, UnknownParameterError
from .option import Option, none, some
from .parameter_map import ParameterSet
from .schema import Schema
from .strings import protect, unprotect
from .url import name_value_pairs

LOGGER = logging.getLogger(__name__)


def from_url(url: str, schema: Schema, *, strict: bool = False) -> ParameterSet:
    """Parse ``url`` into a parameter set for ``schema``.

    Parameters
    ----------
    url:
        Full URL or bare query string.
    schema:
        Declared parameters and validators.
    strict:
        When true, tokens that match no declared parameter raise
        :class:`UnknownParameterError` instead of being ignored.

    Returns
    -------
    ParameterSet
        Set holding every parsed value.

    Raises
    ------
    CgiParamsError
        The first failure met while parsing or assigning a token, for example
        :class:`ConversionFailure` or :class:`AlreadySetError`.
    """

    parameter_set = schema.empty()
    for parameter in name_value_pairs(url):
        description = schema.match(parameter.name)
        if description is None:
            if strict:
                raise UnknownParameterError(f"{parameter.name} is not a known URL parameter")
            LOGGER.debug("Ignoring unknown URL parameter %s", parameter.name)
            continue
        parameter_set = parameter_set.with_url_parameter(description, parameter)
    return parameter_set


def from_strings(schema: Schema, strings: Sequence[str]) -> ParameterSet:
    """Assign ``strings`` positionally to the schema's scalar descriptions.

    Extra descriptions beyond ``len(strings)`` keep their defaults.

    Raises
    ------
    ValueError
        If more strings than descriptions are supplied.
    """

    if len(strings) > len(schema):
        raise ValueError(
            f"Got {len(strings)} values for a schema with {len(schema)} parameters"
        )
    parameter_set = schema.empty()
    for description, text in zip(schema.descriptions, strings):
        parameter_set = parameter_set.with_text(description, text)
    return parameter_set


def to_url_parameters(parameter_set: ParameterSet, schema: Schema) -> str:
    """Return ``parameter_set`` as a query string in schema order, defaults omitted."""

    return parameter_set.to_url_parameters(schema.descriptions)


def parameter_set_conversion(schema: Schema) -> StringConversion[ParameterSet]:
    """Convert whole parameter sets of ``schema`` to and from one text value.

    The nested query string is passed through :func:`~cgiparams.strings.protect`
    so that its ``&``, ``=`` and ``,`` characters cannot be mistaken for
    separators of the enclosing URL or list.
    """

    def from_text(text: str) -> Option[ParameterSet]:
        try:
            return some(from_url(unprotect(text), schema, strict=True))
        except CgiParamsError as err:
            return none(f"{text!r} is not a valid nested parameter set: {err}")

    def to_text(value: ParameterSet) -> Option[str]:
        try:
            return some(protect(to_url_parameters(value, schema)))
        except CgiParamsError as err:
            return none(str(err))

    return StringConversion(from_text, to_text)


def round_trip(parameter_set: ParameterSet, schema: Schema) -> ParameterSet:
    """Serialize ``parameter_set`` and parse it back with the same schema."""

    return from_url(to_url_parameters(parameter_set, schema), schema)


__all__ = [
    "from_url",
    "from_strings",
    "to_url_parameters",
    "parameter_set_conversion",
    "round_trip",
]
