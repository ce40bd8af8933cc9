"""Tokenize the query part of a URL into name/value pairs.

The tokenizer splits on ``&`` outside double-quoted sections, splits each
token on its first ``=`` and percent-decodes the value. Names are returned as
written so that indexed keys such as ``commands[4]`` can be matched against
sparse-array parameters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from .errors import MalformedURLError
from .escaping import unescape_string
from .strings import (
    after_first,
    after_last,
    before_first,
    has_balanced_quotes,
    partition,
    split_ignoring_quoted_sections,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class URLParameter:
    """One ``name=value`` pair from a query string, value already decoded."""

    name: str
    value: str


def query_part(url: str) -> str:
    """Return the text after the first ``?``, or the whole text without one."""

    return after_first(url, "?")


def query_name(url: str) -> str:
    """Return the last path segment before the query.

    >>> query_name("http://host/cgi-bin/events.cgi?time=1")
    'events.cgi'
    """

    return after_last(before_first(url, "?"), "/")


def parameters(url: str) -> List[str]:
    """Return the raw ``&``-separated tokens of ``url``'s query, empties dropped.

    An unmatched ``"`` quotes everything after it, so ``t=a"b&u=c`` is a
    single token whose value is ``a"b&u=c``.
    """

    query = query_part(url)
    if not has_balanced_quotes(query):
        LOGGER.debug(
            "Query %r has an unmatched quote; the text after it stays in one token",
            query,
        )
    tokens = split_ignoring_quoted_sections(query, "&")
    return [token for token in tokens if token]


def name_value_pairs(url: str) -> List[URLParameter]:
    """Split ``url`` into decoded :class:`URLParameter` pairs in URL order.

    Parameters
    ----------
    url:
        Full URL or bare query string.

    Returns
    -------
    List[URLParameter]
        One entry per token. Text without any ``=`` has no parameters.

    Raises
    ------
    MalformedURLError
        If a non-empty token has no ``=``.
    """

    if "=" not in url:
        return []

    pairs: List[URLParameter] = []
    for token in parameters(url):
        try:
            name, value = partition(token, "=")
        except ValueError as err:
            raise MalformedURLError(
                f"Cannot split URL parameter {token!r} into a name and a value"
            ) from err
        pairs.append(URLParameter(name, unescape_string(value)))
    return pairs


__all__ = [
    "URLParameter",
    "query_part",
    "query_name",
    "parameters",
    "name_value_pairs",
]
