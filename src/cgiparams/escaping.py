"""Percent-encoding for values written into and read out of query strings.

Values are encoded as UTF-8 with everything except unreserved characters
escaped, so encoded values never contain ``&``, ``=``, ``,`` or ``"``. This
layer is independent of the character substitution in
:mod:`cgiparams.strings`; the two are applied one after the other.
"""

from __future__ import annotations

from urllib.parse import quote, unquote_plus

SAFE_CHARACTERS = "-_.~"


def escape_string(value: str) -> str:
    """Return ``value`` percent-encoded for use in a query string.

    Parameters
    ----------
    value: str
        Raw parameter value.

    Returns
    -------
    str
        Encoded variant of ``value`` that does not contain reserved
        ``&``, ``=`` or ``,`` characters.
    """

    if not isinstance(value, str):
        raise TypeError("escape_string expects a string value.")
    return quote(value, safe=SAFE_CHARACTERS, encoding="utf-8")


def unescape_string(value: str) -> str:
    """Decode a percent-encoded query value.

    ``+`` decodes to a space, matching form-encoded URLs written by other
    clients; :func:`escape_string` always writes a literal ``+`` as ``%2B``.

    Parameters
    ----------
    value: str
        Encoded value as it appears in a URL.

    Returns
    -------
    str
        Decoded text.
    """

    if not isinstance(value, str):
        raise TypeError("unescape_string expects a string value.")
    return unquote_plus(value, encoding="utf-8")


__all__ = ["SAFE_CHARACTERS", "escape_string", "unescape_string"]
