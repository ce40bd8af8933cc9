"""Quote-aware string helpers used by the URL tokenizer and list values.

Query values may carry comma-separated lists whose elements are wrapped in
double quotes to protect embedded separators, for example
``connections[16]="a,b",c``. The helpers here split such text without breaking
quoted sections, and provide the reversible character substitution that keeps
nested query strings from leaking reserved characters into the outer URL.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

QUOTE = '"'


def split_ignoring_quoted_sections(text: str, separator: str) -> List[str]:
    """Split ``text`` on ``separator`` except inside double-quoted sections.

    Quote characters are kept in the output. The result always has at least
    one element, so ``""`` splits into ``[""]``. An unmatched quote runs to
    the end of the text, so ``'a"b,c'`` stays in one piece.

    Parameters
    ----------
    text:
        Text to split.
    separator:
        Single separator character.

    Returns
    -------
    List[str]
        Segments in their original order.
    """

    if len(separator) != 1:
        raise ValueError("separator must be a single character")

    results = [""]
    inside_quotes = False
    for char in text:
        if char == QUOTE:
            inside_quotes = not inside_quotes
        if char == separator and not inside_quotes:
            results.append("")
        else:
            results[-1] += char
    return results


def remove_surrounding_quotes(text: str) -> str:
    """Strip one pair of surrounding double quotes when both are present."""

    if len(text) >= 2 and text.startswith(QUOTE) and text.endswith(QUOTE):
        return text[1:-1]
    return text


def surround_with_quotes(text: str) -> str:
    return QUOTE + text + QUOTE


def has_balanced_quotes(text: str) -> bool:
    return text.count(QUOTE) % 2 == 0


def partition(text: str, separator: str = "=") -> Tuple[str, str]:
    """Split ``text`` on the first ``separator``.

    Raises
    ------
    ValueError
        If ``separator`` does not occur in ``text``.
    """

    name, found, value = text.partition(separator)
    if not found:
        raise ValueError(f"{text!r} does not contain {separator!r}")
    return name, value


def after_first(text: str, separator: str) -> str:
    """Return the text after the first ``separator``, or all of it if absent."""

    _, found, rest = text.partition(separator)
    return rest if found else text


def before_first(text: str, separator: str) -> str:
    return text.partition(separator)[0]


def after_last(text: str, separator: str) -> str:
    return text.rpartition(separator)[2]


@dataclass(frozen=True)
class ReversibleReplace:
    """Replace every ``to_replace`` with ``with_`` and undo it afterwards.

    The pair is only reversible on text that does not already contain
    ``with_``; :func:`protect` chains several of these behind an escape of
    its own marker character so that the combination is reversible for all
    text.
    """

    to_replace: str
    with_: str

    def replace(self, text: str) -> str:
        return text.replace(self.to_replace, self.with_)

    def undo(self, text: str) -> str:
        return text.replace(self.with_, self.to_replace)


# The marker must be replaced first and restored last.
_PROTECTIONS = (
    ReversibleReplace("%", "%25"),
    ReversibleReplace("&", "%26"),
    ReversibleReplace("=", "%3D"),
    ReversibleReplace(",", "%2C"),
    ReversibleReplace('"', "%22"),
)


def protect(text: str) -> str:
    """Hide ``&``, ``=``, ``,`` and ``"`` from the tokenizer and list splitter."""

    for replacement in _PROTECTIONS:
        text = replacement.replace(text)
    return text


def unprotect(text: str) -> str:
    """Inverse of :func:`protect`: ``unprotect(protect(x)) == x`` for all text."""

    for replacement in reversed(_PROTECTIONS):
        text = replacement.undo(text)
    return text


__all__ = [
    "QUOTE",
    "split_ignoring_quoted_sections",
    "remove_surrounding_quotes",
    "surround_with_quotes",
    "has_balanced_quotes",
    "partition",
    "after_first",
    "before_first",
    "after_last",
    "ReversibleReplace",
    "protect",
    "unprotect",
]
