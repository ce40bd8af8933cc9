"""
Tests for quote-aware splitting, reversible protection and percent-encoding.
"""

from __future__ import annotations

import pytest

from cgiparams.escaping import escape_string, unescape_string
from cgiparams.strings import (
    ReversibleReplace,
    after_first,
    after_last,
    before_first,
    has_balanced_quotes,
    partition,
    protect,
    remove_surrounding_quotes,
    split_ignoring_quoted_sections,
    surround_with_quotes,
    unprotect,
)


@pytest.mark.parametrize(
    "text, separator, expected",
    [
        ('"a,b",c', ",", ['"a,b"', "c"]),
        ("a,,b", ",", ["a", "", "b"]),
        ("", ",", [""]),
        ('x="1&2"&y=3', "&", ['x="1&2"', "y=3"]),
        ('"a","b","c","d"', ",", ['"a"', '"b"', '"c"', '"d"']),
        ('a"b,c', ",", ['a"b,c']),
    ],
)
def test_split_ignoring_quoted_sections(text: str, separator: str, expected: list) -> None:
    """Separators inside quotes should not split, and quotes should be kept."""

    assert split_ignoring_quoted_sections(text, separator) == expected


def test_split_needs_single_character_separator() -> None:
    """A multi-character separator should be refused."""

    with pytest.raises(ValueError):
        split_ignoring_quoted_sections("a,b", ",,")


def test_quote_helpers() -> None:
    """Only a full pair of surrounding quotes should be removed."""

    assert remove_surrounding_quotes('"a"') == "a"
    assert remove_surrounding_quotes('""') == ""
    assert remove_surrounding_quotes('"a') == '"a'
    assert remove_surrounding_quotes('"') == '"'
    assert surround_with_quotes("a,b") == '"a,b"'
    assert has_balanced_quotes('"a""b"')
    assert not has_balanced_quotes('a"b')


def test_partition_and_affixes() -> None:
    """partition should split on the first separator only."""

    assert partition("a=b=c") == ("a", "b=c")
    assert partition("a=") == ("a", "")
    with pytest.raises(ValueError):
        partition("abc")
    assert after_first("p?x=1?y", "?") == "x=1?y"
    assert after_first("x=1", "?") == "x=1"
    assert before_first("events.cgi?x=1", "?") == "events.cgi"
    assert after_last("/a/b/c.cgi", "/") == "c.cgi"
    assert after_last("c.cgi", "/") == "c.cgi"


def test_reversible_replace() -> None:
    """undo should restore the replaced characters."""

    replace = ReversibleReplace("&", ",")
    assert replace.replace("a&b") == "a,b"
    assert replace.undo("a,b") == "a&b"


def test_protect_hides_reserved_characters() -> None:
    """protect should leave no separator or quote characters behind."""

    protected = protect('a=1&b="2,3"')
    assert protected == "a%3D1%26b%3D%222%2C3%22"
    for char in '&=,"':
        assert char not in protected


@pytest.mark.parametrize(
    "text", ["", "%", "%%26", "a,b", '"q"', "%2C,", "100%", "slaveip=10.0.0.1&cam=3"]
)
def test_unprotect_reverses_protect(text: str) -> None:
    """unprotect(protect(x)) should give x back, including existing escapes."""

    assert unprotect(protect(text)) == text


def test_escape_string_encodes_reserved_characters() -> None:
    """Values should be percent-encoded as UTF-8 with unreserved characters kept."""

    assert escape_string("a b&c=d,e") == "a%20b%26c%3Dd%2Ce"
    assert escape_string("é") == "%C3%A9"
    assert escape_string("a-b_c.d~") == "a-b_c.d~"
    assert escape_string('"+"') == "%22%2B%22"


def test_unescape_string_decodes_plus_as_space() -> None:
    """Form-encoded plus signs should decode to spaces."""

    assert unescape_string("a+b%2B") == "a b+"
    assert unescape_string("%C3%A9") == "é"
    assert unescape_string(escape_string("x & y, \"z\"")) == "x & y, \"z\""


def test_escape_string_requires_text() -> None:
    """Non-string values should raise TypeError."""

    with pytest.raises(TypeError):
        escape_string(5)  # type: ignore[arg-type]
