"""
Tests for immutable parameter sets and validators.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from cgiparams.conversion import INT_MAX, StringConversion, integer, string
from cgiparams.descriptions import parameter_with_default, parameter_without_default
from cgiparams.errors import (
    AlreadySetError,
    ConversionFailure,
    OutOfRangeError,
    UnsetOptionalError,
    ValidationError,
)
from cgiparams.option import none, some
from cgiparams.parameter_map import ACCEPT_ALL, ParameterSet, Validator
from cgiparams.schema import Schema


def test_empty_set_reports_defaults(events) -> None:
    """A fresh set should report every default."""

    params = events.schema.empty()
    assert params.get(events.time) == 0
    assert params.get(events.text) == ""
    assert all(params.is_default(description) for description in events.schema)
    assert dict(params.values) == {}


def test_with_value_returns_new_set(events) -> None:
    """Assignments should leave the receiver untouched."""

    base = events.schema.empty()
    updated = base.with_value(events.time, 100)
    assert updated.get(events.time) == 100
    assert base.get(events.time) == 0
    assert updated is not base


def test_values_view_is_read_only(events) -> None:
    """The stored values should not be mutable through the view."""

    params = events.schema.empty().with_value(events.time, 1)
    with pytest.raises(TypeError):
        params.values[events.time] = 2  # type: ignore[index]


def test_at_most_once(events) -> None:
    """A second non-default assignment should raise AlreadySetError."""

    params = events.schema.empty().with_value(events.time, 100)
    with pytest.raises(AlreadySetError):
        params.with_value(events.time, 200)


def test_default_value_can_be_overwritten(events) -> None:
    """Assigning the default counts as not set for the at-most-once rule."""

    params = events.schema.empty().with_value(events.text, "")
    assert params.is_default(events.text)
    assert params.with_value(events.text, "x").get(events.text) == "x"


def test_none_is_refused(events) -> None:
    """None is never a parameter value."""

    with pytest.raises(TypeError):
        events.schema.empty().with_value(events.time, None)


def test_bounds_leave_set_unchanged(events) -> None:
    """A refused assignment should not alter the original set."""

    params = events.schema.empty().with_value(events.range, 50)
    with pytest.raises(OutOfRangeError):
        params.with_value(events.time, -1)
    assert params.get(events.time) == 0
    assert params.get(events.range) == 50


@pytest.mark.parametrize("first, second", [("text", "almmask"), ("almmask", "text")])
def test_mutual_exclusion_in_both_orders(events, first: str, second: str) -> None:
    """Setting both exclusive parameters should fail whichever comes first."""

    values = {"text": "hi", "almmask": 5}
    params = events.schema.empty().with_value(getattr(events, first), values[first])
    with pytest.raises(ValidationError, match="mutually exclusive: text, almmask"):
        params.with_value(getattr(events, second), values[second])
    assert params.get(getattr(events, first)) == values[first]
    assert params.is_default(getattr(events, second))


def test_mutual_exclusion_ignores_explicit_defaults(events) -> None:
    """An explicitly stored default should not count as set."""

    params = events.schema.empty().with_value(events.text, "").with_value(events.almmask, 5)
    assert params.get(events.almmask) == 5


def test_optional_parameter_reads() -> None:
    """Reading an unset optional should raise UnsetOptionalError on get()."""

    cam = parameter_without_default("cam", integer())
    params = ParameterSet()
    assert params.get(cam).is_absent()
    with pytest.raises(UnsetOptionalError):
        params.get(cam).get()
    assert params.with_value(cam, 3).get(cam) == some(3)


def test_with_text_parses_value(events) -> None:
    """with_text should use the description's conversion."""

    params = events.schema.empty().with_text(events.almmask, "ff")
    assert params.get(events.almmask) == 255
    with pytest.raises(ConversionFailure, match="time"):
        params.with_text(events.time, "soon")


def test_equality_is_observational(events) -> None:
    """Sets reporting the same values should be equal and hash alike."""

    first = events.schema.empty().with_value(events.time, 1).with_value(events.range, 2)
    second = events.schema.empty().with_value(events.range, 2).with_value(events.time, 1)
    assert first == second
    assert hash(first) == hash(second)
    assert events.schema.empty().with_value(events.time, 0) == events.schema.empty()
    assert first != events.schema.empty()


def test_repr_lists_stored_values(events) -> None:
    """The repr should name each stored parameter."""

    params = events.schema.empty().with_value(events.time, 7)
    assert repr(params) == "ParameterSet(time=7)"


def test_to_url_parameters_skips_defaults(events) -> None:
    """Only non-default values should be written, in the given order."""

    params = (
        events.schema.empty()
        .with_value(events.text, "a b")
        .with_value(events.time, 0)
        .with_value(events.range, 9)
    )
    assert params.to_url_parameters(events.schema.descriptions) == "range=9&text=a%20b"


def test_unwritable_values_are_refused_when_set() -> None:
    """A value the conversion cannot write should be refused by with_value."""

    opaque = parameter_with_default(
        "opaque",
        "",
        StringConversion.partial(some, lambda _value: none("opaque values are write-only")),
    )
    with pytest.raises(ConversionFailure, match="write-only"):
        ParameterSet().with_value(opaque, "secret")


def test_integer_outside_32_bits_is_refused() -> None:
    """An integer the conversion would not read back should raise ConversionFailure."""

    count = parameter_with_default("count", 0, integer())
    params = Schema((count,)).empty()
    with pytest.raises(ConversionFailure, match="count"):
        params.with_value(count, 2**40)
    with pytest.raises(ConversionFailure, match="count"):
        params.with_value(count, True)
    assert params.with_value(count, INT_MAX).to_url_parameters([count]) == f"count={INT_MAX}"


def test_wrongly_typed_values_are_refused(events) -> None:
    """A value of the wrong type should raise ConversionFailure, not TypeError."""

    params = events.schema.empty()
    with pytest.raises(ConversionFailure, match="text"):
        params.with_value(events.text, 5)
    with pytest.raises(ConversionFailure, match="time"):
        params.with_value(events.time, "5")
    assert params.is_default(events.text)


def test_sparse_values_must_be_writable(decoder) -> None:
    """Sparse elements that cannot be written as a list should be refused."""

    params = decoder.schema.empty()
    with pytest.raises(ConversionFailure, match="commands"):
        params.with_value(decoder.commands, ((0, 'a"b'), (1, "x")))
    with pytest.raises(ConversionFailure, match=r"commands\[2\]"):
        params.with_value(decoder.commands, ((2, 7),))
    single = params.with_value(decoder.commands, ((0, 'a"b'),))
    assert single.to_url_parameters([decoder.commands]) == "commands[0]=%22a%22b%22"


def test_validator_combinators() -> None:
    """all_of should collapse trivial cases and require every rule."""

    positive = Validator(lambda params: True, "always")
    never = Validator(lambda params: False, "never")
    assert Validator.all_of([]) is ACCEPT_ALL
    assert Validator.all_of([positive]) is positive
    combined = Validator.all_of([positive, never])
    assert combined.description == "always; never"
    assert not combined(ParameterSet())
    assert ACCEPT_ALL.is_valid(ParameterSet())


def test_custom_validator_message() -> None:
    """A rejected assignment should name the value and the validator."""

    name = parameter_with_default("name", "", string())
    params = ParameterSet(Validator(lambda p: p.get(name) != "root", "name is not root"))
    with pytest.raises(ValidationError) as excinfo:
        params.with_value(name, "root")
    assert str(excinfo.value) == (
        "root for name violates the constraints on this parameter set (name is not root)"
    )


def test_branches_are_independent_across_threads(events) -> None:
    """Concurrent assignments from one base should not interfere."""

    base = events.schema.empty().with_value(events.text, "shared")
    with ThreadPoolExecutor(max_workers=8) as pool:
        branches = list(pool.map(lambda value: base.with_value(events.time, value), range(200)))
    assert [branch.get(events.time) for branch in branches] == list(range(200))
    assert all(branch.get(events.text) == "shared" for branch in branches)
    assert base.get(events.time) == 0
