"""Input and output helpers for batch URL decoding and encoding.

This module centralizes common routines for:

- Iterating over URL lists and forgiving JSONL files.
- Turning a parameter set into a JSON-friendly record and back.
- Writing JSONL output.

The CLI uses these helpers so that it does not need to duplicate low-level
parsing or error handling logic.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, TextIO, Tuple

from .descriptions import ParameterDescription, SparseArrayParameter
from .errors import ConversionFailure, UnknownParameterError
from .option import Absent, Present
from .parameter_map import ParameterSet
from .schema import Schema

LOGGER = logging.getLogger(__name__)

COMMENT_PREFIX = "#"


def iter_url_lines(path: Path) -> Iterator[Tuple[int, str]]:
    """Yield ``(line_number, url)`` for each URL line in ``path``.

    Blank lines and lines starting with ``#`` are skipped.

    Parameters
    ----------
    path:
        Text file with one URL or query string per line.

    Returns
    -------
    Iterator[Tuple[int, str]]
        One-based line numbers paired with stripped URLs.
    """

    try:
        with path.open("r", encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                stripped = line.strip()
                if not stripped or stripped.startswith(COMMENT_PREFIX):
                    continue
                yield line_number, stripped
    except OSError as err:
        raise OSError(f"Failed to read {path}: {err}") from err


def iter_jsonl_dicts(path: Path) -> Iterator[Tuple[int, dict]]:
    """Yield ``(line_number, object)`` for JSON objects in a JSONL file.

    Lines that are empty, fail JSON parsing, or do not decode to dicts are
    skipped with a warning, so one bad line does not stop a batch.
    """

    try:
        with path.open("r", encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                line_stripped = line.strip()
                if not line_stripped:
                    continue
                try:
                    obj = json.loads(line_stripped)
                except json.JSONDecodeError as err:
                    LOGGER.warning("Skipping %s:%d: %s", path, line_number, err)
                    continue
                if not isinstance(obj, dict):
                    LOGGER.warning("Skipping %s:%d: not a JSON object", path, line_number)
                    continue
                yield line_number, obj
    except OSError as err:
        raise OSError(f"Failed to read {path}: {err}") from err


def write_jsonl(records: Iterable[Mapping[str, Any]], handle: TextIO) -> int:
    """Write ``records`` to ``handle`` as JSONL and return how many were written."""

    count = 0
    for record in records:
        handle.write(json.dumps(record, ensure_ascii=False) + "\n")
        count += 1
    return count


def _jsonable(description: ParameterDescription[Any, Any], value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Enum):
        return value.name.lower()
    conversion = getattr(description, "conversion", None)
    if conversion is not None:
        text = conversion.to_text(value)
        if text.is_present():
            return text.get()
    return str(value)


def _unwrap(description: ParameterDescription[Any, Any]) -> ParameterDescription[Any, Any]:
    while hasattr(description, "delegate"):
        description = description.delegate
    return description


def parameter_set_to_record(parameter_set: ParameterSet, schema: Schema) -> Dict[str, Any]:
    """Return every declared value of ``parameter_set`` as JSON-friendly data.

    Optional parameters that are unset become ``None`` and sparse arrays
    become objects keyed by the index as a string.
    """

    record: Dict[str, Any] = {}
    for description in schema:
        value = parameter_set.get(description)
        base = _unwrap(description)
        if isinstance(value, Present):
            record[description.name] = _jsonable(base, value.get())
        elif isinstance(value, Absent):
            record[description.name] = None
        elif isinstance(base, SparseArrayParameter):
            record[description.name] = {
                str(index): _jsonable(base, element) for index, element in value.items()
            }
        else:
            record[description.name] = _jsonable(base, value)
    return record


JSON_SCALARS = (str, int, bool)


def _require_scalar(name: str, raw: Any) -> None:
    if not isinstance(raw, JSON_SCALARS):
        raise ConversionFailure(
            f"JSON value {raw!r} for the {name} parameter must be a string, "
            "integer or boolean"
        )


def _sparse_pairs(
    description: SparseArrayParameter[Any], raw: Any
) -> Iterator[Tuple[int, Any]]:
    if not isinstance(raw, Mapping):
        raise ConversionFailure(
            f"The {description.name} parameter expects an object of index to value"
        )
    for index_text, element in raw.items():
        try:
            index = int(index_text)
        except (TypeError, ValueError) as err:
            raise ConversionFailure(
                f"{index_text!r} is not an index for the {description.name} parameter"
            ) from err
        _require_scalar(f"{description.name}[{index}]", element)
        if isinstance(element, str):
            parsed = description.conversion.from_text(element)
            if parsed.is_absent():
                raise ConversionFailure(parsed.reason)
            element = parsed.get()
        yield index, element


def record_to_parameter_set(
    record: Mapping[str, Any], schema: Schema, base: Optional[ParameterSet] = None
) -> ParameterSet:
    """Build a parameter set from a JSON record keyed by parameter name.

    String values are parsed with the parameter's conversion; integers and
    booleans are assigned as they are. ``None`` leaves a parameter unset.

    Raises
    ------
    UnknownParameterError
        If the record names a parameter the schema does not declare.
    ConversionFailure
        If a value is not a JSON string, integer or boolean, or does not fit
        its parameter's type.
    CgiParamsError
        If a value is refused by its parameter or by a validator.
    """

    parameter_set = base if base is not None else schema.empty()
    for name, raw in record.items():
        try:
            description = schema.parameter(name)
        except KeyError as err:
            raise UnknownParameterError(f"{name} is not a known parameter") from err
        if raw is None:
            continue
        target = _unwrap(description)
        if isinstance(target, SparseArrayParameter):
            parameter_set = parameter_set.with_value(
                description, tuple(_sparse_pairs(target, raw))
            )
        elif isinstance(raw, str):
            parameter_set = parameter_set.with_text(description, raw)
        else:
            _require_scalar(name, raw)
            parameter_set = parameter_set.with_value(description, raw)
    return parameter_set


__all__ = [
    "iter_url_lines",
    "iter_jsonl_dicts",
    "write_jsonl",
    "parameter_set_to_record",
    "record_to_parameter_set",
]
