"""Schemas: ordered parameter descriptions plus set-wide validators.

A :class:`Schema` is what a concrete CGI endpoint declares to get parsing,
building and serialization. Schemas can be written in Python or loaded from a
JSON declaration such as::

    {
      "parameters": [
        {"name": "time", "type": "int", "default": 0, "min": 0},
        {"name": "text", "type": "string", "default": ""},
        {"name": "almmask", "type": "hex_int", "default": 0},
        {"name": "cam", "kind": "optional", "type": "int", "banned": 0},
        {"name": "commands", "kind": "sparse_array", "type": "string"}
      ],
      "mutually_exclusive": [["text", "almmask"]]
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from . import conversion
from .conversion import INT_MAX, INT_MIN, StringConversion
from .descriptions import (
    ParameterDescription,
    parameter_disallowing,
    parameter_with_bounds,
    parameter_with_default,
    parameter_without_default,
    sparse_array_parameter,
)
from .errors import SchemaConfigError
from .parameter_map import ParameterSet, Validator

LOGGER = logging.getLogger(__name__)

RESERVED_NAME_CHARACTERS = "[]&=?"

KIND_DEFAULT = "default"
KIND_OPTIONAL = "optional"
KIND_SPARSE_ARRAY = "sparse_array"
KINDS = (KIND_DEFAULT, KIND_OPTIONAL, KIND_SPARSE_ARRAY)

TYPE_CONVERSIONS: Dict[str, Callable[[], StringConversion[Any]]] = {
    "string": conversion.string,
    "int": conversion.integer,
    "bool": conversion.boolean,
    "hex_int": conversion.hex_int,
    "hex_long": conversion.hex_long,
}
INTEGER_TYPES = {"int", "hex_int", "hex_long"}

PARAMETER_KEYS = {"name", "kind", "type", "default", "min", "max", "allow", "banned"}


@dataclass(frozen=True)
class Schema:
    """Parameter descriptions in serialization order plus validators.

    Raises
    ------
    SchemaConfigError
        If two descriptions share a name.
    """

    descriptions: Tuple[ParameterDescription[Any, Any], ...]
    validators: Tuple[Validator, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "descriptions", tuple(self.descriptions))
        object.__setattr__(self, "validators", tuple(self.validators))
        seen = set()
        for description in self.descriptions:
            if description.name in seen:
                raise SchemaConfigError(
                    f"The parameter name {description.name!r} is declared twice"
                )
            seen.add(description.name)

    @property
    def validator(self) -> Validator:
        return Validator.all_of(self.validators)

    @property
    def names(self) -> List[str]:
        return [description.name for description in self.descriptions]

    def empty(self) -> ParameterSet:
        """Return a parameter set holding only defaults, guarded by this schema."""

        return ParameterSet(self.validator)

    def parameter(self, name: str) -> ParameterDescription[Any, Any]:
        """Return the description declared as ``name``.

        Raises
        ------
        KeyError
            If no description has that name.
        """

        for description in self.descriptions:
            if description.name == name:
                return description
        raise KeyError(name)

    def match(self, url_name: str) -> Optional[ParameterDescription[Any, Any]]:
        """Return the first description addressed by the URL key ``url_name``."""

        for description in self.descriptions:
            if description.matches(url_name):
                return description
        return None

    def __iter__(self) -> Iterator[ParameterDescription[Any, Any]]:
        return iter(self.descriptions)

    def __len__(self) -> int:
        return len(self.descriptions)


def _coerce_value(
    name: str, key: str, raw: Any, type_name: str, text_conversion: StringConversion[Any]
) -> Any:
    """Return ``raw`` as a value of ``type_name``, parsing strings if needed."""

    if type_name == "string":
        if not isinstance(raw, str):
            raise SchemaConfigError(f"{key} for {name!r} must be a string, got {raw!r}")
        return raw
    if isinstance(raw, str):
        parsed = text_conversion.from_text(raw)
        if parsed.is_absent():
            raise SchemaConfigError(f"{key} for {name!r} is invalid: {parsed.reason}")
        return parsed.get()
    if type_name == "bool":
        if not isinstance(raw, bool):
            raise SchemaConfigError(f"{key} for {name!r} must be a boolean, got {raw!r}")
        return raw
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise SchemaConfigError(f"{key} for {name!r} must be an integer, got {raw!r}")
    return raw


def _parameter_from_dict(entry: Mapping[str, Any]) -> ParameterDescription[Any, Any]:
    if not isinstance(entry, Mapping):
        raise SchemaConfigError(f"Parameter entries must be objects, got {entry!r}")

    name = entry.get("name")
    if not isinstance(name, str) or not name:
        raise SchemaConfigError(f"Parameter entry {dict(entry)!r} needs a non-empty name")
    if any(char in name for char in RESERVED_NAME_CHARACTERS):
        raise SchemaConfigError(
            f"Parameter name {name!r} contains one of {RESERVED_NAME_CHARACTERS!r}"
        )
    unknown = set(entry) - PARAMETER_KEYS
    if unknown:
        raise SchemaConfigError(f"Unknown keys for {name!r}: {sorted(unknown)}")

    type_name = entry.get("type", "string")
    if type_name not in TYPE_CONVERSIONS:
        raise SchemaConfigError(
            f"Unknown type {type_name!r} for {name!r}; expected one of "
            f"{sorted(TYPE_CONVERSIONS)}"
        )
    text_conversion = TYPE_CONVERSIONS[type_name]()

    kind = entry.get("kind", KIND_DEFAULT if "default" in entry else KIND_OPTIONAL)
    if kind not in KINDS:
        raise SchemaConfigError(f"Unknown kind {kind!r} for {name!r}; expected one of {KINDS}")

    if kind == KIND_SPARSE_ARRAY:
        constrained = {"default", "min", "max", "allow", "banned"} & set(entry)
        if constrained:
            raise SchemaConfigError(
                f"Sparse array {name!r} does not support {sorted(constrained)}"
            )
        return sparse_array_parameter(name, text_conversion)

    description: ParameterDescription[Any, Any]
    if kind == KIND_DEFAULT:
        if "default" not in entry:
            raise SchemaConfigError(f"Parameter {name!r} of kind 'default' needs a default")
        default = _coerce_value(name, "default", entry["default"], type_name, text_conversion)
        description = parameter_with_default(name, default, text_conversion)
    else:
        if "default" in entry:
            raise SchemaConfigError(f"Optional parameter {name!r} cannot have a default")
        description = parameter_without_default(name, text_conversion)

    if {"min", "max", "allow"} & set(entry):
        if type_name not in INTEGER_TYPES:
            raise SchemaConfigError(f"Bounds need an integer type, {name!r} is {type_name!r}")
        lower = _coerce_value(name, "min", entry.get("min", INT_MIN), type_name, text_conversion)
        upper = _coerce_value(name, "max", entry.get("max", INT_MAX), type_name, text_conversion)
        allowed = [
            _coerce_value(name, "allow", raw, type_name, text_conversion)
            for raw in entry.get("allow", [])
        ]
        if lower > upper:
            raise SchemaConfigError(f"min {lower} is above max {upper} for {name!r}")
        description = parameter_with_bounds(lower, upper, description, allowed)

    if "banned" in entry:
        banned = _coerce_value(name, "banned", entry["banned"], type_name, text_conversion)
        description = parameter_disallowing(banned, description)

    return description


def schema_from_dict(obj: Any) -> Schema:
    """Build a :class:`Schema` from a decoded JSON declaration.

    Parameters
    ----------
    obj:
        Object with a ``parameters`` list and an optional
        ``mutually_exclusive`` list of name lists.

    Returns
    -------
    Schema
        Schema with descriptions in declaration order.

    Raises
    ------
    SchemaConfigError
        If the declaration is malformed or refers to unknown parameters.
    """

    if not isinstance(obj, Mapping):
        raise SchemaConfigError("A schema declaration must be a JSON object")
    entries = obj.get("parameters")
    if not isinstance(entries, list) or not entries:
        raise SchemaConfigError("A schema declaration needs a non-empty 'parameters' list")

    descriptions = [_parameter_from_dict(entry) for entry in entries]
    by_name = {description.name: description for description in descriptions}

    validators: List[Validator] = []
    groups = obj.get("mutually_exclusive", [])
    if not isinstance(groups, list):
        raise SchemaConfigError("'mutually_exclusive' must be a list of name lists")
    for group in groups:
        if not isinstance(group, list) or len(group) < 2:
            raise SchemaConfigError(
                f"Mutually exclusive groups need at least two names, got {group!r}"
            )
        missing = [name for name in group if name not in by_name]
        if missing:
            raise SchemaConfigError(f"Mutually exclusive group names unknown parameters {missing}")
        validators.append(Validator.mutually_exclusive(by_name[name] for name in group))

    schema = Schema(tuple(descriptions), tuple(validators))
    LOGGER.debug(
        "Built schema with %d parameters and %d validators", len(schema), len(validators)
    )
    return schema


def load_schema(path: Path | str) -> Schema:
    """Load a JSON schema declaration from ``path``.

    Raises
    ------
    SchemaConfigError
        If the file cannot be read, is not valid JSON, or is not a valid
        declaration.
    """

    schema_path = Path(str(path)).expanduser()
    try:
        text = schema_path.read_text(encoding="utf-8")
    except OSError as err:
        raise SchemaConfigError(f"Failed to read schema file {schema_path}: {err}") from err
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as err:
        raise SchemaConfigError(
            f"Failed to parse schema file {schema_path} as JSON: {err}"
        ) from err
    return schema_from_dict(raw)


def describe_schema(schema: Schema) -> Sequence[str]:
    """Return one human-readable line per description and validator."""

    lines = []
    for description in schema:
        default = description.default_value
        lines.append(f"{description.name}: {type(description).__name__} (default {default!r})")
    for validator in schema.validators:
        lines.append(f"validator: {validator.description}")
    return lines


__all__ = [
    "Schema",
    "schema_from_dict",
    "load_schema",
    "describe_schema",
    "TYPE_CONVERSIONS",
]
