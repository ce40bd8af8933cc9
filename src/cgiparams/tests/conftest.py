"""
Shared schemas for the parameter codec tests.

The schemas mirror two device endpoints: an events query with a mutually
exclusive pair of filters, and a decoder request whose connections are
nested parameter sets.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import pytest

from cgiparams import (
    INT_MAX,
    Schema,
    Validator,
    hex_int,
    integer,
    non_negative_parameter,
    parameter_disallowing,
    parameter_set_conversion,
    parameter_with_default,
    parameter_without_default,
    sparse_array_parameter,
    string,
)
from cgiparams.descriptions import ParameterDescription


@dataclass(frozen=True)
class EventsParams:
    """Handles on the events schema and its descriptions."""

    schema: Schema
    time: ParameterDescription
    range: ParameterDescription
    text: ParameterDescription
    almmask: ParameterDescription


@dataclass(frozen=True)
class DecoderParams:
    """Handles on the decoder and nested connection schemas."""

    schema: Schema
    connection_schema: Schema
    connections: ParameterDescription
    commands: ParameterDescription
    slaveip: ParameterDescription
    seq: ParameterDescription
    dwell: ParameterDescription
    cam: ParameterDescription


@pytest.fixture
def events() -> EventsParams:
    """Events schema: time, range, text and almmask, with text/almmask exclusive."""

    time = non_negative_parameter(parameter_with_default("time", 0, integer()))
    range_ = parameter_with_default("range", INT_MAX, integer())
    text = parameter_with_default("text", "", string())
    almmask = parameter_with_default("almmask", 0, hex_int())
    schema = Schema(
        (time, range_, text, almmask),
        (Validator.mutually_exclusive([text, almmask]),),
    )
    return EventsParams(schema, time, range_, text, almmask)


@pytest.fixture
def decoder() -> DecoderParams:
    """Decoder schema with nested connection parameter sets and commands."""

    slaveip = parameter_without_default("slaveip", string())
    seq = parameter_without_default("seq", hex_int())
    dwell = parameter_without_default("dwell", integer())
    cam = parameter_disallowing(0, parameter_without_default("cam", integer()))
    connection_schema = Schema(
        (slaveip, seq, dwell, cam),
        (
            Validator(
                lambda params: params.is_default(cam)
                or (params.is_default(seq) and params.is_default(dwell)),
                "cam excludes seq and dwell",
            ),
        ),
    )
    connections = sparse_array_parameter(
        "connections", parameter_set_conversion(connection_schema)
    )
    commands = sparse_array_parameter("commands", string())
    schema = Schema((connections, commands))
    return DecoderParams(
        schema, connection_schema, connections, commands, slaveip, seq, dwell, cam
    )


@pytest.fixture
def events_schema_file(tmp_path: Path) -> Path:
    """Write a JSON declaration equivalent to the events schema plus commands."""

    declaration = {
        "parameters": [
            {"name": "time", "type": "int", "default": 0, "min": 0},
            {"name": "range", "type": "int", "default": INT_MAX},
            {"name": "text", "type": "string", "default": ""},
            {"name": "almmask", "type": "hex_int", "default": 0},
            {"name": "commands", "kind": "sparse_array", "type": "string"},
        ],
        "mutually_exclusive": [["text", "almmask"]],
    }
    path = tmp_path / "events.json"
    path.write_text(json.dumps(declaration), encoding="utf-8")
    return path
