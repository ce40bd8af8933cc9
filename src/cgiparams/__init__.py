"""Declarative CGI parameter schemas with a two-way query-string codec.

Submodules
----------
option
    ``Present``/``Absent`` optional values returned by conversions.
conversion
    Composable conversions and the built-in text conversions.
descriptions
    Parameter description variants and their factory functions.
parameter_map
    Immutable ``ParameterSet`` builder and set-wide ``Validator`` rules.
schema
    ``Schema`` declarations, in Python or loaded from JSON.
codec
    ``from_url`` and ``to_url_parameters``.
url, strings, escaping
    Tokenizing, quote-aware splitting and percent-encoding.
io, commands
    Batch helpers and the ``cgiparams`` console script.
"""

from __future__ import annotations

from .codec import (
    from_strings,
    from_url,
    parameter_set_conversion,
    round_trip,
    to_url_parameters,
)
from .conversion import (
    INT_MAX,
    INT_MIN,
    Conversion,
    StringConversion,
    boolean,
    enum_conversion,
    hex_int,
    hex_long,
    integer,
    string,
)
from .descriptions import (
    ParameterDescription,
    non_negative_parameter,
    parameter_disallowing,
    parameter_with_bounds,
    parameter_with_default,
    parameter_without_default,
    positive_parameter,
    sparse_array_parameter,
)
from .errors import (
    AlreadySetError,
    CgiParamsError,
    ConversionFailure,
    EmptyValueError,
    IllegalValueError,
    MalformedURLError,
    OutOfRangeError,
    SchemaConfigError,
    UnknownParameterError,
    UnsetOptionalError,
    ValidationError,
)
from .option import Absent, Option, Present, none, some
from .parameter_map import ACCEPT_ALL, ParameterSet, Validator
from .schema import Schema, load_schema, schema_from_dict
from .url import URLParameter, name_value_pairs, query_name

__all__ = [
    # Codec
    "from_url",
    "from_strings",
    "to_url_parameters",
    "parameter_set_conversion",
    "round_trip",
    # Conversions
    "INT_MIN",
    "INT_MAX",
    "Conversion",
    "StringConversion",
    "string",
    "integer",
    "boolean",
    "hex_int",
    "hex_long",
    "enum_conversion",
    # Descriptions
    "ParameterDescription",
    "parameter_with_default",
    "parameter_without_default",
    "sparse_array_parameter",
    "parameter_disallowing",
    "parameter_with_bounds",
    "non_negative_parameter",
    "positive_parameter",
    # Errors
    "CgiParamsError",
    "ConversionFailure",
    "AlreadySetError",
    "OutOfRangeError",
    "IllegalValueError",
    "ValidationError",
    "EmptyValueError",
    "UnsetOptionalError",
    "MalformedURLError",
    "UnknownParameterError",
    "SchemaConfigError",
    # Options
    "Present",
    "Absent",
    "Option",
    "some",
    "none",
    # Parameter sets
    "ParameterSet",
    "Validator",
    "ACCEPT_ALL",
    # Schemas
    "Schema",
    "load_schema",
    "schema_from_dict",
    # URLs
    "URLParameter",
    "name_value_pairs",
    "query_name",
]
