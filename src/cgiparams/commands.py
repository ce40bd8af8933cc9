"""CLI entry points for decoding and encoding CGI query strings.

The ``cgiparams`` command loads a JSON schema declaration and then either
decodes URLs into JSON records, encodes assignments or JSON records into
query strings, or describes the schema.
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, TextIO, Tuple

from tqdm import tqdm

from .codec import from_url, to_url_parameters
from .errors import CgiParamsError, UnknownParameterError
from .io import (
    iter_jsonl_dicts,
    iter_url_lines,
    parameter_set_to_record,
    record_to_parameter_set,
    write_jsonl,
)
from .parameter_map import ParameterSet
from .schema import Schema, describe_schema, load_schema
from .strings import partition
from .url import URLParameter, query_name

LOGGER_NAME = "cgiparams"


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main CLI dispatcher.

    Parses arguments and runs the requested subcommand.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.cmd:
        parser.print_help()
        raise SystemExit(2)

    logger = configure_logging(args.verbose, args.log_file)
    try:
        schema = load_schema(args.schema)
    except CgiParamsError as err:
        raise SystemExit(str(err)) from err
    logger.info("Loaded schema %s with %d parameters", args.schema, len(schema))

    if args.cmd == "decode":
        cmd_decode(args, schema)
    elif args.cmd == "encode":
        cmd_encode(args, schema)
    elif args.cmd == "describe":
        for line in describe_schema(schema):
            print(line)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cgiparams",
        description="Decode and encode CGI query strings against a parameter schema",
    )
    sub = parser.add_subparsers(dest="cmd")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--schema", "-s", required=True, type=Path, help="JSON schema declaration"
    )
    common.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    common.add_argument("--log-file", type=Path, help="Write a detailed log to this file")

    # ---------------- decode ----------------
    p_decode = sub.add_parser(
        "decode", parents=[common], help="Decode URLs into JSON records"
    )
    p_decode.add_argument("urls", nargs="*", help="URLs or query strings to decode")
    p_decode.add_argument(
        "--input", "-i", type=Path, help="Text file with one URL per line"
    )
    p_decode.add_argument(
        "--output", "-o", type=Path, help="Write JSONL here instead of stdout"
    )
    p_decode.add_argument(
        "--strict",
        action="store_true",
        help="Fail on URL parameters the schema does not declare",
    )
    p_decode.add_argument(
        "--no-progress", action="store_true", help="Disable the progress bar"
    )

    # ---------------- encode ----------------
    p_encode = sub.add_parser(
        "encode", parents=[common], help="Encode values into query strings"
    )
    p_encode.add_argument(
        "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Assign a value, e.g. time=100 or commands[2]=reboot (repeatable)",
    )
    p_encode.add_argument(
        "--input", "-i", type=Path, help="JSONL file of records keyed by parameter name"
    )
    p_encode.add_argument(
        "--output", "-o", type=Path, help="Write output here instead of stdout"
    )
    p_encode.add_argument(
        "--prefix",
        default="",
        help="Text placed before each query string, e.g. 'events.cgi?'",
    )
    p_encode.add_argument(
        "--no-progress", action="store_true", help="Disable the progress bar"
    )

    # ---------------- describe ----------------
    sub.add_parser("describe", parents=[common], help="List the schema's parameters")
    return parser


def configure_logging(verbose: bool, log_file: Optional[Path]) -> logging.Logger:
    """Attach console and optional file handlers to the package logger."""

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG)
    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.WARNING)
    ch.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(ch)
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.INFO)
        fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        logger.addHandler(fh)
    return logger


@contextlib.contextmanager
def _open_output(path: Optional[Path]) -> Iterator[TextIO]:
    if path is None:
        yield sys.stdout
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        yield handle


def decode_url(url: str, schema: Schema, *, strict: bool = False) -> Dict[str, Any]:
    """Return the JSON record for one URL; errors propagate to the caller."""

    parameter_set = from_url(url, schema, strict=strict)
    return {
        "url": url,
        "query_name": query_name(url),
        "values": parameter_set_to_record(parameter_set, schema),
        "query": to_url_parameters(parameter_set, schema),
    }


def cmd_decode(args: argparse.Namespace, schema: Schema) -> None:
    """Decode positional URLs and/or an input file into JSONL records.

    A single positional URL fails fast; in batch mode each failure is logged
    and written as an ``error`` record so the remaining URLs still decode.
    """
    logger = logging.getLogger(LOGGER_NAME)

    if args.input is None and len(args.urls) == 1:
        try:
            record = decode_url(args.urls[0], schema, strict=args.strict)
        except CgiParamsError as err:
            raise SystemExit(f"Cannot decode {args.urls[0]}: {err}") from err
        with _open_output(args.output) as handle:
            write_jsonl([record], handle)
        return

    sources: List[Tuple[str, str]] = [
        (f"arg:{position}", url) for position, url in enumerate(args.urls, start=1)
    ]
    if args.input is not None:
        sources.extend(
            (f"{args.input}:{line_number}", url)
            for line_number, url in iter_url_lines(args.input)
        )
    if not sources:
        raise SystemExit("Nothing to do: pass URLs or --input")

    ok = 0
    fail = 0
    records: List[Dict[str, Any]] = []
    for location, url in tqdm(
        sources, desc="Decoding URLs", unit="url", disable=args.no_progress
    ):
        try:
            records.append(decode_url(url, schema, strict=args.strict))
            ok += 1
        except CgiParamsError as err:
            logger.warning("[DECODE-FAILED] %s: %s", location, err)
            records.append({"url": url, "error": str(err)})
            fail += 1

    with _open_output(args.output) as handle:
        write_jsonl(records, handle)
    logger.info("Decoded %d URLs, %d failed", ok, fail)


def apply_assignments(
    assignments: Sequence[str], schema: Schema
) -> ParameterSet:
    """Apply ``NAME=VALUE`` assignments in order to an all-defaults set."""

    parameter_set = schema.empty()
    for assignment in assignments:
        try:
            name, value = partition(assignment, "=")
        except ValueError as err:
            raise SystemExit(f"Expected NAME=VALUE, got {assignment!r}") from err
        description = schema.match(name)
        if description is None:
            raise UnknownParameterError(f"{name} is not a known parameter")
        parameter_set = parameter_set.with_url_parameter(
            description, URLParameter(name, value)
        )
    return parameter_set


def cmd_encode(args: argparse.Namespace, schema: Schema) -> None:
    """Encode ``--set`` assignments or JSONL records into query strings."""
    logger = logging.getLogger(LOGGER_NAME)

    if args.input is None:
        try:
            parameter_set = apply_assignments(args.assignments, schema)
        except CgiParamsError as err:
            raise SystemExit(f"Cannot encode: {err}") from err
        with _open_output(args.output) as handle:
            handle.write(args.prefix + to_url_parameters(parameter_set, schema) + "\n")
        return

    if args.assignments:
        raise SystemExit("Use either --set or --input, not both")

    records: List[Dict[str, Any]] = []
    for line_number, record in tqdm(
        list(iter_jsonl_dicts(args.input)),
        desc="Encoding records",
        unit="record",
        disable=args.no_progress,
    ):
        try:
            parameter_set = record_to_parameter_set(record, schema)
            records.append(
                {
                    "line": line_number,
                    "url": args.prefix + to_url_parameters(parameter_set, schema),
                }
            )
        except CgiParamsError as err:
            logger.warning("[ENCODE-FAILED] %s:%d: %s", args.input, line_number, err)
            records.append({"line": line_number, "error": str(err)})

    with _open_output(args.output) as handle:
        write_jsonl(records, handle)


if __name__ == "__main__":
    main()
