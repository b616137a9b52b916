"""Command-line interface for tagsql."""

from __future__ import annotations

import argparse
import logging
import sys
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from tagsql.errors import BindError, ParseErrors, ReflectError


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_file: Path
    output_file: Path | None
    types: dict[str, list[str]]
    render: bool
    watch: bool
    debug: bool
    verbose: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="tagsql",
        description="Check annotated SQL statements and their type bindings",
    )
    p.add_argument("input", help="Input statement file")
    p.add_argument("-o", "--output", help="Output file (default: stdout)")
    p.add_argument(
        "-t",
        "--type",
        action="append",
        default=[],
        dest="types",
        metavar="NAME=COL,COL",
        help="Declare a record type and its column tags (repeatable)",
    )
    p.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover tagsql.toml)",
    )
    p.add_argument(
        "--render",
        action="store_true",
        help="Print the normalised statement instead of its annotations",
    )
    p.add_argument("--watch", action="store_true", help="Watch for changes and re-check")
    p.add_argument("--debug", action="store_true", help="Dump AST to stderr")
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug messages to stderr")
    return p


def parse_type_arg(s: str) -> tuple[str, list[str]]:
    """Parse a NAME=COL,COL string into (name, [columns])."""
    if "=" not in s:
        raise argparse.ArgumentTypeError(f"invalid type format (expected NAME=COL,COL): {s}")
    name, _, cols = s.partition("=")
    name = name.strip()
    if not name:
        raise argparse.ArgumentTypeError(f"invalid type format (empty type name): {s}")
    return name, [c.strip() for c in cols.split(",") if c.strip()]


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / "tagsql.toml"

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: config file < CLI flags.
    """
    input_file = Path(args.input)
    input_dir = input_file.parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, input_dir)

    # Types: config < CLI
    types: dict[str, list[str]] = {}
    cfg_types = config.get("types")
    if isinstance(cfg_types, dict):
        for name, cols in cfg_types.items():
            if not isinstance(cols, list):
                raise argparse.ArgumentTypeError(
                    f"config: columns of type {name!r} must be a list of strings"
                )
            types[str(name)] = [str(c) for c in cols]
    for raw in args.types:
        name, cols = parse_type_arg(raw)
        types[name] = cols

    # Flags: config < CLI (a flag can only switch an option on)
    render = False
    debug = False
    cfg_options = config.get("options")
    if isinstance(cfg_options, dict):
        render = bool(cfg_options.get("render", False))
        debug = bool(cfg_options.get("debug", False))

    output_file = Path(args.output) if args.output else None

    return CliOptions(
        input_file=input_file,
        output_file=output_file,
        types=types,
        render=render or args.render,
        watch=args.watch,
        debug=debug or args.debug,
        verbose=args.verbose,
    )


def check_file(options: CliOptions) -> str:
    """Read, parse, and (when types are declared) bind a statement file.

    Returns the text to output: the rendered statement, or one line per
    annotation.
    """
    from tagsql.ast import OutputTarget, type_mappings
    from tagsql.debug import dump_ast
    from tagsql.parser import parse
    from tagsql.reflect import Descriptor
    from tagsql.statement import Preparer
    from tagsql.tokens import relocate, statement_origin

    source = options.input_file.read_text(encoding="utf-8")

    if options.types:
        descriptors = [Descriptor.of(name, cols) for name, cols in options.types.items()]
        root = Preparer().prepare(source, *descriptors).expression
    else:
        root = parse(source)

    if options.debug:
        dump_ast(root)

    if options.render:
        return root.render() + "\n"

    origin = statement_origin(source)
    lines = []
    for mapping in type_mappings(root):
        role = "output" if isinstance(mapping, OutputTarget) else "input"
        pos = relocate(mapping.begin, origin)
        lines.append(f"{role} {mapping.render()} (line {pos.line}, column {pos.column})\n")
    return "".join(lines)


def _report(exc: Exception, filename: str) -> None:
    if isinstance(exc, ParseErrors):
        print(exc.format(filename), file=sys.stderr)
    else:
        print(f"error: {exc}", file=sys.stderr)


def watch_loop(options: CliOptions) -> None:
    """Poll input file for changes, re-check on each modification."""
    last_mtime = 0.0
    print(f"Watching {options.input_file} for changes...", file=sys.stderr)
    try:
        while True:
            try:
                mtime = options.input_file.stat().st_mtime
            except OSError:
                time.sleep(0.5)
                continue
            if mtime != last_mtime:
                last_mtime = mtime
                try:
                    text = check_file(options)
                    if options.output_file:
                        options.output_file.write_text(text, encoding="utf-8")
                    else:
                        sys.stdout.write(text)
                        sys.stdout.flush()
                    print(f"Checked {options.input_file}", file=sys.stderr)
                except (ParseErrors, BindError, ReflectError) as exc:
                    _report(exc, str(options.input_file))
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
    except argparse.ArgumentTypeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if options.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if options.watch:
        watch_loop(options)
        return 0

    try:
        text = check_file(options)
    except ParseErrors as exc:
        _report(exc, str(options.input_file))
        return 1
    except (BindError, ReflectError) as exc:
        _report(exc, str(options.input_file))
        return 2

    if options.output_file:
        options.output_file.write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)

    return 0
