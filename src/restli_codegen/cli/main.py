# Copyright 2026 restli-codegen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the restli-codegen command-line interface."""

import argparse
import logging
import sys
from pathlib import Path

from restli_codegen.compiler.artifact import read_schema, write_result
from restli_codegen.compiler.build import CompilationResult, CompilerError, compile_schema
from restli_codegen.model.identity import IdentityError
from restli_codegen.workspace.config import CONFIG_FILE_NAME, CompilerConfig, ConfigError, load_config

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the restli-codegen CLI."""
    parser = argparse.ArgumentParser(
        prog="restli-codegen",
        description="restli-codegen: compile Rest.li schema graphs into client declarations",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output (type resolution, cycle detection)",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # generate subcommand
    generate_parser = subparsers.add_parser(
        "generate",
        help="Compile a schema graph and write the declaration set",
        description="Compile a schema graph and write the merged declarations to the output file.",
    )
    _add_common_arguments(generate_parser)
    generate_parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Output file (default: the 'output' setting of the config file)",
    )

    # check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Compile a schema graph without writing anything",
        description="Compile a schema graph and report unsupported and failed resources.",
    )
    _add_common_arguments(check_parser)

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )
    sys.exit(_dispatch(args))


# ################
# Implementation
# ################


def _add_common_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument("schema", help="Schema graph JSON file produced by the front-end")
    subparser.add_argument(
        "--config",
        default=None,
        help=f"Configuration file (default: {CONFIG_FILE_NAME} in the current directory, if present)",
    )
    subparser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Fail if any resource cannot be compiled",
    )


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "generate":
        return _cmd_generate(args)
    if args.command == "check":
        return _cmd_check(args)
    return 0


def _cmd_generate(args: argparse.Namespace) -> int:
    """Handle the generate subcommand."""
    config = _load_config(args)
    if config is None:
        return 1
    result = _compile(Path(args.schema), config)
    if result is None:
        return 1

    output = Path(args.output if args.output is not None else config.output)
    try:
        write_result(result, output)
    except OSError as exc:
        print(f"Error: cannot write '{output}': {exc}", file=sys.stderr)
        return 1

    _report(result)
    print(f"Wrote {len(result.declarations)} declaration(s) in {len(result.modules)} module(s) to '{output}'.")
    return 1 if result.has_errors else 0


def _cmd_check(args: argparse.Namespace) -> int:
    """Handle the check subcommand."""
    config = _load_config(args)
    if config is None:
        return 1
    result = _compile(Path(args.schema), config)
    if result is None:
        return 1

    _report(result)
    if result.has_errors:
        return 1
    print(f"No issues found: {len(result.declarations)} declaration(s) in {len(result.modules)} module(s).")
    return 0


def _load_config(args: argparse.Namespace) -> CompilerConfig | None:
    """Load the configuration named on the command line or found in the current directory."""
    if args.config is not None:
        path: Path | None = Path(args.config)
    else:
        default = Path.cwd() / CONFIG_FILE_NAME
        path = default if default.exists() else None

    config = CompilerConfig()
    if path is not None:
        try:
            config = load_config(path)
        except ConfigError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return None
    if args.strict:
        config.strict = True
    return config


def _compile(schema: Path, config: CompilerConfig) -> CompilationResult | None:
    if not schema.exists():
        print(f"Error: schema file '{schema}' does not exist.", file=sys.stderr)
        return None
    try:
        graph = read_schema(schema)
    except (OSError, ValueError) as exc:
        print(f"Error: cannot load schema '{schema}': {exc}", file=sys.stderr)
        return None
    try:
        return compile_schema(graph, prefix=config.package_prefix, strict=config.strict)
    except (CompilerError, IdentityError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None


def _report(result: CompilationResult) -> None:
    if result.unsupported:
        print(f"Skipped {len(result.unsupported)} resource(s) with unsupported keys.")
    for failure in result.failures:
        print(f"Error: {failure.identity}: {failure.message}", file=sys.stderr)
