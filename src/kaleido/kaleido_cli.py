"""
Kaleidoscope CLI Entrypoint.

This module provides the command-line interface for parsing Kaleidoscope source.

Features:
    - Read source from `.kal` files or inline strings.
    - Lex and parse every top-level statement, recovering from malformed ones.
    - Print a parse summary, or the AST of every parsed statement as JSON.
    - Load a custom operator precedence table from JSON
      (`--precedence FILE`, or the `KALEIDO_PRECEDENCE` environment variable).
    - Launch an interactive REPL with optional verbosity.

Example usage:
    kaleido fib.kal
    kaleido -s "def add(a b) a+b" --ast -p
    kaleido fib.kal --precedence ops.json
    kaleido --repl --verbose

Functions:
    run_kaleido(source: str, is_string: bool = False, ast: bool = False, pretty: bool = False,
                precedence_path: str | None = None, strict_numbers: bool = False) -> int:
        Runs the pipeline (read → lex → parse → report) and returns an exit status.

    main() -> None:
        Parses CLI arguments and invokes the appropriate action (REPL or parse).
"""

import argparse
import json
import os
import sys

from kaleido.kaleido_driver import parse_source, successful
from kaleido.kaleido_precedence import PrecedenceError, PrecedenceTable

PRECEDENCE_ENV_VAR = "KALEIDO_PRECEDENCE"


def load_precedence(path: str | None) -> PrecedenceTable:
    """Builds the default operator table, then applies the JSON file at `path` if given."""
    table = PrecedenceTable.from_defaults()
    if path:
        table.load_from_json(path)
    return table


def run_kaleido(
    source: str,
    is_string: bool = False,
    ast: bool = False,
    pretty: bool = False,
    precedence_path: str | None = None,
    strict_numbers: bool = False,
    verbose: bool = False,
) -> int:
    """
    Run the Kaleidoscope front end over a file or a string and print the outcome.

    Args:
        source (str): The Kaleidoscope source code or path to a `.kal` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        ast (bool): If True, prints the parsed statements as a JSON list of AST dicts.
        pretty (bool): If True, prints banners and indents JSON output.
        precedence_path (str | None): Optional JSON operator precedence file.
        strict_numbers (bool): If True, number scans stop at non-digit characters.
        verbose (bool): If True, diagnostics include each parsed node.

    Returns:
        int: 0 when every statement parsed, 1 when any statement failed.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.kal'.
            Also raised with `ast=True` when a number overflowed to infinity, which
            JSON cannot represent.
        PrecedenceError: If the precedence file is unreadable or invalid.

    Side Effects:
        - Prints results to stdout and per-statement diagnostics to stderr.
    """
    if not is_string and not source.endswith(".kal"):
        raise ValueError("Only .kal files are supported.")
    # 1. Read source
    if not is_string:
        with open(source, encoding="utf-8") as f:
            source = f.read()

    # 2. Operator table
    table = load_precedence(precedence_path)

    # 3. Lex + parse every statement
    results = parse_source(
        source,
        precedence=table,
        strict_numbers=strict_numbers,
        out=sys.stderr,
        verbose=verbose,
    )
    nodes = successful(results)
    failed = len(results) - len(nodes)

    # 4. Output result
    banner = "=" * 20
    if ast:
        try:
            dump = json.dumps(
                [node.to_dict() for node in nodes],
                indent=2 if pretty else None,
                allow_nan=False,
            )
        except ValueError as e:
            raise ValueError(f"AST is not representable as JSON: {e}") from e
        if pretty:
            print(f"{banner}\nKaleidoscope AST\n{banner}\n{dump}\n{banner}")
        else:
            print(dump)
    elif pretty:
        print(f"{banner}\nParse summary\n{banner}")
        for node in nodes:
            print(f"  {node!r}")
        print(f"parsed={len(nodes)} failed={failed}\n{banner}")
    else:
        print(f"parsed={len(nodes)} failed={failed}")

    return 1 if failed else 0


def main() -> None:
    """
    Entry point for the Kaleidoscope CLI.

    Parses command-line arguments and dispatches to the appropriate mode:
    - Launches the REPL if no arguments are passed or `--repl` is specified.
    - Otherwise parses the given file or string and exits with `run_kaleido`'s status.

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `-a`, `--ast`: Print the AST of every parsed statement as JSON.
        - `-p`, `--pretty`: Show banners and indented output.
        - `--precedence`: JSON operator precedence file (default: $KALEIDO_PRECEDENCE).
        - `--strict-numbers`: Stop number literals at the first non-digit.
        - `--repl`: Launch the interactive REPL.
        - `--verbose`: Print each parsed node.
    """
    parser = argparse.ArgumentParser(prog="kaleido")
    parser.add_argument("source", nargs="?", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "-a", "--ast", action="store_true", help="Print parsed statements as JSON"
    )
    parser.add_argument(
        "-p", "--pretty", action="store_true", help="Show output with banners"
    )
    parser.add_argument(
        "--precedence",
        metavar="FILE",
        default=os.getenv(PRECEDENCE_ENV_VAR),
        help=f"JSON operator precedence table (default: ${PRECEDENCE_ENV_VAR})",
    )
    parser.add_argument(
        "--strict-numbers",
        action="store_true",
        help="Only digits and '.' continue a number literal",
    )
    parser.add_argument(
        "--repl",
        action="store_true",
        help="Launch interactive REPL instead of parsing a source",
    )
    parser.add_argument("--verbose", action="store_true", help="Print parsed nodes")

    args = parser.parse_args()

    try:
        if args.repl or args.source is None:
            from kaleido.kaleido_repl import start_repl

            start_repl(
                verbose=args.verbose,
                precedence=load_precedence(args.precedence),
                strict_numbers=args.strict_numbers,
            )
            return
        status = run_kaleido(
            source=args.source,
            is_string=args.string,
            ast=args.ast,
            pretty=args.pretty,
            precedence_path=args.precedence,
            strict_numbers=args.strict_numbers,
            verbose=args.verbose,
        )
    except PrecedenceError as e:
        print(f"[error] >>> {e}", file=sys.stderr)
        for conflict in e.conflicts:
            print(" -", conflict, file=sys.stderr)
        sys.exit(2)
    except ValueError as e:
        print(f"[error] >>> {e}", file=sys.stderr)
        sys.exit(2)
    sys.exit(status)


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()
