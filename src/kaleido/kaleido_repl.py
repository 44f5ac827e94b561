import ast
import io
import re
import sys
import traceback
from typing import Callable

from kaleido.kaleido_driver import Driver
from kaleido.kaleido_lexer import Lexer, PromptStream
from kaleido.kaleido_parser import Parser
from kaleido.kaleido_precedence import PrecedenceError, PrecedenceTable

PRECEDENCE_COMMAND = re.compile(r"PRECEDENCE(?=\s|\{|$)")


def print_traceback() -> None:
    buf = io.StringIO()
    traceback.print_exc(file=buf)
    print("[error] >>>")
    print(buf.getvalue())


def handle_precedence_command(src: str, table: PrecedenceTable) -> bool:
    """Handles `PRECEDENCE` lines; returns False for anything else.

    `PRECEDENCE` alone prints the table. `PRECEDENCE {"/": 40, "<": 0}` installs,
    updates, or (with a precedence <= 0) disables operators. The keyword is
    case-sensitive and must stand alone, so identifiers such as `precedence` or
    `PRECEDENCEx` still reach the parser.
    """
    src = src.strip()
    match = PRECEDENCE_COMMAND.match(src)
    if match is None:
        return False
    command = src[match.end() :].strip()
    if command == "":
        print(table.report(verbose=True))
        return True
    try:
        raw_map = ast.literal_eval(command)
        table.configure(raw_map)
        print("[ok] >>> Operator precedence updated.")
        print(
            "\n".join(
                f"{op:>4} → {prec}"
                for op, prec in sorted(raw_map.items(), key=lambda kv: -kv[1])
            )
        )
    except PrecedenceError as e:
        print("[error] >>> Failed to configure operator precedence:")
        print(e)
        for conflict in e.conflicts:
            print(" -", conflict)
    except (ValueError, TypeError, SyntaxError) as e:
        print("[error] >>> Failed to configure operator precedence:")
        print(e)
    return True


def start_repl(
    verbose: bool = False,
    precedence: PrecedenceTable | None = None,
    strict_numbers: bool = False,
    read_line: Callable[[str], str] | None = None,
) -> None:
    print("Kaleidoscope REPL. Type 'exit' or 'quit' to leave.")
    table = precedence if precedence is not None else PrecedenceTable.from_defaults()
    driver: Driver | None = None

    def handle_command(line: str) -> bool:
        if line.strip().lower() == "verbose-mode" and driver is not None:
            driver.verbose = not driver.verbose
            print(f"[mode] >>> Verbose mode {'ON' if driver.verbose else 'OFF'}")
            return True
        return handle_precedence_command(line, table)

    stream = PromptStream(read_line=read_line, handle_command=handle_command)
    parser = Parser(Lexer(stream, strict_numbers=strict_numbers), table)
    driver = Driver(
        parser,
        out=sys.stdout,
        verbose=verbose,
        before_statement=stream.begin_statement,
    )

    try:
        driver.run()
    except KeyboardInterrupt:
        pass
    except Exception:
        print_traceback()
    print("\nExiting Kaleidoscope REPL.")


def main() -> None:
    start_repl()


if __name__ == "__main__":
    main()
