"""
Statement driver for the Kaleidoscope parser.

The driver owns the top-level loop: it looks at the lookahead token, picks the
matching parser entry point, reports the outcome, and recovers from failures so
that one malformed statement never blocks the ones after it.

Dispatch on the lookahead:
    EOF       -> stop
    ';'       -> consume the separator
    'def'     -> Parser.parse_definition
    'extern'  -> Parser.parse_extern
    otherwise -> Parser.parse_top_level_expr

Recovery: after a failure the lookahead is advanced by exactly one token and the
next statement starts from there.

Example:
    >>> results = parse_source("def add(a b) a+b; add(1, 2)")
    >>> [type(r).__name__ for r in results]
    ['Function', 'Function']
"""

import sys
from typing import Callable, TextIO, Union

from kaleido.kaleido_ast import Function, Prototype, TopLevel
from kaleido.kaleido_constants import DEF, EOF, EXTERN, STATEMENT_SEPARATOR
from kaleido.kaleido_lexer import CharacterStream, Lexer
from kaleido.kaleido_parser import ParseFailure, Parser
from kaleido.kaleido_precedence import PrecedenceTable

StepResult = Union[TopLevel, ParseFailure]


class Driver:
    """Runs top-level statements through a `Parser` until end of input.

    Attributes:
        parser (Parser): The parser session being driven.
        out (TextIO): Where `[ok]` / `[error]` banners are written.
        verbose (bool): Also print the node built for each successful statement.
        before_statement (Callable[[], None] | None): Called at the start of every step
            and before skipping a failed token (the REPL uses it to reset its prompt).
        parsed (int): Number of statements parsed successfully.
        failed (int): Number of statements that failed.
    """

    def __init__(
        self,
        parser: Parser,
        out: TextIO | None = None,
        verbose: bool = False,
        before_statement: Callable[[], None] | None = None,
    ) -> None:
        self.parser = parser
        self.out = out
        self.verbose = verbose
        self.before_statement = before_statement
        self.parsed = 0
        self.failed = 0

    def _emit(self, text: str) -> None:
        print(text, file=self.out if self.out is not None else sys.stderr)

    def _report(self, result: StepResult, summary: str) -> StepResult:
        if isinstance(result, ParseFailure):
            self.failed += 1
            self._emit(f"[error] >>> {result}")
            if self.before_statement is not None:
                self.before_statement()
            self.parser.advance()  # skip the offending token
        else:
            self.parsed += 1
            self._emit(f"[ok] >>> {summary}")
            if self.verbose:
                self._emit(repr(result))
        return result

    def handle_definition(self) -> StepResult:
        return self._report(
            self.parser.parse_definition(), "Parsed a function definition."
        )

    def handle_extern(self) -> StepResult:
        return self._report(self.parser.parse_extern(), "Parsed an extern.")

    def handle_top_level_expression(self) -> StepResult:
        return self._report(
            self.parser.parse_top_level_expr(), "Parsed a top-level expression."
        )

    def at_end(self) -> bool:
        return self.parser.current().type == EOF

    def step(self) -> StepResult | None:
        """Processes one top-level statement.

        Returns:
            The parsed node or failure, or None for a bare ';' and at end of input.
        """
        if self.before_statement is not None:
            self.before_statement()
        tok = self.parser.current()
        if tok.type == EOF:
            return None
        if tok.is_char(STATEMENT_SEPARATOR):
            self.parser.advance()
            return None
        if tok.type == DEF:
            return self.handle_definition()
        if tok.type == EXTERN:
            return self.handle_extern()
        return self.handle_top_level_expression()

    def run(self) -> list[StepResult]:
        """Loops over statements until end of input, collecting every result."""
        results: list[StepResult] = []
        while not self.at_end():
            result = self.step()
            if result is not None:
                results.append(result)
        return results


def parse_source(
    source: str,
    precedence: PrecedenceTable | None = None,
    strict_numbers: bool = False,
    out: TextIO | None = None,
    verbose: bool = False,
) -> list[StepResult]:
    """Parses every statement in `source` with a fresh lexer/parser session.

    Args:
        source: Kaleidoscope source text.
        precedence: Operator table to use; a default table when None.
        strict_numbers: Forwarded to the `Lexer`.
        out: Where diagnostics go; stderr when None.
        verbose: Print each parsed node as well.

    Returns:
        One entry per statement, in order: a `Function`, a `Prototype`, or a `ParseFailure`.
    """
    lexer = Lexer(CharacterStream(source), strict_numbers=strict_numbers)
    driver = Driver(Parser(lexer, precedence), out=out, verbose=verbose)
    return driver.run()


def successful(results: list[StepResult]) -> list[TopLevel]:
    return [r for r in results if isinstance(r, (Function, Prototype))]


__all__ = ["Driver", "StepResult", "parse_source", "successful"]
