"""
Kaleidoscope Language Parser

Parses a Kaleidoscope token stream into AST nodes using recursive descent for the
grammar and operator-precedence climbing for binary expressions.

Grammar
-------
    toplevel   := definition | extern | expression
    definition := 'def' prototype expression
    extern     := 'extern' prototype
    prototype  := identifier '(' identifier* ')'
    expression := primary ( binop primary )*
    primary    := number
                | identifier ( '(' ( expression ( ',' expression )* )? ')' )?
                | '(' expression ')'

Parser Behavior
---------------
- One-token lookahead: `current()` is always the next unconsumed token, and every
  rule leaves it on the first token after what the rule consumed.
- Tokens are pulled from the lexer one at a time, only when `advance()` is called.
- Fail-fast: the first grammar mismatch produces a `ParseFailure` *value* (never an
  exception). The offending token is not consumed, the failure is recorded in
  `diagnostics`, and every enclosing rule hands the same failure back unchanged
  without building a partial node. Recovering (skipping a token and starting the
  next statement) is left to the caller; see `kaleido_driver.Driver`.

Entry Points
------------
- `parse_definition()` -> Function | ParseFailure
- `parse_extern()` -> Prototype | ParseFailure
- `parse_top_level_expr()` -> Function | ParseFailure (anonymous prototype)
- `parse_expression()` -> ExprAST | ParseFailure
"""

from __future__ import annotations

from typing import Protocol, TypeVar, Union

from kaleido.kaleido_ast import (
    Binary,
    Call,
    ExprAST,
    Function,
    Number,
    Prototype,
    Variable,
)
from kaleido.kaleido_constants import CHAR, IDENT, NUMBER
from kaleido.kaleido_lexer import Token
from kaleido.kaleido_precedence import PrecedenceTable


class TokenSource(Protocol):
    def next_token(self) -> Token: ...  # pragma: no cover


class ParseFailure:
    """
    Marker returned by a grammar rule that could not match its input.

    Attributes:
        message (str): Human-readable diagnostic.
        token (Token): The token the rule stopped on (left unconsumed).
        line (int): Line of the offending token.
        col (int): Column of the offending token.
    """

    def __init__(self, message: str, token: Token) -> None:
        self.message = message
        self.token = token
        self.line = token.line
        self.col = token.col

    def __repr__(self) -> str:
        return f"ParseFailure({self.message!r}, line={self.line}, col={self.col})"

    def __str__(self) -> str:
        return f"line {self.line}, col {self.col}: {self.message}"

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, ParseFailure)
            and self.message == other.message
            and self.token == other.token
        )

    __hash__ = None  # type: ignore[assignment]


T = TypeVar("T")
Result = Union[T, ParseFailure]


class Parser:
    """
    Kaleidoscope Parser Class

    Attributes
    ----------
    lexer : TokenSource
        Anything with a `next_token()` method, normally a `Lexer`.
    precedence : PrecedenceTable
        Binary operator table consulted by precedence climbing. Each parser builds
        its own default table unless one is passed in.
    diagnostics : list[ParseFailure]
        Every failure produced so far, oldest first.
    """

    def __init__(
        self, lexer: TokenSource, precedence: PrecedenceTable | None = None
    ) -> None:
        self.lexer = lexer
        self.precedence = (
            precedence if precedence is not None else PrecedenceTable.from_defaults()
        )
        self.diagnostics: list[ParseFailure] = []
        self._current: Token | None = None

    def current(self) -> Token:
        """Returns the lookahead token, reading the first one on demand."""
        if self._current is None:
            return self.advance()
        return self._current

    def advance(self) -> Token:
        """Replaces the lookahead with the next token from the lexer."""
        self._current = self.lexer.next_token()
        return self._current

    def error(self, message: str) -> ParseFailure:
        failure = ParseFailure(message, self.current())
        self.diagnostics.append(failure)
        return failure

    def get_tok_precedence(self) -> int:
        """Precedence of the lookahead as a binary operator, or -1 if it is not one."""
        tok = self.current()
        if tok.type != CHAR:
            return -1
        return self.precedence.get(str(tok.value))

    # numberexpr ::= number
    def parse_number_expr(self) -> Number:
        result = Number(float(self.current().value))
        self.advance()
        return result

    # parenexpr ::= '(' expression ')'
    def parse_paren_expr(self) -> Result[ExprAST]:
        self.advance()  # eat (
        expr = self.parse_expression()
        if isinstance(expr, ParseFailure):
            return expr
        if not self.current().is_char(")"):
            return self.error("expected ')'")
        self.advance()  # eat )
        return expr

    # identifierexpr ::= identifier | identifier '(' expression* ')'
    def parse_identifier_expr(self) -> Result[ExprAST]:
        id_name = str(self.current().value)
        self.advance()

        if not self.current().is_char("("):
            return Variable(id_name)

        self.advance()  # eat (
        args: list[ExprAST] = []
        if not self.current().is_char(")"):
            while True:
                arg = self.parse_expression()
                if isinstance(arg, ParseFailure):
                    return arg
                args.append(arg)

                if self.current().is_char(")"):
                    break
                if not self.current().is_char(","):
                    return self.error("expected ')' or ',' in argument list")
                self.advance()

        self.advance()  # eat )
        return Call(id_name, args)

    def parse_primary(self) -> Result[ExprAST]:
        tok = self.current()
        if tok.type == IDENT:
            return self.parse_identifier_expr()
        if tok.type == NUMBER:
            return self.parse_number_expr()
        if tok.is_char("("):
            return self.parse_paren_expr()
        return self.error(f"unknown token {tok.text!r} when expecting an expression")

    def parse_bin_op_rhs(self, min_precedence: int, lhs: ExprAST) -> Result[ExprAST]:
        """
        Folds trailing `binop primary` pairs onto `lhs` by precedence climbing.

        Operators binding looser than `min_precedence` (including non-operators,
        which rank -1) end the expression and are left unconsumed. When the operator
        after a right operand binds tighter than the one before it, the right operand
        is extended first at `precedence + 1`; equal precedence therefore associates
        to the left.

        Args:
            min_precedence: The weakest operator this call may consume.
            lhs: The expression parsed so far.

        Returns:
            The combined expression, or the first failure encountered.
        """
        while True:
            tok_prec = self.get_tok_precedence()
            if tok_prec < min_precedence:
                return lhs

            bin_op = str(self.current().value)
            self.advance()  # eat binop

            rhs = self.parse_primary()
            if isinstance(rhs, ParseFailure):
                return rhs

            next_prec = self.get_tok_precedence()
            if tok_prec < next_prec:
                rhs = self.parse_bin_op_rhs(tok_prec + 1, rhs)
                if isinstance(rhs, ParseFailure):
                    return rhs

            lhs = Binary(bin_op, lhs, rhs)

    # expression ::= primary binoprhs
    def parse_expression(self) -> Result[ExprAST]:
        lhs = self.parse_primary()
        if isinstance(lhs, ParseFailure):
            return lhs
        return self.parse_bin_op_rhs(0, lhs)

    # prototype ::= id '(' id* ')'
    def parse_prototype(self) -> Result[Prototype]:
        if self.current().type != IDENT:
            return self.error("expected function name in prototype")

        fn_name = str(self.current().value)
        self.advance()

        if not self.current().is_char("("):
            return self.error("expected '(' in prototype")

        arg_names: list[str] = []
        while self.advance().type == IDENT:
            arg_names.append(str(self.current().value))

        if not self.current().is_char(")"):
            return self.error("expected ')' in prototype")

        self.advance()  # eat )
        return Prototype(fn_name, arg_names)

    # definition ::= 'def' prototype expression
    def parse_definition(self) -> Result[Function]:
        self.advance()  # eat def
        proto = self.parse_prototype()
        if isinstance(proto, ParseFailure):
            return proto

        body = self.parse_expression()
        if isinstance(body, ParseFailure):
            return body
        return Function(proto, body)

    # external ::= 'extern' prototype
    def parse_extern(self) -> Result[Prototype]:
        self.advance()  # eat extern
        return self.parse_prototype()

    # toplevelexpr ::= expression
    def parse_top_level_expr(self) -> Result[Function]:
        expr = self.parse_expression()
        if isinstance(expr, ParseFailure):
            return expr
        return Function(Prototype("", []), expr)


__all__ = ["ParseFailure", "Parser", "Result", "TokenSource"]
