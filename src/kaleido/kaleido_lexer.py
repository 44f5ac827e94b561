"""
Lexical analyzer for the Kaleidoscope language.

This module provides the components that turn raw characters into tokens:

Classes:
    CharacterSource: Protocol every character source satisfies.
    CharacterStream: In-memory source with line/column tracking.
    PromptStream: Console source that pulls one line at a time on demand.
    Token: A single token with type, value, and source location.
    Lexer: Converts a character source into a stream of tokens.

Features:
    - Skips whitespace and single-line comments (`#`)
    - Recognizes:
        * Keywords `def` and `extern` (case-sensitive)
        * Identifiers (ASCII letter followed by ASCII letters/digits)
        * Numbers (permissive scan, see below)
        * Any other character as a one-character token

Numbers:
    A number starts with a digit or `.` and, by default, swallows every following
    ASCII letter, digit, or `.`, so `1abc` is a single number token. The text is
    converted using its longest valid decimal prefix (`1abc` -> 1.0, `1.2.3` -> 1.2,
    `.` -> 0.0); conversion never fails. Pass `strict_numbers=True` to stop the scan
    at the first character that is neither a digit nor `.`.

Example:
    >>> lexer = Lexer(CharacterStream("def f(x) x"))
    >>> lexer.next_token()
    Token(DEF, def)
"""

import re
from typing import Callable, Protocol

from kaleido.kaleido_constants import (
    CHAR,
    EOF,
    IDENT,
    NUMBER,
    WHITESPACE_CHARS,
    keyword_map,
)

_DECIMAL_PREFIX = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def is_alpha(ch: str) -> bool:
    return ch.isascii() and ch.isalpha()


def is_alnum(ch: str) -> bool:
    return ch.isascii() and ch.isalnum()


def parse_number(text: str) -> float:
    """Converts numeric literal text using its longest valid decimal prefix.

    Args:
        text (str): The scanned literal, possibly containing trailing junk.

    Returns:
        float: The converted value, or 0.0 when no decimal prefix exists.
    """
    match = _DECIMAL_PREFIX.match(text)
    return float(match.group(0)) if match else 0.0


class CharacterSource(Protocol):
    """Interface the lexer pulls characters through."""

    line: int
    column: int

    def peek(self) -> str: ...  # pragma: no cover

    def next(self) -> str: ...  # pragma: no cover

    def end_of_file(self) -> bool: ...  # pragma: no cover


class CharacterStream:
    """
    A utility for reading characters from a string source with line and column tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Returns:
            str: The next character.

        Raises:
            Exception: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise Exception(
                f"CharacterStreamError: Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self) -> str:
        """Returns the pending character without consuming it, or "" at the end."""
        if self.position >= len(self.source):
            return ""
        return self.source[self.position]

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class PromptStream:
    """
    A character source that reads console input one line at a time.

    A new line is requested only when the lexer needs a character and the current
    line is used up, so the caller blocks exactly where more input is required.
    `EOFError` from `read_line`, or a line reading `exit`/`quit` at the start of a
    statement, ends the input. Lines at the start of a statement are first offered
    to `handle_command`; a True result swallows the line.

    Attributes:
        prompt (str): Prompt shown for the first line of a statement.
        continuation (str): Prompt shown for every following line.
        line (int): Number of the line currently being read (1-indexed).
        column (int): Column of the pending character (1-indexed).
    """

    def __init__(
        self,
        prompt: str = ">>> ",
        continuation: str = "... ",
        read_line: Callable[[str], str] | None = None,
        handle_command: Callable[[str], bool] | None = None,
    ) -> None:
        self.prompt = prompt
        self.continuation = continuation
        self.read_line = read_line if read_line is not None else input
        self.handle_command = handle_command
        self.buffer = ""
        self.position = 0
        self.line = 0
        self.column = 1
        self.closed = False
        self.at_statement_start = True

    def begin_statement(self) -> None:
        """Shows the primary prompt the next time a line is requested."""
        self.at_statement_start = True

    def _fill(self) -> bool:
        while self.position >= len(self.buffer):
            if self.closed:
                return False
            prompt = self.prompt if self.at_statement_start else self.continuation
            try:
                text = self.read_line(prompt)
            except EOFError:
                self.closed = True
                return False
            if self.at_statement_start and text.strip() in ("exit", "quit"):
                self.closed = True
                return False
            if (
                self.at_statement_start
                and self.handle_command is not None
                and self.handle_command(text)
            ):
                continue
            if text.strip():
                self.at_statement_start = False
            self.buffer = text + "\n"
            self.position = 0
            self.line += 1
            self.column = 1
        return True

    def peek(self) -> str:
        return self.buffer[self.position] if self._fill() else ""

    def next(self) -> str:
        if not self._fill():
            raise Exception(
                f"CharacterStreamError: Attempted to read past end of input, line=<{self.line}>"
            )
        char = self.buffer[self.position]
        self.position += 1
        self.column += 1
        return char

    def end_of_file(self) -> bool:
        return not self._fill()


class Token:
    """Represents a single lexical token in the Kaleidoscope language.

    Attributes:
        type (str): The token type ('EOF', 'DEF', 'EXTERN', 'IDENT', 'NUMBER', 'CHAR').
        value (str | float): Identifier text, numeric value, keyword, or the character itself.
        line (int): The 1-based line number where the token starts.
        col (int): The 1-based column number where the token starts.
        text (str): The raw scanned text.
    """

    def __init__(
        self,
        type_: str,
        value: str | float,
        line: int = 0,
        col: int = 0,
        text: str | None = None,
    ):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col
        self.text = text if text is not None else str(value)

    def is_char(self, char: str) -> bool:
        """Checks whether this is the one-character token `char`."""
        return self.type == CHAR and self.value == char

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col))


class Lexer:
    """Lexical analyzer for the Kaleidoscope language.

    The lexer borrows its character source and is the only thing that reads from it.
    After `next_token` returns an identifier (or keyword) or a number,
    `identifier_str` or `num_val` hold exactly the text or value of that token until
    the next call overwrites them.

    Attributes:
        stream (CharacterSource): The source to tokenize.
        strict_numbers (bool): Stop number scans at anything other than digits and '.'.
        identifier_str (str): Text of the most recent identifier or keyword.
        num_val (float): Value of the most recent number.
    """

    def __init__(self, stream: CharacterSource, strict_numbers: bool = False) -> None:
        self.stream = stream
        self.strict_numbers = strict_numbers
        self.identifier_str = ""
        self.num_val = 0.0

    def peek(self) -> str:
        return self.stream.peek()

    def advance(self) -> str:
        return self.stream.next()

    def skip_whitespace(self) -> None:
        """Skips all whitespace and comments in the stream."""
        while not self.stream.end_of_file():
            if self.peek() in WHITESPACE_CHARS:
                self.advance()
            elif self.peek() == "#":
                self.skip_comment()
            else:
                break

    def skip_comment(self) -> None:
        """Advances through the stream until the end of a comment line."""
        while not self.stream.end_of_file() and self.peek() != "\n":
            self.advance()

    def _continues_number(self, ch: str) -> bool:
        if self.strict_numbers:
            return (ch.isascii() and ch.isdigit()) or ch == "."
        return is_alnum(ch) or ch == "."

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Returns:
            Token: The next token; an EOF token once the source is exhausted.
        """
        self.skip_whitespace()

        if self.stream.end_of_file():
            return Token(EOF, "EOF", self.stream.line, self.stream.column)

        ch = self.peek()
        line, col = self.stream.line, self.stream.column

        # 1. Identifier or keyword
        if is_alpha(ch):
            ident = ""
            while not self.stream.end_of_file() and is_alnum(self.peek()):
                ident += self.advance()
            self.identifier_str = ident
            return Token(keyword_map.get(ident, IDENT), ident, line, col)

        # 2. Number
        if is_alnum(ch) or ch == ".":
            num = ""
            while not self.stream.end_of_file() and self._continues_number(
                self.peek()
            ):
                num += self.advance()
            self.num_val = parse_number(num)
            return Token(NUMBER, self.num_val, line, col, text=num)

        # 3. Anything else is its own token
        return Token(CHAR, self.advance(), line, col)


def tokenize(source: str, strict_numbers: bool = False) -> list[Token]:
    """Lexes a whole string, returning every token up to and including EOF."""
    lexer = Lexer(CharacterStream(source), strict_numbers=strict_numbers)
    tokens = []
    while True:
        tok = lexer.next_token()
        tokens.append(tok)
        if tok.type == EOF:
            break
    return tokens


__all__ = [
    "CharacterSource",
    "CharacterStream",
    "Lexer",
    "PromptStream",
    "Token",
    "parse_number",
    "tokenize",
]
