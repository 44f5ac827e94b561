"""
Shared token names and tables for the Kaleidoscope toolchain.

Exports:
    - Token type names (EOF, DEF, EXTERN, IDENT, NUMBER, CHAR)
    - keyword_map: reserved words mapped to their token types
    - DEFAULT_PRECEDENCE: the stock binary operator table (higher binds tighter)
    - RESERVED_OPERATOR_CHARS: characters the grammar already claims
"""

EOF = "EOF"
DEF = "DEF"
EXTERN = "EXTERN"
IDENT = "IDENT"
NUMBER = "NUMBER"
CHAR = "CHAR"

TOKEN_TYPES: tuple[str, ...] = (EOF, DEF, EXTERN, IDENT, NUMBER, CHAR)

# case-sensitive
keyword_map: dict[str, str] = {
    "def": DEF,
    "extern": EXTERN,
}

DEFAULT_PRECEDENCE: dict[str, int] = {
    "<": 10,
    "+": 20,
    "-": 20,
    "*": 40,  # highest
}

RESERVED_OPERATOR_CHARS: frozenset[str] = frozenset("(),#;.")

STATEMENT_SEPARATOR = ";"

WHITESPACE_CHARS = " \t\n\v\f\r"

__all__ = [
    "CHAR",
    "DEF",
    "DEFAULT_PRECEDENCE",
    "EOF",
    "EXTERN",
    "IDENT",
    "NUMBER",
    "RESERVED_OPERATOR_CHARS",
    "STATEMENT_SEPARATOR",
    "TOKEN_TYPES",
    "WHITESPACE_CHARS",
    "keyword_map",
]
