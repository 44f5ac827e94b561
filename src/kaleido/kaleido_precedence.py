"""
Provides the `PrecedenceTable` class for managing binary operator precedence
in the Kaleidoscope parser.

Classes:
    - PrecedenceTable: Maps single-character operators to integer precedences.
    - PrecedenceError: Raised when a configuration is invalid.

Features:
    - Preloaded with the stock operators (`<` 10, `+` 20, `-` 20, `*` 40)
    - Install, remove, or bulk-configure operators; bulk updates are all-or-nothing
    - Loads tables from JSON configuration files
    - Generates operator reports for the REPL and CLI

Usage:
    >>> table = PrecedenceTable.from_defaults()
    >>> table.install("/", 40)
    >>> table.get("/")
    40
    >>> table.get("%")
    -1

A precedence of zero or less is accepted and disables the operator: the parser
then treats that character as "not a binary operator", exactly as if it were absent.
"""

import json
from typing import Any

from kaleido.kaleido_constants import (
    DEFAULT_PRECEDENCE,
    RESERVED_OPERATOR_CHARS,
    WHITESPACE_CHARS,
)


class PrecedenceError(Exception):
    """Raised when an operator precedence configuration is invalid.

    Attributes:
        conflicts (list[str]): One description per rejected entry.

    Example:
        raise PrecedenceError("Invalid precedence table", ["'(' → reserved by the grammar"])
    """

    def __init__(self, message: str, conflicts: list[str] | None = None):
        super().__init__(message)
        self.conflicts = conflicts or []


class PrecedenceTable:
    """Binary operator table: operator character → precedence (higher binds tighter).

    Attributes:
        table (dict[str, int]): Current operator precedences, including disabled ones.
    """

    def __init__(self) -> None:
        self.table: dict[str, int] = {}

    @classmethod
    def from_defaults(cls) -> "PrecedenceTable":
        """Constructs a table preloaded with the stock binary operators."""
        instance = cls()
        instance.configure(DEFAULT_PRECEDENCE)
        return instance

    def get(self, op: str) -> int:
        """Returns the effective precedence of `op`.

        Returns:
            The configured precedence, or -1 if `op` is absent or has precedence <= 0.
        """
        prec = self.table.get(op, -1)
        return prec if prec > 0 else -1

    def install(self, op: str, precedence: int) -> None:
        self.configure({op: precedence})

    def remove(self, op: str) -> None:
        if op not in self.table:
            raise PrecedenceError(f"Unknown operator: {op!r}")
        del self.table[op]

    def _check_entry(self, op: Any, precedence: Any) -> str | None:
        if not isinstance(op, str) or len(op) != 1:
            return f"{op!r} → operators must be a single character"
        if op.isascii() and op.isalnum():
            return f"{op!r} → letters and digits cannot be operators"
        if op in WHITESPACE_CHARS:
            return f"{op!r} → whitespace cannot be an operator"
        if op in RESERVED_OPERATOR_CHARS:
            return f"{op!r} → reserved by the grammar"
        if isinstance(precedence, bool) or not isinstance(precedence, int):
            return f"{op!r} → precedence must be an integer, got {precedence!r}"
        return None

    def configure(self, cfg: dict[Any, Any]) -> None:
        """
        Applies a batch of operator precedences.

        Every entry is validated first; if any entry is rejected nothing is applied.

        Args:
            cfg: Mapping of operator character to integer precedence.

        Raises:
            PrecedenceError: If `cfg` is not a dict or any entry is invalid.
        """
        if not isinstance(cfg, dict):
            raise PrecedenceError("Configuration must be a dict")

        conflicts: list[str] = []
        for op, precedence in cfg.items():
            problem = self._check_entry(op, precedence)
            if problem:
                conflicts.append(problem)

        if conflicts:
            raise PrecedenceError("Invalid precedence table", conflicts)

        self.table.update(cfg)

    def load_from_json(self, path: str) -> None:
        """
        Loads operator precedences from a JSON file and applies them via `configure`.

        Example JSON structure:
            {
                "/": 40,
                "<": 0
            }

        Args:
            path: Path to the JSON file.

        Raises:
            PrecedenceError: If the file cannot be loaded or the configuration is invalid.
        """
        try:
            with open(path, encoding="utf-8") as f:
                raw_cfg = json.load(f)
            self.configure(raw_cfg)
        except PrecedenceError:
            raise
        except Exception as e:
            raise PrecedenceError(f"Failed to load precedence file: {e}") from e

    def summary(self) -> dict[str, int]:
        return dict(self.table)

    def report(self, verbose: bool = False) -> str:
        """Formats the table, highest precedence first.

        Args:
            verbose: If True, marks operators disabled by a precedence <= 0.
        """
        lines: list[str] = []
        for op, prec in sorted(self.table.items(), key=lambda kv: (-kv[1], kv[0])):
            line = f"{op:>4} → {prec}"
            if verbose and prec <= 0:
                line += " (disabled)"
            lines.append(line)
        return "\n".join(lines)

    def __contains__(self, op: str) -> bool:
        return self.get(op) > 0


__all__ = ["PrecedenceError", "PrecedenceTable"]
