import builtins
import os
import subprocess
import sys
from pathlib import Path
from typing import Callable
from unittest.mock import patch

import pytest

from kaleido.kaleido_precedence import PrecedenceTable
from kaleido.kaleido_repl import handle_precedence_command, print_traceback, start_repl

ROOT = Path(__file__).resolve().parents[1]


def scripted(lines: list[str], prompts: list[str] | None = None) -> Callable[[str], str]:
    it = iter(lines)

    def read_line(prompt: str) -> str:
        if prompts is not None:
            prompts.append(prompt)
        try:
            return next(it)
        except StopIteration:
            raise EOFError from None

    return read_line


def run_session(
    lines: list[str], capsys: pytest.CaptureFixture[str], **kwargs: object
) -> str:
    start_repl(read_line=scripted(lines), **kwargs)  # type: ignore[arg-type]
    return capsys.readouterr().out


def test_repl_quit(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(builtins, "input", lambda _: "quit")
    start_repl()
    out = capsys.readouterr().out
    assert "Kaleidoscope REPL" in out
    assert "Exiting Kaleidoscope REPL" in out


def test_repl_exit(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(builtins, "input", lambda _: "exit")
    start_repl()
    assert "Exiting Kaleidoscope REPL" in capsys.readouterr().out


def test_repl_end_of_input(capsys: pytest.CaptureFixture[str]) -> None:
    out = run_session([], capsys)
    assert "Exiting Kaleidoscope REPL" in out
    assert "[error]" not in out


def test_repl_keyboard_interrupt(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(
        builtins, "input", lambda _: (_ for _ in ()).throw(KeyboardInterrupt())
    )
    start_repl()
    assert "Exiting Kaleidoscope REPL" in capsys.readouterr().out


def test_repl_reports_each_statement(capsys: pytest.CaptureFixture[str]) -> None:
    out = run_session(["def f(x) x;", "extern g();", "f(2);", "quit"], capsys)
    assert "[ok] >>> Parsed a function definition." in out
    assert "[ok] >>> Parsed an extern." in out
    assert "[ok] >>> Parsed a top-level expression." in out


def test_repl_recovers_after_error(capsys: pytest.CaptureFixture[str]) -> None:
    out = run_session(["1 + ;", "2;", "quit"], capsys)
    assert (
        "[error] >>> line 1, col 5: unknown token ';' when expecting an expression"
        in out
    )
    assert "[ok] >>> Parsed a top-level expression." in out
    assert out.index("[error]") < out.index("[ok]")


def test_repl_prompts_for_continuation() -> None:
    prompts: list[str] = []
    with patch("builtins.print"):
        start_repl(read_line=scripted(["def f(x)", "x;", "quit"], prompts))
    assert prompts == [">>> ", "... ", ">>> "]


def test_repl_error_resets_prompt() -> None:
    prompts: list[str] = []
    with patch("builtins.print") as mock_print:
        start_repl(read_line=scripted(["1 + ;", "quit"], prompts))
    assert prompts == [">>> ", ">>> "]
    printed = "\n".join(
        "".join(str(arg) for arg in call.args) for call in mock_print.call_args_list
    )
    assert "[error] >>>" in printed
    assert "[ok]" not in printed


def test_repl_blank_lines_are_skipped(capsys: pytest.CaptureFixture[str]) -> None:
    out = run_session(["   ", "", "quit"], capsys)
    assert "[ok]" not in out
    assert "[error]" not in out


def test_repl_verbose_prints_nodes(capsys: pytest.CaptureFixture[str]) -> None:
    out = run_session(["extern cos(x);", "quit"], capsys, verbose=True)
    assert "Prototype('cos', ['x'])" in out


def test_repl_verbose_mode_toggle(capsys: pytest.CaptureFixture[str]) -> None:
    out = run_session(["verbose-mode", "y;", "verbose-mode", "quit"], capsys)
    assert "[mode] >>> Verbose mode ON" in out
    assert "[mode] >>> Verbose mode OFF" in out
    assert "Variable('y')" in out


def test_repl_precedence_command_changes_parsing(
    capsys: pytest.CaptureFixture[str],
) -> None:
    table = PrecedenceTable.from_defaults()
    out = run_session(
        ["PRECEDENCE {'/': 40}", "a/b;", "quit"], capsys, verbose=True, precedence=table
    )
    assert "[ok] >>> Operator precedence updated." in out
    assert "   / → 40" in out
    assert "Binary('/', Variable('a'), Variable('b'))" in out
    assert table.get("/") == 40


def test_repl_precedence_report(capsys: pytest.CaptureFixture[str]) -> None:
    out = run_session(["PRECEDENCE", "quit"], capsys)
    assert "   * → 40" in out
    assert "   < → 10" in out


def test_repl_invalid_precedence_lists_conflicts(
    capsys: pytest.CaptureFixture[str],
) -> None:
    out = run_session(["PRECEDENCE {'(': 5}", "quit"], capsys)
    assert "[error] >>> Failed to configure operator precedence:" in out
    assert " - '(' → reserved by the grammar" in out


def test_repl_strict_numbers(capsys: pytest.CaptureFixture[str]) -> None:
    out = run_session(["1abc;", "quit"], capsys, strict_numbers=True)
    assert out.count("[ok] >>> Parsed a top-level expression.") == 2


def test_repl_unexpected_exception_prints_traceback(
    capsys: pytest.CaptureFixture[str],
) -> None:
    def broken(_: str) -> str:
        raise RuntimeError("console went away")

    start_repl(read_line=broken)
    out = capsys.readouterr().out
    assert "[error] >>>" in out
    assert "console went away" in out
    assert "Exiting Kaleidoscope REPL" in out


def test_print_traceback_outputs_error() -> None:
    with patch("builtins.print") as mock_print:
        try:
            raise ValueError("intentional test error")
        except Exception:
            print_traceback()

    printed = [
        "".join(str(arg) for arg in call.args) for call in mock_print.call_args_list
    ]
    joined = "\n".join(printed).lower()

    assert "[error] >>>" in joined
    assert "valueerror" in joined
    assert "intentional test error" in joined


def test_non_precedence_command_returns_false() -> None:
    assert handle_precedence_command("def f(x) x", PrecedenceTable()) is False


def test_precedence_lookalike_identifiers_reach_parser(
    capsys: pytest.CaptureFixture[str],
) -> None:
    out = run_session(
        ["precedence(1);", "Precedence + 1;", "PRECEDENCEx;", "quit"], capsys
    )
    assert "Failed to configure operator precedence" not in out
    assert out.count("[ok] >>> Parsed a top-level expression.") == 3


@pytest.mark.parametrize(  # type: ignore[misc]
    "line", ["precedence {'%': 30}", "PRECEDENCEx", "precedenceLevel + 1"]
)
def test_precedence_command_requires_exact_keyword(line: str) -> None:
    table = PrecedenceTable()
    assert handle_precedence_command(line, table) is False
    assert "%" not in table.summary()


def test_precedence_command_without_space_before_dict(
    capsys: pytest.CaptureFixture[str],
) -> None:
    table = PrecedenceTable()
    assert handle_precedence_command("  PRECEDENCE{'%': 30}", table) is True
    assert table.get("%") == 30


def test_precedence_command_rejects_non_dict(
    capsys: pytest.CaptureFixture[str],
) -> None:
    table = PrecedenceTable.from_defaults()
    assert handle_precedence_command("PRECEDENCE [1, 2]", table) is True
    out = capsys.readouterr().out
    assert "Failed to configure operator precedence" in out
    assert "must be a dict" in out


def test_precedence_command_rejects_bad_literal(
    capsys: pytest.CaptureFixture[str],
) -> None:
    table = PrecedenceTable.from_defaults()
    assert handle_precedence_command("PRECEDENCE {invalid_syntax", table) is True
    assert "Failed to configure operator precedence" in capsys.readouterr().out
    assert table.get("+") == 20


def test_repl_as_script_runs() -> None:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(ROOT / "src")
    result = subprocess.run(
        [sys.executable, str(ROOT / "src" / "kaleido" / "kaleido_repl.py")],
        input="def f(x) x;\nquit\n",
        text=True,
        capture_output=True,
        env=env,
        timeout=30,
    )
    assert "Kaleidoscope REPL" in result.stdout
    assert "[ok] >>> Parsed a function definition." in result.stdout
    assert "Exiting Kaleidoscope REPL" in result.stdout
