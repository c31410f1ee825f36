"""Tests for logging_config.py: status callbacks and rendering."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console

from latex_workflow.diagnostics import DiagnosticCollection, to_diagnostic
from latex_workflow.logging_config import NullCallbacks, RichCallbacks, diagnostics_table, setup_logging
from latex_workflow.models import LogEntry, Severity

ROOT = Path("/work/project")


def _collection() -> DiagnosticCollection:
    collection = DiagnosticCollection()
    collection.set(ROOT / "sections" / "intro.tex", [
        to_diagnostic(LogEntry(file="x", line=15, severity=Severity.ERROR, message="Undefined control sequence.")),
    ])
    return collection


def _render(table) -> str:
    console = Console(record=True, width=120)
    console.print(table)
    return console.export_text()


class TestDiagnosticsTable:
    def test_rows(self):
        text = _render(diagnostics_table(_collection()))
        assert "Undefined control sequence." in text
        assert "15" in text
        assert "Error" in text

    def test_paths_relative_to_root(self):
        text = _render(diagnostics_table(_collection(), root=ROOT))
        assert "sections/intro.tex" in text
        assert "/work/project" not in text


class TestCallbacks:
    def test_null_callbacks_record(self):
        callbacks = NullCallbacks()
        callbacks.on_status("Step 1", 3.0)
        callbacks.on_status("Step 1 failed (exit code: 1).", 6.0, error=True)
        assert callbacks.messages == ["Step 1", "Step 1 failed (exit code: 1)."]

    def test_rich_callbacks_print(self, capsys):
        callbacks = RichCallbacks()
        callbacks.on_status("LaTeX compiled.", 3.0)
        callbacks.on_diagnostics(DiagnosticCollection())
        out = capsys.readouterr().out
        assert "LaTeX compiled." in out
        assert "No diagnostics." in out

    def test_rich_callbacks_can_hide_diagnostics(self, capsys):
        RichCallbacks(show_diagnostics=False).on_diagnostics(_collection())
        assert capsys.readouterr().out == ""


def test_setup_logging_levels():
    setup_logging(verbose=True)
    assert logging.getLogger().level == logging.DEBUG
    setup_logging(quiet=True)
    assert logging.getLogger().level == logging.ERROR
    setup_logging()
    assert logging.getLogger().level == logging.INFO
