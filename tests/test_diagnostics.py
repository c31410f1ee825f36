"""Tests for diagnostics.py: severity policy, grouping, publishing."""

from __future__ import annotations

from pathlib import Path

import pytest

from latex_workflow.diagnostics import (
    DiagnosticCollection,
    classify,
    resolve_path,
    should_include,
    to_diagnostic,
)
from latex_workflow.models import DiagnosticSeverity, LogEntry, LogLevel, Range, Severity

ROOT = Path("/work/project")


def _entry(file: str, line: int, severity: Severity, message: str = "msg") -> LogEntry:
    return LogEntry(file=file, line=line, severity=severity, message=message)


class TestShouldInclude:
    @pytest.mark.parametrize("level", list(LogLevel))
    def test_errors_always_included(self, level):
        assert should_include(Severity.ERROR, level)

    @pytest.mark.parametrize("level,expected", [
        (LogLevel.ALL, True),
        (LogLevel.WARNING, False),
        (LogLevel.ERROR, False),
    ])
    def test_hints_only_under_all(self, level, expected):
        assert should_include(Severity.HINT, level) is expected

    @pytest.mark.parametrize("level,expected", [
        (LogLevel.ALL, True),
        (LogLevel.WARNING, True),
        (LogLevel.ERROR, False),
    ])
    def test_warnings_unless_error_level(self, level, expected):
        assert should_include(Severity.WARNING, level) is expected


class TestToDiagnostic:
    def test_zero_width_range_on_previous_line(self):
        diag = to_diagnostic(_entry("a.tex", 10, Severity.WARNING, "Overfull hbox"))
        assert diag.range == Range.at_line(9)
        assert diag.range.start == diag.range.end
        assert diag.range.start.character == 0
        assert diag.message == "Overfull hbox"

    @pytest.mark.parametrize("severity,expected", [
        (Severity.HINT, DiagnosticSeverity.HINT),
        (Severity.WARNING, DiagnosticSeverity.WARNING),
        (Severity.ERROR, DiagnosticSeverity.ERROR),
    ])
    def test_severity_mapping(self, severity, expected):
        assert to_diagnostic(_entry("a.tex", 1, severity)).severity == expected


class TestResolvePath:
    def test_relative_joined_to_root(self):
        assert resolve_path("sections/intro.tex", ROOT) == ROOT / "sections" / "intro.tex"

    def test_dot_slash_normalised(self):
        assert resolve_path("./paper.tex", ROOT) == ROOT / "paper.tex"

    def test_absolute_kept(self):
        assert resolve_path("/elsewhere/x.tex", ROOT) == Path("/elsewhere/x.tex")


class TestClassify:
    def test_warning_excluded_under_error_policy(self):
        entries = [_entry("paper.tex", 10, Severity.WARNING, "Overfull hbox")]
        assert classify(entries, LogLevel.ERROR, ROOT) == {}

    def test_grouping_order(self):
        entries = [
            _entry("b.tex", 3, Severity.ERROR, "b1"),
            _entry("a.tex", 1, Severity.WARNING, "a1"),
            _entry("b.tex", 1, Severity.WARNING, "b2"),
            _entry("a.tex", 9, Severity.ERROR, "a2"),
        ]
        batch = classify(entries, LogLevel.WARNING, ROOT)
        assert list(batch) == [ROOT / "b.tex", ROOT / "a.tex"]
        assert [d.message for d in batch[ROOT / "b.tex"]] == ["b1", "b2"]
        assert [d.message for d in batch[ROOT / "a.tex"]] == ["a1", "a2"]

    def test_idempotent(self, sample_log):
        from latex_workflow.tools.log_parser import LatexLogParser

        entries = LatexLogParser().parse(sample_log)
        first = classify(entries, LogLevel.ALL, ROOT)
        second = classify(entries, LogLevel.ALL, ROOT)
        assert first == second
        assert list(first) == list(second)

    def test_sample_log_by_level(self, sample_log):
        from latex_workflow.tools.log_parser import LatexLogParser

        entries = LatexLogParser().parse(sample_log)
        intro = ROOT / "sections" / "intro.tex"
        paper = ROOT / "paper.tex"

        everything = classify(entries, LogLevel.ALL, ROOT)
        assert [d.severity for d in everything[intro]] == [DiagnosticSeverity.HINT, DiagnosticSeverity.ERROR]
        assert len(everything[paper]) == 2

        errors_only = classify(entries, LogLevel.ERROR, ROOT)
        assert list(errors_only) == [intro]
        assert len(errors_only[intro]) == 1

    def test_unattributed_entry_uses_default_file(self):
        entries = [_entry("", 4, Severity.ERROR)]
        batch = classify(entries, LogLevel.WARNING, ROOT, default_file=ROOT / "main.tex")
        assert list(batch) == [ROOT / "main.tex"]

    def test_unattributed_entry_dropped_without_default(self):
        assert classify([_entry("", 4, Severity.ERROR)], LogLevel.ALL, ROOT) == {}

    def test_empty(self):
        assert classify([], LogLevel.ALL, ROOT) == {}


class TestDiagnosticCollection:
    def test_replace_clears_previous(self):
        collection = DiagnosticCollection()
        diag = to_diagnostic(_entry("a.tex", 1, Severity.ERROR))
        collection.set(ROOT / "a.tex", [diag])

        collection.replace({ROOT / "b.tex": [diag]})
        assert list(collection) == [ROOT / "b.tex"]
        assert collection.get(ROOT / "a.tex") == []

    def test_replace_with_empty_batch(self):
        collection = DiagnosticCollection()
        collection.set(ROOT / "a.tex", [to_diagnostic(_entry("a.tex", 1, Severity.ERROR))])
        collection.replace({})
        assert len(collection) == 0
        assert collection.total == 0

    def test_get_returns_copy(self):
        collection = DiagnosticCollection()
        diag = to_diagnostic(_entry("a.tex", 1, Severity.ERROR))
        collection.set(str(ROOT / "a.tex"), [diag])
        collection.get(ROOT / "a.tex").clear()
        assert collection.get(ROOT / "a.tex") == [diag]

    def test_contains_and_total(self):
        collection = DiagnosticCollection()
        diag = to_diagnostic(_entry("a.tex", 1, Severity.ERROR))
        collection.replace({ROOT / "a.tex": [diag, diag]})
        assert ROOT / "a.tex" in collection
        assert str(ROOT / "a.tex") in collection
        assert 42 not in collection
        assert collection.total == 2
