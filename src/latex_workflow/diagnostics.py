"""Severity filtering and per-file grouping of parsed log entries."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from .models import Diagnostic, DiagnosticBatch, DiagnosticSeverity, LogEntry, LogLevel, Range, Severity

logger = logging.getLogger(__name__)

_SEVERITY_MAP: dict[Severity, DiagnosticSeverity] = {
    Severity.HINT: DiagnosticSeverity.HINT,
    Severity.WARNING: DiagnosticSeverity.WARNING,
    Severity.ERROR: DiagnosticSeverity.ERROR,
}


def should_include(severity: Severity, level: LogLevel) -> bool:
    """Errors always pass; warnings unless *level* is ``error``; hints only under ``all``."""
    if severity == Severity.ERROR:
        return True
    if severity == Severity.WARNING:
        return level != LogLevel.ERROR
    return level == LogLevel.ALL


def to_diagnostic(entry: LogEntry) -> Diagnostic:
    return Diagnostic(
        range=Range.at_line(entry.line - 1),
        message=entry.message,
        severity=_SEVERITY_MAP[entry.severity],
    )


def resolve_path(file: str, root: str | Path) -> Path:
    """Key a log file name under *root*; absolute names are kept as-is."""
    path = Path(file)
    if not path.is_absolute():
        path = Path(root) / path
    return Path(os.path.normpath(path))


def classify(
    entries: Iterable[LogEntry],
    level: LogLevel,
    root: str | Path,
    *,
    default_file: str | Path | None = None,
) -> DiagnosticBatch:
    """Filter *entries* by *level* and group them by resolved file path.

    Groups appear in order of first encounter and keep entry order.  Entries
    the parser could not attribute to a file go to *default_file*, or are
    dropped when none is given.
    """
    batch: DiagnosticBatch = {}
    for entry in entries:
        if not should_include(entry.severity, level):
            continue
        file = entry.file or (str(default_file) if default_file else "")
        if not file:
            logger.debug("Dropping entry without a file: %s", entry.message)
            continue
        batch.setdefault(resolve_path(file, root), []).append(to_diagnostic(entry))
    return batch


class DiagnosticCollection:
    """Published diagnostics keyed by absolute file path.

    ``replace()`` swaps the whole content in one step so readers never see a
    mix of two runs.
    """

    def __init__(self, name: str = "latex") -> None:
        self.name = name
        self._entries: DiagnosticBatch = {}

    def clear(self) -> None:
        self._entries = {}

    def set(self, path: str | Path, diagnostics: list[Diagnostic]) -> None:
        self._entries[Path(path)] = list(diagnostics)

    def get(self, path: str | Path) -> list[Diagnostic]:
        return list(self._entries.get(Path(path), []))

    def replace(self, batch: DiagnosticBatch) -> None:
        self._entries = {Path(p): list(d) for p, d in batch.items()}

    def items(self) -> Iterator[tuple[Path, list[Diagnostic]]]:
        for path, diags in self._entries.items():
            yield path, list(diags)

    def __iter__(self) -> Iterator[Path]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, (str, Path)) and Path(path) in self._entries

    @property
    def total(self) -> int:
        return sum(len(d) for d in self._entries.values())
