"""LaTeX log parsing.

Turns the text a TeX engine writes to stdout (or to its ``.log`` file) into
``LogEntry`` objects with file, line, severity and message.  The coordinator
only relies on the ``LogParser`` protocol, so other formats can be plugged in
without touching it.

Recognised markers:

* ``! message`` errors, with the line number taken from the ``l.NNN`` line
  that follows;
* ``path.ext:NNN: message`` errors (``-file-line-error`` mode), which may
  point into a package or class file as well as a ``.tex`` source;
* ``LaTeX|Package X|Class X Warning: ...`` warnings, including ``(X)``
  continuation lines, with the line from ``on input line NNN``;
* ``Overfull/Underfull \\hbox|\\vbox`` typesetting notes, reported as hints.

The active file is tracked through TeX's parenthesis nesting
(``(./sections/intro.tex ... )``).  Absolute paths belong to the TeX
installation and never become the current file.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Protocol

from ..models import LogEntry, Severity

logger = logging.getLogger(__name__)


class LogParser(Protocol):
    """Strategy that extracts log entries from raw compiler output."""

    def parse(self, text: str | None) -> list[LogEntry]: ...


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# TeX hard-wraps log lines at max_print_line characters (79 by default).
MAX_PRINT_LINE = 79

_ERROR_RE = re.compile(r"^!\s*(.*)")
_LINE_RE = re.compile(r"^l\.(\d+)")
_FILE_LINE_ERROR_RE = re.compile(r"^(?:\./)?((?:[A-Za-z]:)?[^\s():]+\.\w+):(\d+):\s*(.*)")
_WARNING_RE = re.compile(r"^(?:LaTeX|Package|Class)(?:\s+(\S+))?\s+Warning:\s*(.*)")
_INPUT_LINE_RE = re.compile(r"on input line (\d+)")
_BOX_RE = re.compile(r"^((?:Over|Under)full \\[hv]box.*)")
_BOX_LINE_RE = re.compile(r"at lines? (\d+)")

# TeX Live writes (./path.tex; MiKTeX omits the ./ prefix.
_FILE_OPEN_RE = re.compile(r"\((?:\./)?([^\s()]+\.tex)\b")

# How far below a "!" error to look for its "l.NNN" line.
_ERROR_CONTEXT_LINES = 12


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def unwrap_lines(text: str) -> list[str]:
    """Split *text* into lines, re-joining lines TeX hard-wrapped."""
    lines: list[str] = []
    pending = ""
    for raw in text.replace("\r\n", "\n").split("\n"):
        pending += raw
        if len(raw) != MAX_PRINT_LINE:
            lines.append(pending)
            pending = ""
    if pending:
        lines.append(pending)
    return lines


def _is_absolute_path(path: str) -> bool:
    """Return True for absolute/system paths (e.g. C:\\... or /usr/...)."""
    if len(path) >= 3 and path[1] == ":" and path[2] in ("/", "\\"):
        return True
    return path.startswith("/")


def _update_file_stack(stack: list[str], line: str) -> None:
    """Push/pop the open-file stack according to parentheses in *line*.

    Non-file parentheses and files under absolute paths push an empty
    sentinel so ``)`` tracking stays balanced.
    """
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "(":
            m = _FILE_OPEN_RE.match(line, i)
            if m:
                name = m.group(1)
                stack.append("" if _is_absolute_path(name) else name)
                i = m.end()
                continue
            stack.append("")
        elif ch == ")" and stack:
            stack.pop()
        i += 1


def _current_file(stack: list[str]) -> str:
    for name in reversed(stack):
        if name:
            return name
    return ""


def _error_line(lines: list[str], start: int) -> int:
    """Line number from the ``l.NNN`` marker following an error, or 1."""
    for line in lines[start:start + _ERROR_CONTEXT_LINES]:
        if line.startswith("!"):
            break
        m = _LINE_RE.match(line)
        if m:
            return int(m.group(1))
    return 1


def _first_int(pattern: re.Pattern[str], text: str) -> int:
    m = pattern.search(text)
    if m:
        return max(int(m.group(1)), 1)
    return 1


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class LatexLogParser:
    """Regex-based parser for pdfTeX/XeTeX/LuaTeX output."""

    def parse(self, text: str | None) -> list[LogEntry]:
        if not text:
            return []

        lines = unwrap_lines(text)
        entries: list[LogEntry] = []
        stack: list[str] = []
        i = 0
        while i < len(lines):
            entry, j = self._match(lines, i, _current_file(stack))
            if entry is not None:
                entries.append(entry)
            # Parentheses on matched lines still open and close files
            for consumed in lines[i:j]:
                _update_file_stack(stack, consumed)
            i = j

        logger.debug("Parsed %d log entries from %d lines", len(entries), len(lines))
        return entries

    def _match(self, lines: list[str], i: int, current: str) -> tuple[LogEntry | None, int]:
        """Entry starting at ``lines[i]`` (if any) and the index after it."""
        line = lines[i]

        m = _FILE_LINE_ERROR_RE.match(line)
        if m:
            return LogEntry(
                file=m.group(1),
                line=max(int(m.group(2)), 1),
                severity=Severity.ERROR,
                message=m.group(3).strip() or "Error",
            ), i + 1

        m = _ERROR_RE.match(line)
        if m:
            message = m.group(1).strip()
            if not message:
                return None, i + 1
            return LogEntry(
                file=current,
                line=_error_line(lines, i + 1),
                severity=Severity.ERROR,
                message=message,
            ), i + 1

        m = _WARNING_RE.match(line)
        if m:
            parts = [m.group(2).strip()]
            j = i + 1
            # Package warnings continue on lines prefixed with "(name)"
            if m.group(1):
                prefix = f"({m.group(1)})"
                while j < len(lines) and lines[j].startswith(prefix):
                    parts.append(lines[j][len(prefix):].strip())
                    j += 1
            message = " ".join(p for p in parts if p)
            return LogEntry(
                file=current,
                line=_first_int(_INPUT_LINE_RE, message),
                severity=Severity.WARNING,
                message=message,
            ), j

        m = _BOX_RE.match(line)
        if m:
            message = m.group(1).strip()
            return LogEntry(
                file=current,
                line=_first_int(_BOX_LINE_RE, message),
                severity=Severity.HINT,
                message=message,
            ), i + 1

        return None, i + 1


def parse_log_file(log_path: str | Path, parser: LogParser | None = None) -> list[LogEntry]:
    """Parse a ``.log`` file on disk; a missing file yields no entries."""
    log = Path(log_path)
    if not log.exists():
        return []
    text = log.read_text(encoding="utf-8", errors="replace")
    return (parser or LatexLogParser()).parse(text)
