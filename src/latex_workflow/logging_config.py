"""Rich console setup and compile status helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .diagnostics import DiagnosticCollection
from .models import DiagnosticSeverity

console = Console()

# Seconds a transient status message stays visible.
STATUS_TIMEOUT = 3.0
FAILURE_STATUS_TIMEOUT = 6.0

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logger with Rich handler."""
    level = logging.DEBUG if verbose else (logging.ERROR if quiet else logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


logger = logging.getLogger("latex_workflow")


# ---------------------------------------------------------------------------
# Compile callbacks protocol
# ---------------------------------------------------------------------------


class CompileCallbacks(Protocol):
    """Protocol for compile progress reporting."""

    def on_status(self, message: str, timeout: float, error: bool = False) -> None: ...
    def on_diagnostics(self, diagnostics: DiagnosticCollection) -> None: ...


class NullCallbacks:
    """Records status messages without displaying anything."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def on_status(self, message: str, timeout: float, error: bool = False) -> None:
        self.messages.append(message)

    def on_diagnostics(self, diagnostics: DiagnosticCollection) -> None:
        pass


_SEVERITY_STYLE = {
    DiagnosticSeverity.ERROR: "red",
    DiagnosticSeverity.WARNING: "yellow",
    DiagnosticSeverity.HINT: "cyan",
}


def diagnostics_table(diagnostics: DiagnosticCollection, root: Path | None = None) -> Table:
    """Render published diagnostics as a Rich table."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("File")
    table.add_column("Line", justify="right")
    table.add_column("Severity")
    table.add_column("Message")
    for path, diags in diagnostics.items():
        shown = path
        if root is not None:
            try:
                shown = path.relative_to(root)
            except ValueError:
                pass
        for diag in diags:
            style = _SEVERITY_STYLE[diag.severity]
            table.add_row(
                str(shown),
                str(diag.range.start.line + 1),
                f"[{style}]{diag.severity.value}[/]",
                diag.message,
            )
    return table


class RichCallbacks:
    """Rich-based implementation of CompileCallbacks."""

    def __init__(self, show_diagnostics: bool = True) -> None:
        self.show_diagnostics = show_diagnostics

    def on_status(self, message: str, timeout: float, error: bool = False) -> None:
        style = "red" if error else "blue"
        console.print(f"  [{style}]{message}[/]")

    def on_diagnostics(self, diagnostics: DiagnosticCollection) -> None:
        if not self.show_diagnostics:
            return
        if not diagnostics.total:
            console.print("  [green]No diagnostics.[/]")
            return
        console.print(diagnostics_table(diagnostics))
