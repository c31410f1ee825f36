"""Pydantic models for the LaTeX compile workflow."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Severity(str, Enum):
    """Severity of a parsed log entry."""
    HINT = "hint"
    WARNING = "warning"
    ERROR = "error"


class LogLevel(str, Enum):
    """Which log entries become diagnostics."""
    ALL = "all"
    WARNING = "warning"
    ERROR = "error"


class DiagnosticSeverity(str, Enum):
    HINT = "Hint"
    WARNING = "Warning"
    ERROR = "Error"


# ---------------------------------------------------------------------------
# Log entries and diagnostics
# ---------------------------------------------------------------------------

class LogEntry(BaseModel):
    """A single finding parsed out of compiler output."""
    model_config = ConfigDict(frozen=True)

    file: str = Field(..., description="Source file the entry refers to")
    line: int = Field(default=1, ge=1, description="1-based line number")
    severity: Severity = Field(...)
    message: str = Field(..., description="Human-readable message")


class Position(BaseModel):
    """0-based line/character position."""
    model_config = ConfigDict(frozen=True)

    line: int = Field(..., ge=0)
    character: int = Field(default=0, ge=0)


class Range(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: Position
    end: Position

    @classmethod
    def at_line(cls, line: int) -> Range:
        """Zero-width range at the start of a 0-based *line*."""
        pos = Position(line=line, character=0)
        return cls(start=pos, end=pos)


class Diagnostic(BaseModel):
    """A located message ready to be published."""
    model_config = ConfigDict(frozen=True)

    range: Range
    message: str
    severity: DiagnosticSeverity


DiagnosticBatch = dict[Path, list[Diagnostic]]


# ---------------------------------------------------------------------------
# Execution results
# ---------------------------------------------------------------------------

class StepResult(BaseModel):
    """Outcome of one workflow step."""
    index: int = Field(default=0, description="0-based position in the workflow")
    command: str = Field(..., description="Fully substituted command line")
    exit_code: int | None = Field(default=None, description="Process exit code, None if it never exited normally")
    output: str = Field(default="", description="Combined stdout/stderr captured")
    error: str = Field(default="", description="Launch or timeout failure")

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.error


class RunResult(BaseModel):
    """Report of one pass through the compile workflow."""
    document: Path | None = Field(default=None)
    steps: list[StepResult] = Field(default_factory=list)
    entries: list[LogEntry] = Field(default_factory=list)
    diagnostic_count: int = Field(default=0, description="Diagnostics published after filtering")
    skipped: str = Field(default="", description="Why the run did not execute any step")

    @property
    def success(self) -> bool:
        return not self.skipped and all(step.success for step in self.steps)

    @property
    def failed_step(self) -> StepResult | None:
        for step in self.steps:
            if not step.success:
                return step
        return None


# ---------------------------------------------------------------------------
# Configuration (loaded from YAML or Hydra)
# ---------------------------------------------------------------------------

DEFAULT_WORKFLOW = ["%compiler% %arguments% %document%"]


class WorkflowConfig(BaseModel):
    """Settings read at the start of every compile run."""
    compile_workflow: list[str] = Field(
        default_factory=lambda: list(DEFAULT_WORKFLOW),
        description="Command templates executed in order",
    )
    compiler: str = Field(default="pdflatex", description="Substituted for %compiler%")
    compile_argument: str = Field(
        default="-synctex=1 -interaction=nonstopmode -file-line-error",
        description="Substituted for %arguments%",
    )
    log_level: LogLevel = Field(default=LogLevel.WARNING, description="all, warning, or error")

    document: str | None = Field(default=None, description="Main document (file or directory to search)")
    workspace_root: str | None = Field(default=None, description="Root diagnostics are keyed under; defaults to the document directory")
    step_timeout: float | None = Field(default=None, gt=0, description="Per-step timeout in seconds")
