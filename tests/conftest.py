"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import shlex
import sys
from collections.abc import Sequence
from pathlib import Path

import pytest

from latex_workflow.models import StepResult, WorkflowConfig
from latex_workflow.sinks import OutputSink

# Typical pdflatex stdout: a section file with an overfull box and an error,
# then a LaTeX warning and a multi-line package warning in the main file.
SAMPLE_LOG = r"""This is pdfTeX, Version 3.141592653-2.6-1.40.25 (TeX Live 2023) (preloaded format=pdflatex)
 restricted \write18 enabled.
entering extended mode
(./paper.tex
LaTeX2e <2022-11-01> patch level 1
(/usr/share/texlive/texmf-dist/tex/latex/base/article.cls
Document Class: article 2022/07/02 v1.4n Standard LaTeX document class
(/usr/share/texlive/texmf-dist/tex/latex/base/size10.clo))
(./sections/intro.tex
Overfull \hbox (12.34pt too wide) in paragraph at lines 10--12
[]\OT1/cmr/m/n/10 Some long text
 []

! Undefined control sequence.
l.15 \foo

)
LaTeX Warning: Reference `fig:missing' on page 1 undefined on input line 22.

Package hyperref Warning: Token not allowed in a PDF string (Unicode):
(hyperref)                removing `math shift' on input line 30.

[1] (./paper.aux) )
Output written on paper.pdf (1 page, 12345 bytes).
Transcript written on paper.log.
"""

SUCCESS_LOG = r"""This is pdfTeX, Version 3.141592653-2.6-1.40.25 (TeX Live 2023) (preloaded format=pdflatex)
entering extended mode
(./paper.tex
LaTeX2e <2022-11-01> patch level 1
(/usr/share/texlive/texmf-dist/tex/latex/base/article.cls
Document Class: article 2022/07/02 v1.4n Standard LaTeX document class
(/usr/share/texlive/texmf-dist/tex/latex/base/size10.clo)) [1] (./paper.aux) )
Output written on paper.pdf (1 page, 12345 bytes).
"""


def python_command(code: str) -> str:
    """Shell command running *code* with the current interpreter."""
    return f"exec {shlex.quote(sys.executable)} -c {shlex.quote(code)}"


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeStepRunner:
    """Stands in for ``run_step``.

    *script* maps a command to ``(exit_code, output)``; unknown commands
    succeed silently.  Calls whose index is in *gates* wait on that event.
    """

    def __init__(
        self,
        script: dict[str, tuple[int, str]] | None = None,
        gates: dict[int, asyncio.Event] | None = None,
    ) -> None:
        self.script = script or {}
        self.gates = gates or {}
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(
        self,
        command: str,
        cwd: str | Path,
        *,
        sinks: Sequence[OutputSink] = (),
        index: int = 0,
        timeout: float | None = None,
    ) -> StepResult:
        call_no = len(self.calls)
        self.calls.append(command)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            gate = self.gates.get(call_no)
            if gate is not None:
                await gate.wait()
            else:
                await asyncio.sleep(0)
            exit_code, output = self.script.get(command, (0, ""))
            for sink in sinks:
                sink.append(output)
            return StepResult(index=index, command=command, exit_code=exit_code, output=output)
        finally:
            self.in_flight -= 1


class RecordingResolver:
    def __init__(self, document: Path | None) -> None:
        self.document = document
        self.calls: list[bool] = []

    def resolve(self, here: bool = False) -> Path | None:
        self.calls.append(here)
        return self.document


class RecordingRefresher:
    def __init__(self) -> None:
        self.refreshed: list[Path] = []

    def refresh(self, document: Path) -> None:
        self.refreshed.append(document)


async def settle(predicate=None, rounds: int = 50) -> None:
    """Yield to the event loop until *predicate* holds (or *rounds* pass)."""
    for _ in range(rounds):
        if predicate is not None and predicate():
            return
        await asyncio.sleep(0)


@pytest.fixture
def sample_log() -> str:
    return SAMPLE_LOG


@pytest.fixture
def success_log() -> str:
    return SUCCESS_LOG


@pytest.fixture
def document(tmp_path: Path) -> Path:
    doc = tmp_path / "paper.tex"
    doc.write_text("\\documentclass{article}\n\\begin{document}\nHello\n\\end{document}\n", encoding="utf-8")
    return doc


@pytest.fixture
def workflow_config() -> WorkflowConfig:
    return WorkflowConfig(
        compile_workflow=["%compiler% %arguments% %document%"],
        compiler="pdflatex",
        compile_argument="-synctex=1",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
