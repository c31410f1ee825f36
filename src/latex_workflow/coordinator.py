"""Compilation coordinator.

Serialises runs of the compile workflow.  A ``compile()`` call while a run is
in flight never starts a second run: it marks one follow-up as pending (or is
dropped if it arrives within the debounce interval of the last recorded
request), and the active call loops once more when its run finishes.

Each run saves open buffers, resolves the main document, executes the
workflow steps one after another while streaming their output into the
sinks, then parses everything captured so far and replaces the published
diagnostics.  A failing step stops the remaining steps but the log is still
parsed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .collaborators import (
    DocumentResolver,
    LoggingPreviewRefresher,
    NullAnchorTracker,
    PreviewAnchorTracker,
    PreviewRefresher,
    SaveAll,
    noop_save_all,
)
from .diagnostics import DiagnosticCollection, classify
from .logging_config import FAILURE_STATUS_TIMEOUT, STATUS_TIMEOUT, CompileCallbacks, NullCallbacks
from .models import RunResult, StepResult, WorkflowConfig
from .sinks import BufferSink, OutputSink
from .tools.commands import build_commands
from .tools.log_parser import LatexLogParser, LogParser
from .tools.runner import run_step

logger = logging.getLogger(__name__)

# Re-triggers closer together than this (seconds) are dropped.
DEBOUNCE_INTERVAL = 0.5


class StepRunner(Protocol):
    def __call__(
        self,
        command: str,
        cwd: str | Path,
        *,
        sinks: Sequence[OutputSink] = (),
        index: int = 0,
        timeout: float | None = None,
    ) -> Awaitable[StepResult]: ...


@dataclass
class CoordinatorState:
    """Mutable coordination flags shared by every ``compile()`` call."""
    running: bool = False
    pending: bool = False
    last_request_time: float | None = None


class CompilationCoordinator:
    """Runs the compile workflow, one run at a time."""

    def __init__(
        self,
        config: WorkflowConfig,
        resolver: DocumentResolver,
        state: CoordinatorState | None = None,
        *,
        parser: LogParser | None = None,
        diagnostics: DiagnosticCollection | None = None,
        latex_output: OutputSink | None = None,
        workshop_output: OutputSink | None = None,
        callbacks: CompileCallbacks | None = None,
        anchor_tracker: PreviewAnchorTracker | None = None,
        refresher: PreviewRefresher | None = None,
        save_all: SaveAll = noop_save_all,
        step_runner: StepRunner = run_step,
        clock: Callable[[], float] = time.monotonic,
        debounce: float = DEBOUNCE_INTERVAL,
    ) -> None:
        self.config = config
        self.resolver = resolver
        self.state = state if state is not None else CoordinatorState()
        self.parser = parser or LatexLogParser()
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollection()
        self.latex_output = latex_output if latex_output is not None else BufferSink()
        self.workshop_output = workshop_output if workshop_output is not None else BufferSink()
        self.callbacks = callbacks or NullCallbacks()
        self.anchor_tracker = anchor_tracker or NullAnchorTracker()
        self.refresher = refresher or LoggingPreviewRefresher()
        self.save_all = save_all
        self.step_runner = step_runner
        self.clock = clock
        self.debounce = debounce

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def compile(self, here: bool = False) -> RunResult | None:
        """Run the workflow, or schedule a follow-up if a run is in flight.

        Returns the result of the last run this call executed, or ``None``
        when the request was coalesced or dropped.
        """
        # Must stay free of awaits: this check-and-set is the only lock.
        if not self._acquire():
            return None

        result: RunResult | None = None
        try:
            while True:
                result = await self._run_once(here)
                if not self.state.pending:
                    break
                self.state.pending = False
                here = False
                logger.debug("Starting coalesced follow-up run")
        finally:
            self.state.running = False
        return result

    def _acquire(self) -> bool:
        state = self.state
        if not state.running:
            state.running = True
            state.pending = False
            return True

        now = self.clock()
        if state.last_request_time is None or now - state.last_request_time > self.debounce:
            state.pending = True
            state.last_request_time = now
            logger.debug("Compile in progress; follow-up run scheduled")
        else:
            logger.debug("Compile request dropped (within %.0f ms of the last one)", self.debounce * 1000)
        return False

    # ------------------------------------------------------------------
    # One run
    # ------------------------------------------------------------------

    async def _run_once(self, here: bool) -> RunResult:
        try:
            await self.save_all()
            document = self.resolver.resolve(here)
            self.anchor_tracker.capture()
        except Exception as exc:
            logger.warning("Could not prepare compile run: %s", exc)
            return RunResult(skipped=f"preparation failed: {exc}")
        if document is None:
            logger.debug("No main document; nothing to compile")
            return RunResult(skipped="no main document")

        config = self.config.model_copy(deep=True)
        self.latex_output.clear()
        self.workshop_output.clear()

        cwd = document.parent
        accumulator = BufferSink()
        result = RunResult(document=document)

        for index, command in enumerate(build_commands(config, document)):
            self.callbacks.on_status(f"Step {index + 1}", STATUS_TIMEOUT)
            self.workshop_output.append(f"Step {index + 1}: {command}\n")

            step = await self.step_runner(
                command,
                cwd,
                sinks=(self.latex_output, accumulator),
                index=index,
                timeout=config.step_timeout,
            )
            result.steps.append(step)
            if not step.success:
                reason = f"exit code: {step.exit_code}" if step.exit_code is not None else step.error
                self.callbacks.on_status(f"Step {index + 1} failed ({reason}).", FAILURE_STATUS_TIMEOUT, error=True)
                break

        result.entries = self.parser.parse(accumulator.text)
        root = Path(config.workspace_root) if config.workspace_root else cwd
        batch = classify(result.entries, config.log_level, root, default_file=document)
        self.diagnostics.replace(batch)
        result.diagnostic_count = self.diagnostics.total
        self.callbacks.on_diagnostics(self.diagnostics)

        if result.success:
            self.callbacks.on_status("LaTeX compiled.", STATUS_TIMEOUT)
            self.refresher.refresh(document)
        else:
            logger.info("Compile of %s stopped at step %d", document.name, len(result.steps))
        return result
