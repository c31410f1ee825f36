"""Execution of a single workflow step.

The command runs through the shell in the document directory.  stderr is
merged into stdout and the combined stream is handed to the caller's sinks
chunk by chunk as it arrives, so a failing step still leaves its partial
output behind for log parsing.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from collections.abc import AsyncIterator, Sequence
from pathlib import Path

from ..models import StepResult
from ..sinks import OutputSink

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 4096


async def stream_output(process: asyncio.subprocess.Process) -> AsyncIterator[str]:
    """Yield decoded output chunks until the process closes its stdout.

    Decoding is incremental so a UTF-8 sequence split across two reads is
    reassembled instead of turning into replacement characters.
    """
    assert process.stdout is not None
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        data = await process.stdout.read(_CHUNK_SIZE)
        if not data:
            break
        text = decoder.decode(data)
        if text:
            yield text
    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail


async def _consume(
    process: asyncio.subprocess.Process,
    sinks: Sequence[OutputSink],
    captured: list[str],
) -> int:
    async for chunk in stream_output(process):
        captured.append(chunk)
        for sink in sinks:
            sink.append(chunk)
    return await process.wait()


async def run_step(
    command: str,
    cwd: str | Path,
    *,
    sinks: Sequence[OutputSink] = (),
    index: int = 0,
    timeout: float | None = None,
) -> StepResult:
    """Run *command* in *cwd* and wait for it to exit.

    Parameters
    ----------
    command : str
        Fully substituted command line, executed through the shell.
    cwd : str | Path
        Working directory (normally the main document's directory).
    sinks : Sequence[OutputSink]
        Every output chunk is appended to each sink as it arrives.
    index : int
        Position of the step in the workflow, copied into the result.
    timeout : float | None
        Seconds before the process is killed; ``None`` waits indefinitely.

    A non-zero exit, a launch error, or a timeout all come back as a failed
    ``StepResult``; nothing is raised.
    """
    logger.info("Running step %d: %s (in %s)", index + 1, command, cwd)
    try:
        process = await asyncio.create_subprocess_shell(
            command,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as exc:
        logger.warning("Step %d could not be started: %s", index + 1, exc)
        return StepResult(index=index, command=command, error=f"Could not start process: {exc}")

    captured: list[str] = []
    try:
        exit_code = await asyncio.wait_for(_consume(process, sinks, captured), timeout)
    except asyncio.TimeoutError:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
        logger.warning("Step %d timed out after %ss", index + 1, timeout)
        return StepResult(
            index=index,
            command=command,
            output="".join(captured),
            error=f"Timed out after {timeout}s",
        )

    logger.info("Step %d finished: returncode=%d", index + 1, exit_code)
    return StepResult(index=index, command=command, exit_code=exit_code, output="".join(captured))
