"""Append-only text sinks for process output and step announcements."""

from __future__ import annotations

from typing import Protocol

from rich.console import Console


class OutputSink(Protocol):
    """Append-only text destination that can be reset between runs."""

    def append(self, text: str) -> None: ...
    def clear(self) -> None: ...


class BufferSink:
    """Keeps everything appended since the last ``clear()`` in memory."""

    def __init__(self) -> None:
        self._chunks: list[str] = []

    def append(self, text: str) -> None:
        self._chunks.append(text)

    def clear(self) -> None:
        self._chunks.clear()

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    def __len__(self) -> int:
        return sum(len(c) for c in self._chunks)


class ConsoleSink:
    """Echoes appended text to a Rich console without markup processing."""

    def __init__(self, console: Console, *, title: str = "", style: str | None = None) -> None:
        self.console = console
        self.title = title
        self.style = style

    def append(self, text: str) -> None:
        self.console.print(text, end="", markup=False, highlight=False, style=self.style)

    def clear(self) -> None:
        if self.title:
            self.console.rule(f"[dim]{self.title}[/]")
