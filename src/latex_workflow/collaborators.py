"""Interfaces to the collaborators the coordinator calls into.

Document discovery, preview tracking and saving open buffers belong to the
host (an editor, the CLI); the coordinator only sees these protocols.  The
default implementations here are what the CLI uses.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

SaveAll = Callable[[], Awaitable[None]]


class DocumentResolver(Protocol):
    """Finds the main document; ``here`` asks for the focused file's document."""

    def resolve(self, here: bool = False) -> Path | None: ...


class PreviewAnchorTracker(Protocol):
    """Remembers the preview position before a build replaces the PDF."""

    def capture(self) -> None: ...


class PreviewRefresher(Protocol):
    def refresh(self, document: Path) -> None: ...


# ---------------------------------------------------------------------------
# Default implementations
# ---------------------------------------------------------------------------

_BEGIN_DOCUMENT = "\\begin{document}"


def find_main_document(directory: str | Path) -> Path | None:
    """First ``.tex`` file (sorted by name) in *directory* containing ``\\begin{document}``."""
    root = Path(directory)
    for candidate in sorted(root.glob("*.tex")):
        try:
            content = candidate.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.debug("Skipping unreadable %s: %s", candidate, exc)
            continue
        if _BEGIN_DOCUMENT in content:
            return candidate
    return None


class StaticDocumentResolver:
    """Resolves a configured path: a ``.tex`` file, or a directory to search."""

    def __init__(self, path: str | Path | None) -> None:
        self.path = Path(path) if path else None

    def resolve(self, here: bool = False) -> Path | None:
        if self.path is None:
            return None
        if self.path.is_dir():
            found = find_main_document(self.path)
            if found is None:
                logger.warning("No main document found in %s", self.path)
            return found.resolve() if found else None
        if self.path.is_file():
            return self.path.resolve()
        logger.warning("Document not found: %s", self.path)
        return None


class NullAnchorTracker:
    def capture(self) -> None:
        pass


class LoggingPreviewRefresher:
    """Reports the PDF produced next to *document*."""

    def __init__(self) -> None:
        self.refreshed: list[Path] = []

    def refresh(self, document: Path) -> None:
        self.refreshed.append(document)
        logger.info("Preview ready: %s", document.with_suffix(".pdf"))


async def noop_save_all() -> None:
    return None
