"""Placeholder substitution for workflow command templates."""

from __future__ import annotations

from pathlib import Path

from ..models import WorkflowConfig

COMPILER_PLACEHOLDER = "%compiler%"
ARGUMENTS_PLACEHOLDER = "%arguments%"
DOCUMENT_PLACEHOLDER = "%document%"


def replace_all(text: str, placeholder: str, value: str) -> str:
    """Replace every occurrence of *placeholder* in a single pass."""
    return value.join(text.split(placeholder))


def document_token(document: str | Path) -> str:
    """Quoted base name of *document* with a ``.tex`` suffix removed."""
    name = Path(document).name
    if name.endswith(".tex"):
        name = name[: -len(".tex")]
    return f'"{name}"'


def build_command(template: str, compiler: str, arguments: str, document: str | Path) -> str:
    """Resolve one workflow step template into a command line.

    ``%compiler%``, ``%arguments%`` and ``%document%`` are substituted in that
    order; each may appear any number of times.
    """
    cmd = replace_all(template, COMPILER_PLACEHOLDER, compiler)
    cmd = replace_all(cmd, ARGUMENTS_PLACEHOLDER, arguments)
    cmd = replace_all(cmd, DOCUMENT_PLACEHOLDER, document_token(document))
    return cmd


def build_commands(config: WorkflowConfig, document: str | Path) -> list[str]:
    return [
        build_command(template, config.compiler, config.compile_argument, document)
        for template in config.compile_workflow
    ]
