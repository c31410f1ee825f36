"""CLI entry point using Hydra.

Usage examples:
  latex-workflow document=paper/main.tex
  latex-workflow document=paper/ log_level=all compiler=xelatex
  latex-workflow mode=parse log_file=paper/main.log log_level=error
  latex-workflow mode=commands document=paper/main.tex
  latex-workflow --config-dir . --config-name workflow document=thesis.tex
  latex-workflow config_file=latex-workflow.yaml log_level=all
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

import hydra
from omegaconf import DictConfig, OmegaConf
from pydantic import ValidationError

from ._hydra_conf import CLI_ONLY_KEYS, WorkflowConf, register_configs
from .collaborators import LoggingPreviewRefresher, StaticDocumentResolver
from .config import load_config
from .coordinator import CompilationCoordinator
from .diagnostics import DiagnosticCollection, classify
from .logging_config import RichCallbacks, console, diagnostics_table, setup_logging
from .models import WorkflowConfig
from .sinks import ConsoleSink
from .tools.commands import build_commands
from .tools.log_parser import parse_log_file

register_configs()

# ---------------------------------------------------------------------------
# Hydra DictConfig to Pydantic WorkflowConfig bridge
# ---------------------------------------------------------------------------


def _to_workflow_config(cfg: DictConfig) -> WorkflowConfig:
    """Convert a Hydra *DictConfig* to a Pydantic ``WorkflowConfig``.

    CLI-only keys (``mode``, ``verbose``, etc.) are stripped before validation.
    When ``config_file`` names a YAML workflow file, its values are the base
    and only keys that differ from the schema defaults override them.
    """
    container: dict[str, Any] = OmegaConf.to_container(cfg, resolve=True)  # type: ignore[assignment]
    config_file = container.get("config_file")
    for key in CLI_ONLY_KEYS:
        container.pop(key, None)
    if not config_file:
        return WorkflowConfig.model_validate(container)

    defaults: dict[str, Any] = OmegaConf.to_container(OmegaConf.structured(WorkflowConf))  # type: ignore[assignment]
    overrides = {k: v for k, v in container.items() if v != defaults.get(k)}
    base = load_config(config_file).model_dump(mode="json")
    return WorkflowConfig.model_validate({**base, **overrides})


def _load_or_exit(cfg: DictConfig) -> WorkflowConfig:
    try:
        return _to_workflow_config(cfg)
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/]")
        sys.exit(1)
    except ValidationError as exc:
        console.print(f"[red]Invalid configuration:[/]\n{exc}")
        sys.exit(1)


def _resolve_document_or_exit(config: WorkflowConfig) -> Path:
    if not config.document:
        console.print("[red]document is required (file or directory)[/]")
        sys.exit(1)
    document = StaticDocumentResolver(config.document).resolve()
    if document is None:
        console.print(f"[red]No main document found at {config.document}[/]")
        sys.exit(1)
    return document


# ---------------------------------------------------------------------------
# Mode handlers
# ---------------------------------------------------------------------------


def _compile_mode(cfg: DictConfig) -> None:
    config = _load_or_exit(cfg)
    _resolve_document_or_exit(config)

    refresher = LoggingPreviewRefresher()
    coordinator = CompilationCoordinator(
        config,
        StaticDocumentResolver(config.document),
        latex_output=ConsoleSink(console, title="LaTeX output"),
        workshop_output=ConsoleSink(console, title="Workflow", style="dim"),
        callbacks=RichCallbacks(),
        refresher=refresher,
    )
    result = asyncio.run(coordinator.compile())

    if result is None or result.skipped:
        console.print("[red]Nothing was compiled.[/]")
        sys.exit(1)
    if result.success:
        console.print(f"[bold green]Compiled {result.document}[/]")
        console.print(f"  PDF: {result.document.with_suffix('.pdf')}")
    else:
        failed = result.failed_step
        console.print("[bold red]Compilation failed.[/]")
        if failed is not None:
            console.print(f"  Step {failed.index + 1}: {failed.command}")
            if failed.error:
                console.print(f"  [red]{failed.error}[/]")
        sys.exit(1)


def _parse_mode(cfg: DictConfig) -> None:
    config = _load_or_exit(cfg)
    log_file = cfg.get("log_file")
    if not log_file:
        console.print("[red]log_file is required for parse mode[/]")
        sys.exit(1)

    log_path = Path(log_file).resolve()
    if not log_path.exists():
        console.print(f"[red]Log file not found: {log_path}[/]")
        sys.exit(1)

    entries = parse_log_file(log_path)
    root = Path(config.workspace_root).resolve() if config.workspace_root else log_path.parent
    default_file = Path(config.document) if config.document else log_path.with_suffix(".tex")

    collection = DiagnosticCollection()
    collection.replace(classify(entries, config.log_level, root, default_file=default_file))

    console.print(f"[bold]{len(entries)} log entries, {collection.total} shown at level {config.log_level.value!r}[/]")
    if collection.total:
        console.print(diagnostics_table(collection, root=root))


def _commands_mode(cfg: DictConfig) -> None:
    config = _load_or_exit(cfg)
    document = _resolve_document_or_exit(config)

    console.print(f"[bold]Workflow for {document}[/] (in {document.parent})")
    for i, cmd in enumerate(build_commands(config, document), 1):
        console.print(f"  Step {i}: {cmd}", markup=False)


_MODE_DISPATCH: dict[str, Any] = {
    "compile": _compile_mode,
    "parse": _parse_mode,
    "commands": _commands_mode,
}


# ---------------------------------------------------------------------------
# Hydra entry point
# ---------------------------------------------------------------------------


@hydra.main(config_path="conf", config_name="config", version_base=None)
def hydra_entry(cfg: DictConfig) -> None:
    """Hydra-managed CLI entry point."""
    setup_logging(verbose=cfg.get("verbose", False), quiet=cfg.get("quiet", False))

    mode = cfg.get("mode", "compile")
    handler = _MODE_DISPATCH.get(mode)
    if handler is None:
        console.print(f"[red]Unknown mode: {mode!r}. Choose from: {', '.join(_MODE_DISPATCH)}[/]")
        sys.exit(1)

    handler(cfg)


def main() -> None:
    """Package entry point (``[project.scripts]`` target)."""
    hydra_entry()  # pylint: disable=no-value-for-parameter
