"""Hydra structured config dataclasses.

These mirror the Pydantic ``WorkflowConfig`` for Hydra schema validation.
At runtime the Hydra DictConfig is converted to ``WorkflowConfig`` via
``cli._to_workflow_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from hydra.core.config_store import ConfigStore


@dataclass
class WorkflowConf:
    # --- Dispatch + CLI-only fields ---
    mode: str = "compile"
    verbose: bool = False
    quiet: bool = False
    log_file: str | None = None
    config_file: str | None = None

    # --- WorkflowConfig fields (1:1 mapping) ---
    compile_workflow: list[str] = field(default_factory=lambda: [
        "%compiler% %arguments% %document%",
    ])
    compiler: str = "pdflatex"
    compile_argument: str = "-synctex=1 -interaction=nonstopmode -file-line-error"
    log_level: str = "warning"

    document: str | None = None
    workspace_root: str | None = None
    step_timeout: float | None = None


# Keys present in WorkflowConf that are NOT part of WorkflowConfig.
CLI_ONLY_KEYS = frozenset({"mode", "verbose", "quiet", "log_file", "config_file"})


def register_configs() -> None:
    """Register the structured config schema with Hydra's ConfigStore."""
    cs = ConfigStore.instance()
    cs.store(name="workflow_schema", node=WorkflowConf)
