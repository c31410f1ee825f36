"""Configuration loader.

Reads workflow settings from a YAML file with ``${ENV_VAR}`` interpolation.
Values from a ``.env`` file in the working directory are loaded first.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import WorkflowConfig

load_dotenv()

# ---------------------------------------------------------------------------
# YAML loading with ${ENV_VAR} interpolation
# ---------------------------------------------------------------------------

_ENV_RE = re.compile(r"\$\{([^}]+)\}")


def _resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ``${ENV_VAR}`` references in strings."""
    if isinstance(value, str):
        def _replace(m: re.Match) -> str:
            return os.environ.get(m.group(1), "")
        return _ENV_RE.sub(_replace, value)
    if isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env_vars(v) for v in value]
    return value


def load_config(config_path: str | Path) -> WorkflowConfig:
    """Load a ``WorkflowConfig`` from a YAML file.

    Environment variables referenced as ``${VAR_NAME}`` are resolved; unset
    variables become empty strings.  Raises ``FileNotFoundError`` for a
    missing file and ``pydantic.ValidationError`` for invalid values.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    resolved = _resolve_env_vars(raw)
    return WorkflowConfig.model_validate(resolved)
