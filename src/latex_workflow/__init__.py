"""Run LaTeX compile workflows and turn their logs into diagnostics."""

__version__ = "0.1.0"
