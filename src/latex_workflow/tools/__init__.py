"""Command construction, process execution, and log parsing."""

from .commands import build_command, build_commands, replace_all
from .log_parser import LatexLogParser, LogParser, parse_log_file
from .runner import run_step, stream_output

__all__ = [
    "LatexLogParser",
    "LogParser",
    "build_command",
    "build_commands",
    "parse_log_file",
    "replace_all",
    "run_step",
    "stream_output",
]
