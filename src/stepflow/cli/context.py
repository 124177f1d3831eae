"""CLI context and exit codes for stepflow."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

from stepflow.config import StepflowConfig

__all__ = [
    "ExitCode",
    "CLIContext",
]


class ExitCode(IntEnum):
    """Exit codes of the stepflow CLI.

    - 0 for success
    - 1 for failure (diagnostics, validation errors, unreadable input)
    - 130 for keyboard interrupt (128 + SIGINT=2)
    """

    SUCCESS = 0
    FAILURE = 1
    INTERRUPTED = 130


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global options and configuration shared by all commands.

    Attributes:
        config: Loaded stepflow configuration.
        config_path: Path to config file (if specified via --config).
        verbosity: Verbosity level (0=default, 1=INFO, 2+=DEBUG).
        quiet: Suppress non-essential output.
    """

    config: StepflowConfig
    config_path: Path | None = None
    verbosity: int = 0
    quiet: bool = False
