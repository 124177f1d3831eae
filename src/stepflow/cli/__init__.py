"""CLI utilities for stepflow.

Context, exit codes and output formatting shared by the commands.
"""

from __future__ import annotations

from stepflow.cli.context import CLIContext, ExitCode
from stepflow.cli.output import OutputFormat

__all__ = [
    "CLIContext",
    "ExitCode",
    "OutputFormat",
]
