"""stepflow CLI commands."""

from __future__ import annotations

from stepflow.cli.commands.compile import compile_command
from stepflow.cli.commands.fmt import fmt
from stepflow.cli.commands.resolve import resolve
from stepflow.cli.commands.validate import validate

__all__ = ["compile_command", "fmt", "resolve", "validate"]
