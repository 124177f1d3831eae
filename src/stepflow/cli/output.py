"""Output formatting utilities for the stepflow CLI."""

from __future__ import annotations

import json
from collections.abc import Iterable
from enum import Enum
from typing import Any

from stepflow.dsl.serialization.schema import (
    ParseDiagnostic,
    ValidationIssue,
    ValidationReport,
)

__all__ = [
    "OutputFormat",
    "format_error",
    "format_success",
    "format_warning",
    "format_json",
    "format_table",
    "format_diagnostics",
    "format_issue",
    "report_to_dict",
]


class OutputFormat(str, Enum):
    """Output formats accepted by CLI commands.

    Values:
        TEXT: Human-readable text (default).
        JSON: Machine-readable JSON.
        YAML: YAML, for the interchange form of a configuration.
    """

    TEXT = "text"
    JSON = "json"
    YAML = "yaml"


def format_error(
    message: str, details: list[str] | None = None, suggestion: str | None = None
) -> str:
    """Format an error message with optional details and suggestion.

    Example:
        >>> print(format_error("Cannot read file", details=["orders.flow"]))
        Error: Cannot read file
          orders.flow
    """
    lines = [f"Error: {message}"]
    for detail in details or ():
        lines.append(f"  {detail}")
    if suggestion:
        lines.append(f"Suggestion: {suggestion}")
    return "\n".join(lines)


def format_success(message: str) -> str:
    return f"Success: {message}"


def format_warning(message: str) -> str:
    return f"Warning: {message}"


def format_json(data: Any) -> str:
    """Format data as indented JSON (non-ASCII kept as is)."""
    return json.dumps(data, indent=2, ensure_ascii=False)


def format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Format data as a simple text table with pipe separators.

    Example:
        >>> print(format_table(["Key", "Source"], [["timeout", "config"]]))
        Key     | Source
        timeout | config
    """
    if not headers:
        return ""

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row[: len(widths)]):
            widths[i] = max(widths[i], len(cell))

    def render(cells: list[str]) -> str:
        parts = [
            cell.ljust(widths[i]) if i < len(widths) else cell
            for i, cell in enumerate(cells)
        ]
        return " | ".join(parts).rstrip()

    return "\n".join([render(headers), *(render(row) for row in rows)])


def format_diagnostics(
    diagnostics: Iterable[ParseDiagnostic], source: str | None = None
) -> list[str]:
    """Render parse diagnostics, prefixed with the source file when given."""
    prefix = f"{source}: " if source else ""
    return [f"{prefix}{d}" for d in diagnostics]


def format_issue(issue: ValidationIssue) -> str:
    """Render one validation issue on a single line.

    Example:
        >>> from stepflow.dsl.types import IssueSeverity
        >>> format_issue(ValidationIssue(IssueSeverity.WARNING, "Dead end", "steps.b"))
        'warning: steps.b: Dead end'
    """
    location = f"{issue.location}: " if issue.location else ""
    return f"{issue.type.value}: {location}{issue.message}"


def report_to_dict(
    report: ValidationReport,
    diagnostics: Iterable[ParseDiagnostic] = (),
) -> dict[str, Any]:
    """JSON-ready form of a parse + validation run."""
    diagnostic_list = [{"line": d.line, "message": d.message} for d in diagnostics]
    return {
        "valid": report.valid and not diagnostic_list,
        "score": report.score,
        "summary": report.summary(),
        "diagnostics": diagnostic_list,
        "issues": [
            {
                "type": issue.type.value,
                "category": issue.category.value,
                "message": issue.message,
                "location": issue.location,
                "suggestion": issue.suggestion,
            }
            for issue in report.issues
        ],
    }
