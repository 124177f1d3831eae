"""Unit tests for CLI output formatting."""

from __future__ import annotations

from stepflow.cli.output import (
    OutputFormat,
    format_diagnostics,
    format_error,
    format_issue,
    format_json,
    format_success,
    format_table,
    format_warning,
    report_to_dict,
)
from stepflow.dsl.serialization.schema import (
    ParseDiagnostic,
    ValidationIssue,
    ValidationReport,
)
from stepflow.dsl.types import IssueCategory, IssueSeverity


class TestMessages:
    def test_format_error_with_details_and_suggestion(self) -> None:
        text = format_error(
            "Cannot read file", details=["File: a.flow"], suggestion="Check the path"
        )
        assert text == "Error: Cannot read file\n  File: a.flow\nSuggestion: Check the path"

    def test_format_error_plain(self) -> None:
        assert format_error("Boom") == "Error: Boom"

    def test_success_and_warning(self) -> None:
        assert format_success("Formatted a.flow") == "Success: Formatted a.flow"
        assert format_warning("Careful") == "Warning: Careful"

    def test_format_json_keeps_unicode(self) -> None:
        assert format_json({"city": "Zürich"}) == '{\n  "city": "Zürich"\n}'

    def test_output_format_values(self) -> None:
        assert [f.value for f in OutputFormat] == ["text", "json", "yaml"]


class TestTable:
    def test_columns_are_aligned(self) -> None:
        table = format_table(
            ["Key", "Value", "Source"],
            [["timeout", "5", "config"], ["http.timeout", "10", "settings"]],
        )
        assert table.splitlines() == [
            "Key          | Value | Source",
            "timeout      | 5     | config",
            "http.timeout | 10    | settings",
        ]

    def test_empty_headers(self) -> None:
        assert format_table([], [["x"]]) == ""


class TestDiagnosticsAndIssues:
    def test_diagnostics_with_source(self) -> None:
        diagnostics = [ParseDiagnostic(3, "Invalid edge syntax")]
        assert format_diagnostics(diagnostics, source="a.flow") == [
            "a.flow: Line 3: Invalid edge syntax"
        ]
        assert format_diagnostics(diagnostics) == ["Line 3: Invalid edge syntax"]

    def test_issue_with_and_without_location(self) -> None:
        located = ValidationIssue(IssueSeverity.ERROR, "Cycle detected: a -> a", "workflows.w.edges[0]")
        assert format_issue(located) == "error: workflows.w.edges[0]: Cycle detected: a -> a"
        assert format_issue(ValidationIssue(IssueSeverity.INFO, "No workflows defined")) == (
            "info: No workflows defined"
        )

    def test_report_to_dict(self) -> None:
        report = ValidationReport.from_issues(
            [
                ValidationIssue(
                    IssueSeverity.WARNING,
                    "Dead end",
                    "steps.b",
                    IssueCategory.STRUCTURE,
                    "Add an edge",
                )
            ]
        )
        data = report_to_dict(report, [ParseDiagnostic(2, "Unknown syntax")])
        assert data == {
            "valid": False,
            "score": 95,
            "summary": "1 warning, 0 suggestions",
            "diagnostics": [{"line": 2, "message": "Unknown syntax"}],
            "issues": [
                {
                    "type": "warning",
                    "category": "structure",
                    "message": "Dead end",
                    "location": "steps.b",
                    "suggestion": "Add an edge",
                }
            ],
        }
        assert report_to_dict(report)["valid"] is True
