"""``stepflow validate``: parse diagnostics plus graph validation."""

from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape

from stepflow.cli.common import cli_error_handler, get_cli_context, load_dsl
from stepflow.cli.console import console
from stepflow.cli.context import ExitCode
from stepflow.cli.output import (
    OutputFormat,
    format_diagnostics,
    format_issue,
    format_json,
    report_to_dict,
)
from stepflow.dsl.serialization.validation import WorkflowConfigValidator
from stepflow.dsl.types import IssueSeverity

_SEVERITY_STYLES = {
    IssueSeverity.ERROR: "bold red",
    IssueSeverity.WARNING: "yellow",
    IssueSeverity.INFO: "cyan",
}


@click.command("validate")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--workflow",
    "workflow_name",
    default=None,
    help="Only check this workflow and the steps it references.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice([OutputFormat.TEXT.value, OutputFormat.JSON.value]),
    default=None,
    help="Report format (default from config: output.format).",
)
@click.pass_context
def validate(
    ctx: click.Context,
    file: Path,
    workflow_name: str | None,
    output_format: str | None,
) -> None:
    """Validate FILE: syntax first, then the workflow graphs.

    The exit code is 1 when there are parse diagnostics or error-level
    issues. Warnings and suggestions do not fail the run.

    Examples:
        stepflow validate checkout.flow
        stepflow validate checkout.flow --workflow checkout --format json
    """
    cli_ctx = get_cli_context(ctx)
    fmt = output_format or cli_ctx.config.output.format

    with cli_error_handler():
        result = load_dsl(file)
        validator = WorkflowConfigValidator(cli_ctx.config.validation.to_thresholds())
        report = validator.validate(result.config, workflow=workflow_name)

        if fmt == OutputFormat.JSON.value:
            click.echo(format_json(report_to_dict(report, result.diagnostics)))
        else:
            for line in format_diagnostics(result.diagnostics, source=str(file)):
                console.print(f"[bold red]syntax[/bold red]: {escape(line)}", soft_wrap=True)
            for issue in report.issues:
                style = _SEVERITY_STYLES[issue.type]
                console.print(
                    f"[{style}]{escape(format_issue(issue))}[/{style}]", soft_wrap=True
                )
                if issue.suggestion and not cli_ctx.quiet:
                    console.print(f"  [dim]{escape(issue.suggestion)}[/dim]", soft_wrap=True)
            console.print(
                f"Score {report.score}/100 ({report.summary()})", soft_wrap=True
            )

        if result.diagnostics or not report.valid:
            raise SystemExit(ExitCode.FAILURE)
