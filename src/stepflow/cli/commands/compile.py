"""``stepflow compile``: DSL text to the interchange form."""

from __future__ import annotations

from pathlib import Path

import click

from stepflow.cli.common import cli_error_handler, echo_diagnostics, load_dsl
from stepflow.cli.context import ExitCode
from stepflow.cli.output import OutputFormat
from stepflow.dsl.serialization.writer import DslWriter


@click.command("compile")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format",
    "output_format",
    type=click.Choice([OutputFormat.JSON.value, OutputFormat.YAML.value]),
    default=OutputFormat.JSON.value,
    show_default=True,
    help="Interchange format to print.",
)
@click.option(
    "--indent",
    type=click.IntRange(0, 8),
    default=2,
    show_default=True,
    help="JSON indentation.",
)
def compile_command(file: Path, output_format: str, indent: int) -> None:
    """Parse FILE and print its configuration.

    Diagnostics go to stderr; the exit code is 1 when there are any, and
    the best-effort configuration is still printed.

    Examples:
        stepflow compile checkout.flow
        stepflow compile checkout.flow --format yaml
    """
    with cli_error_handler():
        result = load_dsl(file)
        writer = DslWriter()
        if output_format == OutputFormat.YAML.value:
            click.echo(writer.to_yaml(result.config), nl=False)
        else:
            click.echo(writer.to_json(result.config, indent=indent))

        if result.diagnostics:
            echo_diagnostics(result, file)
            raise SystemExit(ExitCode.FAILURE)
