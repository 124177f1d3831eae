"""``stepflow fmt``: rewrite DSL text in canonical form."""

from __future__ import annotations

from pathlib import Path

import click

from stepflow.cli.common import cli_error_handler, echo_diagnostics, load_dsl
from stepflow.cli.context import ExitCode
from stepflow.cli.output import format_error, format_success
from stepflow.dsl.serialization.writer import stringify_dsl
from stepflow.logging import get_logger


@click.command("fmt")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--check",
    is_flag=True,
    default=False,
    help="Exit with 1 if FILE is not in canonical form; write nothing.",
)
@click.option(
    "--write",
    is_flag=True,
    default=False,
    help="Rewrite FILE in place instead of printing.",
)
def fmt(file: Path, check: bool, write: bool) -> None:
    """Print FILE in canonical DSL form.

    Files with parse diagnostics are never rewritten: formatting drops the
    lines the parser could not read.

    Examples:
        stepflow fmt checkout.flow
        stepflow fmt checkout.flow --check
        stepflow fmt checkout.flow --write
    """
    logger = get_logger(__name__)

    with cli_error_handler():
        result = load_dsl(file)
        if result.diagnostics:
            echo_diagnostics(result, file)
            click.echo(
                format_error(
                    f"{file} has {len(result.diagnostics)} syntax problem(s)",
                    suggestion="Fix them before formatting",
                ),
                err=True,
            )
            raise SystemExit(ExitCode.FAILURE)

        canonical = stringify_dsl(result.config)
        original = file.read_text(encoding="utf-8")
        changed = canonical != original
        logger.debug("dsl_formatted", path=str(file), changed=changed)

        if check:
            if changed:
                click.echo(f"{file} is not formatted", err=True)
                raise SystemExit(ExitCode.FAILURE)
            click.echo(f"{file} is formatted", err=True)
            return

        if write:
            if changed:
                file.write_text(canonical, encoding="utf-8")
                click.echo(format_success(f"Formatted {file}"), err=True)
            else:
                click.echo(f"{file} is already formatted", err=True)
            return

        click.echo(canonical, nl=False)
