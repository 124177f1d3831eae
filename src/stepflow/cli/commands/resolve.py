"""``stepflow resolve``: effective configuration of a step or guard."""

from __future__ import annotations

from pathlib import Path

import click

from stepflow.cli.common import cli_error_handler, load_dsl
from stepflow.cli.output import format_json, format_table, format_warning
from stepflow.dsl.serialization.defaults import (
    resolve_guard_config,
    resolve_step_config,
)
from stepflow.dsl.serialization.lexical import format_scalar
from stepflow.dsl.serialization.paths import flatten


@click.command("resolve")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("name")
@click.option(
    "--guard",
    "is_guard",
    is_flag=True,
    default=False,
    help="Resolve NAME as a guard instead of a step.",
)
@click.option(
    "--sources",
    is_flag=True,
    default=False,
    help="Show which layer supplied each key.",
)
def resolve(file: Path, name: str, is_guard: bool, sources: bool) -> None:
    """Print the effective configuration of step NAME in FILE.

    Layers, lowest precedence first: step category defaults, defaults for
    the step type, defaults for the step name, the step's config block,
    and settings that repeat a key.

    Examples:
        stepflow resolve checkout.flow charge
        stepflow resolve checkout.flow charge --sources
        stepflow resolve checkout.flow stock_ok --guard
    """
    with cli_error_handler():
        result = load_dsl(file)
        if result.diagnostics:
            click.echo(
                format_warning(
                    f"{file} has {len(result.diagnostics)} syntax problem(s); "
                    "resolving the lines that parsed"
                ),
                err=True,
            )

        if is_guard:
            resolved = resolve_guard_config(result.config, name)
        else:
            resolved = resolve_step_config(result.config, name)

        if not sources:
            click.echo(format_json(resolved.values))
            return

        rows = [
            [key, format_scalar(value), resolved.sources.get(key, "")]
            for key, value in flatten(resolved.values).items()
        ]
        click.echo(format_table(["Key", "Value", "Source"], rows))
