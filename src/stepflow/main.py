"""CLI entry point for stepflow.

This module defines the Click-based command-line interface.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from dotenv import load_dotenv

from stepflow.logging import clear_context, configure_logging, level_for_verbosity

# Environment variables from ./.env must be in place before settings load
load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

from stepflow import __version__  # noqa: E402
from stepflow.cli.commands import compile_command, fmt, resolve, validate  # noqa: E402
from stepflow.cli.context import CLIContext  # noqa: E402
from stepflow.config import load_config  # noqa: E402
from stepflow.exceptions import ConfigError  # noqa: E402

_VERBOSITY_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="stepflow")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=False, path_type=str),
    default=None,
    help="Path to config file (overrides ./stepflow.yaml).",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for INFO, -vv for DEBUG).",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress non-essential output (ERROR level only).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: str | None,
    verbose: int,
    quiet: bool,
) -> None:
    """stepflow - compile, format and validate step/guard workflow DSL files."""
    clear_context()
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    config_path = Path(config_file) if config_file else None
    try:
        config = load_config(config_path)
    except ConfigError as e:
        # Logging is not configured yet
        error_parts = [f"Error: {e.message}"]
        if e.field:
            error_parts.append(f"  Field: {e.field}")
        if e.value is not None:
            error_parts.append(f"  Value: {e.value}")
        click.echo("\n".join(error_parts), err=True)
        ctx.exit(1)

    ctx.obj["config"] = config
    ctx.obj["cli_ctx"] = CLIContext(
        config=config,
        config_path=config_path,
        verbosity=verbose,
        quiet=quiet,
    )

    # Priority: quiet > verbose > config
    if quiet or verbose > 0:
        level = level_for_verbosity(verbose, quiet=quiet)
    else:
        level = _VERBOSITY_LEVELS.get(config.verbosity, logging.WARNING)
    configure_logging(level=level)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(compile_command)
cli.add_command(fmt)
cli.add_command(validate)
cli.add_command(resolve)

if __name__ == "__main__":
    cli()
