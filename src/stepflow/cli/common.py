from __future__ import annotations

import contextlib
from collections.abc import Generator
from pathlib import Path

import click

from stepflow.cli.context import CLIContext, ExitCode
from stepflow.cli.output import format_diagnostics, format_error
from stepflow.config import StepflowConfig
from stepflow.dsl.errors import DslParseError
from stepflow.dsl.serialization.parser import parse_dsl_file
from stepflow.dsl.serialization.schema import DslParseResult
from stepflow.exceptions import ConfigError, StepflowError
from stepflow.logging import bind_context, get_logger

__all__ = ["cli_error_handler", "get_cli_context", "load_dsl", "echo_diagnostics"]


@contextlib.contextmanager
def cli_error_handler() -> Generator[None, None, None]:
    """Context manager for common CLI error handling.

    - KeyboardInterrupt: Exit with code 130
    - DslParseError: Format error with the file path
    - ConfigError: Format error with the offending field
    - StepflowError: Format error with message
    - Generic exceptions: Log and format error

    Example:
        >>> with cli_error_handler():
        >>>     result = load_dsl(path)
    """
    logger = get_logger(__name__)

    try:
        yield
    except KeyboardInterrupt:
        click.echo("\n\nInterrupted by user.", err=True)
        raise SystemExit(ExitCode.INTERRUPTED) from None
    except DslParseError as e:
        details = [f"File: {e.file_path}"] if e.file_path else None
        click.echo(format_error(e.message, details=details), err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except ConfigError as e:
        details = [f"Field: {e.field}"] if e.field else None
        click.echo(format_error(e.message, details=details), err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except StepflowError as e:
        click.echo(format_error(e.message), err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except Exception as e:
        logger.exception("unexpected_command_error")
        click.echo(f"Error: {e!s}", err=True)
        raise SystemExit(ExitCode.FAILURE) from e


def get_cli_context(ctx: click.Context) -> CLIContext:
    """Return the CLIContext stored by the root group.

    Commands invoked without the group (as in some tests) get defaults.
    """
    obj = ctx.find_object(dict) or {}
    cli_ctx = obj.get("cli_ctx")
    if isinstance(cli_ctx, CLIContext):
        return cli_ctx
    return CLIContext(config=StepflowConfig())


def load_dsl(path: Path) -> DslParseResult:
    """Parse a DSL file, logging the outcome.

    Binds ``source`` to the log context so later events of the command
    name the file.

    Raises:
        DslParseError: If the file cannot be read.
    """
    bind_context(source=str(path))
    logger = get_logger(__name__)
    result = parse_dsl_file(path)
    logger.info(
        "dsl_loaded",
        path=str(path),
        steps=len(result.config.steps),
        workflows=len(result.config.workflows),
        diagnostics=len(result.diagnostics),
    )
    return result


def echo_diagnostics(result: DslParseResult, path: Path) -> None:
    """Write parse diagnostics to stderr."""
    for line in format_diagnostics(result.diagnostics, source=str(path)):
        click.echo(line, err=True)
