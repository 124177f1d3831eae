"""Structured logging configuration for stepflow.

Logging is built on structlog:
- Console rendering for interactive use (default)
- JSON lines when STEPFLOW_LOG_FORMAT=json (CI, editor integrations)
- Level taken from STEPFLOW_LOG_LEVEL unless the caller overrides it

The compiler and validators only emit debug-level events; hosts embedding
the library should call configure_logging() (or their own structlog setup)
once at startup.

Usage:
    from stepflow.logging import configure_logging, get_logger

    configure_logging()

    log = get_logger(__name__).bind(source="orders.flow")
    log.debug("dsl_parse_completed", lines=42, diagnostics=0)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from structlog.types import Processor

__all__ = [
    "get_logger",
    "configure_logging",
    "level_for_verbosity",
    "bind_context",
    "clear_context",
]

# Environment variable for log format ("json" or anything else for console)
LOG_FORMAT_ENV_VAR = "STEPFLOW_LOG_FORMAT"

# Environment variable for log level
LOG_LEVEL_ENV_VAR = "STEPFLOW_LOG_LEVEL"

DEFAULT_LOG_LEVEL = "INFO"


def _get_log_level() -> int:
    """Read the log level from the environment.

    Unknown level names fall back to INFO.
    """
    level_name = os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def _is_json_output() -> bool:
    return os.environ.get(LOG_FORMAT_ENV_VAR, "").lower() == "json"


def _shared_processors() -> list[Processor]:
    """Processors applied to both structlog and foreign (stdlib) records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(use_json: bool) -> Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    force_json: bool = False,
    level: int | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once; each call replaces the previous handler
    on the root logger.

    Args:
        force_json: Render JSON regardless of STEPFLOW_LOG_FORMAT.
        level: Explicit log level. If None, reads STEPFLOW_LOG_LEVEL.
    """
    use_json = force_json or _is_json_output()
    log_level = level if level is not None else _get_log_level()

    exc_processor: Processor = (
        structlog.processors.dict_tracebacks
        if use_json
        else structlog.processors.format_exc_info
    )

    structlog.configure(
        processors=[
            *_shared_processors(),
            exc_processor,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(use_json),
            ],
            foreign_pre_chain=_shared_processors(),
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)


def level_for_verbosity(verbosity: int, quiet: bool = False) -> int:
    """Map CLI verbosity flags to a logging level.

    Args:
        verbosity: Number of -v flags (0 = warnings only).
        quiet: If True, only errors are shown regardless of verbosity.

    Returns:
        A logging level constant.

    Example:
        >>> level_for_verbosity(0)
        30
        >>> level_for_verbosity(2)
        10
    """
    if quiet:
        return logging.ERROR
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``.

    Example:
        log = get_logger(__name__)
        log.debug("validation_completed", issues=3, score=85)
    """
    log: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return log


def bind_context(**context: Any) -> None:
    """Bind key/value pairs included in every subsequent log event.

    Example:
        bind_context(source="orders.flow")
        log.info("compiled")  # includes source
    """
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Drop all context bound with bind_context()."""
    structlog.contextvars.clear_contextvars()
