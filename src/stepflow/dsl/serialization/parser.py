"""DSL text parser.

This module turns stepflow DSL text into a StepFlowConfig:
- parse_dsl: Parse a string, collecting line-numbered diagnostics
- parse_dsl_file: Read a UTF-8 file and parse it
- synthesize_referenced_steps: Structural repair after the line pass

Parsing is tolerant. A line that does not fit its section's grammar is
reported as a ParseDiagnostic and skipped; everything else on the page is
still compiled, so an editor can show a live result while the user types.
The only exception raised here is DslParseError, from parse_dsl_file(),
when the file cannot be read at all.
"""

from __future__ import annotations

from pathlib import Path

from stepflow.dsl.errors import DslParseError
from stepflow.dsl.serialization.context import (
    DefaultsContext,
    ParseContext,
    RootContext,
    SettingsContext,
    StepConfigContext,
    StepContext,
    WorkflowContext,
    classify_line,
    is_skippable,
    match_step_header,
)
from stepflow.dsl.serialization.grammar import (
    ConfigDirective,
    LineSyntaxError,
    RequiresDirective,
    RetryDirective,
    RootDirective,
    apply_defaults_assignment,
    parse_assignment,
    parse_config_line,
    parse_step_directive,
    parse_workflow_line,
)
from stepflow.dsl.serialization.paths import set_path
from stepflow.dsl.serialization.schema import (
    DslParseResult,
    ParseDiagnostic,
    StepDef,
    StepFlowConfig,
    WorkflowDef,
)
from stepflow.dsl.types import is_terminal
from stepflow.logging import get_logger

__all__ = [
    "parse_dsl",
    "parse_dsl_file",
    "synthesize_referenced_steps",
]

logger = get_logger(__name__)


# =============================================================================
# Line Pass
# =============================================================================


def _handle_header(line: str, context: ParseContext, config: StepFlowConfig) -> None:
    """Apply the side effects of a section header."""
    if isinstance(context, WorkflowContext):
        config.workflows.setdefault(context.name, WorkflowDef())
    elif isinstance(context, StepContext):
        header = match_step_header(line)
        if header is None:
            return
        name, step_type = header
        existing = config.steps.get(name)
        if existing is None:
            config.steps[name] = StepDef(type=step_type)
        else:
            existing.type = step_type


def _handle_body(
    line: str,
    context: ParseContext,
    config: StepFlowConfig,
) -> ParseContext:
    """Apply one body line to ``config``.

    Returns:
        The context for the next line (``config:`` switches a step into
        its config block).

    Raises:
        LineSyntaxError: If the line does not fit the section grammar.
    """
    if isinstance(context, SettingsContext):
        key, value = parse_assignment(line, "settings")
        set_path(config.settings, key, value)

    elif isinstance(context, DefaultsContext):
        key, value = parse_assignment(line, "defaults")
        apply_defaults_assignment(config.defaults, key, value)

    elif isinstance(context, WorkflowContext):
        workflow = config.workflows[context.name]
        parsed = parse_workflow_line(line)
        if isinstance(parsed, RootDirective):
            workflow.root = parsed.name
        else:
            workflow.edges.append(parsed)

    elif isinstance(context, StepContext):
        step = config.steps[context.name]
        directive = parse_step_directive(line)
        if isinstance(directive, RequiresDirective):
            step.guards = directive.guards
        elif isinstance(directive, RetryDirective):
            step.retry = directive.policy
        elif isinstance(directive, ConfigDirective):
            if step.config is None:
                step.config = {}
            return StepConfigContext(context.name)

    elif isinstance(context, StepConfigContext):
        step = config.steps[context.name]
        key, value = parse_config_line(line)
        if step.config is None:
            step.config = {}
        set_path(step.config, key, value)

    else:
        raise LineSyntaxError("Unknown syntax")

    return context


# =============================================================================
# Structural Repair
# =============================================================================


def synthesize_referenced_steps(config: StepFlowConfig) -> list[str]:
    """Declare every step a workflow mentions but no ``step`` line defines.

    Roots, edge endpoints and alternative targets are collected in
    discovery order; reserved terminals are skipped. A synthesized step
    uses its own name as its type.

    Returns:
        Names of the synthesized steps, in the order they were added.
    """
    added: list[str] = []

    def ensure(name: str | None) -> None:
        if not name or is_terminal(name) or name in config.steps:
            return
        config.steps[name] = StepDef(type=name)
        added.append(name)

    for workflow in config.workflows.values():
        ensure(workflow.root)
        for edge in workflow.edges:
            ensure(edge.from_)
            ensure(edge.to)
            if edge.on_failure is not None:
                ensure(edge.on_failure.alternative_target)
    return added


# =============================================================================
# Entry Points
# =============================================================================


def parse_dsl(text: str) -> DslParseResult:
    """Parse DSL text into a configuration.

    Never raises on malformed input: each offending line yields one
    diagnostic and parsing resumes on the next line.

    Args:
        text: DSL source. ``\\r\\n`` and ``\\r`` line endings are accepted.

    Returns:
        DslParseResult with the best-effort configuration and diagnostics.

    Examples:
        >>> result = parse_dsl("workflow main:\\n  root: fetch\\n  fetch -> SUCCESS\\n")
        >>> result.valid
        True
        >>> result.config.steps["fetch"].type
        'fetch'
    """
    config = StepFlowConfig()
    diagnostics: list[ParseDiagnostic] = []
    context: ParseContext = RootContext()

    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    for number, line in enumerate(lines, start=1):
        if is_skippable(line):
            continue

        context, is_header = classify_line(line, context)
        if is_header:
            _handle_header(line, context, config)
            continue

        try:
            context = _handle_body(line, context, config)
        except LineSyntaxError as e:
            diagnostics.append(ParseDiagnostic(line=number, message=e.message))

    synthesized = synthesize_referenced_steps(config)

    logger.debug(
        "dsl_parse_completed",
        lines=len(lines),
        diagnostics=len(diagnostics),
        steps=len(config.steps),
        workflows=len(config.workflows),
        synthesized=len(synthesized),
    )
    return DslParseResult(config=config, diagnostics=tuple(diagnostics))


def parse_dsl_file(path: str | Path) -> DslParseResult:
    """Read a UTF-8 DSL file and parse it.

    Raises:
        DslParseError: If the file cannot be read or is not valid UTF-8.
    """
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise DslParseError(
            f"File is not valid UTF-8: {e.reason}",
            file_path=str(file_path),
        ) from e
    except OSError as e:
        raise DslParseError(
            f"Cannot read file: {e.strerror or e}",
            file_path=str(file_path),
        ) from e

    logger.debug("dsl_file_read", path=str(file_path), size=len(text))
    return parse_dsl(text)
