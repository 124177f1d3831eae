"""Line classification and context tracking for the DSL parser.

The DSL is line oriented. Which grammar applies to a line depends on the
last section header seen, so the parser carries a *context*: one of a
closed set of frozen dataclasses, each holding only what its section
needs (the step and step-config contexts know the step name, the workflow
context knows the workflow name).

Section headers are recognized by anchored, case-insensitive patterns:

    settings:
    defaults:
    workflow NAME:
    step NAME: TYPE

Blank lines and whole-line ``#`` comments are dropped before
classification (see is_skippable()).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TypeAlias

__all__ = [
    "IDENTIFIER",
    "TYPE_NAME",
    "RootContext",
    "SettingsContext",
    "DefaultsContext",
    "WorkflowContext",
    "StepContext",
    "StepConfigContext",
    "ParseContext",
    "is_skippable",
    "match_step_header",
    "match_workflow_header",
    "classify_line",
]

# Step, workflow and guard names
IDENTIFIER = r"[A-Za-z_]\w*"
# Component types may be dotted (FQCN-style)
TYPE_NAME = r"[A-Za-z_][\w.]*"

_SETTINGS_RE = re.compile(r"^settings:\s*$", re.IGNORECASE)
_DEFAULTS_RE = re.compile(r"^defaults:\s*$", re.IGNORECASE)
_WORKFLOW_RE = re.compile(rf"^workflow\s+({IDENTIFIER})\s*:\s*$", re.IGNORECASE)
_STEP_RE = re.compile(rf"^step\s+({IDENTIFIER})\s*:\s*({TYPE_NAME})\s*$", re.IGNORECASE)


# =============================================================================
# Context Variants
# =============================================================================


@dataclass(frozen=True, slots=True)
class RootContext:
    """Top level, before any section header."""


@dataclass(frozen=True, slots=True)
class SettingsContext:
    """Inside ``settings:``."""


@dataclass(frozen=True, slots=True)
class DefaultsContext:
    """Inside ``defaults:``."""


@dataclass(frozen=True, slots=True)
class WorkflowContext:
    """Inside ``workflow NAME:``."""

    name: str


@dataclass(frozen=True, slots=True)
class StepContext:
    """Inside ``step NAME: TYPE``, before ``config:``."""

    name: str


@dataclass(frozen=True, slots=True)
class StepConfigContext:
    """Inside the ``config:`` block of a step."""

    name: str


ParseContext: TypeAlias = (
    RootContext
    | SettingsContext
    | DefaultsContext
    | WorkflowContext
    | StepContext
    | StepConfigContext
)


# =============================================================================
# Classification
# =============================================================================


def is_skippable(line: str) -> bool:
    """True for blank lines and whole-line comments."""
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


def match_step_header(line: str) -> tuple[str, str] | None:
    """Return ``(name, type)`` if ``line`` is a step header."""
    m = _STEP_RE.match(line.strip())
    if not m:
        return None
    return m.group(1), m.group(2)


def match_workflow_header(line: str) -> str | None:
    """Return the workflow name if ``line`` is a workflow header."""
    m = _WORKFLOW_RE.match(line.strip())
    return m.group(1) if m else None


def classify_line(line: str, context: ParseContext) -> tuple[ParseContext, bool]:
    """Decide which context applies from this line on.

    Args:
        line: A source line (not blank, not a comment).
        context: The context in effect before this line.

    Returns:
        ``(new_context, is_section_header)``. For non-header lines the
        context is returned unchanged.

    Example:
        >>> classify_line("step charge: PaymentStep", RootContext())
        (StepContext(name='charge'), True)
        >>> classify_line("timeout = 5", SettingsContext())
        (SettingsContext(), False)
    """
    stripped = line.strip()
    if _SETTINGS_RE.match(stripped):
        return SettingsContext(), True
    if _DEFAULTS_RE.match(stripped):
        return DefaultsContext(), True

    workflow_name = match_workflow_header(stripped)
    if workflow_name is not None:
        return WorkflowContext(workflow_name), True

    step_header = match_step_header(stripped)
    if step_header is not None:
        return StepContext(step_header[0]), True

    return context, False
