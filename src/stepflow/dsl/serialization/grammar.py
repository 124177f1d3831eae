"""Per-section grammars of the stepflow DSL.

Each context has its own small grammar. The functions here turn one source
line into a value (a key/value pair, a step directive, an edge) and raise
LineSyntaxError when the line does not fit; the parser turns that into a
line-numbered diagnostic and moves on.

The edge grammar

    FROM -> TO [? GUARD] [(fail | on failure) ACTION] [[terminal]]

is a chain of sub-matchers applied left to right. Each takes the unread
remainder of the line and returns what it recognized plus the new remainder,
so every piece can be exercised on its own:

    match_base_edge -> match_guard -> match_failure_clause -> match_kind_marker
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from stepflow.dsl.serialization.context import IDENTIFIER
from stepflow.dsl.serialization.lexical import (
    DURATION_PATTERN,
    parse_duration,
    parse_scalar,
)
from stepflow.dsl.serialization.paths import set_path
from stepflow.dsl.serialization.schema import EdgeDef, FailurePolicy, RetryPolicy
from stepflow.dsl.types import EdgeKind, FailureStrategy

__all__ = [
    "KEY_PATTERN",
    "LineSyntaxError",
    "RequiresDirective",
    "RetryDirective",
    "ConfigDirective",
    "StepDirective",
    "RootDirective",
    "parse_assignment",
    "apply_defaults_assignment",
    "parse_config_line",
    "parse_step_directive",
    "parse_workflow_line",
    "match_base_edge",
    "match_guard",
    "match_failure_clause",
    "match_kind_marker",
    "parse_edge",
]

# Dotted keys; segments after the first may start with a digit
KEY_PATTERN = r"[A-Za-z_]\w*(?:\.\w+)*"

RETRY_ATTEMPTS_MESSAGE = "Retry attempts must be at least 1"

_IDENTIFIER_RE = re.compile(rf"^{IDENTIFIER}$")
_ASSIGNMENT_RE = re.compile(rf"^\s*({KEY_PATTERN})\s*=\s*(.+?)\s*$")

_REQUIRES_RE = re.compile(r"^requires\s*:\s*(.*?)\s*$", re.IGNORECASE)
_STEP_RETRY_RE = re.compile(
    rf"^retry\s*:\s*(\d+)x(?:\s*/\s*({DURATION_PATTERN}))?"
    rf"(?:\s*\?\s*({IDENTIFIER}))?\s*$",
    re.IGNORECASE,
)
_CONFIG_RE = re.compile(r"^config\s*:\s*$", re.IGNORECASE)
_ROOT_RE = re.compile(rf"^root\s*:\s*({IDENTIFIER})\s*$", re.IGNORECASE)

_BASE_EDGE_RE = re.compile(rf"^\s*({IDENTIFIER})\s*->\s*({IDENTIFIER})")
_GUARD_RE = re.compile(rf"^\s*\?\s*({IDENTIFIER})")
_FAIL_KEYWORD_RE = re.compile(r"^\s*(?:fail|on\s+failure)\b", re.IGNORECASE)
_ALTERNATIVE_RE = re.compile(rf"^\s*->\s*({IDENTIFIER})")
_EDGE_RETRY_RE = re.compile(
    rf"^\s+retry\s+(\d+)x(?:\s*/\s*({DURATION_PATTERN}))?(?![\w])",
    re.IGNORECASE,
)
_STRATEGY_KEYWORD_RE = re.compile(r"^\s+(skip|stop|continue)\b", re.IGNORECASE)
_KIND_MARKER_RE = re.compile(r"^\s*\[\s*terminal\s*\]", re.IGNORECASE)

_DEFAULT_CATEGORIES = ("step", "guard")


class LineSyntaxError(ValueError):
    """A single line does not fit the grammar of its section."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# =============================================================================
# Key/Value Sections (settings, defaults, step config)
# =============================================================================


def parse_assignment(line: str, section: str) -> tuple[str, Any]:
    """Parse ``key(.key)* = value``.

    Raises:
        LineSyntaxError: "Expected key = value in <section>".
    """
    m = _ASSIGNMENT_RE.match(line)
    if not m:
        raise LineSyntaxError(f"Expected key = value in {section}")
    return m.group(1), parse_scalar(m.group(2))


def apply_defaults_assignment(defaults: dict[str, Any], key: str, value: Any) -> None:
    """Store a ``defaults:`` entry.

    ``step.*`` and ``guard.*`` go into their category map. Any other first
    segment names a bucket (a step type, step name or guard name); a bare
    ``name = value`` makes the bucket hold the scalar itself.
    """
    first, _, rest = key.partition(".")
    if first in _DEFAULT_CATEGORIES:
        if not rest:
            raise LineSyntaxError(f"Expected a key below '{first}' in defaults")
        bucket = defaults.get(first)
        if not isinstance(bucket, dict):
            bucket = defaults[first] = {}
        set_path(bucket, rest, value)
        return

    if not rest:
        defaults[first] = value
        return
    bucket = defaults.get(first)
    if not isinstance(bucket, dict):
        bucket = defaults[first] = {}
    set_path(bucket, rest, value)


def parse_config_line(line: str) -> tuple[str, Any]:
    """Parse one line of a step ``config:`` block."""
    if line.rstrip().endswith(":"):
        raise LineSyntaxError("Nested blocks not supported in config")
    return parse_assignment(line, "config")


# =============================================================================
# Step Body
# =============================================================================


@dataclass(frozen=True, slots=True)
class RequiresDirective:
    """``requires: a, b`` (None when the list is empty)."""

    guards: list[str] | None


@dataclass(frozen=True, slots=True)
class RetryDirective:
    """``retry: Nx / DURATION ? GUARD``."""

    policy: RetryPolicy


@dataclass(frozen=True, slots=True)
class ConfigDirective:
    """``config:``, opening the step's config block."""


StepDirective = RequiresDirective | RetryDirective | ConfigDirective


def _require_attempts(raw: str) -> int:
    attempts = int(raw)
    if attempts < 1:
        raise LineSyntaxError(RETRY_ATTEMPTS_MESSAGE)
    return attempts


def parse_step_directive(line: str) -> StepDirective:
    """Parse one line of a step body.

    Raises:
        LineSyntaxError: For anything that is not requires/retry/config.
    """
    stripped = line.strip()

    m = _REQUIRES_RE.match(stripped)
    if m:
        guards = [g.strip() for g in m.group(1).split(",") if g.strip()]
        for guard in guards:
            if not _IDENTIFIER_RE.match(guard):
                raise LineSyntaxError(f"Invalid guard name '{guard}'")
        return RequiresDirective(guards or None)

    m = _STEP_RETRY_RE.match(stripped)
    if m:
        attempts_raw, duration, guard = m.groups()
        policy = RetryPolicy(
            max_attempts=_require_attempts(attempts_raw),
            delay=parse_duration(duration) or 0,
            guard=guard,
        )
        return RetryDirective(policy)

    if _CONFIG_RE.match(stripped):
        return ConfigDirective()

    raise LineSyntaxError("Unknown step directive")


# =============================================================================
# Workflow Body
# =============================================================================


@dataclass(frozen=True, slots=True)
class RootDirective:
    """``root: NAME``."""

    name: str


def match_base_edge(text: str) -> tuple[tuple[str, str], str] | None:
    """Match ``FROM -> TO`` at the start of ``text``.

    Returns:
        ``((from, to), remainder)`` or None.
    """
    m = _BASE_EDGE_RE.match(text)
    if not m:
        return None
    return (m.group(1), m.group(2)), text[m.end():]


def match_guard(text: str) -> tuple[str | None, str]:
    """Match an optional ``? GUARD``."""
    m = _GUARD_RE.match(text)
    if not m:
        return None, text
    return m.group(1), text[m.end():]


def match_failure_clause(text: str) -> tuple[FailurePolicy | None, str]:
    """Match an optional failure clause.

    ``-> ALT`` is tried first, then ``retry Nx [/ DURATION]``, then
    ``skip``/``stop``/``continue``. When the keyword is present but no
    action follows, nothing is consumed and the caller's end-of-line check
    rejects the line.

    Raises:
        LineSyntaxError: For a retry count of zero.
    """
    keyword = _FAIL_KEYWORD_RE.match(text)
    if not keyword:
        return None, text
    after = text[keyword.end():]

    m = _ALTERNATIVE_RE.match(after)
    if m:
        policy = FailurePolicy(
            strategy=FailureStrategy.ALTERNATIVE,
            alternative_target=m.group(1),
        )
        return policy, after[m.end():]

    m = _EDGE_RETRY_RE.match(after)
    if m:
        policy = FailurePolicy(
            strategy=FailureStrategy.RETRY,
            retry_attempts=_require_attempts(m.group(1)),
            retry_delay=parse_duration(m.group(2)) or 0,
        )
        return policy, after[m.end():]

    m = _STRATEGY_KEYWORD_RE.match(after)
    if m:
        return FailurePolicy(strategy=FailureStrategy(m.group(1).upper())), after[m.end():]

    return None, text


def match_kind_marker(text: str) -> tuple[EdgeKind | None, str]:
    """Match an optional trailing ``[terminal]``."""
    m = _KIND_MARKER_RE.match(text)
    if not m:
        return None, text
    return EdgeKind.TERMINAL, text[m.end():]


def parse_edge(line: str) -> EdgeDef:
    """Parse a full edge line.

    Example:
        >>> edge = parse_edge("A -> B ? ok fail skip")
        >>> (edge.from_, edge.to, edge.guard, edge.on_failure.strategy.value)
        ('A', 'B', 'ok', 'SKIP')

    Raises:
        LineSyntaxError: "Invalid edge syntax", or the retry-count message.
    """
    base = match_base_edge(line)
    if base is None:
        raise LineSyntaxError("Invalid edge syntax")
    (source, target), rest = base

    guard, rest = match_guard(rest)
    on_failure, rest = match_failure_clause(rest)
    kind, rest = match_kind_marker(rest)
    if rest.strip():
        raise LineSyntaxError("Invalid edge syntax")

    return EdgeDef(
        from_=source,
        to=target,
        guard=guard,
        kind=kind,
        on_failure=on_failure,
    )


def parse_workflow_line(line: str) -> RootDirective | EdgeDef:
    """Parse one line of a workflow body (``root:`` or an edge)."""
    stripped = line.strip()
    m = _ROOT_RE.match(stripped)
    if m:
        return RootDirective(m.group(1))
    return parse_edge(stripped)
