"""DSL type definitions for stepflow workflows.

Enumerations shared by the data model, the compiler and the validators.
"""

from __future__ import annotations

from enum import Enum

__all__ = [
    "FailureStrategy",
    "EdgeKind",
    "IssueSeverity",
    "IssueCategory",
    "NodeKind",
    "SUCCESS",
    "FAILURE",
    "TERMINALS",
    "is_terminal",
]

# Reserved workflow endpoints
SUCCESS = "SUCCESS"
FAILURE = "FAILURE"
TERMINALS = frozenset({SUCCESS, FAILURE})


def is_terminal(name: str) -> bool:
    """Return True if ``name`` is one of the reserved terminals."""
    return name in TERMINALS


class FailureStrategy(str, Enum):
    """What to do when an edge guard fails."""

    STOP = "STOP"
    SKIP = "SKIP"
    ALTERNATIVE = "ALTERNATIVE"
    RETRY = "RETRY"
    CONTINUE = "CONTINUE"


class EdgeKind(str, Enum):
    """Edge classification.

    TERMINAL marks the final transition of a path; its target is a valid
    place for the workflow to stop.
    """

    NORMAL = "normal"
    TERMINAL = "terminal"


class IssueSeverity(str, Enum):
    """Validation issue severity.

    ERROR blocks generation of an execution config, WARNING is executable
    but suspect, INFO is stylistic.
    """

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueCategory(str, Enum):
    """Which family of checks produced an issue."""

    STRUCTURE = "structure"
    CONFIGURATION = "configuration"
    LOGIC = "logic"
    PERFORMANCE = "performance"


class NodeKind(str, Enum):
    """Node kinds in a live diagram."""

    STEP = "step"
    GUARD = "guard"
