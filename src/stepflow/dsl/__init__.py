"""Stepflow DSL: compiler, data model and workflow validators.

Example:
    >>> from stepflow.dsl import parse_dsl, stringify_dsl, validate_configuration
    >>>
    >>> result = parse_dsl(text)
    >>> for diagnostic in result.messages:
    ...     print(diagnostic)
    >>> report = validate_configuration(result.config)
    >>> print(report.summary())
    >>> canonical = stringify_dsl(result.config)
"""

from __future__ import annotations

# Types
from stepflow.dsl.types import (
    FAILURE,
    SUCCESS,
    EdgeKind,
    FailureStrategy,
    IssueCategory,
    IssueSeverity,
    NodeKind,
)

# Defaults
from stepflow.dsl.config import DEFAULTS, ValidationThresholds

# Errors
from stepflow.dsl.errors import (
    DSLError,
    DslParseError,
    DslSerializationError,
    WorkflowDefinitionError,
)

# Compiler
from stepflow.dsl.serialization import (
    DslParseResult,
    DslWriter,
    StepFlowConfig,
    ValidationIssue,
    ValidationReport,
    WorkflowConfigValidator,
    parse_dsl,
    parse_dsl_file,
    resolve_step_config,
    stringify_dsl,
    validate_configuration,
)

# Diagrams
from stepflow.dsl.diagram import (
    DiagramGraph,
    DiagramGraphBuilder,
    DiagramValidator,
    validate_diagram,
)

__all__ = [
    # Types
    "SUCCESS",
    "FAILURE",
    "EdgeKind",
    "FailureStrategy",
    "IssueCategory",
    "IssueSeverity",
    "NodeKind",
    # Defaults
    "DEFAULTS",
    "ValidationThresholds",
    # Errors
    "DSLError",
    "WorkflowDefinitionError",
    "DslParseError",
    "DslSerializationError",
    # Compiler
    "StepFlowConfig",
    "DslParseResult",
    "DslWriter",
    "parse_dsl",
    "parse_dsl_file",
    "stringify_dsl",
    "resolve_step_config",
    # Validation
    "ValidationIssue",
    "ValidationReport",
    "WorkflowConfigValidator",
    "validate_configuration",
    "DiagramGraph",
    "DiagramGraphBuilder",
    "DiagramValidator",
    "validate_diagram",
]
