"""DSL compilation for stepflow configurations.

The serialization system includes:
- lexical.py: Scalar and duration literals
- paths.py: Dotted-path helpers shared by parser and writer
- context.py: Line classification and parse contexts
- grammar.py: Per-section grammars, including the edge sub-matchers
- schema.py: Pydantic models of the configuration data model
- parser.py: DSL text into StepFlowConfig, with line diagnostics
- writer.py: StepFlowConfig back to canonical DSL text, dict, JSON, YAML
- defaults.py: Effective step and guard configuration from override layers
- validation.py: Graph validation of compiled configurations

Example DSL file:
    settings:
      region = eu-west-1

    defaults:
      step.timeout = 30

    workflow checkout:
      root: validate
      validate -> charge ? stock_ok fail -> backorder
      charge -> SUCCESS fail retry 3x / 2s

    step charge: PaymentStep
      retry: 2x / 500ms ? transient
      config:
        provider = stripe
"""

from __future__ import annotations

from stepflow.dsl.errors import DslParseError, DslSerializationError
from stepflow.dsl.serialization.schema import (
    DslParseResult,
    EdgeDef,
    FailurePolicy,
    ParseDiagnostic,
    RetryPolicy,
    StepDef,
    StepFlowConfig,
    ValidationIssue,
    ValidationReport,
    WorkflowDef,
)
from stepflow.dsl.serialization.lexical import (
    format_duration,
    format_scalar,
    parse_duration,
    parse_scalar,
)
from stepflow.dsl.serialization.parser import (
    parse_dsl,
    parse_dsl_file,
    synthesize_referenced_steps,
)
from stepflow.dsl.serialization.writer import DslWriter, stringify_dsl
from stepflow.dsl.serialization.defaults import (
    ResolvedConfig,
    resolve_guard_config,
    resolve_step_config,
)
from stepflow.dsl.serialization.validation import (
    WorkflowConfigValidator,
    validate_configuration,
)

__all__ = [
    # Errors
    "DslParseError",
    "DslSerializationError",
    # Schema
    "StepFlowConfig",
    "StepDef",
    "RetryPolicy",
    "WorkflowDef",
    "EdgeDef",
    "FailurePolicy",
    "ParseDiagnostic",
    "DslParseResult",
    "ValidationIssue",
    "ValidationReport",
    # Literals
    "parse_scalar",
    "format_scalar",
    "parse_duration",
    "format_duration",
    # Parser
    "parse_dsl",
    "parse_dsl_file",
    "synthesize_referenced_steps",
    # Writer
    "DslWriter",
    "stringify_dsl",
    # Defaults
    "ResolvedConfig",
    "resolve_step_config",
    "resolve_guard_config",
    # Validation
    "WorkflowConfigValidator",
    "validate_configuration",
]
