"""Pydantic schema models for stepflow configurations.

This module defines the configuration data model shared by the DSL
compiler, the validators and external collaborators (simulator,
structured-document converter, diagram UI):
- StepFlowConfig: Root aggregate (settings, defaults, steps, workflows)
- StepDef / RetryPolicy: Step definitions and engine-driven retry
- WorkflowDef / EdgeDef / FailurePolicy: Workflow graphs
- ParseDiagnostic / DslParseResult: Parser output
- ValidationIssue / ValidationReport: Validator output

Field names are snake_case in Python; the interchange format uses camelCase
aliases (``maxAttempts``, ``onFailure``, ...), produced by
``model_dump(by_alias=True)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from stepflow.dsl.config import DEFAULTS
from stepflow.dsl.types import (
    EdgeKind,
    FailureStrategy,
    IssueCategory,
    IssueSeverity,
)

__all__ = [
    # Steps
    "RetryPolicy",
    "StepDef",
    # Workflows
    "FailurePolicy",
    "EdgeDef",
    "WorkflowDef",
    # Root aggregate
    "StepFlowConfig",
    # Parser output
    "ParseDiagnostic",
    "DslParseResult",
    # Validator output
    "ValidationIssue",
    "ValidationReport",
]


class _Model(BaseModel):
    """Base for all configuration models (accepts field names and aliases)."""

    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Step Models
# =============================================================================


class RetryPolicy(_Model):
    """Engine-driven retry configuration for a step.

    Fields:
        max_attempts: Number of attempts, at least 1
        delay: Delay between attempts in milliseconds
        guard: Optional guard consulted before each retry
    """

    max_attempts: int = Field(..., ge=1, alias="maxAttempts")
    delay: int = Field(default=DEFAULTS.STEP_RETRY_DELAY_MS, ge=0)
    guard: str | None = None


class StepDef(_Model):
    """A named unit of work.

    Fields:
        type: Component type, resolved externally at run time. May be empty
            while a UI is editing; the validator reports it.
        config: Arbitrary nested configuration
        guards: Step-level guards, all of which must hold
        retry: Optional retry policy
    """

    type: str = ""
    config: dict[str, Any] | None = None
    guards: list[str] | None = None
    retry: RetryPolicy | None = None

    @field_validator("guards")
    @classmethod
    def collapse_empty_guards(cls, v: list[str] | None) -> list[str] | None:
        """An empty guard list means no guards."""
        return v or None


# =============================================================================
# Workflow Models
# =============================================================================


class FailurePolicy(_Model):
    """Failure handling for an edge whose guard does not hold.

    Validation Rules:
        - ALTERNATIVE requires alternative_target
        - RETRY fills retry_attempts (1) and retry_delay (0) when omitted
        - STOP, SKIP and CONTINUE carry no extra fields
    """

    strategy: FailureStrategy
    alternative_target: str | None = Field(None, alias="alternativeTarget")
    retry_attempts: int | None = Field(None, ge=1, alias="retryAttempts")
    retry_delay: int | None = Field(None, ge=0, alias="retryDelay")

    @model_validator(mode="after")
    def validate_strategy_fields(self) -> FailurePolicy:
        """Ensure each strategy carries exactly the fields it needs."""
        if self.strategy == FailureStrategy.ALTERNATIVE:
            if not self.alternative_target:
                raise ValueError("ALTERNATIVE strategy requires alternativeTarget")
            if self.retry_attempts is not None or self.retry_delay is not None:
                raise ValueError("ALTERNATIVE strategy does not take retry fields")
        elif self.strategy == FailureStrategy.RETRY:
            if self.alternative_target is not None:
                raise ValueError("RETRY strategy does not take alternativeTarget")
            if self.retry_attempts is None:
                self.retry_attempts = DEFAULTS.EDGE_RETRY_ATTEMPTS
            if self.retry_delay is None:
                self.retry_delay = DEFAULTS.EDGE_RETRY_DELAY_MS
        elif (
            self.alternative_target is not None
            or self.retry_attempts is not None
            or self.retry_delay is not None
        ):
            raise ValueError(
                f"{self.strategy.value} strategy does not take extra fields"
            )
        return self


class EdgeDef(_Model):
    """A directed transition between two steps (or to a terminal).

    Fields:
        from_: Source step name (``from`` in the interchange format)
        to: Target step name or terminal
        guard: Edge-level guard that must hold to take the transition
        condition: Free-text note, never evaluated
        kind: Edge classification (normal when unset)
        on_failure: What to do when the guard fails
    """

    from_: str = Field(..., alias="from")
    to: str
    guard: str | None = None
    condition: str | None = None
    kind: EdgeKind | None = None
    on_failure: FailurePolicy | None = Field(None, alias="onFailure")


class WorkflowDef(_Model):
    """A workflow graph.

    Fields:
        root: Starting step name (empty string when not yet set)
        edges: Edges in declaration order
    """

    root: str = ""
    edges: list[EdgeDef] = Field(default_factory=list)


# =============================================================================
# Root Aggregate
# =============================================================================


class StepFlowConfig(_Model):
    """Complete stepflow configuration.

    Fields:
        settings: Global nested key/values
        defaults: ``step`` and ``guard`` category defaults plus per-name
            buckets (step type, step name or guard name)
        steps: Step definitions in declaration order
        workflows: Workflow definitions in declaration order
    """

    settings: dict[str, Any] = Field(default_factory=dict)
    defaults: dict[str, Any] = Field(default_factory=dict)
    steps: dict[str, StepDef] = Field(default_factory=dict)
    workflows: dict[str, WorkflowDef] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the interchange dict (camelCase, None omitted)."""
        # Import here to avoid circular imports
        from stepflow.dsl.serialization.writer import DslWriter

        return DslWriter().to_dict(self)

    def to_dsl(self) -> str:
        """Serialize to canonical DSL text.

        Raises:
            DslSerializationError: If the configuration breaks its invariants.
        """
        # Import here to avoid circular imports
        from stepflow.dsl.serialization.writer import DslWriter

        return DslWriter().to_dsl(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StepFlowConfig:
        """Create a configuration from an interchange dict.

        Raises:
            pydantic.ValidationError: If validation fails.
        """
        return cls.model_validate(data)

    @classmethod
    def from_dsl(cls, text: str) -> StepFlowConfig:
        """Parse DSL text, discarding diagnostics.

        Use parse_dsl() when the diagnostics matter.
        """
        # Import here to avoid circular imports
        from stepflow.dsl.serialization.parser import parse_dsl

        return parse_dsl(text).config


# =============================================================================
# Parser Output
# =============================================================================


@dataclass(frozen=True, slots=True)
class ParseDiagnostic:
    """A recoverable problem found on one source line.

    Fields:
        line: 1-based line number
        message: Human-readable message
    """

    line: int
    message: str

    def __str__(self) -> str:
        return f"Line {self.line}: {self.message}"


@dataclass(frozen=True, slots=True)
class DslParseResult:
    """Best-effort configuration plus the diagnostics collected on the way."""

    config: StepFlowConfig
    diagnostics: tuple[ParseDiagnostic, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.diagnostics

    @property
    def messages(self) -> list[str]:
        """Diagnostics rendered as "Line N: message" strings."""
        return [str(d) for d in self.diagnostics]


# =============================================================================
# Validation Result Models
# =============================================================================


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single validator finding.

    Fields:
        type: Severity (error, warning, info)
        message: Human-readable message
        location: Dotted path (``steps.charge.retry.maxAttempts``,
            ``workflows.main.edges[2].to``) or a diagram node/edge id
        category: Family of checks that produced the issue
        suggestion: Deterministic fix suggestion, when there is one
    """

    type: IssueSeverity
    message: str
    location: str | None = None
    category: IssueCategory = IssueCategory.STRUCTURE
    suggestion: str | None = None


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Result of a validation pass.

    Fields:
        issues: Issues in the order the checks produced them
        score: Advisory quality score, 0-100
    """

    issues: tuple[ValidationIssue, ...]
    score: int

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> ValidationReport:
        """Build a report and compute its score."""
        errors = sum(1 for i in issues if i.type == IssueSeverity.ERROR)
        warnings = sum(1 for i in issues if i.type == IssueSeverity.WARNING)
        score = max(
            0,
            DEFAULTS.MAX_SCORE
            - errors * DEFAULTS.ERROR_PENALTY
            - warnings * DEFAULTS.WARNING_PENALTY,
        )
        return cls(issues=tuple(issues), score=score)

    @property
    def valid(self) -> bool:
        """True when no error-level issue was found."""
        return not self.errors

    @property
    def errors(self) -> tuple[ValidationIssue, ...]:
        return tuple(i for i in self.issues if i.type == IssueSeverity.ERROR)

    @property
    def warnings(self) -> tuple[ValidationIssue, ...]:
        return tuple(i for i in self.issues if i.type == IssueSeverity.WARNING)

    @property
    def infos(self) -> tuple[ValidationIssue, ...]:
        return tuple(i for i in self.issues if i.type == IssueSeverity.INFO)

    def summary(self) -> str:
        """One-line summary, e.g. "2 errors, 1 warning" or "No issues found"."""
        errors, warnings, infos = (
            len(self.errors),
            len(self.warnings),
            len(self.infos),
        )
        if errors:
            return f"{_plural(errors, 'error')}, {_plural(warnings, 'warning')}"
        if warnings:
            return f"{_plural(warnings, 'warning')}, {_plural(infos, 'suggestion')}"
        if infos:
            return _plural(infos, "suggestion")
        return "No issues found"
