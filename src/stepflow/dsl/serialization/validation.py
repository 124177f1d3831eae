"""Graph validation for compiled stepflow configurations.

This module checks a StepFlowConfig for problems the parser cannot see:
- Structure: missing or undefined roots and edge endpoints, duplicate
  edges, unreachable steps, dead ends
- Logic: cycles (reported at the edge that closes them)
- Configuration: empty step types, unserializable configs, retry limits
- Performance: deep workflows, many decision points, large configs

Every issue carries a dotted location that points back at a construct the
parser produced (``steps.charge.retry.maxAttempts``,
``workflows.main.edges[2].to``). The validator never mutates its input.
"""

from __future__ import annotations

import json

from stepflow.dsl.analysis import (
    Adjacency,
    build_adjacency,
    find_cycles,
    max_depth,
    reachable_from,
    workflow_transitions,
)
from stepflow.dsl.config import ValidationThresholds
from stepflow.dsl.errors import WorkflowDefinitionError
from stepflow.dsl.serialization.paths import flatten
from stepflow.dsl.serialization.schema import (
    StepDef,
    StepFlowConfig,
    ValidationIssue,
    ValidationReport,
    WorkflowDef,
)
from stepflow.dsl.types import (
    EdgeKind,
    FailureStrategy,
    IssueCategory,
    IssueSeverity,
    is_terminal,
)
from stepflow.logging import get_logger

__all__ = ["WorkflowConfigValidator", "validate_configuration"]

logger = get_logger(__name__)

_TERMINAL_SUGGESTION = (
    "Add an edge to SUCCESS or FAILURE, or mark the final edge [terminal]"
)


class WorkflowConfigValidator:
    """Validator for compiled configurations.

    Example:
        ```python
        from stepflow.dsl.serialization import parse_dsl
        from stepflow.dsl.serialization.validation import WorkflowConfigValidator

        result = parse_dsl(text)
        report = WorkflowConfigValidator().validate(result.config)
        for issue in report.errors:
            print(f"{issue.location}: {issue.message}")
        ```
    """

    def __init__(self, thresholds: ValidationThresholds | None = None) -> None:
        """Initialize the validator.

        Args:
            thresholds: Limits for the configuration and performance checks.
                Library defaults are used when omitted.
        """
        self._thresholds = thresholds or ValidationThresholds()

    def validate(
        self,
        config: StepFlowConfig,
        workflow: str | None = None,
    ) -> ValidationReport:
        """Run all checks.

        Args:
            config: Configuration to validate.
            workflow: Restrict the checks to one workflow and the steps it
                references.

        Returns:
            ValidationReport with issues in check order and a score.

        Raises:
            WorkflowDefinitionError: If ``workflow`` names no workflow.
        """
        if workflow is not None and workflow not in config.workflows:
            raise WorkflowDefinitionError(f"Unknown workflow '{workflow}'")

        issues: list[ValidationIssue] = []
        selected = (
            {workflow: config.workflows[workflow]}
            if workflow is not None
            else config.workflows
        )

        if not config.workflows:
            issues.append(
                ValidationIssue(
                    type=IssueSeverity.INFO,
                    message="No workflows defined",
                    category=IssueCategory.STRUCTURE,
                    suggestion="Add a 'workflow NAME:' block with a root step",
                )
            )

        referenced_anywhere: set[str] = set()
        for name, wf in selected.items():
            referenced = self._referenced_steps(wf)
            referenced_anywhere.update(referenced)
            issues.extend(self._check_structure(config, name, wf, referenced))
            issues.extend(self._check_cycles(name, wf))
            issues.extend(self._check_edge_retries(name, wf))
            issues.extend(self._check_performance(name, wf))

        if workflow is None:
            issues.extend(self._check_unreferenced(config, referenced_anywhere))
            step_names = list(config.steps)
        else:
            step_names = [s for s in config.steps if s in referenced_anywhere]

        for step_name in step_names:
            issues.extend(self._check_step(step_name, config.steps[step_name]))

        report = ValidationReport.from_issues(issues)
        logger.debug(
            "workflow_validation_completed",
            workflows=len(selected),
            issues=len(report.issues),
            score=report.score,
        )
        return report

    # =========================================================================
    # Structure
    # =========================================================================

    @staticmethod
    def _referenced_steps(workflow: WorkflowDef) -> list[str]:
        """Non-terminal names a workflow mentions, in discovery order."""
        names: list[str] = []
        candidates = [workflow.root]
        for source, target in workflow_transitions(workflow):
            candidates.extend((source, target))
        for name in candidates:
            if name and not is_terminal(name) and name not in names:
                names.append(name)
        return names

    def _check_structure(
        self,
        config: StepFlowConfig,
        name: str,
        workflow: WorkflowDef,
        referenced: list[str],
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        location = f"workflows.{name}"

        def undefined(step: str, where: str) -> None:
            if step and not is_terminal(step) and step not in config.steps:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.ERROR,
                        message=f"Step '{step}' is not defined",
                        location=where,
                        suggestion=f"Declare it with 'step {step}: TYPE'",
                    )
                )

        if not workflow.root:
            issues.append(
                ValidationIssue(
                    type=IssueSeverity.ERROR,
                    message=f"Workflow '{name}' has no root step",
                    location=f"{location}.root",
                    suggestion="Add 'root: STEP' to the workflow",
                )
            )
        else:
            undefined(workflow.root, f"{location}.root")

        seen: set[tuple[str, str, str | None]] = set()
        for index, edge in enumerate(workflow.edges):
            edge_location = f"{location}.edges[{index}]"
            undefined(edge.from_, f"{edge_location}.from")
            undefined(edge.to, f"{edge_location}.to")
            if edge.on_failure is not None and edge.on_failure.alternative_target:
                undefined(
                    edge.on_failure.alternative_target,
                    f"{edge_location}.onFailure.alternativeTarget",
                )

            key = (edge.from_, edge.to, edge.guard)
            if key in seen:
                guard = f" ? {edge.guard}" if edge.guard else ""
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.WARNING,
                        message=f"Duplicate edge {edge.from_} -> {edge.to}{guard}",
                        location=edge_location,
                        suggestion="Remove the repeated edge",
                    )
                )
            seen.add(key)

        adjacency = build_adjacency(workflow_transitions(workflow))

        if workflow.root:
            reachable = set(reachable_from(adjacency, workflow.root))
            for step in referenced:
                if step not in reachable:
                    issues.append(
                        ValidationIssue(
                            type=IssueSeverity.WARNING,
                            message=(
                                f"Step '{step}' is unreachable from root "
                                f"'{workflow.root}' in workflow '{name}'"
                            ),
                            location=f"steps.{step}",
                            suggestion="Connect it to a path from the root step",
                        )
                    )

        terminal_marked = {
            edge.to for edge in workflow.edges if edge.kind == EdgeKind.TERMINAL
        }
        for step in referenced:
            if adjacency.get(step) or step in terminal_marked:
                continue
            issues.append(
                ValidationIssue(
                    type=IssueSeverity.WARNING,
                    message=(
                        f"Step '{step}' has no outgoing edges in workflow '{name}'"
                    ),
                    location=f"steps.{step}",
                    suggestion=_TERMINAL_SUGGESTION,
                )
            )
        return issues

    def _check_unreferenced(
        self, config: StepFlowConfig, referenced: set[str]
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for step in config.steps:
            if step in referenced:
                continue
            issues.append(
                ValidationIssue(
                    type=IssueSeverity.WARNING,
                    message=f"Step '{step}' is unreachable: no workflow references it",
                    location=f"steps.{step}",
                    suggestion="Reference it from a workflow or remove it",
                )
            )
            issues.append(
                ValidationIssue(
                    type=IssueSeverity.WARNING,
                    message=f"Step '{step}' has no outgoing edges in any workflow",
                    location=f"steps.{step}",
                    suggestion=_TERMINAL_SUGGESTION,
                )
            )
        return issues

    # =========================================================================
    # Logic
    # =========================================================================

    def _check_cycles(self, name: str, workflow: WorkflowDef) -> list[ValidationIssue]:
        if not workflow.root:
            return []
        adjacency: Adjacency = build_adjacency(workflow_transitions(workflow))

        # First edge index that carries each transition
        edge_index: dict[tuple[str, str], int] = {}
        for i, edge in enumerate(workflow.edges):
            edge_index.setdefault((edge.from_, edge.to), i)
            if edge.on_failure is not None and edge.on_failure.alternative_target:
                edge_index.setdefault((edge.from_, edge.on_failure.alternative_target), i)

        issues: list[ValidationIssue] = []
        for cycle in find_cycles(adjacency, [workflow.root], exhaustive=False):
            index = edge_index[cycle.back_edge]
            issues.append(
                ValidationIssue(
                    type=IssueSeverity.ERROR,
                    message=f"Cycle detected: {cycle}",
                    location=f"workflows.{name}.edges[{index}]",
                    category=IssueCategory.LOGIC,
                    suggestion="Route the loop through a retry policy or a terminal",
                )
            )
        return issues

    # =========================================================================
    # Configuration
    # =========================================================================

    def _check_edge_retries(
        self, name: str, workflow: WorkflowDef
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        limit = self._thresholds.max_retry_attempts
        for index, edge in enumerate(workflow.edges):
            policy = edge.on_failure
            if policy is None or policy.strategy != FailureStrategy.RETRY:
                continue
            attempts = policy.retry_attempts or 0
            if attempts > limit:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.WARNING,
                        message=(
                            f"Edge {edge.from_} -> {edge.to} retries {attempts} "
                            f"times (limit {limit})"
                        ),
                        location=(
                            f"workflows.{name}.edges[{index}].onFailure.retryAttempts"
                        ),
                        category=IssueCategory.PERFORMANCE,
                        suggestion="Reduce the retry count to avoid long delays",
                    )
                )
        return issues

    def _check_step(self, name: str, step: StepDef) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        location = f"steps.{name}"

        if not step.type.strip():
            issues.append(
                ValidationIssue(
                    type=IssueSeverity.ERROR,
                    message=f"Step '{name}' has no type",
                    location=f"{location}.type",
                    category=IssueCategory.CONFIGURATION,
                    suggestion='Specify a step type (e.g., "ValidateOrderStep")',
                )
            )

        if step.config is not None:
            try:
                json.dumps(step.config, allow_nan=False)
            except (TypeError, ValueError):
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.ERROR,
                        message=f"Step '{name}' has a configuration that is not valid JSON",
                        location=f"{location}.config",
                        category=IssueCategory.CONFIGURATION,
                        suggestion="Use only strings, numbers, booleans and maps",
                    )
                )
            else:
                key_count = len(flatten(step.config))
                if key_count > self._thresholds.max_config_keys:
                    issues.append(
                        ValidationIssue(
                            type=IssueSeverity.INFO,
                            message=f"Step '{name}' has {key_count} config properties",
                            location=f"{location}.config",
                            category=IssueCategory.PERFORMANCE,
                            suggestion="Move shared values to defaults",
                        )
                    )

        if step.retry is not None:
            attempts = step.retry.max_attempts
            if attempts > self._thresholds.max_retry_attempts:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.WARNING,
                        message=f"Step '{name}' retries {attempts} times",
                        location=f"{location}.retry.maxAttempts",
                        category=IssueCategory.PERFORMANCE,
                        suggestion="Reduce the retry count to avoid long delays",
                    )
                )
            if not step.retry.guard:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.INFO,
                        message=f"Step '{name}' retries without a retry guard",
                        location=f"{location}.retry.guard",
                        category=IssueCategory.CONFIGURATION,
                        suggestion="Add '? GUARD' to control when retries happen",
                    )
                )
        return issues

    # =========================================================================
    # Performance
    # =========================================================================

    def _check_performance(
        self, name: str, workflow: WorkflowDef
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        location = f"workflows.{name}"

        if workflow.root:
            adjacency = build_adjacency(workflow_transitions(workflow))
            depth = max_depth(adjacency, workflow.root)
            if depth > self._thresholds.max_depth:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.INFO,
                        message=f"Workflow '{name}' is {depth} levels deep",
                        location=location,
                        category=IssueCategory.PERFORMANCE,
                        suggestion="Split it into smaller workflows",
                    )
                )

        branches = sum(1 for edge in workflow.edges if edge.guard)
        if branches > self._thresholds.max_branches:
            issues.append(
                ValidationIssue(
                    type=IssueSeverity.INFO,
                    message=f"Workflow '{name}' has {branches} decision points",
                    location=location,
                    category=IssueCategory.PERFORMANCE,
                    suggestion="Simplify the guard logic",
                )
            )
        return issues


def validate_configuration(
    config: StepFlowConfig,
    thresholds: ValidationThresholds | None = None,
    workflow: str | None = None,
) -> ValidationReport:
    """Convenience function for configuration validation.

    Example:
        ```python
        report = validate_configuration(parse_dsl(text).config)
        if not report.valid:
            for issue in report.errors:
                print(f"{issue.location}: {issue.message}")
        ```
    """
    return WorkflowConfigValidator(thresholds).validate(config, workflow=workflow)
