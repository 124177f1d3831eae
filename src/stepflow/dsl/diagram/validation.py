"""Validation of live workflow diagrams.

The diagram validator runs on the node/edge graph the editor holds, so it
can flag problems that only exist on the canvas (a guard node missing its
FALSE branch, two nodes both marked root) as well as the structural and
configuration issues the declarative validator reports. Issue locations
are node or edge ids.
"""

from __future__ import annotations

import json

from stepflow.dsl.analysis import (
    build_adjacency,
    find_cycles,
    max_depth,
    reachable_from,
)
from stepflow.dsl.config import ValidationThresholds
from stepflow.dsl.diagram.graph import (
    GUARD_FAILURE_CLASS,
    GUARD_SUCCESS_CLASS,
    DiagramEdge,
    DiagramGraph,
    DiagramNode,
)
from stepflow.dsl.serialization.paths import flatten
from stepflow.dsl.serialization.schema import ValidationIssue, ValidationReport
from stepflow.dsl.types import IssueCategory, IssueSeverity, NodeKind
from stepflow.logging import get_logger

__all__ = ["DiagramValidator", "validate_diagram", "is_success_edge", "is_failure_edge"]

logger = get_logger(__name__)


def is_success_edge(edge: DiagramEdge) -> bool:
    """True for the TRUE branch of a guard (by CSS class or label)."""
    return GUARD_SUCCESS_CLASS in edge.class_name.split() or "TRUE" in edge.label.upper()


def is_failure_edge(edge: DiagramEdge) -> bool:
    """True for the FALSE branch of a guard (by CSS class or label)."""
    return GUARD_FAILURE_CLASS in edge.class_name.split() or "FALSE" in edge.label.upper()


class DiagramValidator:
    """Validator for diagram graphs.

    Example:
        ```python
        graph = DiagramGraphBuilder().build(config, "main")
        report = DiagramValidator().validate(graph)
        print(report.summary(), report.score)
        ```
    """

    def __init__(self, thresholds: ValidationThresholds | None = None) -> None:
        self._thresholds = thresholds or ValidationThresholds()

    def validate(self, graph: DiagramGraph) -> ValidationReport:
        """Run structure, configuration, logic and performance checks."""
        steps = [n for n in graph.nodes if n.kind == NodeKind.STEP]
        roots = [n for n in steps if n.is_root]
        nodes_by_id = {n.id: n for n in graph.nodes}
        outgoing: dict[str, list[DiagramEdge]] = {}
        for edge in graph.edges:
            outgoing.setdefault(edge.source, []).append(edge)

        issues: list[ValidationIssue] = []
        issues.extend(self._check_structure(graph, steps, roots, nodes_by_id, outgoing))
        issues.extend(self._check_configuration(graph))
        issues.extend(self._check_logic(graph, steps, outgoing))
        issues.extend(self._check_performance(graph, steps, roots))

        report = ValidationReport.from_issues(issues)
        logger.debug(
            "diagram_validation_completed",
            diagram=graph.name,
            nodes=len(graph.nodes),
            edges=len(graph.edges),
            issues=len(report.issues),
            score=report.score,
        )
        return report

    # =========================================================================
    # Structure
    # =========================================================================

    def _check_structure(
        self,
        graph: DiagramGraph,
        steps: list[DiagramNode],
        roots: list[DiagramNode],
        nodes_by_id: dict[str, DiagramNode],
        outgoing: dict[str, list[DiagramEdge]],
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []

        if not roots:
            issues.append(
                ValidationIssue(
                    type=IssueSeverity.ERROR,
                    message=(
                        "Workflow must have exactly one root step to define "
                        "the starting point"
                    ),
                    suggestion="Mark a step as root",
                )
            )
        elif len(roots) > 1:
            issues.append(
                ValidationIssue(
                    type=IssueSeverity.ERROR,
                    message=(
                        f"Found {len(roots)} root steps. Only one root step is "
                        "allowed per workflow"
                    ),
                    location=roots[1].id,
                    suggestion="Keep only one root step and unmark the others",
                )
            )

        # Edges identical apart from their id
        seen: set[tuple[str, str, str, str]] = set()
        for edge in graph.edges:
            key = (edge.source, edge.target, edge.label, edge.class_name)
            if key in seen:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.WARNING,
                        message=(
                            f"Duplicate edge {self._label(nodes_by_id, edge.source)} → "
                            f"{self._label(nodes_by_id, edge.target)}"
                        ),
                        location=edge.id,
                        suggestion="Remove the repeated edge",
                    )
                )
            seen.add(key)

        connected = {e.source for e in graph.edges} | {e.target for e in graph.edges}
        for node in steps:
            if not node.is_root and node.id not in connected:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.WARNING,
                        message=f'Node "{node.display_name}" has no connections',
                        location=node.id,
                        suggestion=(
                            "Connect this node to the workflow or remove it "
                            "if unnecessary"
                        ),
                    )
                )

        adjacency = build_adjacency((e.source, e.target) for e in graph.edges)
        reachable = set(reachable_from(adjacency, roots[0].id)) if roots else set()
        for node in steps:
            if not node.is_root and node.id not in reachable:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.WARNING,
                        message=(
                            f'Node "{node.display_name}" cannot be reached from root'
                        ),
                        location=node.id,
                        suggestion="Connect this node to a path from the root step",
                    )
                )

        for node in steps:
            if not node.is_terminal and node.id not in outgoing:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.WARNING,
                        message=f'Node "{node.display_name}" has no outgoing edges',
                        location=node.id,
                        suggestion=(
                            "Connect it to the next step or mark it as terminal"
                        ),
                    )
                )

        # First edge carrying each (source, target) pair
        edge_ids: dict[tuple[str, str], str] = {}
        for edge in graph.edges:
            edge_ids.setdefault((edge.source, edge.target), edge.id)

        start = [n.id for n in graph.nodes]
        for cycle in find_cycles(adjacency, start):
            labels = [self._label(nodes_by_id, node_id) for node_id in cycle.path]
            issues.append(
                ValidationIssue(
                    type=IssueSeverity.WARNING,
                    message=f"Cycle detected: {' → '.join(labels)}",
                    location=edge_ids[cycle.back_edge],
                    category=IssueCategory.LOGIC,
                    suggestion=(
                        "Add guards or terminal conditions to prevent infinite loops"
                    ),
                )
            )
        return issues

    @staticmethod
    def _label(nodes_by_id: dict[str, DiagramNode], node_id: str) -> str:
        node = nodes_by_id.get(node_id)
        return node.display_name if node is not None else node_id

    # =========================================================================
    # Configuration
    # =========================================================================

    def _check_configuration(self, graph: DiagramGraph) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for node in graph.nodes:
            if node.kind == NodeKind.GUARD:
                if not (node.condition or "").strip():
                    issues.append(
                        ValidationIssue(
                            type=IssueSeverity.ERROR,
                            message=(
                                f'Guard "{node.display_name}" has no condition '
                                "specified"
                            ),
                            location=node.id,
                            category=IssueCategory.CONFIGURATION,
                            suggestion="Specify a guard condition class name",
                        )
                    )
                continue

            if not node.type.strip():
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.ERROR,
                        message=f'Step "{node.display_name}" has no type specified',
                        location=node.id,
                        category=IssueCategory.CONFIGURATION,
                        suggestion='Specify a step type (e.g., "ValidateOrderStep")',
                    )
                )

            if node.config:
                try:
                    json.dumps(node.config, allow_nan=False)
                except (TypeError, ValueError):
                    issues.append(
                        ValidationIssue(
                            type=IssueSeverity.ERROR,
                            message=(
                                f'Step "{node.display_name}" has invalid JSON '
                                "configuration"
                            ),
                            location=node.id,
                            category=IssueCategory.CONFIGURATION,
                            suggestion="Fix the JSON syntax in the configuration",
                        )
                    )

            if node.retry_count > 0:
                if node.retry_count > self._thresholds.max_retry_attempts:
                    issues.append(
                        ValidationIssue(
                            type=IssueSeverity.WARNING,
                            message=(
                                f'Step "{node.display_name}" has '
                                f"{node.retry_count} retries"
                            ),
                            location=node.id,
                            category=IssueCategory.PERFORMANCE,
                            suggestion=(
                                "Consider reducing retry count to avoid long delays"
                            ),
                        )
                    )
                if not node.retry_guard:
                    issues.append(
                        ValidationIssue(
                            type=IssueSeverity.INFO,
                            message=(
                                f'Step "{node.display_name}" has retries but no '
                                "retry guard"
                            ),
                            location=node.id,
                            category=IssueCategory.CONFIGURATION,
                            suggestion=(
                                "Consider adding a retry guard to control when "
                                "retries should happen"
                            ),
                        )
                    )
        return issues

    # =========================================================================
    # Logic
    # =========================================================================

    def _check_logic(
        self,
        graph: DiagramGraph,
        steps: list[DiagramNode],
        outgoing: dict[str, list[DiagramEdge]],
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []

        for guard in (n for n in graph.nodes if n.kind == NodeKind.GUARD):
            branches = outgoing.get(guard.id, [])
            successes = [e for e in branches if is_success_edge(e)]
            failures = [e for e in branches if is_failure_edge(e)]

            if not successes:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.ERROR,
                        message=f'Guard "{guard.display_name}" has no TRUE branch',
                        location=guard.id,
                        category=IssueCategory.LOGIC,
                        suggestion="Connect the green handle to define the success path",
                    )
                )
            if not failures:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.ERROR,
                        message=f'Guard "{guard.display_name}" has no FALSE branch',
                        location=guard.id,
                        category=IssueCategory.LOGIC,
                        suggestion="Connect the red handle to define the failure path",
                    )
                )
            if len(successes) > 1:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.WARNING,
                        message=(
                            f'Guard "{guard.display_name}" has {len(successes)} '
                            "TRUE branches"
                        ),
                        location=guard.id,
                        category=IssueCategory.LOGIC,
                        suggestion="Consider using only one success branch for clarity",
                    )
                )

        if not any(n.is_terminal for n in steps):
            if all(n.id in outgoing for n in steps):
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.WARNING,
                        message="Workflow has no clear termination points",
                        category=IssueCategory.LOGIC,
                        suggestion=(
                            "Mark final steps as terminal or ensure paths lead "
                            "to SUCCESS/FAILURE"
                        ),
                    )
                )
        return issues

    # =========================================================================
    # Performance
    # =========================================================================

    def _check_performance(
        self,
        graph: DiagramGraph,
        steps: list[DiagramNode],
        roots: list[DiagramNode],
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []

        if roots:
            adjacency = build_adjacency((e.source, e.target) for e in graph.edges)
            depth = max_depth(adjacency, roots[0].id)
            if depth > self._thresholds.max_depth:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.INFO,
                        message=f"Workflow has {depth} levels deep",
                        category=IssueCategory.PERFORMANCE,
                        suggestion=(
                            "Consider breaking into smaller sub-workflows for "
                            "better maintainability"
                        ),
                    )
                )

            guards = sum(1 for n in graph.nodes if n.kind == NodeKind.GUARD)
            if guards > self._thresholds.max_branches:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.INFO,
                        message=f"Workflow has {guards} decision points",
                        category=IssueCategory.PERFORMANCE,
                        suggestion="Consider simplifying logic or using lookup tables",
                    )
                )

        for node in steps:
            if not node.config:
                continue
            key_count = len(flatten(node.config))
            if key_count > self._thresholds.max_config_keys:
                issues.append(
                    ValidationIssue(
                        type=IssueSeverity.INFO,
                        message=(
                            f'Step "{node.display_name}" has {key_count} config '
                            "properties"
                        ),
                        location=node.id,
                        category=IssueCategory.PERFORMANCE,
                        suggestion=(
                            "Consider moving complex configuration to external files"
                        ),
                    )
                )
        return issues


def validate_diagram(
    graph: DiagramGraph,
    thresholds: ValidationThresholds | None = None,
) -> ValidationReport:
    """Convenience function for diagram validation."""
    return DiagramValidator(thresholds).validate(graph)
