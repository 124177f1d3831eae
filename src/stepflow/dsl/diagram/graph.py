"""Graph data structures for live workflow diagrams.

A diagram is what the visual editor holds while the user drags nodes
around: step and guard nodes connected by edges whose CSS class or label
says which guard branch they are. This module defines those structures
and a builder that projects a compiled workflow into one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from stepflow.dsl.errors import WorkflowDefinitionError
from stepflow.dsl.serialization.schema import StepFlowConfig
from stepflow.dsl.types import EdgeKind, NodeKind, is_terminal

__all__ = [
    "GUARD_SUCCESS_CLASS",
    "GUARD_FAILURE_CLASS",
    "FAILURE_EDGE_CLASS",
    "DiagramNode",
    "DiagramEdge",
    "DiagramGraph",
    "DiagramGraphBuilder",
]

# CSS classes the editor puts on the two outgoing handles of a guard node
GUARD_SUCCESS_CLASS = "edge-guard-success"
GUARD_FAILURE_CLASS = "edge-guard-failure"

FAILURE_EDGE_CLASS = "edge-failure"


# =============================================================================
# Graph Data Structures
# =============================================================================


@dataclass(frozen=True, slots=True)
class DiagramNode:
    """A node on the canvas.

    Attributes:
        id: Unique node identifier
        kind: Step or guard
        label: Display label (falls back to the id in messages)
        type: Component type of a step node
        config: Step configuration
        retry_count: Retry attempts of a step (0 for none)
        retry_guard: Guard consulted before each retry
        is_root: Whether this step starts the workflow
        is_terminal: Whether this step ends the workflow
        condition: Condition class of a guard node
    """

    id: str
    kind: NodeKind = NodeKind.STEP
    label: str = ""
    type: str = ""
    config: dict[str, Any] | None = None
    retry_count: int = 0
    retry_guard: str | None = None
    is_root: bool = False
    is_terminal: bool = False
    condition: str | None = None

    @property
    def display_name(self) -> str:
        return self.label or self.id


@dataclass(frozen=True, slots=True)
class DiagramEdge:
    """A connection between two nodes.

    Attributes:
        id: Unique edge identifier
        source: Source node id
        target: Target node id
        label: Display label ("TRUE"/"FALSE" on guard branches)
        class_name: CSS classes, space separated
    """

    id: str
    source: str
    target: str
    label: str = ""
    class_name: str = ""


@dataclass(frozen=True, slots=True)
class DiagramGraph:
    """Complete diagram of one workflow.

    Attributes:
        name: Workflow name
        nodes: All nodes
        edges: All edges
    """

    name: str
    nodes: tuple[DiagramNode, ...]
    edges: tuple[DiagramEdge, ...]

    def node(self, node_id: str) -> DiagramNode | None:
        return next((n for n in self.nodes if n.id == node_id), None)

    def outgoing(self, node_id: str) -> list[DiagramEdge]:
        return [e for e in self.edges if e.source == node_id]


# =============================================================================
# Graph Builder
# =============================================================================


class DiagramGraphBuilder:
    """Projects a compiled workflow into a DiagramGraph.

    Every step the workflow mentions becomes a step node, in discovery
    order; ``SUCCESS`` and ``FAILURE`` targets become terminal nodes, as do
    targets of ``[terminal]`` edges. Edge ``i`` of the workflow gets id
    ``edges[i]`` and its guard as label; an ALTERNATIVE failure policy adds
    an ``edges[i].onFailure`` edge to the alternative target.

    Example:
        >>> config = StepFlowConfig.from_dsl("workflow w:\\n  root: a\\n  a -> SUCCESS\\n")
        >>> graph = DiagramGraphBuilder().build(config, "w")
        >>> [n.id for n in graph.nodes]
        ['a', 'SUCCESS']
    """

    def build(self, config: StepFlowConfig, workflow: str) -> DiagramGraph:
        """Build the diagram of ``workflow``.

        Raises:
            WorkflowDefinitionError: If the workflow does not exist.
        """
        wf = config.workflows.get(workflow)
        if wf is None:
            raise WorkflowDefinitionError(f"Unknown workflow '{workflow}'")

        edges: list[DiagramEdge] = []
        order: list[str] = [wf.root] if wf.root else []
        terminal_targets: set[str] = set()

        for index, edge in enumerate(wf.edges):
            edge_id = f"edges[{index}]"
            edges.append(
                DiagramEdge(
                    id=edge_id,
                    source=edge.from_,
                    target=edge.to,
                    label=edge.guard or "",
                )
            )
            order.extend((edge.from_, edge.to))
            if edge.kind == EdgeKind.TERMINAL:
                terminal_targets.add(edge.to)

            policy = edge.on_failure
            if policy is not None and policy.alternative_target:
                edges.append(
                    DiagramEdge(
                        id=f"{edge_id}.onFailure",
                        source=edge.from_,
                        target=policy.alternative_target,
                        label=edge.guard or "",
                        class_name=FAILURE_EDGE_CLASS,
                    )
                )
                order.append(policy.alternative_target)

        nodes: list[DiagramNode] = []
        seen: set[str] = set()
        for name in order:
            if name in seen:
                continue
            seen.add(name)
            nodes.append(self._step_node(config, name, wf.root, terminal_targets))

        return DiagramGraph(name=workflow, nodes=tuple(nodes), edges=tuple(edges))

    @staticmethod
    def _step_node(
        config: StepFlowConfig,
        name: str,
        root: str,
        terminal_targets: set[str],
    ) -> DiagramNode:
        terminal = is_terminal(name) or name in terminal_targets
        step = config.steps.get(name)
        if step is None:
            return DiagramNode(
                id=name,
                label=name,
                type=name if is_terminal(name) else "",
                is_root=name == root,
                is_terminal=terminal,
            )
        return DiagramNode(
            id=name,
            label=name,
            type=step.type,
            config=step.config,
            retry_count=step.retry.max_attempts if step.retry else 0,
            retry_guard=step.retry.guard if step.retry else None,
            is_root=name == root,
            is_terminal=terminal,
        )
