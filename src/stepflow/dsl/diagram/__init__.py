"""Live diagram graphs and their validator.

Classes:
    DiagramNode: A step or guard node on the canvas
    DiagramEdge: A connection, with the CSS class/label marking guard branches
    DiagramGraph: All nodes and edges of one workflow
    DiagramGraphBuilder: Projects a compiled workflow into a DiagramGraph
    DiagramValidator: Structure, configuration, logic and performance checks
"""

from __future__ import annotations

from stepflow.dsl.diagram.graph import (
    FAILURE_EDGE_CLASS,
    GUARD_FAILURE_CLASS,
    GUARD_SUCCESS_CLASS,
    DiagramEdge,
    DiagramGraph,
    DiagramGraphBuilder,
    DiagramNode,
)
from stepflow.dsl.diagram.validation import (
    DiagramValidator,
    is_failure_edge,
    is_success_edge,
    validate_diagram,
)

__all__ = [
    "GUARD_SUCCESS_CLASS",
    "GUARD_FAILURE_CLASS",
    "FAILURE_EDGE_CLASS",
    "DiagramNode",
    "DiagramEdge",
    "DiagramGraph",
    "DiagramGraphBuilder",
    "DiagramValidator",
    "validate_diagram",
    "is_success_edge",
    "is_failure_edge",
]
