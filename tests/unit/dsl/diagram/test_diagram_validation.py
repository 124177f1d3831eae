"""Unit tests for DiagramValidator."""

from __future__ import annotations

from stepflow.dsl.config import ValidationThresholds
from stepflow.dsl.diagram import (
    GUARD_FAILURE_CLASS,
    GUARD_SUCCESS_CLASS,
    DiagramEdge,
    DiagramGraph,
    DiagramGraphBuilder,
    DiagramNode,
    DiagramValidator,
    is_failure_edge,
    is_success_edge,
    validate_diagram,
)
from stepflow.dsl.serialization import parse_dsl
from stepflow.dsl.types import IssueCategory, IssueSeverity, NodeKind


def _graph(nodes: list[DiagramNode], edges: list[tuple[str, str, str]] = ()) -> DiagramGraph:
    """Build a graph; each edge is (source, target, label)."""
    return DiagramGraph(
        name="test",
        nodes=tuple(nodes),
        edges=tuple(
            DiagramEdge(id=f"e{i}", source=s, target=t, label=label)
            for i, (s, t, label) in enumerate(edges)
        ),
    )


def _messages(graph: DiagramGraph) -> list[tuple[str, str]]:
    return [(i.type.value, i.message) for i in validate_diagram(graph).issues]


class TestEdgeBranches:
    def test_by_class(self) -> None:
        edge = DiagramEdge(id="e", source="g", target="x", class_name=f"edge {GUARD_SUCCESS_CLASS}")
        assert is_success_edge(edge)
        assert not is_failure_edge(edge)
        assert is_failure_edge(DiagramEdge(id="f", source="g", target="y", class_name=GUARD_FAILURE_CLASS))

    def test_by_label(self) -> None:
        assert is_success_edge(DiagramEdge(id="e", source="g", target="x", label="true"))
        assert is_failure_edge(DiagramEdge(id="e", source="g", target="x", label="False"))


class TestProjectedWorkflow:
    def test_checkout_is_clean(self, checkout_dsl: str) -> None:
        config = parse_dsl(checkout_dsl).config
        graph = DiagramGraphBuilder().build(config, "checkout")
        report = DiagramValidator().validate(graph)
        assert report.issues == ()
        assert report.score == 100


class TestStructure:
    def test_missing_root(self) -> None:
        assert _messages(_graph([DiagramNode(id="a", type="A")])) == [
            ("error", "Workflow must have exactly one root step to define the starting point"),
            ("warning", 'Node "a" has no connections'),
            ("warning", 'Node "a" cannot be reached from root'),
            ("warning", 'Node "a" has no outgoing edges'),
        ]

    def test_several_roots(self) -> None:
        graph = _graph(
            [
                DiagramNode(id="a", type="A", is_root=True),
                DiagramNode(id="b", type="B", is_root=True, is_terminal=True),
            ],
            [("a", "b", "")],
        )
        report = validate_diagram(graph)
        assert [(i.message, i.location) for i in report.issues] == [
            ("Found 2 root steps. Only one root step is allowed per workflow", "b")
        ]

    def test_label_is_used_in_messages(self) -> None:
        graph = _graph(
            [
                DiagramNode(id="a", type="A", is_root=True, is_terminal=True),
                DiagramNode(id="n1", label="Ship order", type="Ship"),
            ]
        )
        assert ("warning", 'Node "Ship order" has no connections') in _messages(graph)

    def test_cycle_is_a_warning_at_the_closing_edge(self) -> None:
        graph = _graph(
            [
                DiagramNode(id="a", type="A", is_root=True),
                DiagramNode(id="b", type="B"),
                DiagramNode(id="done", type="Done", is_terminal=True),
            ],
            [("a", "b", ""), ("b", "a", ""), ("b", "done", "")],
        )
        report = validate_diagram(graph)
        assert [(i.type, i.message, i.location, i.category) for i in report.issues] == [
            (IssueSeverity.WARNING, "Cycle detected: a → b → a", "e1", IssueCategory.LOGIC)
        ]

    def test_dead_end_and_duplicate_edge(self) -> None:
        graph = _graph(
            [
                DiagramNode(id="a", type="A", is_root=True),
                DiagramNode(id="b", type="B"),
                DiagramNode(id="c", type="C", is_terminal=True),
            ],
            [("a", "b", ""), ("a", "b", ""), ("a", "c", "")],
        )
        report = validate_diagram(graph)
        assert [(i.type, i.message, i.location) for i in report.issues] == [
            (IssueSeverity.WARNING, "Duplicate edge a → b", "e1"),
            (IssueSeverity.WARNING, 'Node "b" has no outgoing edges', "b"),
        ]

    def test_edges_with_different_labels_are_not_duplicates(self) -> None:
        graph = _graph(
            [
                DiagramNode(id="a", type="A", is_root=True),
                DiagramNode(id="b", type="B", is_terminal=True),
            ],
            [("a", "b", "fast"), ("a", "b", "slow")],
        )
        assert _messages(graph) == []


class TestConfiguration:
    def test_guard_without_condition(self) -> None:
        graph = _graph(
            [
                DiagramNode(id="a", type="A", is_root=True),
                DiagramNode(id="g", kind=NodeKind.GUARD, condition=" "),
                DiagramNode(id="x", type="X", is_terminal=True),
                DiagramNode(id="y", type="Y", is_terminal=True),
            ],
            [("a", "g", ""), ("g", "x", "TRUE"), ("g", "y", "FALSE")],
        )
        assert _messages(graph) == [("error", 'Guard "g" has no condition specified')]

    def test_step_checks(self) -> None:
        graph = _graph(
            [
                DiagramNode(
                    id="a",
                    type="",
                    config={"ratio": float("inf")},
                    retry_count=11,
                    is_root=True,
                    is_terminal=True,
                )
            ]
        )
        assert _messages(graph) == [
            ("error", 'Step "a" has no type specified'),
            ("error", 'Step "a" has invalid JSON configuration'),
            ("warning", 'Step "a" has 11 retries'),
            ("info", 'Step "a" has retries but no retry guard'),
        ]


class TestLogic:
    def _guarded(self, edges: list[tuple[str, str, str]]) -> DiagramGraph:
        return _graph(
            [
                DiagramNode(id="a", type="A", is_root=True),
                DiagramNode(id="g", kind=NodeKind.GUARD, condition="IsPaid"),
                DiagramNode(id="x", type="X", is_terminal=True),
                DiagramNode(id="y", type="Y", is_terminal=True),
            ],
            [("a", "g", ""), *edges],
        )

    def test_complete_guard(self) -> None:
        assert _messages(self._guarded([("g", "x", "TRUE"), ("g", "y", "FALSE")])) == []

    def test_missing_branches(self) -> None:
        assert _messages(self._guarded([("g", "x", "TRUE"), ("g", "y", "")])) == [
            ("error", 'Guard "g" has no FALSE branch')
        ]
        assert _messages(self._guarded([("g", "y", "FALSE"), ("g", "x", "")])) == [
            ("error", 'Guard "g" has no TRUE branch')
        ]

    def test_several_true_branches(self) -> None:
        edges = [("g", "x", "TRUE"), ("g", "y", "TRUE"), ("g", "y", "FALSE")]
        assert _messages(self._guarded(edges)) == [
            ("warning", 'Guard "g" has 2 TRUE branches')
        ]

    def test_no_termination_points(self) -> None:
        graph = _graph(
            [
                DiagramNode(id="a", type="A", is_root=True),
                DiagramNode(id="b", type="B"),
            ],
            [("a", "b", ""), ("b", "a", "")],
        )
        assert ("warning", "Workflow has no clear termination points") in _messages(graph)


class TestPerformance:
    def test_thresholds(self) -> None:
        graph = _graph(
            [
                DiagramNode(id="a", type="A", is_root=True, config={"x": 1, "y": {"z": 2}}),
                DiagramNode(id="b", type="B"),
                DiagramNode(id="c", type="C", is_terminal=True),
            ],
            [("a", "b", ""), ("b", "c", "")],
        )
        thresholds = ValidationThresholds(max_depth=1, max_config_keys=1)
        report = DiagramValidator(thresholds).validate(graph)
        assert [(i.type, i.message) for i in report.issues] == [
            (IssueSeverity.INFO, "Workflow has 2 levels deep"),
            (IssueSeverity.INFO, 'Step "a" has 2 config properties'),
        ]

    def test_many_guards(self) -> None:
        count = 2000
        nodes = [
            DiagramNode(id="a", type="A", is_root=True),
            DiagramNode(id="done", type="Done", is_terminal=True),
            DiagramNode(id="failed", type="Failed", is_terminal=True),
        ]
        edges: list[tuple[str, str, str]] = []
        for i in range(count):
            nodes.append(DiagramNode(id=f"g{i}", kind=NodeKind.GUARD, condition="IsPaid"))
            edges += [("a", f"g{i}", ""), (f"g{i}", "done", "TRUE"), (f"g{i}", "failed", "FALSE")]
        assert _messages(_graph(nodes, edges)) == [
            ("info", f"Workflow has {count} decision points")
        ]
