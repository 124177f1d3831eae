"""Unit tests for the shared graph analysis helpers."""

from __future__ import annotations

from stepflow.dsl.analysis import (
    Cycle,
    build_adjacency,
    find_cycles,
    max_depth,
    reachable_from,
    workflow_transitions,
)
from stepflow.dsl.serialization.schema import EdgeDef, WorkflowDef


class TestAdjacency:
    def test_dedupes_and_keeps_order(self) -> None:
        adjacency = build_adjacency([("a", "c"), ("a", "b"), ("a", "c"), ("b", "a")])
        assert adjacency == {"a": ["c", "b"], "b": ["a"]}

    def test_workflow_transitions_include_alternatives(self) -> None:
        workflow = WorkflowDef(
            root="a",
            edges=[
                EdgeDef(from_="a", to="b", guard="ok"),
                EdgeDef(
                    from_="b",
                    to="SUCCESS",
                    on_failure={"strategy": "ALTERNATIVE", "alternativeTarget": "c"},
                ),
                EdgeDef(from_="c", to="FAILURE", on_failure={"strategy": "SKIP"}),
            ],
        )
        assert workflow_transitions(workflow) == [
            ("a", "b"),
            ("b", "SUCCESS"),
            ("b", "c"),
            ("c", "FAILURE"),
        ]


class TestReachability:
    def test_breadth_first_order(self) -> None:
        adjacency = {"a": ["b", "c"], "b": ["d"], "c": ["d"], "x": ["a"]}
        assert reachable_from(adjacency, "a") == ["a", "b", "c", "d"]

    def test_lone_node(self) -> None:
        assert reachable_from({}, "a") == ["a"]

    def test_depth(self) -> None:
        adjacency = {"a": ["b", "c"], "b": ["d"], "d": ["a"]}
        assert max_depth(adjacency, "a") == 2
        assert max_depth({}, "a") == 0


class TestFindCycles:
    def test_acyclic(self) -> None:
        assert find_cycles({"a": ["b", "c"], "b": ["c"]}, ["a"]) == []

    def test_one_cycle_per_back_edge(self) -> None:
        adjacency = {"a": ["b"], "b": ["c", "a"], "c": ["b"]}
        cycles = find_cycles(adjacency, ["a"])
        assert [c.path for c in cycles] == [("b", "c", "b"), ("a", "b", "a")]

    def test_back_edge_and_str(self) -> None:
        cycle = Cycle(("a", "b", "c", "a"))
        assert cycle.back_edge == ("c", "a")
        assert str(cycle) == "a -> b -> c -> a"

    def test_disconnected_component_is_searched(self) -> None:
        adjacency = {"a": ["SUCCESS"], "x": ["y"], "y": ["x"]}
        assert [c.path for c in find_cycles(adjacency, ["a"])] == [("x", "y", "x")]

    def test_search_limited_to_start_nodes(self) -> None:
        adjacency = {"a": ["SUCCESS"], "x": ["y"], "y": ["x"]}
        assert find_cycles(adjacency, ["a"], exhaustive=False) == []
        assert [c.path for c in find_cycles(adjacency, ["x"], exhaustive=False)] == [
            ("x", "y", "x")
        ]

    def test_deep_chain_does_not_recurse(self) -> None:
        size = 5000
        adjacency = {f"n{i}": [f"n{i + 1}"] for i in range(size)}
        adjacency[f"n{size}"] = ["n0"]
        cycles = find_cycles(adjacency, ["n0"])
        assert len(cycles) == 1
        assert len(cycles[0].path) == size + 2
        assert max_depth(adjacency, "n0") == size
