"""Graph analysis shared by the workflow validators.

Both validator front ends (the declarative configuration and the live
diagram) reduce their input to an adjacency map and use the helpers here:

- build_adjacency: ordered, de-duplicated successor lists
- workflow_transitions: (from, to) pairs of a workflow, including
  alternative targets of failure policies
- reachable_from: breadth-first reachability
- find_cycles: every back edge found by an iterative depth-first search
- max_depth: longest shortest-path distance from a start node

Guards never affect adjacency: a guarded edge is still a possible
transition.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass

from stepflow.dsl.serialization.schema import WorkflowDef

__all__ = [
    "Adjacency",
    "Cycle",
    "build_adjacency",
    "workflow_transitions",
    "reachable_from",
    "find_cycles",
    "max_depth",
]

Adjacency = dict[str, list[str]]

_WHITE, _GRAY, _BLACK = 0, 1, 2


@dataclass(frozen=True, slots=True)
class Cycle:
    """A cycle closed by one back edge.

    Fields:
        path: Nodes along the cycle, first node repeated at the end
            (``("A", "B", "C", "A")``)
    """

    path: tuple[str, ...]

    @property
    def back_edge(self) -> tuple[str, str]:
        """The edge that closes the cycle."""
        return self.path[-2], self.path[-1]

    def __str__(self) -> str:
        return " -> ".join(self.path)


def build_adjacency(transitions: Iterable[tuple[str, str]]) -> Adjacency:
    """Build successor lists, keeping first-seen order and dropping repeats.

    Example:
        >>> build_adjacency([("A", "B"), ("A", "C"), ("A", "B")])
        {'A': ['B', 'C']}
    """
    adjacency: Adjacency = {}
    for source, target in transitions:
        successors = adjacency.setdefault(source, [])
        if target not in successors:
            successors.append(target)
    return adjacency


def workflow_transitions(workflow: WorkflowDef) -> list[tuple[str, str]]:
    """Return every possible transition of a workflow.

    An ALTERNATIVE failure policy is a transition from the edge source to
    its alternative target.
    """
    transitions: list[tuple[str, str]] = []
    for edge in workflow.edges:
        transitions.append((edge.from_, edge.to))
        if edge.on_failure is not None and edge.on_failure.alternative_target:
            transitions.append((edge.from_, edge.on_failure.alternative_target))
    return transitions


def reachable_from(adjacency: Mapping[str, Sequence[str]], start: str) -> list[str]:
    """Nodes reachable from ``start`` (inclusive), in breadth-first order."""
    seen = {start}
    order = [start]
    queue = deque([start])
    while queue:
        node = queue.popleft()
        for successor in adjacency.get(node, ()):
            if successor not in seen:
                seen.add(successor)
                order.append(successor)
                queue.append(successor)
    return order


def find_cycles(
    adjacency: Mapping[str, Sequence[str]],
    start_nodes: Iterable[str] = (),
    *,
    exhaustive: bool = True,
) -> list[Cycle]:
    """Report one cycle per back edge.

    The search is an iterative depth-first traversal with white/gray/black
    coloring, so it runs in time linear in the number of edges and is not
    bounded by the recursion limit. Traversal starts from ``start_nodes``
    in order, then, when ``exhaustive``, from any node of ``adjacency`` not
    yet visited. With ``exhaustive=False`` only cycles reachable from
    ``start_nodes`` are reported.

    Example:
        >>> [c.path for c in find_cycles({"A": ["B"], "B": ["C"], "C": ["A"]}, ["A"])]
        [('A', 'B', 'C', 'A')]
    """
    color: dict[str, int] = {}
    cycles: list[Cycle] = []

    roots = (*start_nodes, *adjacency) if exhaustive else tuple(start_nodes)
    for root in roots:
        if color.get(root, _WHITE) != _WHITE:
            continue

        path = [root]
        position = {root: 0}
        color[root] = _GRAY
        stack: list[tuple[str, Iterator[str]]] = [(root, iter(adjacency.get(root, ())))]

        while stack:
            node, successors = stack[-1]
            for successor in successors:
                state = color.get(successor, _WHITE)
                if state == _WHITE:
                    color[successor] = _GRAY
                    position[successor] = len(path)
                    path.append(successor)
                    stack.append((successor, iter(adjacency.get(successor, ()))))
                    break
                if state == _GRAY:
                    start = position[successor]
                    cycles.append(Cycle(tuple(path[start:]) + (successor,)))
            else:
                color[node] = _BLACK
                del position[node]
                path.pop()
                stack.pop()

    return cycles


def max_depth(adjacency: Mapping[str, Sequence[str]], start: str) -> int:
    """Largest breadth-first level reached from ``start`` (0 for a lone node)."""
    levels = {start: 0}
    queue = deque([start])
    deepest = 0
    while queue:
        node = queue.popleft()
        level = levels[node]
        deepest = max(deepest, level)
        for successor in adjacency.get(node, ()):
            if successor not in levels:
                levels[successor] = level + 1
                queue.append(successor)
    return deepest
