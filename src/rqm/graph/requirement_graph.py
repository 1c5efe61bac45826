"""Dependency graph over the requirements of one document."""

import logging
from collections import deque
from collections.abc import Callable, Iterator

from rqm.core.errors import (
    CircularReferenceError,
    GraphError,
    InvalidReferenceError,
    RequirementNotFoundError,
)
from rqm.core.models import Requirement, RequirementConfig

logger = logging.getLogger("rqm")

MAX_TRAVERSAL_DEPTH = 100


class RequirementGraph:
    """Directed graph whose nodes are requirement summaries.

    Nodes live in a list and are addressed by integer index; edges point
    from a requirement to each of its children. The graph is a read-only
    snapshot of a :class:`~rqm.core.models.RequirementConfig`: rebuild it
    with :meth:`from_config` after editing the document.
    """

    def __init__(self) -> None:
        self._nodes: list[str] = []
        self._adjacency: list[list[int]] = []
        self._index: dict[str, int] = {}
        self._requirements: dict[str, Requirement] = {}

    @classmethod
    def from_config(cls, config: RequirementConfig) -> "RequirementGraph":
        """Build a graph from a parsed document.

        Every inline requirement becomes a node. Each child entry becomes
        an edge; a reference child must name a requirement defined inline
        somewhere in the document.

        Raises:
            InvalidReferenceError: If a reference names an unknown summary.
                No partial graph is returned.
        """
        graph = cls()
        all_reqs = config.all_requirements()

        for req in all_reqs:
            if req.summary in graph._index:
                logger.debug("Summary '%s' appears more than once; last definition wins", req.summary)
            graph._index[req.summary] = len(graph._nodes)
            graph._nodes.append(req.summary)
            graph._adjacency.append([])
            graph._requirements[req.summary] = req

        for req in all_reqs:
            parent = graph._index[req.summary]
            for child in req.requirements:
                target = graph._index.get(child.summary)
                if target is None:
                    raise InvalidReferenceError(req.summary, child.summary)
                graph._adjacency[parent].append(target)

        logger.debug(
            "Built requirement graph with %d nodes and %d edges",
            len(graph._nodes),
            sum(len(targets) for targets in graph._adjacency),
        )
        return graph

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, summary: object) -> bool:
        return summary in self._index

    def get(self, summary: str) -> Requirement | None:
        """Return the requirement with the given summary, if any."""
        return self._requirements.get(summary)

    def summaries(self) -> list[str]:
        """Return node summaries in document order."""
        return list(self._nodes)

    def edges(self) -> Iterator[tuple[str, str]]:
        """Yield ``(source, target)`` summary pairs for every edge."""
        for source, targets in enumerate(self._adjacency):
            for target in targets:
                yield self._nodes[source], self._nodes[target]

    def _node(self, summary: str) -> int:
        node = self._index.get(summary)
        if node is None:
            raise RequirementNotFoundError(summary)
        return node

    def _requirement_at(self, node: int) -> Requirement | None:
        return self._requirements.get(self._nodes[node])

    def has_cycles(self) -> bool:
        """Return True if the graph contains any directed cycle."""
        WHITE, GRAY, BLACK = 0, 1, 2
        color = [WHITE] * len(self._nodes)

        for start in range(len(self._nodes)):
            if color[start] != WHITE:
                continue
            color[start] = GRAY
            stack: list[tuple[int, int]] = [(start, 0)]
            while stack:
                node, idx = stack[-1]
                targets = self._adjacency[node]
                if idx < len(targets):
                    stack[-1] = (node, idx + 1)
                    target = targets[idx]
                    if color[target] == GRAY:
                        return True
                    if color[target] == WHITE:
                        color[target] = GRAY
                        stack.append((target, 0))
                else:
                    stack.pop()
                    color[node] = BLACK
        return False

    def find_cycles(self) -> list[list[str]]:
        """Report cycles found by a depth-first search from each unvisited node.

        Whenever the search reaches a node already on its current path, the
        path from that node's first occurrence to the current node is
        recorded as one cycle.

        This is a best-effort diagnostic, not an enumeration of every
        elementary cycle: nodes are not re-entered once fully explored, so
        cycles sharing sub-paths with ones already reported can be missed.
        At least one cycle is reported per cyclic region reachable from a
        search root. Use a strongly-connected-components algorithm when a
        complete list is required.

        Returns:
            List of cycles, each an ordered list of summaries. Empty if and
            only if the graph is acyclic.
        """
        if not self.has_cycles():
            return []

        cycles: list[list[str]] = []
        visited: set[int] = set()

        for start in range(len(self._nodes)):
            if start in visited:
                continue

            path: list[int] = [start]
            on_path: set[int] = {start}
            stack: list[tuple[int, int]] = [(start, 0)]

            while stack:
                node, idx = stack[-1]
                targets = self._adjacency[node]
                if idx < len(targets):
                    stack[-1] = (node, idx + 1)
                    target = targets[idx]
                    if target in on_path:
                        cycle_start = path.index(target)
                        cycles.append([self._nodes[n] for n in path[cycle_start:]])
                    elif target not in visited:
                        path.append(target)
                        on_path.add(target)
                        stack.append((target, 0))
                else:
                    stack.pop()
                    path.pop()
                    on_path.discard(node)
                    visited.add(node)

        return cycles

    def traverse(self, start_summary: str, visit: Callable[[Requirement, int], None]) -> None:
        """Walk depth-first from a requirement, calling ``visit(req, depth)``.

        Each node is visited once, in pre-order; nodes seen earlier in the
        same walk are skipped, so cyclic graphs terminate.

        Raises:
            RequirementNotFoundError: If ``start_summary`` is not a node.
            GraphError: If the walk goes deeper than ``MAX_TRAVERSAL_DEPTH``.
        """
        node = self._node(start_summary)
        self._traverse(node, set(), visit, 0)

    def _traverse(
        self,
        node: int,
        visited: set[int],
        visit: Callable[[Requirement, int], None],
        depth: int,
    ) -> None:
        if depth > MAX_TRAVERSAL_DEPTH:
            raise GraphError("Maximum traversal depth exceeded")

        if node in visited:
            return
        visited.add(node)

        req = self._requirement_at(node)
        if req is None:
            return
        visit(req, depth)
        for target in self._adjacency[node]:
            self._traverse(target, visited, visit, depth + 1)

    def topological_sort(self) -> list[Requirement]:
        """Return all requirements so that every parent precedes its children.

        Raises:
            CircularReferenceError: If the graph has a cycle.
            GraphError: If the sort cannot place every node.
        """
        if self.has_cycles():
            raise CircularReferenceError("Cannot perform topological sort on cyclic graph")

        in_degree = [0] * len(self._nodes)
        for targets in self._adjacency:
            for target in targets:
                in_degree[target] += 1

        queue: deque[int] = deque(n for n, degree in enumerate(in_degree) if degree == 0)
        order: list[int] = []
        while queue:
            node = queue.popleft()
            order.append(node)
            for target in self._adjacency[node]:
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    queue.append(target)

        if len(order) != len(self._nodes):
            raise GraphError("Topological sort failed")

        result = []
        for node in order:
            req = self._requirement_at(node)
            if req is not None:
                result.append(req)
        return result

    def dependencies(self, summary: str) -> list[Requirement]:
        """Return the direct children of a requirement.

        Raises:
            RequirementNotFoundError: If ``summary`` is not a node.
        """
        node = self._node(summary)
        result = []
        for target in self._adjacency[node]:
            req = self._requirement_at(target)
            if req is not None:
                result.append(req)
        return result

    def dependents(self, summary: str) -> list[Requirement]:
        """Return the requirements that list this one as a direct child.

        Raises:
            RequirementNotFoundError: If ``summary`` is not a node.
        """
        node = self._node(summary)
        result = []
        for source, targets in enumerate(self._adjacency):
            if node in targets:
                req = self._requirement_at(source)
                if req is not None:
                    result.append(req)
        return result
