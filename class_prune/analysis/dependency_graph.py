"""Dependency graph builder: merges extraction results, reachability, cycles."""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable

from class_prune.analysis.graph_models import DependencyGraph, TransitiveDeps
from class_prune.models import Unit

logger = logging.getLogger(__name__)


class DependencyGraphBuilder:
    """Build a frozen dependency graph from per-unit reference sets."""

    def build(
        self,
        units: Iterable[Unit],
        references: dict[str, set[str]],
    ) -> DependencyGraph:
        graph = DependencyGraph()

        # Step 1: one node per cataloged unit
        for unit in units:
            graph.nodes[unit.qualified_name] = unit
            graph.forward[unit.qualified_name] = set()

        # Step 2: edges, only into known units
        dropped = 0
        for source, targets in references.items():
            if source not in graph.nodes:
                logger.debug("References for uncataloged %s ignored", source)
                continue
            for target in targets:
                if target in graph.nodes:
                    graph.add_edge(source, target)
                else:
                    dropped += 1
        if dropped:
            logger.debug("Dropped %d edge(s) to uncataloged units", dropped)

        # Step 3: freeze and transpose
        graph.build_reverse()
        graph.check_transpose()
        logger.info("Dependency graph: %d node(s), %d edge(s)", len(graph.nodes), graph.edge_count)
        return graph

    def resolve_transitive(self, graph: DependencyGraph, roots: Iterable[str]) -> TransitiveDeps:
        """BFS over outgoing edges; every node is visited at most once."""
        start = {r for r in roots if r in graph.forward}
        result = TransitiveDeps(roots=set(start))
        for root in start:
            result.direct.update(graph.forward[root])

        visited: set[str] = set(start)
        queue = deque(sorted(start))
        while queue:
            current = queue.popleft()
            for neighbor in graph.forward.get(current, ()):
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)

        result.all_transitive = visited
        return result

    def detect_cycles(
        self,
        graph: DependencyGraph,
        within: set[str] | None = None,
    ) -> list[list[str]]:
        """Report cycles found by an iterative DFS, optionally limited to ``within``.

        Each back edge yields one cycle, so the list is not exhaustive.
        Self loops are reported as ``[u, u]``.
        """
        allowed = within if within is not None else set(graph.forward)
        cycles: list[list[str]] = []
        visited: set[str] = set()

        for start in sorted(allowed):
            if start in visited:
                continue
            path: list[str] = [start]
            on_path: set[str] = {start}
            visited.add(start)
            stack = [iter(sorted(graph.forward.get(start, ()) & allowed))]

            while stack:
                neighbor = next(stack[-1], None)
                if neighbor is None:
                    stack.pop()
                    on_path.discard(path.pop())
                    continue
                if neighbor in on_path:
                    idx = path.index(neighbor)
                    cycles.append(path[idx:] + [neighbor])
                elif neighbor not in visited:
                    visited.add(neighbor)
                    path.append(neighbor)
                    on_path.add(neighbor)
                    stack.append(iter(sorted(graph.forward.get(neighbor, ()) & allowed)))

        return cycles
