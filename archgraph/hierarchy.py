"""Dependency levels for hierarchical layout.

``level(node) = 1 + max(level(dep))`` over the node's internal
dependencies, so leaf modules sit at level 1.  The traversal is iterative:
an explicit stack holds at most one frame per node, and each node is marked
while it is being computed.  A dependency reached while still marked closes
an import cycle; it contributes its provisional level instead of being
entered again.  That keeps cycles finite at the cost of under-counting the
chain depth for the node that closes the cycle.  Which node that is depends
only on id order.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Set, Tuple

from .models import EdgeType, GraphEdge

_LEVEL_EDGE_TYPES = (EdgeType.IMPORT, EdgeType.DEPENDENCY)


class HierarchyBuilder:
    def __init__(self, node_ids: Iterable[str], edges: Iterable[GraphEdge]) -> None:
        self._adjacency: Dict[str, List[str]] = {node_id: [] for node_id in sorted(node_ids)}
        for edge in edges:
            if edge.type not in _LEVEL_EDGE_TYPES:
                continue
            deps = self._adjacency.get(edge.source)
            if deps is None or edge.target not in self._adjacency:
                continue
            if edge.target not in deps:
                deps.append(edge.target)

    def build(self) -> Dict[str, int]:
        levels: Dict[str, int] = {}
        provisional: Dict[str, int] = {}
        visiting: Set[str] = set()

        for root in self._adjacency:
            if root in levels:
                continue
            stack: List[Tuple[str, int]] = [(root, 0)]
            visiting.add(root)
            provisional[root] = 1

            while stack:
                node_id, index = stack[-1]
                deps = self._adjacency[node_id]

                if index < len(deps):
                    stack[-1] = (node_id, index + 1)
                    dep = deps[index]
                    if dep in levels:
                        provisional[node_id] = max(provisional[node_id], levels[dep] + 1)
                    elif dep in visiting:
                        # cycle
                        provisional[node_id] = max(provisional[node_id], provisional[dep] + 1)
                    else:
                        visiting.add(dep)
                        provisional[dep] = 1
                        stack.append((dep, 0))
                    continue

                stack.pop()
                visiting.discard(node_id)
                levels[node_id] = provisional.pop(node_id)
                if stack:
                    parent = stack[-1][0]
                    provisional[parent] = max(provisional[parent], levels[node_id] + 1)

        return levels


def calculate_levels(node_ids: Iterable[str], edges: Iterable[GraphEdge]) -> Dict[str, int]:
    return HierarchyBuilder(node_ids, edges).build()
