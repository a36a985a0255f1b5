"""
Adjacency and cycle search shared by the validator and the planner.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .context import CancellationToken, check_cancelled
from .schema import Edge, Graph

WHITE, GRAY, BLACK = 0, 1, 2


class GraphTopology:
    """Analyzes graph structure and provides connection information."""

    def __init__(self, graph: Graph):
        self.node_ids: List[str] = list(graph.nodes)
        self.outgoing: Dict[str, List[Edge]] = {node_id: [] for node_id in self.node_ids}
        self.incoming: Dict[str, List[Edge]] = {node_id: [] for node_id in self.node_ids}

        for edge in graph.edges.values():
            self.outgoing[edge.source_node_id].append(edge)
            self.incoming[edge.target_node_id].append(edge)

    def in_degree(self, node_id: str) -> int:
        return len(self.incoming[node_id])

    def out_degree(self, node_id: str) -> int:
        return len(self.outgoing[node_id])

    def connections_into(self, node_id: str, port_id: str) -> List[Edge]:
        return [edge for edge in self.incoming[node_id] if edge.target_port_id == port_id]

    def successors(self, node_id: str) -> List[str]:
        """Distinct downstream nodes, in edge declaration order."""
        return list(dict.fromkeys(edge.target_node_id for edge in self.outgoing[node_id]))

    def find_cycles(self, cancel_token: Optional[CancellationToken] = None) -> List[List[str]]:
        """
        Three-color depth-first search over the edge-induced graph.

        Nodes start white, turn gray while on the current DFS path and black
        once fully explored. Reaching a gray node closes a cycle, reported as
        the path slice from that node to the current one. Iterative so very
        deep graphs do not hit the recursion limit.
        """
        color = {node_id: WHITE for node_id in self.node_ids}
        successors = {node_id: self.successors(node_id) for node_id in self.node_ids}
        cycles: List[List[str]] = []

        for root in self.node_ids:
            if color[root] != WHITE:
                continue
            color[root] = GRAY
            path = [root]
            stack = [(root, iter(successors[root]))]

            while stack:
                node_id, children = stack[-1]
                child = next(children, None)
                if child is None:
                    color[node_id] = BLACK
                    stack.pop()
                    path.pop()
                    continue

                check_cancelled(cancel_token)
                if color[child] == WHITE:
                    color[child] = GRAY
                    path.append(child)
                    stack.append((child, iter(successors[child])))
                elif color[child] == GRAY:
                    cycles.append(path[path.index(child):])

        return cycles
