"""
Build execution orders for graph snapshots.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .context import CancellationToken, check_cancelled
from .results import ExecutionOrderResult
from .schema import Graph
from .topology import GraphTopology

logger = logging.getLogger(__name__)


class ExecutionPlanner:
    """Turns a graph into a topological order with parallel execution layers."""

    def plan(
        self,
        graph: Graph,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ExecutionOrderResult:
        topology = GraphTopology(graph)
        position = {node_id: index for index, node_id in enumerate(topology.node_ids)}
        indegree: Dict[str, int] = {
            node_id: topology.in_degree(node_id) for node_id in topology.node_ids
        }

        ready = [node_id for node_id in topology.node_ids if indegree[node_id] == 0]
        order: List[str] = []
        groups: List[tuple] = []

        while ready:
            groups.append(tuple(ready))
            order.extend(ready)
            promoted = []
            for node_id in ready:
                check_cancelled(cancel_token)
                for edge in topology.outgoing[node_id]:
                    indegree[edge.target_node_id] -= 1
                    if indegree[edge.target_node_id] == 0:
                        promoted.append(edge.target_node_id)
            ready = sorted(promoted, key=position.__getitem__)

        has_cycles = len(order) != len(topology.node_ids)
        if has_cycles:
            blocked = [node_id for node_id in topology.node_ids if indegree[node_id] > 0]
            logger.debug("Execution order blocked by cycles; unscheduled nodes: %s", blocked)

        return ExecutionOrderResult(
            order=tuple(order),
            parallel_groups=tuple(groups),
            has_cycles=has_cycles,
        )
