"""
Flow Graph - Compiled view of a flow's nodes and edges.

Computes a topological execution order and answers "which nodes run after
this one", including the branch selection of condition nodes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .errors import FlowValidationError
from .models import FlowDefinition, FlowEdge, FlowNode


logger = logging.getLogger(__name__)


def handle_for(condition_result: Any) -> str:
    """Edge handle a condition result selects ('true'/'false' for booleans)."""
    if isinstance(condition_result, bool):
        return "true" if condition_result else "false"
    return str(condition_result)


class FlowGraph:
    """
    Compiled flow ready for execution.

    Contains:
    - Nodes by id
    - Outgoing / incoming edges per node
    - Topological order (Kahn's algorithm, ties broken by node order)
    """

    def __init__(self, flow: FlowDefinition):
        """
        Compile flow into a graph.

        Raises:
            FlowValidationError: On duplicate ids, dangling edges or cycles
        """
        self.flow_id = flow.id or "unnamed"
        self._nodes: Dict[str, FlowNode] = {}
        self._position: Dict[str, int] = {}
        for index, node in enumerate(flow.nodes):
            if node.id in self._nodes:
                raise FlowValidationError(f"Duplicate node id: {node.id}")
            self._nodes[node.id] = node
            self._position[node.id] = index

        self._outgoing: Dict[str, List[FlowEdge]] = {node_id: [] for node_id in self._nodes}
        self._incoming: Dict[str, List[FlowEdge]] = {node_id: [] for node_id in self._nodes}
        for edge in flow.edges:
            if edge.source not in self._nodes or edge.target not in self._nodes:
                raise FlowValidationError(
                    f"Edge {edge.source} -> {edge.target} references an unknown node"
                )
            self._outgoing[edge.source].append(edge)
            self._incoming[edge.target].append(edge)

        self._execution_order = self._compute_execution_order()

    @classmethod
    def compile(cls, flow: FlowDefinition) -> "FlowGraph":
        return cls(flow)

    def _compute_execution_order(self) -> List[str]:
        """Kahn's algorithm with deterministic ordering."""
        in_degree = {node_id: len(edges) for node_id, edges in self._incoming.items()}
        queue = [node_id for node_id, degree in in_degree.items() if degree == 0]
        order: List[str] = []

        while queue:
            queue.sort(key=self._position.__getitem__)
            node_id = queue.pop(0)
            order.append(node_id)
            for edge in self._outgoing[node_id]:
                in_degree[edge.target] -= 1
                if in_degree[edge.target] == 0:
                    queue.append(edge.target)

        if len(order) != len(self._nodes):
            remaining = sorted(set(self._nodes) - set(order), key=self._position.__getitem__)
            raise FlowValidationError(f"Flow has cycles involving: {', '.join(remaining)}")

        return order

    @property
    def execution_order(self) -> List[str]:
        """Node ids in execution order."""
        return self._execution_order.copy()

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        return self._nodes.get(node_id)

    def entry_nodes(self) -> List[str]:
        """Nodes with no incoming edges, in execution order."""
        return [node_id for node_id in self._execution_order if not self._incoming[node_id]]

    def next_nodes(self, node_id: str, condition_result: Any = None) -> List[str]:
        """
        Targets of a node's outgoing edges.

        With a condition result, only edges without a handle or with the
        matching handle are followed.
        """
        edges = self._outgoing.get(node_id, [])
        if condition_result is None:
            return [edge.target for edge in edges]

        wanted = handle_for(condition_result)
        return [
            edge.target
            for edge in edges
            if edge.source_handle is None or edge.source_handle == wanted
        ]

    def __len__(self) -> int:
        return len(self._nodes)


__all__ = [
    "FlowGraph",
    "handle_for",
]
