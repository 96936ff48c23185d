from typing import Any, Dict, List, Sequence

from subflow.workflows.engine.constants import ENTRY_NODE_TYPES, EdgeStatus
from subflow.workflows.engine.definitions import (
    RuntimeEdge,
    RuntimeNode,
    StoreEdge,
    StoreNode,
)


class WorkflowGraph:
    @staticmethod
    def build_adjacency_list(nodes: Sequence[Any], edges: Sequence[Any]) -> Dict[str, List[str]]:
        """Build adjacency list for the graph."""
        adj_list = {node.node_id: [] for node in nodes}
        for edge in edges:
            source = getattr(edge, "source", None)
            target = getattr(edge, "target", None)
            if source and target and source in adj_list:
                adj_list[source].append(target)
        return adj_list

    @staticmethod
    def get_incoming_edges(edges: Sequence[Any], node_id: str) -> List[Any]:
        return [edge for edge in edges if edge.target == node_id]

    @staticmethod
    def get_outgoing_edges(edges: Sequence[Any], node_id: str) -> List[Any]:
        return [edge for edge in edges if edge.source == node_id]

    @staticmethod
    def get_default_entry_node_ids(nodes: Sequence[StoreNode], edges: Sequence[StoreEdge]) -> List[str]:
        """
        Entry nodes of a graph, in node order.

        A node is an entry point when its kind is an explicit entry kind
        (workflow start, system config, plugin input) or when nothing points
        at it.
        """
        incoming_counts = {node.node_id: 0 for node in nodes}
        for edge in edges:
            if edge.target in incoming_counts:
                incoming_counts[edge.target] += 1

        return [
            node.node_id
            for node in nodes
            if node.flow_node_type in ENTRY_NODE_TYPES or incoming_counts[node.node_id] == 0
        ]

    @staticmethod
    def store_nodes_to_runtime_nodes(
        nodes: Sequence[StoreNode], entry_node_ids: Sequence[str]
    ) -> List[RuntimeNode]:
        """Deep copies of ``nodes`` flagged with their entry status."""
        entry_ids = set(entry_node_ids)
        runtime_nodes = []
        for node in nodes:
            data = node.model_copy(deep=True).model_dump()
            data["is_entry"] = node.node_id in entry_ids
            runtime_nodes.append(RuntimeNode.model_validate(data))
        return runtime_nodes

    @staticmethod
    def init_workflow_edge_status(edges: Sequence[StoreEdge]) -> List[RuntimeEdge]:
        """Fresh runtime edges, all waiting."""
        return [
            RuntimeEdge.model_validate({**edge.model_dump(), "status": EdgeStatus.WAITING})
            for edge in edges
        ]

    @staticmethod
    def detect_cycles(nodes: Sequence[Any], edges: Sequence[Any]) -> List[List[str]]:
        """
        Detect cycles in the workflow graph.
        Returns a list of cycles (each cycle is a list of node IDs).
        """
        adj = WorkflowGraph.build_adjacency_list(nodes, edges)
        visited = set()
        recursion_stack = set()
        cycles = []
        path = []

        def dfs(node_id):
            visited.add(node_id)
            recursion_stack.add(node_id)
            path.append(node_id)

            for neighbor in adj.get(node_id, []):
                if neighbor not in visited:
                    dfs(neighbor)
                elif neighbor in recursion_stack:
                    cycle_start_index = path.index(neighbor)
                    cycles.append(path[cycle_start_index:].copy())

            recursion_stack.remove(node_id)
            path.pop()

        for node in nodes:
            if node.node_id not in visited:
                dfs(node.node_id)

        return cycles

    @staticmethod
    def get_execution_order(nodes: Sequence[Any], edges: Sequence[Any]) -> List[Any]:
        """
        Get a topologically sorted list of nodes for execution order.
        Raises ValueError if a cycle is detected.
        """
        cycles = WorkflowGraph.detect_cycles(nodes, edges)
        if cycles:
            raise ValueError(f"Workflow contains cycles: {cycles}")

        adj = WorkflowGraph.build_adjacency_list(nodes, edges)
        visited = set()
        stack = []

        def topological_sort_util(node_id):
            visited.add(node_id)
            for neighbor in adj.get(node_id, []):
                if neighbor not in visited:
                    topological_sort_util(neighbor)
            stack.append(node_id)

        for node in nodes:
            if node.node_id not in visited:
                topological_sort_util(node.node_id)

        # Stack contains nodes in reverse topological order
        node_map = {n.node_id: n for n in nodes}
        return [node_map[nid] for nid in stack[::-1] if nid in node_map]
