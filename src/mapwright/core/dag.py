# src/mapwright/core/dag.py
"""DAG view over a mapping graph snapshot.

Uses NetworkX for graph operations:
- Acyclicity checks and cycle reporting
- Topological ordering
- Indexed incoming-edge lookup for the resolver and compiler

Edges whose endpoints are not in the node set are kept out of the NetworkX
graph and reported by ``dangling_edges()``; they are dead, not fatal.
"""

from __future__ import annotations

from collections import Counter, defaultdict

import networkx as nx
from networkx import MultiDiGraph

from mapwright.contracts.errors import GraphValidationError
from mapwright.contracts.graph import Edge, MappingGraph, Node, SourceNode, TargetNode
from mapwright.contracts.schema import duplicate_field_ids


class MappingDAG:
    """Read-only, indexed view of one MappingGraph snapshot.

    Uses MultiDiGraph because two nodes may be joined by several edges
    (e.g. one Source feeding two rules of the same Coalesce).
    """

    def __init__(self, graph: MappingGraph) -> None:
        self._snapshot = graph
        self._graph: MultiDiGraph[str] = nx.MultiDiGraph()
        self._nodes: dict[str, Node] = {}
        self._incoming: dict[str, list[Edge]] = defaultdict(list)
        self._dangling: list[Edge] = []

        for node in graph.nodes:
            self._nodes[node.id] = node
            self._graph.add_node(node.id, kind=node.kind)

        for edge in graph.edges:
            if edge.source not in self._nodes or edge.target not in self._nodes:
                self._dangling.append(edge)
                continue
            self._graph.add_edge(edge.source, edge.target, key=edge.id)
            self._incoming[edge.target].append(edge)

    @property
    def snapshot(self) -> MappingGraph:
        return self._snapshot

    @property
    def node_count(self) -> int:
        """Number of nodes in the graph."""
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        """Number of live edges (both endpoints present)."""
        return self._graph.number_of_edges()

    def has_node(self, node_id: str | None) -> bool:
        return node_id is not None and node_id in self._nodes

    def node(self, node_id: str | None) -> Node | None:
        if node_id is None:
            return None
        return self._nodes.get(node_id)

    def incoming(self, node_id: str, handle: str | None = None) -> list[Edge]:
        """Live edges into ``node_id`` in snapshot order, optionally for one handle."""
        edges = self._incoming.get(node_id, [])
        if handle is None:
            return list(edges)
        return [edge for edge in edges if edge.target_handle == handle]

    def first_incoming(self, node_id: str) -> Edge | None:
        """The edge feeding a single-input node (first in snapshot order)."""
        edges = self._incoming.get(node_id)
        return edges[0] if edges else None

    def dangling_edges(self) -> list[Edge]:
        return list(self._dangling)

    def is_acyclic(self) -> bool:
        """Check if the graph is acyclic (a valid DAG)."""
        return nx.is_directed_acyclic_graph(self._graph)

    def find_cycle(self) -> list[str]:
        """Node ids along one cycle, or an empty list for a DAG."""
        try:
            cycle = nx.find_cycle(self._graph)
        except nx.NetworkXNoCycle:
            return []
        # MultiDiGraph returns (u, v, key) tuples
        return [str(edge[0]) for edge in cycle]

    def topological_order(self) -> list[str]:
        """Return node ids in dependency order.

        Raises:
            GraphValidationError: If graph has cycles
        """
        try:
            return list(nx.topological_sort(self._graph))
        except nx.NetworkXUnfeasible as e:
            raise GraphValidationError(f"Cannot sort graph: {e}") from e

    def validate(self) -> None:
        """Strict structural validation.

        Validates:
        1. Graph is acyclic
        2. Node ids are unique
        3. Every edge references nodes present in the graph
        4. Field ids are unique within each Source and Target tree

        Resolution does not call this; it tolerates all four. Use it where a
        caller wants to refuse broken graphs (CLI ``validate``, pre-save checks).

        Raises:
            GraphValidationError: If validation fails
        """
        cycle = self.find_cycle()
        if cycle:
            raise GraphValidationError(f"Graph contains a cycle: {' -> '.join(cycle)}")

        if len(self._nodes) != len(self._snapshot.nodes):
            counts = Counter(node.id for node in self._snapshot.nodes)
            duplicates = sorted(node_id for node_id, count in counts.items() if count > 1)
            raise GraphValidationError(f"Duplicate node ids: {', '.join(duplicates)}")

        if self._dangling:
            details = [f"{edge.id} ({edge.source} -> {edge.target})" for edge in self._dangling]
            raise GraphValidationError(
                f"{len(self._dangling)} edge(s) reference missing nodes:\n  {', '.join(details)}"
            )

        problems = [
            f"{node.id}: {', '.join(repeated)}"
            for node in self._snapshot.nodes
            if isinstance(node, SourceNode | TargetNode) and (repeated := duplicate_field_ids(node.fields))
        ]
        if problems:
            raise GraphValidationError(f"Duplicate field ids within a node:\n  {'; '.join(problems)}")
