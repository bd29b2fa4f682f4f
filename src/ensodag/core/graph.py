"""
Transition graph storage backed by rustworkx.

It manages:
- The map from global node ids to rustworkx integer indices.
- Type-safe TransitionNode and TransitionEdge payloads.
- Per-level node grouping and per-node edge lookups used by the analytics
  and spatial binding layers.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

import rustworkx as rx

from .types import EdgeType, TransitionEdge, TransitionNode

logger = logging.getLogger(__name__)


class TransitionGraph:
    """
    Directed multi-level transition graph.

    Features:
    - O(1) node lookup via id-to-index map
    - O(1) edge lookup by (source, target)
    - Nodes grouped by level
    """

    def __init__(self):
        self._graph = rx.PyDiGraph(multigraph=False)
        self._id_to_idx: Dict[int, int] = {}
        self._nodes_by_level: Dict[int, Set[int]] = defaultdict(set)
        self._edges: Dict[Tuple[int, int], TransitionEdge] = {}

    def add_node(self, node: TransitionNode) -> None:
        """Add or replace a node."""
        if node.id in self._id_to_idx:
            idx = self._id_to_idx[node.id]
            previous: TransitionNode = self._graph[idx]
            self._nodes_by_level[previous.level].discard(node.id)
            self._graph[idx] = node
        else:
            idx = self._graph.add_node(node)
            self._id_to_idx[node.id] = idx

        self._nodes_by_level[node.level].add(node.id)

    def add_edge(self, edge: TransitionEdge) -> bool:
        """
        Add a directed edge between two existing nodes.

        Returns False (and stores nothing) when either endpoint is unknown.
        A second edge with the same endpoints replaces the first.
        """
        if edge.source not in self._id_to_idx or edge.target not in self._id_to_idx:
            logger.debug(f"Skipping edge {edge.source} -> {edge.target}: missing endpoint")
            return False

        u_idx = self._id_to_idx[edge.source]
        v_idx = self._id_to_idx[edge.target]
        if edge.key in self._edges:
            self._graph.update_edge(u_idx, v_idx, edge)
        else:
            self._graph.add_edge(u_idx, v_idx, edge)
        self._edges[edge.key] = edge
        return True

    def get_node(self, node_id: int) -> Optional[TransitionNode]:
        idx = self._id_to_idx.get(node_id)
        if idx is None:
            return None
        return self._graph[idx]

    def has_node(self, node_id: int) -> bool:
        return node_id in self._id_to_idx

    def get_edge(self, source_id: int, target_id: int) -> Optional[TransitionEdge]:
        return self._edges.get((source_id, target_id))

    def has_edge(self, source_id: int, target_id: int) -> bool:
        return (source_id, target_id) in self._edges

    def edges_from(self, node_id: int) -> List[TransitionEdge]:
        """Outgoing edges of a node, ordered by target id."""
        idx = self._id_to_idx.get(node_id)
        if idx is None:
            return []
        edges = [data for _, _, data in self._graph.out_edges(idx)]
        return sorted(edges, key=lambda e: e.target)

    def edges_to(self, node_id: int) -> List[TransitionEdge]:
        """Incoming edges of a node, ordered by source id."""
        idx = self._id_to_idx.get(node_id)
        if idx is None:
            return []
        edges = [data for _, _, data in self._graph.in_edges(idx)]
        return sorted(edges, key=lambda e: e.source)

    def successors(self, node_id: int) -> List[int]:
        return [e.target for e in self.edges_from(node_id)]

    def nodes_at_level(self, level: int) -> List[TransitionNode]:
        """Nodes of a level in ascending id order."""
        return [self.get_node(nid) for nid in sorted(self._nodes_by_level.get(level, set()))]

    def node_ids(self) -> List[int]:
        return sorted(self._id_to_idx)

    def levels(self) -> List[int]:
        return sorted(level for level, ids in self._nodes_by_level.items() if ids)

    def edge_type(self, edge: TransitionEdge) -> Optional[EdgeType]:
        source = self.get_node(edge.source)
        target = self.get_node(edge.target)
        if source is None or target is None:
            return None
        return EdgeType.classify(source.level, target.level)

    def is_dag_edge(self, edge: TransitionEdge) -> bool:
        return self.edge_type(edge) == EdgeType.DAG_TRANSITION

    def iter_nodes(self) -> Iterator[TransitionNode]:
        """Iterate nodes in ascending global id order."""
        for node_id in self.node_ids():
            yield self.get_node(node_id)

    def iter_edges(self) -> Iterator[TransitionEdge]:
        for key in sorted(self._edges):
            yield self._edges[key]

    @property
    def node_count(self) -> int:
        return self._graph.num_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.num_edges()

    def get_stats(self) -> Dict[str, Any]:
        nodes_by_level = {
            level: len(ids) for level, ids in sorted(self._nodes_by_level.items()) if ids
        }
        edges_by_type: Dict[str, int] = defaultdict(int)
        for edge in self.iter_edges():
            edges_by_type[str(self.edge_type(edge))] += 1

        orphans = len([
            n for n in self._graph.node_indices()
            if self._graph.in_degree(n) == 0 and self._graph.out_degree(n) == 0
        ])

        return {
            "total_nodes": self.node_count,
            "total_edges": self.edge_count,
            "nodes_by_level": nodes_by_level,
            "edges_by_type": dict(edges_by_type),
            "backend": "rustworkx",
            "orphans": orphans,
        }

    def clear(self) -> None:
        self._graph = rx.PyDiGraph(multigraph=False)
        self._id_to_idx.clear()
        self._nodes_by_level.clear()
        self._edges.clear()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.model_dump(by_alias=True) for node in self.iter_nodes()],
            "links": [edge.model_dump() for edge in self.iter_edges()],
            "stats": self.get_stats(),
        }
