"""
Spatial Binding Engine.

Binds the shapes of a rendered transition graph to the dataset's nodes and
edges. The image carries no identifiers, so every binding is inferred from
shape and position:

1. Node glyphs are paired with node ids by scan order (see `bind_nodes`).
2. Each edge segment's endpoints snap to the nearest node centre within
   `match_threshold`.
3. The snapped pair must be a one-level transition (source level = target
   level + 1) and must exist in the dataset.
4. Arrowheads are greedily assigned to the nearest unclaimed edge end point.

Anything that fails a step is left out of the map and reported as a
SpatialBindingWarning; the image still renders, without interactivity for
that element.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from ..config import BindingConfig
from ..core.exceptions import SpatialBindingWarning
from ..core.graph import TransitionGraph
from ..core.types import (
    ArrowShape,
    EdgeShape,
    NodeShape,
    Point,
    ShapeSet,
    TransitionEdge,
    TransitionNode,
)

logger = logging.getLogger(__name__)


class NodeBinding(BaseModel):
    shape: NodeShape
    node: TransitionNode

    @property
    def position(self) -> Point:
        return self.shape.center


class EdgeBinding(BaseModel):
    shape: EdgeShape
    edge: TransitionEdge
    source_distance: float
    target_distance: float


class ArrowBinding(BaseModel):
    arrow: ArrowShape
    edge_shape_index: int
    distance: float


class BindingMap:
    """
    Bidirectional shape <-> entity lookups for one (dataset, image) pair.

    Built in full by SpatialBinder.bind and never mutated afterwards; a new
    image or dataset means a new map.
    """

    def __init__(
        self,
        nodes: Dict[int, NodeBinding],
        edges: Dict[int, EdgeBinding],
        arrows: Dict[int, ArrowBinding],
        warnings: List[SpatialBindingWarning],
    ):
        self._nodes_by_shape = nodes
        self._edges_by_shape = edges
        self._arrows_by_shape = arrows
        self.warnings = warnings

        self._shape_by_node = {b.node.id: idx for idx, b in nodes.items()}
        self._shape_by_edge = {b.edge.key: idx for idx, b in edges.items()}
        self._arrows_by_edge_shape: Dict[int, List[int]] = {}
        for idx, binding in arrows.items():
            self._arrows_by_edge_shape.setdefault(binding.edge_shape_index, []).append(idx)

    # --- nodes ---
    def node_for_shape(self, shape_index: int) -> Optional[TransitionNode]:
        binding = self._nodes_by_shape.get(shape_index)
        return binding.node if binding else None

    def shape_for_node(self, node_id: int) -> Optional[int]:
        return self._shape_by_node.get(node_id)

    def node_position(self, node_id: int) -> Optional[Point]:
        idx = self._shape_by_node.get(node_id)
        return self._nodes_by_shape[idx].position if idx is not None else None

    # --- edges ---
    def edge_for_shape(self, shape_index: int) -> Optional[TransitionEdge]:
        binding = self._edges_by_shape.get(shape_index)
        return binding.edge if binding else None

    def shape_for_edge(self, source_id: int, target_id: int) -> Optional[int]:
        return self._shape_by_edge.get((source_id, target_id))

    # --- arrows ---
    def edge_for_arrow(self, arrow_index: int) -> Optional[TransitionEdge]:
        binding = self._arrows_by_shape.get(arrow_index)
        if binding is None:
            return None
        return self.edge_for_shape(binding.edge_shape_index)

    def arrows_for_edge(self, source_id: int, target_id: int) -> List[int]:
        idx = self.shape_for_edge(source_id, target_id)
        if idx is None:
            return []
        return list(self._arrows_by_edge_shape.get(idx, []))

    def path_shapes(self, path: Sequence[int]) -> Dict[str, List[int]]:
        """Node, edge and arrow shapes to highlight for a node path."""
        nodes = [s for s in (self.shape_for_node(n) for n in path) if s is not None]
        edges, arrows = [], []
        for source, target in zip(path, path[1:]):
            idx = self.shape_for_edge(source, target)
            if idx is not None:
                edges.append(idx)
                arrows.extend(self.arrows_for_edge(source, target))
        return {"nodes": nodes, "edges": edges, "arrows": arrows}

    @property
    def node_bindings(self) -> List[NodeBinding]:
        return [self._nodes_by_shape[k] for k in sorted(self._nodes_by_shape)]

    @property
    def edge_bindings(self) -> List[EdgeBinding]:
        return [self._edges_by_shape[k] for k in sorted(self._edges_by_shape)]

    @property
    def arrow_bindings(self) -> List[ArrowBinding]:
        return [self._arrows_by_shape[k] for k in sorted(self._arrows_by_shape)]

    def summary(self) -> Dict[str, int]:
        return {
            "nodes_bound": len(self._nodes_by_shape),
            "edges_bound": len(self._edges_by_shape),
            "arrows_bound": len(self._arrows_by_shape),
            "warnings": len(self.warnings),
        }


class SpatialBinder:
    """Produces a BindingMap from a shape set and a parsed dataset."""

    def __init__(self, graph: TransitionGraph, config: Optional[BindingConfig] = None):
        self.graph = graph
        self.config = config or BindingConfig()

    def bind(self, shapes: ShapeSet) -> BindingMap:
        warnings: List[SpatialBindingWarning] = []

        nodes = self.bind_nodes(shapes.nodes, warnings)
        edges = self.bind_edges(shapes.edges, list(nodes.values()), warnings)
        arrows = self.bind_arrows(shapes.arrows, edges)

        binding_map = BindingMap(nodes, edges, arrows, warnings)
        logger.debug(
            f"Spatial binding: {len(nodes)}/{len(shapes.nodes)} nodes, "
            f"{len(edges)}/{len(shapes.edges)} edges, {len(arrows)}/{len(shapes.arrows)} arrows"
        )
        return binding_map

    # =========================================================================
    # Nodes
    # =========================================================================

    def bind_nodes(
        self,
        node_shapes: Sequence[NodeShape],
        warnings: Optional[List[SpatialBindingWarning]] = None,
    ) -> Dict[int, NodeBinding]:
        """
        Pair node glyphs with node ids by order.

        Precondition: the renderer draws node glyphs in ascending global id
        order, so the glyph at scan position i is the node with the i-th
        smallest id. Nothing in the image can verify this; if the renderer
        changes its drawing order every node is silently misassigned.
        """
        warnings = warnings if warnings is not None else []
        node_ids = self.graph.node_ids()
        ordered_shapes = sorted(node_shapes, key=lambda s: s.index)

        if len(ordered_shapes) != len(node_ids):
            self._warn(warnings, SpatialBindingWarning(
                f"Image has {len(ordered_shapes)} node shapes but the dataset has "
                f"{len(node_ids)} nodes; binding the first {min(len(ordered_shapes), len(node_ids))}",
                context={"shapes": len(ordered_shapes), "nodes": len(node_ids)},
            ))

        bindings: Dict[int, NodeBinding] = {}
        for shape in ordered_shapes:
            if shape.index >= len(node_ids):
                break
            node = self.graph.get_node(node_ids[shape.index])
            bindings[shape.index] = NodeBinding(shape=shape, node=node)
        return bindings

    @staticmethod
    def find_closest_node(
        point: Point, candidates: Sequence[NodeBinding], threshold: float
    ) -> Optional[Tuple[NodeBinding, float]]:
        """Nearest node centre to `point` within `threshold`; ties go to the earlier candidate."""
        closest: Optional[NodeBinding] = None
        min_distance = float("inf")
        for candidate in candidates:
            distance = point.distance_to(candidate.position)
            if distance < min_distance and distance <= threshold:
                closest = candidate
                min_distance = distance
        if closest is None:
            return None
        return closest, min_distance

    # =========================================================================
    # Edges
    # =========================================================================

    def bind_edges(
        self,
        edge_shapes: Sequence[EdgeShape],
        node_bindings: Sequence[NodeBinding],
        warnings: Optional[List[SpatialBindingWarning]] = None,
    ) -> Dict[int, EdgeBinding]:
        warnings = warnings if warnings is not None else []
        threshold = self.config.match_threshold
        bindings: Dict[int, EdgeBinding] = {}

        for shape in edge_shapes:
            source_match = self.find_closest_node(shape.start, node_bindings, threshold)
            target_match = self.find_closest_node(shape.end, node_bindings, threshold)

            if source_match is None or target_match is None:
                missing = []
                if source_match is None:
                    missing.append(f"source near ({shape.start.x:.1f}, {shape.start.y:.1f})")
                if target_match is None:
                    missing.append(f"target near ({shape.end.x:.1f}, {shape.end.y:.1f})")
                self._warn(warnings, SpatialBindingWarning(
                    f"Edge {shape.index}: no node within {threshold:g} units of " + " and ".join(missing),
                    context={"edge_shape": shape.index},
                ))
                continue

            (source, source_distance), (target, target_distance) = source_match, target_match

            if source.node.id == target.node.id and self.config.reject_self_loops:
                self._warn(warnings, SpatialBindingWarning(
                    f"Edge {shape.index}: both endpoints snap to node {source.node.id}",
                    context={"edge_shape": shape.index, "node": source.node.id},
                ))
                continue

            if source.node.level != target.node.level + 1:
                self._warn(warnings, SpatialBindingWarning(
                    f"Edge {shape.index}: hierarchy violation "
                    f"{source.node.id}(L{source.node.level}) -> {target.node.id}(L{target.node.level})",
                    context={"edge_shape": shape.index, "source": source.node.id, "target": target.node.id},
                ))
                continue

            edge = self.graph.get_edge(source.node.id, target.node.id)
            if edge is None:
                self._warn(warnings, SpatialBindingWarning(
                    f"Edge {shape.index}: no dataset link for {source.node.id} -> {target.node.id}",
                    context={"edge_shape": shape.index, "source": source.node.id, "target": target.node.id},
                ))
                continue

            bindings[shape.index] = EdgeBinding(
                shape=shape,
                edge=edge,
                source_distance=source_distance,
                target_distance=target_distance,
            )

        return bindings

    # =========================================================================
    # Arrows
    # =========================================================================

    def bind_arrows(
        self,
        arrow_shapes: Sequence[ArrowShape],
        edge_bindings: Dict[int, EdgeBinding],
    ) -> Dict[int, ArrowBinding]:
        """Greedy, in scan order: each arrow takes the nearest unclaimed edge end point."""
        threshold = self.config.arrow_threshold
        claimed = set()
        bindings: Dict[int, ArrowBinding] = {}

        for arrow in sorted(arrow_shapes, key=lambda a: a.index):
            best_index: Optional[int] = None
            best_distance = float("inf")
            for edge_index in sorted(edge_bindings):
                if edge_index in claimed:
                    continue
                distance = arrow.center.distance_to(edge_bindings[edge_index].shape.end)
                if distance < best_distance and distance <= threshold:
                    best_index = edge_index
                    best_distance = distance
            if best_index is None:
                logger.debug(f"Arrow {arrow.index}: no unclaimed edge end within {threshold:g} units")
                continue
            claimed.add(best_index)
            bindings[arrow.index] = ArrowBinding(
                arrow=arrow, edge_shape_index=best_index, distance=best_distance
            )

        return bindings

    @staticmethod
    def _warn(warnings: List[SpatialBindingWarning], warning: SpatialBindingWarning) -> None:
        warnings.append(warning)
        logger.warning(str(warning))
