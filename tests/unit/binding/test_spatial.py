"""
Unit tests for the Spatial Binding Engine.
"""

import logging

import pytest

from ensodag.binding.spatial import NodeBinding, SpatialBinder
from ensodag.config import BindingConfig
from ensodag.core.exceptions import IssueKind
from ensodag.core.types import ArrowShape, EdgeShape, NodeShape, Point, ShapeSet, TransitionNode


def edge_shape(index, start, end):
    return EdgeShape(index=index, start=Point(x=start[0], y=start[1]), end=Point(x=end[0], y=end[1]))


@pytest.fixture
def binder(graph):
    return SpatialBinder(graph)


@pytest.fixture
def node_bindings(binder, scenario_shapes):
    return list(binder.bind_nodes(scenario_shapes.nodes).values())


class TestFindClosestNode:

    @pytest.fixture
    def candidates(self):
        return [
            NodeBinding(
                shape=NodeShape(index=0, center=Point(x=0, y=0)),
                node=TransitionNode(id=1, level=0, local_idx=1, ev=0.0),
            ),
            NodeBinding(
                shape=NodeShape(index=1, center=Point(x=100, y=0)),
                node=TransitionNode(id=2, level=0, local_idx=2, ev=0.0),
            ),
        ]

    def test_binds_within_threshold(self, candidates):
        binding, distance = SpatialBinder.find_closest_node(Point(x=2, y=2), candidates, 30)
        assert binding.node.id == 1
        assert distance == pytest.approx(2 ** 1.5)

    def test_fails_beyond_threshold(self, candidates):
        assert SpatialBinder.find_closest_node(Point(x=500, y=500), candidates, 30) is None

    def test_threshold_is_inclusive(self, candidates):
        binding, _ = SpatialBinder.find_closest_node(Point(x=0, y=30), candidates, 30)
        assert binding.node.id == 1

    def test_tie_goes_to_first_candidate(self, candidates):
        binding, _ = SpatialBinder.find_closest_node(Point(x=50, y=0), candidates, 60)
        assert binding.node.id == 1


class TestBindNodes:

    def test_ordering_contract(self, binder, scenario_shapes):
        bindings = binder.bind_nodes(scenario_shapes.nodes)
        assert {i: b.node.id for i, b in bindings.items()} == {0: 1, 1: 2, 2: 3, 3: 4, 4: 5, 5: 6}
        assert bindings[5].position == Point(x=100, y=0)

    def test_count_mismatch_binds_prefix(self, binder, scenario_shapes, caplog):
        warnings = []
        with caplog.at_level(logging.WARNING, logger="ensodag"):
            bindings = binder.bind_nodes(scenario_shapes.nodes[:4], warnings)
        assert sorted(b.node.id for b in bindings.values()) == [1, 2, 3, 4]
        assert len(warnings) == 1
        assert warnings[0].kind == IssueKind.SPATIAL_BINDING
        assert "4 node shapes" in caplog.text

    def test_extra_shapes_are_unbound(self, binder, scenario_shapes):
        extra = NodeShape(index=6, center=Point(x=300, y=300))
        warnings = []
        bindings = binder.bind_nodes([*scenario_shapes.nodes, extra], warnings)
        assert 6 not in bindings
        assert len(warnings) == 1


class TestBindEdges:

    def test_scenario_edges(self, binder, scenario_shapes, node_bindings):
        warnings = []
        bindings = binder.bind_edges(scenario_shapes.edges, node_bindings, warnings)
        assert warnings == []
        assert [bindings[i].edge.key for i in sorted(bindings)] == [
            (6, 4), (6, 5), (4, 1), (4, 2), (5, 2), (5, 3),
        ]
        assert bindings[0].source_distance == pytest.approx(12.0)

    def test_unmatched_endpoint(self, binder, node_bindings):
        warnings = []
        bindings = binder.bind_edges([edge_shape(0, (500, 500), (8, 188))], node_bindings, warnings)
        assert bindings == {}
        assert "no node within 30 units of source" in warnings[0].message

    def test_hierarchy_violation(self, binder, node_bindings):
        warnings = []
        # level 2 -> level 0
        bindings = binder.bind_edges([edge_shape(0, (100, 12), (8, 188))], node_bindings, warnings)
        assert bindings == {}
        assert "hierarchy violation" in warnings[0].message

    def test_upward_edge_is_rejected(self, binder, node_bindings):
        warnings = []
        bindings = binder.bind_edges([edge_shape(0, (8, 188), (50, 112))], node_bindings, warnings)
        assert bindings == {}
        assert "hierarchy violation" in warnings[0].message

    def test_self_loop(self, binder, node_bindings):
        warnings = []
        bindings = binder.bind_edges([edge_shape(0, (45, 95), (55, 105))], node_bindings, warnings)
        assert bindings == {}
        assert "both endpoints snap to node 4" in warnings[0].message

    def test_self_loop_allowed_falls_to_hierarchy_check(self, graph, node_bindings):
        binder = SpatialBinder(graph, BindingConfig(reject_self_loops=False))
        warnings = []
        bindings = binder.bind_edges([edge_shape(0, (45, 95), (55, 105))], node_bindings, warnings)
        assert bindings == {}
        assert "hierarchy violation 4(L1) -> 4(L1)" in warnings[0].message

    def test_edge_missing_from_dataset(self, binder, node_bindings):
        warnings = []
        # 4 -> 3 is a one-level transition, but the dataset has no such link
        bindings = binder.bind_edges([edge_shape(0, (50, 112), (192, 188))], node_bindings, warnings)
        assert bindings == {}
        assert "no dataset link for 4 -> 3" in warnings[0].message

    def test_custom_threshold(self, graph, node_bindings):
        binder = SpatialBinder(graph, BindingConfig(match_threshold=5.0))
        warnings = []
        bindings = binder.bind_edges([edge_shape(0, (100, 12), (58, 88))], node_bindings, warnings)
        assert bindings == {}
        assert len(warnings) == 1


class TestBindArrows:

    def test_arrows_follow_edges(self, binder, scenario_shapes, node_bindings):
        edges = binder.bind_edges(scenario_shapes.edges, node_bindings)
        arrows = binder.bind_arrows(scenario_shapes.arrows, edges)
        assert {i: b.edge_shape_index for i, b in arrows.items()} == {i: i for i in range(6)}

    def test_arrow_claims_once(self, binder, scenario_shapes, node_bindings):
        edges = binder.bind_edges(scenario_shapes.edges[:1], node_bindings)
        arrows = binder.bind_arrows([
            ArrowShape(index=0, center=Point(x=58, y=88)),
            ArrowShape(index=1, center=Point(x=59, y=88)),
        ], edges)
        assert list(arrows) == [0]

    def test_distant_arrow_is_unbound(self, binder, scenario_shapes, node_bindings):
        edges = binder.bind_edges(scenario_shapes.edges, node_bindings)
        arrows = binder.bind_arrows([ArrowShape(index=0, center=Point(x=400, y=400))], edges)
        assert arrows == {}


class TestBindingMap:

    @pytest.fixture
    def binding_map(self, binder, scenario_shapes):
        return binder.bind(scenario_shapes)

    def test_summary(self, binding_map):
        assert binding_map.summary() == {
            "nodes_bound": 6, "edges_bound": 6, "arrows_bound": 6, "warnings": 0,
        }

    def test_bidirectional_lookups(self, binding_map):
        assert binding_map.node_for_shape(3).id == 4
        assert binding_map.shape_for_node(4) == 3
        assert binding_map.node_position(6) == Point(x=100, y=0)
        assert binding_map.edge_for_shape(3).key == (4, 2)
        assert binding_map.shape_for_edge(4, 2) == 3
        assert binding_map.edge_for_arrow(4).key == (5, 2)
        assert binding_map.arrows_for_edge(5, 2) == [4]

    def test_missing_lookups(self, binding_map):
        assert binding_map.node_for_shape(99) is None
        assert binding_map.node_position(99) is None
        assert binding_map.shape_for_edge(4, 3) is None
        assert binding_map.arrows_for_edge(4, 3) == []
        assert binding_map.edge_for_arrow(99) is None

    def test_path_shapes(self, binding_map):
        assert binding_map.path_shapes([6, 4, 1]) == {
            "nodes": [5, 3, 0], "edges": [0, 2], "arrows": [0, 2],
        }

    def test_partial_image(self, binder, scenario_shapes):
        shapes = ShapeSet(
            nodes=scenario_shapes.nodes,
            edges=[*scenario_shapes.edges, edge_shape(6, (600, 600), (700, 700))],
        )
        binding_map = binder.bind(shapes)
        assert binding_map.summary()["edges_bound"] == 6
        assert len(binding_map.warnings) == 1
        assert [b.shape.index for b in binding_map.edge_bindings] == list(range(6))
