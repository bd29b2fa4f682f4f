"""
Shared fixtures: a three-level transition graph and a matching rendered image.

    level 2:          6
                    /   \\
    level 1:       4     5
                  / \\   / \\
    level 0:     1   2     3

Edges: 6->4 0.6, 6->5 0.4, 4->1 0.7, 4->2 0.3, 5->2 0.5, 5->3 0.5
"""

import json

import pytest

from ensodag.core.index import HierarchyIndex
from ensodag.core.types import ArrowShape, EdgeShape, NodeShape, Point, ShapeSet
from ensodag.parsing.dataset import DatasetParser

CAPACITIES = [3, 2, 1]

NODE_CENTERS = {
    1: (0.0, 200.0),
    2: (100.0, 200.0),
    3: (200.0, 200.0),
    4: (50.0, 100.0),
    5: (150.0, 100.0),
    6: (100.0, 0.0),
}

# (source, target, weight, start, end); segments stop short of the node centres
EDGES = [
    (6, 4, 0.6, (100.0, 12.0), (58.0, 88.0)),
    (6, 5, 0.4, (100.0, 12.0), (142.0, 88.0)),
    (4, 1, 0.7, (50.0, 112.0), (8.0, 188.0)),
    (4, 2, 0.3, (50.0, 112.0), (92.0, 188.0)),
    (5, 2, 0.5, (150.0, 112.0), (108.0, 188.0)),
    (5, 3, 0.5, (150.0, 112.0), (192.0, 188.0)),
]

LOCAL = {1: (0, 1), 2: (0, 2), 3: (0, 3), 4: (1, 1), 5: (1, 2), 6: (2, 1)}

DATES = {
    1: ["1988-11", "1999-01"],
    2: ["1990-06"],
    3: ["1997-12"],
}


def _node_record(node_id):
    level, local_idx = LOCAL[node_id]
    record = {
        "id": node_id,
        "level": level,
        "local_idx": local_idx,
        "ev": 0.1 * node_id,
        "dates": DATES.get(node_id, []),
    }
    if level == 0:
        record["lambda"] = [0.2, 0.3, 0.5]
    return record


@pytest.fixture
def capacities():
    return list(CAPACITIES)


@pytest.fixture
def dataset_dict():
    return {
        "graph": {
            "nodes": [_node_record(node_id) for node_id in sorted(LOCAL)],
            "links": [
                {"source": s, "target": t, "weight": w, "ci": [max(0.0, w - 0.1), min(1.0, w + 0.1)]}
                for s, t, w, _, _ in EDGES
            ],
        }
    }


@pytest.fixture
def index(capacities):
    return HierarchyIndex(capacities)


@pytest.fixture
def parse_result(capacities, dataset_dict):
    return DatasetParser(capacities).parse(dataset_dict)


@pytest.fixture
def graph(parse_result):
    return parse_result.graph


@pytest.fixture
def dataset_files(tmp_path, capacities, dataset_dict):
    """Dataset and capacity table written to disk; returns (dataset_path, capacities_path)."""
    dataset_path = tmp_path / "vertical_transition_graph.json"
    capacities_path = tmp_path / "K_max.json"
    dataset_path.write_text(json.dumps(dataset_dict))
    capacities_path.write_text(json.dumps(capacities))
    return dataset_path, capacities_path


def _square(cx, cy, half=10):
    return (
        f"M {cx - half} {cy - half} L {cx + half} {cy - half} "
        f"L {cx + half} {cy + half} L {cx - half} {cy + half} Z"
    )


def _triangle(cx, cy, half=3):
    return f"M {cx - half} {cy - half} L {cx + half} {cy - half} L {cx} {cy + half} Z"


@pytest.fixture
def scenario_shapes():
    """The rendered image as shapes; node glyphs drawn in ascending id order."""
    nodes = [
        NodeShape(index=i, center=Point(x=x, y=y), path_data=_square(x, y))
        for i, (x, y) in enumerate(NODE_CENTERS[n] for n in sorted(NODE_CENTERS))
    ]
    edges = [
        EdgeShape(index=i, start=Point(x=start[0], y=start[1]), end=Point(x=end[0], y=end[1]))
        for i, (_, _, _, start, end) in enumerate(EDGES)
    ]
    arrows = [
        ArrowShape(index=i, center=Point(x=end[0], y=end[1]), fill="#333")
        for i, (_, _, _, _, end) in enumerate(EDGES)
    ]
    return ShapeSet(nodes=nodes, edges=edges, arrows=arrows)


@pytest.fixture
def svg_text():
    """The same image as SVG markup, with shape classes interleaved as a renderer emits them."""
    parts = ['<svg xmlns="http://www.w3.org/2000/svg" width="300" height="260">', "<g>"]
    for node_id in sorted(NODE_CENTERS):
        x, y = NODE_CENTERS[node_id]
        parts.append(
            f'<path d="{_square(x, y)}" fill="#ccc" fill-rule="nonzero" '
            f'stroke="#000" stroke-width="1"/>'
        )
    for _, _, _, start, end in EDGES:
        parts.append(
            f'<path d="M {start[0]} {start[1]} L {end[0]} {end[1]}" fill="none" stroke="#999"/>'
        )
        parts.append(
            f'<path d="{_triangle(*end)}" fill="#333" fill-rule="nonzero" stroke-width="0"/>'
        )
    parts.append("<text x='0' y='250'>Lead time</text>")
    parts.extend(["</g>", "</svg>"])
    return "\n".join(parts)
