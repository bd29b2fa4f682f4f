"""
SVG shape extraction.

The rendered transition graph carries no element ids, so shapes are told
apart by their drawing attributes:

- nodes:  <path fill-rule="nonzero" stroke-width="1">   closed glyphs
- edges:  <path fill="none">                           "M x1 y1 L x2 y2" segments
- arrows: <path fill-rule="nonzero" fill="...">        filled heads, stroke width != 1

Each list keeps document (scan) order, which the spatial binder relies on.
"""

import logging
import re
import xml.etree.ElementTree as ElementTree
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

from ..core.exceptions import SVGParseError
from ..core.types import ArrowShape, EdgeShape, NodeShape, Point, ShapeSet

logger = logging.getLogger(__name__)

_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
_COORD_PAIR = re.compile(rf"({_NUMBER})[\s,]+({_NUMBER})")
_SEGMENT = re.compile(
    rf"^\s*M\s*({_NUMBER})[\s,]+({_NUMBER})\s*L\s*({_NUMBER})[\s,]+({_NUMBER})"
)


def extract_node_center(path_data: Optional[str]) -> Optional[Point]:
    """
    Centre of a node glyph: the midpoint of the bounding box of every
    coordinate pair in the path, whatever curve commands draw it.
    """
    if not path_data:
        return None

    xs, ys = [], []
    for match in _COORD_PAIR.finditer(path_data):
        xs.append(float(match.group(1)))
        ys.append(float(match.group(2)))

    if not xs:
        return None
    return Point(x=(min(xs) + max(xs)) / 2, y=(min(ys) + max(ys)) / 2)


def extract_edge_coordinates(path_data: Optional[str]) -> Optional[Tuple[Point, Point]]:
    """Start and end of a `M x1 y1 L x2 y2` segment."""
    if not path_data:
        return None
    match = _SEGMENT.match(path_data)
    if not match:
        return None
    x1, y1, x2, y2 = (float(g) for g in match.groups())
    return Point(x=x1, y=y1), Point(x=x2, y=y2)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _iter_paths(root: ElementTree.Element) -> Iterator[ElementTree.Element]:
    for element in root.iter():
        if _local_name(element.tag) == "path":
            yield element


def _is_node(attrs) -> bool:
    return attrs.get("fill-rule") == "nonzero" and attrs.get("stroke-width") == "1"


def _is_edge(attrs) -> bool:
    return attrs.get("fill") == "none"


def _is_arrow(attrs) -> bool:
    fill = attrs.get("fill")
    return (
        attrs.get("fill-rule") == "nonzero"
        and fill is not None
        and fill != "none"
        and attrs.get("stroke-width") != "1"
    )


def _advance(counters, kind: str) -> int:
    position = counters[kind]
    counters[kind] += 1
    return position


def parse_svg(text: Union[str, bytes]) -> ShapeSet:
    """Classify every path of an SVG document into node, edge and arrow shapes."""
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError as e:
        raise SVGParseError(f"SVG file contains parsing errors: {e}") from e

    if _local_name(root.tag) != "svg":
        raise SVGParseError("Loaded content is not a valid SVG")

    shapes = ShapeSet()
    unparsed = 0
    # Positions count every classified path, so an unreadable glyph does not
    # shift the scan order of the glyphs after it.
    seen = {"node": 0, "edge": 0, "arrow": 0}

    for element in _iter_paths(root):
        attrs = element.attrib
        data = attrs.get("d", "")

        if _is_node(attrs):
            position = _advance(seen, "node")
            center = extract_node_center(data)
            if center is None:
                unparsed += 1
                continue
            shapes.nodes.append(NodeShape(index=position, center=center, path_data=data))
        elif _is_edge(attrs):
            position = _advance(seen, "edge")
            coords = extract_edge_coordinates(data)
            if coords is None:
                unparsed += 1
                continue
            start, end = coords
            shapes.edges.append(EdgeShape(
                index=position, start=start, end=end,
                path_data=data, stroke=attrs.get("stroke"),
            ))
        elif _is_arrow(attrs):
            position = _advance(seen, "arrow")
            center = extract_node_center(data)
            if center is None:
                unparsed += 1
                continue
            shapes.arrows.append(ArrowShape(
                index=position, center=center, path_data=data, fill=attrs.get("fill"),
            ))

    if unparsed:
        logger.warning(f"{unparsed} path(s) matched a shape class but had unreadable geometry")
    logger.debug(
        f"Extracted {len(shapes.nodes)} nodes, {len(shapes.edges)} edges, {len(shapes.arrows)} arrows"
    )
    return shapes


def parse_svg_file(path: Union[str, Path]) -> ShapeSet:
    return parse_svg(Path(path).read_bytes())
