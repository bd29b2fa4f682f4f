"""
Bind Command - Bind a rendered SVG to the loaded transition graph.

Parses the image, runs spatial binding and reports which shapes were
matched to nodes, edges and arrow heads.
"""

import json
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from ...config import DAG_DATA_FILE, DAG_SVG_FILE, K_MAX_FILE
from ...core.exceptions import SVGParseError
from ...parsing.svg import parse_svg_file
from ..utils import echo_error, echo_success, echo_warning, format_probability, load_context

console = Console()


@click.command()
@click.argument("svg_file", default=DAG_SVG_FILE, type=click.Path(exists=True, dir_okay=False))
@click.option("-d", "--dataset", "dataset_file", default=DAG_DATA_FILE,
              help="Path to the transition graph JSON")
@click.option("-k", "--capacities", "capacities_file", default=K_MAX_FILE,
              help="Path to the K_max capacity table")
@click.option("--path", "path_ends", nargs=2, type=int, default=None,
              help="Also list the shapes on the most probable path between two ids")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def bind(svg_file: str, dataset_file: str, capacities_file: str,
         path_ends: Optional[tuple], as_json: bool) -> None:
    """
    Match the shapes in SVG_FILE to dataset nodes and edges.
    """
    context = load_context(dataset_file, capacities_file)
    if context is None:
        raise SystemExit(1)

    try:
        shapes = parse_svg_file(svg_file)
    except (SVGParseError, OSError) as e:
        echo_error(f"Failed to parse image: {e}")
        raise SystemExit(1)

    context.load_image(shapes)
    bindings = context.bindings

    highlight = None
    if path_ends:
        result = context.analyzer.most_probable_path(*path_ends)
        if result is not None:
            highlight = {"path": result.path, **bindings.path_shapes(result.path)}

    if as_json:
        click.echo(json.dumps({
            "shapes": {
                "nodes": len(shapes.nodes),
                "edges": len(shapes.edges),
                "arrows": len(shapes.arrows),
            },
            "bindings": bindings.summary(),
            "warnings": [str(w) for w in bindings.warnings],
            "highlight": highlight,
        }))
        return

    summary = bindings.summary()
    echo_success(
        f"Bound {summary['nodes_bound']}/{len(shapes.nodes)} nodes, "
        f"{summary['edges_bound']}/{len(shapes.edges)} edges, "
        f"{summary['arrows_bound']}/{len(shapes.arrows)} arrows"
    )

    table = Table(title="Edge bindings", show_lines=False)
    table.add_column("Shape", justify="right")
    table.add_column("Source", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Arrows")
    for binding in bindings.edge_bindings:
        edge = binding.edge
        arrows = bindings.arrows_for_edge(edge.source, edge.target)
        table.add_row(
            str(binding.shape.index),
            str(edge.source),
            str(edge.target),
            format_probability(edge.weight),
            ", ".join(str(a) for a in arrows) or "-",
        )
    if bindings.edge_bindings:
        console.print(table)

    if highlight is not None:
        click.echo(f"Path {highlight['path']}: node shapes {highlight['nodes']}, "
                   f"edge shapes {highlight['edges']}, arrow shapes {highlight['arrows']}")
    elif path_ends:
        echo_warning(f"No path from {path_ends[0]} to {path_ends[1]}")

    if bindings.warnings:
        echo_warning(f"{len(bindings.warnings)} binding warning(s)")
        for warning in bindings.warnings[:10]:
            click.echo(f"   {warning}")
        if len(bindings.warnings) > 10:
            click.echo(f"   ... and {len(bindings.warnings) - 10} more")
