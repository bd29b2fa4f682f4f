"""
Summary Command - Dataset overview.
"""

import json

import click
from rich.console import Console
from rich.table import Table

from ...config import DAG_DATA_FILE, K_MAX_FILE
from ..utils import echo_success, echo_warning, load_context

console = Console()


@click.command()
@click.option("-d", "--dataset", "dataset_file", default=DAG_DATA_FILE,
              help="Path to the transition graph JSON")
@click.option("-k", "--capacities", "capacities_file", default=K_MAX_FILE,
              help="Path to the K_max capacity table")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def summary(dataset_file: str, capacities_file: str, as_json: bool) -> None:
    """
    Show level sizes, graph statistics and consistency issues.
    """
    context = load_context(dataset_file, capacities_file)
    if context is None:
        raise SystemExit(1)

    index = context.index
    stats = context.graph.get_stats()
    issues = context.issues

    if as_json:
        click.echo(json.dumps({
            "index": index.summary(),
            "graph": stats,
            "acyclic": context.analyzer.is_acyclic,
            "issues": [{"kind": str(i.kind), "message": i.message} for i in issues],
        }))
        return

    table = Table(title="Levels")
    table.add_column("Level", justify="right")
    table.add_column("Name")
    table.add_column("Capacity", justify="right")
    table.add_column("Loaded", justify="right")
    table.add_column("Global ids")
    for level in index.levels:
        ids = index.global_indices_for_level(level.index)
        table.add_row(
            str(level.index),
            index.level_name(level.index),
            str(level.capacity),
            str(stats["nodes_by_level"].get(level.index, 0)),
            f"{ids[0]}-{ids[-1]}",
        )
    console.print(table)

    click.echo(f"Nodes: {stats['total_nodes']}  Edges: {stats['total_edges']}  "
               f"Orphans: {stats['orphans']}")
    for edge_type, count in sorted(stats["edges_by_type"].items()):
        click.echo(f"   {edge_type}: {count}")

    if context.analyzer.is_acyclic and not issues:
        echo_success("Dataset is consistent")
        return

    echo_warning(f"{len(issues)} issue(s)")
    for issue in issues:
        click.echo(f"   {issue}")
