"""
Path Command - Most probable path between two nodes.
"""

import json

import click

from ...config import DAG_DATA_FILE, K_MAX_FILE
from ..utils import format_probability, load_context


@click.command()
@click.argument("source", type=int)
@click.argument("target", type=int)
@click.option("-d", "--dataset", "dataset_file", default=DAG_DATA_FILE,
              help="Path to the transition graph JSON")
@click.option("-k", "--capacities", "capacities_file", default=K_MAX_FILE,
              help="Path to the K_max capacity table")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def path(source: int, target: int, dataset_file: str, capacities_file: str,
         as_json: bool) -> None:
    """
    Most probable chain of transitions from SOURCE to TARGET.
    """
    context = load_context(dataset_file, capacities_file)
    if context is None:
        raise SystemExit(1)

    result = context.analyzer.most_probable_path(source, target)

    if as_json:
        click.echo(json.dumps({
            "source": source,
            "target": target,
            "result": result.model_dump() if result else None,
        }))
        return

    if result is None:
        click.echo()
        click.echo(click.style("No path found", fg="yellow") + " between:")
        click.echo(f"  Source: {source}")
        click.echo(f"  Target: {target}")
        return

    index = context.index
    click.echo()
    click.echo(f"🔗 {click.style('Most Probable Path', bold=True)}")
    click.echo("═" * 60)
    click.echo(f"Probability: {click.style(format_probability(result.total_probability), fg='green')}"
               f"  (cost {result.total_cost:.3f}, {result.hops} steps)")
    click.echo()

    for j, node_id in enumerate(result.path):
        connector = "└─" if j == len(result.path) - 1 else "├─"
        address = index.level_and_local_from_global(node_id)
        name = index.cluster_name(address.level, address.local_idx)
        color = "blue" if address.level == 0 else "cyan"
        label = f"{name} @ L{address.level} [{node_id}]"

        weight = ""
        if j > 0:
            edge = context.graph.get_edge(result.path[j - 1], node_id)
            if edge is not None:
                weight = f"  ({format_probability(edge.weight)})"
        click.echo(f"    {connector} {click.style(label, fg=color)}{weight}")
