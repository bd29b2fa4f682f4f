"""
Probability Command - Cumulative transition probability between two nodes.
"""

import json

import click

from ...config import DAG_DATA_FILE, K_MAX_FILE
from ..utils import echo_error, echo_info, format_probability, load_context


@click.command()
@click.argument("source", type=int)
@click.argument("target", type=int)
@click.option("-d", "--dataset", "dataset_file", default=DAG_DATA_FILE,
              help="Path to the transition graph JSON")
@click.option("-k", "--capacities", "capacities_file", default=K_MAX_FILE,
              help="Path to the K_max capacity table")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def probability(source: int, target: int, dataset_file: str, capacities_file: str,
                as_json: bool) -> None:
    """
    Probability of reaching TARGET from SOURCE over all paths.
    """
    context = load_context(dataset_file, capacities_file)
    if context is None:
        raise SystemExit(1)

    value = context.analyzer.probability(source, target)

    if as_json:
        click.echo(json.dumps({"source": source, "target": target, "probability": value}))
        return

    if value is None:
        echo_error(f"Node id out of range (valid ids: 1-{context.index.total_nodes})")
        raise SystemExit(1)

    index = context.index
    src = index.level_and_local_from_global(source)
    tgt = index.level_and_local_from_global(target)
    click.echo(
        f"P({index.cluster_name(src.level, src.local_idx)} @ L{src.level} -> "
        f"{index.cluster_name(tgt.level, tgt.local_idx)} @ L{tgt.level}) = "
        + click.style(format_probability(value), fg="green", bold=True)
    )
    if value == 0.0:
        echo_info("Target is not reachable from source")
