"""
Index Command - Convert between global ids and (level, local index).
"""

import json
from typing import Optional

import click

from ...config import K_MAX_FILE
from ...core.exceptions import DatasetFormatError, HierarchyIndexError
from ...core.index import HierarchyIndex
from ...parsing.dataset import load_capacities
from ..utils import echo_error, echo_info, echo_success


@click.command()
@click.argument("global_id", type=int, required=False)
@click.option("-l", "--level", type=int, default=None, help="Level of the node (with --local)")
@click.option("-i", "--local", "local_idx", type=int, default=None, help="1-based local index within the level")
@click.option("-k", "--capacities", "capacities_file", default=K_MAX_FILE,
              type=click.Path(exists=True, dir_okay=False), help="Path to the K_max capacity table")
@click.option("--audit", is_flag=True, help="Check the round trip of every id in the capacity table")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def index(global_id: Optional[int], level: Optional[int], local_idx: Optional[int],
          capacities_file: str, audit: bool, as_json: bool) -> None:
    """
    Resolve a node address.

    Pass a GLOBAL_ID to get its level and local index, or --level and
    --local to get the global id. --audit checks the whole table.
    """
    try:
        hierarchy = HierarchyIndex(load_capacities(capacities_file))
    except DatasetFormatError as e:
        echo_error(str(e))
        raise SystemExit(1)

    if audit:
        _audit(hierarchy, as_json)
        return

    try:
        if global_id is not None:
            address = hierarchy.level_and_local_from_global(global_id)
            level, local_idx = address.level, address.local_idx
        elif level is not None and local_idx is not None:
            global_id = hierarchy.global_index_from_level(level, local_idx)
        else:
            echo_error("Provide a GLOBAL_ID, or both --level and --local")
            raise SystemExit(2)
    except HierarchyIndexError as e:
        echo_error(str(e))
        raise SystemExit(1)

    record = {
        "global_id": global_id,
        "level": level,
        "local_idx": local_idx,
        "level_name": hierarchy.level_name(level),
        "cluster_name": hierarchy.cluster_name(level, local_idx),
        "media": hierarchy.media_for(global_id),
    }

    if as_json:
        click.echo(json.dumps(record))
        return

    click.echo(f"Node {click.style(str(global_id), fg='cyan', bold=True)}: "
               f"{record['cluster_name']} ({record['level_name']})")
    echo_info(f"level={level} local_idx={local_idx}")
    echo_info(f"media: {record['media']}")


def _audit(hierarchy: HierarchyIndex, as_json: bool) -> None:
    failures = {
        level.index: hierarchy.audit_level(level.index) for level in hierarchy.levels
    }
    failures = {level: ids for level, ids in failures.items() if ids}

    if as_json:
        click.echo(json.dumps({"summary": hierarchy.summary(), "failures": failures}))
    elif failures:
        for level, ids in failures.items():
            echo_error(f"Level {level}: round trip fails for {ids}")
    else:
        echo_success(f"All {hierarchy.total_nodes} ids round-trip across {hierarchy.num_levels} levels")

    if failures:
        raise SystemExit(1)
