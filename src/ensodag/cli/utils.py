"""
CLI Utilities - Shared helper functions for command line operations.

Formatted printing and dataset loading shared by every command.
"""

import logging
from pathlib import Path
from typing import Optional

import click

from ..core.context import GraphContext
from ..core.exceptions import EnsoDagError
from ..parsing.dataset import load_dataset

logger = logging.getLogger(__name__)


def echo_success(message: str) -> None:
    click.echo(click.style(f"✅ {message}", fg="green"))


def echo_error(message: str) -> None:
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str) -> None:
    click.echo(click.style(f"⚠️  {message}", fg="yellow"))


def echo_info(message: str) -> None:
    click.echo(click.style(f"   {message}", dim=True))


def format_probability(value: float) -> str:
    return f"{value * 100:.1f}%"


def load_context(dataset_file: str, capacities_file: str) -> Optional[GraphContext]:
    """
    Load a dataset and its capacity table into a fresh GraphContext.

    Args:
        dataset_file (str): Path to the transition graph JSON.
        capacities_file (str): Path to the K_max JSON capacity table.

    Returns:
        Optional[GraphContext]: The loaded context, or None if loading failed.
    """
    for label, path in (("Dataset", dataset_file), ("Capacity table", capacities_file)):
        if not Path(path).exists():
            echo_error(f"{label} not found: {path}")
            return None

    try:
        result = load_dataset(dataset_file, capacities_file)
    except (EnsoDagError, ValueError, OSError) as e:
        echo_error(f"Failed to load dataset: {e}")
        return None

    if result.issues:
        echo_warning(f"{len(result.issues)} consistency issue(s) in dataset (run with -v for details)")

    context = GraphContext()
    context.load_dataset(result.graph, result.index, result.issues)
    return context
