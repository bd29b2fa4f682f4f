"""
ensodag CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

import click

from ..logging_config import setup_logging
from .commands import bind, index, path, probability, summary


@click.group()
@click.version_option(package_name="ensodag")
@click.option("-v", "--verbose", is_flag=True, help="Log consistency and binding warnings")
def main(verbose: bool):
    """ensodag: ENSO transition graph analytics.

    \b
    Quick Start:
      ensodag index 4
      ensodag probability 6 2
      ensodag path 6 1
      ensodag bind svg_files/vertical_transition_graph.svg
    """
    setup_logging(verbose)


# Register commands
main.add_command(index.index)
main.add_command(probability.probability)
main.add_command(path.path)
main.add_command(bind.bind)
main.add_command(summary.summary)

if __name__ == "__main__":
    main()
