"""
Logging setup for command line use.

Library modules only create `logging.getLogger(__name__)` loggers; this is
the one place that attaches a handler.
"""

import logging


def setup_logging(verbose: bool = False) -> None:
    """
    Configure the root handler and the `ensodag` logger level.

    Consistency and binding warnings are logged at WARNING, so they only
    show with `verbose`; errors always show.
    """
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="[%X]",
    )
    logging.getLogger("ensodag").setLevel(logging.INFO if verbose else logging.ERROR)
