"""
Date highlighting from affiliation matrices.

Each level ships an affiliation matrix: for every date, the probability that
the climate state on that date belongs to each cluster of the level. The
visualisation brightens node glyphs in proportion to that probability.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, model_validator

from ..config import AFFILIATION_FILENAME_TEMPLATE, BRIGHTNESS_SCALE
from ..core.graph import TransitionGraph

logger = logging.getLogger(__name__)


class AffiliationMatrix(BaseModel):
    """Per-date cluster membership probabilities for one level."""
    dates: List[str]
    affiliations: List[List[float]]
    n_clusters: Optional[int] = None

    @model_validator(mode="after")
    def _rows_match_dates(self):
        if len(self.dates) != len(self.affiliations):
            raise ValueError(
                f"Date count ({len(self.dates)}) does not match "
                f"affiliation count ({len(self.affiliations)})"
            )
        return self

    def probability(self, date_index: int, local_idx: int) -> Optional[float]:
        """Membership probability of cluster `local_idx` (1-based) on a date."""
        if not 0 <= date_index < len(self.affiliations):
            return None
        row = self.affiliations[date_index]
        if not 1 <= local_idx <= len(row):
            return None
        value = row[local_idx - 1]
        if value != value:  # NaN
            return None
        return value


def load_affiliation_matrices(directory: Path, levels: int) -> Dict[int, AffiliationMatrix]:
    """
    Load every available level matrix from `directory`.

    Missing or malformed files are logged and skipped; highlighting simply
    stays off for those levels.
    """
    matrices: Dict[int, AffiliationMatrix] = {}
    for level in range(levels):
        path = Path(directory) / AFFILIATION_FILENAME_TEMPLATE.format(level=level)
        if not path.exists():
            logger.debug(f"No affiliation matrix for level {level} at {path}")
            continue
        try:
            matrices[level] = AffiliationMatrix.model_validate(json.loads(path.read_text()))
        except (ValueError, OSError) as e:
            logger.warning(f"Could not load affiliation matrix for level {level}: {e}")
    return matrices


def node_brightness(
    matrices: Mapping[int, AffiliationMatrix],
    graph: TransitionGraph,
    date_index: int,
    scale: float = BRIGHTNESS_SCALE,
) -> Dict[int, float]:
    """Brightness factor `1 + scale * p` for every node with affiliation data on a date."""
    brightness: Dict[int, float] = {}
    for node in graph.iter_nodes():
        matrix = matrices.get(node.level)
        if matrix is None:
            continue
        p = matrix.probability(date_index, node.local_idx)
        if p is None:
            continue
        brightness[node.id] = 1.0 + scale * p
    return brightness
