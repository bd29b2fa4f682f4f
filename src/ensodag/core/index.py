"""
Hierarchical Index Utility.

Translates between the flat global id space of the transition graph and
(level, local index) addresses, given the per-level capacity table
(`K_max.json`).

Global ids are 1-based and contiguous, ordered first by level and then by
local index within the level:

    capacities [3, 2, 1]  ->  level 0 = {1, 2, 3}, level 1 = {4, 5}, level 2 = {6}
"""

import logging
from bisect import bisect_left
from itertools import accumulate
from typing import Any, Dict, List, Optional, Sequence

from ..config import LEVEL_0_PLACEHOLDER_VIDEO, SPECIAL_CLASSES, VIDEO_FILENAME_TEMPLATE
from .exceptions import HierarchyIndexError
from .types import Level, LevelLocal

logger = logging.getLogger(__name__)


class HierarchyIndex:
    """
    Bijective global id <-> (level, local index) mapping.

    The capacity table is copied at construction; the index never changes
    afterwards, so one instance may be shared by every consumer of a dataset.
    """

    def __init__(self, capacities: Sequence[int]):
        capacities = list(capacities)
        if not capacities:
            raise ValueError("capacity table must be a non-empty list")
        for level, capacity in enumerate(capacities):
            if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity < 1:
                raise ValueError(f"capacity for level {level} must be a positive integer, got {capacity!r}")

        self._capacities: List[int] = capacities
        # _offsets[l] = number of ids allocated to levels below l
        self._offsets: List[int] = [0, *accumulate(capacities)]

        logger.debug(
            f"HierarchyIndex initialized with {self.num_levels} levels, {self.total_nodes} total nodes"
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def capacities(self) -> List[int]:
        return list(self._capacities)

    @property
    def num_levels(self) -> int:
        return len(self._capacities)

    @property
    def total_nodes(self) -> int:
        return self._offsets[-1]

    @property
    def levels(self) -> List[Level]:
        return [Level(index=i, capacity=c) for i, c in enumerate(self._capacities)]

    # =========================================================================
    # Conversion
    # =========================================================================

    def _check_level(self, level: int) -> None:
        if not 0 <= level < self.num_levels:
            raise HierarchyIndexError(
                f"Invalid level: {level}. Must be between 0 and {self.num_levels - 1}."
            )

    def offset(self, level: int) -> int:
        """Number of global ids allocated to levels below `level`."""
        self._check_level(level)
        return self._offsets[level]

    def global_index_from_level(self, level: int, local_idx: int) -> int:
        """Convert a (level, 1-based local index) pair to a global id."""
        self._check_level(level)
        capacity = self._capacities[level]
        if not 1 <= local_idx <= capacity:
            raise HierarchyIndexError(
                f"Local index {local_idx} out of bounds for level {level} (max = {capacity})."
            )
        return self._offsets[level] + local_idx

    def level_and_local_from_global(self, global_id: int) -> LevelLocal:
        """Convert a global id back to its (level, local index) address."""
        if not 1 <= global_id <= self.total_nodes:
            raise HierarchyIndexError(
                f"Global id {global_id} out of range. Must be between 1 and {self.total_nodes}."
            )
        # First level whose cumulative upper bound reaches global_id
        level = bisect_left(self._offsets, global_id) - 1
        return LevelLocal(level=level, local_idx=global_id - self._offsets[level])

    def level_of(self, global_id: int) -> int:
        return self.level_and_local_from_global(global_id).level

    def contains(self, global_id: int) -> bool:
        return 1 <= global_id <= self.total_nodes

    def validate_global_index(self, global_id: int, level: int, local_idx: int) -> bool:
        """
        Check that an externally supplied (global id, level, local index)
        triple is consistent with the capacity table. Never raises.
        """
        try:
            address = self.level_and_local_from_global(global_id)
        except HierarchyIndexError as e:
            logger.debug(f"Index validation failed: {e}")
            return False
        return address.level == level and address.local_idx == local_idx

    # =========================================================================
    # Capacity accessors
    # =========================================================================

    def num_nodes_at_level(self, level: int) -> int:
        self._check_level(level)
        return self._capacities[level]

    def global_indices_for_level(self, level: int) -> List[int]:
        self._check_level(level)
        start = self._offsets[level] + 1
        return list(range(start, start + self._capacities[level]))

    def audit_level(self, level: int) -> List[int]:
        """Return the global ids of `level` whose round trip does not hold."""
        failures = []
        for global_id in self.global_indices_for_level(level):
            address = self.level_and_local_from_global(global_id)
            if self.global_index_from_level(address.level, address.local_idx) != global_id:
                failures.append(global_id)
        return failures

    # =========================================================================
    # Media and display helpers
    # =========================================================================

    def video_filename(self, global_id: int) -> Optional[str]:
        """Video for a cluster node; level 0 (observed classes) has none."""
        address = self.level_and_local_from_global(global_id)
        if address.level == 0:
            return None
        return VIDEO_FILENAME_TEMPLATE.format(local_idx=address.local_idx, level=address.level)

    @staticmethod
    def placeholder_video() -> str:
        return LEVEL_0_PLACEHOLDER_VIDEO

    def media_for(self, global_id: int) -> str:
        """Video to show for any node, falling back to the level-0 placeholder."""
        return self.video_filename(global_id) or self.placeholder_video()

    @staticmethod
    def level_name(level: int) -> str:
        if level == 0:
            return "Observed Classes"
        return f"{level} Month{'s' if level > 1 else ''} Lead Time"

    @staticmethod
    def cluster_name(level: int, local_idx: int) -> str:
        if level == 0 and 1 <= local_idx <= len(SPECIAL_CLASSES):
            return SPECIAL_CLASSES[local_idx - 1]
        if level == 0:
            return f"Class {local_idx}"
        return f"Cluster {local_idx}"

    def summary(self) -> Dict[str, Any]:
        return {
            "num_levels": self.num_levels,
            "total_nodes": self.total_nodes,
            "level_range": f"0-{self.num_levels - 1}",
            "global_index_range": f"1-{self.total_nodes}",
            "nodes_per_level": self.capacities,
            "observed_classes": self._capacities[0],
            "predictive_levels": self.num_levels - 1,
        }

    def __repr__(self) -> str:
        return f"HierarchyIndex(capacities={self._capacities!r})"
